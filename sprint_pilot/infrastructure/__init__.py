"""Infrastructure layer exports."""

from .clickup import ClickUpClient, FetchResult
from .jobs import InMemoryJobRepository, JobRepository
from .llm import ChatCompletionsClient, StructuredModelClient
from .webhook import WebhookClient, serialize_payload

__all__ = [
    "ChatCompletionsClient",
    "ClickUpClient",
    "FetchResult",
    "InMemoryJobRepository",
    "JobRepository",
    "StructuredModelClient",
    "WebhookClient",
    "serialize_payload",
]
