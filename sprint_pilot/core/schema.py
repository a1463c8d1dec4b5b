from __future__ import annotations

from typing import Any, Literal

from pydantic import AnyHttpUrl, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

ComplexityTag = Literal["fix", "feature"]


class _WireModel(BaseModel):
    """Frozen model whose wire names are camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


# ----------------------------------------------------------------------
# ClickUp tasks (ClickUp's own field names)
# ----------------------------------------------------------------------
class TaskStatus(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: str
    color: str | None = None


class Assignee(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    username: str
    email: str | None = None


class TaskPriority(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    priority: str
    color: str


class Tag(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    tag_fg: str | None = None
    tag_bg: str | None = None


class WorkItem(BaseModel):
    """One ClickUp task as fetched for a sync run."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str | None = None
    status: TaskStatus
    assignees: list[Assignee] = Field(default_factory=list)
    priority: TaskPriority | None = None
    tags: list[Tag] = Field(default_factory=list)
    due_date: str | None = None
    custom_fields: list[Any] = Field(default_factory=list)
    url: str | None = None

    @property
    def priority_label(self) -> str | None:
        return self.priority.priority if self.priority else None


# ----------------------------------------------------------------------
# codebase map
# ----------------------------------------------------------------------
class Route(_WireModel):
    path: str
    files: list[str] = Field(default_factory=list)
    exports: list[str] | None = None


class ProjectStructure(_WireModel):
    """Summary of the target codebase produced by the external scanner."""

    routes: list[Route] = Field(default_factory=list)
    components: list[str] = Field(default_factory=list)
    actions: list[str] = Field(default_factory=list)
    scanned_at: str | None = None


# ----------------------------------------------------------------------
# analysis results
# ----------------------------------------------------------------------
class Analysis(_WireModel):
    quality_score: int = Field(ge=1, le=5)
    quality_gaps: list[str] = Field(default_factory=list)
    affected_files: list[str] = Field(default_factory=list)
    complexity_tag: ComplexityTag
    suggested_approach: str


class AnalyzedItem(_WireModel):
    ticket: WorkItem
    analysis: Analysis


class SyncMetadata(_WireModel):
    sync_timestamp: str
    ticket_count: int
    list_id: str
    list_name: str | None = None


class DeliveryPayload(_WireModel):
    sprint_markdown: str
    tickets: list[AnalyzedItem]
    metadata: SyncMetadata
    signature: str | None = None

    def to_wire(self) -> dict[str, Any]:
        """JSON-ready dict with camelCase keys; ``signature`` omitted when unset."""

        exclude = {"signature"} if self.signature is None else None
        return self.model_dump(mode="json", by_alias=True, exclude=exclude)


# ----------------------------------------------------------------------
# pipeline entry point
# ----------------------------------------------------------------------
class SyncRequest(_WireModel):
    list_id: str | None = None
    codebase_map: ProjectStructure
    webhook_url: AnyHttpUrl
    webhook_secret: str | None = None


class SyncResult(_WireModel):
    success: bool
    ticket_count: int
    webhook_delivered: bool
    message: str
    list_id: str | None = None
    error: str | None = None


__all__ = [
    "Analysis",
    "AnalyzedItem",
    "Assignee",
    "ComplexityTag",
    "DeliveryPayload",
    "ProjectStructure",
    "Route",
    "SyncMetadata",
    "SyncRequest",
    "SyncResult",
    "Tag",
    "TaskPriority",
    "TaskStatus",
    "WorkItem",
]
