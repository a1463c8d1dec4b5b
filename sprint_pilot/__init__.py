"""Sprint Pilot: ClickUp sprint sync with LLM ticket analysis."""

__version__ = "0.1.0"
