"""Per-ticket quality assessment and codebase mapping via a generative model."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from sprint_pilot.core.errors import SprintPilotError
from sprint_pilot.core.schema import Analysis, ProjectStructure, WorkItem
from sprint_pilot.infrastructure.llm import StructuredModelClient
from sprint_pilot.logging import get_logger

logger = get_logger("analysis")

MAX_COMPONENTS_IN_PROMPT = 50
ANALYSIS_TEMPERATURE = 0.3
SCHEMA_NAME = "ticket_analysis"

SYSTEM_PROMPT = """You are a senior software developer reviewing sprint tickets for quality and implementation planning.

Your tasks:
1. Assess the ticket's quality on a scale of 1-5 based on:
   - Clarity of requirements
   - Presence of acceptance criteria
   - Sufficient technical details
   - Error handling considerations
   - Edge cases mentioned

2. Identify quality gaps with specific, actionable feedback

3. Map the ticket to affected files in the codebase by:
   - Matching ticket description keywords to file paths
   - Considering the feature area (auth, profile, ui, etc.)
   - Identifying related components, pages, and server actions
   - Using the exact paths from the codebase structure

4. Classify as 'fix' or 'feature':
   - 'fix': Bug fixes, styling updates, small corrections
   - 'feature': New functionality, major changes, new pages

5. Provide a 1-2 sentence implementation approach that is specific and actionable

Be thorough but concise."""

ANALYSIS_JSON_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "qualityScore": {"type": "integer", "enum": [1, 2, 3, 4, 5]},
        "qualityGaps": {"type": "array", "items": {"type": "string"}},
        "affectedFiles": {"type": "array", "items": {"type": "string"}},
        "complexityTag": {"type": "string", "enum": ["fix", "feature"]},
        "suggestedApproach": {"type": "string"},
    },
    "required": ["qualityScore", "qualityGaps", "affectedFiles", "complexityTag", "suggestedApproach"],
    "additionalProperties": False,
}


def fallback_analysis() -> Analysis:
    """The fixed analysis used whenever the model cannot produce one."""

    return Analysis(
        quality_score=3,
        quality_gaps=["Analysis failed - manual review needed"],
        affected_files=[],
        complexity_tag="feature",
        suggested_approach="Review ticket manually",
    )


@dataclass(frozen=True, slots=True)
class AnalysisOutcome:
    analysis: Analysis
    fallback: bool = False
    error: str | None = None


def _format_codebase(structure: ProjectStructure) -> str:
    routes = "\n".join(f"  {route.path}: [{', '.join(route.files)}]" for route in structure.routes)

    shown = structure.components[:MAX_COMPONENTS_IN_PROMPT]
    components = "\n".join(f"  {path}" for path in shown)
    if len(structure.components) > MAX_COMPONENTS_IN_PROMPT:
        components += "\n  ... and more"

    actions = "\n".join(f"  {path}" for path in structure.actions)

    return (
        "CODEBASE STRUCTURE:\n"
        f"Routes:\n{routes or '  (none)'}\n\n"
        f"Components:\n{components or '  (none)'}\n\n"
        f"Server Actions:\n{actions or '  (none)'}"
    )


def build_prompt(item: WorkItem, structure: ProjectStructure) -> str:
    description = item.description if item.description and item.description.strip() else "No description provided"
    tags = ", ".join(tag.name for tag in item.tags) or "None"
    return (
        "Analyze this ticket and map it to the codebase:\n\n"
        "TICKET:\n"
        f"Title: {item.name}\n"
        f"Description: {description}\n"
        f"Status: {item.status.status}\n"
        f"Priority: {item.priority_label or 'Not set'}\n"
        f"Tags: {tags}\n"
        f"URL: {item.url or 'N/A'}\n\n"
        f"{_format_codebase(structure)}\n\n"
        "Provide your analysis as a JSON object with: qualityScore, qualityGaps, "
        "affectedFiles, complexityTag, suggestedApproach."
    )


class TicketAnalyzer:
    """Scores one ticket and maps it to files. :meth:`analyze` never raises."""

    def __init__(self, model: StructuredModelClient, *, temperature: float = ANALYSIS_TEMPERATURE) -> None:
        self._model = model
        self._temperature = temperature

    async def try_analyze(self, item: WorkItem, structure: ProjectStructure) -> AnalysisOutcome:
        try:
            raw = await self._model.generate_json(
                system=SYSTEM_PROMPT,
                prompt=build_prompt(item, structure),
                schema=ANALYSIS_JSON_SCHEMA,
                schema_name=SCHEMA_NAME,
                temperature=self._temperature,
            )
            analysis = Analysis.model_validate(raw)
        except (SprintPilotError, ValidationError) as exc:
            return AnalysisOutcome(analysis=fallback_analysis(), fallback=True, error=str(exc))
        except Exception as exc:  # noqa: BLE001
            return AnalysisOutcome(
                analysis=fallback_analysis(), fallback=True, error=f"{type(exc).__name__}: {exc}"
            )
        return AnalysisOutcome(analysis=analysis)

    async def analyze(self, item: WorkItem, structure: ProjectStructure) -> Analysis:
        outcome = await self.try_analyze(item, structure)
        if outcome.fallback:
            logger.warning("Analysis fallback for ticket %s: %s", item.id, outcome.error)
        return outcome.analysis


__all__ = [
    "ANALYSIS_JSON_SCHEMA",
    "AnalysisOutcome",
    "SYSTEM_PROMPT",
    "TicketAnalyzer",
    "build_prompt",
    "fallback_analysis",
]
