"""Render analysed tickets as a prioritised sprint Markdown document."""
from __future__ import annotations

from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Sequence

from sprint_pilot.core.schema import AnalyzedItem, SyncMetadata

PRIORITY_ORDER: dict[str, int] = {
    "urgent": 1,
    "high": 2,
    "normal": 3,
    "low": 4,
}
UNSET_PRIORITY_RANK = 5
NO_TICKETS_LINE = "No tickets found."


def priority_rank(priority: str | None) -> int:
    """Rank a ClickUp priority label; unset or unknown labels sort last."""

    if not priority:
        return UNSET_PRIORITY_RANK
    return PRIORITY_ORDER.get(priority.strip().lower(), UNSET_PRIORITY_RANK)


def _sort_key(item: AnalyzedItem) -> tuple[int, int, int]:
    return (
        priority_rank(item.ticket.priority_label),
        -item.analysis.quality_score,
        0 if item.analysis.complexity_tag == "fix" else 1,
    )


def sort_tickets(items: Iterable[AnalyzedItem]) -> list[AnalyzedItem]:
    """Priority, then quality (high first), then fixes before features.

    ``sorted`` is stable, so full ties keep their input order.
    """

    return sorted(items, key=_sort_key)


def _parse_timestamp(value: str) -> datetime | None:
    try:
        parsed = datetime.fromisoformat(value.strip())
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _calendar_date(timestamp: str) -> str:
    parsed = _parse_timestamp(timestamp)
    if parsed is None:
        return timestamp[:10]
    return parsed.date().isoformat()


def _format_due_date(value: str) -> str:
    raw = value.strip()
    if raw.isdigit():
        # ClickUp sends epoch milliseconds.
        try:
            return datetime.fromtimestamp(int(raw) / 1000, tz=timezone.utc).date().isoformat()
        except (OverflowError, OSError, ValueError):
            return raw
    parsed = _parse_timestamp(raw)
    if parsed is None:
        return raw
    return parsed.date().isoformat()


def format_quality(score: int, gaps: Sequence[str]) -> str:
    if not gaps:
        return f"{score}/5"
    return f"{score}/5 (missing: {', '.join(gaps)})"


def average_quality(items: Sequence[AnalyzedItem]) -> str:
    if not items:
        return "0"
    total = sum(item.analysis.quality_score for item in items)
    mean = Decimal(total) / len(items)
    return str(mean.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def format_ticket(item: AnalyzedItem, index: int) -> str:
    ticket, analysis = item.ticket, item.analysis
    lines: list[str] = []

    lines.append(f"### {index + 1}. [{analysis.complexity_tag.upper()}] {ticket.name}")
    lines.append(f"- **ClickUp ID**: {ticket.id}")
    lines.append(f"- **Status**: {ticket.status.status}")
    lines.append(f"- **Quality**: {format_quality(analysis.quality_score, analysis.quality_gaps)}")
    lines.append(f"- **Complexity**: {analysis.complexity_tag}")

    if ticket.priority:
        lines.append(f"- **Priority**: {ticket.priority.priority}")
    if ticket.assignees:
        lines.append(f"- **Assignees**: {', '.join(person.username for person in ticket.assignees)}")
    if ticket.tags:
        lines.append(f"- **Tags**: {', '.join(tag.name for tag in ticket.tags)}")
    if ticket.due_date:
        lines.append(f"- **Due Date**: {_format_due_date(ticket.due_date)}")

    if analysis.affected_files:
        lines.append("- **Affected files**:")
        lines.extend(f"  - `{path}`" for path in analysis.affected_files)
    else:
        lines.append("- **Affected files**: (none identified)")

    lines.append(f"- **Suggested approach**: {analysis.suggested_approach}")
    agent_command = "/fix" if analysis.complexity_tag == "fix" else "/agent"
    lines.append(f"- **Agent**: {agent_command}")

    if ticket.description and ticket.description.strip():
        lines.append("")
        lines.append("**Description:**")
        lines.append(ticket.description.strip())

    if ticket.url:
        lines.append("")
        lines.append(f"[View in ClickUp]({ticket.url})")

    return "\n".join(lines)


def format_sprint(items: Sequence[AnalyzedItem], metadata: SyncMetadata) -> str:
    """Render the sprint document. Pure: same inputs, same output."""

    ordered = sort_tickets(items)
    list_name = metadata.list_name or f"List {metadata.list_id}"
    fixes = sum(1 for item in items if item.analysis.complexity_tag == "fix")
    features = sum(1 for item in items if item.analysis.complexity_tag == "feature")

    lines: list[str] = [
        f"# Sprint: {_calendar_date(metadata.sync_timestamp)}",
        "",
        f'Synced from ClickUp List "{list_name}" at {metadata.sync_timestamp}',
        f"Total tickets: {metadata.ticket_count}",
        "",
        "**Summary:**",
        f"- Fixes: {fixes}",
        f"- Features: {features}",
        f"- Average Quality Score: {average_quality(items)}/5",
        "",
        "## Tickets (ordered by priority)",
        "",
    ]

    if not ordered:
        lines.append(NO_TICKETS_LINE)
    else:
        for index, item in enumerate(ordered):
            lines.append(format_ticket(item, index))
            lines.extend(["", "---", ""])

    return "\n".join(lines)


__all__ = [
    "NO_TICKETS_LINE",
    "PRIORITY_ORDER",
    "average_quality",
    "format_quality",
    "format_sprint",
    "format_ticket",
    "priority_rank",
    "sort_tickets",
]
