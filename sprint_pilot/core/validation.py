"""Validation of raw ClickUp task payloads.

Upstream data is only loosely trustworthy: a task that does not match the
:class:`WorkItem` shape is coerced into a best-effort item instead of being
dropped, so one malformed task never aborts a sync.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

from pydantic import BaseModel, ValidationError

from sprint_pilot.core.schema import Assignee, Tag, TaskPriority, TaskStatus, WorkItem

UNTITLED_TASK = "Untitled Task"
UNKNOWN_STATUS = "unknown"


@dataclass(frozen=True, slots=True)
class ParsedWorkItem:
    """Outcome of validating one raw task."""

    kind: Literal["strict", "coerced"]
    item: WorkItem
    errors: list[str] = field(default_factory=list)

    @property
    def coerced(self) -> bool:
        return self.kind == "coerced"


def _text(value: Any) -> str | None:
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return None


def _valid_entries(values: Any, model: type[BaseModel]) -> list[Any]:
    if not isinstance(values, list):
        return []
    entries = []
    for value in values:
        try:
            entries.append(model.model_validate(value))
        except ValidationError:
            continue
    return entries


def _coerce_status(value: Any) -> TaskStatus:
    if isinstance(value, dict):
        status = _text(value.get("status"))
        color = _text(value.get("color"))
        return TaskStatus(status=status or UNKNOWN_STATUS, color=color)
    if isinstance(value, str) and value.strip():
        return TaskStatus(status=value)
    return TaskStatus(status=UNKNOWN_STATUS)


def _coerce_priority(value: Any) -> TaskPriority | None:
    if isinstance(value, str) and value.strip():
        return TaskPriority(id="", priority=value, color="")
    if not isinstance(value, dict):
        return None
    label = _text(value.get("priority"))
    if not label:
        return None
    return TaskPriority(
        id=_text(value.get("id")) or "",
        priority=label,
        color=_text(value.get("color")) or "",
    )


def _coerce_tags(values: Any) -> list[Tag]:
    if not isinstance(values, list):
        return []
    tags: list[Tag] = []
    for value in values:
        if isinstance(value, str) and value:
            tags.append(Tag(name=value))
            continue
        try:
            tags.append(Tag.model_validate(value))
        except ValidationError:
            continue
    return tags


def coerce_work_item(raw: Any) -> WorkItem:
    """Build a best-effort :class:`WorkItem` from an arbitrary task payload.

    Pure function: the id is stringified, a missing name becomes
    ``"Untitled Task"``, a missing status becomes ``"unknown"`` and every
    collection defaults to empty, with malformed entries dropped.
    """

    data = raw if isinstance(raw, dict) else {}

    raw_id = data.get("id")
    name = _text(data.get("name"))
    description = _text(data.get("description"))
    due_date = _text(data.get("due_date"))
    custom_fields = data.get("custom_fields")

    return WorkItem(
        id="" if raw_id is None else str(raw_id),
        name=name if name else UNTITLED_TASK,
        description=description or None,
        status=_coerce_status(data.get("status")),
        assignees=_valid_entries(data.get("assignees"), Assignee),
        priority=_coerce_priority(data.get("priority")),
        tags=_coerce_tags(data.get("tags")),
        due_date=due_date or None,
        custom_fields=list(custom_fields) if isinstance(custom_fields, list) else [],
        url=_text(data.get("url")) or "",
    )


def parse_work_item(raw: Any) -> ParsedWorkItem:
    """Validate ``raw`` strictly, falling back to :func:`coerce_work_item`."""

    try:
        return ParsedWorkItem(kind="strict", item=WorkItem.model_validate(raw))
    except ValidationError as exc:
        errors = [
            f"{'.'.join(str(part) for part in error['loc']) or '<root>'}: {error['msg']}"
            for error in exc.errors()
        ]
        return ParsedWorkItem(kind="coerced", item=coerce_work_item(raw), errors=errors)


__all__ = [
    "ParsedWorkItem",
    "UNKNOWN_STATUS",
    "UNTITLED_TASK",
    "coerce_work_item",
    "parse_work_item",
]
