from __future__ import annotations

from pathlib import Path
import sys

sys.path.append(str(Path(__file__).resolve().parents[1]))

from sprint_pilot.core.formatter import format_sprint, priority_rank, sort_tickets
from sprint_pilot.core.schema import Analysis, AnalyzedItem, SyncMetadata, WorkItem

METADATA = SyncMetadata(
    sync_timestamp="2025-03-04T09:15:00.000Z",
    ticket_count=0,
    list_id="901",
)


def _analyzed(
    ticket_id: str,
    *,
    priority: str | None = None,
    score: int = 3,
    tag: str = "feature",
    gaps: list[str] | None = None,
    files: list[str] | None = None,
    **ticket_fields,
) -> AnalyzedItem:
    ticket = {
        "id": ticket_id,
        "name": f"Ticket {ticket_id}",
        "status": {"status": "to do"},
        "priority": {"id": "x", "priority": priority, "color": "#000"} if priority else None,
    }
    ticket.update(ticket_fields)
    return AnalyzedItem(
        ticket=WorkItem.model_validate(ticket),
        analysis=Analysis(
            quality_score=score,
            quality_gaps=gaps or [],
            affected_files=files or [],
            complexity_tag=tag,
            suggested_approach=f"Approach for {ticket_id}",
        ),
    )


def _ids(items: list[AnalyzedItem]) -> list[str]:
    return [item.ticket.id for item in items]


def test_priority_rank_is_case_insensitive_and_unknown_sorts_last():
    assert priority_rank("Urgent") == 1
    assert priority_rank("high") == 2
    assert priority_rank("NORMAL") == 3
    assert priority_rank("low") == 4
    assert priority_rank(None) == 5
    assert priority_rank("someday") == 5


def test_urgent_before_low_regardless_of_quality():
    items = [_analyzed("low", priority="low", score=5), _analyzed("urgent", priority="urgent", score=1)]

    assert _ids(sort_tickets(items)) == ["urgent", "low"]


def test_quality_breaks_priority_ties():
    items = [_analyzed("b", priority="high", score=2), _analyzed("a", priority="high", score=5)]

    assert _ids(sort_tickets(items)) == ["a", "b"]


def test_fix_before_feature_on_equal_priority_and_quality():
    items = [_analyzed("feat", priority="normal", tag="feature"), _analyzed("fix", priority="normal", tag="fix")]

    assert _ids(sort_tickets(items)) == ["fix", "feat"]


def test_sort_is_stable_for_full_ties():
    items = [_analyzed(str(index), priority="normal", score=4, tag="fix") for index in range(6)]

    assert _ids(sort_tickets(items)) == ["0", "1", "2", "3", "4", "5"]


def test_unset_priority_sorts_after_low():
    items = [_analyzed("none", score=5, tag="fix"), _analyzed("low", priority="low", score=1)]

    assert _ids(sort_tickets(items)) == ["low", "none"]


def test_header_and_summary():
    items = [
        _analyzed("a", score=4, tag="fix"),
        _analyzed("b", score=2, tag="feature"),
        _analyzed("c", score=5, tag="feature"),
    ]
    metadata = METADATA.model_copy(update={"ticket_count": 3, "list_name": "Sprint 12"})

    markdown = format_sprint(items, metadata)
    lines = markdown.splitlines()

    assert lines[0] == "# Sprint: 2025-03-04"
    assert 'Synced from ClickUp List "Sprint 12" at 2025-03-04T09:15:00.000Z' in lines
    assert "Total tickets: 3" in lines
    assert "- Fixes: 1" in lines
    assert "- Features: 2" in lines
    assert "- Average Quality Score: 3.7/5" in lines


def test_list_id_used_when_name_missing():
    markdown = format_sprint([_analyzed("a")], METADATA)

    assert 'Synced from ClickUp List "List 901" at 2025-03-04T09:15:00.000Z' in markdown


def test_title_uses_utc_calendar_date():
    metadata = METADATA.model_copy(update={"sync_timestamp": "2025-03-04T23:30:00-05:00"})

    assert format_sprint([], metadata).startswith("# Sprint: 2025-03-05\n")


def test_empty_list_renders_no_tickets_line():
    markdown = format_sprint([], METADATA)
    lines = markdown.splitlines()

    assert "No tickets found." in lines
    assert "- Average Quality Score: 0/5" in lines
    assert not any(line.startswith("### ") for line in lines)


def test_ticket_block_with_all_optional_fields():
    item = _analyzed(
        "86abc",
        priority="High",
        score=2,
        tag="fix",
        gaps=["acceptance criteria", "error states"],
        files=["app/login/page.tsx", "components/auth/login-form.tsx"],
        description="  Button does nothing on Safari.  ",
        assignees=[{"id": 1, "username": "sam"}, {"id": 2, "username": "lee"}],
        tags=[{"name": "auth"}, {"name": "safari"}],
        due_date="1735689600000",
        url="https://app.clickup.com/t/86abc",
    )

    block = format_sprint([item], METADATA).split("## Tickets (ordered by priority)\n\n", 1)[1]

    expected = "\n".join(
        [
            "### 1. [FIX] Ticket 86abc",
            "- **ClickUp ID**: 86abc",
            "- **Status**: to do",
            "- **Quality**: 2/5 (missing: acceptance criteria, error states)",
            "- **Complexity**: fix",
            "- **Priority**: High",
            "- **Assignees**: sam, lee",
            "- **Tags**: auth, safari",
            "- **Due Date**: 2025-01-01",
            "- **Affected files**:",
            "  - `app/login/page.tsx`",
            "  - `components/auth/login-form.tsx`",
            "- **Suggested approach**: Approach for 86abc",
            "- **Agent**: /fix",
            "",
            "**Description:**",
            "Button does nothing on Safari.",
            "",
            "[View in ClickUp](https://app.clickup.com/t/86abc)",
            "",
            "---",
            "",
        ]
    )
    assert block == expected


def test_minimal_ticket_block():
    item = _analyzed("m1", score=5, tag="feature", description="   ")

    markdown = format_sprint([item], METADATA)

    assert "### 1. [FEATURE] Ticket m1" in markdown
    assert "- **Quality**: 5/5\n" in markdown
    assert "- **Affected files**: (none identified)" in markdown
    assert "- **Agent**: /agent" in markdown
    assert "**Description:**" not in markdown
    assert "View in ClickUp" not in markdown
    assert "- **Priority**" not in markdown
    assert "- **Due Date**" not in markdown


def test_output_is_deterministic():
    items = [_analyzed("a", priority="low"), _analyzed("b", priority="urgent", tag="fix")]

    assert format_sprint(items, METADATA) == format_sprint(list(items), METADATA)


def test_average_quality_rounds_half_up():
    items = [_analyzed(str(index), score=score) for index, score in enumerate([3, 3, 3, 4])]

    markdown = format_sprint(items, METADATA)

    assert "- Average Quality Score: 3.3/5" in markdown.splitlines()


def test_out_of_range_epoch_due_date_renders_raw():
    item = _analyzed("far", due_date="99999999999999999999")

    markdown = format_sprint([item], METADATA)

    assert "- **Due Date**: 99999999999999999999" in markdown


def test_iso_due_date_renders_date_part():
    item = _analyzed("iso", due_date="2025-06-30T12:00:00Z")

    assert "- **Due Date**: 2025-06-30" in format_sprint([item], METADATA)
