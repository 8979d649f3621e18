from __future__ import annotations

from datetime import date, datetime, timezone
from itertools import product

import pytest

from taskboard.models.entities import AssigneeRef, Task
from taskboard.models.types import STAGES, TaskPriority, TaskStatus
from taskboard.services import status_rules
from taskboard.services.errors import InvalidArgument, NotFound
from taskboard.services.status_rules import TransitionTable

NOW = datetime(2026, 2, 1, 12, 30, tzinfo=timezone.utc)
EARLIER = datetime(2026, 1, 15, 8, 0, tzinfo=timezone.utc)


def _task(**overrides) -> Task:
    base = dict(
        id="t1",
        title="Draft",
        start_date=date(2026, 1, 5),
        assign_date=date(2026, 1, 5),
        expected_delivery_date=date(2026, 1, 20),
        assignee=AssigneeRef(id="u1", name="Bob", email="bob@example.com"),
    )
    base.update(overrides)
    return Task(**base)


# --- transition graph ---------------------------------------------------------

@pytest.mark.parametrize("current,target", list(product(STAGES, STAGES)))
def test_every_stage_reaches_every_stage(current, target):
    changes = status_rules.apply(_task(status=current), {"status": target.value}, now=NOW)
    assert changes["status"] is target


def test_strict_table_rejects_unlisted_moves():
    table = TransitionTable({TaskStatus.TODO: [TaskStatus.IN_PROGRESS]})
    assert table.is_allowed(TaskStatus.TODO, TaskStatus.IN_PROGRESS)
    assert not table.is_allowed(TaskStatus.TODO, TaskStatus.DONE)
    assert table.is_allowed(TaskStatus.DONE, TaskStatus.DONE)
    assert table.allowed_transitions(TaskStatus.TODO) == {TaskStatus.IN_PROGRESS}

    with pytest.raises(InvalidArgument):
        status_rules.apply(_task(), {"status": "done"}, now=NOW, table=table)


def test_permissive_table_lists_all_other_stages():
    assert status_rules.PERMISSIVE.allowed_transitions(TaskStatus.TODO) == {
        TaskStatus.IN_PROGRESS, TaskStatus.IN_REVIEW, TaskStatus.DONE,
    }


# --- delivery stamp -----------------------------------------------------------

def test_reaching_done_stamps_delivery_date():
    changes = status_rules.apply(_task(), {"status": "done"}, now=NOW)
    assert changes == {"status": TaskStatus.DONE, "actual_delivery_date": NOW}


def test_resubmitting_done_keeps_existing_stamp():
    done = _task(status=TaskStatus.DONE, actual_delivery_date=EARLIER)
    changes = status_rules.apply(done, {"status": "done"}, now=NOW)
    assert "actual_delivery_date" not in changes


def test_explicit_delivery_date_wins_over_stamp():
    changes = status_rules.apply(_task(), {"status": "done", "actual_delivery_date": "2026-01-31"}, now=NOW)
    assert changes["actual_delivery_date"] == datetime(2026, 1, 31, tzinfo=timezone.utc)


@pytest.mark.parametrize("target", ["todo", "in_progress", "in_review"])
def test_non_terminal_stage_does_not_stamp(target):
    changes = status_rules.apply(_task(), {"status": target}, now=NOW)
    assert "actual_delivery_date" not in changes


def test_leaving_done_keeps_the_stamp():
    done = _task(status=TaskStatus.DONE, actual_delivery_date=EARLIER)
    changes = status_rules.apply(done, {"status": "in_review"}, now=NOW)
    assert "actual_delivery_date" not in changes


def test_note_edit_on_unstamped_done_task_changes_only_note():
    changes = status_rules.apply(_task(status=TaskStatus.DONE), {"note": "late"}, now=NOW)
    assert changes == {"note": "late"}


def test_resubmitting_done_on_unstamped_task_stamps_it():
    changes = status_rules.apply(_task(status=TaskStatus.DONE), {"status": "done"}, now=NOW)
    assert changes == {"status": TaskStatus.DONE, "actual_delivery_date": NOW}


# --- validation ---------------------------------------------------------------

def test_missing_record_is_not_found():
    with pytest.raises(NotFound):
        status_rules.apply(None, {"status": "done"}, now=NOW)


@pytest.mark.parametrize(
    "proposed",
    [
        {"status": "archived"},
        {"status": None},
        {"priority": "critical"},
        {"title": "   "},
        {"title": None},
        {"start_date": "not-a-date"},
        {"expected_delivery_date": None},
        {"assignee": ""},
        {"note": 42},
        {"colour": "red"},
    ],
)
def test_malformed_values_are_invalid(proposed):
    with pytest.raises(InvalidArgument):
        status_rules.apply(_task(), proposed, now=NOW)


def test_values_are_coerced():
    changes = status_rules.apply(
        _task(),
        {"title": "  Final  ", "priority": "urgent", "start_date": "2026-01-06T10:00:00Z", "note": None},
        now=NOW,
    )
    assert changes == {
        "title": "Final",
        "priority": TaskPriority.URGENT,
        "start_date": date(2026, 1, 6),
        "note": None,
    }


# --- creation -----------------------------------------------------------------

CREATE = {
    "title": "Ship",
    "start_date": "2026-01-05",
    "assign_date": "2026-01-05",
    "expected_delivery_date": "2026-01-20",
    "assignee": "u1",
}


@pytest.mark.parametrize("missing", status_rules.REQUIRED_ON_CREATE)
def test_create_requires_each_required_field(missing):
    fields = {k: v for k, v in CREATE.items() if k != missing}
    with pytest.raises(InvalidArgument) as ei:
        status_rules.prepare_new(fields, now=NOW)
    assert ei.value.context["fields"] == [missing]


def test_create_fills_defaults():
    values = status_rules.prepare_new(dict(CREATE, status=None, priority=""), now=NOW)
    assert values["status"] is TaskStatus.TODO
    assert values["priority"] is TaskPriority.MEDIUM
    assert "actual_delivery_date" not in values


def test_create_directly_done_is_stamped():
    values = status_rules.prepare_new(dict(CREATE, status="done"), now=NOW)
    assert values["actual_delivery_date"] == NOW
