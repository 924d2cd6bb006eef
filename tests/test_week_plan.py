from __future__ import annotations

import asyncio
from datetime import date

import pytest

from trainplan.errors import PersistenceFailure, UnsavedChangesError, ValidationFailure
from trainplan.gateway import InMemoryGateway
from trainplan.models import Routine
from trainplan.services.week_plan import NavigationDecision, WeekPlanEditor, monday_start, week_dates

USER = "user-1"
WEDNESDAY = date(2024, 6, 12)
MONDAY = date(2024, 6, 10)

PUSH = Routine(id="r-push", title="Push Day", description="Chest and shoulders")
LEGS = Routine(id="r-legs", title="Legs")


def build_editor(gw: InMemoryGateway | None = None) -> tuple[InMemoryGateway, WeekPlanEditor]:
    gw = gw or InMemoryGateway()
    editor = WeekPlanEditor(gw, USER, anchor=WEDNESDAY)
    asyncio.run(editor.load())
    return gw, editor


def test_week_helpers() -> None:
    assert monday_start(WEDNESDAY) == MONDAY
    assert monday_start(MONDAY) == MONDAY
    assert monday_start(date(2024, 6, 16)) == MONDAY
    days = week_dates(WEDNESDAY)
    assert days[0] == MONDAY and days[-1] == date(2024, 6, 16) and len(days) == 7


def test_assign_and_save_clears_dirty_flag() -> None:
    gw, editor = build_editor()
    assert not editor.has_unsaved_changes

    item = editor.assign_routine(MONDAY, PUSH)
    assert item.subtitle == "Chest and shoulders"
    editor.assign_routine("2024-06-12", LEGS)
    assert editor.plan["2024-06-12"].subtitle == "No description"
    assert editor.has_unsaved_changes

    asyncio.run(editor.save())
    assert not editor.has_unsaved_changes
    assert editor.plan_id is not None

    stored = asyncio.run(gw.list_plan_days(editor.plan_id))
    assert [(d.date, d.routine_id, d.title) for d in stored] == [
        (MONDAY, "r-push", "Push Day"),
        (WEDNESDAY, "r-legs", "Legs"),
    ]
    plan = gw.plans[editor.plan_id]
    assert (plan.start_date, plan.end_date) == (MONDAY, date(2024, 6, 16))


def test_edits_after_save_mark_dirty_again() -> None:
    _, editor = build_editor()
    editor.assign_routine(MONDAY, PUSH)
    asyncio.run(editor.save())

    editor.clear_day(MONDAY)
    assert editor.has_unsaved_changes
    editor.assign_routine(MONDAY, PUSH)
    assert not editor.has_unsaved_changes  # structurally back to the saved state

    editor.assign_routine(WEDNESDAY, LEGS)
    assert editor.has_unsaved_changes


def test_cleared_day_is_deleted_on_save() -> None:
    gw, editor = build_editor()
    editor.assign_routine(MONDAY, PUSH)
    editor.assign_routine(WEDNESDAY, LEGS)
    asyncio.run(editor.save())

    assert editor.clear_day(MONDAY)
    assert not editor.clear_day(date(2024, 6, 14))
    asyncio.run(editor.save())

    stored = asyncio.run(gw.list_plan_days(editor.plan_id))
    assert [d.date for d in stored] == [WEDNESDAY]


def test_dates_outside_week_are_rejected() -> None:
    _, editor = build_editor()
    with pytest.raises(ValidationFailure):
        editor.assign_routine(date(2024, 6, 17), PUSH)
    with pytest.raises(ValidationFailure):
        editor.clear_day("2024-06-09")


def test_load_reads_existing_week() -> None:
    gw = InMemoryGateway()
    plan = gw.add_plan(USER, MONDAY, date(2024, 6, 16))
    gw.add_plan_day(plan.id, MONDAY, routine_id="r-push", title="Push Day", description="Chest")
    gw.add_plan_day(plan.id, date(2024, 6, 13), title="Free-text only")

    _, editor = build_editor(gw)
    assert editor.plan_id == plan.id
    assert list(editor.plan) == ["2024-06-10"]
    assert editor.plan["2024-06-10"].subtitle == "Chest"
    assert not editor.has_unsaved_changes


def test_navigation_requires_decision_when_dirty() -> None:
    _, editor = build_editor()
    editor.assign_routine(MONDAY, PUSH)

    with pytest.raises(UnsavedChangesError):
        asyncio.run(editor.navigate_week(1))
    assert editor.week_start == MONDAY

    assert asyncio.run(editor.navigate_week(1, NavigationDecision.CANCEL)) is False
    assert editor.week_start == MONDAY
    assert "2024-06-10" in editor.plan


def test_navigation_discard_drops_edits() -> None:
    gw, editor = build_editor()
    editor.assign_routine(MONDAY, PUSH)

    assert asyncio.run(editor.navigate_week(1, NavigationDecision.DISCARD))
    assert editor.week_start == date(2024, 6, 17)
    assert editor.plan == {}

    asyncio.run(editor.navigate_week(-1))
    assert editor.week_start == MONDAY
    assert editor.plan == {}
    assert gw.plan_days == {}


def test_navigation_save_persists_then_moves() -> None:
    _, editor = build_editor()
    editor.assign_routine(MONDAY, PUSH)

    assert asyncio.run(editor.navigate_week(-1, NavigationDecision.SAVE))
    assert editor.week_start == date(2024, 6, 3)
    assert not editor.has_unsaved_changes

    asyncio.run(editor.navigate_week(1))
    assert editor.plan["2024-06-10"].routine_id == "r-push"


def test_clean_navigation_needs_no_decision() -> None:
    _, editor = build_editor()
    assert asyncio.run(editor.navigate_week(1))
    assert editor.week_start == date(2024, 6, 17)
    with pytest.raises(ValidationFailure):
        asyncio.run(editor.navigate_week(2))


class FlakyGateway(InMemoryGateway):
    def __init__(self, fail_on: date) -> None:
        super().__init__()
        self.fail_on = fail_on

    async def upsert_plan_day(self, plan_id, day, payload):
        if day == self.fail_on:
            raise PersistenceFailure("write rejected")
        await super().upsert_plan_day(plan_id, day, payload)


def test_failed_save_keeps_remaining_changes_pending() -> None:
    gw, editor = build_editor(FlakyGateway(fail_on=WEDNESDAY))
    editor.assign_routine(MONDAY, PUSH)
    editor.assign_routine(WEDNESDAY, LEGS)

    with pytest.raises(PersistenceFailure):
        asyncio.run(editor.save())
    assert editor.has_unsaved_changes
    assert not editor.saving
    stored = asyncio.run(gw.list_plan_days(editor.plan_id))
    assert [d.date for d in stored] == [MONDAY]

    # A failed save during navigation keeps the user on the current week
    with pytest.raises(PersistenceFailure):
        asyncio.run(editor.navigate_week(1, NavigationDecision.SAVE))
    assert editor.week_start == MONDAY
    assert "2024-06-12" in editor.plan


class WeekLookupDownGateway(InMemoryGateway):
    """Serves the first week lookup, then fails every later one."""

    def __init__(self) -> None:
        super().__init__()
        self.lookups = 0

    async def find_week_plan(self, user_id, start, end):
        self.lookups += 1
        if self.lookups > 1:
            raise PersistenceFailure("plan lookup timed out", step="plan-lookup")
        return await super().find_week_plan(user_id, start, end)


def assert_days_inside_their_plans(gw: InMemoryGateway) -> None:
    outside = [
        (gw.plans[pid].start_date, gw.plans[pid].end_date, day)
        for (pid, day) in gw.plan_days
        if not gw.plans[pid].start_date <= day <= gw.plans[pid].end_date
    ]
    assert outside == [], f"Plan days outside their plan: {outside}"


def test_failed_week_load_after_discard_stays_on_clean_current_week() -> None:
    gw, editor = build_editor(WeekLookupDownGateway())
    editor.assign_routine(MONDAY, PUSH)

    with pytest.raises(PersistenceFailure):
        asyncio.run(editor.navigate_week(1, NavigationDecision.DISCARD))
    assert editor.week_start == MONDAY
    assert editor.plan_id is None
    assert editor.plan == {}
    assert not editor.has_unsaved_changes

    asyncio.run(editor.save())
    assert gw.plans == {} and gw.plan_days == {}

    editor.assign_routine(WEDNESDAY, LEGS)
    asyncio.run(editor.save())
    assert_days_inside_their_plans(gw)


def test_failed_week_load_after_save_keeps_saved_week() -> None:
    gw, editor = build_editor(WeekLookupDownGateway())
    editor.assign_routine(MONDAY, PUSH)

    with pytest.raises(PersistenceFailure):
        asyncio.run(editor.navigate_week(1, NavigationDecision.SAVE))
    assert editor.week_start == MONDAY
    assert editor.plan_id is not None
    assert list(editor.plan) == ["2024-06-10"]
    assert not editor.has_unsaved_changes

    with pytest.raises(ValidationFailure):
        editor.assign_routine(date(2024, 6, 18), LEGS)
    editor.assign_routine(WEDNESDAY, LEGS)
    asyncio.run(editor.save())

    stored = asyncio.run(gw.list_plan_days(editor.plan_id))
    assert [d.date for d in stored] == [MONDAY, WEDNESDAY]
    assert_days_inside_their_plans(gw)


def test_in_place_item_edit_marks_dirty() -> None:
    gw = InMemoryGateway()
    plan = gw.add_plan(USER, MONDAY, date(2024, 6, 16))
    gw.add_plan_day(plan.id, MONDAY, routine_id="r-push", title="Push Day")
    _, editor = build_editor(gw)

    editor.plan["2024-06-10"].title = "Heavy Push"
    assert editor.has_unsaved_changes
    asyncio.run(editor.save())
    assert not editor.has_unsaved_changes

    editor.plan["2024-06-10"].subtitle = "Deload"
    assert editor.has_unsaved_changes
