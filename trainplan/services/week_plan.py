from __future__ import annotations

import logging
from datetime import date, timedelta
from enum import Enum
from typing import List, Optional, Union

from trainplan.errors import SaveInProgressError, UnsavedChangesError, ValidationFailure
from trainplan.gateway.base import PersistenceGateway
from trainplan.models.plan import PlanItem, PlanMap
from trainplan.models.routine import Routine

log = logging.getLogger(__name__)

NO_DESCRIPTION = "No description"

DayLike = Union[date, str]


def monday_start(day: date) -> date:
    return day - timedelta(days=day.weekday())


def week_dates(day: date) -> List[date]:
    start = monday_start(day)
    return [start + timedelta(days=i) for i in range(7)]


def _copy_map(items: PlanMap) -> PlanMap:
    return {k: v.model_copy() for k, v in items.items()}


class NavigationDecision(str, Enum):
    DISCARD = "discard"
    SAVE = "save"
    CANCEL = "cancel"


class WeekPlanEditor:
    """Edits one Monday-start week of planned routines for a user.

    ``plan`` maps ISO dates to PlanItems and is only written to storage by
    ``save``. ``has_unsaved_changes`` compares it against the last loaded or
    saved state, so it can never drift from the data.
    """

    def __init__(self, gateway: PersistenceGateway, user_id: str, anchor: date | None = None) -> None:
        self.gateway = gateway
        self.user_id = user_id
        self.anchor = anchor or date.today()
        self.plan: PlanMap = {}
        self._snapshot: PlanMap = {}
        self.plan_id: Optional[str] = None
        self._saving = False

    @property
    def week_start(self) -> date:
        return monday_start(self.anchor)

    @property
    def week_end(self) -> date:
        return self.week_start + timedelta(days=6)

    @property
    def days(self) -> List[date]:
        return week_dates(self.anchor)

    @property
    def has_unsaved_changes(self) -> bool:
        return self.plan != self._snapshot

    @property
    def saving(self) -> bool:
        return self._saving

    def _key(self, day: DayLike) -> str:
        d = date.fromisoformat(day) if isinstance(day, str) else day
        if not self.week_start <= d <= self.week_end:
            raise ValidationFailure(f"{d} is outside the week {self.week_start}..{self.week_end}")
        return d.isoformat()

    async def _fetch(self, anchor: date) -> tuple[Optional[str], PlanMap]:
        start = monday_start(anchor)
        plan = await self.gateway.find_week_plan(self.user_id, start, start + timedelta(days=6))
        loaded: PlanMap = {}
        if plan is not None:
            for pd in await self.gateway.list_plan_days(plan.id):
                if pd.routine_id:
                    loaded[pd.date.isoformat()] = PlanItem(
                        routine_id=pd.routine_id,
                        title=pd.title or "",
                        subtitle=pd.description or "",
                    )
        return (plan.id if plan else None), loaded

    def _apply(self, anchor: date, plan_id: Optional[str], loaded: PlanMap) -> None:
        self.anchor = anchor
        self.plan_id = plan_id
        self.plan = loaded
        self._snapshot = _copy_map(loaded)

    async def load(self) -> PlanMap:
        # Editor state only changes once the whole week has been read
        plan_id, loaded = await self._fetch(self.anchor)
        self._apply(self.anchor, plan_id, loaded)
        log.debug("Loaded week %s for user %s: %d days planned", self.week_start, self.user_id, len(loaded))
        return self.plan

    reload = load

    def assign_routine(self, day: DayLike, routine: Routine) -> PlanItem:
        item = PlanItem(
            routine_id=routine.id,
            title=routine.title,
            subtitle=routine.description or NO_DESCRIPTION,
        )
        self.plan[self._key(day)] = item
        return item

    def clear_day(self, day: DayLike) -> bool:
        return self.plan.pop(self._key(day), None) is not None

    async def navigate_week(self, direction: int, decision: NavigationDecision | None = None) -> bool:
        """Move to the previous (-1) or next (+1) week and load it.

        With pending edits a decision is required; without one this raises
        UnsavedChangesError so the caller can ask the user. Returns False when
        the user cancelled. If the target week cannot be read the editor stays
        on the current week.
        """
        if direction not in (-1, 1):
            raise ValidationFailure("direction must be -1 or 1")
        if self._saving:
            raise SaveInProgressError("Week plan is being saved")
        if self.has_unsaved_changes:
            if decision is None:
                raise UnsavedChangesError(f"Week {self.week_start} has unsaved changes")
            if decision is NavigationDecision.CANCEL:
                return False
            if decision is NavigationDecision.SAVE:
                await self.save()
            else:
                log.info("Discarding unsaved changes for week %s", self.week_start)
                self.plan = _copy_map(self._snapshot)
        target = self.anchor + timedelta(days=7 * direction)
        plan_id, loaded = await self._fetch(target)
        self._apply(target, plan_id, loaded)
        log.debug("Moved to week %s for user %s: %d days planned", self.week_start, self.user_id, len(loaded))
        return True

    async def save(self) -> PlanMap:
        if self._saving:
            raise SaveInProgressError("Week plan is already being saved")
        if not self.has_unsaved_changes:
            return self.plan
        self._saving = True
        try:
            if self.plan_id is None:
                created = await self.gateway.create_plan(self.user_id, self.week_start, self.week_end)
                self.plan_id = created.id
            for iso in sorted(set(self.plan) | set(self._snapshot)):
                current = self.plan.get(iso)
                if current == self._snapshot.get(iso):
                    continue
                day = date.fromisoformat(iso)
                if current is None:
                    await self.gateway.delete_plan_day(self.plan_id, day)
                    self._snapshot.pop(iso, None)
                else:
                    await self.gateway.upsert_plan_day(self.plan_id, day, {
                        "routine_id": current.routine_id,
                        "title": current.title,
                        "description": current.subtitle,
                    })
                    self._snapshot[iso] = current.model_copy()
        finally:
            self._saving = False
        log.info("Saved week %s for user %s (%d days planned)", self.week_start, self.user_id, len(self.plan))
        return self.plan
