from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Awaitable, Callable, List, Optional, Sequence, Tuple

from trainplan.errors import NotFoundError, PersistenceFailure
from trainplan.gateway.base import PersistenceGateway
from trainplan.models.assignment import (
    Assignment,
    ResolutionFailed,
    ResolutionStep,
    RestDay,
    RoutineDay,
    SessionDay,
    Unplanned,
)
from trainplan.models.plan import TrainingPlan

log = logging.getLogger(__name__)

DEFAULT_SESSION_TITLE = "Session"

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def pick_active_plan(plans: Sequence[TrainingPlan]) -> Optional[TrainingPlan]:
    """Most recently started plan wins; created_at then id break exact ties."""
    if not plans:
        return None

    def key(p: TrainingPlan) -> tuple:
        created = p.created_at or _EPOCH
        if created.tzinfo is None:
            created = created.replace(tzinfo=timezone.utc)
        return (p.start_date, created, p.id)

    return max(plans, key=key)


class _Context:
    def __init__(self, user_id: str, day: date) -> None:
        self.user_id = user_id
        self.day = day
        self.plan: Optional[TrainingPlan] = None


StepFn = Callable[[_Context], Awaitable[Optional[Assignment]]]


class PlanResolver:
    """Works out what a user should train on a given date.

    Sources are consulted in a fixed order: the per-date override, then the
    active plan covering the date, then that plan's entry for the date. The
    first step that yields an assignment wins. Gateway failures are returned as
    ResolutionFailed naming the step; nothing is retried here.
    """

    def __init__(self, gateway: PersistenceGateway) -> None:
        self.gateway = gateway
        self.steps: Tuple[Tuple[ResolutionStep, StepFn], ...] = (
            ("override-lookup", self._from_override),
            ("plan-lookup", self._from_plan),
            ("day-lookup", self._from_plan_day),
        )

    async def resolve(self, user_id: str, day: date) -> Assignment:
        ctx = _Context(user_id, day)
        for step, fn in self.steps:
            try:
                result = await fn(ctx)
            except PersistenceFailure as e:
                log.warning("Resolution for user=%s date=%s failed at %s: %s", user_id, day, step, e)
                return ResolutionFailed(step=step, message=str(e))
            if result is not None:
                return result
        return Unplanned()

    async def _routine_title(self, routine_id: str) -> Optional[str]:
        try:
            routine = await self.gateway.get_routine(routine_id)
        except NotFoundError:
            return None
        return routine.title

    async def _from_override(self, ctx: _Context) -> Optional[Assignment]:
        ov = await self.gateway.find_override(ctx.user_id, ctx.day)
        if ov is None:
            return None
        if ov.is_malformed:
            log.info("Ignoring malformed override for user=%s date=%s", ctx.user_id, ctx.day)
            return None
        if ov.is_rest:
            return RestDay(source="override")
        title = await self._routine_title(ov.routine_id)
        if title is None:
            log.warning("Override for %s references missing routine %s; using plan", ctx.day, ov.routine_id)
            return None
        return RoutineDay(routine_id=ov.routine_id, title=title, source="override")

    async def _from_plan(self, ctx: _Context) -> Optional[Assignment]:
        plans: List[TrainingPlan] = await self.gateway.find_plans_covering(ctx.user_id, ctx.day)
        ctx.plan = pick_active_plan(plans)
        if ctx.plan is None:
            return Unplanned()
        if len(plans) > 1:
            log.debug("%d plans cover %s; using %s (start %s)", len(plans), ctx.day, ctx.plan.id,
                      ctx.plan.start_date)
        return None

    async def _from_plan_day(self, ctx: _Context) -> Optional[Assignment]:
        if ctx.plan is None:
            return Unplanned()
        pd = await self.gateway.find_plan_day(ctx.plan.id, ctx.day)
        if pd is None:
            return Unplanned()
        if pd.routine_id:
            title = await self._routine_title(pd.routine_id)
            if title is not None:
                return RoutineDay(routine_id=pd.routine_id, title=title, source="plan", plan_id=ctx.plan.id)
        return SessionDay(title=pd.title or DEFAULT_SESSION_TITLE, plan_id=ctx.plan.id)
