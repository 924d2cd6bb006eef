from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple

from trainplan.errors import NotFoundError
from trainplan.models.exercise import ExerciseRef
from trainplan.models.plan import Override, PlanDay, TrainingPlan
from trainplan.models.routine import Routine, RoutineExercise


def _new_id() -> str:
    return str(uuid.uuid4())


class InMemoryGateway:
    """Dictionary-backed gateway. Routine replacement is atomic."""

    def __init__(self) -> None:
        self.plans: Dict[str, TrainingPlan] = {}
        self.plan_days: Dict[Tuple[str, date], PlanDay] = {}
        self.overrides: Dict[Tuple[str, date], Override] = {}
        self.routines: Dict[str, Routine] = {}
        self.exercises: Dict[str, ExerciseRef] = {}

    # Seeding helpers

    def add_exercise(self, exercise: ExerciseRef) -> ExerciseRef:
        self.exercises[exercise.id] = exercise
        return exercise

    def add_routine(self, title: str, *, routine_id: str | None = None, user_id: str | None = None,
                    description: str | None = None,
                    exercises: Sequence[RoutineExercise] = ()) -> Routine:
        rid = routine_id or _new_id()
        routine = Routine(id=rid, user_id=user_id, title=title, description=description,
                          exercises=[ex.model_copy(update={"routine_id": rid}) for ex in exercises])
        self.routines[rid] = routine
        return routine

    def add_plan(self, user_id: str, start: date, end: date, *, plan_id: str | None = None,
                 created_at: datetime | None = None) -> TrainingPlan:
        plan = TrainingPlan(
            id=plan_id or _new_id(),
            user_id=user_id,
            start_date=start,
            end_date=end,
            created_at=created_at or datetime.now(timezone.utc),
        )
        self.plans[plan.id] = plan
        return plan

    def add_plan_day(self, plan_id: str, day: date, *, routine_id: str | None = None,
                     title: str | None = None, description: str | None = None) -> PlanDay:
        pd = PlanDay(id=_new_id(), plan_id=plan_id, date=day, routine_id=routine_id,
                     title=title, description=description)
        self.plan_days[(plan_id, day)] = pd
        return pd

    def set_override(self, user_id: str, day: date, *, is_rest: bool = False,
                     routine_id: str | None = None) -> Override:
        ov = Override(user_id=user_id, date=day, is_rest=is_rest, routine_id=routine_id)
        self.overrides[(user_id, day)] = ov
        return ov

    # PersistenceGateway

    async def find_override(self, user_id: str, day: date) -> Optional[Override]:
        ov = self.overrides.get((user_id, day))
        return ov.model_copy() if ov else None

    async def find_plans_covering(self, user_id: str, day: date) -> List[TrainingPlan]:
        found = [p for p in self.plans.values() if p.user_id == user_id and p.covers(day)]
        found.sort(key=lambda p: p.start_date, reverse=True)
        return [p.model_copy() for p in found]

    async def find_plan_day(self, plan_id: str, day: date) -> Optional[PlanDay]:
        pd = self.plan_days.get((plan_id, day))
        return pd.model_copy() if pd else None

    async def get_routine(self, routine_id: str) -> Routine:
        routine = self.routines.get(routine_id)
        if routine is None:
            raise NotFoundError(f"Routine {routine_id} not found")
        out = routine.model_copy(deep=True)
        for row in out.exercises:
            ex = self.exercises.get(row.exercise_id)
            if ex is not None:
                row.name = ex.name
                row.image_url = ex.image_url
        out.exercises.sort(key=lambda r: r.order_index)
        return out

    async def replace_routine_exercises(self, routine_id: str, rows: Sequence[RoutineExercise]) -> None:
        routine = self.routines.get(routine_id)
        if routine is None:
            raise NotFoundError(f"Routine {routine_id} not found")
        routine.exercises = [r.model_copy(update={"routine_id": routine_id}) for r in rows]

    async def find_week_plan(self, user_id: str, start: date, end: date) -> Optional[TrainingPlan]:
        matches = [
            p for p in self.plans.values()
            if p.user_id == user_id and p.start_date == start and p.end_date == end
        ]
        if not matches:
            return None
        latest = max(matches, key=lambda p: p.created_at or datetime.min.replace(tzinfo=timezone.utc))
        return latest.model_copy()

    async def create_plan(self, user_id: str, start: date, end: date) -> TrainingPlan:
        return self.add_plan(user_id, start, end).model_copy()

    async def list_plan_days(self, plan_id: str) -> List[PlanDay]:
        days = [pd for (pid, _), pd in self.plan_days.items() if pid == plan_id]
        days.sort(key=lambda pd: pd.date)
        return [pd.model_copy() for pd in days]

    async def upsert_plan_day(self, plan_id: str, day: date, payload: Dict[str, Any]) -> None:
        if plan_id not in self.plans:
            raise NotFoundError(f"Plan {plan_id} not found")
        existing = self.plan_days.get((plan_id, day))
        fields = {k: payload.get(k) for k in ("routine_id", "title", "description")}
        if existing is not None:
            self.plan_days[(plan_id, day)] = existing.model_copy(update=fields)
        else:
            self.add_plan_day(plan_id, day, **fields)

    async def delete_plan_day(self, plan_id: str, day: date) -> None:
        self.plan_days.pop((plan_id, day), None)
