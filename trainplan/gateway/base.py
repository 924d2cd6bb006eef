from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Optional, Protocol, Sequence

from trainplan.models.plan import Override, PlanDay, TrainingPlan
from trainplan.models.routine import Routine, RoutineExercise


class PersistenceGateway(Protocol):
    """Async access to the relational store backing plans, overrides and routines.

    Implementations raise PersistenceFailure for transport/backend errors,
    NotFoundError when a routine does not exist, and PartialSaveFailure when a
    non-atomic replace deleted the old rows but failed to insert the new ones.
    """

    async def find_override(self, user_id: str, day: date) -> Optional[Override]: ...

    async def find_plans_covering(self, user_id: str, day: date) -> List[TrainingPlan]: ...

    async def find_plan_day(self, plan_id: str, day: date) -> Optional[PlanDay]: ...

    async def get_routine(self, routine_id: str) -> Routine: ...

    async def replace_routine_exercises(self, routine_id: str, rows: Sequence[RoutineExercise]) -> None: ...

    async def find_week_plan(self, user_id: str, start: date, end: date) -> Optional[TrainingPlan]: ...

    async def create_plan(self, user_id: str, start: date, end: date) -> TrainingPlan: ...

    async def list_plan_days(self, plan_id: str) -> List[PlanDay]: ...

    async def upsert_plan_day(self, plan_id: str, day: date, payload: Dict[str, Any]) -> None: ...

    async def delete_plan_day(self, plan_id: str, day: date) -> None: ...
