from __future__ import annotations

import asyncio
import logging
from datetime import date
from typing import Any, Dict, List, Optional, Sequence

import requests

from trainplan.config import Settings, get_settings
from trainplan.errors import NotFoundError, PartialSaveFailure, PersistenceFailure, Step
from trainplan.models.plan import Override, PlanDay, TrainingPlan
from trainplan.models.routine import Routine, RoutineExercise

log = logging.getLogger(__name__)

PLAN_COLUMNS = "id,user_id,start_date,end_date,created_at"
PLAN_DAY_COLUMNS = "id,plan_id,date,routine_id,title,description"
ROUTINE_EXERCISE_COLUMNS = (
    "routine_id,exercise_id,sets,reps,rest_seconds,order_index,"
    "reps_by_set,weight_by_set,exercises(name,image_url)"
)


def _eq(value: Any) -> str:
    return f"eq.{value}"


class PostgrestGateway:
    """Gateway for the hosted relational backend, spoken to over its REST interface.

    Calls are blocking ``requests`` round trips pushed to a worker thread so the
    event loop stays responsive. When ``SUPABASE_REPLACE_RPC`` is configured the
    routine replace runs as one server-side transaction; otherwise it is a
    delete followed by an insert and may raise PartialSaveFailure.
    """

    def __init__(self, settings: Settings | None = None, *, session: requests.Session | None = None,
                 access_token: str | None = None) -> None:
        s = settings or get_settings()
        if not s.SUPABASE_URL or not s.SUPABASE_KEY:
            raise PersistenceFailure("SUPABASE_URL / SUPABASE_KEY are not set; cannot reach the backend.")
        self.base_url = s.SUPABASE_URL.rstrip("/") + "/rest/v1"
        self.timeout = s.HTTP_TIMEOUT_SECONDS
        self.replace_rpc = s.SUPABASE_REPLACE_RPC
        self.session = session or requests.Session()
        self.session.headers.update({
            "apikey": s.SUPABASE_KEY,
            "Authorization": f"Bearer {access_token or s.SUPABASE_KEY}",
            "Content-Type": "application/json",
        })

    def _request(self, method: str, path: str, *, params: Dict[str, str] | None = None,
                 json: Any = None, headers: Dict[str, str] | None = None,
                 step: Step | None = None) -> Any:
        url = f"{self.base_url}/{path}"
        log.debug("%s %s params=%s", method, path, params)
        try:
            resp = self.session.request(method, url, params=params, json=json, headers=headers,
                                        timeout=self.timeout)
            resp.raise_for_status()
        except requests.RequestException as e:
            raise PersistenceFailure(f"{method} {path} failed: {e}", step=step) from e
        if not resp.content:
            return None
        return resp.json()

    async def _call(self, method: str, path: str, **kwargs: Any) -> Any:
        return await asyncio.to_thread(self._request, method, path, **kwargs)

    async def find_override(self, user_id: str, day: date) -> Optional[Override]:
        rows = await self._call("GET", "training_overrides", params={
            "select": "user_id,date,is_rest,routine_id",
            "user_id": _eq(user_id),
            "date": _eq(day.isoformat()),
            "limit": "1",
        }, step="override-lookup")
        return Override.model_validate(rows[0]) if rows else None

    async def find_plans_covering(self, user_id: str, day: date) -> List[TrainingPlan]:
        iso = day.isoformat()
        rows = await self._call("GET", "training_plans", params={
            "select": PLAN_COLUMNS,
            "user_id": _eq(user_id),
            "start_date": f"lte.{iso}",
            "end_date": f"gte.{iso}",
            "order": "start_date.desc,created_at.desc",
        }, step="plan-lookup")
        return [TrainingPlan.model_validate(r) for r in rows or []]

    async def find_plan_day(self, plan_id: str, day: date) -> Optional[PlanDay]:
        rows = await self._call("GET", "training_plan_days", params={
            "select": PLAN_DAY_COLUMNS,
            "plan_id": _eq(plan_id),
            "date": _eq(day.isoformat()),
            "limit": "1",
        }, step="day-lookup")
        return PlanDay.model_validate(rows[0]) if rows else None

    async def get_routine(self, routine_id: str) -> Routine:
        rows = await self._call("GET", "routines", params={
            "select": "id,user_id,title,description",
            "id": _eq(routine_id),
            "limit": "1",
        })
        if not rows:
            raise NotFoundError(f"Routine {routine_id} not found")
        ex_rows = await self._call("GET", "routine_exercises", params={
            "select": ROUTINE_EXERCISE_COLUMNS,
            "routine_id": _eq(routine_id),
            "order": "order_index.asc",
        })
        exercises: List[RoutineExercise] = []
        for raw in ex_rows or []:
            joined = raw.pop("exercises", None) or {}
            exercises.append(RoutineExercise.model_validate({
                **raw,
                "name": joined.get("name"),
                "image_url": joined.get("image_url"),
            }))
        return Routine.model_validate({**rows[0], "exercises": exercises})

    async def replace_routine_exercises(self, routine_id: str, rows: Sequence[RoutineExercise]) -> None:
        payload = [r.model_dump(mode="json") | {"routine_id": routine_id} for r in rows]
        if self.replace_rpc:
            await self._call("POST", f"rpc/{self.replace_rpc}",
                             json={"p_routine_id": routine_id, "p_rows": payload},
                             step="routine-insert")
            return

        await self._call("DELETE", "routine_exercises", params={"routine_id": _eq(routine_id)},
                         step="routine-delete")
        if not payload:
            return
        try:
            await self._call("POST", "routine_exercises", json=payload,
                             headers={"Prefer": "return=minimal"}, step="routine-insert")
        except PersistenceFailure as e:
            log.error("Routine %s: rows deleted but insert failed: %s", routine_id, e)
            raise PartialSaveFailure() from e

    async def find_week_plan(self, user_id: str, start: date, end: date) -> Optional[TrainingPlan]:
        rows = await self._call("GET", "training_plans", params={
            "select": PLAN_COLUMNS,
            "user_id": _eq(user_id),
            "start_date": _eq(start.isoformat()),
            "end_date": _eq(end.isoformat()),
            "order": "created_at.desc",
            "limit": "1",
        }, step="plan-lookup")
        return TrainingPlan.model_validate(rows[0]) if rows else None

    async def create_plan(self, user_id: str, start: date, end: date) -> TrainingPlan:
        rows = await self._call("POST", "training_plans", json={
            "user_id": user_id,
            "start_date": start.isoformat(),
            "end_date": end.isoformat(),
        }, headers={"Prefer": "return=representation"})
        if not rows:
            raise PersistenceFailure("Plan insert returned no row")
        return TrainingPlan.model_validate(rows[0])

    async def list_plan_days(self, plan_id: str) -> List[PlanDay]:
        rows = await self._call("GET", "training_plan_days", params={
            "select": PLAN_DAY_COLUMNS,
            "plan_id": _eq(plan_id),
            "order": "date.asc",
        }, step="day-lookup")
        return [PlanDay.model_validate(r) for r in rows or []]

    async def upsert_plan_day(self, plan_id: str, day: date, payload: Dict[str, Any]) -> None:
        body = {
            "plan_id": plan_id,
            "date": day.isoformat(),
            "routine_id": payload.get("routine_id"),
            "title": payload.get("title"),
            "description": payload.get("description"),
        }
        await self._call("POST", "training_plan_days", params={"on_conflict": "plan_id,date"}, json=body,
                         headers={"Prefer": "resolution=merge-duplicates,return=minimal"})

    async def delete_plan_day(self, plan_id: str, day: date) -> None:
        await self._call("DELETE", "training_plan_days", params={
            "plan_id": _eq(plan_id),
            "date": _eq(day.isoformat()),
        })
