from __future__ import annotations

import asyncio
from datetime import date

from trainplan.config import configure_logging
from trainplan.gateway import InMemoryGateway
from trainplan.models import ExerciseRef, RoutineDay
from trainplan.services import PlanResolver, RoutineComposer, WeekPlanEditor


async def run() -> None:
    gw = InMemoryGateway()
    squat = gw.add_exercise(ExerciseRef(id="ex-squat", name="Back Squat"))
    lunge = gw.add_exercise(ExerciseRef(id="ex-lunge", name="Walking Lunge"))
    routine = gw.add_routine("Leg Day", user_id="smoke-user", description="Quads and glutes")

    composer = await RoutineComposer.load(gw, routine.id)
    block = composer.add_block(squat)
    composer.convert_to_superset(block.id)
    composer.add_exercise_to_block(block.id, lunge)
    rows = await composer.save()
    assert [r.order_index for r in rows] == [0, 1], "Rows not contiguous"

    today = date.today()
    editor = WeekPlanEditor(gw, "smoke-user", anchor=today)
    await editor.load()
    editor.assign_routine(today, await gw.get_routine(routine.id))
    await editor.save()
    assert not editor.has_unsaved_changes, "Week plan still dirty after save"

    result = await PlanResolver(gw).resolve("smoke-user", today)
    assert isinstance(result, RoutineDay) and result.title == "Leg Day", f"Unexpected assignment: {result}"

    print(f"SMOKE OK: rows={len(rows)} today={result.title}")


def main() -> None:
    configure_logging()
    asyncio.run(run())


if __name__ == "__main__":
    main()
