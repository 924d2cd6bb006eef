from __future__ import annotations

import logging
from typing import Callable, List, Sequence

from trainplan.config import get_settings
from trainplan.errors import ValidationFailure
from trainplan.models.block import Block, BlockExercise
from trainplan.models.routine import RoutineExercise

log = logging.getLogger(__name__)


def resize_per_set(values: Sequence, sets: int, fallback) -> list:
    """Pad with the last value (or fallback) or truncate to ``sets`` entries."""
    out = list(values)
    if len(out) >= sets:
        return out[:sets]
    fill = out[-1] if out else fallback
    return out + [fill] * (sets - len(out))


def _parse_reps(raw, default: int) -> int:
    if isinstance(raw, int):
        return max(1, raw)
    try:
        return max(1, int(str(raw).strip()))
    except ValueError:
        log.warning("Non-numeric reps %r loaded as %d", raw, default)
        return default


def rows_to_blocks(rows: Sequence[RoutineExercise], next_id: Callable[[], str]) -> List[Block]:
    """Hydrate persisted rows into editing blocks, one single block per row."""
    settings = get_settings()
    blocks: List[Block] = []
    for row in sorted(rows, key=lambda r: r.order_index):
        reps = _parse_reps(row.reps, settings.DEFAULT_REPS)
        sets = row.sets
        entry = BlockExercise(
            exercise_id=row.exercise_id,
            name=row.name or "Exercise",
            image_url=row.image_url,
            reps=reps,
            sets=sets,
            reps_by_set=resize_per_set(row.reps_by_set or [], sets, reps),
            weight_by_set=resize_per_set(row.weight_by_set or [], sets, 0.0),
        )
        blocks.append(Block(
            id=next_id(),
            type="single",
            sets=sets,
            rest_seconds=row.rest_seconds,
            order_index=len(blocks),
            exercises=[entry],
        ))
    return blocks


def blocks_to_rows(blocks: Sequence[Block], routine_id: str) -> List[RoutineExercise]:
    """Flatten blocks into the ordered rows stored for a routine.

    Placeholder slots are dropped. Rows are numbered 0..M-1 in block order and
    take their block's rest interval.
    """
    rows: List[RoutineExercise] = []
    for block in blocks:
        entries = block.exercises[:1] if block.type == "single" else block.exercises
        for ex in entries:
            if ex.is_placeholder:
                continue
            if not ex.exercise_id:
                raise ValidationFailure(f"Block {block.id} has an exercise without an id")
            rows.append(RoutineExercise(
                routine_id=routine_id,
                exercise_id=ex.exercise_id,
                sets=ex.sets,
                reps=ex.reps,
                rest_seconds=block.rest_seconds,
                order_index=len(rows),
                reps_by_set=list(ex.reps_by_set) or None,
                weight_by_set=list(ex.weight_by_set) or None,
            ))
    return rows
