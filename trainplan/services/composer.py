from __future__ import annotations

import itertools
import logging
from typing import List, Optional

from trainplan.config import Settings, get_settings
from trainplan.errors import NotFoundError, PartialSaveFailure, SaveInProgressError
from trainplan.gateway.base import PersistenceGateway
from trainplan.models.block import PLACEHOLDER_EXERCISE_ID, Block, BlockExercise
from trainplan.models.exercise import ExerciseRef
from trainplan.models.routine import Routine, RoutineExercise
from .transforms import blocks_to_rows, resize_per_set, rows_to_blocks

log = logging.getLogger(__name__)

BLOCK_ID_PREFIX = "blk-"


def _highest_block_number(blocks: List[Block]) -> int:
    numbers = [int(b.id[len(BLOCK_ID_PREFIX):]) for b in blocks
               if b.id.startswith(BLOCK_ID_PREFIX) and b.id[len(BLOCK_ID_PREFIX):].isdigit()]
    return max(numbers, default=0)


class RoutineComposer:
    """Editable block/superset view of one routine.

    Every mutation is applied synchronously to ``blocks``; ``save`` is the only
    operation that touches storage and it rewrites the routine's exercise rows
    as a flat list numbered 0..M-1.
    """

    def __init__(self, gateway: PersistenceGateway, routine_id: str, *, title: str = "",
                 blocks: Optional[List[Block]] = None, settings: Settings | None = None) -> None:
        self.gateway = gateway
        self.routine_id = routine_id
        self.title = title
        self.settings = settings or get_settings()
        self.blocks: List[Block] = list(blocks or [])
        self._ids = itertools.count(_highest_block_number(self.blocks) + 1)
        self._saving = False

    @classmethod
    async def load(cls, gateway: PersistenceGateway, routine_id: str,
                   settings: Settings | None = None) -> "RoutineComposer":
        routine: Routine = await gateway.get_routine(routine_id)
        composer = cls(gateway, routine.id, title=routine.title, settings=settings)
        composer.blocks = rows_to_blocks(routine.exercises, composer._next_id)
        log.debug("Loaded routine %s with %d blocks", routine.id, len(composer.blocks))
        return composer

    @property
    def saving(self) -> bool:
        return self._saving

    def _next_id(self) -> str:
        return f"{BLOCK_ID_PREFIX}{next(self._ids)}"

    def _find(self, block_id: str) -> Block:
        for b in self.blocks:
            if b.id == block_id:
                return b
        raise NotFoundError(f"Block {block_id} not in this routine")

    def _entry(self, block_id: str, index: int) -> BlockExercise:
        block = self._find(block_id)
        if not 0 <= index < len(block.exercises):
            raise NotFoundError(f"Block {block_id} has no exercise at index {index}")
        return block.exercises[index]

    def _new_entry(self, exercise_id: str, name: str, sets: int, image_url: str | None = None) -> BlockExercise:
        reps = self.settings.DEFAULT_REPS
        return BlockExercise(
            exercise_id=exercise_id,
            name=name,
            image_url=image_url,
            reps=reps,
            sets=sets,
            reps_by_set=[reps] * sets,
            weight_by_set=[0.0] * sets,
        )

    # Block operations

    def add_block(self, exercise: ExerciseRef) -> Block:
        order = max(b.order_index for b in self.blocks) + 1 if self.blocks else 0
        sets = self.settings.DEFAULT_SETS
        block = Block(
            id=self._next_id(),
            type="single",
            sets=sets,
            rest_seconds=self.settings.DEFAULT_REST_SECONDS,
            order_index=order,
            exercises=[self._new_entry(exercise.id, exercise.name, sets, exercise.image_url)],
        )
        self.blocks.append(block)
        return block

    def convert_to_superset(self, block_id: str) -> Block:
        block = self._find(block_id)
        if block.type == "superset":
            return block
        block.exercises.append(self._new_entry(PLACEHOLDER_EXERCISE_ID, "Choose exercise", block.sets))
        block.type = "superset"
        return block

    def add_exercise_to_block(self, block_id: str, exercise: ExerciseRef) -> Block:
        block = self._find(block_id)
        entry = self._new_entry(exercise.id, exercise.name, block.sets, exercise.image_url)
        for i, ex in enumerate(block.exercises):
            if ex.is_placeholder:
                block.exercises[i] = entry
                return block
        block.exercises.append(entry)
        if len(block.exercises) > 1:
            block.type = "superset"
        return block

    def change_exercise(self, block_id: str, index: int, exercise: ExerciseRef) -> BlockExercise:
        entry = self._entry(block_id, index)
        entry.exercise_id = exercise.id
        entry.name = exercise.name
        entry.image_url = exercise.image_url
        return entry

    def remove_exercise_from_block(self, block_id: str, index: int) -> Optional[Block]:
        """Returns the block, or None when its last exercise was removed with it."""
        self._entry(block_id, index)
        block = self._find(block_id)
        del block.exercises[index]
        if not block.exercises:
            self.blocks.remove(block)
            return None
        if block.type == "superset" and len(block.exercises) <= 1:
            block.type = "single"
        return block

    def remove_block(self, block_id: str) -> None:
        self.blocks.remove(self._find(block_id))

    def update_block_sets(self, block_id: str, delta: int) -> Block:
        block = self._find(block_id)
        block.sets = max(1, block.sets + delta)
        for ex in block.exercises:
            ex.sets = block.sets
            ex.reps_by_set = resize_per_set(ex.reps_by_set, block.sets, ex.reps)
            ex.weight_by_set = resize_per_set(ex.weight_by_set, block.sets, 0.0)
        return block

    def update_block_rest(self, block_id: str, delta: int) -> Block:
        block = self._find(block_id)
        lo, hi = self.settings.REST_MIN_SECONDS, self.settings.REST_MAX_SECONDS
        block.rest_seconds = max(lo, min(hi, block.rest_seconds + delta))
        return block

    # Exercise operations

    def update_exercise_reps(self, block_id: str, index: int, reps: int) -> BlockExercise:
        entry = self._entry(block_id, index)
        entry.reps = max(1, reps)
        return entry

    def update_exercise_sets(self, block_id: str, index: int, sets: int) -> BlockExercise:
        entry = self._entry(block_id, index)
        entry.sets = max(1, sets)
        entry.reps_by_set = resize_per_set(entry.reps_by_set, entry.sets, entry.reps)
        entry.weight_by_set = resize_per_set(entry.weight_by_set, entry.sets, 0.0)
        return entry

    def update_exercise_reps_by_set(self, block_id: str, index: int, set_index: int, reps: int) -> BlockExercise:
        entry = self._entry(block_id, index)
        if not 0 <= set_index < len(entry.reps_by_set):
            raise NotFoundError(f"No set {set_index} for exercise {index} in block {block_id}")
        entry.reps_by_set[set_index] = max(1, reps)
        return entry

    def update_exercise_weight_by_set(self, block_id: str, index: int, set_index: int,
                                      weight: float) -> BlockExercise:
        entry = self._entry(block_id, index)
        if not 0 <= set_index < len(entry.weight_by_set):
            raise NotFoundError(f"No set {set_index} for exercise {index} in block {block_id}")
        entry.weight_by_set[set_index] = max(0.0, float(weight))
        return entry

    # Persistence

    def to_rows(self) -> List[RoutineExercise]:
        return blocks_to_rows(self.blocks, self.routine_id)

    async def save(self) -> List[RoutineExercise]:
        if self._saving:
            raise SaveInProgressError(f"Routine {self.routine_id} is already being saved")
        rows = self.to_rows()
        self._saving = True
        try:
            await self.gateway.replace_routine_exercises(self.routine_id, rows)
        except PartialSaveFailure:
            log.error("Routine %s may be empty after a failed save (%d rows lost)", self.routine_id, len(rows))
            raise
        finally:
            self._saving = False
        for i, block in enumerate(self.blocks):
            block.order_index = i
        log.info("Saved routine %s: %d blocks, %d rows", self.routine_id, len(self.blocks), len(rows))
        return rows
