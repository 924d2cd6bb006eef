from __future__ import annotations

from typing import List, Literal, Optional
from pydantic import BaseModel, Field

BlockType = Literal["single", "superset"]

# Sentinel for a superset slot the user has not filled yet
PLACEHOLDER_EXERCISE_ID = "placeholder"


class BlockExercise(BaseModel):
    exercise_id: str
    name: str = "Exercise"
    image_url: Optional[str] = None
    reps: int = Field(..., ge=1)
    sets: int = Field(..., ge=1)
    reps_by_set: List[int] = Field(default_factory=list)
    weight_by_set: List[float] = Field(default_factory=list)

    @property
    def is_placeholder(self) -> bool:
        return self.exercise_id == PLACEHOLDER_EXERCISE_ID


class Block(BaseModel):
    """Editing-time group of exercises sharing a set count and rest interval.

    Only lives inside a RoutineComposer session; ``id`` has no meaning outside it.
    """

    id: str
    type: BlockType = "single"
    sets: int = Field(..., ge=1)
    rest_seconds: int = Field(..., ge=0)
    order_index: int = Field(0, ge=0)
    exercises: List[BlockExercise] = Field(default_factory=list)

    @property
    def has_placeholder(self) -> bool:
        return any(ex.is_placeholder for ex in self.exercises)
