from __future__ import annotations

from typing import List, Optional, Union
from pydantic import BaseModel, Field


class RoutineExercise(BaseModel):
    routine_id: str
    exercise_id: str
    sets: int = Field(..., ge=1)
    # Free-form strings such as "8-12" are allowed in stored rows
    reps: Union[int, str] = 10
    rest_seconds: int = Field(..., ge=0)
    order_index: int = Field(..., ge=0)
    reps_by_set: Optional[List[int]] = None
    weight_by_set: Optional[List[float]] = None

    # Joined from the exercises table on read; never written back
    name: Optional[str] = Field(default=None, exclude=True)
    image_url: Optional[str] = Field(default=None, exclude=True)


class Routine(BaseModel):
    id: str
    user_id: Optional[str] = None
    title: str
    description: Optional[str] = None
    exercises: List[RoutineExercise] = Field(default_factory=list)
