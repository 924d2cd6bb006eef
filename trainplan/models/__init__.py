from .exercise import ExerciseRef
from .plan import TrainingPlan, PlanDay, Override, PlanItem, PlanMap
from .routine import Routine, RoutineExercise
from .block import Block, BlockExercise, BlockType, PLACEHOLDER_EXERCISE_ID
from .assignment import (
    Assignment,
    RestDay,
    RoutineDay,
    SessionDay,
    Unplanned,
    ResolutionFailed,
    ResolutionStep,
    assignment_adapter,
)

__all__ = [
    "ExerciseRef",
    "TrainingPlan",
    "PlanDay",
    "Override",
    "PlanItem",
    "PlanMap",
    "Routine",
    "RoutineExercise",
    "Block",
    "BlockExercise",
    "BlockType",
    "PLACEHOLDER_EXERCISE_ID",
    "Assignment",
    "RestDay",
    "RoutineDay",
    "SessionDay",
    "Unplanned",
    "ResolutionFailed",
    "ResolutionStep",
    "assignment_adapter",
]
