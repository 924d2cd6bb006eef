from .resolver import PlanResolver, pick_active_plan
from .composer import RoutineComposer
from .transforms import blocks_to_rows, rows_to_blocks
from .week_plan import WeekPlanEditor, NavigationDecision, monday_start, week_dates

__all__ = [
    "PlanResolver",
    "pick_active_plan",
    "RoutineComposer",
    "blocks_to_rows",
    "rows_to_blocks",
    "WeekPlanEditor",
    "NavigationDecision",
    "monday_start",
    "week_dates",
]
