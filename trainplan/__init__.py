from .config import Settings, get_settings, configure_logging
from .gateway import PersistenceGateway, InMemoryGateway, PostgrestGateway
from .services import PlanResolver, RoutineComposer, WeekPlanEditor, NavigationDecision

__all__ = [
    "Settings",
    "get_settings",
    "configure_logging",
    "PersistenceGateway",
    "InMemoryGateway",
    "PostgrestGateway",
    "PlanResolver",
    "RoutineComposer",
    "WeekPlanEditor",
    "NavigationDecision",
]
