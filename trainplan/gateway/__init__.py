from .base import PersistenceGateway
from .memory import InMemoryGateway
from .postgrest import PostgrestGateway

__all__ = [
    "PersistenceGateway",
    "InMemoryGateway",
    "PostgrestGateway",
]
