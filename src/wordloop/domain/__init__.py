# Domain Package
from .errors import InvalidInput, NotAuthorized, StoreUnavailable, WordloopError
from .models import Card, ScheduleUpdate
from .ports import IdentityGate, WordStore

__all__ = [
    "Card",
    "ScheduleUpdate",
    "WordStore",
    "IdentityGate",
    "WordloopError",
    "InvalidInput",
    "NotAuthorized",
    "StoreUnavailable",
]
