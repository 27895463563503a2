from .config import UpdateConfig
from .executor import UPDATED, UpdateExecutor, execute_update
from .models import Headers, Message, ResultRow

__all__ = [
    "UPDATED",
    "UpdateConfig",
    "UpdateExecutor",
    "execute_update",
    "Headers",
    "Message",
    "ResultRow",
]
