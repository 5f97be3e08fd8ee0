from .config import settings
from .errors import CalshareError, MailFailure, StoreFailure
from .security import get_password_hash, verify_password

__all__ = [
    "settings",
    "CalshareError",
    "MailFailure",
    "StoreFailure",
    "get_password_hash",
    "verify_password",
]
