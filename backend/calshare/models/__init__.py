from .calendar_resource import CalendarResource
from .collection import Collection
from .collection_role import CollectionRole
from .user import User

__all__ = [
    "CalendarResource",
    "Collection",
    "CollectionRole",
    "User",
]
