from .invite import InviteCreate, InviteQueued
from .resource import ResourceRead

__all__ = [
    "InviteCreate",
    "InviteQueued",
    "ResourceRead",
]
