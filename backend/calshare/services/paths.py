"""Classification of resource paths into collections and event objects."""

from __future__ import annotations

import re

EVENT_SUFFIX = "ics"
SEPARATOR = "/"

# Trailing single-event filename, e.g. "/team/standup-42.ics"
_EVENT_COMPONENT = re.compile(r"/[A-Za-z0-9\-%@.]*\.ics$")


def is_collection(path: str) -> bool:
    """Return True unless ``path`` names a single event resource.

    Anything without the event suffix counts as a collection, including
    paths too short to carry one.
    """
    if path.endswith(SEPARATOR):
        return True
    if len(path) < len(EVENT_SUFFIX):
        return True
    return path[-len(EVENT_SUFFIX):] != EVENT_SUFFIX


def collection_of(path: str) -> str:
    """Strip a trailing event filename to get the owning collection path."""
    return _EVENT_COMPONENT.sub(SEPARATOR, path)
