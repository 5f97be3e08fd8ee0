"""Exception types shared by the storage and mail layers."""

from __future__ import annotations


class CalshareError(Exception):
    """Base class for every error raised by calshare."""


class StoreFailure(CalshareError):
    """The backing store could not complete an operation on ``path``.

    Covers connectivity problems, statement failures, constraint violations
    and undecodable stored content. Always propagated to the caller.
    """

    def __init__(self, path: str, message: str = "storage operation failed") -> None:
        self.path = path
        self.message = message
        super().__init__(f"{message} [{path}]")


class MailFailure(CalshareError):
    """An invite could not be delivered.

    Fatal to the current send attempt only, never retried.
    """
