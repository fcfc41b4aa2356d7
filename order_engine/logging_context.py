"""User-id logging context for tracing a chat turn across modules.

Provides a user_id-aware logger that attaches the chat user's identity to
every log record, so a single customer's order can be followed through the
catalog lookups, the state machine and the collaborator calls.

Usage:
    from order_engine.logging_context import get_user_logger, set_user_id

    set_user_id("ultra:573001234567")
    logger = get_user_logger(__name__)
    logger.info("Item added")  # record.user_id == "ultra:573001234567"
"""

import logging
from contextvars import ContextVar

_user_id: ContextVar[str] = ContextVar("user_id", default="NO_USER_ID")


def set_user_id(user_id: str) -> None:
    """Set the user identity for the current async context."""
    _user_id.set(user_id)


def get_user_id() -> str:
    """Retrieve the current user identity."""
    return _user_id.get()


class UserIdFilter(logging.Filter):
    """Injects user_id into every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.user_id = _user_id.get()  # type: ignore[attr-defined]
        return True


def get_user_logger(name: str) -> logging.Logger:
    """Return a logger with the UserIdFilter attached.

    The filter adds ``user_id`` to each record so formatters can
    include ``%(user_id)s`` in their format string.
    """
    logger = logging.getLogger(name)
    if not any(isinstance(f, UserIdFilter) for f in logger.filters):
        logger.addFilter(UserIdFilter())
    return logger
