"""Per-session log correlation for onboarding conversations.

Every log record emitted while a session is being processed carries
``session_id``, so one merchant's conversation can be followed through
the state machine, the customer store and the collaborators. Records
emitted outside any session carry ``-``.

Usage:
    from merchant_onboarding.logging_context import get_session_logger, session_context

    logger = get_session_logger(__name__)
    with session_context("SESS-abc123"):
        logger.info("Checkpoint written")  # record.session_id == "SESS-abc123"
"""

import logging
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterable, Iterator

NO_SESSION = "-"

LOG_FORMAT = "%(asctime)s [%(name)s] [%(session_id)s] %(levelname)s: %(message)s"

_session_id: ContextVar[str] = ContextVar("session_id", default=NO_SESSION)


@contextmanager
def session_context(session_id: str) -> Iterator[None]:
    """Tag log records with ``session_id`` until the block exits.

    Nested blocks restore the outer session on exit.
    """
    token = _session_id.set(session_id)
    try:
        yield
    finally:
        _session_id.reset(token)


def get_session_id() -> str:
    return _session_id.get()


class SessionIdFilter(logging.Filter):
    """Stamps the active session ID onto each record it sees."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "session_id"):
            record.session_id = _session_id.get()  # type: ignore[attr-defined]
        return True


def install_session_filter(handlers: Iterable[logging.Handler]) -> None:
    """Attach the filter to handlers so ``LOG_FORMAT`` works for every record.

    Handler filters also cover records from third-party loggers, which
    never pass through a package logger's filter.
    """
    for handler in handlers:
        if not any(isinstance(f, SessionIdFilter) for f in handler.filters):
            handler.addFilter(SessionIdFilter())


def get_session_logger(name: str) -> logging.Logger:
    """Module logger whose records carry ``session_id`` at creation time."""
    logger = logging.getLogger(name)
    if not any(isinstance(f, SessionIdFilter) for f in logger.filters):
        logger.addFilter(SessionIdFilter())
    return logger
