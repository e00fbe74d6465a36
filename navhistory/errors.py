"""Exception types and the unexpected-error sink."""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


class NavHistoryError(Exception):
    """Base class for errors raised by navhistory."""


class StorageError(NavHistoryError):
    """Raised by strict storage reads/writes when the state file is unusable."""


def on_unexpected_error(error: BaseException) -> None:
    """Report a non-fatal error that was caught and recovered from."""
    logger.error("unexpected error: %s", error, exc_info=error)
