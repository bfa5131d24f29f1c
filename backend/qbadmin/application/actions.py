from __future__ import annotations

import logging
from typing import Awaitable, Callable, Hashable, TypeVar

from qbadmin.domain.errors import ConsoleError
from qbadmin.infra.ports.notifier import NotifierPort

logger = logging.getLogger(__name__)

R = TypeVar("R")

GENERIC_FAILURE_MESSAGE = "Something went wrong, please try again"


class InFlightGuard:
    """Allows at most one outstanding action per key (control + record id)."""

    def __init__(self):
        self._active: set[Hashable] = set()

    def is_active(self, key: Hashable) -> bool:
        return key in self._active

    @property
    def active(self) -> frozenset[Hashable]:
        return frozenset(self._active)

    async def run(self, key: Hashable, factory: Callable[[], Awaitable[R]]) -> R | None:
        if key in self._active:
            logger.debug("Ignoring duplicate action for %s while one is in flight", key)
            return None
        self._active.add(key)
        try:
            return await factory()
        finally:
            self._active.discard(key)


def report_failure(notifier: NotifierPort, exc: BaseException, fallback: str) -> str:
    """Show a caught failure once and return the message shown."""
    if isinstance(exc, ConsoleError):
        message = exc.message or fallback
        if not exc.notified:
            notifier.error(message)
            exc.notified = True
        return message

    logger.error("Unexpected failure: %s", fallback, exc_info=exc)
    notifier.error(fallback or GENERIC_FAILURE_MESSAGE)
    return fallback or GENERIC_FAILURE_MESSAGE
