"""Reusable state holder behind every list screen.

A controller owns ``filters / page / limit`` and the last server-confirmed
``data / total``. Callers change state with the setters and then ``await
fetch()``; mutations go through ``mutate`` so that success always resyncs from
the server.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Generic, Hashable, TypeVar

from qbadmin.application.actions import InFlightGuard, report_failure
from qbadmin.domain.models import Envelope, PageResult
from qbadmin.infra.ports.notifier import NotifierPort

logger = logging.getLogger(__name__)

T = TypeVar("T")

Loader = Callable[[dict[str, Any]], Awaitable[Envelope[PageResult[T]]]]
Summarizer = Callable[[list[T]], dict[str, Any]]
Message = str | Callable[[Envelope[Any]], str]


class Phase(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    ERRORED = "errored"


def slice_page(items: list[T], page: int, limit: int) -> list[T]:
    start = (max(1, page) - 1) * limit
    return items[start : start + limit]


def _render(message: Message, envelope: Envelope[Any]) -> str:
    return message(envelope) if callable(message) else message


class ListStateController(Generic[T]):
    def __init__(
        self,
        loader: Loader[T],
        *,
        notifier: NotifierPort,
        filters: dict[str, Any] | None = None,
        page: int = 1,
        limit: int = 10,
        summarize: Summarizer[T] | None = None,
        client_paged: bool = False,
        error_message: str = "Failed to load list",
        refreshed_message: str = "List refreshed",
    ):
        self.loader = loader
        self.notifier = notifier
        self.filters: dict[str, Any] = {k: v for k, v in (filters or {}).items() if v is not None}
        self.page = max(1, page)
        self.limit = max(1, limit)
        self.client_paged = client_paged
        self.error_message = error_message
        self.refreshed_message = refreshed_message

        self.data: list[T] = []
        self.total = 0
        self.loading = False
        self.refreshing = False
        self.error: str | None = None
        self.phase = Phase.IDLE
        self.guard = InFlightGuard()

        self._summarize = summarize
        self.summary: dict[str, Any] = summarize([]) if summarize else {}
        self._sequence = 0
        self._mounted = True

    # -- state setters ---------------------------------------------------

    def set_filter(self, key: str, value: Any) -> None:
        if value is None or value == "":
            self.filters.pop(key, None)
        else:
            self.filters[key] = value
        self.page = 1

    def set_filters(self, **values: Any) -> None:
        for key, value in values.items():
            if value is None or value == "":
                self.filters.pop(key, None)
            else:
                self.filters[key] = value
        self.page = 1

    def set_page(self, page: int) -> None:
        self.page = max(1, int(page))

    def set_limit(self, limit: int) -> None:
        self.limit = max(1, int(limit))
        self.page = 1

    def request_params(self) -> dict[str, Any]:
        return {**self.filters, "page": self.page, "limit": self.limit}

    @property
    def rows(self) -> list[T]:
        if self.client_paged:
            return slice_page(self.data, self.page, self.limit)
        return self.data

    @property
    def mounted(self) -> bool:
        return self._mounted

    def unmount(self) -> None:
        self._mounted = False

    # -- loading ---------------------------------------------------------

    def _is_current(self, token: int) -> bool:
        return self._mounted and token == self._sequence

    def _replace_data(self, items: list[T], total: int) -> None:
        self.data = list(items)
        self.total = total
        self.summary = self._summarize(self.data) if self._summarize else {}

    async def fetch(self) -> bool:
        if not self._mounted:
            return False

        self._sequence += 1
        token = self._sequence
        params = self.request_params()
        self.loading = True
        self.phase = Phase.LOADING
        self.error = None
        try:
            envelope = await self.loader(params)
            if not self._is_current(token):
                logger.debug("Discarding stale list response %s (latest %s)", token, self._sequence)
                return False
            if not envelope.ok or envelope.data is None:
                self._mark_failed(envelope.message or self.error_message)
                self.notifier.error(self.error)
                return False

            result = envelope.data
            if self.client_paged:
                self._replace_data(result.items, len(result.items))
                self.page = 1
            else:
                self._replace_data(result.items, result.total)
            self.phase = Phase.LOADED
            return True
        except Exception as exc:
            if not self._is_current(token):
                return False
            self._mark_failed(report_failure(self.notifier, exc, self.error_message))
            return False
        finally:
            if token == self._sequence:
                self.loading = False

    def _mark_failed(self, message: str) -> None:
        self.error = message
        self.phase = Phase.ERRORED

    async def refresh(self) -> bool:
        self.refreshing = True
        try:
            ok = await self.fetch()
            if ok:
                self.notifier.success(self.refreshed_message)
            return ok
        finally:
            self.refreshing = False

    # -- mutations -------------------------------------------------------

    def is_busy(self, record_id: Hashable, control: str = "default") -> bool:
        return self.guard.is_active((control, record_id))

    async def mutate(
        self,
        action: Callable[[], Awaitable[Envelope[Any]]],
        *,
        record_id: Hashable,
        control: str = "default",
        confirm: Callable[[], bool] | None = None,
        success_message: Message = "Done",
        error_message: str = "Operation failed",
        refetch: bool = True,
        on_success: Callable[[Envelope[Any]], None] | None = None,
    ) -> bool:
        """Confirm (optional), run ``action`` once per record, then resync.

        Returns False when the prompt was declined, the same record already
        has this action in flight, or the action failed.
        """
        key = (control, record_id)
        if self.guard.is_active(key):
            return False
        if confirm is not None and not confirm():
            return False

        async def run() -> bool:
            try:
                envelope = await action()
            except Exception as exc:
                report_failure(self.notifier, exc, error_message)
                return False
            if not envelope.ok:
                self.notifier.error(envelope.message or error_message)
                return False
            self.notifier.success(_render(success_message, envelope))
            if on_success is not None:
                on_success(envelope)
            if refetch:
                await self.fetch()
            return True

        result = await self.guard.run(key, run)
        return bool(result)

    def patch_record(self, match: Callable[[T], bool], update: Callable[[T], T]) -> None:
        """Replace matching rows in place; only used after the server confirmed the change."""
        self._replace_data([update(item) if match(item) else item for item in self.data], self.total)

    def snapshot(self) -> dict[str, Any]:
        return {
            "phase": self.phase.value,
            "filters": dict(self.filters),
            "page": self.page,
            "limit": self.limit,
            "total": self.total,
            "loading": self.loading,
            "refreshing": self.refreshing,
            "error": self.error,
            "summary": dict(self.summary),
        }
