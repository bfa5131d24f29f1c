from __future__ import annotations

from dataclasses import asdict, is_dataclass
from typing import Any, Callable, TypeVar

from qbadmin.domain.models import Envelope, PageResult
from qbadmin.infra.ports.confirm import ConfirmPort
from qbadmin.infra.ports.notifier import NotifierPort

T = TypeVar("T")


def row_dict(record: Any, **extra: Any) -> dict[str, Any]:
    data = asdict(record) if is_dataclass(record) else dict(record)
    data.update(extra)
    return data


def whole_list(envelope: Envelope[list[T]], *, page: int, limit: int) -> Envelope[PageResult[T]]:
    """Wrap an unpaged list response so a list controller can hold it."""
    items = list(envelope.data or [])
    data = PageResult(items=items, total=len(items), page=page, limit=limit) if envelope.data is not None else None
    return Envelope(code=envelope.code, message=envelope.message, data=data)


def format_file_size(size: int | None) -> str:
    if size is None or size < 0:
        return "-"
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    mb = size / (1024 * 1024)
    if mb >= 1024:
        return f"{mb / 1024:.2f} GB"
    return f"{mb:.2f} MB"


class Screen:
    """Common wiring for list screens: notifier plus confirm prompts."""

    def __init__(self, *, notifier: NotifierPort, confirmer: ConfirmPort):
        self.notifier = notifier
        self.confirmer = confirmer

    def ask(self, title: str, content: str) -> Callable[[], bool]:
        return lambda: self.confirmer.confirm(title=title, content=content)
