from __future__ import annotations

from typing import Any, Callable, TypeVar

from qbadmin.domain.models import Envelope, PageResult, UploadFile, from_payload_list
from qbadmin.infra.gateway.client import ApiGateway

T = TypeVar("T")
R = TypeVar("R")


def map_envelope(envelope: Envelope[Any], convert: Callable[[Any], R]) -> Envelope[R]:
    data = convert(envelope.data) if envelope.data is not None else None
    return Envelope(code=envelope.code, message=envelope.message, data=data)


def to_page(cls: type[T], raw: Any, *, key: str, page: int, limit: int) -> PageResult[T]:
    """Read ``{<key>|list: [...], total, pagination?}``; ``total`` is taken as sent."""
    if not isinstance(raw, dict):
        return PageResult(items=[], total=0, page=page, limit=limit)
    rows = raw.get(key)
    if rows is None:
        rows = raw.get("list")
    total = raw.get("total")
    if total is None and isinstance(raw.get("pagination"), dict):
        total = raw["pagination"].get("total")
    return PageResult(
        items=from_payload_list(cls, rows),
        total=int(total or 0),
        page=page,
        limit=limit,
    )


def multipart(field: str, files: list[UploadFile]) -> list[tuple[str, tuple[str, bytes, str]]]:
    return [(field, item.as_multipart()) for item in files]


class ResourceService:
    def __init__(self, *, gateway: ApiGateway):
        self.gateway = gateway
