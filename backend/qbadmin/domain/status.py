from __future__ import annotations

from qbadmin.domain.models import ENABLED, StatusTag

_PARSE_STATUS_TAGS: dict[str, StatusTag] = {
    "pending": "default",
    "parsing": "processing",
    "completed": "success",
    "failed": "error",
}

_PARSE_STATUS_LABELS = {
    "pending": "Pending",
    "parsing": "Parsing",
    "completed": "Completed",
    "failed": "Failed",
}


def parse_status_tag(status: str | None) -> StatusTag:
    return _PARSE_STATUS_TAGS.get(status or "", "default")


def parse_status_label(status: str | None) -> str:
    return _PARSE_STATUS_LABELS.get(status or "", status or "-")


def enabled_tag(status: int | None) -> StatusTag:
    return "success" if status == ENABLED else "default"


def enabled_label(status: int | None) -> str:
    return "Enabled" if status == ENABLED else "Disabled"
