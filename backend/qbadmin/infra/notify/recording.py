from __future__ import annotations

import logging
from dataclasses import dataclass

from qbadmin.infra.ports.notifier import NoticeLevel, NotifierPort
from qbadmin.utils.ids import new_public_id

logger = logging.getLogger(__name__)

_LOG_LEVELS = {
    "success": logging.INFO,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.WARNING,
}


@dataclass
class Notice:
    id: str
    level: NoticeLevel
    content: str


class RecordingNotifier(NotifierPort):
    """Collects notices so the view layer can return them with the response."""

    def __init__(self):
        self.notices: list[Notice] = []

    def notify(self, level: NoticeLevel, content: str) -> None:
        logger.log(_LOG_LEVELS.get(level, logging.INFO), "[%s] %s", level, content)
        self.notices.append(Notice(id=new_public_id("ntc_"), level=level, content=content))

    def contents(self, level: NoticeLevel | None = None) -> list[str]:
        return [item.content for item in self.notices if level is None or item.level == level]
