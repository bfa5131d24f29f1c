from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Literal

NoticeLevel = Literal["success", "error", "info", "warning"]


class NotifierPort(ABC):
    @abstractmethod
    def notify(self, level: NoticeLevel, content: str) -> None:
        """Surface a toast-style message to the operator."""

    def success(self, content: str) -> None:
        self.notify("success", content)

    def error(self, content: str) -> None:
        self.notify("error", content)

    def info(self, content: str) -> None:
        self.notify("info", content)

    def warning(self, content: str) -> None:
        self.notify("warning", content)
