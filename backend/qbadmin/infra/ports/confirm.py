from __future__ import annotations

from abc import ABC, abstractmethod


class ConfirmPort(ABC):
    @abstractmethod
    def confirm(self, *, title: str, content: str) -> bool:
        """Return True only when the operator accepted the prompt."""
