from __future__ import annotations

from abc import ABC, abstractmethod


class NavigatorPort(ABC):
    @abstractmethod
    def redirect(self, path: str) -> None:
        """Send the operator to another console route."""
