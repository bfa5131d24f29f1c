from __future__ import annotations

from abc import ABC, abstractmethod


class TokenStorePort(ABC):
    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the stored value for key, or None."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Persist value under key."""

    @abstractmethod
    def remove(self, key: str) -> None:
        """Drop key if present."""
