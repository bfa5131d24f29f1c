from __future__ import annotations

from qbadmin.infra.ports.confirm import ConfirmPort
from qbadmin.infra.ports.navigator import NavigatorPort


class StaticConfirm(ConfirmPort):
    """Answers every prompt with a fixed decision and remembers what was asked.

    The HTTP console builds one per request from the ``confirm`` query flag.
    """

    def __init__(self, accepted: bool):
        self.accepted = accepted
        self.prompts: list[dict[str, str]] = []

    def confirm(self, *, title: str, content: str) -> bool:
        self.prompts.append({"title": title, "content": content})
        return self.accepted


class RecordingNavigator(NavigatorPort):
    def __init__(self):
        self.redirects: list[str] = []

    def redirect(self, path: str) -> None:
        self.redirects.append(path)

    @property
    def location(self) -> str | None:
        return self.redirects[-1] if self.redirects else None
