from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from qbadmin.application.actions import report_failure
from qbadmin.application.services.auth import AuthService
from qbadmin.domain.errors import ConsoleError
from qbadmin.domain.models import UserRecord
from qbadmin.infra.ports.notifier import NotifierPort

logger = logging.getLogger(__name__)


class SessionPhase(str, Enum):
    INIT = "init"
    AUTHENTICATED = "authenticated"
    ANONYMOUS = "anonymous"


@dataclass
class ActionResult:
    success: bool
    error: str | None = None


Listener = Callable[["SessionStore"], None]


class SessionStore:
    """Application-scoped auth state that views subscribe to.

    ``init`` is idempotent: concurrent callers share one profile lookup and a
    resolved session is not re-checked until ``refresh`` is called.
    """

    def __init__(self, *, auth: AuthService, notifier: NotifierPort):
        self.auth = auth
        self.notifier = notifier
        self.phase = SessionPhase.INIT
        self.user: UserRecord | None = None
        self.loading = False
        self.error: str | None = None
        self._listeners: list[Listener] = []
        self._lock = asyncio.Lock()

    @property
    def is_authenticated(self) -> bool:
        return self.phase is SessionPhase.AUTHENTICATED

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    def _resolve(self, phase: SessionPhase, user: UserRecord | None = None, error: str | None = None) -> None:
        self.phase = phase
        self.user = user
        self.error = error
        self.loading = False
        self._emit()

    async def init(self, *, force: bool = False) -> SessionPhase:
        async with self._lock:
            if self.phase is not SessionPhase.INIT and not force:
                return self.phase
            self.loading = True
            self.error = None
            try:
                if self.auth.is_logged_in():
                    response = await self.auth.get_profile(show_error=False)
                    if response.ok and response.data is not None:
                        self._resolve(SessionPhase.AUTHENTICATED, response.data)
                        return self.phase
                self._resolve(SessionPhase.ANONYMOUS)
            except ConsoleError as exc:
                logger.warning("Session check failed: %s", exc.message)
                self._resolve(SessionPhase.ANONYMOUS, error="Failed to check login state")
            except Exception as exc:
                message = report_failure(self.notifier, exc, "Failed to check login state")
                self._resolve(SessionPhase.ANONYMOUS, error=message)
            return self.phase

    async def refresh(self) -> SessionPhase:
        return await self.init(force=True)

    async def login(self, *, username: str, password: str) -> ActionResult:
        self.loading = True
        self.error = None
        try:
            response = await self.auth.login(username=username, password=password)
        except Exception as exc:
            message = report_failure(self.notifier, exc, "Login failed")
            self.loading = False
            self.error = message
            self._emit()
            return ActionResult(success=False, error=message)

        if response.ok and response.data is not None:
            self._resolve(SessionPhase.AUTHENTICATED, response.data.user)
            self.notifier.success("Logged in")
            return ActionResult(success=True)

        message = response.message or "Login failed"
        self.notifier.error(message)
        self.loading = False
        self.error = message
        self._emit()
        return ActionResult(success=False, error=message)

    async def register(
        self,
        *,
        username: str,
        password: str,
        nickname: str | None = None,
        phone: str | None = None,
    ) -> ActionResult:
        self.loading = True
        self.error = None
        try:
            response = await self.auth.register(username=username, password=password, nickname=nickname, phone=phone)
        except Exception as exc:
            message = report_failure(self.notifier, exc, "Registration failed")
            self.loading = False
            self.error = message
            self._emit()
            return ActionResult(success=False, error=message)

        if response.ok and response.data is not None:
            self._resolve(SessionPhase.AUTHENTICATED, response.data.user)
            self.notifier.success("Registered")
            return ActionResult(success=True)

        message = response.message or "Registration failed"
        self.notifier.error(message)
        self.loading = False
        self.error = message
        self._emit()
        return ActionResult(success=False, error=message)

    async def logout(self) -> None:
        self.loading = True
        try:
            await self.auth.logout()
        except Exception as exc:
            # Tokens are already cleared; the session still ends.
            report_failure(self.notifier, exc, "Logout failed")
        self._resolve(SessionPhase.ANONYMOUS)
        self.notifier.success("Logged out")

    def update_user(self, user: UserRecord) -> None:
        self.user = user
        self._emit()

    def clear_error(self) -> None:
        self.error = None
        self._emit()
