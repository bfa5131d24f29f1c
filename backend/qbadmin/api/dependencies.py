from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import lru_cache
from typing import AsyncIterator

import httpx
from fastapi import Depends, HTTPException, Query

from qbadmin.application.services.auth import AuthService
from qbadmin.application.services.essays import EssayAdminService
from qbadmin.application.services.files import FilesService
from qbadmin.application.services.question_banks import QuestionBanksService
from qbadmin.application.services.subjects import SubjectsService
from qbadmin.application.services.system import SystemService
from qbadmin.application.session import SessionStore
from qbadmin.core.config import get_settings
from qbadmin.infra.gateway.client import LOGIN_PATH, ApiGateway, SessionExpiry
from qbadmin.infra.notify.interaction import RecordingNavigator, StaticConfirm
from qbadmin.infra.notify.recording import RecordingNotifier
from qbadmin.infra.ports.token_store import TokenStorePort
from qbadmin.infra.tokens.file import FileTokenStore

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_token_store() -> TokenStorePort:
    return FileTokenStore(get_settings().token_file)


@lru_cache(maxsize=1)
def get_session_expiry() -> SessionExpiry:
    return SessionExpiry()


def get_transport() -> httpx.AsyncBaseTransport | None:
    """Outbound transport override; None means a real network connection."""
    return None


@dataclass
class Console:
    """Everything one console request needs, wired around a single gateway."""

    notifier: RecordingNotifier
    navigator: RecordingNavigator
    confirmer: StaticConfirm
    gateway: ApiGateway
    auth: AuthService = field(init=False)
    files: FilesService = field(init=False)
    subjects: SubjectsService = field(init=False)
    banks: QuestionBanksService = field(init=False)
    essays: EssayAdminService = field(init=False)
    system: SystemService = field(init=False)

    def __post_init__(self) -> None:
        self.auth = AuthService(gateway=self.gateway)
        self.files = FilesService(gateway=self.gateway)
        self.subjects = SubjectsService(gateway=self.gateway)
        self.banks = QuestionBanksService(gateway=self.gateway)
        self.essays = EssayAdminService(gateway=self.gateway)
        self.system = SystemService(gateway=self.gateway)

    def session(self) -> SessionStore:
        return SessionStore(auth=self.auth, notifier=self.notifier)

    @property
    def confirm_pending(self) -> bool:
        return bool(self.confirmer.prompts) and not self.confirmer.accepted


def build_console(
    *,
    confirm: bool = False,
    token_store: TokenStorePort | None = None,
    expiry: SessionExpiry | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Console:
    settings = get_settings()
    notifier = RecordingNotifier()
    navigator = RecordingNavigator()
    gateway = ApiGateway(
        base_url=settings.api_base_url,
        token_store=token_store or get_token_store(),
        notifier=notifier,
        navigator=navigator,
        expiry=expiry or get_session_expiry(),
        timeout_seconds=settings.api_timeout_seconds,
        transport=transport,
    )
    return Console(notifier=notifier, navigator=navigator, confirmer=StaticConfirm(confirm), gateway=gateway)


async def provide_console(
    confirm: bool = Query(default=False, description="Accept the confirmation prompt of a destructive action"),
) -> AsyncIterator[Console]:
    console = build_console(
        confirm=confirm,
        token_store=get_token_store(),
        expiry=get_session_expiry(),
        transport=get_transport(),
    )
    try:
        yield console
    finally:
        await console.gateway.aclose()


async def provide_signed_in_console(console: Console = Depends(provide_console)) -> Console:
    if not console.auth.is_logged_in():
        logger.info("Rejecting console request without a stored session")
        raise HTTPException(status_code=401, detail={"message": "Please log in first", "redirect": LOGIN_PATH})
    return console


def provide_page_size() -> int:
    return get_settings().default_page_size
