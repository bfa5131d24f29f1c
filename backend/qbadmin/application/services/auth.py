from __future__ import annotations

import logging
from typing import Any

from qbadmin.application.services.base import ResourceService, map_envelope
from qbadmin.core import paths
from qbadmin.domain.errors import ConsoleError, ValidationError
from qbadmin.domain.models import Envelope, LoginResult, UserRecord, from_payload

logger = logging.getLogger(__name__)


def _to_login_result(raw: Any) -> LoginResult:
    user = raw.get("user")
    return LoginResult(
        access_token=raw.get("accessToken") or "",
        refresh_token=raw.get("refreshToken"),
        expires_in=raw.get("expiresIn"),
        user=from_payload(UserRecord, user) if isinstance(user, dict) else None,
    )


class AuthService(ResourceService):
    async def login(self, *, username: str, password: str) -> Envelope[LoginResult]:
        envelope = map_envelope(
            await self.gateway.post(paths.LOGIN, {"username": username, "password": password}),
            _to_login_result,
        )
        if envelope.ok and envelope.data and envelope.data.access_token:
            self.gateway.store_tokens(envelope.data.access_token, envelope.data.refresh_token)
        return envelope

    async def register(
        self,
        *,
        username: str,
        password: str,
        nickname: str | None = None,
        phone: str | None = None,
    ) -> Envelope[LoginResult]:
        payload = {"username": username, "password": password, "nickname": nickname, "phone": phone}
        envelope = map_envelope(
            await self.gateway.post(paths.REGISTER, {k: v for k, v in payload.items() if v is not None}),
            _to_login_result,
        )
        if envelope.ok and envelope.data and envelope.data.access_token:
            self.gateway.store_tokens(envelope.data.access_token, envelope.data.refresh_token)
        return envelope

    async def get_profile(self, *, show_error: bool = True) -> Envelope[UserRecord]:
        return map_envelope(
            await self.gateway.get(paths.PROFILE, show_error=show_error),
            lambda raw: from_payload(UserRecord, raw),
        )

    async def update_profile(
        self,
        *,
        nickname: str | None = None,
        avatar_url: str | None = None,
        phone: str | None = None,
    ) -> Envelope[UserRecord]:
        payload = {"nickname": nickname, "avatar_url": avatar_url, "phone": phone}
        return map_envelope(
            await self.gateway.post(paths.PROFILE, {k: v for k, v in payload.items() if v is not None}),
            lambda raw: from_payload(UserRecord, raw),
        )

    async def refresh_token(self) -> Envelope[LoginResult]:
        refresh_token = self.gateway.refresh_token()
        if not refresh_token:
            raise ValidationError({"refreshToken": "No refresh token stored"})
        envelope = map_envelope(
            await self.gateway.post(paths.REFRESH, {"refreshToken": refresh_token}),
            _to_login_result,
        )
        if envelope.ok and envelope.data and envelope.data.access_token:
            self.gateway.store_tokens(envelope.data.access_token, envelope.data.refresh_token)
        return envelope

    async def logout(self) -> None:
        try:
            await self.gateway.post(paths.LOGOUT, show_error=False)
        except ConsoleError as exc:
            logger.warning("Logout request failed: %s", exc.message)
        finally:
            self.gateway.clear_tokens()

    def is_logged_in(self) -> bool:
        return bool(self.gateway.access_token())
