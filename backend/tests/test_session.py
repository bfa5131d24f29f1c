import asyncio

import pytest

from qbadmin.application.services.auth import AuthService
from qbadmin.application.session import SessionPhase, SessionStore
from qbadmin.domain.errors import ValidationError
from tests.fake_backend import FakeBackend, fail, make_gateway, ok

USER = {"id": 1, "username": "admin", "nickname": "Admin", "role_id": 1, "status": 1}


def test_init_is_idempotent_under_concurrency():
    backend = FakeBackend().on("GET", "/auth/profile", ok(USER))

    async def scenario():
        gateway, notifier, _, _ = make_gateway(backend)
        async with gateway:
            session = SessionStore(auth=AuthService(gateway=gateway), notifier=notifier)
            phases = await asyncio.gather(session.init(), session.init(), session.init())
            again = await session.init()
        return session, phases, again

    session, phases, again = asyncio.run(scenario())
    assert phases == [SessionPhase.AUTHENTICATED] * 3
    assert again is SessionPhase.AUTHENTICATED
    assert session.user.username == "admin"
    assert len(backend.calls("GET", "/auth/profile")) == 1


def test_init_without_token_is_anonymous_and_offline():
    backend = FakeBackend()

    async def scenario():
        gateway, notifier, _, _ = make_gateway(backend, token=None)
        async with gateway:
            session = SessionStore(auth=AuthService(gateway=gateway), notifier=notifier)
            return await session.init(), notifier

    phase, notifier = asyncio.run(scenario())
    assert phase is SessionPhase.ANONYMOUS
    assert backend.requests == []
    assert notifier.notices == []


def test_failed_profile_check_resolves_anonymous_silently():
    backend = FakeBackend().on("GET", "/auth/profile", fail(500, "db down"))

    async def scenario():
        gateway, notifier, _, _ = make_gateway(backend)
        async with gateway:
            session = SessionStore(auth=AuthService(gateway=gateway), notifier=notifier)
            phase = await session.init()
        return session, phase, notifier

    session, phase, notifier = asyncio.run(scenario())
    assert phase is SessionPhase.ANONYMOUS
    assert session.error == "Failed to check login state"
    assert notifier.notices == []


def test_malformed_profile_resolves_anonymous():
    backend = FakeBackend().on("GET", "/auth/profile", ok("not-an-object"))

    async def scenario():
        gateway, notifier, _, _ = make_gateway(backend)
        async with gateway:
            session = SessionStore(auth=AuthService(gateway=gateway), notifier=notifier)
            phase = await session.init()
        return session, phase, notifier

    session, phase, notifier = asyncio.run(scenario())
    assert phase is SessionPhase.ANONYMOUS
    assert session.loading is False
    assert session.error == "Failed to check login state"
    assert notifier.contents("error") == ["Failed to check login state"]


def test_logout_ends_session_when_request_breaks():
    def broken(request):
        raise RuntimeError("socket closed")

    backend = FakeBackend().on("GET", "/auth/profile", ok(USER)).on("POST", "/auth/logout", broken)

    async def scenario():
        gateway, notifier, _, store = make_gateway(backend)
        async with gateway:
            session = SessionStore(auth=AuthService(gateway=gateway), notifier=notifier)
            await session.init()
            await session.logout()
        return session, notifier, store

    session, notifier, store = asyncio.run(scenario())
    assert session.phase is SessionPhase.ANONYMOUS
    assert session.user is None
    assert store.get("wx_admin_token") is None
    assert notifier.contents("error") == ["Logout failed"]
    assert notifier.contents("success") == ["Logged out"]


def test_login_stores_tokens_and_notifies_subscribers():
    backend = FakeBackend().on(
        "POST",
        "/auth/login",
        ok({"accessToken": "new-access", "refreshToken": "new-refresh", "expiresIn": "7d", "user": USER}),
    )
    seen = []

    async def scenario():
        gateway, notifier, _, store = make_gateway(backend, token=None)
        async with gateway:
            session = SessionStore(auth=AuthService(gateway=gateway), notifier=notifier)
            unsubscribe = session.subscribe(lambda current: seen.append(current.phase))
            result = await session.login(username="admin", password="secret")
            unsubscribe()
            await session.logout()
        return result, store, notifier

    result, store, notifier = asyncio.run(scenario())
    assert result.success is True
    assert seen == [SessionPhase.AUTHENTICATED]
    assert notifier.contents("success") == ["Logged in", "Logged out"]
    assert store.get("wx_admin_token") is None
    assert store.get("wx_admin_refresh_token") is None


def test_login_rejection_reports_backend_message_once():
    backend = FakeBackend().on("POST", "/auth/login", fail(400, "Wrong password"))

    async def scenario():
        gateway, notifier, _, _ = make_gateway(backend, token=None)
        async with gateway:
            session = SessionStore(auth=AuthService(gateway=gateway), notifier=notifier)
            result = await session.login(username="admin", password="bad")
        return session, result, notifier

    session, result, notifier = asyncio.run(scenario())
    assert result.success is False
    assert result.error == "Wrong password"
    assert session.phase is SessionPhase.INIT
    assert notifier.contents("error") == ["Wrong password"]


def test_refresh_token_requires_stored_refresh_token():
    backend = FakeBackend()

    async def scenario():
        gateway, _, _, _ = make_gateway(backend)
        async with gateway:
            await AuthService(gateway=gateway).refresh_token()

    with pytest.raises(ValidationError):
        asyncio.run(scenario())
    assert backend.requests == []
