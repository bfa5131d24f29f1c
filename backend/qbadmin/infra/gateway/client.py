from __future__ import annotations

import logging
from typing import Any

import httpx

from qbadmin.core.config import ACCESS_TOKEN_KEY, REFRESH_TOKEN_KEY
from qbadmin.domain.errors import BusinessError, ConsoleError, SessionExpiredError, TransportError
from qbadmin.domain.models import CREATED_CODE, SUCCESS_CODE, UNAUTHORIZED_CODE, Envelope
from qbadmin.infra.ports.navigator import NavigatorPort
from qbadmin.infra.ports.notifier import NotifierPort
from qbadmin.infra.ports.token_store import TokenStorePort
from qbadmin.utils.ids import new_public_id

logger = logging.getLogger(__name__)

LOGIN_PATH = "/login"
NETWORK_FAILURE_MESSAGE = "Network connection failed, please check your network settings"
SESSION_EXPIRED_MESSAGE = "Session expired, please log in again"
DEFAULT_FAILURE_MESSAGE = "Request failed"

_HTTP_STATUS_MESSAGES = {
    400: "Bad request parameters",
    401: "Unauthorized, please log in again",
    403: "No permission to access this resource",
    404: "The requested resource does not exist",
    500: "Internal server error",
}


def http_status_message(status_code: int) -> str:
    return _HTTP_STATUS_MESSAGES.get(status_code, f"Request failed, status code: {status_code}")


def _clean_params(params: dict[str, Any] | None) -> dict[str, Any] | None:
    if not params:
        return None
    cleaned = {key: value for key, value in params.items() if value is not None and value != ""}
    return cleaned or None


class SessionExpiry:
    """Latch that lets the expiry side effect run once until tokens are stored again.

    ``claim`` never awaits, so concurrent coroutines observing 401 cannot both win.
    """

    def __init__(self):
        self._expired = False

    @property
    def expired(self) -> bool:
        return self._expired

    def claim(self) -> bool:
        if self._expired:
            return False
        self._expired = True
        return True

    def reset(self) -> None:
        self._expired = False


class ApiGateway:
    def __init__(
        self,
        *,
        base_url: str,
        token_store: TokenStorePort,
        notifier: NotifierPort,
        navigator: NavigatorPort,
        expiry: SessionExpiry | None = None,
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token_store = token_store
        self.notifier = notifier
        self.navigator = navigator
        self.expiry = expiry or SessionExpiry()
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout_seconds,
            transport=transport,
        )

    async def __aenter__(self) -> "ApiGateway":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    # -- token helpers -------------------------------------------------

    def store_tokens(self, access_token: str, refresh_token: str | None = None) -> None:
        self.token_store.set(ACCESS_TOKEN_KEY, access_token)
        if refresh_token:
            self.token_store.set(REFRESH_TOKEN_KEY, refresh_token)
        self.expiry.reset()

    def clear_tokens(self) -> None:
        self.token_store.remove(ACCESS_TOKEN_KEY)
        self.token_store.remove(REFRESH_TOKEN_KEY)

    def access_token(self) -> str | None:
        return self.token_store.get(ACCESS_TOKEN_KEY)

    def refresh_token(self) -> str | None:
        return self.token_store.get(REFRESH_TOKEN_KEY)

    def build_public_url(self, relative_path: str) -> str:
        base = self.base_url[: -len("/api")] if self.base_url.endswith("/api") else self.base_url
        return f"{base}{relative_path}"

    # -- requests ------------------------------------------------------

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
        data: dict[str, Any] | None = None,
        files: list[tuple[str, tuple[str, bytes, str]]] | None = None,
        show_error: bool = True,
    ) -> Envelope[Any]:
        token = self.access_token()
        request_id = new_public_id("req_")
        headers = {"X-Request-Id": request_id}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        logger.debug("%s %s (%s)", method, path, request_id)
        try:
            response = await self._client.request(
                method,
                path,
                json=json,
                params=_clean_params(params),
                data=data,
                files=files,
                headers=headers,
            )
        except httpx.TransportError as exc:
            logger.warning("%s %s failed without response (%s): %s", method, path, request_id, exc)
            raise self._fail(TransportError(None, NETWORK_FAILURE_MESSAGE), show_error) from exc

        if response.status_code >= 400:
            self._raise_http_failure(response, show_error=show_error)

        body = self._decode(response)
        code = body.get("code")
        message = body.get("message") if isinstance(body.get("message"), str) else ""

        if code == CREATED_CODE:
            code = SUCCESS_CODE
        if code == SUCCESS_CODE:
            return Envelope(code=SUCCESS_CODE, message=message, data=body.get("data"))

        if code == UNAUTHORIZED_CODE:
            self._expire_session(SESSION_EXPIRED_MESSAGE)
            expired = SessionExpiredError(SESSION_EXPIRED_MESSAGE)
            expired.notified = True
            raise expired

        message = message or DEFAULT_FAILURE_MESSAGE
        logger.warning("%s %s rejected with code=%s: %s", method, path, code, message)
        raise self._fail(BusinessError(int(code) if isinstance(code, int) else -1, message), show_error)

    async def get(self, path: str, params: dict[str, Any] | None = None, **kwargs: Any) -> Envelope[Any]:
        return await self.request("GET", path, params=params, **kwargs)

    async def post(self, path: str, json: Any = None, **kwargs: Any) -> Envelope[Any]:
        return await self.request("POST", path, json=json, **kwargs)

    async def put(self, path: str, json: Any = None, **kwargs: Any) -> Envelope[Any]:
        return await self.request("PUT", path, json=json, **kwargs)

    async def patch(self, path: str, json: Any = None, **kwargs: Any) -> Envelope[Any]:
        return await self.request("PATCH", path, json=json, **kwargs)

    async def delete(self, path: str, params: dict[str, Any] | None = None, **kwargs: Any) -> Envelope[Any]:
        return await self.request("DELETE", path, params=params, **kwargs)

    async def upload(
        self,
        method: str,
        path: str,
        *,
        files: list[tuple[str, tuple[str, bytes, str]]],
        fields: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        **kwargs: Any,
    ) -> Envelope[Any]:
        data = {key: str(value) for key, value in (fields or {}).items() if value is not None and value != ""}
        return await self.request(method, path, data=data or None, files=files or None, params=params, **kwargs)

    async def fetch_text(self, url: str) -> str:
        """Download a public asset (chapter markdown) outside the envelope contract."""
        try:
            response = await self._client.get(url)
        except httpx.TransportError as exc:
            raise TransportError(None, NETWORK_FAILURE_MESSAGE) from exc
        if response.status_code >= 400:
            raise TransportError(response.status_code, http_status_message(response.status_code))
        return response.text

    # -- failure handling ----------------------------------------------

    @staticmethod
    def _decode(response: httpx.Response) -> dict[str, Any]:
        try:
            body = response.json()
        except ValueError as exc:
            raise BusinessError(-1, "Malformed response from server") from exc
        if not isinstance(body, dict) or "code" not in body:
            raise BusinessError(-1, "Malformed response from server")
        return body

    def _raise_http_failure(self, response: httpx.Response, *, show_error: bool) -> None:
        status = response.status_code
        message = http_status_message(status)
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and isinstance(body.get("message"), str) and body["message"].strip():
            message = body["message"].strip()

        logger.warning("%s %s -> HTTP %s: %s", response.request.method, response.request.url.path, status, message)
        if status == UNAUTHORIZED_CODE:
            self._expire_session(message)
            failure = TransportError(status, message)
            failure.notified = True
            raise failure
        raise self._fail(TransportError(status, message), show_error)

    def _fail(self, error: ConsoleError, show_error: bool) -> ConsoleError:
        if show_error:
            self.notifier.error(error.message)
            error.notified = True
        return error

    def _expire_session(self, message: str) -> None:
        if not self.expiry.claim():
            return
        logger.info("Session expired; clearing stored token")
        self.clear_tokens()
        self.notifier.error(message)
        self.navigator.redirect(LOGIN_PATH)
