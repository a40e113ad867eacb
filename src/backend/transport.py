"""Async HTTP transport for the Matsu backend with explicit sessions."""

from __future__ import annotations

from http.cookiejar import CookieJar, DefaultCookiePolicy
from types import TracebackType
from typing import Any

import httpx
import structlog
from pydantic import BaseModel, ConfigDict, Field

from src.core.config import BackendConfig, get_settings
from src.backend.exceptions import (
    BackendAuthError,
    BackendConnectionError,
    BackendParseError,
    BackendResponseError,
)

logger = structlog.stdlib.get_logger()


class Session(BaseModel):
    """Authenticated session returned by login.

    Passed explicitly to every request; the transport itself holds no
    authentication state between calls.
    """

    model_config = ConfigDict(frozen=True)

    token: str = ""
    cookies: dict[str, str] = Field(default_factory=dict)

    @property
    def authenticated(self) -> bool:
        return bool(self.token or self.cookies)

    def headers(self) -> dict[str, str]:
        """Request headers carrying this session's credentials."""
        headers: dict[str, str] = {}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        if self.cookies:
            headers["Cookie"] = "; ".join(f"{k}={v}" for k, v in self.cookies.items())
        return headers


ANONYMOUS = Session()


class BackendTransport:
    """JSON-over-HTTP client for the backend API.

    Usage::

        async with BackendTransport() as transport:
            session = await transport.login("user", "secret")
            monitors = await transport.request("GET", "/api/monitors", session=session)
    """

    def __init__(
        self,
        config: BackendConfig | None = None,
        http_transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config or get_settings().backend
        self._http_transport = http_transport
        self._http: httpx.AsyncClient | None = None

    @property
    def base_url(self) -> str:
        return self._config.base_url

    @property
    def connected(self) -> bool:
        """Whether the HTTP client is active."""
        return self._http is not None and not self._http.is_closed

    async def connect(self) -> None:
        """Create the httpx async client."""
        if self.connected:
            return
        self._http = httpx.AsyncClient(
            timeout=httpx.Timeout(self._config.timeout_secs),
            headers={"Content-Type": "application/json"},
            # Session carries cookies; the client jar must never store any.
            cookies=CookieJar(policy=DefaultCookiePolicy(allowed_domains=[])),
            transport=self._http_transport,
        )

    async def close(self) -> None:
        """Close the httpx async client."""
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    async def __aenter__(self) -> BackendTransport:
        await self.connect()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    async def login(self, username: str | None = None, password: str | None = None) -> Session:
        """Authenticate and return a new Session.

        Credentials default to the configured backend username/password.
        """
        body = {
            "username": username if username is not None else self._config.username,
            "password": (
                password if password is not None else self._config.password.get_secret_value()
            ),
        }
        response = await self._send("POST", self._config.login_path, json=body)
        payload = self._decode(response)

        if not isinstance(payload, dict) or not payload.get("success", False):
            raise BackendAuthError("Login rejected by backend")

        token = payload.get("token") or payload.get("access_token") or ""
        session = Session(token=str(token), cookies=dict(response.cookies.items()))
        logger.info("backend_login_succeeded", base_url=self.base_url)
        return session

    async def request(
        self,
        method: str,
        path: str,
        *,
        session: Session = ANONYMOUS,
        json: Any = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Send a request and return the decoded JSON body (None when empty)."""
        response = await self._send(
            method, path, json=json, params=params, headers=session.headers(),
        )
        return self._decode(response)

    async def _send(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        if self._http is None:
            raise BackendConnectionError("HTTP client not connected")

        url = f"{self.base_url}{path}"
        try:
            response = await self._http.request(
                method, url, json=json, params=params, headers=headers,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            logger.warning("backend_request_failed", method=method, path=path, status_code=status)
            if status in (401, 403):
                raise BackendAuthError(f"Backend returned {status} for {path}") from exc
            raise BackendResponseError(
                f"API request failed: {status} {exc.response.reason_phrase}", status,
            ) from exc
        except httpx.HTTPError as exc:
            logger.warning("backend_unreachable", method=method, path=path, error=str(exc))
            raise BackendConnectionError(f"Backend request failed: {exc}") from exc

        logger.debug("backend_request", method=method, path=path, status_code=response.status_code)
        return response

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise BackendParseError("Backend returned invalid JSON") from exc
