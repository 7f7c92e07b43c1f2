"""
resale_services.api_client -- JSON-over-HTTP client for the resale backend.

Responsibility:
    Send one request to the backend with the session's bearer token and
    return the decoded JSON body, or raise a typed ApiError.

Architecture position:
    Services layer, the only module that imports httpx. The gateway sits
    on top of it and owns the fail-soft policy; this client never
    swallows a failure.

Failure mapping:
    no response / timeout          -> TransportError
    non-2xx                        -> BackendError (backend ``message`` or
                                      ``error`` text, verbatim)
    2xx with a non-JSON body       -> MalformedResponseError
    no token for an authed request -> NotAuthenticatedError
"""

from __future__ import annotations

import time
from collections.abc import Mapping
from typing import Any

import httpx

from resale_config.schema import ApiSettings
from resale_kernel.domain.session import AuthSession
from resale_kernel.exceptions import (
    BackendError,
    MalformedResponseError,
    NotAuthenticatedError,
    TransportError,
)
from resale_kernel.logging_config import get_logger

logger = get_logger("services.api_client")

# Filter value the list screens send for "no filter"
_NO_FILTER = "all"


def clean_params(params: Mapping[str, Any] | None) -> dict[str, Any]:
    """Drop query parameters that are empty or "all"."""
    if not params:
        return {}
    out: dict[str, Any] = {}
    for key, value in params.items():
        if value is None or value == "":
            continue
        if isinstance(value, str) and value.lower() == _NO_FILTER:
            continue
        out[key] = value
    return out


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, Mapping):
        for key in ("message", "error"):
            if body.get(key):
                return str(body[key])
    return response.reason_phrase or f"HTTP {response.status_code}"


class ApiClient:
    """
    Thin synchronous wrapper around ``httpx.Client``.

    ``transport`` is injectable so tests can use ``httpx.MockTransport``.
    """

    def __init__(
        self,
        settings: ApiSettings,
        session: AuthSession,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.settings = settings
        self.session = session
        self._client = httpx.Client(
            base_url=settings.base_url.rstrip("/") + "/",
            timeout=httpx.Timeout(settings.read_timeout, connect=settings.connect_timeout),
            headers={"Accept": "application/json"},
            transport=transport,
        )

    def __enter__(self) -> ApiClient:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        json: Any = None,
        authenticated: bool = True,
    ) -> Any:
        """
        Send a request and return the decoded JSON body (None when empty).

        Raises:
            NotAuthenticatedError: ``authenticated`` and no token.
            TransportError, BackendError, MalformedResponseError.
        """
        path = path.lstrip("/")
        headers = {}
        if authenticated:
            if not self.session.access_token:
                raise NotAuthenticatedError()
            headers.update(self.session.auth_headers())

        t0 = time.monotonic()
        try:
            response = self._client.request(
                method,
                path,
                params=clean_params(params),
                json=json,
                headers=headers,
            )
        except httpx.TimeoutException as exc:
            raise TransportError(method, path, f"timed out: {exc}") from exc
        except httpx.TransportError as exc:
            raise TransportError(method, path, str(exc) or type(exc).__name__) from exc
        duration_ms = round((time.monotonic() - t0) * 1000, 2)

        logger.debug("api_request", extra={
            "method": method,
            "path": path,
            "status_code": response.status_code,
            "duration_ms": duration_ms,
        })

        if not response.is_success:
            raise BackendError(method, path, response.status_code, _error_message(response))

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise MalformedResponseError(path, "body is not JSON") from exc

    def get(self, path: str, params: Mapping[str, Any] | None = None) -> Any:
        return self.request("GET", path, params=params)

    def post(self, path: str, json: Any = None, *, authenticated: bool = True) -> Any:
        return self.request("POST", path, json=json, authenticated=authenticated)

    def put(self, path: str, json: Any = None) -> Any:
        return self.request("PUT", path, json=json)

    def delete(self, path: str) -> Any:
        return self.request("DELETE", path)
