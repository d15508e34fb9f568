"""requests-based gateway for the Rundeck HTTP API."""

from __future__ import annotations

import time
from typing import Any, Mapping

import requests

from rdcall.ports.api import MEDIA_TYPE_JSON, ApiGateway, ApiRequestError, ApiResponse
from rdcall.settings import ClientConfig, RuntimeSettings
from rdcall.utils import telemetry

AUTH_HEADER = "X-Rundeck-Auth-Token"
DEFAULT_TIMEOUT = 30


class RundeckHttpGateway(ApiGateway):
    def __init__(
        self,
        config: ClientConfig,
        *,
        session: requests.Session | None = None,
        settings: RuntimeSettings | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._config = config.require_connection()
        self._base_url = config.base_api_url()
        self._session = session or requests.Session()
        self._settings = settings
        self._timeout = timeout

    def request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        json_body: Any = None,
        data: bytes | None = None,
        content_type: str | None = None,
    ) -> ApiResponse:
        url = f"{self._base_url}/{path.lstrip('/')}"
        headers = {
            "Accept": MEDIA_TYPE_JSON,
            AUTH_HEADER: self._config.token or "",
        }
        if content_type:
            headers["Content-Type"] = content_type
        started = time.perf_counter()
        try:
            response = self._session.request(
                method,
                url,
                params=dict(params) if params else None,
                json=json_body,
                data=data,
                headers=headers,
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            self._record(method, path, status_code=None, started=started, error=str(exc))
            raise ApiRequestError(f"{method} {url} failed: {exc}") from exc
        self._record(method, path, status_code=response.status_code, started=started)
        return ApiResponse(
            status_code=response.status_code,
            reason=response.reason or "",
            content=response.content or b"",
            headers=dict(response.headers or {}),
        )

    def _record(
        self,
        method: str,
        path: str,
        *,
        status_code: int | None,
        started: float,
        error: str | None = None,
    ) -> None:
        if self._settings is not None:
            telemetry.api_request(self._settings, method, path, status_code=status_code, started=started, error=error)
