"""Port for the orchestration server HTTP API."""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, TypeVar

MEDIA_TYPE_JSON = "application/json"

T = TypeVar("T")


class ApiRequestError(RuntimeError):
    """Raised when a request fails at the transport level or returns a non-2xx status."""

    def __init__(self, message: str, *, status_code: int | None = None, body: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.body = body


@dataclass(frozen=True)
class ApiResponse:
    status_code: int
    reason: str = ""
    content: bytes = b""
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")

    def json(self) -> Any:
        """Decode the body; raises ``ValueError`` when it is not JSON."""

        return json.loads(self.text) if self.content else None


class ApiGateway(ABC):
    """Issues one API call per invocation and returns the raw response."""

    @abstractmethod
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
        """Send a request relative to the versioned API root."""

    def get(self, path: str, **params: Any) -> ApiResponse:
        return self.request("GET", path, params={k: v for k, v in params.items() if v is not None})

    def post(self, path: str, **kwargs: Any) -> ApiResponse:
        return self.request("POST", path, **kwargs)


def error_message(response: ApiResponse) -> str:
    """Best-effort message from an error body; falls back to the HTTP reason."""

    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, Mapping) and payload.get("message"):
        return str(payload["message"])
    return response.reason or "request failed"


def check_response(response: ApiResponse, context: str = "Request") -> Any:
    """Return the decoded JSON of a 2xx response or raise ``ApiRequestError``."""

    if not response.ok:
        raise ApiRequestError(
            f"{context} failed: (error: {response.status_code} {error_message(response)})",
            status_code=response.status_code,
            body=response.text,
        )
    try:
        return response.json()
    except ValueError as exc:
        raise ApiRequestError(
            f"{context} failed: response was not valid JSON ({response.status_code} {response.reason})",
            status_code=response.status_code,
            body=response.text,
        ) from exc


def check_mapping(response: ApiResponse, context: str = "Request") -> Dict[str, Any]:
    payload = check_response(response, context)
    if payload is None:
        return {}
    if not isinstance(payload, Mapping):
        raise ApiRequestError(
            f"{context} failed: expected a JSON object",
            status_code=response.status_code,
            body=response.text,
        )
    return dict(payload)


def decode_mapping(response: ApiResponse, context: str, factory: Callable[[Dict[str, Any]], T]) -> T:
    """Build a model from a 2xx JSON object, wrapping field conversion errors."""

    payload = check_mapping(response, context)
    try:
        return factory(payload)
    except (TypeError, ValueError) as exc:
        raise ApiRequestError(
            f"{context} failed: unexpected response body ({response.status_code} {response.reason}): {exc}",
            status_code=response.status_code,
            body=response.text,
        ) from exc
