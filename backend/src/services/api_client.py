"""HTTP client for the AgriConnect REST backend."""

import logging
import os
from dataclasses import dataclass
from typing import Any

import requests

logger = logging.getLogger(__name__)


DEFAULT_BASE_URL = "http://localhost:5000"
DEFAULT_TIMEOUT_SECONDS = 10.0


@dataclass
class ApiSettings:
    """Where the backend lives and how long to wait for it."""

    base_url: str = DEFAULT_BASE_URL
    path_prefix: str = ""
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS

    def __post_init__(self):
        self.base_url = self.base_url.rstrip("/")
        self.path_prefix = self.path_prefix.strip("/")

    @classmethod
    def from_env(cls) -> "ApiSettings":
        """Build settings from API_BASE_URL, API_PATH_PREFIX and API_TIMEOUT_SECONDS."""
        return cls(
            base_url=os.environ.get("API_BASE_URL") or DEFAULT_BASE_URL,
            path_prefix=os.environ.get("API_PATH_PREFIX", ""),
            timeout_seconds=float(
                os.environ.get("API_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS)
            ),
        )


class ApiError(Exception):
    """Non-2xx response from the backend."""

    def __init__(
        self,
        status: int,
        message: str,
        code: str | None = None,
        details: Any = None,
    ):
        super().__init__(message)
        self.status = status
        self.message = message
        self.code = code
        self.details = details

    def __repr__(self) -> str:
        return f"ApiError(status={self.status}, code={self.code!r}, message={self.message!r})"


def log_diagnostics(settings: ApiSettings) -> None:
    """Log the effective API configuration."""
    logger.info(f"API_BASE_URL: {settings.base_url}")
    logger.info(f"API_PATH_PREFIX: {settings.path_prefix or '(none)'}")
    logger.info(f"API timeout: {settings.timeout_seconds}s")


def _parse_body(response: requests.Response) -> Any:
    """Decode a response body as JSON, falling back to text."""
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


def _error_from_response(response: requests.Response) -> ApiError:
    """Turn a failed response into an ApiError with the most useful message."""
    details = _parse_body(response)
    message = None
    code = None

    if isinstance(details, dict):
        error = details.get("error")
        for candidate in (details.get("message"), error, details.get("detail")):
            if isinstance(candidate, str) and candidate.strip():
                message = candidate
                break
        code = details.get("code") or (error if isinstance(error, str) else None)

    if not message:
        message = f"Request failed: {response.status_code}"

    return ApiError(response.status_code, message, code=code, details=details)


class ApiClient:
    """Thin wrapper around requests that speaks the backend's JSON conventions.

    - Paths are joined onto the base URL and optional path prefix.
    - A 404 under a configured prefix is retried once without it, which
      tolerates a backend that does not mount its routes under the prefix.
    - Error bodies become ApiError; success envelopes ``{"data": ...}`` are
      unwrapped.
    """

    def __init__(
        self,
        settings: ApiSettings | None = None,
        default_headers: dict[str, str] | None = None,
    ):
        self.settings = settings or ApiSettings.from_env()
        self.default_headers = dict(default_headers or {})

    def build_url(self, path: str, use_prefix: bool = True) -> str:
        """Absolute URL for a backend path."""
        path = "/" + path.lstrip("/")
        if use_prefix and self.settings.path_prefix:
            return f"{self.settings.base_url}/{self.settings.path_prefix}{path}"
        return f"{self.settings.base_url}{path}"

    def request(
        self,
        path: str,
        method: str = "GET",
        body: Any = None,
        query: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        raw_body: bool = False,
    ) -> Any:
        """Call the backend and return the (unwrapped) parsed body.

        Args:
            path: Backend path such as "/feedback"
            method: HTTP method
            body: Request body, JSON-encoded unless raw_body is set
            query: Query parameters; None values are dropped
            headers: Extra headers for this call
            raw_body: Send body unchanged instead of as JSON

        Raises:
            ApiError: The backend answered with a non-2xx status
            requests.exceptions.RequestException: Transport failure
        """
        params = {k: v for k, v in (query or {}).items() if v is not None}
        request_headers = {"Accept": "application/json", **self.default_headers}
        request_headers.update(headers or {})

        kwargs: dict[str, Any] = {
            "params": params or None,
            "headers": request_headers,
            "timeout": self.settings.timeout_seconds,
        }
        if body is not None:
            if raw_body:
                kwargs["data"] = body
            else:
                kwargs["json"] = body

        url = self.build_url(path)
        response = requests.request(method, url, **kwargs)

        if response.status_code == 404 and self.settings.path_prefix:
            fallback_url = self.build_url(path, use_prefix=False)
            logger.warning(
                f"{method} {url} returned 404, retrying without prefix: {fallback_url}"
            )
            response = requests.request(method, fallback_url, **kwargs)

        if not 200 <= response.status_code < 300:
            error = _error_from_response(response)
            logger.debug(f"{method} {path} failed: {error!r}")
            raise error

        payload = _parse_body(response)
        if isinstance(payload, dict) and "data" in payload:
            return payload["data"]
        return payload

    def get(self, path: str, query: dict[str, Any] | None = None, **kwargs) -> Any:
        return self.request(path, method="GET", query=query, **kwargs)

    def post(self, path: str, body: Any = None, **kwargs) -> Any:
        return self.request(path, method="POST", body=body, **kwargs)

    def put(self, path: str, body: Any = None, **kwargs) -> Any:
        return self.request(path, method="PUT", body=body, **kwargs)

    def delete(self, path: str, **kwargs) -> Any:
        return self.request(path, method="DELETE", **kwargs)

    def get_with_fallback(
        self, path: str, fallback: Any, query: dict[str, Any] | None = None
    ) -> Any:
        """GET that returns ``fallback`` instead of raising."""
        try:
            return self.get(path, query=query)
        except (ApiError, requests.exceptions.RequestException) as e:
            logger.warning(f"GET {path} failed, using fallback: {e}")
            return fallback

    def post_with_fallback(self, path: str, body: Any, fallback: Any) -> Any:
        """POST that returns ``fallback`` instead of raising."""
        try:
            return self.post(path, body=body)
        except (ApiError, requests.exceptions.RequestException) as e:
            logger.warning(f"POST {path} failed, using fallback: {e}")
            return fallback
