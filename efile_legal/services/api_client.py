"""
HTTP client for the eFile Legal backend REST API.

Responsibilities:
- Attach the bearer token to every call except login/registration
- Unwrap JSON bodies into ApiResponse objects
- Turn HTTP and transport failures into ApiError carrying the backend message

Notes:
- Uses requests with short timeouts
- Never retries; callers decide how to surface a failure
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests  # type: ignore

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 15

# Paths that must never carry a bearer token
UNAUTHENTICATED_SUFFIXES = ('/register', '/login')


class ApiError(Exception):
    """Raised when the backend rejects a call or cannot be reached."""

    def __init__(self, message: str, status: Optional[int] = None, payload: Any = None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.payload = payload

    @property
    def is_unauthorized(self) -> bool:
        return self.status == 401


@dataclass
class ApiResponse:
    data: Any
    status: int
    status_text: str
    pagination: Optional[Dict[str, Any]] = None
    raw: Any = None

    @property
    def skipped(self) -> bool:
        return self.status == 0


def skipped_response() -> ApiResponse:
    """Response returned in place of a call for a disabled section."""
    return ApiResponse(data=None, status=0, status_text='Method skipped')


class ApiClient:
    def __init__(self, base_url: str, token: Optional[str] = None, timeout: int = DEFAULT_TIMEOUT):
        self.base_url = (base_url or '').rstrip('/')
        self.token = token or None
        self.timeout = timeout

    def _headers(self, path: str) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token and not path.rstrip('/').endswith(UNAUTHENTICATED_SUFFIXES):
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _url(self, path: str) -> str:
        if not path.startswith('/'):
            path = '/' + path
        return f"{self.base_url}{path}"

    @staticmethod
    def _parse_body(resp: Any) -> Any:
        try:
            return resp.json()
        except ValueError:
            return None

    @staticmethod
    def _error_message(resp: Any, body: Any) -> str:
        if isinstance(body, dict):
            message = body.get('message') or body.get('error')
            if message:
                return str(message)
        reason = getattr(resp, 'reason', '') or ''
        return f"Request failed with status {resp.status_code}" + (f": {reason}" if reason else '')

    def request(self, method: str, path: str, json: Any = None, params: Optional[Dict[str, Any]] = None,
                files: Any = None, data: Any = None, raw: bool = False) -> Any:
        """Send a request and return ``(body, response)``.

        ``raw=True`` skips JSON parsing and returns the response bytes as body.
        """
        url = self._url(path)
        try:
            resp = requests.request(
                method,
                url,
                headers=self._headers(path),
                json=json,
                params=params,
                files=files,
                data=data,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error("%s %s failed: %s", method, path, e)
            raise ApiError(f"Unable to reach the server: {e}") from e

        if raw and resp.status_code < 400:
            return resp.content, resp

        body = self._parse_body(resp)
        if resp.status_code >= 400:
            message = self._error_message(resp, body)
            if resp.status_code == 401:
                logger.warning("Unauthorized response for %s %s; token may have expired", method, path)
            raise ApiError(message, status=resp.status_code, payload=body)

        # The backend may rotate tokens on any response
        if isinstance(body, dict):
            token = body.get('token')
            if not token and isinstance(body.get('data'), dict):
                token = body['data'].get('token')
            if token:
                self.token = token
        return body, resp

    def call(self, method: str, path: str, data_key: Optional[str] = 'data', **kwargs: Any) -> ApiResponse:
        """Send a request and wrap the ``data_key`` field of the body in an ApiResponse."""
        body, resp = self.request(method, path, **kwargs)
        if data_key and isinstance(body, dict):
            payload = body.get(data_key)
        else:
            payload = body
        pagination = body.get('pagination') if isinstance(body, dict) else None
        return ApiResponse(
            data=payload,
            status=resp.status_code,
            status_text=getattr(resp, 'reason', '') or '',
            pagination=pagination,
            raw=body,
        )

    def get(self, path: str, **kwargs: Any) -> ApiResponse:
        return self.call('GET', path, **kwargs)

    def post(self, path: str, **kwargs: Any) -> ApiResponse:
        return self.call('POST', path, **kwargs)

    def put(self, path: str, **kwargs: Any) -> ApiResponse:
        return self.call('PUT', path, **kwargs)

    def delete(self, path: str, **kwargs: Any) -> ApiResponse:
        return self.call('DELETE', path, **kwargs)


def expand_path(template: str, **values: str) -> str:
    """Fill ``:name`` placeholders in an endpoint template."""
    path = template
    for name, value in values.items():
        path = path.replace(f":{name}", str(value))
    return path
