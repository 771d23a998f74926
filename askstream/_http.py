"""Thin HTTP client wrapping requests.Session with optional auth and error mapping."""

import logging
from typing import Any

import requests

from ._exceptions import STATUS_MAP, APIError

logger = logging.getLogger(__name__)

SSE_CONTENT_TYPE = "text/event-stream"


def _raise_for_status(resp: requests.Response, *, method: str = "", path: str = "") -> None:
    """Map HTTP error responses to typed transport exceptions."""
    message = f"HTTP error! status: {resp.status_code}"
    request_id = None
    try:
        body = resp.json()
        error_obj = body.get("error", {}) if isinstance(body, dict) else {}
        if not isinstance(error_obj, dict):
            error_obj = {"message": str(error_obj)}
        message = error_obj.get("message", body.get("detail", message))
        request_id = error_obj.get("request_id", body.get("request_id"))
    except (ValueError, AttributeError):
        logger.debug("Failed to parse error body: %s", resp.text[:200] if resp.text else "empty")
        message = resp.text or message

    resp.close()
    exc_cls = STATUS_MAP.get(resp.status_code, APIError)
    raise exc_cls(
        message, status_code=resp.status_code, request_id=request_id, method=method, path=path
    )


class HTTPClient:
    """Minimal streaming HTTP client. Retries are left to the caller."""

    def __init__(self, base_url: str, api_key: str | None = None, timeout: int = 300):
        self._session = requests.Session()
        self._session.headers["Content-Type"] = "application/json"
        self._session.headers["Accept"] = SSE_CONTENT_TYPE
        if api_key:
            self._session.headers["Authorization"] = f"Bearer {api_key}"
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    def stream(self, method: str, path: str, **kwargs: Any) -> requests.Response:
        """
        Send request with stream=True and return the open response.

        Raises:
            TransportError: On connection failure or a non-success status
        """
        url = f"{self._base_url}{path}"
        try:
            resp = self._session.request(
                method, url, timeout=self._timeout, stream=True, **kwargs
            )
        except requests.RequestException as e:
            logger.warning("Request failed: %s %s: %s", method, url, e)
            raise APIError(str(e), status_code=None, method=method, path=url) from e

        if not resp.ok:
            _raise_for_status(resp, method=method, path=url)

        content_type = resp.headers.get("Content-Type", "")
        if content_type and SSE_CONTENT_TYPE not in content_type:
            logger.debug("Unexpected content type for stream: %s", content_type)
        return resp

    def close(self) -> None:
        self._session.close()

