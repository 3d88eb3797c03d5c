"""Assistants API transport: one requests.Session, typed errors, bounded retries."""

import logging
import time
from typing import Any

import requests

from ._exceptions import STATUS_MAP, APIError

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 3
BACKOFF_BASE = 0.5  # seconds, doubled per attempt
RETRY_ON = frozenset({429, 500, 502, 503, 504})


def _backoff(attempt: int) -> float:
    return BACKOFF_BASE * (2**attempt)


def _retry_delay(resp: requests.Response, attempt: int) -> float:
    """Seconds to wait before the next attempt; honours Retry-After on 429."""
    header = resp.headers.get("Retry-After")
    if resp.status_code != 429 or not header:
        return _backoff(attempt)
    try:
        return float(header)
    except ValueError:
        logger.debug("Ignoring Retry-After value %r", header)
        return _backoff(attempt)


def _error_message(resp: requests.Response) -> str:
    # {"error": {"message", "type", "param", "code"}}, or plain text from a proxy
    try:
        body = resp.json()
    except ValueError:
        return resp.text or f"HTTP {resp.status_code}"
    if not isinstance(body, dict):
        return resp.text or f"HTTP {resp.status_code}"
    error = body.get("error")
    if isinstance(error, dict) and error.get("message"):
        return error["message"]
    return body.get("detail") or f"HTTP {resp.status_code}"


def _raise_for_status(resp: requests.Response, *, method: str = "", path: str = "") -> None:
    """Raise the exception class registered for the response status."""
    message = _error_message(resp)
    request_id = resp.headers.get("x-request-id")
    resp.close()
    exc_cls = STATUS_MAP.get(resp.status_code, APIError)
    raise exc_cls(message, status_code=resp.status_code, request_id=request_id, method=method, path=path)


class HTTPClient:
    """
    Sends Assistants API requests.

    Every request carries the bearer key and the ``OpenAI-Beta: assistants=v2``
    header. Connection failures, 429 and 5xx responses are retried with
    exponential backoff; any other error status raises at once.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str,
        timeout: float = 300,
        organization: str | None = None,
    ):
        headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
            "OpenAI-Beta": "assistants=v2",
        }
        if organization:
            headers["OpenAI-Organization"] = organization
        self._session = requests.Session()
        self._session.headers.update(headers)
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    def _send(self, method: str, path: str, *, stream: bool = False, **kwargs: Any) -> requests.Response:
        url = f"{self._base_url}{path}"
        for attempt in range(MAX_ATTEMPTS):
            last = attempt == MAX_ATTEMPTS - 1
            try:
                resp = self._session.request(method, url, timeout=self._timeout, stream=stream, **kwargs)
            except (requests.Timeout, requests.ConnectionError) as e:
                logger.warning("%s %s failed on attempt %d of %d: %s", method, path, attempt + 1, MAX_ATTEMPTS, e)
                if last:
                    raise APIError(str(e), status_code=None, method=method, path=url) from e
                time.sleep(_backoff(attempt))
                continue

            if resp.ok:
                return resp
            if last or resp.status_code not in RETRY_ON:
                _raise_for_status(resp, method=method, path=url)

            delay = _retry_delay(resp, attempt)
            resp.close()
            logger.debug("%s %s returned %d, retrying in %.1fs", method, path, resp.status_code, delay)
            time.sleep(delay)
        raise APIError("Retries exhausted", status_code=None, method=method, path=url)

    def request(self, method: str, path: str, **kwargs: Any) -> requests.Response:
        """Send a request and return the successful response."""
        return self._send(method, path, **kwargs)

    def stream(self, method: str, path: str, **kwargs: Any) -> requests.Response:
        """Open an event-stream response; the caller owns closing it."""
        headers = {"Accept": "text/event-stream", **kwargs.pop("headers", {})}
        return self._send(method, path, stream=True, headers=headers, **kwargs)

    def close(self) -> None:
        self._session.close()
