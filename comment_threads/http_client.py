from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Optional

import requests

from comment_threads.errors import (
    RegistryAuth,
    RegistryError,
    RegistryRateLimited,
    RegistryRejected,
    RegistryUnavailable,
)

logger = logging.getLogger(__name__)

GITHUB_MEDIA_TYPE = "application/vnd.github+json"
GITHUB_API_VERSION = "2022-11-28"


@dataclass(frozen=True)
class HttpConfig:
    timeout_sec: float
    user_agent: str
    token: str = field(default="", repr=False)


class HttpClient:
    """
    Thin HTTP client wrapper for the tracker's JSON API:
    - Timeout
    - Bearer credential, fixed for the lifetime of the client
    - Maps transport errors and error statuses onto RegistryError subclasses

    No retry and no caching: every call is one live request.
    """

    def __init__(self, config: HttpConfig, session: Optional[requests.Session] = None):
        self._cfg = config
        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "User-Agent": self._cfg.user_agent,
                "Accept": GITHUB_MEDIA_TYPE,
                "X-GitHub-Api-Version": GITHUB_API_VERSION,
            }
        )
        if self._cfg.token:
            self._session.headers["Authorization"] = f"Bearer {self._cfg.token}"

    def get_page(self, url: str, params: Optional[dict[str, Any]] = None) -> tuple[Any, Optional[str]]:
        """
        GET one page of a JSON listing.

        Returns:
            (decoded body, URL of the next page or None)

        Raises:
            RegistryError subclasses, see _raise_for_status.
        """
        resp = self._send("GET", url, params=params)
        next_url = resp.links.get("next", {}).get("url")
        return self._decode(resp, url), next_url

    def post_json(self, url: str, payload: dict[str, Any]) -> Any:
        resp = self._send("POST", url, json=payload)
        return self._decode(resp, url)

    def _send(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        try:
            resp = self._session.request(method, url, timeout=self._cfg.timeout_sec, **kwargs)
        except requests.Timeout as e:
            logger.error("HTTP %s timed out: url=%s timeout=%.1fs", method, url, self._cfg.timeout_sec)
            raise RegistryUnavailable(f"{method} {url} timed out after {self._cfg.timeout_sec}s") from e
        except requests.RequestException as e:
            logger.error("HTTP %s failed: url=%s err=%s", method, url, e)
            raise RegistryUnavailable(f"{method} {url} failed: {e}") from e

        logger.debug("HTTP %s %s -> %s", method, url, resp.status_code)
        if resp.status_code >= 400:
            err = _classify_error(resp, method, url)
            logger.error("HTTP %s rejected: url=%s status=%s kind=%s", method, url, resp.status_code, err.kind)
            raise err
        return resp

    @staticmethod
    def _decode(resp: requests.Response, url: str) -> Any:
        try:
            return resp.json()
        except ValueError as e:
            raise RegistryUnavailable(
                f"Unreadable JSON from {url} (status={resp.status_code})",
                status=resp.status_code,
            ) from e


def _classify_error(resp: requests.Response, method: str, url: str) -> RegistryError:
    status = resp.status_code
    detail = _error_detail(resp)
    message = f"{method} {url} -> {status}: {detail}" if detail else f"{method} {url} -> {status}"

    if status == 429 or (status == 403 and _is_throttled(resp, detail)):
        return RegistryRateLimited(message, status=status, retry_after=_retry_after(resp))
    if status in (401, 403):
        return RegistryAuth(message, status=status)
    # GitHub answers 404 for repositories the credential cannot see.
    if status == 404:
        return RegistryAuth(message + " (project missing or not accessible with this token)", status=status)
    if status >= 500:
        return RegistryUnavailable(message, status=status)
    return RegistryRejected(message, status=status)


def _is_throttled(resp: requests.Response, detail: str) -> bool:
    if resp.headers.get("X-RateLimit-Remaining") == "0":
        return True
    if "Retry-After" in resp.headers:
        return True
    return "rate limit" in detail.lower()


def _retry_after(resp: requests.Response) -> Optional[float]:
    raw = resp.headers.get("Retry-After")
    if raw is not None:
        try:
            return float(raw)
        except ValueError:
            return None

    reset = resp.headers.get("X-RateLimit-Reset")
    if reset is not None:
        try:
            return max(0.0, float(reset) - time.time())
        except ValueError:
            return None
    return None


def _error_detail(resp: requests.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text.strip()[:200]

    if not isinstance(body, dict):
        return ""
    detail = str(body.get("message", ""))
    # Validation failures list the offending fields separately
    errors = body.get("errors")
    if isinstance(errors, list) and errors:
        parts = []
        for e in errors:
            if isinstance(e, dict):
                parts.append(str(e.get("message") or f"{e.get('field')} {e.get('code')}"))
            else:
                parts.append(str(e))
        detail = f"{detail} ({'; '.join(parts)})"
    return detail
