from pathlib import Path
from typing import Optional

import requests

from ..config import FETCH_TIMEOUT_MS, USER_AGENT


class FetchError(RuntimeError):
    """Raised when a catalog page cannot be retrieved."""

    def __init__(self, message: str, status_code: Optional[int] = None, reason: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.reason = reason


class FetchTimeoutError(FetchError):
    """Raised when the server does not answer within the timeout."""


def fetch_html(url: str, timeout_ms: int = FETCH_TIMEOUT_MS) -> str:
    """GET `url` and return the body text. No retries."""
    try:
        resp = requests.get(url, headers={"User-Agent": USER_AGENT}, timeout=timeout_ms / 1000.0)
    except requests.Timeout as exc:
        raise FetchTimeoutError(f"Fetch timed out after {timeout_ms} ms: {url}") from exc
    except requests.RequestException as exc:
        raise FetchError(f"Fetch failed: {exc}") from exc

    if not 200 <= resp.status_code < 300:
        raise FetchError(
            f"Fetch failed: {resp.status_code} {resp.reason}",
            status_code=resp.status_code,
            reason=resp.reason,
        )
    return resp.text or ""


def load_html(path_or_str: str) -> str:
    p = Path(path_or_str)
    return p.read_text(encoding="utf-8")
