"""HTTP client utilities with consistent user agent."""

import re
import time
from typing import Optional

import requests

from .exceptions import FetchError
from .logging_config import logger

_GITHUB_BLOB_RE = re.compile(r"^https?://github\.com/([^/]+)/([^/]+)/blob/(.+)$")


def _get_package_version() -> str:
    """Get the package version for User-Agent header."""
    from . import __version__

    return __version__


USER_AGENT = f"sbomqs/{_get_package_version()}"


def get_default_headers(content_type: Optional[str] = None) -> dict:
    """
    Get default HTTP headers with user agent.

    Args:
        content_type: Optional Accept header value (e.g., "application/json")

    Returns:
        Dictionary of HTTP headers
    """
    headers = {"User-Agent": USER_AGENT}
    if content_type:
        headers["Accept"] = content_type
    return headers


def is_url(value: str) -> bool:
    return value.startswith("http://") or value.startswith("https://")


def to_raw_url(url: str) -> str:
    """Rewrite a GitHub ``blob`` page URL to its raw content URL.

    Example:
        >>> to_raw_url("https://github.com/acme/app/blob/main/sbom.json")
        'https://raw.githubusercontent.com/acme/app/main/sbom.json'
    """
    match = _GITHUB_BLOB_RE.match(url)
    if match is None:
        return url
    owner, repo, path = match.groups()
    return f"https://raw.githubusercontent.com/{owner}/{repo}/{path}"


def fetch_sbom(url: str, timeout: int = 60, retries: int = 3, backoff: float = 1.0) -> bytes:
    """
    Download an SBOM over HTTP(S).

    Connection errors, timeouts and 5xx responses are retried; other HTTP
    errors fail immediately.

    Args:
        url: Document URL. GitHub blob URLs are rewritten to raw URLs.
        timeout: Per-request timeout in seconds
        retries: Total number of attempts
        backoff: Base delay in seconds, doubled after every failed attempt

    Returns:
        Response body.

    Raises:
        FetchError: If the document cannot be downloaded.
    """
    target = to_raw_url(url)
    if target != url:
        logger.debug(f"Rewrote GitHub URL {url} -> {target}")

    last_error: Optional[Exception] = None
    for attempt in range(1, max(retries, 1) + 1):
        try:
            response = requests.get(target, headers=get_default_headers(), timeout=timeout)
        except (requests.exceptions.ConnectionError, requests.exceptions.Timeout) as e:
            last_error = e
            logger.warning(f"Fetching {target} failed (attempt {attempt}/{retries}): {e}")
        else:
            if response.ok:
                logger.debug(f"Fetched {len(response.content)} bytes from {target}")
                return response.content
            if response.status_code < 500:
                raise FetchError(f"Failed to fetch {target}: HTTP {response.status_code}")
            last_error = FetchError(f"HTTP {response.status_code}")
            logger.warning(f"Fetching {target} returned HTTP {response.status_code} (attempt {attempt}/{retries})")

        if attempt < retries:
            time.sleep(backoff * 2 ** (attempt - 1))

    raise FetchError(f"Failed to fetch {target} after {retries} attempt(s): {last_error}")
