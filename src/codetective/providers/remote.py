"""Single remote file probing with metadata-only requests."""

from __future__ import annotations

import logging
from urllib.parse import urljoin

import requests

from codetective import config
from codetective.errors import ExtenError, LimitError, StatusError
from codetective.file_filter import is_code_extension
from codetective.url_parser import url_extension, url_file_path

logger = logging.getLogger(__name__)

_HTML_TYPES = ("text/html", "application/xhtml")


def _head(session: requests.Session, url: str) -> requests.Response:
    try:
        return session.head(url, allow_redirects=False, timeout=config.HTTP_TIMEOUT)
    except requests.RequestException as exc:
        raise StatusError(f"URL check failed: {exc}") from exc


def _follow_redirect(
    session: requests.Session, url: str, resp: requests.Response
) -> tuple[str, requests.Response]:
    """Follow at most one redirect hop, returning the final URL and response."""
    if not 300 <= resp.status_code < 400:
        return url, resp

    location = resp.headers.get("Location")
    if not location:
        raise StatusError("got redirection response but bad location")

    # relative locations resolve against the request URL
    redirect_url = urljoin(url, location)
    logger.warning("URL redirecting to '%s'...", redirect_url)
    return redirect_url, _head(session, redirect_url)


def head_single_file(
    session: requests.Session, url: str
) -> tuple[str, str, int] | None:
    """Check whether *url* points to a single raw code file.

    Returns ``(path, final_url, approx_size)`` for a file, or None when the
    URL looks like a web page rather than a file. ``approx_size`` is 0 when
    the server does not report a length.
    """
    final_url, resp = _follow_redirect(session, url, _head(session, url))

    # a second redirect is not followed
    if not 200 <= resp.status_code < 300:
        raise StatusError(f"URL check failed with: {resp.status_code}: {resp.text}")

    # Content-Type should be present for files
    content_type = resp.headers.get("Content-Type")
    if not content_type or any(t in content_type for t in _HTML_TYPES):
        return None

    approx_size = 0
    length = resp.headers.get("Content-Length", "")
    if length.isdigit():
        approx_size = int(length)
        if approx_size > config.MAX_FILE_SIZE:
            raise LimitError(
                f"remote file too large ({approx_size // 1024}KB >= max "
                f"{config.MAX_FILE_SIZE // 1024}KB)"
            )

    ext = url_extension(final_url)
    if not is_code_extension(ext):
        raise ExtenError(f"file extension '{ext}' is not code")
    return url_file_path(final_url), final_url, approx_size
