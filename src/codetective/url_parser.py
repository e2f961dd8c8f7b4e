"""URL normalization, GitHub repository URL parsing, and URL extensions."""

from __future__ import annotations

from urllib.parse import urlparse

from codetective import config
from codetective.errors import AsciiError, GitHubError, ParseError
from codetective.file_filter import get_extension
from codetective.models import RepoInfo


def normalize_url(url: str) -> str:
    """Validate a user-supplied URL and return it with a scheme.

    A URL without a scheme defaults to ``https://``. Only http and https
    are accepted.
    """
    url = url.strip()
    if not url:
        raise ParseError("URL is empty")
    if not url.isascii():
        raise AsciiError("URL contains non-ASCII characters")

    if "://" not in url:
        url = f"https://{url}"

    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https"):
        raise ParseError(f"unsupported URL scheme: {parsed.scheme}")
    if not parsed.hostname:
        raise ParseError(f"URL has no host: {url}")
    return url


def is_github_url(url: str) -> bool:
    return urlparse(url).hostname == config.GITHUB_HOST


def parse_github_url(url: str) -> RepoInfo:
    """Parse a GitHub repository URL into owner, repo, and optional ref.

    Supported formats:
      - https://github.com/owner/repo
      - https://github.com/owner/repo.git
      - https://github.com/owner/repo/tree/ref

    URLs pointing below the repository root are rejected.
    """
    segs = [s for s in urlparse(url).path.split("/") if s]
    if len(segs) < 2:
        raise GitHubError("repo URL must contain owner and repo name")
    if (len(segs) > 2 and segs[2] != "tree") or len(segs) > 4:
        raise GitHubError("repo URL should not carry path to specific file")

    owner = segs[0]
    repo = segs[1].removesuffix(".git")
    ref = segs[3] if len(segs) == 4 else None
    return RepoInfo(owner=owner, repo=repo, ref=ref)


def url_extension(url: str) -> str:
    """Return the file extension of the last URL path segment."""
    path = urlparse(url).path
    if not path.strip("/"):
        raise ParseError("invalid URL path to raw file")
    ext = get_extension(path)
    if ext is None:
        raise ParseError("file URL missing file extension")
    return ext


def url_file_path(url: str) -> str:
    """Return the URL path without surrounding slashes."""
    return urlparse(url).path.strip("/")
