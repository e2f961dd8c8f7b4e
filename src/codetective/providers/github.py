"""GitHub REST API repository lister."""

from __future__ import annotations

import logging
import time
from collections import deque
from dataclasses import dataclass

import requests

from codetective import config
from codetective.errors import GitHubError, ParseError, RateLimitError, StatusError
from codetective.file_filter import is_code_file
from codetective.models import RepoInfo

logger = logging.getLogger(__name__)


@dataclass
class RepoFile:
    """A code blob found in a repository, not yet downloaded."""

    path: str
    raw_url: str
    size: int = 0  # 0 means unknown


class GitHubProvider:
    """Lists code files of a GitHub repository using the REST API.

    File bodies are never downloaded here; each listed file carries a raw
    content URL pinned to the root tree SHA.
    """

    API_BASE = config.GITHUB_API_BASE
    RAW_BASE = config.GITHUB_RAW_BASE

    def __init__(self, token: str | None = None, session: requests.Session | None = None):
        self.session = session or requests.Session()
        self.session.headers["User-Agent"] = config.USER_AGENT
        self.token = token
        self.skipped = 0

    def _headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": config.GITHUB_API_VERSION,
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _api_get(self, path: str, what: str) -> dict:
        url = f"{self.API_BASE}{path}"
        try:
            resp = self.session.get(url, headers=self._headers(), timeout=config.HTTP_TIMEOUT)
        except requests.RequestException as exc:
            raise StatusError(f"{what} failed: {exc}") from exc

        if resp.status_code in (403, 429):
            # probably getting rate limited by GitHub
            reset_at = resp.headers.get("X-RateLimit-Reset", "")
            wait = max(0, int(reset_at) - int(time.time())) if reset_at.isdigit() else None
            hint = f", resets in {wait} seconds" if wait is not None else ""
            raise RateLimitError(
                f"{what} failed with: {resp.status_code}, rate limited?{hint}"
            )
        if resp.status_code == 404:
            raise GitHubError(f"{what} failed with: 404, repo not found or private")
        if not resp.ok:
            raise GitHubError(f"{what} failed with: {resp.status_code}")

        try:
            return resp.json()
        except ValueError as exc:
            raise ParseError(f"{what} returned malformed JSON") from exc

    def get_default_branch(self, repo_info: RepoInfo) -> str:
        data = self._api_get(
            f"/repos/{repo_info.owner}/{repo_info.repo}", "repo metadata query"
        )
        try:
            return data["default_branch"]
        except (KeyError, TypeError) as exc:
            raise ParseError("repo metadata missing default branch") from exc

    def list_code_files(
        self, repo_info: RepoInfo, limit: int = config.MAX_NUM_FILES
    ) -> list[RepoFile]:
        """Breadth-first walk of the repository tree, collecting code blobs.

        Oversized blobs are counted in ``skipped`` and dropped. The walk
        stops as soon as *limit* files have been collected.
        """
        self.skipped = 0
        if limit <= 0:
            return []

        ref = repo_info.ref
        if not ref:
            ref = self.get_default_branch(repo_info)
            repo_info.ref = ref

        owner, repo = repo_info.owner, repo_info.repo
        files: list[RepoFile] = []
        bfs_queue: deque[tuple[str, str]] = deque([("", ref)])
        root_sha = ""

        while bfs_queue:
            dir_path, tree = bfs_queue.popleft()
            data = self._api_get(
                f"/repos/{owner}/{repo}/git/trees/{tree}", "repo URL listing"
            )
            if not isinstance(data, dict) or "tree" not in data:
                raise ParseError("repo tree listing missing 'tree' entries")

            if not root_sha:
                root_sha = data.get("sha", "")
                if not root_sha:
                    raise ParseError("repo tree listing missing root SHA")

            for entry in data["tree"]:
                try:
                    name = entry["path"]
                    entry_type = entry.get("type")
                    sha = entry["sha"]
                    size = int(entry.get("size") or 0)
                except (KeyError, TypeError, ValueError, AttributeError) as exc:
                    raise ParseError("repo tree listing has malformed entry") from exc
                entry_path = f"{dir_path}/{name}" if dir_path else name

                if entry_type == "blob":
                    if not is_code_file(entry_path):
                        continue
                    if size > config.MAX_FILE_SIZE:
                        logger.warning("Skipping %s/%s: %d bytes", repo, entry_path, size)
                        self.skipped += 1
                        continue

                    files.append(
                        RepoFile(
                            path=f"{repo}/{entry_path}",
                            raw_url=f"{self.RAW_BASE}/{owner}/{repo}/{root_sha}/{entry_path}",
                            size=size,
                        )
                    )
                    if len(files) >= limit:
                        return files

                elif entry_type == "tree":
                    bfs_queue.append((entry_path, sha))

                # submodules ("commit") are ignored

        if not files:
            raise GitHubError(f"repo '{repo}' does not contain any code files")
        return files
