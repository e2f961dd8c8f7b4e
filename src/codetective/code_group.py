"""Registry of imported code files, independent of where they came from."""

from __future__ import annotations

import logging

import requests

from codetective import config, token_store
from codetective.archives import decoder_for
from codetective.errors import ExistsError, LimitError, ParseError, UploadError
from codetective.file_filter import get_extension, is_code_extension
from codetective.models import CodeFile, LocalFile, RemoteFile, UploadedFile
from codetective.providers.github import GitHubProvider
from codetective.providers.remote import head_single_file
from codetective.url_parser import is_github_url, normalize_url, parse_github_url

logger = logging.getLogger(__name__)

TEXTBOX_PATH = "code from the textbox"
TEXTBOX_EXTENSION = "textbox"
GITHUB_TOKEN_KEY = "github_token"


class CodeGroup:
    """Owns every imported file, keyed by unique path.

    Imports are additive: each call may add many files and never removes
    any. Only ``reset()`` clears the group. The file count never exceeds
    ``MAX_NUM_FILES``; producers are handed the remaining budget and stop
    listing once it is used up.
    """

    def __init__(
        self,
        session: requests.Session | None = None,
        github_token: str | None = None,
    ):
        self.session = session or requests.Session()
        self.session.headers["User-Agent"] = config.USER_AGENT
        token = github_token or config.GITHUB_TOKEN or token_store.load(GITHUB_TOKEN_KEY)
        self.github = GitHubProvider(token=token, session=self.session)
        self._files: dict[str, CodeFile] = {}
        self.skipped = False

    # --- read accessors ---

    def num_files(self) -> int:
        return len(self._files)

    def remaining(self) -> int:
        """Number of files that can still be admitted under the cap."""
        return max(0, config.MAX_NUM_FILES - len(self._files))

    def has_skipped(self) -> bool:
        return self.skipped

    def total_size(self) -> int | None:
        """Approximate total size in bytes, or None if any size is unknown."""
        total = 0
        for file in self._files.values():
            size = file.size
            if size is None:
                return None
            total += size
        return total

    def sorted_files(self) -> list[tuple[str, CodeFile]]:
        return sorted(self._files.items(), key=lambda item: item[0])

    def get(self, path: str) -> CodeFile | None:
        return self._files.get(path)

    def __contains__(self, path: str) -> bool:
        return path in self._files

    def __len__(self) -> int:
        return len(self._files)

    # --- mutation ---

    def set_github_token(self, token: str | None, remember: bool = False) -> None:
        """Use *token* for GitHub API calls, optionally saving it to the keychain."""
        self.github.token = token or None
        if remember and token:
            token_store.save(GITHUB_TOKEN_KEY, token)

    def forget_github_token(self) -> bool:
        self.github.token = None
        return token_store.delete(GITHUB_TOKEN_KEY)

    def reset(self) -> None:
        self._files.clear()
        self.skipped = False

    def _add_file(self, path: str, file: CodeFile) -> None:
        if path in self._files:
            raise ExistsError(f"file name '{path}' already exists")
        self._files[path] = file

    def import_textbox(self, content: str) -> None:
        """Import pasted code as a single file under a fixed path."""
        if not content or not content.strip():
            raise ParseError("textbox content is empty")
        if self.remaining() == 0:
            logger.warning("Code group full; ignoring textbox content")
            return
        self._add_file(TEXTBOX_PATH, LocalFile(TEXTBOX_EXTENSION, content))

    def import_upload(self, uploads: list[UploadedFile]) -> None:
        """Import uploaded files.

        A single upload is first tried as an archive; otherwise every upload
        is taken as a standalone code file, filtered by extension.
        """
        for upload in uploads:
            if not upload.name:
                raise ParseError("encountered empty file name")
        if self.remaining() == 0:
            logger.warning("Code group full; ignoring %d uploaded file(s)", len(uploads))
            return

        if len(uploads) == 1:
            entries = self._extract_archive(uploads[0])
            if entries is not None:
                for path, file in entries:
                    self._add_file(path, file)
                return

        entries = self._list_upload_files(uploads)
        if not entries:
            raise UploadError("uploaded files do not contain any code files")
        for path, file in entries:
            self._add_file(path, file)

    def import_remote(self, url: str) -> None:
        """Import a GitHub repository or a single raw file by URL."""
        url = normalize_url(url)
        if self.remaining() == 0:
            logger.warning("Code group full; ignoring %s", url)
            return

        # first try as URL to a GitHub repo
        if is_github_url(url):
            repo_info = parse_github_url(url)
            try:
                repo_files = self.github.list_code_files(repo_info, limit=self.remaining())
            finally:
                if self.github.skipped:
                    self.skipped = True
            for repo_file in repo_files:
                self._add_file(repo_file.path, RemoteFile(repo_file.raw_url, repo_file.size))
            return

        # then try as URL to a single raw file
        try:
            found = head_single_file(self.session, url)
        except LimitError:
            self.skipped = True
            raise
        if found is not None:
            path, final_url, approx_size = found
            self._add_file(path, RemoteFile(final_url, approx_size))
            return

        raise ParseError("URL not pointing to raw file or GitHub repo")

    # --- helpers ---

    def _extract_archive(self, upload: UploadedFile) -> list[tuple[str, LocalFile]] | None:
        """Decode *upload* as an archive, or return None if it is not one."""
        decoder = decoder_for(upload.name)
        if decoder is None:
            return None

        try:
            entries = [
                (entry.path, LocalFile(entry.extension, entry.content))
                for entry in decoder.decode(upload.data, limit=self.remaining())
            ]
        finally:
            if decoder.skipped:
                self.skipped = True

        if not entries:
            raise UploadError("uploaded archive does not contain any code files")
        logger.info("Extracted %d code file(s) from %s", len(entries), upload.name)
        return entries

    def _list_upload_files(self, uploads: list[UploadedFile]) -> list[tuple[str, LocalFile]]:
        entries: list[tuple[str, LocalFile]] = []
        limit = self.remaining()

        for upload in uploads:
            ext = get_extension(upload.name)
            if not is_code_extension(ext):
                continue
            if upload.size > config.MAX_FILE_SIZE:
                logger.warning("Skipping %s: %d bytes", upload.name, upload.size)
                self.skipped = True
                continue

            try:
                content = upload.data.decode("utf-8")
            except UnicodeDecodeError as exc:
                raise UploadError(f"file '{upload.name}' is not valid UTF-8 text") from exc
            entries.append((upload.name, LocalFile(ext, content)))

            if len(entries) >= limit:
                break

        return entries
