"""Data classes for codetective."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from urllib.parse import urlparse

import requests

from codetective import config
from codetective.errors import StatusError
from codetective.file_filter import get_extension


class Stage(IntEnum):
    """Where the workflow is. Ordered: later stages compare greater."""

    INITIAL = 0
    API_PROVIDED = 1
    CODE_IMPORTED = 2


@dataclass
class LocalFile:
    """Code file whose content is already in memory."""

    extension: str
    content: str

    @property
    def size(self) -> int | None:
        return len(self.content.encode("utf-8"))

    def get_content(self, session: requests.Session | None = None) -> str:
        return self.content


@dataclass
class RemoteFile:
    """URL to a raw code file. Content is fetched on demand."""

    url: str
    approx_size: int = 0  # 0 means unknown

    @property
    def size(self) -> int | None:
        return self.approx_size or None

    @property
    def extension(self) -> str | None:
        return get_extension(urlparse(self.url).path)

    def get_content(self, session: requests.Session | None = None) -> str:
        session = session or requests.Session()
        try:
            resp = session.get(self.url, timeout=config.HTTP_TIMEOUT)
        except requests.RequestException as exc:
            raise StatusError(f"file content fetch failed: {exc}") from exc

        if not resp.ok:
            # probably network error or authorization failure
            raise StatusError(
                f"file content fetch failed with {resp.status_code}: {resp.text}"
            )
        return resp.text


CodeFile = LocalFile | RemoteFile


@dataclass
class UploadedFile:
    """A user-supplied file: its name and raw bytes."""

    name: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


class DetectionState(Enum):
    PENDING = "pending"
    FLYING = "flying"
    SUCCESS = "success"
    FAILURE = "failure"


@dataclass(frozen=True)
class DetectionStatus:
    state: DetectionState
    score: int | None = None
    rationale: str = ""
    message: str = ""

    @classmethod
    def pending(cls) -> DetectionStatus:
        return cls(DetectionState.PENDING)

    @classmethod
    def flying(cls) -> DetectionStatus:
        return cls(DetectionState.FLYING)

    @classmethod
    def success(cls, score: int, rationale: str) -> DetectionStatus:
        return cls(DetectionState.SUCCESS, score=min(max(int(score), 0), 100), rationale=rationale)

    @classmethod
    def failure(cls, message: str) -> DetectionStatus:
        return cls(DetectionState.FAILURE, message=message)

    @property
    def finished(self) -> bool:
        return self.state in (DetectionState.SUCCESS, DetectionState.FAILURE)


# Allowed transitions of the per-file state machine
_TRANSITIONS: dict[DetectionState, frozenset[DetectionState]] = {
    DetectionState.PENDING: frozenset({DetectionState.FLYING}),
    DetectionState.FLYING: frozenset({DetectionState.SUCCESS, DetectionState.FAILURE}),
    DetectionState.SUCCESS: frozenset(),
    DetectionState.FAILURE: frozenset({DetectionState.PENDING}),
}


class StatusCell:
    """Shared, mutable holder of one file's detection status."""

    def __init__(self, status: DetectionStatus | None = None):
        self._status = status or DetectionStatus.pending()

    @property
    def status(self) -> DetectionStatus:
        return self._status

    def set(self, status: DetectionStatus) -> None:
        """Move to *status*, refusing transitions the state machine forbids."""
        if status.state not in _TRANSITIONS[self._status.state]:
            raise ValueError(
                f"illegal status transition {self._status.state.value} -> {status.state.value}"
            )
        self._status = status

    def __repr__(self) -> str:
        return f"StatusCell({self._status!r})"


@dataclass
class Task:
    """One unit of detection work: a file and its status cell."""

    path: str
    file: CodeFile
    cell: StatusCell


@dataclass
class RepoInfo:
    owner: str
    repo: str
    ref: str | None = None
