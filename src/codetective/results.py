"""Per-file detection outcomes: counting, retry selection, and export."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterator

from codetective.file_filter import lang_name_of
from codetective.models import DetectionState, Task

logger = logging.getLogger(__name__)

IN_PROGRESS_MSG = "still in progress"


class FileResults:
    """Append-only ledger of every file registered for detection.

    Unlike the task queue, entries are never consumed; the ledger is the
    read side used for counts, retry selection and export.
    """

    def __init__(self) -> None:
        self._tasks: list[Task] = []

    def add(self, task: Task) -> None:
        self._tasks.append(task)

    def clear(self) -> None:
        self._tasks.clear()

    def __iter__(self) -> Iterator[Task]:
        return iter(self._tasks)

    def __len__(self) -> int:
        return len(self._tasks)

    def counts(self) -> dict[DetectionState, int]:
        counts = {state: 0 for state in DetectionState}
        for task in self._tasks:
            counts[task.cell.status.state] += 1
        return counts

    def failed(self) -> list[Task]:
        return [t for t in self._tasks if t.cell.status.state is DetectionState.FAILURE]


def build_report(results: FileResults) -> dict:
    """Build the exportable report, one entry per tracked file."""
    entries = []
    for task in results:
        status = task.cell.status
        entry = {
            "file": task.path,
            "lang": lang_name_of(task.file.extension),
            "size": task.file.size,
            "finished": status.finished,
        }
        if status.state is DetectionState.SUCCESS:
            entry["likelihood"] = status.score
            entry["reasoning"] = status.rationale
        elif status.state is DetectionState.FAILURE:
            entry["error_msg"] = status.message
        else:
            entry["error_msg"] = IN_PROGRESS_MSG
        entries.append(entry)
    return {"results": entries}


def export_json(results: FileResults, indent: int | None = 2) -> str:
    return json.dumps(build_report(results), indent=indent, ensure_ascii=False)


def write_report(results: FileResults, path: str | Path) -> bool:
    """Write the JSON report to *path*.

    Failures are logged and reported through the return value so the user
    can simply try again.
    """
    try:
        Path(path).write_text(export_json(results), encoding="utf-8")
    except OSError:
        logger.exception("Failed to write detection report to %s", path)
        return False
    logger.info("Wrote detection report for %d file(s) to %s", len(results), path)
    return True
