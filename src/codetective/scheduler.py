"""Single-flight detection scheduler.

One cooperative loop drains the task queue, one file at a time, at a fixed
pace. The shared client handle is moved out of its slot before every
suspension point and put back afterwards, so no other code ever observes a
client that is in use.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections import deque
from typing import TYPE_CHECKING

from codetective import config
from codetective.errors import CallError, CallParseError, CodeImportError
from codetective.models import DetectionStatus, Stage, Task
from codetective.providers.base import Classifier

if TYPE_CHECKING:
    from codetective.session import Session

logger = logging.getLogger(__name__)


class NothingToRetry(Exception):
    """Raised when a retry is requested but no file has failed."""


class ClientSlot:
    """Holder for the one classification client, with take/put semantics."""

    def __init__(self, client: Classifier | None = None):
        self._client = client

    def take(self) -> Classifier | None:
        client, self._client = self._client, None
        return client

    def put(self, client: Classifier) -> None:
        self._client = client

    def peek(self) -> Classifier | None:
        return self._client

    def clear(self) -> None:
        self._client = None

    def is_empty(self) -> bool:
        return self._client is None


class TaskQueue:
    """FIFO of tasks not yet dispatched. The scheduler is the only consumer."""

    def __init__(self) -> None:
        self._tasks: deque[Task] = deque()

    def push(self, task: Task) -> None:
        self._tasks.append(task)

    def pop(self) -> Task | None:
        return self._tasks.popleft() if self._tasks else None

    def clear(self) -> None:
        self._tasks.clear()

    def __len__(self) -> int:
        return len(self._tasks)


class DetectionScheduler:
    """Feeds queued files through the classification client.

    Only the scheduler moves a status cell out of ``Flying``. Per-file errors
    are recorded as failures and never stop the loop.
    """

    def __init__(self, session: Session, poll_interval: float | None = None):
        self.session = session
        self.poll_interval = (
            config.POLL_INTERVAL_SECONDS if poll_interval is None else poll_interval
        )
        self._task: asyncio.Task | None = None

    async def run(self) -> None:
        """Run for the lifetime of the session."""
        while True:
            try:
                await self.run_once()
            except Exception:
                logger.exception("Detection loop iteration failed")

    async def run_once(self) -> Task | None:
        """One polling iteration. Returns the task processed, if any."""
        await asyncio.sleep(self.poll_interval)

        task = self.session.queue.pop()
        if task is None:
            return None

        epoch = self.session.epoch
        task.cell.set(DetectionStatus.flying())
        logger.debug("Detecting %s", task.path)

        client = self.session.client_slot.take()
        try:
            status = await self._detect(task, client)
        finally:
            if client is not None:
                self._restore_client(client)

        if self.session.epoch != epoch or self.session.stage is not Stage.CODE_IMPORTED:
            logger.info("Discarding result for %s after workflow rollback", task.path)
            return task

        task.cell.set(status)
        self.session.finished += 1
        if self.session.finished >= len(self.session.results):
            self.session.complete = True
            logger.info("Detection complete for %d file(s)", len(self.session.results))
        return task

    async def _detect(self, task: Task, client: Classifier | None) -> DetectionStatus:
        if client is None:
            return DetectionStatus.failure("no API client available")

        loop = asyncio.get_running_loop()
        try:
            content = await loop.run_in_executor(
                None, task.file.get_content, self.session.code_group.session
            )
        except CodeImportError as exc:
            return DetectionStatus.failure(str(exc))
        except Exception as exc:
            logger.exception("Unexpected failure fetching %s", task.path)
            return DetectionStatus.failure(f"Status error: {exc}")

        try:
            score, rationale = await loop.run_in_executor(None, client.call, content)
        except CallError as exc:
            return DetectionStatus.failure(str(exc))
        except Exception as exc:
            logger.exception("Unexpected failure detecting %s", task.path)
            return DetectionStatus.failure(f"Status error: {exc}")

        try:
            return DetectionStatus.success(score, rationale)
        except (TypeError, ValueError):
            err = CallParseError(f"likelihood is not an integer: {score!r:.50}")
            return DetectionStatus.failure(str(err))

    def _restore_client(self, client: Classifier) -> None:
        # a rollback past provider selection, or a newly selected provider,
        # means this handle is no longer wanted
        if self.session.stage >= Stage.API_PROVIDED and self.session.client_slot.is_empty():
            self.session.client_slot.put(client)
        else:
            logger.debug("Dropping API client after workflow change")

    def retry(self) -> int:
        """Re-queue every failed file. Returns how many were re-queued."""
        if self.session.stage is not Stage.CODE_IMPORTED:
            raise ValueError("no detection pass to retry")

        failed = self.session.results.failed()
        if not failed:
            raise NothingToRetry("no failed files to retry")

        for task in failed:
            task.cell.set(DetectionStatus.pending())
            self.session.queue.push(task)
        self.session.finished -= len(failed)
        self.session.complete = False
        logger.info("Retrying %d failed file(s)", len(failed))
        return len(failed)

    def start(self) -> asyncio.Task:
        """Start the loop as a background task on the running event loop."""
        if self._task is None or self._task.done():
            self._task = asyncio.get_running_loop().create_task(self.run())
        return self._task

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
