"""Workflow state for one analysis session.

All stage changes go through ``advance`` and ``step_back`` so the
invariants between stages are checked in one place.
"""

from __future__ import annotations

import logging

from codetective.code_group import CodeGroup
from codetective.models import DetectionStatus, Stage, StatusCell, Task
from codetective.providers.base import Classifier
from codetective.results import FileResults
from codetective.scheduler import ClientSlot, DetectionScheduler, TaskQueue

logger = logging.getLogger(__name__)


class Session:
    """Owns the code group, the client slot, the queue and the results."""

    def __init__(self, code_group: CodeGroup | None = None, poll_interval: float | None = None):
        self.stage = Stage.INITIAL
        # bumped on every rollback past code import; in-flight results from an
        # older epoch are discarded
        self.epoch = 0
        self.code_group = code_group or CodeGroup()
        self.client_slot = ClientSlot()
        self.queue = TaskQueue()
        self.results = FileResults()
        self.finished = 0
        self.complete = False
        self.scheduler = DetectionScheduler(self, poll_interval=poll_interval)

    def provide_client(self, client: Classifier) -> None:
        """Install a new classification client and move past provider selection."""
        if self.stage >= Stage.CODE_IMPORTED:
            raise ValueError("step back before selecting another provider")
        self.client_slot.put(client)
        self.advance(Stage.API_PROVIDED)

    def finish_import(self) -> int:
        """Register every imported file for detection. Returns the file count."""
        self.advance(Stage.CODE_IMPORTED)
        return len(self.results)

    def advance(self, stage: Stage) -> None:
        if stage == self.stage:
            return
        if stage < self.stage:
            raise ValueError(f"cannot advance backwards to {stage.name}")
        if stage - self.stage > 1:
            raise ValueError(f"cannot skip from {self.stage.name} to {stage.name}")

        if stage is Stage.API_PROVIDED and self.client_slot.is_empty():
            raise ValueError("no API client provided")
        if stage is Stage.CODE_IMPORTED:
            if self.code_group.num_files() == 0:
                raise ValueError("no code files imported")
            self._register_files()

        logger.info("Workflow stage %s -> %s", self.stage.name, stage.name)
        self.stage = stage

    def step_back(self, stage: Stage) -> None:
        """Roll the workflow back to *stage*, clearing what later stages built.

        A detection call already in flight is left to finish; its result is
        discarded when it comes back.
        """
        if stage > self.stage:
            raise ValueError(f"cannot step back forwards to {stage.name}")

        if stage < Stage.CODE_IMPORTED:
            self.queue.clear()
            self.results.clear()
            self.finished = 0
            self.complete = False
            self.code_group.reset()
            self.epoch += 1
        if stage < Stage.API_PROVIDED:
            self.client_slot.clear()

        if stage != self.stage:
            logger.info("Workflow stage %s -> %s", self.stage.name, stage.name)
        self.stage = stage

    def _register_files(self) -> None:
        self.queue.clear()
        self.results.clear()
        self.finished = 0
        self.complete = False
        for path, file in self.code_group.sorted_files():
            task = Task(path, file, StatusCell(DetectionStatus.pending()))
            self.queue.push(task)
            self.results.add(task)
