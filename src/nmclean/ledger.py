"""Bookkeeping of deletions from request to outcome."""

from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel

from nmclean.models import DeletionLog, ItemCounter


class Stage(str, Enum):
    QUEUED = "queued"
    CURRENT = "current"
    HISTORY = "history"
    FAILED = "failed"


class LedgerRecord(BaseModel):
    path: Path
    size: int
    stage: Stage
    error: Optional[str] = None


class ActionLedger:
    """
    Tracks every deletion request by path.

    Each path is in exactly one stage at a time; the queued, current,
    history and failed buckets are views over that single map. Moves are
    only accepted along queued -> current -> history | failed, and the
    running counters move with them.
    """

    def __init__(self):
        self._records: dict[Path, LedgerRecord] = {}
        self.log = DeletionLog()

    def _bucket(self, stage: Stage) -> list[LedgerRecord]:
        return [record for record in self._records.values() if record.stage == stage]

    @property
    def queued(self) -> list[LedgerRecord]:
        return self._bucket(Stage.QUEUED)

    @property
    def current(self) -> list[LedgerRecord]:
        return self._bucket(Stage.CURRENT)

    @property
    def history(self) -> list[LedgerRecord]:
        return self._bucket(Stage.HISTORY)

    @property
    def failed(self) -> list[LedgerRecord]:
        return self._bucket(Stage.FAILED)

    @property
    def queued_counter(self) -> ItemCounter:
        counter = ItemCounter()
        for record in self.queued:
            counter.add(record.size)
        return counter

    def stage_of(self, path: Path) -> Stage | None:
        record = self._records.get(Path(path))
        return record.stage if record else None

    def queue(self, path: Path, size: int) -> bool:
        """Record a deletion request. Rejected while the path is queued or in flight."""
        path = Path(path)
        if self.stage_of(path) in (Stage.QUEUED, Stage.CURRENT):
            return False
        self._records[path] = LedgerRecord(path=path, size=size, stage=Stage.QUEUED)
        return True

    def start(self, path: Path, size: int) -> bool:
        """Move a request to current. Requests that skipped the queue are accepted."""
        path = Path(path)
        if self.stage_of(path) == Stage.CURRENT:
            return False
        self._records[path] = LedgerRecord(path=path, size=size, stage=Stage.CURRENT)
        self.log.started(size)
        return True

    def finish(self, path: Path) -> bool:
        """Move a current request to history."""
        record = self._records.get(Path(path))
        if record is None or record.stage != Stage.CURRENT:
            return False
        if not self.log.finished(record.size):
            return False
        record.stage = Stage.HISTORY
        return True

    def fail(self, path: Path, error: str) -> bool:
        """Move a current request to failed, keeping the error."""
        record = self._records.get(Path(path))
        if record is None or record.stage != Stage.CURRENT:
            return False
        if not self.log.failed_with(record.size):
            return False
        record.stage = Stage.FAILED
        record.error = error
        return True
