"""Per-batch progress snapshots."""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .observers import LoadTestObserver, NullLoadTestObserver

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BatchProgress:
    """Cumulative counters after a batch has settled."""

    completed: int
    total: int
    success_count: int
    error_count: int

    @property
    def percent(self) -> float:
        if self.total <= 0:
            return 0.0
        return self.completed / self.total * 100

    def to_event(self) -> Dict[str, Any]:
        return {
            "progress": self.percent,
            "completed": self.completed,
            "total": self.total,
            "successCount": self.success_count,
            "errorCount": self.error_count,
        }


class ProgressReporter:
    """Builds a ``BatchProgress`` and forwards it to the observer.

    Holds no counters of its own; the scheduler passes the cumulative
    values on every call.
    """

    def __init__(self, observer: Optional[LoadTestObserver] = None):
        self.observer = observer or NullLoadTestObserver()

    def report(
        self,
        batch_index: int,
        completed: int,
        total: int,
        success_count: int,
        error_count: int,
    ) -> BatchProgress:
        progress = BatchProgress(
            completed=completed,
            total=total,
            success_count=success_count,
            error_count=error_count,
        )
        logger.debug(f"Load test progress: {progress.percent:.1f}% ({completed}/{total})")
        try:
            self.observer.on_batch_complete(batch_index=batch_index, progress=progress.to_event())
        except Exception as e:
            logger.error(f"Progress observer failed: {e}")
        return progress
