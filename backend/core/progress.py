"""
Progress tracking for long-running summarization jobs.
Polled by the progress endpoint; nothing is pushed to clients.
"""
import logging
import time
from dataclasses import dataclass, replace
from typing import Callable, Dict, Optional

from core.config import PROGRESS_MAX_JOBS, PROGRESS_STALE_SECONDS

logger = logging.getLogger(__name__)

TIMEOUT_STAGE = "Processing timed out. Please try again."
COMPLETE_STAGE = "Complete"
FAILED_STAGE = "Failed"
TERMINAL_STAGES = (COMPLETE_STAGE, FAILED_STAGE)


@dataclass
class ProgressState:
    """Snapshot of a job's progress."""
    stage: str = ""
    processed_chunks: int = 0
    total_chunks: int = 0
    last_updated: float = 0.0
    error: Optional[str] = None

    @property
    def finished(self) -> bool:
        return self.stage in TERMINAL_STAGES


class ProgressTracker:
    """
    Per-job progress store with staleness detection.

    Entries not updated within stale_after_seconds are swept whenever a job
    starts, and at most max_jobs entries are kept (least recently updated
    go first). Finished jobs stay readable until swept.
    """

    def __init__(
        self,
        stale_after_seconds: float = PROGRESS_STALE_SECONDS,
        max_jobs: int = PROGRESS_MAX_JOBS,
        clock: Callable[[], float] = time.time,
    ):
        self.stale_after_seconds = stale_after_seconds
        self.max_jobs = max_jobs
        self.clock = clock
        self._states: Dict[str, ProgressState] = {}

    def start(self, job_id: str, total_chunks: int = 0, stage: str = "Starting") -> ProgressState:
        self.evict_expired()
        state = ProgressState(
            stage=stage,
            processed_chunks=0,
            total_chunks=total_chunks,
            last_updated=self.clock(),
        )
        self._store(job_id, state)
        return state

    def update(self, job_id: str, **fields) -> ProgressState:
        """Merge fields into the job's state and stamp it."""
        current = self._states.get(job_id, ProgressState())
        state = replace(current, **fields, last_updated=self.clock())
        self._store(job_id, state)
        return state

    def get(self, job_id: str) -> ProgressState:
        """Return the job's state; a stale in-flight state is reset and reported as a timeout."""
        state = self._states.get(job_id)
        if state is None:
            return ProgressState()

        if state.finished:
            return state

        if self._is_stale(state) and state.stage:
            logger.warning(f"Progress for job {job_id} is stale; resetting")
            self.reset(job_id)
            return ProgressState(stage=TIMEOUT_STAGE, error="timeout")

        return state

    def evict_expired(self) -> int:
        """Drop every entry not updated within the staleness window. Returns the number removed."""
        expired = [job_id for job_id, state in self._states.items() if self._is_stale(state)]
        for job_id in expired:
            del self._states[job_id]
        if expired:
            logger.debug(f"Evicted {len(expired)} expired progress entries")
        return len(expired)

    def reset(self, job_id: str) -> None:
        self._states.pop(job_id, None)

    def _is_stale(self, state: ProgressState) -> bool:
        return self.clock() - state.last_updated > self.stale_after_seconds

    def _store(self, job_id: str, state: ProgressState) -> None:
        # Re-inserting keeps dict order equal to update order
        self._states.pop(job_id, None)
        while len(self._states) >= self.max_jobs:
            oldest = next(iter(self._states))
            del self._states[oldest]
        self._states[job_id] = state

    def __len__(self) -> int:
        return len(self._states)
