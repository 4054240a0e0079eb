"""Background execution of match runs for interactive hosts.

The matcher itself is synchronous.  :class:`BackgroundMatcher` runs it on a
worker thread and hands the outcome back through a queue the host polls,
mirroring how a UI keeps rendering progress while the cross product runs.
A run cannot be interrupted; :meth:`BackgroundMatcher.discard` only makes
sure its result is dropped.
"""

from __future__ import annotations

import logging
import queue
import threading
import traceback
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from .matching import Scorer, match_items
from .models import MatchEdge, ObservedItem, ReferenceItem
from .similarity import calculate_similarity

LOGGER = logging.getLogger(__name__)


@dataclass
class MatchOutcome:
    """Message passed from the worker thread back to the host."""

    level: str
    run_id: int
    edges: Tuple[MatchEdge, ...]
    message: str
    details: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.level == "info"


class BackgroundMatcher:
    def __init__(self, scorer: Scorer = calculate_similarity) -> None:
        self.scorer = scorer
        self._queue: "queue.Queue[MatchOutcome]" = queue.Queue()
        self._worker: Optional[threading.Thread] = None
        self._run_id = 0
        self._abandoned_id = 0

    @property
    def is_running(self) -> bool:
        return self._worker is not None and self._worker.is_alive()

    @property
    def current_run(self) -> int:
        return self._run_id

    def start(
        self,
        reference_items: Sequence[ReferenceItem],
        observed_items: Sequence[ObservedItem],
    ) -> int:
        """Start a run on a daemon thread and return its run id."""

        if self.is_running and self._abandoned_id != self._run_id:
            raise RuntimeError("A match run is already in progress")
        self._run_id += 1
        run_id = self._run_id
        self._worker = threading.Thread(
            target=self._run,
            args=(run_id, tuple(reference_items), tuple(observed_items)),
            daemon=True,
        )
        LOGGER.debug("Starting match run %d", run_id)
        self._worker.start()
        return run_id

    def _run(
        self,
        run_id: int,
        reference_items: Tuple[ReferenceItem, ...],
        observed_items: Tuple[ObservedItem, ...],
    ) -> None:
        try:
            edges = match_items(reference_items, observed_items, scorer=self.scorer)
        except Exception as exc:
            self._queue.put(
                MatchOutcome("error", run_id, (), f"Match run failed: {exc}", traceback.format_exc())
            )
            return
        message = (
            f"Matched {len(reference_items)} reference items against "
            f"{len(observed_items)} observations: {len(edges)} candidate pairs."
        )
        self._queue.put(MatchOutcome("info", run_id, tuple(edges), message))

    def discard(self) -> None:
        """Abandon the current run; its outcome will never be returned."""

        self._abandoned_id = self._run_id

    def wait(self, timeout: Optional[float] = None) -> None:
        if self._worker is not None:
            self._worker.join(timeout)

    def poll(self, timeout: Optional[float] = None) -> Optional[MatchOutcome]:
        """Return the outcome of the current run, or ``None`` if it is not ready.

        Outcomes of abandoned or superseded runs are dropped.
        """

        while True:
            try:
                if timeout is None:
                    outcome = self._queue.get_nowait()
                else:
                    outcome = self._queue.get(timeout=timeout)
            except queue.Empty:
                return None
            if outcome.run_id != self._run_id or outcome.run_id == self._abandoned_id:
                LOGGER.debug("Dropping outcome of abandoned match run %d", outcome.run_id)
                continue
            return outcome


__all__ = ["BackgroundMatcher", "MatchOutcome"]
