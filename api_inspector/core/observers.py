"""Observer hooks for load test progress and results."""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, Sequence

logger = logging.getLogger(__name__)


class LoadTestObserver:
    """Base observer with no-op hooks for load test lifecycle events."""

    def on_run_start(
        self,
        config: Dict[str, Any],
        batch_sizes: List[int],
    ) -> None:
        """Called once, after the batch plan is computed."""

    def on_batch_complete(
        self,
        batch_index: int,
        progress: Dict[str, Any],
    ) -> None:
        """Called after every batch has fully settled."""

    def on_run_complete(
        self,
        result: Dict[str, Any],
    ) -> None:
        """Called once with the final result event."""

    def on_run_error(
        self,
        error: str,
    ) -> None:
        """Called when the run could not be scheduled."""


class NullLoadTestObserver(LoadTestObserver):
    """Default observer that ignores all notifications."""

    pass


class CompositeLoadTestObserver(LoadTestObserver):
    """Fan-out observer that notifies multiple observers."""

    def __init__(self, observers: Optional[Sequence[LoadTestObserver]] = None) -> None:
        self._observers: List[LoadTestObserver] = []
        if observers:
            for observer in observers:
                self.add_observer(observer)

    def add_observer(self, observer: Optional[LoadTestObserver]) -> None:
        if observer is None:
            return
        self._observers.append(observer)

    def _call(self, method: str, **kwargs: Any) -> None:
        for observer in list(self._observers):
            callback = getattr(observer, method, None)
            if callable(callback):
                try:
                    callback(**kwargs)
                except Exception as e:
                    logger.error(f"Observer callback {method} failed: {e}")
                    continue

    def on_run_start(self, **kwargs: Any) -> None:
        self._call("on_run_start", **kwargs)

    def on_batch_complete(self, **kwargs: Any) -> None:
        self._call("on_batch_complete", **kwargs)

    def on_run_complete(self, **kwargs: Any) -> None:
        self._call("on_run_complete", **kwargs)

    def on_run_error(self, **kwargs: Any) -> None:
        self._call("on_run_error", **kwargs)


class MessageObserver(LoadTestObserver):
    """Forwards events as typed messages to a single ``post_message`` callable.

    The message shapes match what the editor webview expects:
    ``load-test-progress`` per batch and ``load-test-result`` at the end.
    """

    def __init__(self, post_message: Callable[[Dict[str, Any]], Any]) -> None:
        self.post_message = post_message

    def on_batch_complete(self, batch_index: int, progress: Dict[str, Any]) -> None:
        self.post_message({"type": "load-test-progress", **progress})

    def on_run_complete(self, result: Dict[str, Any]) -> None:
        self.post_message({"type": "load-test-result", "results": result})
