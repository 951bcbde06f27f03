"""Unit tests for progress reporting and observers."""

from io import StringIO

import pytest
from rich.console import Console
from unittest.mock import MagicMock

from api_inspector.core.dashboard import LiveProgressObserver, console_supports_live
from api_inspector.core.observers import CompositeLoadTestObserver, LoadTestObserver
from api_inspector.core.progress import BatchProgress, ProgressReporter


@pytest.mark.unit
class TestBatchProgress:

    def test_percent(self):
        assert BatchProgress(5, 12, 5, 0).percent == pytest.approx(41.666, rel=1e-3)
        assert BatchProgress(12, 12, 10, 2).percent == 100

    def test_zero_total(self):
        assert BatchProgress(0, 0, 0, 0).percent == 0.0

    def test_event(self):
        assert BatchProgress(10, 20, 9, 1).to_event() == {
            "progress": 50.0,
            "completed": 10,
            "total": 20,
            "successCount": 9,
            "errorCount": 1,
        }


@pytest.mark.unit
class TestProgressReporter:

    def test_forwards_snapshot(self):
        observer = MagicMock()
        progress = ProgressReporter(observer).report(2, completed=15, total=30, success_count=14, error_count=1)

        assert progress.percent == 50.0
        observer.on_batch_complete.assert_called_once_with(batch_index=2, progress=progress.to_event())

    def test_observer_errors_are_swallowed(self):
        observer = MagicMock()
        observer.on_batch_complete.side_effect = RuntimeError("closed")

        progress = ProgressReporter(observer).report(0, 1, 1, 1, 0)
        assert progress.completed == 1

    def test_default_observer(self):
        assert ProgressReporter().report(0, 1, 2, 1, 0).percent == 50.0


@pytest.mark.unit
class TestCompositeObserver:

    def test_fans_out_and_isolates_failures(self):
        broken = MagicMock()
        broken.on_run_complete.side_effect = RuntimeError("nope")
        healthy = MagicMock()

        composite = CompositeLoadTestObserver([broken, None, healthy])
        composite.on_run_complete(result={"totalRequests": 1})

        healthy.on_run_complete.assert_called_once_with(result={"totalRequests": 1})

    def test_base_observer_is_noop(self):
        observer = LoadTestObserver()
        observer.on_run_start(config={}, batch_sizes=[])
        observer.on_batch_complete(batch_index=0, progress={})
        observer.on_run_complete(result={})
        observer.on_run_error(error="x")


@pytest.mark.unit
class TestLiveProgressObserver:

    def _console(self):
        return Console(file=StringIO(), width=100)

    def test_tracks_batches(self):
        dashboard = LiveProgressObserver(self._console())
        with dashboard:
            dashboard.on_run_start(config={"method": "GET", "endpoint": "/api/ping"}, batch_sizes=[5, 5, 2])
            dashboard.on_batch_complete(
                batch_index=1,
                progress={"completed": 10, "total": 12, "successCount": 9, "errorCount": 1},
            )

        task = dashboard.progress.tasks[0]
        assert task.total == 12
        assert task.completed == 10
        assert task.fields == {"ok": 9, "failed": 1}
        assert "GET /api/ping" in task.description

    def test_batch_before_start_is_ignored(self):
        dashboard = LiveProgressObserver(self._console())
        dashboard.on_batch_complete(batch_index=0, progress={"completed": 1})
        assert dashboard.progress.tasks == []

    def test_run_error_is_printed(self):
        console = self._console()
        LiveProgressObserver(console).on_run_error(error="bad method")
        assert "bad method" in console.file.getvalue()

    def test_non_terminal_console(self):
        assert console_supports_live(self._console()) is False
