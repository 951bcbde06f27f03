"""Core load test components."""

from .config import InspectorSettings, LoadTestConfig, MAX_CONCURRENCY, MAX_TOTAL_REQUESTS
from .executor import RequestExecutor, RequestSample, TestResponse, send_test_request
from .observers import LoadTestObserver, MessageObserver
from .progress import BatchProgress, ProgressReporter
from .results import LoadTestResult, aggregate_statistics
from .scheduler import LoadTestRunner, plan_batches

__all__ = [
    "InspectorSettings",
    "LoadTestConfig",
    "MAX_CONCURRENCY",
    "MAX_TOTAL_REQUESTS",
    "RequestExecutor",
    "RequestSample",
    "TestResponse",
    "send_test_request",
    "LoadTestObserver",
    "MessageObserver",
    "BatchProgress",
    "ProgressReporter",
    "LoadTestResult",
    "aggregate_statistics",
    "LoadTestRunner",
    "plan_batches",
]
