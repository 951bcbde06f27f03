"""
API-Inspector: batched load testing and AI performance insights for API routes.

Run a load test against a local dev server with a few lines of code:
    runner = LoadTestRunner()
    result = runner.run_sync({"endpoint": "/api/ping", "concurrency": 5, "totalRequests": 12})
"""

__version__ = "0.1.0"

from .core.config import InspectorSettings, LoadTestConfig
from .core.executor import send_test_request
from .core.results import LoadTestResult
from .core.scheduler import LoadTestRunner
from .insights import LLMClientHandle, PerformanceInsights, analyze_performance

__all__ = [
    "InspectorSettings",
    "LoadTestConfig",
    "LoadTestResult",
    "LoadTestRunner",
    "send_test_request",
    "LLMClientHandle",
    "PerformanceInsights",
    "analyze_performance",
]
