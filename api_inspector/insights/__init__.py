"""LLM-backed performance insights."""

from .performance import (
    PerformanceInsights,
    analyze_performance,
    build_performance_prompt,
    grade_locally,
    parse_insights,
    start_insights_job,
)
from .providers import ConnectionTestResult, LLMClientHandle, ProviderConfig

__all__ = [
    "PerformanceInsights",
    "analyze_performance",
    "build_performance_prompt",
    "grade_locally",
    "parse_insights",
    "start_insights_job",
    "ConnectionTestResult",
    "LLMClientHandle",
    "ProviderConfig",
]
