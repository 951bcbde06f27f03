"""AI-generated insights for load test results."""

from __future__ import annotations

import asyncio
import json
import logging
import re
from typing import Any, Callable, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..core.config import LoadTestConfig
from ..core.results import LoadTestResult
from ..utils.errors import InsightsError
from .providers import LLMClientHandle

logger = logging.getLogger(__name__)

GRADES = ("A+", "A", "B+", "B", "C+", "C", "D", "F")


class PerformanceInsights(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    grade: str = "N/A"
    grade_color: str = Field(default="gray", alias="gradeColor")
    findings: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    bottlenecks: List[str] = Field(default_factory=list)

    @property
    def is_fallback(self) -> bool:
        return self.grade == "N/A"

    def to_event(self) -> dict:
        return self.model_dump(by_alias=True)


def fallback_insights(finding: str, recommendations: Optional[List[str]] = None) -> PerformanceInsights:
    return PerformanceInsights(findings=[finding], recommendations=list(recommendations or []))


def grade_locally(result: LoadTestResult) -> Tuple[str, str]:
    """Grade a result with the same rubric the LLM is given.

    Returns (grade, color).
    """
    latency = result.avg_latency_ms
    success = result.success_rate_percent
    if result.total_requests == 0:
        return "N/A", "gray"
    if success >= 100 and latency < 100:
        return "A+", "green"
    if success >= 100 and latency < 200:
        return "A", "green"
    if success > 95 and latency < 500:
        return ("B+" if latency < 300 else "B"), "green"
    if success > 90 and latency < 1000:
        return ("C+" if latency < 750 else "C"), "yellow"
    if success > 80 and latency < 2000:
        return "D", "orange"
    return "F", "red"


def build_performance_prompt(config: LoadTestConfig, result: LoadTestResult) -> str:
    """Render the analysis prompt for one load test."""
    local_grade, _ = grade_locally(result)
    return f"""You are an expert in performance analysis and optimization of web APIs.

Analyze the following load test results and give actionable insights.

**Test configuration:**
- Endpoint: {config.endpoint}
- Method: {config.method}
- Concurrency: {config.effective_concurrency} virtual users
- Total Requests: {config.effective_total_requests}

**Results:**
- Success Rate: {result.success_rate_percent:.1f}%
- Total Duration: {result.duration_ms:.0f}ms
- Average Latency: {result.avg_latency_ms:.2f}ms
- Min Latency: {result.min_latency_ms:.2f}ms
- Max Latency: {result.max_latency_ms:.2f}ms
- Requests per Second (RPS): {result.requests_per_second:.2f}
- Success Count: {result.success_count}
- Error Count: {result.error_count}
- Rubric grade computed locally: {local_grade}

Respond ONLY with JSON (no markdown, no code blocks) with this structure:
{{
  "grade": "A+/A/B+/B/C+/C/D/F",
  "gradeColor": "green/yellow/orange/red",
  "findings": ["finding 1", "finding 2", "finding 3"],
  "recommendations": ["recommendation 1", "recommendation 2", "recommendation 3"],
  "bottlenecks": ["bottleneck 1", "bottleneck 2"]
}}

**Grading criteria:**
- A+/A (green): excellent performance, latency <200ms, success rate 100%, high RPS
- B+/B (green): good performance, latency <500ms, success rate >95%
- C+/C (yellow): fair performance, latency <1000ms, success rate >90%
- D (orange): poor performance, latency <2000ms, success rate >80%
- F (red): critical issues, latency of 2000ms or more, or success rate of 80% or less

**Findings:** 3-5 key observations about performance
**Recommendations:** 3-5 concrete suggestions for improvement
**Bottlenecks:** 1-3 likely bottlenecks

ANSWER ONLY WITH JSON, NO OTHER TEXT."""


def clean_llm_response(text: str) -> str:
    """Strip markdown code fences and stray control characters."""
    cleaned = text.strip()
    if cleaned.startswith("```json"):
        cleaned = re.sub(r"^```json\s*\n?", "", cleaned)
        cleaned = re.sub(r"\n?```\s*$", "", cleaned)
    elif cleaned.startswith("```"):
        cleaned = re.sub(r"^```\s*\n?", "", cleaned)
        cleaned = re.sub(r"\n?```\s*$", "", cleaned)
    # Keep newlines and tabs, drop other control characters
    cleaned = re.sub(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]", "", cleaned)
    return cleaned.strip()


def parse_insights(text: str) -> PerformanceInsights:
    """Parse an LLM reply into ``PerformanceInsights``."""
    cleaned = clean_llm_response(text)
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise InsightsError(f"Failed to parse LLM response: {e}", raw=text[:500]) from e
    if not isinstance(data, dict):
        raise InsightsError("LLM response is not a JSON object", raw=text[:500])

    try:
        insights = PerformanceInsights.model_validate(data)
    except ValidationError as e:
        raise InsightsError(f"LLM response has unexpected structure: {e}", raw=text[:500]) from e

    if insights.grade not in GRADES:
        logger.warning(f"LLM returned unknown grade {insights.grade!r}")
    return insights


async def analyze_performance(
    handle: Optional[LLMClientHandle],
    config: LoadTestConfig,
    result: LoadTestResult,
) -> PerformanceInsights:
    """Ask the LLM for insights on a finished load test.

    Never raises: missing credentials or any LLM/parse failure produce a
    fallback with grade ``N/A``.
    """
    if handle is None or not handle.is_configured:
        logger.error("LLM API key not configured, skipping performance analysis")
        return fallback_insights(
            "LLM API key is not configured. Set API_INSPECTOR_LLM_API_KEY to enable AI insights."
        )

    prompt = build_performance_prompt(config, result)
    logger.info(f"Requesting performance insights from {handle.config.provider}")
    try:
        text = await handle.generate(prompt)
        insights = parse_insights(text)
    except Exception as e:
        logger.error(f"Performance analysis failed: {e}")
        return fallback_insights(
            "An error occurred while analyzing performance with AI.",
            ["Try again later or check your network connection and provider settings."],
        )

    logger.info(f"Performance insights generated: grade {insights.grade}")
    return insights


def start_insights_job(
    handle: Optional[LLMClientHandle],
    config: LoadTestConfig,
    result: LoadTestResult,
    on_done: Optional[Callable[[PerformanceInsights], Any]] = None,
) -> "asyncio.Task[PerformanceInsights]":
    """Run ``analyze_performance`` as a detached task.

    The primary result is already final when this is called; the returned
    task can be awaited separately and never raises. ``on_done`` receives
    the insights; its own failures are logged and ignored.
    """

    async def _job() -> PerformanceInsights:
        try:
            insights = await analyze_performance(handle, config, result)
        except Exception as e:
            logger.error(f"Insights job failed: {e}")
            insights = fallback_insights("An error occurred while analyzing performance with AI.")
        if on_done is not None:
            try:
                on_done(insights)
            except Exception as e:
                logger.error(f"Insights callback failed: {e}")
        return insights

    return asyncio.create_task(_job())
