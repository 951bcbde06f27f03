"""Load test results container and statistics."""

from dataclasses import dataclass, asdict
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Sequence
import json

from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table


console = Console()


@dataclass(frozen=True)
class LoadTestResult:
    """Final summary of one load test run."""

    total_requests: int = 0
    success_count: int = 0
    error_count: int = 0
    duration_ms: float = 0.0
    avg_latency_ms: float = 0.0
    min_latency_ms: float = 0.0
    max_latency_ms: float = 0.0
    requests_per_second: float = 0.0
    success_rate_percent: float = 0.0
    error: Optional[str] = None
    cancelled: bool = False

    @classmethod
    def failed(cls, error: str) -> "LoadTestResult":
        """Degenerate result for a run that could not be scheduled."""
        return cls(error_count=1, error=error)

    @property
    def is_failed_run(self) -> bool:
        return self.error is not None

    def to_event(self) -> Dict[str, Any]:
        """Convert to the JSON result event consumed by the UI."""
        event: Dict[str, Any] = {
            "totalRequests": self.total_requests,
            "successCount": self.success_count,
            "errorCount": self.error_count,
            "durationMs": self.duration_ms,
            "avgLatencyMs": self.avg_latency_ms,
            "minLatencyMs": self.min_latency_ms,
            "maxLatencyMs": self.max_latency_ms,
            "requestsPerSecond": self.requests_per_second,
            "successRatePercent": self.success_rate_percent,
        }
        if self.error is not None:
            event["error"] = self.error
        if self.cancelled:
            event["cancelled"] = True
        return event

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def summary(self) -> str:
        """Generate a text summary of results."""
        lines = [
            f"Total Requests: {self.total_requests}",
            f"Success Rate: {self.success_rate_percent:.1f}% ({self.success_count} ok, {self.error_count} failed)",
            f"Duration: {self.duration_ms:.0f}ms",
            f"Latency: avg {self.avg_latency_ms:.2f}ms, min {self.min_latency_ms:.2f}ms, max {self.max_latency_ms:.2f}ms",
            f"Throughput: {self.requests_per_second:.2f} req/s",
        ]
        if self.cancelled:
            lines.append("Run was cancelled before completion")
        if self.error:
            lines.append(f"Error: {self.error}")
        return "\n".join(lines)

    def print_summary(self, title: str = "Load Test Results", out: Optional[Console] = None):
        """Print a rich formatted summary to console."""
        out = out or console

        table = Table(show_header=True, header_style="bold", expand=True)
        table.add_column("Requests", justify="right", style="cyan")
        table.add_column("Success", justify="right", style="green")
        table.add_column("Errors", justify="right", style="red")
        table.add_column("Avg", justify="right")
        table.add_column("Min", justify="right")
        table.add_column("Max", justify="right")
        table.add_column("RPS", justify="right", style="yellow")
        table.add_row(
            str(self.total_requests),
            f"{self.success_count} ({self.success_rate_percent:.1f}%)",
            str(self.error_count),
            f"{self.avg_latency_ms:.1f}ms",
            f"{self.min_latency_ms:.1f}ms",
            f"{self.max_latency_ms:.1f}ms",
            f"{self.requests_per_second:.2f}",
        )

        footer = f"Duration: {self.duration_ms / 1000:.2f}s"
        if self.cancelled:
            footer += "  [yellow](cancelled)[/yellow]"
        if self.error:
            footer += f"\n[red]Error:[/red] {self.error}"

        panel = Panel(
            Group(table, "", footer),
            title=f"[bold cyan]{title}[/bold cyan]",
            expand=False,
            border_style="red" if self.error else "cyan",
            padding=(1, 2),
        )
        out.print(panel)

    def save_json(
        self,
        filepath: Optional[str] = None,
        *,
        config: Optional[Dict[str, Any]] = None,
        insights: Optional[Dict[str, Any]] = None,
        output_dir: str = "api_inspector_results",
    ) -> str:
        """
        Save results to a JSON file.

        Args:
            filepath: Optional custom filepath. If not provided, generates one under output_dir.
            config: Effective load test configuration to store alongside the result
            insights: Optional AI performance insights

        Returns:
            Path to the saved file
        """
        if filepath is None:
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            filepath = str(Path(output_dir) / f"load_test_{timestamp}.json")

        path = Path(filepath)
        path.parent.mkdir(parents=True, exist_ok=True)

        payload: Dict[str, Any] = {
            "saved_at": datetime.now().isoformat(),
            "config": config,
            "result": self.to_event(),
        }
        if insights is not None:
            payload["insights"] = insights

        with open(path, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2, default=str, ensure_ascii=False)

        console.print(f"[blue]Results saved to:[/blue] {path}")
        return str(path)


def aggregate_statistics(
    latencies: Sequence[float],
    total_requests: int,
    success_count: int,
    error_count: int,
    duration_ms: float,
    cancelled: bool = False,
) -> LoadTestResult:
    """Reduce the latency samples and counters into a ``LoadTestResult``.

    Empty latency lists give zero min/avg/max; zero duration gives zero
    throughput and zero total requests gives a zero success rate.
    """
    if latencies:
        avg_latency = sum(latencies) / len(latencies)
        min_latency = min(latencies)
        max_latency = max(latencies)
    else:
        avg_latency = min_latency = max_latency = 0.0

    rps = (total_requests / duration_ms * 1000) if duration_ms > 0 else 0.0
    success_rate = (success_count / total_requests * 100) if total_requests > 0 else 0.0

    return LoadTestResult(
        total_requests=total_requests,
        success_count=success_count,
        error_count=error_count,
        duration_ms=duration_ms,
        avg_latency_ms=avg_latency,
        min_latency_ms=min_latency,
        max_latency_ms=max_latency,
        requests_per_second=rps,
        success_rate_percent=success_rate,
        cancelled=cancelled,
    )
