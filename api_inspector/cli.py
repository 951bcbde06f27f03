"""Command-line interface for api-inspector."""

import argparse
import asyncio
import json
import logging
import sys
from contextlib import nullcontext
from typing import Optional

import httpx
from dotenv import load_dotenv
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.syntax import Syntax

from .core.config import InspectorSettings, LoadTestConfig
from .core.dashboard import LiveProgressObserver, console_supports_live
from .core.executor import send_test_request
from .core.scheduler import LoadTestRunner
from .insights.performance import PerformanceInsights, start_insights_job
from .insights.providers import LLMClientHandle


console = Console()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def _load_settings(args: argparse.Namespace) -> InspectorSettings:
    overrides = {}
    if getattr(args, "base_url", None):
        overrides["base_url"] = args.base_url
    return InspectorSettings(**overrides)


def print_insights(insights: PerformanceInsights) -> None:
    """Print AI insights as a rich panel."""
    lines = [f"[bold]Grade:[/bold] [{_rich_color(insights.grade_color)}]{insights.grade}[/]"]
    for title, items in (
        ("Findings", insights.findings),
        ("Recommendations", insights.recommendations),
        ("Bottlenecks", insights.bottlenecks),
    ):
        if items:
            lines.append(f"\n[bold]{title}[/bold]")
            lines.extend(f"  • {item}" for item in items)
    console.print(Panel("\n".join(lines), title="[bold cyan]AI Performance Insights[/bold cyan]", expand=False))


def _rich_color(color: str) -> str:
    return {"orange": "dark_orange", "gray": "grey50"}.get(color, color or "white")


async def _send(args: argparse.Namespace, settings: InspectorSettings) -> int:
    url = settings.url_for(args.endpoint)
    async with httpx.AsyncClient() as client:
        response = await send_test_request(
            client, url, args.method, args.body, timeout=settings.test_request_timeout
        )

    if response.error:
        console.print(f"[red]Request failed:[/red] {response.error}")
        return 1

    style = "green" if 200 <= response.status < 300 else "red"
    console.print(f"[{style}]{response.status} {response.status_text}[/{style}]")
    if args.show_headers:
        for key, value in response.headers.items():
            console.print(f"[dim]{key}:[/dim] {value}")
    if isinstance(response.body, (dict, list)):
        console.print(Syntax(json.dumps(response.body, indent=2, ensure_ascii=False), "json"))
    elif response.body:
        console.print(response.body)
    return 0


async def _load_test(args: argparse.Namespace, settings: InspectorSettings) -> int:
    config = LoadTestConfig(
        endpoint=args.endpoint,
        method=args.method,
        concurrency=args.concurrency,
        total_requests=args.total,
        body=args.body,
    )
    if config.was_clamped:
        console.print(
            f"[yellow]Warning: limited to concurrency {config.effective_concurrency} "
            f"and {config.effective_total_requests} total requests[/yellow]"
        )

    runner = LoadTestRunner(settings)
    dashboard: Optional[LiveProgressObserver] = None
    if not args.quiet and console_supports_live(console):
        dashboard = LiveProgressObserver(console)
        runner.attach_observer(dashboard)

    with dashboard or nullcontext():
        result = await runner.run(config)

    if args.quiet:
        console.print(f"Success Rate: {result.success_rate_percent:.1f}%")
        console.print(f"Avg Latency: {result.avg_latency_ms:.2f}ms")
        console.print(f"RPS: {result.requests_per_second:.2f}")
    else:
        result.print_summary(title=f"Load Test: {config.method} {config.endpoint}")

    insights: Optional[PerformanceInsights] = None
    if args.insights and not result.is_failed_run:
        handle = LLMClientHandle.from_settings(settings)
        try:
            with console.status("Analyzing performance with AI..."):
                insights = await start_insights_job(handle, config, result)
        finally:
            await handle.aclose()
        print_insights(insights)

    if args.output:
        result.save_json(
            args.output,
            config=config.to_dict(),
            insights=insights.to_event() if insights else None,
            output_dir=settings.output_dir,
        )

    if result.is_failed_run:
        return 1
    if result.total_requests and result.success_rate_percent < 50:
        console.print("[yellow]Warning: Success rate below 50%[/yellow]")
        return 2
    return 0


async def _test_connection(args: argparse.Namespace, settings: InspectorSettings) -> int:
    handle = LLMClientHandle.from_settings(settings)
    try:
        outcome = await handle.test_connection()
    finally:
        await handle.aclose()
    if outcome.success:
        console.print(f"[green]Connected to {settings.llm_provider}[/green] ({outcome.latency_ms:.0f}ms)")
        return 0
    console.print(f"[red]Connection to {settings.llm_provider} failed:[/red] {outcome.error}")
    return 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="api-inspector",
        description="Send test requests and run load tests against a local API server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Send a single request to the dev server
  api-inspector send GET /api/ping

  # Run 200 requests, 20 at a time, and ask the LLM for insights
  api-inspector load-test /api/users --concurrency 20 --total 200 --insights

  # POST with a body and save the results
  api-inspector load-test /api/users -X POST --body '{"name": "x"}' --output run.json
        """,
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    send = subparsers.add_parser("send", help="Send a single test request")
    send.add_argument("method", help="HTTP method (GET, POST, ...)")
    send.add_argument("endpoint", help="Endpoint path, e.g. /api/ping")
    send.add_argument("--body", help="Raw request body (POST/PUT/PATCH only)")
    send.add_argument("--base-url", help="Target server base URL")
    send.add_argument("--show-headers", action="store_true", help="Print response headers")

    load = subparsers.add_parser("load-test", help="Run a batched load test")
    load.add_argument("endpoint", help="Endpoint path, e.g. /api/ping")
    load.add_argument("--method", "-X", default="GET", help="HTTP method (default: GET)")
    load.add_argument("--concurrency", "-c", type=int, default=10, help="Requests per batch (max 100)")
    load.add_argument("--total", "-n", type=int, default=50, help="Total requests (max 1000)")
    load.add_argument("--body", help="Raw request body (POST/PUT/PATCH only)")
    load.add_argument("--base-url", help="Target server base URL")
    load.add_argument("--insights", action="store_true", help="Ask the configured LLM for performance insights")
    load.add_argument("--output", help="File to save the results (JSON format)")
    load.add_argument("--quiet", "-q", action="store_true", help="Only show key metrics, no progress")

    subparsers.add_parser("test-connection", help="Check the configured LLM provider")
    return parser


_COMMANDS = {
    "send": _send,
    "load-test": _load_test,
    "test-connection": _test_connection,
}


def main(argv=None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)
    load_dotenv()

    try:
        settings = _load_settings(args)
        exit_code = asyncio.run(_COMMANDS[args.command](args, settings))
    except ValidationError as e:
        console.print(f"[red]Invalid configuration:[/red] {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        sys.exit(1)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
