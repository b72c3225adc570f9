# ABOUTME: Provides a CLI to classify questions and replay quiz attempts into knowledge analytics.
# ABOUTME: Prints restaurant rollups, period comparisons, and forecasts as Rich tables or JSON.

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from src.common.cache import CacheSweeper, TTLCache
from src.common.config import AnalyticsConfig, load_config
from src.common.errors import AnalyticsError
from src.common.log import configure_logging
from src.common.schemas import CATEGORY_ORDER, TaggingContext
from src.common.serialization import load_attempts, parse_datetime, to_jsonable
from src.common.stores import InMemoryAnalyticsStore, InMemoryAttemptStore
from src.knowledge_stats import StatsAggregator, backfill_analytics
from src.tagging import classify
from src.trends import TIMEFRAMES, TrendEngine

console = Console()
app = typer.Typer(help="Categorize training questions and analyze staff knowledge by category.")


def _load_settings(config: Optional[Path], log_level: str) -> AnalyticsConfig:
    configure_logging(log_level, console=Console(stderr=True))
    try:
        return load_config(config)
    except AnalyticsError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)


def _clock(as_of: Optional[str]):
    if as_of is None:
        return lambda: datetime.now(timezone.utc)
    try:
        fixed = parse_datetime(as_of)
    except ValueError as exc:
        console.print(f"[red]Invalid --as-of timestamp '{as_of}': {exc}[/red]")
        raise typer.Exit(code=1)
    return lambda: fixed


def _replay(attempts_path: Path, settings: AnalyticsConfig, as_of: Optional[str]):
    if not attempts_path.exists():
        console.print(f"[red]Missing attempts file at {attempts_path}[/red]")
        raise typer.Exit(code=1)
    attempt_store = InMemoryAttemptStore(load_attempts(attempts_path))
    analytics_store = InMemoryAnalyticsStore()
    cache = TTLCache(default_ttl=settings.default_ttl_seconds)
    clock = _clock(as_of)
    aggregator = StatsAggregator(analytics_store, cache=cache, attempts=attempt_store, clock=clock)
    result = backfill_analytics(aggregator, attempt_store)
    engine = TrendEngine(attempt_store, analytics_store, cache=cache, config=settings, clock=clock)
    return aggregator, engine, result, cache


@app.command("classify")
def classify_question(
    text: str = typer.Option(..., "--text", help="Question text to categorize."),
    menu_category: List[str] = typer.Option([], "--menu-category", help="Menu category hint; repeatable."),
    sop_category: Optional[str] = typer.Option(None, "--sop-category", help="SOP category name hint."),
    existing: List[str] = typer.Option([], "--existing", help="Existing question tag; repeatable."),
) -> None:
    """
    Categorize a single question and show the normalized score per category.
    """
    context = TaggingContext(
        menu_categories=list(menu_category),
        sop_category_name=sop_category,
        existing_categories=list(existing),
    )
    result = classify(text, context)

    console.print(f"[bold]Category:[/] {result.category.value}")
    console.print(f"[bold]Confidence:[/] {result.confidence:.2f}")
    console.print(f"[bold]Reasoning:[/] {result.reasoning}")

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Category")
    table.add_column("Score")
    for category in CATEGORY_ORDER:
        table.add_row(category.value, f"{result.scores[category]:.2f}")
    console.print(table)


@app.command()
def replay(
    attempts: Path = typer.Option(..., "--attempts", help="JSON file with quiz attempts."),
    restaurant_id: str = typer.Option(..., "--restaurant-id", help="Restaurant to report on."),
    config: Optional[Path] = typer.Option(Path("configs/analytics.yaml"), "--config", help="Analytics config path."),
    as_of: Optional[str] = typer.Option(None, "--as-of", help="ISO timestamp treated as now."),
    log_level: str = typer.Option("WARNING", "--log-level", help="Logging level."),
) -> None:
    """
    Fold attempts into per-user statistics and print the restaurant's staff table.
    """
    settings = _load_settings(config, log_level)
    _, engine, result, _ = _replay(attempts, settings, as_of)
    console.print(
        f"[bold]Attempts:[/] {result.total_attempts}  processed={result.processed} "
        f"already_processed={result.already_processed} errors={result.errors}"
    )

    records = engine.analytics.list_for_restaurant(restaurant_id)
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("User")
    table.add_column("Quizzes")
    table.add_column("Questions")
    table.add_column("Overall")
    for category in CATEGORY_ORDER:
        table.add_column(category.value.capitalize())
    for record in records:
        table.add_row(
            record.user_id,
            str(record.total_quizzes_completed),
            str(record.total_questions_answered),
            f"{record.overall_accuracy:.1f}%",
            *[f"{record.stats_for(c).accuracy:.1f}%" for c in CATEGORY_ORDER],
        )
    console.print(table)


@app.command()
def insights(
    attempts: Path = typer.Option(..., "--attempts", help="JSON file with quiz attempts."),
    restaurant_id: str = typer.Option(..., "--restaurant-id", help="Restaurant to report on."),
    timeframe: str = typer.Option("month", "--timeframe", help=f"One of: {', '.join(TIMEFRAMES)}."),
    config: Optional[Path] = typer.Option(Path("configs/analytics.yaml"), "--config", help="Analytics config path."),
    as_of: Optional[str] = typer.Option(None, "--as-of", help="ISO timestamp treated as now."),
    as_json: bool = typer.Option(False, "--json", help="Emit a JSON document instead of tables."),
    log_level: str = typer.Option("WARNING", "--log-level", help="Logging level."),
) -> None:
    """
    Replay attempts, then report restaurant analytics, period comparison, and forecasts.
    """
    settings = _load_settings(config, log_level)
    _, engine, _, cache = _replay(attempts, settings, as_of)

    sweeper = CacheSweeper(cache, settings.sweep_interval_seconds)
    sweeper.start()
    try:
        summary = engine.get_restaurant_analytics(restaurant_id)
        comparison = engine.get_comparative_analytics(restaurant_id, timeframe)
        forecast = engine.get_predictive_insights(restaurant_id)
    except AnalyticsError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)
    finally:
        sweeper.stop(timeout=1.0)

    if as_json:
        payload = {"restaurant": summary, "comparison": comparison, "forecast": forecast}
        typer.echo(json.dumps(to_jsonable(payload), indent=2))
        return

    console.rule(f"[bold blue]Knowledge Analytics: {restaurant_id}[/bold blue]")
    console.print(f"[bold]Staff:[/] {summary.total_staff}")
    console.print(f"[bold]Questions answered:[/] {summary.total_questions_answered}")
    console.print(f"[bold]Overall accuracy:[/] {summary.overall_accuracy:.1f}%")

    console.print()
    console.print("[bold green]Categories[/bold green]")
    category_table = Table(show_header=True, header_style="bold magenta")
    category_table.add_column("Category")
    category_table.add_column("Questions")
    category_table.add_column("Avg accuracy")
    category_table.add_column("Participation")
    category_table.add_column(f"Change ({comparison.timeframe})")
    category_table.add_column("Forecast")
    for category in CATEGORY_ORDER:
        perf = summary.category_performance[category]
        projected = forecast.category_forecasts[category]
        category_table.add_row(
            category.value,
            str(perf.total_questions),
            f"{perf.average_accuracy:.1f}%",
            f"{perf.staff_participation:.0f}%",
            f"{comparison.improvement.by_category[category]:+.1f}%",
            f"{projected.predicted_30_day_accuracy:.1f}% ({projected.trend_direction})",
        )
    console.print(category_table)

    console.print()
    console.print("[bold yellow]Staff at risk[/bold yellow]")
    risk_table = Table(show_header=True, header_style="bold magenta")
    risk_table.add_column("User")
    risk_table.add_column("Risk")
    risk_table.add_column("Accuracy")
    risk_table.add_column("Actions")
    for risk in forecast.staff_at_risk:
        risk_table.add_row(risk.user_id, risk.risk_level, f"{risk.overall_accuracy:.1f}%", "; ".join(risk.recommended_actions))
    console.print(risk_table)

    console.print()
    console.print("[bold cyan]Training priorities[/bold cyan]")
    for priority in forecast.training_priorities:
        console.print(
            f"- {priority.category.value}: {priority.priority} "
            f"(avg {priority.average_accuracy:.1f}%, {priority.estimated_impact}% below target)"
        )


if __name__ == "__main__":
    app()
