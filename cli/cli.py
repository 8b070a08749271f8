"""CLI for the breathing coach.

Runs practice sessions in the terminal through the same coach, orchestrator
and progression code paths any other front end uses, and inspects the
persisted progress records.
"""

import asyncio
from pathlib import Path

import typer
from loguru import logger
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from breathwork.coach import BreathingCoach
from breathwork.config.settings import settings
from breathwork.core.logger import setup_logger
from breathwork.metrics.types import MetricsReading
from breathwork.patterns.catalog import list_patterns
from breathwork.persistence.repository import ProgressRepository
from breathwork.persistence.store import JsonFileStore
from breathwork.runtime.scheduler import SessionRunner, SteadyMetricsSource
from breathwork.session.events import (
    AchievementUnlocked,
    CountdownTick,
    CycleCompleted,
    Notify,
    PhaseChanged,
    SessionCompleted,
    SessionEvent,
)
from breathwork.utils.formatting import format_duration, share_text

# Initialize Rich console for output
console = Console()

# Initialize Typer app
app = typer.Typer(
    name="breathwork",
    help="Alternate-nostril breathing coach",
    add_completion=False,
)

# Reading reported when no posture/eye tracking sensor is attached
STEADY_READING = MetricsReading(posture=90, eye_closure=95, head_stability=90, breath_rhythm=92)

SEVERITY_STYLES = {
    "info": "cyan",
    "success": "green",
    "warning": "yellow",
    "error": "bold red",
}

PHASE_INSTRUCTIONS = {
    "preparing": "Prepare to begin",
    "inhale": "Inhale through {nostril} nostril",
    "hold": "Hold your breath",
    "exhale": "Exhale through {nostril} nostril",
    "complete": "Excellent session!",
}


def _setup_logging(debug: bool = False) -> None:
    setup_logger(settings, debug=debug)


def _build_coach(data_dir: Path | None) -> BreathingCoach:
    store = JsonFileStore(data_dir or settings.data_dir)
    return BreathingCoach(ProgressRepository(store))


def _render_event(event: SessionEvent) -> None:
    """Print session events as they arrive."""
    if isinstance(event, PhaseChanged):
        text = PHASE_INSTRUCTIONS.get(event.phase, "Breathe naturally").format(nostril=event.nostril.capitalize())
        console.print(f"[bold magenta]{text}[/bold magenta]")
    elif isinstance(event, CountdownTick):
        console.print(f"  [dim]{event.seconds_remaining}[/dim]")
    elif isinstance(event, CycleCompleted):
        console.print(f"[cyan]Cycle {event.cycle_index}/{event.total_cycles} complete[/cyan]")
    elif isinstance(event, AchievementUnlocked):
        console.print(f"[bold yellow]Achievement unlocked: {event.achievement.name} (+{event.achievement.xp_reward} XP)[/bold yellow]")
    elif isinstance(event, Notify):
        style = SEVERITY_STYLES.get(event.severity, "white")
        console.print(f"[{style}]{event.message}[/{style}]")
    elif isinstance(event, SessionCompleted):
        result = event.result
        console.print("\n[bold green]Session complete[/bold green]")
        console.print(f"  Quality: {result.quality_score}%")
        console.print(f"  Duration: {format_duration(result.duration_minutes)}")
        console.print(f"  XP earned: {result.xp_earned}")


@app.command()
def patterns() -> None:
    """List the available breathing patterns."""
    table = Table(title="Breathing patterns")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Rhythm")
    table.add_column("XP", justify="right")
    table.add_column("Optimal", justify="right")
    table.add_column("Description", style="dim")

    for pattern in list_patterns():
        rhythm = f"{pattern.inhale_seconds}-{pattern.hold_seconds}-{pattern.exhale_seconds}" if pattern.has_hold else f"{pattern.inhale_seconds}-{pattern.exhale_seconds}"
        table.add_row(
            pattern.id,
            pattern.name,
            rhythm,
            str(pattern.xp_value),
            format_duration(pattern.optimal_duration_minutes),
            pattern.description,
        )
    console.print(table)


@app.command()
def progress(
    data_dir: Path | None = typer.Option(None, "--data-dir", help="Directory holding progress records"),
) -> None:
    """Show level, XP, streak and wellness."""
    coach = _build_coach(data_dir)
    user = coach.progress

    table = Table(title="Your progress", show_header=False)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Level", str(user.level))
    table.add_row("XP", f"{user.xp} / {user.xp_to_next_level}")
    table.add_row("Sessions", str(user.total_sessions))
    table.add_row("Practice time", format_duration(user.total_minutes))
    table.add_row("Current streak", f"{user.current_streak} days")
    table.add_row("Average quality", f"{user.avg_quality:.1f}%")
    table.add_row("Wellness score", str(user.wellness_score))
    console.print(table)


@app.command()
def achievements(
    data_dir: Path | None = typer.Option(None, "--data-dir", help="Directory holding progress records"),
) -> None:
    """List achievements and whether they are earned."""
    coach = _build_coach(data_dir)

    table = Table(title="Achievements")
    table.add_column("Name")
    table.add_column("Rarity")
    table.add_column("XP", justify="right")
    table.add_column("Earned", justify="center")
    table.add_column("Description", style="dim")
    for achievement in coach.achievements:
        table.add_row(
            achievement.name,
            achievement.rarity,
            str(achievement.xp_reward),
            "[green]yes[/green]" if achievement.earned else "-",
            achievement.description,
        )
    console.print(table)


@app.command()
def session(
    pattern: str | None = typer.Option(None, "--pattern", "-p", help="Pattern ID (see `patterns`)"),
    minutes: int | None = typer.Option(None, "--minutes", "-m", help="Session length in minutes"),
    quick: bool = typer.Option(False, "--quick", "-q", help="Run a quick practice session"),
    recommended: bool = typer.Option(False, "--recommended", help="Run the recommended session"),
    steady_metrics: bool = typer.Option(
        True, "--steady-metrics/--no-metrics", help="Feed a steady sensor reading while practising"
    ),
    data_dir: Path | None = typer.Option(None, "--data-dir", help="Directory holding progress records"),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
) -> None:
    """Practise a breathing session in real time. Ctrl+C stops it."""
    _setup_logging(debug)
    coach = _build_coach(data_dir)
    coach.events.subscribe(_render_event)

    if quick and recommended:
        console.print("[red]Error:[/red] --quick and --recommended are mutually exclusive")
        raise typer.Exit(code=2)

    if quick:
        started = coach.start_quick_session()
    elif recommended:
        started = coach.start_recommended_session()
    else:
        if pattern:
            coach.select_pattern(pattern)
        if minutes:
            coach.set_duration(minutes)
        console.print(
            f"[bold cyan]{coach.selected_pattern.name}[/bold cyan] for {format_duration(coach.duration_minutes)}\n"
        )
        started = coach.start_session()

    if not started:
        console.print("[red]Error:[/red] session could not be started")
        raise typer.Exit(code=1)

    runner = SessionRunner(coach, metrics_source=SteadyMetricsSource(STEADY_READING) if steady_metrics else None)
    try:
        asyncio.run(runner.run())
    except KeyboardInterrupt:
        coach.stop_session()
        raise typer.Exit(code=130) from None

    if coach.last_result is not None:
        console.print(f"\n[dim]{share_text(coach.last_result, coach.last_result.duration_minutes)}[/dim]")
        logger.bind(pattern_id=coach.last_result.pattern_id).debug("CLI session finished")


@app.command()
def preferences(
    assignments: list[str] | None = typer.Option(None, "--set", help="Change a setting, e.g. --set master_volume=50"),
    reset: bool = typer.Option(False, "--reset", help="Restore default settings"),
    data_dir: Path | None = typer.Option(None, "--data-dir", help="Directory holding progress records"),
) -> None:
    """Show or change the persisted settings."""
    coach = _build_coach(data_dir)
    failures: list[Notify] = []

    def _report(event: SessionEvent) -> None:
        if isinstance(event, Notify):
            _render_event(event)
            if event.severity == "error":
                failures.append(event)

    coach.events.subscribe(_report)

    if reset:
        coach.reset_preferences()

    if assignments:
        changes: dict[str, str] = {}
        for assignment in assignments:
            key, sep, value = assignment.partition("=")
            if not sep:
                console.print(f"[red]Error:[/red] expected KEY=VALUE, got '{assignment}'")
                raise typer.Exit(code=2)
            changes[key.strip()] = value.strip()
        try:
            coach.update_preferences(**changes)
        except ValidationError as e:
            console.print(f"[red]Error:[/red] invalid setting value: {e.errors()[0]['msg']}")
            raise typer.Exit(code=2) from e

    table = Table(title="Settings", show_header=False)
    table.add_column("Setting", style="cyan")
    table.add_column("Value", justify="right")
    for key, value in coach.preferences.model_dump().items():
        table.add_row(key, str(value))
    console.print(table)

    if failures:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
