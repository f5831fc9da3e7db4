"""
Command-line interface for the fitai data store.

Provides commands for:
- Inspecting the stored profile and collections
- Weekly summaries and nutrition targets
- Exercise weight suggestions
- Checking and migrating stored documents
- CSV export
"""

import logging
from pathlib import Path
from typing import Optional

import typer
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm
from rich.table import Table

from fitai import config
from fitai.analytics import WeeklySummaryGenerator
from fitai.errors import DocumentDecodeError, StoreIOError
from fitai.export import session_logs_to_csv, weight_entries_to_csv
from fitai.nutrition import NutritionCalculator, NutritionTargets
from fitai.schemas import Equipment, WeeklySummary
from fitai.store import AppDataStore

# Initialize Typer app and Rich console
app = typer.Typer(help="FitAI - local fitness data store and weekly analytics")
console = Console()


@app.callback()
def main(
    log_level: str = typer.Option(config.LOG_LEVEL, "--log-level", help="Logging level"),
):
    """Configure logging for every command."""
    logging.basicConfig(level=log_level.upper(), format=config.LOG_FORMAT)


def _open_store(data: Optional[Path]) -> AppDataStore:
    """Build a store from --data, or from the configured database/file."""
    generator = WeeklySummaryGenerator(
        streak_threshold=config.STREAK_THRESHOLD, top_n=config.TOP_EXERCISES
    )
    if data is None and config.DATABASE_URL:
        return AppDataStore.from_database(
            config.DATABASE_URL, key=config.DOCUMENT_KEY, summary_generator=generator
        )
    return AppDataStore.from_path(data or config.DATA_PATH, summary_generator=generator)


def _load_store(data: Optional[Path]) -> AppDataStore:
    try:
        store = _open_store(data)
        store.load()
    except (StoreIOError, DocumentDecodeError) as e:
        console.print(f"[red]✗ Failed to load data: {e}[/red]")
        raise typer.Exit(1)

    if store.last_decode_errors:
        console.print(
            f"[yellow]⚠ {len(store.last_decode_errors)} entities could not be decoded "
            f"(run 'check' for details)[/yellow]"
        )
    return store


DATA_OPTION = typer.Option(None, "--data", "-d", help="Path to the app data JSON file")


# ===== DISPLAY HELPER FUNCTIONS =====


def _display_summary(summary: WeeklySummary):
    """
    Display a weekly summary with training, body and nutrition sections.

    Args:
        summary: WeeklySummary to render
    """
    rate = summary.completion_rate
    color = "green" if rate >= 1.0 else "yellow" if rate >= 0.5 else "red"

    console.print(
        f"\n[bold]Week {summary.week_number}: "
        f"[{color}]{summary.sessions_completed}/{summary.sessions_planned} sessions "
        f"({rate:.0%})[/{color}][/bold]"
    )

    table = Table(title="Weekly Summary", box=box.ROUNDED)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right", style="yellow")

    def fmt(value, pattern="{:.1f}"):
        return "—" if value is None else pattern.format(value)

    table.add_row("Training minutes", str(summary.total_training_minutes))
    table.add_row("Average rating", fmt(summary.average_rating))
    table.add_row("Weight change (kg)", fmt(summary.weight_change, "{:+.1f}"))
    table.add_row("Average kcal", fmt(summary.average_calories, "{:.0f}"))
    table.add_row("Average protein (g)", fmt(summary.average_protein))
    table.add_row("Average carbs (g)", fmt(summary.average_carbs))
    table.add_row("Average fats (g)", fmt(summary.average_fats))
    table.add_row("Average water (glasses)", fmt(summary.average_water_glasses))
    table.add_row("Streak (weeks)", str(summary.current_streak))
    console.print(table)

    if summary.best_exercises:
        console.print("\n[bold]Best Exercises:[/bold]")
        for item in summary.best_exercises:
            console.print(f"  • {item.name}: [green]+{item.improvement:.1f}%[/green]")

    if summary.has_ai_recommendations:
        console.print(Panel(summary.ai_recommendations, title="Recommendations"))


def _display_targets(targets: NutritionTargets):
    table = Table(title="Daily Nutrition Targets", box=box.ROUNDED)
    table.add_column("Target", style="cyan")
    table.add_column("Value", justify="right", style="yellow")
    table.add_row("BMR (kcal)", f"{targets.bmr:.0f}")
    table.add_row("TDEE (kcal)", f"{targets.tdee:.0f}")
    table.add_row("Calories (kcal)", str(targets.target_calories))
    table.add_row("Protein (g)", f"{targets.protein_g:.1f}")
    table.add_row("Carbs (g)", f"{targets.carbs_g:.1f}")
    table.add_row("Fats (g)", f"{targets.fats_g:.1f}")
    console.print(table)


# ===== CLI COMMANDS =====


@app.command()
def show(data: Optional[Path] = DATA_OPTION):
    """
    Show the stored profile and collection sizes.
    """
    store = _load_store(data)
    snapshot = store.snapshot()

    if snapshot.profile is None:
        console.print("[yellow]No profile yet (first run)[/yellow]")
    else:
        p = snapshot.profile
        console.print(Panel(
            f"Goal: [green]{p.fitness_goal.value}[/green]  "
            f"Week: [green]{p.current_week}[/green]  "
            f"Sessions/week: {p.sessions_per_week}\n"
            f"Weight: {p.weight_kg:.1f} kg  Height: {p.height_cm:.0f} cm  "
            f"Age: {p.age}  Sex: {p.sex.value}",
            title=p.name or "Profile",
        ))

    table = Table(title="Stored Collections", box=box.ROUNDED)
    table.add_column("Collection", style="cyan")
    table.add_column("Entries", justify="right", style="yellow")
    table.add_row("Week programs", str(len(snapshot.week_programs)))
    table.add_row("Session logs", str(len(snapshot.session_logs)))
    table.add_row("Weight entries", str(len(snapshot.weight_entries)))
    table.add_row("Meal plans", str(len(snapshot.meal_plans)))
    table.add_row("Water intakes", str(len(snapshot.water_intakes)))
    table.add_row("Chat messages", str(len(snapshot.chat_history)))
    table.add_row("Exercise histories", str(len(snapshot.exercise_weight_history)))
    table.add_row("Weekly summaries", str(len(snapshot.weekly_summaries)))
    console.print(table)

    if snapshot.last_sync_date:
        console.print(f"Last sync: {snapshot.last_sync_date.isoformat()}")


@app.command()
def summary(
    week: Optional[int] = typer.Option(
        None, "--week", "-w", help="Program week (default: current week)"
    ),
    save: bool = typer.Option(
        False, "--save/--no-save", help="Cache the summary in the stored document"
    ),
    data: Optional[Path] = DATA_OPTION,
):
    """
    Compute the weekly training and nutrition summary.
    """
    store = _load_store(data)
    result = store.weekly_summary(week)
    _display_summary(result)

    if save:
        store.save_weekly_summary(result)
        try:
            store.save()
        except StoreIOError as e:
            console.print(f"[red]✗ Failed to save: {e}[/red]")
            raise typer.Exit(1)
        console.print(f"\n✓ Summary for week {result.week_number} cached")


@app.command()
def targets(data: Optional[Path] = DATA_OPTION):
    """
    Daily caloric and macro targets for the stored profile.
    """
    store = _load_store(data)
    profile = store.profile
    if profile is None:
        console.print("[red]✗ No profile stored[/red]")
        raise typer.Exit(1)
    _display_targets(NutritionCalculator().calculate_targets(profile))


@app.command()
def suggest(
    exercise: str = typer.Argument(..., help="Exercise name key (e.g. ex_goblet_squats)"),
    equipment: Equipment = typer.Option(
        Equipment.DUMBBELLS, "--equipment", "-e", help="Equipment used"
    ),
    data: Optional[Path] = DATA_OPTION,
):
    """
    Suggested working weight for an exercise.
    """
    store = _load_store(data)
    last = store.last_weight(exercise)
    weight = store.default_weight(exercise, equipment)

    if last is None:
        console.print(f"No history for [cyan]{exercise}[/cyan]; starting weight: [green]{weight:.1f} kg[/green]")
    else:
        console.print(
            f"[cyan]{exercise}[/cyan]: last {last:.2f} kg → suggested [green]{weight:.2f} kg[/green]"
        )


@app.command()
def check(data: Optional[Path] = DATA_OPTION):
    """
    Decode the stored document and list entities that fail to decode.
    """
    store = _load_store(data)
    errors = store.last_decode_errors
    if not errors:
        console.print("[green]✓ Document decodes cleanly[/green]")
        return

    table = Table(title="Decode Errors", box=box.ROUNDED)
    table.add_column("Entity", style="cyan", no_wrap=True)
    table.add_column("Field", style="magenta", no_wrap=True)
    table.add_column("Location")
    table.add_column("Reason", style="red")
    for error in errors:
        table.add_row(error.entity, error.field or "—", error.path or "—", error.reason)
    console.print(table)
    raise typer.Exit(1)


@app.command()
def migrate(
    force: bool = typer.Option(
        False, "--force", "-f", help="Rewrite even if some entities were dropped"
    ),
    data: Optional[Path] = DATA_OPTION,
):
    """
    Rewrite the stored document with the current schema (all defaults filled).
    """
    store = _load_store(data)
    dropped = len(store.last_decode_errors)
    if dropped and not force:
        if not Confirm.ask(f"{dropped} entities will be dropped permanently. Continue?"):
            console.print("[yellow]Migration cancelled[/yellow]")
            raise typer.Exit(1)

    try:
        store.save()
    except StoreIOError as e:
        console.print(f"[red]✗ Failed to save: {e}[/red]")
        raise typer.Exit(1)
    console.print("[green]✓ Document rewritten with the current schema[/green]")


@app.command()
def export(
    kind: str = typer.Option("weights", "--kind", "-k", help="What to export (weights or sessions)"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Output CSV file"),
    data: Optional[Path] = DATA_OPTION,
):
    """
    Export weight entries or session logs as CSV.
    """
    store = _load_store(data)
    if kind == "weights":
        text = weight_entries_to_csv(store.weight_entries())
    elif kind == "sessions":
        text = session_logs_to_csv(store.session_logs())
    else:
        console.print(f"[red]✗ Unknown export kind: {kind}. Use 'weights' or 'sessions'[/red]")
        raise typer.Exit(1)

    if output is None:
        console.print(text, end="", markup=False, highlight=False, soft_wrap=True)
    else:
        output.write_text(text, encoding="utf-8")
        console.print(f"✓ Exported to [cyan]{output}[/cyan]")


if __name__ == "__main__":
    app()
