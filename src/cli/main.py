"""
Typer CLI for the masteryflow service.

Commands:
    masteryflow db init                 - Initialize database tables
    masteryflow users register          - Register a user
    masteryflow tracks list             - List a user's tracks
    masteryflow missions generate       - Assemble one user's mission
    masteryflow missions today          - Show today's mission
    masteryflow missions assemble-all   - Run the daily batch for all users
    masteryflow missions expire         - Fail overdue missions
    masteryflow tasks complete          - Settle a task completion
    masteryflow tasks skip              - Skip a task
    masteryflow stats                   - Show XP, level and streaks
    masteryflow streaks grant-freeze    - Grant streak freezes
    masteryflow streaks at-risk         - List streaks that break today

Usage:
    masteryflow --help
    masteryflow missions generate <user-id> --date 2024-03-01
    masteryflow tasks complete <task-id> --minutes 25
"""

from __future__ import annotations

from datetime import date, datetime
from uuid import UUID

import typer
from loguru import logger
from rich import print as rprint
from rich.console import Console
from rich.table import Table

from src.core.clock import Clock
from src.core.exceptions import ConflictError, MasteryFlowError
from src.core.log_setup import configure_logging
from src.db.database import session_scope

app = typer.Typer(
    help="masteryflow CLI: daily learning missions with XP and streaks",
    no_args_is_help=True,
)

console = Console()


def _parse_date(value: str | None) -> date | None:
    if value is None:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        rprint(f"[red]✗[/red] Invalid date: {value} (expected YYYY-MM-DD)")
        raise typer.Exit(code=1)


def _fail(error: MasteryFlowError) -> None:
    rprint(f"[red]✗[/red] {error.message}")
    raise typer.Exit(code=1)


# ========================================
# DATABASE COMMANDS
# ========================================

db_app = typer.Typer(help="Database management")
app.add_typer(db_app, name="db")


@db_app.command("init")
def db_init() -> None:
    """
    Initialize database tables from SQLAlchemy models.

    Safe to run multiple times (idempotent).
    """
    from src.db.database import init_db

    logger.info("Initializing database tables...")
    init_db()
    rprint("[green]✓[/green] Database initialized!")


@db_app.command("check")
def db_check() -> None:
    """Check database connectivity."""
    from src.db.database import check_connection

    status, error = check_connection()
    if status != "ok":
        rprint(f"[red]✗[/red] Database unreachable: {error}")
        raise typer.Exit(code=1)
    rprint("[green]✓[/green] Database reachable")


# ========================================
# USER COMMANDS
# ========================================

users_app = typer.Typer(help="User registration")
app.add_typer(users_app, name="users")


@users_app.command("register")
def users_register(
    external_id: str = typer.Argument(..., help="Identity provider user id"),
    email: str = typer.Option(..., "--email", "-e", help="Email address"),
    username: str = typer.Option(None, "--username", "-u"),
    timezone: str = typer.Option(None, "--timezone", "-z", help="IANA timezone"),
    max_tasks: int = typer.Option(None, "--max-tasks", help="Cognitive load (tasks per day)"),
) -> None:
    """Register a user, or show the existing one."""
    from src.users.user_service import register_user

    try:
        with session_scope() as session:
            user, created = register_user(
                session,
                external_id=external_id,
                email=email,
                username=username,
                timezone=timezone,
                cognitive_load_max=max_tasks,
            )
            user_id, tz_name = user.id, user.timezone
    except MasteryFlowError as e:
        _fail(e)

    verb = "Registered" if created else "Already registered"
    rprint(f"[green]✓[/green] {verb}: {user_id} ({tz_name})")


# ========================================
# TRACK COMMANDS
# ========================================

tracks_app = typer.Typer(help="Track inspection")
app.add_typer(tracks_app, name="tracks")


@tracks_app.command("list")
def tracks_list(user_id: UUID = typer.Argument(..., help="User id")) -> None:
    """List a user's tracks with progress."""
    from src.tracks.track_service import TrackService

    try:
        with session_scope() as session:
            tracks = TrackService(session).list_tracks(user_id)
            rows = [
                (
                    str(t.id),
                    t.name,
                    t.category.value,
                    str(t.rotation_priority),
                    f"{t.completed_items}/{t.total_items}",
                    "yes" if t.is_active else "no",
                )
                for t in tracks
            ]
    except MasteryFlowError as e:
        _fail(e)

    table = Table(title="Tracks")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Category")
    table.add_column("Priority", justify="right")
    table.add_column("Progress", justify="right")
    table.add_column("Active")
    for row in rows:
        table.add_row(*row)
    console.print(table)


# ========================================
# MISSION COMMANDS
# ========================================

missions_app = typer.Typer(help="Daily mission assembly")
app.add_typer(missions_app, name="missions")


def _print_mission(mission, tasks) -> None:
    rprint(
        f"[bold]Mission {mission.mission_date}[/bold] [{mission.status.value}] "
        f"{mission.total_estimated_minutes} min, deadline {mission.deadline.isoformat()}"
    )
    table = Table()
    table.add_column("Task", style="dim")
    table.add_column("Difficulty")
    table.add_column("Minutes", justify="right")
    table.add_column("Status")
    for task in tasks:
        table.add_row(
            str(task.id),
            task.difficulty.value if task.difficulty else "-",
            str(task.estimated_minutes),
            task.status.value,
        )
    console.print(table)


@missions_app.command("generate")
def missions_generate(
    user_id: UUID = typer.Argument(..., help="User id"),
    mission_date: str = typer.Option(None, "--date", "-d", help="Mission date (YYYY-MM-DD)"),
) -> None:
    """Assemble a mission for one user."""
    from src.missions.assembler import MissionAssembler

    day = _parse_date(mission_date)
    try:
        with session_scope() as session:
            result = MissionAssembler(session).assemble(user_id, day)
            if result is None:
                rprint("[yellow]No tracks or items available to create mission[/yellow]")
                return
            _print_mission(result.mission, result.tasks)
    except ConflictError as e:
        rprint(f"[yellow]![/yellow] {e.message}")
        raise typer.Exit(code=1)
    except MasteryFlowError as e:
        _fail(e)


@missions_app.command("today")
def missions_today(user_id: UUID = typer.Argument(..., help="User id")) -> None:
    """Show today's mission in the user's timezone."""
    from src.missions.assembler import get_today_mission

    try:
        with session_scope() as session:
            found = get_today_mission(session, user_id)
            if found is None:
                rprint("[dim]No mission for today[/dim]")
                return
            _print_mission(*found)
    except MasteryFlowError as e:
        _fail(e)


@missions_app.command("assemble-all")
def missions_assemble_all(
    workers: int = typer.Option(None, "--workers", "-w", help="Parallel workers"),
) -> None:
    """Run the daily assembly for every auto-assign user."""
    from src.missions.batch import run_daily_assembly

    stats = run_daily_assembly(max_workers=workers)

    rprint("\n[green]✓[/green] Daily assembly complete!")
    rprint(f"  Users: {stats.total_users}")
    rprint(f"  Generated: {stats.generated}")
    rprint(f"  Skipped: {stats.skipped}")
    if stats.errors > 0:
        rprint(f"  [red]Errors: {stats.errors}[/red]")
    rprint(f"  Duration: {stats.duration_seconds:.1f}s")


@missions_app.command("expire")
def missions_expire() -> None:
    """Mark missions past their deadline as failed."""
    from src.missions.expiry import expire_overdue_missions

    with session_scope() as session:
        failed = expire_overdue_missions(session, Clock().now())
    rprint(f"[green]✓[/green] Expired {failed} overdue missions")


# ========================================
# TASK COMMANDS
# ========================================

tasks_app = typer.Typer(help="Task settlement")
app.add_typer(tasks_app, name="tasks")


@tasks_app.command("complete")
def tasks_complete(
    task_id: UUID = typer.Argument(..., help="Task id"),
    minutes: int = typer.Option(None, "--minutes", "-m", help="Actual minutes spent"),
    difficulty_rating: int = typer.Option(None, "--difficulty", help="Self-rated difficulty 1-5"),
    effort_rating: int = typer.Option(None, "--effort", help="Self-rated effort 1-5"),
) -> None:
    """Complete a task and award XP."""
    from src.gamification.settlement import SettlementEngine

    try:
        with session_scope() as session:
            result = SettlementEngine(session).complete_task(
                task_id,
                actual_minutes=minutes,
                difficulty_rating=difficulty_rating,
                effort_rating=effort_rating,
            )
            xp = result.xp_awarded
            streak = result.global_streak.current_streak if result.global_streak else 0
    except MasteryFlowError as e:
        _fail(e)

    rprint(f"[green]✓[/green] +{xp} XP (streak: {streak} days)")


@tasks_app.command("skip")
def tasks_skip(task_id: UUID = typer.Argument(..., help="Task id")) -> None:
    """Skip a task (no XP)."""
    from src.gamification.settlement import SettlementEngine

    try:
        with session_scope() as session:
            SettlementEngine(session).skip_task(task_id)
    except MasteryFlowError as e:
        _fail(e)
    rprint("[green]✓[/green] Task skipped")


# ========================================
# GAMIFICATION COMMANDS
# ========================================


@app.command("stats")
def stats(user_id: UUID = typer.Argument(..., help="User id")) -> None:
    """Show total XP, level and streaks."""
    from src.gamification.stats import get_stats

    try:
        with session_scope() as session:
            summary = get_stats(session, user_id).to_dict()
    except MasteryFlowError as e:
        _fail(e)

    rprint(f"[bold]Level {summary['level']}[/bold] ({summary['total_xp']} XP)")
    rprint(f"  Next level: {summary['xp_progress']}/{summary['xp_needed']} XP")
    rprint(
        f"  Streak: {summary['global_streak']} days "
        f"(longest {summary['longest_streak']}, freezes {summary['freeze_count']})"
    )


streaks_app = typer.Typer(help="Streak maintenance")
app.add_typer(streaks_app, name="streaks")


@streaks_app.command("grant-freeze")
def streaks_grant_freeze(
    user_id: UUID = typer.Argument(..., help="User id"),
    amount: int = typer.Option(1, "--amount", "-n", help="Freezes to grant"),
) -> None:
    """Grant streak freezes to a user's global streak."""
    from src.gamification.streaks import StreakService

    try:
        with session_scope() as session:
            streak = StreakService(session).grant_freezes(user_id, amount)
            total = streak.freeze_count
    except MasteryFlowError as e:
        _fail(e)
    rprint(f"[green]✓[/green] Freezes available: {total}")


@streaks_app.command("at-risk")
def streaks_at_risk() -> None:
    """List global streaks that break unless the user is active today."""
    from src.gamification.stats import streaks_at_risk as find_at_risk

    with session_scope() as session:
        rows = [
            (str(s.user_id), s.current_streak, s.last_activity_date.isoformat())
            for s in find_at_risk(session, Clock())
        ]

    if not rows:
        rprint("[dim]No streaks at risk[/dim]")
        return
    table = Table(title="Streaks at risk")
    table.add_column("User", style="dim")
    table.add_column("Streak", justify="right")
    table.add_column("Last active")
    for user_id, current, last_active in rows:
        table.add_row(user_id, str(current), last_active)
    console.print(table)


@app.command("version")
def version() -> None:
    """Show version information."""
    rprint("[bold]masteryflow[/bold] v0.1.0")
    rprint(f"  {datetime.now().strftime('%Y-%m-%d')}")


def main() -> None:
    """Entry point for the CLI."""
    configure_logging()
    app()


if __name__ == "__main__":
    main()
