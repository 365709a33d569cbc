"""CLI commands for the grade store.

Commands:
- init: Create the database and its tables
- add-user / verify-login: User management
- add-exercise / exercises: Exercise management
- submit / last / best: Submission storage and queries
"""

import logging
from datetime import datetime, timezone
from pathlib import Path

import structlog
import typer
import yaml
from rich.console import Console
from rich.table import Table

from gradestore.config.app_config import load_app_config
from gradestore.core.grade_store import GradeStore
from gradestore.core.models import UNASSIGNED_ID, Exercise, Submission, User
from gradestore.db.errors import (
    ExerciseAlreadyExistsError,
    StorageError,
    UnknownUserError,
)

app = typer.Typer(
    name="gradestore",
    help="Store users, exercises and graded submissions in SQLite.",
    no_args_is_help=True,
)

console = Console()

DB_OPTION_HELP = "Database location (default: from config/gradestore.yaml)"


@app.callback()
def main() -> None:
    """Configure logging from the application config."""
    config = load_app_config()
    level = getattr(logging, config.log_level.upper(), logging.WARNING)
    structlog.configure(wrapper_class=structlog.make_filtering_bound_logger(level))


def _open_store_or_exit(db: str | None) -> GradeStore:
    """Open the store at db (or the configured location), or exit with error."""
    location = db or load_app_config().database.location
    try:
        return GradeStore(location)
    except StorageError as e:
        console.print(f"[red]✗ No se pudo abrir la base de datos: {e}[/red]")
        raise typer.Exit(code=1)


def _abort_storage_error(error: StorageError) -> None:
    """Report a database failure and exit."""
    console.print(f"[red]✗ Error de base de datos: {error}[/red]")
    raise typer.Exit(code=1)


def _parse_time(value) -> datetime:
    """Parse an ISO timestamp (or a YAML-parsed date/datetime) as UTC if naive."""
    if not isinstance(value, datetime):
        value = datetime.fromisoformat(str(value))
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def _find_exercise_or_exit(store: GradeStore, exercise_id: int) -> Exercise:
    for exercise in store.load_exercises():
        if exercise.exercise_id == exercise_id:
            return exercise
    console.print(f"[red]✗ Ejercicio no encontrado: {exercise_id}[/red]")
    raise typer.Exit(code=1)


def _print_submission(submission: Submission | None, label: str) -> None:
    if submission is None:
        console.print(f"[yellow]⚠ Sin entregas calificadas ({label})[/yellow]")
        return

    exercise = submission.exercise
    console.print(
        f"[green]✓ {label}:[/green] entrega {submission.submission_id} "
        f"({submission.submission_time.isoformat()})"
    )

    table = Table(show_header=True)
    table.add_column("#", justify="right")
    table.add_column("Pregunta")
    table.add_column("Nota", justify="right")
    table.add_column("Puntos", justify="right")
    for question, grade in zip(exercise.questions, submission.grades):
        table.add_row(
            str(question.question_id), question.name, f"{grade:g}", str(question.points)
        )
    console.print(table)
    console.print(
        f"  [dim]total:[/dim] {submission.total_grade:g} / {exercise.total_points}"
    )


@app.command()
def init(
    db: str | None = typer.Option(None, "--db", help=DB_OPTION_HELP),
) -> None:
    """Create the database and its tables if missing."""
    with _open_store_or_exit(db):
        pass
    console.print("[green]✓ Base de datos lista[/green]")


@app.command(name="add-user")
def add_user(
    username: str = typer.Argument(..., help="Unique username"),
    firstname: str = typer.Option(..., "--first", "-f", help="First name"),
    lastname: str = typer.Option(..., "--last", "-l", help="Last name"),
    password: str = typer.Option(
        ..., "--password", "-p", prompt=True, hide_input=True, help="Password"
    ),
    db: str | None = typer.Option(None, "--db", help=DB_OPTION_HELP),
) -> None:
    """Add a user or update an existing one."""
    with _open_store_or_exit(db) as store:
        try:
            user_id = store.add_or_update_user(User(username, firstname, lastname), password)
        except StorageError as e:
            _abort_storage_error(e)
    console.print(f"[green]✓ Usuario guardado:[/green] {username} (id {user_id})")


@app.command(name="verify-login")
def verify_login(
    username: str = typer.Argument(..., help="Username"),
    password: str = typer.Option(
        ..., "--password", "-p", prompt=True, hide_input=True, help="Password"
    ),
    db: str | None = typer.Option(None, "--db", help=DB_OPTION_HELP),
) -> None:
    """Check a username/password pair."""
    with _open_store_or_exit(db) as store:
        try:
            ok = store.verify_login(username, password)
        except StorageError as e:
            _abort_storage_error(e)

    if not ok:
        console.print("[red]✗ Credenciales inválidas[/red]")
        raise typer.Exit(code=1)
    console.print("[green]✓ Credenciales válidas[/green]")


@app.command(name="add-exercise")
def add_exercise(
    file: Path = typer.Argument(..., help="YAML file describing the exercise"),
    db: str | None = typer.Option(None, "--db", help=DB_OPTION_HELP),
) -> None:
    """Add an exercise from a YAML file.

    Expected keys: id, name, due_date, questions (list of name/desc/points).
    """
    if not file.exists():
        console.print(f"[red]✗ Archivo no encontrado: {file}[/red]")
        raise typer.Exit(code=1)

    try:
        data = yaml.safe_load(file.read_text(encoding="utf-8")) or {}
        exercise = Exercise(
            exercise_id=int(data["id"]),
            name=str(data["name"]),
            due_date=_parse_time(data["due_date"]),
        )
        for q in data.get("questions") or []:
            exercise.add_question(str(q["name"]), str(q.get("desc", "")), int(q["points"]))
    except (yaml.YAMLError, KeyError, TypeError, ValueError) as e:
        console.print(f"[red]✗ Ejercicio inválido: {e}[/red]")
        raise typer.Exit(code=1)

    with _open_store_or_exit(db) as store:
        try:
            exercise_id = store.add_exercise(exercise)
        except ExerciseAlreadyExistsError as e:
            console.print(f"[yellow]⚠ {e}[/yellow]")
            raise typer.Exit(code=1)
        except StorageError as e:
            _abort_storage_error(e)

    console.print(
        f"[green]✓ Ejercicio añadido:[/green] {exercise_id} "
        f"({len(exercise.questions)} preguntas)"
    )


@app.command()
def exercises(
    db: str | None = typer.Option(None, "--db", help=DB_OPTION_HELP),
) -> None:
    """List all exercises."""
    with _open_store_or_exit(db) as store:
        try:
            items = store.load_exercises()
        except StorageError as e:
            _abort_storage_error(e)

    if not items:
        console.print("[dim]No hay ejercicios[/dim]")
        return

    table = Table(show_header=True)
    table.add_column("Id", justify="right")
    table.add_column("Nombre")
    table.add_column("Entrega")
    table.add_column("Preguntas", justify="right")
    table.add_column("Puntos", justify="right")
    for exercise in items:
        table.add_row(
            str(exercise.exercise_id),
            exercise.name,
            exercise.due_date.isoformat(),
            str(len(exercise.questions)),
            str(exercise.total_points),
        )
    console.print(table)


@app.command()
def submit(
    username: str = typer.Argument(..., help="Submitting user"),
    exercise_id: int = typer.Argument(..., help="Exercise id"),
    grades: list[float] = typer.Option(
        ..., "--grade", "-g", help="Grade per question, in question order"
    ),
    at: str | None = typer.Option(None, "--at", help="Submission time (ISO 8601, default: now)"),
    submission_id: int = typer.Option(UNASSIGNED_ID, "--id", help="Explicit submission id"),
    db: str | None = typer.Option(None, "--db", help=DB_OPTION_HELP),
) -> None:
    """Store a graded submission."""
    try:
        submitted_at = _parse_time(at) if at else datetime.now(timezone.utc)
    except ValueError as e:
        console.print(f"[red]✗ Fecha inválida: {e}[/red]")
        raise typer.Exit(code=1)

    with _open_store_or_exit(db) as store:
        try:
            exercise = _find_exercise_or_exit(store, exercise_id)
        except StorageError as e:
            _abort_storage_error(e)
        if len(grades) != len(exercise.questions):
            console.print(
                f"[red]✗ Se esperaban {len(exercise.questions)} notas, "
                f"recibidas {len(grades)}[/red]"
            )
            raise typer.Exit(code=1)

        submission = Submission(
            submission_id=submission_id,
            user=User(username, "", ""),
            exercise=exercise,
            submission_time=submitted_at,
            grades=list(grades),
        )
        try:
            stored_id = store.store_submission(submission)
        except UnknownUserError as e:
            console.print(f"[red]✗ {e}[/red]")
            raise typer.Exit(code=1)
        except StorageError as e:
            _abort_storage_error(e)

    console.print(f"[green]✓ Entrega guardada:[/green] {stored_id}")


@app.command()
def last(
    username: str = typer.Argument(..., help="User"),
    exercise_id: int = typer.Argument(..., help="Exercise id"),
    db: str | None = typer.Option(None, "--db", help=DB_OPTION_HELP),
) -> None:
    """Show the latest submission of a user for an exercise."""
    with _open_store_or_exit(db) as store:
        try:
            exercise = _find_exercise_or_exit(store, exercise_id)
            submission = store.get_last_submission(User(username, "", ""), exercise)
        except StorageError as e:
            _abort_storage_error(e)
    _print_submission(submission, "última")


@app.command()
def best(
    username: str = typer.Argument(..., help="User"),
    exercise_id: int = typer.Argument(..., help="Exercise id"),
    db: str | None = typer.Option(None, "--db", help=DB_OPTION_HELP),
) -> None:
    """Show the best-scoring submission of a user for an exercise."""
    with _open_store_or_exit(db) as store:
        try:
            exercise = _find_exercise_or_exit(store, exercise_id)
            submission = store.get_best_submission(User(username, "", ""), exercise)
        except StorageError as e:
            _abort_storage_error(e)
    _print_submission(submission, "mejor")
