"""
Root Typer application for the drecipe CLI.
"""

from __future__ import annotations

from pathlib import Path

import pydantic
import typer
from rich.markup import escape
from typer import Typer

from drecipe.cli.utils import err_console, output_recipe_result, output_recipe_tasks
from drecipe.core.errors import ConfigError, RecipeError
from drecipe.core.logging import configure_logging
from drecipe.core.settings import RecipeSettings
from drecipe.core.types import Assert, Phase
from drecipe.execution.retry import Retryable
from drecipe.job.assertion import resolve_check
from drecipe.recipe.recipe_yaml import RecipeSpec, load_documents
from drecipe.recipe.runner import RecipeRunner
from drecipe.store.memory import InMemoryResourceStore

app = Typer(
    name="drecipe",
    help="drecipe: run declarative assert/apply/label recipes.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from drecipe import __version__

        typer.echo(f"drecipe {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """drecipe CLI: validate and run recipes."""


# ── Helpers ──────────────────────────────────────────────────────────────


def _fail(error: RecipeError) -> typer.Exit:
    err_console.print(f"[bold red]Error[/bold red] ({error.category.value}): {escape(error.message)}")
    return typer.Exit(code=2)


def _load_spec(path: Path) -> RecipeSpec:
    try:
        return RecipeSpec.from_yaml_file(path)
    except RecipeError as e:
        raise _fail(e) from e


def _load_settings() -> RecipeSettings:
    try:
        return RecipeSettings()
    except pydantic.ValidationError as e:
        raise _fail(ConfigError(f"Invalid DRECIPE_* settings: {e}", cause=e)) from e


# ── Commands ─────────────────────────────────────────────────────────────


@app.command()
def run(
    recipe: Path = typer.Argument(..., exists=True, dir_okay=False, help="Recipe YAML file"),
    fixtures: list[Path] = typer.Option(
        [], "--fixtures", "-f", exists=True, dir_okay=False,
        help="YAML file(s) of resources to seed the store with",
    ),
    interval: float | None = typer.Option(None, "--interval", help="Retry interval in seconds"),
    timeout: float | None = typer.Option(None, "--timeout", help="Retry timeout in seconds"),
    strict_types: bool = typer.Option(
        False, "--strict-types", help="Reject resource types not present in the fixtures",
    ),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Run a recipe against an in-memory store seeded from fixtures."""
    settings = _load_settings()
    configure_logging(level=settings.log_level, json_format=settings.log_json)

    spec = _load_spec(recipe)
    try:
        default_retry = Retryable.from_settings(settings)
        store = InMemoryResourceStore(allow_any_type=not strict_types)
        for path in fixtures:
            store.load(load_documents(path))
        plan = spec.to_recipe(default_retry=default_retry)
        if interval is not None or timeout is not None:
            plan.retry = Retryable(
                interval=plan.retry.interval if interval is None else interval,
                timeout=plan.retry.timeout if timeout is None else timeout,
            )
    except RecipeError as e:
        raise _fail(e) from e

    result = RecipeRunner(store, plan).run()
    output_recipe_result(result, as_json=json_out)
    if result.phase == Phase.FAILED:
        raise typer.Exit(code=1)


@app.command()
def validate(
    recipe: Path = typer.Argument(..., exists=True, dir_okay=False, help="Recipe YAML file"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Parse a recipe and list its tasks."""
    spec = _load_spec(recipe)
    try:
        plan = spec.to_recipe()
        for task in plan.tasks:
            if isinstance(task.action, Assert):
                resolve_check(task.name, task.action)
    except RecipeError as e:
        raise _fail(e) from e
    output_recipe_tasks(plan, as_json=json_out)
