"""
CLI utility helpers: output formatting.
"""

from __future__ import annotations

import json
from typing import Any

from rich.console import Console
from rich.table import Table

from drecipe.core.types import Phase
from drecipe.recipe.runner import Recipe, RecipeResult

console = Console()
err_console = Console(stderr=True)

_STATUS_STYLE = {
    "Passed": "green",
    "Failed": "bold red",
    "Warning": "yellow",
    "Skipped": "dim",
}


def output_recipe_result(result: RecipeResult, *, as_json: bool = False) -> None:
    """Render a ``RecipeResult`` to the terminal."""
    if as_json:
        console.print_json(json.dumps(result.to_dict(), default=str))
        return

    table = Table(title=f"Recipe: {result.name}", show_lines=False, pad_edge=False)
    for col in ("task", "action", "status", "message", "detail"):
        table.add_column(col, overflow="fold")
    for task in result.tasks:
        data = task.to_dict()
        style = _STATUS_STYLE.get(task.status, "")
        detail = data["error"] or data["verbose"]
        if data["warning"]:
            detail = f"{detail} ({data['warning']})" if detail else data["warning"]
        table.add_row(
            task.name,
            task.action,
            f"[{style}]{task.status}[/{style}]" if style else task.status,
            data["message"],
            detail,
        )
    console.print(table)

    colour = "green" if result.phase == Phase.PASSED else "red" if result.phase == Phase.FAILED else "yellow"
    console.print(f"[bold {colour}]{result.phase.value}[/bold {colour}]")


def output_recipe_tasks(recipe: Recipe, *, as_json: bool = False) -> None:
    """Render the task list of a parsed recipe."""
    rows: list[dict[str, Any]] = [
        {
            "task": task.name,
            "action": task.kind,
            "interval": (task.retry or recipe.retry).interval,
            "timeout": (task.retry or recipe.retry).timeout,
        }
        for task in recipe.tasks
    ]
    if as_json:
        console.print_json(json.dumps({"name": recipe.name, "tasks": rows}))
        return

    table = Table(title=f"Recipe: {recipe.name}", show_lines=False, pad_edge=False)
    for col in ("task", "action", "interval", "timeout"):
        table.add_column(col, overflow="fold")
    for row in rows:
        table.add_row(*(str(v) for v in row.values()))
    console.print(table)
