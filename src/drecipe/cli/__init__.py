"""
CLI layer for drecipe.

Provides a Typer application that loads recipes and fixtures from YAML and
runs them against an in-memory store. All engine logic lives in the
``job`` and ``recipe`` packages; this package handles argument parsing and
terminal output only.

Entry point::

    drecipe --help
"""

from drecipe.cli.app import app

__all__ = ["app"]
