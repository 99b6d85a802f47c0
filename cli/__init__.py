"""Command line entry points for the meter reading dashboard.

``cli.app`` must stay the module (tests patch ``cli.app.ReportClient``), so the
Typer instance is not re-exported here.
"""

from importlib import import_module
from types import ModuleType


def __getattr__(name: str) -> ModuleType:
    if name == "app":
        return import_module("cli.app")
    raise AttributeError(name)


__all__ = []
