"""Command line tools for the sensor sync engine."""

from importlib import import_module
from types import ModuleType


def __getattr__(name: str) -> ModuleType:
    # Resolve lazily so ``cli.app`` stays the module, not the Typer instance it defines.
    if name in {"app", "render"}:
        return import_module(f"cli.{name}")
    raise AttributeError(name)


__all__: list[str] = []
