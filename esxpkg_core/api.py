"""Command registration for the esxpkg CLI."""

from __future__ import annotations

from abc import ABC, abstractmethod
from argparse import ArgumentParser
from typing import Any, Callable, TypeVar


class EsxpkgCommand(ABC):
    """Base class for registered commands."""

    name: str = ""
    group: str = "esxpkg"

    def __init__(self, *, start_dir: Any = None) -> None:
        self.start_dir = start_dir

    @classmethod
    def configure(cls, parser: ArgumentParser) -> None:
        return None

    @abstractmethod
    def run(self, argv: Any) -> int:
        """Execute the command and return the process exit code."""


CommandT = TypeVar("CommandT", bound=type[EsxpkgCommand])

_REGISTRY: dict[str, type[EsxpkgCommand]] = {}


def esxpkgcommand(*, name: str, group: str = "esxpkg") -> Callable[[CommandT], CommandT]:
    def _register(cls: CommandT) -> CommandT:
        if name in _REGISTRY and _REGISTRY[name] is not cls:
            raise ValueError(f"command '{name}' is already registered")
        cls.name = name
        cls.group = group
        _REGISTRY[name] = cls
        return cls

    return _register


def registered_commands() -> dict[str, type[EsxpkgCommand]]:
    return dict(sorted(_REGISTRY.items()))
