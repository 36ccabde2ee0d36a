"""Prompting interface used by the interactive session."""

from collections.abc import Sequence
from typing import Protocol

import click
import typer


class Prompter(Protocol):
    def ask(self, message: str, default: str = "") -> str: ...

    def choose(self, message: str, options: Sequence[str], default: str) -> str: ...

    def confirm(self, message: str, default: bool = False) -> bool: ...

    def info(self, message: str) -> None: ...

    def warn(self, message: str) -> None: ...


class TyperPrompter:
    """Prompts on the terminal through typer."""

    def ask(self, message: str, default: str = "") -> str:
        return typer.prompt(message, default=default, show_default=bool(default))

    def choose(self, message: str, options: Sequence[str], default: str) -> str:
        return typer.prompt(
            message,
            type=click.Choice(list(options)),
            default=default,
            show_choices=True,
        )

    def confirm(self, message: str, default: bool = False) -> bool:
        return typer.confirm(message, default=default)

    def info(self, message: str) -> None:
        typer.echo(message)

    def warn(self, message: str) -> None:
        typer.secho(message, fg=typer.colors.YELLOW)
