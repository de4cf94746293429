# larrix/console.py
from __future__ import annotations
import click


def format_size(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} kB"
    return f"{size / (1024 * 1024):.1f} MB"


class Console:
    """
    User-facing build output. `quiet` silences progress lines for the
    caller that owns this instance; warnings and errors always print.
    """

    def __init__(self, quiet: bool = False) -> None:
        self.quiet = quiet

    def _echo(self, text: str = "", err: bool = False) -> None:
        click.echo(text, err=err)

    # ---- progress ---------------------------------------------------------
    def step(self, step: str, message: str) -> None:
        if not self.quiet:
            self._echo(f"  {click.style(f'[{step}]', dim=True)} {message}")

    def file(self, path: str, size: str) -> None:
        if not self.quiet:
            self._echo(f"  {click.style(path.ljust(40), fg='cyan')} {click.style(size, dim=True)}")

    def success(self, message: str) -> None:
        if not self.quiet:
            self._echo(f"  {click.style(message, fg='green')}")

    def info(self, message: str) -> None:
        if not self.quiet:
            self._echo(f"  {message}")

    def new_line(self) -> None:
        if not self.quiet:
            self._echo()

    # ---- problems (never silenced) ----------------------------------------
    def warn(self, message: str) -> None:
        self._echo(f"  {click.style(message, fg='yellow')}", err=True)

    def error(self, message: str) -> None:
        self._echo(f"  {click.style(message, fg='red')}", err=True)
