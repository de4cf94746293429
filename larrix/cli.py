# larrix/cli.py
from __future__ import annotations
import logging
from pathlib import Path
from typing import Optional

import click

from . import __version__
from .console import Console
from .errors import LarrixError
from .settings import settings

log = logging.getLogger(__name__)


def _configure_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

def _fail(console: Console, error: LarrixError) -> None:
    console.error(str(error))
    raise SystemExit(1)


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(__version__, prog_name="larrix")
def cli():
    """Build and preview browser extensions."""
    _configure_logging()


@cli.command()
@click.argument("name", required=False)
@click.option("--force", is_flag=True, help="Overwrite existing files if they conflict.")
def init(name: Optional[str], force: bool):
    """Initializes a new Larrix project."""
    from .scaffold import DEFAULT_PROJECT_NAME, create_project

    console = Console()
    console.new_line()
    console.step("init", "Initializing Larrix framework")
    if not name:
        console.new_line()
        name = click.prompt("  What is the name of your project?", default=DEFAULT_PROJECT_NAME)
        console.new_line()
    try:
        create_project(Path.cwd(), name, force=force, console=console)
    except LarrixError as e:
        _fail(console, e)
    console.info(f"Next steps: cd {name} && larrix dev")
    console.new_line()


@cli.command()
def build():
    """Builds the browser extension for production."""
    from .config import validate_project
    from .core.build import BuildOptions, build_extension

    console = Console()
    root = Path.cwd()
    try:
        validate_project(root, settings.CONFIG_FILE)
        build_extension(
            root,
            BuildOptions(output_directory=settings.OUTPUT_DIR, create_zip=True),
            settings=settings,
            console=console,
        )
    except LarrixError as e:
        _fail(console, e)


@cli.command()
@click.option("--host", default=None, help=f"Interface to bind (default: {settings.HOST}).")
@click.option("--port", type=int, default=None, help=f"Port for the development server (default: {settings.PORT}).")
def dev(host: Optional[str], port: Optional[int]):
    """Starts the development server."""
    from .dev.runner import run_dev

    overrides = {k: v for k, v in (("HOST", host), ("PORT", port)) if v is not None}
    dev_settings = settings.model_copy(update=overrides)
    console = Console()
    try:
        run_dev(Path.cwd(), settings=dev_settings, console=console)
    except LarrixError as e:
        _fail(console, e)


@cli.command("help")
@click.argument("command", required=False)
@click.pass_context
def help_command(ctx: click.Context, command: Optional[str]):
    """Displays help for the CLI or a specific command."""
    group = ctx.parent.command
    if command is None:
        click.echo(group.get_help(ctx.parent))
        return
    sub = group.get_command(ctx.parent, command)
    if sub is None:
        Console().error(f"Error: Unknown command '{command}'.")
        click.echo(group.get_help(ctx.parent))
        raise SystemExit(1)
    with click.Context(sub, info_name=command, parent=ctx.parent) as sub_ctx:
        click.echo(sub.get_help(sub_ctx))


def main() -> None:
    cli(prog_name="larrix")
