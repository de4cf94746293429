# larrix/dev/runner.py
from __future__ import annotations
import asyncio
import logging
from functools import partial
from pathlib import Path
from typing import Callable, Optional

import anyio
import uvicorn

from ..config import load_descriptor, validate_project
from ..console import Console
from ..core.build import BuildOptions, build_extension
from ..core.livereload import inject_bootstrap
from ..errors import InjectionError
from ..settings import Settings, settings as default_settings
from .broadcaster import Broadcaster
from .server import create_app
from .watcher import ChangeWatcher

log = logging.getLogger(__name__)


class DevServer(uvicorn.Server):
    """uvicorn server that runs `on_exit` (on the loop) as soon as a stop signal arrives."""

    def __init__(self, config: uvicorn.Config, on_exit: Callable[[], None]) -> None:
        super().__init__(config)
        self._on_exit = on_exit
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    async def serve(self, sockets=None) -> None:
        self._loop = asyncio.get_running_loop()
        await super().serve(sockets=sockets)

    def handle_exit(self, sig, frame) -> None:
        # open event streams would otherwise keep the graceful shutdown waiting
        if self._loop is not None and not self.should_exit:
            self._loop.call_soon_threadsafe(self._on_exit)
        super().handle_exit(sig, frame)


def build_and_inject(project_root: Path, settings: Settings, console: Console) -> Path:
    result = build_extension(
        project_root,
        BuildOptions(output_directory=settings.OUTPUT_DIR, create_zip=False, quiet=True),
        settings=settings,
    )
    console.step("dev", "Build completed.")
    try:
        inject_bootstrap(result.staging_root, settings.events_url, settings.RECONNECT_DELAY_MS)
    except InjectionError as e:
        console.error(str(e))
    return result.staging_root


class DevSession:
    """The watcher, the push-stream registry and the HTTP server of one `larrix dev` run."""

    def __init__(self, project_root: Path, staging_root: Path, settings: Settings, console: Console) -> None:
        self.settings = settings
        self.console = console
        self.broadcaster = Broadcaster()
        self.watcher = ChangeWatcher(
            source_root=project_root / settings.SOURCE_DIR,
            staging_root=staging_root,
            broadcaster=self.broadcaster,
            load_descriptor=partial(load_descriptor, project_root, settings.CONFIG_FILE),
            events_url=settings.events_url,
            reconnect_delay_ms=settings.RECONNECT_DELAY_MS,
            console=console,
        )
        app = create_app(staging_root, self.broadcaster, settings=settings, console=console)
        config = uvicorn.Config(
            app,
            host=settings.HOST,
            port=settings.PORT,
            log_level=settings.LOG_LEVEL.lower(),
            timeout_graceful_shutdown=5,
        )
        self.server = DevServer(config, on_exit=self.on_exit)

    def on_exit(self) -> None:
        self.console.step("dev", "Stopping development server...")
        self.watcher.stop()
        self.broadcaster.close_all()

    async def run(self) -> None:
        async with anyio.create_task_group() as tg:
            await tg.start(self.watcher.run)
            self.console.step("dev", f"Development server started on http://{self.settings.HOST}:{self.settings.PORT}")
            self.console.new_line()
            try:
                await self.server.serve()
            finally:
                # also reached when startup fails, e.g. port in use
                self.watcher.stop()
                self.broadcaster.close_all()


async def serve(project_root: Path, staging_root: Path, settings: Settings, console: Console) -> None:
    await DevSession(project_root, staging_root, settings, console).run()


def run_dev(project_root: Path, settings: Settings = default_settings, console: Optional[Console] = None) -> None:
    """Initial build, then serve + watch until interrupted."""
    console = console or Console()
    project_root = Path(project_root)
    validate_project(project_root, settings.CONFIG_FILE)

    console.step("dev", "Performing initial build...")
    staging_root = build_and_inject(project_root, settings, console)

    try:
        asyncio.run(serve(project_root, staging_root, settings, console))
    except KeyboardInterrupt:
        pass  # uvicorn re-raises the captured SIGINT after draining
    console.new_line()
    console.warn("Development server stopped.")
    console.new_line()
