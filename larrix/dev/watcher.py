# larrix/dev/watcher.py
from __future__ import annotations
import asyncio
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Union

import anyio
from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from ..config import ProjectDescriptor
from ..console import Console
from ..errors import ConfigurationError, FileSystemError, InjectionError
from ..core.build import regenerate_manifest
from ..core.livereload import in_background_area, inject_bootstrap
from ..core.staging import ChangeKind, normalize, sync_path
from .broadcaster import Broadcaster

log = logging.getLogger(__name__)

# inotify reports plain opens/reads too; they never change content
IGNORED_EVENT_TYPES = {"opened", "closed_no_write"}


@dataclass(frozen=True)
class WatchEvent:
    path: str
    kind: ChangeKind


class _Forwarder(FileSystemEventHandler):
    """Runs on the observer thread; hands raw paths to the event loop."""

    def __init__(self, watcher: "ChangeWatcher") -> None:
        super().__init__()
        self._watcher = watcher

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.event_type in IGNORED_EVENT_TYPES:
            return
        self._watcher.notify(event.src_path)
        dest = getattr(event, "dest_path", None)
        if dest:
            self._watcher.notify(dest)


class ChangeWatcher:
    """
    Turns raw filesystem notifications under `source_root` into staging
    updates, a fresh manifest and a reload broadcast, one path at a time
    in arrival order. No debouncing: repeated events mean repeated cycles.
    """

    def __init__(
        self,
        source_root: Path,
        staging_root: Path,
        broadcaster: Broadcaster,
        load_descriptor: Callable[[], ProjectDescriptor],
        events_url: str,
        reconnect_delay_ms: int = 1000,
        console: Optional[Console] = None,
    ) -> None:
        self.source_root = Path(source_root)
        self.staging_root = Path(staging_root)
        self.broadcaster = broadcaster
        self.load_descriptor = load_descriptor
        self.events_url = events_url
        self.reconnect_delay_ms = reconnect_delay_ms
        self.console = console or Console()
        self._queue: "asyncio.Queue[Optional[str]]" = asyncio.Queue()
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._observer = None

    # ---- raw notifications ------------------------------------------------
    def notify(self, raw_path: Optional[Union[str, bytes]]) -> None:
        """Thread-safe. `None` asks the run loop to stop."""
        if isinstance(raw_path, bytes):
            raw_path = os.fsdecode(raw_path)
        if self._loop is None:
            self._queue.put_nowait(raw_path)
        else:
            self._loop.call_soon_threadsafe(self._queue.put_nowait, raw_path)

    def stop(self) -> None:
        self.notify(None)

    def relative(self, raw_path: str) -> Optional[str]:
        try:
            rel = os.path.relpath(os.path.abspath(raw_path), os.path.abspath(self.source_root))
        except ValueError:  # other drive on Windows
            return None
        rel = normalize(rel)
        if not rel or rel == "." or rel == ".." or rel.startswith("../"):
            return None
        return rel

    # ---- one cycle --------------------------------------------------------
    async def reconcile(self, rel_path: str) -> Optional[WatchEvent]:
        """
        Classify by existence, apply to staging, rewrite the manifest,
        re-inject the bootstrap for background changes, broadcast.
        Returns None when the cycle was abandoned on an error.
        """
        try:
            kind = await anyio.to_thread.run_sync(sync_path, self.source_root, self.staging_root, rel_path)
        except FileSystemError as e:
            self.console.error(f"Error handling file change for {rel_path}: {e}")
            return None
        event = WatchEvent(path=rel_path, kind=kind)
        if kind is ChangeKind.CHANGED:
            self.console.step("dev", f"File changed: {rel_path}")
        else:
            self.console.step("dev", f"File deleted: {rel_path}")

        try:
            descriptor = await anyio.to_thread.run_sync(self.load_descriptor)
            await anyio.to_thread.run_sync(regenerate_manifest, descriptor, self.source_root, self.staging_root)
        except (ConfigurationError, FileSystemError) as e:
            self.console.error(f"Could not regenerate manifest: {e}")
            return None

        if in_background_area(rel_path):
            try:
                await anyio.to_thread.run_sync(
                    inject_bootstrap, self.staging_root, self.events_url, self.reconnect_delay_ms
                )
            except InjectionError as e:
                self.console.error(str(e))

        sent = self.broadcaster.broadcast()
        log.debug("%s %s -> reload sent to %d client(s)", kind.value, rel_path, sent)
        return event

    # ---- loop -------------------------------------------------------------
    def _start_observer(self) -> None:
        observer = Observer()
        observer.schedule(_Forwarder(self), str(self.source_root), recursive=True)
        observer.daemon = True
        observer.start()
        self._observer = observer

    def _stop_observer(self) -> None:
        observer, self._observer = self._observer, None
        if observer is not None:
            observer.stop()
            observer.join(timeout=5)

    async def run(self, *, task_status=anyio.TASK_STATUS_IGNORED) -> None:
        self._loop = asyncio.get_running_loop()
        self._start_observer()
        self.console.step("dev", f"Watching for file changes in {self.source_root.name} directory...")
        task_status.started()
        try:
            while True:
                raw = await self._queue.get()
                if raw is None:
                    break
                rel = self.relative(raw)
                if rel is not None:
                    await self.reconcile(rel)
        finally:
            self._stop_observer()
