import signal
import socket

import anyio
import httpx
import pytest

from larrix.core.livereload import bootstrap_source
from larrix.dev.runner import DevSession, build_and_inject
from larrix.settings import Settings

from conftest import SOURCE_FILES


def _free_port():
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]

@pytest.fixture
def sigint_ignored():
    # uvicorn re-raises a handled SIGINT after draining
    previous = signal.signal(signal.SIGINT, lambda sig, frame: None)
    yield
    signal.signal(signal.SIGINT, previous)


def test_build_and_inject(project, quiet):
    settings = Settings(HOST="127.0.0.1", PORT=4000)
    staging_root = build_and_inject(project, settings, quiet)
    assert staging_root == project / "dist"
    entry = (staging_root / "background" / "index.js").read_bytes()
    assert entry == bootstrap_source("http://127.0.0.1:4000/events").encode("utf-8") + b"\n" + SOURCE_FILES["background/index.js"]
    assert not list(project.glob("*.zip"))

def test_build_and_inject_without_background(project, quiet):
    (project / "src" / "background" / "index.js").unlink()
    staging_root = build_and_inject(project, Settings(), quiet)
    assert not (staging_root / "background" / "index.js").exists()

@pytest.mark.anyio
async def test_stop_signal_closes_streams_and_drains(project, quiet, sigint_ignored):
    settings = Settings(HOST="127.0.0.1", PORT=_free_port())
    session = DevSession(project, build_and_inject(project, settings, quiet), settings, quiet)
    frames = []

    with anyio.fail_after(30):
        async with anyio.create_task_group() as tg:
            tg.start_soon(session.run)
            while not session.server.started:
                await anyio.sleep(0.05)

            async with httpx.AsyncClient(base_url=f"http://127.0.0.1:{settings.PORT}", trust_env=False) as http:
                async with http.stream("GET", "/events") as response:
                    assert response.status_code == 200
                    assert len(session.broadcaster) == 1
                    session.server.handle_exit(signal.SIGINT, None)
                    async for chunk in response.aiter_text():
                        frames.append(chunk)
        # the task group only exits once the server and the watcher have returned

    assert frames == []
    assert len(session.broadcaster) == 0
    assert session.server.should_exit
    assert session.watcher._observer is None
