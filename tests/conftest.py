import json
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from larrix.console import Console
from larrix.dev.broadcaster import Broadcaster
from larrix.dev.server import create_app

SOURCE_FILES = {
    "background/index.js": b'chrome.runtime.onInstalled.addListener(() => {});\n',
    "content/index.js": b'console.log("content");\n',
    "popup/index.html": b"<!DOCTYPE html><html><body><h1>popup</h1></body></html>\n",
    "popup/style.css": b"body { width: 320px; }\n",
    "popup/main.js": b'console.log("popup");\n',
    "icons/logo.png": bytes(range(256)) * 4,
}


def write_files(root: Path, files: dict) -> Path:
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
    return root


@pytest.fixture
def anyio_backend():
    return "asyncio"

@pytest.fixture
def write_tree():
    return write_files

@pytest.fixture
def project(tmp_path):
    root = tmp_path / "ext"
    root.mkdir()
    (root / "larrix.config.json").write_text(json.dumps({
        "name": "x",
        "version": "1.0.0",
        "manifest": {"permissions": ["storage"]},
    }), encoding="utf-8")
    write_files(root / "src", SOURCE_FILES)
    return root

@pytest.fixture
def quiet():
    return Console(quiet=True)

@pytest.fixture
def staged(tmp_path):
    root = tmp_path / "dist"
    write_files(root, SOURCE_FILES)
    (root / "manifest.json").write_text('{"name": "x"}', encoding="utf-8")
    return root

@pytest.fixture
def broadcaster():
    return Broadcaster()

@pytest.fixture
def app(staged, broadcaster, quiet):
    return create_app(staged, broadcaster, console=quiet)

@pytest.fixture
def client(app):
    return TestClient(app)
