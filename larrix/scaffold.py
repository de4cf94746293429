# larrix/scaffold.py
from __future__ import annotations
import json
from pathlib import Path
from typing import Dict, List, Optional

from .config import DEFAULT_CONFIG_FILE
from .console import Console, format_size
from .errors import FileSystemError, ScaffoldError

DEFAULT_PROJECT_NAME = "larrix-extension"

DIRECTORIES = [
    "src/background",
    "src/content",
    "src/popup",
    "src/icons",
]

GITIGNORE = """dist
*.zip
.env
.DS_Store
"""

BACKGROUND_INDEX = """chrome.runtime.onInstalled.addListener(() => {
    console.log("Extension installed");
});
"""

CONTENT_INDEX = """console.log("Content script loaded");
"""

POPUP_HTML = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <link rel="stylesheet" href="style.css">
    <title>Popup</title>
</head>
<body>
    <div id="app">
        <h1>Hello from Larrix</h1>
    </div>
    <script src="main.js"></script>
</body>
</html>
"""

POPUP_CSS = """* {
    margin: 0;
    padding: 0;
    box-sizing: border-box;
}

body {
    width: 320px;
    min-height: 200px;
    font-family: system-ui, sans-serif;
    padding: 16px;
}

h1 {
    font-size: 18px;
    font-weight: 600;
}
"""

POPUP_MAIN = """const app = document.getElementById("app");
console.log("Popup loaded");
"""


def project_config(name: str) -> str:
    return json.dumps({
        "name": name,
        "version": "1.0.0",
        "manifest": {
            "manifest_version": 3,
            "permissions": [],
        },
    }, indent=4) + "\n"

def project_files(name: str) -> Dict[str, str]:
    return {
        ".gitignore": GITIGNORE,
        DEFAULT_CONFIG_FILE: project_config(name),
        "src/background/index.js": BACKGROUND_INDEX,
        "src/content/index.js": CONTENT_INDEX,
        "src/popup/index.html": POPUP_HTML,
        "src/popup/style.css": POPUP_CSS,
        "src/popup/main.js": POPUP_MAIN,
    }

def create_project(parent: Path, name: str, force: bool = False, console: Optional[Console] = None) -> Path:
    """Lay out a new extension project in <parent>/<name>. Returns its root."""
    console = console or Console()
    if not name or name in (".", "..") or Path(name).name != name:
        raise ScaffoldError(f"Invalid project name: {name!r}")
    root = Path(parent) / name
    files = project_files(name)

    existing: List[str] = [rel for rel in files if (root / rel).exists()]
    if existing and not force:
        raise ScaffoldError(
            f"{root} already contains {', '.join(existing)}. Use --force to overwrite."
        )

    console.step("init", f"Creating project {name}")
    console.new_line()
    try:
        for directory in DIRECTORIES:
            (root / directory).mkdir(parents=True, exist_ok=True)
        for rel, content in files.items():
            data = content.encode("utf-8")
            (root / rel).write_bytes(data)
            console.file(rel, format_size(len(data)))
    except OSError as e:
        raise FileSystemError(f"Could not create project {name}: {e}") from e
    console.new_line()
    console.success(f"Project {name} created successfully")
    console.new_line()
    return root
