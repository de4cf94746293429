# larrix/core/manifest.py
from __future__ import annotations
import json
import logging
from pathlib import Path
from typing import Any, Dict

from ..config import ProjectDescriptor
from ..errors import FileSystemError

log = logging.getLogger(__name__)

MANIFEST_FILE = "manifest.json"
MANIFEST_VERSION = 3

# sentinel files, relative to the source root
BACKGROUND_ENTRY = "background/index.js"
CONTENT_ENTRY = "content/index.js"
POPUP_PAGE = "popup/index.html"

RESERVED_KEYS = ("manifest_version", "name", "version")


def _sentinel(source_root: Path, rel: str) -> bool:
    return (Path(source_root) / rel).is_file()

def _set_section(manifest: Dict[str, Any], overrides: Dict[str, Any], key: str, value: Any) -> None:
    if key in overrides and overrides[key] != value:
        log.warning("manifest override for %r replaced by the value derived from the source tree", key)
    manifest[key] = value

def synthesize_manifest(descriptor: ProjectDescriptor, source_root: Path) -> Dict[str, Any]:
    """
    Recompute the manifest from the descriptor and the sentinel files
    currently present under `source_root`.

    Key order: manifest_version, name, version, override keys, then
    background / content_scripts / action. Base fields beat overrides;
    sentinel sections beat overrides of the same key (keeping its position).
    """
    manifest: Dict[str, Any] = {
        "manifest_version": MANIFEST_VERSION,
        "name": descriptor.name,
        "version": descriptor.version,
    }
    overrides = dict(descriptor.manifest)
    for key, value in overrides.items():
        if key in RESERVED_KEYS:
            if value != manifest[key]:
                log.warning("ignoring manifest override %r=%r, keeping %r", key, value, manifest[key])
            continue
        manifest[key] = value

    if _sentinel(source_root, BACKGROUND_ENTRY):
        _set_section(manifest, overrides, "background", {"service_worker": BACKGROUND_ENTRY})
    if _sentinel(source_root, CONTENT_ENTRY):
        _set_section(manifest, overrides, "content_scripts", [
            {"matches": ["<all_urls>"], "js": [CONTENT_ENTRY]},
        ])
    if _sentinel(source_root, POPUP_PAGE):
        _set_section(manifest, overrides, "action", {"default_popup": POPUP_PAGE})
    return manifest

def render_manifest(manifest: Dict[str, Any]) -> bytes:
    return json.dumps(manifest, indent=4, ensure_ascii=False).encode("utf-8")

def write_manifest(descriptor: ProjectDescriptor, source_root: Path, staging_root: Path) -> int:
    """Synthesize and (over)write <staging_root>/manifest.json. Returns its size in bytes."""
    content = render_manifest(synthesize_manifest(descriptor, source_root))
    target = Path(staging_root) / MANIFEST_FILE
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)
    except OSError as e:
        raise FileSystemError(f"Could not write {target}: {e}") from e
    return len(content)
