# larrix/core/livereload.py
from __future__ import annotations
from pathlib import Path

from ..errors import InjectionError
from .manifest import BACKGROUND_ENTRY

BACKGROUND_AREA = BACKGROUND_ENTRY.split("/")[0]

# Prepended to the staged background service worker in dev builds.
BOOTSTRAP_TEMPLATE = """\
(() => {
    function setupLiveReload() {
        const eventSource = new EventSource("%(events_url)s");

        eventSource.addEventListener("reload", () => {
            if (typeof chrome !== "undefined" && chrome.runtime && chrome.runtime.reload) {
                chrome.runtime.reload();
            } else {
                console.warn("`chrome.runtime.reload()` not available. Manual reload may be required.");
            }
        });

        eventSource.onerror = (error) => {
            console.error("Live reload error:", error);
            eventSource.close();
            setTimeout(setupLiveReload, %(reconnect_delay_ms)d);
        };
    }

    setupLiveReload();
})();"""


def bootstrap_source(events_url: str, reconnect_delay_ms: int = 1000) -> str:
    return BOOTSTRAP_TEMPLATE % {"events_url": events_url, "reconnect_delay_ms": reconnect_delay_ms}

def in_background_area(rel_path: str) -> bool:
    return rel_path.replace("\\", "/").strip("/").split("/")[0] == BACKGROUND_AREA

def inject_bootstrap(staging_root: Path, events_url: str, reconnect_delay_ms: int = 1000) -> bool:
    """
    Prepend the live-reload bootstrap to the staged background entry.
    Returns False when there is no background entry or it already starts
    with the bootstrap (a sibling file changed, the entry was not recopied).
    """
    target = Path(staging_root) / BACKGROUND_ENTRY
    if not target.is_file():
        return False
    bootstrap = bootstrap_source(events_url, reconnect_delay_ms).encode("utf-8")
    try:
        original = target.read_bytes()
        if original.startswith(bootstrap):
            return False
        target.write_bytes(bootstrap + b"\n" + original)
    except OSError as e:
        raise InjectionError(f"Could not inject live reload client: {e}") from e
    return True
