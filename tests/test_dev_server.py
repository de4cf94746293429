import pytest

from larrix.dev.server import content_type_for, resolve_static
from larrix.settings import Settings
from conftest import SOURCE_FILES


def test_root_redirects_to_popup(client):
    r = client.get("/", follow_redirects=False)
    assert r.status_code == 302
    assert r.headers["location"] == "/popup/"

def test_directory_serves_index(client):
    r = client.get("/popup/")
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/html")
    assert r.content == SOURCE_FILES["popup/index.html"]

@pytest.mark.parametrize("path,content_type", [
    ("/popup/main.js", "application/javascript"),
    ("/popup/style.css", "text/css"),
    ("/manifest.json", "application/json"),
    ("/icons/logo.png", "application/octet-stream"),
])
def test_static_content_types(client, path, content_type):
    r = client.get(path)
    assert r.status_code == 200
    assert r.headers["content-type"].startswith(content_type)

def test_binary_served_verbatim(client):
    assert client.get("/icons/logo.png").content == SOURCE_FILES["icons/logo.png"]

def test_missing_file(client):
    r = client.get("/popup/nope.js")
    assert r.status_code == 404
    assert r.text == "Not Found"

def test_directory_without_index(client):
    assert client.get("/background/").status_code == 404

def test_events_preflight(client):
    r = client.options("/events")
    assert r.status_code == 204
    assert r.headers["access-control-allow-origin"] == "*"
    assert "GET" in r.headers["access-control-allow-methods"]

def test_custom_events_path(staged, broadcaster, quiet):
    from fastapi.testclient import TestClient
    from larrix.dev.server import create_app

    settings = Settings(EVENTS_PATH="/livereload")
    client = TestClient(create_app(staged, broadcaster, settings=settings, console=quiet))
    assert client.options("/livereload").status_code == 204
    assert client.get("/events").status_code == 404

@pytest.mark.parametrize("url_path", ["/../secret.txt", "/popup/../../secret.txt", "/popup/../../../etc"])
def test_resolve_static_rejects_escape(staged, url_path):
    (staged.parent / "secret.txt").write_text("secret", encoding="utf-8")
    target = resolve_static(staged, url_path)
    assert target is None

def test_resolve_static_maps_paths(staged):
    assert resolve_static(staged, "/popup/main.js") == (staged / "popup" / "main.js").resolve()
    assert resolve_static(staged, "/popup/") == (staged / "popup" / "index.html").resolve()

def test_content_type_for_is_case_insensitive(tmp_path):
    assert content_type_for(tmp_path / "INDEX.HTML") == "text/html"
