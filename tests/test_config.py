import json

import pytest
from pydantic import ValidationError

from larrix.config import ProjectDescriptor, load_descriptor, validate_project
from larrix.errors import ConfigurationError


def _write(tmp_path, payload):
    text = payload if isinstance(payload, str) else json.dumps(payload)
    (tmp_path / "larrix.config.json").write_text(text, encoding="utf-8")


def test_load_descriptor(tmp_path):
    _write(tmp_path, {"name": "x", "version": "1.0.0", "manifest": {"permissions": ["storage"]}})
    d = load_descriptor(tmp_path)
    assert (d.name, d.version, d.manifest) == ("x", "1.0.0", {"permissions": ["storage"]})

def test_manifest_defaults_to_empty(tmp_path):
    _write(tmp_path, {"name": "x", "version": "1.0.0"})
    assert load_descriptor(tmp_path).manifest == {}

def test_missing_config(tmp_path):
    with pytest.raises(ConfigurationError, match="not a valid Larrix project"):
        validate_project(tmp_path)
    with pytest.raises(ConfigurationError):
        load_descriptor(tmp_path)

@pytest.mark.parametrize("payload", [
    "{not json",
    "[1, 2]",
    {"version": "1.0.0"},
    {"name": "", "version": "1.0.0"},
    {"name": "x", "version": "1.0.0", "manifest": ["nope"]},
])
def test_invalid_config(tmp_path, payload):
    _write(tmp_path, payload)
    with pytest.raises(ConfigurationError):
        load_descriptor(tmp_path)

def test_descriptor_is_frozen():
    d = ProjectDescriptor(name="x", version="1.0.0")
    with pytest.raises(ValidationError):
        d.name = "y"
