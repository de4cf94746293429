import zipfile
from pathlib import Path

import pytest
from click.testing import CliRunner

from larrix import __version__
from larrix.cli import cli


@pytest.fixture
def runner():
    return CliRunner()


def test_help_lists_commands(runner):
    result = runner.invoke(cli, ["help"])
    assert result.exit_code == 0
    for command in ("init", "build", "dev", "help"):
        assert command in result.output

def test_help_for_command(runner):
    result = runner.invoke(cli, ["help", "build"])
    assert result.exit_code == 0
    assert "Builds the browser extension for production." in result.output

def test_help_unknown_command(runner):
    result = runner.invoke(cli, ["help", "deploy"])
    assert result.exit_code == 1
    assert "Unknown command 'deploy'" in result.output
    assert "init" in result.output

def test_version(runner):
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output

def test_build_outside_project(runner, tmp_path):
    with runner.isolated_filesystem(temp_dir=tmp_path):
        result = runner.invoke(cli, ["build"])
    assert result.exit_code == 1
    assert "not a valid Larrix project" in result.output

def test_dev_outside_project(runner, tmp_path):
    with runner.isolated_filesystem(temp_dir=tmp_path):
        result = runner.invoke(cli, ["dev"])
    assert result.exit_code == 1
    assert "not a valid Larrix project" in result.output

def test_init_then_build(runner, tmp_path, monkeypatch):
    with runner.isolated_filesystem(temp_dir=tmp_path) as cwd:
        result = runner.invoke(cli, ["init", "demo"])
        assert result.exit_code == 0, result.output
        assert "Project demo created successfully" in result.output
        assert "Next steps: cd demo && larrix dev" in result.output

        monkeypatch.chdir(f"{cwd}/demo")
        result = runner.invoke(cli, ["build"])
        assert result.exit_code == 0, result.output
        assert "Build completed successfully" in result.output
        with zipfile.ZipFile("demo-1.0.0.zip") as zf:
            assert "manifest.json" in zf.namelist()

def test_init_prompts_for_name(runner, tmp_path):
    with runner.isolated_filesystem(temp_dir=tmp_path) as cwd:
        result = runner.invoke(cli, ["init"], input="prompted\n")
        assert result.exit_code == 0, result.output
        assert (Path(cwd) / "prompted" / "larrix.config.json").is_file()

def test_init_refuses_existing(runner, tmp_path):
    with runner.isolated_filesystem(temp_dir=tmp_path):
        runner.invoke(cli, ["init", "demo"])
        result = runner.invoke(cli, ["init", "demo"])
    assert result.exit_code == 1
    assert "--force" in result.output
