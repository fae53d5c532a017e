"""Tests for the restload CLI."""

import json
import os

import pytest
from click.testing import CliRunner

from restload.cli.click_app import cli
from tests.helpers import native_doc, postman_v2_doc, write_config, write_json


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def settings_file(tmp_path):
    return write_json(
        tmp_path / "settings.json",
        {"host": "desktop", "workspace_location": str(tmp_path), "default_import_type": "native"},
    )


def test_version(runner):
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert "restload" in result.output


class TestConvert:
    def test_prints_remapped_bundle(self, runner, tmp_path):
        source = write_json(tmp_path / "pets.json", postman_v2_doc())

        result = runner.invoke(cli, ["convert", str(source), "--import-type", "Postman", "--workspace-id", "ws-7"])

        assert result.exit_code == 0, result.output
        payload = json.loads(result.stdout)
        root = payload["collection"][0]
        assert root["name"] == "Pet Store"
        assert root["id"] != "pm-root"
        assert root["workspaceId"] == "ws-7"
        assert payload["plugins"][0]["workspaceId"] == "ws-7"

    def test_undetectable_document_fails(self, runner, tmp_path):
        source = write_json(tmp_path / "other.json", {"hello": "world"})

        result = runner.invoke(cli, ["convert", str(source)])

        assert result.exit_code == 1
        assert "convert: nothing imported" in result.output

    def test_malformed_document_fails(self, runner, tmp_path):
        source = write_json(tmp_path / "broken.json", {"info": {"name": "x"}})

        result = runner.invoke(cli, ["convert", str(source), "-t", "postman"])

        assert result.exit_code == 1
        assert "convert:" in result.output


class TestLoad:
    def test_populates_workspace_file(self, runner, tmp_path, settings_file):
        write_config(tmp_path, ["native.json"], ["envs.json"])
        write_json(tmp_path / "native.json", native_doc())
        write_json(tmp_path / "envs.json", [{"name": "Dev", "environment": {"host": "localhost"}}])
        workspace_file = tmp_path / "workspace.json"

        result = runner.invoke(cli, ["--settings", str(settings_file), "load", str(workspace_file), "--workspace-id", "ws-1"])

        assert result.exit_code == 0, result.output
        assert "Loaded 1 collection file(s) and 1 environment(s)" in result.output
        saved = json.loads(workspace_file.read_text(encoding="utf-8"))
        assert saved["id"] == "ws-1"
        assert len(saved["collectionTree"]) == 1
        assert saved["environments"] == [{"name": "Dev", "environment": {"host": "localhost"}}]

    def test_json_result(self, runner, tmp_path, settings_file):
        write_config(tmp_path, ["native.json"])
        write_json(tmp_path / "native.json", native_doc())

        result = runner.invoke(cli, ["--settings", str(settings_file), "load", str(tmp_path / "workspace.json"), "--json"])

        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout) == {"success": True, "collectionsLoaded": 1, "environmentsLoaded": 0}

    def test_existing_workspace_is_skipped_unless_forced(self, runner, tmp_path, settings_file):
        write_config(tmp_path, ["native.json"])
        write_json(tmp_path / "native.json", native_doc())
        workspace_file = write_json(
            tmp_path / "workspace.json",
            {"id": "ws-1", "collectionTree": [{"id": "x", "type": "request", "parentId": None}]},
        )

        result = runner.invoke(cli, ["--settings", str(settings_file), "load", str(workspace_file)])
        assert result.exit_code == 0, result.output
        assert len(json.loads(workspace_file.read_text(encoding="utf-8"))["collectionTree"]) == 1

        result = runner.invoke(cli, ["--settings", str(settings_file), "load", str(workspace_file), "--force"])
        assert result.exit_code == 0, result.output
        assert len(json.loads(workspace_file.read_text(encoding="utf-8"))["collectionTree"]) == 2

    def test_invalid_config_fails_and_leaves_workspace_alone(self, runner, tmp_path, settings_file):
        (tmp_path / "collections-envs.yaml").write_text("collections: 5\n", encoding="utf-8")
        workspace_file = tmp_path / "workspace.json"

        result = runner.invoke(cli, ["--settings", str(settings_file), "load", str(workspace_file)])

        assert result.exit_code == 1
        assert "load: Invalid auto-load config" in result.output
        assert not workspace_file.exists()

    def test_bad_import_type_fails(self, runner, tmp_path, settings_file):
        result = runner.invoke(
            cli,
            ["--settings", str(settings_file), "load", str(tmp_path / "w.json"), "--import-type", "har"],
        )
        assert result.exit_code == 1
        assert "load: Invalid default_import_type" in result.output

    def test_missing_settings_file_fails(self, runner, tmp_path):
        result = runner.invoke(cli, ["--settings", str(tmp_path / "nope.json"), "load", str(tmp_path / "w.json")])
        assert result.exit_code == 1
        assert "Settings file not found" in result.output


def test_serve_hands_off_to_uvicorn(runner, tmp_path, monkeypatch):
    uvicorn = pytest.importorskip("uvicorn")
    calls = []
    monkeypatch.setattr(uvicorn, "run", lambda app, **kwargs: calls.append((app, kwargs)))
    monkeypatch.setenv("RESTLOAD_SERVICE_CONFIG", "unset")
    monkeypatch.setenv("RESTLOAD_CACHE_DIR", "unset")

    config = tmp_path / "collections-envs.yaml"
    result = runner.invoke(cli, ["serve", "--port", "5005", "--config", str(config), "--cache-dir", str(tmp_path / "c")])

    assert result.exit_code == 0, result.output
    assert calls == [
        ("restload.server.app:create_app", {"factory": True, "host": "127.0.0.1", "port": 5005}),
    ]
    assert os.environ["RESTLOAD_SERVICE_CONFIG"] == str(config)
    assert os.environ["RESTLOAD_CACHE_DIR"] == str(tmp_path / "c")
