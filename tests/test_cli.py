"""Tests for the replay-recordings CLI commands."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from replay_recordings import __version__
from replay_recordings.cli.main import app
from replay_recordings.models.config import API_KEY_ENV, DIRECTORY_ENV, SERVER_ENV

runner = CliRunner()


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in (DIRECTORY_ENV, SERVER_ENV, API_KEY_ENV):
        monkeypatch.delenv(name, raising=False)


def _write_on_disk(tmp_path: Path, log_writer, recording_ids: list[str]) -> None:
    events: list[dict] = []
    for index, recording_id in enumerate(recording_ids):
        path = tmp_path / f"{recording_id}.bin"
        path.write_bytes(b"contents of " + recording_id.encode())
        events += [
            {
                "kind": "createRecording",
                "id": recording_id,
                "buildId": "linux-chromium-1",
                "timestamp": 1000 + index,
            },
            {"kind": "writeStarted", "id": recording_id, "path": str(path)},
            {"kind": "writeFinished", "id": recording_id},
        ]
    log_writer(tmp_path, events)


class TestVersion:
    def test_version_flag(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"replay-recordings {__version__}" in result.output


class TestListCommand:
    def test_json_listing(self, tmp_path, log_writer):
        _write_on_disk(tmp_path, log_writer, ["r1", "r2"])

        result = runner.invoke(app, ["ls", "--directory", str(tmp_path)])

        assert result.exit_code == 0
        listing = json.loads(result.stdout)
        assert [entry["id"] for entry in listing] == ["r1", "r2"]
        assert listing[0]["status"] == "onDisk"
        assert listing[0]["runtime"] == "chromium"
        assert "buildId" not in listing[0]

    def test_empty_directory_lists_nothing(self, tmp_path):
        result = runner.invoke(app, ["ls", "--directory", str(tmp_path / "none")])
        assert result.exit_code == 0
        assert json.loads(result.stdout) == []

    def test_directory_from_environment(self, tmp_path, log_writer, monkeypatch):
        _write_on_disk(tmp_path, log_writer, ["r1"])
        monkeypatch.setenv(DIRECTORY_ENV, str(tmp_path))

        result = runner.invoke(app, ["ls"])

        assert result.exit_code == 0
        assert [entry["id"] for entry in json.loads(result.stdout)] == ["r1"]

    def test_all_includes_hidden(self, tmp_path, log_writer):
        log_writer(tmp_path, [
            {"kind": "createRecording", "id": "hidden", "buildId": "x-gecko-1"},
            {"kind": "recordingUnusable", "id": "hidden", "reason": "No interesting content"},
        ])

        default = runner.invoke(app, ["ls", "--directory", str(tmp_path)])
        everything = runner.invoke(app, ["ls", "--directory", str(tmp_path), "--all"])

        assert json.loads(default.stdout) == []
        assert [entry["id"] for entry in json.loads(everything.stdout)] == ["hidden"]

    def test_table_output(self, tmp_path, log_writer):
        _write_on_disk(tmp_path, log_writer, ["r1"])

        result = runner.invoke(app, ["ls", "--directory", str(tmp_path), "--table"])

        assert result.exit_code == 0
        assert "r1" in result.stdout
        assert "onDisk" in result.stdout

    def test_invalid_config_file(self, tmp_path):
        (tmp_path / "config.yaml").write_text("unknown_key: 1\n")

        result = runner.invoke(app, ["ls", "--directory", str(tmp_path)])

        assert result.exit_code == 1
        assert "Invalid config.yaml" in result.output


class TestRemoveCommands:
    def test_remove_one(self, tmp_path, log_writer):
        _write_on_disk(tmp_path, log_writer, ["r1", "r2"])

        result = runner.invoke(app, ["rm", "r1", "--directory", str(tmp_path)])

        assert result.exit_code == 0
        assert not (tmp_path / "r1.bin").exists()
        listing = runner.invoke(app, ["ls", "--directory", str(tmp_path)])
        assert [entry["id"] for entry in json.loads(listing.stdout)] == ["r2"]

    def test_remove_unknown(self, tmp_path, log_writer):
        _write_on_disk(tmp_path, log_writer, ["r1"])

        result = runner.invoke(app, ["rm", "nope", "--directory", str(tmp_path)])

        assert result.exit_code == 1
        assert "Unknown recording nope" in result.output
        assert (tmp_path / "r1.bin").exists()

    def test_remove_all(self, tmp_path, log_writer):
        _write_on_disk(tmp_path, log_writer, ["r1", "r2"])

        result = runner.invoke(app, ["rm-all", "--directory", str(tmp_path)])

        assert result.exit_code == 0
        assert not (tmp_path / "recordings.log").exists()
        assert list(tmp_path.glob("*.bin")) == []


class TestUploadCommands:
    def test_upload_unknown(self, tmp_path, log_writer):
        _write_on_disk(tmp_path, log_writer, ["r1"])

        result = runner.invoke(app, ["upload", "nope", "--directory", str(tmp_path)])

        assert result.exit_code == 1
        assert "Unknown recording nope" in result.output

    def test_upload_success(self, tmp_path, log_writer, fake_server, fake_socket, connector):
        _write_on_disk(tmp_path, log_writer, ["r1"])

        with patch("replay_recordings.protocol.client._default_connect", connector(fake_socket)):
            result = runner.invoke(
                app,
                ["upload", "r1", "--directory", str(tmp_path), "--server", "wss://custom.test"],
            )

        assert result.exit_code == 0, result.output
        assert "Uploaded r1 as remote-1" in result.output
        assert fake_socket.address == "wss://custom.test"
        assert fake_server.assembled() == b"contents of r1"

    def test_upload_uses_api_key_from_environment(
        self, tmp_path, log_writer, fake_server, fake_socket, connector, monkeypatch
    ):
        _write_on_disk(tmp_path, log_writer, ["r1"])
        monkeypatch.setenv(API_KEY_ENV, "secret")

        with patch("replay_recordings.protocol.client._default_connect", connector(fake_socket)):
            result = runner.invoke(app, ["upload", "r1", "--directory", str(tmp_path)])

        assert result.exit_code == 0, result.output
        assert fake_server.calls[0]["params"] == {"accessToken": "secret"}

    def test_upload_failure_exits_nonzero(self, tmp_path, log_writer, fake_server, fake_socket, connector):
        _write_on_disk(tmp_path, log_writer, ["r1"])
        fake_server.fail_methods.add("Internal.createRecording")

        with patch("replay_recordings.protocol.client._default_connect", connector(fake_socket)):
            result = runner.invoke(app, ["upload", "r1", "--directory", str(tmp_path)])

        assert result.exit_code == 1
        assert "Upload of r1 failed" in result.output

    def test_upload_all(self, tmp_path, log_writer, fake_server, fake_socket, connector):
        _write_on_disk(tmp_path, log_writer, ["r1", "r2"])

        with patch("replay_recordings.protocol.client._default_connect", connector(fake_socket)):
            result = runner.invoke(app, ["upload-all", "--directory", str(tmp_path)])

        assert result.exit_code == 0, result.output
        creates = [c for c in fake_server.calls if c["method"] == "Internal.createRecording"]
        assert len(creates) == 2


class TestViewCommands:
    def test_view_opens_browser(self, tmp_path, log_writer, fake_socket, connector):
        _write_on_disk(tmp_path, log_writer, ["r1"])

        with patch("replay_recordings.protocol.client._default_connect", connector(fake_socket)), \
                patch("typer.launch") as launch:
            result = runner.invoke(app, ["view", "r1", "--directory", str(tmp_path)])

        assert result.exit_code == 0, result.output
        launch.assert_called_once_with("https://app.replay.io?id=remote-1")

    def test_view_unknown(self, tmp_path, log_writer):
        _write_on_disk(tmp_path, log_writer, ["r1"])

        with patch("typer.launch") as launch:
            result = runner.invoke(app, ["view", "nope", "--directory", str(tmp_path)])

        assert result.exit_code == 1
        launch.assert_not_called()

    def test_view_latest_without_recordings(self, tmp_path):
        with patch("typer.launch") as launch:
            result = runner.invoke(app, ["view-latest", "--directory", str(tmp_path)])

        assert result.exit_code == 1
        assert "Could not view the latest recording" in result.output
        launch.assert_not_called()

    def test_view_latest_already_uploaded(self, tmp_path, log_writer):
        log_writer(tmp_path, [
            {"kind": "createRecording", "id": "r1", "buildId": "x-gecko-1", "timestamp": 1},
            {"kind": "uploadStarted", "id": "r1", "server": "wss://dispatch.replay.io", "recordingId": "abc"},
            {"kind": "uploadFinished", "id": "r1"},
        ])

        with patch("typer.launch") as launch:
            result = runner.invoke(app, ["view-latest", "--directory", str(tmp_path)])

        assert result.exit_code == 0, result.output
        launch.assert_called_once_with("https://app.replay.io?id=abc")
