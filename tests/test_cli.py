"""Tests for the roombot CLI commands that do not need a server."""

import json

import pytest
from typer.testing import CliRunner

from roombot.cli.main import app
from roombot.models.room import Room
from roombot.storage.brain import FileBrain
from roombot.storage.store import RoomStore

runner = CliRunner()


@pytest.fixture
def config_path(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({
        "storage": {"dataDir": str(tmp_path / "data")},
        "logging": {"level": "WARNING"},
    }))
    return path


class TestCli:
    """Test init, rooms and run/sync preconditions."""

    def test_version(self):
        result = runner.invoke(app, ["version"])

        assert result.exit_code == 0
        assert "roombot v" in result.stdout

    def test_init_writes_config(self, tmp_path):
        path = tmp_path / "new" / "config.json"

        result = runner.invoke(app, ["init", "--config", str(path)])

        assert result.exit_code == 0
        assert "wickrio" in json.loads(path.read_text())

    def test_init_refuses_to_overwrite(self, config_path):
        result = runner.invoke(app, ["init", "-c", str(config_path)])

        assert result.exit_code == 1
        assert "dataDir" in config_path.read_text()

    def test_rooms_empty(self, config_path):
        result = runner.invoke(app, ["rooms", "-c", str(config_path)])

        assert result.exit_code == 0
        assert "No rooms stored yet" in result.stdout

    def test_rooms_lists_hidden_rooms(self, config_path, tmp_path):
        store = RoomStore(FileBrain(tmp_path / "data" / "brain"))
        store.insert(Room.from_platform({
            "vgroupid": "Shidden", "title": "Secret Room", "members": [], "masters": [],
        }))
        store.save()

        result = runner.invoke(app, ["rooms", "-c", str(config_path)])

        assert result.exit_code == 0
        assert "Secret" in result.stdout
        assert "hidden" in result.stdout

    def test_sync_requires_api_key(self, config_path):
        result = runner.invoke(app, ["sync", "-c", str(config_path)])

        assert result.exit_code == 1
        assert "apiKey" in result.stdout
