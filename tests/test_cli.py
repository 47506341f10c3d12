"""
Tests for the regpoll command line.
"""

import json

import pytest
import yaml
from click.testing import CliRunner

from registry_poll.exceptions import ConfigurationError
from registry_poll_cli import main as cli_main
from registry_poll_cli.config import CLIConfig, create_sample_config
from registry_poll_cli.main import cli

from conftest import FakeQueue, envelope, utc


@pytest.fixture(autouse=True)
def isolated(monkeypatch):
    """No config discovery from the host and no password in the environment."""
    monkeypatch.setattr("registry_poll_cli.config.DEFAULT_CONFIG_PATHS", [])
    monkeypatch.delenv("REGPOLL_PASSWORD", raising=False)


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def fake_queue(monkeypatch):
    queue = FakeQueue([
        envelope("m1", "transfer", utc(2024, 6, 1, 12, 0), domain="one.example"),
        envelope("m2", "message", utc(2024, 6, 1, 13, 0)),
        envelope("m3", "transfer", utc(2024, 5, 1), domain="old.example"),
    ])
    monkeypatch.setattr(cli_main, "get_queue_client", lambda ctx: queue)
    return queue


class TestPollCommand:
    """Tests for regpoll poll."""

    def test_table_output(self, runner, fake_queue):
        """Notifications are printed as a table followed by the backlog."""
        result = runner.invoke(cli, ["poll", "--since", "2024-06-01T00:00:00Z"])

        assert result.exit_code == 0, result.output
        assert "one.example" in result.output
        assert "old.example" not in result.output
        assert "Created At" in result.output
        assert "Remaining in queue: 0" in result.output
        assert fake_queue.acked == ["m1", "m2", "m3"]

    def test_json_output(self, runner, fake_queue):
        """JSON output carries notifications and count_remaining, without extra."""
        result = runner.invoke(cli, ["-f", "json", "poll", "--limit", "1"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["count_remaining"] == 3
        assert [n["id"] for n in data["notifications"]] == ["m1"]
        assert data["notifications"][0]["type"] == "transfer_in"
        assert data["notifications"][0]["created_at"] == "2024-06-01T12:00:00+00:00"
        assert "extra" not in data["notifications"][0]

    def test_empty_queue(self, runner, monkeypatch):
        """An empty queue prints a placeholder."""
        monkeypatch.setattr(cli_main, "get_queue_client", lambda ctx: FakeQueue())

        result = runner.invoke(cli, ["poll"])

        assert result.exit_code == 0
        assert "No notifications" in result.output

    @pytest.mark.parametrize("args", [["--limit", "0"], ["--time-budget", "0"], ["--since", "not a date"]])
    def test_invalid_options(self, runner, fake_queue, args):
        """Bad option values are usage errors and nothing is read."""
        result = runner.invoke(cli, ["poll"] + args)

        assert result.exit_code == 2
        assert fake_queue.fetch_calls == 0

    def test_non_epp_vendor(self, runner, fake_queue, tmp_path):
        """Library-only vendors are rejected by the CLI."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text(yaml.safe_dump({"poll": {"vendor": "ascio"}}))

        result = runner.invoke(cli, ["-c", str(config_file), "poll"])

        assert isinstance(result.exception, ConfigurationError)
        assert fake_queue.fetch_calls == 0


class TestAckCommand:
    """Tests for regpoll ack."""

    def test_ack(self, runner, fake_queue):
        """A single message is acknowledged."""
        result = runner.invoke(cli, ["ack", "m2"])

        assert result.exit_code == 0
        assert "Message acknowledged: m2" in result.output
        assert fake_queue.acked == ["m2"]

    def test_quiet(self, runner, fake_queue):
        """--quiet suppresses the success line but still acks."""
        result = runner.invoke(cli, ["-q", "ack", "m1"])

        assert result.exit_code == 0
        assert result.output == ""
        assert fake_queue.acked == ["m1"]


class TestMissingSettings:
    """Tests for missing connection settings."""

    def test_no_host(self, runner):
        """Polling without a host exits with an error."""
        result = runner.invoke(cli, ["poll"])

        assert result.exit_code == 1
        assert "No server host specified" in result.output

    def test_no_client_id(self, runner):
        """A host alone is not enough to log in."""
        result = runner.invoke(cli, ["--host", "epp.test", "poll"])

        assert result.exit_code == 1
        assert "No client ID specified" in result.output


class TestVendorsCommand:
    """Tests for regpoll vendors."""

    def test_lists_tables(self, runner):
        """Every vendor and its codes are listed."""
        result = runner.invoke(cli, ["vendors"])

        assert result.exit_code == 0
        assert "ascio:" in result.output
        assert "epp:" in result.output
        assert "netim:" in result.output
        assert "TransferAway -> transfer_out" in result.output


class TestConfigCommands:
    """Tests for regpoll config."""

    def test_init_creates_file(self, runner, tmp_path):
        """config init writes the sample config."""
        path = tmp_path / "regpoll" / "config.yaml"

        result = runner.invoke(cli, ["config", "init", "--path", str(path)])

        assert result.exit_code == 0
        assert path.read_text() == create_sample_config()

    def test_init_refuses_overwrite(self, runner, tmp_path):
        """An existing file is kept unless --force is given."""
        path = tmp_path / "config.yaml"
        path.write_text("server: {}\n")

        result = runner.invoke(cli, ["config", "init", "--path", str(path)])
        assert result.exit_code == 1
        assert path.read_text() == "server: {}\n"

        result = runner.invoke(cli, ["config", "init", "--path", str(path), "--force"])
        assert result.exit_code == 0
        assert path.read_text() == create_sample_config()

    def test_show_masks_password(self, runner, tmp_path):
        """config show never prints the password."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text(yaml.safe_dump({
            "server": {"host": "epp.test"},
            "credentials": {"client_id": "registrar1", "password": "hunter2"},
        }))

        result = runner.invoke(cli, ["-c", str(config_file), "config", "show"])

        assert result.exit_code == 0
        assert "server.host: epp.test" in result.output
        assert "hunter2" not in result.output
        assert "********" in result.output
        assert cli_main.state.config.credentials.password == "hunter2"


class TestConfigLoading:
    """Tests for CLIConfig parsing."""

    def test_sample_config_parses(self):
        """The sample config is valid, and profiles replace the root section."""
        data = yaml.safe_load(create_sample_config())

        root = CLIConfig.from_dict(data)
        ote = CLIConfig.from_dict(data, "ote")

        assert root.server.host == "epp.registry.example"
        assert root.poll.limit == 100
        assert root.poll.time_budget == 60
        assert ote.server.host == "epp-ote.registry.example"
        assert ote.poll.limit == 20

    @pytest.mark.parametrize("data", [
        {"server": "epp.test"},
        {"server": {"port": "seven hundred"}},
        {"poll": {"limit": 0}},
    ])
    def test_invalid(self, data):
        """Malformed sections and values raise ConfigurationError."""
        with pytest.raises(ConfigurationError):
            CLIConfig.from_dict(data)

    def test_from_file_rejects_non_mapping(self, tmp_path):
        """A YAML list at top level is rejected."""
        path = tmp_path / "config.yaml"
        path.write_text("- a\n- b\n")

        with pytest.raises(ConfigurationError):
            CLIConfig.from_file(path)
