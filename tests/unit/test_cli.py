"""Unit tests for CLI parsing, configuration layering and handlers."""

import json
import logging
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from tinycdp.cli import main as cli_main
from tinycdp.cli.main import build_configuration, create_main_parser, create_parent_parser
from tinycdp.exceptions import CDPError, CDPTargetNotFoundError
from tinycdp.session import Target


def parse(argv):
    return create_main_parser(create_parent_parser()).parse_args(argv)


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture(autouse=True)
def no_config_file(monkeypatch, tmp_path):
    monkeypatch.setattr(cli_main, "DEFAULT_CONFIG_FILE", str(tmp_path / "missing.json"))
    for name in ("TINYCDP_CHROME_PORT", "TINYCDP_LOG_LEVEL", "TINYCDP_LOG_FORMAT"):
        monkeypatch.delenv(name, raising=False)


@pytest.mark.unit
class TestParser:
    def test_subcommand_required(self):
        with pytest.raises(SystemExit):
            parse([])

    def test_screenshot_options(self):
        args = parse(
            ["screenshot", "https://example.com", "-o", "out.jpg", "--image-format", "jpeg",
             "--quality", "70", "--headful"]
        )
        assert args.url == "https://example.com"
        assert args.output == "out.jpg"
        assert args.image_format == "jpeg"
        assert args.quality == 70
        assert args.headful is True

    def test_quiet_and_verbose_are_exclusive(self):
        with pytest.raises(SystemExit):
            parse(["version", "--quiet", "--verbose"])


@pytest.mark.unit
class TestBuildConfiguration:
    def test_cli_flags_override_environment(self, monkeypatch, tmp_path):
        monkeypatch.setenv("TINYCDP_CHROME_PORT", "9444")
        args = parse(["screenshot", "https://example.com", "--chrome-port", "9555",
                      "--timeout", "0", "--format", "json", "--chrome-path", "/bin/chrome"])

        config = build_configuration(args, str(tmp_path / "missing.json"))

        assert config.chrome_port == 9555
        assert config.navigation_timeout == 0
        assert config.log_format == "json"
        assert config.chrome_path == "/bin/chrome"

    def test_unset_flags_keep_environment(self, monkeypatch, tmp_path):
        monkeypatch.setenv("TINYCDP_CHROME_PORT", "9444")
        config = build_configuration(parse(["version"]), str(tmp_path / "missing.json"))
        assert config.chrome_port == 9444

    def test_verbosity_overrides_log_level(self, tmp_path):
        missing = str(tmp_path / "missing.json")
        assert build_configuration(parse(["version", "--verbose"]), missing).log_level == "DEBUG"
        assert build_configuration(parse(["version", "--quiet"]), missing).log_level == "ERROR"
        assert build_configuration(
            parse(["version", "--log-level", "warning"]), missing
        ).log_level == "WARNING"

    def test_headful_flag(self, tmp_path):
        args = parse(["screenshot", "https://example.com", "--headful"])
        assert build_configuration(args, str(tmp_path / "missing.json")).headless is False


@pytest.mark.unit
class TestHandlers:
    def test_query_rejects_invalid_params(self, capsys):
        exit_code = cli_main.main(["query", "--method", "Page.navigate", "--params", "{bad"])
        assert exit_code == 1
        assert "Invalid JSON params" in capsys.readouterr().err

    def test_query_rejects_non_object_params(self, capsys):
        exit_code = cli_main.main(["query", "--method", "Page.navigate", "--params", "[1]"])
        assert exit_code == 1
        assert "must be a JSON object" in capsys.readouterr().err

    def test_query_sends_command(self, capsys):
        client = MagicMock()
        client.send_command = AsyncMock(return_value={"targetInfos": []})
        client.__aenter__ = AsyncMock(return_value=client)
        client.__aexit__ = AsyncMock(return_value=False)

        with patch("tinycdp.cli.query_cmd.CDPClient", return_value=client) as client_class:
            exit_code = cli_main.main([
                "query", "--ws-url", "ws://127.0.0.1:9222/devtools/browser/x",
                "--method", "Target.getTargets", "--params", '{"filter": []}',
                "--session-id", "S1", "--format", "json",
            ])

        assert exit_code == 0
        client_class.assert_called_once_with(
            "ws://127.0.0.1:9222/devtools/browser/x", max_size=2_097_152
        )
        client.send_command.assert_awaited_once_with("Target.getTargets", {"filter": []}, "S1")
        assert json.loads(capsys.readouterr().out) == {"targetInfos": []}

    def test_query_reports_cdp_error(self, capsys):
        error = CDPError("Failed to reach browser", details={"recovery": "start chrome"})
        with patch(
            "tinycdp.session.DebuggerEndpoint.wait_for_websocket_url",
            AsyncMock(side_effect=error),
        ):
            exit_code = cli_main.main(["query", "--method", "Browser.getVersion"])

        assert exit_code == 1
        err = capsys.readouterr().err
        assert "Error: Failed to reach browser" in err
        assert "Recovery hint: start chrome" in err

    def test_version_text_output(self, capsys):
        client = MagicMock()
        client.send_command = AsyncMock(
            return_value={"product": "HeadlessChrome/126.0", "protocolVersion": "1.3"}
        )
        client.__aenter__ = AsyncMock(return_value=client)
        client.__aexit__ = AsyncMock(return_value=False)

        with patch("tinycdp.cli.version_cmd.CDPClient", return_value=client):
            exit_code = cli_main.main(["version", "--ws-url", "ws://127.0.0.1:9222/x"])

        assert exit_code == 0
        assert capsys.readouterr().out.strip() == "HeadlessChrome/126.0 (protocol 1.3)"

    def test_targets_text_output(self, capsys):
        targets = [Target({"id": "P1", "type": "page", "title": "Example", "url": "https://example.com"})]
        with patch(
            "tinycdp.cli.targets_cmd.DebuggerEndpoint.list_targets", return_value=targets
        ) as list_targets:
            exit_code = cli_main.main(["targets", "--type", "page"])

        assert exit_code == 0
        list_targets.assert_called_once_with(target_type="page", url_pattern=None)
        assert capsys.readouterr().out.strip() == "P1\tpage\thttps://example.com\tExample"

    def test_targets_by_id(self, capsys):
        target = Target({"id": "W1", "type": "service_worker", "url": "https://example.com/sw.js"})
        with patch(
            "tinycdp.cli.targets_cmd.DebuggerEndpoint.get_target_by_id", return_value=target
        ) as get_target:
            exit_code = cli_main.main(["targets", "--id", "W1", "--format", "json"])

        assert exit_code == 0
        get_target.assert_called_once_with("W1")
        assert [t["id"] for t in json.loads(capsys.readouterr().out)] == ["W1"]

    def test_targets_unknown_id_reports_error(self, capsys):
        with patch(
            "tinycdp.cli.targets_cmd.DebuggerEndpoint.get_target_by_id",
            side_effect=CDPTargetNotFoundError("Target not found: nope", target_id="nope"),
        ):
            exit_code = cli_main.main(["targets", "--id", "nope"])

        assert exit_code == 1
        assert "Target not found: nope" in capsys.readouterr().err
