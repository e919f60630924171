"""End-to-end checks of the previewhost CLI through its dispatcher."""
from __future__ import annotations

import json
import threading
from pathlib import Path

import pytest
import yaml

from helpers.http import fetch
from helpers.ports import occupy_port
from previewhost import __version__
from previewhost.cli import _dispatcher
from previewhost.cli.commands import serve as serve_command


@pytest.fixture
def cli_port_range(monkeypatch, port_range) -> tuple[int, int]:
    monkeypatch.setenv("PREVIEWHOST_SERVE_FOLDER__PORT_RANGE__MIN", str(port_range[0]))
    monkeypatch.setenv("PREVIEWHOST_SERVE_FOLDER__PORT_RANGE__MAX", str(port_range[1]))
    return port_range


def test_version_flag(capsys) -> None:
    with pytest.raises(SystemExit) as excinfo:
        _dispatcher.main(["--version"])

    assert excinfo.value.code == 0
    assert capsys.readouterr().out.strip() == f"previewhost {__version__}"


def test_no_command_prints_help(capsys) -> None:
    assert _dispatcher.main([]) == 0
    out = capsys.readouterr().out
    assert "serve" in out
    assert "config" in out


def test_serve_reports_params_and_serves_until_stopped(
    isolated_project_env: Path, site_root: Path, cli_port_range, monkeypatch, capsys
) -> None:
    seen: dict[str, object] = {}

    def _fake_wait(stop: threading.Event) -> None:
        seen["response"] = fetch(cli_port_range[0], "/game.js")

    monkeypatch.setattr(serve_command, "_wait_for_shutdown", _fake_wait)

    code = _dispatcher.main(["serve", str(site_root), "--window", "editor-1", "--json"])

    assert code == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["status"] == "success"
    assert payload["port"] == cli_port_range[0]
    assert payload["root"] == str(site_root)
    assert payload["url"] == f"http://127.0.0.1:{cli_port_range[0]}/"
    assert seen["response"].status == 200
    assert seen["response"].header("Expires") == "0"
    # The manager is closed once the command returns.
    with pytest.raises(OSError):
        fetch(cli_port_range[0], "/", timeout=1)


def test_serve_text_output(isolated_project_env: Path, site_root: Path, cli_port_range, monkeypatch, capsys) -> None:
    monkeypatch.setattr(serve_command, "_wait_for_shutdown", lambda stop: None)

    assert _dispatcher.main(["serve", str(site_root)]) == 0

    out = capsys.readouterr().out
    assert f"at http://127.0.0.1:{cli_port_range[0]}/" in out


def test_serve_without_free_port_exits_with_error(
    isolated_project_env: Path, site_root: Path, port_range, monkeypatch, capsys, tmp_path
) -> None:
    log_file = tmp_path / "previewhost.log"
    taken = port_range[0]
    monkeypatch.setenv("PREVIEWHOST_SERVE_FOLDER__PORT_RANGE__MIN", str(taken))
    monkeypatch.setenv("PREVIEWHOST_SERVE_FOLDER__PORT_RANGE__MAX", str(taken))
    monkeypatch.setattr(serve_command, "_wait_for_shutdown", lambda stop: pytest.fail("should not wait"))

    with occupy_port(taken):
        code = _dispatcher.main(["--log-file", str(log_file), "serve", str(site_root), "--json"])

    assert code == 1
    err = json.loads(capsys.readouterr().err)
    assert err["error"]["code"] == "NoPortAvailableError"
    assert err["error"]["context"]["min_port"] == taken
    assert "WARNING previewhost.core.serve_folder.ports: No free port" in log_file.read_text(encoding="utf-8")


def test_serve_with_invalid_config_exits_with_error(isolated_project_env: Path, site_root: Path, capsys) -> None:
    cfg_dir = isolated_project_env / ".previewhost" / "config"
    cfg_dir.mkdir(parents=True)
    (cfg_dir / "serve_folder.yaml").write_text("serve_folder:\n  port_range: {min: 4000, max: 2929}\n", encoding="utf-8")

    assert _dispatcher.main(["serve", str(site_root)]) == 1
    assert "Error:" in capsys.readouterr().err


def test_wait_for_shutdown_returns_once_stopped() -> None:
    stop = threading.Event()
    stop.set()

    serve_command._wait_for_shutdown(stop)


def test_config_show_key_as_json(isolated_project_env: Path, capsys) -> None:
    code = _dispatcher.main(["config", "show", "serve_folder.port_range", "--json", "--repo-root", str(isolated_project_env)])

    assert code == 0
    assert json.loads(capsys.readouterr().out) == {"serve_folder": {"port_range": {"min": 2929, "max": 4000}}}


def test_config_show_full_yaml_is_parseable(isolated_project_env: Path, capsys) -> None:
    assert _dispatcher.main(["config", "show", "--format", "yaml"]) == 0

    parsed = yaml.safe_load(capsys.readouterr().out)
    assert parsed["serve_folder"]["index_file"] == "index.html"
    assert parsed["logging"]["level"] == "INFO"


def test_config_show_table_output(isolated_project_env: Path, capsys) -> None:
    assert _dispatcher.main(["config", "show", "serve_folder.host"]) == 0

    assert capsys.readouterr().out.strip().splitlines() == ["serve_folder:", "  host: 127.0.0.1"]


def test_config_show_unknown_key(isolated_project_env: Path, capsys) -> None:
    assert _dispatcher.main(["config", "show", "serve_folder.nope"]) == 1
    assert "Key not found: serve_folder.nope" in capsys.readouterr().out
