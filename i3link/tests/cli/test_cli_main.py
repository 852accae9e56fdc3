from __future__ import annotations

import io
import json
import logging
import os

import pytest

from i3link.cli.args import config_overrides, parse_args
from i3link.cli.commands import configure_logging, remove_stderr_logging
from i3link.cli.main import main


@pytest.fixture(autouse=True)
def _no_env_socket(monkeypatch):
    monkeypatch.delenv("I3SOCK", raising=False)


@pytest.fixture(autouse=True)
def _restore_root_logging():
    root = logging.getLogger()
    level, handlers = root.level, list(root.handlers)
    yield
    remove_stderr_logging()
    for h in [h for h in root.handlers if isinstance(h, logging.FileHandler) and h not in handlers]:
        root.removeHandler(h)
        h.close()
    root.setLevel(level)


def _stderr_handlers():
    return [h for h in logging.getLogger().handlers if getattr(h, "_i3link_stderr", False)]


def test_configure_logging_survives_closed_stream(monkeypatch):
    """
    Algorithm:
      - install the handler on a stream, then close that stream
      - a second call (new sys.stderr) must not touch the closed one
    """
    first = io.StringIO()
    monkeypatch.setattr("sys.stderr", first)
    configure_logging(0)
    first.close()

    second = io.StringIO()
    monkeypatch.setattr("sys.stderr", second)
    configure_logging(2)

    (h,) = _stderr_handlers()
    assert h.stream is second
    assert h.level == logging.DEBUG


def test_repeated_main_calls_do_not_stack_handlers(capsys):
    assert main(["protocol"]) == 0
    assert main(["protocol"]) == 0
    assert len(_stderr_handlers()) == 1


def test_parse_args_overrides():
    args = parse_args(["--socket", "/s", "--timeout", "0.5", "command", "workspace", "2"])
    assert args.cmd == "command"
    assert args.text == ["workspace", "2"]
    assert config_overrides(args) == {"socket_path": "/s", "driver": None, "cmd_timeout_s": 0.5}


def test_subcommand_required():
    with pytest.raises(SystemExit):
        parse_args([])


def test_protocol_needs_no_peer(capsys):
    assert main(["protocol"]) == 0
    out = capsys.readouterr().out
    assert "magic='i3-ipc'" in out
    assert "GET_WORKSPACES" in out
    assert "workspace" in out


def test_command(fake_peer, capsys):
    assert main(["--socket", fake_peer.path, "command", "workspace", "2"]) == 0
    assert capsys.readouterr().out.strip() == "OK"
    assert fake_peer.received == [(0, b"workspace 2")]


def test_command_rejected(fake_peer, capsys):
    assert main(["--socket", fake_peer.path, "command", "fail"]) == 1
    out = capsys.readouterr().out
    assert "ERROR:" in out
    assert "Hint: unknown command" in out


def test_command_rejected_no_check(fake_peer, capsys):
    assert main(["--socket", fake_peer.path, "command", "--no-check", "fail"]) == 1
    assert "REJECTED: unknown command" in capsys.readouterr().out


def test_workspaces_table(fake_peer, capsys):
    assert main(["--socket", fake_peer.path, "workspaces"]) == 0
    out = capsys.readouterr().out
    assert " * num=0 name=1 output=LVDS1 rect=1280x800+0+0 [visible]" in out
    assert "   num=1 name=2 output=LVDS1" in out


def test_outputs_json(fake_peer, capsys):
    assert main(["--socket", fake_peer.path, "outputs", "--json"]) == 0
    data = json.loads(capsys.readouterr().out)
    assert [o["name"] for o in data] == ["LVDS1", "VGA1"]
    assert data[1]["current_workspace"] == 1


def test_subscribe_prints_events_until_peer_closes(fake_peer, capsys):
    fake_peer.events = [(1, b'{"change":"focus"}')]
    fake_peer.close_after_events = True

    assert main(["--socket", fake_peer.path, "subscribe", "workspace", "--secs", "2"]) == 0
    out = capsys.readouterr().out
    assert "Subscribed: workspace" in out
    assert 'EVENT workspace -> {"change": "focus"}' in out
    assert "Frames: 1 dropped=0 decode_errors=0" in out


def test_subscribe_rejected(fake_peer, capsys):
    fake_peer.subscribe_ok = False
    assert main(["--socket", fake_peer.path, "subscribe", "workspace", "--secs", "0.2"]) == 1
    assert "ERROR:" in capsys.readouterr().out


def test_unreachable_socket(short_tmp, capsys):
    assert main(["--socket", os.path.join(short_tmp, "gone.sock"), "workspaces"]) == 1
    out = capsys.readouterr().out
    assert "ERROR: Could not connect" in out
    assert "Hint:" in out


def test_env_socket(fake_peer, monkeypatch, capsys):
    monkeypatch.setenv("I3SOCK", fake_peer.path)
    assert main(["command", "nop"]) == 0


def test_trace_and_log_file(fake_peer, tmp_path, capsys):
    trace = tmp_path / "trace.jsonl"
    log = tmp_path / "logs" / "i3link.log"
    argv = ["--socket", fake_peer.path, "--trace", str(trace), "--log-file", str(log), "outputs"]
    assert main(argv) == 0
    kinds = [json.loads(line)["kind"] for line in trace.read_text(encoding="utf-8").splitlines()]
    assert kinds == ["send", "ok"]
    assert log.parent.is_dir()
