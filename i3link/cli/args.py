# i3link/cli/args.py
from __future__ import annotations

import argparse
from typing import Any, Dict, Optional


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="i3link", description="Talk to a window manager over its IPC socket.")
    parser.add_argument("--config", default=None, help="YAML config file.")
    parser.add_argument("--socket", default=None, help="IPC endpoint (socket path, or URL for serial_url).")
    parser.add_argument("--driver", default=None, help="Transport driver (unix, serial_url).")
    parser.add_argument("--timeout", type=float, default=None, help="Request timeout in seconds.")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="More logging (-v INFO, -vv DEBUG).")
    parser.add_argument("--log-file", default=None, help="Also write logs to this file.")
    parser.add_argument("--trace", default=None, help="Append request events to this JSONL file.")

    sub = parser.add_subparsers(dest="cmd", required=True)

    p_cmd = sub.add_parser("command", help="Send a command string.")
    p_cmd.add_argument("text", nargs="+")
    p_cmd.add_argument("--no-check", action="store_true", help="Print rejected replies instead of failing.")

    p_ws = sub.add_parser("workspaces", help="List workspaces.")
    p_ws.add_argument("--json", action="store_true")

    p_out = sub.add_parser("outputs", help="List outputs.")
    p_out.add_argument("--json", action="store_true")

    p_sub = sub.add_parser("subscribe", help="Print events until the stream ends.")
    p_sub.add_argument("events", nargs="+")
    p_sub.add_argument("--secs", type=float, default=None, help="Stop after this many seconds.")

    sub.add_parser("protocol", help="Show the loaded protocol tables.")

    return parser


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    return build_parser().parse_args(argv)


def config_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    """Only flags the user actually passed; None means 'not set'."""
    return {
        "socket_path": args.socket,
        "driver": args.driver,
        "cmd_timeout_s": args.timeout,
    }
