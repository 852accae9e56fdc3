# i3link/cli/main.py
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from i3link.app.config import load_config
from i3link.app.runner import load_protocol, start_run
from i3link.app.trace import RequestTraceLogger
from i3link.core.errors import I3LinkError

from i3link.cli.args import config_overrides, parse_args
from i3link.cli.commands import (
    cmd_command,
    cmd_outputs,
    cmd_protocol,
    cmd_subscribe,
    cmd_workspaces,
    configure_file_logging,
    configure_logging,
)


def main(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(args.verbose)
    if args.log_file:
        configure_file_logging(Path(args.log_file))

    sink = None
    try:
        cfg = load_config(args.config, config_overrides(args))

        if args.cmd == "protocol":
            return cmd_protocol(load_protocol(cfg))

        sink = RequestTraceLogger(
            logger=logging.getLogger("i3link.requests"),
            file_path=Path(args.trace) if args.trace else None,
        )
        run = start_run(cfg, request_sink=sink)

        with run.session as session:
            if args.cmd == "command":
                return cmd_command(args, session)
            if args.cmd == "workspaces":
                return cmd_workspaces(args, session)
            if args.cmd == "outputs":
                return cmd_outputs(args, session)
            if args.cmd == "subscribe":
                return cmd_subscribe(args, session)

        return 2
    except I3LinkError as e:
        print(f"ERROR: {e.message}")
        if e.hint:
            print(f"Hint: {e.hint}")
        return 1
    finally:
        if sink is not None:
            sink.close()
