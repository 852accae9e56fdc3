# i3link/cli/commands.py
from __future__ import annotations

import json
import logging
import sys
import threading
import time
from pathlib import Path
from typing import Any, List

from i3link.model import Output, Workspace
from i3link.protocol.core import Protocol
from i3link.runtime.ipc_session import IpcSession


# ---------------- Logging ----------------

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(verbosity: int) -> None:
    """
    Install the stderr handler on the root logger (idempotent).
    Kept in CLI (presentation-layer concern).

    A handler left by an earlier call is replaced, not reused: sys.stderr may
    have been swapped since, and the old stream may already be closed.
    """
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    root = logging.getLogger()
    remove_stderr_logging()

    sh = logging.StreamHandler(sys.stderr)
    sh._i3link_stderr = True  # type: ignore[attr-defined]
    sh.setLevel(level)
    sh.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(sh)

    if root.level == logging.NOTSET or root.level > level:
        root.setLevel(level)


def remove_stderr_logging() -> None:
    root = logging.getLogger()
    for h in [h for h in root.handlers if getattr(h, "_i3link_stderr", False)]:
        # never close or flush: the stream is not ours
        root.removeHandler(h)


def configure_file_logging(app_log_path: Path) -> None:
    """Add a file handler to the root logger (idempotent)."""
    root = logging.getLogger()
    app_log_path.parent.mkdir(parents=True, exist_ok=True)
    target = str(app_log_path.resolve())

    for h in root.handlers:
        if isinstance(h, logging.FileHandler) and getattr(h, "baseFilename", None) == target:
            return

    fh = logging.FileHandler(app_log_path, encoding="utf-8", delay=True)
    fh.setLevel(logging.INFO)
    fh.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(fh)

    if root.level == logging.NOTSET or root.level > logging.INFO:
        root.setLevel(logging.INFO)


# ---------------- Printing ----------------

def print_workspaces(workspaces: List[Workspace]) -> None:
    if not workspaces:
        print("Workspaces: (none)")
        return
    print("Workspaces:")
    for w in workspaces:
        mark = "*" if w.focused else " "
        flags = []
        if w.visible:
            flags.append("visible")
        if w.urgent:
            flags.append("urgent")
        r = w.rect
        print(
            f" {mark} num={w.num} name={w.name} output={w.output} "
            f"rect={r.width}x{r.height}+{r.x}+{r.y}" + (f" [{' '.join(flags)}]" if flags else "")
        )


def print_outputs(outputs: List[Output]) -> None:
    if not outputs:
        print("Outputs: (none)")
        return
    print("Outputs:")
    for o in outputs:
        ws = o.current_workspace if o.current_workspace is not None else "-"
        r = o.rect
        state = "active" if o.active else "inactive"
        print(f"  - {o.name} {state} workspace={ws} rect={r.width}x{r.height}+{r.x}+{r.y}")


def _print_json(items: List[Any]) -> None:
    print(json.dumps([i.as_dict() for i in items], indent=2))


# ---------------- Commands ----------------

def cmd_protocol(proto: Protocol) -> int:
    print(f"Protocol:  version={proto.version} magic={proto.magic.decode('ascii')!r} "
          f"byte_order={proto.byte_order} header={proto.header_size}B")
    print("Messages:")
    for code in sorted(proto.messages_by_code):
        m = proto.messages_by_code[code]
        print(f"  {code:>3}  {m['name']:<16} reply={m.get('reply')}")
    print("Events:")
    for code in sorted(proto.events_by_code):
        e = proto.events_by_code[code]
        print(f"  {code:>3}  {e['name']:<16} shape={e.get('shape')}")
    return 0


def cmd_command(args, session: IpcSession) -> int:
    text = " ".join(args.text)
    reply = session.command(text, check=not args.no_check)
    if reply.success:
        print("OK")
        return 0
    print(f"REJECTED: {reply.error or '(no error text)'}")
    return 1


def cmd_workspaces(args, session: IpcSession) -> int:
    workspaces = session.get_workspaces()
    if args.json:
        _print_json(workspaces)
    else:
        print_workspaces(workspaces)
    return 0


def cmd_outputs(args, session: IpcSession) -> int:
    outputs = session.get_outputs()
    if args.json:
        _print_json(outputs)
    else:
        print_outputs(outputs)
    return 0


def cmd_subscribe(args, session: IpcSession) -> int:
    known = set(session.proto.event_types)
    ended = threading.Event()
    reason: List[str] = []

    def _print_event(category: str, event: Any) -> None:
        print(f"EVENT {category} -> {json.dumps(event.as_dict())}", flush=True)

    def _on_disconnect(why: str) -> None:
        reason.append(why)
        ended.set()

    for name in args.events:
        if name in known:
            session.on(name, _print_event)
        else:
            print(f"Note: no decoder for event '{name}', frames will be counted but not shown")

    session.on_disconnect(_on_disconnect)
    session.subscribe(args.events)
    print(f"Subscribed: {', '.join(args.events)}", flush=True)

    t0 = time.time()
    try:
        while not ended.is_set():
            if args.secs is not None and time.time() - t0 >= args.secs:
                break
            ended.wait(0.2)
    except KeyboardInterrupt:
        print("Interrupted.")

    st = session.status().events
    dropped = sum(st.dropped.values())
    print(f"Frames: {st.frames_received} dropped={dropped} decode_errors={st.decode_errors}")

    if reason and reason[0] not in ("closed", "peer closed"):
        print(f"Stream ended: {reason[0]}")
        return 1
    return 0
