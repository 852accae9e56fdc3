# i3link/app/trace.py
from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, TextIO

from i3link.interfaces.request_sink import RequestEvent, RequestSink


@dataclass
class RequestTraceLogger(RequestSink):
    """Logs request events and optionally appends them to a JSONL file."""

    logger: logging.Logger
    file_path: Optional[Path] = None

    def __post_init__(self) -> None:
        self._lock = threading.Lock()
        self._fh: Optional[TextIO] = None
        if self.file_path is not None:
            self.file_path.parent.mkdir(parents=True, exist_ok=True)
            self._fh = open(self.file_path, "a", encoding="utf-8")

    def on_request(self, event: RequestEvent) -> None:
        rtt = f"{event.rtt_ms:.2f}" if event.rtt_ms is not None else "-"
        self.logger.debug("REQUEST_TRACE name=%s kind=%s rtt_ms=%s", event.name, event.kind, rtt)

        if self._fh is None:
            return

        out = {
            "name": event.name,
            "kind": event.kind,
            "payload": dict(event.payload) if event.payload is not None else None,
            "rtt_ms": event.rtt_ms,
            "ts_utc": datetime.now(timezone.utc).isoformat(),
        }
        out = {k: v for k, v in out.items() if v is not None}

        with self._lock:
            if self._fh is not None:
                self._fh.write(json.dumps(out, ensure_ascii=False) + "\n")
                self._fh.flush()

    def close(self) -> None:
        with self._lock:
            fh, self._fh = self._fh, None
        if fh is not None:
            fh.close()
