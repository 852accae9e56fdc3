# i3link/protocol/loader.py
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict

import yaml


def default_protocol_dir() -> Path:
    # <package>/metadata/protocol, based on this file's location
    return Path(__file__).resolve().parents[1] / "metadata" / "protocol"


class ProtocolLoader:
    """Load the protocol YAML files into plain dicts."""

    REQUIRED_FILES = (
        "constants.yml",
        "header.yml",
        "messages.yml",
        "events.yml",
    )

    def __init__(self, config_dir: str | Path | None = None):
        self.config_dir = Path(config_dir) if config_dir is not None else default_protocol_dir()

        self.constants: Dict[str, Any] = {}
        self.header: list[Dict[str, Any]] = []
        self.messages: Dict[str, Any] = {}
        self.events: Dict[str, Any] = {}

    def load_all(self) -> None:
        for fn in self.REQUIRED_FILES:
            path = self.config_dir / fn
            if not path.exists():
                raise FileNotFoundError(f"Protocol file not found: {path}")

        self.constants = self._load_yaml("constants.yml")
        self.header = self._load_yaml("header.yml").get("header", []) or []
        self.messages = self._load_yaml("messages.yml").get("messages", {}) or {}
        self.events = self._load_yaml("events.yml").get("events", {}) or {}

        if not isinstance(self.constants, dict):
            raise ValueError("constants.yml must be a mapping")
        if not isinstance(self.header, list):
            raise ValueError("header.yml must contain 'header' list")
        if not isinstance(self.messages, dict):
            raise ValueError("messages.yml must contain 'messages' mapping")
        if not isinstance(self.events, dict):
            raise ValueError("events.yml must contain 'events' mapping")
        if not self.header:
            raise ValueError("header.yml must define at least one field")

    def protocol_version(self) -> int:
        v = self.constants.get("protocol_version", 0)
        try:
            return int(v)
        except (TypeError, ValueError):
            raise ValueError(f"Invalid protocol version in constants.yml: {v!r}") from None

    def _load_yaml(self, filename: str) -> Dict[str, Any]:
        path = self.config_dir / filename
        with open(path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}
