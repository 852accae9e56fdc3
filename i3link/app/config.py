# i3link/app/config.py
from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

from i3link.core.errors import ConfigError

DEFAULT_SOCKET_PATH = "/tmp/i3-ipc.sock"
SOCKET_ENV_VAR = "I3SOCK"


@dataclass(frozen=True)
class I3LinkConfig:
    socket_path: str = DEFAULT_SOCKET_PATH
    driver: str = "unix"
    transport_params: dict = field(default_factory=dict)
    cmd_timeout_s: float = 1.0
    event_queue_size: int = 200
    protocol_dir: Optional[str] = None


def _read_file(path: str | Path) -> dict:
    p = Path(path)
    try:
        with open(p, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except OSError as e:
        raise ConfigError(f"Cannot read config file {p}.", hint=str(e)) from None
    except yaml.YAMLError as e:
        raise ConfigError(f"Config file {p} is not valid YAML.", hint=str(e)) from None

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {p} must contain a mapping.", hint=f"got {type(data).__name__}")
    return data


def _validate(values: Mapping[str, Any]) -> I3LinkConfig:
    known = {f.name for f in fields(I3LinkConfig)}
    unknown = sorted(set(values) - known)
    if unknown:
        raise ConfigError(
            f"Unknown config key(s): {', '.join(unknown)}",
            hint=f"known keys: {', '.join(sorted(known))}",
        )

    try:
        timeout = float(values.get("cmd_timeout_s", 1.0))
        queue_size = int(values.get("event_queue_size", 200))
    except (TypeError, ValueError) as e:
        raise ConfigError("Invalid numeric config value.", hint=str(e)) from None

    if timeout <= 0:
        raise ConfigError("cmd_timeout_s must be > 0", details={"cmd_timeout_s": timeout})
    if queue_size < 1:
        raise ConfigError("event_queue_size must be >= 1", details={"event_queue_size": queue_size})

    params = values.get("transport_params") or {}
    if not isinstance(params, dict):
        raise ConfigError("transport_params must be a mapping", hint=f"got {type(params).__name__}")

    protocol_dir = values.get("protocol_dir")
    return I3LinkConfig(
        socket_path=str(values.get("socket_path") or DEFAULT_SOCKET_PATH),
        driver=str(values.get("driver") or "unix"),
        transport_params=dict(params),
        cmd_timeout_s=timeout,
        event_queue_size=queue_size,
        protocol_dir=str(protocol_dir) if protocol_dir else None,
    )


def load_config(
    path: str | Path | None = None,
    overrides: Optional[Mapping[str, Any]] = None,
    *,
    environ: Optional[Mapping[str, str]] = None,
) -> I3LinkConfig:
    """
    Build the effective configuration.

    Precedence (lowest first): built-in defaults, config file, $I3SOCK,
    explicit overrides. Overrides whose value is None are ignored so
    argparse namespaces can be passed through unfiltered.
    """
    env = os.environ if environ is None else environ

    values: dict = {}
    if path is not None:
        values.update(_read_file(path))

    sock = env.get(SOCKET_ENV_VAR)
    if sock:
        values["socket_path"] = sock

    for k, v in (overrides or {}).items():
        if v is not None:
            values[k] = v

    return _validate(values)
