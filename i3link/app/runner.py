# i3link/app/runner.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

import yaml

from i3link.app.config import I3LinkConfig
from i3link.core.errors import ConfigError
from i3link.interfaces.request_sink import RequestSink
from i3link.protocol.core import Protocol
from i3link.runtime.ipc_session import IpcSession
from i3link.transport.base import Transport
from i3link.transport.errors import TransportError
from i3link.transport.registry import TransportDriverRegistry


@dataclass(frozen=True)
class AppRun:
    config: I3LinkConfig
    proto: Protocol
    session: IpcSession


def load_protocol(cfg: I3LinkConfig) -> Protocol:
    try:
        return Protocol.load(cfg.protocol_dir)
    except FileNotFoundError as e:
        raise ConfigError("Protocol metadata is missing.", hint=str(e)) from None
    except (ValueError, yaml.YAMLError) as e:
        raise ConfigError("Protocol metadata is invalid.", hint=str(e)) from None


def make_transport_factory(
    cfg: I3LinkConfig,
    registry: TransportDriverRegistry,
    *,
    timeout: Optional[float],
) -> Callable[[], Transport]:
    """
    Returns a callable producing a fresh, unopened transport per call.

    Each connection gets its own transport; the request and event roles
    only differ in timeout.
    """
    driver = cfg.driver.lower()
    if not registry.has(driver):
        raise ConfigError(
            f"Unknown transport driver '{cfg.driver}'.",
            hint=f"available: {', '.join(registry.names())}",
        )

    params = dict(cfg.transport_params)
    params["timeout"] = timeout
    endpoint = cfg.socket_path

    def _create() -> Transport:
        try:
            return registry.create(driver, endpoint, **params)
        except (TypeError, TransportError) as e:
            raise ConfigError(f"Cannot create '{driver}' transport.", hint=str(e), details=dict(params)) from None

    return _create


def start_run(
    cfg: I3LinkConfig,
    *,
    registry: Optional[TransportDriverRegistry] = None,
    request_sink: Optional[RequestSink] = None,
    proto: Optional[Protocol] = None,
) -> AppRun:
    log = logging.getLogger(__name__)

    proto = proto or load_protocol(cfg)
    registry = registry or TransportDriverRegistry.default()

    # event connections block until the peer speaks
    request_factory = make_transport_factory(cfg, registry, timeout=cfg.cmd_timeout_s)
    event_factory = make_transport_factory(cfg, registry, timeout=None)

    session = IpcSession(
        proto=proto,
        transport_factory=request_factory,
        event_transport_factory=event_factory,
        queue_size=cfg.event_queue_size,
        request_sink=request_sink,
        logger=logging.getLogger("i3link.session"),
    )
    log.info("RUN_STARTED driver=%s endpoint=%s", cfg.driver, cfg.socket_path)
    return AppRun(config=cfg, proto=proto, session=session)
