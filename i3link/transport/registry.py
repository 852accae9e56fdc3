# i3link/transport/registry.py
from __future__ import annotations

from typing import Dict, Tuple, Type

from .base import Transport
from .unix import UnixSocketTransport
from .serial_url import SerialUrlTransport
from .errors import TransportError


class TransportDriverRegistry:
    """
    Maps driver keys -> (transport class, name of its endpoint argument).

    The endpoint argument is what a configured socket path or URL is passed
    as, e.g. `path` for unix sockets and `url` for pyserial URLs. Keys are
    case-insensitive.
    """

    def __init__(self, drivers: Dict[str, Tuple[Type[Transport], str]]):
        self._drivers: Dict[str, Tuple[Type[Transport], str]] = {k.lower(): v for k, v in drivers.items()}

    @classmethod
    def default(cls) -> "TransportDriverRegistry":
        return cls(
            drivers={
                "unix": (UnixSocketTransport, "path"),
                "serial_url": (SerialUrlTransport, "url"),
            }
        )

    def names(self) -> list[str]:
        return sorted(self._drivers)

    def has(self, driver: str) -> bool:
        return driver.lower() in self._drivers

    def _entry(self, driver: str) -> Tuple[Type[Transport], str]:
        try:
            return self._drivers[driver.lower()]
        except KeyError:
            raise TransportError(
                f"Transport driver '{driver}' not registered (known: {', '.join(self.names())})"
            ) from None

    def get_class(self, driver: str) -> Type[Transport]:
        return self._entry(driver)[0]

    def endpoint_param(self, driver: str) -> str:
        return self._entry(driver)[1]

    def create(self, driver: str, endpoint: str, **params) -> Transport:
        """Instantiate an unopened transport for `endpoint`."""
        key = self.endpoint_param(driver)
        if key in params:
            raise TransportError(f"'{key}' is the endpoint of driver '{driver}'; pass it as endpoint")
        return self.get_class(driver)(**{key: endpoint}, **params)
