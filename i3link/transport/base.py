# i3link/transport/base.py
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class Transport(ABC):
    """
    Abstract duplex byte stream.

    Contract:
      - open()/close() manage the underlying endpoint. close() must wake a
        reader blocked in read().
      - read(n) blocks until 1..n bytes are available and returns them;
        b"" means the peer closed the stream.
      - write(data) returns the number of bytes accepted, which may be fewer
        than len(data).
      - flush() forces pending output to be transmitted.
    """

    @abstractmethod
    def open(self) -> None: ...

    @abstractmethod
    def close(self) -> None: ...

    @abstractmethod
    def read(self, n: int) -> bytes: ...

    @abstractmethod
    def write(self, data: bytes) -> int: ...

    @abstractmethod
    def flush(self) -> None: ...

    @property
    def endpoint(self) -> str:
        return type(self).__name__

    def __enter__(self) -> "Transport":
        self.open()
        return self

    def __exit__(self, exc_type: type | None, exc_val: BaseException | None, exc_tb: Any) -> None:
        self.close()
