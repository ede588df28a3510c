from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class Transport(ABC):
    """
    Duplex byte channel to the validator.

    Contract:
      - open()/close() manage the underlying line.
      - read(n) blocks for at most the configured read timeout and returns
        0..n bytes; b"" means nothing arrived before the timeout.
      - write(data) returns the number of bytes written.
      - flush() waits until pending output is on the wire.
      - Failures on an open line raise TransportIOError.
    """

    @abstractmethod
    def open(self) -> None: ...

    @abstractmethod
    def close(self) -> None: ...

    @abstractmethod
    def is_open(self) -> bool: ...

    @abstractmethod
    def read(self, n: int) -> bytes: ...

    @abstractmethod
    def write(self, data: bytes) -> int: ...

    @abstractmethod
    def flush(self) -> None: ...

    def __enter__(self) -> "Transport":
        self.open()
        return self

    def __exit__(self, exc_type: type | None, exc_val: BaseException | None, exc_tb: Any) -> None:
        self.close()
