from __future__ import annotations

import logging
from typing import Optional

from .defs import Protocol
from ..errors import FramingError

LENGTH_INDEX = 2


def frame_complete(buf: bytes, *, min_len: int = 6) -> bool:
    """
    Decide whether ``buf`` holds one complete inbound frame.

    - fewer than ``min_len`` bytes: keep reading
    - length byte 0: complete (frame is not length-framed)
    - length byte == len(buf): complete
    - length byte > len(buf): keep reading
    - length byte < len(buf): the peripheral sent more than it declared

    The last case raises FramingError at once. A lenient reader would keep
    reading and end in CommandTimeout; the overrun is reported here instead
    so the caller sees what actually went wrong.
    """
    if len(buf) < min_len:
        return False

    declared = buf[LENGTH_INDEX]
    if declared == 0 or declared == len(buf):
        return True
    if declared > len(buf):
        return False

    raise FramingError(f"Frame overrun: length byte {declared} < {len(buf)} bytes received")


class FrameAssembler:
    """Bounded buffer that reassembles one response frame from partial reads."""

    def __init__(self, proto: Protocol, logger: Optional[logging.Logger] = None):
        self.proto = proto
        self.capacity = proto.max_frame_len
        self.buffer = bytearray()
        self._log = logger or logging.getLogger(__name__)

    # ---------------- Public API ----------------
    def feed(self, data: bytes) -> None:
        """Append raw bytes; refuses to grow past one maximum-size frame."""
        if len(self.buffer) + len(data) > self.capacity:
            raise FramingError(
                f"Response exceeds {self.capacity} bytes "
                f"(buffered={len(self.buffer)} incoming={len(data)})"
            )
        self.buffer.extend(data)
        self._log.debug(
            "Assembler fed %d bytes, buffer_len=%d",
            len(data),
            len(self.buffer),
        )

    def complete(self) -> bool:
        return frame_complete(self.buffer, min_len=self.proto.min_frame_len)

    def take(self) -> bytes:
        """Return the buffered bytes and clear the buffer."""
        raw = bytes(self.buffer)
        self.buffer.clear()
        return raw

    def reset(self) -> None:
        self.buffer.clear()
