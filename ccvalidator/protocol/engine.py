# ccvalidator/protocol/engine.py
from __future__ import annotations

import itertools
import logging
import time
from typing import Any, Mapping, Optional, Protocol as TypingProtocol

from ccvalidator.interfaces.command_sink import CommandEvent, CommandSink
from ccvalidator.transport.errors import TransportError
from .core import CommandFrame, Frame, FrameAssembler, Protocol, Response, classify
from .core.frames import AckResponse, DataResponse, IllegalCommandResponse, NackResponse
from .errors import CommandTimeout, IllegalCommandError, NackError, ProtocolError


def _plain_args(args: Mapping[str, Any]) -> dict:
    # bytes -> hex so events stay JSON-serializable
    return {k: (bytes(v).hex() if isinstance(v, (bytes, bytearray)) else v) for k, v in args.items()}


class TransportIO(TypingProtocol):
    """Minimal I/O interface for ProtocolEngine."""
    def write(self, data: bytes) -> int: ...
    def read(self, size: int) -> bytes: ...
    def flush(self) -> None: ...


class ProtocolEngine:
    """
    Half-duplex exchange engine.

    One call = one round trip: write the request frame, reassemble the response
    from as many reads as it takes (bounded by ``max_read_attempts``), validate
    it, classify it and, for data responses, acknowledge receipt.

    Not thread-safe: callers must not start a second exchange on the same
    engine while one is in flight.
    """

    def __init__(
        self,
        proto: Protocol,
        transport: TransportIO,
        *,
        max_read_attempts: Optional[int] = None,
        read_size: Optional[int] = None,
        cmd_sink: Optional[CommandSink] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.proto = proto
        self.transport = transport

        self._log = logger or logging.getLogger(__name__)
        self._cmd_sink = cmd_sink

        self.max_read_attempts = int(
            max_read_attempts if max_read_attempts is not None
            else proto.constants.get("max_read_attempts", 1050)
        )
        self.read_size = int(
            read_size if read_size is not None
            else proto.constants.get("read_size", 256)
        )
        if self.max_read_attempts < 1:
            raise ValueError(f"max_read_attempts must be >= 1, got {self.max_read_attempts}")
        if self.read_size < 1:
            raise ValueError(f"read_size must be >= 1, got {self.read_size}")

        self._assembler = FrameAssembler(proto, logger=self._log)
        self._request_ids = itertools.count(1)

    # ---------------- Command API ----------------
    def exchange(self, cmd_name: str, payload: Optional[bytes] = None, **kwargs: Any) -> Response:
        """Run one round trip and return the classified response."""
        frame = CommandFrame(self.proto, cmd_name, payload=payload, args=kwargs or None)
        raw = frame.encode()

        self._log.debug("SENDING_FRAME cmd=%s len=%d raw=%s", cmd_name, len(raw), raw.hex())
        self._write(raw)

        reply = self._receive(cmd_name)
        resp = classify(self.proto, reply)

        if isinstance(resp, DataResponse):
            self._send_ack()

        return resp

    def send_cmd(self, cmd_name: str, payload: Optional[bytes] = None, **kwargs: Any) -> Optional[bytes]:
        """
        Run one round trip and return the response data.

        Returns None when the peripheral answered with a bare ACK. NACK and
        illegal-command replies raise; nothing is retried.
        """
        request_id = str(next(self._request_ids))
        start_ts = time.perf_counter()
        self._emit(cmd_name, "send", request_id, {"args": _plain_args(kwargs), "payload": (payload or b"").hex()})

        try:
            resp = self.exchange(cmd_name, payload, **kwargs)
        except (ProtocolError, TransportError) as e:
            self._log.warning("CMD_FAILED cmd=%s error=%s", cmd_name, e)
            self._emit(cmd_name, "error", request_id, {"error": str(e), "rtt_ms": self._rtt_ms(start_ts)})
            raise

        rtt_ms = self._rtt_ms(start_ts)

        if isinstance(resp, AckResponse):
            self._emit(cmd_name, "ack", request_id, {"rtt_ms": rtt_ms})
            return None

        if isinstance(resp, NackResponse):
            self._log.warning("CMD_NACK cmd=%s", cmd_name)
            self._emit(cmd_name, "nack", request_id, {"rtt_ms": rtt_ms})
            raise NackError(cmd_name)

        if isinstance(resp, IllegalCommandResponse):
            self._log.warning("CMD_ILLEGAL cmd=%s", cmd_name)
            self._emit(cmd_name, "illegal", request_id, {"rtt_ms": rtt_ms})
            raise IllegalCommandError(cmd_name)

        self._emit(cmd_name, "data", request_id, {"data": resp.data.hex(), "rtt_ms": rtt_ms})
        return resp.data

    # ---------------- Wire ----------------
    def _write(self, raw: bytes) -> None:
        self.transport.write(raw)
        self.transport.flush()

    def _send_ack(self) -> None:
        raw = CommandFrame(self.proto, "ACK", payload=b"").encode()
        self._log.debug("SENDING_ACK raw=%s", raw.hex())
        self._write(raw)

    def _receive(self, cmd_name: str) -> Frame:
        assembler = self._assembler
        assembler.reset()

        for attempt in range(1, self.max_read_attempts + 1):
            room = assembler.capacity - len(assembler.buffer)
            chunk = self.transport.read(min(self.read_size, room))
            if not chunk:
                continue

            assembler.feed(chunk)
            if assembler.complete():
                raw = assembler.take()
                self._log.debug(
                    "RESPONSE_FRAME cmd=%s attempts=%d len=%d raw=%s",
                    cmd_name,
                    attempt,
                    len(raw),
                    raw.hex(),
                )
                return Frame.decode(self.proto, raw)

        self._log.warning(
            "RESPONSE_TIMEOUT cmd=%s attempts=%d buffered=%s",
            cmd_name,
            self.max_read_attempts,
            bytes(assembler.buffer).hex(),
        )
        assembler.reset()
        raise CommandTimeout(cmd_name, self.max_read_attempts)

    # ---------------- Observer ----------------
    def _emit(self, cmd_name: str, kind: str, request_id: str, payload: Mapping[str, Any]) -> None:
        if self._cmd_sink is None:
            return
        try:
            self._cmd_sink.on_command(
                CommandEvent(name=cmd_name, kind=kind, request_id=request_id, payload=payload)
            )
        except Exception:
            self._log.exception("CMD_SINK_ERROR cmd=%s kind=%s", cmd_name, kind)

    @staticmethod
    def _rtt_ms(start_ts: float) -> float:
        return (time.perf_counter() - start_ts) * 1000.0
