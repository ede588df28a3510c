from __future__ import annotations

import logging

import pytest

from ccvalidator.interfaces.command_sink import CommandEvent
from ccvalidator.protocol.core.frames import CommandFrame, DataResponse, Frame
from ccvalidator.protocol.engine import ProtocolEngine
from ccvalidator.protocol.errors import (
    ChecksumError,
    CommandTimeout,
    FramingError,
    IllegalCommandError,
    NackError,
)
from ccvalidator.transport.errors import TransportIOError


class ScriptedTransport:
    """TransportIO stub replaying canned read chunks (b"" = read timed out)."""
    def __init__(self, chunks=()):
        self.chunks: list[bytes] = list(chunks)
        self.writes: list[bytes] = []
        self.reads = 0
        self.flushes = 0
        self.raise_on_read: Exception | None = None
        self.raise_on_write: Exception | None = None

    def write(self, data: bytes) -> int:
        if self.raise_on_write:
            raise self.raise_on_write
        self.writes.append(bytes(data))
        return len(data)

    def read(self, size: int) -> bytes:
        self.reads += 1
        if self.raise_on_read:
            raise self.raise_on_read
        if not self.chunks:
            return b""
        chunk = self.chunks.pop(0)
        assert len(chunk) <= size
        return chunk

    def flush(self) -> None:
        self.flushes += 1


class RecordingSink:
    def __init__(self):
        self.events: list[CommandEvent] = []

    def on_command(self, event: CommandEvent) -> None:
        self.events.append(event)

    def close(self) -> None:
        return None


# -----------------------------
# Helpers
# -----------------------------

def _reply(proto, command: int, payload: bytes = b"") -> bytes:
    return Frame(proto=proto, command=command, payload=payload).encode()


def _make_engine(proto, chunks=(), **kwargs):
    transport = ScriptedTransport(chunks)
    engine = ProtocolEngine(proto, transport, logger=logging.getLogger("test"), **kwargs)
    return engine, transport


# -----------------------------
# Tests: round trips
# -----------------------------

def test_ack_reply_returns_none_without_extra_write(proto):
    engine, transport = _make_engine(proto, [_reply(proto, 0x00)])

    assert engine.send_cmd("RESET") is None
    assert transport.writes == [bytes([0x02, 0x03, 0x06, 0x30, 0x41, 0xB3])]


def test_data_reply_is_acknowledged_and_returned(proto):
    engine, transport = _make_engine(proto, [_reply(proto, 0x14)])

    assert engine.send_cmd("POLL") == b"\x14"
    assert transport.writes == [
        CommandFrame(proto, "POLL").encode(),
        CommandFrame(proto, "ACK").encode(),
    ]


def test_data_reply_split_across_reads_is_reassembled(proto):
    raw = _reply(proto, 0x1C, b"\x61")
    engine, transport = _make_engine(proto, [raw[:2], b"", raw[2:5], raw[5:]])

    assert engine.send_cmd("POLL") == b"\x1C\x61"
    assert transport.reads == 4


def test_exchange_returns_classified_response(proto):
    engine, _ = _make_engine(proto, [_reply(proto, 0x15)])
    assert engine.exchange("POLL") == DataResponse(data=b"\x15")


def test_nack_reply_raises_and_sends_no_ack(proto):
    engine, transport = _make_engine(proto, [_reply(proto, 0xFF)])

    with pytest.raises(NackError):
        engine.send_cmd("RESET")
    assert len(transport.writes) == 1


def test_illegal_command_reply_raises(proto):
    engine, transport = _make_engine(proto, [_reply(proto, 0x30)])

    with pytest.raises(IllegalCommandError):
        engine.send_cmd("IDENTIFICATION")
    assert len(transport.writes) == 1


def test_zero_length_control_frame_is_accepted(proto):
    engine, _ = _make_engine(proto, [b"\x02\x03\x00\x00\x12\xD6"])
    assert engine.send_cmd("RESET") is None


# -----------------------------
# Tests: failures
# -----------------------------

def test_silent_device_times_out_after_max_attempts(proto):
    engine, transport = _make_engine(proto, [], max_read_attempts=5)

    with pytest.raises(CommandTimeout) as ei:
        engine.send_cmd("POLL")

    assert isinstance(ei.value, TimeoutError)
    assert ei.value.attempts == 5
    assert transport.reads == 5


def test_incomplete_frame_times_out(proto):
    engine, transport = _make_engine(proto, [b"\x02\x03\x0A\x33"], max_read_attempts=3)

    with pytest.raises(CommandTimeout):
        engine.send_cmd("POLL")
    assert transport.reads == 3


def test_read_error_aborts_immediately(proto):
    engine, transport = _make_engine(proto, max_read_attempts=10)
    transport.raise_on_read = TransportIOError("unplugged")

    with pytest.raises(TransportIOError):
        engine.send_cmd("POLL")
    assert transport.reads == 1


def test_write_error_propagates(proto):
    engine, transport = _make_engine(proto)
    transport.raise_on_write = TransportIOError("write failed")

    with pytest.raises(TransportIOError):
        engine.send_cmd("POLL")
    assert transport.reads == 0


def test_checksum_mismatch_raises_and_sends_no_ack(proto):
    raw = bytearray(_reply(proto, 0x14))
    raw[-1] ^= 0xFF
    engine, transport = _make_engine(proto, [bytes(raw)])

    with pytest.raises(ChecksumError):
        engine.send_cmd("POLL")
    assert len(transport.writes) == 1


def test_wrong_address_raises_framing_error(proto):
    raw = bytearray(_reply(proto, 0x14))
    raw[1] = 0x01
    engine, _ = _make_engine(proto, [bytes(raw)])

    with pytest.raises(FramingError):
        engine.send_cmd("POLL")


def test_more_bytes_than_declared_raises_framing_error(proto):
    engine, _ = _make_engine(proto, [_reply(proto, 0x14) + b"\x00"])

    with pytest.raises(FramingError):
        engine.send_cmd("POLL")


def test_invalid_limits_rejected(proto):
    with pytest.raises(ValueError):
        ProtocolEngine(proto, ScriptedTransport(), max_read_attempts=0)
    with pytest.raises(ValueError):
        ProtocolEngine(proto, ScriptedTransport(), read_size=0)


def test_defaults_come_from_constants(proto):
    engine = ProtocolEngine(proto, ScriptedTransport())
    assert engine.max_read_attempts == 1050
    assert engine.read_size == 256


# -----------------------------
# Tests: observer
# -----------------------------

def test_sink_sees_send_then_data(proto):
    sink = RecordingSink()
    engine, _ = _make_engine(proto, [_reply(proto, 0x15)], cmd_sink=sink)

    engine.send_cmd("POLL")

    assert [e.kind for e in sink.events] == ["send", "data"]
    assert all(e.name == "POLL" for e in sink.events)
    assert sink.events[0].request_id == sink.events[1].request_id
    assert sink.events[1].payload["data"] == "15"
    assert sink.events[1].payload["rtt_ms"] >= 0.0


def test_sink_sees_error_kind_on_failure(proto):
    sink = RecordingSink()
    engine, _ = _make_engine(proto, [], cmd_sink=sink, max_read_attempts=1)

    with pytest.raises(CommandTimeout):
        engine.send_cmd("RESET")

    assert [e.kind for e in sink.events] == ["send", "error"]


def test_sink_payload_args_are_hex(proto):
    sink = RecordingSink()
    engine, _ = _make_engine(proto, [_reply(proto, 0x00)], cmd_sink=sink)

    engine.send_cmd("SET_SECURITY", mask=b"\x00\x00\x03")

    assert sink.events[0].payload["args"] == {"mask": "000003"}
    assert [e.kind for e in sink.events] == ["send", "ack"]


def test_failing_sink_does_not_break_exchange(proto):
    class BoomSink(RecordingSink):
        def on_command(self, event):
            raise RuntimeError("sink failed")

    engine, _ = _make_engine(proto, [_reply(proto, 0x15)], cmd_sink=BoomSink())
    assert engine.send_cmd("POLL") == b"\x15"
