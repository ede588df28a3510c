from __future__ import annotations

import struct

import pytest

from ccvalidator.protocol.core.frames import CommandFrame, Frame
from ccvalidator.protocol.errors import ChecksumError, FramingError


def test_reset_command_encodes_to_reference_bytes(proto):
    raw = CommandFrame(proto, "RESET").encode()
    assert raw == bytes([0x02, 0x03, 0x06, 0x30, 0x41, 0xB3])


def test_encode_layout_length_and_little_endian_crc(proto):
    payload = b"\xAA\xBB\xCC"
    raw = Frame(proto=proto, command=0x32, payload=payload).encode()

    assert raw[:4] == bytes([0x02, 0x03, 6 + len(payload), 0x32])
    assert raw[4:-2] == payload
    assert raw[-2:] == struct.pack("<H", proto.crc16(raw[:-2]))


def test_encode_rejects_payload_past_255_byte_frame(proto):
    Frame(proto=proto, command=0x32, payload=b"\x00" * 249)  # exactly 255

    with pytest.raises(ValueError):
        Frame(proto=proto, command=0x32, payload=b"\x00" * 250)


def test_command_must_fit_in_one_byte(proto):
    with pytest.raises(ValueError):
        Frame(proto=proto, command=0x100)


@pytest.mark.parametrize(
    "command,payload",
    [(0x00, b""), (0x33, b""), (0x32, b"\x00\x00\xFF"), (0x41, bytes(range(249)))],
)
def test_decode_recovers_what_was_encoded(proto, command, payload):
    raw = Frame(proto=proto, command=command, payload=payload).encode()

    frame = Frame.decode(proto, raw)
    assert frame.command == command
    assert frame.payload == payload
    assert frame.length == len(raw)
    assert frame.checksum == struct.unpack("<H", raw[-2:])[0]


@pytest.mark.parametrize("index", [2, 3, 4, 5, 6, 7])
def test_single_corrupted_byte_fails_checksum(proto, index):
    raw = bytearray(Frame(proto=proto, command=0x33, payload=b"\x01\x02").encode())
    raw[index] ^= 0x5A

    with pytest.raises(ChecksumError):
        Frame.decode(proto, bytes(raw))


@pytest.mark.parametrize("header", [b"\x01\x03", b"\x02\x04", b"\xFF\xFF"])
def test_bad_start_or_address_fails_framing_even_with_valid_crc(proto, header):
    body = header + b"\x06\x33"
    raw = body + struct.pack("<H", proto.crc16(body))

    with pytest.raises(FramingError):
        Frame.decode(proto, raw)


def test_decode_short_buffer_fails_framing(proto):
    with pytest.raises(FramingError):
        Frame.decode(proto, b"\x02\x03\x06\x33\x00")


def test_data_property_is_command_plus_payload(proto):
    frame = Frame(proto=proto, command=0x1C, payload=b"\x61")
    assert frame.data == b"\x1C\x61"


def test_command_frame_resolves_code_from_yaml(proto):
    assert CommandFrame(proto, "POLL").command == 0x33
    assert CommandFrame(proto, "GET_BILL_TABLE").command == 0x41
    assert CommandFrame(proto, "NACK").command == 0xFF


def test_command_frame_unknown_command_raises(proto):
    with pytest.raises(ValueError):
        CommandFrame(proto, "DISPENSE")


def test_command_frame_packs_declared_payload(proto):
    frame = CommandFrame(proto, "SET_SECURITY", args={"mask": b"\x00\x00\x05"})
    assert frame.payload == b"\x00\x00\x05"
    assert frame.length == 9


def test_build_payload_missing_arg_raises(proto):
    with pytest.raises(KeyError):
        CommandFrame.build_payload(proto, "SET_SECURITY", args={})


def test_build_payload_wrong_size_raises(proto):
    with pytest.raises(ValueError):
        CommandFrame.build_payload(proto, "SET_SECURITY", args={"mask": b"\x01"})


def test_explicit_payload_bypasses_schema(proto):
    frame = CommandFrame(proto, "POLL", payload=b"\x01")
    assert frame.payload == b"\x01"
