from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Optional

from ..defs import Protocol
from ...errors import ChecksumError, FramingError


@dataclass
class Frame:
    """
    One CCNET frame::

        [start(1)] [address(1)] [length(1)] [command(1)] [payload(0..249)] [crc16(2, LE)]

    ``length`` counts the whole frame, header and CRC included. A received
    length of 0 marks a frame that is not length-framed and is kept as-is.
    """

    proto: Protocol
    command: int
    payload: bytes = b""
    length: Optional[int] = None
    checksum: Optional[int] = None

    def __post_init__(self) -> None:
        self.command = int(self.command)
        if not 0 <= self.command <= 0xFF:
            raise ValueError(f"Invalid command=0x{self.command:X}; must fit in one byte")

        self.payload = bytes(self.payload)

        if self.length is None:
            self.length = self.proto.min_frame_len + len(self.payload)
            if self.length > self.proto.max_frame_len:
                raise ValueError(
                    f"Payload too long: frame length {self.length} > {self.proto.max_frame_len}"
                )

    @property
    def start_code(self) -> int:
        return self.proto.start_code

    @property
    def address(self) -> int:
        return self.proto.address

    @property
    def data(self) -> bytes:
        """Everything after the 3-byte link header: command byte + payload."""
        return bytes([self.command]) + self.payload

    def encode(self) -> bytes:
        body = bytes([self.start_code, self.address, self.length, self.command]) + self.payload
        crc = self.proto.crc16(body)
        self.checksum = crc
        return body + struct.pack("<H", crc)

    @classmethod
    def decode(cls, proto: Protocol, raw: bytes) -> "Frame":
        raw = bytes(raw)
        if len(raw) < proto.min_frame_len:
            raise FramingError(f"Frame too short: {len(raw)} < {proto.min_frame_len} bytes")

        if raw[0] != proto.start_code or raw[1] != proto.address:
            raise FramingError(
                f"Bad frame header: start=0x{raw[0]:02X} address=0x{raw[1]:02X} "
                f"(expected 0x{proto.start_code:02X} 0x{proto.address:02X})"
            )

        body, rx_crc = raw[:-proto.crc_size], struct.unpack("<H", raw[-proto.crc_size:])[0]
        calc_crc = proto.crc16(body)
        if calc_crc != rx_crc:
            raise ChecksumError(calc_crc, rx_crc)

        return cls(
            proto=proto,
            command=body[3],
            payload=body[4:],
            length=body[2],
            checksum=rx_crc,
        )
