from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from .base import Frame
from ..defs import Protocol


# ---------------------------
# Classified responses
# ---------------------------
@dataclass(frozen=True)
class AckResponse:
    """Peripheral acknowledged; nothing to return."""


@dataclass(frozen=True)
class NackResponse:
    """Peripheral rejected the command."""


@dataclass(frozen=True)
class IllegalCommandResponse:
    """Peripheral does not support the command."""


@dataclass(frozen=True)
class DataResponse:
    data: bytes


Response = Union[AckResponse, NackResponse, IllegalCommandResponse, DataResponse]


def is_control_frame(frame: Frame) -> bool:
    # Checksum-stripped control frames are exactly the 4 header bytes
    return not frame.payload


def classify(proto: Protocol, frame: Frame) -> Response:
    """
    Map a validated inbound frame to exactly one response kind.

    Control frames carry a single sentinel in the command slot; anything else
    is data, returned with the 3-byte link header and CRC stripped.
    """
    if is_control_frame(frame):
        if frame.command == proto.ack_code:
            return AckResponse()
        if frame.command == proto.nack_code:
            return NackResponse()
        if frame.command == proto.illegal_code:
            return IllegalCommandResponse()

    return DataResponse(data=frame.data)
