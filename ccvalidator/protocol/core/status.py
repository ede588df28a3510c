# ccvalidator/protocol/core/status.py
from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Optional, Union

from ..errors import DecodeError, UnknownStatusError


class Status(IntEnum):
    """Device state reported as the first byte of a POLL response."""

    POWER_UP = 0x10
    POWER_UP_WITH_BILL_VALIDATOR = 0x11
    POWER_UP_WITH_BILL_STACKER = 0x12
    INITIALIZE = 0x13
    IDLING = 0x14
    ACCEPTING = 0x15
    STACKING = 0x17
    RETURNING = 0x18
    UNIT_DISABLED = 0x19
    HOLDING = 0x1A
    DEVICE_BUSY = 0x1B
    REJECTING = 0x1C
    DROP_CASSETTE_FULL = 0x41
    DROP_CASSETTE_OUT_OF_POSITION = 0x42
    VALIDATOR_JAMMED = 0x43
    DROP_CASSETTE_JAMMED = 0x44
    CHEATED = 0x45
    GENERIC_FAILURE = 0x47
    ESCROW_POSITION = 0x80
    BILL_STACKED = 0x81
    BILL_RETURNED = 0x82


class RejectReason(IntEnum):
    DUE_TO_INSERTION = 0x60
    DUE_TO_MAGNETIC = 0x61
    DUE_TO_REMAINED_BILL_IN_HEAD = 0x62
    DUE_TO_MULTIPLYING = 0x63
    DUE_TO_CONVEYING = 0x64
    DUE_TO_IDENTIFICATION = 0x65
    DUE_TO_VERIFICATION = 0x66
    DUE_TO_OPTIC = 0x67
    DUE_TO_INHIBIT = 0x68
    DUE_TO_CAPACITY = 0x69
    DUE_TO_OPERATION = 0x6A
    DUE_TO_LENGTH = 0x6C


class FailureReason(IntEnum):
    STACK_MOTOR = 0x50
    TRANSPORT_MOTOR_SPEED = 0x51
    TRANSPORT_MOTOR = 0x52
    ALIGNING_MOTOR = 0x53
    INITIAL_CASSETTE_STATUS = 0x54
    OPTIC_CANAL = 0x55
    MAGNETIC_CANAL = 0x56
    CAPACITANCE_CANAL = 0x5F


SubCode = Union[RejectReason, FailureReason, int]


@dataclass(frozen=True)
class PollResult:
    status: Status
    sub_code: Optional[SubCode] = None

    @property
    def reject_reason(self) -> Optional[RejectReason]:
        if self.status is Status.REJECTING and isinstance(self.sub_code, RejectReason):
            return self.sub_code
        return None

    @property
    def failure_reason(self) -> Optional[FailureReason]:
        if self.status is Status.GENERIC_FAILURE and isinstance(self.sub_code, FailureReason):
            return self.sub_code
        return None

    def as_dict(self) -> dict:
        sub = self.sub_code
        return {
            "status": self.status.name,
            "sub_code": sub.name if isinstance(sub, IntEnum) else sub,
        }


def _decode_sub_code(status: Status, raw: int) -> SubCode:
    try:
        if status is Status.REJECTING:
            return RejectReason(raw)
        if status is Status.GENERIC_FAILURE:
            return FailureReason(raw)
    except ValueError:
        pass
    return raw


def decode_poll(data: bytes) -> PollResult:
    """
    Decode a POLL data payload: status byte, then an optional sub-code.

    Unknown status bytes raise UnknownStatusError; unknown reject/failure
    reasons are kept as the raw byte value.
    """
    if not data:
        raise DecodeError("POLL returned an empty payload")

    try:
        status = Status(data[0])
    except ValueError:
        raise UnknownStatusError(data[0]) from None

    if len(data) < 2:
        return PollResult(status=status)

    return PollResult(status=status, sub_code=_decode_sub_code(status, data[1]))
