# ccvalidator/protocol/validator_client.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Union

from .core.status import PollResult, decode_poll
from .engine import ProtocolEngine
from .errors import DecodeError

BILL_TYPES = 24
SECURITY_MASK_SIZE = 3


@dataclass(frozen=True)
class Identification:
    part_number: str
    serial_number: str
    asset_number: bytes


@dataclass(frozen=True)
class BillTableEntry:
    index: int
    digit: int
    country: str
    power: int

    @property
    def empty(self) -> bool:
        return self.digit == 0

    @property
    def value(self) -> Union[int, float]:
        return self.digit * 10 ** self.power

    @classmethod
    def from_raw(cls, index: int, raw: Dict[str, Any]) -> "BillTableEntry":
        # bit 7 of the power byte flags a negative exponent
        p = int(raw["power"])
        power = -(p & 0x7F) if p & 0x80 else p
        return cls(index=index, digit=int(raw["digit"]), country=str(raw["country"]), power=power)


def bill_types_in_mask(mask: bytes) -> List[int]:
    """Inverse of security_mask(): indices of the bill types whose bit is set."""
    value = int.from_bytes(mask, "big")
    return [i for i in range(BILL_TYPES) if value >> i & 1]


@dataclass(frozen=True)
class ValidatorStatus:
    """GET_STATUS reply: enabled bill types and the high-security subset."""
    enabled: bytes
    security: bytes

    @property
    def enabled_bills(self) -> List[int]:
        return bill_types_in_mask(self.enabled)

    @property
    def high_security_bills(self) -> List[int]:
        return bill_types_in_mask(self.security)


def security_mask(bill_types: Iterable[int]) -> bytes:
    """Build the 3-byte SET_SECURITY mask, one bit per bill type (bit 0 = type 0)."""
    mask = 0
    for idx in bill_types:
        idx = int(idx)
        if not 0 <= idx < BILL_TYPES:
            raise ValueError(f"Bill type {idx} outside 0..{BILL_TYPES - 1}")
        mask |= 1 << idx
    return mask.to_bytes(SECURITY_MASK_SIZE, "big")


class ValidatorClient:
    """
    User-facing API over ProtocolEngine.

    Raw commands return the response data (None for a bare ACK); status(),
    poll(), identify() and bill_table() also decode it.
    """

    def __init__(self, engine: ProtocolEngine):
        self._engine = engine

    # ---------------- Raw commands ----------------
    def reset(self) -> Optional[bytes]:
        return self._engine.send_cmd("RESET")

    def get_status(self) -> Optional[bytes]:
        return self._engine.send_cmd("GET_STATUS")

    def set_security(self, mask: Union[bytes, bytearray, Iterable[int]]) -> Optional[bytes]:
        if not isinstance(mask, (bytes, bytearray)):
            mask = security_mask(mask)
        return self._engine.send_cmd("SET_SECURITY", mask=bytes(mask))

    def identification(self) -> Optional[bytes]:
        return self._engine.send_cmd("IDENTIFICATION")

    def get_bill_table(self) -> Optional[bytes]:
        return self._engine.send_cmd("GET_BILL_TABLE")

    def ack(self) -> Optional[bytes]:
        return self._engine.send_cmd("ACK")

    def nack(self) -> Optional[bytes]:
        return self._engine.send_cmd("NACK")

    # ---------------- Decoded commands ----------------
    def poll(self) -> PollResult:
        data = self._engine.send_cmd("POLL")
        if data is None:
            raise DecodeError("POLL answered with a bare ACK")
        return decode_poll(data)

    def status(self) -> ValidatorStatus:
        fields = self._decode("GET_STATUS", self.get_status())
        return ValidatorStatus(enabled=fields["enabled"], security=fields["security"])

    def identify(self) -> Identification:
        fields = self._decode("IDENTIFICATION", self.identification())
        return Identification(
            part_number=fields["part_number"],
            serial_number=fields["serial_number"],
            asset_number=fields["asset_number"],
        )

    def bill_table(self) -> List[BillTableEntry]:
        fields = self._decode("GET_BILL_TABLE", self.get_bill_table())
        return [BillTableEntry.from_raw(i, raw) for i, raw in enumerate(fields["bills"])]

    def _decode(self, cmd_name: str, data: Optional[bytes]) -> Dict[str, Any]:
        if data is None:
            raise DecodeError(f"{cmd_name} answered with a bare ACK")
        proto = self._engine.proto
        try:
            return proto.decode_response(proto.command_code(cmd_name), data)
        except ValueError as e:
            raise DecodeError(f"{cmd_name} response could not be decoded: {e}") from None
