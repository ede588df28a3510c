from __future__ import annotations

import struct
from typing import Optional

from .base import Frame
from ..decoder import ENDIAN, field_size
from ..defs import Protocol
from ccvalidator.protocol.core.types import SIZED_TYPES, YAML_TO_STRUCT


class CommandFrame(Frame):
    """Host → peripheral command frame."""

    @staticmethod
    def build_payload(proto: Protocol, cmd_name: str, args: Optional[dict] = None) -> bytes:
        cmd_def = proto.get_command_def(cmd_name)
        args = args or {}

        payload_bytes: list[bytes] = []

        for field in cmd_def.get("payload", []):
            ftype = field["type"]
            val = field.get("value", args.get(field["name"]))
            if val is None:
                raise KeyError(f"Missing command argument '{field['name']}' for {cmd_name}")

            if ftype in YAML_TO_STRUCT:
                payload_bytes.append(struct.pack(ENDIAN + YAML_TO_STRUCT[ftype], val))
                continue

            if ftype in SIZED_TYPES:
                size = field_size(field)
                raw = val.encode("ascii") if isinstance(val, str) else bytes(val)
                if len(raw) != size:
                    raise ValueError(
                        f"Field '{field['name']}' of {cmd_name} must be {size} bytes, got {len(raw)}"
                    )
                payload_bytes.append(raw)
                continue

            raise ValueError(f"Unknown field type '{ftype}' in command '{cmd_name}'")

        return b"".join(payload_bytes)

    def __init__(
        self,
        proto: Protocol,
        cmd_name: str,
        payload: Optional[bytes] = None,
        args: Optional[dict] = None,
    ):
        if payload is None:
            payload = self.build_payload(proto, cmd_name, args)

        super().__init__(
            proto=proto,
            command=proto.command_code(cmd_name),
            payload=payload,
        )
        self.cmd_name = cmd_name
