from __future__ import annotations

from typing import Any, Dict

from .crc import crc16
from .decoder import decode_response, resolve_value
from ..loader import ProtocolLoader


class Protocol:
    """Runtime access to protocol metadata."""

    def __init__(self, loader: ProtocolLoader):
        self.constants: Dict[str, Any] = loader.constants
        self.commands: Dict[str, Dict[str, Any]] = loader.commands

        try:
            self.start_code = int(self.constants["start_code"])
            self.address = int(self.constants["peripheral_address"])
            sentinels = self.constants["sentinels"]
            self.ack_code = int(sentinels["ack"])
            self.nack_code = int(sentinels["nack"])
            self.illegal_code = int(sentinels["illegal_command"])
        except (KeyError, TypeError) as e:
            raise ValueError(f"Missing wire constant in constants.yml: {e}") from e

        self.header_size = int(self.constants.get("header_size", 4))
        self.crc_size = int(self.constants.get("crc_size", 2))
        self.max_frame_len = int(self.constants.get("max_frame_len", 255))
        self.min_frame_len = self.header_size + self.crc_size
        self.supported_baudrates: tuple[int, ...] = tuple(
            int(b) for b in self.constants.get("supported_baudrates", (9600, 19200))
        )

        # Fast lookup maps
        self.command_codes: Dict[str, int] = {}
        self.commands_by_code: Dict[int, Dict[str, Any]] = {}
        for name, cmd in self.commands.items():
            code = self.resolve_value(cmd.get("code"), None)
            if code is None:
                raise ValueError(f"Command '{name}' has no code")
            code = int(code)
            if not 0 <= code <= 0xFF:
                raise ValueError(f"Command '{name}' code {code} out of byte range")
            if code in self.commands_by_code:
                raise ValueError(
                    f"Duplicate code=0x{code:02X} for commands '{name}' and "
                    f"'{self.commands_by_code[code].get('name', '<unknown>')}'"
                )
            self.command_codes[name] = code
            self.commands_by_code[code] = {**cmd, "name": name}

    # Delegated
    def resolve_value(self, v: Any, default: Any = None) -> Any:
        return resolve_value(self, v, default)

    def get_command_def(self, cmd_name: str) -> Dict[str, Any]:
        if cmd_name not in self.commands:
            raise ValueError(f"Unknown command: {cmd_name}")
        return self.commands[cmd_name]

    def command_code(self, cmd_name: str) -> int:
        self.get_command_def(cmd_name)
        return self.command_codes[cmd_name]

    def crc16(self, buf: bytes) -> int:
        cfg = self.constants.get("crc", {})
        return crc16(buf, seed=cfg.get("seed", 0x0000), poly=cfg.get("poly", 0x8408))

    def decode_response(self, cmd_code: int, payload: bytes) -> Dict[str, Any]:
        return decode_response(self, cmd_code, payload)
