# ccvalidator/protocol/loader.py
from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Any, Dict

import yaml

# Validator wire definition bundled with the package
DEFAULT_PROTOCOL_DIR = Path(__file__).resolve().parents[1] / "metadata" / "protocol"


def _sha256_file(path: Path) -> str:
    h = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(64 * 1024), b""):
            h.update(chunk)
    return h.hexdigest()


class ProtocolLoader:
    """
    Reads the validator definition (constants.yml + commands.yml).

    After load_all():
      - ``constants``: flat mapping of wire constants and line defaults
      - ``commands``: command name -> definition (must carry ``code``)
      - ``file_hashes``: filename -> sha256 hex, to pin which definition a trace used
    """

    REQUIRED_FILES = ("constants.yml", "commands.yml")

    def __init__(self, config_dir: Path | str = DEFAULT_PROTOCOL_DIR):
        self.config_dir = Path(config_dir)
        self.constants: Dict[str, Any] = {}
        self.commands: Dict[str, Dict[str, Any]] = {}
        self.file_hashes: Dict[str, str] = {}

    def load_all(self) -> None:
        missing = [fn for fn in self.REQUIRED_FILES if not (self.config_dir / fn).exists()]
        if missing:
            raise FileNotFoundError(f"Protocol file(s) not found in {self.config_dir}: {', '.join(missing)}")

        self.file_hashes = {fn: _sha256_file(self.config_dir / fn) for fn in self.REQUIRED_FILES}

        constants = self._load_yaml("constants.yml")
        if not isinstance(constants, dict):
            raise ValueError("constants.yml must be a mapping")

        commands_doc = self._load_yaml("commands.yml")
        commands = commands_doc.get("commands") if isinstance(commands_doc, dict) else None
        if not isinstance(commands, dict):
            raise ValueError("commands.yml must contain a 'commands' mapping")
        for name, cmd in commands.items():
            if not isinstance(cmd, dict) or "code" not in cmd:
                raise ValueError(f"commands.yml entry '{name}' must be a mapping with a 'code'")

        self.constants = constants
        self.commands = commands

    def protocol_version(self) -> int:
        """Definition version from constants.yml (0 when absent)."""
        v = self.constants.get("protocol_version", 0)
        try:
            return int(v)
        except (TypeError, ValueError):
            raise ValueError(f"Invalid protocol version in constants.yml: {v!r}") from None

    def _load_yaml(self, filename: str) -> Any:
        with open(self.config_dir / filename, "r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}
