# ccvalidator/core/context.py
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict

import yaml

from ccvalidator.protocol.core.defs import Protocol
from ccvalidator.protocol.loader import DEFAULT_PROTOCOL_DIR, ProtocolLoader

from ccvalidator.core.errors import ValidatorConfigError


@dataclass(frozen=True)
class Context:
    protocol: Protocol
    protocol_version: int
    protocol_hashes: Dict[str, str]

    @classmethod
    def load(cls, protocol_dir: str | Path = DEFAULT_PROTOCOL_DIR) -> "Context":
        """Load the protocol definition, translating failures into config errors."""
        protocol_dir = Path(protocol_dir)

        pl = ProtocolLoader(protocol_dir)
        try:
            pl.load_all()
            proto = Protocol(pl)
            version = pl.protocol_version()
        except (FileNotFoundError, ValueError, yaml.YAMLError) as e:
            raise ValidatorConfigError(
                "Failed to load protocol definition.",
                hint=str(e),
                details={"protocol_dir": str(protocol_dir)},
            ) from None

        return cls(
            protocol=proto,
            protocol_version=version,
            protocol_hashes=dict(pl.file_hashes),
        )
