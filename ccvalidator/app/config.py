# ccvalidator/app/config.py
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Mapping, Optional, Sequence

from ccvalidator.core.errors import ValidatorConfigError
from ccvalidator.protocol.loader import DEFAULT_PROTOCOL_DIR


@dataclass(frozen=True)
class ValidatorConfig:
    """
    Line settings for one validator.

    Fields left as None take their value from constants.yml
    (see with_protocol_defaults()).
    """

    port: str
    baudrate: Optional[int] = None
    read_timeout_s: Optional[float] = None
    max_read_attempts: Optional[int] = None
    read_size: Optional[int] = None
    protocol_dir: str = str(DEFAULT_PROTOCOL_DIR)

    def with_protocol_defaults(self, constants: Mapping[str, Any]) -> "ValidatorConfig":
        def pick(value, key, fallback, cast):
            return cast(value if value is not None else constants.get(key, fallback))

        return replace(
            self,
            baudrate=pick(self.baudrate, "default_baudrate", 9600, int),
            read_timeout_s=pick(self.read_timeout_s, "read_timeout_s", 5.0, float),
            max_read_attempts=pick(self.max_read_attempts, "max_read_attempts", 1050, int),
            read_size=pick(self.read_size, "read_size", 256, int),
        )

    def validate(self, supported_baudrates: Sequence[int] = (9600, 19200)) -> "ValidatorConfig":
        """Check a resolved config; call with_protocol_defaults() first."""
        if not self.port:
            raise ValidatorConfigError("No serial port given.", hint="Pass --port, e.g. /dev/ttyUSB0 or COM3.")
        if None in (self.baudrate, self.read_timeout_s, self.max_read_attempts, self.read_size):
            raise ValidatorConfigError("Line settings are incomplete.", details={"config": repr(self)})
        if int(self.baudrate) not in tuple(supported_baudrates):
            raise ValidatorConfigError(
                f"Unsupported baud rate {self.baudrate}.",
                hint=f"Supported: {', '.join(str(b) for b in supported_baudrates)}",
                details={"baudrate": self.baudrate},
            )
        if self.read_timeout_s <= 0:
            raise ValidatorConfigError(
                f"Read timeout must be positive, got {self.read_timeout_s}.",
                details={"read_timeout_s": self.read_timeout_s},
            )
        if self.max_read_attempts < 1:
            raise ValidatorConfigError(
                f"Max read attempts must be >= 1, got {self.max_read_attempts}.",
                details={"max_read_attempts": self.max_read_attempts},
            )
        if self.read_size < 1:
            raise ValidatorConfigError(
                f"Read size must be >= 1, got {self.read_size}.",
                details={"read_size": self.read_size},
            )
        return self
