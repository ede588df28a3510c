# ccvalidator/core/errors.py
from __future__ import annotations


class ValidatorError(Exception):
    """
    Base class for all expected operational errors surfaced to operators.
    """

    #: Stable machine-readable identifier (for CLI exit mapping, logs, etc.)
    code: str = "unknown"

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.hint = hint
        self.details = details or {}

    def __str__(self) -> str:
        return self.message


# ---------------------------------------------------------------------------
# Configuration / setup errors (no hardware access yet)
# ---------------------------------------------------------------------------

class ValidatorConfigError(ValidatorError):
    """
    Line configuration or protocol definition is invalid.

    Examples:
      - unsupported baud rate
      - non-positive read timeout / attempt count
      - missing or malformed protocol YAML
    """
    code = "validator_config_error"


# ---------------------------------------------------------------------------
# Transport / connection lifecycle errors
# ---------------------------------------------------------------------------

class DeviceConnectError(ValidatorError):
    """
    Serial line could not be opened.

    Examples:
      - port not found
      - permission denied
      - device already in use
    """
    code = "device_connect_error"


class DeviceDisconnectedError(ValidatorError):
    """
    Line was open but a read/write failed.

    Examples:
      - USB-serial adapter unplugged
      - OS-level I/O error during read/write
    """
    code = "device_disconnected"


# ---------------------------------------------------------------------------
# Protocol / communication errors
# ---------------------------------------------------------------------------

class ProtocolCommunicationError(ValidatorError):
    """
    Exchange with the validator did not reliably complete.

    Examples:
      - no complete response within the read budget
      - framing or CRC errors
      - NACK / illegal command
      - unknown status byte
    """
    code = "protocol_communication_error"
