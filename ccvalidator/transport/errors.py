# ccvalidator/transport/errors.py
from __future__ import annotations

class TransportError(Exception):
    """Base class for serial-line failures."""

class TransportOpenError(TransportError):
    """The serial device could not be opened/configured."""

class TransportIOError(TransportError):
    """A read, write or flush on an open line failed."""
