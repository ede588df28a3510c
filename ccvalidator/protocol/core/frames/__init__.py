# ccvalidator/protocol/core/frames/__init__.py

from .base import Frame
from .command import CommandFrame
from .response import (
    AckResponse,
    DataResponse,
    IllegalCommandResponse,
    NackResponse,
    Response,
    classify,
)

__all__ = [
    "Frame",
    "CommandFrame",
    "Response",
    "AckResponse",
    "NackResponse",
    "IllegalCommandResponse",
    "DataResponse",
    "classify",
]
