# ccvalidator/protocol/core/__init__.py

from .defs import Protocol
from .frames import Frame, CommandFrame, Response, classify
from .parser import FrameAssembler, frame_complete

__all__ = [
    "Protocol",
    "Frame", "CommandFrame", "Response", "classify",
    "FrameAssembler", "frame_complete",
]
