# ccvalidator/protocol/__init__.py

# Core classes
from .core import Protocol, Frame, CommandFrame, Response, classify
from .core.status import FailureReason, PollResult, RejectReason, Status

__all__ = [
    "Protocol",
    "Frame", "CommandFrame", "Response", "classify",
    "Status", "RejectReason", "FailureReason", "PollResult",
]
