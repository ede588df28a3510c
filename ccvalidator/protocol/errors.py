# ccvalidator/protocol/errors.py

class ProtocolError(Exception):
    """Base for protocol-level failures (framing/parse/command semantics)."""

class FramingError(ProtocolError):
    """Bad start code/address, short buffer or a length field that overran."""

class ChecksumError(ProtocolError):
    def __init__(self, expected: int, received: int):
        super().__init__(f"CRC mismatch: calc={expected:04X} rx={received:04X}")
        self.expected = expected
        self.received = received

class CommandTimeout(ProtocolError, TimeoutError):
    def __init__(self, cmd: str, attempts: int):
        super().__init__(f"{cmd} got no complete response after {attempts} reads")
        self.cmd = cmd
        self.attempts = attempts

class NackError(ProtocolError):
    def __init__(self, cmd: str):
        super().__init__(f"{cmd} rejected by peripheral (NACK)")
        self.cmd = cmd

class IllegalCommandError(ProtocolError):
    def __init__(self, cmd: str):
        super().__init__(f"{cmd} not supported by peripheral (illegal command)")
        self.cmd = cmd

class UnknownStatusError(ProtocolError):
    def __init__(self, code: int):
        super().__init__(f"Unknown device status 0x{code:02X}")
        self.code = code

class DecodeError(ProtocolError):
    pass
