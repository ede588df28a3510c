from pathlib import Path

import pytest

from ccvalidator.core.context import Context
from ccvalidator.core.errors import ValidatorConfigError
from ccvalidator.protocol.core.defs import Protocol
from ccvalidator.protocol.loader import DEFAULT_PROTOCOL_DIR, ProtocolLoader


CONSTANTS = """\
protocol_version: 1
start_code: 0x02
peripheral_address: 0x03
sentinels: {ack: 0x00, nack: 0xFF, illegal_command: 0x30}
"""


def _write(dirp: Path, name: str, text: str) -> None:
    (dirp / name).write_text(text, encoding="utf-8")


def _write_valid_protocol(dirp: Path) -> None:
    _write(dirp, "constants.yml", CONSTANTS)
    _write(dirp, "commands.yml", "commands:\n  POLL: {code: 0x33}\n")


def test_default_definition_loads(proto):
    assert proto.start_code == 0x02
    assert proto.address == 0x03
    assert (proto.ack_code, proto.nack_code, proto.illegal_code) == (0x00, 0xFF, 0x30)
    assert proto.supported_baudrates == (9600, 19200)
    assert proto.min_frame_len == 6
    assert proto.max_frame_len == 255
    assert proto.command_codes == {
        "ACK": 0x00,
        "RESET": 0x30,
        "GET_STATUS": 0x31,
        "SET_SECURITY": 0x32,
        "POLL": 0x33,
        "IDENTIFICATION": 0x37,
        "GET_BILL_TABLE": 0x41,
        "NACK": 0xFF,
    }


def test_load_all_requires_all_files(tmp_path: Path) -> None:
    _write_valid_protocol(tmp_path)
    (tmp_path / "commands.yml").unlink()

    with pytest.raises(FileNotFoundError):
        ProtocolLoader(tmp_path).load_all()


def test_load_all_populates_structures_and_hashes(tmp_path: Path) -> None:
    _write_valid_protocol(tmp_path)

    loader = ProtocolLoader(tmp_path)
    loader.load_all()

    assert loader.protocol_version() == 1
    assert loader.commands == {"POLL": {"code": 0x33}}
    assert set(loader.file_hashes) == set(loader.REQUIRED_FILES)
    for h in loader.file_hashes.values():
        assert isinstance(h, str) and len(h) == 64


def test_load_all_rejects_missing_commands_key(tmp_path: Path) -> None:
    _write_valid_protocol(tmp_path)
    _write(tmp_path, "commands.yml", "invalid: true\n")

    with pytest.raises(ValueError):
        ProtocolLoader(tmp_path).load_all()


def test_protocol_version_rejects_invalid_value(tmp_path: Path) -> None:
    _write_valid_protocol(tmp_path)
    _write(tmp_path, "constants.yml", CONSTANTS.replace("protocol_version: 1", "protocol_version: bad"))

    loader = ProtocolLoader(tmp_path)
    loader.load_all()

    with pytest.raises(ValueError):
        loader.protocol_version()


def test_protocol_rejects_duplicate_codes(tmp_path: Path) -> None:
    _write_valid_protocol(tmp_path)
    _write(tmp_path, "commands.yml", "commands:\n  POLL: {code: 0x33}\n  OTHER: {code: 0x33}\n")

    loader = ProtocolLoader(tmp_path)
    loader.load_all()

    with pytest.raises(ValueError):
        Protocol(loader)


def test_protocol_rejects_missing_wire_constants(tmp_path: Path) -> None:
    _write_valid_protocol(tmp_path)
    _write(tmp_path, "constants.yml", "protocol_version: 1\n")

    loader = ProtocolLoader(tmp_path)
    loader.load_all()

    with pytest.raises(ValueError):
        Protocol(loader)


def test_context_load_wraps_failures_as_config_error(tmp_path: Path) -> None:
    with pytest.raises(ValidatorConfigError):
        Context.load(tmp_path)


def test_context_load_default_dir() -> None:
    ctx = Context.load(DEFAULT_PROTOCOL_DIR)
    assert ctx.protocol_version == 1
    assert set(ctx.protocol_hashes) == {"constants.yml", "commands.yml"}
