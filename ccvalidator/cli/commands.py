# ccvalidator/cli/commands.py
from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from ccvalidator.app.config import ValidatorConfig
from ccvalidator.core.errors import (
    DeviceDisconnectedError,
    ProtocolCommunicationError,
    ValidatorConfigError,
)
from ccvalidator.core.recording.command import CommandTraceLogger
from ccvalidator.protocol.errors import ProtocolError
from ccvalidator.protocol.validator_client import ValidatorClient, security_mask
from ccvalidator.runtime.validator_link import ValidatorLink
from ccvalidator.transport.errors import TransportError


# ---------------- Logging ----------------

def configure_logging(verbose: bool = False) -> None:
    """Attach one stderr handler to the root logger (idempotent)."""
    root = logging.getLogger()
    level = logging.DEBUG if verbose else logging.WARNING

    for h in root.handlers:
        if getattr(h, "_ccvalidator", False):
            h.setLevel(level)
            break
    else:
        sh = logging.StreamHandler()
        sh.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s"))
        sh.setLevel(level)
        sh._ccvalidator = True  # type: ignore[attr-defined]
        root.addHandler(sh)

    root.setLevel(level)


# ---------------- Link lifecycle ----------------

@contextmanager
def open_client(cfg: ValidatorConfig, *, trace: Optional[str] = None) -> Iterator[ValidatorClient]:
    """
    Start a link for the duration of one CLI command.

    Protocol and line failures during the command are re-raised as
    operator-facing errors.
    """
    try:
        sink = CommandTraceLogger(
            logger=logging.getLogger("commands"),
            file_path=Path(trace) if trace else None,
        )
    except OSError as e:
        raise ValidatorConfigError(
            "Cannot open trace file.",
            hint=str(e),
            details={"trace": trace},
        ) from None

    try:
        link = ValidatorLink.from_config(cfg, cmd_sink=sink, logger=logging.getLogger("ccvalidator.link"))
        with link:
            try:
                yield link.client
            except ProtocolError as e:
                raise ProtocolCommunicationError(
                    "Validator exchange did not complete.",
                    hint=str(e),
                    details={"error": type(e).__name__},
                ) from None
            except TransportError as e:
                raise DeviceDisconnectedError(
                    "Serial line failed during the exchange.",
                    hint=str(e),
                    details={"port": cfg.port},
                ) from None
    finally:
        sink.close()


# ---------------- Commands ----------------

def cmd_reset(cfg: ValidatorConfig, *, trace: Optional[str] = None) -> int:
    with open_client(cfg, trace=trace) as client:
        client.reset()
        print("RESET: ok")
    return 0


def cmd_status(cfg: ValidatorConfig, *, trace: Optional[str] = None) -> int:
    with open_client(cfg, trace=trace) as client:
        st = client.status()
        print(f"Enabled bill types:       {st.enabled_bills or '(none)'}")
        print(f"High-security bill types: {st.high_security_bills or '(none)'}")
    return 0


def cmd_poll(cfg: ValidatorConfig, *, count: int = 1, interval: float = 0.2, trace: Optional[str] = None) -> int:
    with open_client(cfg, trace=trace) as client:
        n = 0
        while count <= 0 or n < count:
            res = client.poll()
            d = res.as_dict()
            sub = f" sub_code={d['sub_code']}" if d["sub_code"] is not None else ""
            print(f"POLL: {d['status']}{sub}")
            n += 1
            if count <= 0 or n < count:
                time.sleep(max(0.0, interval))
    return 0


def cmd_identify(cfg: ValidatorConfig, *, trace: Optional[str] = None) -> int:
    with open_client(cfg, trace=trace) as client:
        ident = client.identify()
        print(f"Part number:   {ident.part_number}")
        print(f"Serial number: {ident.serial_number}")
        print(f"Asset number:  {ident.asset_number.hex(' ')}")
    return 0


def cmd_bill_table(cfg: ValidatorConfig, *, trace: Optional[str] = None) -> int:
    with open_client(cfg, trace=trace) as client:
        entries = [e for e in client.bill_table() if not e.empty]
        if not entries:
            print("Bill table: (empty)")
            return 0
        print("Bill table:")
        for e in entries:
            print(f"  - type={e.index:2d} value={e.value} country={e.country}")
    return 0


def cmd_set_security(cfg: ValidatorConfig, *, bills: list[int], trace: Optional[str] = None) -> int:
    try:
        mask = security_mask(bills)
    except ValueError as e:
        raise ValidatorConfigError("Invalid bill type list.", hint=str(e)) from None

    with open_client(cfg, trace=trace) as client:
        client.set_security(mask)
        print(f"SET_SECURITY: ok mask={mask.hex()} bills={sorted(set(bills))}")
    return 0
