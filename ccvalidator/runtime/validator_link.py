# ccvalidator/runtime/validator_link.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Optional

from ccvalidator.app.config import ValidatorConfig
from ccvalidator.core.context import Context
from ccvalidator.core.errors import DeviceConnectError
from ccvalidator.interfaces.command_sink import CommandSink
from ccvalidator.protocol.core.defs import Protocol
from ccvalidator.protocol.engine import ProtocolEngine
from ccvalidator.protocol.validator_client import ValidatorClient
from ccvalidator.transport.base import Transport
from ccvalidator.transport.errors import TransportError, TransportOpenError
from ccvalidator.transport.uart import UARTTransport


@dataclass
class ValidatorLink:
    """
    Long-lived connection to one validator.

    Responsibilities:
      - exclusively own the transport: open it on start(), close it on stop()
      - build the ProtocolEngine + ValidatorClient once the line is open
      - translate open failures into operator-safe errors

    Exchanges are not serialized here; use one link per thread or guard it.
    """

    proto: Protocol
    transport: Transport
    max_read_attempts: Optional[int] = None
    read_size: Optional[int] = None
    cmd_sink: Optional[CommandSink] = None
    logger: Optional[logging.Logger] = None
    protocol_version: Optional[int] = None
    protocol_hashes: Optional[Dict[str, str]] = None

    def __post_init__(self) -> None:
        self._log = self.logger or logging.getLogger(__name__)
        self._engine: Optional[ProtocolEngine] = None
        self._client: Optional[ValidatorClient] = None

    @classmethod
    def from_config(
        cls,
        cfg: ValidatorConfig,
        *,
        cmd_sink: Optional[CommandSink] = None,
        logger: Optional[logging.Logger] = None,
    ) -> "ValidatorLink":
        """Load the protocol, validate the line settings and build a UART link (not started)."""
        context = Context.load(cfg.protocol_dir)
        proto = context.protocol
        cfg = cfg.with_protocol_defaults(proto.constants).validate(proto.supported_baudrates)

        return cls(
            proto=proto,
            transport=UARTTransport(cfg.port, baudrate=cfg.baudrate, timeout=cfg.read_timeout_s),
            max_read_attempts=cfg.max_read_attempts,
            read_size=cfg.read_size,
            cmd_sink=cmd_sink,
            logger=logger,
            protocol_version=context.protocol_version,
            protocol_hashes=context.protocol_hashes,
        )

    @property
    def is_started(self) -> bool:
        return self._engine is not None and self._client is not None

    @property
    def client(self) -> ValidatorClient:
        if self._client is None:
            raise RuntimeError("ValidatorLink not started (client is None)")
        return self._client

    def start(self) -> None:
        if self.is_started:
            return

        try:
            self.transport.open()
        except TransportOpenError as e:
            self._log.error("TRANSPORT_OPEN_FAILED error=%s", e)
            raise DeviceConnectError(
                "Could not open the validator serial port.",
                hint=str(e),
                details={"driver": type(self.transport).__name__},
            ) from None
        except TransportError as e:
            self._log.error("TRANSPORT_OPEN_ERROR error=%s", e)
            raise DeviceConnectError(
                "Transport error while opening the validator line.",
                hint=str(e),
                details={"driver": type(self.transport).__name__},
            ) from None

        self._engine = ProtocolEngine(
            self.proto,
            self.transport,
            max_read_attempts=self.max_read_attempts,
            read_size=self.read_size,
            cmd_sink=self.cmd_sink,
            logger=self._log,
        )
        self._client = ValidatorClient(self._engine)
        self._log.info(
            "LINK_STARTED driver=%s protocol_version=%s protocol_hashes=%s",
            type(self.transport).__name__,
            self.protocol_version,
            self.protocol_hashes,
        )

    def stop(self) -> None:
        self._engine = None
        self._client = None

        try:
            self.transport.close()
        except TransportError:
            self._log.exception("Failed to close transport")

    def __enter__(self) -> "ValidatorLink":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()
