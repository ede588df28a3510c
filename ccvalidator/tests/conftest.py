from __future__ import annotations

import pytest

from ccvalidator.protocol.core.defs import Protocol
from ccvalidator.protocol.loader import ProtocolLoader


@pytest.fixture(scope="session")
def proto() -> Protocol:
    """Protocol built from the YAML definition shipped with the package."""
    loader = ProtocolLoader()
    loader.load_all()
    return Protocol(loader)
