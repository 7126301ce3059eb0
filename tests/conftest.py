from __future__ import annotations

import os
import socket
from typing import Any

import pytest

# Keep a developer's .env out of the unit tests
os.environ.setdefault("RUNNER_URL", "")

from codecollab.core import state  # noqa: E402


class NetworkBlockedError(RuntimeError):
    pass


def _blocked(*_args: Any, **_kwargs: Any) -> Any:
    raise NetworkBlockedError("Network access is disabled during tests. Set ALLOW_NETWORK=1 to allow it.")


@pytest.fixture(autouse=True)
def _disable_network(monkeypatch: pytest.MonkeyPatch) -> None:
    """Prevent accidental outbound network calls in unit tests."""

    if os.getenv("ALLOW_NETWORK") == "1":
        return

    monkeypatch.setattr(socket, "create_connection", _blocked)
    monkeypatch.setattr(socket, "getaddrinfo", _blocked)


@pytest.fixture(autouse=True)
def _fresh_state() -> None:
    """Every test starts with an empty registry and no connections."""
    state.reset()
    yield
    state.sessions.close_all()
