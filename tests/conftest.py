import os
import socket
import sys
import urllib.request
from pathlib import Path

import pytest


REPO_ROOT = Path(__file__).resolve().parents[1]
SRC = REPO_ROOT / "src"

# Prefer repo sources over any installed package.
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))


@pytest.fixture(autouse=True)
def block_network(monkeypatch):
    if os.getenv("LIVE") == "1":
        return

    real_connect = socket.socket.connect

    def guarded_connect(sock, address):
        host = address[0]
        if host not in ("127.0.0.1", "localhost"):
            raise RuntimeError("Network access blocked in tests")
        return real_connect(sock, address)

    monkeypatch.setattr(socket.socket, "connect", guarded_connect)
    monkeypatch.setattr(
        urllib.request,
        "urlopen",
        lambda *args, **kwargs: (_ for _ in ()).throw(
            RuntimeError("Network access blocked in tests")
        ),
    )


@pytest.fixture(autouse=True)
def isolate_process_state(monkeypatch):
    """Fresh feature flags and an empty control registry for every test."""
    from location_suggest import registry
    from location_suggest.feature_flags import reset_flags_cache

    for name in ("LSG_FEATURE_SECONDARY_GEOCODER", "LSG_FEATURE_NEGATIVE_CACHE"):
        monkeypatch.delenv(name, raising=False)
    reset_flags_cache()
    registry.clear()
    yield
    registry.clear()
    reset_flags_cache()
