"""Shared test fixtures for the CryptoReg Pulse test suite."""

import pytest
from cryptoreg.config import Config
from cryptoreg.intelligence.fetcher import RegulatoryEvent
from cryptoreg.intelligence.storage import EventStore


@pytest.fixture
def fresh_config(tmp_path, monkeypatch):
    """Create a Config instance with reset singleton state pointed at a temp directory."""
    Config._instance = None
    monkeypatch.setenv("CRYPTOREG_BASE_DIR", str(tmp_path))
    cfg = Config()
    yield cfg
    Config._instance = None


@pytest.fixture
def tmp_store(tmp_path):
    """Create an EventStore writing into a temp data directory."""
    return EventStore(
        events_path=tmp_path / "data" / "events.json",
        history_path=tmp_path / "data" / "history.json",
    )


@pytest.fixture
def sample_batches():
    """Three query batches with one cross-query duplicate."""
    return [
        [
            RegulatoryEvent(
                entity="Binance",
                description="SEC fine imposed on exchange for unregistered securities offering",
                timestamp="2024-01-10T00:00:00Z",
            ),
            RegulatoryEvent(
                entity="Tornado Cash",
                description="OFAC sanction designation extended to new addresses",
                timestamp="2024-01-08T12:00:00Z",
            ),
        ],
        [
            RegulatoryEvent(
                entity="Binance",
                description="SEC fine imposed on exchange for unregistered securities offering",
                timestamp="2024-01-09T00:00:00Z",
            ),
        ],
        [
            RegulatoryEvent(
                entity="OKX",
                description="Exchange banned from operating after criminal indictment",
                timestamp="2024-01-11T08:30:00Z",
            ),
        ],
    ]
