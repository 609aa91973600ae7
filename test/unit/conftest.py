"""Test fixtures for robyn-upload-relay unit tests."""

import threading
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from app.core.lifespan import State
from app.models.upload import ResourceCategory
from app.services.relay import RelayConfig, UploadRelay
from app.services.storage import ProviderAsset


# -----------------------------------------------------------------------------
# Mock classes for Robyn Request
# -----------------------------------------------------------------------------


@dataclass
class MockHeaders:
    """Mock Headers object for Robyn Request."""

    _data: dict = field(default_factory=dict)

    def get(self, key: str, default: str | None = None) -> str | None:
        return self._data.get(key.lower(), default)

    def set(self, key: str, value: str) -> None:
        self._data[key.lower()] = value


@dataclass
class MockRequest:
    """Mock Request object for Robyn."""

    files: dict[str, bytes] = field(default_factory=dict)
    headers: MockHeaders = field(default_factory=MockHeaders)
    method: str = "POST"
    path: str = "/upload"


# -----------------------------------------------------------------------------
# Fake storage provider
# -----------------------------------------------------------------------------


@dataclass
class ProviderCall:
    path: Path
    category: ResourceCategory
    folder: str
    public_id: str
    existed: bool


class FakeProvider:
    """Storage provider double.

    ``outcomes`` is consumed one entry per call: an exception instance is
    raised, anything else falls through to a successful asset.
    """

    def __init__(self, outcomes: list | None = None, delay: float = 0.0) -> None:
        self.outcomes = list(outcomes or [])
        self.delay = delay
        self.calls: list[ProviderCall] = []
        self._release = threading.Event()

    def release(self) -> None:
        self._release.set()

    def upload(self, path, *, category, folder, public_id, timeout=None) -> ProviderAsset:
        self.calls.append(ProviderCall(path, category, folder, public_id, path.exists()))
        if self.delay:
            self._release.wait(self.delay)
        outcome = self.outcomes.pop(0) if self.outcomes else None
        if isinstance(outcome, BaseException):
            raise outcome
        return ProviderAsset(
            public_url=f"https://res.cloudinary.com/demo/{folder}/{public_id}",
            asset_id=f"{folder}/{public_id}",
            resource_type="image" if category is ResourceCategory.AUTO else "raw",
        )


# -----------------------------------------------------------------------------
# Relay fixtures
# -----------------------------------------------------------------------------


@pytest.fixture
def scratch_dir(tmp_path: Path) -> Path:
    return tmp_path / "temp_uploads"


@pytest.fixture
def relay_config(scratch_dir: Path) -> RelayConfig:
    return RelayConfig(
        scratch_dir=scratch_dir,
        max_upload_bytes=1024 * 1024,
        folder="test_uploads",
        timeout_seconds=2.0,
        retries=2,
        retry_backoff_seconds=0.0,
    )


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def relay(relay_config: RelayConfig, provider: FakeProvider) -> UploadRelay:
    return UploadRelay(relay_config, provider)


# -----------------------------------------------------------------------------
# State fixture
# -----------------------------------------------------------------------------


@pytest.fixture
def global_dependencies(relay: UploadRelay) -> dict:
    """Global dependencies as Robyn injects them after startup."""
    state = State()
    state.upload_relay = relay
    yield {"state": state}
    state.clear()


@pytest.fixture
def make_mock_request():
    """Factory fixture to create mock upload requests."""

    def _make(files: dict[str, bytes] | None = None, **headers: str) -> MockRequest:
        mock_headers = MockHeaders()
        for key, value in headers.items():
            mock_headers.set(key.replace("_", "-"), value)
        return MockRequest(files=files or {}, headers=mock_headers)

    return _make
