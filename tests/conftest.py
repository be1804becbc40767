import pytest
from unittest.mock import AsyncMock, MagicMock

from fal_bridge.core import GenerationService, JobDriver, RecordStore, set_service


def make_fake_requests():
    """Stand-in for AiohttpRequestManager that never touches the network."""
    requests = MagicMock()
    requests.post = AsyncMock(return_value={"request_id": "req-1"})
    requests.get_status = AsyncMock(
        return_value=(200, {"status": "COMPLETED", "images": [{"url": "https://cdn.example/out.png"}]})
    )
    requests.close = AsyncMock()
    return requests


@pytest.fixture
def fake_requests():
    return make_fake_requests()


@pytest.fixture
def store(tmp_path):
    return RecordStore(tmp_path / "db.json")


@pytest.fixture
def driver(fake_requests):
    return JobDriver("test-key", requests=fake_requests, poll_interval=0, max_attempts=5)


@pytest.fixture(autouse=True)
def service(driver, store):
    """Install a service backed by fakes and a temporary data file."""
    service = GenerationService(driver, store)
    set_service(service)
    yield service
    set_service(None)
