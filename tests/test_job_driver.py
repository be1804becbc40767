"""Tests for the submit/poll driver."""
from unittest.mock import AsyncMock, MagicMock

import pytest

from fal_bridge.core.aiohttp_request_manager import AiohttpRequestManager, NetworkError
from fal_bridge.core.errors import JobStatus, PollError, PollTimeoutError, RehostError, SubmissionError
from fal_bridge.core.job_driver import JobDriver, secure_url
from fal_bridge.core.rehost import LskyRehoster
from fal_bridge.core.registry import lookup


def image_response(url="https://cdn.example/out.png"):
    return 200, {"status": "COMPLETED", "images": [{"url": url}, {"url": "https://cdn.example/second.png"}]}


def test_driver_sets_key_auth(fake_requests):
    JobDriver("secret", requests=fake_requests)
    fake_requests.set_auth.assert_called_with("secret")


def test_request_manager_auth_header():
    manager = AiohttpRequestManager(auth_scheme="Key")
    manager.set_auth("abc")
    assert manager._get_headers() == {"Authorization": "Key abc"}
    assert manager._get_headers("other") == {"Authorization": "Key other"}
    assert AiohttpRequestManager()._get_headers() == {}


def test_secure_url():
    assert secure_url("http://cdn.example/a.png") == "https://cdn.example/a.png"
    assert secure_url("https://cdn.example/a.png") == "https://cdn.example/a.png"


@pytest.mark.asyncio
async def test_run_polls_until_image(driver, fake_requests):
    fake_requests.get_status = AsyncMock(side_effect=[
        (202, {"status": "IN_QUEUE"}),
        (200, {"status": "IN_PROGRESS"}),
        image_response("http://cdn.example/out.png"),
    ])
    model = lookup("flux-2-pro")

    result = await driver.run(model, {"prompt": "x"})

    assert result.request_id == "req-1"
    assert result.url == "https://cdn.example/out.png"
    assert result.attempts == 3
    assert result.lsky_url is None
    assert result.status is JobStatus.succeeded
    fake_requests.post.assert_awaited_once_with(model.submit_url, {"prompt": "x"})
    fake_requests.get_status.assert_awaited_with("https://queue.fal.run/fal-ai/flux-2-pro/requests/req-1")


@pytest.mark.asyncio
async def test_submit_failure_skips_polling(driver, fake_requests):
    fake_requests.post = AsyncMock(side_effect=NetworkError(
        "HTTP 500", "https://queue.fal.run/fal-ai/flux-2-pro", status=500, body="boom"
    ))

    with pytest.raises(SubmissionError) as exc_info:
        await driver.run(lookup("flux-2-pro"), {"prompt": "x"})

    assert exc_info.value.status == 500
    assert exc_info.value.job_status is JobStatus.failed
    assert "boom" in str(exc_info.value)
    fake_requests.get_status.assert_not_called()


@pytest.mark.asyncio
async def test_submit_without_request_id(driver, fake_requests):
    fake_requests.post = AsyncMock(return_value={"detail": "queued?"})

    with pytest.raises(SubmissionError):
        await driver.run(lookup("flux-2-pro"), {"prompt": "x"})
    fake_requests.get_status.assert_not_called()


@pytest.mark.asyncio
async def test_poll_budget_exhausted(fake_requests):
    fake_requests.get_status = AsyncMock(return_value=(200, {"status": "IN_QUEUE"}))
    driver = JobDriver("test-key", requests=fake_requests, poll_interval=0, max_attempts=3)

    with pytest.raises(PollTimeoutError) as exc_info:
        await driver.run(lookup("imagen4-preview"), {"prompt": "x"})

    assert str(exc_info.value) == "Generation timed out."
    assert isinstance(exc_info.value, TimeoutError)
    assert fake_requests.get_status.await_count == 3
    assert exc_info.value.job_status is JobStatus.timed_out


@pytest.mark.asyncio
@pytest.mark.parametrize("upstream", ["FAILED", "CANCELLED"])
async def test_terminal_failure_stops_polling(driver, fake_requests, upstream):
    fake_requests.get_status = AsyncMock(side_effect=[
        (200, {"status": "IN_PROGRESS"}),
        (200, {"status": upstream}),
        image_response(),
    ])

    with pytest.raises(PollError) as exc_info:
        await driver.run(lookup("imagen4-preview"), {"prompt": "x"})

    assert not isinstance(exc_info.value, PollTimeoutError)
    assert str(exc_info.value) == f"Generation {upstream}"
    assert fake_requests.get_status.await_count == 2
    assert exc_info.value.job_status is JobStatus.failed


@pytest.mark.asyncio
async def test_transport_errors_are_retried(driver, fake_requests):
    fake_requests.get_status = AsyncMock(side_effect=[
        NetworkError("connection reset", "https://queue.fal.run"),
        (500, None),
        image_response(),
    ])

    result = await driver.run(lookup("imagen4-preview"), {"prompt": "x"})
    assert result.url == "https://cdn.example/out.png"
    assert result.attempts == 3


@pytest.mark.asyncio
async def test_rehost_success(fake_requests):
    rehoster = MagicMock()
    rehoster.rehost = AsyncMock(return_value="https://lsky.example/i/1.png")
    driver = JobDriver("test-key", requests=fake_requests, rehoster=rehoster, poll_interval=0)

    result = await driver.run(lookup("imagen4-preview"), {"prompt": "x"})

    rehoster.rehost.assert_awaited_once_with("https://cdn.example/out.png")
    assert result.lsky_url == "https://lsky.example/i/1.png"


@pytest.mark.asyncio
async def test_rehost_failure_keeps_result(fake_requests):
    rehoster = MagicMock()
    rehoster.rehost = AsyncMock(side_effect=RehostError("Lsky Pro returned an error: quota"))
    driver = JobDriver("test-key", requests=fake_requests, rehoster=rehoster, poll_interval=0)

    result = await driver.run(lookup("imagen4-preview"), {"prompt": "x"})

    assert result.url == "https://cdn.example/out.png"
    assert result.lsky_url is None
    assert result.status is JobStatus.succeeded


@pytest.mark.asyncio
async def test_close_closes_clients(fake_requests):
    rehoster = MagicMock()
    rehoster.close = AsyncMock()
    driver = JobDriver("test-key", requests=fake_requests, rehoster=rehoster)

    await driver.close()

    fake_requests.close.assert_awaited_once()
    rehoster.close.assert_awaited_once()


@pytest.mark.asyncio
@pytest.mark.parametrize("lsky_response", [
    {"status": True, "data": ["unexpected"]},
    {"status": True, "data": {"links": "https://lsky.example/i/1.png"}},
    {"status": True, "data": {"links": {"url": None}}},
])
async def test_malformed_lsky_response_keeps_result(fake_requests, lsky_response):
    lsky_requests = MagicMock()
    lsky_requests.download = AsyncMock(return_value=b"\x89PNG")
    lsky_requests.post_form = AsyncMock(return_value=lsky_response)
    rehoster = LskyRehoster("https://lsky.example", "tok", requests=lsky_requests)
    driver = JobDriver("test-key", requests=fake_requests, rehoster=rehoster, poll_interval=0)

    result = await driver.run(lookup("imagen4-preview"), {"prompt": "x"})

    assert result.url == "https://cdn.example/out.png"
    assert result.lsky_url is None


@pytest.mark.asyncio
async def test_unexpected_rehost_exception_keeps_result(fake_requests):
    rehoster = MagicMock()
    rehoster.rehost = AsyncMock(side_effect=KeyError("links"))
    driver = JobDriver("test-key", requests=fake_requests, rehoster=rehoster, poll_interval=0)

    result = await driver.run(lookup("imagen4-preview"), {"prompt": "x"})

    assert result.lsky_url is None
