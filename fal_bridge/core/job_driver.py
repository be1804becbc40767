"""Submit/poll driver for the fal.ai queue API.

One call to JobDriver.run covers the whole lifecycle of a job:
submitted -> polling -> succeeded | failed | timed_out.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from .aiohttp_request_manager import AiohttpRequestManager, NetworkError
from .errors import JobStatus, PollError, PollTimeoutError, RehostError, SubmissionError
from .registry import ModelCapability
from .rehost import LskyRehoster

logger = logging.getLogger(__name__)

# Polling interval for job status
POLL_INTERVAL = 1.0  # seconds

# 600 attempts at one second is a ten minute ceiling
MAX_POLL_ATTEMPTS = 600

TERMINAL_FAILURES = ("FAILED", "CANCELLED")


@dataclass
class JobResult:
    """Outcome of a successful job."""
    request_id: str
    url: str
    lsky_url: Optional[str] = None
    status: JobStatus = JobStatus.succeeded
    attempts: int = 0


def secure_url(url: str) -> str:
    """Rewrite an http:// URL to https://."""
    if url and url.startswith("http://"):
        return "https://" + url[len("http://"):]
    return url


class JobDriver:
    """Runs jobs against the queue API.

    Nothing is kept per job: the terminal state is on the returned JobResult,
    or on the raised error's ``job_status``.
    """

    def __init__(
        self,
        api_key: str | None,
        requests: AiohttpRequestManager | None = None,
        rehoster: LskyRehoster | None = None,
        poll_interval: float = POLL_INTERVAL,
        max_attempts: int = MAX_POLL_ATTEMPTS,
    ):
        self.api_key = api_key
        self._requests = requests or AiohttpRequestManager(auth_scheme="Key")
        self._requests.set_auth(api_key)
        self.rehoster = rehoster
        self.poll_interval = poll_interval
        self.max_attempts = max_attempts

    async def submit(self, model: ModelCapability, payload: dict) -> str:
        """Post ``payload`` and return the upstream request id."""
        try:
            response = await self._requests.post(model.submit_url, payload)
        except NetworkError as e:
            raise SubmissionError(e.status, e.body or e.message) from e

        request_id = response.get("request_id")
        if not request_id:
            raise SubmissionError(200, f"no request_id in response: {response}")
        return request_id

    async def poll(self, model: ModelCapability, request_id: str) -> tuple[dict, int]:
        """Poll until the job yields an image.

        Returns:
            (first image entry, attempts used)
        """
        status_url = model.status_url(request_id)
        for attempt in range(1, self.max_attempts + 1):
            await asyncio.sleep(self.poll_interval)

            try:
                status, data = await self._requests.get_status(status_url)
            except NetworkError as e:
                logger.warning(f"[{request_id}] Poll attempt {attempt} failed: {e}")
                continue

            if status != 200 or data is None:
                continue

            images = data.get("images") or []
            if images:
                return images[0], attempt

            upstream_status = str(data.get("status", "")).upper()
            if upstream_status in TERMINAL_FAILURES:
                logger.error(f"[{request_id}] Upstream reported {upstream_status}")
                raise PollError(upstream_status)

        logger.error(f"[{request_id}] No result after {self.max_attempts} attempts")
        raise PollTimeoutError(self.max_attempts)

    async def run(self, model: ModelCapability, payload: dict) -> JobResult:
        """Submit ``payload`` to ``model`` and wait for the first image.

        Raises (each error's ``job_status`` is its terminal state):
            SubmissionError: the submit call was rejected.
            PollError: the upstream job failed or was cancelled.
            PollTimeoutError: the poll budget ran out.
        """
        logger.info(f"Generating with {model.name}: {payload}")
        request_id = await self.submit(model, payload)
        logger.info(f"[{request_id}] Submitted, polling {model.status_url(request_id)}")

        image, attempts = await self.poll(model, request_id)
        url = secure_url(image.get("url", ""))

        lsky_url = None
        if self.rehoster is not None:
            try:
                lsky_url = await self.rehoster.rehost(url)
            except RehostError as e:
                logger.error(f"[{request_id}] Lsky upload failed: {e}")
            except Exception:
                logger.exception(f"[{request_id}] Lsky upload raised unexpectedly")

        logger.info(f"[{request_id}] Completed after {attempts} polls")
        return JobResult(request_id=request_id, url=url, lsky_url=lsky_url, attempts=attempts)

    async def close(self):
        await self._requests.close()
        if self.rehoster is not None:
            await self.rehoster.close()
