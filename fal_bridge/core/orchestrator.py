"""Generation pipeline: lookup -> validate -> build -> drive -> record.

GenerationService runs single requests and batches of up to MAX_BATCH_SIZE
requests. In a batch every request gets its own pipeline; a failure in one
slot becomes that slot's outcome and never touches the others.
"""
import asyncio
import logging
from typing import Any, Mapping, Optional, Sequence

from .config import Settings
from .errors import BatchTooLargeError, GenerationError, ParameterValidationError
from .job_driver import JobDriver
from .payload import build_payload
from .record_store import RecordStore
from .registry import ModelCapability, all_models, lookup
from .rehost import LskyRehoster
from .request_types import BatchOutcome, GenerationRecord, GenerationRequest
from .validator import validate

logger = logging.getLogger(__name__)

MAX_BATCH_SIZE = 5


def build_record(model: ModelCapability, request: GenerationRequest, request_id: str,
                 url: str, lsky_url: Optional[str]) -> GenerationRecord:
    """Describe a finished job, filling unset parameters from model defaults."""
    return GenerationRecord(
        id=request_id,
        url=url,
        lsky_url=lsky_url,
        prompt=request.prompt,
        model=model.id,
        aspect_ratio=request.aspect_ratio or model.defaults.aspect_ratio,
        resolution=request.resolution or model.defaults.resolution,
        output_format=request.output_format or model.defaults.output_format,
        safety_tolerance=(request.safety_tolerance if request.safety_tolerance is not None
                          else model.defaults.safety_tolerance),
        seed=request.seed,
        model_type=model.type.value,
        source_image=request.image_url,
        source_images=list(request.image_urls) if request.image_urls else None,
    )


class GenerationService:
    """Owns the job driver and record store used by the handlers."""

    def __init__(self, driver: JobDriver, store: RecordStore):
        self.driver = driver
        self.store = store

    @classmethod
    def from_settings(cls, settings: Settings) -> "GenerationService":
        from .aiohttp_request_manager import AiohttpRequestManager

        rehoster = None
        if settings.lsky_enabled:
            rehoster = LskyRehoster(
                settings.lsky_url,
                settings.lsky_token,
                strategy_id=settings.lsky_strategy_id,
                requests=AiohttpRequestManager(auth_scheme="Bearer", timeout=settings.request_timeout),
            )
        driver = JobDriver(
            settings.fal_key,
            requests=AiohttpRequestManager(auth_scheme="Key", timeout=settings.request_timeout),
            rehoster=rehoster,
            poll_interval=settings.poll_interval,
            max_attempts=settings.max_poll_attempts,
        )
        return cls(driver, RecordStore(settings.db_file))

    @staticmethod
    def list_models() -> list[dict[str, Any]]:
        return [m.summary() for m in all_models()]

    @staticmethod
    def prepare(request: GenerationRequest) -> tuple[ModelCapability, dict]:
        """Look up, validate and build. Raises before any upstream call."""
        model = lookup(request.model)
        result = validate(model, request)
        if not result.valid:
            raise ParameterValidationError(result.errors)
        return model, build_payload(model, request)

    async def generate(self, request: GenerationRequest) -> GenerationRecord:
        """Run one request end to end.

        Raises:
            ModelNotFound, ParameterValidationError, SubmissionError,
            PollError, PollTimeoutError
        """
        model, payload = self.prepare(request)
        job = await self.driver.run(model, payload)
        record = build_record(model, request, job.request_id, job.url, job.lsky_url)
        # A failed save is logged by the store; the caller still gets the record.
        await self.store.append(record)
        return record

    async def _run_slot(self, index: int, request: GenerationRequest | Mapping[str, Any],
                        original: Mapping[str, Any]) -> BatchOutcome:
        try:
            if not isinstance(request, GenerationRequest):
                request = GenerationRequest.from_dict(request)
            record = await self.generate(request)
        except GenerationError as e:
            logger.warning(f"Batch slot {index} failed: {e}")
            return BatchOutcome(success=False, error=str(e), original_params=dict(original))
        except Exception as e:
            logger.exception(f"Batch slot {index} raised unexpectedly")
            return BatchOutcome(success=False, error=str(e), original_params=dict(original))
        return BatchOutcome(success=True, record=record)

    async def run_batch(
        self,
        requests: Sequence[GenerationRequest | Mapping[str, Any]],
        originals: Optional[Sequence[Mapping[str, Any]]] = None,
    ) -> list[BatchOutcome]:
        """Run ``requests`` concurrently, returning outcomes in input order.

        Items may be parsed requests or raw caller mappings; raw items are
        parsed inside their own slot so a malformed one only fails itself.

        ``originals`` are the caller's raw parameters echoed back in failure
        outcomes; the request's own fields are used when omitted.

        Raises:
            BatchTooLargeError: more than MAX_BATCH_SIZE requests; nothing runs.
        """
        if len(requests) > MAX_BATCH_SIZE:
            raise BatchTooLargeError(len(requests), MAX_BATCH_SIZE)
        if originals is None:
            originals = [
                r.to_dict() if isinstance(r, GenerationRequest) else dict(r)
                for r in requests
            ]

        return await asyncio.gather(*(
            self._run_slot(i, request, original)
            for i, (request, original) in enumerate(zip(requests, originals))
        ))

    async def close(self):
        await self.driver.close()


_service: GenerationService | None = None


def get_service() -> GenerationService:
    """Get or create the process-wide service."""
    global _service
    if _service is None:
        _service = GenerationService.from_settings(Settings.from_env())
    return _service


def set_service(service: GenerationService | None):
    global _service
    _service = service
