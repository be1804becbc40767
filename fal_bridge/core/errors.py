"""Error types raised by the generation pipeline.

Everything the pipeline raises on purpose derives from GenerationError, so
callers that isolate failures (the batch orchestrator, the handlers) can catch
one type and report ``str(e)`` to the user. Errors that end a job carry the
job's terminal state as ``job_status``.
"""
from enum import Enum


class JobStatus(str, Enum):
    submitted = "submitted"
    polling = "polling"
    succeeded = "succeeded"
    failed = "failed"
    timed_out = "timed_out"


class GenerationError(Exception):
    """Base class for user-visible generation failures."""


class ModelNotFound(GenerationError):
    """Unknown model identifier."""

    def __init__(self, model_id: str | None):
        self.model_id = model_id
        super().__init__(f"Unsupported model: {model_id}")


class ParameterValidationError(GenerationError):
    """One or more request parameters are incompatible with the model."""

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__(", ".join(self.errors))


class SubmissionError(GenerationError):
    """The upstream queue rejected the submission."""
    job_status = JobStatus.failed

    def __init__(self, status: int, body: str):
        self.status = status
        self.body = body
        super().__init__(f"Fal.ai submission failed: {status} {body}")


class PollError(GenerationError):
    """The upstream queue reported the job as failed or cancelled."""
    job_status = JobStatus.failed

    def __init__(self, status: str):
        self.status = status
        super().__init__(f"Generation {status}")


class PollTimeoutError(GenerationError, TimeoutError):
    """The poll budget ran out before the job resolved."""
    job_status = JobStatus.timed_out

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__("Generation timed out.")


class BatchTooLargeError(GenerationError):
    def __init__(self, size: int, limit: int):
        self.size = size
        self.limit = limit
        super().__init__(f"Maximum {limit} requests per bulk operation.")


class PersistenceError(Exception):
    """Reading or writing the record store failed."""


class RehostError(Exception):
    """Uploading a result to the secondary image host failed."""
