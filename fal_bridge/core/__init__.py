"""Core module containing framework-agnostic business logic."""
from .state import state, AppState
from .errors import (
    GenerationError,
    ModelNotFound,
    ParameterValidationError,
    SubmissionError,
    PollError,
    PollTimeoutError,
    BatchTooLargeError,
    PersistenceError,
    RehostError,
)
from .registry import (
    GenerationType,
    ModelCapability,
    REGISTRY,
    lookup,
    all_models,
)
from .request_types import GenerationRequest, GenerationRecord, BatchOutcome
from .validator import ValidationResult, validate
from .payload import build_payload
from .job_driver import JobDriver, JobResult
from .errors import JobStatus
from .record_store import RecordStore
from .orchestrator import GenerationService, MAX_BATCH_SIZE, get_service, set_service
from .handlers import ApiResponse

__all__ = [
    # State
    "state",
    "AppState",
    # Errors
    "GenerationError",
    "ModelNotFound",
    "ParameterValidationError",
    "SubmissionError",
    "PollError",
    "PollTimeoutError",
    "BatchTooLargeError",
    "PersistenceError",
    "RehostError",
    # Registry
    "GenerationType",
    "ModelCapability",
    "REGISTRY",
    "lookup",
    "all_models",
    # Pipeline
    "GenerationRequest",
    "GenerationRecord",
    "BatchOutcome",
    "ValidationResult",
    "validate",
    "build_payload",
    "JobDriver",
    "JobResult",
    "JobStatus",
    "RecordStore",
    "GenerationService",
    "MAX_BATCH_SIZE",
    "get_service",
    "set_service",
    # Handlers
    "ApiResponse",
]
