"""Request, record and outcome types shared by the pipeline."""
import time
import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping, Optional, Union

from .errors import ParameterValidationError


# Caller keys accepted by GenerationRequest.from_dict, camelCase first.
_KEY_ALIASES = {
    "model": ("model",),
    "prompt": ("prompt",),
    "aspect_ratio": ("aspectRatio", "aspect_ratio"),
    "resolution": ("resolution",),
    "output_format": ("outputFormat", "output_format"),
    "safety_tolerance": ("safety_tolerance", "safetyTolerance"),
    "seed": ("seed",),
    "enhance_prompt": ("enhancePrompt", "enhance_prompt"),
    "raw": ("raw",),
    "num_images": ("num_images", "numImages"),
    "image_url": ("image_url", "imageUrl"),
    "image_urls": ("imageUrls", "image_urls"),
    "image_size": ("imageSize", "image_size"),
    "image_prompt_strength": ("imagePromptStrength", "image_prompt_strength"),
    "enable_safety_checker": ("enableSafetyChecker", "enable_safety_checker"),
    "sync_mode": ("syncMode", "sync_mode"),
}


@dataclass(frozen=True)
class GenerationRequest:
    """Model-agnostic generation request."""
    model: str
    prompt: str
    aspect_ratio: Optional[str] = None
    resolution: Optional[str] = None
    output_format: Optional[str] = None
    safety_tolerance: Optional[Union[str, int]] = None
    seed: Optional[int] = None
    enhance_prompt: Optional[bool] = None
    raw: Optional[bool] = None
    num_images: Optional[int] = None
    image_url: Optional[str] = None
    image_urls: Optional[tuple[str, ...]] = None
    image_size: Optional[Union[str, dict]] = None
    image_prompt_strength: Optional[float] = None
    enable_safety_checker: Optional[bool] = None
    sync_mode: Optional[bool] = None

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> "GenerationRequest":
        """Build a request from caller JSON.

        Both the camelCase keys of the web UI and snake_case keys are accepted.
        Empty strings are treated as "not given".

        Raises:
            ParameterValidationError: imageUrls is neither a string nor a list.
        """
        values: dict[str, Any] = {}
        for name, keys in _KEY_ALIASES.items():
            for key in keys:
                value = data.get(key)
                if value is not None and value != "":
                    values[name] = value
                    break

        if "image_urls" in values:
            urls = values["image_urls"]
            if isinstance(urls, str):
                values["image_urls"] = (urls,)
            elif isinstance(urls, (list, tuple)):
                values["image_urls"] = tuple(urls)
            else:
                raise ParameterValidationError(["imageUrls must be a list of URLs"])

        values.setdefault("model", "")
        values.setdefault("prompt", "")
        return GenerationRequest(**values)

    @property
    def source_urls(self) -> list[str]:
        if self.image_url:
            return [self.image_url]
        return list(self.image_urls or ())

    def to_dict(self) -> dict[str, Any]:
        data = {k: v for k, v in asdict(self).items() if v is not None}
        if "image_urls" in data:
            data["image_urls"] = list(data["image_urls"])
        return data


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def manual_record_id() -> str:
    return f"manual-{int(time.time() * 1000)}-{uuid.uuid4().hex[:9]}"


@dataclass
class GenerationRecord:
    """A persisted generation result."""
    id: str
    url: str
    prompt: str
    model: str
    lsky_url: Optional[str] = None
    aspect_ratio: Optional[str] = None
    resolution: Optional[str] = None
    output_format: Optional[str] = None
    safety_tolerance: Optional[Union[str, int]] = None
    seed: Optional[int] = None
    timestamp: str = field(default_factory=utc_timestamp)
    hidden: bool = False
    model_type: Optional[str] = None
    source_image: Optional[str] = None
    source_images: Optional[list[str]] = None
    source: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> "GenerationRecord":
        known = GenerationRecord.__dataclass_fields__
        return GenerationRecord(**{k: v for k, v in data.items() if k in known})


@dataclass
class BatchOutcome:
    """Result of one slot in a batch run."""
    success: bool
    record: Optional[GenerationRecord] = None
    error: Optional[str] = None
    original_params: Optional[dict] = None

    def to_dict(self) -> dict[str, Any]:
        if self.success and self.record is not None:
            return {"success": True, "record": self.record.to_dict()}
        return {
            "success": False,
            "error": self.error,
            "original_params": self.original_params,
        }
