"""Parameter validation against a model's declared capabilities."""
from dataclasses import dataclass, field

from .registry import NAMED_SIZE_RATIOS, ModelCapability
from .request_types import GenerationRequest


@dataclass
class ValidationResult:
    valid: bool
    errors: list[str] = field(default_factory=list)


def validate(model: ModelCapability, request: GenerationRequest) -> ValidationResult:
    """Check ``request`` against ``model``.

    Every rule runs; all violations are reported together.
    """
    errors: list[str] = []
    mid = model.id

    if not request.prompt or not str(request.prompt).strip():
        errors.append("Missing prompt.")

    if request.aspect_ratio:
        # Named-size models translate the ratio later, so they accept a fixed
        # subset instead of their declared list.
        allowed = NAMED_SIZE_RATIOS if model.named_size else model.aspect_ratios
        if allowed and request.aspect_ratio not in allowed:
            errors.append(
                f'Invalid aspect ratio "{request.aspect_ratio}" for {mid}. '
                f"Supported: {', '.join(allowed)}"
            )

    if request.resolution and request.resolution not in model.resolutions:
        errors.append(
            f'Invalid resolution "{request.resolution}" for {mid}. '
            f"Supported: {', '.join(model.resolutions)}"
        )

    if request.output_format and request.output_format not in model.output_formats:
        errors.append(
            f'Invalid output format "{request.output_format}" for {mid}. '
            f"Supported: {', '.join(model.output_formats)}"
        )

    if request.safety_tolerance is not None and not model.safety_tolerance:
        errors.append(f"Model {mid} does not support safety_tolerance parameter")

    if request.seed is not None and not model.seed:
        errors.append(f"Model {mid} does not support seed parameter")

    if model.is_image_to_image:
        if not request.image_url and not request.image_urls:
            errors.append(f"Model {mid} requires image URLs")
        if request.image_urls and len(request.image_urls) > 1 and not model.multi_image:
            errors.append(f"Model {mid} does not support multiple input images")

    return ValidationResult(valid=not errors, errors=errors)
