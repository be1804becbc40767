"""Upstream payload construction.

The request is assumed to have passed validation. Sizing is the only part
that differs between model families, so it is dispatched on the capability
class; everything else is driven by the declared feature flags.
"""
from typing import Any, Callable

from .registry import (
    FreeSizeImageToImage,
    FreeSizeTextToImage,
    ModelCapability,
    NamedSizeImageToImage,
    NamedSizeTextToImage,
)
from .request_types import GenerationRequest


def _named_text_size(model: NamedSizeTextToImage, request: GenerationRequest, payload: dict):
    if request.aspect_ratio:
        payload["image_size"] = model.sizes.get(request.aspect_ratio, model.size_fallback)


def _free_text_size(model: FreeSizeTextToImage, request: GenerationRequest, payload: dict):
    if request.aspect_ratio:
        payload["aspect_ratio"] = request.aspect_ratio


def _named_edit_size(model: NamedSizeImageToImage, request: GenerationRequest, payload: dict):
    # Always present for the edit endpoint; "auto" keeps the source dimensions.
    payload["image_size"] = model.sizes.get(request.aspect_ratio or "", model.size_fallback)


def _free_edit_size(model: FreeSizeImageToImage, request: GenerationRequest, payload: dict):
    if model.custom_sizes and request.image_size:
        payload["image_size"] = request.image_size
    elif request.aspect_ratio:
        payload["aspect_ratio"] = request.aspect_ratio


_SIZE_BUILDERS: dict[type, Callable[[Any, GenerationRequest, dict], None]] = {
    NamedSizeTextToImage: _named_text_size,
    FreeSizeTextToImage: _free_text_size,
    NamedSizeImageToImage: _named_edit_size,
    FreeSizeImageToImage: _free_edit_size,
}


def build_payload(model: ModelCapability, request: GenerationRequest) -> dict[str, Any]:
    """Build the JSON body for ``model``'s submit endpoint."""
    payload: dict[str, Any] = {
        "prompt": request.prompt,
        "num_images": request.num_images or model.defaults.num_images,
    }

    if model.is_image_to_image:
        if request.image_url:
            payload["image_url"] = request.image_url
        elif request.image_urls:
            payload["image_urls"] = list(request.image_urls)

    _SIZE_BUILDERS[type(model)](model, request, payload)

    if model.is_image_to_image:
        if request.image_prompt_strength is not None:
            payload["image_prompt_strength"] = request.image_prompt_strength
    elif request.resolution and model.resolutions:
        payload["resolution"] = request.resolution

    if model.safety_tolerance and request.safety_tolerance is not None:
        payload["safety_tolerance"] = request.safety_tolerance
    if model.seed and request.seed is not None:
        payload["seed"] = request.seed
    if model.enhance_prompt and request.enhance_prompt is not None:
        payload["enhance_prompt"] = request.enhance_prompt
    if model.raw and request.raw is not None:
        payload["raw"] = request.raw

    # Accepted by every queue endpoint.
    if request.output_format:
        payload["output_format"] = request.output_format
    if request.enable_safety_checker is not None:
        payload["enable_safety_checker"] = request.enable_safety_checker
    if request.sync_mode is not None:
        payload["sync_mode"] = request.sync_mode

    return payload
