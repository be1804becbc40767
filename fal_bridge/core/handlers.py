"""Framework-agnostic request handlers for the Bridge API.

These handlers contain the caller-facing operations without any
framework-specific code. Each returns an ApiResponse the HTTP layer turns
into a response.
"""
import base64
import binascii
import logging
import re
import time
from dataclasses import dataclass
from typing import Any, Optional
from urllib.parse import urlparse

from .. import __version__
from .errors import (
    BatchTooLargeError,
    GenerationError,
    ModelNotFound,
    ParameterValidationError,
    PersistenceError,
)
from .orchestrator import MAX_BATCH_SIZE, get_service
from .registry import REGISTRY
from .request_types import GenerationRecord, GenerationRequest, manual_record_id, utc_timestamp
from .state import state

logger = logging.getLogger(__name__)

_data_url_prefix = re.compile(r"^data:image/\w+;base64,")


@dataclass
class ApiResponse:
    """Standard API response wrapper."""
    data: Any
    status: int = 200


def _error(message: str, status: int) -> ApiResponse:
    return ApiResponse(data={"error": message}, status=status)


async def handle_health() -> ApiResponse:
    """Handle health check request."""
    return ApiResponse(data={
        "status": "healthy",
        "timestamp": utc_timestamp(),
        "uptime": state.uptime,
        "version": __version__,
        "models": len(REGISTRY),
    })


async def handle_list_models() -> ApiResponse:
    return ApiResponse(data=get_service().list_models())


async def handle_generate(params: dict) -> ApiResponse:
    """Run one generation and return the stored record."""
    service = get_service()
    if not service.driver.api_key:
        return _error("Server missing FAL_KEY configuration.", 500)

    try:
        request = GenerationRequest.from_dict(params)
    except ParameterValidationError as e:
        return _error(str(e), 400)
    if not request.model or request.model not in REGISTRY:
        return _error("Invalid or missing model.", 400)
    if not request.prompt:
        return _error("Missing prompt.", 400)

    try:
        record = await service.generate(request)
    except (ModelNotFound, ParameterValidationError) as e:
        return _error(str(e), 400)
    except GenerationError as e:
        logger.error(f"Generation error: {e}")
        return _error(str(e), 500)
    return ApiResponse(data=record.to_dict())


async def handle_generate_batch(requests: Any) -> ApiResponse:
    """Run up to MAX_BATCH_SIZE generations concurrently.

    Returns:
        ApiResponse with {"results": [outcome, ...]} in request order.
    """
    service = get_service()
    if not service.driver.api_key:
        return _error("Server missing FAL_KEY configuration.", 500)

    if not isinstance(requests, list) or not requests:
        return _error("Invalid or empty requests array.", 400)
    if len(requests) > MAX_BATCH_SIZE:
        return _error(f"Maximum {MAX_BATCH_SIZE} requests per bulk operation.", 400)

    originals = [item if isinstance(item, dict) else {} for item in requests]

    try:
        outcomes = await service.run_batch(originals)
    except BatchTooLargeError as e:
        return _error(str(e), 400)
    return ApiResponse(data={"results": [o.to_dict() for o in outcomes]})


async def handle_list_images(include_hidden: bool = False) -> ApiResponse:
    records = await get_service().store.list(include_hidden=include_hidden)
    return ApiResponse(data=[r.to_dict() for r in records])


async def handle_stats() -> ApiResponse:
    return ApiResponse(data=await get_service().store.stats())


def _is_valid_url(url: str) -> bool:
    parsed = urlparse(url)
    return bool(parsed.scheme and parsed.netloc)


async def handle_manual_add(
    url: Optional[str],
    prompt: Optional[str],
    model: Optional[str] = None,
    aspect_ratio: Optional[str] = None,
) -> ApiResponse:
    """Record an image that was generated elsewhere."""
    if not url or not prompt:
        return _error("URL and prompt are required.", 400)
    if not _is_valid_url(url):
        return _error("Invalid URL format.", 400)

    record = GenerationRecord(
        id=manual_record_id(),
        url=url,
        prompt=prompt,
        model=model or "Manual",
        aspect_ratio=aspect_ratio or "Unknown",
        source="manual",
    )
    await get_service().store.append(record)
    return ApiResponse(data=record.to_dict())


async def handle_delete_image(record_id: str) -> ApiResponse:
    try:
        removed = await get_service().store.remove(record_id)
    except PersistenceError as e:
        logger.error(f"Failed to delete image {record_id}: {e}")
        return _error(str(e), 500)
    if not removed:
        return _error("Image not found", 404)
    return ApiResponse(data={"success": True})


async def handle_hide_image(record_id: str) -> ApiResponse:
    try:
        hidden = await get_service().store.hide(record_id)
    except PersistenceError as e:
        logger.error(f"Failed to hide image {record_id}: {e}")
        return _error(str(e), 500)
    if not hidden:
        return _error("Image not found", 404)
    return ApiResponse(data={"success": True})


async def handle_upload(image_data: Optional[str]) -> ApiResponse:
    """Turn base64 image data into a data URL usable as a source image.

    Nothing is stored; the data URL is passed to the edit models as-is.
    """
    if not image_data:
        return _error("No image data provided", 400)

    b64 = _data_url_prefix.sub("", image_data)
    try:
        base64.b64decode(b64, validate=True)
    except (binascii.Error, ValueError):
        return _error("Invalid base64 image data", 400)

    filename = f"upload-{int(time.time() * 1000)}.png"
    return ApiResponse(data={"url": f"data:image/png;base64,{b64}", "filename": filename})
