"""FastAPI application for the FAL Image Bridge.

This module maps HTTP routes onto the framework-agnostic handlers.
"""
from contextlib import asynccontextmanager
from typing import Any, Optional, Union

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict, Field

from . import __version__
from .core import get_service
from .core.handlers import (
    ApiResponse,
    handle_health,
    handle_list_models,
    handle_generate,
    handle_generate_batch,
    handle_list_images,
    handle_stats,
    handle_manual_add,
    handle_delete_image,
    handle_hide_image,
    handle_upload,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    yield
    # Cleanup on shutdown
    await get_service().close()


app = FastAPI(title="FAL Image Bridge", version=__version__, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request Models (Pydantic for FastAPI validation)
# Field aliases follow the camelCase keys sent by the web UI.

class GenerateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, protected_namespaces=())

    model: Optional[str] = None
    prompt: Optional[str] = None
    aspect_ratio: Optional[str] = Field(None, alias="aspectRatio")
    resolution: Optional[str] = None
    output_format: Optional[str] = Field(None, alias="outputFormat")
    safety_tolerance: Optional[Union[str, int]] = None
    seed: Optional[int] = None
    enhance_prompt: Optional[bool] = Field(None, alias="enhancePrompt")
    raw: Optional[bool] = None
    num_images: Optional[int] = None
    image_url: Optional[str] = None
    image_urls: Optional[list[str]] = Field(None, alias="imageUrls")
    image_size: Optional[Union[str, dict]] = Field(None, alias="imageSize")
    image_prompt_strength: Optional[float] = Field(None, alias="imagePromptStrength")
    enable_safety_checker: Optional[bool] = Field(None, alias="enableSafetyChecker")
    sync_mode: Optional[bool] = Field(None, alias="syncMode")


class BulkGenerateRequest(BaseModel):
    # Items are validated per slot so one bad entry cannot reject the batch.
    requests: Any = None


class ManualImageRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, protected_namespaces=())

    url: Optional[str] = None
    prompt: Optional[str] = None
    model: Optional[str] = None
    aspect_ratio: Optional[str] = Field(None, alias="aspectRatio")


class UploadRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    image_data: Optional[str] = Field(None, alias="imageData")


def _unwrap(resp: ApiResponse) -> Any:
    if resp.status != 200:
        raise HTTPException(status_code=resp.status, detail=resp.data.get("error"))
    return resp.data


# Health & Models

@app.get("/health")
async def health():
    resp = await handle_health()
    return resp.data


@app.get("/api/models")
async def list_models():
    resp = await handle_list_models()
    return resp.data


# Generation Endpoints

@app.post("/api/generate")
async def generate(request: GenerateRequest):
    """Generate one image and return its record."""
    resp = await handle_generate(request.model_dump(exclude_none=True))
    return _unwrap(resp)


@app.post("/api/generate/bulk")
async def generate_bulk(request: BulkGenerateRequest):
    """Generate up to five images concurrently."""
    resp = await handle_generate_batch(request.requests)
    return _unwrap(resp)


# Gallery Endpoints

@app.get("/api/images")
async def list_images():
    resp = await handle_list_images()
    return resp.data


@app.get("/api/images/stats")
async def image_stats():
    resp = await handle_stats()
    return resp.data


@app.post("/api/images/manual")
async def add_manual_image(request: ManualImageRequest):
    """Record an image generated outside the bridge."""
    resp = await handle_manual_add(
        url=request.url,
        prompt=request.prompt,
        model=request.model,
        aspect_ratio=request.aspect_ratio,
    )
    return _unwrap(resp)


@app.delete("/api/images/{record_id}")
async def delete_image(record_id: str):
    resp = await handle_delete_image(record_id)
    return _unwrap(resp)


@app.patch("/api/images/{record_id}/hide")
async def hide_image(record_id: str):
    resp = await handle_hide_image(record_id)
    return _unwrap(resp)


@app.post("/api/upload")
async def upload(request: UploadRequest):
    """Convert base64 image data into a data URL for edit models."""
    resp = await handle_upload(request.image_data)
    return _unwrap(resp)
