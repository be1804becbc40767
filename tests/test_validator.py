"""Tests for request validation."""
import pytest

from fal_bridge.core.registry import NAMED_SIZE_RATIOS, REGISTRY, lookup
from fal_bridge.core.request_types import GenerationRequest
from fal_bridge.core.validator import validate


def supported_request(model) -> GenerationRequest:
    """A request using only fields the model declares."""
    ratios = NAMED_SIZE_RATIOS if model.named_size else model.aspect_ratios
    return GenerationRequest(
        model=model.id,
        prompt="a lighthouse at dusk",
        aspect_ratio=ratios[0] if ratios else None,
        resolution=model.resolutions[0] if model.resolutions else None,
        output_format=model.output_formats[0],
        seed=42 if model.seed else None,
        safety_tolerance="2" if model.safety_tolerance else None,
        image_url="https://example.com/in.png" if model.is_image_to_image else None,
    )


@pytest.mark.parametrize("model_id", list(REGISTRY))
def test_supported_fields_are_valid(model_id):
    model = lookup(model_id)
    result = validate(model, supported_request(model))
    assert result.valid, result.errors
    assert result.errors == []


@pytest.mark.parametrize("model_id", [m for m in REGISTRY if not REGISTRY[m].seed])
def test_seed_rejected_when_unsupported(model_id):
    model = lookup(model_id)
    request = GenerationRequest(
        model=model_id, prompt="x", seed=7, image_url="https://example.com/a.png"
    )
    result = validate(model, request)
    assert not result.valid
    assert any("seed" in e for e in result.errors)


@pytest.mark.parametrize("model_id", [m for m in REGISTRY if not REGISTRY[m].safety_tolerance])
def test_safety_tolerance_rejected_when_unsupported(model_id):
    model = lookup(model_id)
    request = GenerationRequest(
        model=model_id, prompt="x", safety_tolerance="3", image_url="https://example.com/a.png"
    )
    result = validate(model, request)
    assert any("safety_tolerance" in e for e in result.errors)


def test_seed_zero_counts_as_given():
    result = validate(lookup("imagen4-preview"), GenerationRequest(model="imagen4-preview", prompt="x", seed=0))
    assert not result.valid


def test_image_to_image_requires_source():
    model = lookup("flux-2-pro-edit")
    result = validate(model, GenerationRequest(model=model.id, prompt="x"))
    assert not result.valid
    assert "Model flux-2-pro-edit requires image URLs" in result.errors

    result = validate(model, GenerationRequest(model=model.id, prompt="x", image_urls=()))
    assert not result.valid


def test_multiple_sources_need_multi_image_support():
    urls = ("https://example.com/a.png", "https://example.com/b.png")

    single = validate(lookup("flux-2-pro-edit"), GenerationRequest(model="flux-2-pro-edit", prompt="x", image_urls=urls))
    assert not single.valid
    assert any("multiple input images" in e for e in single.errors)

    multi = validate(
        lookup("nano-banana-pro-edit"),
        GenerationRequest(model="nano-banana-pro-edit", prompt="x", image_urls=urls),
    )
    assert multi.valid


def test_named_size_models_use_reduced_ratio_set():
    model = lookup("flux-2-pro")
    assert validate(model, GenerationRequest(model=model.id, prompt="x", aspect_ratio="3:2")).valid
    result = validate(model, GenerationRequest(model=model.id, prompt="x", aspect_ratio="21:9"))
    assert not result.valid
    assert "Supported: 1:1, 16:9, 9:16, 4:3, 3:2" in result.errors[0]


def test_empty_resolution_set_rejects_any_resolution():
    result = validate(lookup("flux-1.1-pro-ultra"), GenerationRequest(model="flux-1.1-pro-ultra", prompt="x", resolution="1K"))
    assert not result.valid
    assert "resolution" in result.errors[0]


def test_all_errors_collected():
    request = GenerationRequest(
        model="imagen4-preview",
        prompt="x",
        aspect_ratio="21:9",
        resolution="4K",
        output_format="gif",
        seed=1,
    )
    result = validate(lookup("imagen4-preview"), request)
    assert len(result.errors) == 4


def test_empty_prompt_rejected():
    result = validate(lookup("imagen4-preview"), GenerationRequest(model="imagen4-preview", prompt="  "))
    assert "Missing prompt." in result.errors


def test_validate_is_repeatable():
    model = lookup("nano-banana-pro")
    request = GenerationRequest(model=model.id, prompt="x", aspect_ratio="7:7", resolution="8K")
    assert validate(model, request) == validate(model, request)
