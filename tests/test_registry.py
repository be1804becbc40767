"""Tests for the capability registry."""
import dataclasses

import pytest

from fal_bridge.core.errors import ModelNotFound
from fal_bridge.core.registry import (
    NAMED_SIZES,
    NAMED_SIZES_EDIT,
    REGISTRY,
    FreeSizeImageToImage,
    GenerationType,
    NamedSizeImageToImage,
    NamedSizeTextToImage,
    all_models,
    lookup,
)


def test_lookup_known_model():
    model = lookup("flux-2-pro")
    assert model.name == "FLUX 2 Pro"
    assert isinstance(model, NamedSizeTextToImage)
    assert model.type is GenerationType.text_to_image


@pytest.mark.parametrize("model_id", ["dall-e-3", "", None])
def test_lookup_unknown_model_raises(model_id):
    with pytest.raises(ModelNotFound):
        lookup(model_id)


def test_registry_is_read_only():
    with pytest.raises(TypeError):
        REGISTRY["new-model"] = lookup("flux-2-pro")

    with pytest.raises(dataclasses.FrozenInstanceError):
        lookup("flux-2-pro").seed = False


def test_model_families():
    assert isinstance(lookup("flux-2-pro-edit"), NamedSizeImageToImage)
    assert isinstance(lookup("nano-banana-pro-edit"), FreeSizeImageToImage)
    assert lookup("flux-2-pro-edit").is_image_to_image
    assert not lookup("imagen4-preview").is_image_to_image


def test_named_size_tables():
    assert NAMED_SIZES["16:9"] == "landscape_16_9"
    assert NAMED_SIZES["3:2"] == "portrait_4_3"
    assert "auto" not in NAMED_SIZES
    assert NAMED_SIZES_EDIT["auto"] == "auto"
    assert lookup("flux-2-pro").sizes is NAMED_SIZES
    assert lookup("flux-2-pro-edit").sizes is NAMED_SIZES_EDIT


def test_status_url():
    model = lookup("imagen4-preview")
    assert model.status_url("abc") == "https://queue.fal.run/fal-ai/imagen4/requests/abc"


def test_summary_lists_support_and_defaults():
    summary = lookup("imagen4-preview").summary()
    assert summary["id"] == "imagen4-preview"
    assert summary["type"] == "text-to-image"
    assert summary["supports"]["resolutions"] == ["1K", "2K"]
    assert summary["supports"]["seed"] is False
    assert summary["defaults"]["aspect_ratio"] == "1:1"
    assert "image_size" not in summary["defaults"]


def test_all_models_in_declaration_order():
    ids = [m.id for m in all_models()]
    assert ids[0] == "flux-1.1-pro-ultra"
    assert len(ids) == 6
