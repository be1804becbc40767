"""Capability registry for the upstream fal.ai queue models.

Each model belongs to one of four families. The family decides how the
payload builder expresses image size, so adding a model means adding one
entry below rather than touching the builder.
"""
from dataclasses import asdict, dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional

from .errors import ModelNotFound


class GenerationType(str, Enum):
    text_to_image = "text-to-image"
    image_to_image = "image-to-image"


# Aspect ratio -> symbolic size token expected by the FLUX 2 endpoints.
NAMED_SIZES: Mapping[str, str] = MappingProxyType({
    "1:1": "square",
    "16:9": "landscape_16_9",
    "9:16": "portrait_16_9",
    "4:3": "landscape_4_3",
    "3:2": "portrait_4_3",
})

NAMED_SIZES_EDIT: Mapping[str, str] = MappingProxyType({**NAMED_SIZES, "auto": "auto"})

# Aspect ratios accepted by named-size models, independent of their declared list.
NAMED_SIZE_RATIOS: tuple[str, ...] = ("1:1", "16:9", "9:16", "4:3", "3:2")


@dataclass(frozen=True)
class Defaults:
    aspect_ratio: Optional[str] = None
    resolution: Optional[str] = None
    output_format: Optional[str] = None
    safety_tolerance: Optional[str] = None
    num_images: int = 1
    image_size: Optional[str] = None
    enable_safety_checker: Optional[bool] = None


@dataclass(frozen=True)
class ModelCapability:
    """Static description of one upstream model."""

    id: str
    name: str
    submit_url: str
    status_base_url: str
    aspect_ratios: tuple[str, ...] = ()
    resolutions: tuple[str, ...] = ()
    output_formats: tuple[str, ...] = ("jpeg", "png")
    safety_tolerance: bool = False
    seed: bool = False
    enhance_prompt: bool = False
    raw: bool = False
    multi_image: bool = False
    custom_sizes: bool = False
    defaults: Defaults = field(default_factory=Defaults)

    type = GenerationType.text_to_image
    named_size = False

    @property
    def is_image_to_image(self) -> bool:
        return self.type is GenerationType.image_to_image

    def status_url(self, request_id: str) -> str:
        return f"{self.status_base_url}/requests/{request_id}"

    def summary(self) -> dict[str, Any]:
        """Public view used by the model listing endpoint."""
        defaults = {k: v for k, v in asdict(self.defaults).items() if v is not None}
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
            "supports": {
                "aspect_ratios": list(self.aspect_ratios),
                "resolutions": list(self.resolutions),
                "output_formats": list(self.output_formats),
                "safety_tolerance": self.safety_tolerance,
                "seed": self.seed,
                "enhance_prompt": self.enhance_prompt,
                "raw": self.raw,
                "image_to_image": self.is_image_to_image,
                "multi_image": self.multi_image,
                "custom_sizes": self.custom_sizes,
            },
            "defaults": defaults,
        }


@dataclass(frozen=True)
class FreeSizeTextToImage(ModelCapability):
    pass


@dataclass(frozen=True)
class NamedSizeTextToImage(ModelCapability):
    sizes = NAMED_SIZES
    size_fallback = "landscape_4_3"
    named_size = True


@dataclass(frozen=True)
class FreeSizeImageToImage(ModelCapability):
    type = GenerationType.image_to_image


@dataclass(frozen=True)
class NamedSizeImageToImage(ModelCapability):
    sizes = NAMED_SIZES_EDIT
    size_fallback = "auto"
    type = GenerationType.image_to_image
    named_size = True


_QUEUE = "https://queue.fal.run/fal-ai"

_MODELS: list[ModelCapability] = [
    FreeSizeTextToImage(
        id="flux-1.1-pro-ultra",
        name="FLUX 1.1 Pro Ultra",
        submit_url=f"{_QUEUE}/flux-pro/v1.1-ultra",
        status_base_url=f"{_QUEUE}/flux-pro",
        aspect_ratios=("21:9", "16:9", "4:3", "3:2", "1:1", "2:3", "3:4", "9:16", "9:21"),
        safety_tolerance=True,
        seed=True,
        enhance_prompt=True,
        raw=True,
        custom_sizes=True,
        defaults=Defaults(
            aspect_ratio="16:9",
            safety_tolerance="2",
            output_format="jpeg",
            enable_safety_checker=True,
        ),
    ),
    NamedSizeTextToImage(
        id="flux-2-pro",
        name="FLUX 2 Pro",
        submit_url=f"{_QUEUE}/flux-2-pro",
        status_base_url=f"{_QUEUE}/flux-2-pro",
        safety_tolerance=True,
        seed=True,
        custom_sizes=True,
        defaults=Defaults(
            image_size="landscape_4_3",
            safety_tolerance="2",
            output_format="jpeg",
            enable_safety_checker=True,
        ),
    ),
    FreeSizeTextToImage(
        id="imagen4-preview",
        name="Google Imagen 4 Preview",
        submit_url=f"{_QUEUE}/imagen4/preview",
        status_base_url=f"{_QUEUE}/imagen4",
        aspect_ratios=("1:1", "16:9", "9:16", "4:3", "3:4"),
        resolutions=("1K", "2K"),
        output_formats=("jpeg", "png", "webp"),
        defaults=Defaults(aspect_ratio="1:1", resolution="1K", output_format="png"),
    ),
    FreeSizeTextToImage(
        id="nano-banana-pro",
        name="Gemini 3 Pro Image",
        submit_url=f"{_QUEUE}/nano-banana-pro",
        status_base_url=f"{_QUEUE}/nano-banana-pro",
        aspect_ratios=("21:9", "16:9", "3:2", "4:3", "5:4", "1:1", "4:5", "3:4", "2:3", "9:16"),
        resolutions=("1K", "2K", "4K"),
        output_formats=("jpeg", "png", "webp"),
        defaults=Defaults(aspect_ratio="1:1", resolution="1K", output_format="png"),
    ),
    FreeSizeImageToImage(
        id="nano-banana-pro-edit",
        name="Gemini 3 Pro Image Edit",
        submit_url=f"{_QUEUE}/nano-banana-pro/edit",
        status_base_url=f"{_QUEUE}/nano-banana-pro",
        aspect_ratios=("auto", "21:9", "16:9", "3:2", "4:3", "5:4", "1:1", "4:5", "3:4", "2:3", "9:16"),
        resolutions=("1K", "2K", "4K"),
        output_formats=("jpeg", "png", "webp"),
        multi_image=True,
        defaults=Defaults(aspect_ratio="auto", resolution="1K", output_format="png"),
    ),
    NamedSizeImageToImage(
        id="flux-2-pro-edit",
        name="FLUX 2 Pro Edit",
        submit_url=f"{_QUEUE}/flux-2-pro/edit",
        status_base_url=f"{_QUEUE}/flux-2-pro",
        aspect_ratios=("auto",),
        safety_tolerance=True,
        seed=True,
        custom_sizes=True,
        defaults=Defaults(
            image_size="auto",
            safety_tolerance="2",
            output_format="jpeg",
            enable_safety_checker=True,
        ),
    ),
]

REGISTRY: Mapping[str, ModelCapability] = MappingProxyType({m.id: m for m in _MODELS})


def lookup(model_id: str | None) -> ModelCapability:
    """Return the capability for ``model_id`` or raise ModelNotFound."""
    model = REGISTRY.get(model_id) if model_id else None
    if model is None:
        raise ModelNotFound(model_id)
    return model


def all_models() -> list[ModelCapability]:
    return list(REGISTRY.values())
