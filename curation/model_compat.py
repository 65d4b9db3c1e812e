"""Model compatibility heuristics and the Gemini capability table."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple

IMAGE_GENERATION_MODELS: Tuple[str, ...] = (
    "imagen-4.0-generate-preview-06-06",
    "imagen-4.0-ultra-generate-preview-06-06",
)
IMAGE_EDIT_MODELS: Tuple[str, ...] = (
    "gemini-2.5-flash-image",
    "gemini-2.5-flash-image-preview",
    "gemini-3-pro-image-preview",
    "nano-banana-pro-preview",
)
FAST_TEXT_MODELS: Tuple[str, ...] = ("gemini-2.5-flash", "gemini-2.0-flash")
CAPABLE_TEXT_MODELS: Tuple[str, ...] = ("gemini-2.5-pro",)
FRONTIER_TEXT_MODELS: Tuple[str, ...] = ("gemini-3-pro-preview",)

_GENERATION_SIGNALS = ("generate an image", "create an image", "image of")
_GENERATION_TITLE_SIGNALS = ("image generation",)
_EDIT_SIGNALS = ("edit", "transform", "style")
_EDIT_TITLE_SIGNALS = ("nano banana", "image prompt")
_COMPLEXITY_SIGNALS = ("complex", "reasoning", "code", "architect", "analyze")


def resolve_compatible_models(title: str, description: str) -> List[str]:
    """
    Ordered model ids a prompt is expected to run on.

    Generation and edit sets stack; text tiers are only used when neither visual
    signal fires. The capable tier is always included for text prompts, the
    frontier preview only on complexity signals.
    """
    lower_title = str(title or "").lower()
    lower_desc = str(description or "").lower()

    is_generation = any(signal in lower_desc for signal in _GENERATION_SIGNALS) or any(
        signal in lower_title for signal in _GENERATION_TITLE_SIGNALS
    )
    is_edit = any(signal in lower_desc for signal in _EDIT_SIGNALS) or any(
        signal in lower_title for signal in _EDIT_TITLE_SIGNALS
    )

    models: List[str] = []
    if is_generation:
        models.extend(IMAGE_GENERATION_MODELS)
        if is_edit:
            models.extend(IMAGE_EDIT_MODELS)
        return models
    if is_edit:
        models.extend(IMAGE_EDIT_MODELS)
        return models

    models.extend(FAST_TEXT_MODELS)
    models.extend(CAPABLE_TEXT_MODELS)
    if any(signal in lower_desc for signal in _COMPLEXITY_SIGNALS):
        models.extend(FRONTIER_TEXT_MODELS)
    return models


@dataclass(frozen=True)
class ModelCapability:
    id: str
    name: str
    input_modality: Tuple[str, ...]
    output_modality: Tuple[str, ...]
    is_preview: bool = False


MODEL_CAPABILITIES: Dict[str, ModelCapability] = {
    cap.id: cap
    for cap in (
        ModelCapability("gemini-3-pro-preview", "Gemini 3 Pro Preview", ("text", "image", "video", "audio"), ("text", "code"), True),
        ModelCapability("gemini-3-pro-image-preview", "Gemini 3 Pro Image Preview (Nano Banana)", ("text",), ("image",), True),
        ModelCapability("nano-banana-pro-preview", "Nano Banana Pro Preview", ("text", "image"), ("image",), True),
        ModelCapability("gemini-2.5-pro", "Gemini 2.5 Pro", ("text", "image", "video", "audio"), ("text", "code")),
        ModelCapability("gemini-2.5-flash", "Gemini 2.5 Flash", ("text", "image", "video", "audio"), ("text", "code")),
        ModelCapability("gemini-2.0-flash", "Gemini 2.0 Flash", ("text", "image", "video", "audio"), ("text", "code")),
        ModelCapability("gemini-2.5-flash-image", "Gemini 2.5 Flash Image", ("text", "image"), ("image",)),
        ModelCapability("gemini-2.5-flash-image-preview", "Gemini 2.5 Flash Image Preview", ("text", "image"), ("image",), True),
        ModelCapability(
            "gemini-2.5-flash-native-audio-preview-09-2025",
            "Gemini 2.5 Flash Audio",
            ("text", "audio"),
            ("audio",),
            True,
        ),
        ModelCapability("imagen-4.0-generate-preview-06-06", "Imagen 4", ("text",), ("image",), True),
        ModelCapability("imagen-4.0-ultra-generate-preview-06-06", "Imagen 4 Ultra", ("text",), ("image",), True),
        ModelCapability("veo-3.1-generate-preview", "Veo 3.1", ("text",), ("video",), True),
    )
}


def primary_modality(models: Sequence[str]) -> str:
    """Bucket a compatibleModels list as image, video or text."""
    outputs = set()
    for model_id in models or ():
        cap = MODEL_CAPABILITIES.get(model_id)
        if cap is not None:
            outputs.update(cap.output_modality)
        elif "image" in model_id or "nano" in model_id or "imagen" in model_id:
            outputs.add("image")
        elif "veo" in model_id or "video" in model_id:
            outputs.add("video")
    if "image" in outputs:
        return "image"
    if "video" in outputs:
        return "video"
    return "text"
