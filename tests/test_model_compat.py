from __future__ import annotations

from curation.model_compat import (
    CAPABLE_TEXT_MODELS,
    FAST_TEXT_MODELS,
    FRONTIER_TEXT_MODELS,
    IMAGE_EDIT_MODELS,
    IMAGE_GENERATION_MODELS,
    MODEL_CAPABILITIES,
    primary_modality,
    resolve_compatible_models,
)


def test_generation_prompt_gets_generation_models_only() -> None:
    models = resolve_compatible_models("Sunset", "Generate an image of a sunset")

    assert models == list(IMAGE_GENERATION_MODELS)
    assert not set(models) & set(FAST_TEXT_MODELS + CAPABLE_TEXT_MODELS)


def test_edit_prompt_gets_edit_models() -> None:
    models = resolve_compatible_models("Portrait cleanup", "Transform my selfie into a comic panel")
    assert models == list(IMAGE_EDIT_MODELS)


def test_title_signals() -> None:
    assert resolve_compatible_models("Nano Banana figurine", "") == list(IMAGE_EDIT_MODELS)
    assert resolve_compatible_models("Image generation: castles", "") == list(IMAGE_GENERATION_MODELS)


def test_generation_and_edit_signals_stack() -> None:
    models = resolve_compatible_models("Poster", "Create an image in the style of a 1950s travel poster")
    assert models == list(IMAGE_GENERATION_MODELS) + list(IMAGE_EDIT_MODELS)


def test_text_prompts_get_text_tiers() -> None:
    plain = resolve_compatible_models("Email helper", "Drafts polite follow-up emails")
    complex_ = resolve_compatible_models("Refactor bot", "Reviews code and suggests refactors")

    assert plain == list(FAST_TEXT_MODELS) + list(CAPABLE_TEXT_MODELS)
    assert complex_ == plain + list(FRONTIER_TEXT_MODELS)


def test_resolved_models_are_known_capabilities() -> None:
    for description in ("Generate an image of a fox", "edit my photo", "analyze this contract", "say hi"):
        for model_id in resolve_compatible_models("", description):
            assert model_id in MODEL_CAPABILITIES


def test_primary_modality() -> None:
    assert primary_modality(list(IMAGE_EDIT_MODELS)) == "image"
    assert primary_modality(["veo-3.1-generate-preview"]) == "video"
    assert primary_modality(["gemini-2.5-flash"]) == "text"
    assert primary_modality(["some-new-imagen-model"]) == "image"
    assert primary_modality([]) == "text"


def test_refactor_prompt_gets_fast_and_capable_tiers() -> None:
    models = resolve_compatible_models("Speed-up", "Refactor this function for performance")
    assert models == list(FAST_TEXT_MODELS) + list(CAPABLE_TEXT_MODELS)
