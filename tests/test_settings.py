from __future__ import annotations

from config import PipelineSettings, ProviderSettings, Settings


def test_defaults() -> None:
    settings = Settings()

    assert settings.pipeline.batch_size == 5
    assert settings.pipeline.batch_delay_seconds == 5.0
    assert settings.pipeline.confidence_threshold == 0.7
    assert settings.pipeline.min_shrink_ratio == 0.5
    assert settings.pipeline.fingerprint_min_length == 10
    assert settings.providers.gemini_api_key is None
    assert not settings.providers.prefer_open_models
    assert settings.storage.corpus_path.name == "prompts.json"
    assert [p.name for p in settings.storage.source_paths()] == [
        "reddit.json",
        "github.json",
        "google_gallery.json",
        "aistudio.json",
        "x.json",
    ]


def test_environment_overrides(monkeypatch) -> None:
    monkeypatch.setenv("GOOGLE_GENERATIVE_AI_API_KEY", "alt-key")
    monkeypatch.setenv("PREFER_OPEN_MODELS", "true")
    monkeypatch.setenv("PROMPT_CURATOR_BATCH_SIZE", "3")

    assert ProviderSettings().gemini_api_key == "alt-key"
    assert ProviderSettings().prefer_open_models
    assert PipelineSettings().batch_size == 3


def test_load_from_env_file(tmp_path) -> None:
    env_file = tmp_path / "custom.env"
    env_file.write_text(
        "GROQ_API_KEY=groq-key\nPROMPT_CURATOR_DATA_DIR=/srv/prompts\nPROMPT_CURATOR_BATCH_DELAY_SECONDS=0\n",
        encoding="utf-8",
    )

    settings = Settings.load_from_env_file(env_file)

    assert settings.providers.groq_api_key == "groq-key"
    assert str(settings.storage.rejection_log_path) == "/srv/prompts/rejected/rejected.json"
    assert settings.pipeline.batch_delay_seconds == 0


def test_missing_env_file_is_ignored(tmp_path) -> None:
    settings = Settings.load_from_env_file(tmp_path / "absent.env")
    assert settings.providers.openrouter_api_key is None
