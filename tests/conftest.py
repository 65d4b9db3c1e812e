from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

import pytest

from config import PipelineSettings, ProviderSettings, Settings, StorageSettings
from core import CuratedPrompt, NormalizedCandidate
from llm import BaseLLM, LLMResponse, Message

_ENV_KEYS = (
    "GEMINI_API_KEY",
    "GOOGLE_GENERATIVE_AI_API_KEY",
    "GROQ_API_KEY",
    "OPENROUTER_API_KEY",
    "PROMPT_CURATOR_PREFER_OPEN_MODELS",
    "PREFER_OPEN_MODELS",
    "PROMPT_CURATOR_DATA_DIR",
    "PROMPT_CURATOR_REPORTS_DIR",
    "PROMPT_CURATOR_BATCH_SIZE",
    "PROMPT_CURATOR_BATCH_DELAY_SECONDS",
)

Reply = Union[str, BaseException]


class FakeLLM(BaseLLM):
    """Scripted provider: replies come from ``handler(messages)`` or a queue."""

    def __init__(
        self,
        name: str = "gemini",
        replies: Optional[Sequence[Reply]] = None,
        handler: Optional[Callable[[List[Message]], Reply]] = None,
    ):
        super().__init__(model=f"{name}-test")
        self.name = name
        self.replies = list(replies or [])
        self.handler = handler
        self.calls: List[List[Message]] = []
        self.closed = False

    @property
    def provider(self) -> str:
        return self.name

    async def acomplete(self, messages: List[Message], **kwargs) -> LLMResponse:
        self.calls.append(list(messages))
        reply = self.handler(messages) if self.handler else self.replies.pop(0)
        if isinstance(reply, BaseException):
            raise reply
        return LLMResponse(content=reply, model=self.model, provider=self.name)

    async def aclose(self) -> None:
        self.closed = True


def sent_batch(messages: List[Message]) -> List[Dict[str, Any]]:
    """RAW_DATA / DATASET payload the extractor or auditor put in the user message."""
    return json.loads(messages[-1].content.split("\n", 1)[1])


def extraction_reply(items: Sequence[Dict[str, Any]], summary: str = "ok") -> str:
    return json.dumps({"prompts": list(items), "summary": summary})


def extracted(index: int, title: str, confidence: float = 0.9, **extra: Any) -> Dict[str, Any]:
    item = {
        "batchIndex": index,
        "title": title,
        "description": extra.pop("description", f"Helps with {title.lower()}"),
        "userPrompt": extra.pop("userPrompt", f"Act as an expert and help me with {title.lower()}."),
        "tags": extra.pop("tags", ["writing", "productivity", "fun"]),
        "confidenceScore": confidence,
    }
    item.update(extra)
    return item


def reddit_post(n: int, **extra: Any) -> Dict[str, Any]:
    post = {
        "source": "reddit",
        "subreddit": "PromptEngineering",
        "title": f"Prompt number {n}",
        "content": f"Act as a senior editor number {n} and rewrite my paragraph for clarity.",
        "url": f"https://www.reddit.com/r/PromptEngineering/comments/{n}/post_{n}/",
        "author": f"user{n}",
        "date": "2025-01-02T03:04:05.000Z",
        "stats": {"upvotes": 10 + n, "comments": 2},
    }
    post.update(extra)
    return post


def candidate(n: int, **extra: Any) -> NormalizedCandidate:
    data = {
        "source": "reddit",
        "kind": "reddit",
        "title": f"Post {n}",
        "body_text": f"Act as a helpful assistant number {n} and answer in detail.",
        "url": f"https://forum.example/x/{n}",
        "author": f"user{n}",
        "engagement": n,
    }
    data.update(extra)
    return NormalizedCandidate(**data)


def record(record_id: str, title: str = "", text: str = "", **extra: Any) -> CuratedPrompt:
    data: Dict[str, Any] = {
        "id": record_id,
        "title": title or f"Record {record_id}",
        "description": extra.pop("description", ""),
        "tags": extra.pop("tags", ["coding", "text", "community"]),
        "contents": [{"role": "user", "parts": [{"text": text or f"Prompt text for {record_id}"}]}],
    }
    data.update(extra)
    return CuratedPrompt.model_validate(data)


def write_json(path: Path, payload: Any) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path):
    for key in _ENV_KEYS:
        # setenv first so values a test loads from a .env file are undone afterwards
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        providers=ProviderSettings(gemini_api_key="test-key"),
        pipeline=PipelineSettings(batch_delay_seconds=0),
        storage=StorageSettings(
            data_dir=str(tmp_path / "data"),
            reports_dir=str(tmp_path / "reports"),
        ),
    )
