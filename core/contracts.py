"""Canonical data contracts for the prompt curation pipeline."""

from __future__ import annotations

import math
from typing import Any, Dict, List, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for records persisted as camelCase JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_record(self) -> Dict[str, Any]:
        """Dump only the fields the record was loaded or built with."""
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)


class Part(CamelModel):
    """One part of a turn; non-text parts (inlineData, fileData) are kept as extras."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    text: Optional[str] = None


class Turn(CamelModel):
    """Role-tagged content turn."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    role: str = "user"
    parts: List[Part] = Field(default_factory=list)

    def text(self) -> str:
        return "".join(part.text or "" for part in self.parts)


class SystemInstruction(CamelModel):
    parts: List[Part] = Field(default_factory=list)

    def text(self) -> str:
        return "".join(part.text or "" for part in self.parts)


class PromptAuthor(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    name: str = "Community"
    url: Optional[str] = None
    platform: Optional[str] = None


class PromptStats(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    views: int = 0
    copies: int = 0
    likes: int = 0


class PromptImage(CamelModel):
    url: str
    label: str = "gallery"


class CuratedPrompt(CamelModel):
    """Persisted corpus entity consumed by the presentation layer.

    Unknown keys on existing records (safetySettings, slug, generationConfig, ...)
    are kept as extras so a record survives a load/save cycle unchanged.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    id: str
    title: str = ""
    description: str = ""
    tags: List[str] = Field(default_factory=list)
    compatible_models: List[str] = Field(default_factory=list)
    system_instruction: Optional[SystemInstruction] = None
    contents: List[Turn] = Field(default_factory=list)
    author: Optional[PromptAuthor] = None
    original_source_url: Optional[str] = None
    stats: Optional[PromptStats] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    images: Optional[List[PromptImage]] = None

    @field_validator("id", mode="before")
    @classmethod
    def _non_empty_id(cls, value: Any) -> str:
        text = str(value or "").strip()
        if not text:
            raise ValueError("id is required")
        return text

    def system_text(self) -> str:
        return self.system_instruction.text() if self.system_instruction else ""

    def contents_text(self) -> str:
        return "".join(turn.text() for turn in self.contents)

    def user_prompt(self) -> str:
        for turn in self.contents:
            if turn.role == "user" and turn.text().strip():
                return turn.text()
        return ""

    def has_text(self) -> bool:
        return any(
            value.strip()
            for value in (self.system_text(), self.contents_text(), self.description or "")
        )


class SourceFields(BaseModel):
    """Metadata projected from a normalized candidate onto a curated draft."""

    author: PromptAuthor
    stats: PromptStats
    images: Optional[List[PromptImage]] = None
    original_source_url: Optional[str] = None
    created_at: Optional[str] = None


class NormalizedCandidate(BaseModel):
    """Common view over every raw collector shape."""

    source: str = "manual"
    kind: str = "manual"
    title: str = ""
    body_text: str = ""
    url: Optional[str] = None
    author: Optional[str] = None
    author_url: Optional[str] = None
    image_urls: List[str] = Field(default_factory=list)
    engagement: int = 0
    created_at: Optional[str] = None
    system_instruction: str = ""
    content_texts: List[str] = Field(default_factory=list)
    passthrough: Optional[CuratedPrompt] = None

    @property
    def is_passthrough(self) -> bool:
        return self.passthrough is not None

    def fingerprint_text(self) -> str:
        """Text used for content dedup; mirrors the corpus-side formula for structured inputs."""
        if self.passthrough is not None:
            return self.passthrough.system_text() + self.passthrough.contents_text()
        if self.system_instruction or self.content_texts:
            return self.system_instruction + "".join(self.content_texts)
        return self.body_text


class RejectionRecord(CamelModel):
    """Append-only audit entry for every discarded candidate."""

    source: str = ""
    title: str = ""
    text: str = ""
    reason: str
    confidence_score: Optional[float] = None
    rejected_at: Optional[str] = None


class ExtractedPrompt(CamelModel):
    """One structured item returned by an extraction provider."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    batch_index: int
    title: str
    description: str = ""
    system_instruction: Optional[str] = None
    user_prompt: str
    tags: List[str] = Field(default_factory=list)
    confidence_score: float = 0.0
    reasoning: Optional[str] = None

    @field_validator("confidence_score", mode="before")
    @classmethod
    def _clamp_confidence(cls, value: Any) -> float:
        try:
            score = float(value)
        except (TypeError, ValueError):
            return 0.0
        if math.isnan(score) or math.isinf(score):
            return 0.0
        return max(0.0, min(1.0, score))

    @field_validator("tags", mode="before")
    @classmethod
    def _tags_as_list(cls, value: Any) -> List[str]:
        if value is None:
            return []
        if isinstance(value, str):
            return [token for token in value.split(",") if token.strip()]
        return [str(token) for token in value]


AuditAction = Literal["DELETE", "MERGE", "KEEP"]


class AuditIssue(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    issue_type: str = Field(default="LOW_QUALITY", validation_alias=AliasChoices("issueType", "type"))
    target_ids: List[str] = Field(default_factory=list)
    description: str = ""
    action: AuditAction = "KEEP"
    merge_target_id: Optional[str] = None

    @field_validator("issue_type", "action", mode="before")
    @classmethod
    def _upper(cls, value: Any) -> str:
        return str(value or "").strip().upper()


class AuditPlan(CamelModel):
    """Advisory delete/merge plan produced by the audit pass."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    issues: List[AuditIssue] = Field(default_factory=list)
    summary: str = ""
