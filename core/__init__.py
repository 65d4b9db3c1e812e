"""Core contracts and shared types for the curation pipeline."""

from .contracts import (
    AuditIssue,
    AuditPlan,
    CamelModel,
    CuratedPrompt,
    ExtractedPrompt,
    NormalizedCandidate,
    Part,
    PromptAuthor,
    PromptImage,
    PromptStats,
    RejectionRecord,
    SourceFields,
    SystemInstruction,
    Turn,
)

__all__ = [
    "AuditIssue",
    "AuditPlan",
    "CamelModel",
    "CuratedPrompt",
    "ExtractedPrompt",
    "NormalizedCandidate",
    "Part",
    "PromptAuthor",
    "PromptImage",
    "PromptStats",
    "RejectionRecord",
    "SourceFields",
    "SystemInstruction",
    "Turn",
]
