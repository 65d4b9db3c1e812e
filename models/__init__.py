"""
Data Models
"""
from .raw import (
    PLATFORM_SOURCES,
    SourceType,
    RawAuthor,
    RawStats,
    RedditPost,
    StructuredPrompt,
    TweetPrompt,
    GalleryCard,
    ManualEntry,
    RawCandidate,
)

__all__ = [
    "PLATFORM_SOURCES",
    "SourceType",
    "RawAuthor",
    "RawStats",
    "RedditPost",
    "StructuredPrompt",
    "TweetPrompt",
    "GalleryCard",
    "ManualEntry",
    "RawCandidate",
]
