"""Normalization stage: raw collector records into one candidate view."""

from __future__ import annotations

import logging
from typing import Any, Iterable, List, Mapping, Optional

from pydantic import ValidationError

from core import CuratedPrompt, NormalizedCandidate, PromptAuthor, PromptImage, PromptStats, SourceFields
from models import (
    PLATFORM_SOURCES,
    GalleryCard,
    ManualEntry,
    RawCandidate,
    RedditPost,
    SourceType,
    StructuredPrompt,
    TweetPrompt,
)

logger = logging.getLogger(__name__)

_SOURCE_PLATFORMS = {
    SourceType.REDDIT.value: "Reddit",
    SourceType.GITHUB.value: "GitHub",
    SourceType.WEB.value: "Google",
    SourceType.X.value: "Twitter",
    "twitter": "Twitter",
}


def _clean(value: Any) -> str:
    return str(value or "").strip()


def _first_text(*values: Any) -> str:
    for value in values:
        text = _clean(value)
        if text:
            return text
    return ""


def _source_tag(value: Any, default: str = SourceType.MANUAL.value) -> str:
    """Collapse collector-specific source labels (e.g. ``x-fxtwitter``) to a short tag."""
    text = _clean(value).lower()
    if not text:
        return default
    if text in PLATFORM_SOURCES:
        return PLATFORM_SOURCES[text]
    head = text.split("-", 1)[0]
    return PLATFORM_SOURCES.get(head, head)


def _is_structured(payload: Mapping[str, Any]) -> bool:
    contents = payload.get("contents")
    return isinstance(contents, list) and len(contents) > 0


def _detect_variant(payload: Mapping[str, Any]) -> type:
    source = _clean(payload.get("source")).lower()
    if _is_structured(payload):
        return StructuredPrompt
    if source == SourceType.REDDIT.value or "subreddit" in payload or "selftext" in payload:
        return RedditPost
    if "promptText" in payload or "prompt_text" in payload or source.startswith("x-"):
        return TweetPrompt
    if not source and payload.get("url") and payload.get("description"):
        return GalleryCard
    return ManualEntry


def parse_raw_candidate(payload: Any) -> RawCandidate:
    """Detect the collector shape of a JSON object; never fails."""
    if not isinstance(payload, Mapping):
        logger.debug("Non-object raw candidate (%s), treating as empty manual entry", type(payload).__name__)
        return ManualEntry()

    variant = _detect_variant(payload)
    data = {key: value for key, value in payload.items() if key != "kind"}
    try:
        return variant.model_validate(data)
    except ValidationError as exc:
        logger.debug("Raw candidate did not fit %s (%s errors), using manual entry", variant.__name__, exc.error_count())

    try:
        return ManualEntry.model_validate(data)
    except ValidationError:
        return ManualEntry()


def _structured_source(raw: StructuredPrompt) -> str:
    if raw.source:
        return _source_tag(raw.source)
    platform = _clean(raw.author.platform if raw.author else "").lower()
    if platform in PLATFORM_SOURCES:
        return PLATFORM_SOURCES[platform]
    if raw.id and "-" in raw.id:
        return _source_tag(raw.id.split("-", 1)[0])
    return SourceType.MANUAL.value


def _structured_passthrough(raw: StructuredPrompt) -> Optional[CuratedPrompt]:
    """Already tagged structured records skip extraction and enter the corpus as-is."""
    if not raw.tags or not raw.id:
        return None
    record = raw.model_dump(by_alias=True, exclude_unset=True, exclude={"kind"})
    try:
        return CuratedPrompt.model_validate(record)
    except ValidationError as exc:
        logger.warning("Structured candidate %s is not a valid record, sending to extraction: %s", raw.id, exc)
        return None


def _from_structured(raw: StructuredPrompt) -> NormalizedCandidate:
    source = _structured_source(raw)
    content_texts = [turn.text() for turn in raw.contents]
    system_text = raw.system_instruction.text() if raw.system_instruction else ""
    engagement = 0
    if raw.stats is not None:
        engagement = raw.stats.likes or raw.stats.stars or raw.stats.upvotes
    return NormalizedCandidate(
        source=source,
        kind="structured",
        title=_clean(raw.title),
        body_text=_first_text("".join(content_texts), system_text, raw.description, raw.title),
        url=_first_text(raw.original_source_url, raw.url) or None,
        author=_clean(raw.author.name if raw.author else "") or None,
        author_url=(raw.author.url if raw.author else None) or None,
        image_urls=list(raw.image_urls),
        engagement=engagement,
        created_at=raw.created_at,
        system_instruction=system_text,
        content_texts=content_texts,
        passthrough=_structured_passthrough(raw),
    )


def _from_reddit(raw: RedditPost) -> NormalizedCandidate:
    return NormalizedCandidate(
        source=SourceType.REDDIT.value,
        kind="reddit",
        title=_clean(raw.title),
        body_text=_first_text(raw.content, raw.selftext, raw.title),
        url=_clean(raw.url) or None,
        author=_clean(raw.author) or None,
        image_urls=[url for url in raw.image_urls if _clean(url)],
        engagement=raw.stats.upvotes,
        created_at=raw.date,
    )


def _from_tweet(raw: TweetPrompt) -> NormalizedCandidate:
    return NormalizedCandidate(
        source=_source_tag(raw.source, default=SourceType.X.value),
        kind="tweet",
        title=_clean(raw.title),
        body_text=_first_text(raw.prompt_text, raw.description, raw.title),
        url=_clean(raw.original_source_url) or None,
        author=_clean(raw.author.name if raw.author else "") or None,
        author_url=(raw.author.url if raw.author else None) or None,
        image_urls=list(raw.image_urls),
        engagement=raw.stats.likes,
        created_at=raw.created_at,
    )


def _from_gallery(raw: GalleryCard) -> NormalizedCandidate:
    return NormalizedCandidate(
        source=SourceType.WEB.value,
        kind="gallery",
        title=_clean(raw.title),
        body_text=_first_text(raw.description, raw.title),
        url=_clean(raw.url) or None,
        author="Google",
    )


def _from_manual(raw: ManualEntry) -> NormalizedCandidate:
    return NormalizedCandidate(
        source=_source_tag(raw.source),
        kind="manual",
        title=_clean(raw.title),
        body_text=_first_text(raw.content, raw.text, raw.description, raw.title),
        url=_clean(raw.url) or None,
        author=raw.author,
    )


_ADAPTERS = {
    "structured": _from_structured,
    "reddit": _from_reddit,
    "tweet": _from_tweet,
    "gallery": _from_gallery,
    "manual": _from_manual,
}


def normalize(raw: RawCandidate) -> NormalizedCandidate:
    """Project one raw variant onto the normalized candidate view."""
    return _ADAPTERS[raw.kind](raw)


def normalize_all(payloads: Iterable[Any]) -> List[NormalizedCandidate]:
    return [normalize(parse_raw_candidate(payload)) for payload in payloads]


def platform_for_source(source: str) -> str:
    return _SOURCE_PLATFORMS.get(_clean(source).lower(), "UserSubmission")


def project_source_fields(candidate: NormalizedCandidate) -> SourceFields:
    """Typed metadata carried from a candidate onto its curated drafts."""
    images = [PromptImage(url=url, label="gallery") for url in candidate.image_urls if _clean(url)]
    author = {"name": candidate.author or "Community", "platform": platform_for_source(candidate.source)}
    if candidate.author_url:
        author["url"] = candidate.author_url
    return SourceFields(
        author=PromptAuthor(**author),
        stats=PromptStats(views=0, copies=0, likes=max(0, int(candidate.engagement or 0))),
        images=images or None,
        original_source_url=candidate.url,
        created_at=candidate.created_at,
    )
