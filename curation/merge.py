"""Corpus merge and the destructive-shrink guard."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List, Sequence

from core import CuratedPrompt, Part, PromptAuthor, PromptStats, Turn
from curation.dedup import DEFAULT_FINGERPRINT_FLOOR, DedupIndex, record_fingerprint
from curation.identity import assign_id
from utils.exceptions import SafetyAbortError

logger = logging.getLogger(__name__)

DEFAULT_MIN_RATIO = 0.5
SEED_SOURCE_URL = "https://github.com/google-gemini/cookbook"
SEED_TITLE = "Advanced Coding Assistant"


def merge_corpus(
    existing: Sequence[CuratedPrompt],
    passthrough: Sequence[CuratedPrompt],
    cleaned: Sequence[CuratedPrompt],
    min_fingerprint_length: int = DEFAULT_FINGERPRINT_FLOOR,
) -> List[CuratedPrompt]:
    """
    existing + passthrough + cleaned, in that order.

    Existing records are never touched. New records whose id is already taken,
    whose prompt text repeats an earlier record, or which carry no text at all,
    are dropped. Split siblings share a source URL, so only ids and content
    fingerprints are checked here.
    """
    merged = list(existing)
    seen_ids = {record.id for record in merged}
    index = DedupIndex(min_fingerprint_length=min_fingerprint_length)
    index.register_corpus(merged)

    for record in list(passthrough) + list(cleaned):
        if record.id in seen_ids:
            logger.warning("Skipping %s: id already in corpus", record.id)
            continue
        if not record.has_text():
            logger.warning("Skipping %s: no systemInstruction, contents or description text", record.id)
            continue
        fingerprint = record_fingerprint(record)
        if index.has_fingerprint(fingerprint):
            logger.warning("Skipping %s: same prompt text as an earlier record", record.id)
            continue
        seen_ids.add(record.id)
        index.register_fingerprint(fingerprint)
        merged.append(record)

    return merged


def check_shrink(previous_count: int, new_count: int, min_ratio: float = DEFAULT_MIN_RATIO) -> None:
    """Raise SafetyAbortError when ``new_count < previous_count * min_ratio``."""
    if new_count < previous_count * min_ratio:
        raise SafetyAbortError(
            f"New corpus size ({new_count}) is below {min_ratio:.0%} of the existing "
            f"corpus ({previous_count}); refusing to write",
            previous_count=previous_count,
            new_count=new_count,
        )


def seed_record() -> CuratedPrompt:
    """The canonical example written into an otherwise empty corpus."""
    now = datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
    text = (
        "Act as an expert software engineer. Review the code I paste next, point out bugs "
        "and risky patterns, then propose a cleaner implementation with a short explanation."
    )
    return CuratedPrompt(
        id=assign_id("github", SEED_SOURCE_URL),
        title=SEED_TITLE,
        description="Act as an expert software engineer who reviews and improves code.",
        tags=["coding", "code-review", "productivity"],
        compatible_models=["gemini-2.5-flash", "gemini-2.0-flash", "gemini-2.5-pro"],
        contents=[Turn(role="user", parts=[Part(text=text)])],
        author=PromptAuthor(name="Google", url="https://github.com/google-gemini", platform="GitHub"),
        original_source_url=SEED_SOURCE_URL,
        stats=PromptStats(views=0, copies=0, likes=0),
        created_at=now,
        updated_at=now,
    )


def seed_corpus_if_empty(records: Sequence[CuratedPrompt]) -> List[CuratedPrompt]:
    merged = list(records)
    if not merged:
        logger.info("Corpus is empty, adding the %r example record", SEED_TITLE)
        merged.append(seed_record())
    return merged
