"""Identity-key and content-fingerprint deduplication against the corpus."""

from __future__ import annotations

import logging
import re
import uuid
from typing import Iterable, List, Optional, Sequence, Set
from urllib.parse import urlsplit

from core import CuratedPrompt, NormalizedCandidate

logger = logging.getLogger(__name__)

DEFAULT_FINGERPRINT_FLOOR = 10

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]")


def normalize_url(url: str) -> str:
    """Reduce a URL to scheme://host/path; query, fragment and trailing slash are dropped."""
    text = str(url or "").strip()
    if not text:
        return ""
    try:
        parts = urlsplit(text)
    except ValueError:
        return text
    if not parts.scheme or not parts.netloc:
        return text
    path = parts.path.rstrip("/")
    return f"{parts.scheme.lower()}://{parts.netloc.lower()}{path}"


def identity_key(url: Optional[str], title: Optional[str]) -> str:
    normalized = normalize_url(url or "")
    if normalized:
        return f"url:{normalized}"
    title_text = str(title or "").strip().lower()
    if title_text:
        return f"title:{title_text}"
    # untitled records must never collide with each other
    return f"random:{uuid.uuid4().hex}"


def content_fingerprint(text: str) -> str:
    return _NON_ALNUM_RE.sub("", str(text or "").lower())


def record_fingerprint(record: CuratedPrompt) -> str:
    return content_fingerprint(record.system_text() + record.contents_text())


class DedupIndex:
    """
    Accumulated identity keys and fingerprints for one run.

    A fingerprint only participates when it is longer than ``min_fingerprint_length``.
    """

    def __init__(self, min_fingerprint_length: int = DEFAULT_FINGERPRINT_FLOOR):
        self.min_fingerprint_length = int(min_fingerprint_length)
        self.identity_keys: Set[str] = set()
        self.fingerprints: Set[str] = set()

    def _substantial(self, fingerprint: str) -> bool:
        return len(fingerprint) > self.min_fingerprint_length

    def has_fingerprint(self, fingerprint: str) -> bool:
        return self._substantial(fingerprint) and fingerprint in self.fingerprints

    def register_fingerprint(self, fingerprint: str) -> None:
        if self._substantial(fingerprint):
            self.fingerprints.add(fingerprint)

    def register(self, key: str, fingerprint: str) -> None:
        self.identity_keys.add(key)
        self.register_fingerprint(fingerprint)

    def register_corpus(self, records: Iterable[CuratedPrompt]) -> None:
        for record in records:
            self.register(
                identity_key(record.original_source_url, record.title),
                record_fingerprint(record),
            )

    def admit(self, candidate: NormalizedCandidate) -> bool:
        """Check and register in one step; later candidates see earlier admissions."""
        key = identity_key(candidate.url, candidate.title)
        if key in self.identity_keys:
            logger.debug("Duplicate identity %s", key)
            return False

        fingerprint = content_fingerprint(candidate.fingerprint_text())
        if self.has_fingerprint(fingerprint):
            logger.debug("Duplicate content for %s", key)
            return False

        self.register(key, fingerprint)
        return True


def deduplicate(
    existing: Sequence[CuratedPrompt],
    candidates: Sequence[NormalizedCandidate],
    min_fingerprint_length: int = DEFAULT_FINGERPRINT_FLOOR,
) -> List[NormalizedCandidate]:
    """Return the candidates that add new information, in input order."""
    index = DedupIndex(min_fingerprint_length=min_fingerprint_length)
    index.register_corpus(existing)
    accepted = [candidate for candidate in candidates if index.admit(candidate)]
    logger.info(
        "Dedup: %d of %d candidates are new (corpus: %d records)",
        len(accepted),
        len(candidates),
        len(existing),
    )
    return accepted
