"""Deterministic record identifiers."""

from __future__ import annotations

import hashlib

from core import NormalizedCandidate

ID_HASH_LENGTH = 12
STABLE_PREFIX_CHARS = 50


def assign_id(source: str, stable_input: str) -> str:
    """``<source>-<md5(stable_input)[:12]>``, compatible with ids already in the corpus."""
    digest = hashlib.md5(str(stable_input).encode("utf-8", "surrogatepass")).hexdigest()
    return f"{str(source or 'manual').strip() or 'manual'}-{digest[:ID_HASH_LENGTH]}"


def stable_input_for(candidate: NormalizedCandidate, title: str = "", user_prompt: str = "") -> str:
    """
    Hash input chosen from fields that exist before extraction.

    URL first, then the candidate's own title plus a body prefix. Only a candidate
    with neither falls back to the extracted title and prompt.
    """
    url = str(candidate.url or "").strip()
    if url:
        return url
    own = candidate.title.strip() + candidate.body_text[:STABLE_PREFIX_CHARS]
    if own.strip():
        return own
    return str(title or "") + str(user_prompt or "")[:STABLE_PREFIX_CHARS]
