from __future__ import annotations

from conftest import candidate, record

from curation.dedup import DedupIndex, content_fingerprint, deduplicate, identity_key, normalize_url
from curation.normalize import normalize_all


def test_normalize_url_drops_query_fragment_and_trailing_slash() -> None:
    assert normalize_url("https://Forum.Example/x/abc/?utm=1#top") == "https://forum.example/x/abc"
    assert normalize_url("  not a url  ") == "not a url"
    assert normalize_url("") == ""


def test_identity_key_prefers_url_then_title() -> None:
    assert identity_key("https://a.dev/p?x=1", "Title") == "url:https://a.dev/p"
    assert identity_key(None, "  My Title ") == "title:my title"
    first, second = identity_key(None, ""), identity_key(None, None)
    assert first.startswith("random:") and second.startswith("random:")
    assert first != second


def test_content_fingerprint() -> None:
    assert content_fingerprint("Act as a pirate!") == "actasapirate"
    assert content_fingerprint("ACT, as a PIRATE!!") == "actasapirate"


def test_same_url_with_different_query_is_rejected() -> None:
    existing = [record("forum-1", original_source_url="https://forum.example/x/abc")]
    fresh = candidate(1, url="https://forum.example/x/abc?ref=feed&page=2", title="Different title")

    assert deduplicate(existing, [fresh]) == []


def test_reworded_punctuation_is_a_content_duplicate() -> None:
    first = candidate(1, url="https://a.example/1", title="Pirate", body_text="Act as a pirate!")
    second = candidate(2, url="https://b.example/2", title="Pirate 2", body_text="ACT, as a PIRATE!!")

    accepted = deduplicate([], [first, second])
    assert accepted == [first]


def test_existing_record_content_blocks_repost() -> None:
    existing = [record("r-1", text="You are a Socratic tutor. Ask one question at a time.")]
    repost = candidate(9, body_text="you are a socratic tutor -- ask ONE question at a time")

    assert deduplicate(existing, [repost]) == []


def test_short_fingerprints_never_collide() -> None:
    # "hi there!!" -> "hithere" (7 chars), below the floor of 10
    first = candidate(1, body_text="hi there!!")
    second = candidate(2, body_text="Hi there")

    assert len(deduplicate([], [first, second])) == 2


def test_fingerprint_floor_is_strict() -> None:
    ten = "abcdefghij"
    eleven = "abcdefghijk"

    index = DedupIndex(min_fingerprint_length=10)
    assert index.admit(candidate(1, body_text=ten))
    assert index.admit(candidate(2, body_text=ten))
    assert index.admit(candidate(3, body_text=eleven))
    assert not index.admit(candidate(4, body_text=eleven))


def test_within_batch_identity_duplicates() -> None:
    posts = normalize_all(
        [
            {"source": "reddit", "title": "Same", "content": "first body text here", "url": "https://r.example/p/1"},
            {"source": "reddit", "title": "Same again", "content": "second body text here", "url": "https://r.example/p/1/"},
            {"source": "reddit", "title": "No url", "content": "third body text here"},
            {"source": "reddit", "title": "no URL ", "content": "fourth body text here"},
        ]
    )

    accepted = deduplicate([], posts)
    assert [c.title for c in accepted] == ["Same", "No url"]


def test_untitled_candidates_without_url_are_kept() -> None:
    first = candidate(1, url=None, title="", body_text="first long distinct prompt")
    second = candidate(2, url=None, title="", body_text="second long distinct prompt")

    assert len(deduplicate([], [first, second])) == 2


def test_accepted_set_has_unique_keys() -> None:
    existing = [record("e-1", original_source_url="https://forum.example/x/0")]
    pool = [candidate(n % 4) for n in range(12)]

    accepted = deduplicate(existing, pool)
    keys = [identity_key(c.url, c.title) for c in accepted]
    prints = [content_fingerprint(c.fingerprint_text()) for c in accepted]
    assert len(keys) == len(set(keys)) == 3
    assert len(prints) == len(set(prints))
