from __future__ import annotations

from conftest import reddit_post

from curation.normalize import normalize, normalize_all, parse_raw_candidate, project_source_fields
from models import GalleryCard, ManualEntry, RedditPost, StructuredPrompt, TweetPrompt


def _github_record(**extra):
    data = {
        "id": "github-issue-42",
        "title": "Cyberpunk city",
        "description": "Neon skyline prompt",
        "tags": ["image", "city", "neon"],
        "compatibleModels": ["gemini-2.5-flash-image"],
        "contents": [{"role": "user", "parts": [{"text": "A neon cyberpunk city at night, rain."}]}],
        "author": {"name": "octocat", "url": "https://github.com/octocat", "platform": "GitHub"},
        "originalSourceUrl": "https://github.com/org/prompts/issues/42",
        "stats": {"views": 0, "copies": 0, "likes": 7},
        "createdAt": "2025-02-01T00:00:00.000Z",
        "safetySettings": [{"category": "HARM_CATEGORY_HARASSMENT", "threshold": "BLOCK_NONE"}],
    }
    data.update(extra)
    return data


def test_parse_detects_each_collector_shape() -> None:
    assert isinstance(parse_raw_candidate(reddit_post(1)), RedditPost)
    assert isinstance(parse_raw_candidate(_github_record()), StructuredPrompt)
    assert isinstance(
        parse_raw_candidate({"id": "twitter-1", "promptText": "a cat", "source": "x-fxtwitter"}),
        TweetPrompt,
    )
    assert isinstance(
        parse_raw_candidate({"title": "Poem", "description": "Write a poem", "url": "https://g.dev/p"}),
        GalleryCard,
    )
    assert isinstance(parse_raw_candidate({"text": "free text"}), ManualEntry)


def test_parse_never_fails_on_garbage() -> None:
    for payload in (None, 42, "text", ["a"], {"stats": "lots", "source": "reddit", "title": 5}):
        candidate = normalize(parse_raw_candidate(payload))
        assert candidate.source in {"manual", "reddit"}


def test_reddit_post_body_and_metadata() -> None:
    candidate = normalize(parse_raw_candidate(reddit_post(3, imageUrls=["https://i.redd.it/a.png"])))

    assert candidate.source == "reddit"
    assert candidate.body_text.startswith("Act as a senior editor number 3")
    assert candidate.engagement == 13
    assert candidate.image_urls == ["https://i.redd.it/a.png"]
    assert candidate.created_at == "2025-01-02T03:04:05.000Z"
    assert not candidate.is_passthrough


def test_body_falls_back_to_title() -> None:
    candidate = normalize(parse_raw_candidate({"source": "reddit", "title": "Only a title", "content": ""}))
    assert candidate.body_text == "Only a title"


def test_tagged_structured_record_passes_through_unchanged() -> None:
    raw = _github_record()
    candidate = normalize(parse_raw_candidate(raw))

    assert candidate.source == "github"
    assert candidate.is_passthrough
    assert candidate.passthrough.to_record() == raw
    assert candidate.fingerprint_text() == "A neon cyberpunk city at night, rain."


def test_epoch_timestamps_keep_the_structured_shape() -> None:
    raw = parse_raw_candidate(_github_record(createdAt=1700000000, updatedAt=1700000000000))
    assert isinstance(raw, StructuredPrompt)

    candidate = normalize(raw)
    assert candidate.is_passthrough
    assert candidate.created_at == "2023-11-14T22:13:20.000Z"
    assert candidate.passthrough.created_at == "2023-11-14T22:13:20.000Z"
    assert candidate.passthrough.updated_at == "2023-11-14T22:13:20.000Z"
    assert candidate.passthrough.stats.likes == 7


def test_epoch_timestamps_on_reddit_and_tweets() -> None:
    post = normalize(parse_raw_candidate(reddit_post(1, date=1700000000.5)))
    tweet = parse_raw_candidate({"id": "twitter-9", "promptText": "a cat", "source": "x-fxtwitter", "createdAt": 1700000000})

    assert post.source == "reddit"
    assert post.created_at == "2023-11-14T22:13:20.500Z"
    assert isinstance(tweet, TweetPrompt)
    assert tweet.created_at == "2023-11-14T22:13:20.000Z"


def test_untagged_structured_record_goes_to_extraction() -> None:
    candidate = normalize(parse_raw_candidate(_github_record(tags=[])))

    assert not candidate.is_passthrough
    assert candidate.content_texts == ["A neon cyberpunk city at night, rain."]
    assert candidate.url == "https://github.com/org/prompts/issues/42"


def test_tweet_and_gallery_sources() -> None:
    tweet, card = normalize_all(
        [
            {
                "id": "twitter-9",
                "title": "Tweet",
                "promptText": "Turn this photo into a watercolor",
                "source": "x-fxtwitter",
                "author": {"name": "@artist", "platform": "Twitter"},
                "originalSourceUrl": "https://x.com/artist/status/9",
                "stats": {"likes": 120, "views": 4000, "retweets": 5},
            },
            {"title": "Trip planner", "description": "Plan a 3 day trip", "url": "https://ai.google.dev/g/trip"},
        ]
    )

    assert tweet.source == "x"
    assert tweet.body_text == "Turn this photo into a watercolor"
    assert tweet.engagement == 120
    assert card.source == "web"
    assert card.body_text == "Plan a 3 day trip"


def test_project_source_fields() -> None:
    candidate = normalize(parse_raw_candidate(reddit_post(5, imageUrls=["https://i.redd.it/b.png"])))
    fields = project_source_fields(candidate)

    assert fields.author.name == "user5"
    assert fields.author.platform == "Reddit"
    assert fields.stats.likes == 15
    assert fields.stats.views == 0
    assert [image.label for image in fields.images] == ["gallery"]
    assert fields.original_source_url == candidate.url


def test_project_source_fields_defaults() -> None:
    fields = project_source_fields(normalize(parse_raw_candidate({"text": "hello there"})))

    assert fields.author.name == "Community"
    assert fields.author.platform == "UserSubmission"
    assert fields.images is None
