"""
Prompt Templates
抽取与审计所用的 LLM 指令
"""
from typing import Any, Dict, List, Sequence
import json

from core import CuratedPrompt, NormalizedCandidate
from llm import Message


# 不允许作为标签的词 (来源品牌词及泛化词)
TAG_DENYLIST = frozenset({"google", "gemini", "prompt", "official", "ai"})

SUGGESTED_TAGS = (
    "coding",
    "creative-writing",
    "productivity",
    "image-generation",
    "image-editing",
    "data-analysis",
    "marketing",
    "education",
    "fun",
)


EXTRACTION_SYSTEM_PROMPT = f"""You are an expert data cleaner for an AI prompt library.
Your task is to extract, clean and standardize AI prompts from raw scraped data.

For each item in RAW_DATA:
1. Analyze: is this a valid AI prompt or system instruction?
2. Discard anything that is not a usable prompt:
   - news ("Google released Gemini ...")
   - simple questions ("How do I use ...")
   - discussion threads, bug reports, truncated or garbage text
   Discarded items are simply left out of the output.
3. Extract for every kept prompt:
   - batchIndex: the batchIndex of the RAW_DATA item it came from (copy it exactly)
   - title: concise and catchy, 5-8 words
   - description: one or two sentences on what the prompt does
   - systemInstruction: the persona / system instruction if present, else omit
   - userPrompt: the exact text to copy-paste; merge parts that were split
   - tags: exactly 3 lowercase tags, e.g. {", ".join(SUGGESTED_TAGS)};
     never use {", ".join(sorted(TAG_DENYLIST))}
   - confidenceScore: 0-1, how sure you are this is a real, complete prompt
   - reasoning: one short sentence on why it was kept
4. If one item contains several distinct prompts, output each one separately
   with the same batchIndex.

Respond with JSON only, in this shape:
{{
  "prompts": [
    {{
      "batchIndex": 0,
      "title": "...",
      "description": "...",
      "systemInstruction": "...",
      "userPrompt": "...",
      "tags": ["...", "...", "..."],
      "confidenceScore": 0.95,
      "reasoning": "..."
    }}
  ],
  "summary": "Kept N of M items"
}}
"""


AUDIT_SYSTEM_PROMPT = """You are a database auditor for an AI prompt library.

LOOK FOR:
1. Semantic duplicates: entries on the same topic (group them, pick one to keep as mergeTargetId).
2. Low quality: entries like "test", "...", "See notebook".
3. News / noise: news without an actionable prompt.
4. Broken content: empty or cut-off prompts.

DO NOT FLAG:
- structured JSON prompts (Nano Banana style)
- system instructions
- multi-turn examples

issueType is one of DUPLICATE, LOW_QUALITY, NEWS_NOISE, BROKEN_CONTENT.
action is one of DELETE, MERGE, KEEP.

Respond with JSON only, keep the issues list short (max 20 issues):
{
  "issues": [
    {
      "issueType": "DUPLICATE",
      "targetIds": ["id1", "id2"],
      "description": "Brief reason",
      "action": "MERGE",
      "mergeTargetId": "id1"
    }
  ],
  "summary": "Found X duplicates, Y low quality items"
}
"""


def minify_batch(batch: Sequence[NormalizedCandidate], snippet_max_chars: int = 2000) -> List[Dict[str, Any]]:
    """
    压缩批次以节省 token

    Args:
        batch: 一个批次的候选
        snippet_max_chars: 正文截断长度

    Returns:
        [{batchIndex, source, title, text, url}]
    """
    limit = max(1, int(snippet_max_chars))
    return [
        {
            "batchIndex": index,
            "source": candidate.source,
            "title": candidate.title,
            "text": candidate.body_text[:limit],
            "url": candidate.url,
        }
        for index, candidate in enumerate(batch)
    ]


def build_extraction_messages(minified: Sequence[Dict[str, Any]]) -> List[Message]:
    payload = json.dumps(list(minified), ensure_ascii=False)
    return [
        Message.system(EXTRACTION_SYSTEM_PROMPT),
        Message.user(f"RAW_DATA ({len(minified)} items):\n{payload}"),
    ]


def minify_corpus(records: Sequence[CuratedPrompt], max_records: int = 300) -> List[Dict[str, str]]:
    """审计用: 仅保留 id / 标题 / 描述前 150 字符"""
    return [
        {
            "id": record.id,
            "t": record.title,
            "d": (record.description or "")[:150],
        }
        for record in list(records)[: max(1, int(max_records))]
    ]


def build_audit_messages(minified: Sequence[Dict[str, str]]) -> List[Message]:
    payload = json.dumps(list(minified), ensure_ascii=False)
    return [
        Message.system(AUDIT_SYSTEM_PROMPT),
        Message.user(f"DATASET ({len(minified)} prompts):\n{payload}"),
    ]
