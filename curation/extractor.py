"""Extraction orchestrator: batches candidates through the provider chain."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

from pydantic import ValidationError

from config.settings import PipelineSettings
from core import (
    CuratedPrompt,
    ExtractedPrompt,
    NormalizedCandidate,
    Part,
    RejectionRecord,
    SystemInstruction,
    Turn,
)
from curation.identity import assign_id, stable_input_for
from curation.model_compat import primary_modality, resolve_compatible_models
from curation.normalize import project_source_fields
from curation.prompts import TAG_DENYLIST, build_extraction_messages, minify_batch
from curation.response_parser import parse_extraction_response
from llm import ProviderChain
from utils.exceptions import LLMError, MalformedResponseError

logger = logging.getLogger(__name__)

IMPLICIT_REJECTION_REASON = "discarded without explanation"
EMPTY_PROMPT_REASON = "empty prompt text"
REQUIRED_TAGS = 3

_DEFAULT_TAGS = {
    "image": ("image-generation", "image-editing", "creative"),
    "video": ("video-generation", "creative", "community"),
    "text": ("text", "productivity", "community"),
}


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def low_confidence_reason(score: float) -> str:
    return f"low confidence ({score:g})"


def _has_prompt_text(item: ExtractedPrompt) -> bool:
    return bool((item.user_prompt or "").strip() or (item.system_instruction or "").strip())


@dataclass
class Reconciliation:
    """Partition of the sent batch indices plus the items behind each decision."""

    accepted: List[int] = field(default_factory=list)
    explicitly_rejected: List[int] = field(default_factory=list)
    implicitly_rejected: List[int] = field(default_factory=list)
    kept_items: List[ExtractedPrompt] = field(default_factory=list)
    rejected_items: List[ExtractedPrompt] = field(default_factory=list)
    ignored_items: List[ExtractedPrompt] = field(default_factory=list)


def reconcile(sent_count: int, items: Sequence[ExtractedPrompt], threshold: float) -> Reconciliation:
    """
    Match returned items back to the sent indices.

    An index is accepted when at least one item for it scores above ``threshold``
    and carries prompt text, explicitly rejected when items came back but none
    passed, and implicitly rejected when nothing came back for it.
    """
    result = Reconciliation()
    by_index: Dict[int, List[ExtractedPrompt]] = {}
    for item in items:
        if not 0 <= item.batch_index < sent_count:
            logger.warning("Ignoring item with out-of-range batchIndex %s: %r", item.batch_index, item.title)
            result.ignored_items.append(item)
            continue
        by_index.setdefault(item.batch_index, []).append(item)

    for index in range(sent_count):
        returned = by_index.get(index, [])
        if not returned:
            result.implicitly_rejected.append(index)
            continue

        passed = False
        for item in returned:
            if item.confidence_score > threshold and _has_prompt_text(item):
                result.kept_items.append(item)
                passed = True
            else:
                result.rejected_items.append(item)

        if passed:
            result.accepted.append(index)
        else:
            result.explicitly_rejected.append(index)

    return result


def normalize_tags(tags: Sequence[str], compatible_models: Sequence[str]) -> List[str]:
    """Lowercase, dedupe, drop denylisted terms, keep 3 and pad from modality defaults."""
    cleaned: List[str] = []
    for tag in tags or []:
        value = "-".join(str(tag or "").strip().lower().lstrip("#").split())
        if not value or value in TAG_DENYLIST or value in cleaned:
            continue
        cleaned.append(value)
        if len(cleaned) == REQUIRED_TAGS:
            return cleaned

    for default in _DEFAULT_TAGS[primary_modality(compatible_models)]:
        if len(cleaned) == REQUIRED_TAGS:
            break
        if default not in cleaned:
            cleaned.append(default)
    return cleaned


def build_draft(
    candidate: NormalizedCandidate,
    item: ExtractedPrompt,
    split_index: int = 0,
    now: Optional[str] = None,
) -> CuratedPrompt:
    """
    构建 CuratedPrompt 草稿

    Args:
        candidate: 原始候选 (提供来源元数据与稳定 id 输入)
        item: LLM 抽取结果
        split_index: 同一候选拆出的第 n 个额外条目 (0 为第一个)
        now: 时间戳 (测试注入)
    """
    now = now or _utc_now()
    title = item.title.strip() or candidate.title or "Untitled prompt"
    description = (item.description or "").strip()
    models = resolve_compatible_models(title, description)
    source_fields = project_source_fields(candidate)

    stable_input = stable_input_for(candidate, title, item.user_prompt)
    if split_index:
        stable_input = f"{stable_input}#{split_index}"

    record: Dict[str, Any] = {
        "id": assign_id(candidate.source, stable_input),
        "title": title,
        "description": description,
        "tags": normalize_tags(item.tags, models),
        "compatible_models": models,
        "contents": [Turn(role="user", parts=[Part(text=item.user_prompt)])],
        "author": source_fields.author,
        "stats": source_fields.stats,
        "created_at": source_fields.created_at or now,
        "updated_at": now,
    }
    if (item.system_instruction or "").strip():
        record["system_instruction"] = SystemInstruction(parts=[Part(text=item.system_instruction)])
    if source_fields.original_source_url:
        record["original_source_url"] = source_fields.original_source_url
    if source_fields.images:
        record["images"] = source_fields.images
    return CuratedPrompt(**record)


@dataclass
class BatchStats:
    total_batches: int = 0
    processed: int = 0
    failed: int = 0
    fallback_used: int = 0
    repaired: int = 0


@dataclass
class ExtractionResult:
    drafts: List[CuratedPrompt] = field(default_factory=list)
    rejections: List[RejectionRecord] = field(default_factory=list)
    stats: BatchStats = field(default_factory=BatchStats)


class PromptExtractor:
    """
    Prompt 抽取编排器

    批次严格按顺序处理; 每批一次 provider chain 调用。
    单个批次失败 (调用失败 / 响应无法解析) 只会跳过该批次。
    """

    def __init__(
        self,
        chain: ProviderChain,
        settings: Optional[PipelineSettings] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.chain = chain
        self.settings = settings or PipelineSettings()
        self._sleep = sleep

    def _parse_items(self, payload: Dict[str, Any], provider: str) -> List[ExtractedPrompt]:
        raw_items = payload.get("prompts")
        if not isinstance(raw_items, list):
            raise MalformedResponseError("response has no prompts array", provider=provider)

        items: List[ExtractedPrompt] = []
        for raw in raw_items:
            try:
                items.append(ExtractedPrompt.model_validate(raw))
            except ValidationError as exc:
                logger.warning("Dropping malformed item from %s: %s", provider, exc.errors()[0].get("msg"))
        return items

    async def _extract_batch(
        self,
        batch: Sequence[NormalizedCandidate],
        result: ExtractionResult,
    ) -> None:
        messages = build_extraction_messages(minify_batch(batch, self.settings.snippet_max_chars))
        response = await self.chain.acomplete(messages, json_mode=True)
        if response.provider != self.chain.primary.provider:
            result.stats.fallback_used += 1

        parsed = parse_extraction_response(response.content)
        if not parsed.ok:
            raise MalformedResponseError(parsed.error or "unparseable response", provider=response.provider)
        if parsed.repaired:
            result.stats.repaired += 1
            logger.warning("Used repaired (truncated) response from %s", response.provider)

        items = self._parse_items(parsed.payload, response.provider)
        outcome = reconcile(len(batch), items, self.settings.confidence_threshold)

        now = _utc_now()
        for index in outcome.implicitly_rejected:
            candidate = batch[index]
            result.rejections.append(
                RejectionRecord(
                    source=candidate.source,
                    title=candidate.title,
                    text=candidate.body_text,
                    reason=IMPLICIT_REJECTION_REASON,
                    rejected_at=now,
                )
            )
            logger.info("   ✗ Discarded: %r (no output)", candidate.title[:60])

        for item in outcome.rejected_items:
            reason = low_confidence_reason(item.confidence_score)
            if item.confidence_score > self.settings.confidence_threshold:
                reason = EMPTY_PROMPT_REASON
            result.rejections.append(
                RejectionRecord(
                    source=batch[item.batch_index].source,
                    title=item.title,
                    text=item.description or item.user_prompt,
                    reason=reason,
                    confidence_score=item.confidence_score,
                    rejected_at=now,
                )
            )
            logger.info("   ✗ Rejected: %r (%s)", item.title[:60], reason)

        splits: Dict[int, int] = {}
        for item in outcome.kept_items:
            split_index = splits.get(item.batch_index, 0)
            splits[item.batch_index] = split_index + 1
            draft = build_draft(batch[item.batch_index], item, split_index=split_index, now=now)
            result.drafts.append(draft)
            logger.info("   ✓ Kept: %r (id=%s)", draft.title[:60], draft.id)

    async def extract(self, candidates: Sequence[NormalizedCandidate]) -> ExtractionResult:
        """
        抽取所有候选

        Returns:
            ExtractionResult (草稿, 拒绝记录, 批次统计)
        """
        result = ExtractionResult()
        size = self.settings.batch_size
        batches = [list(candidates[i:i + size]) for i in range(0, len(candidates), size)]
        result.stats.total_batches = len(batches)
        if not batches:
            return result

        logger.info("Extracting %d candidates in %d batches via %r", len(candidates), len(batches), self.chain)

        for number, batch in enumerate(batches, start=1):
            if number > 1 and self.settings.batch_delay_seconds > 0:
                logger.info("Waiting %.1fs to respect provider rate limits...", self.settings.batch_delay_seconds)
                await self._sleep(self.settings.batch_delay_seconds)

            logger.info("Processing batch %d/%d (%d items)", number, len(batches), len(batch))
            try:
                await self._extract_batch(batch, result)
            except (LLMError, MalformedResponseError) as exc:
                result.stats.failed += 1
                logger.error("Batch %d/%d skipped: %s", number, len(batches), exc)
                continue
            result.stats.processed += 1

        logger.info(
            "Extraction done: %d drafts, %d rejections, %d/%d batches ok, %d fallback",
            len(result.drafts),
            len(result.rejections),
            result.stats.processed,
            result.stats.total_batches,
            result.stats.fallback_used,
        )
        return result
