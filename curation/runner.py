"""
Curation Pipeline
load → normalize → dedup → extract → merge → guarded save
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict

from rich.table import Table

from config.settings import Settings
from curation.dedup import deduplicate
from curation.extractor import BatchStats, ExtractionResult, PromptExtractor
from curation.merge import merge_corpus, seed_corpus_if_empty
from curation.normalize import normalize_all
from llm import ProviderChain
from storage import CorpusStore, RejectionLog, load_raw_candidates


logger = logging.getLogger(__name__)


@dataclass
class RunSummary:
    """一次 clean 运行的统计"""
    existing: int = 0
    raw_loaded: int = 0
    raw_by_file: Dict[str, int] = field(default_factory=dict)
    new_candidates: int = 0
    passthrough: int = 0
    sent_to_llm: int = 0
    drafts: int = 0
    rejections: int = 0
    final_total: int = 0
    saved: bool = False
    seeded: bool = False
    batches: BatchStats = field(default_factory=BatchStats)

    def to_table(self) -> Table:
        table = Table(title="Curation Run Summary")
        table.add_column("Metric", style="cyan")
        table.add_column("Value", justify="right")
        rows = [
            ("Existing records", self.existing),
            ("Raw candidates loaded", self.raw_loaded),
            ("New after dedup", self.new_candidates),
            ("Pass-through (structured)", self.passthrough),
            ("Sent to extraction", self.sent_to_llm),
            ("Batches ok / failed", f"{self.batches.processed} / {self.batches.failed}"),
            ("Fallback batches", self.batches.fallback_used),
            ("Drafts kept", self.drafts),
            ("Rejections logged", self.rejections),
            ("Final corpus size", self.final_total),
            ("Saved", "yes" if self.saved else "no"),
        ]
        for name, value in rows:
            table.add_row(name, str(value))
        return table


class CurationPipeline:
    """
    Prompt 整理流水线

    配置与提供商链在进程启动时构建, 显式传入
    """

    def __init__(
        self,
        settings: Settings,
        chain: ProviderChain,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.settings = settings
        self.chain = chain
        storage = settings.storage
        self.corpus_store = CorpusStore(storage.corpus_path, min_ratio=settings.pipeline.min_shrink_ratio)
        self.rejection_log = RejectionLog(storage.rejection_log_path)
        self.extractor = PromptExtractor(chain, settings.pipeline, sleep=sleep)

    async def run(self) -> RunSummary:
        """
        执行一次完整运行

        Raises:
            CorpusLoadError: 现有语料库无法读取
            SafetyAbortError: 新语料库规模缩减超过阈值
        """
        summary = RunSummary()

        corpus = await self.corpus_store.load()
        summary.existing = len(corpus)
        summary.final_total = len(corpus)

        payloads, counts = await load_raw_candidates(self.settings.storage.source_paths())
        summary.raw_loaded = len(payloads)
        summary.raw_by_file = counts
        if not payloads:
            logger.warning("No candidates loaded from any source file, nothing to do")
            return summary

        candidates = normalize_all(payloads)
        fresh = deduplicate(corpus, candidates, self.settings.pipeline.fingerprint_min_length)
        summary.new_candidates = len(fresh)

        passthrough = [candidate.passthrough for candidate in fresh if candidate.is_passthrough]
        to_extract = [candidate for candidate in fresh if not candidate.is_passthrough]
        summary.passthrough = len(passthrough)
        summary.sent_to_llm = len(to_extract)
        logger.info("   - Structured & tagged (skipping extraction): %d", len(passthrough))
        logger.info("   - Unstructured or untagged (sending to extraction): %d", len(to_extract))

        result = ExtractionResult()
        if to_extract:
            result = await self.extractor.extract(to_extract)
        summary.batches = result.stats
        summary.drafts = len(result.drafts)
        summary.rejections = len(result.rejections)

        await self.rejection_log.append(result.rejections)

        merged = merge_corpus(corpus, passthrough, result.drafts, self.settings.pipeline.fingerprint_min_length)
        seeded = seed_corpus_if_empty(merged)
        summary.seeded = len(seeded) > len(merged)
        summary.final_total = len(seeded)

        if len(seeded) == len(corpus):
            logger.info("No new records, corpus unchanged")
            return summary

        await self.corpus_store.save(seeded, previous_count=len(corpus))
        summary.saved = True
        return summary
