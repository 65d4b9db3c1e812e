"""Corpus summary report: source yield, sub-sources, modality and tags."""

from __future__ import annotations

import re
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from core import CuratedPrompt
from curation.model_compat import primary_modality
from models import PLATFORM_SOURCES

_REDDIT_SUB_RE = re.compile(r"reddit\.com/r/([^/?#]+)", re.IGNORECASE)
_GITHUB_REPO_RE = re.compile(r"github\.com/([^/?#]+/[^/?#]+)", re.IGNORECASE)

# source file stem -> source tag
FILE_SOURCES = {
    "reddit": "reddit",
    "github": "github",
    "x": "x",
    "google_gallery": "web",
    "aistudio": "web",
}

LOW_YIELD_RAW_MIN = 100
LOW_YIELD_RATIO = 0.1


def record_source(record: CuratedPrompt) -> str:
    platform = str((record.author.platform if record.author else None) or "").strip().lower()
    if platform:
        return PLATFORM_SOURCES.get(platform, platform)
    url = str(record.original_source_url or "").lower()
    if "reddit" in url:
        return "reddit"
    if "github" in url:
        return "github"
    return "other"


def record_sub_source(record: CuratedPrompt, source: str) -> Optional[str]:
    url = str(record.original_source_url or "")
    if source == "reddit":
        match = _REDDIT_SUB_RE.search(url)
        return f"r/{match.group(1)}" if match else None
    if source == "github":
        match = _GITHUB_REPO_RE.search(url)
        return match.group(1) if match else None
    return None


def raw_counts_by_source(file_counts: Mapping[str, int]) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for name, count in file_counts.items():
        stem = Path(name).stem
        source = FILE_SOURCES.get(stem, stem)
        counts[source] = counts.get(source, 0) + int(count or 0)
    return counts


@dataclass
class CorpusReport:
    total: int = 0
    raw_by_source: Dict[str, int] = field(default_factory=dict)
    by_source: Dict[str, int] = field(default_factory=dict)
    by_sub_source: Dict[str, int] = field(default_factory=dict)
    by_modality: Dict[str, int] = field(default_factory=lambda: {"image": 0, "text": 0, "video": 0})
    top_tags: List[Tuple[str, int]] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def raw_total(self) -> int:
        return sum(self.raw_by_source.values())

    @property
    def yield_rate(self) -> Optional[float]:
        if not self.raw_total:
            return None
        return self.total / self.raw_total

    def source_yield(self, source: str) -> Optional[float]:
        raw = self.raw_by_source.get(source, 0)
        if raw <= 0:
            return None
        return self.by_source.get(source, 0) / raw


def build_report(corpus: Sequence[CuratedPrompt], raw_counts: Mapping[str, int], top_n: int = 10) -> CorpusReport:
    """
    统计语料库

    Args:
        corpus: 当前语料库
        raw_counts: {源文件名: 原始候选条数}
        top_n: 子来源与标签的展示数量
    """
    report = CorpusReport(total=len(corpus), raw_by_source=raw_counts_by_source(raw_counts))
    sources: Counter = Counter()
    subs: Counter = Counter()
    tags: Counter = Counter()

    for record in corpus:
        source = record_source(record)
        sources[source] += 1
        sub = record_sub_source(record, source)
        if sub:
            subs[sub] += 1
        report.by_modality[primary_modality(record.compatible_models)] += 1
        tags.update(tag for tag in record.tags if tag)

    report.by_source = dict(sources.most_common())
    report.by_sub_source = dict(subs.most_common(top_n))
    report.top_tags = tags.most_common(top_n)

    reddit_raw = report.raw_by_source.get("reddit", 0)
    if reddit_raw > LOW_YIELD_RAW_MIN and report.by_source.get("reddit", 0) < reddit_raw * LOW_YIELD_RATIO:
        report.warnings.append(
            "Reddit yield is low (<10%). Consider loosening filters or fixing the extractor."
        )
    return report


def render_report_markdown(report: CorpusReport, generated_at: Optional[datetime] = None) -> str:
    generated_at = generated_at or datetime.now(timezone.utc)
    rate = f"{report.yield_rate * 100:.1f}%" if report.yield_rate is not None else "n/a"
    lines = [
        f"# Scraping Summary Report - {generated_at.date().isoformat()}",
        "",
        f"**Generated At**: {generated_at.isoformat(timespec='seconds')}",
        "",
        "## Overview",
        f"- **Total Prompts in DB**: {report.total}",
        f"- **Total Raw Candidates**: {report.raw_total}",
        f"- **Overall Yield Rate**: {rate} (Cleaned / Raw)",
        "",
        "## By Source (Production)",
    ]
    for source, count in report.by_source.items():
        source_rate = report.source_yield(source)
        suffix = f" (Yield: {source_rate * 100:.0f}%)" if source_rate is not None else ""
        lines.append(f"- **{source}**: {count}{suffix}")

    lines.extend(["", "## Top Data Contributors (Sub-Sources)"])
    lines.extend(f"- {name}: {count}" for name, count in report.by_sub_source.items())

    lines.extend([
        "",
        "## Modality & Topics",
        f"- **Image/Vision**: {report.by_modality.get('image', 0)}",
        f"- **Text/Code**: {report.by_modality.get('text', 0)}",
        f"- **Video**: {report.by_modality.get('video', 0)}",
        f"- **Top Tags**: {', '.join(tag for tag, _ in report.top_tags)}",
        "",
        "## Actionable Insights",
    ])
    if report.warnings:
        lines.extend(f"- ⚠️ {warning}" for warning in report.warnings)
    else:
        lines.append("- ✅ Stats look healthy.")
    return "\n".join(lines) + "\n"
