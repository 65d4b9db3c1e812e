"""Advisory audit pass over the corpus and the apply pass that consumes its plan."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Set

from pydantic import ValidationError

from core import AuditIssue, AuditPlan, CuratedPrompt
from curation.model_compat import primary_modality
from curation.prompts import build_audit_messages, minify_corpus
from curation.response_parser import parse_audit_response
from llm import ProviderChain
from storage import AuditPlanStore, CorpusStore, write_report
from utils.exceptions import MalformedResponseError

logger = logging.getLogger(__name__)


def plan_removals(plan: AuditPlan) -> Set[str]:
    """DELETE removes every target; MERGE removes every target except mergeTargetId."""
    removals: Set[str] = set()
    for issue in plan.issues:
        if issue.action == "DELETE":
            removals.update(issue.target_ids)
        elif issue.action == "MERGE":
            if not issue.merge_target_id:
                logger.warning("MERGE issue without mergeTargetId ignored: %s", issue.description)
                continue
            removals.update(tid for tid in issue.target_ids if tid != issue.merge_target_id)
    return removals


def render_audit_report(plan: AuditPlan, corpus: Sequence[CuratedPrompt], plan_path: Optional[Path] = None) -> str:
    """Markdown preview of a plan, with a snippet for every affected record."""
    by_id: Dict[str, CuratedPrompt] = {record.id: record for record in corpus}
    today = datetime.now(timezone.utc).date().isoformat()
    lines = [
        f"# Prompt Audit Report ({today})",
        "",
        f"> Review this report. If agreed, run `python main.py audit-apply` to execute "
        f"the changes in `{plan_path.name if plan_path else 'audit_plan.json'}`.",
        "",
        f"**Summary**: {plan.summary}",
        "",
        f"## Issues Found ({len(plan.issues)})",
    ]
    for issue in plan.issues:
        lines.append(f"### [{issue.issue_type}] {issue.description}")
        lines.append(f"- **Proposed Action**: `{issue.action}`")
        if issue.merge_target_id:
            lines.append(f"- **Merge Target (Keep)**: `{issue.merge_target_id}`")
        lines.append("- **Affected Items**:")
        for target_id in issue.target_ids:
            record = by_id.get(target_id)
            if record is None:
                lines.append(f"  - `[{target_id}]` (unknown): \"Unknown\"")
                continue
            snippet = (record.description or record.title or "")[:50].replace("\n", " ")
            modality = primary_modality(record.compatible_models)
            lines.append(f"  - `[{target_id}]` ({modality}): \"{snippet}...\"")
        lines.append("")
        lines.append("---")
    return "\n".join(lines) + "\n"


class AuditAdvisor:
    """
    审计顾问

    只产出计划 (audit_plan.json) 与预览报告, 不修改语料库
    """

    def __init__(
        self,
        chain: ProviderChain,
        plan_store: AuditPlanStore,
        reports_dir: Path,
        max_records: int = 300,
    ):
        self.chain = chain
        self.plan_store = plan_store
        self.reports_dir = Path(reports_dir)
        self.max_records = max_records

    def _parse_plan(self, text: str, provider: str) -> AuditPlan:
        parsed = parse_audit_response(text)
        if not parsed.ok:
            raise MalformedResponseError(parsed.error or "unparseable audit response", provider=provider)

        issues: List[AuditIssue] = []
        for raw in parsed.payload.get("issues") or []:
            try:
                issues.append(AuditIssue.model_validate(raw))
            except ValidationError as exc:
                logger.warning("Dropping malformed audit issue: %s", exc.errors()[0].get("msg"))
        return AuditPlan(issues=issues, summary=str(parsed.payload.get("summary") or ""))

    async def run(self, corpus: Sequence[CuratedPrompt]) -> AuditPlan:
        """
        运行审计

        Raises:
            LLMError: 所有提供商都失败
            MalformedResponseError: 响应无法解析
        """
        minified = minify_corpus(corpus, self.max_records)
        logger.info("🕵️ Auditing %d of %d records via %r", len(minified), len(corpus), self.chain)

        response = await self.chain.acomplete(build_audit_messages(minified), json_mode=True)
        plan = self._parse_plan(response.content, response.provider)
        logger.info("Audit complete: %d issues (%s)", len(plan.issues), plan.summary)

        await self.plan_store.save(plan)
        report_path = self.reports_dir / f"Audit_Report_{datetime.now(timezone.utc).date().isoformat()}.md"
        report = render_audit_report(plan, corpus, self.plan_store.path)
        await write_report(report_path, report)

        logger.info("📄 Preview report: %s", report_path)
        logger.info("🤖 Action plan: %s", self.plan_store.path)
        return plan


@dataclass
class ApplyResult:
    plan_found: bool
    removed: int = 0
    remaining: int = 0


async def apply_audit_plan(store: CorpusStore, plan_store: AuditPlanStore) -> ApplyResult:
    """
    执行审计计划

    Raises:
        CorpusLoadError: 语料库无法读取
        SafetyAbortError: 删除后规模低于阈值 (计划文件保留)
    """
    plan = await plan_store.load()
    if plan is None:
        logger.warning("No audit plan at %s; run the audit first", plan_store.path)
        return ApplyResult(plan_found=False)

    corpus = await store.load()
    removals = plan_removals(plan)
    kept = [record for record in corpus if record.id not in removals]
    removed = len(corpus) - len(kept)
    logger.info("Plan has %d issues; removing %d of %d records", len(plan.issues), removed, len(corpus))

    if removed:
        await store.save(kept, previous_count=len(corpus))
    else:
        logger.info("No changes were necessary")

    await plan_store.delete()
    logger.info("🗑️ Consumed and deleted %s", plan_store.path)
    return ApplyResult(plan_found=True, removed=removed, remaining=len(kept))
