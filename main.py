"""CLI entrypoint for the prompt curation pipeline."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from rich.table import Table

from config import Settings
from curation.audit import AuditAdvisor, apply_audit_plan
from curation.report import build_report, render_report_markdown
from curation.runner import CurationPipeline
from llm import build_provider_chain
from storage import AuditPlanStore, CorpusStore, load_raw_candidates, write_report
from utils import console, setup_logger
from utils.exceptions import (
    CorpusLoadError,
    LLMError,
    MalformedResponseError,
    MissingCredentialsError,
    SafetyAbortError,
    StorageError,
)

logger = logging.getLogger(__name__)


async def run_clean(settings: Settings) -> int:
    chain = build_provider_chain(settings.providers)
    try:
        summary = await CurationPipeline(settings, chain).run()
    finally:
        await chain.aclose()
    console.print(summary.to_table())
    return 0


async def run_audit(settings: Settings) -> int:
    chain = build_provider_chain(settings.providers)
    try:
        corpus = await CorpusStore(settings.storage.corpus_path).load()
        if not corpus:
            logger.warning("Corpus is empty, nothing to audit")
            return 0
        advisor = AuditAdvisor(
            chain,
            AuditPlanStore(settings.storage.audit_plan_path),
            settings.storage.reports_path,
            max_records=settings.pipeline.audit_max_records,
        )
        plan = await advisor.run(corpus)
    finally:
        await chain.aclose()
    console.print(f"[bold]{len(plan.issues)} issues[/bold] proposed. Run [cyan]audit-apply[/cyan] to execute the plan.")
    return 0


async def run_audit_apply(settings: Settings) -> int:
    store = CorpusStore(settings.storage.corpus_path, min_ratio=settings.pipeline.min_shrink_ratio)
    result = await apply_audit_plan(store, AuditPlanStore(settings.storage.audit_plan_path))
    if result.plan_found:
        console.print(f"Removed [bold]{result.removed}[/bold] records, {result.remaining} remaining.")
    return 0


async def run_report(settings: Settings) -> int:
    corpus = await CorpusStore(settings.storage.corpus_path).load()
    _, counts = await load_raw_candidates(settings.storage.source_paths())
    report = build_report(corpus, counts)

    table = Table(title=f"Corpus: {report.total} prompts")
    table.add_column("Source", style="cyan")
    table.add_column("Kept", justify="right")
    table.add_column("Raw", justify="right")
    table.add_column("Yield", justify="right")
    for source, count in report.by_source.items():
        rate = report.source_yield(source)
        table.add_row(
            source,
            str(count),
            str(report.raw_by_source.get(source, 0)),
            f"{rate * 100:.0f}%" if rate is not None else "-",
        )
    console.print(table)
    for warning in report.warnings:
        logger.warning(warning)

    today = datetime.now(timezone.utc).date().isoformat()
    path = await write_report(
        settings.storage.reports_path / f"Scrape_Report_{today}.md",
        render_report_markdown(report),
    )
    logger.info("📄 Report saved to %s", path)
    return 0


COMMANDS = {
    "clean": run_clean,
    "audit": run_audit,
    "audit-apply": run_audit_apply,
    "report": run_report,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Prompt corpus curation CLI")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    parser.add_argument("--env-file", default=None, help=".env file to load (default: ./.env)")
    parser.add_argument("--data-dir", default=None, help="override PROMPT_CURATOR_DATA_DIR")
    parser.add_argument("--reports-dir", default=None, help="override PROMPT_CURATOR_REPORTS_DIR")
    parser.add_argument("--log-file", default=None, help="also log to logs/<name>")

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("clean", help="normalize, dedup, extract and merge new candidates")
    sub.add_parser("audit", help="propose delete/merge actions for the corpus")
    sub.add_parser("audit-apply", help="apply and consume the audit plan")
    sub.add_parser("report", help="write the corpus summary report")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logger(level=logging.DEBUG if args.verbose else logging.INFO, log_file=args.log_file)

    settings = Settings.load_from_env_file(Path(args.env_file) if args.env_file else None)
    if args.data_dir:
        settings.storage.data_dir = args.data_dir
    if args.reports_dir:
        settings.storage.reports_dir = args.reports_dir

    try:
        return asyncio.run(COMMANDS[args.command](settings))
    except MissingCredentialsError as exc:
        logger.error("❌ %s", exc)
        return 1
    except SafetyAbortError as exc:
        logger.error("❌ SAFETY STOP: %s", exc.message)
        return 1
    except CorpusLoadError as exc:
        logger.error("❌ %s", exc)
        return 1
    except (LLMError, MalformedResponseError, StorageError) as exc:
        logger.error("❌ %s failed: %s", args.command, exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
