"""
Curation Module
整理流水线各阶段 (runner / audit 依赖 storage, 需按模块路径导入)
"""
from .normalize import normalize, normalize_all, parse_raw_candidate, project_source_fields
from .dedup import DedupIndex, content_fingerprint, deduplicate, identity_key, normalize_url
from .model_compat import (
    MODEL_CAPABILITIES,
    primary_modality,
    resolve_compatible_models,
)
from .identity import assign_id, stable_input_for
from .response_parser import ParseResult, parse_extraction_response, repair_truncated_json
from .extractor import ExtractionResult, PromptExtractor, Reconciliation, build_draft, reconcile
from .merge import check_shrink, merge_corpus, seed_corpus_if_empty
from .report import CorpusReport, build_report, render_report_markdown

__all__ = [
    "normalize",
    "normalize_all",
    "parse_raw_candidate",
    "project_source_fields",
    "DedupIndex",
    "content_fingerprint",
    "deduplicate",
    "identity_key",
    "normalize_url",
    "MODEL_CAPABILITIES",
    "primary_modality",
    "resolve_compatible_models",
    "assign_id",
    "stable_input_for",
    "ParseResult",
    "parse_extraction_response",
    "repair_truncated_json",
    "ExtractionResult",
    "PromptExtractor",
    "Reconciliation",
    "build_draft",
    "reconcile",
    "check_shrink",
    "merge_corpus",
    "seed_corpus_if_empty",
    "CorpusReport",
    "build_report",
    "render_report_markdown",
]
