"""
Storage Module
存储模块 - JSON 文件存储
"""
from .json_store import (
    JsonFileStore,
    CorpusStore,
    RejectionLog,
    AuditPlanStore,
    load_raw_candidates,
    read_json,
    write_json_atomic,
    write_report,
)

__all__ = [
    "JsonFileStore",
    "CorpusStore",
    "RejectionLog",
    "AuditPlanStore",
    "load_raw_candidates",
    "read_json",
    "write_json_atomic",
    "write_report",
]
