"""
JSON File Stores
语料库 / 拒绝记录 / 审计计划 / 原始候选文件的读写
"""
from __future__ import annotations

import asyncio
import json
import logging
import os
import shutil
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, TypeVar

from pydantic import ValidationError

from core import AuditPlan, CuratedPrompt, RejectionRecord
from curation.merge import DEFAULT_MIN_RATIO, check_shrink
from utils.exceptions import CorpusLoadError, StorageError


logger = logging.getLogger(__name__)

R = TypeVar("R")


def write_json_atomic(path: Path, payload: Any) -> None:
    """写入临时文件后 os.replace, 读者永远看不到半个文件"""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            json.dump(payload, handle, ensure_ascii=False, indent=2)
            handle.write("\n")
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise


def read_json(path: Path) -> Any:
    with open(path, "r", encoding="utf-8") as handle:
        return json.load(handle)


class JsonFileStore:
    """单个 JSON 文件的基类"""

    def __init__(self, path: Path):
        self.path = Path(path)

    async def _run_blocking(self, func: Callable[..., R], *args, **kwargs) -> R:
        """在线程中执行阻塞文件 I/O"""
        return await asyncio.to_thread(func, *args, **kwargs)

    def exists(self) -> bool:
        return self.path.exists()


class CorpusStore(JsonFileStore):
    """
    正式语料库 (prompts.json)

    写入前检查规模缩减, 备份旧文件到 <corpus>.bak, 再原子替换
    """

    def __init__(self, path: Path, min_ratio: float = DEFAULT_MIN_RATIO):
        super().__init__(path)
        self.min_ratio = min_ratio

    @property
    def backup_path(self) -> Path:
        return self.path.with_name(self.path.name + ".bak")

    def _load(self) -> List[CuratedPrompt]:
        if not self.path.exists():
            logger.info("No corpus at %s, starting a new one", self.path)
            return []
        try:
            payload = read_json(self.path)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise CorpusLoadError(f"Cannot read corpus {self.path}: {exc}", {"path": str(self.path)}) from exc
        if not isinstance(payload, list):
            raise CorpusLoadError(
                f"Corpus {self.path} is not a JSON array",
                {"path": str(self.path), "type": type(payload).__name__},
            )

        records: List[CuratedPrompt] = []
        for position, item in enumerate(payload):
            try:
                records.append(CuratedPrompt.model_validate(item))
            except ValidationError as exc:
                raise CorpusLoadError(
                    f"Corpus record #{position} in {self.path} is invalid",
                    {"path": str(self.path), "errors": exc.error_count()},
                ) from exc
        return records

    async def load(self) -> List[CuratedPrompt]:
        """
        加载语料库

        Returns:
            记录列表 (文件不存在时为空)

        Raises:
            CorpusLoadError: 文件存在但无法解析
        """
        records = await self._run_blocking(self._load)
        logger.info("📦 Loaded %d corpus records from %s", len(records), self.path)
        return records

    def _save(self, payload: List[Dict[str, Any]]) -> None:
        if self.path.exists():
            shutil.copy2(self.path, self.backup_path)
        write_json_atomic(self.path, payload)

    async def save(self, records: Sequence[CuratedPrompt], previous_count: int) -> None:
        """
        保存语料库

        Raises:
            SafetyAbortError: 新规模低于 previous_count * min_ratio (不写任何文件)
        """
        check_shrink(previous_count, len(records), self.min_ratio)
        payload = [record.to_record() for record in records]
        await self._run_blocking(self._save, payload)
        logger.info("✅ Saved %d records to %s", len(payload), self.path)


class RejectionLog(JsonFileStore):
    """追加式拒绝记录 (跨运行累积)"""

    def _read_existing(self) -> List[Any]:
        if not self.path.exists():
            return []
        try:
            payload = read_json(self.path)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            payload = None
            reason = str(exc)
        else:
            reason = "not a JSON array"
        if isinstance(payload, list):
            return payload

        stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S")
        aside = self.path.with_name(f"{self.path.name}.corrupt-{stamp}")
        shutil.move(str(self.path), str(aside))
        logger.warning("Rejection log %s unreadable (%s), moved to %s", self.path, reason, aside)
        return []

    def _append(self, entries: List[Dict[str, Any]]) -> int:
        existing = self._read_existing()
        write_json_atomic(self.path, existing + entries)
        return len(existing) + len(entries)

    async def append(self, records: Sequence[RejectionRecord]) -> int:
        """追加记录, 返回日志总条数"""
        if not records:
            return 0
        entries = [record.to_record() for record in records]
        total = await self._run_blocking(self._append, entries)
        logger.info("📝 Logged %d rejections to %s (%d total)", len(entries), self.path, total)
        return total

    async def load(self) -> List[RejectionRecord]:
        payload = await self._run_blocking(self._read_existing)
        records: List[RejectionRecord] = []
        for item in payload:
            try:
                records.append(RejectionRecord.model_validate(item))
            except ValidationError:
                logger.debug("Skipping malformed rejection entry: %r", item)
        return records


class AuditPlanStore(JsonFileStore):
    """审计计划文件 (audit_plan.json)"""

    def _load(self) -> Optional[AuditPlan]:
        if not self.path.exists():
            return None
        try:
            return AuditPlan.model_validate(read_json(self.path))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError, ValidationError) as exc:
            raise StorageError(f"Cannot read audit plan {self.path}: {exc}", {"path": str(self.path)}) from exc

    async def load(self) -> Optional[AuditPlan]:
        return await self._run_blocking(self._load)

    async def save(self, plan: AuditPlan) -> None:
        payload = plan.model_dump(mode="json", by_alias=True, exclude_none=True)
        await self._run_blocking(write_json_atomic, self.path, payload)

    async def delete(self) -> None:
        await self._run_blocking(self.path.unlink, missing_ok=True)


def _load_source_file(path: Path) -> Optional[List[Any]]:
    if not path.exists():
        logger.warning("⚠️ %s not found (skipping)", path.name)
        return None
    try:
        payload = read_json(path)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        logger.warning("⚠️ Could not parse %s (skipping): %s", path.name, exc)
        return None
    if not isinstance(payload, list):
        logger.warning("⚠️ %s is not a JSON array (skipping)", path.name)
        return None
    return payload


async def load_raw_candidates(paths: Sequence[Path]) -> Tuple[List[Any], Dict[str, int]]:
    """
    读取各采集器输出文件

    Returns:
        (全部原始候选, {文件名: 条数}); 缺失或损坏的文件计为 0
    """
    candidates: List[Any] = []
    counts: Dict[str, int] = {}
    for path in paths:
        path = Path(path)
        payload = await asyncio.to_thread(_load_source_file, path)
        counts[path.name] = len(payload or [])
        if payload:
            candidates.extend(payload)
            logger.info("📥 Loaded %d candidates from %s", len(payload), path.name)
    return candidates, counts


def _write_text(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


async def write_report(path: Path, text: str) -> Path:
    """保存 Markdown 报告"""
    path = Path(path)
    await asyncio.to_thread(_write_text, path, text)
    return path
