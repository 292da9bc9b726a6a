"""docsmigratef 数据模型"""

import re
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional, Tuple, Union

from ..config import DEFAULT_DOCS_DIR
from .errors import ConflictAbortError


class ConflictStrategy(str, Enum):
    """目标文件已存在时的处理策略"""
    SOURCE_WINS = "source-wins"
    TARGET_WINS = "target-wins"
    ABORT = "abort"


class ConflictDecision(str, Enum):
    """单个文件的冲突处理结果"""
    OVERWRITE = "overwrite"
    SKIP = "skip"
    ABORT = "abort"


_LEADING_V = re.compile(r"^v(?=\d)")


def version_label(folder: str) -> str:
    """版本文件夹参数的最后一段，例如 archived/v1.0.0 -> v1.0.0"""
    return Path(folder).name


def version_number(folder: str) -> str:
    """去掉前缀 v 的版本号，例如 v0.1.0 -> 0.1.0"""
    return _LEADING_V.sub("", version_label(folder))


@dataclass(frozen=True)
class MigrationRequest:
    """一次调用的全部命令行参数，解析后不可修改"""
    source: str
    target: str
    dry_run: bool = False
    conflict_strategy: ConflictStrategy = ConflictStrategy.SOURCE_WINS
    delete_source: bool = False
    strip_evolution: bool = False
    skip_cross_refs: bool = False
    verbose: bool = False
    docs_dir: Path = DEFAULT_DOCS_DIR


@dataclass(frozen=True)
class ResolvedPaths:
    """路径解析结果"""
    source_dir: Path
    target_dir: Path
    cross_ref_dirs: Tuple[Path, ...] = ()


@dataclass(frozen=True)
class FileTask:
    """单个待迁移文件"""
    source_path: Path
    target_path: Path
    relative_path: Path
    raw_copy: bool = False  # 非 Markdown 或符号链接，原样复制
    cross_ref: bool = False  # 交叉引用文件夹中的文件，原地更新


@dataclass(frozen=True)
class TransformResult:
    """内容转换结果"""
    original_content: str
    transformed_content: str
    changed: bool
    fired_rules: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Continue:
    """继续处理下一个文件"""


@dataclass(frozen=True)
class AbortRun:
    """在冲突处停止整个迁移"""
    path: Path


StepOutcome = Union[Continue, AbortRun]


@dataclass
class PlannedChange:
    """单个文件的计划变更（用于报告和试运行）"""
    relative_path: Path
    action: str  # copy / overwrite / skip / update / raw-copy
    fired_rules: Tuple[str, ...] = ()
    diff: str = ""


@dataclass
class MigrationReport:
    """整个迁移过程的汇总结果"""
    dry_run: bool = False
    files_scanned: int = 0
    files_changed: int = 0
    files_copied: int = 0
    files_overwritten: int = 0
    files_skipped: int = 0
    files_raw_copied: int = 0
    conflicts: int = 0
    cross_refs_updated: int = 0
    rule_counts: Counter = field(default_factory=Counter)
    warnings: List[str] = field(default_factory=list)
    planned: List[PlannedChange] = field(default_factory=list)
    aborted_at: Optional[Path] = None
    source_deleted: bool = False

    @property
    def aborted(self) -> bool:
        return self.aborted_at is not None

    def record(self, change: PlannedChange):
        """记录一个文件的处理结果并更新计数"""
        self.planned.append(change)
        if change.fired_rules:
            self.files_changed += 1
            self.rule_counts.update(change.fired_rules)
        if change.action == "copy":
            self.files_copied += 1
        elif change.action == "overwrite":
            self.files_overwritten += 1
        elif change.action == "skip":
            self.files_skipped += 1
        elif change.action == "raw-copy":
            self.files_raw_copied += 1
        elif change.action == "update":
            self.cross_refs_updated += 1

    def raise_for_abort(self):
        """若迁移因冲突中止，抛出 ConflictAbortError"""
        if self.aborted_at is not None:
            raise ConflictAbortError(self.aborted_at)
