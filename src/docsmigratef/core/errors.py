"""
错误类型定义

所有致命错误都继承自 MigrationError，并携带对应的进程退出码。
"""
from pathlib import Path
from typing import Optional

from ..config import EXIT_CONFLICT_ABORT, EXIT_IO_ERROR, EXIT_VALIDATION


class MigrationError(Exception):
    """迁移过程中的致命错误"""
    exit_code = EXIT_VALIDATION


class ValidationError(MigrationError):
    """命令行参数缺失或无效"""
    exit_code = EXIT_VALIDATION


class NotFoundError(MigrationError):
    """源目录不存在"""
    exit_code = EXIT_VALIDATION

    def __init__(self, path: Path):
        self.path = path
        super().__init__(f"源目录不存在: {path}")


class ConflictAbortError(MigrationError):
    """冲突策略为 abort 时遇到了已存在的目标文件"""
    exit_code = EXIT_CONFLICT_ABORT

    def __init__(self, path: Path):
        self.path = path
        super().__init__(f"冲突: 目标文件已存在 {path}")


class MigrationIOError(MigrationError):
    """遍历或写入过程中的 I/O 错误"""
    exit_code = EXIT_IO_ERROR

    def __init__(self, path: Path, cause: Optional[OSError] = None):
        self.path = path
        self.cause = cause
        reason = cause.strerror or str(cause) if cause is not None else "I/O 错误"
        super().__init__(f"{path}: {reason}")


class MalformedFrontmatterWarning(UserWarning):
    """frontmatter 格式错误，按普通正文处理（可恢复）"""

    def __init__(self, path: Optional[Path], reason: str):
        self.path = path
        self.reason = reason
        location = str(path) if path is not None else "<content>"
        super().__init__(f"{location}: frontmatter 格式错误 ({reason})，已按普通内容处理")
