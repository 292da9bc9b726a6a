"""
写入模块 - 将转换结果写入磁盘，或在试运行时只记录计划变更
"""
import difflib
import os
import shutil
from pathlib import Path

from loguru import logger

from .errors import MigrationIOError


class DryRunViolation(RuntimeError):
    """试运行模式下尝试修改文件系统"""


class DocWriter:
    """文档写入器

    所有会修改文件系统的操作都经过 _ensure_live 检查，
    试运行模式下调用它们会直接抛出 DryRunViolation。
    """

    def __init__(self, dry_run: bool = False):
        self.dry_run = dry_run

    def _ensure_live(self, path: Path):
        if self.dry_run:
            raise DryRunViolation(f"试运行模式下不允许修改文件系统: {path}")

    def write_text(self, path: Path, content: str):
        """写入文本文件，按需创建父目录"""
        self._ensure_live(path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            # newline="" 保留原始换行符
            with open(path, "w", encoding="utf-8", newline="") as f:
                f.write(content)
        except OSError as e:
            raise MigrationIOError(path, e) from e
        logger.debug(f"已写入: {path}")

    def copy_raw(self, source: Path, target: Path):
        """原样复制文件，符号链接复制为符号链接"""
        self._ensure_live(target)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            if target.is_symlink() or (source.is_symlink() and target.exists()):
                target.unlink()
            shutil.copy2(source, target, follow_symlinks=False)
        except OSError as e:
            raise MigrationIOError(target, e) from e
        logger.debug(f"已复制: {source} -> {target}")

    def delete_tree(self, path: Path):
        """递归删除目录"""
        self._ensure_live(path)
        try:
            shutil.rmtree(path)
        except OSError as e:
            raise MigrationIOError(path, e) from e
        logger.info(f"已删除源目录: {path}")


def read_text(path: Path) -> str:
    """读取文本文件，保留原始换行符"""
    try:
        with open(path, "r", encoding="utf-8", newline="") as f:
            return f.read()
    except OSError as e:
        raise MigrationIOError(path, e) from e


def unified_diff(original: str, transformed: str, relative_path: Path) -> str:
    """生成试运行报告用的统一 diff"""
    name = Path(relative_path).as_posix()
    return "".join(difflib.unified_diff(
        original.splitlines(keepends=True),
        transformed.splitlines(keepends=True),
        fromfile=f"a/{name}",
        tofile=f"b/{name}",
    ))


def target_exists(path: Path) -> bool:
    return os.path.lexists(path)
