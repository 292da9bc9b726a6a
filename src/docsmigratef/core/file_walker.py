"""
文件遍历模块 - 递归收集源目录和交叉引用目录中的文件
"""
from pathlib import Path
from typing import Iterator, List

from loguru import logger

from ..config import MARKDOWN_SUFFIXES
from .errors import MigrationIOError
from .models import FileTask, ResolvedPaths


def is_markdown(path: Path) -> bool:
    return path.suffix.lower() in MARKDOWN_SUFFIXES


def _is_within(path: Path, parent: Path) -> bool:
    return parent in path.parents


def collect_files(root: Path) -> List[Path]:
    """递归收集 root 下所有文件（包括符号链接），返回相对路径

    符号链接不会被跟随，作为普通条目返回。任何目录读取失败都是致命错误。

    Raises:
        MigrationIOError: 目录不可读
    """
    collected = []
    pending = [root]
    while pending:
        directory = pending.pop()
        try:
            entries = list(directory.iterdir())
        except OSError as e:
            raise MigrationIOError(directory, e) from e

        for entry in entries:
            if entry.is_symlink() or not entry.is_dir():
                collected.append(entry.relative_to(root))
            else:
                pending.append(entry)

    # 按相对路径字典序排序，保证报告可复现
    collected.sort(key=lambda p: p.as_posix())
    return collected


def walk_tasks(paths: ResolvedPaths) -> Iterator[FileTask]:
    """为每个发现的文件生成 FileTask

    先遍历源目录（目标路径为目标目录下的同一相对路径），
    再遍历交叉引用目录（只处理 Markdown，原地更新）。
    每次调用都会重新遍历文件系统。
    """
    source_files = collect_files(paths.source_dir)
    logger.info(f"在 '{paths.source_dir}' 中找到 {len(source_files)} 个文件")

    for relative_path in source_files:
        source_path = paths.source_dir / relative_path
        yield FileTask(
            source_path=source_path,
            target_path=paths.target_dir / relative_path,
            relative_path=relative_path,
            raw_copy=source_path.is_symlink() or not is_markdown(source_path),
        )

    for cross_ref_dir in paths.cross_ref_dirs:
        # 源目录或目标目录位于交叉引用目录中时，不重复处理其中的文件
        files = [
            p for p in collect_files(cross_ref_dir)
            if is_markdown(p)
            and not (cross_ref_dir / p).is_symlink()
            and not _is_within(cross_ref_dir / p, paths.source_dir)
            and not _is_within(cross_ref_dir / p, paths.target_dir)
        ]
        logger.info(f"在交叉引用目录 '{cross_ref_dir.name}' 中找到 {len(files)} 个 Markdown 文件")
        for relative_path in files:
            path = cross_ref_dir / relative_path
            yield FileTask(
                source_path=path,
                target_path=path,
                relative_path=Path(cross_ref_dir.name) / relative_path,
                cross_ref=True,
            )
