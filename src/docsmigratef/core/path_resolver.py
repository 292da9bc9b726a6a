"""
路径解析模块 - 将版本参数转换为源目录、目标目录和交叉引用目录
"""
from pathlib import Path, PurePosixPath
from typing import Iterable, Tuple

from loguru import logger

from ..config import CROSS_REF_FOLDERS
from .errors import NotFoundError, ValidationError
from .models import MigrationRequest, ResolvedPaths


def normalize_version_folder(value: str, option: str) -> str:
    """校验并规范化版本文件夹参数

    Args:
        value: 命令行传入的版本文件夹，例如 v0.1.0 或 archived/v1.0.0
        option: 参数名，用于错误信息

    Returns:
        str: 使用正斜杠的相对路径
    """
    cleaned = (value or "").strip().strip('"\'').replace("\\", "/").strip("/")
    if not cleaned:
        raise ValidationError(f"{option} 不能为空")
    if Path(value.strip()).is_absolute():
        raise ValidationError(f"{option} 必须是文档根目录下的相对路径: {value}")
    parts = PurePosixPath(cleaned).parts
    if any(part in ("..", ".") for part in parts):
        raise ValidationError(f"{option} 不能包含 '.' 或 '..': {value}")
    return PurePosixPath(*parts).as_posix()


def _is_within(path: Path, parent: Path) -> bool:
    return path == parent or parent in path.parents


def resolve_paths(request: MigrationRequest,
                  cross_ref_folders: Iterable[str] = CROSS_REF_FOLDERS) -> ResolvedPaths:
    """计算源目录、目标目录和交叉引用目录

    Raises:
        ValidationError: 参数无效，或源与目标相同/互相嵌套
        NotFoundError: 源目录不存在
    """
    source = normalize_version_folder(request.source, "--source")
    target = normalize_version_folder(request.target, "--target")

    docs_dir = Path(request.docs_dir).resolve()
    source_dir = docs_dir / source
    target_dir = docs_dir / target

    if source_dir == target_dir:
        raise ValidationError(f"--source 与 --target 指向同一目录: {source}")
    if _is_within(target_dir, source_dir) or _is_within(source_dir, target_dir):
        raise ValidationError(f"--source 与 --target 不能互相嵌套: {source} / {target}")

    if not source_dir.is_dir():
        raise NotFoundError(source_dir)

    cross_ref_dirs: Tuple[Path, ...] = ()
    if not request.skip_cross_refs:
        cross_ref_dirs = tuple(
            docs_dir / name for name in cross_ref_folders
            if (docs_dir / name).is_dir()
        )

    logger.debug(f"源目录: {source_dir}")
    logger.debug(f"目标目录: {target_dir}")
    for directory in cross_ref_dirs:
        logger.debug(f"交叉引用目录: {directory}")

    return ResolvedPaths(source_dir=source_dir, target_dir=target_dir, cross_ref_dirs=cross_ref_dirs)
