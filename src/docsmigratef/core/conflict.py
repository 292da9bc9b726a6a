"""
冲突处理模块 - 目标文件已存在时决定覆盖、跳过还是中止
"""
from loguru import logger

from .errors import ValidationError
from .models import ConflictDecision, ConflictStrategy, FileTask


def parse_strategy(value: str) -> ConflictStrategy:
    """将命令行取值解析为 ConflictStrategy

    Raises:
        ValidationError: 未知的策略
    """
    try:
        return ConflictStrategy((value or "").strip().lower())
    except ValueError:
        choices = ", ".join(s.value for s in ConflictStrategy)
        raise ValidationError(f"未知的冲突策略: {value}（可选: {choices}）") from None


def resolve_conflict(task: FileTask, target_exists: bool, strategy: ConflictStrategy) -> ConflictDecision:
    """决定单个文件的写入方式

    目标不存在时总是覆盖（即新建），与策略无关。
    """
    if not target_exists:
        return ConflictDecision.OVERWRITE

    if strategy is ConflictStrategy.SOURCE_WINS:
        logger.debug(f"冲突（源优先）: {task.relative_path}")
        return ConflictDecision.OVERWRITE
    if strategy is ConflictStrategy.TARGET_WINS:
        logger.debug(f"冲突（目标优先）: {task.relative_path}")
        return ConflictDecision.SKIP
    logger.debug(f"冲突（中止）: {task.relative_path}")
    return ConflictDecision.ABORT
