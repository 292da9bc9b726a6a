"""
迁移服务模块 - 整合路径解析、遍历、转换、冲突处理和写入
"""
from contextlib import closing
from typing import Iterable, Iterator, Optional

from loguru import logger
from rich.console import Console
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn, TimeElapsedColumn

from .conflict import resolve_conflict
from .file_walker import walk_tasks
from .models import (
    AbortRun,
    ConflictDecision,
    Continue,
    FileTask,
    MigrationReport,
    MigrationRequest,
    PlannedChange,
    ResolvedPaths,
    StepOutcome,
    TransformResult,
)
from .path_resolver import resolve_paths
from .transformer import RewriteOptions, transform_content
from .writer import DocWriter, read_text, target_exists, unified_diff


class MigrationService:
    """迁移服务类 - 按顺序处理每个文件，并在全部成功后才删除源目录"""

    def __init__(self, request: MigrationRequest, console: Console = None):
        self.request = request
        self.console = console or Console()
        self.options = RewriteOptions.from_request(request)
        self.writer = DocWriter(dry_run=request.dry_run)

    def run(self) -> MigrationReport:
        """执行迁移

        Returns:
            MigrationReport: 迁移汇总。因冲突中止时 aborted_at 为冲突路径。

        Raises:
            ValidationError / NotFoundError: 参数或源目录无效，此时没有任何文件操作
            MigrationIOError: 遍历或写入失败，已写入的文件不会回滚，源目录不会被删除
        """
        paths = resolve_paths(self.request)
        report = MigrationReport(dry_run=self.request.dry_run)

        with closing(self._track(walk_tasks(paths))) as tasks:
            for task in tasks:
                report.files_scanned += 1
                outcome = self.process_task(task, report)
                if isinstance(outcome, AbortRun):
                    report.aborted_at = outcome.path
                    logger.error(f"冲突: 目标文件已存在 '{outcome.path}'，迁移中止")
                    break

        # 只有全部文件处理完成才删除源目录
        if self.request.delete_source and not report.aborted:
            self._delete_source(paths, report)

        return report

    def process_task(self, task: FileTask, report: MigrationReport) -> StepOutcome:
        """处理单个文件，返回 Continue 或 AbortRun"""
        if task.cross_ref:
            return self._process_cross_ref(task, report)

        result = None if task.raw_copy else self._transform(task, report)
        exists = target_exists(task.target_path)
        # 转换在冲突判断之前进行，跳过时丢弃转换结果
        decision = resolve_conflict(task, exists, self.request.conflict_strategy)
        if exists:
            report.conflicts += 1

        if decision is ConflictDecision.ABORT:
            return AbortRun(task.target_path)

        if decision is ConflictDecision.SKIP:
            logger.info(f"跳过: {task.relative_path}（目标已存在）")
            report.record(PlannedChange(task.relative_path, "skip"))
            return Continue()

        if result is None:
            if not self.request.dry_run:
                self.writer.copy_raw(task.source_path, task.target_path)
            logger.info(f"原样复制: {task.relative_path}")
            report.record(PlannedChange(task.relative_path, "raw-copy"))
            return Continue()

        action = "overwrite" if exists else "copy"
        if not self.request.dry_run:
            self.writer.write_text(task.target_path, result.transformed_content)
        logger.info(f"{'覆盖' if exists else '复制'}: {task.relative_path}")
        report.record(self._planned(task, action, result))
        return Continue()

    def _process_cross_ref(self, task: FileTask, report: MigrationReport) -> StepOutcome:
        """交叉引用文件原地更新，只在内容变化时写入"""
        result = self._transform(task, report)
        if result is None or not result.changed:
            return Continue()
        if not self.request.dry_run:
            self.writer.write_text(task.target_path, result.transformed_content)
        logger.info(f"更新交叉引用: {task.relative_path}")
        report.record(self._planned(task, "update", result))
        return Continue()

    def _transform(self, task: FileTask, report: MigrationReport) -> Optional[TransformResult]:
        """读取并转换文件；无法按 UTF-8 解码时返回 None（按原样复制处理）"""
        try:
            content = read_text(task.source_path)
        except UnicodeDecodeError as e:
            warning = f"{task.relative_path}: 无法按 UTF-8 解码 ({e.reason})，按原样复制"
            logger.warning(warning)
            report.warnings.append(warning)
            return None

        result = transform_content(content, self.options, task.relative_path)
        report.warnings.extend(result.warnings)
        if result.fired_rules:
            logger.debug(f"{task.relative_path}: {', '.join(result.fired_rules)}")
        return result

    def _planned(self, task: FileTask, action: str, result: TransformResult) -> PlannedChange:
        diff = ""
        if self.request.dry_run and result.changed:
            diff = unified_diff(result.original_content, result.transformed_content, task.relative_path)
        return PlannedChange(task.relative_path, action, result.fired_rules, diff)

    def _delete_source(self, paths: ResolvedPaths, report: MigrationReport):
        if self.request.dry_run:
            logger.info(f"试运行: 将删除源目录 '{paths.source_dir}'")
            return
        self.writer.delete_tree(paths.source_dir)
        report.source_deleted = True

    def _track(self, tasks: Iterable[FileTask]) -> Iterator[FileTask]:
        """在非详细模式的终端中显示进度"""
        disabled = self.request.verbose or not self.console.is_terminal
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TextColumn("[{task.completed}]"),
            TextColumn("•"),
            TimeElapsedColumn(),
            console=self.console,
            transient=True,
            disable=disabled,
        ) as progress:
            task_id = progress.add_task("[cyan]正在迁移文档...", total=None)
            for task in tasks:
                progress.update(task_id, description=f"[cyan]处理:[/cyan] [dim]{task.relative_path}[/dim]")
                yield task
                progress.advance(task_id)
