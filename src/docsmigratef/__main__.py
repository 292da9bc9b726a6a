"""
docsmigratef 包的命令行入口点，使用 Typer 实现命令行界面
"""
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

import typer
from loguru import logger
from rich.console import Console

from .config import (
    DEFAULT_DOCS_DIR,
    DOCS_DIR_ENV,
    EXIT_INTERRUPTED,
    EXIT_OK,
    EXIT_VALIDATION,
)
from .core.conflict import parse_strategy
from .core.errors import MigrationError, ValidationError
from .core.migration_service import MigrationService
from .core.models import MigrationRequest
from .ui.report import print_change_list, print_header, print_next_steps, print_summary

# Typer 可能使用自带的 click 副本，参数解析异常从 Typer 导出的类所在模块获取
UsageError = sys.modules[typer.BadParameter.__module__].UsageError


def setup_logger(app_name="app", project_root=None, console_output=True, verbose=False):
    """配置 Loguru 日志系统

    Args:
        app_name: 应用名称，用于日志目录
        project_root: 项目根目录，默认为当前文件所在目录
        console_output: 是否输出到控制台，默认为True
        verbose: 详细模式下控制台输出 INFO 及以上，否则只输出错误

    Returns:
        tuple: (logger, config_info)
            - logger: 配置好的 logger 实例
            - config_info: 包含日志配置信息的字典
    """
    # 获取项目根目录
    if project_root is None:
        project_root = Path(__file__).parent.resolve()

    # 清除默认处理器
    logger.remove()

    # 有条件地添加控制台处理器（简洁版格式）
    if console_output:
        logger.add(
            sys.stdout,
            level="INFO" if verbose else "ERROR",
            format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level.icon} {level: <8}</level> | <level>{message}</level>"
        )

    # 使用 datetime 构建日志路径
    current_time = datetime.now()
    date_str = current_time.strftime("%Y-%m-%d")
    hour_str = current_time.strftime("%H")
    minute_str = current_time.strftime("%M%S")

    # 构建日志目录和文件路径
    log_dir = os.path.join(project_root, "logs", app_name, date_str, hour_str)
    os.makedirs(log_dir, exist_ok=True)
    log_file = os.path.join(log_dir, f"{minute_str}.log")

    # 添加文件处理器
    logger.add(
        log_file,
        level="DEBUG",
        rotation="10 MB",
        retention="30 days",
        compression="zip",
        encoding="utf-8",
        format="{time:YYYY-MM-DD HH:mm:ss} | {elapsed} | {level.icon} {level: <8} | {name}:{function}:{line} - {message}",
        enqueue=True,
    )

    config_info = {
        'log_file': log_file,
    }

    logger.debug(f"日志系统已初始化，应用名称: {app_name}")
    return logger, config_info


# 创建 Typer 应用
app = typer.Typer(
    help="文档版本迁移工具 - 将文档从一个版本文件夹迁移到另一个版本文件夹并更新版本引用",
    add_completion=False,
    context_settings={"help_option_names": ["-h", "--help"]},
)

# 创建 Rich Console
console = Console()
err_console = Console(stderr=True)

EPILOG = """
示例:

  # 预览迁移（建议先执行）\n
  migrate-docs --source v0.1.0 --target v1.0.0 --dry-run --verbose

  # 将 v0.1.0 合并到 v1.0.0\n
  migrate-docs --source v0.1.0 --target v1.0.0 --conflict-strategy source-wins

  # 完整迁移并清理\n
  migrate-docs --source v0.1.0 --target v1.0.0 --delete-source --strip-evolution
"""


def build_request(
    source: Optional[str],
    target: Optional[str],
    dry_run: bool = False,
    conflict_strategy: str = "source-wins",
    delete_source: bool = False,
    strip_evolution: bool = False,
    no_cross_refs: bool = False,
    verbose: bool = False,
    docs_dir: Path = DEFAULT_DOCS_DIR,
) -> MigrationRequest:
    """校验命令行参数并构建 MigrationRequest

    Raises:
        ValidationError: 缺少必需参数或冲突策略无效
    """
    missing = [name for name, value in (("--source", source), ("--target", target)) if not value]
    if missing:
        raise ValidationError(f"缺少必需参数: {', '.join(missing)}")

    return MigrationRequest(
        source=source,
        target=target,
        dry_run=dry_run,
        conflict_strategy=parse_strategy(conflict_strategy),
        delete_source=delete_source,
        strip_evolution=strip_evolution,
        skip_cross_refs=no_cross_refs,
        verbose=verbose,
        docs_dir=Path(docs_dir),
    )


@app.command(epilog=EPILOG)
def migrate(
    source: Optional[str] = typer.Option(None, "--source", help="源版本文件夹，例如 v0.1.0 [必需]"),
    target: Optional[str] = typer.Option(None, "--target", help="目标版本文件夹，例如 v1.0.0 [必需]"),
    dry_run: bool = typer.Option(False, "--dry-run", help="只预览变更，不写入任何文件"),
    conflict_strategy: str = typer.Option(
        "source-wins", "--conflict-strategy",
        help="目标文件已存在时的处理方式: source-wins（覆盖）、target-wins（跳过）、abort（中止）",
    ),
    delete_source: bool = typer.Option(False, "--delete-source", help="迁移全部成功后删除源文件夹"),
    strip_evolution: bool = typer.Option(
        False, "--strip-evolution", help="删除 evolves-to 和 \"Coming in vX.X.X\" 等演进内容",
    ),
    no_cross_refs: bool = typer.Option(False, "--no-cross-refs", help="不更新 drafts/proposals 等交叉引用文件夹"),
    verbose: bool = typer.Option(False, "--verbose", help="显示每个文件的处理进度和诊断信息"),
    docs_dir: Path = typer.Option(
        DEFAULT_DOCS_DIR, "--docs-dir", envvar=DOCS_DIR_ENV, help="文档根目录",
    ),
):
    """迁移文档版本文件夹并更新所有版本引用"""
    setup_logger(app_name="docsmigratef", console_output=True, verbose=verbose)

    try:
        request = build_request(
            source, target, dry_run, conflict_strategy, delete_source,
            strip_evolution, no_cross_refs, verbose, docs_dir,
        )
        print_header(console, request)
        report = MigrationService(request, console).run()
    except MigrationError as e:
        err_console.print(f"[bold red]❌ {e}[/bold red]")
        logger.opt(exception=e).debug("迁移失败")
        raise typer.Exit(e.exit_code)
    except KeyboardInterrupt:
        err_console.print("[bold red]❌ 迁移已中断，源目录未删除[/bold red]")
        raise typer.Exit(EXIT_INTERRUPTED)

    if report.dry_run or verbose:
        print_change_list(console, report, show_diff=report.dry_run and verbose)
    print_summary(console, report, verbose=verbose)
    print_next_steps(console, report)

    try:
        report.raise_for_abort()
    except MigrationError as e:
        err_console.print(f"[bold red]❌ {e}[/bold red]")
        raise typer.Exit(e.exit_code)


def main():
    """命令行入口，将参数解析错误映射为退出码 1"""
    try:
        code = app(standalone_mode=False)
    except UsageError as e:
        e.show()
        sys.exit(EXIT_VALIDATION)
    except typer.Abort:
        sys.exit(EXIT_INTERRUPTED)
    sys.exit(code if isinstance(code, int) else EXIT_OK)


if __name__ == "__main__":
    main()
