"""
报告模块 - 使用 Rich 输出迁移信息、试运行变更列表和汇总
"""
from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from ..config import MAX_WARNINGS_SHOWN, NEXT_STEPS
from ..core.models import MigrationReport, MigrationRequest

# 规则名称的显示文本
RULE_LABELS = {
    "frontmatter-version": "Frontmatter version",
    "frontmatter-tags": "Frontmatter tags",
    "evolves-to": "evolves-to 已删除",
    "badge-urls": "徽章 URL",
    "absolute-links": "绝对链接",
    "relative-links": "相对链接",
    "inline-version": "正文版本文本",
    "planned-blocks": ":::planned 块",
    "evolution-timeline": "Evolution Timeline",
    "next-update-badges": "Next Update 徽章",
    "navigation-links": "跨版本导航链接",
    "blank-lines": "多余空行",
}

ACTION_STYLES = {
    "copy": "[green]复制[/green]",
    "overwrite": "[blue]覆盖[/blue]",
    "skip": "[yellow]跳过[/yellow]",
    "raw-copy": "[cyan]原样复制[/cyan]",
    "update": "[magenta]更新[/magenta]",
}


def print_header(console: Console, request: MigrationRequest):
    lines = [
        f"源版本:   [bold]{request.source}[/bold]",
        f"目标版本: [bold]{request.target}[/bold]",
        f"模式:     {'🔍 试运行' if request.dry_run else '✏️  实际执行'}",
        f"冲突策略: {request.conflict_strategy.value}",
    ]
    if request.strip_evolution:
        lines.append("清理:     删除演进内容")
    if request.delete_source:
        lines.append("收尾:     迁移成功后删除源目录")
    if request.skip_cross_refs:
        lines.append("交叉引用: 不更新")
    console.print(Panel("\n".join(lines), title="🚀 文档版本迁移", border_style="cyan"))


def print_change_list(console: Console, report: MigrationReport, show_diff: bool = False):
    """输出完整的变更列表（试运行时使用）"""
    if not report.planned:
        console.print("[dim]没有需要变更的文件[/dim]")
        return

    table = Table(title="计划变更", show_lines=False)
    table.add_column("文件", style="white")
    table.add_column("操作")
    table.add_column("触发的规则", style="dim")
    for change in report.planned:
        table.add_row(
            change.relative_path.as_posix(),
            ACTION_STYLES.get(change.action, change.action),
            ", ".join(RULE_LABELS.get(r, r) for r in change.fired_rules) or "-",
        )
    console.print(table)

    if show_diff:
        for change in report.planned:
            if change.diff:
                console.print(Syntax(change.diff, "diff", theme="ansi_dark", word_wrap=True))


def print_summary(console: Console, report: MigrationReport, verbose: bool = False):
    table = Table(title="📊 迁移汇总", show_header=False)
    table.add_column("项目", style="bold")
    table.add_column("数量", justify="right")
    table.add_row("扫描", str(report.files_scanned))
    table.add_row("复制", str(report.files_copied))
    table.add_row("覆盖", str(report.files_overwritten))
    table.add_row("跳过", str(report.files_skipped))
    table.add_row("原样复制", str(report.files_raw_copied))
    table.add_row("冲突", str(report.conflicts))
    table.add_row("交叉引用更新", str(report.cross_refs_updated))
    table.add_row("内容变更的文件", str(report.files_changed))
    for rule, count in sorted(report.rule_counts.items()):
        table.add_row(f"  {RULE_LABELS.get(rule, rule)}", str(count))
    console.print(table)

    # 警告只在 --verbose 时显示
    if report.warnings and verbose:
        console.print(f"\n[yellow]⚠️  警告 ({len(report.warnings)}):[/yellow]")
        for warning in report.warnings[:MAX_WARNINGS_SHOWN]:
            console.print(f"   - {warning}")
        if len(report.warnings) > MAX_WARNINGS_SHOWN:
            console.print(f"   ... 以及另外 {len(report.warnings) - MAX_WARNINGS_SHOWN} 条")

    if report.aborted:
        console.print(f"\n[bold red]❌ 迁移因冲突中止: {report.aborted_at}[/bold red]")
    else:
        if report.source_deleted:
            console.print("\n[bold]🗑️  源目录已删除[/bold]")
        console.print("\n[bold green]✅ 迁移完成[/bold green]")


def print_next_steps(console: Console, report: MigrationReport):
    if report.aborted:
        return
    steps = [f"{i}. {step}" for i, step in enumerate(NEXT_STEPS, 1)]
    if report.dry_run:
        steps.append("\n💡 这是一次试运行，去掉 --dry-run 重新执行以应用变更。")
    else:
        steps.append(f"{len(NEXT_STEPS) + 1}. 提交变更")
    console.print(Panel("\n".join(steps), title="📋 后续步骤", border_style="green"))
