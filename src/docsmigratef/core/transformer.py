"""
内容转换模块 - 按固定顺序对单个文件应用版本引用重写规则

规则顺序：
    1. frontmatter version 字段和 tags 中的版本标签
    2. frontmatter evolves-to 字段（仅在 strip_evolution 时删除）
    3. 徽章 URL
    4. 绝对链接 /docs/<版本>/
    5. 相对链接 ../<版本>/ 或 ./<版本>/
    6. 正文中的版本文本
    7. 演进内容清理（仅在 strip_evolution 时）

所有规则都以旧版本号为锚点，已迁移的内容再次转换不会发生变化。
"""
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from loguru import logger

from .errors import MalformedFrontmatterWarning
from .frontmatter import Frontmatter, FrontmatterError, split_eol, split_frontmatter
from .models import MigrationRequest, TransformResult, version_label, version_number
from .path_resolver import normalize_version_folder


@dataclass(frozen=True)
class RewriteOptions:
    """重写规则所需的参数"""
    source: str  # 源版本文件夹，例如 v0.1.0 或 archived/v1.0.0
    target: str
    strip_evolution: bool = False

    @property
    def source_label(self) -> str:
        return version_label(self.source)

    @property
    def source_number(self) -> str:
        return version_number(self.source)

    @property
    def target_label(self) -> str:
        return version_label(self.target)

    @property
    def target_number(self) -> str:
        return version_number(self.target)

    @classmethod
    def from_request(cls, request: MigrationRequest) -> "RewriteOptions":
        return cls(
            source=normalize_version_folder(request.source, "--source"),
            target=normalize_version_folder(request.target, "--target"),
            strip_evolution=request.strip_evolution,
        )

    def swap_token(self, value: str) -> Optional[str]:
        """若 value 正好是旧版本号，返回相同风格的新版本号"""
        if value == self.source_label:
            return self.target_label
        if value == self.source_number:
            return self.target_number
        return None


FrontmatterRule = Callable[[Frontmatter, RewriteOptions], Frontmatter]
BodyRule = Callable[[str, RewriteOptions], str]


# ---------------------------------------------------------------------------
# frontmatter 规则
# ---------------------------------------------------------------------------

_VERSION_LINE = re.compile(r"^(version[ \t]*:[ \t]*)(['\"]?)([^'\"#\s]+)\2([ \t]*(?:#.*)?)$")
_FLOW_START = re.compile(r"^tags[ \t]*:[ \t]*\[")
_SCALAR_VALUE = re.compile(r"^(tags[ \t]*:[ \t]*)(.+)$")
_BLOCK_ITEM = re.compile(r"^([ \t]*-[ \t]+)(.*)$")
_ITEM = re.compile(r"^(\s*)(['\"]?)(.*?)\2(\s*)$", re.S)


def _swap_item(raw: str, options: RewriteOptions) -> str:
    """替换单个序列项，保留引号和空白"""
    match = _ITEM.match(raw)
    if not match:
        return raw
    lead, quote, value, trail = match.groups()
    new_value = options.swap_token(value)
    if new_value is None:
        return raw
    return f"{lead}{quote}{new_value}{quote}{trail}"


def rewrite_frontmatter_version(frontmatter: Frontmatter, options: RewriteOptions) -> Frontmatter:
    entry = frontmatter.get("version")
    if entry is None:
        return frontmatter

    text, eol = split_eol(entry.lines[0])
    match = _VERSION_LINE.match(text)
    if not match:
        return frontmatter
    prefix, quote, value, suffix = match.groups()
    new_value = options.swap_token(value)
    if new_value is None:
        return frontmatter

    first = f"{prefix}{quote}{new_value}{quote}{suffix}{eol}"
    return frontmatter.with_lines("version", (first,) + entry.lines[1:])


def rewrite_frontmatter_tags(frontmatter: Frontmatter, options: RewriteOptions) -> Frontmatter:
    """替换 tags 中的旧版本标签，支持 [a, b]（可跨行）和 - a 两种写法"""
    entry = frontmatter.get("tags")
    if entry is None:
        return frontmatter

    joined = "".join(entry.lines)
    flow = _FLOW_START.match(joined)
    if flow:
        end = joined.find("]", flow.end())
        if end == -1:
            return frontmatter
        # 逐项替换，项之间的换行和缩进保留在空白部分
        items = ",".join(_swap_item(item, options) for item in joined[flow.end():end].split(","))
        rewritten = joined[:flow.end()] + items + joined[end:]
        return frontmatter.with_lines("tags", tuple(rewritten.splitlines(keepends=True)))

    lines = []
    text, eol = split_eol(entry.lines[0])
    scalar = _SCALAR_VALUE.match(text)
    if scalar and not scalar.group(2).lstrip().startswith(("#", "|", ">")):
        text = f"{scalar.group(1)}{_swap_item(scalar.group(2), options)}"
    lines.append(text + eol)

    for line in entry.lines[1:]:
        item_text, item_eol = split_eol(line)
        item = _BLOCK_ITEM.match(item_text)
        if item:
            value, comment = item.group(2), ""
            if " #" in value:
                value, comment = value.split(" #", 1)
                comment = " #" + comment
            line = f"{item.group(1)}{_swap_item(value, options)}{comment}{item_eol}"
        lines.append(line)

    return frontmatter.with_lines("tags", tuple(lines))


def strip_evolves_to(frontmatter: Frontmatter, options: RewriteOptions) -> Frontmatter:
    # evolves-to 指向另一个版本，不做版本替换
    if not options.strip_evolution:
        return frontmatter
    return frontmatter.without("evolves-to")


# ---------------------------------------------------------------------------
# 正文规则
# ---------------------------------------------------------------------------

# 链接中版本路径段之后允许出现的字符
_LINK_END = r"(?=[/#?)\]\s\"'>]|$)"

_BADGE_PREFIX = (
    r"((?:!\[[^\]]*\]\(|<img\s[^>]*?src=[\"']|^[ \t]*\[[^\]]+\]:[ \t]*)"
    r"[^)\s\"']*?/badge/version-)"
)


def rewrite_badge_urls(body: str, options: RewriteOptions) -> str:
    """.../badge/version-0.1.0-blue -> .../badge/version-1.0.0-blue，只匹配图片/徽章语法"""
    pattern = re.compile(
        _BADGE_PREFIX + r"(v?)" + re.escape(options.source_number) + r"(?=-)",
        re.M,
    )
    return pattern.sub(lambda m: m.group(1) + m.group(2) + options.target_number, body)


def rewrite_absolute_links(body: str, options: RewriteOptions) -> str:
    pattern = re.compile(r"(/docs/)" + re.escape(options.source) + _LINK_END, re.M)
    return pattern.sub(lambda m: m.group(1) + options.target, body)


def rewrite_relative_links(body: str, options: RewriteOptions) -> str:
    """保留 ../ 的层数，只替换版本路径段"""
    pattern = re.compile(r"(?<![\w.])((?:\.\./)+|\./)" + re.escape(options.source) + _LINK_END, re.M)
    return pattern.sub(lambda m: m.group(1) + options.target, body)


def rewrite_inline_versions(body: str, options: RewriteOptions) -> str:
    """完整词匹配 v0.1.0 和 Version 0.1.0，不匹配更长版本号或路径中的片段"""
    label = re.escape(options.source_label)
    number = re.escape(options.source_number)
    pattern = re.compile(
        r"(?<![\w./-])(?:(" + label + r")|([Vv]ersion )" + number + r")(?![\w-]|\.\w)"
    )

    def replace(match):
        if match.group(1) is not None:
            return options.target_label
        return match.group(2) + options.target_number

    return pattern.sub(replace, body)


# :::planned ... ::: 块
_PLANNED_BLOCK = re.compile(r"^:::planned\b[^\n]*\n(.*?)^:::[ \t]*(?:\r?\n|\Z)", re.M | re.S)
_PLANNED_MARKER = re.compile(r"Coming in v\d+\.\d+\.\d+|See .+ features →")

_HEADING = re.compile(r"^(#{1,6})[ \t]+(.*?)[ \t]*#*[ \t]*$")
_FENCE_OPEN = re.compile(r"^[ \t]{0,3}(`{3,}|~{3,})(.*)$")

_NEXT_UPDATE = re.compile(r"!\[Next Update\]")

_LINK = re.compile(r"\[([^\]]*)\]\(([^)]*)\)")
_BULLET = re.compile(r"^(?:[-*+]|\d+\.)[ \t]+")
_NAV_TEXT = re.compile(r"\b(?:Previous|Next) Version\b", re.I)
_SEE_TEXT = re.compile(r"^See .+→$")
_VERSION_HREF = re.compile(r"(?:^|/)v\d+\.\d+\.\d+(?:/|$)")
_NAV_RESIDUE = re.compile(r"^[\s|·•:*_\-←→]*$")
_INLINE_SEE_LINK = re.compile(r"\[See [^\]]+→\]\((?:\.\./)+v\d+\.\d+\.\d+/[^)]+\)[ \t]*")


def strip_planned_blocks(body: str, options: RewriteOptions) -> str:
    if not options.strip_evolution:
        return body

    def replace(match):
        return "" if _PLANNED_MARKER.search(match.group(0)) else match.group(0)

    return _PLANNED_BLOCK.sub(replace, body)


def _is_fence_close(text: str, fence: str) -> bool:
    stripped = text.strip()
    return stripped.startswith(fence) and set(stripped) == {fence[0]}


def _timeline_section_end(lines: List[str], start: int, level: int) -> Optional[int]:
    """返回标题之后第一个 mermaid 代码块结束（含其后空行）的位置

    在找到 mermaid 代码块之前遇到同级或更高级的标题时返回 None。
    """
    i = start + 1
    while i < len(lines):
        text = split_eol(lines[i])[0]
        heading = _HEADING.match(text)
        if heading and len(heading.group(1)) <= level:
            return None
        fence = _FENCE_OPEN.match(text)
        if fence:
            fence_chars = fence.group(1)
            j = i + 1
            while j < len(lines) and not _is_fence_close(lines[j], fence_chars):
                j += 1
            if j >= len(lines):
                return None
            if fence.group(2).strip().lower().startswith("mermaid"):
                j += 1
                while j < len(lines) and not lines[j].strip():
                    j += 1
                return j
            i = j
        i += 1
    return None


def strip_evolution_timeline(body: str, options: RewriteOptions) -> str:
    """删除 "Evolution Timeline" 标题及其后的 mermaid 图"""
    if not options.strip_evolution:
        return body

    lines = body.splitlines(keepends=True)
    kept = []
    i = 0
    while i < len(lines):
        heading = _HEADING.match(split_eol(lines[i])[0])
        if heading and heading.group(2).strip().lower() == "evolution timeline":
            end = _timeline_section_end(lines, i, len(heading.group(1)))
            if end is not None:
                i = end
                continue
        kept.append(lines[i])
        i += 1
    return "".join(kept)


def strip_next_update_badges(body: str, options: RewriteOptions) -> str:
    """删除 ![Next Update] 徽章到行尾的内容，行内不剩其他内容时删除整行"""
    if not options.strip_evolution:
        return body

    lines = []
    for line in body.splitlines(keepends=True):
        text, eol = split_eol(line)
        match = _NEXT_UPDATE.search(text)
        if match:
            text = text[:match.start()].rstrip()
            if not text:
                continue
        lines.append(text + eol)
    return "".join(lines)


def _is_navigation_line(line: str) -> bool:
    """只包含跨版本导航链接的行（Previous Version / Next Version / See ... →）"""
    text = _BULLET.sub("", line.strip(), count=1)
    links = list(_LINK.finditer(text))
    if not links:
        return False
    residue = _NAV_TEXT.sub("", _LINK.sub("", text))
    if not _NAV_RESIDUE.match(residue):
        return False
    if _NAV_TEXT.search(text):
        return True
    return all(
        _SEE_TEXT.match(link.group(1).strip()) and _VERSION_HREF.search(link.group(2))
        for link in links
    )


def strip_navigation_links(body: str, options: RewriteOptions) -> str:
    if not options.strip_evolution:
        return body
    lines = [line for line in body.splitlines(keepends=True) if not _is_navigation_line(line)]
    return _INLINE_SEE_LINK.sub("", "".join(lines))


def collapse_blank_lines(body: str, options: RewriteOptions) -> str:
    # 清理删除内容后留下的连续空行
    if not options.strip_evolution:
        return body
    return re.sub(r"\n{4,}", "\n\n\n", body)


FRONTMATTER_RULES: Tuple[Tuple[str, FrontmatterRule], ...] = (
    ("frontmatter-version", rewrite_frontmatter_version),
    ("frontmatter-tags", rewrite_frontmatter_tags),
    ("evolves-to", strip_evolves_to),
)

BODY_RULES: Tuple[Tuple[str, BodyRule], ...] = (
    ("badge-urls", rewrite_badge_urls),
    ("absolute-links", rewrite_absolute_links),
    ("relative-links", rewrite_relative_links),
    ("inline-version", rewrite_inline_versions),
    ("planned-blocks", strip_planned_blocks),
    ("evolution-timeline", strip_evolution_timeline),
    ("next-update-badges", strip_next_update_badges),
    ("navigation-links", strip_navigation_links),
    ("blank-lines", collapse_blank_lines),
)


def transform_content(content: str, options: RewriteOptions, path: Optional[Path] = None) -> TransformResult:
    """对单个文件内容应用全部规则

    Args:
        content: 文件原始内容
        options: 重写参数
        path: 文件路径，仅用于警告信息

    Returns:
        TransformResult: 转换结果，相同输入总是得到相同输出
    """
    fired = []
    warnings = []

    try:
        frontmatter, body = split_frontmatter(content)
    except FrontmatterError as e:
        warning = MalformedFrontmatterWarning(path, str(e))
        logger.warning(str(warning))
        warnings.append(str(warning))
        frontmatter, body = None, content

    if frontmatter is not None:
        for name, rule in FRONTMATTER_RULES:
            updated = rule(frontmatter, options)
            if updated != frontmatter:
                fired.append(name)
                frontmatter = updated

    for name, rule in BODY_RULES:
        updated = rule(body, options)
        if updated != body:
            fired.append(name)
            body = updated

    transformed = (frontmatter.serialize() if frontmatter is not None else "") + body
    return TransformResult(
        original_content=content,
        transformed_content=transformed,
        changed=transformed != content,
        fired_rules=tuple(fired),
        warnings=tuple(warnings),
    )
