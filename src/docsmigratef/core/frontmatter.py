"""
frontmatter 模块 - 将 YAML frontmatter 解析为有序的键/行结构

只解析顶层键的位置，每个键保留原始文本行。修改已知键后重新拼接，
未知键和键的顺序保持原样，不会被重新格式化。
"""
import re
from dataclasses import dataclass, replace
from typing import List, Optional, Tuple

import yaml

DELIMITER = "---"

# 顶层键：不缩进，不是列表项或注释
_TOP_LEVEL_KEY = re.compile(r"^(?![-?][ \t])([^\s#][^:]*?)[ \t]*:(?:[ \t]|$)")


class FrontmatterError(ValueError):
    """frontmatter 无法解析"""


def split_eol(line: str) -> Tuple[str, str]:
    """拆分行内容和行尾换行符"""
    stripped = line.rstrip("\r\n")
    return stripped, line[len(stripped):]


@dataclass(frozen=True)
class FrontmatterEntry:
    """一个顶层键及其所有原始行（包括续行）"""
    key: Optional[str]  # None 表示不属于任何键的注释或空行
    lines: Tuple[str, ...]

    @property
    def value(self) -> str:
        """首行冒号之后的原始值"""
        text, _ = split_eol(self.lines[0])
        return text.split(":", 1)[1].strip() if self.key is not None else ""


@dataclass(frozen=True)
class Frontmatter:
    opening: str
    entries: Tuple[FrontmatterEntry, ...]
    closing: str

    def keys(self) -> List[str]:
        return [entry.key for entry in self.entries if entry.key is not None]

    def get(self, key: str) -> Optional[FrontmatterEntry]:
        for entry in self.entries:
            if entry.key == key:
                return entry
        return None

    def with_lines(self, key: str, lines: Tuple[str, ...]) -> "Frontmatter":
        """替换指定键的原始行，其余键不变"""
        entries = tuple(
            FrontmatterEntry(key, lines) if entry.key == key else entry
            for entry in self.entries
        )
        return replace(self, entries=entries)

    def without(self, key: str) -> "Frontmatter":
        """删除指定键（包括续行）"""
        return replace(self, entries=tuple(e for e in self.entries if e.key != key))

    def serialize(self) -> str:
        return self.opening + "".join("".join(e.lines) for e in self.entries) + self.closing


def _is_delimiter(line: str) -> bool:
    return split_eol(line)[0].rstrip() == DELIMITER


def _is_detached(line: str) -> bool:
    """不缩进的注释行或空行，不属于任何键"""
    text = split_eol(line)[0]
    return not text.strip() or text.startswith("#")


def _parse_entries(lines: List[str]) -> Tuple[FrontmatterEntry, ...]:
    entries = []
    current_key = None
    current_lines: List[str] = []
    # 键之后的注释和空行，遇到续行时才并入当前键
    pending: List[str] = []

    def flush():
        if current_lines:
            entries.append(FrontmatterEntry(current_key, tuple(current_lines)))
        if pending:
            entries.append(FrontmatterEntry(None, tuple(pending)))

    for line in lines:
        match = _TOP_LEVEL_KEY.match(line)
        if match:
            flush()
            current_key = match.group(1).strip().strip('"\'')
            current_lines = [line]
            pending = []
        elif current_key is not None and _is_detached(line):
            pending.append(line)
        else:
            current_lines.extend(pending)
            current_lines.append(line)
            pending = []

    flush()
    return tuple(entries)


def split_frontmatter(content: str) -> Tuple[Optional[Frontmatter], str]:
    """拆分 frontmatter 和正文

    Returns:
        (Frontmatter 或 None, 正文)。没有 frontmatter 时正文为全部内容。

    Raises:
        FrontmatterError: 以 --- 开头但未闭合，或内容不是 YAML 映射
    """
    lines = content.splitlines(keepends=True)
    if not lines or not _is_delimiter(lines[0]):
        return None, content

    closing_index = next(
        (i for i in range(1, len(lines)) if _is_delimiter(lines[i])),
        None,
    )
    if closing_index is None:
        raise FrontmatterError("缺少结束的 '---'")

    block = lines[1:closing_index]
    try:
        data = yaml.safe_load("".join(block))
    except yaml.YAMLError as e:
        raise FrontmatterError(f"YAML 解析失败: {e}") from e
    if data is not None and not isinstance(data, dict):
        raise FrontmatterError("内容不是键值映射")

    frontmatter = Frontmatter(
        opening=lines[0],
        entries=_parse_entries(block),
        closing=lines[closing_index],
    )
    return frontmatter, "".join(lines[closing_index + 1:])
