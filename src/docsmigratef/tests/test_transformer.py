"""
内容转换模块测试
"""
import pytest

from docsmigratef.core.models import MigrationRequest
from docsmigratef.core.transformer import (
    RewriteOptions,
    rewrite_absolute_links,
    rewrite_badge_urls,
    rewrite_inline_versions,
    rewrite_relative_links,
    strip_evolution_timeline,
    strip_navigation_links,
    strip_next_update_badges,
    strip_planned_blocks,
    transform_content,
)

OPTIONS = RewriteOptions("v0.1.0", "v1.0.0")
STRIP = RewriteOptions("v0.1.0", "v1.0.0", strip_evolution=True)


SAMPLE_DOC = """---
title: Dispatcher
version: 0.1.0
tags: [dispatcher, v0.1.0]
evolves-to: v0.2.0/core-concepts/dispatcher.md
---
# Dispatcher

![Version](https://img.shields.io/badge/version-0.1.0-blue)
![Next Update](https://img.shields.io/badge/next-v0.2.0-orange)

As of v0.1.0 the dispatcher routes messages. See [docs](/docs/v0.1.0/core-concepts/dispatcher)
and [Related](../../v0.1.0/components/ledger.md).

:::planned
Coming in v0.2.0: pipeline behaviors.
:::

## Evolution Timeline

```mermaid
graph LR
  A[v0.1.0] --> B[v0.2.0]
```

## Usage

Version 0.1.0 supports a single handler per message.

- [Next Version →](../../v0.2.0/core-concepts/dispatcher.md)
"""


class TestRewriteOptions:
    """测试版本号推导"""

    def test_labels_and_numbers(self):
        assert OPTIONS.source_label == "v0.1.0"
        assert OPTIONS.source_number == "0.1.0"
        assert OPTIONS.target_label == "v1.0.0"
        assert OPTIONS.target_number == "1.0.0"

    def test_nested_folder(self):
        options = RewriteOptions("v1.0.0", "archived/v1.0.0")
        assert options.target_label == "v1.0.0"
        assert options.target == "archived/v1.0.0"

    def test_from_request_normalizes(self):
        request = MigrationRequest(source="v0.1.0/", target="archived\\v1.0.0", strip_evolution=True)
        options = RewriteOptions.from_request(request)
        assert options.source == "v0.1.0"
        assert options.target == "archived/v1.0.0"
        assert options.strip_evolution is True

    def test_swap_token_keeps_style(self):
        assert OPTIONS.swap_token("v0.1.0") == "v1.0.0"
        assert OPTIONS.swap_token("0.1.0") == "1.0.0"
        assert OPTIONS.swap_token("v0.1.1") is None


class TestFrontmatterRules:
    """测试 frontmatter 中的版本字段和标签"""

    def test_version_and_tags(self):
        content = "---\nversion: 0.1.0\ntags: [dispatcher, v0.1.0]\n---\n# Title\n"
        result = transform_content(content, OPTIONS)
        assert result.transformed_content == "---\nversion: 1.0.0\ntags: [dispatcher, v1.0.0]\n---\n# Title\n"
        assert result.changed is True
        assert result.fired_rules == ("frontmatter-version", "frontmatter-tags")

    def test_quoted_version_with_prefix(self):
        content = "---\nversion: \"v0.1.0\"  # current\n---\n"
        result = transform_content(content, OPTIONS)
        assert result.transformed_content == "---\nversion: \"v1.0.0\"  # current\n---\n"

    def test_other_version_untouched(self):
        content = "---\nversion: 0.2.0\ntags: [v0.2.0]\n---\n"
        result = transform_content(content, OPTIONS)
        assert result.changed is False
        assert result.transformed_content == content

    def test_block_sequence_tags(self):
        content = "---\ntags:\n  - core\n  - 'v0.1.0'\n  - v0.1.0-rc\n---\n"
        result = transform_content(content, OPTIONS)
        assert result.transformed_content == "---\ntags:\n  - core\n  - 'v1.0.0'\n  - v0.1.0-rc\n---\n"

    def test_multiline_flow_tags(self):
        """跨行的 flow 序列写法，保留原有换行和缩进"""
        content = "---\nversion: 0.1.0\ntags: [dispatcher,\n  v0.1.0,\n  'v0.1.0-rc']\n---\nBody\n"
        result = transform_content(content, OPTIONS)
        assert result.transformed_content == (
            "---\nversion: 1.0.0\ntags: [dispatcher,\n  v1.0.0,\n  'v0.1.0-rc']\n---\nBody\n"
        )
        assert result.fired_rules == ("frontmatter-version", "frontmatter-tags")

    def test_evolves_to_kept_without_strip(self):
        """evolves-to 指向其他版本，不做替换"""
        content = "---\nversion: 0.1.0\nevolves-to: v0.1.0/next.md\n---\n"
        result = transform_content(content, OPTIONS)
        assert "evolves-to: v0.1.0/next.md\n" in result.transformed_content

    def test_evolves_to_removed_with_strip(self):
        """只删除 evolves-to 行，其他键保持字节一致"""
        content = (
            "---\n"
            "title: Dispatcher\n"
            "category: Core Concepts\n"
            "evolves-to: v0.2.0/x.md\n"
            "order: 3\n"
            "---\n"
            "Body\n"
        )
        result = transform_content(content, STRIP)
        assert result.transformed_content == (
            "---\n"
            "title: Dispatcher\n"
            "category: Core Concepts\n"
            "order: 3\n"
            "---\n"
            "Body\n"
        )
        assert result.fired_rules == ("evolves-to",)

    def test_evolves_to_removed_keeps_following_comment(self):
        """evolves-to 之后的注释和空行不属于该键，必须保留"""
        content = "---\ntitle: X\nevolves-to: v0.2.0/x.md\n# owner: docs team\n\nslug: x\n---\n"
        result = transform_content(content, STRIP)
        assert result.transformed_content == "---\ntitle: X\n# owner: docs team\n\nslug: x\n---\n"

    def test_malformed_frontmatter_falls_back(self):
        """未闭合的 frontmatter 不报错，按普通内容处理并记录警告"""
        content = "---\nversion: 0.1.0\nno closing\n\nas of v0.1.0\n"
        result = transform_content(content, OPTIONS)
        assert result.transformed_content == "---\nversion: 0.1.0\nno closing\n\nas of v1.0.0\n"
        assert result.fired_rules == ("inline-version",)
        assert len(result.warnings) == 1
        assert "frontmatter" in result.warnings[0]


class TestBodyRules:
    """测试正文重写规则"""

    def test_badge_url(self):
        body = "![Version](https://img.shields.io/badge/version-0.1.0-blue)"
        assert rewrite_badge_urls(body, OPTIONS) == "![Version](https://img.shields.io/badge/version-1.0.0-blue)"

    def test_badge_with_v_prefix_and_html(self):
        body = '<img src="https://img.shields.io/badge/version-v0.1.0-green" />'
        assert rewrite_badge_urls(body, OPTIONS) == '<img src="https://img.shields.io/badge/version-v1.0.0-green" />'

    def test_badge_only_in_image_syntax(self):
        body = "the path badge/version-0.1.0-blue is mentioned in prose"
        assert rewrite_badge_urls(body, OPTIONS) == body

    def test_absolute_link(self):
        body = "[See docs](/docs/v0.1.0/core-concepts/dispatcher)"
        assert rewrite_absolute_links(body, OPTIONS) == "[See docs](/docs/v1.0.0/core-concepts/dispatcher)"

    def test_absolute_link_needs_full_segment(self):
        body = "[x](/docs/v0.1.0.1/a) [y](/docs/v0.1.01/b)"
        assert rewrite_absolute_links(body, OPTIONS) == body

    @pytest.mark.parametrize("link, expected", [
        ("[Related](../../v0.1.0/components/ledger.md)", "[Related](../../v1.0.0/components/ledger.md)"),
        ("[Up](../v0.1.0/index.md)", "[Up](../v1.0.0/index.md)"),
        ("[Deep](../../../v0.1.0/a/b.md)", "[Deep](../../../v1.0.0/a/b.md)"),
        ("[Here](./v0.1.0/a.md)", "[Here](./v1.0.0/a.md)"),
        ("[Other](../../v0.1.1/a.md)", "[Other](../../v0.1.1/a.md)"),
    ])
    def test_relative_links(self, link, expected):
        assert rewrite_relative_links(link, OPTIONS) == expected

    def test_nested_target_folder_in_links(self):
        options = RewriteOptions("v1.0.0", "archived/v1.0.0")
        body = "[a](/docs/v1.0.0/x.md) [b](../v1.0.0/y.md)"
        assert rewrite_absolute_links(body, options) == "[a](/docs/archived/v1.0.0/x.md) [b](../v1.0.0/y.md)"
        assert rewrite_relative_links(body, options) == "[a](/docs/v1.0.0/x.md) [b](../archived/v1.0.0/y.md)"

    def test_inline_version_text(self):
        body = "As of v0.1.0, handlers are sync. Version 0.1.0 is stable. Released in v0.1.0."
        assert rewrite_inline_versions(body, OPTIONS) == (
            "As of v1.0.0, handlers are sync. Version 1.0.0 is stable. Released in v1.0.0."
        )

    @pytest.mark.parametrize("text", [
        "v0.1.0.1",
        "v0.1.01",
        "v0.1.0-beta",
        "xv0.1.0",
        "port 0.1.0",
        "https://github.com/org/repo/releases/tag/v0.1.0",
    ])
    def test_inline_version_is_exact_token(self, text):
        assert rewrite_inline_versions(text, OPTIONS) == text


class TestEvolutionStripping:
    """测试演进内容清理"""

    def test_planned_block_with_coming_in(self):
        body = (
            "Intro\n\n"
            ":::planned\nComing in v0.2.0: streaming.\n:::\n\n"
            ":::planned\nSomething else\n:::\n\n"
            "End\n"
        )
        result = strip_planned_blocks(body, STRIP)
        assert "Coming in" not in result
        assert ":::planned\nSomething else\n:::\n" in result
        assert result.endswith("End\n")

    def test_planned_marker_on_opening_line(self):
        body = "Intro\n\n:::planned Coming in v0.2.0\nStreaming support.\n:::\n\nEnd\n"
        assert strip_planned_blocks(body, STRIP) == "Intro\n\n\nEnd\n"

    def test_planned_block_kept_without_strip(self):
        body = ":::planned\nComing in v0.2.0\n:::\n"
        assert strip_planned_blocks(body, OPTIONS) == body

    def test_evolution_timeline(self):
        body = (
            "# Dispatcher\n\n"
            "## Evolution Timeline\n\n"
            "How it evolves:\n\n"
            "```mermaid\ngraph LR\n  A --> B\n```\n\n"
            "## Usage\nText\n"
        )
        assert strip_evolution_timeline(body, STRIP) == "# Dispatcher\n\n## Usage\nText\n"

    def test_evolution_timeline_without_diagram_is_kept(self):
        body = "## Evolution Timeline\n\nNo diagram here.\n\n## Next\n\n```mermaid\ngraph LR\n```\n"
        assert strip_evolution_timeline(body, STRIP) == body

    def test_next_update_badge_line(self):
        body = "![Next Update](https://img.shields.io/badge/next-v0.2.0-orange)\nBody\n"
        assert strip_next_update_badges(body, STRIP) == "Body\n"

    def test_next_update_badge_sharing_line(self):
        """同一行的其他徽章保留，只删除 Next Update 徽章到行尾的内容"""
        body = (
            "![Version](https://img.shields.io/badge/version-1.0.0-blue) "
            "![Next Update](https://img.shields.io/badge/next-v0.2.0-orange)\n\nText\n"
        )
        assert strip_next_update_badges(body, STRIP) == (
            "![Version](https://img.shields.io/badge/version-1.0.0-blue)\n\nText\n"
        )

    def test_next_update_badge_in_full_pipeline(self):
        content = (
            "![Version](https://img.shields.io/badge/version-0.1.0-blue) "
            "![Next Update](https://img.shields.io/badge/next-v0.2.0-orange)\n\nText\n"
        )
        result = transform_content(content, STRIP)
        assert result.transformed_content == "![Version](https://img.shields.io/badge/version-1.0.0-blue)\n\nText\n"

    def test_navigation_links(self):
        body = (
            "Content\n\n"
            "- [← Previous Version](../v0.0.9/intro.md)\n"
            "- [Next Version →](../v0.2.0/intro.md)\n\n"
            "**Previous Version**: [v0.0.9](../v0.0.9/intro.md)\n\n"
            "[See pipeline features →](../../v0.2.0/pipeline.md)\n\n"
            "See the [guide](./guide.md) for more.\n"
        )
        result = strip_navigation_links(body, STRIP)
        assert "Previous Version" not in result
        assert "Next Version" not in result
        assert "See pipeline features" not in result
        assert "See the [guide](./guide.md) for more.\n" in result
        assert result.startswith("Content\n")

    def test_prose_mentioning_next_version_is_kept(self):
        body = "The [Next Version](../v0.2.0/a.md) adds streaming support.\n"
        assert strip_navigation_links(body, STRIP) == body


class TestTransformContent:
    """测试完整的规则管线"""

    def test_full_document_with_strip(self):
        result = transform_content(SAMPLE_DOC, STRIP)
        text = result.transformed_content
        assert text.startswith("---\ntitle: Dispatcher\nversion: 1.0.0\ntags: [dispatcher, v1.0.0]\n---\n")
        assert "evolves-to" not in text
        assert "badge/version-1.0.0-blue" in text
        assert "Next Update" not in text
        assert "As of v1.0.0 the dispatcher" in text
        assert "/docs/v1.0.0/core-concepts/dispatcher" in text
        assert "../../v1.0.0/components/ledger.md" in text
        assert ":::planned" not in text
        assert "Evolution Timeline" not in text
        assert "mermaid" not in text
        assert "Version 1.0.0 supports" in text
        assert "Next Version" not in text
        assert "v0.1.0" not in text
        assert "\n\n\n\n" not in text

    def test_full_document_without_strip(self):
        result = transform_content(SAMPLE_DOC, OPTIONS)
        text = result.transformed_content
        assert "evolves-to: v0.2.0/core-concepts/dispatcher.md" in text
        assert ":::planned" in text
        assert "## Evolution Timeline" in text
        assert "A[v1.0.0] --> B[v0.2.0]" in text
        assert "- [Next Version →](../../v0.2.0/core-concepts/dispatcher.md)" in text

    @pytest.mark.parametrize("options", [OPTIONS, STRIP])
    def test_idempotent(self, options):
        """以目标版本作为旧版本再次转换不产生变化"""
        once = transform_content(SAMPLE_DOC, options).transformed_content
        again_options = RewriteOptions(options.target, options.target, options.strip_evolution)
        again = transform_content(once, again_options)
        assert again.transformed_content == once
        assert again.changed is False

    def test_deterministic(self):
        first = transform_content(SAMPLE_DOC, STRIP)
        second = transform_content(SAMPLE_DOC, STRIP)
        assert first == second

    def test_pass_through(self):
        content = "---\ntitle: Unrelated\n---\nNothing versioned here.\n"
        result = transform_content(content, OPTIONS)
        assert result.changed is False
        assert result.transformed_content == content
        assert result.fired_rules == ()

    def test_crlf_preserved(self):
        content = "---\r\nversion: 0.1.0\r\n---\r\nText v0.1.0\r\n"
        result = transform_content(content, OPTIONS)
        assert result.transformed_content == "---\r\nversion: 1.0.0\r\n---\r\nText v1.0.0\r\n"
