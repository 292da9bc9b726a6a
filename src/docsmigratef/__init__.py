"""
docsmigratef - 文档版本迁移工具

将一个版本文件夹中的 Markdown 文档迁移到另一个版本文件夹，
同时更新 frontmatter、徽章、链接和正文中的版本引用。
"""

__version__ = "0.1.0"
