"""
程序全局配置模块
"""
from pathlib import Path

# 默认文档根目录（相对于当前工作目录）
DEFAULT_DOCS_DIR = Path("src") / "assets" / "docs"

# 覆盖文档根目录的环境变量
DOCS_DIR_ENV = "MIGRATE_DOCS_DIR"

# 交叉引用文件夹，位于文档根目录下，原地更新
CROSS_REF_FOLDERS = ("drafts", "proposals", "backlog")

# 需要进行内容转换的文件扩展名，其他文件原样复制
MARKDOWN_SUFFIXES = (".md", ".mdx", ".markdown")

# 退出码
EXIT_OK = 0
EXIT_VALIDATION = 1
EXIT_CONFLICT_ABORT = 2
EXIT_IO_ERROR = 3
EXIT_INTERRUPTED = 130

# 汇总中最多显示的警告条数
MAX_WARNINGS_SHOWN = 10

# 迁移完成后的后续步骤
NEXT_STEPS = (
    "运行: npm run prebuild",
    "验证: npm start",
    "检查导航和链接",
)
