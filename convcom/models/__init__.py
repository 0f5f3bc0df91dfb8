"""数据模型定义"""

from .commit import Commit, Footer, Note, Reference
from .config import ParserConfig

__all__ = [
    "Commit",
    "Footer",
    "Note",
    "Reference",
    "ParserConfig",
]
