"""输出解析器"""

from .commit_output_parser import CommitMessageOutputParser

__all__ = ["CommitMessageOutputParser"]
