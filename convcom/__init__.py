"""convcom - Conventional commit 解析器"""

__version__ = "0.1.0"

from .commit_parser import Parser, new, parse
from .config import load_config
from .errors import ConfigError, HeaderError, ParseError
from .header import HeaderState, scan_header
from .models import Commit, Footer, Note, ParserConfig, Reference
from .parsers.commit_output_parser import CommitMessageOutputParser

__all__ = [
    "Parser",
    "new",
    "parse",
    "scan_header",
    "HeaderState",
    "load_config",
    "ParseError",
    "HeaderError",
    "ConfigError",
    "Commit",
    "Footer",
    "Note",
    "Reference",
    "ParserConfig",
    "CommitMessageOutputParser",
]
