"""解析错误定义"""


class ParseError(ValueError):
    """带位置信息的 commit header 语法错误

    Attributes:
        line: 出错的行号（从 1 开始）
        char: 出错字符在该行中的位置（从 0 开始，按 Unicode 字符计）
        message: 错误描述
    """

    __slots__ = ("_line", "_char", "_message")

    def __init__(self, message: str, line: int, char: int):
        super().__init__(message, line, char)
        self._message = message
        self._line = line
        self._char = char

    @property
    def message(self) -> str:
        return self._message

    @property
    def line(self) -> int:
        return self._line

    @property
    def char(self) -> int:
        return self._char

    def __str__(self) -> str:
        return f"{self._message}:{self._line} col {self._char}"

    def __repr__(self) -> str:
        return f"ParseError({self._message!r}, line={self._line}, char={self._char})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ParseError):
            return NotImplemented
        return (self._message, self._line, self._char) == (
            other._message,
            other._line,
            other._char,
        )

    def __hash__(self) -> int:
        return hash((self._message, self._line, self._char))


class HeaderError(ValueError):
    """header 语法正确但内容不完整（缺少 type 或 description），不带位置信息"""


class ConfigError(ValueError):
    """解析器配置无效"""
