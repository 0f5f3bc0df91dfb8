"""commit header 扫描器

逐字符扫描 header 行 ``type(scope): description``，状态转换如下::

    TYPE --'('--> SCOPE --')'--> POST_SCOPE --': '--> DESCRIPTION
      |                                                   ^
      +-------------------------': '----------------------+

出错时抛出带行号和列号的 ParseError。
"""

from enum import Enum
from typing import Optional

from .errors import ParseError
from .models.commit import Commit

MUST_FOLLOW = "commit %s must be followed by a colon and a single space"
ILLEGAL_CHARACTER = "illegal '%s' character in %s"


class HeaderState(Enum):
    """扫描状态"""

    TYPE = "type"
    SCOPE = "scope"
    POST_SCOPE = "post_scope"  # 已读到 ')'，下一个字符必须是 ':'
    DESCRIPTION = "description"


def field_name(state: HeaderState) -> str:
    """错误信息中使用的字段名"""
    if state in (HeaderState.SCOPE, HeaderState.POST_SCOPE):
        return "scope"
    return "type"


def must_follow_message(state: HeaderState) -> str:
    return MUST_FOLLOW % field_name(state)


def illegal_character_message(char: str, state: HeaderState) -> str:
    return ILLEGAL_CHARACTER % (char, field_name(state))


def _check_separator(line: str, colon: int) -> Optional[int]:
    """检查 ':' 之后是否恰好跟一个空格

    Args:
        line: header 行
        colon: ':' 的位置

    Returns:
        出错的列号，没有错误返回 None
    """
    length = len(line)
    if colon + 1 == length:
        # ':' 是最后一个字符
        return colon
    if line[colon + 1] != " ":
        return colon + 1
    if colon + 2 < length and line[colon + 2] == " ":
        return colon + 2
    return None


def scan_header(line: str, line_number: int = 1) -> Commit:
    """扫描 header 行

    没有 description 或 type 为空在语法上是允许的，由 Parser.parse 负责拒绝。

    Args:
        line: header 行
        line_number: 行号（从 1 开始）

    Returns:
        只包含 type、scope、description 的 Commit

    Raises:
        ParseError: header 格式错误
    """
    state = HeaderState.TYPE
    buffer: list[str] = []
    commit_type = ""
    scope = ""

    def error(message: str, char: int) -> ParseError:
        return ParseError(message, line_number, char)

    for i, c in enumerate(line):
        if state is HeaderState.DESCRIPTION:
            buffer.append(c)
            continue

        if c == "(":
            if state is not HeaderState.TYPE:
                raise error(illegal_character_message("(", state), i)
            commit_type = "".join(buffer)
            if not commit_type:
                raise error(illegal_character_message("(", state), i)
            buffer.clear()
            state = HeaderState.SCOPE
        elif c == ")":
            if state is HeaderState.TYPE:
                raise error(illegal_character_message(")", state), i)
            if state is HeaderState.POST_SCOPE:
                raise error(must_follow_message(state), i)
            scope = "".join(buffer)
            buffer.clear()
            state = HeaderState.POST_SCOPE
        elif c == ":":
            char = _check_separator(line, i)
            if char is not None:
                raise error(must_follow_message(state), char)
            if state is HeaderState.SCOPE:
                # scope 没有用 ')' 结束
                raise error(illegal_character_message(":", state), i)
            if state is HeaderState.TYPE:
                commit_type = "".join(buffer)
            buffer.clear()
            state = HeaderState.DESCRIPTION
        elif c == " ":
            raise error(illegal_character_message(" ", state), i)
        else:
            if state is HeaderState.POST_SCOPE:
                raise error(must_follow_message(state), i)
            buffer.append(c)

    if state is not HeaderState.DESCRIPTION:
        # 一直没有进入 description
        raise error(must_follow_message(state), max(len(line) - 1, 0))

    return Commit(
        type=commit_type,
        scope=scope,
        description="".join(buffer).strip(),
    )
