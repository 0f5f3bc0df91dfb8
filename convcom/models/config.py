"""解析器配置数据模型"""

from typing import Callable, Optional

from pydantic import BaseModel, ConfigDict, Field

# 默认值都是不可变的 tuple，每个配置实例得到自己的副本
DEFAULT_REFERENCE_ACTIONS = (
    "close",
    "closes",
    "closed",
    "fix",
    "fixes",
    "fixed",
    "resolve",
    "resolves",
    "resolved",
)
DEFAULT_ISSUE_PREFIXES = ("#",)
DEFAULT_NOTE_KEYWORDS = ("BREAKING CHANGE",)
DEFAULT_FIELD_PATTERN = r"^-(.*?)-$"
DEFAULT_REVERT_PATTERN = r'^Revert\s"([\s\S]*)"\s*This reverts commit (\w*)\.'
DEFAULT_REVERT_GROUPS = ("header", "hash")

# error_callback(message, line, char) 返回异常则抛出，返回 None 则跳过该 commit
ErrorCallback = Callable[[str, int, int], Optional[Exception]]


class ParserConfig(BaseModel):
    """commit 解析器配置

    构造后不可修改。正则在 Parser 构造时编译并校验。
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    merge_pattern: str = Field(
        default="", description="匹配 merge header 的正则，为空则不检测 merge header"
    )
    merge_groups: tuple[str, ...] = Field(
        default=(), description="merge_pattern 各捕获组对应的字段名"
    )
    reference_actions: tuple[str, ...] = Field(
        default=DEFAULT_REFERENCE_ACTIONS,
        description="引用 issue 的动作关键字（不区分大小写）",
    )
    issue_prefixes: tuple[str, ...] = Field(
        default=DEFAULT_ISSUE_PREFIXES, description="issue 编号前缀，例如 gh- 中的 gh-"
    )
    issue_prefixes_case_sensitive: bool = Field(
        default=False, description="issue 前缀是否区分大小写"
    )
    note_keywords: tuple[str, ...] = Field(
        default=DEFAULT_NOTE_KEYWORDS, description="重要说明的关键字（不区分大小写）"
    )
    field_pattern: str = Field(
        default=DEFAULT_FIELD_PATTERN, description="匹配其他字段标记行的正则"
    )
    revert_pattern: str = Field(
        default=DEFAULT_REVERT_PATTERN, description="匹配 revert 信息的正则"
    )
    revert_groups: tuple[str, ...] = Field(
        default=DEFAULT_REVERT_GROUPS, description="revert_pattern 各捕获组对应的字段名"
    )
    comment_character: str = Field(
        default="", description="注释字符，为空则不去除注释行"
    )
    error_callback: Optional[ErrorCallback] = Field(
        default=None, exclude=True, description="解析失败时调用，代替直接抛出错误"
    )
