"""Commit 数据模型"""

from typing import Optional

from pydantic import BaseModel, Field


class Footer(BaseModel):
    """footer（git trailer）"""

    token: str = Field(description="footer 标记，例如 Reviewed-by")
    value: str = Field(description="footer 内容")


class Note(BaseModel):
    """重要说明，例如 BREAKING CHANGE"""

    title: str = Field(description="note 关键字")
    text: str = Field(description="note 内容")


class Reference(BaseModel):
    """issue 引用"""

    action: Optional[str] = Field(None, description="引用动作，例如 closes")
    owner: Optional[str] = Field(None, description="仓库所有者")
    repository: Optional[str] = Field(None, description="仓库名")
    prefix: str = Field(description="issue 前缀，例如 #")
    issue: str = Field(description="issue 编号")
    raw: str = Field(description="原始匹配文本")


class Commit(BaseModel):
    """Conventional commit"""

    type: str = Field(default="", description="commit 类型")
    scope: str = Field(default="", description="影响范围，为空表示没有 scope")
    description: str = Field(default="", description="简短描述")
    header: str = Field(default="", description="完整的 header 行")
    merge_header: str = Field(default="", description="merge header")
    body: str = Field(default="", description="正文")
    footers: list[Footer] = Field(default_factory=list, description="footer 列表")
    mentions: list[str] = Field(default_factory=list, description="提及的用户或组")
    references: list[Reference] = Field(
        default_factory=list, description="引用的 issue"
    )
    notes: list[Note] = Field(default_factory=list, description="重要说明")
    reverts: dict[str, str] = Field(
        default_factory=dict, description="被 revert 的 commit 信息"
    )
    other_fields: dict[str, str] = Field(
        default_factory=dict, description="field_pattern 和 merge_groups 捕获的字段"
    )
    is_breaking: bool = Field(default=False, description="是否为破坏性变更")
