"""LLM 生成的 commit message 解析器"""

import re
from typing import Any

from langchain_core.exceptions import OutputParserException
from langchain_core.output_parsers import BaseOutputParser
from langchain_core.outputs import Generation
from pydantic import Field, PrivateAttr

from ..commit_parser import Parser
from ..errors import HeaderError, ParseError
from ..models.commit import Commit
from ..models.config import ParserConfig

FORMAT_INSTRUCTIONS = """只输出 commit message，不要添加任何解释。

格式要求（严格遵守）：
<type>(<scope>): <description>

<body>

<footer>

- type 和 scope 中不能有空格
- 冒号后面恰好一个空格
- scope 可以省略，省略时不写括号"""


class CommitMessageOutputParser(BaseOutputParser[Commit]):
    """把 LLM 输出解析为 Commit"""

    config: ParserConfig = Field(default_factory=ParserConfig)

    _parser: Parser | None = PrivateAttr(default=None)

    def parse(self, text: str) -> Commit:
        """解析 LLM 输出

        Args:
            text: LLM 返回的文本

        Returns:
            Commit: 解析结果

        Raises:
            OutputParserException: 解析失败
        """
        message = self._extract_message(text)
        if not message:
            raise OutputParserException(f"输出中没有 commit message: {text[:200]}...")

        if self._parser is None:
            self._parser = Parser(self.config)

        try:
            commit = self._parser.parse(message)
        except (ParseError, HeaderError) as e:
            raise OutputParserException(
                f"commit message 格式错误: {e}", llm_output=text
            ) from e

        if commit is None:
            raise OutputParserException(
                f"commit message 格式错误: {message.splitlines()[0]}", llm_output=text
            )
        return commit

    def _extract_message(self, text: str) -> str:
        """从文本中提取 commit message

        优先取 ``` ... ``` 代码块中的内容
        """
        text = text.strip()
        code_block = re.search(r"```[\w-]*\n(.*?)\n?```", text, re.DOTALL)
        if code_block:
            return code_block.group(1).strip()
        return text

    def get_format_instructions(self) -> str:
        return FORMAT_INSTRUCTIONS

    @property
    def _type(self) -> str:
        return "conventional_commit"

    def parse_result(self, result: Any, *, partial: bool = False) -> Commit:
        """解析 Generation 结果"""
        # 处理列表
        if isinstance(result, list):
            if result and isinstance(result[0], Generation):
                return self.parse(result[0].text)
        # 处理单个 Generation
        if isinstance(result, Generation):
            return self.parse(result.text)
        raise NotImplementedError(f"不支持的类型: {type(result)}")
