"""Conventional commit 解析器"""

import logging
import re
from typing import Optional

from .errors import ConfigError, HeaderError, ParseError
from .header import scan_header
from .models.commit import Commit, Footer, Note, Reference
from .models.config import (
    DEFAULT_FIELD_PATTERN,
    DEFAULT_REVERT_PATTERN,
    ParserConfig,
)

logger = logging.getLogger(__name__)

# @user 或 @org-team
MENTION_PATTERN = re.compile(r"(?<![\w.])@([\w-]+)")

# footer 标记不含空格，note 关键字除外（例如 BREAKING CHANGE）
FOOTER_TOKEN = r"[\w-]+"
FOOTER_SEPARATOR = r"(?::[ \t]+|[ \t]+(?=#))"


def _compile(field: str, pattern: str, flags: int = 0) -> re.Pattern[str]:
    """编译配置中的正则

    Raises:
        ConfigError: 正则无效
    """
    try:
        return re.compile(pattern, flags)
    except re.error as e:
        raise ConfigError(f"cannot parse {field} /{pattern}/: {e}") from e


def _alternation(words: tuple[str, ...]) -> str:
    # 长的优先，closes 先于 close
    return "|".join(re.escape(w) for w in sorted(words, key=len, reverse=True))


def _normalize_token(token: str) -> str:
    return token.replace("-", " ").upper()


class Parser:
    """Conventional commit 解析器

    构造时编译配置中的正则，之后只读，可以在多个线程中共享。
    """

    def __init__(self, config: Optional[ParserConfig] = None):
        """
        Args:
            config: 解析器配置，为 None 时使用默认配置

        Raises:
            ConfigError: 配置中的正则无效
        """
        self._config = config if config is not None else ParserConfig()
        cfg = self._config

        self._merge_pattern: Optional[re.Pattern[str]] = None
        if cfg.merge_pattern:
            self._merge_pattern = _compile("merge_pattern", cfg.merge_pattern)

        self._field_pattern = _compile(
            "field_pattern", cfg.field_pattern or DEFAULT_FIELD_PATTERN
        )
        # revert 信息在正文中，^ 按行匹配
        self._revert_pattern = _compile(
            "revert_pattern", cfg.revert_pattern or DEFAULT_REVERT_PATTERN, re.MULTILINE
        )

        self._note_keywords = {_normalize_token(k): k for k in cfg.note_keywords}
        footer_token = FOOTER_TOKEN
        if cfg.note_keywords:
            footer_token = f"(?i:{_alternation(cfg.note_keywords)})|{FOOTER_TOKEN}"
        self._footer_pattern = re.compile(
            rf"^(?P<token>{footer_token}){FOOTER_SEPARATOR}(?P<value>.*)$"
        )

        self._reference_pattern: Optional[re.Pattern[str]] = None
        if cfg.issue_prefixes:
            prefixes = _alternation(cfg.issue_prefixes)
            if not cfg.issue_prefixes_case_sensitive:
                prefixes = f"(?i:{prefixes})"
            action = ""
            if cfg.reference_actions:
                action = rf"(?:(?P<action>(?i:{_alternation(cfg.reference_actions)}))\s+)?"
            self._reference_pattern = re.compile(
                rf"(?:(?<=\s)|^){action}"
                r"(?:(?P<owner>[\w.-]+)/(?P<repository>[\w.-]+))?"
                rf"(?P<prefix>{prefixes})(?P<issue>\d+)",
                re.MULTILINE,
            )

    @property
    def config(self) -> ParserConfig:
        return self._config

    def parse(self, message: str) -> Optional[Commit]:
        """解析完整的 commit message

        Args:
            message: commit message

        Returns:
            Commit；error_callback 吞掉错误时返回 None

        Raises:
            ParseError: header 格式错误
            HeaderError: header 缺少 type 或 description
        """
        message = self._strip_comments(message)
        lines = message.split("\n")

        merge_header = ""
        other_fields: dict[str, str] = {}
        header_index = 0
        if self._merge_pattern is not None:
            match = self._merge_pattern.match(lines[0])
            if match:
                merge_header = lines[0]
                other_fields.update(_named_groups(self._config.merge_groups, match))
                header_index = 1
                logger.debug(f"merge header: {merge_header}")

        header = lines[header_index] if header_index < len(lines) else ""
        try:
            commit = self.parse_header(header, header_index + 1)
        except ParseError as e:
            return self._handle_error(e)

        if not commit.type:
            raise HeaderError("commit header must contain a type")
        if not commit.description:
            raise HeaderError("commit header must contain a description")

        body, footers, fields, footer_text = self._split_body(lines[header_index + 1 :])
        other_fields.update(fields)

        notes = self._collect_notes(footers)
        text = f"{body}\n{footer_text}"

        commit.header = header
        commit.merge_header = merge_header
        commit.body = body
        commit.footers = footers
        commit.notes = notes
        commit.references = self._collect_references(text)
        commit.mentions = list(dict.fromkeys(MENTION_PATTERN.findall(text)))
        commit.reverts = self._collect_reverts(message)
        commit.other_fields = other_fields
        commit.is_breaking = commit.type.endswith("!") or any(
            _normalize_token(n.title) == "BREAKING CHANGE" for n in notes
        )
        logger.debug(
            f"parsed commit: type={commit.type!r} scope={commit.scope!r} "
            f"footers={len(footers)} references={len(commit.references)}"
        )
        return commit

    def parse_header(self, line: str, line_number: int = 1) -> Commit:
        """解析 header 行，见 scan_header"""
        return scan_header(line, line_number)

    def _handle_error(self, error: ParseError) -> Optional[Commit]:
        callback = self._config.error_callback
        if callback is None:
            raise error
        result = callback(error.message, error.line, error.char)
        if result is not None:
            raise result from error
        logger.warning(f"跳过无法解析的 commit: {error}")
        return None

    def _strip_comments(self, message: str) -> str:
        comment = self._config.comment_character
        if not comment:
            return message
        return "\n".join(
            line for line in message.split("\n") if not line.startswith(comment)
        )

    def _split_body(
        self, lines: list[str]
    ) -> tuple[str, list[Footer], dict[str, str], str]:
        """拆分正文、footer 和其他字段

        Args:
            lines: header 之后的行

        Returns:
            (正文, footer 列表, 其他字段, footer 原文)
        """
        # 字段标记行之后的内容都属于该字段，直到下一个标记行
        fields: dict[str, list[str]] = {}
        current_field: Optional[str] = None
        remaining: list[str] = []
        for line in lines:
            match = self._field_pattern.match(line)
            if match:
                current_field = match.group(1) if match.groups() else match.group(0)
                fields[current_field] = []
            elif current_field is not None:
                fields[current_field].append(line)
            else:
                remaining.append(line)

        # footer 是最后一段，且该段第一行是 trailer
        while remaining and not remaining[-1].strip():
            remaining.pop()
        footer_start = len(remaining)
        paragraph_start = 0
        for i, line in enumerate(remaining):
            if not line.strip():
                paragraph_start = i + 1
        if paragraph_start < len(remaining) and self._footer_pattern.match(
            remaining[paragraph_start]
        ):
            footer_start = paragraph_start

        footers: list[Footer] = []
        token: Optional[str] = None
        value_lines: list[str] = []
        for line in remaining[footer_start:]:
            match = self._footer_pattern.match(line)
            if match:
                if token is not None:
                    footers.append(Footer(token=token, value="\n".join(value_lines).strip()))
                token = match.group("token")
                value_lines = [match.group("value")]
            else:
                # 多行 footer 的续行
                value_lines.append(line)
        if token is not None:
            footers.append(Footer(token=token, value="\n".join(value_lines).strip()))

        body = "\n".join(remaining[:footer_start]).strip()
        footer_text = "\n".join(remaining[footer_start:])
        fields_text = {k: "\n".join(v).strip() for k, v in fields.items()}
        return body, footers, fields_text, footer_text

    def _collect_notes(self, footers: list[Footer]) -> list[Note]:
        notes = []
        for footer in footers:
            keyword = self._note_keywords.get(_normalize_token(footer.token))
            if keyword is not None:
                notes.append(Note(title=keyword, text=footer.value))
        return notes

    def _collect_references(self, text: str) -> list[Reference]:
        if self._reference_pattern is None:
            return []
        return [
            Reference(
                action=m.group("action") if "action" in m.groupdict() else None,
                owner=m.group("owner"),
                repository=m.group("repository"),
                prefix=m.group("prefix"),
                issue=m.group("issue"),
                raw=m.group(0),
            )
            for m in self._reference_pattern.finditer(text)
        ]

    def _collect_reverts(self, message: str) -> dict[str, str]:
        match = self._revert_pattern.search(message)
        if not match:
            return {}
        return _named_groups(self._config.revert_groups, match)


def _named_groups(names: tuple[str, ...], match: re.Match[str]) -> dict[str, str]:
    """按顺序把捕获组映射到字段名"""
    return {name: value or "" for name, value in zip(names, match.groups())}


def new(config: Optional[ParserConfig] = None) -> Parser:
    """创建解析器

    Raises:
        ConfigError: 配置中的正则无效
    """
    return Parser(config)


def parse(message: str, config: Optional[ParserConfig] = None) -> Optional[Commit]:
    """使用给定配置解析 commit message"""
    return Parser(config).parse(message)
