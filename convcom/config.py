"""配置加载模块"""

import logging
import os
from pathlib import Path

import toml
from pydantic import ValidationError

from .errors import ConfigError
from .models.config import ParserConfig

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = ".convcom.toml"
DEFAULT_CONFIG_CONTENT = """# convcom 配置文件

[parser]
# 匹配 merge header 的正则，为空则不检测
merge_pattern = ""
merge_groups = []
reference_actions = ["close", "closes", "closed", "fix", "fixes", "fixed", "resolve", "resolves", "resolved"]
issue_prefixes = ["#"]
issue_prefixes_case_sensitive = false
note_keywords = ["BREAKING CHANGE"]
field_pattern = '^-(.*?)-$'
revert_pattern = '^Revert\\s"([\\s\\S]*)"\\s*This reverts commit (\\w*)\\.'
revert_groups = ["header", "hash"]
comment_character = "#"
"""


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """查找配置文件，从 start_dir 向上查找直到根目录"""
    if start_dir is None:
        start_dir = Path.cwd()

    current = start_dir
    while True:
        config_path = current / DEFAULT_CONFIG_PATH
        if config_path.exists():
            return config_path
        if current == current.parent:
            return None
        current = current.parent


def load_config(config_path: Path | None = None) -> ParserConfig:
    """加载配置

    Args:
        config_path: 配置文件路径，如果为 None 则自动查找；找不到时使用默认配置

    Returns:
        ParserConfig: 配置对象

    Raises:
        FileNotFoundError: 指定的配置文件不存在
        ConfigError: 配置格式错误
    """
    if config_path is None:
        config_path = find_config_file()
        if config_path is None:
            logger.debug("未找到配置文件，使用默认配置")
            data: dict = {}
        else:
            data = _read_parser_table(config_path)
    else:
        if not config_path.exists():
            raise FileNotFoundError(
                f"配置文件不存在: {config_path}\n"
                f"请创建配置文件或运行: convcom init"
            )
        data = _read_parser_table(config_path)

    # 支持环境变量覆盖
    comment_character = os.getenv("CONVCOM_COMMENT_CHARACTER")
    if comment_character is not None:
        data["comment_character"] = comment_character

    try:
        return ParserConfig(**data)
    except ValidationError as e:
        raise ConfigError(f"配置格式错误: {e}") from e


def _read_parser_table(config_path: Path) -> dict:
    logger.debug(f"加载配置文件: {config_path}")
    try:
        data = toml.load(config_path)
    except toml.TomlDecodeError as e:
        raise ConfigError(f"无法解析配置文件 {config_path}: {e}") from e

    parser_data = data.get("parser", {})
    if not isinstance(parser_data, dict):
        raise ConfigError(f"配置文件 {config_path} 中的 [parser] 必须是表")
    return dict(parser_data)


def create_default_config(path: Path | None = None) -> Path:
    """创建默认配置文件"""
    if path is None:
        path = Path.cwd() / DEFAULT_CONFIG_PATH

    if path.exists():
        raise FileExistsError(f"配置文件已存在: {path}")

    path.write_text(DEFAULT_CONFIG_CONTENT, encoding="utf-8")
    return path
