"""CLI 入口 - commit-msg hook"""

import logging
import stat
import subprocess
import sys
from pathlib import Path
from typing import Optional

import click

from .commit_parser import Parser
from .config import create_default_config, find_config_file, load_config
from .errors import ConfigError, HeaderError, ParseError
from .git_helper import get_commit_message, get_commit_messages
from .models.commit import Commit

logger = logging.getLogger(__name__)


def setup_debug_logging(verbose: bool = False, log_file: str | None = None):
    """设置调试日志

    Args:
        verbose: 是否输出到控制台
        log_file: 日志文件路径（可选）
    """
    package_logger = logging.getLogger("convcom")
    handlers = []

    if verbose:
        # 控制台输出
        console_handler = logging.StreamHandler()
        console_handler.setLevel(logging.DEBUG)
        console_handler.setFormatter(logging.Formatter("\n[DEBUG] %(message)s"))
        handlers.append(console_handler)

    if log_file:
        # 文件输出
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter("%(asctime)s - %(message)s"))
        handlers.append(file_handler)

    if handlers:
        package_logger.setLevel(logging.DEBUG)
        for handler in handlers:
            package_logger.addHandler(handler)


def print_commit(commit: Commit):
    """打印解析结果摘要"""
    click.echo(f"类型: {commit.type}")
    if commit.scope:
        click.echo(f"范围: {commit.scope}")
    click.echo(f"描述: {commit.description}")
    if commit.is_breaking:
        click.echo(click.style("破坏性变更", fg="red", bold=True))
    for reference in commit.references:
        click.echo(f"引用: {reference.raw}")


def print_parse_error(error: Exception, message: str = ""):
    """打印解析错误，带位置信息时标出出错字符"""
    click.echo(click.style(f"[错误] {error}", fg="red"), err=True)
    lines = message.split("\n")
    if isinstance(error, ParseError) and 0 < error.line <= len(lines):
        click.echo(f"  {lines[error.line - 1]}", err=True)
        click.echo("  " + " " * error.char + click.style("^", fg="red"), err=True)


def _load_parser(config: Optional[str]) -> Parser:
    cfg = load_config(Path(config)) if config else load_config()
    return Parser(cfg)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="输出调试日志")
@click.option("--log-file", type=click.Path(), help="调试日志文件路径")
def cli(verbose: bool, log_file: Optional[str]):
    """convcom - Conventional commit 解析和校验工具"""
    setup_debug_logging(verbose, log_file)


@cli.command()
@click.option("--config", "-c", type=click.Path(exists=True), help="配置文件路径")
@click.argument("commit_msg_file", type=click.Path(exists=True), required=False)
def lint(config: Optional[str], commit_msg_file: Optional[str]):
    """校验 commit message（用于 commit-msg hook）

    Args:
        commit_msg_file: commit message 文件路径（Git 会自动传入）
    """
    message = ""
    try:
        parser = _load_parser(config)
        commit_msg_path = Path(commit_msg_file) if commit_msg_file else None
        message = get_commit_message(commit_msg_path)

        commit = parser.parse(message)
        if commit is None:
            sys.exit(1)
        click.echo(click.style(f"[通过] {commit.header}", fg="green"))
        print_commit(commit)

    except (ParseError, HeaderError) as e:
        print_parse_error(e, message)
        click.echo(
            '\n提示：header 格式为 "type(scope): description"，冒号后面恰好一个空格。',
            err=True,
        )
        sys.exit(1)
    except (FileNotFoundError, ConfigError) as e:
        click.echo(click.style(f"[错误] {e}", fg="red"), err=True)
        sys.exit(1)
    except ValueError as e:
        # 处理 commit message 获取失败的情况
        click.echo(click.style(f"[错误] {e}", fg="red"), err=True)
        click.echo("\n提示：请确保在 Git commit-msg hook 中调用此命令。", err=True)
        sys.exit(1)


@cli.command()
@click.option("--config", "-c", type=click.Path(exists=True), help="配置文件路径")
@click.argument("commit_msg_file", type=click.Path(exists=True), required=False)
def parse(config: Optional[str], commit_msg_file: Optional[str]):
    """解析 commit message 并输出 JSON"""
    message = ""
    try:
        parser = _load_parser(config)
        commit_msg_path = Path(commit_msg_file) if commit_msg_file else None
        message = get_commit_message(commit_msg_path)

        commit = parser.parse(message)
        if commit is None:
            sys.exit(1)
        click.echo(commit.model_dump_json(indent=2))

    except (ParseError, HeaderError) as e:
        print_parse_error(e, message)
        sys.exit(1)
    except (FileNotFoundError, ConfigError, ValueError) as e:
        click.echo(click.style(f"[错误] {e}", fg="red"), err=True)
        sys.exit(1)


@cli.command()
@click.option("--config", "-c", type=click.Path(exists=True), help="配置文件路径")
@click.option("--max-count", "-n", type=int, default=None, help="最多检查的 commit 数")
@click.argument("rev_range", required=False)
def log(config: Optional[str], max_count: Optional[int], rev_range: Optional[str]):
    """校验 git log 中的 commit message"""
    try:
        cfg = load_config(Path(config)) if config else load_config()
        commits = get_commit_messages(rev_range, max_count)
    except (FileNotFoundError, ConfigError) as e:
        click.echo(click.style(f"[错误] {e}", fg="red"), err=True)
        sys.exit(1)
    except subprocess.CalledProcessError as e:
        click.echo(click.style(f"[错误] git log 失败: {e.stderr or e}", fg="red"), err=True)
        sys.exit(1)

    failures: list[tuple[str, str]] = []
    current_sha = ""

    def record_error(message: str, line: int, char: int) -> None:
        # 收集错误，继续检查下一个 commit
        failures.append((current_sha, f"{message}:{line} col {char}"))
        return None

    try:
        parser = Parser(cfg.model_copy(update={"error_callback": record_error}))
    except ConfigError as e:
        click.echo(click.style(f"[错误] {e}", fg="red"), err=True)
        sys.exit(1)

    for sha, message in commits:
        current_sha = sha
        try:
            commit = parser.parse(message)
        except HeaderError as e:
            failures.append((sha, str(e)))
            continue
        if commit is not None:
            click.echo(f"{click.style(sha[:8], fg='cyan')} {commit.header}")

    for sha, error in failures:
        click.echo(
            f"{click.style(sha[:8], fg='cyan')} {click.style(error, fg='red')}", err=True
        )

    click.echo()
    if failures:
        click.echo(
            click.style(
                f"[失败] {len(failures)}/{len(commits)} 个 commit 不符合规范", fg="red", bold=True
            )
        )
        sys.exit(1)
    click.echo(click.style(f"[通过] 共检查 {len(commits)} 个 commit", fg="green"))


# Git commit-msg hook 脚本
COMMIT_MSG_HOOK_SCRIPT = """#!/bin/sh
# convcom - commit-msg hook
# 此脚本会在输入 commit message 后执行

# 获取 commit message 文件路径（Git 自动传入第一个参数）
COMMIT_MSG_FILE="$1"

convcom lint "$COMMIT_MSG_FILE"
"""

HOOK_MARKER = "convcom lint"


def is_valid_git_repository(base_path: Path) -> tuple[bool, str]:
    """验证路径是否位于有效的 Git 仓库内

    Args:
        base_path: 要检查的基础路径（通常是当前工作目录）

    Returns:
        (是否有效, 错误消息)
    """
    git_dir = base_path / ".git"

    if not git_dir.exists():
        return False, f"未找到 .git 目录: {git_dir}"

    if not git_dir.is_dir():
        # .git 可能是文件（git worktree 场景）
        try:
            git_file_content = git_dir.read_text(encoding="utf-8").strip()
        except OSError as e:
            return False, f".git 文件格式无效: {e}"
        if git_file_content.startswith("gitdir:"):
            return False, ".git 是 worktree 引用文件，请在主仓库目录运行 init 命令"
        return False, ".git 不是目录"

    if not (git_dir / "HEAD").exists():
        return False, "无效的 Git 仓库：缺少 .git/HEAD 文件"

    if not (git_dir / "config").exists():
        return False, "无效的 Git 仓库：缺少 .git/config 文件"

    return True, ""


def validate_hook_path_safety(hook_path: Path, hooks_dir: Path) -> tuple[bool, str]:
    """验证 hook 文件路径的安全性

    Args:
        hook_path: hook 文件路径
        hooks_dir: hooks 目录路径

    Returns:
        (是否安全, 错误消息)
    """
    resolved_hook = hook_path.resolve()
    resolved_hooks_dir = hooks_dir.resolve()

    # 防止路径遍历
    if resolved_hooks_dir not in resolved_hook.parents:
        return False, f"安全错误: hook 路径 {resolved_hook} 不在 hooks 目录 {resolved_hooks_dir} 下"

    if hook_path.is_symlink():
        return False, f"安全错误: hook 文件是符号链接，指向 {hook_path.readlink()}。请手动处理符号链接。"

    if hook_path.exists() and not stat.S_ISREG(hook_path.stat().st_mode):
        return False, "安全错误: hook 路径不是普通文件（可能是设备、管道等）"

    return True, ""


def safe_write_hook_file(hook_path: Path, content: str) -> None:
    """先写入临时文件，然后原子性重命名"""
    temp_path = hook_path.with_suffix(".tmp")
    try:
        temp_path.write_text(content, encoding="utf-8")
        temp_path.chmod(0o755)
        temp_path.replace(hook_path)
    except OSError:
        if temp_path.exists():
            temp_path.unlink()
        raise


def install_commit_msg_hook(hooks_dir: Path, force: bool = False) -> None:
    """安装 commit-msg hook

    已存在的 hook：force 时覆盖，否则询问后追加调用。
    """
    hook_path = hooks_dir / "commit-msg"

    is_safe, error_msg = validate_hook_path_safety(hook_path, hooks_dir)
    if not is_safe:
        click.echo(click.style(f"\n[错误] {error_msg}", fg="red"), err=True)
        click.echo("\n请手动处理该文件后重新运行 init 命令。需要添加的内容：")
        click.echo(click.style(COMMIT_MSG_HOOK_SCRIPT, fg="cyan"))
        return

    if not hook_path.exists():
        safe_write_hook_file(hook_path, COMMIT_MSG_HOOK_SCRIPT)
        click.echo(click.style(f"\n[成功] Git commit-msg hook 已创建: {hook_path}", fg="green", bold=True))
        return

    existing_content = hook_path.read_text(encoding="utf-8")

    if force:
        click.echo(
            click.style(f"\n[警告] 使用 --force 选项，将覆盖现有 hook: {hook_path}", fg="yellow", bold=True)
        )
        click.echo("原有内容：")
        click.echo(click.style(existing_content, fg="cyan", dim=True))
        safe_write_hook_file(hook_path, COMMIT_MSG_HOOK_SCRIPT)
        click.echo(click.style(f"\n[成功] Git commit-msg hook 已覆盖: {hook_path}", fg="green", bold=True))
        return

    if HOOK_MARKER in existing_content:
        click.echo(click.style("\n[成功] commit-msg hook 已包含 convcom 校验", fg="green"))
        return

    click.echo(click.style(f"\n[警告] commit-msg hook 已存在: {hook_path}", fg="yellow"))
    click.echo("现有内容：")
    click.echo(click.style(existing_content, fg="cyan", dim=True))

    if not click.confirm("\n是否在现有 hook 中追加 convcom 校验？", default=True):
        click.echo("\n跳过 hook 安装。如需手动添加，请在 hook 中添加以下内容：")
        click.echo(click.style(COMMIT_MSG_HOOK_SCRIPT, fg="cyan"))
        click.echo("\n提示：你也可以使用 --force 选项强制覆盖：")
        click.echo(click.style("  convcom init --force", fg="cyan"))
        return

    separator = "" if existing_content.endswith("\n") else "\n"
    new_content = existing_content + separator + f'\n# convcom\n{HOOK_MARKER} "$1"\n'
    safe_write_hook_file(hook_path, new_content)
    click.echo(click.style("\n[成功] 已将 convcom 校验追加到 commit-msg hook", fg="green", bold=True))


@cli.command()
@click.option("--path", "-p", type=click.Path(), help="配置文件保存路径")
@click.option("--force", "-f", is_flag=True, help="强制覆盖已存在的 commit-msg hook")
def init(path: Optional[str], force: bool):
    """初始化配置文件并安装 commit-msg hook"""
    try:
        config_path = create_default_config(Path(path) if path else None)
    except FileExistsError as e:
        click.echo(click.style(f"[错误] {e}", fg="red"), err=True)
        sys.exit(1)
    click.echo(click.style(f"[成功] 配置文件已创建: {config_path}", fg="green", bold=True))

    is_valid, error_msg = is_valid_git_repository(Path.cwd())
    if not is_valid:
        click.echo(click.style(f"\n[错误] {error_msg}", fg="red"), err=True)
        click.echo("\n提示：请确保在 Git 仓库根目录下运行此命令。", err=True)
        return

    hooks_dir = Path.cwd() / ".git" / "hooks"
    hooks_dir.mkdir(exist_ok=True)
    try:
        install_commit_msg_hook(hooks_dir, force=force)
    except OSError as e:
        click.echo(click.style(f"\n[错误] 写入 hook 文件失败: {e}", fg="red"), err=True)
        sys.exit(1)

    click.echo("\n现在提交时会自动校验 commit message：")
    click.echo(click.style('  git commit -m "feat(parser): 你的提交消息"', fg="cyan"))


@cli.command()
def check():
    """检查配置是否正确"""
    config_path = find_config_file()
    if config_path:
        click.echo(f"配置文件: {config_path}")
    else:
        click.echo("未找到配置文件，使用默认配置")

    try:
        parser = Parser(load_config(config_path))
    except ConfigError as e:
        click.echo(click.style(f"[错误] 配置检查失败: {e}", fg="red"), err=True)
        sys.exit(1)

    cfg = parser.config
    click.echo(f"Merge pattern: {cfg.merge_pattern or '无'}")
    click.echo(f"Issue 前缀: {', '.join(cfg.issue_prefixes)}")
    click.echo(f"Note 关键字: {', '.join(cfg.note_keywords)}")
    click.echo(f"注释字符: {cfg.comment_character or '无'}")
    click.echo(click.style("[成功] 配置有效", fg="green"))


def main():
    """主入口点"""
    cli()


if __name__ == "__main__":
    main()
