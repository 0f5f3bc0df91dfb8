"""Git 操作封装模块"""

import logging
import os
import subprocess
from pathlib import Path

logger = logging.getLogger(__name__)

# git log 输出中的分隔符
FIELD_SEPARATOR = "\x1f"
RECORD_SEPARATOR = "\x1e"


def run_git_command(args: list[str], cwd: Path | None = None) -> str:
    """运行 git 命令

    Args:
        args: git 命令参数
        cwd: 工作目录

    Returns:
        命令输出

    Raises:
        subprocess.CalledProcessError: 命令执行失败
    """
    logger.debug(f"git {' '.join(args)}")
    result = subprocess.run(
        ["git"] + args,
        capture_output=True,
        text=True,
        check=True,
        cwd=cwd or Path.cwd(),
    )
    return result.stdout.strip()


def get_commit_message(commit_msg_file_path: Path | None = None) -> str:
    """获取 commit message

    读取优先级：
    1. 传入的 commit_msg_file_path 参数（commit-msg hook）
    2. 环境变量 COMMIT_MSG

    Args:
        commit_msg_file_path: commit message 文件路径（用于 commit-msg hook）

    Returns:
        commit message 内容

    Raises:
        ValueError: 无法获取 commit message 时抛出异常
    """
    if commit_msg_file_path:
        if not commit_msg_file_path.exists():
            raise ValueError(f"Commit message 文件不存在: {commit_msg_file_path}")

        content = commit_msg_file_path.read_text(encoding="utf-8").strip()
        if not content:
            raise ValueError(f"Commit message 文件为空: {commit_msg_file_path}")

        return content

    commit_msg = os.getenv("COMMIT_MSG")
    if commit_msg and commit_msg.strip():
        return commit_msg.strip()

    raise ValueError(
        "无法获取 commit message。请确保：\n"
        "1. 使用 commit-msg hook 调用此工具\n"
        "2. 或设置 COMMIT_MSG 环境变量"
    )


def get_commit_messages(
    rev_range: str | None = None,
    max_count: int | None = None,
    cwd: Path | None = None,
) -> list[tuple[str, str]]:
    """从 git log 读取 commit message

    Args:
        rev_range: 版本范围，例如 v1.0.0..HEAD，为空则为当前分支
        max_count: 最多读取的 commit 数
        cwd: 仓库目录

    Returns:
        (sha, message) 列表，最新的在前
    """
    args = ["log", f"--format=%H{FIELD_SEPARATOR}%B{RECORD_SEPARATOR}"]
    if max_count is not None:
        args.append(f"--max-count={max_count}")
    if rev_range:
        args.append(rev_range)

    output = run_git_command(args, cwd=cwd)

    commits = []
    for record in output.split(RECORD_SEPARATOR):
        record = record.strip()
        if not record:
            continue
        sha, _, message = record.partition(FIELD_SEPARATOR)
        commits.append((sha.strip(), message.strip()))
    return commits
