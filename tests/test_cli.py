"""Tests for the command line interface."""

import json
import subprocess
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from convcom.cli import (
    COMMIT_MSG_HOOK_SCRIPT,
    HOOK_MARKER,
    cli,
    is_valid_git_repository,
    validate_hook_path_safety,
)
from convcom.config import DEFAULT_CONFIG_PATH


@pytest.fixture(autouse=True)
def isolate(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("COMMIT_MSG", raising=False)
    monkeypatch.delenv("CONVCOM_COMMENT_CHARACTER", raising=False)
    monkeypatch.setattr("convcom.config.find_config_file", lambda start_dir=None: None)
    monkeypatch.setattr("convcom.cli.find_config_file", lambda start_dir=None: None)


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


def write_message(tmp_path: Path, text: str) -> str:
    msg_file = tmp_path / "COMMIT_EDITMSG"
    msg_file.write_text(text, encoding="utf-8")
    return str(msg_file)


def make_git_dir(base: Path) -> Path:
    git_dir = base / ".git"
    (git_dir / "hooks").mkdir(parents=True)
    (git_dir / "HEAD").write_text("ref: refs/heads/main\n", encoding="utf-8")
    (git_dir / "config").write_text("[core]\n", encoding="utf-8")
    return git_dir


class TestLint:
    """Tests for `convcom lint`."""

    def test_valid_message(self, runner: CliRunner, tmp_path: Path) -> None:
        """A valid message exits 0 and echoes the header."""
        result = runner.invoke(cli, ["lint", write_message(tmp_path, "fix(foo): fixed the foos\n")])
        assert result.exit_code == 0
        assert "fix(foo): fixed the foos" in result.output

    def test_invalid_message(self, runner: CliRunner, tmp_path: Path) -> None:
        """An invalid header exits 1 with the positioned error."""
        result = runner.invoke(cli, ["lint", write_message(tmp_path, "type(scope):\n")])
        assert result.exit_code == 1
        assert "commit scope must be followed by a colon and a single space:1 col 11" in result.output

    def test_message_from_env(self, runner: CliRunner, tmp_path: Path) -> None:
        """COMMIT_MSG is linted when no file is given."""
        result = runner.invoke(cli, ["lint", write_message(tmp_path, "type(scope): x")])
        assert result.exit_code == 0
        result = runner.invoke(cli, ["lint"], env={"COMMIT_MSG": "fix: "})
        # get_commit_message strips the trailing space, so the colon ends the line
        assert result.exit_code == 1
        assert "commit type must be followed by a colon and a single space:1 col 3" in result.output

    def test_no_message(self, runner: CliRunner) -> None:
        """Without a message the hook hint is shown."""
        result = runner.invoke(cli, ["lint"])
        assert result.exit_code == 1
        assert "commit-msg hook" in result.output

    def test_config_option(self, runner: CliRunner, tmp_path: Path) -> None:
        """--config applies the file's comment character."""
        config_path = tmp_path / DEFAULT_CONFIG_PATH
        config_path.write_text('[parser]\ncomment_character = "#"\n', encoding="utf-8")
        msg = write_message(tmp_path, "# Please enter the commit message\nfeat: x\n")
        result = runner.invoke(cli, ["lint", "--config", str(config_path), msg])
        assert result.exit_code == 0

    def test_invalid_config(self, runner: CliRunner, tmp_path: Path) -> None:
        """A bad pattern in the config file is reported and exits 1."""
        config_path = tmp_path / DEFAULT_CONFIG_PATH
        config_path.write_text('[parser]\nmerge_pattern = "(bad"\n', encoding="utf-8")
        result = runner.invoke(cli, ["lint", "--config", str(config_path), write_message(tmp_path, "fix: x")])
        assert result.exit_code == 1
        assert "cannot parse merge_pattern /(bad/" in result.output


class TestParse:
    """Tests for `convcom parse`."""

    def test_json_output(self, runner: CliRunner, tmp_path: Path) -> None:
        """parse prints the commit as JSON without the callback."""
        msg = write_message(tmp_path, "feat(api): add x\n\nBREAKING CHANGE: y\n")
        result = runner.invoke(cli, ["parse", msg])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["type"] == "feat"
        assert data["scope"] == "api"
        assert data["is_breaking"] is True
        assert data["notes"] == [{"title": "BREAKING CHANGE", "text": "y"}]
        assert "error_callback" not in data

    def test_error(self, runner: CliRunner, tmp_path: Path) -> None:
        """parse reports scanner errors and exits 1."""
        result = runner.invoke(cli, ["parse", write_message(tmp_path, "type")])
        assert result.exit_code == 1
        assert "commit type must be followed by a colon and a single space:1 col 3" in result.output


class TestLog:
    """Tests for `convcom log`."""

    def test_all_valid(self, runner: CliRunner) -> None:
        """A clean range exits 0 with the commit count."""
        commits = [("a" * 40, "feat: one"), ("b" * 40, "fix(x): two")]
        with patch("convcom.cli.get_commit_messages", return_value=commits):
            result = runner.invoke(cli, ["log", "-n", "2"])
        assert result.exit_code == 0
        assert "共检查 2 个 commit" in result.output

    def test_reports_failures(self, runner: CliRunner) -> None:
        """Every failing commit is listed and the range exits 1."""
        commits = [
            ("a" * 40, "feat: one"),
            ("b" * 40, "Merge branch 'main'"),
            ("c" * 40, "fix: "),
        ]
        with patch("convcom.cli.get_commit_messages", return_value=commits) as mock_log:
            result = runner.invoke(cli, ["log", "main..HEAD"])
        mock_log.assert_called_once_with("main..HEAD", None)
        assert result.exit_code == 1
        assert "illegal ' ' character in type:1 col 5" in result.output
        assert "commit header must contain a description" in result.output
        assert "2/3" in result.output

    def test_git_failure(self, runner: CliRunner) -> None:
        """git's stderr is shown when git log fails."""
        error = subprocess.CalledProcessError(128, ["git", "log"], stderr="not a git repository")
        with patch("convcom.cli.get_commit_messages", side_effect=error):
            result = runner.invoke(cli, ["log"])
        assert result.exit_code == 1
        assert "not a git repository" in result.output


class TestInit:
    """Tests for `convcom init`."""

    def test_creates_config_and_hook(self, runner: CliRunner, tmp_path: Path) -> None:
        """init writes the config file and the commit-msg hook."""
        git_dir = make_git_dir(tmp_path)
        result = runner.invoke(cli, ["init"])
        assert result.exit_code == 0
        assert (tmp_path / DEFAULT_CONFIG_PATH).exists()
        hook = git_dir / "hooks" / "commit-msg"
        assert hook.read_text(encoding="utf-8") == COMMIT_MSG_HOOK_SCRIPT

    def test_existing_config(self, runner: CliRunner, tmp_path: Path) -> None:
        """init refuses to overwrite an existing config."""
        (tmp_path / DEFAULT_CONFIG_PATH).write_text("", encoding="utf-8")
        result = runner.invoke(cli, ["init"])
        assert result.exit_code == 1

    def test_not_a_git_repository(self, runner: CliRunner, tmp_path: Path) -> None:
        """Outside a repository only the config file is written."""
        result = runner.invoke(cli, ["init"])
        assert result.exit_code == 0
        assert (tmp_path / DEFAULT_CONFIG_PATH).exists()
        assert "未找到 .git 目录" in result.output

    def test_appends_to_existing_hook(self, runner: CliRunner, tmp_path: Path) -> None:
        """A confirmed init appends to a foreign hook."""
        git_dir = make_git_dir(tmp_path)
        hook = git_dir / "hooks" / "commit-msg"
        hook.write_text("#!/bin/sh\necho existing", encoding="utf-8")
        result = runner.invoke(cli, ["init"], input="y\n")
        assert result.exit_code == 0
        content = hook.read_text(encoding="utf-8")
        assert content.startswith("#!/bin/sh\necho existing\n")
        assert HOOK_MARKER in content

    def test_force_overwrites_hook(self, runner: CliRunner, tmp_path: Path) -> None:
        """--force replaces the existing hook."""
        git_dir = make_git_dir(tmp_path)
        hook = git_dir / "hooks" / "commit-msg"
        hook.write_text("#!/bin/sh\necho existing\n", encoding="utf-8")
        result = runner.invoke(cli, ["init", "--force"])
        assert result.exit_code == 0
        assert hook.read_text(encoding="utf-8") == COMMIT_MSG_HOOK_SCRIPT


class TestCheck:
    """Tests for `convcom check`."""

    def test_defaults(self, runner: CliRunner) -> None:
        """check prints the effective default config."""
        result = runner.invoke(cli, ["check"])
        assert result.exit_code == 0
        assert "使用默认配置" in result.output
        assert "BREAKING CHANGE" in result.output


class TestHookHelpers:
    """Tests for the hook installation helpers."""

    def test_valid_git_repository(self, tmp_path: Path) -> None:
        """A .git directory with HEAD and config is accepted."""
        make_git_dir(tmp_path)
        assert is_valid_git_repository(tmp_path) == (True, "")

    def test_git_worktree_file(self, tmp_path: Path) -> None:
        """A .git file (worktree) is rejected with a hint."""
        (tmp_path / ".git").write_text("gitdir: /elsewhere\n", encoding="utf-8")
        valid, message = is_valid_git_repository(tmp_path)
        assert valid is False
        assert "worktree" in message

    def test_hook_outside_hooks_dir(self, tmp_path: Path) -> None:
        """A hook path escaping the hooks directory is unsafe."""
        hooks_dir = make_git_dir(tmp_path) / "hooks"
        safe, _ = validate_hook_path_safety(hooks_dir / ".." / "commit-msg", hooks_dir)
        assert safe is False

    def test_symlinked_hook(self, tmp_path: Path) -> None:
        """A symlinked hook is unsafe."""
        hooks_dir = make_git_dir(tmp_path) / "hooks"
        target = tmp_path / "target"
        target.write_text("", encoding="utf-8")
        (hooks_dir / "commit-msg").symlink_to(target)
        safe, message = validate_hook_path_safety(hooks_dir / "commit-msg", hooks_dir)
        assert safe is False
