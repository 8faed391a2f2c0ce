"""Tests for git-based code sharing."""
from pathlib import Path
from unittest.mock import Mock, patch

from podwrap.services.git_manager import GitManager
from podwrap.services.process import ProcessResult

URL = "https://github.com/r/pw_figlet"


def git_handler(remote=None, porcelain=" M module.yml\n", fail=None):
    """Scripted git responses."""
    def handler(cmd):
        sub = cmd[1]
        if fail == sub:
            return ProcessResult(exit_code=1, stderr=f"fatal: {sub} failed")
        if cmd[1:3] == ["remote", "get-url"]:
            if remote is None:
                return ProcessResult(exit_code=2, stderr="error: No such remote 'origin'")
            return ProcessResult(exit_code=0, stdout=remote + "\n")
        if sub == "status":
            return ProcessResult(exit_code=0, stdout=porcelain)
        return ProcessResult(exit_code=0)
    return handler


class TestGitManager:
    """Test GitManager operations."""

    def test_publish_new_repository(self, fake_runner, tmp_path):
        fake_runner.handler = git_handler()
        manager = GitManager(fake_runner)

        result = manager.publish(tmp_path, URL, "Initial module")

        assert result.ok
        assert [c[1:] for c in fake_runner.calls] == [
            ["init", "-b", "main"],
            ["remote", "get-url", "origin"],
            ["remote", "add", "origin", URL],
            ["status", "--porcelain"],
            ["add", "-A"],
            ["commit", "-m", "Initial module"],
            ["push", "-u", "origin", "HEAD"],
        ]

    def test_publish_existing_repository_clean_tree(self, fake_runner, tmp_path):
        (tmp_path / ".git").mkdir()
        fake_runner.handler = git_handler(remote=URL, porcelain="")
        manager = GitManager(fake_runner)

        result = manager.publish(tmp_path, URL, "msg")

        assert result.ok
        subcommands = [c[1] for c in fake_runner.calls]
        assert "init" not in subcommands
        assert "commit" not in subcommands
        assert subcommands[-1] == "push"

    def test_publish_updates_wrong_remote(self, fake_runner, tmp_path):
        (tmp_path / ".git").mkdir()
        fake_runner.handler = git_handler(remote="https://github.com/old/pw_figlet")

        GitManager(fake_runner).publish(tmp_path, URL, "msg")

        assert ["git", "remote", "set-url", "origin", URL] in fake_runner.calls

    def test_publish_stops_at_failing_step(self, fake_runner, tmp_path):
        (tmp_path / ".git").mkdir()
        fake_runner.handler = git_handler(remote=URL, fail="commit")

        result = GitManager(fake_runner).publish(tmp_path, URL, "msg")

        assert not result.ok
        assert "commit failed" in result.stderr
        assert not fake_runner.commands_starting("git", "push")

    def test_runs_in_module_directory(self, tmp_path):
        runner = Mock()
        runner.mock = False
        runner.run.return_value = ProcessResult(exit_code=0, stdout=URL + "\n")

        remote = GitManager(runner).get_remote(tmp_path)

        assert remote == URL
        assert runner.run.call_args[1]['cwd'] == tmp_path

    @patch('subprocess.run')
    def test_mock_mode(self, mock_run, tmp_path):
        manager = GitManager(mock=True)

        result = manager.publish(tmp_path, URL, "msg")

        assert result.ok
        mock_run.assert_not_called()
