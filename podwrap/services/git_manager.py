"""Git operations for sharing module source on a code host."""
from pathlib import Path
from typing import Optional

from podwrap.core.logger import get_logger
from podwrap.services.process import ProcessResult, ProcessRunner

logger = get_logger(__name__)


class GitManager:
    """Manages the git repository of a module directory."""

    def __init__(
        self,
        runner: Optional[ProcessRunner] = None,
        executable: str = "git",
        mock: bool = False,
    ):
        self.runner = runner or ProcessRunner(mock=mock)
        self.executable = executable

    @property
    def mock(self) -> bool:
        return self.runner.mock

    def _git(self, path: Path, *args, timeout: Optional[float] = None) -> ProcessResult:
        return self.runner.run(self.executable, list(args), cwd=path, timeout=timeout)

    def is_repo(self, path: Path) -> bool:
        """Check if a git repository already exists at the given path."""
        return (path / ".git").exists()

    def init_repo(self, path: Path, branch: str = "main") -> ProcessResult:
        logger.info(f"Initializing git repository in {path}")
        return self._git(path, "init", "-b", branch)

    def get_remote(self, path: Path, name: str = "origin") -> Optional[str]:
        """Return the remote URL or None when the remote is not configured."""
        if self.mock:
            logger.info(f"MOCK: Would read remote {name} in {path}")
            return None
        result = self._git(path, "remote", "get-url", name)
        if not result.ok:
            return None
        return result.stdout.strip() or None

    def ensure_remote(self, path: Path, url: str, name: str = "origin") -> ProcessResult:
        """Point the remote at ``url``, adding it when missing."""
        current = self.get_remote(path, name)
        if current == url:
            return ProcessResult(exit_code=0, args=[self.executable, "remote"])
        if current is None:
            logger.info(f"Adding remote {name} -> {url}")
            return self._git(path, "remote", "add", name, url)
        logger.info(f"Updating remote {name}: {current} -> {url}")
        return self._git(path, "remote", "set-url", name, url)

    def has_changes(self, path: Path) -> bool:
        """True when the working tree has uncommitted changes."""
        if self.mock:
            return True
        result = self._git(path, "status", "--porcelain")
        return bool(result.stdout.strip())

    def commit_all(self, path: Path, message: str) -> ProcessResult:
        """Stage everything and commit."""
        added = self._git(path, "add", "-A")
        if not added.ok:
            return added
        logger.info(f"Committing changes in {path}")
        return self._git(path, "commit", "-m", message)

    def push(self, path: Path, remote: str = "origin", timeout: Optional[float] = None) -> ProcessResult:
        logger.info(f"Pushing {path} to {remote}")
        return self._git(path, "push", "-u", remote, "HEAD", timeout=timeout)

    def publish(
        self,
        path: Path,
        url: str,
        message: str,
        timeout: Optional[float] = None,
    ) -> ProcessResult:
        """Initialise if needed, commit pending changes and push to ``url``.

        Returns:
            The push result, or the first failing step
        """
        if not self.is_repo(path):
            result = self.init_repo(path)
            if not result.ok:
                return result

        result = self.ensure_remote(path, url)
        if not result.ok:
            return result

        if self.has_changes(path):
            result = self.commit_all(path, message)
            if not result.ok:
                return result
        else:
            logger.info("Working tree clean, nothing to commit")

        return self.push(path, timeout=timeout)
