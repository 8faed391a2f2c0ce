"""Error types raised by podwrap operations.

Errors that wrap an external tool run keep the stage, module path, command and
captured output so a failure can be reproduced by hand.
"""
from pathlib import Path
from typing import Optional, Sequence, Union


class PodwrapError(Exception):
    """Base class for podwrap errors."""


class TemplateNotFoundError(PodwrapError):
    """Raised when a template file does not exist."""

    def __init__(self, name: str, path: Path):
        self.name = name
        self.path = path
        super().__init__(f"Template '{name}' not found at {path}")


class WriteError(PodwrapError):
    """Raised when a rendered file cannot be written."""

    def __init__(self, path: Path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot write {path}: {reason}")


class AlreadyExistsError(PodwrapError):
    """Raised when a skeleton would overwrite an existing path."""

    def __init__(self, path: Path):
        self.path = path
        super().__init__(f"Path already exists: {path}")


class MalformedModuleError(PodwrapError):
    """Raised when module files cannot be parsed into an identity."""

    def __init__(self, path: Union[str, Path], reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Malformed module at {path}: {reason}")


class ToolRunError(PodwrapError):
    """An external tool run that failed during a lifecycle stage."""

    def __init__(
        self,
        stage: str,
        path: Union[str, Path, None],
        message: str,
        command: Optional[Sequence[str]] = None,
        exit_code: Optional[int] = None,
        stdout: str = "",
        stderr: str = "",
    ):
        self.stage = stage
        self.path = path
        self.message = message
        self.command = list(command) if command else []
        self.exit_code = exit_code
        self.stdout = stdout or ""
        self.stderr = stderr or ""
        super().__init__(self._describe())

    def _describe(self) -> str:
        lines = [f"[{self.stage}] {self.message}"]
        if self.path is not None:
            lines.append(f"  path: {self.path}")
        if self.command:
            lines.append(f"  command: {' '.join(self.command)}")
        if self.exit_code is not None:
            lines.append(f"  exit code: {self.exit_code}")
        if self.stdout.strip():
            lines.append(f"  stdout:\n{self.stdout.rstrip()}")
        if self.stderr.strip():
            lines.append(f"  stderr:\n{self.stderr.rstrip()}")
        return "\n".join(lines)

    @classmethod
    def from_result(cls, stage: str, path, message: str, result) -> "ToolRunError":
        """Build the error from a ProcessResult."""
        return cls(
            stage,
            path,
            message,
            command=result.args,
            exit_code=result.exit_code,
            stdout=result.stdout,
            stderr=result.stderr,
        )


class BuildError(ToolRunError):
    """Raised when the package builder or image build exits non-zero."""


class TestFailure(ToolRunError):
    """Describes a failed example run.

    Returned on TestResult rather than raised; callers decide whether it blocks.
    """

    __test__ = False


class UploadError(ToolRunError):
    """Failure of a single upload target (code host or container registry)."""

    def __init__(self, target: str, *args, **kwargs):
        self.target = target
        super().__init__(*args, **kwargs)


class CommandTimeoutError(ToolRunError, TimeoutError):
    """Raised when an external process exceeds its timeout."""

    def __init__(self, command: Sequence[str], timeout: float, stdout: str = "", stderr: str = ""):
        self.timeout = timeout
        super().__init__(
            "process",
            None,
            f"Timed out after {timeout}s",
            command=command,
            stdout=stdout,
            stderr=stderr,
        )
