"""Child-process invocation shared by every external tool adapter."""
import os
import shutil
import subprocess
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Sequence, Union

from podwrap.core.errors import CommandTimeoutError
from podwrap.core.logger import get_logger

logger = get_logger(__name__)

# Expanded to the scoped input directory in command arguments
INPUTS_PLACEHOLDER = "{inputs}"

# Shell convention for "command not found"
COMMAND_NOT_FOUND = 127


@dataclass
class ProcessResult:
    """Exit status and captured output of one child process."""
    exit_code: int
    stdout: str = ""
    stderr: str = ""
    args: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    @property
    def output(self) -> str:
        return "\n".join(part for part in (self.stdout.strip(), self.stderr.strip()) if part)


@contextmanager
def scoped_directory(prefix: str = "podwrap-") -> Iterator[Path]:
    """Temporary directory removed on every exit path."""
    temp_dir = Path(tempfile.mkdtemp(prefix=prefix))
    try:
        yield temp_dir
    finally:
        shutil.rmtree(temp_dir, ignore_errors=True)


@contextmanager
def scoped_files(files: Dict[str, str], prefix: str = "podwrap-") -> Iterator[Path]:
    """Write files into a temporary directory for the duration of the block.

    Args:
        files: Mapping of relative file name to content
        prefix: Temp directory prefix

    Yields:
        Directory holding the files
    """
    with scoped_directory(prefix) as temp_dir:
        for name, content in files.items():
            target = temp_dir / name
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content)
            if name.endswith(".sh"):
                target.chmod(0o755)
        yield temp_dir


@contextmanager
def temporary_script(content: str, suffix: str = ".sh") -> Iterator[Path]:
    """Executable temporary script, deleted when the block exits."""
    fd, name = tempfile.mkstemp(prefix="podwrap-", suffix=suffix)
    script = Path(name)
    try:
        with os.fdopen(fd, "w") as f:
            f.write(content)
        script.chmod(0o755)
        yield script
    finally:
        script.unlink(missing_ok=True)


def _decode(value: Union[str, bytes, None]) -> str:
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode(errors="replace")
    return value


class ProcessRunner:
    """Runs external tools and reports their raw exit status and output.

    The runner never retries and never interprets exit codes; callers decide
    what a non-zero exit means for their stage.
    """

    def __init__(self, mock: bool = False):
        self.mock = mock

    def run(
        self,
        command: str,
        args: Sequence[str] = (),
        cwd: Optional[Path] = None,
        input_files: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
        env: Optional[Dict[str, str]] = None,
    ) -> ProcessResult:
        """Run a command to completion.

        Args:
            command: Executable name or path
            args: Arguments; ``{inputs}`` expands to the input file directory
            cwd: Working directory
            input_files: Files (name -> content) to materialise for the run
            timeout: Seconds before the process is killed (None = wait forever)
            env: Extra environment variables

        Returns:
            ProcessResult with exit code and captured output

        Raises:
            CommandTimeoutError: If the process exceeded the timeout
        """
        if input_files:
            with scoped_files(input_files) as inputs_dir:
                expanded = [
                    str(arg).replace(INPUTS_PLACEHOLDER, str(inputs_dir)) for arg in args
                ]
                return self._execute([command, *expanded], cwd, timeout, env)

        return self._execute([command, *map(str, args)], cwd, timeout, env)

    def _execute(
        self,
        cmd: List[str],
        cwd: Optional[Path],
        timeout: Optional[float],
        env: Optional[Dict[str, str]],
    ) -> ProcessResult:
        if self.mock:
            logger.info(f"MOCK: Would run: {' '.join(cmd)}")
            return ProcessResult(exit_code=0, args=cmd)

        logger.debug(f"Running: {' '.join(cmd)}" + (f" (in {cwd})" if cwd else ""))

        run_env = None
        if env:
            run_env = {**os.environ, **env}

        try:
            result = subprocess.run(
                cmd,
                cwd=str(cwd) if cwd else None,
                capture_output=True,
                text=True,
                timeout=timeout,
                env=run_env,
                check=False,
            )
        except subprocess.TimeoutExpired as e:
            logger.error(f"Command timed out after {timeout}s: {' '.join(cmd)}")
            raise CommandTimeoutError(
                cmd, timeout, stdout=_decode(e.stdout), stderr=_decode(e.stderr)
            ) from e
        except FileNotFoundError:
            logger.error(f"Command not found: {cmd[0]}")
            return ProcessResult(
                exit_code=COMMAND_NOT_FOUND,
                stderr=f"{cmd[0]}: command not found",
                args=cmd,
            )

        if result.returncode != 0:
            logger.debug(f"Exit code {result.returncode} from {cmd[0]}")

        return ProcessResult(
            exit_code=result.returncode,
            stdout=result.stdout or "",
            stderr=result.stderr or "",
            args=cmd,
        )
