"""Runs a wrapped program inside its module image."""
from pathlib import Path
from typing import List, Optional, Sequence, Union

from podwrap.core.config import get_config
from podwrap.core.logger import get_logger
from podwrap.runtime.arglist import ArgToken, build_arglist
from podwrap.services.container_engine import WORKING_DIR, ContainerEngine
from podwrap.services.process import ProcessResult

logger = get_logger(__name__)


class ModuleRunner:
    """Describes one program invocation and runs it in a throwaway container.

    The host working directory is mounted at /working_dir so the program can
    read inputs and write outputs relative to it.
    """

    def __init__(
        self,
        package_name: str,
        cmd: str,
        image: str,
        arglist: Sequence[Union[ArgToken, str]] = (),
        tag: str = "latest",
        working_dir: Optional[Path] = None,
        engine: Optional[ContainerEngine] = None,
        timeout: Optional[float] = None,
    ):
        self.package_name = package_name
        self.cmd = cmd
        self.image = image
        self.arglist = list(arglist)
        self.tag = tag
        self.working_dir = Path(working_dir) if working_dir else Path.cwd()
        self.engine = engine or ContainerEngine(executable=get_config().container_engine)
        self.timeout = timeout

    def command(self) -> List[str]:
        """The program and its serialised arguments."""
        args: List[str] = []
        for item in self.arglist:
            # Plain strings pass through in place
            if isinstance(item, str):
                args.append(item)
            else:
                args.extend(build_arglist([item]))
        return [self.cmd, *args]

    def run(self) -> ProcessResult:
        """Run the program, echo its output and return the process result."""
        command = self.command()
        logger.debug(f"[{self.package_name}] {' '.join(command)}")
        result = self.engine.run(
            self.image,
            tag=self.tag,
            command=command,
            volumes={str(self.working_dir): WORKING_DIR},
            workdir=WORKING_DIR,
            timeout=self.timeout,
        )
        if result.stdout:
            print(result.stdout, end="")
        if not result.ok:
            logger.error(f"{self.cmd} exited with code {result.exit_code}")
            if result.stderr:
                logger.error(result.stderr.rstrip())
        return result
