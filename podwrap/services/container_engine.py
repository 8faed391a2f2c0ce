"""Container engine adapter (docker or podman CLI)."""
from pathlib import Path
from typing import Dict, List, Optional

from podwrap.core.logger import get_logger
from podwrap.services.process import ProcessResult, ProcessRunner

logger = get_logger(__name__)

# Mount points used inside throwaway containers
WORKING_DIR = "/working_dir"
EXAMPLES_DIR = "/podwrap"


class ContainerEngine:
    """Builds, runs, pushes and removes module images."""

    def __init__(
        self,
        runner: Optional[ProcessRunner] = None,
        executable: str = "docker",
        mock: bool = False,
    ):
        self.runner = runner or ProcessRunner(mock=mock)
        self.executable = executable

    def _run(self, args: List[str], timeout: Optional[float] = None, **kwargs) -> ProcessResult:
        return self.runner.run(self.executable, args, timeout=timeout, **kwargs)

    def build(self, context_dir: Path, image: str, tag: str, timeout: Optional[float] = None) -> ProcessResult:
        """Build ``image:tag`` from the Dockerfile in ``context_dir``."""
        reference = f"{image}:{tag}"
        logger.info(f"Building image {reference} from {context_dir}")
        return self._run(["build", "-t", reference, str(context_dir)], timeout=timeout)

    def image_exists(self, image: str, tag: str = "latest") -> bool:
        """Check whether ``image:tag`` is present locally."""
        if self.runner.mock:
            return True
        result = self._run(["image", "inspect", f"{image}:{tag}"])
        return result.ok

    def list_images(self, repository_suffix: str) -> List[str]:
        """List local ``repo:tag`` references whose repository ends with the suffix."""
        result = self._run(["images", "--format", "{{.Repository}}:{{.Tag}}"])
        if not result.ok:
            logger.warning(f"Could not list images: {result.stderr.strip()}")
            return []

        references = []
        for line in result.stdout.splitlines():
            line = line.strip()
            if not line or ":" not in line:
                continue
            repository = line.rsplit(":", 1)[0]
            if repository == repository_suffix or repository.endswith(f"/{repository_suffix}"):
                references.append(line)
        return references

    def remove_image(self, reference: str) -> ProcessResult:
        logger.info(f"Removing image {reference}")
        return self._run(["rmi", reference])

    def push(self, image: str, tag: str, timeout: Optional[float] = None) -> ProcessResult:
        reference = f"{image}:{tag}"
        logger.info(f"Pushing {reference}")
        return self._run(["push", reference], timeout=timeout)

    def run(
        self,
        image: str,
        tag: str = "latest",
        command: Optional[List[str]] = None,
        volumes: Optional[Dict[str, str]] = None,
        workdir: Optional[str] = None,
        entrypoint: Optional[str] = None,
        input_files: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> ProcessResult:
        """Run a throwaway container.

        Args:
            image: Image name without tag
            tag: Image tag
            command: Command and arguments to run in the container
            volumes: Host path -> container path bind mounts
            workdir: Working directory inside the container
            entrypoint: Override the image entrypoint
            input_files: Scoped files for the run, see ProcessRunner.run
            timeout: Seconds before the run is killed

        Returns:
            ProcessResult of the engine invocation
        """
        args = ["run", "--rm"]
        for host_path, container_path in (volumes or {}).items():
            args.extend(["-v", f"{host_path}:{container_path}"])
        if workdir:
            args.extend(["-w", workdir])
        if entrypoint is not None:
            args.extend(["--entrypoint", entrypoint])
        args.append(f"{image}:{tag}")
        args.extend(command or [])

        return self._run(args, timeout=timeout, input_files=input_files)
