"""Package build and install adapter built on pip."""
from pathlib import Path
from typing import Optional

from podwrap.core.logger import get_logger
from podwrap.services.process import ProcessResult, ProcessRunner

logger = get_logger(__name__)


class Packager:
    """Builds module wheels and (un)installs them into an interpreter."""

    def __init__(
        self,
        runner: Optional[ProcessRunner] = None,
        python: str = "python3",
        mock: bool = False,
    ):
        self.runner = runner or ProcessRunner(mock=mock)
        self.python = python

    def _pip(self, args, cwd: Optional[Path] = None, timeout: Optional[float] = None) -> ProcessResult:
        return self.runner.run(self.python, ["-m", "pip", *args], cwd=cwd, timeout=timeout)

    def build_wheel(self, module_path: Path, out_dir: Path, timeout: Optional[float] = None) -> ProcessResult:
        """Build a wheel for the module into ``out_dir``."""
        logger.info(f"Building package from {module_path}")
        return self._pip(
            ["wheel", "--no-deps", "--wheel-dir", str(out_dir), str(module_path)],
            timeout=timeout,
        )

    def install(self, target: Path, timeout: Optional[float] = None) -> ProcessResult:
        """Install a wheel or module directory."""
        logger.info(f"Installing {target}")
        return self._pip(
            ["install", "--no-deps", "--force-reinstall", str(target)],
            timeout=timeout,
        )

    def is_installed(self, package_name: str) -> bool:
        if self.runner.mock:
            return False
        return self._pip(["show", package_name]).ok

    def uninstall(self, package_name: str) -> ProcessResult:
        logger.info(f"Uninstalling {package_name}")
        return self._pip(["uninstall", "-y", package_name])

    @staticmethod
    def find_wheel(out_dir: Path, package_name: str) -> Optional[Path]:
        """Newest wheel for the package in ``out_dir``, if any."""
        if not out_dir.is_dir():
            return None
        wheels = sorted(
            out_dir.glob(f"{package_name}-*.whl"),
            key=lambda p: p.stat().st_mtime,
            reverse=True,
        )
        return wheels[0] if wheels else None
