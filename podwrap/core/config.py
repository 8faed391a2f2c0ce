"""podwrap runtime configuration and settings."""
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Optional

import yaml

from podwrap.core.logger import get_logger

logger = get_logger(__name__)

CONFIG_FILE_NAME = "podwrap.yml"


def _optional_int(value) -> Optional[int]:
    if value in (None, "", "none", "0", 0):
        return None
    return int(value)


@dataclass
class PodwrapConfig:
    """Runtime configuration for podwrap operations.

    Attributes:
        container_engine: Container engine executable (docker or podman)
        python: Python interpreter used for building and installing modules
        git: Git executable used for code sharing
        default_tag: Container build tag generated for new modules
        default_service: Code-hosting service for new modules
        build_timeout: Timeout in seconds for package/image builds (None = no timeout)
        test_timeout: Timeout in seconds for example runs (None = no timeout)
        push_timeout: Timeout in seconds for git/registry pushes (None = no timeout)
    """

    container_engine: str = "docker"
    python: str = "python3"
    git: str = "git"
    default_tag: str = "latest"
    default_service: str = "github"

    build_timeout: Optional[int] = None
    test_timeout: Optional[int] = None
    push_timeout: Optional[int] = None

    @classmethod
    def from_env(cls, base: Optional["PodwrapConfig"] = None) -> "PodwrapConfig":
        """Create config from environment variables.

        Environment variables:
            PODWRAP_CONTAINER_ENGINE: Container engine executable
            PODWRAP_PYTHON: Python interpreter for pip
            PODWRAP_GIT: Git executable
            PODWRAP_DEFAULT_TAG: Default container build tag
            PODWRAP_DEFAULT_SERVICE: Default code-hosting service
            PODWRAP_BUILD_TIMEOUT / PODWRAP_TEST_TIMEOUT / PODWRAP_PUSH_TIMEOUT:
                Timeouts in seconds (0 disables)

        Args:
            base: Values to fall back on (defaults to built-in defaults)

        Returns:
            PodwrapConfig instance with values from environment or defaults
        """
        base = base or cls()
        return cls(
            container_engine=os.getenv("PODWRAP_CONTAINER_ENGINE", base.container_engine),
            python=os.getenv("PODWRAP_PYTHON", base.python),
            git=os.getenv("PODWRAP_GIT", base.git),
            default_tag=os.getenv("PODWRAP_DEFAULT_TAG", base.default_tag),
            default_service=os.getenv("PODWRAP_DEFAULT_SERVICE", base.default_service),
            build_timeout=_optional_int(
                os.getenv("PODWRAP_BUILD_TIMEOUT", base.build_timeout)
            ),
            test_timeout=_optional_int(
                os.getenv("PODWRAP_TEST_TIMEOUT", base.test_timeout)
            ),
            push_timeout=_optional_int(
                os.getenv("PODWRAP_PUSH_TIMEOUT", base.push_timeout)
            ),
        )

    @classmethod
    def from_file(cls, path: Path) -> "PodwrapConfig":
        """Load settings from a YAML file; unknown keys are ignored with a warning."""
        with open(path) as f:
            data = yaml.safe_load(f) or {}

        known = {f.name for f in fields(cls)}
        values = {}
        for key, value in data.items():
            if key not in known:
                logger.warning(f"Ignoring unknown config key '{key}' in {path}")
                continue
            values[key] = value

        for key in ("build_timeout", "test_timeout", "push_timeout"):
            if key in values:
                values[key] = _optional_int(values[key])

        return cls(**values)

    @classmethod
    def load(cls, config_path: Optional[str] = None) -> "PodwrapConfig":
        """Build the effective config: defaults, then YAML file, then environment."""
        candidate = config_path or os.environ.get("PODWRAP_CONFIG")
        path = Path(candidate) if candidate else Path.cwd() / CONFIG_FILE_NAME

        base = cls.from_file(path) if path.exists() else cls()
        return cls.from_env(base)


# Global config instance (can be overridden)
_config: Optional[PodwrapConfig] = None


def get_config() -> PodwrapConfig:
    """Get the global podwrap configuration.

    Returns:
        PodwrapConfig instance (loaded from file and environment if not set)
    """
    global _config
    if _config is None:
        _config = PodwrapConfig.load()
    return _config


def set_config(config: Optional[PodwrapConfig]) -> None:
    """Override the global configuration (None resets to lazy loading)."""
    global _config
    _config = config
