"""Tests for podwrap logging levels."""
import logging
import os
import subprocess
import sys
from pathlib import Path

import pytest

from podwrap.core.logger import PACKAGE_LOGGER, get_logger, set_console_level

REPO_ROOT = Path(__file__).resolve().parents[1]


@pytest.fixture
def restore_level():
    yield
    set_console_level(False)


class TestConsoleLevel:
    """Test switching between INFO and DEBUG."""

    def test_module_loggers_inherit(self, restore_level):
        logger = get_logger("podwrap.core.example_module")
        assert logger.level == logging.NOTSET

        set_console_level(True)
        assert logger.isEnabledFor(logging.DEBUG)

        set_console_level(False)
        assert not logger.isEnabledFor(logging.DEBUG)
        assert logger.isEnabledFor(logging.INFO)

    def test_applies_to_loggers_created_later(self, restore_level):
        set_console_level(True)
        assert get_logger("podwrap.services.created_after_switch").isEnabledFor(logging.DEBUG)

    def test_single_console_handler(self):
        get_logger("podwrap.a")
        get_logger("podwrap.b")
        package = logging.getLogger(PACKAGE_LOGGER)
        assert len(package.handlers) >= 1
        assert not get_logger("podwrap.a").handlers


class TestCliDebugFlag:
    """Run the CLI in a fresh interpreter so no module is imported up front."""

    def run_cli(self, tmp_path, *global_args):
        env = dict(os.environ)
        env.update({
            "PODWRAP_MOCK": "1",
            "COLUMNS": "200",
            "PYTHONPATH": os.pathsep.join(filter(None, [str(REPO_ROOT), env.get("PYTHONPATH")])),
        })
        env.pop("PODWRAP_CONFIG", None)
        return subprocess.run(
            [
                sys.executable, "-m", "podwrap.cli", *global_args,
                "create-skeleton", "--repo-user", "r", "--program-name", "figlet", "--docker-user", "d",
            ],
            cwd=tmp_path,
            env=env,
            capture_output=True,
            text=True,
            timeout=120,
        )

    def test_debug_reaches_lifecycle_modules(self, tmp_path):
        result = self.run_cli(tmp_path, "--debug")

        assert result.returncode == 0, result.stderr
        assert "Wrote module.yml" in result.stderr
        assert "Recorded stage skeleton" in result.stderr

    def test_default_hides_debug(self, tmp_path):
        result = self.run_cli(tmp_path)

        assert result.returncode == 0, result.stderr
        assert "Creating module skeleton" in result.stderr
        assert "Wrote module.yml" not in result.stderr
