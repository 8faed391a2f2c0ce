"""Shared test fixtures for podwrap tests."""
from pathlib import Path
from typing import Callable, Dict, List, Optional

import pytest

from podwrap.core.config import PodwrapConfig, set_config
from podwrap.core.lifecycle import LifecycleOrchestrator
from podwrap.models.module import ModuleDescriptor
from podwrap.scaffold.core import ScaffoldManager
from podwrap.services.process import INPUTS_PLACEHOLDER, ProcessResult, ProcessRunner


class FakeRunner(ProcessRunner):
    """Records commands instead of running them.

    ``handler`` receives the full command list and returns a ProcessResult;
    by default every command succeeds with empty output.
    """

    def __init__(self, handler: Optional[Callable[[List[str]], ProcessResult]] = None):
        super().__init__(mock=False)
        self.handler = handler or (lambda cmd: ProcessResult(exit_code=0))
        self.calls: List[List[str]] = []
        self.input_files: List[Dict[str, str]] = []

    def run(self, command, args=(), cwd=None, input_files=None, timeout=None, env=None):
        cmd = [command, *[str(a) for a in args]]
        if input_files:
            self.input_files.append(dict(input_files))
            cmd = [arg.replace(INPUTS_PLACEHOLDER, "/tmp/inputs") for arg in cmd]
        self.calls.append(cmd)
        result = self.handler(cmd)
        if not result.args:
            result.args = cmd
        return result

    def commands_starting(self, *prefix: str) -> List[List[str]]:
        return [c for c in self.calls if c[:len(prefix)] == list(prefix)]


@pytest.fixture(autouse=True)
def reset_config():
    """Keep the global config from leaking between tests."""
    set_config(None)
    yield
    set_config(None)


@pytest.fixture
def config():
    return PodwrapConfig()


@pytest.fixture
def figlet():
    """Descriptor for the figlet example module."""
    return ModuleDescriptor(
        program_name="figlet",
        cmd="figlet",
        docker_user="d",
        repo_user="r",
    )


@pytest.fixture
def module_dir(tmp_path, figlet) -> Path:
    """A freshly scaffolded figlet module."""
    return ScaffoldManager().scaffold_module(figlet, tmp_path)


@pytest.fixture
def fake_runner():
    return FakeRunner()


@pytest.fixture
def orchestrator(fake_runner, config):
    return LifecycleOrchestrator(config=config, runner=fake_runner)
