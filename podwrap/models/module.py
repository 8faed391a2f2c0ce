"""Module identity, lifecycle stages and operation results."""
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

# Every module package is named PACKAGE_PREFIX + program name
PACKAGE_PREFIX = "pw_"

SERVICE_HOSTS = {
    "github": "https://github.com",
    "gitlab": "https://gitlab.com",
    "bitbucket": "https://bitbucket.org",
}

_ACCOUNT_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")


def package_name_for(program_name: str) -> str:
    """Return the package name used for a program."""
    return f"{PACKAGE_PREFIX}{program_name}"


class ModuleDescriptor(BaseModel):
    """Identity of a module.

    Everything except ``path`` is fixed once the skeleton exists; use
    :meth:`relocate` to point the descriptor at a moved directory.
    """

    model_config = ConfigDict(frozen=True, extra='forbid')

    program_name: str
    cmd: str = ""
    package_name: str = ""
    docker_user: str
    repo_user: str
    service: Literal["github", "gitlab", "bitbucket"] = "github"
    path: Optional[Path] = None

    @field_validator('program_name')
    @classmethod
    def validate_program_name(cls, v):
        """The program name doubles as the wrapper function name."""
        if not v or not v.isidentifier():
            raise ValueError(
                f"Program name '{v}' must be a valid Python identifier "
                "(letters, digits and underscores, not starting with a digit)"
            )
        return v

    @field_validator('docker_user', 'repo_user')
    @classmethod
    def validate_account(cls, v):
        """Account names end up in image names and URLs."""
        if not v or not _ACCOUNT_RE.match(v):
            raise ValueError(
                f"Account name '{v}' is invalid. "
                "Use letters, digits, dots, hyphens and underscores only."
            )
        return v

    @model_validator(mode='before')
    @classmethod
    def fill_derived(cls, data):
        """Default the command to the program name and derive the package name."""
        if isinstance(data, dict):
            data = dict(data)
            program = data.get('program_name') or ""
            if not data.get('cmd'):
                data['cmd'] = program
            expected = package_name_for(program)
            if not data.get('package_name'):
                data['package_name'] = expected
        return data

    @model_validator(mode='after')
    def validate_package_name(self) -> 'ModuleDescriptor':
        expected = package_name_for(self.program_name)
        if self.package_name != expected:
            raise ValueError(
                f"Package name must be '{expected}', got '{self.package_name}'"
            )
        if not self.cmd.strip():
            raise ValueError("Command must not be empty")
        if not self.cmd.isprintable():
            raise ValueError("Command must be a single line without control characters")
        return self

    @property
    def url(self) -> str:
        """Code-host repository URL."""
        return f"{SERVICE_HOSTS[self.service]}/{self.repo_user}/{self.package_name}"

    @property
    def repo(self) -> str:
        return f"{self.repo_user}/{self.package_name}"

    @property
    def image(self) -> str:
        """Container image name without tag."""
        return f"{self.docker_user}/{self.package_name}"

    def relocate(self, path: Path) -> 'ModuleDescriptor':
        """Return a copy pointing at a new local path."""
        return self.model_copy(update={'path': Path(path)})

    def template_mapping(self) -> Dict[str, str]:
        """Placeholder values used when rendering module templates."""
        return {
            'program_name': self.program_name,
            'package_name': self.package_name,
            'cmd': self.cmd,
            'url': self.url,
            'docker_user': self.docker_user,
            'repo_user': self.repo_user,
        }


class LifecycleStage(str, Enum):
    """Stages a module moves through, in intended order."""

    SKELETON = "skeleton"
    BUILT = "built"
    CHECKED = "checked"
    TESTED = "tested"
    UPLOADED = "uploaded"
    UNINSTALLED = "uninstalled"

    @property
    def rank(self) -> int:
        return _STAGE_ORDER.index(self)


_STAGE_ORDER = [
    LifecycleStage.UNINSTALLED,
    LifecycleStage.SKELETON,
    LifecycleStage.BUILT,
    LifecycleStage.CHECKED,
    LifecycleStage.TESTED,
    LifecycleStage.UPLOADED,
]


@dataclass
class LayoutEntry:
    """A file or directory the validator looked for."""
    name: str
    present: bool
    required: bool = True
    kind: str = "file"  # file or dir


@dataclass
class ValidationResult:
    """Outcome of a layout validation or module check."""
    path: Path
    entries: List[LayoutEntry] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def missing(self) -> List[str]:
        """Required entries that do not exist."""
        return [e.name for e in self.entries if e.required and not e.present]

    @property
    def missing_optional(self) -> List[str]:
        return [e.name for e in self.entries if not e.required and not e.present]

    @property
    def ok(self) -> bool:
        return not self.missing and not self.errors


@dataclass
class BuildOptions:
    build_image: bool = False
    verbose: bool = False
    tag: Optional[str] = None  # None builds every tag under container/
    install: bool = True


@dataclass
class BuildResult:
    path: Path
    artifact: Optional[Path] = None
    installed: bool = False
    images: List[str] = field(default_factory=list)
    output: str = ""


@dataclass
class TestResult:
    """Outcome of running the example script inside the module image."""
    __test__ = False

    path: Path
    image: str
    exit_code: Optional[int] = None
    stdout: str = ""
    stderr: str = ""
    failure: Optional[Exception] = None

    @property
    def success(self) -> bool:
        return self.failure is None


@dataclass
class UploadOptions:
    code_sharing: bool = False
    container_registry: bool = False
    message: str = "Update module"


@dataclass
class TargetOutcome:
    """Result for one upload target."""
    target: str
    success: bool
    detail: str = ""
    error: Optional[Exception] = None


@dataclass
class UploadResult:
    path: Path
    targets: Dict[str, TargetOutcome] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return all(outcome.success for outcome in self.targets.values())

    @property
    def failed(self) -> List[str]:
        return [name for name, outcome in self.targets.items() if not outcome.success]


@dataclass
class StatusRecord:
    """Last stage recorded in a module's status file."""
    stage: LifecycleStage
    updated: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat(timespec="seconds")
    )

    def to_dict(self) -> Dict[str, str]:
        return {'stage': self.stage.value, 'updated': self.updated}


@dataclass
class ModuleStatus:
    """Effective stage of a module, derived from its record and artifacts."""
    path: Path
    stage: Optional[LifecycleStage]
    recorded: Optional[LifecycleStage] = None
    artifacts: Dict[str, bool] = field(default_factory=dict)
    notes: List[str] = field(default_factory=list)
