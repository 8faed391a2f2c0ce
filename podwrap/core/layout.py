"""Fixed file layout of a module directory."""
from pathlib import Path
from typing import Dict, List, Tuple

METADATA_FILE = "module.yml"
PYPROJECT_FILE = "pyproject.toml"
CONTAINER_DIR = "container"
BUILD_SPEC_FILE = "Dockerfile"
EXAMPLE_SCRIPT = "examples/example.sh"
README_FILE = "README.md"
GITIGNORE_FILE = ".gitignore"
STATUS_FILE = ".podwrap/status.yml"
DIST_DIR = "dist"

CI_FILES: Dict[str, str] = {
    "github": ".github/workflows/module.yml",
    "gitlab": ".gitlab-ci.yml",
    "bitbucket": "bitbucket-pipelines.yml",
}


def package_dir(package_name: str) -> str:
    return f"src/{package_name}"


def init_file(package_name: str) -> str:
    return f"{package_dir(package_name)}/__init__.py"


def source_stub(package_name: str) -> str:
    """Generated function source of the module."""
    return f"{package_dir(package_name)}/functions.py"


def smoke_test_file(program_name: str) -> str:
    return f"tests/test_{program_name}.py"


def build_spec(tag: str) -> str:
    return f"{CONTAINER_DIR}/{tag}/{BUILD_SPEC_FILE}"


def build_tags(module_path: Path) -> List[str]:
    """Tags that have a build spec under container/, sorted."""
    container_dir = module_path / CONTAINER_DIR
    if not container_dir.is_dir():
        return []
    return sorted(
        d.name for d in container_dir.iterdir()
        if d.is_dir() and (d / BUILD_SPEC_FILE).is_file()
    )


def skeleton_files(package_name: str, program_name: str, service: str, tag: str) -> List[Tuple[str, str, bool]]:
    """Template name, target path and executable flag for every generated file."""
    return [
        ("module.yml.tmpl", METADATA_FILE, False),
        ("pyproject.toml.tmpl", PYPROJECT_FILE, False),
        ("init.py.tmpl", init_file(package_name), False),
        ("functions.py.tmpl", source_stub(package_name), False),
        ("Dockerfile.tmpl", build_spec(tag), False),
        ("example.sh.tmpl", EXAMPLE_SCRIPT, True),
        ("README.md.tmpl", README_FILE, False),
        ("gitignore.tmpl", GITIGNORE_FILE, False),
        ("test_module.py.tmpl", smoke_test_file(program_name), False),
        (f"ci/{service}.yml.tmpl", CI_FILES[service], False),
    ]
