"""Module layout validation and identity parsing."""
import ast
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import ValidationError

from podwrap.core import layout
from podwrap.core.errors import MalformedModuleError
from podwrap.core.logger import get_logger
from podwrap.models.module import (
    PACKAGE_PREFIX,
    SERVICE_HOSTS,
    LayoutEntry,
    ModuleDescriptor,
    ValidationResult,
    package_name_for,
)

logger = get_logger(__name__)

METADATA_REQUIRED = ['package', 'program', 'url', 'docker_user', 'repo_user']

DOCKERFILE_INSTRUCTIONS = {
    'ADD', 'ARG', 'CMD', 'COPY', 'ENTRYPOINT', 'ENV', 'EXPOSE', 'FROM',
    'HEALTHCHECK', 'LABEL', 'MAINTAINER', 'ONBUILD', 'RUN', 'SHELL',
    'STOPSIGNAL', 'USER', 'VOLUME', 'WORKDIR',
}


@dataclass
class Instruction:
    """One Dockerfile instruction."""
    keyword: str
    arguments: str
    line: int


def parse_dockerfile(text: str, source: Union[str, Path] = "Dockerfile") -> List[Instruction]:
    """Split a Dockerfile into instructions.

    Handles comments, blank lines and backslash continuations.

    Raises:
        MalformedModuleError: If an instruction is unknown, a continuation is
            left open or no FROM precedes the build instructions
    """
    instructions: List[Instruction] = []
    buffer = ""
    start_line = 0

    for number, raw in enumerate(text.splitlines(), start=1):
        stripped = raw.strip()
        if not buffer and (not stripped or stripped.startswith('#')):
            continue
        if buffer and stripped.startswith('#'):
            # Comments inside a continued instruction are dropped
            continue
        if not buffer:
            start_line = number
        if stripped.endswith('\\'):
            buffer += stripped[:-1].rstrip() + ' '
            continue
        buffer += stripped
        instructions.append(_instruction(buffer, start_line, source))
        buffer = ""

    if buffer.strip():
        raise MalformedModuleError(source, f"unterminated line continuation at line {start_line}")

    seen_from = False
    for instruction in instructions:
        if instruction.keyword == 'FROM':
            seen_from = True
        elif instruction.keyword != 'ARG' and not seen_from:
            raise MalformedModuleError(
                source,
                f"{instruction.keyword} at line {instruction.line} appears before FROM",
            )
    if not seen_from:
        raise MalformedModuleError(source, "no FROM instruction")

    return instructions


def _instruction(line: str, number: int, source) -> Instruction:
    keyword, _, arguments = line.partition(' ')
    keyword = keyword.upper()
    if keyword not in DOCKERFILE_INSTRUCTIONS:
        raise MalformedModuleError(source, f"unknown instruction '{keyword}' at line {number}")
    return Instruction(keyword=keyword, arguments=arguments.strip(), line=number)


def read_metadata(path: Path) -> Dict[str, Any]:
    """Load module.yml as a dict.

    Raises:
        MalformedModuleError: If the file is missing or is not a YAML mapping
    """
    metadata_path = path / layout.METADATA_FILE
    if not metadata_path.is_file():
        raise MalformedModuleError(path, f"{layout.METADATA_FILE} not found")
    try:
        with open(metadata_path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise MalformedModuleError(path, f"{layout.METADATA_FILE} is not valid YAML: {e}") from e
    except (OSError, UnicodeDecodeError) as e:
        raise MalformedModuleError(path, f"{layout.METADATA_FILE} cannot be read: {e}") from e
    if not isinstance(data, dict):
        raise MalformedModuleError(path, f"{layout.METADATA_FILE} must be a mapping")
    return data


def read_stub_field(stub_text: str, name: str) -> Optional[str]:
    """String value given to ``name`` in the generated source stub.

    Looks at keyword arguments (``name='...'``) and plain assignments.

    Raises:
        SyntaxError: If the stub is not valid Python
    """
    tree = ast.parse(stub_text)
    for node in ast.walk(tree):
        if isinstance(node, ast.keyword) and node.arg == name:
            value = node.value
        elif (
            isinstance(node, ast.Assign)
            and any(isinstance(t, ast.Name) and t.id == name for t in node.targets)
        ):
            value = node.value
        else:
            continue
        if isinstance(value, ast.Constant) and isinstance(value.value, str):
            return value.value
    return None


def service_for_url(url: str) -> Optional[str]:
    for service, host in SERVICE_HOSTS.items():
        if url.startswith(host + "/"):
            return service
    return None


class ModuleLayoutValidator:
    """Validates module directories against the fixed layout."""

    def validate(self, path: Union[str, Path]) -> ValidationResult:
        """Report which required and optional entries exist.

        Missing entries are reported on the result, never raised.
        """
        path = Path(path)
        result = ValidationResult(path=path)

        if not path.is_dir():
            result.errors.append(f"Module directory not found: {path}")
            return result

        package_name = self._package_name(path)
        metadata = self._safe_metadata(path)
        program_name = str(metadata.get('program') or "") if metadata else ""
        if package_name is None:
            result.errors.append(
                "Cannot determine package name: no usable module.yml and no single package under src/"
            )
            package_name = f"{PACKAGE_PREFIX}<program>"

        tags = layout.build_tags(path)

        def entry(name: str, required: bool = True, kind: str = "file") -> None:
            target = path / name
            present = target.is_dir() if kind == "dir" else target.is_file()
            result.entries.append(LayoutEntry(name=name, present=present, required=required, kind=kind))

        entry(layout.METADATA_FILE)
        entry(layout.PYPROJECT_FILE)
        entry(layout.init_file(package_name))
        entry(layout.source_stub(package_name))
        result.entries.append(LayoutEntry(
            name=f"{layout.CONTAINER_DIR}/<tag>/{layout.BUILD_SPEC_FILE}",
            present=bool(tags),
            kind="file",
        ))
        entry(layout.EXAMPLE_SCRIPT)

        entry(layout.README_FILE, required=False)
        entry(layout.GITIGNORE_FILE, required=False)
        if program_name:
            entry(layout.smoke_test_file(program_name), required=False)

        for name in result.missing_optional:
            result.warnings.append(f"Optional file missing: {name}")

        if result.missing:
            logger.debug(f"Missing entries in {path}: {', '.join(result.missing)}")

        return result

    def identities(self, path: Union[str, Path]) -> ModuleDescriptor:
        """Recover the module identity from its metadata and source stub.

        Raises:
            MalformedModuleError: If required fields are missing or inconsistent
        """
        path = Path(path)
        metadata = read_metadata(path)

        missing = [
            key for key in METADATA_REQUIRED
            if metadata.get(key) is None or (isinstance(metadata[key], str) and not metadata[key].strip())
        ]
        if missing:
            raise MalformedModuleError(
                path, f"{layout.METADATA_FILE} missing required fields: {', '.join(missing)}"
            )

        # Unquoted scalars like yes, null or 012 load as other types
        wrong_type = [key for key in METADATA_REQUIRED if not isinstance(metadata[key], str)]
        if wrong_type:
            raise MalformedModuleError(
                path, f"{layout.METADATA_FILE} fields must be quoted strings: {', '.join(wrong_type)}"
            )

        package_name = metadata['package']
        program_name = metadata['program']
        if package_name != package_name_for(program_name):
            raise MalformedModuleError(
                path,
                f"package '{package_name}' does not match program '{program_name}' "
                f"(expected '{package_name_for(program_name)}')",
            )

        stub_path = path / layout.source_stub(package_name)
        if not stub_path.is_file():
            raise MalformedModuleError(path, f"source stub not found: {layout.source_stub(package_name)}")
        try:
            stub_text = stub_path.read_text(encoding="utf-8")
            cmd = read_stub_field(stub_text, 'cmd')
            stub_package = read_stub_field(stub_text, 'package_name')
        except (OSError, UnicodeDecodeError, ValueError) as e:
            raise MalformedModuleError(path, f"source stub cannot be read: {e}") from e
        except SyntaxError as e:
            raise MalformedModuleError(path, f"source stub is not valid Python: {e.msg} (line {e.lineno})") from e

        if not cmd:
            raise MalformedModuleError(path, "source stub does not declare cmd")
        if stub_package is not None and stub_package != package_name:
            raise MalformedModuleError(
                path,
                f"source stub package '{stub_package}' differs from metadata package '{package_name}'",
            )

        url = metadata['url']
        service = service_for_url(url) or "github"

        try:
            return ModuleDescriptor(
                program_name=program_name,
                cmd=cmd,
                package_name=package_name,
                docker_user=metadata['docker_user'],
                repo_user=metadata['repo_user'],
                service=service,
                path=path,
            )
        except ValidationError as e:
            raise MalformedModuleError(path, str(e)) from e

    def check(self, path: Union[str, Path]) -> ValidationResult:
        """Layout validation plus content checks of metadata, stub and build specs.

        Problems are collected on the result, not raised.
        """
        path = Path(path)
        result = self.validate(path)
        if not path.is_dir():
            return result

        try:
            descriptor = self.identities(path)
        except MalformedModuleError as e:
            result.errors.append(e.reason)
            descriptor = None

        if descriptor is not None:
            if not descriptor.program_name.strip():
                result.errors.append("Program name is empty")
            if not descriptor.cmd.strip():
                result.errors.append("Command is empty")

            metadata = self._safe_metadata(path) or {}
            if metadata.get('command') and metadata['command'] != descriptor.cmd:
                result.warnings.append(
                    f"module.yml command '{metadata['command']}' differs from stub cmd '{descriptor.cmd}'"
                )
            if metadata.get('url') != descriptor.url:
                result.warnings.append(
                    f"module.yml url '{metadata.get('url')}' differs from expected '{descriptor.url}'"
                )
            if not metadata.get('details'):
                result.warnings.append("module.yml has no details")

        for tag in layout.build_tags(path):
            spec_path = path / layout.build_spec(tag)
            try:
                parse_dockerfile(spec_path.read_text(encoding="utf-8"), source=layout.build_spec(tag))
            except MalformedModuleError as e:
                result.errors.append(f"{layout.build_spec(tag)}: {e.reason}")
            except (OSError, UnicodeDecodeError) as e:
                result.errors.append(f"{layout.build_spec(tag)}: cannot be read: {e}")

        return result

    def _safe_metadata(self, path: Path) -> Optional[Dict[str, Any]]:
        try:
            return read_metadata(path)
        except MalformedModuleError:
            return None

    def _package_name(self, path: Path) -> Optional[str]:
        """Package name from module.yml, else the only package under src/."""
        metadata = self._safe_metadata(path)
        if metadata and metadata.get('package'):
            return str(metadata['package'])

        src = path / "src"
        if src.is_dir():
            candidates = [d.name for d in src.iterdir() if d.is_dir() and d.name.startswith(PACKAGE_PREFIX)]
            if len(candidates) == 1:
                return candidates[0]
        return None
