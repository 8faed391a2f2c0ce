"""Core scaffolding functionality for podwrap modules."""

from pathlib import Path
from typing import Dict, List, Optional

from podwrap.core import layout
from podwrap.core.errors import AlreadyExistsError, WriteError
from podwrap.core.logger import get_logger
from podwrap.models.module import ModuleDescriptor
from podwrap.scaffold.templates import TemplateEngine

logger = get_logger(__name__)


def template_context(descriptor: ModuleDescriptor) -> Dict[str, str]:
    """Template values, plus the command quoted for YAML and Python sources."""
    context = descriptor.template_mapping()
    context['cmd_yaml'] = "'" + descriptor.cmd.replace("'", "''") + "'"
    context['cmd_literal'] = repr(descriptor.cmd)
    return context


class ScaffoldManager:
    """Manages module skeleton generation."""

    def __init__(self, template_dir: Optional[Path] = None):
        self.engine = TemplateEngine(template_dir) if template_dir else TemplateEngine()

    def scaffold_module(
        self,
        descriptor: ModuleDescriptor,
        output_dir: Optional[Path] = None,
        tag: str = "latest",
    ) -> Path:
        """Scaffold a complete module directory.

        Args:
            descriptor: Identity of the new module
            output_dir: Parent directory (defaults to current dir)
            tag: Name of the first container build tag

        Returns:
            Path to created module

        Raises:
            AlreadyExistsError: If the module directory already exists
            WriteError: If a file cannot be written
        """
        output_dir = Path(output_dir) if output_dir else Path.cwd()
        module_path = output_dir / descriptor.package_name

        if module_path.exists():
            raise AlreadyExistsError(module_path)

        logger.info(f"✨ Creating module skeleton: {descriptor.package_name}")

        try:
            module_path.mkdir(parents=True)
        except OSError as e:
            raise WriteError(module_path, e.strerror or str(e)) from e

        written = self._render_files(module_path, descriptor, tag)

        logger.info(f"📁 Generated {len(written)} files in {module_path}")
        logger.info(f"🐳 Container build file: {layout.build_spec(tag)}")

        return module_path

    def _render_files(self, module_path: Path, descriptor: ModuleDescriptor, tag: str) -> List[Path]:
        """Render every template of the module layout."""
        context = template_context(descriptor)
        written = []
        for template_name, relative, executable in layout.skeleton_files(
            descriptor.package_name, descriptor.program_name, descriptor.service, tag
        ):
            target = module_path / relative
            self.engine.write(template_name, target, context, mode=0o755 if executable else None)
            logger.debug(f"Wrote {relative}")
            written.append(target)
        return written
