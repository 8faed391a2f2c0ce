"""Template engine for module scaffolding."""

import re
from pathlib import Path
from typing import Mapping

from podwrap.core.errors import TemplateNotFoundError, WriteError

# %name% placeholders; anything else containing percent signs is left alone
TOKEN_RE = re.compile(r"%([A-Za-z_][A-Za-z0-9_]*)%")

TEMPLATE_DIR = Path(__file__).parent / "files"


class TemplateEngine:
    """Handles template rendering for scaffolding."""

    def __init__(self, template_dir: Path = TEMPLATE_DIR):
        self.template_dir = Path(template_dir)

    @staticmethod
    def render(content: str, context: Mapping[str, str]) -> str:
        """Substitute known ``%name%`` tokens in a single pass.

        Unknown tokens are kept verbatim and substituted values are never
        expanded again.
        """
        def replace(match: "re.Match[str]") -> str:
            key = match.group(1)
            if key in context:
                return str(context[key])
            return match.group(0)

        return TOKEN_RE.sub(replace, content)

    def load(self, template_name: str) -> str:
        template_path = self.template_dir / template_name
        if not template_path.is_file():
            raise TemplateNotFoundError(template_name, template_path)
        return template_path.read_text(encoding="utf-8")

    def render_template(self, template_name: str, context: Mapping[str, str]) -> str:
        """Render a named template with given context."""
        return self.render(self.load(template_name), context)

    def write(
        self,
        template_name: str,
        target: Path,
        context: Mapping[str, str],
        mode: int = None,
    ) -> Path:
        """Render a template to ``target``, creating parent directories.

        Raises:
            TemplateNotFoundError: If the template does not exist
            WriteError: If the target cannot be written
        """
        content = self.render_template(template_name, context)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")
            if mode is not None:
                target.chmod(mode)
        except OSError as e:
            raise WriteError(target, e.strerror or str(e)) from e
        return target

