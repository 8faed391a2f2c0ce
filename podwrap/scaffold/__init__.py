"""Module skeleton scaffolding.

Renders the fixed module layout from ``%name%`` templates.
"""

from .core import ScaffoldManager
from .templates import TemplateEngine

__all__ = [
    "ScaffoldManager",
    "TemplateEngine",
]
