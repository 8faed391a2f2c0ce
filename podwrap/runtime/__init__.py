"""Runtime used by generated modules to call their program."""

from .arglist import ArgToken, Flag, Option, Positional, build_arglist, tokens_from_call
from .runner import ModuleRunner

__all__ = [
    "ArgToken",
    "Flag",
    "ModuleRunner",
    "Option",
    "Positional",
    "build_arglist",
    "tokens_from_call",
]
