"""Typed command-line argument tokens for wrapped programs."""
from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Sequence, Union


@dataclass(frozen=True)
class Positional:
    """A value passed through as-is."""
    value: Any


@dataclass(frozen=True)
class Flag:
    """A switch without a value, e.g. ``-v`` or ``--verbose``."""
    name: str


@dataclass(frozen=True)
class Option:
    """A named option followed by its value, e.g. ``--width 80``."""
    name: str
    value: Any


ArgToken = Union[Positional, Flag, Option]


def option_name(name: str) -> str:
    """Turn a Python-style name into a command-line switch.

    Names already starting with ``-`` are kept; single letters get one dash,
    longer names two, with underscores turned into hyphens.
    """
    if name.startswith("-"):
        return name
    if len(name) == 1:
        return f"-{name}"
    return "--" + name.replace("_", "-")


def build_arglist(tokens: Iterable[ArgToken]) -> List[str]:
    """Serialise tokens to command-line strings, preserving order."""
    arglist: List[str] = []
    for token in tokens:
        if isinstance(token, Positional):
            arglist.append(str(token.value))
        elif isinstance(token, Flag):
            arglist.append(option_name(token.name))
        elif isinstance(token, Option):
            arglist.extend([option_name(token.name), str(token.value)])
        else:
            raise TypeError(f"Unsupported argument token: {token!r}")
    return arglist


def tokens_from_call(args: Sequence[Any], options: Mapping[str, Any]) -> List[ArgToken]:
    """Map a Python call onto tokens.

    Positional arguments keep their order. Keyword arguments follow them:
    ``True`` becomes a flag, ``False`` and ``None`` are dropped, anything else
    becomes an option with a value.
    """
    tokens: List[ArgToken] = []
    for value in args:
        if isinstance(value, (Positional, Flag, Option)):
            tokens.append(value)
        else:
            tokens.append(Positional(value))
    for name, value in options.items():
        if value is True:
            tokens.append(Flag(name))
        elif value is False or value is None:
            continue
        else:
            tokens.append(Option(name, value))
    return tokens
