"""Built-in function registry.

Every built-in is registered under its English name, its Arabic name and
any aliases. The table is assembled once at import and is read-only.
"""

from itertools import chain
from types import MappingProxyType
from typing import Iterable, Mapping, Optional

from iqra.builtin_function import BuiltinFunction

from . import containers, core, system
from . import io as io_builtins


def build_registry(functions: Iterable[BuiltinFunction]) -> Mapping[str, BuiltinFunction]:
    table = {}
    for fn in functions:
        for name in fn.names:
            if name in table:
                raise ValueError(f"duplicate builtin name {name!r}")
            table[name] = fn
    return MappingProxyType(table)


BUILTINS: Mapping[str, BuiltinFunction] = build_registry(chain(
    core.BUILTINS,
    containers.BUILTINS,
    io_builtins.BUILTINS,
    system.BUILTINS,
))


def lookup(name: str) -> Optional[BuiltinFunction]:
    return BUILTINS.get(name)
