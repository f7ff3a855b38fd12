from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Tuple

from .errors import Raised, type_error
from .types import TYPE_NAMES_AR, type_name


@dataclass
class BuiltinFunction:
    """A native operation reachable under an English and an Arabic name.

    `fn` receives the calling runtime and the evaluated arguments and
    returns a Signal. `arity` of None means variadic.
    """
    name: str
    name_ar: str
    arity: Optional[int]
    fn: Callable[[Any, List[Any]], Any]
    aliases: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def names(self) -> Tuple[str, ...]:
        return (self.name, self.name_ar) + tuple(self.aliases)

    def __repr__(self) -> str:
        return f"<builtin {self.name}/{self.name_ar}>"


def wrong_type(function: str, expected: str, value: Any) -> Raised:
    """Raised signal for an argument of the wrong type.

    `expected` is an English type name from `TYPE_NAMES_AR`.
    """
    got = type_name(value)
    return Raised(type_error(
        f"الدالة '{function}' تتوقع {TYPE_NAMES_AR[expected]} وليس {TYPE_NAMES_AR[got]}",
        f"function '{function}' expects a {expected}, got {got}",
    ))
