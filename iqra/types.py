"""Runtime value model for the Iqra language.

Values map onto Python objects as follows:

* Number  -> ``float``
* Str     -> ``str``
* Bool    -> ``bool``
* List    -> :class:`ListVal` (mutable, shared by reference)
* Map     -> :class:`MapVal` (insertion ordered, string keys, shared)
* Function-> :class:`FunctionVal` (parameters, body and captured scope)
* Nil     -> the :data:`NIL` singleton

Lists and maps are plain Python objects, so every holder of a reference
sees in-place mutation.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .ast import Block
    from .environment import Environment


class NilVal:
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return 'NIL'


NIL = NilVal()


@dataclass(eq=False)
class ListVal:
    items: List[Any] = field(default_factory=list)

    def __repr__(self) -> str:
        return f"ListVal({self.items!r})"


@dataclass(eq=False)
class MapVal:
    entries: Dict[str, Any] = field(default_factory=dict)

    def __repr__(self) -> str:
        return f"MapVal({self.entries!r})"


@dataclass(eq=False)
class FunctionVal:
    name: str
    params: List[str]
    body: 'Block'
    closure: 'Environment'

    def __repr__(self) -> str:
        return f"<function {self.name}/{len(self.params)}>"


TYPE_NAMES_AR = {
    'number': 'رقم',
    'string': 'نص',
    'bool': 'منطقي',
    'list': 'قائمة',
    'map': 'قاموس',
    'function': 'دالة',
    'builtin': 'دالة',
    'nil': 'فارغ',
}


def type_name(value: Any) -> str:
    # bool before float: True is not a number here
    if isinstance(value, bool):
        return 'bool'
    if isinstance(value, float):
        return 'number'
    if isinstance(value, str):
        return 'string'
    if isinstance(value, ListVal):
        return 'list'
    if isinstance(value, MapVal):
        return 'map'
    if isinstance(value, FunctionVal):
        return 'function'
    if value is NIL:
        return 'nil'
    return 'builtin'


def type_name_ar(value: Any) -> str:
    return TYPE_NAMES_AR[type_name(value)]


def is_number(value: Any) -> bool:
    return isinstance(value, float) and not isinstance(value, bool)


def is_truthy(value: Any) -> bool:
    """Truthiness rule used by conditions and logical operators.

    Falsy: ``false``, ``nil``, ``0``, ``""``, empty lists and empty maps.
    Everything else (functions included) is truthy.
    """
    if value is NIL:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, float):
        return value != 0.0
    if isinstance(value, str):
        return value != ''
    if isinstance(value, ListVal):
        return len(value.items) > 0
    if isinstance(value, MapVal):
        return len(value.entries) > 0
    return True


def values_equal(a: Any, b: Any) -> bool:
    if type_name(a) != type_name(b):
        return False
    if isinstance(a, ListVal):
        if a is b:
            return True
        if len(a.items) != len(b.items):
            return False
        return all(values_equal(x, y) for x, y in zip(a.items, b.items))
    if isinstance(a, MapVal):
        if a is b:
            return True
        if a.entries.keys() != b.entries.keys():
            return False
        return all(values_equal(v, b.entries[k]) for k, v in a.entries.items())
    if isinstance(a, FunctionVal):
        return a is b
    if a is NIL:
        return True
    return a == b


def as_index(value: Any, length: int) -> Optional[int]:
    """Position in a sequence of `length` items, or None when invalid."""
    if not is_number(value) or not math.isfinite(value) or value != int(value):
        return None
    index = int(value)
    if 0 <= index < length:
        return index
    return None


LARGE_INTEGRAL = 1e16


def format_number(value: float) -> str:
    if math.isnan(value):
        return 'ليس_رقما'
    if math.isinf(value):
        return 'لانهاية' if value > 0 else '-لانهاية'
    # beyond 1e16 floats stop being exact integers; keep exponent form
    if value == int(value) and abs(value) < LARGE_INTEGRAL:
        return str(int(value))
    return repr(value)


def format_value(value: Any, nested: bool = False) -> str:
    """Render a value the way `print` shows it.

    Strings are shown raw at the top level and quoted inside containers.
    """
    if value is NIL:
        return 'فارغ'
    if isinstance(value, bool):
        return 'صحيح' if value else 'خطأ'
    if isinstance(value, float):
        return format_number(value)
    if isinstance(value, str):
        return f'"{value}"' if nested else value
    if isinstance(value, ListVal):
        return '[' + ', '.join(format_value(v, True) for v in value.items) + ']'
    if isinstance(value, MapVal):
        inner = ', '.join(f'"{k}": {format_value(v, True)}' for k, v in value.entries.items())
        return '{' + inner + '}'
    if isinstance(value, FunctionVal):
        return f"<دالة {value.name}>"
    return str(value)


###############################################################################
# Number conversion
###############################################################################

# Arabic-Indic (U+0660..0669) and Extended Arabic-Indic (U+06F0..06F9)
_DIGIT_TABLE = {ord('٠') + i: str(i) for i in range(10)}
_DIGIT_TABLE.update({ord('۰') + i: str(i) for i in range(10)})
_DIGIT_TABLE[ord('٫')] = '.'

_NUMBER_RE = re.compile(r'[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?')


def normalize_digits(text: str) -> str:
    return text.translate(_DIGIT_TABLE)


def parse_number(text: str) -> float:
    """Parse a numeric string written with any supported digit set.

    Raises ValueError when the text is not a number.
    """
    candidate = normalize_digits(text.strip())
    # fullmatch keeps out 'nan', 'inf' and other float() spellings
    if not _NUMBER_RE.fullmatch(candidate):
        raise ValueError(f"not a number: {text!r}")
    return float(candidate)


def to_number(value: Any) -> float:
    """Convert a value to a Number, raising TypeError when impossible."""
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, float):
        return value
    if isinstance(value, str):
        try:
            return parse_number(value)
        except ValueError:
            raise TypeError(f"cannot convert {value!r} to a number")
    raise TypeError(f"cannot convert {type_name(value)} to a number")
