"""List and map built-ins.

Mutating operations (append, remove, map_set, map_remove) change the
container in place; every variable holding it sees the change.
"""

from typing import Any, List

from iqra.builtin_function import BuiltinFunction, wrong_type
from iqra.errors import Normal, Raised, empty_list, index_out_of_range, type_error
from iqra.types import NIL, ListVal, MapVal, as_index, format_value, is_number, values_equal


def std_list(runtime, args: List[Any]):
    return Normal(ListVal(list(args)))


def std_list_len(runtime, args: List[Any]):
    xs = args[0]
    if not isinstance(xs, ListVal):
        return wrong_type('list_len', 'list', xs)
    return Normal(float(len(xs.items)))


def std_get(runtime, args: List[Any]):
    xs, index = args
    if not isinstance(xs, ListVal):
        return wrong_type('get', 'list', xs)
    position = as_index(index, len(xs.items))
    if position is None:
        return Raised(index_out_of_range(format_value(index), len(xs.items)))
    return Normal(xs.items[position])


def std_append(runtime, args: List[Any]):
    xs, value = args
    if not isinstance(xs, ListVal):
        return wrong_type('append', 'list', xs)
    xs.items.append(value)
    return Normal(xs)


def std_remove(runtime, args: List[Any]):
    xs, index = args
    if not isinstance(xs, ListVal):
        return wrong_type('remove', 'list', xs)
    position = as_index(index, len(xs.items))
    if position is None:
        return Raised(index_out_of_range(format_value(index), len(xs.items)))
    return Normal(xs.items.pop(position))


def std_contains(runtime, args: List[Any]):
    container, needle = args
    if isinstance(container, ListVal):
        return Normal(any(values_equal(item, needle) for item in container.items))
    if isinstance(container, MapVal):
        return Normal(isinstance(needle, str) and needle in container.entries)
    if isinstance(container, str):
        if not isinstance(needle, str):
            return wrong_type('contains', 'string', needle)
        return Normal(needle in container)
    return wrong_type('contains', 'list', container)


def std_map(runtime, args: List[Any]):
    if len(args) % 2 != 0:
        return Raised(type_error(
            'قاموس يحتاج إلى أزواج من المفاتيح والقيم',
            'map needs key/value pairs',
            'مثال: قاموس("أ", ١, "ب", ٢) / example: map("a", 1, "b", 2)',
        ))
    entries = {}
    for i in range(0, len(args), 2):
        key = args[i]
        if not isinstance(key, str):
            return wrong_type('map', 'string', key)
        entries[key] = args[i + 1]
    return Normal(MapVal(entries))


def std_map_get(runtime, args: List[Any]):
    m, key = args
    if not isinstance(m, MapVal):
        return wrong_type('map_get', 'map', m)
    if not isinstance(key, str):
        return wrong_type('map_get', 'string', key)
    return Normal(m.entries.get(key, NIL))


def std_map_set(runtime, args: List[Any]):
    m, key, value = args
    if not isinstance(m, MapVal):
        return wrong_type('map_set', 'map', m)
    if not isinstance(key, str):
        return wrong_type('map_set', 'string', key)
    m.entries[key] = value
    return Normal(m)


def std_map_remove(runtime, args: List[Any]):
    m, key = args
    if not isinstance(m, MapVal):
        return wrong_type('map_remove', 'map', m)
    if not isinstance(key, str):
        return wrong_type('map_remove', 'string', key)
    return Normal(m.entries.pop(key, NIL))


def std_keys(runtime, args: List[Any]):
    m = args[0]
    if not isinstance(m, MapVal):
        return wrong_type('keys', 'map', m)
    return Normal(ListVal(list(m.entries.keys())))


def _numbers(name: str, value: Any):
    """Return the numeric items of a list, or a Raised signal."""
    if not isinstance(value, ListVal):
        return wrong_type(name, 'list', value)
    for item in value.items:
        if not is_number(item):
            return wrong_type(name, 'number', item)
    return value.items


def std_sum(runtime, args: List[Any]):
    numbers = _numbers('sum', args[0])
    if isinstance(numbers, Raised):
        return numbers
    return Normal(float(sum(numbers)))


def std_average(runtime, args: List[Any]):
    numbers = _numbers('average', args[0])
    if isinstance(numbers, Raised):
        return numbers
    if not numbers:
        return Normal(0.0)
    return Normal(sum(numbers) / len(numbers))


def std_max(runtime, args: List[Any]):
    numbers = _numbers('max', args[0])
    if isinstance(numbers, Raised):
        return numbers
    if not numbers:
        return Raised(empty_list('max'))
    return Normal(max(numbers))


def std_min(runtime, args: List[Any]):
    numbers = _numbers('min', args[0])
    if isinstance(numbers, Raised):
        return numbers
    if not numbers:
        return Raised(empty_list('min'))
    return Normal(min(numbers))


BUILTINS = [
    BuiltinFunction('list', 'قائمة', None, std_list),
    BuiltinFunction('list_len', 'طول_القائمة', 1, std_list_len),
    BuiltinFunction('get', 'عنصر', 2, std_get),
    BuiltinFunction('append', 'أضف', 2, std_append),
    BuiltinFunction('remove', 'احذف', 2, std_remove),
    BuiltinFunction('contains', 'يحتوي', 2, std_contains),
    BuiltinFunction('map', 'قاموس', None, std_map),
    BuiltinFunction('map_get', 'قاموس_قيمة', 2, std_map_get, aliases=('جلب_عنصر',)),
    BuiltinFunction('map_set', 'تعيين_عنصر', 3, std_map_set),
    BuiltinFunction('map_remove', 'حذف_عنصر', 2, std_map_remove),
    BuiltinFunction('keys', 'مفاتيح', 1, std_keys),
    BuiltinFunction('sum', 'جمع', 1, std_sum),
    BuiltinFunction('average', 'متوسط', 1, std_average),
    BuiltinFunction('max', 'أكبر', 1, std_max),
    BuiltinFunction('min', 'أصغر', 1, std_min),
]
