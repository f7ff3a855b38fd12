"""Core built-ins: output, type inspection, conversion and text helpers."""

from typing import Any, List

from iqra.builtin_function import BuiltinFunction, wrong_type
from iqra.errors import Normal, Raised, type_error
from iqra.types import (
    NIL, ListVal, MapVal, format_value, is_number, to_number, type_name,
)


def std_print(runtime, args: List[Any]):
    print(' '.join(format_value(a) for a in args))
    return Normal(NIL)


def std_type(runtime, args: List[Any]):
    return Normal(type_name(args[0]))


def std_to_number(runtime, args: List[Any]):
    value = args[0]
    try:
        return Normal(to_number(value))
    except TypeError:
        shown = format_value(value)
        return Raised(type_error(
            f"لا يمكن تحويل '{shown}' إلى رقم",
            f"cannot convert '{shown}' to a number",
            'استخدم نصا يحتوي على أرقام فقط / use a string that contains only digits',
        ))


def std_to_string(runtime, args: List[Any]):
    return Normal(format_value(args[0]))


def std_is_number(runtime, args: List[Any]):
    return Normal(is_number(args[0]))


def std_is_string(runtime, args: List[Any]):
    return Normal(isinstance(args[0], str))


def std_len(runtime, args: List[Any]):
    value = args[0]
    if isinstance(value, str):
        return Normal(float(len(value)))
    if isinstance(value, ListVal):
        return Normal(float(len(value.items)))
    if isinstance(value, MapVal):
        return Normal(float(len(value.entries)))
    return wrong_type('len', 'list', value)


def std_word_count(runtime, args: List[Any]):
    text = args[0]
    if not isinstance(text, str):
        return wrong_type('word_count', 'string', text)
    return Normal(float(len(text.split())))


def std_reverse(runtime, args: List[Any]):
    value = args[0]
    if isinstance(value, str):
        return Normal(value[::-1])
    if isinstance(value, ListVal):
        return Normal(ListVal(list(reversed(value.items))))
    return wrong_type('reverse', 'list', value)


BUILTINS = [
    BuiltinFunction('print', 'اطبع', None, std_print),
    BuiltinFunction('type', 'نوع', 1, std_type),
    BuiltinFunction('to_number', 'إلى_رقم', 1, std_to_number),
    BuiltinFunction('to_string', 'إلى_نص', 1, std_to_string),
    BuiltinFunction('is_number', 'رقم؟', 1, std_is_number),
    BuiltinFunction('is_string', 'نص؟', 1, std_is_string),
    BuiltinFunction('len', 'طول', 1, std_len),
    BuiltinFunction('word_count', 'عدد_الكلمات', 1, std_word_count),
    BuiltinFunction('reverse', 'عكس', 1, std_reverse),
]
