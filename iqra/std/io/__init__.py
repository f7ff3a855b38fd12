"""File and environment built-ins.

Each one delegates to the runtime's SystemExecutor, so host failures
arrive as SystemExecutionError and are turned into Raised signals here.
"""

from typing import Any, List

from iqra.builtin_function import BuiltinFunction, wrong_type
from iqra.errors import Normal, Raised, SystemExecutionError
from iqra.types import NIL, ListVal, format_value


def std_read_file(runtime, args: List[Any]):
    path = args[0]
    if not isinstance(path, str):
        return wrong_type('read_file', 'string', path)
    try:
        return Normal(runtime.executor.read_file(path))
    except SystemExecutionError as exc:
        return Raised(exc.err)


def std_write_file(runtime, args: List[Any]):
    path, content = args
    if not isinstance(path, str):
        return wrong_type('write_file', 'string', path)
    try:
        runtime.executor.write_file(path, format_value(content))
    except SystemExecutionError as exc:
        return Raised(exc.err)
    return Normal(True)


def std_list_files(runtime, args: List[Any]):
    path = args[0]
    if not isinstance(path, str):
        return wrong_type('list_files', 'string', path)
    try:
        return Normal(ListVal(list(runtime.executor.list_files(path))))
    except SystemExecutionError as exc:
        return Raised(exc.err)


def std_env_var(runtime, args: List[Any]):
    name = args[0]
    if not isinstance(name, str):
        return wrong_type('env_var', 'string', name)
    value = runtime.executor.env_var(name)
    return Normal(NIL if value is None else value)


BUILTINS = [
    BuiltinFunction('read_file', 'اقرأ_ملف', 1, std_read_file),
    BuiltinFunction('write_file', 'اكتب_ملف', 2, std_write_file),
    BuiltinFunction('list_files', 'قائمة_ملفات', 1, std_list_files),
    BuiltinFunction('env_var', 'متغير_بيئة', 1, std_env_var),
]
