"""Process execution and host information built-ins."""

import datetime
from typing import Any, List

from iqra.builtin_function import BuiltinFunction, wrong_type
from iqra.errors import Normal, Raised, SystemExecutionError
from iqra.types import MapVal


def std_system(runtime, args: List[Any]):
    command = args[0]
    if not isinstance(command, str):
        return wrong_type('system', 'string', command)
    runtime.debug(f"system {command!r}", 3)
    try:
        return Normal(runtime.executor.execute(command).strip())
    except SystemExecutionError as exc:
        return Raised(exc.err)


def std_system_with_io(runtime, args: List[Any]):
    command, input_text = args
    if not isinstance(command, str):
        return wrong_type('system_with_io', 'string', command)
    if not isinstance(input_text, str):
        return wrong_type('system_with_io', 'string', input_text)
    runtime.debug(f"system_with_io {command!r}", 3)
    try:
        return Normal(runtime.executor.execute_with_input(command, input_text).strip())
    except SystemExecutionError as exc:
        return Raised(exc.err)


def std_system_info(runtime, args: List[Any]):
    # host facts do not change during a run; ask the executor once
    if 'system_info' not in runtime.cache:
        runtime.cache['system_info'] = dict(runtime.executor.system_info())
    return Normal(MapVal(dict(runtime.cache['system_info'])))


def std_today(runtime, args: List[Any]):
    if 'today' not in runtime.cache:
        runtime.cache['today'] = datetime.date.today().isoformat()
    return Normal(runtime.cache['today'])


BUILTINS = [
    BuiltinFunction('system', 'نفذ_أمر', 1, std_system),
    BuiltinFunction('system_with_io', 'نفذ_أمر_بمدخل', 2, std_system_with_io),
    BuiltinFunction('system_info', 'معلومات_النظام', 0, std_system_info),
    BuiltinFunction('today', 'تاريخ_اليوم', 0, std_today),
]
