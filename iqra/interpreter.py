"""Tree-walking evaluator for the Iqra language.

Every `execute`/`evaluate` step returns a Signal: ``Normal(value)``,
``Returning(value)`` or ``Raised(error)``. Callers check the signal and
pass anything but Normal straight up, which is how `return` unwinds to
the enclosing call and how errors travel to the nearest try/catch.
Python exceptions only appear at the public entry points, where a
Raised signal that reached the top becomes IqraRuntimeError.

A Runtime owns one global Environment and one SystemExecutor, both for
its whole lifetime. Nothing is shared between Runtime instances.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Callable, Dict, List, Optional

from . import std
from .ast import (
    Program, Block, Assignment, IfStmt, WhileStmt, FunctionDef, ReturnStmt,
    TryCatch, ExprStmt, Literal, Identifier, UnaryOp, BinaryOp, Call, Index,
    ListLiteral, MapLiteral, Node,
)
from .builtin_function import BuiltinFunction
from .environment import Environment
from .errors import (
    ErrorVal, IqraRuntimeError, Normal, Raised, Returning, Signal,
    arity_mismatch, division_by_zero, index_out_of_range, key_not_found,
    not_callable, recursion_limit, type_error, undefined_function,
    undefined_variable,
)
from .executor import SystemExecutor
from .parser import parse_program
from .types import (
    NIL, FunctionVal, ListVal, MapVal, as_index, format_value, is_truthy,
    to_number, type_name, type_name_ar, values_equal,
)

log = logging.getLogger(__name__)

ARITHMETIC: Dict[str, Callable[[float, float], float]] = {
    '+': lambda a, b: a + b,
    '-': lambda a, b: a - b,
    '*': lambda a, b: a * b,
}

COMPARISONS: Dict[str, Callable[[Any, Any], bool]] = {
    '<': lambda a, b: a < b,
    '<=': lambda a, b: a <= b,
    '>': lambda a, b: a > b,
    '>=': lambda a, b: a >= b,
}


def _operand_error(op: str, value: Any) -> ErrorVal:
    shown = format_value(value, nested=True)
    return type_error(
        f"لا يمكن استخدام {shown} ({type_name_ar(value)}) مع العملية '{op}'",
        f"cannot use {shown} ({type_name(value)}) with operator '{op}'",
        'حوّل القيمة إلى رقم باستخدام إلى_رقم / convert the value with to_number',
    )


class Runtime:
    """Executes Iqra programs against one environment and one executor."""

    def __init__(self, executor: SystemExecutor, debug_level: int = 0):
        if not isinstance(executor, SystemExecutor):
            raise TypeError('Runtime requires a SystemExecutor instance')
        self.executor = executor
        self.debug_level = debug_level
        self.global_env = Environment()
        # per-runtime memo for built-ins (today, system_info)
        self.cache: Dict[str, Any] = {}

    def debug(self, msg: str, level: int = 1) -> None:
        if self.debug_level >= level:
            log.debug(msg)

    # Public API
    def run(self, source: str) -> Any:
        """Run a complete program in a fresh global scope.

        Returns the value of the last executed statement. Raises LexError,
        ParseError or IqraRuntimeError.
        """
        program = parse_program(source)
        self.global_env = Environment()
        return self.run_program(program)

    def evaluate_fragment(self, source: str) -> Any:
        """Run `source` in the persistent global scope (REPL use)."""
        program = parse_program(source)
        return self.run_program(program)

    def run_program(self, program: Program, env: Optional[Environment] = None) -> Any:
        if env is None:
            env = self.global_env
        try:
            signal = self.execute_block(program.body, env)
        except RecursionError:
            raise IqraRuntimeError(recursion_limit()) from None
        if isinstance(signal, Raised):
            raise IqraRuntimeError(signal.error)
        return signal.value

    # Statements
    def execute_block(self, statements: List[Node], env: Environment) -> Signal:
        last: Any = NIL
        for stmt in statements:
            signal = self.execute(stmt, env)
            if not isinstance(signal, Normal):
                return signal
            last = signal.value
        return Normal(last)

    def execute(self, node: Node, env: Environment) -> Signal:
        if isinstance(node, ExprStmt):
            return self.evaluate(node.expr, env)
        if isinstance(node, Assignment):
            signal = self.evaluate(node.value, env)
            if not isinstance(signal, Normal):
                return signal
            env.assign(node.name, signal.value)
            self.debug(f"assign {node.name} = {format_value(signal.value, nested=True)}", 2)
            return Normal(signal.value)
        if isinstance(node, FunctionDef):
            func = FunctionVal(node.name, list(node.params), node.body, env)
            env.define(node.name, func)
            self.debug(f"define function {node.name}({', '.join(node.params)})", 2)
            return Normal(NIL)
        if isinstance(node, Block):
            # blocks share the enclosing scope
            return self.execute_block(node.statements, env)
        if isinstance(node, IfStmt):
            cond = self.evaluate(node.condition, env)
            if not isinstance(cond, Normal):
                return cond
            truthy = is_truthy(cond.value)
            self.debug(f"if condition {format_value(cond.value, nested=True)} -> {truthy}", 3)
            if truthy:
                return self.execute_block(node.then_block.statements, env)
            if node.else_branch is not None:
                return self.execute(node.else_branch, env)
            return Normal(NIL)
        if isinstance(node, WhileStmt):
            last: Any = NIL
            while True:
                cond = self.evaluate(node.condition, env)
                if not isinstance(cond, Normal):
                    return cond
                if not is_truthy(cond.value):
                    break
                signal = self.execute_block(node.body.statements, env)
                if not isinstance(signal, Normal):
                    return signal
                last = signal.value
            return Normal(last)
        if isinstance(node, ReturnStmt):
            if node.value is None:
                return Returning(NIL)
            signal = self.evaluate(node.value, env)
            if not isinstance(signal, Normal):
                return signal
            return Returning(signal.value)
        if isinstance(node, TryCatch):
            signal = self.execute_block(node.try_block.statements, env)
            if not isinstance(signal, Raised):
                return signal
            self.debug(f"caught {signal.error.summary()}", 3)
            catch_env = env.child_scope()
            catch_env.define(node.err_name, signal.error.summary())
            return self.execute_block(node.catch_block.statements, catch_env)
        # expressions used as statements
        return self.evaluate(node, env)

    # Expressions
    def evaluate(self, node: Node, env: Environment) -> Signal:
        signal = self._evaluate(node, env)
        if isinstance(signal, Raised):
            signal.error.at(getattr(node, 'line', None))
        return signal

    def _evaluate(self, node: Node, env: Environment) -> Signal:
        if isinstance(node, Literal):
            return Normal(node.value)
        if isinstance(node, Identifier):
            owner = env.resolve(node.name)
            if owner is None:
                return Raised(undefined_variable(node.name))
            return Normal(owner.values[node.name])
        if isinstance(node, BinaryOp):
            return self.evaluate_binary(node, env)
        if isinstance(node, UnaryOp):
            operand = self.evaluate(node.operand, env)
            if not isinstance(operand, Normal):
                return operand
            if node.op == 'not':
                return Normal(not is_truthy(operand.value))
            try:
                return Normal(-to_number(operand.value))
            except TypeError:
                return Raised(_operand_error('-', operand.value))
        if isinstance(node, Call):
            return self.evaluate_call(node, env)
        if isinstance(node, Index):
            return self.evaluate_index(node, env)
        if isinstance(node, ListLiteral):
            items = []
            for element in node.elements:
                signal = self.evaluate(element, env)
                if not isinstance(signal, Normal):
                    return signal
                items.append(signal.value)
            return Normal(ListVal(items))
        if isinstance(node, MapLiteral):
            entries: Dict[str, Any] = {}
            for key_node, value_node in node.entries:
                key = self.evaluate(key_node, env)
                if not isinstance(key, Normal):
                    return key
                if not isinstance(key.value, str):
                    return Raised(type_error(
                        f"مفاتيح القاموس يجب أن تكون نصوصا، وُجد {type_name_ar(key.value)}",
                        f"map keys must be strings, got {type_name(key.value)}",
                    ))
                value = self.evaluate(value_node, env)
                if not isinstance(value, Normal):
                    return value
                entries[key.value] = value.value
            return Normal(MapVal(entries))
        if isinstance(node, (Assignment, FunctionDef, Block, IfStmt, WhileStmt, ReturnStmt, TryCatch, ExprStmt)):
            return self.execute(node, env)
        raise NotImplementedError(f"evaluate: unexpected node type {type(node)}")

    def evaluate_binary(self, node: BinaryOp, env: Environment) -> Signal:
        op = node.op
        left = self.evaluate(node.left, env)
        if not isinstance(left, Normal):
            return left
        if op == 'and' or op == 'or':
            left_truthy = is_truthy(left.value)
            if (op == 'and' and not left_truthy) or (op == 'or' and left_truthy):
                return Normal(left_truthy)
            right = self.evaluate(node.right, env)
            if not isinstance(right, Normal):
                return right
            return Normal(is_truthy(right.value))

        right = self.evaluate(node.right, env)
        if not isinstance(right, Normal):
            return right
        return self.apply_binary_op(op, left.value, right.value)

    def apply_binary_op(self, op: str, a: Any, b: Any) -> Signal:
        if op == '==':
            return Normal(values_equal(a, b))
        if op == '!=':
            return Normal(not values_equal(a, b))
        if op == '+' and isinstance(a, str) and isinstance(b, str):
            return Normal(a + b)
        if op in COMPARISONS and isinstance(a, str) and isinstance(b, str):
            return Normal(COMPARISONS[op](a, b))

        try:
            x = to_number(a)
        except TypeError:
            return Raised(_operand_error(op, a))
        try:
            y = to_number(b)
        except TypeError:
            return Raised(_operand_error(op, b))

        if op in ARITHMETIC:
            return Normal(ARITHMETIC[op](x, y))
        if op in COMPARISONS:
            return Normal(COMPARISONS[op](x, y))
        if op == '/':
            if y == 0:
                return Raised(division_by_zero())
            return Normal(x / y)
        if op == '%':
            if y == 0:
                return Raised(division_by_zero())
            return Normal(math.fmod(x, y))
        raise NotImplementedError(f"unknown operator {op}")

    def evaluate_index(self, node: Index, env: Environment) -> Signal:
        target = self.evaluate(node.target, env)
        if not isinstance(target, Normal):
            return target
        key = self.evaluate(node.key, env)
        if not isinstance(key, Normal):
            return key
        container = target.value
        if isinstance(container, ListVal):
            position = as_index(key.value, len(container.items))
            if position is None:
                return Raised(index_out_of_range(format_value(key.value, nested=True), len(container.items)))
            return Normal(container.items[position])
        if isinstance(container, MapVal):
            if not isinstance(key.value, str):
                return Raised(type_error(
                    f"مفاتيح القاموس يجب أن تكون نصوصا، وُجد {type_name_ar(key.value)}",
                    f"map keys must be strings, got {type_name(key.value)}",
                ))
            if key.value not in container.entries:
                return Raised(key_not_found(key.value))
            return Normal(container.entries[key.value])
        return Raised(type_error(
            f"لا يمكن الفهرسة في قيمة من نوع {type_name_ar(container)}",
            f"cannot index a value of type {type_name(container)}",
        ))

    # Calls
    def evaluate_call(self, node: Call, env: Environment) -> Signal:
        callee: Any
        if isinstance(node.callee, Identifier):
            name = node.callee.name
            owner = env.resolve(name)
            if owner is not None:
                callee = owner.values[name]
            else:
                callee = std.lookup(name)
                if callee is None:
                    return Raised(undefined_function(name))
        else:
            signal = self.evaluate(node.callee, env)
            if not isinstance(signal, Normal):
                return signal
            callee = signal.value

        if not isinstance(callee, (FunctionVal, BuiltinFunction)):
            return Raised(not_callable(type_name(callee)))

        args: List[Any] = []
        for arg in node.args:
            signal = self.evaluate(arg, env)
            if not isinstance(signal, Normal):
                return signal
            args.append(signal.value)
        return self.call_function(callee, args)

    def call_function(self, func: Any, args: List[Any]) -> Signal:
        if isinstance(func, BuiltinFunction):
            if func.arity is not None and len(args) != func.arity:
                return Raised(arity_mismatch(func.name, func.arity, len(args)))
            self.debug(f"call builtin {func.name} with {len(args)} args", 3)
            return func.fn(self, args)

        if len(args) != len(func.params):
            return Raised(arity_mismatch(func.name, len(func.params), len(args)))
        self.debug(f"call {func.name}", 3)
        call_env = func.closure.child_scope()
        for param, value in zip(func.params, args):
            call_env.define(param, value)
        signal = self.execute_block(func.body.statements, call_env)
        if isinstance(signal, Returning):
            return Normal(signal.value)
        if isinstance(signal, Raised):
            return signal
        return Normal(NIL)


def new_engine(executor: SystemExecutor, debug_level: int = 0) -> Runtime:
    """Create a Runtime bound to `executor`."""
    return Runtime(executor, debug_level=debug_level)


def run_program(source: str, executor: SystemExecutor, debug_level: int = 0) -> Any:
    """Parse and run a program with a fresh Runtime."""
    return new_engine(executor, debug_level).run(source)
