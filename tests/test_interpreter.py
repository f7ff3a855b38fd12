import pytest

from iqra import new_engine
from iqra.errors import ErrorKind, IqraRuntimeError, LexError, Normal, ParseError, Raised, Returning
from iqra.executor import StaticSystemExecutor
from iqra.interpreter import Runtime
from iqra.parser import parse_program
from iqra.types import NIL, FunctionVal, ListVal, MapVal


@pytest.fixture
def runtime():
    return new_engine(StaticSystemExecutor())


def error_of(runtime, source):
    with pytest.raises(IqraRuntimeError) as excinfo:
        runtime.run(source)
    return excinfo.value.err


def test_runtime_requires_an_executor():
    with pytest.raises(TypeError):
        Runtime(None)


def test_arithmetic(runtime):
    assert runtime.run('1 + 2 * 3') == 7.0
    assert runtime.run('(1 + 2) * 3') == 9.0
    assert runtime.run('7 / 2') == 3.5
    assert runtime.run('1 / 3') == 1 / 3
    assert runtime.run('-7 % 3') == -1.0
    assert runtime.run('10 - 4 - 3') == 3.0


def test_division_by_zero(runtime):
    err = error_of(runtime, 'x = 5\ny = x / 0')
    assert err.kind is ErrorKind.DIVISION_BY_ZERO
    assert err.line == 2
    assert error_of(runtime, '5 % 0').kind is ErrorKind.DIVISION_BY_ZERO


def test_division_by_zero_keeps_earlier_side_effects(runtime, capsys):
    with pytest.raises(IqraRuntimeError):
        runtime.run('print("before")\nx = 1 / 0\nprint("after")')
    assert capsys.readouterr().out == 'before\n'


def test_arabic_and_ascii_digits_are_equal(runtime):
    assert runtime.run('١٢٣') == runtime.run('123') == 123.0
    assert runtime.run('١٢٣ == 123') is True


def test_string_concatenation_and_numeric_coercion(runtime):
    assert runtime.run('"اقرأ" + " " + "Iqra"') == 'اقرأ Iqra'
    assert runtime.run('"5" + 1') == 6.0
    assert runtime.run('"٥" * 2') == 10.0
    assert runtime.run('صحيح + 1') == 2.0


def test_arithmetic_type_error_has_suggestion(runtime):
    err = error_of(runtime, '1 + "abc"')
    assert err.kind is ErrorKind.TYPE_ERROR
    assert 'abc' in err.message_en
    assert err.suggestion is not None
    assert error_of(runtime, '-[1]').kind is ErrorKind.TYPE_ERROR


def test_comparisons(runtime):
    assert runtime.run('3 > 2') is True
    assert runtime.run('3 <= 2') is False
    assert runtime.run('"a" < "b"') is True
    assert runtime.run('"10" > 9') is True
    assert runtime.run('[1, 2] == [1, 2]') is True
    assert runtime.run('["a": 1] == ["a": 1]') is True
    assert runtime.run('1 == صحيح') is False
    assert runtime.run('nil == فارغ') is True
    assert runtime.run('"x" != "y"') is True


@pytest.mark.parametrize('source, expected', [
    ('0', False),
    ('1', True),
    ('-2', True),
    ('""', False),
    ('"x"', True),
    ('[]', False),
    ('[0]', True),
    ('[:]', False),
    ('["k": 0]', True),
    ('nil', False),
    ('true', True),
    ('false', False),
])
def test_truthiness(runtime, source, expected):
    result = runtime.run(f'r = "no"\nif {source} {{ r = "yes" }}\nr')
    assert result == ('yes' if expected else 'no')
    assert runtime.run(f'not {source}') is (not expected)


def test_logical_operators_short_circuit(runtime):
    assert runtime.run('false and undefined_name') is False
    assert runtime.run('true or undefined_name') is True
    assert runtime.run('1 and "x"') is True
    assert runtime.run('0 أو ""') is False


def test_while_loop(runtime):
    assert runtime.run('i = 0\ntotal = 0\nwhile i < 5 { total = total + i; i = i + 1 }\ntotal') == 10.0


def test_if_else_chain_arabic(runtime):
    source = 'ن = ٥\nاذا ن > ١٠ { ر = "أ" } وإلا اذا ن > ٣ { ر = "ب" } وإلا { ر = "ج" }\nر'
    assert runtime.run(source) == 'ب'


def test_blocks_share_the_enclosing_scope(runtime):
    # variables created inside if/while bodies stay visible afterwards
    assert runtime.run('if true { inner = 1 }\ninner') == 1.0
    assert runtime.run('i = 0\nwhile i < 1 { seen = i; i = i + 1 }\nseen') == 0.0
    assert runtime.run('{ x = 4 }\nx') == 4.0


def test_assignment_updates_outer_binding_from_function(runtime):
    source = (
        'count = 0\n'
        'function bump() { count = count + 1 }\n'
        'bump()\n'
        'bump()\n'
        'count'
    )
    assert runtime.run(source) == 2.0


def test_function_locals_do_not_leak(runtime):
    err = error_of(runtime, 'function f() { local = 1 }\nf()\nlocal')
    assert err.kind is ErrorKind.UNDEFINED_VARIABLE


def test_parameters_shadow_globals(runtime):
    source = 'x = "global"\nfunction f(x) { return x }\nf("param") + " " + x'
    assert runtime.run(source) == 'param global'


def test_closures_capture_definition_scope(runtime):
    source = (
        'function adder(n) {\n'
        '    function add(x) { return x + n }\n'
        '    return add\n'
        '}\n'
        'add5 = adder(5)\n'
        'n = 100\n'
        'add5(1)'
    )
    assert runtime.run(source) == 6.0


def test_recursion(runtime):
    source = 'function fib(n) { if n < 2 { return n }\n return fib(n - 1) + fib(n - 2) }\nfib(15)'
    assert runtime.run(source) == 610.0


def test_function_without_return_yields_nil(runtime):
    assert runtime.run('function f() { x = 1 }\nf()') is NIL


def test_return_inside_loop_exits_function(runtime):
    source = (
        'function first_over(xs, limit) {\n'
        '    i = 0\n'
        '    while i < len(xs) {\n'
        '        if xs[i] > limit { return xs[i] }\n'
        '        i = i + 1\n'
        '    }\n'
        '    return nil\n'
        '}\n'
        'first_over([1, 5, 9], 4)'
    )
    assert runtime.run(source) == 5.0


def test_top_level_return_stops_program(runtime, capsys):
    assert runtime.run('print(1)\nreturn 42\nprint(2)') == 42.0
    assert capsys.readouterr().out == '1\n'


def test_user_function_arity_mismatch(runtime, capsys):
    source = 'function f(a, b) { print("ran") }\nf(1)'
    err = error_of(runtime, source)
    assert err.kind is ErrorKind.ARITY_MISMATCH
    assert capsys.readouterr().out == ''


def test_builtin_arity_mismatch(runtime):
    err = error_of(runtime, 'map_get(["a": 1])')
    assert err.kind is ErrorKind.ARITY_MISMATCH
    assert 'map_get' in err.message_en


def test_undefined_names(runtime):
    assert error_of(runtime, 'print(missing)').kind is ErrorKind.UNDEFINED_VARIABLE
    assert error_of(runtime, 'missing()').kind is ErrorKind.UNDEFINED_FUNCTION


def test_calling_a_non_function(runtime):
    err = error_of(runtime, 'x = 3\nx()')
    assert err.kind is ErrorKind.TYPE_ERROR


def test_user_function_shadows_builtin(runtime):
    assert runtime.run('function len(x) { return "mine" }\nlen([1])') == 'mine'


def test_indexing(runtime):
    assert runtime.run('xs = [10, 20, 30]\nxs[1]') == 20.0
    assert runtime.run('m = ["أ": 1]\nm["أ"]') == 1.0
    assert error_of(runtime, '[1][3]').kind is ErrorKind.INDEX_OUT_OF_RANGE
    assert error_of(runtime, '[1][-1]').kind is ErrorKind.INDEX_OUT_OF_RANGE
    assert error_of(runtime, '[1][0.5]').kind is ErrorKind.INDEX_OUT_OF_RANGE
    assert error_of(runtime, '["a": 1]["b"]').kind is ErrorKind.KEY_NOT_FOUND
    assert error_of(runtime, '5[0]').kind is ErrorKind.TYPE_ERROR
    assert error_of(runtime, '[1: 2]').kind is ErrorKind.TYPE_ERROR


def test_try_catch_binds_error_message(runtime, capsys):
    runtime.run('try { x = 1 / 0 } catch e { print(e) }\nprint("after")')
    lines = capsys.readouterr().out.splitlines()
    assert lines[0].startswith('[DivisionByZero]')
    assert 'cannot divide by zero' in lines[0]
    assert lines[1] == 'after'


def test_catch_binding_lives_in_child_scope(runtime):
    err = error_of(runtime, 'try { 1 / 0 } catch e { }\ne')
    assert err.kind is ErrorKind.UNDEFINED_VARIABLE


def test_error_inside_catch_propagates(runtime):
    err = error_of(runtime, 'try { 1 / 0 } catch e { missing_fn() }')
    assert err.kind is ErrorKind.UNDEFINED_FUNCTION


def test_nested_try_catch_across_calls(runtime):
    source = (
        'function risky() { return [1][5] }\n'
        'function safe() {\n'
        '    try { return risky() } catch e { return "recovered" }\n'
        '}\n'
        'safe()'
    )
    assert runtime.run(source) == 'recovered'


def test_return_passes_through_try(runtime):
    assert runtime.run('function f() { try { return 1 } catch e { return 2 } }\nf()') == 1.0


def test_sequential_fragments_preserve_state(runtime, capsys):
    runtime.evaluate_fragment('x = 5; print(x)')
    runtime.evaluate_fragment('x = x + 1; print(x)')
    assert capsys.readouterr().out == '5\n6\n'


def test_run_starts_with_fresh_scope(runtime):
    runtime.run('x = 1')
    err = error_of(runtime, 'x')
    assert err.kind is ErrorKind.UNDEFINED_VARIABLE


def test_fragment_errors_do_not_reset_state(runtime):
    runtime.evaluate_fragment('total = 10')
    with pytest.raises(IqraRuntimeError):
        runtime.evaluate_fragment('total = total + 1\nboom()')
    assert runtime.evaluate_fragment('total') == 11.0


def test_lex_and_parse_errors_surface_unchanged(runtime):
    with pytest.raises(LexError):
        runtime.run('x = "open')
    with pytest.raises(ParseError):
        runtime.run('x = (1')


def test_runaway_recursion_is_reported(runtime):
    err = error_of(runtime, 'function f(n) { return f(n + 1) }\nf(0)')
    assert err.kind is ErrorKind.RECURSION_LIMIT


def test_runtimes_are_independent():
    first = new_engine(StaticSystemExecutor())
    second = new_engine(StaticSystemExecutor())
    first.evaluate_fragment('shared = 1')
    with pytest.raises(IqraRuntimeError):
        second.evaluate_fragment('shared')


def test_lists_are_shared_by_reference(runtime):
    source = (
        'function push(xs) { append(xs, 99) }\n'
        'items = [1]\n'
        'alias = items\n'
        'push(alias)\n'
        'items'
    )
    result = runtime.run(source)
    assert isinstance(result, ListVal)
    assert result.items == [1.0, 99.0]


def test_signals_from_execute(runtime):
    env = runtime.global_env
    program = parse_program('return 3')
    assert isinstance(runtime.execute(program.body[0], env), Returning)
    program = parse_program('1 / 0')
    signal = runtime.execute(program.body[0], env)
    assert isinstance(signal, Raised)
    assert signal.error.kind is ErrorKind.DIVISION_BY_ZERO
    signal = runtime.evaluate(parse_program('2 * 4').body[0].expr, env)
    assert isinstance(signal, Normal) and signal.value == 8.0


def test_function_definition_value(runtime):
    func = runtime.run('function f(a, b) { return a }\nf')
    assert isinstance(func, FunctionVal)
    assert func.params == ['a', 'b']


def test_map_literal_preserves_order(runtime):
    result = runtime.run('["z": 1, "a": 2, "m": 3]')
    assert isinstance(result, MapVal)
    assert list(result.entries) == ['z', 'a', 'm']


def test_debug_tracing(caplog):
    runtime = new_engine(StaticSystemExecutor(), debug_level=3)
    with caplog.at_level('DEBUG', logger='iqra'):
        runtime.run('x = 1\nif x { x = 2 }')
    messages = [r.getMessage() for r in caplog.records]
    assert 'assign x = 1' in messages
    assert any(m.startswith('if condition 1') for m in messages)
