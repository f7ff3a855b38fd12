"""CLI entry point for the Iqra interpreter.

Usage:
    python -m iqra [-v|-vv|-vvv] <program_file>
    python -m iqra [-v...] -c "<code>"
    python -m iqra [-v...] --emit-ast <program_file>
    python -m iqra [-v...] --ast <ast_json_file>
    python -m iqra                      (interactive REPL)

Options:
  -v                      Increase debug verbosity (can be repeated)
  -c, --code              Run a code string and print its result
  --emit-ast              Parse the given .iqra file and emit an AST JSON file
  --ast                   Execute a previously emitted AST JSON file
  --log-file              Where debug output goes (default: debug.txt when -v is given)
  --allow-shell-fallback  Let system commands run through the shell (unsafe)

Shell fallback can also be enabled with IQRA_ALLOW_SHELL_FALLBACK=1.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .ast_json import ast_from_obj, ast_to_obj
from .errors import IqraError, LexError
from .executor import DefaultSystemExecutor
from .interpreter import Runtime, new_engine
from .lexer import TokenKind, tokenize
from .parser import parse_program
from .types import NIL, format_value

PROMPT = 'اقرأ> '
CONTINUATION_PROMPT = '...   '
EXIT_WORDS = ('خروج', 'exit', 'quit')
BANNER = 'اقرأ - لغة برمجة ثنائية اللغة | Iqra - a bilingual programming language\n' \
         'اكتب خروج للخروج | type exit to quit'


def configure_logging(verbosity: int, log_file: Optional[str]) -> None:
    level = logging.DEBUG if verbosity > 0 else logging.WARNING
    if verbosity > 0 and log_file is None:
        log_file = 'debug.txt'
    logging.basicConfig(
        level=level,
        filename=log_file,
        filemode='w' if log_file else 'a',
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )


def open_braces(source: str) -> int:
    """Number of `{` still waiting for a `}` in `source`."""
    try:
        tokens = tokenize(source)
    except LexError:
        # let evaluation report the lexing problem
        return 0
    depth = 0
    for token in tokens:
        if token.kind is TokenKind.LBRACE:
            depth += 1
        elif token.kind is TokenKind.RBRACE:
            depth -= 1
    return depth


def repl(runtime: Runtime) -> None:
    print(BANNER)
    buffer: List[str] = []
    while True:
        try:
            line = input(CONTINUATION_PROMPT if buffer else PROMPT)
        except EOFError:
            print()
            break
        except KeyboardInterrupt:
            print()
            buffer.clear()
            continue
        if not buffer and line.strip() in EXIT_WORDS:
            break
        buffer.append(line)
        source = '\n'.join(buffer)
        if open_braces(source) > 0:
            continue
        buffer.clear()
        if not source.strip():
            continue
        try:
            result = runtime.evaluate_fragment(source)
        except IqraError as exc:
            print(f"خطأ - Error: {exc.err}")
            continue
        if result is not NIL:
            print(format_value(result))


def _existing(path: Path) -> Path:
    if not path.exists():
        print(f"خطأ - Error: الملف {path} غير موجود | file {path} not found", file=sys.stderr)
        sys.exit(1)
    return path


def _read_text(path: Path) -> str:
    with open(_existing(path), 'r', encoding='utf-8') as f:
        return f.read()


def _fail(exc: IqraError) -> None:
    print(f"خطأ - Error: {exc.err}", file=sys.stderr)
    sys.exit(1)


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog='iqra', description='Iqra language interpreter')
    parser.add_argument('-v', action='count', default=0, help='increase debug verbosity (can be repeated)')
    parser.add_argument('--log-file', metavar='PATH', help='write debug output to PATH')
    parser.add_argument('--allow-shell-fallback', action='store_true', default=None,
                        help='allow system commands to run through the shell (unsafe for untrusted input)')
    group = parser.add_mutually_exclusive_group()
    group.add_argument('-c', '--code', metavar='CODE', help='run CODE and print its result')
    group.add_argument('--emit-ast', metavar='IQRA_FILE', help='emit AST JSON for the given .iqra file')
    group.add_argument('--ast', metavar='AST_JSON_FILE', help='execute AST from a JSON file')
    parser.add_argument('program', nargs='?', help='Iqra program file (.iqra) to execute')
    args = parser.parse_args(argv)

    configure_logging(args.v, args.log_file)

    # Emit AST mode
    if args.emit_ast:
        program_file = Path(args.emit_ast)
        source = _read_text(program_file)
        try:
            ast_program = parse_program(source)
        except IqraError as exc:
            _fail(exc)
        obj = ast_to_obj(ast_program)
        out_path = program_file.with_name(program_file.name + '.ast.json')
        with open(out_path, 'w', encoding='utf-8') as out:
            json.dump(obj, out, ensure_ascii=False, indent=2)
        print(str(out_path))
        return

    runtime = new_engine(DefaultSystemExecutor(allow_shell_fallback=args.allow_shell_fallback),
                         debug_level=args.v)

    # Execute from AST JSON
    if args.ast:
        with open(_existing(Path(args.ast)), 'r', encoding='utf-8') as f:
            data = json.load(f)
        try:
            runtime.run_program(ast_from_obj(data))
        except IqraError as exc:
            _fail(exc)
        return

    if args.code is not None:
        try:
            result = runtime.run(args.code)
        except IqraError as exc:
            _fail(exc)
        if result is not NIL:
            print(format_value(result))
        return

    if not args.program:
        repl(runtime)
        return

    source = _read_text(Path(args.program))
    try:
        runtime.run(source)
    except IqraError as exc:
        _fail(exc)


if __name__ == '__main__':
    main()
