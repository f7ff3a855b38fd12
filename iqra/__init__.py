# Iqra language package
# A bilingual (Arabic/English) interpreted language: lexer, parser and
# tree-walking interpreter with an injectable host-system boundary.
from .errors import IqraError, LexError, ParseError, IqraRuntimeError, SystemExecutionError, ErrorKind
from .executor import SystemExecutor, DefaultSystemExecutor, StaticSystemExecutor
from .interpreter import Runtime, new_engine, run_program
from .parser import parse_program

__all__ = [
    'new_engine',
    'run_program',
    'parse_program',
    'Runtime',
    'SystemExecutor',
    'DefaultSystemExecutor',
    'StaticSystemExecutor',
    'IqraError',
    'LexError',
    'ParseError',
    'IqraRuntimeError',
    'SystemExecutionError',
    'ErrorKind',
]
