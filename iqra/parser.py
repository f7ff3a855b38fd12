"""Parser for the Iqra language.

This module implements a two-stage parsing pipeline:

1. **Separator normalization**: The token list produced by
   :mod:`iqra.lexer` is rewritten so that statement boundaries are
   explicit. Newlines and semicolons collapse into a single separator,
   newlines inside parentheses and brackets are dropped, and a separator
   is inserted before every closing brace. This lets the grammar require
   a separator after each statement.

2. **Parsing**: The normalized tokens are fed into a Lark LALR parser
   through a custom lexer adapter, so Lark never sees raw text and the
   bilingual keyword handling stays in the lexer. The resulting parse
   tree is transformed into an AST using a custom transformer.

`parse` takes tokens, `parse_program` takes source text. Both return a
:class:`Program` node or raise :class:`ParseError`.
"""

from __future__ import annotations

from typing import Any, Iterable, List, Optional, Sequence, Tuple

from lark import Lark, Transformer
from lark import Token as LarkToken
from lark.exceptions import UnexpectedInput, UnexpectedToken, VisitError
from lark.lexer import Lexer as LarkLexer

from .ast import (
    Program, Block, Assignment, IfStmt, WhileStmt, FunctionDef, ReturnStmt,
    TryCatch, ExprStmt, Literal, Identifier, UnaryOp, BinaryOp, Call, Index,
    ListLiteral, MapLiteral, Node,
)
from .errors import ParseError, nesting_too_deep, unclosed_block, unexpected_token
from .lexer import Token, TokenKind, find_keyword_spellings, tokenize


IQRA_GRAMMAR = r"""
    ?start: program
    program: (statement _SEP)*

    // Statements
    ?statement: assignment
              | if_stmt
              | while_stmt
              | function_def
              | return_stmt
              | try_stmt
              | block
              | expr_stmt

    assignment: NAME _ASSIGN expression
    if_stmt: _IF expression block [_ELSE (if_stmt | block)]
    while_stmt: _WHILE expression block
    function_def: _FUNCTION NAME _LPAR [param_list] _RPAR block
    param_list: NAME (_COMMA NAME)*
    return_stmt: _RETURN [expression]
    try_stmt: _TRY block _CATCH NAME block
    expr_stmt: expression

    block: _LBRACE (statement _SEP)* _RBRACE

    // Expressions with precedence
    ?expression: or_expr
    ?or_expr: and_expr (OR and_expr)*
    ?and_expr: equality (AND equality)*
    ?equality: comparison ((EQ | NE) comparison)*
    ?comparison: additive ((LT | LE | GT | GE) additive)*
    ?additive: multiplicative ((PLUS | MINUS) multiplicative)*
    ?multiplicative: unary ((STAR | SLASH | PERCENT) unary)*
    ?unary: NOT unary -> unary_op
          | MINUS unary -> unary_op
          | postfix
    ?postfix: primary
            | postfix _LPAR [arg_list] _RPAR -> call
            | postfix _LSQB expression _RSQB -> index
    arg_list: expression (_COMMA expression)*
    ?primary: NUMBER -> number
            | STRING -> string
            | TRUE -> constant
            | FALSE -> constant
            | NIL -> constant
            | NAME -> identifier
            | _LPAR expression _RPAR
            | list_lit
            | map_lit
    list_lit: _LSQB [expression (_COMMA expression)*] _RSQB
    map_lit: _LSQB map_entry (_COMMA map_entry)* _RSQB
           | _LSQB _COLON _RSQB
    map_entry: expression _COLON expression

    // Tokens come from iqra.lexer
    %declare _IF _ELSE _WHILE _FUNCTION _RETURN _TRY _CATCH
    %declare TRUE FALSE NIL AND OR NOT
    %declare PLUS MINUS STAR SLASH PERCENT EQ NE LT LE GT GE
    %declare _ASSIGN _LPAR _RPAR _LBRACE _RBRACE _LSQB _RSQB _COMMA _COLON _SEP
    %declare NAME NUMBER STRING
"""

# Terminal name used in the grammar for each token kind. Underscore
# prefixed terminals are filtered out of the parse tree.
TERMINALS = {
    TokenKind.NUMBER: 'NUMBER',
    TokenKind.STRING: 'STRING',
    TokenKind.NAME: 'NAME',
    TokenKind.IF: '_IF',
    TokenKind.ELSE: '_ELSE',
    TokenKind.WHILE: '_WHILE',
    TokenKind.FUNCTION: '_FUNCTION',
    TokenKind.RETURN: '_RETURN',
    TokenKind.TRY: '_TRY',
    TokenKind.CATCH: '_CATCH',
    TokenKind.TRUE: 'TRUE',
    TokenKind.FALSE: 'FALSE',
    TokenKind.NIL: 'NIL',
    TokenKind.AND: 'AND',
    TokenKind.OR: 'OR',
    TokenKind.NOT: 'NOT',
    TokenKind.PLUS: 'PLUS',
    TokenKind.MINUS: 'MINUS',
    TokenKind.STAR: 'STAR',
    TokenKind.SLASH: 'SLASH',
    TokenKind.PERCENT: 'PERCENT',
    TokenKind.ASSIGN: '_ASSIGN',
    TokenKind.EQ: 'EQ',
    TokenKind.NE: 'NE',
    TokenKind.LT: 'LT',
    TokenKind.LE: 'LE',
    TokenKind.GT: 'GT',
    TokenKind.GE: 'GE',
    TokenKind.LPAR: '_LPAR',
    TokenKind.RPAR: '_RPAR',
    TokenKind.LBRACE: '_LBRACE',
    TokenKind.RBRACE: '_RBRACE',
    TokenKind.LSQB: '_LSQB',
    TokenKind.RSQB: '_RSQB',
    TokenKind.COMMA: '_COMMA',
    TokenKind.COLON: '_COLON',
}

SEPARATOR = '_SEP'

# Canonical operator symbols stored in the AST
OPERATORS = {
    'OR': 'or',
    'AND': 'and',
    'NOT': 'not',
    'EQ': '==',
    'NE': '!=',
    'LT': '<',
    'LE': '<=',
    'GT': '>',
    'GE': '>=',
    'PLUS': '+',
    'MINUS': '-',
    'STAR': '*',
    'SLASH': '/',
    'PERCENT': '%',
}


def _terminal_display(name: str) -> str:
    """Human readable name of a grammar terminal for error messages."""
    for kind, terminal in TERMINALS.items():
        if terminal != name:
            continue
        spellings = find_keyword_spellings(kind)
        if spellings:
            # English spelling first, then the first Arabic one
            english = [s for s in spellings if s.isascii()]
            arabic = [s for s in spellings if not s.isascii()]
            return '/'.join(english[:1] + arabic[:1])
        break
    return {
        'NAME': 'identifier/معرف',
        'NUMBER': 'number/رقم',
        'STRING': 'string/نص',
        '_SEP': 'newline/سطر جديد',
        '$END': 'end of input/نهاية الملف',
        '_LPAR': '(',
        '_RPAR': ')',
        '_LBRACE': '{',
        '_RBRACE': '}',
        '_LSQB': '[',
        '_RSQB': ']',
        '_COMMA': ',',
        '_COLON': ':',
        '_ASSIGN': '=',
        'EQ': '==',
        'NE': '!=',
        'LT': '<',
        'LE': '<=',
        'GT': '>',
        'GE': '>=',
        'PLUS': '+',
        'MINUS': '-',
        'STAR': '*',
        'SLASH': '/',
        'PERCENT': '%',
    }.get(name, name)


def _token_display(token: Token) -> str:
    if token.kind is TokenKind.EOF:
        return 'end of input/نهاية الملف'
    if token.kind is TokenKind.NEWLINE:
        return 'newline/سطر جديد'
    return token.lexeme


def normalize_separators(tokens: Sequence[Token]) -> List[Tuple[str, int]]:
    """Return ``(terminal, index)`` pairs with explicit statement separators.

    ``index`` points back into `tokens` so errors can report the original
    lexeme and position.
    """
    out: List[Tuple[str, int]] = []
    depth = 0  # nesting depth for () and []

    def last() -> Optional[str]:
        return out[-1][0] if out else None

    for index, tok in enumerate(tokens):
        kind = tok.kind
        if kind is TokenKind.NEWLINE or kind is TokenKind.SEMICOLON:
            if kind is TokenKind.NEWLINE and depth > 0:
                continue
            if last() in (None, SEPARATOR, '_LBRACE'):
                continue
            out.append((SEPARATOR, index))
            continue
        if kind is TokenKind.EOF:
            if last() not in (None, SEPARATOR):
                out.append((SEPARATOR, index))
            break
        if kind in (TokenKind.LPAR, TokenKind.LSQB):
            depth += 1
        elif kind in (TokenKind.RPAR, TokenKind.RSQB):
            depth = max(0, depth - 1)
        elif kind in (TokenKind.ELSE, TokenKind.CATCH):
            # allow `}` on one line and `else`/`catch` on the next
            if last() == SEPARATOR and len(out) > 1 and out[-2][0] == '_RBRACE':
                out.pop()
        elif kind is TokenKind.RBRACE:
            if last() not in (None, SEPARATOR, '_LBRACE'):
                out.append((SEPARATOR, index))
        out.append((TERMINALS[kind], index))
    return out


class TokenStreamLexer(LarkLexer):
    """Feeds pre-built Lark tokens to the parser instead of lexing text."""

    def __init__(self, lexer_conf):
        pass

    def lex(self, data: Iterable[LarkToken]):
        for token in data:
            yield token


class ASTTransformer(Transformer):
    """Transforms the raw parse tree into an AST."""

    def program(self, items):
        return Program(body=list(items))

    def assignment(self, items):
        name = items[0]
        return Assignment(name=str(name.value), value=items[1], line=name.line)

    def if_stmt(self, items):
        condition = items[0]
        then_block = items[1]
        else_branch = items[2] if len(items) > 2 else None
        return IfStmt(condition, then_block, else_branch)

    def while_stmt(self, items):
        return WhileStmt(items[0], items[1])

    def function_def(self, items):
        name = items[0]
        params: List[str] = items[1] if len(items) > 2 else []
        body = items[-1]
        return FunctionDef(name=str(name.value), params=params, body=body, line=name.line)

    def param_list(self, items):
        return [str(item.value) for item in items]

    def return_stmt(self, items):
        return ReturnStmt(items[0] if items else None)

    def try_stmt(self, items):
        try_block, err_name, catch_block = items
        return TryCatch(try_block, str(err_name.value), catch_block)

    def expr_stmt(self, items):
        return ExprStmt(items[0])

    def block(self, items):
        return Block(statements=list(items))

    # Expressions
    def binary_chain(self, items):
        # items pattern: operand (op operand)*, folded left-associatively
        left = items[0]
        for i in range(1, len(items), 2):
            op = items[i]
            left = BinaryOp(OPERATORS[op.type], left, items[i + 1], line=op.line)
        return left

    or_expr = and_expr = equality = comparison = binary_chain
    additive = multiplicative = binary_chain

    def unary_op(self, items):
        op, operand = items
        return UnaryOp(OPERATORS[op.type], operand, line=op.line)

    def call(self, items):
        callee = items[0]
        args = items[1] if len(items) > 1 else []
        return Call(callee, args, line=_line_of(callee))

    def index(self, items):
        target, key = items
        return Index(target, key, line=_line_of(target))

    def arg_list(self, items):
        return list(items)

    def number(self, items):
        return Literal(items[0].value)

    def string(self, items):
        return Literal(items[0].value)

    def constant(self, items):
        return Literal(items[0].value)

    def identifier(self, items):
        token = items[0]
        return Identifier(str(token.value), line=token.line)

    def list_lit(self, items):
        return ListLiteral(list(items))

    def map_lit(self, items):
        return MapLiteral(list(items))

    def map_entry(self, items):
        key, value = items
        return (key, value)


def _line_of(node: Node) -> Optional[int]:
    line = getattr(node, 'line', None)
    if line is None and isinstance(node, (Call, Index)):
        return _line_of(node.callee if isinstance(node, Call) else node.target)
    return line


IQRA_PARSER = Lark(
    IQRA_GRAMMAR,
    parser='lalr',
    lexer=TokenStreamLexer,
    maybe_placeholders=False,
)


def _to_lark_tokens(tokens: Sequence[Token]) -> List[LarkToken]:
    stream = []
    for terminal, index in normalize_separators(tokens):
        tok = tokens[index]
        value: Any = tok.value if tok.value is not None else tok.lexeme
        stream.append(LarkToken(terminal, value, start_pos=index, line=tok.line, column=tok.column))
    return stream


def _unmatched_brace(tokens: Sequence[Token]) -> Optional[Token]:
    opened: List[Token] = []
    for tok in tokens:
        if tok.kind is TokenKind.LBRACE:
            opened.append(tok)
        elif tok.kind is TokenKind.RBRACE and opened:
            opened.pop()
    return opened[-1] if opened else None


def _syntax_error(exc: UnexpectedInput, tokens: Sequence[Token]) -> ParseError:
    if not isinstance(exc, UnexpectedToken):
        return ParseError(unexpected_token(['?'], str(exc), exc.line, exc.column))

    lark_token = exc.token
    source_token = tokens[lark_token.start_pos] if lark_token.start_pos is not None else tokens[-1]
    at_end = lark_token.type == '$END' or source_token.kind is TokenKind.EOF
    if at_end and '_RBRACE' in exc.expected:
        opener = _unmatched_brace(tokens)
        if opener is not None:
            return ParseError(unclosed_block(opener.line, opener.column))

    expected = sorted({_terminal_display(name) for name in exc.expected})
    found = 'end of input/نهاية الملف' if lark_token.type == '$END' else _token_display(source_token)
    return ParseError(unexpected_token(expected, found, source_token.line, source_token.column))


def parse(tokens: Iterable[Token]) -> Program:
    """Parse a token sequence into an AST Program.

    Raises ParseError on the first syntax error; no partial tree is
    returned.
    """
    tokens = list(tokens)
    if not tokens or tokens[-1].kind is not TokenKind.EOF:
        line = tokens[-1].line if tokens else 1
        tokens.append(Token(TokenKind.EOF, '', line, 1))
    try:
        tree = IQRA_PARSER.parse(_to_lark_tokens(tokens))
        return ASTTransformer().transform(tree)
    except UnexpectedInput as exc:
        raise _syntax_error(exc, tokens) from None
    except RecursionError:
        # tree building recurses once per nesting level
        raise ParseError(nesting_too_deep(tokens[0].line, tokens[0].column)) from None
    except VisitError as exc:
        if isinstance(exc.orig_exc, RecursionError):
            raise ParseError(nesting_too_deep(tokens[0].line, tokens[0].column)) from None
        raise


def parse_program(source: str) -> Program:
    """Tokenize and parse Iqra source code into an AST Program."""
    return parse(tokenize(source))
