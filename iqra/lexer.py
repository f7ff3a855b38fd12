"""Tokenizer for the Iqra language.

Source text is turned into canonical tokens. Every keyword spelling in
either language maps to one :class:`TokenKind`, and numbers written with
Arabic-Indic digits are normalized here, so later stages never look at
which language a program was written in.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterator, List

from .errors import LexError, invalid_character, unterminated_string
from .types import NIL, normalize_digits


class TokenKind(Enum):
    NUMBER = 'NUMBER'
    STRING = 'STRING'
    NAME = 'NAME'

    IF = 'IF'
    ELSE = 'ELSE'
    WHILE = 'WHILE'
    FUNCTION = 'FUNCTION'
    RETURN = 'RETURN'
    TRY = 'TRY'
    CATCH = 'CATCH'
    TRUE = 'TRUE'
    FALSE = 'FALSE'
    NIL = 'NIL'
    AND = 'AND'
    OR = 'OR'
    NOT = 'NOT'

    PLUS = 'PLUS'
    MINUS = 'MINUS'
    STAR = 'STAR'
    SLASH = 'SLASH'
    PERCENT = 'PERCENT'
    ASSIGN = 'ASSIGN'
    EQ = 'EQ'
    NE = 'NE'
    LT = 'LT'
    LE = 'LE'
    GT = 'GT'
    GE = 'GE'

    LPAR = 'LPAR'
    RPAR = 'RPAR'
    LBRACE = 'LBRACE'
    RBRACE = 'RBRACE'
    LSQB = 'LSQB'
    RSQB = 'RSQB'
    COMMA = 'COMMA'
    COLON = 'COLON'
    SEMICOLON = 'SEMICOLON'
    NEWLINE = 'NEWLINE'
    EOF = 'EOF'


# Every accepted spelling of every reserved word. Adding a spelling here
# is the only change needed to support it.
KEYWORDS: Dict[str, TokenKind] = {
    'if': TokenKind.IF, 'اذا': TokenKind.IF, 'إذا': TokenKind.IF,
    'else': TokenKind.ELSE, 'وإلا': TokenKind.ELSE, 'والا': TokenKind.ELSE, 'وإلاّ': TokenKind.ELSE,
    'while': TokenKind.WHILE, 'بينما': TokenKind.WHILE,
    'function': TokenKind.FUNCTION, 'دالة': TokenKind.FUNCTION,
    'return': TokenKind.RETURN, 'ارجع': TokenKind.RETURN,
    'try': TokenKind.TRY, 'جرب': TokenKind.TRY,
    'catch': TokenKind.CATCH, 'امسك': TokenKind.CATCH,
    'true': TokenKind.TRUE, 'صحيح': TokenKind.TRUE,
    'false': TokenKind.FALSE, 'خطأ': TokenKind.FALSE,
    'nil': TokenKind.NIL, 'فارغ': TokenKind.NIL,
    'and': TokenKind.AND, 'و': TokenKind.AND,
    'or': TokenKind.OR, 'أو': TokenKind.OR,
    'not': TokenKind.NOT, 'ليس': TokenKind.NOT,
}

TWO_CHAR_OPS: Dict[str, TokenKind] = {
    '==': TokenKind.EQ,
    '!=': TokenKind.NE,
    '<=': TokenKind.LE,
    '>=': TokenKind.GE,
    '&&': TokenKind.AND,
    '||': TokenKind.OR,
}

SINGLE_CHAR_OPS: Dict[str, TokenKind] = {
    '+': TokenKind.PLUS,
    '-': TokenKind.MINUS,
    '*': TokenKind.STAR,
    '/': TokenKind.SLASH,
    '%': TokenKind.PERCENT,
    '=': TokenKind.ASSIGN,
    '<': TokenKind.LT,
    '>': TokenKind.GT,
    '!': TokenKind.NOT,
    '(': TokenKind.LPAR,
    ')': TokenKind.RPAR,
    '{': TokenKind.LBRACE,
    '}': TokenKind.RBRACE,
    '[': TokenKind.LSQB,
    ']': TokenKind.RSQB,
    ',': TokenKind.COMMA,
    '،': TokenKind.COMMA,
    ':': TokenKind.COLON,
    ';': TokenKind.SEMICOLON,
    '؛': TokenKind.SEMICOLON,
}

ESCAPES = {'n': '\n', 't': '\t', 'r': '\r', '\\': '\\', '"': '"'}

DIGITS = '0123456789٠١٢٣٤٥٦٧٨٩۰۱۲۳۴۵۶۷۸۹'
DECIMAL_POINTS = '.٫'
# trailing marks allowed inside identifiers (e.g. رقم؟)
IDENT_EXTRA = '_؟'
# direction marks and BOM that editors insert into right-to-left text
BIDI_MARKS = '\u200e\u200f\ufeff'


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    lexeme: str
    line: int
    column: int
    value: Any = None

    def __repr__(self) -> str:
        return f"Token({self.kind.name}, {self.lexeme!r}, {self.line}:{self.column})"


def is_digit(c: str) -> bool:
    return c in DIGITS


def is_ident_start(c: str) -> bool:
    return c == '_' or (c.isalpha() and not is_digit(c))


def is_ident_char(c: str) -> bool:
    return c.isalnum() or c in IDENT_EXTRA or is_digit(c) or _is_combining_mark(c)


def _is_combining_mark(c: str) -> bool:
    # Arabic harakat and shadda (U+064B..U+065F, U+0670), as in وإلاّ
    code = ord(c)
    return 0x064B <= code <= 0x065F or code == 0x0670


class Lexer:
    """Lazy token stream over a piece of source text.

    Each iteration starts from the beginning of the text, so iterating a
    Lexer twice yields the same tokens.
    """

    def __init__(self, source: str):
        self.source = source

    def __iter__(self) -> Iterator[Token]:
        return self._scan()

    def _scan(self) -> Iterator[Token]:
        source = self.source
        length = len(source)
        i = 0
        line = 1
        col = 1

        while i < length:
            c = source[i]

            if c == '\n':
                yield Token(TokenKind.NEWLINE, '\n', line, col)
                i += 1
                line += 1
                col = 1
                continue
            if c.isspace() or c in BIDI_MARKS:
                i += 1
                col += 1
                continue

            # Comments run to end of line
            if c == '#' or source.startswith('//', i):
                while i < length and source[i] != '\n':
                    i += 1
                continue

            if is_digit(c):
                start = i
                while i < length and is_digit(source[i]):
                    i += 1
                if (i + 1 < length and source[i] in DECIMAL_POINTS
                        and is_digit(source[i + 1])):
                    i += 1
                    while i < length and is_digit(source[i]):
                        i += 1
                lexeme = source[start:i]
                value = float(normalize_digits(lexeme))
                yield Token(TokenKind.NUMBER, lexeme, line, col, value)
                col += i - start
                continue

            if is_ident_start(c):
                start = i
                while i < length and is_ident_char(source[i]):
                    i += 1
                lexeme = source[start:i]
                kind = KEYWORDS.get(lexeme, TokenKind.NAME)
                value = None
                if kind is TokenKind.TRUE:
                    value = True
                elif kind is TokenKind.FALSE:
                    value = False
                elif kind is TokenKind.NIL:
                    value = NIL
                yield Token(kind, lexeme, line, col, value)
                col += i - start
                continue

            if c == '"':
                start = i
                i += 1
                chars: List[str] = []
                closed = False
                while i < length:
                    ch = source[i]
                    if ch == '"':
                        closed = True
                        i += 1
                        break
                    if ch == '\n':
                        break
                    if ch == '\\' and i + 1 < length and source[i + 1] != '\n':
                        nxt = source[i + 1]
                        if nxt in ESCAPES:
                            chars.append(ESCAPES[nxt])
                        else:
                            chars.append('\\' + nxt)
                        i += 2
                        continue
                    chars.append(ch)
                    i += 1
                if not closed:
                    raise LexError(unterminated_string(line, col))
                yield Token(TokenKind.STRING, source[start:i], line, col, ''.join(chars))
                col += i - start
                continue

            pair = source[i:i + 2]
            if pair in TWO_CHAR_OPS:
                yield Token(TWO_CHAR_OPS[pair], pair, line, col)
                i += 2
                col += 2
                continue
            if c in SINGLE_CHAR_OPS:
                yield Token(SINGLE_CHAR_OPS[c], c, line, col)
                i += 1
                col += 1
                continue

            raise LexError(invalid_character(c, line, col))

        yield Token(TokenKind.EOF, '', line, col)


def tokenize(source: str) -> List[Token]:
    """Convert source code into a list of tokens ending with EOF."""
    return list(Lexer(source))


def find_keyword_spellings(kind: TokenKind) -> List[str]:
    return [word for word, k in KEYWORDS.items() if k is kind]
