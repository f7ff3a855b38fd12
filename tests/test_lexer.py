import pytest

from iqra.errors import ErrorKind, LexError
from iqra.lexer import KEYWORDS, Lexer, TokenKind, tokenize
from iqra.types import NIL


def kinds(source):
    return [t.kind for t in tokenize(source)]


def test_keyword_spellings_share_one_kind():
    assert kinds('if') == kinds('اذا') == kinds('إذا') == [TokenKind.IF, TokenKind.EOF]
    for word in ('else', 'وإلا', 'والا', 'وإلاّ'):
        assert kinds(word) == [TokenKind.ELSE, TokenKind.EOF]
    assert kinds('and و &&') == [TokenKind.AND, TokenKind.AND, TokenKind.AND, TokenKind.EOF]
    assert kinds('or أو ||') == [TokenKind.OR, TokenKind.OR, TokenKind.OR, TokenKind.EOF]
    assert kinds('not ليس !') == [TokenKind.NOT, TokenKind.NOT, TokenKind.NOT, TokenKind.EOF]


def test_every_keyword_maps_to_a_keyword_kind():
    for word, kind in KEYWORDS.items():
        assert kinds(word) == [kind, TokenKind.EOF]


def test_arabic_indic_digits_normalize():
    ascii_tok = tokenize('123')[0]
    arabic_tok = tokenize('١٢٣')[0]
    persian_tok = tokenize('۱۲۳')[0]
    assert ascii_tok.value == arabic_tok.value == persian_tok.value == 123.0
    assert arabic_tok.lexeme == '١٢٣'


def test_decimal_points():
    assert tokenize('2.5')[0].value == 2.5
    assert tokenize('٢٫٥')[0].value == 2.5
    # a point must be followed by a digit to belong to the number
    with pytest.raises(LexError):
        tokenize('3.')


def test_literal_values():
    tokens = tokenize('صحيح false فارغ')
    assert [t.value for t in tokens[:3]] == [True, False, NIL]


def test_string_escapes():
    tok = tokenize(r'"a\nb\t\"c\"\\ \q"')[0]
    assert tok.kind is TokenKind.STRING
    assert tok.value == 'a\nb\t"c"\\ \\q'


def test_identifiers_with_arabic_and_question_mark():
    tokens = tokenize('رقم؟ نص_١ _x وقت')
    assert [t.kind for t in tokens[:4]] == [TokenKind.NAME] * 4
    assert [t.lexeme for t in tokens[:4]] == ['رقم؟', 'نص_١', '_x', 'وقت']


def test_operators_and_punctuation():
    assert kinds('== != <= >= < > = + - * / % ( ) { } [ ] , ، : ; ؛') == [
        TokenKind.EQ, TokenKind.NE, TokenKind.LE, TokenKind.GE, TokenKind.LT,
        TokenKind.GT, TokenKind.ASSIGN, TokenKind.PLUS, TokenKind.MINUS,
        TokenKind.STAR, TokenKind.SLASH, TokenKind.PERCENT, TokenKind.LPAR,
        TokenKind.RPAR, TokenKind.LBRACE, TokenKind.RBRACE, TokenKind.LSQB,
        TokenKind.RSQB, TokenKind.COMMA, TokenKind.COMMA, TokenKind.COLON,
        TokenKind.SEMICOLON, TokenKind.SEMICOLON, TokenKind.EOF,
    ]


def test_comments_and_newlines():
    tokens = tokenize('x = 1 // تعليق\n# comment\ny')
    assert [t.kind for t in tokens] == [
        TokenKind.NAME, TokenKind.ASSIGN, TokenKind.NUMBER, TokenKind.NEWLINE,
        TokenKind.NEWLINE, TokenKind.NAME, TokenKind.EOF,
    ]


def test_positions():
    tokens = tokenize('x = 1\n  اطبع(x)')
    name = tokens[4]
    assert name.lexeme == 'اطبع'
    assert (name.line, name.column) == (2, 3)


def test_unterminated_string():
    with pytest.raises(LexError) as excinfo:
        tokenize('x = "abc')
    err = excinfo.value.err
    assert err.kind is ErrorKind.UNTERMINATED_STRING
    assert (err.line, err.column) == (1, 5)
    assert 'string literal is not closed' in str(err)


def test_string_cannot_span_lines():
    with pytest.raises(LexError) as excinfo:
        tokenize('"abc\n"')
    assert excinfo.value.kind is ErrorKind.UNTERMINATED_STRING


def test_invalid_character():
    with pytest.raises(LexError) as excinfo:
        tokenize('x = 1 @ 2')
    err = excinfo.value.err
    assert err.kind is ErrorKind.INVALID_CHARACTER
    assert err.column == 7


def test_single_ampersand_is_invalid():
    with pytest.raises(LexError):
        tokenize('a & b')


def test_lexer_is_restartable():
    lexer = Lexer('اذا x > ١ { y = "نعم" }')
    first = list(lexer)
    second = list(lexer)
    assert first == second
    assert first == tokenize('اذا x > ١ { y = "نعم" }')


def test_lexer_is_lazy():
    stream = iter(Lexer('x @'))
    assert next(stream).kind is TokenKind.NAME
    with pytest.raises(LexError):
        next(stream)
