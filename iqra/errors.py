"""Error values, exceptions and control signals for the Iqra language.

Every error carries a bilingual message (Arabic first, English second)
and an optional corrective suggestion. Inside the evaluator errors travel
as `Raised` signals; the exception classes below are only used where an
error crosses a public boundary (lexing, parsing, the host executor and
the top-level `Runtime` entry points).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional


class ErrorKind(Enum):
    UNTERMINATED_STRING = ('UnterminatedString', 'نص غير منتهٍ')
    INVALID_CHARACTER = ('InvalidCharacter', 'حرف غير صالح')
    UNEXPECTED_TOKEN = ('UnexpectedToken', 'رمز غير متوقع')
    UNCLOSED_BLOCK = ('UnclosedBlock', 'كتلة غير مغلقة')
    TYPE_ERROR = ('TypeError', 'خطأ في النوع')
    DIVISION_BY_ZERO = ('DivisionByZero', 'قسمة على صفر')
    UNDEFINED_VARIABLE = ('UndefinedVariable', 'متغير غير معرف')
    UNDEFINED_FUNCTION = ('UndefinedFunction', 'دالة غير معرفة')
    ARITY_MISMATCH = ('ArityMismatch', 'عدد وسائط خاطئ')
    SYSTEM_EXECUTION = ('SystemExecutionError', 'خطأ في تنفيذ أمر النظام')
    SHELL_FALLBACK_DISABLED = ('ShellFallbackDisabled', 'تنفيذ الصدفة معطل')
    INDEX_OUT_OF_RANGE = ('IndexOutOfRange', 'فهرس خارج النطاق')
    KEY_NOT_FOUND = ('KeyNotFound', 'مفتاح غير موجود')
    EMPTY_LIST = ('EmptyList', 'قائمة فارغة')
    RECURSION_LIMIT = ('RecursionLimit', 'تجاوز حد الاستدعاء')
    NESTING_TOO_DEEP = ('NestingTooDeep', 'تداخل عميق جدا')

    @property
    def label(self) -> str:
        return self.value[0]

    @property
    def label_ar(self) -> str:
        return self.value[1]


@dataclass
class ErrorVal:
    """A language-level error record."""
    kind: ErrorKind
    message_ar: str
    message_en: str
    suggestion: Optional[str] = None
    line: Optional[int] = None
    column: Optional[int] = None

    def summary(self) -> str:
        return f"[{self.kind.label}] {self.message_ar} | {self.message_en}"

    def at(self, line: Optional[int], column: Optional[int] = None) -> 'ErrorVal':
        # keep the innermost position
        if self.line is None and line is not None:
            self.line = line
            self.column = column
        return self

    def __str__(self) -> str:
        text = self.summary()
        if self.suggestion:
            text += f"\nاقتراح | Suggestion: {self.suggestion}"
        if self.line is not None:
            text += f"\nالسطر: {self.line} | Line: {self.line}"
        return text


class IqraError(Exception):
    """Exception type used to surface Iqra errors to callers."""
    def __init__(self, err: ErrorVal):
        super().__init__(str(err))
        self.err = err

    @property
    def kind(self) -> ErrorKind:
        return self.err.kind


class LexError(IqraError):
    pass


class ParseError(IqraError):
    pass


class IqraRuntimeError(IqraError):
    pass


class SystemExecutionError(IqraError):
    """Raised by a SystemExecutor; built-ins turn it into a Raised signal."""
    pass


###############################################################################
# Control signals
###############################################################################

class Signal:
    __slots__ = ()


class Normal(Signal):
    __slots__ = ('value',)

    def __init__(self, value: Any):
        self.value = value

    def __repr__(self) -> str:
        return f"Normal({self.value!r})"


class Returning(Signal):
    __slots__ = ('value',)

    def __init__(self, value: Any):
        self.value = value

    def __repr__(self) -> str:
        return f"Returning({self.value!r})"


class Raised(Signal):
    __slots__ = ('error',)

    def __init__(self, error: ErrorVal):
        self.error = error

    def __repr__(self) -> str:
        return f"Raised({self.error.summary()!r})"


###############################################################################
# Error constructors
###############################################################################

def unterminated_string(line: int, column: int) -> ErrorVal:
    return ErrorVal(
        ErrorKind.UNTERMINATED_STRING,
        'النص لم يُغلق بعلامة اقتباس',
        'string literal is not closed',
        'أضف " في نهاية النص / add a closing "',
        line, column,
    )


def invalid_character(char: str, line: int, column: int) -> ErrorVal:
    return ErrorVal(
        ErrorKind.INVALID_CHARACTER,
        f"حرف غير معروف '{char}'",
        f"unknown character '{char}'",
        None,
        line, column,
    )


def unexpected_token(expected: List[str], found: str, line: Optional[int], column: Optional[int]) -> ErrorVal:
    return ErrorVal(
        ErrorKind.UNEXPECTED_TOKEN,
        f"متوقع {' أو '.join(expected)}، وُجد {found}",
        f"expected {' or '.join(expected)}, found {found}",
        None,
        line, column,
    )


def unclosed_block(line: Optional[int], column: Optional[int]) -> ErrorVal:
    return ErrorVal(
        ErrorKind.UNCLOSED_BLOCK,
        'الكتلة لم تُغلق',
        'block is not closed',
        'أضف } لإغلاق الكتلة / add } to close the block',
        line, column,
    )


def type_error(message_ar: str, message_en: str, suggestion: Optional[str] = None) -> ErrorVal:
    return ErrorVal(ErrorKind.TYPE_ERROR, message_ar, message_en, suggestion)


def division_by_zero() -> ErrorVal:
    return ErrorVal(
        ErrorKind.DIVISION_BY_ZERO,
        'لا يمكن القسمة على صفر',
        'cannot divide by zero',
        'تأكد أن المقسوم عليه ليس صفرا / make sure the divisor is not zero',
    )


def undefined_variable(name: str) -> ErrorVal:
    return ErrorVal(
        ErrorKind.UNDEFINED_VARIABLE,
        f"المتغير '{name}' غير معرف",
        f"variable '{name}' is not defined",
        f"عرّف '{name}' قبل استخدامه / assign '{name}' before using it",
    )


def undefined_function(name: str) -> ErrorVal:
    return ErrorVal(
        ErrorKind.UNDEFINED_FUNCTION,
        f"الدالة '{name}' غير معرفة",
        f"function '{name}' is not defined",
        'تحقق من اسم الدالة / check the function name',
    )


def arity_mismatch(name: str, expected: int, got: int) -> ErrorVal:
    return ErrorVal(
        ErrorKind.ARITY_MISMATCH,
        f"الدالة '{name}' تتوقع {expected} وسيط، وأُعطيت {got}",
        f"function '{name}' expects {expected} argument(s), got {got}",
    )


def not_callable(type_name: str) -> ErrorVal:
    return type_error(
        f"القيمة من نوع {type_name} ليست دالة",
        f"value of type {type_name} is not callable",
    )


def index_out_of_range(index: Any, length: int) -> ErrorVal:
    return ErrorVal(
        ErrorKind.INDEX_OUT_OF_RANGE,
        f"الفهرس {index} خارج النطاق (الطول {length})",
        f"index {index} is out of range (length {length})",
    )


def key_not_found(key: str) -> ErrorVal:
    return ErrorVal(
        ErrorKind.KEY_NOT_FOUND,
        f"المفتاح '{key}' غير موجود",
        f"key '{key}' not found",
        'استخدم قاموس_قيمة للحصول على فارغ عند الغياب / use map_get to get nil when absent',
    )


def empty_list(name: str) -> ErrorVal:
    return ErrorVal(
        ErrorKind.EMPTY_LIST,
        f"'{name}' لا تقبل قائمة فارغة",
        f"'{name}' does not accept an empty list",
    )


def recursion_limit() -> ErrorVal:
    return ErrorVal(
        ErrorKind.RECURSION_LIMIT,
        'تجاوز البرنامج الحد الأقصى لعمق الاستدعاء',
        'maximum call depth exceeded',
        'تحقق من شرط التوقف في الدالة التعاودية / check the recursion base case',
    )


def system_error(message_ar: str, message_en: str, suggestion: Optional[str] = None) -> ErrorVal:
    return ErrorVal(ErrorKind.SYSTEM_EXECUTION, message_ar, message_en, suggestion)


def shell_fallback_disabled(command: str) -> ErrorVal:
    return ErrorVal(
        ErrorKind.SHELL_FALLBACK_DISABLED,
        f"الأمر '{command}' يحتاج إلى الصدفة وتنفيذ الصدفة معطل",
        f"command '{command}' needs a shell and shell fallback is disabled",
        'اضبط IQRA_ALLOW_SHELL_FALLBACK=1 للمدخلات الموثوقة فقط / '
        'set IQRA_ALLOW_SHELL_FALLBACK=1 for trusted input only',
    )


def nesting_too_deep(line: Optional[int], column: Optional[int]) -> ErrorVal:
    return ErrorVal(
        ErrorKind.NESTING_TOO_DEEP,
        'البرنامج متداخل بعمق لا يمكن تحليله',
        'program is nested too deeply to parse',
        'قسّم التعبير إلى متغيرات وسيطة / split the expression into intermediate variables',
        line, column,
    )
