"""Low-level parsing machinery shared by the language parsers."""

from __future__ import annotations

import string
from dataclasses import dataclass
from typing import Callable, NoReturn, Optional, TypeVar

from bendlang.core import Name, NumVal, Op

T = TypeVar("T")

_HIGHLIGHT = "\x1b[4m\x1b[31m"
_RESET = "\x1b[0m"

_ASCII_WHITESPACE = " \t\n\r\x0c"

_RADIX_DIGITS = {
    16: frozenset(string.hexdigits),
    10: frozenset(string.digits),
    2: frozenset("01"),
}
_RADIX_NAMES = {16: "hexadecimal", 10: "decimal", 2: "binary"}

_OPERATORS = (
    ("+", Op.ADD),
    ("-", Op.SUB),
    ("**", Op.POW),
    ("*", Op.MUL),
    ("/", Op.DIV),
    ("%", Op.REM),
    ("<<", Op.SHL),
    (">>", Op.SHR),
    ("<", Op.LT),
    (">", Op.GT),
    ("==", Op.EQ),
    ("!=", Op.NEQ),
    ("&", Op.AND),
    ("|", Op.OR),
    ("^", Op.XOR),
)

_SIMPLE_ESCAPES = {
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "0": "\0",
    "\\": "\\",
    "'": "'",
    '"': '"',
}

_I24_MIN = -0x00800000
_I24_MAX = 0x007FFFFF
_U24_LIMIT = 1 << 24
_U32_MAX = 0xFFFF_FFFF


class ParseError(Exception):
    """A syntax error, with the offending source highlighted in the message."""


@dataclass
class Indent:
    """Indentation of a line; a value of None means the end of the input."""

    value: Optional[int] = 0

    @classmethod
    def eof(cls) -> "Indent":
        return cls(None)

    @property
    def is_eof(self) -> bool:
        return self.value is None

    def enter_level(self) -> None:
        if self.value is not None:
            self.value += 2

    def exit_level(self) -> None:
        if self.value is not None:
            self.value -= 2


def is_name_char(c: str) -> bool:
    return (c.isascii() and c.isalnum()) or c in "_.-/"


def is_num_char(c: str) -> bool:
    return c in "0123456789+-"


def highlight_error(ini_idx: int, end_idx: int, text: str) -> str:
    """The numbered source lines touching [ini_idx, end_idx), with that span highlighted."""
    ini_idx = max(0, min(ini_idx, len(text)))
    end_idx = max(ini_idx, min(end_idx, len(text)))
    start = text.rfind("\n", 0, ini_idx) + 1
    stop = text.find("\n", end_idx)
    if stop == -1:
        stop = len(text)
    first_line = text.count("\n", 0, start) + 1
    lines = text[start:stop].split("\n")
    width = len(str(first_line + len(lines) - 1))

    rendered = []
    offset = start
    for number, line in enumerate(lines, first_line):
        line_end = offset + len(line)
        lo = max(ini_idx, offset) - offset
        hi = min(end_idx, line_end) - offset
        if lo < hi:
            body = f"{line[:lo]}{_HIGHLIGHT}{line[lo:hi]}{_RESET}{line[hi:]}"
        else:
            body = line
        rendered.append(f"{number:>{width}} | {body}")
        offset = line_end + 1
    return "\n".join(rendered)


class ParserBase:
    """A cursor over source text with the primitive parsing operations."""

    def __init__(self, input: str, index: int = 0) -> None:
        self.input = input
        self.index = index

    # Cursor primitives

    def is_eof(self) -> bool:
        return self.index >= len(self.input)

    def peek_one(self) -> Optional[str]:
        return self.input[self.index] if self.index < len(self.input) else None

    def peek_many(self, count: int) -> Optional[str]:
        if self.index + count > len(self.input):
            return None
        return self.input[self.index : self.index + count]

    def advance_one(self) -> Optional[str]:
        c = self.peek_one()
        if c is not None:
            self.index += 1
        return c

    def advance_many(self, count: int) -> str:
        taken = self.input[self.index : self.index + count]
        self.index += len(taken)
        return taken

    def starts_with(self, text: str) -> bool:
        return self.input.startswith(text, self.index)

    def take_while(self, pred: Callable[[str], bool]) -> str:
        start = self.index
        while (c := self.peek_one()) is not None and pred(c):
            self.index += 1
        return self.input[start : self.index]

    def skip_trivia(self) -> None:
        while (c := self.peek_one()) is not None:
            if c in _ASCII_WHITESPACE:
                self.advance_one()
                continue
            if c == "#":
                while (c := self.peek_one()) is not None and c != "\n":
                    self.advance_one()
                self.advance_one()
                continue
            break

    # Errors

    def error_at(self, msg: str, ini_idx: int, end_idx: int) -> NoReturn:
        raise ParseError(f"{msg}\n{highlight_error(ini_idx, end_idx, self.input)}")

    def expected_spanned(self, exp: str, ini_idx: int, end_idx: int) -> NoReturn:
        detected = " end of input" if self.is_eof() else ""
        msg = f"\x1b[1m- expected:\x1b[0m {exp}\n\x1b[1m- detected:\x1b[0m{detected}"
        self.error_at(msg, ini_idx, end_idx)

    def expected(self, exp: str) -> NoReturn:
        self.expected_spanned(exp, self.index, self.index + 1)

    def labelled(self, parser: Callable[["ParserBase"], T], label: str) -> T:
        """Run parser, replacing any error it raises with 'expected <label>'."""
        try:
            return parser(self)
        except ParseError:
            self.expected(label)

    # Consuming text

    def consume(self, text: str) -> None:
        self.skip_trivia()
        self.consume_exactly(text)

    def consume_exactly(self, text: str) -> None:
        if not self.starts_with(text):
            self.expected(f"'{text}'")
        self.index += len(text)

    def consume_new_line(self) -> None:
        self.skip_trivia_inline()
        self.try_consume_exactly("\r")
        self.labelled(lambda p: p.consume_exactly("\n"), "newline")

    def try_consume(self, text: str) -> bool:
        self.skip_trivia()
        return self.try_consume_exactly(text)

    def try_consume_exactly(self, text: str) -> bool:
        if self.starts_with(text):
            self.index += len(text)
            return True
        return False

    def _next_is_name_char(self, offset: int) -> bool:
        pos = self.index + offset
        return pos < len(self.input) and is_name_char(self.input[pos])

    def try_parse_keyword(self, keyword: str) -> bool:
        if not self.starts_with(keyword) or self._next_is_name_char(len(keyword)):
            return False
        self.index += len(keyword)
        return True

    def parse_keyword(self, keyword: str) -> None:
        ini_idx = self.index
        self.consume_exactly(keyword)
        end_idx = self.index
        if self._next_is_name_char(0):
            self.expected_spanned(f"keyword '{keyword}'", ini_idx, end_idx + 1)

    # Line-sensitive trivia

    def advance_newlines(self) -> Indent:
        """Skip blank lines; return the indentation of the next non-blank line."""
        while True:
            num_spaces = self.advance_trivia_inline()
            if self.peek_one() == "\r":
                self.advance_one()
            if self.peek_one() == "\n":
                self.advance_one()
            elif self.is_eof():
                return Indent.eof()
            else:
                return Indent(num_spaces)

    def advance_trivia_inline(self) -> int:
        """Skip trivia on the current line; return how many characters were skipped."""
        count = 0
        while (c := self.peek_one()) is not None:
            if c in " \t":
                self.advance_one()
                count += 1
                continue
            if c == "#":
                while (c := self.peek_one()) is not None and c != "\n":
                    self.advance_one()
                    count += 1
                continue
            break
        return count

    def skip_trivia_inline(self) -> None:
        self.advance_trivia_inline()

    # Names

    def parse_name(self) -> str:
        self.skip_trivia()
        name = self.take_while(is_name_char)
        if not name:
            self.expected("name")
        return name

    def parse_restricted_name(self, kind: str) -> Name:
        ini_idx = self.index
        name = self.take_while(is_name_char)
        if not name:
            self.expected("name")
        end_idx = self.index
        if "__" in name:
            self.error_at(f'{kind} names are not allowed to contain "__".', ini_idx, end_idx)
        if name.startswith("//"):
            self.error_at(f'{kind} names are not allowed to start with "//".', ini_idx, end_idx)
        return Name(name)

    def parse_top_level_name(self) -> Name:
        return self.parse_restricted_name("Top-level")

    def parse_bend_name(self) -> Name:
        return self.parse_restricted_name("Variable")

    # Compound structures

    def list_like(
        self,
        parser: Callable[["ParserBase"], T],
        start: str,
        end: str,
        sep: str,
        hard_sep: bool,
        min_els: int,
    ) -> list[T]:
        """Parse delimited elements such as "[x1, x2, x3,]".

        With hard_sep the separator is mandatory between elements; a trailing
        separator is always accepted. At least min_els elements are required.
        """
        self.consume_exactly(start)
        els: list[T] = []
        for i in range(min_els):
            self.skip_trivia()
            els.append(parser(self))
            self.skip_trivia()
            if hard_sep and not (i == min_els - 1 and self.starts_with(end)):
                self.consume(sep)
            else:
                self.try_consume(sep)
        while not self.try_consume(end):
            els.append(parser(self))
            self.skip_trivia()
            if hard_sep and not self.starts_with(end):
                self.consume(sep)
            else:
                self.try_consume(sep)
        return els

    def parse_oper(self) -> Op:
        for text, op in _OPERATORS:
            if self.try_consume_exactly(text):
                return op
        self.expected("numeric operator")

    def peek_oper(self) -> Optional[Op]:
        for text, op in _OPERATORS:
            if self.starts_with(text):
                return op
        return None

    # Literals

    def parse_u32(self) -> int:
        prefix = self.peek_many(2)
        if prefix == "0x":
            self.advance_many(2)
            radix = 16
        elif prefix == "0b":
            self.advance_many(2)
            radix = 2
        else:
            radix = 10
        allowed = _RADIX_DIGITS[radix]
        num_str = self.take_while(lambda c: c in allowed or c == "_").replace("_", "")
        nxt = self.peek_one()
        if (nxt is not None and nxt.isascii() and nxt.isalnum()) or not num_str:
            self.expected(f"valid {_RADIX_NAMES[radix]} digit")
        value = int(num_str, radix)
        if value > _U32_MAX:
            raise ParseError("number too large to fit in target type")
        return value

    def parse_number(self) -> NumVal:
        ini_idx = self.index

        if self.try_consume_exactly("+"):
            sgn: Optional[int] = 1
        elif self.try_consume_exactly("-"):
            sgn = -1
        else:
            sgn = None

        num = self.parse_u32()

        if self.peek_one() == ".":
            self.advance_one()
            frac_ini = self.index
            frac = float(self.parse_u32())
            frac /= 10.0 ** (self.index - frac_ini)
            return NumVal.f24((sgn or 1) * (num + frac))

        if sgn is not None:
            value = sgn * num
            if not _I24_MIN <= value <= _I24_MAX:
                self._num_range_err(ini_idx, "I24")
            return NumVal.i24(value)

        if num >= _U24_LIMIT:
            self._num_range_err(ini_idx, "U24")
        return NumVal.u24(num)

    def _num_range_err(self, ini_idx: int, typ: str) -> NoReturn:
        msg = f"\x1b[1mNumber literal outside of range for {typ}.\x1b[0m"
        self.error_at(msg, ini_idx, self.index)

    def parse_quoted_symbol(self) -> int:
        """Parse up to 4 base64 characters between backticks, joined into one number."""
        self.consume_exactly("`")
        result = 0
        for _ in range(4):
            if self.starts_with("`"):
                break
            c = self.advance_one()
            if c is None:
                self.expected("base_64 character")
            if "A" <= c <= "Z":
                digit = ord(c) - ord("A")
            elif "a" <= c <= "z":
                digit = ord(c) - ord("a") + 26
            elif "0" <= c <= "9":
                digit = ord(c) - ord("0") + 52
            elif c == "+":
                digit = 62
            elif c == "/":
                digit = 63
            else:
                self.expected("base64 character")
            result = (result << 6) | digit
        self.consume_exactly("`")
        return result

    def _parse_escape(self) -> str:
        ini_idx = self.index
        c = self.advance_one()
        if c is not None and c in _SIMPLE_ESCAPES:
            return _SIMPLE_ESCAPES[c]
        if c == "u":
            self.consume_exactly("{")
            digits = self.take_while(lambda ch: ch in _RADIX_DIGITS[16])
            self.consume_exactly("}")
            code = int(digits, 16) if digits else -1
            if not (0 <= code <= 0x10FFFF) or 0xD800 <= code <= 0xDFFF:
                self.expected_spanned("valid unicode codepoint", ini_idx, self.index)
            return chr(code)
        self.expected_spanned("valid escape sequence", ini_idx, ini_idx + 1)

    def parse_quoted_string(self) -> str:
        self.consume_exactly('"')
        chars = []
        while True:
            c = self.advance_one()
            if c is None:
                self.expected('"')
            if c == '"':
                return "".join(chars)
            chars.append(self._parse_escape() if c == "\\" else c)

    def parse_quoted_char(self) -> str:
        self.consume_exactly("'")
        c = self.advance_one()
        if c is None or c == "'":
            self.expected("character")
        if c == "\\":
            c = self._parse_escape()
        self.consume_exactly("'")
        return c