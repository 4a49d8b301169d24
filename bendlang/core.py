"""Core value types: names, tags, numbers, operators and patterns."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum, auto
from typing import Iterator, Optional, Union


def num_to_name(num: int) -> str:
    """Turn a number into a short lowercase name: 0 -> 'a', 25 -> 'z', 26 -> 'ab'."""
    if num < 0:
        raise ValueError("name numbers must not be negative")
    letters = []
    while True:
        letters.append(chr(ord("a") + num % 26))
        num //= 26
        if num == 0:
            break
    return "".join(letters)


class Name(str):
    """An identifier of a definition, constructor, type or variable."""

    __slots__ = ()

    def is_generated(self) -> bool:
        """Generated definition names contain '__', generated variables contain '%'."""
        return "__" in self or "%" in self

    def def_name_from_generated(self) -> "Name":
        """The user-facing definition name a generated name was derived from."""
        if "__" in self:
            return Name(self.split("__", 1)[0])
        return Name(self)

    @staticmethod
    def from_number(num: int) -> "Name":
        return Name(num_to_name(num))


class FanKind(Enum):
    TUP = auto()
    DUP = auto()


class Op(Enum):
    ADD = auto()
    SUB = auto()
    MUL = auto()
    DIV = auto()
    REM = auto()
    EQ = auto()
    NEQ = auto()
    LT = auto()
    GT = auto()
    AND = auto()
    OR = auto()
    XOR = auto()
    SHL = auto()
    SHR = auto()
    ATN = auto()
    """atan(a, b)"""
    LOG = auto()
    """log_a(b)"""
    POW = auto()
    """a ** b"""


class NumKind(IntEnum):
    U24 = 1
    I24 = 2
    F24 = 3


@dataclass(frozen=True)
class NumVal:
    """A native number together with its numeric type."""

    kind: NumKind
    value: Union[int, float]

    @classmethod
    def u24(cls, value: int) -> "NumVal":
        return cls(NumKind.U24, value)

    @classmethod
    def i24(cls, value: int) -> "NumVal":
        return cls(NumKind.I24, value)

    @classmethod
    def f24(cls, value: float) -> "NumVal":
        return cls(NumKind.F24, float(value))

    def is_zero(self) -> bool:
        return self.value == 0


class TagKind(Enum):
    NAMED = auto()
    NUMERIC = auto()
    AUTO = auto()
    STATIC = auto()


@dataclass(frozen=True)
class Tag:
    """A label on lambdas, applications, tuples and superpositions."""

    kind: TagKind = TagKind.STATIC
    value: Union[Name, int, None] = None

    @classmethod
    def named(cls, name: str) -> "Tag":
        return cls(TagKind.NAMED, Name(name))

    @classmethod
    def numeric(cls, num: int) -> "Tag":
        return cls(TagKind.NUMERIC, num)

    @classmethod
    def auto(cls) -> "Tag":
        return cls(TagKind.AUTO)

    @classmethod
    def static(cls) -> "Tag":
        return cls(TagKind.STATIC)

    @staticmethod
    def adt_name(name: str) -> "Tag":
        return Tag.named(name)


class Pattern:
    """Base class of all patterns."""

    def children(self) -> Iterator["Pattern"]:
        """Immediate sub-patterns; a list pattern counts as one pattern."""
        return iter(())

    def iter(self) -> Iterator["Pattern"]:
        """Every sub-pattern, self included, depth-first left to right."""
        stack: list[Pattern] = [self]
        while stack:
            pat = stack.pop()
            yield pat
            stack.extend(reversed(list(pat.children())))

    def bind_nodes(self) -> Iterator["PVar"]:
        """The variable patterns, in binding order; their names may be changed."""
        for pat in self.iter():
            if isinstance(pat, PVar):
                yield pat

    def binds(self) -> Iterator[Optional[Name]]:
        """The names bound by this pattern, None for erased binds."""
        for pat in self.bind_nodes():
            yield pat.name

    def is_wildcard(self) -> bool:
        return isinstance(self, (PVar, PChn))

    def has_unscoped(self) -> bool:
        return any(child.has_unscoped() for child in self.children())


@dataclass
class PVar(Pattern):
    name: Optional[Name] = None

    def __post_init__(self) -> None:
        if self.name is not None:
            self.name = Name(self.name)


@dataclass
class PChn(Pattern):
    name: Name

    def __post_init__(self) -> None:
        self.name = Name(self.name)

    def has_unscoped(self) -> bool:
        return True


@dataclass
class PCtr(Pattern):
    name: Name
    pats: list[Pattern] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.name = Name(self.name)

    def children(self) -> Iterator[Pattern]:
        return iter(self.pats)


@dataclass
class PNum(Pattern):
    value: int


@dataclass
class PFan(Pattern):
    fan: FanKind
    tag: Tag
    pats: list[Pattern] = field(default_factory=list)

    def children(self) -> Iterator[Pattern]:
        return iter(self.pats)


@dataclass
class PLst(Pattern):
    pats: list[Pattern] = field(default_factory=list)

    def children(self) -> Iterator[Pattern]:
        return iter(self.pats)


@dataclass
class PStr(Pattern):
    value: str