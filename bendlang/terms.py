"""The term tree of the functional language and the book of definitions."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Callable, Iterable, Iterator, Optional

from bendlang.core import FanKind, Name, NumVal, Op, Pattern, PChn, PCtr, PFan, PLst, PNum, PStr, PVar, Tag

ENTRY_POINT = "main"
HVM1_ENTRY_POINT = "Main"

Binds = list  # list of Optional[Name]


def _name(value: Optional[str]) -> Optional[Name]:
    return None if value is None else Name(value)


class Term:
    """Base class of all terms."""

    # Construction helpers

    @staticmethod
    def lam(pat: Pattern, bod: "Term") -> "Term":
        """A lambda with a static tag."""
        return Term.tagged_lam(Tag.static(), pat, bod)

    @staticmethod
    def tagged_lam(tag: Tag, pat: Pattern, bod: "Term") -> "Term":
        return Lam(tag=tag, pat=pat, bod=bod)

    @staticmethod
    def rfold_lams(term: "Term", pats: Iterable[Optional[str]]) -> "Term":
        """Wrap a term in lambdas; the first name becomes the outermost lambda."""
        for nam in reversed(list(pats)):
            term = Term.lam(PVar(_name(nam)), term)
        return term

    @staticmethod
    def var_or_era(nam: Optional[str]) -> "Term":
        return Era() if nam is None else Var(nam)

    @staticmethod
    def app(fun: "Term", arg: "Term") -> "Term":
        return Term.tagged_app(Tag.static(), fun, arg)

    @staticmethod
    def tagged_app(tag: Tag, fun: "Term", arg: "Term") -> "Term":
        return App(tag=tag, fun=fun, arg=arg)

    @staticmethod
    def call(called: "Term", args: Iterable["Term"]) -> "Term":
        """Apply a function term to each argument in turn."""
        for arg in args:
            called = Term.app(called, arg)
        return called

    @staticmethod
    def tagged_call(tag: Tag, called: "Term", args: Iterable["Term"]) -> "Term":
        for arg in args:
            called = Term.tagged_app(tag, called, arg)
        return called

    @staticmethod
    def arg_call(fun: "Term", arg: str) -> "Term":
        """Apply a variable, given by name, to a term."""
        return Term.app(fun, Var(arg))

    @staticmethod
    def ref(name: str) -> "Term":
        return Ref(name)

    @staticmethod
    def string(value: str) -> "Term":
        return Str(value)

    @staticmethod
    def sub_num(arg: "Term", val: NumVal) -> "Term":
        if val.is_zero():
            return arg
        return Oper(opr=Op.SUB, fst=arg, snd=Num(val))

    @staticmethod
    def add_num(arg: "Term", val: NumVal) -> "Term":
        if val.is_zero():
            return arg
        return Oper(opr=Op.ADD, fst=arg, snd=Num(val))

    # Structure

    def pattern(self) -> Optional[Pattern]:
        """The binding pattern of a lambda or a let, None for other terms."""
        return None

    def children(self) -> Iterator["Term"]:
        return iter(())

    def _binds(self) -> list[Binds]:
        return []

    def _set_children(self, children: list["Term"]) -> None:
        pass

    def children_with_binds(self) -> Iterator[tuple["Term", Binds]]:
        """Each subterm with the names this term binds for it."""
        return zip(list(self.children()), self._binds())

    def map_children(self, fn: Callable[["Term"], "Term"]) -> "Term":
        """Replace every subterm with fn(subterm), in place; returns self."""
        self._set_children([fn(child) for child in self.children()])
        return self

    def map_children_with_binds(self, fn: Callable[["Term", Binds], "Term"]) -> "Term":
        """Replace every subterm with fn(subterm, binds), in place; returns self."""
        self._set_children([fn(child, binds) for child, binds in self.children_with_binds()])
        return self

    # Checks and transformations

    def subst(self, name: str, value: "Term") -> "Term":
        """Substitute a variable by a copy of value; returns the resulting term.

        Bound occurrences that shadow the name are left alone. Can cause
        invalid shadowing if value has free variables bound in self.
        """

        def go(child: Term, binds: Binds) -> Term:
            if name in [b for b in binds if b is not None]:
                return child
            return child.subst(name, value)

        self.map_children_with_binds(go)
        if isinstance(self, Var) and self.nam == name:
            return copy.deepcopy(value)
        return self

    def subst_unscoped(self, name: str, value: "Term") -> "Term":
        """Substitute an unscoped variable by a copy of value; returns the result."""
        self.map_children(lambda child: child.subst_unscoped(name, value))
        if isinstance(self, Link) and self.nam == name:
            return copy.deepcopy(value)
        return self

    def free_vars(self) -> dict[Name, int]:
        """The free variables of the term with their number of uses."""
        free: dict[Name, int] = {}
        if isinstance(self, Var):
            free[self.nam] = free.get(self.nam, 0) + 1
        for child, binds in self.children_with_binds():
            scope = child.free_vars()
            for nam in binds:
                if nam is not None:
                    scope.pop(nam, None)
            free.update(scope)
        return free

    def unscoped_vars(self) -> tuple[list[Name], list[Name]]:
        """The declared and the used unscoped variables, in first-seen order."""
        decls: dict[Name, None] = {}
        uses: dict[Name, None] = {}

        def go_term(term: Term) -> None:
            if isinstance(term, Link):
                uses.setdefault(term.nam, None)
            pat = term.pattern()
            if pat is not None:
                for sub in pat.iter():
                    if isinstance(sub, PChn):
                        decls.setdefault(sub.name, None)
            for child in term.children():
                go_term(child)

        go_term(self)
        return list(decls), list(uses)

    def has_unscoped(self) -> bool:
        if isinstance(self, Let) and self.pat.has_unscoped():
            return True
        if isinstance(self, Link):
            return True
        return any(child.has_unscoped() for child in self.children())


@dataclass
class MatchArm:
    """One arm of a match or fold: constructor name, field binds and body."""

    nam: Optional[Name]
    binds: list[Optional[Name]]
    body: Term

    def __post_init__(self) -> None:
        self.nam = _name(self.nam)
        self.binds = [_name(b) for b in self.binds]


@dataclass
class Lam(Term):
    tag: Tag
    pat: Pattern
    bod: Term

    def pattern(self) -> Optional[Pattern]:
        return self.pat

    def children(self) -> Iterator[Term]:
        return iter([self.bod])

    def _binds(self) -> list[Binds]:
        return [list(self.pat.binds())]

    def _set_children(self, children: list[Term]) -> None:
        (self.bod,) = children


@dataclass
class Var(Term):
    nam: Name

    def __post_init__(self) -> None:
        self.nam = Name(self.nam)


@dataclass
class Link(Term):
    nam: Name

    def __post_init__(self) -> None:
        self.nam = Name(self.nam)


@dataclass
class Let(Term):
    pat: Pattern
    val: Term
    nxt: Term

    def pattern(self) -> Optional[Pattern]:
        return self.pat

    def children(self) -> Iterator[Term]:
        return iter([self.val, self.nxt])

    def _binds(self) -> list[Binds]:
        return [[], list(self.pat.binds())]

    def _set_children(self, children: list[Term]) -> None:
        self.val, self.nxt = children


@dataclass
class Do(Term):
    typ: Name
    bod: Term

    def __post_init__(self) -> None:
        self.typ = Name(self.typ)

    def children(self) -> Iterator[Term]:
        return iter([self.bod])

    def _binds(self) -> list[Binds]:
        return [[]]

    def _set_children(self, children: list[Term]) -> None:
        (self.bod,) = children


@dataclass
class Ask(Term):
    pat: Pattern
    val: Term
    nxt: Term

    def children(self) -> Iterator[Term]:
        return iter([self.val, self.nxt])

    def _binds(self) -> list[Binds]:
        return [[], list(self.pat.binds())]

    def _set_children(self, children: list[Term]) -> None:
        self.val, self.nxt = children


@dataclass
class Use(Term):
    nam: Optional[Name]
    val: Term
    nxt: Term

    def __post_init__(self) -> None:
        self.nam = _name(self.nam)

    def children(self) -> Iterator[Term]:
        return iter([self.val, self.nxt])

    def _binds(self) -> list[Binds]:
        return [[], [self.nam]]

    def _set_children(self, children: list[Term]) -> None:
        self.val, self.nxt = children


@dataclass
class App(Term):
    tag: Tag
    fun: Term
    arg: Term

    def children(self) -> Iterator[Term]:
        return iter([self.fun, self.arg])

    def _binds(self) -> list[Binds]:
        return [[], []]

    def _set_children(self, children: list[Term]) -> None:
        self.fun, self.arg = children


@dataclass
class Fan(Term):
    """Either a tuple or a superposition."""

    fan: FanKind
    tag: Tag
    els: list[Term] = field(default_factory=list)

    def children(self) -> Iterator[Term]:
        return iter(self.els)

    def _binds(self) -> list[Binds]:
        return [[] for _ in self.els]

    def _set_children(self, children: list[Term]) -> None:
        self.els = children


@dataclass
class Num(Term):
    val: NumVal


@dataclass
class Nat(Term):
    val: int


@dataclass
class Str(Term):
    val: str


@dataclass
class List(Term):
    els: list[Term] = field(default_factory=list)

    def children(self) -> Iterator[Term]:
        return iter(self.els)

    def _binds(self) -> list[Binds]:
        return [[] for _ in self.els]

    def _set_children(self, children: list[Term]) -> None:
        self.els = children


@dataclass
class Oper(Term):
    """A numeric operation between native numbers."""

    opr: Op
    fst: Term
    snd: Term

    def children(self) -> Iterator[Term]:
        return iter([self.fst, self.snd])

    def _binds(self) -> list[Binds]:
        return [[], []]

    def _set_children(self, children: list[Term]) -> None:
        self.fst, self.snd = children


@dataclass
class Mat(Term):
    """Pattern matching on an algebraic datatype."""

    arg: Term
    bnd: Optional[Name]
    with_: list[Name]
    arms: list[MatchArm]

    def children(self) -> Iterator[Term]:
        return iter([self.arg] + [arm.body for arm in self.arms])

    def _binds(self) -> list[Binds]:
        return [[]] + [list(arm.binds) for arm in self.arms]

    def _set_children(self, children: list[Term]) -> None:
        self.arg = children[0]
        for arm, body in zip(self.arms, children[1:]):
            arm.body = body


@dataclass
class Swt(Term):
    """Native pattern matching on numbers."""

    arg: Term
    bnd: Optional[Name]
    with_: list[Name]
    pred: Optional[Name]
    arms: list[Term]

    def children(self) -> Iterator[Term]:
        return iter([self.arg] + self.arms)

    def _binds(self) -> list[Binds]:
        if not self.arms:
            return [[]]
        return [[]] + [[] for _ in self.arms[:-1]] + [[self.pred]]

    def _set_children(self, children: list[Term]) -> None:
        self.arg = children[0]
        self.arms = children[1:]


@dataclass
class Fold(Term):
    bnd: Optional[Name]
    arg: Term
    with_: list[Name]
    arms: list[MatchArm]

    def children(self) -> Iterator[Term]:
        return iter([self.arg] + [arm.body for arm in self.arms])

    def _binds(self) -> list[Binds]:
        return [[]] + [list(arm.binds) for arm in self.arms]

    def _set_children(self, children: list[Term]) -> None:
        self.arg = children[0]
        for arm, body in zip(self.arms, children[1:]):
            arm.body = body


@dataclass
class Bend(Term):
    bind: list[Optional[Name]]
    init: list[Term]
    cond: Term
    step: Term
    base: Term

    def children(self) -> Iterator[Term]:
        return iter(self.init + [self.cond, self.step, self.base])

    def _binds(self) -> list[Binds]:
        return [[] for _ in self.init] + [list(self.bind) for _ in range(3)]

    def _set_children(self, children: list[Term]) -> None:
        count = len(self.init)
        self.init = children[:count]
        self.cond, self.step, self.base = children[count:]


@dataclass
class Open(Term):
    typ: Name
    var: Name
    bod: Term

    def __post_init__(self) -> None:
        self.typ = Name(self.typ)
        self.var = Name(self.var)

    def children(self) -> Iterator[Term]:
        return iter([self.bod])

    def _binds(self) -> list[Binds]:
        raise ValueError("Open should be removed in earlier pass")

    def _set_children(self, children: list[Term]) -> None:
        (self.bod,) = children


@dataclass
class Ref(Term):
    nam: Name

    def __post_init__(self) -> None:
        self.nam = Name(self.nam)


@dataclass
class Era(Term):
    pass


@dataclass
class Err(Term):
    pass


def pattern_to_term(pat: Pattern) -> Term:
    """The term that builds the value a pattern matches."""
    if isinstance(pat, PVar):
        return Term.var_or_era(pat.name)
    if isinstance(pat, PChn):
        return Link(pat.name)
    if isinstance(pat, PCtr):
        return Term.call(Ref(pat.name), (pattern_to_term(p) for p in pat.pats))
    if isinstance(pat, PNum):
        return Num(NumVal.u24(pat.value))
    if isinstance(pat, PFan):
        return Fan(fan=pat.fan, tag=pat.tag, els=[pattern_to_term(p) for p in pat.pats])
    if isinstance(pat, (PLst, PStr)):
        raise ValueError("list and string patterns must be encoded before conversion to terms")
    raise TypeError(f"not a pattern: {pat!r}")


@dataclass
class Rule:
    """A pattern-matching rule of a definition."""

    pats: list[Pattern] = field(default_factory=list)
    body: Term = field(default_factory=Err)

    def arity(self) -> int:
        return len(self.pats)


@dataclass
class Definition:
    """A pattern-matching function definition."""

    name: Name
    rules: list[Rule] = field(default_factory=list)
    builtin: bool = False

    def __post_init__(self) -> None:
        self.name = Name(self.name)

    def arity(self) -> int:
        return self.rules[0].arity()

    def assert_no_pattern_matching_rules(self) -> None:
        if len(self.rules) != 1:
            raise AssertionError("Definition rules should have been removed in earlier pass")
        if self.rules[0].pats:
            raise AssertionError("Definition args should have been removed in an earlier pass")

    def rule(self) -> Rule:
        self.assert_no_pattern_matching_rules()
        return self.rules[0]


@dataclass
class CtrField:
    nam: Name
    rec: bool = False

    def __post_init__(self) -> None:
        self.nam = Name(self.nam)


@dataclass
class Adt:
    """A user-defined datatype."""

    ctrs: dict[Name, list[CtrField]] = field(default_factory=dict)
    builtin: bool = False


@dataclass
class Book:
    """A whole program."""

    defs: dict[Name, Definition] = field(default_factory=dict)
    adts: dict[Name, Adt] = field(default_factory=dict)
    ctrs: dict[Name, Name] = field(default_factory=dict)
    entrypoint: Optional[Name] = None

    def hvmc_entrypoint(self) -> str:
        if self.entrypoint is None or self.entrypoint in ("main", "Main"):
            return ENTRY_POINT
        return self.entrypoint

    def add_adt(self, nam: str, adt: Adt) -> None:
        """Register a datatype and its constructors; raises ValueError on clashes."""
        nam = Name(nam)
        existing = self.adts.get(nam)
        if existing is not None:
            if existing.builtin:
                raise ValueError(f"{nam} is a built-in datatype and should not be overridden.")
            raise ValueError(f"Repeated datatype '{nam}'")
        for ctr in adt.ctrs:
            owner = self.ctrs.get(ctr)
            if owner is None:
                self.ctrs[Name(ctr)] = nam
                continue
            owner_adt = self.adts.get(owner)
            if owner_adt is not None and owner_adt.builtin:
                raise ValueError(f"{ctr} is a built-in constructor and should not be overridden.")
            raise ValueError(f"Repeated constructor '{ctr}'")
        self.adts[nam] = adt