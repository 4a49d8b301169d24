"""Desugaring of built-in literals (lists, strings, naturals) into constructors."""

from __future__ import annotations

from bendlang.core import NumVal, Pattern, PCtr, PFan, PLst, PNum, PStr
from bendlang.terms import Book, List, Nat, Num, Ref, Str, Term

LIST = "List"
LCONS = "List/Cons"
LNIL = "List/Nil"
LCONS_TAG = 1

HEAD = "head"
TAIL = "tail"

STRING = "String"
SCONS = "String/Cons"
SNIL = "String/Nil"
SCONS_TAG = 1

NAT = "Nat"
NAT_SUCC = "Nat/Succ"
NAT_ZERO = "Nat/Zero"
NAT_SUCC_TAG = 0


def encode_builtins(book: Book) -> None:
    """Encode the built-in literals of every rule of the book, in place."""
    for definition in book.defs.values():
        for rule in definition.rules:
            rule.pats = [encode_pattern(p) for p in rule.pats]
            rule.body = encode_term(rule.body)


def encode_term(term: Term) -> Term:
    """Return the term with list, string and nat literals encoded."""
    if isinstance(term, List):
        return encode_list(term.els)
    if isinstance(term, Str):
        return encode_str(term.val)
    if isinstance(term, Nat):
        return encode_nat(term.val)
    return term.map_children(encode_term)


def encode_list(elements: list[Term]) -> Term:
    acc: Term = Ref(LNIL)
    for element in reversed(elements):
        acc = Term.call(Ref(LCONS), [encode_term(element), acc])
    return acc


def encode_str(val: str) -> Term:
    acc: Term = Ref(SNIL)
    for char in reversed(val):
        acc = Term.call(Ref(SCONS), [Num(NumVal.u24(ord(char) & 0x00FFFFFF)), acc])
    return acc


def encode_nat(val: int) -> Term:
    acc: Term = Ref(NAT_ZERO)
    for _ in range(val):
        acc = Term.app(Ref(NAT_SUCC), acc)
    return acc


def encode_pattern(pat: Pattern) -> Pattern:
    """Return the pattern with list and string patterns encoded."""
    if isinstance(pat, PLst):
        return encode_list_pattern(pat.pats)
    if isinstance(pat, PStr):
        return encode_str_pattern(pat.value)
    if isinstance(pat, (PCtr, PFan)):
        pat.pats = [encode_pattern(p) for p in pat.pats]
    return pat


def encode_list_pattern(elements: list[Pattern]) -> Pattern:
    acc: Pattern = PCtr(LNIL, [])
    for element in reversed(elements):
        acc = PCtr(LCONS, [encode_pattern(element), acc])
    return acc


def encode_str_pattern(val: str) -> Pattern:
    acc: Pattern = PCtr(SNIL, [])
    for char in reversed(val):
        acc = PCtr(SCONS, [PNum(ord(char)), acc])
    return acc