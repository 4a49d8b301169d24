# bendlang

`bendlang` holds the core data model of a compiler for a small functional
language, together with the low-level lexing machinery and an error and
warning collector. It depends only on the standard library.

## Modules

- `bendlang.core`: identifiers (`Name`, `num_to_name`), tags (`Tag`),
  native numbers (`NumVal`, `NumKind`), operators (`Op`), fan kinds
  (`FanKind`) and the pattern types (`PVar`, `PChn`, `PCtr`, `PNum`, `PFan`,
  `PLst`, `PStr`).
- `bendlang.terms`: the term tree (`Term` and its node classes such as
  `Lam`, `Var`, `App`, `Let`, `Mat`, `Swt`, `Fold`, `Bend`), `MatchArm`,
  `Rule`, `Definition`, `Adt`, `CtrField` and `Book`. Terms offer
  construction helpers (`Term.lam`, `Term.call`, `Term.ref`, ...),
  traversal (`children`, `children_with_binds`, `map_children`) and
  operations such as `subst`, `subst_unscoped`, `free_vars`,
  `unscoped_vars` and `has_unscoped`. `pattern_to_term` turns a pattern into
  the term it matches.
- `bendlang.builtins`: encodes list, string and natural-number literals into
  constructor calls (`encode_builtins`, `encode_term`, `encode_pattern`, and
  the individual `encode_list`, `encode_str`, `encode_nat`,
  `encode_list_pattern`, `encode_str_pattern`).
- `bendlang.lexer`: `ParserBase`, a cursor over source text with trivia
  skipping, keyword, name, operator, number, symbol, string and character
  parsing; `ParseError`; `Indent`; and `highlight_error`, which renders the
  source lines of an error with the offending span highlighted.
- `bendlang.diagnostics`: `Diagnostics`, `DiagnosticsConfig`, `Severity`,
  `WarningType`, `DiagnosticOrigin` and `DiagnosticsError`.

## Example

```python
from bendlang.core import NumVal, PVar
from bendlang.terms import Book, Definition, List, Num, Rule, Term, Var
from bendlang.builtins import encode_builtins
from bendlang.lexer import ParseError, ParserBase
from bendlang.diagnostics import Diagnostics, DiagnosticsError

# Build a term: λx (add x 1)
term = Term.lam(PVar("x"), Term.call(Term.ref("add"), [Var("x"), Num(NumVal.u24(1))]))
print(term.free_vars())          # {} – x is bound by the lambda

# Encode builtin literals inside a book
book = Book()
book.defs["main"] = Definition("main", [Rule([], List([Num(NumVal.u24(1))]))])
encode_builtins(book)            # the list becomes (List/Cons 1 List/Nil)

# Lex numbers
print(ParserBase("0x1F").parse_number())   # NumVal(kind=<NumKind.U24: 1>, value=31)
print(ParserBase("-5").parse_number())     # NumVal(kind=<NumKind.I24: 2>, value=-5)
try:
    ParserBase("99999999").parse_number()  # out of range for U24
except ParseError as err:
    print(err)

# Collect diagnostics in a pass
diags = Diagnostics()
diags.start_pass()
diags.add_rule_error("Unbound variable 'y'.", "main")
try:
    diags.fatal(None)
except DiagnosticsError as err:
    print(err)
```

`Book.add_adt` raises `ValueError` when a datatype or constructor name is
already taken.

## Diagnostics

`Diagnostics` collects messages per origin (the whole book, a single
definition, a compiled net, or readback). Warnings get their severity from
`DiagnosticsConfig`; by default every warning kind is a warning except
recursion cycles, which are errors. `DiagnosticsConfig.uniform` gives all
kinds one severity. A pass begins with `start_pass()`; `fatal(value)`
returns the value when no error was added since then, and otherwise raises
`DiagnosticsError` holding everything collected and empties the collector.
`str()` of a `Diagnostics` renders warnings and errors grouped by origin,
with terminal colour codes.

## What this package does not do

It has no parser for whole programs or terms: `ParserBase` provides only
the primitive lexing operations. It has no printer that renders terms back
to source text, no entry-point, shared-name or unbound-variable checks, no
compilation to nets, no evaluator and no command-line tool.

## Running the tests

```
pip install .[test]
pytest
```