"""Collection and rendering of compiler errors and warnings."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from enum import Enum, IntEnum, auto
from typing import Any, TypeVar

from bendlang.core import Name

ERR_INDENT_SIZE = 2

T = TypeVar("T")


class Severity(IntEnum):
    ALLOW = 0
    WARNING = 1
    ERROR = 2


class WarningType(Enum):
    IRREFUTABLE_MATCH = auto()
    REDUNDANT_MATCH = auto()
    UNREACHABLE_MATCH = auto()
    UNUSED_DEFINITION = auto()
    REPEATED_BIND = auto()
    RECURSION_CYCLE = auto()


class OriginKind(IntEnum):
    BOOK = 0
    """The relationship between several top-level definitions."""
    RULE = 1
    """A rule of a pattern-matching function definition."""
    INET = 2
    """A compiled inet."""
    READBACK = 3
    """The readback of run results."""


@dataclass(frozen=True, order=True)
class DiagnosticOrigin:
    kind: OriginKind
    name: str = ""

    @classmethod
    def book(cls) -> "DiagnosticOrigin":
        return cls(OriginKind.BOOK)

    @classmethod
    def rule(cls, name: str) -> "DiagnosticOrigin":
        return cls(OriginKind.RULE, name)

    @classmethod
    def inet(cls, name: str) -> "DiagnosticOrigin":
        return cls(OriginKind.INET, name)

    @classmethod
    def readback(cls) -> "DiagnosticOrigin":
        return cls(OriginKind.READBACK)


@dataclass
class Diagnostic:
    message: str
    severity: Severity

    def __str__(self) -> str:
        return self.message


@dataclass
class DiagnosticsConfig:
    verbose: bool = False
    irrefutable_match: Severity = Severity.WARNING
    redundant_match: Severity = Severity.WARNING
    unreachable_match: Severity = Severity.WARNING
    unused_definition: Severity = Severity.WARNING
    repeated_bind: Severity = Severity.WARNING
    recursion_cycle: Severity = Severity.ERROR

    @staticmethod
    def uniform(severity: Severity, verbose: bool) -> "DiagnosticsConfig":
        """A config giving every warning kind the same severity."""
        return DiagnosticsConfig(
            verbose=verbose,
            irrefutable_match=severity,
            redundant_match=severity,
            unreachable_match=severity,
            unused_definition=severity,
            repeated_bind=severity,
            recursion_cycle=severity,
        )

    def warning_severity(self, warn: WarningType) -> Severity:
        return {
            WarningType.UNUSED_DEFINITION: self.unused_definition,
            WarningType.REPEATED_BIND: self.repeated_bind,
            WarningType.RECURSION_CYCLE: self.recursion_cycle,
            WarningType.IRREFUTABLE_MATCH: self.irrefutable_match,
            WarningType.REDUNDANT_MATCH: self.redundant_match,
            WarningType.UNREACHABLE_MATCH: self.unreachable_match,
        }[warn]


class DiagnosticsError(Exception):
    """Raised when a pass emitted errors; carries every collected diagnostic."""

    def __init__(self, diagnostics: "Diagnostics") -> None:
        super().__init__(str(diagnostics))
        self.diagnostics = diagnostics


@dataclass
class Diagnostics:
    config: DiagnosticsConfig = field(default_factory=DiagnosticsConfig)
    diagnostics: dict[DiagnosticOrigin, list[Diagnostic]] = field(default_factory=dict)
    err_counter: int = 0

    @staticmethod
    def from_message(message: str) -> "Diagnostics":
        """A diagnostics set holding a single book-level error."""
        diags = Diagnostics()
        diags.add_diagnostic(message, Severity.ERROR, DiagnosticOrigin.book())
        return diags

    def add_book_error(self, err: Any) -> None:
        self.err_counter += 1
        self.add_diagnostic(err, Severity.ERROR, DiagnosticOrigin.book())

    def add_rule_error(self, err: Any, def_name: str) -> None:
        self.err_counter += 1
        origin = DiagnosticOrigin.rule(Name(def_name).def_name_from_generated())
        self.add_diagnostic(err, Severity.ERROR, origin)

    def add_inet_error(self, err: Any, def_name: str) -> None:
        self.err_counter += 1
        self.add_diagnostic(err, Severity.ERROR, DiagnosticOrigin.inet(def_name))

    def add_rule_warning(self, warn: Any, warn_type: WarningType, def_name: str) -> None:
        severity = self.config.warning_severity(warn_type)
        if severity == Severity.ERROR:
            self.err_counter += 1
        origin = DiagnosticOrigin.rule(Name(def_name).def_name_from_generated())
        self.add_diagnostic(warn, severity, origin)

    def add_book_warning(self, warn: Any, warn_type: WarningType) -> None:
        severity = self.config.warning_severity(warn_type)
        if severity == Severity.ERROR:
            self.err_counter += 1
        self.add_diagnostic(warn, severity, DiagnosticOrigin.book())

    def add_diagnostic(self, msg: Any, severity: Severity, orig: DiagnosticOrigin) -> None:
        self.diagnostics.setdefault(orig, []).append(Diagnostic(str(msg), severity))

    def has_severity(self, severity: Severity) -> bool:
        return any(d.severity == severity for diags in self.diagnostics.values() for d in diags)

    def has_errors(self) -> bool:
        return self.has_severity(Severity.ERROR)

    def start_pass(self) -> None:
        """Reset the count of errors emitted in the current pass."""
        self.err_counter = 0

    def fatal(self, value: T) -> T:
        """Return value if the current pass emitted no errors.

        Otherwise raise DiagnosticsError with everything collected so far and
        leave this object empty.
        """
        if self.err_counter == 0:
            return value
        taken = copy.copy(self)
        self.config = DiagnosticsConfig()
        self.diagnostics = {}
        self.err_counter = 0
        raise DiagnosticsError(taken)

    def display_with_severity(self, severity: Severity) -> str:
        """Render the diagnostics that have exactly the given severity."""
        out: list[str] = []
        indent = " " * ERR_INDENT_SIZE
        for orig in sorted(self.diagnostics):
            errs = [d for d in self.diagnostics[orig] if d.severity == severity]
            if not errs:
                continue
            if orig.kind == OriginKind.BOOK:
                out.extend(f"{err}\n" for err in errs)
                continue
            if orig.kind == OriginKind.RULE:
                out.append(f"\x1b[1mIn definition '\x1b[4m{orig.name}\x1b[0m\x1b[1m':\x1b[0m\n")
            elif orig.kind == OriginKind.INET:
                out.append(f"\x1b[1mIn compiled inet '\x1b[4m{orig.name}\x1b[0m\x1b[1m':\x1b[0m\n")
            else:
                out.append("\x1b[1mDuring readback:\x1b[0m\n")
            out.extend(f"{indent}{err}\n" for err in errs)
        if out:
            out.append("\n")
        return "".join(out)

    def __str__(self) -> str:
        parts = []
        if self.has_severity(Severity.WARNING):
            parts.append("\x1b[4m\x1b[1m\x1b[33mWarnings:\x1b[0m\n")
            parts.append(self.display_with_severity(Severity.WARNING))
        if self.has_severity(Severity.ERROR):
            parts.append("\x1b[4m\x1b[1m\x1b[31mErrors:\x1b[0m\n")
            parts.append(self.display_with_severity(Severity.ERROR))
        return "".join(parts)