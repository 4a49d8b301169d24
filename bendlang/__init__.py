"""Core data model for a small functional language: names, patterns, terms, builtin encodings, lexing and diagnostics."""

__version__ = "0.1.0"

__all__ = [
    "builtins",
    "core",
    "diagnostics",
    "lexer",
    "terms",
]