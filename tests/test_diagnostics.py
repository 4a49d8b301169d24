import pytest

from bendlang.diagnostics import (
    DiagnosticOrigin,
    Diagnostics,
    DiagnosticsConfig,
    DiagnosticsError,
    OriginKind,
    Severity,
    WarningType,
)


def test_default_config_severities():
    cfg = DiagnosticsConfig()
    assert cfg.warning_severity(WarningType.RECURSION_CYCLE) == Severity.ERROR
    assert cfg.warning_severity(WarningType.UNUSED_DEFINITION) == Severity.WARNING
    assert cfg.verbose is False


def test_uniform_config():
    cfg = DiagnosticsConfig.uniform(Severity.ALLOW, True)
    assert cfg.verbose is True
    assert all(cfg.warning_severity(w) == Severity.ALLOW for w in WarningType)


def test_book_error_sets_errors_and_fatal_raises():
    diags = Diagnostics()
    diags.add_book_error("oops")
    assert diags.has_errors()
    with pytest.raises(DiagnosticsError) as info:
        diags.fatal(1)
    assert info.value.diagnostics.has_errors()
    assert not diags.has_errors()
    assert diags.diagnostics == {}


def test_fatal_returns_value_without_errors():
    diags = Diagnostics()
    diags.add_book_warning("careful", WarningType.UNUSED_DEFINITION)
    assert diags.fatal("ok") == "ok"
    assert diags.has_severity(Severity.WARNING)


def test_start_pass_resets_counter():
    diags = Diagnostics()
    diags.add_book_error("old")
    diags.start_pass()
    assert diags.fatal(5) == 5
    assert diags.has_errors()


def test_warning_promoted_to_error_counts():
    diags = Diagnostics()
    diags.add_rule_warning("cycle", WarningType.RECURSION_CYCLE, "main")
    assert diags.has_errors()
    with pytest.raises(DiagnosticsError):
        diags.fatal(None)


def test_rule_error_uses_base_definition_name():
    diags = Diagnostics()
    diags.add_rule_error("bad", "foo__C0")
    assert list(diags.diagnostics) == [DiagnosticOrigin.rule("foo")]


def test_display_book_error():
    diags = Diagnostics()
    diags.add_book_error("oops")
    assert diags.display_with_severity(Severity.ERROR) == "oops\n\n"
    assert diags.display_with_severity(Severity.WARNING) == ""


def test_display_rule_error():
    diags = Diagnostics()
    diags.add_rule_error("bad", "foo")
    expected = "\x1b[1mIn definition '\x1b[4mfoo\x1b[0m\x1b[1m':\x1b[0m\n  bad\n\n"
    assert diags.display_with_severity(Severity.ERROR) == expected


def test_display_readback_and_inet():
    diags = Diagnostics()
    diags.add_diagnostic("rb", Severity.WARNING, DiagnosticOrigin.readback())
    diags.add_inet_error("net", "main")
    assert diags.display_with_severity(Severity.WARNING) == "\x1b[1mDuring readback:\x1b[0m\n  rb\n\n"
    assert diags.display_with_severity(Severity.ERROR) == (
        "\x1b[1mIn compiled inet '\x1b[4mmain\x1b[0m\x1b[1m':\x1b[0m\n  net\n\n"
    )


def test_from_message_str():
    diags = Diagnostics.from_message("m")
    assert str(diags) == "\x1b[4m\x1b[1m\x1b[31mErrors:\x1b[0m\nm\n\n"


def test_origins_sorted_in_output():
    diags = Diagnostics()
    diags.add_diagnostic("r", Severity.ERROR, DiagnosticOrigin.readback())
    diags.add_diagnostic("b", Severity.ERROR, DiagnosticOrigin.book())
    text = diags.display_with_severity(Severity.ERROR)
    assert text.index("b\n") < text.index("During readback")
    assert sorted([DiagnosticOrigin.readback(), DiagnosticOrigin.book()])[0].kind == OriginKind.BOOK


def test_allow_is_hidden_and_warnings_first():
    diags = Diagnostics()
    diags.add_diagnostic("quiet", Severity.ALLOW, DiagnosticOrigin.book())
    assert str(diags) == ""
    diags.add_book_error("e")
    diags.add_diagnostic("w", Severity.WARNING, DiagnosticOrigin.book())
    text = str(diags)
    assert "quiet" not in text
    assert text.index("Warnings:") < text.index("Errors:")