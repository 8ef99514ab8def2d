"""
So Lang Compiler Driver Test Suite
==================================

End-to-end tests for the compilation pipeline and its convenience
functions.

Test Organization
-----------------
- TestCompilerOptions: option validation
- TestCompileSource: result contents and profile selection
- TestCompileErrors: aggregated lexical and syntax errors
- TestCompileFile: file input and output
- TestDiagnosticCollector: error and warning bookkeeping
"""

import pytest
from so_lang import __version__
from so_lang.compiler import (
    CompilerOptions,
    CompilerResult,
    SoLangCompiler,
    compile_file,
    compile_so,
)
from so_lang.errors import (
    DiagnosticCollector,
    MissingTokenError,
    SoLangCompilationError,
    SourceLocation,
)
from so_lang.profiles import EmissionProfile


VAULT_SOURCE = """
// Simple vault
program Vault {
    account user(signer, writable): pubkey
    account vault(writable)

    instruction deposit() {
        require(amount > 0, "amount must be positive")
        transfer(user, vault, amount)
        emit Deposited(amount)
    }
}
"""


# =============================================================================
# Option Tests
# =============================================================================

class TestCompilerOptions:
    """Tests for CompilerOptions validation."""

    def test_defaults(self):
        options = CompilerOptions()
        assert options.target == "c"
        assert options.framework is None
        assert options.force_domain is False
        assert options.extensions is True

    def test_unknown_target(self):
        with pytest.raises(ValueError, match="Unknown target"):
            CompilerOptions(target="go")

    def test_unknown_framework(self):
        with pytest.raises(ValueError, match="Unknown framework"):
            CompilerOptions(framework="truffle")

    def test_version(self):
        assert __version__ == "1.0.0"


# =============================================================================
# Source Compilation Tests
# =============================================================================

class TestCompileSource:
    """Tests for SoLangCompiler.compile_source."""

    def test_generic_result(self):
        result = SoLangCompiler().compile_source("print(42)", "hello.so")
        assert isinstance(result, CompilerResult)
        assert result.success
        assert result.filename == "hello.so"
        assert result.token_count == 5
        assert result.profile == EmissionProfile.C
        assert not result.is_domain
        assert not result.classification.is_domain
        assert result.default_output == "output.c"
        assert result.program_id is None
        assert result.warnings == []
        assert result.ast.statements

    def test_rust_target(self):
        result = SoLangCompiler(CompilerOptions(target="rust")).compile_source("print(42)")
        assert result.profile == EmissionProfile.RUST
        assert result.default_output == "output.rs"

    def test_detected_domain_program(self):
        result = SoLangCompiler().compile_source(VAULT_SOURCE, "vault.so")
        assert result.is_domain
        assert result.profile == EmissionProfile.NATIVE
        assert result.program_name == "Vault"
        assert result.default_output == "program.rs"
        assert 'msg!("Event: Deposited");' in result.output

    def test_anchor_framework(self):
        result = SoLangCompiler(CompilerOptions(framework="anchor")).compile_source(VAULT_SOURCE)
        assert result.profile == EmissionProfile.ANCHOR
        assert result.default_output == "lib.rs"
        assert "pub mod vault {" in result.output
        assert "require!(amount > 0, ErrorCode::CustomError);" in result.output
        assert '#[msg("amount must be positive")]' in result.output

    def test_forced_domain_named_after_file(self):
        options = CompilerOptions(framework="anchor", force_domain=True)
        result = SoLangCompiler(options).compile_source("print(1)", "examples/my_app.so")
        assert result.profile == EmissionProfile.ANCHOR
        assert result.program_name == "my_app"
        assert "pub mod my_app {" in result.output

    def test_forced_domain_string_input(self):
        result = SoLangCompiler(CompilerOptions(force_domain=True)).compile_source("print(1)")
        assert result.program_name == "program"

    def test_extensions_disabled(self):
        options = CompilerOptions(extensions=False)
        result = SoLangCompiler(options).compile_source("let program = 1\nprint(program)")
        assert result.profile == EmissionProfile.C
        assert "    int program = 1;" in result.output

    def test_compile_so(self):
        assert 'println!("{}", 42);' in compile_so("print(42)", target="rust")


# =============================================================================
# Error Tests
# =============================================================================

class TestCompileErrors:
    """Tests for error reporting through the driver."""

    def test_lexical_errors_aggregated(self):
        with pytest.raises(SoLangCompilationError) as exc_info:
            compile_so("let x = $\nlet y = ?", "bad.so")
        message = str(exc_info.value)
        assert "bad.so:1:9: error: unexpected character '$'" in message
        assert "bad.so:2:9: error: unexpected character '?'" in message
        assert message.endswith("2 errors, 0 warnings")

    def test_syntax_error(self):
        with pytest.raises(SoLangCompilationError, match="expected '\\)'"):
            compile_so("print(1")

    def test_token_limit(self):
        compiler = SoLangCompiler(CompilerOptions(max_tokens=3))
        with pytest.raises(SoLangCompilationError, match="too many tokens"):
            compiler.compile_source("let x = 1 + 2")

    def test_lexical_errors_capped(self):
        with pytest.raises(SoLangCompilationError) as exc_info:
            compile_so("$ " * 500)
        assert str(exc_info.value).endswith("100 errors, 0 warnings")

    def test_syntax_errors_capped(self):
        compiler = SoLangCompiler(CompilerOptions(max_errors=3))
        with pytest.raises(SoLangCompilationError) as exc_info:
            compiler.compile_source("print(1\n" * 10)
        assert str(exc_info.value).endswith("3 errors, 0 warnings")


# =============================================================================
# File Compilation Tests
# =============================================================================

class TestCompileFile:
    """Tests for file based compilation."""

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            SoLangCompiler().compile_file(str(tmp_path / "missing.so"))

    def test_compile_file_result(self, tmp_path):
        source = tmp_path / "vault.so"
        source.write_text(VAULT_SOURCE)
        result = SoLangCompiler(CompilerOptions(resolve_identity=False)).compile_file(str(source))
        assert result.filename == str(source)
        assert result.program_name == "Vault"

    def test_compile_file_writes_output(self, tmp_path):
        source = tmp_path / "hello.so"
        source.write_text("let x = 1\nprint(x)\n")
        output = tmp_path / "hello.c"

        text = compile_file(str(source), str(output))

        assert output.read_text() == text
        assert "    int x = 1;" in text

    def test_compile_file_without_output(self, tmp_path):
        source = tmp_path / "hello.so"
        source.write_text("print(1)")
        text = compile_file(str(source), target="rust")
        assert text.startswith("fn main() {")
        assert sorted(p.name for p in tmp_path.iterdir()) == ["hello.so"]


# =============================================================================
# Diagnostic Collector Tests
# =============================================================================

class TestDiagnosticCollector:
    """Tests for error and warning bookkeeping."""

    def test_empty(self):
        diagnostics = DiagnosticCollector()
        assert not diagnostics.has_errors()
        diagnostics.raise_if_errors()

    def test_warnings_do_not_raise(self):
        diagnostics = DiagnosticCollector()
        diagnostics.add_warning("unused", SourceLocation("a.so", 3, 1))
        diagnostics.add_warning("plain")
        assert diagnostics.warnings == ["a.so:3:1: warning: unused", "warning: plain"]
        diagnostics.raise_if_errors()

    def test_report(self):
        diagnostics = DiagnosticCollector()
        diagnostics.add(MissingTokenError(")", SourceLocation("a.so", 1, 8), "print(1"))
        diagnostics.add_warning("careful")
        report = diagnostics.report()
        assert report.startswith("a.so:1:8: error: expected ')'")
        assert "warning: careful" in report
        assert report.endswith("1 error, 1 warning")

    def test_should_stop(self):
        diagnostics = DiagnosticCollector(max_errors=2)
        diagnostics.add(MissingTokenError("x"))
        assert not diagnostics.should_stop()
        diagnostics.add(MissingTokenError("y"))
        assert diagnostics.should_stop()

    def test_counts(self):
        diagnostics = DiagnosticCollector()
        diagnostics.add(MissingTokenError("x"))
        diagnostics.add_warning("w")
        assert diagnostics.error_count() == 1
        assert diagnostics.warning_count() == 1
