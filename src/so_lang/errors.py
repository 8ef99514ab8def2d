"""
So Lang Error Hierarchy
=======================

This module defines the exception hierarchy for the So Lang compiler.
All exceptions inherit from SoLangError, allowing callers to catch every
compiler-related error with a single except clause if desired.

Exception Hierarchy
-------------------
SoLangError (base)
├── SoLangCompilationError - aggregate report of collected diagnostics
├── SoLangSyntaxError - lexer and parser errors
│   ├── InvalidCharacterError - character outside the language alphabet
│   ├── TooManyTokensError - token limit exceeded
│   ├── UnexpectedTokenError - token does not fit the grammar
│   └── MissingTokenError - required token absent
└── ProgramIdentityError - program id could not be resolved

Error Message Format
--------------------
    filename:line:column: error: description
        source_line_text
        ^ (pointer to error location)
    hint: suggestion for fixing

Lexical and syntax errors are not raised while scanning or parsing.
They are recorded in a DiagnosticCollector so a single run reports every
problem in the file; the driver raises SoLangCompilationError between
phases when the collector holds any error.
"""

from dataclasses import dataclass
from typing import List, Optional


# =============================================================================
# Source Location Tracking
# =============================================================================

@dataclass(frozen=True)
class SourceLocation:
    """
    Represents a location in source code for error reporting.

    Attributes:
        filename: Name of the source file (or "<input>" for string input)
        line: Line number (1-indexed)
        column: Column number (1-indexed)
    """
    filename: str
    line: int
    column: int

    def __str__(self) -> str:
        """Format as 'filename:line:column' for error messages."""
        return f"{self.filename}:{self.line}:{self.column}"


# =============================================================================
# Base Exception
# =============================================================================

class SoLangError(Exception):
    """
    Base exception for all So Lang compiler errors.

    Provides source location tracking, the offending source line and an
    optional hint.

    Attributes:
        message: The error description
        location: Where in the source the error occurred
        hint: A suggestion for fixing the error
        source_line: The actual source text at the error location
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
    ):
        self.message = message
        self.location = location
        self.hint = hint
        self.source_line = source_line
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """
        Format the error message with location, source context, and hint.

        Example output:
            counter.so:3:9: error: expected '{'
                if x > 1
                        ^
            hint: blocks must be enclosed in braces
        """
        parts = []

        if self.location:
            parts.append(f"{self.location}: error: {self.message}")
        else:
            parts.append(f"error: {self.message}")

        # Source context with caret pointer
        if self.source_line is not None and self.location is not None:
            parts.append(f"    {self.source_line}")
            if self.location.column > 0:
                padding = " " * (4 + self.location.column - 1)
                parts.append(f"{padding}^")

        if self.hint:
            parts.append(f"hint: {self.hint}")

        return "\n".join(parts)


class SoLangCompilationError(SoLangError):
    """
    Aggregate compilation error containing multiple diagnostics.

    The message is an already formatted report from DiagnosticCollector,
    so no location prefix is added.
    """

    def _format_message(self) -> str:
        """Return message as-is - it's already a formatted aggregate report."""
        return self.message


# =============================================================================
# Syntax Errors (Lexer and Parser)
# =============================================================================

class SoLangSyntaxError(SoLangError):
    """
    Syntax error in So Lang source code.

    Covers both lexical problems (characters the tokenizer does not
    understand) and grammatical ones (tokens in the wrong place).
    """
    pass


class InvalidCharacterError(SoLangSyntaxError):
    """
    Invalid character in source code.

    The tokenizer skips the character and keeps scanning.
    """

    def __init__(
        self,
        char: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.char = char
        super().__init__(
            f"unexpected character '{char}'",
            location=location,
            source_line=source_line,
        )


class TooManyTokensError(SoLangSyntaxError):
    """Token stream exceeded the configured limit."""

    def __init__(
        self,
        limit: int,
        location: Optional[SourceLocation] = None,
    ):
        self.limit = limit
        super().__init__(
            f"too many tokens (limit is {limit})",
            location=location,
            hint="split the program or raise the token limit",
        )


class UnexpectedTokenError(SoLangSyntaxError):
    """
    Unexpected token during parsing.

    Raised when the parser encounters a token that doesn't match
    the expected grammar rule.
    """

    def __init__(
        self,
        found: str,
        expected: Optional[str] = None,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.found = found
        self.expected = expected

        hint = None
        if expected:
            hint = f"expected {expected}"

        super().__init__(
            f"unexpected token '{found}'",
            location=location,
            hint=hint,
            source_line=source_line,
        )


class MissingTokenError(SoLangSyntaxError):
    """
    Required token is missing.

    Recorded when a required token (like '{' or ')') is not found
    where expected.
    """

    def __init__(
        self,
        expected: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.expected = expected
        super().__init__(
            f"expected '{expected}'",
            location=location,
            source_line=source_line,
        )


# =============================================================================
# Program Identity Errors
# =============================================================================

class ProgramIdentityError(SoLangError):
    """
    A program identifier could not be produced.

    Raised by identity resolvers when the key generation tool is missing,
    fails, times out, or returns nothing usable. The compiler degrades to
    emitting the unit without a declared id.
    """

    def __init__(self, program_name: str, reason: str):
        self.program_name = program_name
        self.reason = reason
        super().__init__(
            f"cannot resolve program id for '{program_name}': {reason}",
            hint="install the Solana CLI or declare the id in the source",
        )


# =============================================================================
# Diagnostic Collection (multi-error reporting)
# =============================================================================

class DiagnosticCollector:
    """
    Collects errors and warnings across the lexing and parsing phases.

    One collector is threaded through a compilation run. Phases record
    into it instead of raising, and the driver checks it between phases:

        diagnostics = DiagnosticCollector()
        tokens = Lexer(source, diagnostics=diagnostics).tokenize()
        diagnostics.raise_if_errors()
    """

    def __init__(self, max_errors: int = 100):
        """
        Initialize the collector.

        Args:
            max_errors: Number of errors after which the lexer and parser
                        stop recording
        """
        self.errors: List[SoLangError] = []
        self.warnings: List[str] = []
        self.max_errors = max_errors

    def add(self, error: SoLangError) -> None:
        """Add an error to the collection."""
        self.errors.append(error)

    def add_warning(self, message: str, location: Optional[SourceLocation] = None) -> None:
        """Add a warning message."""
        if location:
            self.warnings.append(f"{location}: warning: {message}")
        else:
            self.warnings.append(f"warning: {message}")

    def has_errors(self) -> bool:
        """Return True if any errors have been collected."""
        return len(self.errors) > 0

    def should_stop(self) -> bool:
        """Return True if max_errors has been reached."""
        return len(self.errors) >= self.max_errors

    def error_count(self) -> int:
        return len(self.errors)

    def warning_count(self) -> int:
        return len(self.warnings)

    def report(self) -> str:
        """Format all errors and warnings for display."""
        lines = []

        for error in self.errors:
            lines.append(str(error))
            lines.append("")

        for warning in self.warnings:
            lines.append(warning)

        error_word = "error" if len(self.errors) == 1 else "errors"
        warning_word = "warning" if len(self.warnings) == 1 else "warnings"
        lines.append(
            f"\n{len(self.errors)} {error_word}, {len(self.warnings)} {warning_word}"
        )

        return "\n".join(lines)

    def raise_if_errors(self) -> None:
        """Raise a SoLangCompilationError if any errors were collected."""
        if self.has_errors():
            raise SoLangCompilationError(self.report())
