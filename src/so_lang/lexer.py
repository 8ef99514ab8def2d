"""
So Lang Lexer (Tokenizer)
=========================

This module converts So Lang source text into a stream of tokens for the
parser.

Token Categories
----------------
- Generic keywords: let, fn, if, else, return, print
- Domain keywords: program, instruction, account, state, pubkey, signer,
  writable, init, seeds, bump, transfer, require, emit
- Identifiers: [A-Za-z_][A-Za-z0-9_]*
- Numbers: digit sequences with at most one decimal point
- Strings: "double quoted" with \\n \\t \\r \\\\ \\" escapes
- Operators: = == + - * / < > ->
- Delimiters: ( ) { } , ; : @ #
- NEWLINE: newlines separate statements, so they are real tokens

Comments
--------
- Single-line: // comment

Error Handling
--------------
The lexer never stops at a bad character. It records an
InvalidCharacterError in its DiagnosticCollector, skips the character and
carries on, so ill-formed input still yields a best-effort token stream.
An unterminated string literal runs to end of input without a diagnostic.

Example Usage
-------------
>>> from so_lang.lexer import Lexer
>>> for token in Lexer('let x = 1 + 2').tokenize():
...     print(token)
Token(LET, 'let', 1:1)
Token(IDENTIFIER, 'x', 1:5)
Token(ASSIGN, '=', 1:7)
Token(NUMBER, '1', 1:9)
Token(PLUS, '+', 1:11)
Token(NUMBER, '2', 1:13)
Token(EOF, 1:14)
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterator, Optional
import logging
import string

from so_lang.errors import (
    DiagnosticCollector,
    InvalidCharacterError,
    SourceLocation,
    TooManyTokensError,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Token Type Enumeration
# =============================================================================

class TokenType(Enum):
    """
    Token types for the So Lang language.

    Keywords are split into two layers: the generic imperative language
    and the domain declarations used to describe Solana programs.
    """

    # === Structural Tokens ===
    EOF = auto()            # End of input
    NEWLINE = auto()        # Statement separator

    # === Identifiers and Literals ===
    IDENTIFIER = auto()
    NUMBER = auto()
    STRING = auto()

    # === Generic Keywords ===
    LET = auto()
    FN = auto()
    IF = auto()
    ELSE = auto()
    RETURN = auto()
    PRINT = auto()

    # === Domain Keywords ===
    PROGRAM = auto()
    INSTRUCTION = auto()
    ACCOUNT = auto()
    STATE = auto()
    PUBKEY = auto()
    SIGNER = auto()
    WRITABLE = auto()
    INIT = auto()
    SEEDS = auto()
    BUMP = auto()
    TRANSFER = auto()
    REQUIRE = auto()
    EMIT = auto()

    # === Operators ===
    ASSIGN = auto()         # =
    EQ = auto()             # ==
    PLUS = auto()           # +
    MINUS = auto()          # -
    STAR = auto()           # *
    SLASH = auto()          # /
    LT = auto()             # <
    GT = auto()             # >
    ARROW = auto()          # ->

    # === Delimiters ===
    LPAREN = auto()         # (
    RPAREN = auto()         # )
    LBRACE = auto()         # {
    RBRACE = auto()         # }
    COMMA = auto()          # ,
    SEMICOLON = auto()      # ;
    COLON = auto()          # :
    AT = auto()             # @
    HASH = auto()           # #


# =============================================================================
# Keyword Mapping
# =============================================================================

GENERIC_KEYWORDS: dict[str, TokenType] = {
    "let": TokenType.LET,
    "fn": TokenType.FN,
    "if": TokenType.IF,
    "else": TokenType.ELSE,
    "return": TokenType.RETURN,
    "print": TokenType.PRINT,
}

DOMAIN_KEYWORDS: dict[str, TokenType] = {
    "program": TokenType.PROGRAM,
    "instruction": TokenType.INSTRUCTION,
    "account": TokenType.ACCOUNT,
    "state": TokenType.STATE,
    "pubkey": TokenType.PUBKEY,
    "signer": TokenType.SIGNER,
    "writable": TokenType.WRITABLE,
    "init": TokenType.INIT,
    "seeds": TokenType.SEEDS,
    "bump": TokenType.BUMP,
    "transfer": TokenType.TRANSFER,
    "require": TokenType.REQUIRE,
    "emit": TokenType.EMIT,
}

# Single-character tokens that need no lookahead
SINGLE_CHAR_TOKENS: dict[str, TokenType] = {
    "+": TokenType.PLUS,
    "*": TokenType.STAR,
    "/": TokenType.SLASH,
    "<": TokenType.LT,
    ">": TokenType.GT,
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    "{": TokenType.LBRACE,
    "}": TokenType.RBRACE,
    ",": TokenType.COMMA,
    ";": TokenType.SEMICOLON,
    ":": TokenType.COLON,
    "@": TokenType.AT,
    "#": TokenType.HASH,
}


# =============================================================================
# Token Data Class
# =============================================================================

@dataclass(frozen=True)
class Token:
    """
    Represents a single token from So Lang source code.

    Attributes:
        type: The TokenType classification
        value: Semantic text (decoded contents for strings, else the lexeme)
        lexeme: Exact source text the token was scanned from
        line: Line number of the first character (1-indexed)
        column: Column number of the first character (1-indexed)
        filename: Name of the source file
    """
    type: TokenType
    value: str
    lexeme: str
    line: int
    column: int
    filename: str = "<input>"

    def __repr__(self) -> str:
        """Format token for debugging output."""
        if self.type in (TokenType.EOF, TokenType.NEWLINE):
            return f"Token({self.type.name}, {self.line}:{self.column})"
        return f"Token({self.type.name}, {self.value!r}, {self.line}:{self.column})"

    @property
    def location(self) -> SourceLocation:
        """Return a SourceLocation for error reporting."""
        return SourceLocation(self.filename, self.line, self.column)

    def is_domain_keyword(self) -> bool:
        """Return True if this token belongs to the domain keyword layer."""
        return self.type in DOMAIN_KEYWORDS.values()


# =============================================================================
# Lexer Implementation
# =============================================================================

class Lexer:
    """
    Tokenizes So Lang source code.

    Usage:
        diagnostics = DiagnosticCollector()
        tokens = list(Lexer(source, "counter.so", diagnostics=diagnostics).tokenize())
        diagnostics.raise_if_errors()

    Attributes:
        source: The source code being tokenized
        filename: Name of the source file (for error reporting)
        extensions: Whether domain keywords are recognized
        diagnostics: Collector receiving lexical errors
        max_tokens: Optional limit on the number of tokens before EOF
    """

    IDENT_START = string.ascii_letters + "_"
    IDENT_CHARS = string.ascii_letters + string.digits + "_"

    ESCAPE_SEQUENCES = {
        "n": "\n",
        "t": "\t",
        "r": "\r",
        "\\": "\\",
        '"': '"',
    }

    def __init__(
        self,
        source: str,
        filename: str = "<input>",
        extensions: bool = True,
        diagnostics: Optional[DiagnosticCollector] = None,
        max_tokens: Optional[int] = None,
    ):
        self.source = source
        self.filename = filename
        self.extensions = extensions
        self.diagnostics = diagnostics if diagnostics is not None else DiagnosticCollector()
        self.max_tokens = max_tokens

        self._pos = 0
        self._line = 1
        self._column = 1
        self._line_start_pos = 0

    def tokenize(self) -> Iterator[Token]:
        """
        Generate tokens from the source code.

        Always finishes with a single EOF token, even when errors were
        recorded or the token limit was hit.
        """
        count = 0
        while True:
            self._skip_whitespace_and_comments()
            if self._at_end():
                break

            token = self._scan_token()
            if token is None:
                if self.diagnostics.should_stop():
                    break
                continue

            if self.max_tokens is not None and count >= self.max_tokens:
                self.diagnostics.add(TooManyTokensError(self.max_tokens, token.location))
                break

            count += 1
            yield token

        logger.debug(f"Tokenized {self.filename}: {count} tokens")
        yield self._make_token(TokenType.EOF, "", "")

    # =========================================================================
    # Character Access Methods
    # =========================================================================

    def _at_end(self) -> bool:
        return self._pos >= len(self.source)

    def _peek(self, offset: int = 0) -> str:
        """Look at a character without advancing; empty string past the end."""
        pos = self._pos + offset
        if pos >= len(self.source):
            return ""
        return self.source[pos]

    def _advance(self) -> str:
        """Consume and return the current character, tracking line and column."""
        if self._at_end():
            return ""

        char = self.source[self._pos]
        self._pos += 1

        if char == "\n":
            self._line += 1
            self._column = 1
            self._line_start_pos = self._pos
        else:
            self._column += 1

        return char

    def _match(self, expected: str) -> bool:
        """Consume next character if it matches expected."""
        if self._peek() == expected:
            self._advance()
            return True
        return False

    # =========================================================================
    # Token Creation
    # =========================================================================

    def _make_token(
        self,
        token_type: TokenType,
        value: str,
        lexeme: str,
        start_line: Optional[int] = None,
        start_column: Optional[int] = None,
    ) -> Token:
        return Token(
            type=token_type,
            value=value,
            lexeme=lexeme,
            line=start_line or self._line,
            column=start_column or self._column,
            filename=self.filename,
        )

    def _current_source_line(self) -> str:
        """Return the text of the line currently being scanned."""
        line_end = self.source.find("\n", self._line_start_pos)
        if line_end == -1:
            line_end = len(self.source)
        return self.source[self._line_start_pos:line_end]

    # =========================================================================
    # Whitespace and Comment Handling
    # =========================================================================

    def _skip_whitespace_and_comments(self) -> None:
        """Skip spaces, tabs, carriage returns and // comments, never newlines."""
        while not self._at_end():
            char = self._peek()

            if char in " \t\r":
                self._advance()
                continue

            if char == "/" and self._peek(1) == "/":
                while not self._at_end() and self._peek() != "\n":
                    self._advance()
                continue

            break

    # =========================================================================
    # Token Scanning
    # =========================================================================

    def _scan_token(self) -> Optional[Token]:
        """
        Scan the next token from source.

        Returns:
            The next Token, or None when an invalid character was skipped
        """
        start_line = self._line
        start_column = self._column

        char = self._peek()

        if char == "\n":
            self._advance()
            return self._make_token(TokenType.NEWLINE, "\n", "\n", start_line, start_column)

        if char in self.IDENT_START:
            return self._scan_identifier(start_line, start_column)

        if char in string.digits:
            return self._scan_number(start_line, start_column)

        if char == '"':
            return self._scan_string(start_line, start_column)

        return self._scan_operator(start_line, start_column)

    def _scan_identifier(self, start_line: int, start_column: int) -> Token:
        """
        Scan an identifier or keyword.

        Generic keywords are checked first, then domain keywords when the
        extension layer is enabled.
        """
        chars = []
        while self._peek() and self._peek() in self.IDENT_CHARS:
            chars.append(self._advance())

        name = "".join(chars)

        token_type = GENERIC_KEYWORDS.get(name)
        if token_type is None and self.extensions:
            token_type = DOMAIN_KEYWORDS.get(name)
        if token_type is None:
            token_type = TokenType.IDENTIFIER

        return self._make_token(token_type, name, name, start_line, start_column)

    def _scan_number(self, start_line: int, start_column: int) -> Token:
        """Scan digits with at most one decimal point."""
        chars = []
        seen_dot = False
        while self._peek():
            char = self._peek()
            if char in string.digits:
                chars.append(self._advance())
            elif char == "." and not seen_dot:
                seen_dot = True
                chars.append(self._advance())
            else:
                break

        text = "".join(chars)
        return self._make_token(TokenType.NUMBER, text, text, start_line, start_column)

    def _scan_string(self, start_line: int, start_column: int) -> Token:
        """
        Scan a double-quoted string literal.

        Unknown escapes pass the escaped character through. A missing
        closing quote consumes the rest of the input.
        """
        start_pos = self._pos
        self._advance()  # opening quote

        chars = []
        while not self._at_end() and self._peek() != '"':
            char = self._advance()
            if char == "\\":
                if self._at_end():
                    break
                escaped = self._advance()
                chars.append(self.ESCAPE_SEQUENCES.get(escaped, escaped))
            else:
                chars.append(char)

        self._match('"')

        lexeme = self.source[start_pos:self._pos]
        return self._make_token(TokenType.STRING, "".join(chars), lexeme, start_line, start_column)

    def _scan_operator(self, start_line: int, start_column: int) -> Optional[Token]:
        """Scan operators and delimiters, using one character of lookahead."""
        char = self._advance()

        if char == "=":
            if self._match("="):
                return self._make_token(TokenType.EQ, "==", "==", start_line, start_column)
            return self._make_token(TokenType.ASSIGN, "=", "=", start_line, start_column)

        if char == "-":
            if self._match(">"):
                return self._make_token(TokenType.ARROW, "->", "->", start_line, start_column)
            return self._make_token(TokenType.MINUS, "-", "-", start_line, start_column)

        token_type = SINGLE_CHAR_TOKENS.get(char)
        if token_type is not None:
            return self._make_token(token_type, char, char, start_line, start_column)

        self.diagnostics.add(InvalidCharacterError(
            char,
            SourceLocation(self.filename, start_line, start_column),
            self._current_source_line(),
        ))
        return None


# =============================================================================
# Convenience Functions
# =============================================================================

def tokenize(
    source: str,
    filename: str = "<input>",
    extensions: bool = True,
    diagnostics: Optional[DiagnosticCollector] = None,
) -> list[Token]:
    """Tokenize source into a list ending with EOF."""
    return list(Lexer(source, filename, extensions, diagnostics).tokenize())
