"""
So Lang Recursive Descent Parser
================================

This module implements the recursive descent parser for the generic
So Lang language. It takes the token stream from the lexer and builds an
Abstract Syntax Tree (AST). Domain declarations are layered on top by
so_lang.domain_parser.DomainParser.

Grammar (Simplified EBNF)
-------------------------
program     ::= (NEWLINE | statement)*
statement   ::= (let_stmt | print_stmt | if_stmt | return_stmt
                | fn_decl | expr_stmt) (NEWLINE | ';')*
let_stmt    ::= 'let' IDENTIFIER ('=' expression)?
print_stmt  ::= 'print' '(' expression ')'
if_stmt     ::= 'if' expression block ('else' (if_stmt | block))?
return_stmt ::= 'return' expression?
fn_decl     ::= 'fn' IDENTIFIER '(' ... ')' block
block       ::= '{' (NEWLINE | statement)* '}'
expr_stmt   ::= expression

expression  ::= primary (binop primary)?
binop       ::= '+' | '-' | '*' | '/' | '==' | '<' | '>'
primary     ::= NUMBER | STRING | IDENTIFIER | IDENTIFIER '(' ... ')'
              | '(' expression ')'

Expressions have exactly one level: no precedence and no chaining.
`1 + 2 * 3` parses as `1 + 2` and the trailing `*` is reported as an
unexpected token. Use parentheses to nest. Function call arguments and
fn parameter lists are skipped.

Error Recovery
--------------
Errors are recorded in a DiagnosticCollector rather than raised. A
missing token yields a partially built node and parsing continues, so a
single run reports every problem in the file. The parser always makes
progress, so malformed input cannot loop forever.

Example Usage
-------------
>>> from so_lang.parser import parse_source
>>> tree = parse_source('let x = 1 + 2', extensions=False)
>>> tree.statements[0].name
'x'
"""

from typing import Callable, Optional
import logging

from so_lang.errors import (
    DiagnosticCollector,
    MissingTokenError,
    SourceLocation,
    UnexpectedTokenError,
)
from so_lang.lexer import Lexer, Token, TokenType
from so_lang.ast import (
    BinaryExpression,
    BinaryOperator,
    Block,
    Expression,
    ExpressionStatement,
    FuncCall,
    FuncDecl,
    Identifier,
    IfStatement,
    NumberLiteral,
    PrintStatement,
    ProgramNode,
    ReturnStatement,
    Statement,
    StringLiteral,
    VarDecl,
)

logger = logging.getLogger(__name__)


# Token types that act as the single binary operator of an expression
BINARY_OPERATORS: dict[TokenType, BinaryOperator] = {
    TokenType.PLUS: BinaryOperator.ADD,
    TokenType.MINUS: BinaryOperator.SUBTRACT,
    TokenType.STAR: BinaryOperator.MULTIPLY,
    TokenType.SLASH: BinaryOperator.DIVIDE,
    TokenType.EQ: BinaryOperator.EQUAL,
    TokenType.LT: BinaryOperator.LESS,
    TokenType.GT: BinaryOperator.GREATER,
}

# Tokens that end a statement
SEPARATORS = (TokenType.NEWLINE, TokenType.SEMICOLON)


class Parser:
    """
    Recursive descent parser for generic So Lang statements.

    Statement dispatch goes through a table keyed by the leading token
    type; subclasses extend it in _statement_handlers().

    Attributes:
        tokens: Tokens to parse, ending with EOF
        filename: Source filename for error reporting
        diagnostics: Collector receiving syntax errors
    """

    def __init__(
        self,
        tokens: list[Token],
        filename: str = "<input>",
        source_lines: Optional[list[str]] = None,
        diagnostics: Optional[DiagnosticCollector] = None,
    ):
        """
        Initialize the parser.

        Args:
            tokens: List of tokens from the lexer
            filename: Source filename for error messages
            source_lines: Original source lines for error context
            diagnostics: Shared collector, a fresh one is created if omitted
        """
        self.tokens = tokens
        self.filename = filename
        self.source_lines = source_lines or []
        self.diagnostics = diagnostics if diagnostics is not None else DiagnosticCollector()

        self._pos = 0
        self._handlers = self._statement_handlers()

    def parse(self) -> ProgramNode:
        """
        Parse the token stream into an AST.

        Returns:
            ProgramNode with the top-level statements. Check
            self.diagnostics for errors; the tree may be partial.
        """
        statements = self._parse_statement_list(until=TokenType.EOF)
        logger.debug(
            f"Parsed {self.filename}: {len(statements)} top-level statements, "
            f"{self.diagnostics.error_count()} errors"
        )
        return ProgramNode(
            location=SourceLocation(self.filename, 1, 1),
            statements=statements,
        )

    # =========================================================================
    # Token Access Methods
    # =========================================================================

    def _at_end(self) -> bool:
        return self._peek().type == TokenType.EOF

    def _peek(self, offset: int = 0) -> Token:
        """Look at token at current position + offset."""
        pos = self._pos + offset
        if pos >= len(self.tokens):
            return self.tokens[-1]
        return self.tokens[pos]

    def _advance(self) -> Token:
        """Consume and return the current token (EOF is never consumed)."""
        token = self._peek()
        if not self._at_end():
            self._pos += 1
        return token

    def _check(self, *types: TokenType) -> bool:
        return self._peek().type in types

    def _match(self, *types: TokenType) -> Optional[Token]:
        """Consume current token if it matches one of the types."""
        if self._check(*types):
            return self._advance()
        return None

    def _expect(self, token_type: TokenType, description: str) -> Optional[Token]:
        """
        Expect and consume a specific token type.

        On mismatch a MissingTokenError is recorded, nothing is consumed,
        and None is returned so the caller can build a partial node.
        """
        if self._check(token_type):
            return self._advance()

        current = self._peek()
        self.diagnostics.add(MissingTokenError(
            description,
            current.location,
            self._get_source_line(current.line),
        ))
        return None

    def _get_source_line(self, line: int) -> Optional[str]:
        if 0 < line <= len(self.source_lines):
            return self.source_lines[line - 1]
        return None

    def _consume_separators(self) -> None:
        while self._match(*SEPARATORS):
            pass

    def _skip_parenthesized(self) -> None:
        """
        Skip a '(' ... ')' group, honouring nested parentheses.

        Used for call arguments and parameter lists, which the language
        does not capture.
        """
        self._advance()  # '('
        depth = 1
        while depth > 0 and not self._at_end():
            token = self._advance()
            if token.type == TokenType.LPAREN:
                depth += 1
            elif token.type == TokenType.RPAREN:
                depth -= 1
        if depth > 0:
            self._expect(TokenType.RPAREN, ")")

    # =========================================================================
    # Statement Parsing
    # =========================================================================

    def _statement_handlers(self) -> dict[TokenType, Callable[[], Optional[Statement]]]:
        """Map leading token types to statement parsing methods."""
        return {
            TokenType.LET: self._parse_let,
            TokenType.PRINT: self._parse_print,
            TokenType.IF: self._parse_if,
            TokenType.RETURN: self._parse_return,
            TokenType.FN: self._parse_function,
        }

    def _parse_statement_list(self, until: TokenType) -> list[Statement]:
        """
        Parse statements until the given token type (or EOF).

        Blank lines and stray ';' are skipped. A statement that consumes nothing gets
        its leading token skipped so the loop always advances.
        """
        statements = []
        while not self._check(until) and not self._at_end():
            if self.diagnostics.should_stop():
                break
            if self._match(*SEPARATORS):
                continue

            start = self._pos
            stmt = self._parse_statement()
            if stmt is not None:
                statements.append(stmt)
            if self._pos == start:
                self._advance()
        return statements

    def _parse_statement(self) -> Optional[Statement]:
        """Parse one statement and the separators that follow it."""
        handler = self._handlers.get(self._peek().type, self._parse_expression_statement)
        stmt = handler()
        self._consume_separators()
        return stmt

    def _parse_block(self) -> Block:
        """
        Parse a brace-enclosed block.

        A missing '{' yields an empty block so the caller's node is still
        complete enough for the rest of the file to be checked.
        """
        start = self._peek()
        block = Block(location=start.location)

        if not self._expect(TokenType.LBRACE, "{"):
            return block

        block.statements = self._parse_statement_list(until=TokenType.RBRACE)
        self._expect(TokenType.RBRACE, "}")
        return block

    def _parse_let(self) -> VarDecl:
        keyword = self._advance()
        name = self._expect(TokenType.IDENTIFIER, "variable name")

        initializer = None
        if self._match(TokenType.ASSIGN):
            initializer = self._parse_expression()

        return VarDecl(
            location=keyword.location,
            name=name.value if name else "",
            initializer=initializer,
        )

    def _parse_print(self) -> PrintStatement:
        keyword = self._advance()
        self._expect(TokenType.LPAREN, "(")
        value = self._parse_expression()
        self._expect(TokenType.RPAREN, ")")
        return PrintStatement(location=keyword.location, value=value)

    def _parse_if(self) -> IfStatement:
        """
        Parse an if statement.

        'else if' recurses through _parse_statement, so the nested
        IfStatement lands in else_branch and chains naturally.
        """
        keyword = self._advance()
        condition = self._parse_expression()
        then_branch = self._parse_block()

        else_branch = None
        if self._match(TokenType.ELSE):
            if self._check(TokenType.IF):
                else_branch = self._parse_statement()
            else:
                else_branch = self._parse_block()

        return IfStatement(
            location=keyword.location,
            condition=condition,
            then_branch=then_branch,
            else_branch=else_branch,
        )

    def _parse_return(self) -> ReturnStatement:
        keyword = self._advance()
        value = None
        if not self._check(*SEPARATORS, TokenType.RBRACE, TokenType.EOF):
            value = self._parse_expression()
        return ReturnStatement(location=keyword.location, value=value)

    def _parse_function(self) -> FuncDecl:
        keyword = self._advance()
        name = self._expect(TokenType.IDENTIFIER, "function name")

        if self._check(TokenType.LPAREN):
            self._skip_parenthesized()
        else:
            self._expect(TokenType.LPAREN, "(")

        body = self._parse_block()
        return FuncDecl(
            location=keyword.location,
            name=name.value if name else "",
            body=body,
        )

    def _parse_expression_statement(self) -> Optional[ExpressionStatement]:
        start = self._peek()
        expression = self._parse_expression()
        if expression is None:
            return None
        return ExpressionStatement(location=start.location, expression=expression)

    # =========================================================================
    # Expression Parsing
    # =========================================================================

    def _parse_expression(self) -> Optional[Expression]:
        return self._parse_binary()

    def _parse_binary(self) -> Optional[Expression]:
        """Parse 'primary (op primary)?' with no precedence or chaining."""
        left = self._parse_primary()

        operator = BINARY_OPERATORS.get(self._peek().type)
        if operator is None:
            return left

        op_token = self._advance()
        right = self._parse_primary()
        return BinaryExpression(
            location=left.location if left else op_token.location,
            operator=operator,
            left=left,
            right=right,
        )

    def _parse_primary(self) -> Optional[Expression]:
        """
        Parse a primary expression.

        An identifier directly followed by '(' becomes a FuncCall whose
        arguments are skipped.
        """
        token = self._peek()

        if token.type == TokenType.NUMBER:
            self._advance()
            return NumberLiteral(location=token.location, text=token.value)

        if token.type == TokenType.STRING:
            self._advance()
            return StringLiteral(location=token.location, value=token.value)

        if token.type == TokenType.IDENTIFIER:
            self._advance()
            if self._check(TokenType.LPAREN):
                self._skip_parenthesized()
                return FuncCall(location=token.location, name=token.value)
            return Identifier(location=token.location, name=token.value)

        if token.type == TokenType.LPAREN:
            self._advance()
            expr = self._parse_expression()
            self._expect(TokenType.RPAREN, ")")
            return expr

        self.diagnostics.add(UnexpectedTokenError(
            token.lexeme.strip() or token.type.name,
            expected="expression",
            location=token.location,
            source_line=self._get_source_line(token.line),
        ))
        # Leave structural tokens for the enclosing statement or block
        if not self._check(*SEPARATORS, TokenType.RBRACE, TokenType.EOF):
            self._advance()
        return None


# =============================================================================
# Convenience Functions
# =============================================================================

def parse_source(
    source: str,
    filename: str = "<input>",
    extensions: bool = True,
    diagnostics: Optional[DiagnosticCollector] = None,
) -> ProgramNode:
    """
    Parse So Lang source code into an AST.

    Combines lexing and parsing. With extensions enabled the domain
    keywords are recognized and DomainParser is used.

    Raises:
        SoLangCompilationError: If lexical or syntax errors were found
    """
    from so_lang.domain_parser import DomainParser

    diagnostics = diagnostics if diagnostics is not None else DiagnosticCollector()

    tokens = list(Lexer(source, filename, extensions, diagnostics).tokenize())
    diagnostics.raise_if_errors()

    parser_class = DomainParser if extensions else Parser
    parser = parser_class(tokens, filename, source.splitlines(), diagnostics)
    tree = parser.parse()
    diagnostics.raise_if_errors()
    return tree
