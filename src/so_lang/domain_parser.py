"""
So Lang Domain Declaration Parser
=================================

Extends the base Parser with the declarative grammar used to describe
Solana programs. The base expression and statement rules are shared;
only the statement dispatch table grows.

Grammar Additions
-----------------
program_decl     ::= 'program' IDENTIFIER ('(' STRING ')' | STRING)? '{' statement* '}'
instruction_decl ::= 'instruction' IDENTIFIER '(' ... ')' block
account_decl     ::= 'account' IDENTIFIER ('(' constraint (',' constraint)* ')')?
                     (':' type_name)?
constraint       ::= 'signer' | 'writable' | 'init'
                   | 'seeds' '(' expression (',' expression)* ')'
                   | 'bump' ('=' NUMBER)?
state_decl       ::= 'state' IDENTIFIER '{' (IDENTIFIER ':' type_name)* '}'
transfer_stmt    ::= 'transfer' '(' expression ',' expression (',' expression)? ')'
require_stmt     ::= 'require' '(' expression (',' STRING)? ')'
emit_stmt        ::= 'emit' IDENTIFIER ('(' ... ')')?
type_name        ::= IDENTIFIER | 'pubkey'

Unrecognized tokens inside an account constraint list are skipped
silently. Instruction parameter lists and emit arguments are consumed
without being captured.

Example
-------
    program Vault("7xKXtg2CW87d97TXJSDpbD5jBkheTqA83TZRuJosgAsU") {
        account user(signer, writable): pubkey
        instruction withdraw() {
            require(amount < 100, "too much")
            transfer(vault, user, amount)
        }
    }
"""

from typing import Callable, Optional

from so_lang.lexer import TokenType
from so_lang.parser import Parser
from so_lang.ast import (
    AccountDecl,
    EmitStatement,
    Expression,
    InstructionDecl,
    ProgramDecl,
    RequireStatement,
    StateDecl,
    StateField,
    Statement,
    TransferStatement,
)

# Tokens accepted where a type name is expected
TYPE_NAME_TOKENS = (TokenType.IDENTIFIER, TokenType.PUBKEY)


class DomainParser(Parser):
    """
    Parser for So Lang with domain declarations enabled.

    Usage:
        diagnostics = DiagnosticCollector()
        tokens = list(Lexer(source, diagnostics=diagnostics).tokenize())
        tree = DomainParser(tokens, diagnostics=diagnostics).parse()
    """

    def _statement_handlers(self) -> dict[TokenType, Callable[[], Optional[Statement]]]:
        handlers = super()._statement_handlers()
        handlers.update({
            TokenType.PROGRAM: self._parse_program_decl,
            TokenType.INSTRUCTION: self._parse_instruction_decl,
            TokenType.ACCOUNT: self._parse_account_decl,
            TokenType.STATE: self._parse_state_decl,
            TokenType.TRANSFER: self._parse_transfer,
            TokenType.REQUIRE: self._parse_require,
            TokenType.EMIT: self._parse_emit,
        })
        return handlers

    # =========================================================================
    # Declarations
    # =========================================================================

    def _parse_program_decl(self) -> ProgramDecl:
        """Parse 'program NAME ("ID")? { ... }'."""
        keyword = self._advance()
        name = self._expect(TokenType.IDENTIFIER, "program name")
        program = ProgramDecl(location=keyword.location, name=name.value if name else "")

        # Declared id, either parenthesized or bare
        if self._match(TokenType.LPAREN):
            program_id = self._expect(TokenType.STRING, "program id string")
            if program_id:
                program.program_id = program_id.value
            self._expect(TokenType.RPAREN, ")")
        elif self._check(TokenType.STRING):
            program.program_id = self._advance().value

        if self._expect(TokenType.LBRACE, "{"):
            program.body = self._parse_statement_list(until=TokenType.RBRACE)
            self._expect(TokenType.RBRACE, "}")

        return program

    def _parse_instruction_decl(self) -> InstructionDecl:
        """Parse 'instruction NAME(...) { body }', skipping the parameters."""
        keyword = self._advance()
        name = self._expect(TokenType.IDENTIFIER, "instruction name")

        if self._check(TokenType.LPAREN):
            self._skip_parenthesized()

        body = self._parse_block()
        return InstructionDecl(
            location=keyword.location,
            name=name.value if name else "",
            body=body,
        )

    def _parse_account_decl(self) -> AccountDecl:
        """Parse 'account NAME(constraints) : TYPE'."""
        keyword = self._advance()
        name = self._expect(TokenType.IDENTIFIER, "account name")
        account = AccountDecl(location=keyword.location, name=name.value if name else "")

        if self._match(TokenType.LPAREN):
            while not self._check(TokenType.RPAREN) and not self._at_end():
                self._parse_constraint(account)
                self._match(TokenType.COMMA)
            self._expect(TokenType.RPAREN, ")")

        if self._match(TokenType.COLON):
            account.account_type = self._parse_type_name()

        return account

    def _parse_constraint(self, account: AccountDecl) -> None:
        """Apply one constraint to the account; unknown tokens are skipped."""
        token = self._advance()

        if token.type == TokenType.SIGNER:
            account.is_signer = True
        elif token.type == TokenType.WRITABLE:
            account.is_writable = True
        elif token.type == TokenType.INIT:
            account.is_init = True
        elif token.type == TokenType.SEEDS:
            if self._match(TokenType.LPAREN):
                account.seeds = self._parse_expression_list()
                self._expect(TokenType.RPAREN, ")")
        elif token.type == TokenType.BUMP:
            account.has_bump = True
            if self._match(TokenType.ASSIGN):
                number = self._expect(TokenType.NUMBER, "bump value")
                if number and number.value.isdigit():
                    account.bump = int(number.value)

    def _parse_state_decl(self) -> StateDecl:
        """Parse 'state NAME { field: TYPE ... }'."""
        keyword = self._advance()
        name = self._expect(TokenType.IDENTIFIER, "state name")
        state = StateDecl(location=keyword.location, name=name.value if name else "")

        if not self._expect(TokenType.LBRACE, "{"):
            return state

        while not self._check(TokenType.RBRACE) and not self._at_end():
            if self._match(TokenType.NEWLINE, TokenType.COMMA, TokenType.SEMICOLON):
                continue

            field_name = self._expect(TokenType.IDENTIFIER, "field name")
            if field_name is None:
                self._advance()
                continue

            self._expect(TokenType.COLON, ":")
            state.fields.append(StateField(
                location=field_name.location,
                name=field_name.value,
                field_type=self._parse_type_name() or "",
            ))

        self._expect(TokenType.RBRACE, "}")
        return state

    def _parse_type_name(self) -> Optional[str]:
        token = self._match(*TYPE_NAME_TOKENS)
        if token is None:
            self._expect(TokenType.IDENTIFIER, "type name")
            return None
        return token.value

    # =========================================================================
    # Domain Statements
    # =========================================================================

    def _parse_transfer(self) -> TransferStatement:
        """Parse 'transfer(from, to, amount?)'."""
        keyword = self._advance()
        transfer = TransferStatement(location=keyword.location)

        if self._expect(TokenType.LPAREN, "("):
            transfer.source = self._parse_expression()
            if self._match(TokenType.COMMA):
                transfer.destination = self._parse_expression()
            if self._match(TokenType.COMMA):
                transfer.amount = self._parse_expression()
            self._expect(TokenType.RPAREN, ")")

        return transfer

    def _parse_require(self) -> RequireStatement:
        """Parse 'require(condition, "message"?)'."""
        keyword = self._advance()
        require = RequireStatement(location=keyword.location)

        if self._expect(TokenType.LPAREN, "("):
            require.condition = self._parse_expression()
            if self._match(TokenType.COMMA):
                message = self._expect(TokenType.STRING, "error message string")
                if message:
                    require.message = message.value
            self._expect(TokenType.RPAREN, ")")

        return require

    def _parse_emit(self) -> EmitStatement:
        """Parse 'emit NAME(...)'; the event fields are not captured."""
        keyword = self._advance()
        name = self._expect(TokenType.IDENTIFIER, "event name")

        if self._check(TokenType.LPAREN):
            self._skip_parenthesized()

        return EmitStatement(location=keyword.location, event_name=name.value if name else "")

    def _parse_expression_list(self) -> list[Expression]:
        """Parse comma-separated expressions up to (not including) ')'."""
        expressions = []
        while not self._check(TokenType.RPAREN) and not self._at_end():
            start = self._pos
            expr = self._parse_expression()
            if expr is not None:
                expressions.append(expr)
            if not self._match(TokenType.COMMA):
                if self._pos == start:
                    self._advance()
                break
        return expressions
