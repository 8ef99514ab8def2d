"""
So Lang Code Generator
======================

This module turns a So Lang AST into source text for one of four
emission profiles. The generator walks the tree once and appends lines to
an output buffer; the profile decides keywords, headers, function
signatures and how domain declarations lower into framework boilerplate.

Profiles
--------
| Construct   | C                    | Rust                | Anchor                         | Native                     |
|-------------|----------------------|---------------------|--------------------------------|----------------------------|
| root        | includes + main()    | fn main()           | #[program] module + contexts   | entrypoint! + match        |
| let         | int NAME = expr;     | let NAME = expr;    | let NAME = expr;               | let NAME = expr;           |
| print       | printf("%d\\n", e);  | println!("{}", e);  | msg!("{}", e);                 | msg!("Debug: <text>");     |
| fn          | hoisted int NAME()   | hoisted fn -> i32   | -                              | -                          |
| instruction | -                    | -                   | pub fn NAME(ctx) -> Result<()> | match arm on opcode        |
| account     | -                    | -                   | #[derive(Accounts)] field      | next_account_info binding  |
| transfer    | -                    | -                   | token::transfer CPI            | system_instruction+invoke  |
| require     | -                    | -                   | require!(cond, ...)            | if !(cond) { return Err }  |

Domain constructs emit nothing in the C and Rust profiles. Generation
never fails: a missing child renders as an empty or default emission
(a let without initializer becomes `= 0`), so output for incomplete
input may itself be incomplete.

Ambient State
-------------
Everything the generator needs besides the tree travels in an explicit
GenerationContext: the profile, the unit classification, the resolved
program id and whether emission is currently inside a function body.
"""

from dataclasses import dataclass, field
from typing import Optional, Union
import logging
import re

from so_lang.analysis import UnitClassification
from so_lang.profiles import EmissionProfile
from so_lang.ast import (
    ASTVisitor,
    AccountDecl,
    Block,
    EmitStatement,
    Expression,
    ExpressionStatement,
    FuncDecl,
    Identifier,
    IfStatement,
    InstructionDecl,
    PrintStatement,
    ProgramDecl,
    ProgramNode,
    RequireStatement,
    ReturnStatement,
    StateDecl,
    Statement,
    StringLiteral,
    TransferStatement,
    VarDecl,
    escape_string,
    expression_text,
)

logger = logging.getLogger(__name__)

INDENT = "    "

C_HEADERS = (
    "#include <stdio.h>",
    "#include <stdlib.h>",
    "#include <string.h>",
)

ANCHOR_IMPORTS = (
    "use anchor_lang::prelude::*;",
    "use anchor_spl::token::{self, Token, TokenAccount, Mint};",
    "use anchor_spl::associated_token::AssociatedToken;",
)

NATIVE_IMPORTS = (
    "use solana_program::{",
    "    account_info::{next_account_info, AccountInfo},",
    "    entrypoint,",
    "    entrypoint::ProgramResult,",
    "    msg,",
    "    program_error::ProgramError,",
    "    pubkey::Pubkey,",
    "    system_instruction,",
    "    program::{invoke, invoke_signed},",
    "};",
)

DEFAULT_ERROR_MESSAGE = "Custom error message"

# So Lang state field types mapped to Rust types and their serialized sizes
RUST_FIELD_TYPES: dict[str, str] = {
    "pubkey": "Pubkey",
    "u64": "u64",
    "u32": "u32",
    "u16": "u16",
    "u8": "u8",
    "i64": "i64",
    "i32": "i32",
    "bool": "bool",
    "string": "String",
    "String": "String",
}

FIELD_SIZES: dict[str, int] = {
    "Pubkey": 32,
    "u64": 8,
    "i64": 8,
    "u32": 4,
    "i32": 4,
    "u16": 2,
    "u8": 1,
    "bool": 1,
    "String": 4 + 32,
}

# Space reserved for an account whose layout is unknown
DEFAULT_ACCOUNT_SIZE = 32

# Anchor discriminator prefix on every account
DISCRIMINATOR_SIZE = 8

# Rust keywords, strict and reserved, which cannot name a module
RUST_KEYWORDS = frozenset({
    "abstract", "as", "async", "await", "become", "box", "break", "const",
    "continue", "crate", "do", "dyn", "else", "enum", "extern", "false",
    "final", "fn", "for", "if", "impl", "in", "let", "loop", "macro",
    "match", "mod", "move", "mut", "override", "priv", "pub", "ref",
    "return", "self", "static", "struct", "super", "trait", "true", "try",
    "type", "typeof", "unsafe", "unsized", "use", "virtual", "where",
    "while", "yield",
})


# =============================================================================
# Generation Context
# =============================================================================

@dataclass
class GenerationContext:
    """
    Explicit ambient state for one generation pass.

    Attributes:
        profile: Selected emission profile
        classification: Result of the detection pass
        program_id: Resolved program id to declare, if any
        program_name: Fallback program name when the source declares none
        in_function: True while emitting a function or instruction body
    """
    profile: EmissionProfile
    classification: UnitClassification = field(default_factory=UnitClassification)
    program_id: Optional[str] = None
    program_name: Optional[str] = None
    in_function: bool = False

    @property
    def effective_program_id(self) -> Optional[str]:
        return self.program_id or self.classification.program_id

    @property
    def effective_program_name(self) -> str:
        return self.classification.program_name or self.program_name or "program"


@dataclass
class DomainLayout:
    """
    Domain declarations gathered from the tree before emission.

    Attributes:
        instructions: Instructions in declaration order (their opcodes)
        accounts: Accounts declared at program scope
        statements: Generic statements found at program scope
        states: All state declarations anywhere in the tree
        events: Event names used by emit statements, in first-use order
        error_message: Message of the first require that carries one
    """
    instructions: list[InstructionDecl] = field(default_factory=list)
    accounts: list[AccountDecl] = field(default_factory=list)
    statements: list[Statement] = field(default_factory=list)
    states: list[StateDecl] = field(default_factory=list)
    events: list[str] = field(default_factory=list)
    error_message: Optional[str] = None


class FunctionCollector(ASTVisitor):
    """Collects every function declaration in pre-order for hoisting."""

    def __init__(self):
        self.functions: list[FuncDecl] = []

    def visit_FuncDecl(self, node: FuncDecl):
        self.functions.append(node)
        self.generic_visit(node)


class DomainItemCollector(ASTVisitor):
    """Collects state declarations, emitted events and require messages."""

    def __init__(self, layout: DomainLayout):
        self.layout = layout

    def visit_StateDecl(self, node: StateDecl):
        self.layout.states.append(node)

    def visit_EmitStatement(self, node: EmitStatement):
        if node.event_name and node.event_name not in self.layout.events:
            self.layout.events.append(node.event_name)

    def visit_RequireStatement(self, node: RequireStatement):
        if node.message is not None and self.layout.error_message is None:
            self.layout.error_message = node.message
        self.generic_visit(node)


# =============================================================================
# Naming Helpers
# =============================================================================

def to_snake_case(name: str) -> str:
    """Convert 'MyVault' or 'myVault' to 'my_vault'."""
    snake = re.sub(r"(?<=[a-z0-9])([A-Z])", r"_\1", name)
    return snake.lower() or "program"


def rust_module_name(program_name: str) -> str:
    """
    Module name for the Anchor #[program] block.

    Names that collide with a Rust keyword get a "_program" suffix, so
    'Match' becomes 'match_program'.
    """
    name = to_snake_case(program_name)
    if name in RUST_KEYWORDS:
        return f"{name}_program"
    return name


def to_pascal_case(name: str) -> str:
    """Convert 'transfer_funds' to 'TransferFunds'."""
    return "".join(part[:1].upper() + part[1:] for part in name.split("_") if part)


def context_struct_name(instruction_name: str) -> str:
    """Name of the Anchor accounts struct for an instruction."""
    return f"{to_pascal_case(instruction_name)}Context"


def rust_field_type(type_name: str) -> str:
    return RUST_FIELD_TYPES.get(type_name, type_name or "u64")


# =============================================================================
# Code Generator Class
# =============================================================================

class CodeGenerator:
    """
    Generates target source text from a So Lang AST.

    Usage:
        context = GenerationContext(EmissionProfile.RUST)
        text = CodeGenerator(context).generate(tree)

    Attributes:
        context: Profile and ambient state for the pass
    """

    def __init__(self, context: GenerationContext):
        self.context = context
        self._output: list[str] = []
        self._level = 0
        self._string_vars: set[str] = set()
        self._layout = DomainLayout()
        # Signer used as CPI authority inside the current Anchor instruction
        self._authority = "authority"

    def generate(self, program: ProgramNode) -> str:
        """
        Generate source text for the whole tree.

        Returns:
            The generated text, ending with a newline
        """
        self._output = []
        self._level = 0
        self._string_vars = set()
        self.context.in_function = False

        profile = self.context.profile
        if profile is EmissionProfile.C:
            self._generate_c(program)
        elif profile is EmissionProfile.RUST:
            self._generate_rust(program)
        else:
            self._layout = self._collect_layout(program)
            if profile is EmissionProfile.ANCHOR:
                self._generate_anchor()
            else:
                self._generate_native()

        logger.debug(f"Generated {len(self._output)} lines for {profile.name} profile")
        return "\n".join(self._output) + "\n"

    # =========================================================================
    # Output Helpers
    # =========================================================================

    def _emit(self, line: str = "") -> None:
        """Emit a line at the current indentation (blank lines stay empty)."""
        self._output.append(f"{INDENT * self._level}{line}" if line else "")

    def _emit_lines(self, lines) -> None:
        for line in lines:
            self._emit(line)

    def _expr(self, expr: Optional[Expression]) -> str:
        return expression_text(expr)

    def _condition(self, expr: Optional[Expression]) -> str:
        text = self._expr(expr)
        if self.context.profile is EmissionProfile.C:
            return f"({text})"
        return text

    # =========================================================================
    # C Profile
    # =========================================================================

    def _generate_c(self, program: ProgramNode) -> None:
        self._emit_lines(C_HEADERS)
        self._emit()

        for func in self._hoisted_functions(program):
            self._emit(f"int {func.name}() {{")
            self._generate_function_body(func, "return 0;")
            self._emit("}")
            self._emit()

        self._emit("int main() {")
        self._level += 1
        self._generate_statements(program.statements)
        self._emit("return 0;")
        self._level -= 1
        self._emit("}")

    # =========================================================================
    # Rust Profile
    # =========================================================================

    def _generate_rust(self, program: ProgramNode) -> None:
        for func in self._hoisted_functions(program):
            self._emit(f"fn {func.name}() -> i32 {{")
            self._generate_function_body(func, "0")
            self._emit("}")
            self._emit()

        self._emit("fn main() {")
        self._level += 1
        self._generate_statements(program.statements)
        self._level -= 1
        self._emit("}")

    def _hoisted_functions(self, program: ProgramNode) -> list[FuncDecl]:
        collector = FunctionCollector()
        collector.visit(program)
        return collector.functions

    def _generate_function_body(self, func: FuncDecl, tail: str) -> None:
        self._level += 1
        self.context.in_function = True
        if func.body:
            self._generate_statements(func.body.statements)
        self.context.in_function = False
        self._emit(tail)
        self._level -= 1

    # =========================================================================
    # Statements (shared by all profiles)
    # =========================================================================

    def _generate_statements(self, statements: list[Statement]) -> None:
        for stmt in statements:
            self._generate_statement(stmt)

    def _generate_statement(self, stmt: Optional[Statement]) -> None:
        """Generate code for any statement in the current profile."""
        if stmt is None:
            return

        if isinstance(stmt, VarDecl):
            self._generate_var_decl(stmt)
        elif isinstance(stmt, PrintStatement):
            self._generate_print(stmt)
        elif isinstance(stmt, IfStatement):
            self._generate_if(stmt)
        elif isinstance(stmt, ReturnStatement):
            self._generate_return(stmt)
        elif isinstance(stmt, ExpressionStatement):
            self._emit(f"{self._expr(stmt.expression)};")
        elif isinstance(stmt, Block):
            self._generate_statements(stmt.statements)
        elif isinstance(stmt, FuncDecl):
            if self.context.profile.is_domain:
                logger.warning(f"Function '{stmt.name}' has no lowering in a Solana program; skipped")
        elif isinstance(stmt, TransferStatement):
            self._generate_transfer(stmt)
        elif isinstance(stmt, RequireStatement):
            self._generate_require(stmt)
        elif isinstance(stmt, EmitStatement):
            self._generate_emit(stmt)
        elif isinstance(stmt, (AccountDecl, StateDecl)):
            # Accounts become context fields or bindings, states become structs
            pass
        elif isinstance(stmt, (ProgramDecl, InstructionDecl)):
            if self.context.profile.is_domain:
                logger.warning(
                    f"Nested {stmt.__class__.__name__} '{stmt.name}' "
                    f"inside a body is not supported; skipped"
                )
        else:
            logger.debug(f"No lowering for {stmt.__class__.__name__}")

    def _generate_var_decl(self, stmt: VarDecl) -> None:
        value = self._expr(stmt.initializer) or "0"
        if self.context.profile is EmissionProfile.C:
            if isinstance(stmt.initializer, StringLiteral):
                self._string_vars.add(stmt.name)
                self._emit(f"char *{stmt.name} = {value};")
            else:
                self._string_vars.discard(stmt.name)
                self._emit(f"int {stmt.name} = {value};")
        else:
            self._emit(f"let {stmt.name} = {value};")

    def _generate_print(self, stmt: PrintStatement) -> None:
        value = self._expr(stmt.value)
        profile = self.context.profile

        if profile is EmissionProfile.C:
            fmt = "%s" if self._is_c_string(stmt.value) else "%d"
            self._emit(f'printf("{fmt}\\n", {value});')
        elif profile is EmissionProfile.RUST:
            self._emit(f'println!("{{}}", {value});')
        elif profile is EmissionProfile.ANCHOR:
            self._emit(f'msg!("{{}}", {value});')
        else:
            self._emit(f'msg!("Debug: {self._debug_placeholder(stmt.value)}");')

    def _is_c_string(self, expr: Optional[Expression]) -> bool:
        if isinstance(expr, StringLiteral):
            return True
        return isinstance(expr, Identifier) and expr.name in self._string_vars

    def _debug_placeholder(self, expr: Optional[Expression]) -> str:
        """
        Text shown by native print statements.

        The value is not formatted at runtime; the message carries the
        source text of the printed expression instead.
        """
        text = expr.value if isinstance(expr, StringLiteral) else self._expr(expr)
        return escape_string(text).replace("{", "{{").replace("}", "}}")

    def _generate_if(self, stmt: IfStatement, keyword: str = "if") -> None:
        self._emit(f"{keyword} {self._condition(stmt.condition)} {{")
        self._generate_branch(stmt.then_branch)

        else_branch = stmt.else_branch
        if isinstance(else_branch, IfStatement):
            self._generate_if(else_branch, keyword="} else if")
            return

        if else_branch is not None:
            self._emit("} else {")
            self._generate_branch(else_branch)
        self._emit("}")

    def _generate_branch(self, branch: Optional[Union[Block, Statement]]) -> None:
        self._level += 1
        self._generate_statement(branch)
        self._level -= 1

    def _generate_return(self, stmt: ReturnStatement) -> None:
        """
        Lower a return for the current scope.

        Solana bodies return Ok(()); Rust main returns unit, so a value
        there is dropped. C main and every function keep the value.
        """
        profile = self.context.profile
        value = self._expr(stmt.value)

        if profile.is_domain:
            self._emit("return Ok(());")
        elif profile is EmissionProfile.RUST and not self.context.in_function:
            self._emit("return;")
        else:
            self._emit(f"return {value or '0'};")

    # =========================================================================
    # Domain Statements
    # =========================================================================

    def _generate_transfer(self, stmt: TransferStatement) -> None:
        profile = self.context.profile
        if not profile.is_domain:
            return

        source = self._account_ref(stmt.source, "from")
        destination = self._account_ref(stmt.destination, "to")
        amount = self._expr(stmt.amount) or "amount"

        if profile is EmissionProfile.ANCHOR:
            self._emit_lines([
                "token::transfer(",
                f"{INDENT}CpiContext::new(",
                f"{INDENT * 2}ctx.accounts.token_program.to_account_info(),",
                f"{INDENT * 2}token::Transfer {{",
                f"{INDENT * 3}from: ctx.accounts.{source}.to_account_info(),",
                f"{INDENT * 3}to: ctx.accounts.{destination}.to_account_info(),",
                f"{INDENT * 3}authority: ctx.accounts.{self._authority}.to_account_info(),",
                f"{INDENT * 2}}},",
                f"{INDENT}),",
                f"{INDENT}{amount},",
                ")?;",
            ])
        else:
            self._emit_lines([
                "let instruction = system_instruction::transfer(",
                f"{INDENT}{source}.key,",
                f"{INDENT}{destination}.key,",
                f"{INDENT}{amount},",
                ");",
                f"invoke(&instruction, &[{source}.clone(), {destination}.clone()])?;",
            ])

    def _account_ref(self, expr: Optional[Expression], default: str) -> str:
        if isinstance(expr, Identifier):
            return expr.name
        return default

    def _generate_require(self, stmt: RequireStatement) -> None:
        profile = self.context.profile
        condition = self._expr(stmt.condition)

        if profile is EmissionProfile.ANCHOR:
            self._emit(f"require!({condition}, ErrorCode::CustomError);")
        elif profile is EmissionProfile.NATIVE:
            self._emit(f"if !({condition}) {{")
            self._emit(f"{INDENT}return Err(ProgramError::InvalidArgument);")
            self._emit("}")

    def _generate_emit(self, stmt: EmitStatement) -> None:
        profile = self.context.profile
        if profile is EmissionProfile.ANCHOR:
            self._emit(f"emit!({stmt.event_name} {{}});")
        elif profile is EmissionProfile.NATIVE:
            self._emit(f'msg!("Event: {stmt.event_name}");')

    # =========================================================================
    # Domain Layout
    # =========================================================================

    def _collect_layout(self, program: ProgramNode) -> DomainLayout:
        """
        Sort the unit's declarations into instructions, program-scope
        accounts and loose statements.

        Program declarations are flattened, so a unit forced into domain
        mode without any 'program' wrapper still forms one implicit
        program from its top-level statements.
        """
        layout = DomainLayout()
        self._sort_scope(program.statements, layout)
        DomainItemCollector(layout).visit(program)
        logger.debug(
            f"Domain layout: {len(layout.instructions)} instructions, "
            f"{len(layout.accounts)} accounts, {len(layout.states)} states"
        )
        return layout

    def _sort_scope(self, statements: list[Statement], layout: DomainLayout) -> None:
        for stmt in statements:
            if isinstance(stmt, ProgramDecl):
                self._sort_scope(stmt.body, layout)
            elif isinstance(stmt, InstructionDecl):
                layout.instructions.append(stmt)
            elif isinstance(stmt, AccountDecl):
                layout.accounts.append(stmt)
            elif isinstance(stmt, StateDecl):
                continue
            else:
                layout.statements.append(stmt)

    def _instruction_accounts(self, instruction: InstructionDecl) -> list[AccountDecl]:
        """Program-scope accounts followed by those declared in the body."""
        accounts = list(self._layout.accounts)
        if instruction.body:
            accounts.extend(
                stmt for stmt in instruction.body.statements if isinstance(stmt, AccountDecl)
            )
        return accounts

    def _state_by_name(self, name: Optional[str]) -> Optional[StateDecl]:
        for state in self._layout.states:
            if state.name == name:
                return state
        return None

    def _emit_state_structs(self, anchor: bool) -> None:
        for state in self._layout.states:
            if anchor:
                self._emit("#[account]")
            self._emit("#[derive(Clone, Debug, PartialEq)]")
            self._emit(f"pub struct {state.name} {{")
            for state_field in state.fields:
                self._emit(f"{INDENT}pub {state_field.name}: {rust_field_type(state_field.field_type)},")
            self._emit("}")
            self._emit()

    def _emit_declare_id(self, macro: str) -> None:
        program_id = self.context.effective_program_id
        if program_id:
            self._emit(f'{macro}("{program_id}");')
            self._emit()

    # =========================================================================
    # Anchor Profile
    # =========================================================================

    def _generate_anchor(self) -> None:
        layout = self._layout

        self._emit_lines(ANCHOR_IMPORTS)
        self._emit()
        self._emit_declare_id("declare_id!")

        for stmt in layout.statements:
            logger.warning(
                f"{stmt.location}: {stmt.__class__.__name__} at program scope "
                f"has no Anchor lowering; skipped"
            )

        self._emit("#[program]")
        self._emit(f"pub mod {rust_module_name(self.context.effective_program_name)} {{")
        self._level += 1
        self._emit("use super::*;")
        for instruction in layout.instructions:
            self._emit()
            self._generate_anchor_instruction(instruction)
        self._level -= 1
        self._emit("}")
        self._emit()

        for instruction in layout.instructions:
            self._generate_anchor_context(instruction)

        self._emit_state_structs(anchor=True)

        for event in layout.events:
            self._emit("#[event]")
            self._emit(f"pub struct {event} {{}}")
            self._emit()

        self._emit("#[error_code]")
        self._emit("pub enum ErrorCode {")
        message = escape_string(layout.error_message or DEFAULT_ERROR_MESSAGE)
        self._emit(f'{INDENT}#[msg("{message}")]')
        self._emit(f"{INDENT}CustomError,")
        self._emit("}")

    def _generate_anchor_instruction(self, instruction: InstructionDecl) -> None:
        context_name = context_struct_name(instruction.name)
        self._emit(f"pub fn {instruction.name}(ctx: Context<{context_name}>) -> Result<()> {{")
        self._level += 1
        self.context.in_function = True

        self._authority = self._payer_name(self._instruction_accounts(instruction), "authority")
        if instruction.body:
            self._generate_statements(instruction.body.statements)

        self.context.in_function = False
        self._emit("Ok(())")
        self._level -= 1
        self._emit("}")

    def _payer_name(self, accounts: list[AccountDecl], default: str) -> str:
        for account in accounts:
            if account.is_signer:
                return account.name
        return default

    def _generate_anchor_context(self, instruction: InstructionDecl) -> None:
        """Emit the #[derive(Accounts)] struct for one instruction."""
        accounts = self._instruction_accounts(instruction)
        names = {a.name for a in accounts}
        has_signer = any(a.is_signer for a in accounts)
        needs_payer = any(a.is_init for a in accounts) and not has_signer and "payer" not in names
        needs_authority = (
            self._contains_transfer(instruction) and not has_signer and "authority" not in names
        )
        payer = self._payer_name(accounts, "payer")

        self._emit("#[derive(Accounts)]")
        self._emit(f"pub struct {context_struct_name(instruction.name)}<'info> {{")
        self._level += 1

        for account in accounts:
            attributes = self._account_attributes(account, payer)
            if attributes:
                self._emit(f"#[account({', '.join(attributes)})]")
            state = self._state_by_name(account.account_type)
            if state is not None:
                self._emit(f"pub {account.name}: Account<'info, {state.name}>,")
            else:
                self._emit("/// CHECK: constraints declared in So Lang source")
                self._emit(f"pub {account.name}: AccountInfo<'info>,")

        if needs_payer:
            self._emit("#[account(mut)]")
            self._emit("pub payer: Signer<'info>,")
        if needs_authority:
            self._emit("pub authority: Signer<'info>,")
        if any(a.is_init for a in accounts):
            self._emit("pub system_program: Program<'info, System>,")
        if self._contains_transfer(instruction):
            self._emit("pub token_program: Program<'info, Token>,")

        self._level -= 1
        self._emit("}")
        self._emit()

    def _account_attributes(self, account: AccountDecl, payer: str) -> list[str]:
        """
        Build the #[account(...)] constraint list for an account.

        init already implies a writable account, so 'mut' is only emitted
        for writable accounts that are not being initialized.
        """
        attributes = []
        if account.is_signer:
            attributes.append("signer")
        if account.is_writable and not account.is_init:
            attributes.append("mut")
        if account.is_init:
            attributes.append("init")
            attributes.append(f"payer = {payer}")
            attributes.append(f"space = {DISCRIMINATOR_SIZE} + {self._account_size(account)}")
        if account.seeds:
            seeds = ", ".join(self._seed_text(seed) for seed in account.seeds)
            attributes.append(f"seeds = [{seeds}]")
        if account.bump is not None:
            attributes.append(f"bump = {account.bump}")
        elif account.seeds or account.has_bump:
            attributes.append("bump")
        return attributes

    def _account_size(self, account: AccountDecl) -> int:
        state = self._state_by_name(account.account_type)
        if state is None:
            return DEFAULT_ACCOUNT_SIZE
        return sum(
            FIELD_SIZES.get(rust_field_type(f.field_type), DEFAULT_ACCOUNT_SIZE)
            for f in state.fields
        )

    def _seed_text(self, seed: Expression) -> str:
        if isinstance(seed, StringLiteral):
            return f'b"{escape_string(seed.value)}"'
        if isinstance(seed, Identifier):
            return f"{seed.name}.key().as_ref()"
        return f"{self._expr(seed)}.to_le_bytes().as_ref()"

    def _contains_transfer(self, instruction: InstructionDecl) -> bool:
        finder = _NodeFinder(TransferStatement)
        finder.visit(instruction)
        return finder.found

    # =========================================================================
    # Native Profile
    # =========================================================================

    def _generate_native(self) -> None:
        layout = self._layout

        self._emit_lines(NATIVE_IMPORTS)
        self._emit()
        self._emit("entrypoint!(process_instruction);")
        self._emit()
        self._emit_declare_id("solana_program::declare_id!")
        self._emit_state_structs(anchor=False)

        self._emit(
            "pub fn process_instruction(program_id: &Pubkey, accounts: &[AccountInfo], "
            "instruction_data: &[u8]) -> ProgramResult {"
        )
        self._level += 1
        self.context.in_function = True

        self._generate_statements(layout.statements)

        if layout.instructions:
            self._emit("let opcode = *instruction_data")
            self._emit(f"{INDENT}.first()")
            self._emit(f"{INDENT}.ok_or(ProgramError::InvalidInstructionData)?;")
            self._emit("match opcode {")
            self._level += 1
            for opcode, instruction in enumerate(layout.instructions):
                self._generate_native_arm(opcode, instruction)
            self._emit("_ => return Err(ProgramError::InvalidInstructionData),")
            self._level -= 1
            self._emit("}")

        self.context.in_function = False
        self._emit("Ok(())")
        self._level -= 1
        self._emit("}")

    def _generate_native_arm(self, opcode: int, instruction: InstructionDecl) -> None:
        self._emit(f"{opcode} => {{")
        self._level += 1
        self._emit(f'msg!("Executing {instruction.name}");')

        accounts = self._instruction_accounts(instruction)
        if accounts:
            self._emit("let accounts_iter = &mut accounts.iter();")
        for account in accounts:
            self._emit(f"let {account.name} = next_account_info(accounts_iter)?;")
            if account.is_signer:
                self._emit(f"if !{account.name}.is_signer {{")
                self._emit(f"{INDENT}return Err(ProgramError::MissingRequiredSignature);")
                self._emit("}")
            if account.is_writable:
                self._emit(f"if !{account.name}.is_writable {{")
                self._emit(f"{INDENT}return Err(ProgramError::InvalidAccountData);")
                self._emit("}")

        if instruction.body:
            self._generate_statements(instruction.body.statements)
        self._level -= 1
        self._emit("}")


class _NodeFinder(ASTVisitor):
    """Reports whether a subtree contains a node of the given type."""

    def __init__(self, node_type: type):
        self.node_type = node_type
        self.found = False

    def visit(self, node):
        if isinstance(node, self.node_type):
            self.found = True
            return None
        return super().visit(node)
