"""
So Lang Abstract Syntax Tree (AST) Definitions
==============================================

This module defines the AST node types produced by the So Lang parsers.

Node Hierarchy
--------------
ASTNode (base)
├── ProgramNode - root node holding the top-level statements
├── Statements
│   ├── Block - brace-enclosed statement list
│   ├── VarDecl - let NAME = expr
│   ├── FuncDecl - fn NAME() { ... }
│   ├── IfStatement - if/else, else-if chains nest in else_branch
│   ├── ReturnStatement - return with optional value
│   ├── PrintStatement - print(expr)
│   └── ExpressionStatement - expression used as a statement
├── Expressions
│   ├── BinaryExpression - exactly one operator and two primaries
│   ├── Identifier
│   ├── NumberLiteral - numeric text kept verbatim
│   ├── StringLiteral - decoded string contents
│   └── FuncCall - call with its arguments discarded
└── Domain Declarations
    ├── ProgramDecl - program NAME ("ID")? { ... }
    ├── InstructionDecl - instruction NAME(...) { ... }
    ├── AccountDecl - account NAME(constraints) : TYPE
    ├── StateDecl - state NAME { field: TYPE ... }
    ├── TransferStatement - transfer(from, to, amount)
    ├── RequireStatement - require(cond, "message")
    └── EmitStatement - emit NAME(...)

Every node kind carries only the fields it needs. Optional children are
None (or an empty list) when absent, and partially parsed trees from
erroneous input may hold None where an expression was expected.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Optional, Union

from so_lang.errors import SourceLocation


# =============================================================================
# AST Node Base Classes
# =============================================================================

@dataclass
class ASTNode:
    """
    Base class for all AST nodes.

    Attributes:
        location: Source location where this node starts
    """
    location: SourceLocation


@dataclass
class Expression(ASTNode):
    """Base class for nodes that produce a value."""
    pass


@dataclass
class Statement(ASTNode):
    """Base class for nodes that perform an action."""
    pass


@dataclass
class DomainNode(Statement):
    """
    Base class for domain declarations and statements.

    The presence of any DomainNode in a tree makes the whole compilation
    unit domain-flavored.
    """
    pass


# =============================================================================
# Program Root Node
# =============================================================================

@dataclass
class ProgramNode(ASTNode):
    """
    Root node of the AST.

    Attributes:
        statements: Top-level statements in source order
    """
    statements: list[Statement] = field(default_factory=list)


# =============================================================================
# Statement Nodes
# =============================================================================

@dataclass
class Block(Statement):
    """Brace-enclosed list of statements."""
    statements: list[Statement] = field(default_factory=list)


@dataclass
class VarDecl(Statement):
    """
    Variable declaration (let NAME = expr).

    Attributes:
        name: Variable name
        initializer: Initial value, None when omitted
    """
    name: str = ""
    initializer: Optional[Expression] = None


@dataclass
class FuncDecl(Statement):
    """
    Function declaration.

    Parameters are not part of the language; the body is always a Block.
    """
    name: str = ""
    body: Block = None


@dataclass
class IfStatement(Statement):
    """
    If statement with optional else.

    Attributes:
        condition: Condition expression
        then_branch: Block executed when the condition holds
        else_branch: Block, a nested IfStatement for else-if, or None
    """
    condition: Optional[Expression] = None
    then_branch: Block = None
    else_branch: Optional[Union[Block, "IfStatement"]] = None


@dataclass
class ReturnStatement(Statement):
    """Return statement with an optional value."""
    value: Optional[Expression] = None


@dataclass
class PrintStatement(Statement):
    """print(expr)."""
    value: Optional[Expression] = None


@dataclass
class ExpressionStatement(Statement):
    """Expression evaluated for its effect."""
    expression: Optional[Expression] = None


# =============================================================================
# Expression Nodes
# =============================================================================

class BinaryOperator(Enum):
    """Binary operators supported by the one-level expression grammar."""
    ADD = auto()        # +
    SUBTRACT = auto()   # -
    MULTIPLY = auto()   # *
    DIVIDE = auto()     # /
    EQUAL = auto()      # ==
    LESS = auto()       # <
    GREATER = auto()    # >

    @property
    def symbol(self) -> str:
        """Source spelling of the operator."""
        return BINARY_OPERATOR_SYMBOLS[self]


BINARY_OPERATOR_SYMBOLS: dict[BinaryOperator, str] = {
    BinaryOperator.ADD: "+",
    BinaryOperator.SUBTRACT: "-",
    BinaryOperator.MULTIPLY: "*",
    BinaryOperator.DIVIDE: "/",
    BinaryOperator.EQUAL: "==",
    BinaryOperator.LESS: "<",
    BinaryOperator.GREATER: ">",
}


@dataclass
class BinaryExpression(Expression):
    """
    Binary operation (left op right).

    Operands are primaries, or parenthesized expressions, since the
    grammar has no precedence or chaining.
    """
    operator: BinaryOperator = None
    left: Optional[Expression] = None
    right: Optional[Expression] = None


@dataclass
class Identifier(Expression):
    """Reference to a name."""
    name: str = ""


@dataclass
class NumberLiteral(Expression):
    """
    Numeric literal.

    The text is kept verbatim (e.g. "42" or "3.5") so emitted code spells
    the number exactly as written.
    """
    text: str = "0"


@dataclass
class StringLiteral(Expression):
    """String literal holding the decoded contents."""
    value: str = ""


@dataclass
class FuncCall(Expression):
    """Function call. Arguments are discarded by the parser."""
    name: str = ""


# =============================================================================
# Domain Declaration Nodes
# =============================================================================

@dataclass
class ProgramDecl(DomainNode):
    """
    program NAME ("ID")? { ... }

    Attributes:
        name: Program name, used for the module and the keypair file
        program_id: Literal base58 id if one was declared in source
        body: Declarations and statements inside the program
    """
    name: str = ""
    program_id: Optional[str] = None
    body: list[Statement] = field(default_factory=list)


@dataclass
class InstructionDecl(DomainNode):
    """instruction NAME(...) { body }. Parameters are not captured."""
    name: str = ""
    body: Block = None


@dataclass
class AccountDecl(DomainNode):
    """
    account NAME(constraints) : TYPE

    Attributes:
        name: Account name
        is_signer: 'signer' constraint present
        is_writable: 'writable' constraint present
        is_init: 'init' constraint present
        seeds: PDA seed expressions from seeds(...)
        bump: Explicit bump from 'bump = N', None when absent
        has_bump: 'bump' constraint present
        account_type: Declared type name (e.g. 'pubkey' or a state name)
    """
    name: str = ""
    is_signer: bool = False
    is_writable: bool = False
    is_init: bool = False
    seeds: list[Expression] = field(default_factory=list)
    bump: Optional[int] = None
    has_bump: bool = False
    account_type: Optional[str] = None


@dataclass
class StateField(ASTNode):
    """One 'name: type' entry of a state declaration."""
    name: str = ""
    field_type: str = ""


@dataclass
class StateDecl(DomainNode):
    """state NAME { field: TYPE ... }"""
    name: str = ""
    fields: list[StateField] = field(default_factory=list)


@dataclass
class TransferStatement(DomainNode):
    """transfer(source, destination, amount?)"""
    source: Optional[Expression] = None
    destination: Optional[Expression] = None
    amount: Optional[Expression] = None


@dataclass
class RequireStatement(DomainNode):
    """require(condition, "message"?)"""
    condition: Optional[Expression] = None
    message: Optional[str] = None


@dataclass
class EmitStatement(DomainNode):
    """emit NAME(...). Arguments are not captured."""
    event_name: str = ""


# =============================================================================
# AST Visitor Pattern
# =============================================================================

class ASTVisitor:
    """
    Base class for AST visitors.

    Subclasses override visit_<ClassName> methods for the node types they
    care about; everything else walks its children.

    Usage:
        class InstructionCounter(ASTVisitor):
            def __init__(self):
                self.count = 0

            def visit_InstructionDecl(self, node):
                self.count += 1
                self.generic_visit(node)
    """

    def visit(self, node: ASTNode):
        """Dispatch to visit_<ClassName>, falling back to generic_visit."""
        method_name = f"visit_{node.__class__.__name__}"
        visitor = getattr(self, method_name, self.generic_visit)
        return visitor(node)

    def generic_visit(self, node: ASTNode) -> None:
        """Visit all child nodes in field order."""
        for field_value in node.__dict__.values():
            if isinstance(field_value, ASTNode):
                self.visit(field_value)
            elif isinstance(field_value, list):
                for item in field_value:
                    if isinstance(item, ASTNode):
                        self.visit(item)


# =============================================================================
# AST Pretty Printer
# =============================================================================

def expression_text(expr: Optional[Expression]) -> str:
    """
    Render an expression back to So Lang source form.

    Nested binary operands are parenthesized so the parsed grouping stays
    visible; a call is shown without its (discarded) arguments.
    """
    if expr is None:
        return ""
    if isinstance(expr, NumberLiteral):
        return expr.text
    if isinstance(expr, StringLiteral):
        return f'"{escape_string(expr.value)}"'
    if isinstance(expr, Identifier):
        return expr.name
    if isinstance(expr, FuncCall):
        return f"{expr.name}()"
    if isinstance(expr, BinaryExpression):
        return (
            f"{_operand_text(expr.left)} {expr.operator.symbol} "
            f"{_operand_text(expr.right)}"
        )
    return f"<{expr.__class__.__name__}>"


def _operand_text(expr: Optional[Expression]) -> str:
    if isinstance(expr, BinaryExpression):
        return f"({expression_text(expr)})"
    return expression_text(expr)


def escape_string(value: str) -> str:
    """Escape decoded string contents for a double-quoted literal."""
    return (
        value.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\t", "\\t")
        .replace("\r", "\\r")
    )


class ASTPrinter(ASTVisitor):
    """
    Pretty printer for AST debugging (solang --ast).

    Usage:
        printer = ASTPrinter()
        print(printer.print(tree))
    """

    def __init__(self):
        self.output: list[str] = []
        self.indent_level = 0

    def print(self, node: ASTNode) -> str:
        """Print the AST and return as string."""
        self.output = []
        self.indent_level = 0
        self.visit(node)
        return "\n".join(self.output)

    def _emit(self, text: str) -> None:
        indent = "  " * self.indent_level
        self.output.append(f"{indent}{text}")

    def _children(self, label: str, statements: list) -> None:
        self._emit(label)
        self.indent_level += 1
        for stmt in statements:
            self.visit(stmt)
        self.indent_level -= 1

    def visit_ProgramNode(self, node: ProgramNode):
        self._children("Program", node.statements)

    def visit_Block(self, node: Block):
        self._children("Block", node.statements)

    def visit_VarDecl(self, node: VarDecl):
        init = f" = {expression_text(node.initializer)}" if node.initializer else ""
        self._emit(f"Let: {node.name}{init}")

    def visit_FuncDecl(self, node: FuncDecl):
        self._emit(f"Function: {node.name}")
        if node.body:
            self.indent_level += 1
            self.visit(node.body)
            self.indent_level -= 1

    def visit_IfStatement(self, node: IfStatement):
        self._emit(f"If ({expression_text(node.condition)})")
        self.indent_level += 1
        if node.then_branch:
            self.visit(node.then_branch)
        if node.else_branch:
            self._emit("Else:")
            self.indent_level += 1
            self.visit(node.else_branch)
            self.indent_level -= 1
        self.indent_level -= 1

    def visit_ReturnStatement(self, node: ReturnStatement):
        if node.value:
            self._emit(f"Return {expression_text(node.value)}")
        else:
            self._emit("Return")

    def visit_PrintStatement(self, node: PrintStatement):
        self._emit(f"Print: {expression_text(node.value)}")

    def visit_ExpressionStatement(self, node: ExpressionStatement):
        self._emit(f"Expr: {expression_text(node.expression)}")

    def visit_ProgramDecl(self, node: ProgramDecl):
        program_id = f" [{node.program_id}]" if node.program_id else ""
        self._children(f"ProgramDecl: {node.name}{program_id}", node.body)

    def visit_InstructionDecl(self, node: InstructionDecl):
        self._emit(f"Instruction: {node.name}")
        if node.body:
            self.indent_level += 1
            self.visit(node.body)
            self.indent_level -= 1

    def visit_AccountDecl(self, node: AccountDecl):
        flags = [
            name for name, present in (
                ("signer", node.is_signer),
                ("writable", node.is_writable),
                ("init", node.is_init),
                ("bump", node.has_bump),
            ) if present
        ]
        if node.seeds:
            flags.append("seeds(" + ", ".join(expression_text(s) for s in node.seeds) + ")")
        account_type = f": {node.account_type}" if node.account_type else ""
        self._emit(f"Account: {node.name}({', '.join(flags)}){account_type}")

    def visit_StateDecl(self, node: StateDecl):
        self._emit(f"State: {node.name}")
        self.indent_level += 1
        for state_field in node.fields:
            self._emit(f"{state_field.name}: {state_field.field_type}")
        self.indent_level -= 1

    def visit_TransferStatement(self, node: TransferStatement):
        args = [expression_text(a) for a in (node.source, node.destination, node.amount) if a]
        self._emit(f"Transfer({', '.join(args)})")

    def visit_RequireStatement(self, node: RequireStatement):
        message = f', "{escape_string(node.message)}"' if node.message is not None else ""
        self._emit(f"Require({expression_text(node.condition)}{message})")

    def visit_EmitStatement(self, node: EmitStatement):
        self._emit(f"Emit: {node.event_name}")
