"""
Domain Detection Pass
=====================

Read-only analysis run between parsing and code generation. It walks the
whole tree once and decides whether the compilation unit is
domain-flavored, i.e. whether it describes a Solana program.

Any domain node anywhere in the tree (program, instruction, account,
state, transfer, require, emit) classifies the whole unit as domain.
The flag is only ever set, never cleared. The first program declaration
met in a depth-first pre-order walk, which is the outermost one,
supplies the unit's program name and declared id.
"""

from dataclasses import dataclass
from typing import Optional
import logging

from so_lang.ast import ASTVisitor, DomainNode, ProgramDecl, ProgramNode

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UnitClassification:
    """
    Result of domain detection for one compilation unit.

    Attributes:
        is_domain: True if any domain node is present
        program_name: Name of the outermost program declaration
        program_id: Literal id declared on that program, if any
    """
    is_domain: bool = False
    program_name: Optional[str] = None
    program_id: Optional[str] = None


class DomainDetector(ASTVisitor):
    """Collects the domain flag and program identity from a tree."""

    def __init__(self):
        self.is_domain = False
        self.program: Optional[ProgramDecl] = None

    def visit(self, node):
        if isinstance(node, DomainNode):
            self.is_domain = True
        return super().visit(node)

    def visit_ProgramDecl(self, node: ProgramDecl):
        if self.program is None:
            self.program = node
        self.generic_visit(node)


def detect_domain_program(tree: ProgramNode) -> UnitClassification:
    """
    Classify a parsed unit as domain-flavored or generic.

    The tree is not modified.
    """
    detector = DomainDetector()
    detector.visit(tree)

    program = detector.program
    classification = UnitClassification(
        is_domain=detector.is_domain,
        program_name=program.name if program else None,
        program_id=program.program_id if program else None,
    )
    logger.debug(f"Unit classification: {classification}")
    return classification
