"""
So Lang Compiler Main Module
============================

This module provides the main compiler interface for So Lang. It
orchestrates the complete compilation process:

    Source → Lex → Parse → Detect → Select profile → Generate → Text

Usage
-----
Command line:
    $ solang counter.so --anchor

Programmatic:
    >>> from so_lang import compile_so
    >>> print(compile_so('print(42)'))
    #include <stdio.h>
    ...

Compilation Pipeline
--------------------
1. **Lexical Analysis**: Convert source to tokens
2. **Parsing**: Build the AST (with domain declarations when enabled)
3. **Detection**: Classify the unit as generic or domain-flavored
4. **Profile Selection**: Pick C, Rust, Anchor or Native output
5. **Identity**: Resolve a program id for domain units that lack one
6. **Code Generation**: Emit text for the selected profile

Error Handling
--------------
Lexical and syntax errors are collected across a whole phase and raised
together as one SoLangCompilationError before the next phase starts.
Identity resolution failures only produce a warning.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional
import logging

from so_lang.analysis import UnitClassification, detect_domain_program
from so_lang.ast import ProgramNode
from so_lang.codegen import CodeGenerator, GenerationContext
from so_lang.domain_parser import DomainParser
from so_lang.errors import DiagnosticCollector, ProgramIdentityError
from so_lang.keypairs import IdentityResolver, validate_program_id
from so_lang.lexer import Lexer, Token
from so_lang.parser import Parser
from so_lang.profiles import FRAMEWORKS, TARGETS, EmissionProfile, select_profile

logger = logging.getLogger(__name__)


@dataclass
class CompilerOptions:
    """
    Compiler configuration options.

    Attributes:
        target: "c" or "rust"; dialect for generic (non-domain) units
        framework: "anchor" or "native"; dialect for domain units.
                   None means native.
        force_domain: Emit a Solana program even if detection finds no
                      domain declarations
        extensions: Recognize domain keywords and declarations
        max_tokens: Optional limit on tokens per file
        max_errors: Errors recorded before lexing or parsing gives up
        resolve_identity: Ask the identity resolver for a program id when
                          a domain unit declares none
    """
    target: str = "c"
    framework: Optional[str] = None
    force_domain: bool = False
    extensions: bool = True
    max_tokens: Optional[int] = None
    max_errors: int = 100
    resolve_identity: bool = True

    def __post_init__(self):
        if self.target not in TARGETS:
            raise ValueError(f"Unknown target '{self.target}', expected one of {TARGETS}")
        if self.framework is not None and self.framework not in FRAMEWORKS:
            raise ValueError(
                f"Unknown framework '{self.framework}', expected one of {FRAMEWORKS}"
            )


class SoLangCompiler:
    """
    So Lang source-to-source compiler.

    Example:
        compiler = SoLangCompiler(CompilerOptions(framework="anchor"))
        result = compiler.compile_file("vault.so")
        Path(result.default_output).write_text(result.output)

    Attributes:
        options: Compiler configuration options
        resolver: Identity resolver for domain units, or None
    """

    def __init__(
        self,
        options: Optional[CompilerOptions] = None,
        resolver: Optional[IdentityResolver] = None,
    ):
        self.options = options or CompilerOptions()
        self.resolver = resolver

    def compile_source(self, source: str, filename: str = "<input>") -> "CompilerResult":
        """
        Compile So Lang source code.

        Args:
            source: So Lang source code string
            filename: Source filename for error messages

        Returns:
            CompilerResult containing the generated text

        Raises:
            SoLangCompilationError: If lexical or syntax errors were found
        """
        diagnostics = DiagnosticCollector(self.options.max_errors)
        result = CompilerResult(filename=filename)

        # Stage 1: Lexical analysis
        tokens = self._lex(source, filename, diagnostics)
        result.token_count = len(tokens)
        diagnostics.raise_if_errors()

        # Stage 2: Parsing
        tree = self._parse(tokens, filename, source.splitlines(), diagnostics)
        result.ast = tree
        diagnostics.raise_if_errors()

        # Stage 3: Detection and profile selection
        classification = detect_domain_program(tree)
        profile = select_profile(
            classification,
            target=self.options.target,
            framework=self.options.framework,
            force_domain=self.options.force_domain,
        )
        result.classification = classification
        result.profile = profile
        logger.debug(f"Selected {profile.name} profile for {filename}")

        # Stage 4: Program identity
        fallback_name = _program_name_from_filename(filename)
        result.program_name = classification.program_name or fallback_name
        if profile.is_domain:
            result.program_id = self._resolve_program_id(
                classification, result, diagnostics
            )

        # Stage 5: Code generation
        context = GenerationContext(
            profile=profile,
            classification=classification,
            program_id=result.program_id,
            program_name=fallback_name,
        )
        result.output = CodeGenerator(context).generate(tree)
        result.success = True
        result.warnings = list(diagnostics.warnings)
        return result

    def compile_file(self, filepath: str) -> "CompilerResult":
        """
        Compile a So Lang source file.

        Raises:
            SoLangCompilationError: If compilation fails
            FileNotFoundError: If source file not found
        """
        path = Path(filepath)
        if not path.exists():
            raise FileNotFoundError(f"Source file not found: {filepath}")

        source = path.read_text(encoding="utf-8")
        return self.compile_source(source, str(filepath))

    def _lex(self, source: str, filename: str, diagnostics: DiagnosticCollector) -> list[Token]:
        lexer = Lexer(
            source,
            filename,
            extensions=self.options.extensions,
            diagnostics=diagnostics,
            max_tokens=self.options.max_tokens,
        )
        return list(lexer.tokenize())

    def _parse(
        self,
        tokens: list[Token],
        filename: str,
        source_lines: list[str],
        diagnostics: DiagnosticCollector,
    ) -> ProgramNode:
        parser_class = DomainParser if self.options.extensions else Parser
        return parser_class(tokens, filename, source_lines, diagnostics).parse()

    def _resolve_program_id(
        self,
        classification: UnitClassification,
        result: "CompilerResult",
        diagnostics: DiagnosticCollector,
    ) -> Optional[str]:
        """
        Find the id to declare for a domain unit.

        A literal id from the source wins. Otherwise the resolver is
        asked; when it fails the unit is emitted without an id.
        """
        if classification.program_id:
            validate_program_id(classification.program_id)
            return classification.program_id

        if self.resolver is None or not self.options.resolve_identity:
            return None

        try:
            program_id = self.resolver.resolve(result.program_name)
        except ProgramIdentityError as e:
            diagnostics.add_warning(e.message)
            return None

        result.keypair_path = self.resolver.keypair_path(result.program_name)
        return program_id


@dataclass
class CompilerResult:
    """
    Result of a compilation.

    Attributes:
        filename: Source filename
        success: True if compilation succeeded
        output: Generated source text
        ast: Abstract syntax tree
        token_count: Number of tokens lexed, including EOF
        profile: Emission profile used
        classification: Domain detection result
        program_name: Program name for domain units
        program_id: Declared or resolved program id, if any
        keypair_path: Keypair file backing a resolved id
        warnings: Warning messages
    """
    filename: str = ""
    success: bool = False
    output: str = ""
    ast: Optional[ProgramNode] = None
    token_count: int = 0
    profile: Optional[EmissionProfile] = None
    classification: Optional[UnitClassification] = None
    program_name: Optional[str] = None
    program_id: Optional[str] = None
    keypair_path: Optional[Path] = None
    warnings: list = None

    def __post_init__(self):
        if self.warnings is None:
            self.warnings = []

    @property
    def is_domain(self) -> bool:
        return self.profile is not None and self.profile.is_domain

    @property
    def default_output(self) -> str:
        """Default output filename for the selected profile."""
        profile = self.profile or EmissionProfile.C
        return profile.default_output


def _program_name_from_filename(filename: str) -> str:
    """Program name used when the source declares none."""
    if filename.startswith("<"):
        return "program"
    return Path(filename).stem or "program"


# =============================================================================
# Convenience Functions
# =============================================================================

def compile_so(
    source: str,
    filename: str = "<input>",
    target: str = "c",
    framework: Optional[str] = None,
    force_domain: bool = False,
    resolver: Optional[IdentityResolver] = None,
) -> str:
    """
    Compile So Lang source code to target source text.

    Raises:
        SoLangCompilationError: If compilation fails

    Example:
        >>> print(compile_so('let x = 1 + 2', target="rust"))
        fn main() {
            let x = 1 + 2;
        }
    """
    options = CompilerOptions(target=target, framework=framework, force_domain=force_domain)
    result = SoLangCompiler(options, resolver).compile_source(source, filename)
    return result.output


def compile_file(
    filepath: str,
    output_path: Optional[str] = None,
    target: str = "c",
    framework: Optional[str] = None,
    force_domain: bool = False,
    resolver: Optional[IdentityResolver] = None,
) -> str:
    """
    Compile a So Lang source file, optionally writing the output.

    Raises:
        SoLangCompilationError: If compilation fails
        FileNotFoundError: If source file not found
    """
    options = CompilerOptions(target=target, framework=framework, force_domain=force_domain)
    result = SoLangCompiler(options, resolver).compile_file(filepath)

    if output_path:
        Path(output_path).write_text(result.output, encoding="utf-8")

    return result.output
