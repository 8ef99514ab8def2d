"""
So Lang - Source-to-Source Compiler for Solana Programs
=======================================================

So Lang is a small imperative language that compiles to plain C, plain
Rust, or Rust for Solana on-chain programs. Generic code (variables,
printing, conditionals, functions) works in every target; declarative
program/instruction/account/state constructs describe a Solana program
and are lowered either to the Anchor framework or to a native
`entrypoint!` program.

Main Components
---------------
- **lexer**: Tokenizer with generic and domain keyword layers
- **parser / domain_parser**: Recursive descent parsers building the AST
- **analysis**: Detection pass classifying a unit as domain-flavored
- **profiles**: Emission profiles (C, Rust, Anchor, Native)
- **codegen**: Profile-aware code generator
- **keypairs**: Program id resolution through solana-keygen
- **compiler**: The pipeline driver

Quick Start
-----------
Compile from Python:
    >>> from so_lang import compile_so
    >>> print(compile_so('print(42)', target="rust"))
    fn main() {
        println!("{}", 42);
    }

Or use the command-line tool:
    $ solang hello.so                  # C -> output.c
    $ solang hello.so --rust           # Rust -> output.rs
    $ solang counter.so --anchor       # Anchor -> lib.rs
    $ solang counter.so --native-solana  # Native -> program.rs
"""

__version__ = "1.0.0"
__author__ = "So Lang Contributors"

# =============================================================================
# Public API Exports
# =============================================================================

from so_lang.errors import (
    SourceLocation,
    SoLangError,
    SoLangCompilationError,
    SoLangSyntaxError,
    InvalidCharacterError,
    TooManyTokensError,
    UnexpectedTokenError,
    MissingTokenError,
    ProgramIdentityError,
    DiagnosticCollector,
)
from so_lang.lexer import Lexer, Token, TokenType, tokenize
from so_lang.ast import ASTPrinter, ASTVisitor, ProgramNode
from so_lang.parser import Parser, parse_source
from so_lang.domain_parser import DomainParser
from so_lang.analysis import UnitClassification, detect_domain_program
from so_lang.profiles import EmissionProfile, select_profile
from so_lang.codegen import CodeGenerator, GenerationContext
from so_lang.keypairs import (
    IdentityResolver,
    KeygenIdentityResolver,
    StaticIdentityResolver,
    validate_program_id,
)
from so_lang.compiler import (
    CompilerOptions,
    CompilerResult,
    SoLangCompiler,
    compile_file,
    compile_so,
)

__all__ = [
    # Version info
    "__version__",
    "__author__",
    # Errors
    "SourceLocation",
    "SoLangError",
    "SoLangCompilationError",
    "SoLangSyntaxError",
    "InvalidCharacterError",
    "TooManyTokensError",
    "UnexpectedTokenError",
    "MissingTokenError",
    "ProgramIdentityError",
    "DiagnosticCollector",
    # Front end
    "Lexer",
    "Token",
    "TokenType",
    "tokenize",
    "ASTPrinter",
    "ASTVisitor",
    "ProgramNode",
    "Parser",
    "DomainParser",
    "parse_source",
    # Analysis and generation
    "UnitClassification",
    "detect_domain_program",
    "EmissionProfile",
    "select_profile",
    "CodeGenerator",
    "GenerationContext",
    # Program identity
    "IdentityResolver",
    "KeygenIdentityResolver",
    "StaticIdentityResolver",
    "validate_program_id",
    # Compiler
    "CompilerOptions",
    "CompilerResult",
    "SoLangCompiler",
    "compile_file",
    "compile_so",
]
