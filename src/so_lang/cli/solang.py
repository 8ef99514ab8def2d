"""
solang - So Lang Compiler Command-Line Interface
================================================

This module implements the command-line interface for the So Lang
compiler.

Usage Examples
--------------
Compile to C (output.c):
    $ solang hello.so

Compile to Rust (output.rs):
    $ solang hello.so --rust

Compile a Solana program with Anchor (lib.rs):
    $ solang counter.so --anchor

Compile a native Solana program (program.rs):
    $ solang counter.so --native-solana

Custom output file:
    $ solang hello.so --rust -o hello.rs
"""

from pathlib import Path
from typing import Optional
import logging

import click

from so_lang import __version__
from so_lang.cli.errors import handle_cli_exception
from so_lang.compiler import CompilerOptions, CompilerResult, SoLangCompiler
from so_lang.errors import DiagnosticCollector
from so_lang.keypairs import DEFAULT_KEYPAIR_DIR, KeygenIdentityResolver
from so_lang.profiles import EmissionProfile


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument(
    "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output file (default: output.c, output.rs, lib.rs or program.rs)",
)
@click.option(
    "--rust",
    is_flag=True,
    help="Generate Rust instead of C",
)
@click.option(
    "--solana",
    is_flag=True,
    help="Compile as a Solana program even without domain declarations",
)
@click.option(
    "--anchor",
    is_flag=True,
    help="Compile as a Solana program using the Anchor framework",
)
@click.option(
    "--native-solana",
    is_flag=True,
    help="Compile as a native Solana program (entrypoint!)",
)
@click.option(
    "--ast",
    is_flag=True,
    help="Print AST and exit (for debugging)",
)
@click.option(
    "--tokens",
    "show_tokens",
    is_flag=True,
    help="Print the token stream and exit (for debugging)",
)
@click.option(
    "--no-keygen",
    is_flag=True,
    help="Do not run solana-keygen to create a program id",
)
@click.option(
    "--keypair-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=DEFAULT_KEYPAIR_DIR,
    show_default=True,
    help="Directory for cached program keypairs",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="solang")
def main(
    input_file: Path,
    output: Optional[Path],
    rust: bool,
    solana: bool,
    anchor: bool,
    native_solana: bool,
    ast: bool,
    show_tokens: bool,
    no_keygen: bool,
    keypair_dir: Path,
    verbose: bool,
) -> None:
    """
    Compile So Lang source code to C, Rust or Solana Rust.

    INPUT_FILE is the So Lang source file (.so) to compile.

    Programs containing program/instruction/account declarations are
    detected automatically and compiled as native Solana programs
    unless --anchor is given.

    \b
    Examples:
        solang hello.so                   # Outputs output.c
        solang hello.so --rust            # Outputs output.rs
        solang counter.so --anchor        # Outputs lib.rs
        solang counter.so --native-solana # Outputs program.rs
        solang hello.so -o hello.c        # Specify output file
    """
    if anchor and native_solana:
        raise click.UsageError("--anchor and --native-solana cannot be combined")

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )

    force_domain = solana or anchor or native_solana
    framework = "anchor" if anchor else ("native" if native_solana else None)

    options = CompilerOptions(
        target="rust" if (rust or force_domain) else "c",
        framework=framework,
        force_domain=force_domain,
        resolve_identity=not no_keygen,
    )
    resolver = KeygenIdentityResolver(keypair_dir)

    try:
        click.echo(f"So Lang Compiler v{__version__}")
        click.echo(f"Compiling: {input_file}")

        if show_tokens:
            from so_lang.lexer import tokenize
            source = input_file.read_text(encoding="utf-8")
            diagnostics = DiagnosticCollector()
            for token in tokenize(source, str(input_file), diagnostics=diagnostics):
                click.echo(repr(token))
            diagnostics.raise_if_errors()
            return

        if ast:
            from so_lang.ast import ASTPrinter
            from so_lang.parser import parse_source
            source = input_file.read_text(encoding="utf-8")
            click.echo(ASTPrinter().print(parse_source(source, str(input_file))))
            return

        compiler = SoLangCompiler(options, resolver)
        result = compiler.compile_file(str(input_file))

        click.echo(f"✓ Lexical analysis complete ({result.token_count} tokens)")
        if result.is_domain:
            click.echo("✓ Detected Solana program")
            click.echo(f"  Program name: {result.program_name}")
        click.echo("✓ Syntax analysis complete")

        if output is None:
            output = Path(result.default_output)
        output.write_text(result.output, encoding="utf-8")

        click.echo("✓ Code generation complete")
        click.echo(f"Generated: {output}")

        for warning in result.warnings:
            click.echo(warning, err=True)

        _print_next_steps(result, output)

    except Exception as e:
        handle_cli_exception(e, verbose=verbose, error_type="Compilation")


def _print_next_steps(result: CompilerResult, output: Path) -> None:
    """Print program details and build instructions for the output."""
    profile = result.profile

    if not profile.is_domain:
        compiler = "rustc" if profile is EmissionProfile.RUST else "gcc"
        click.echo(f"To build: {compiler} {output} -o program")
        return

    click.echo("")
    click.echo("Solana Program Details:")
    if result.program_id:
        click.echo(f"  Program ID: {result.program_id}")
    click.echo(f"  Framework: {profile.framework_name}")
    if result.keypair_path:
        click.echo(f"  Keypair: {result.keypair_path}")

    click.echo("")
    click.echo("Next steps:")
    if profile is EmissionProfile.ANCHOR:
        click.echo("  1. Create Anchor project: anchor init my_project")
        click.echo("  2. Replace programs/my_project/src/lib.rs with generated code")
        click.echo("  3. Build: anchor build")
        click.echo("  4. Deploy: anchor deploy")
    else:
        click.echo("  1. Create Cargo project with solana-program dependency")
        click.echo("  2. Build: cargo build-bpf")
        click.echo("  3. Deploy: solana program deploy target/deploy/program.so")


if __name__ == "__main__":
    main()
