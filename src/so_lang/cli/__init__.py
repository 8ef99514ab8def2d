"""
So Lang Command-Line Interface
==============================

- **solang**: compile a So Lang source file to C, Rust, Anchor or
  native Solana Rust

The tool is a Click application with built-in help and consistent exit
codes (see so_lang.cli.errors).
"""

__all__ = ["solang"]
