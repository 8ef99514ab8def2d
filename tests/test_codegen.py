"""
So Lang Code Generator Test Suite
=================================

Tests for source generation in every emission profile.

Test Organization
-----------------
- TestCProfile: plain C output
- TestRustProfile: plain Rust output
- TestAnchorProfile: Anchor programs and account contexts
- TestNativeProfile: native entrypoint programs
- TestCrossProfile: properties shared between profiles
- TestNamingHelpers: module, struct and type naming
"""

import re

import pytest
from so_lang.compiler import compile_so
from so_lang.parser import parse_source
from so_lang.analysis import UnitClassification
from so_lang.profiles import EmissionProfile
from so_lang.codegen import (
    CodeGenerator,
    GenerationContext,
    context_struct_name,
    rust_field_type,
    rust_module_name,
    to_pascal_case,
    to_snake_case,
)


PROGRAM_ID = "7xKXtg2CW87d97TXJSDpbD5jBkheTqA83TZRuJosgAsU"

SIGNER_PROGRAM = """
program Vault {
    account user(signer, writable)
    instruction deposit() {
        print(1)
    }
}
"""

REQUIRE_PROGRAM = """
program Guard {
    instruction check() {
        require(x < 10, "too big")
    }
}
"""


def anchor(source: str) -> str:
    return compile_so(source, "test.so", framework="anchor")


def native(source: str) -> str:
    return compile_so(source, "test.so", framework="native")


# =============================================================================
# C Profile Tests
# =============================================================================

class TestCProfile:
    """Tests for plain C output."""

    def test_print_number(self):
        assert compile_so("print(42)") == (
            "#include <stdio.h>\n"
            "#include <stdlib.h>\n"
            "#include <string.h>\n"
            "\n"
            "int main() {\n"
            '    printf("%d\\n", 42);\n'
            "    return 0;\n"
            "}\n"
        )

    def test_empty_source(self):
        output = compile_so("")
        assert "int main() {\n    return 0;\n}\n" in output

    def test_let_without_initializer(self):
        assert "    int x = 0;" in compile_so("let x")

    def test_string_variables(self):
        output = compile_so('let s = "hi"\nprint(s)\nprint("lit")')
        assert '    char *s = "hi";' in output
        assert '    printf("%s\\n", s);' in output
        assert '    printf("%s\\n", "lit");' in output

    def test_if_else_chain(self):
        source = "if x > 1 {\n print(1)\n} else if x < 0 {\n print(2)\n} else {\n print(3)\n}"
        output = compile_so(source)
        assert (
            "    if (x > 1) {\n"
            '        printf("%d\\n", 1);\n'
            "    } else if (x < 0) {\n"
            '        printf("%d\\n", 2);\n'
            "    } else {\n"
            '        printf("%d\\n", 3);\n'
            "    }\n"
        ) in output

    def test_functions_hoisted(self):
        output = compile_so("fn add() {\n return 1 + 2\n}\nprint(add())")
        assert output == (
            "#include <stdio.h>\n"
            "#include <stdlib.h>\n"
            "#include <string.h>\n"
            "\n"
            "int add() {\n"
            "    return 1 + 2;\n"
            "    return 0;\n"
            "}\n"
            "\n"
            "int main() {\n"
            '    printf("%d\\n", add());\n'
            "    return 0;\n"
            "}\n"
        )

    def test_return_keeps_value_in_main(self):
        assert "    return 5;" in compile_so("return 5")

    def test_domain_nodes_emit_nothing(self):
        tree = parse_source('require(x > 1)\ntransfer(a, b, 1)\nemit Done\nprint(1)')
        output = CodeGenerator(GenerationContext(EmissionProfile.C)).generate(tree)
        assert "require" not in output
        assert "transfer" not in output
        assert "Done" not in output
        assert 'printf("%d\\n", 1);' in output


# =============================================================================
# Rust Profile Tests
# =============================================================================

class TestRustProfile:
    """Tests for plain Rust output."""

    def test_print_number(self):
        assert compile_so("print(42)", target="rust") == (
            "fn main() {\n"
            '    println!("{}", 42);\n'
            "}\n"
        )

    def test_let(self):
        assert "    let x = 1 + 2;" in compile_so("let x = 1 + 2", target="rust")

    def test_if_has_no_parentheses(self):
        output = compile_so("if x == 1 { print(x) }", target="rust")
        assert "    if x == 1 {" in output

    def test_functions_hoisted(self):
        output = compile_so("fn add() {\n return 1 + 2\n}\nprint(add())", target="rust")
        assert output == (
            "fn add() -> i32 {\n"
            "    return 1 + 2;\n"
            "    0\n"
            "}\n"
            "\n"
            "fn main() {\n"
            '    println!("{}", add());\n'
            "}\n"
        )

    def test_return_in_main_drops_value(self):
        assert "    return;" in compile_so("return 5", target="rust")

    def test_return_in_function_keeps_value(self):
        output = compile_so("fn f() { return 5 }", target="rust")
        assert "    return 5;" in output

    def test_domain_nodes_emit_nothing(self):
        tree = parse_source("emit Done\nlet y = 2")
        output = CodeGenerator(GenerationContext(EmissionProfile.RUST)).generate(tree)
        assert output == "fn main() {\n    let y = 2;\n}\n"


# =============================================================================
# Anchor Profile Tests
# =============================================================================

class TestAnchorProfile:
    """Tests for Anchor program output."""

    def test_empty_program_shell(self):
        output = anchor("program Foo {}")
        assert "use anchor_lang::prelude::*;" in output
        assert "#[program]\npub mod foo {\n    use super::*;\n}\n" in output
        assert "#[derive(Accounts)]" not in output
        assert "pub fn" not in output
        assert "pub enum ErrorCode {" in output

    def test_single_accounts_struct(self):
        output = anchor(SIGNER_PROGRAM)
        assert output.count("#[derive(Accounts)]") == 1
        assert "pub struct DepositContext<'info> {" in output
        assert "    #[account(signer, mut)]\n" in output
        assert "    pub user: AccountInfo<'info>," in output

    def test_instruction_function(self):
        output = anchor(SIGNER_PROGRAM)
        assert (
            "    pub fn deposit(ctx: Context<DepositContext>) -> Result<()> {\n"
            '        msg!("{}", 1);\n'
            "        Ok(())\n"
            "    }\n"
        ) in output

    def test_module_name_snake_case(self):
        assert "pub mod my_vault {" in anchor("program MyVault {}")

    @pytest.mark.parametrize("name,module", [
        ("Match", "match_program"),
        ("Type", "type_program"),
        ("SelfCheck", "self_check"),
    ])
    def test_module_name_avoids_rust_keywords(self, name, module):
        assert f"pub mod {module} {{" in anchor(f"program {name} {{}}")

    def test_declared_id(self):
        output = anchor(f'program Foo("{PROGRAM_ID}") {{}}')
        assert f'declare_id!("{PROGRAM_ID}");' in output
        assert output.index("declare_id!") < output.index("#[program]")

    def test_no_id_without_declaration(self):
        assert "declare_id" not in anchor("program Foo {}")

    def test_init_account_with_state(self):
        source = """
program Counter {
    state CounterState {
        count: u64
        authority: pubkey
    }
    instruction initialize() {
        account counter(init, seeds("counter", user), bump): CounterState
        account user(signer, writable)
    }
}
"""
        output = anchor(source)
        assert (
            '#[account(init, payer = user, space = 8 + 40, '
            'seeds = [b"counter", user.key().as_ref()], bump)]'
        ) in output
        assert "pub counter: Account<'info, CounterState>," in output
        assert "pub system_program: Program<'info, System>," in output
        assert "pub payer: Signer<'info>," not in output
        assert (
            "#[account]\n"
            "#[derive(Clone, Debug, PartialEq)]\n"
            "pub struct CounterState {\n"
            "    pub count: u64,\n"
            "    pub authority: Pubkey,\n"
            "}\n"
        ) in output

    def test_init_without_signer_adds_payer(self):
        output = anchor("program P {\n instruction make() {\n  account data(init)\n }\n}")
        assert "#[account(init, payer = payer, space = 8 + 32)]" in output
        assert "    #[account(mut)]\n    pub payer: Signer<'info>," in output

    def test_explicit_bump(self):
        output = anchor("program P {\n account pda(seeds(\"x\"), bump = 254)\n instruction a() {}\n}")
        assert '#[account(seeds = [b"x"], bump = 254)]' in output

    def test_transfer_cpi(self):
        source = """
program Vault {
    account vault(writable)
    account user(signer)
    instruction withdraw() {
        transfer(vault, user, 100)
    }
}
"""
        output = anchor(source)
        assert "token::transfer(" in output
        assert "from: ctx.accounts.vault.to_account_info()," in output
        assert "to: ctx.accounts.user.to_account_info()," in output
        assert "authority: ctx.accounts.user.to_account_info()," in output
        assert "100," in output
        assert "pub token_program: Program<'info, Token>," in output
        assert "pub authority: Signer<'info>," not in output

    def test_transfer_without_signer_adds_authority(self):
        source = """
program Vault {
    account vault(writable)
    account user(writable)
    instruction withdraw() {
        transfer(vault, user, 100)
    }
}
"""
        output = anchor(source)
        assert "authority: ctx.accounts.authority.to_account_info()," in output
        assert (
            "    pub authority: Signer<'info>,\n"
            "    pub token_program: Program<'info, Token>,\n"
        ) in output

    def test_no_token_program_without_transfer(self):
        assert "token_program" not in anchor(SIGNER_PROGRAM)

    def test_emit_event(self):
        output = anchor("program P {\n instruction a() {\n  emit Deposited(1)\n }\n}")
        assert "emit!(Deposited {});" in output
        assert "#[event]\npub struct Deposited {}\n" in output

    def test_require_message(self):
        output = anchor(REQUIRE_PROGRAM)
        assert "require!(x < 10, ErrorCode::CustomError);" in output
        assert '#[msg("too big")]' in output

    def test_default_error_message(self):
        assert '#[msg("Custom error message")]' in anchor("program Foo {}")

    def test_return_is_ok(self):
        output = anchor("program P {\n instruction a() {\n  return\n }\n}")
        assert "return Ok(());" in output

    def test_loose_statements_warned(self, caplog):
        with caplog.at_level("WARNING"):
            output = anchor("program P {\n let x = 1\n}")
        assert "let x" not in output
        assert any("no Anchor lowering" in r.message for r in caplog.records)


# =============================================================================
# Native Profile Tests
# =============================================================================

class TestNativeProfile:
    """Tests for native Solana program output."""

    def test_empty_program_shell(self):
        output = native("program Foo {}")
        assert "entrypoint!(process_instruction);" in output
        assert "match opcode" not in output
        assert output.endswith(
            "pub fn process_instruction(program_id: &Pubkey, accounts: &[AccountInfo], "
            "instruction_data: &[u8]) -> ProgramResult {\n"
            "    Ok(())\n"
            "}\n"
        )

    def test_detected_domain_defaults_to_native(self):
        output = compile_so("program Foo {}")
        assert "entrypoint!(process_instruction);" in output

    def test_declared_id(self):
        output = native(f'program Foo("{PROGRAM_ID}") {{}}')
        assert f'solana_program::declare_id!("{PROGRAM_ID}");' in output
        assert output.index("entrypoint!") < output.index("declare_id!")

    def test_opcodes_follow_declaration_order(self):
        source = """
program P {
    account payer(signer)
    instruction first() {
        print(1)
    }
    instruction second() {
        account target(writable)
        emit Done
    }
}
"""
        output = native(source)
        assert (
            "    let opcode = *instruction_data\n"
            "        .first()\n"
            "        .ok_or(ProgramError::InvalidInstructionData)?;\n"
            "    match opcode {\n"
            "        0 => {\n"
            '            msg!("Executing first");\n'
            "            let accounts_iter = &mut accounts.iter();\n"
            "            let payer = next_account_info(accounts_iter)?;\n"
            "            if !payer.is_signer {\n"
            "                return Err(ProgramError::MissingRequiredSignature);\n"
            "            }\n"
            '            msg!("Debug: 1");\n'
            "        }\n"
            "        1 => {\n"
            '            msg!("Executing second");\n'
        ) in output
        assert "            let target = next_account_info(accounts_iter)?;" in output
        assert "            if !target.is_writable {" in output
        assert '            msg!("Event: Done");' in output
        assert "        _ => return Err(ProgramError::InvalidInstructionData),\n    }\n    Ok(())\n}\n" in output

    def test_transfer(self):
        source = "program V {\n account a(signer, writable)\n account b(writable)\n instruction pay() {\n  transfer(a, b, amount)\n }\n}"
        output = native(source)
        assert "let instruction = system_instruction::transfer(" in output
        assert "a.key," in output
        assert "invoke(&instruction, &[a.clone(), b.clone()])?;" in output

    def test_print_placeholder(self):
        output = native('program P {\n instruction a() {\n  print(x + 1)\n  print("hi")\n }\n}')
        assert 'msg!("Debug: x + 1");' in output
        assert 'msg!("Debug: hi");' in output

    def test_state_struct(self):
        output = native("state Data { value: u64 }\nprogram P {}")
        assert "#[derive(Clone, Debug, PartialEq)]\npub struct Data {\n    pub value: u64,\n}\n" in output
        assert "#[account]" not in output

    def test_loose_statements_before_dispatch(self):
        output = compile_so("let x = 1\nprint(x)", "hello.so", force_domain=True)
        assert "    let x = 1;\n" in output
        assert '    msg!("Debug: x");\n' in output
        assert "match opcode" not in output

    def test_require(self):
        output = native(REQUIRE_PROGRAM)
        assert (
            "            if !(x < 10) {\n"
            "                return Err(ProgramError::InvalidArgument);\n"
            "            }\n"
        ) in output


# =============================================================================
# Cross-Profile Tests
# =============================================================================

class TestCrossProfile:
    """Properties that hold across profiles."""

    @pytest.mark.parametrize("expr", [
        "1 + 2",
        "a - b",
        "x * 3",
        "10 / 2",
        "a == b",
        "a < b",
        "a > 1.5",
        "f() + 1",
        "(a + b) * c",
    ])
    def test_let_expression_verbatim(self, expr):
        source = f"let x = {expr}"
        assert f"    int x = {expr};" in compile_so(source)
        assert f"    let x = {expr};" in compile_so(source, target="rust")

    def test_require_condition_text_shared(self):
        native_condition = re.search(r"if !\((.*)\) \{", native(REQUIRE_PROGRAM)).group(1)
        anchor_condition = re.search(r"require!\((.*), ErrorCode", anchor(REQUIRE_PROGRAM)).group(1)
        assert native_condition == anchor_condition == "x < 10"

    def test_generic_source_never_domain(self):
        source = "let total = 1 + 2\nfn f() { return total }\nprint(total)"
        for target in ("c", "rust"):
            for framework in (None, "anchor", "native"):
                output = compile_so(source, target=target, framework=framework)
                assert "entrypoint!" not in output
                assert "#[program]" not in output

    def test_output_ends_with_newline(self):
        for framework in ("anchor", "native"):
            assert compile_so("program Foo {}", framework=framework).endswith("}\n")

    def test_context_flag_reset_after_generation(self):
        context = GenerationContext(EmissionProfile.RUST)
        CodeGenerator(context).generate(parse_source("fn f() { return 1 }"))
        assert context.in_function is False


# =============================================================================
# Naming Helper Tests
# =============================================================================

class TestNamingHelpers:
    """Tests for generated names."""

    @pytest.mark.parametrize("name,expected", [
        ("Foo", "foo"),
        ("MyVault", "my_vault"),
        ("myVault", "my_vault"),
        ("token_swap", "token_swap"),
    ])
    def test_snake_case(self, name, expected):
        assert to_snake_case(name) == expected

    def test_rust_module_name(self):
        assert rust_module_name("Vault") == "vault"
        assert rust_module_name("Match") == "match_program"
        assert rust_module_name("Crate") == "crate_program"

    def test_pascal_case(self):
        assert to_pascal_case("transfer_funds") == "TransferFunds"
        assert to_pascal_case("deposit") == "Deposit"

    def test_context_struct_name(self):
        assert context_struct_name("withdraw_all") == "WithdrawAllContext"

    def test_rust_field_type(self):
        assert rust_field_type("pubkey") == "Pubkey"
        assert rust_field_type("u64") == "u64"
        assert rust_field_type("Custom") == "Custom"

    def test_program_name_fallback(self):
        context = GenerationContext(EmissionProfile.ANCHOR, program_name="hello")
        assert context.effective_program_name == "hello"
        named = GenerationContext(
            EmissionProfile.ANCHOR,
            UnitClassification(is_domain=True, program_name="Vault"),
            program_name="hello",
        )
        assert named.effective_program_name == "Vault"
