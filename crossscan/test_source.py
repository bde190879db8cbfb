"""Unit tests for source span resolution and snippet hashing."""

from crossscan.conftest import REENTRANCY_SOL
from crossscan.source import SourceFile, SourceIndex, hash_snippet, normalize_snippet


VAULT_VY = "\n".join([
    "# @version ^0.3.7",                                        # 1
    "",                                                         # 2
    "balances: public(HashMap[address, uint256])",              # 3
    "",                                                         # 4
    "@external",                                                # 5
    "@payable",                                                 # 6
    "def deposit():",                                           # 7
    "    self.balances[msg.sender] += msg.value",               # 8
    "",                                                         # 9
    "@external",                                                # 10
    "def withdraw():",                                          # 11
    "    \"\"\"def fake(): inside a docstring\"\"\"",           # 12
    "    amount: uint256 = self.balances[msg.sender]",          # 13
    "    raw_call(msg.sender, b\"\", value=amount)",            # 14
    "    self.balances[msg.sender] = 0",                        # 15
])

VAULT_MOVE = "\n".join([
    "module 0x1::vault {",                                                       # 1
    "    use std::signer;",                                                      # 2
    "",                                                                          # 3
    "    struct Vault has key { balance: u64 }",                                 # 4
    "",                                                                          # 5
    "    public entry fun withdraw(account: &signer, amount: u64) acquires Vault {",  # 6
    "        let vault = borrow_global_mut<Vault>(signer::address_of(account));",  # 7
    "        vault.balance = vault.balance - amount;",                           # 8
    "    }",                                                                     # 9
    "",                                                                          # 10
    "    fun helper(): u64 { 1 }",                                               # 11
    "}",                                                                         # 12
])

PROCESSOR_RS = "\n".join([
    "use solana_program::{",                                                     # 1
    "    account_info::AccountInfo,",                                            # 2
    "    pubkey::Pubkey,",                                                       # 3
    "};",                                                                        # 4
    "",                                                                          # 5
    "pub struct Processor;",                                                     # 6
    "",                                                                          # 7
    "impl Processor {",                                                          # 8
    "    pub fn withdraw(accounts: &[AccountInfo], amount: u64) -> ProgramResult {",  # 9
    "        let authority = &accounts[0];",                                     # 10
    "        // missing: if !authority.is_signer { return Err(..) }",           # 11
    "        msg!(\"withdraw {}\", amount);",                                    # 12
    "        Ok(())",                                                            # 13
    "    }",                                                                     # 14
    "}",                                                                         # 15
    "",                                                                          # 16
    "pub mod helpers {",                                                         # 17
    "    pub fn check(x: u64) -> bool { x > 0 }",                                # 18
    "}",                                                                         # 19
])

IERC20_SOL = "\n".join([
    "interface IERC20 {",                                                        # 1
    "    function transfer(address to, uint256 amount) external returns (bool);",  # 2
    "    function approve(address spender, uint256 amount) external returns (bool);",  # 3
    "}",                                                                         # 4
])


def _names(source: SourceFile, kind: str) -> list[tuple[str, int, int]]:
    return [(s.name, s.start_line, s.end_line) for s in source.spans if s.kind == kind]


class TestSolidity:

    def test_spans(self):
        source = SourceFile("contracts/Reentrancy.sol", REENTRANCY_SOL)
        assert _names(source, "container") == [("Reentrancy", 8, 28)]
        assert _names(source, "function") == [("deposit", 13, 16), ("withdraw", 18, 27)]

    def test_resolve_inside_function(self):
        source = SourceFile("contracts/Reentrancy.sol", REENTRANCY_SOL)
        name, span = source.resolve(24, 24)
        assert name == "Reentrancy.withdraw"
        assert (span.start_line, span.end_line) == (18, 27)

    def test_tolerance_reaches_next_declaration(self):
        source = SourceFile("contracts/Reentrancy.sol", REENTRANCY_SOL)
        assert source.function_at(17, tolerance=0) is None
        assert source.function_at(17, tolerance=2).name == "withdraw"

    def test_contract_level_line_uses_reported_lines(self):
        source = SourceFile("contracts/Reentrancy.sol", REENTRANCY_SOL)
        name, span = source.resolve(9, 9)
        assert name == "Reentrancy"
        assert span.kind == "lines"
        assert (span.start_line, span.end_line) == (9, 9)

    def test_declarations_without_body(self):
        source = SourceFile("interfaces/IERC20.sol", IERC20_SOL)
        assert _names(source, "function") == [("transfer", 2, 2), ("approve", 3, 3)]
        assert source.resolve(3, 3)[0] == "IERC20.approve"


def test_vyper_spans_include_decorators():
    source = SourceFile("contracts/Vault.vy", VAULT_VY)

    assert _names(source, "function") == [("deposit", 5, 8), ("withdraw", 10, 15)]
    assert source.resolve(14, 14)[0] == "Vault.withdraw"
    assert source.resolve(3, 3)[0] == "Vault"


def test_move_spans():
    source = SourceFile("sources/vault.move", VAULT_MOVE)

    assert _names(source, "container") == [("vault", 1, 12)]
    assert _names(source, "function") == [("withdraw", 6, 9), ("helper", 11, 11)]
    assert source.resolve(8, 8)[0] == "vault.withdraw"


def test_rust_spans():
    source = SourceFile("programs/processor.rs", PROCESSOR_RS)

    assert _names(source, "container") == [("Processor", 8, 15), ("helpers", 17, 19)]
    assert _names(source, "function") == [("withdraw", 9, 14), ("check", 18, 18)]
    assert source.resolve(12, 12)[0] == "Processor.withdraw"
    assert source.resolve(18, 18)[0] == "helpers.check"


def test_unknown_language_has_no_spans():
    source = SourceFile("notes/README.md", "# function foo() {\n}\n")
    assert source.spans == []
    name, span = source.resolve(1, 2)
    assert name == ""
    assert (span.start_line, span.end_line) == (1, 2)


def test_snippet_normalization():
    assert normalize_snippet("\n\n  a = 1;   \r\n  b = 2;\t\r\n\n") == "  a = 1;\n  b = 2;"
    assert hash_snippet("x();\r\ny();  ") == hash_snippet("x();\ny();\n")
    assert hash_snippet("x();") != hash_snippet("  x();")


def test_crlf_source_hashes_like_lf():
    lf = SourceFile("contracts/Reentrancy.sol", REENTRANCY_SOL)
    crlf = SourceFile("contracts/Reentrancy.sol", REENTRANCY_SOL.replace("\n", "\r\n"))
    assert lf.span_hash(lf.resolve(24, 24)[1]) == crlf.span_hash(crlf.resolve(24, 24)[1])


def test_source_index_reads_from_root(tmp_path):
    (tmp_path / "contracts").mkdir()
    (tmp_path / "contracts" / "Reentrancy.sol").write_text(REENTRANCY_SOL, encoding="utf-8")

    index = SourceIndex(root=str(tmp_path))

    source = index.get("contracts/Reentrancy.sol")
    assert source is not None
    assert source.line_count == 28
    assert index.get("contracts/Reentrancy.sol") is source
    assert index.get("contracts/Missing.sol") is None
