"""Shared fixtures: sample vulnerable sources and finding builders."""

import pytest

from crossscan.models import Finding, Location
from crossscan.source import SourceIndex


REENTRANCY_SOL = "\n".join([
    "// SPDX-License-Identifier: MIT",                          # 1
    "pragma solidity ^0.8.0;",                                   # 2
    "",                                                          # 3
    "/**",                                                       # 4
    " * VULNERABLE CONTRACT - DO NOT USE IN PRODUCTION",         # 5
    " * function fake() { mentioned in a comment",               # 6
    " */",                                                       # 7
    "contract Reentrancy {",                                     # 8
    "    mapping(address => uint256) public balances;",          # 9
    "",                                                          # 10
    "    event Deposit(address indexed who, uint256 amount);",   # 11
    "",                                                          # 12
    "    function deposit() external payable {",                 # 13
    "        balances[msg.sender] += msg.value;",                # 14
    "        emit Deposit(msg.sender, msg.value);",              # 15
    "    }",                                                     # 16
    "",                                                          # 17
    "    function withdraw() external {",                        # 18
    "        uint256 amount = balances[msg.sender];",            # 19
    "        require(amount > 0, \"nothing to withdraw {\");",   # 20
    "",                                                          # 21
    "        // external call before the state update",          # 22
    "",                                                          # 23
    "        (bool ok, ) = msg.sender.call{value: amount}(\"\");",  # 24
    "        require(ok, \"transfer failed\");",                 # 25
    "        balances[msg.sender] = 0;",                         # 26
    "    }",                                                     # 27
    "}",                                                         # 28
])

UNCHECKED_CALL_SOL = "\n".join([
    "// SPDX-License-Identifier: MIT",                           # 1
    "pragma solidity ^0.8.0;",                                    # 2
    "",                                                           # 3
    "contract UncheckedCall {",                                   # 4
    "    address payable public owner;",                          # 5
    "    mapping(address => uint256) public balances;",           # 6
    "",                                                           # 7
    "    constructor() {",                                        # 8
    "        owner = payable(msg.sender);",                       # 9
    "    }",                                                      # 10
    "",                                                           # 11
    "    function deposit() external payable {",                  # 12
    "        balances[msg.sender] += msg.value;",                 # 13
    "    }",                                                      # 14
    "",                                                           # 15
    "    // Vulnerable: return value of low-level call ignored",  # 16
    "    function withdraw(uint256 amount) external {",           # 17
    "        require(balances[msg.sender] >= amount);",           # 18
    "        balances[msg.sender] -= amount;",                    # 19
    "",                                                           # 20
    "",                                                           # 21
    "",                                                           # 22
    "        payable(msg.sender).call{value: amount}(\"\");",     # 23
    "    }",                                                      # 24
    "",                                                           # 25
    "    // Vulnerable: send result ignored",                     # 26
    "    function refund(address payable to, uint256 amount) external {",  # 27
    "        require(msg.sender == owner);",                      # 28
    "",                                                           # 29
    "",                                                           # 30
    "",                                                           # 31
    "",                                                           # 32
    "        to.send(amount);",                                   # 33
    "    }",                                                      # 34
    "",                                                           # 35
    "    // Vulnerable: call result ignored",                     # 36
    "    function forward(address target, bytes calldata data) external {",  # 37
    "        require(msg.sender == owner);",                      # 38
    "",                                                           # 39
    "",                                                           # 40
    "",                                                           # 41
    "        target.call(data);",                                 # 42
    "    }",                                                      # 43
    "}",                                                          # 44
])


@pytest.fixture
def sources():
    """In-memory source index with the sample contracts."""
    return SourceIndex(files={
        "contracts/Reentrancy.sol": REENTRANCY_SOL,
        "contracts/UncheckedCall.sol": UNCHECKED_CALL_SOL,
    })


@pytest.fixture
def empty_sources(tmp_path):
    """Source index that resolves nothing, forcing snippet/code_hash fallbacks."""
    return SourceIndex(root=str(tmp_path))


def make_finding(
    scanner_id: str,
    start_line: int = 10,
    code_hash: str = "h1",
    pattern_id: str = "BVD-SOL-REE-001",
    file: str = "contracts/Vault.sol",
    container: str = "Vault.withdraw",
    severity: str = "high",
    scanner_confidence: str = "medium",
    detector_id: str = "",
    end_line: int = 0,
) -> Finding:
    """Build a normalized Finding directly, bypassing the normalizer."""
    detector_id = detector_id or f"{scanner_id}-detector"
    return Finding(
        finding_id=f"F-{scanner_id}-{detector_id}-{start_line}-{code_hash}",
        scanner_id=scanner_id,
        detector_id=detector_id,
        pattern_id=pattern_id,
        severity=severity,
        scanner_confidence=scanner_confidence,
        location=Location(file, start_line, end_line or start_line),
        code_hash=code_hash,
        container=container,
    )


@pytest.fixture
def finding_factory():
    return make_finding
