"""
crossscan — Vulnerability Pattern Taxonomy
Maps scanner-specific detector IDs to scanner-agnostic pattern IDs
(BVD-<LANG>-<CLASS>-<NNN>) so findings from different tools can be compared.
"""

from pathlib import PurePosixPath
from typing import Optional


# ---------------------------------------------------------------------------
# Pattern classes
# ---------------------------------------------------------------------------

PATTERN_CLASSES = {
    "REE-001": "Reentrancy (state change after external call)",
    "REE-002": "Read-only reentrancy",
    "ACC-001": "Unprotected selfdestruct",
    "ACC-003": "Authorization through tx.origin",
    "ACC-007": "Missing access control on privileged function",
    "ACC-009": "Unprotected initializer / reinitialization",
    "UNC-001": "Unchecked low-level call return value",
    "UNC-002": "Unchecked token transfer return value",
    "ARI-001": "Integer overflow / underflow",
    "ARI-002": "Precision loss (divide before multiply)",
    "DEL-001": "Delegatecall to user-controlled address",
    "RND-001": "Weak source of randomness",
    "TIM-001": "Block timestamp dependence",
    "ORA-001": "Spot price oracle manipulation",
    "DOS-001": "External calls inside a loop",
    # Solana / Rust programs
    "SIG-001": "Missing signer check",
    "OWN-001": "Missing account owner check",
    "CPI-001": "Arbitrary cross-program invocation",
    "ACD-001": "Account data matching not enforced",
    "PDA-001": "PDA seed / bump validation issue",
    "RNT-001": "Rent exemption not enforced",
    "TYP-001": "Account type confusion",
}

LANGUAGE_PREFIX = {
    ".sol": "SOL",
    ".vy": "VY",
    ".move": "MOV",
    ".rs": "RS",
}

# ---------------------------------------------------------------------------
# Detector -> pattern class
# Scanner-agnostic detector names shared by several tools
# ---------------------------------------------------------------------------

DETECTOR_TO_CLASS: dict[str, str] = {
    # Reentrancy
    "reentrancy": "REE-001",
    "reentrancy-eth": "REE-001",
    "reentrancy-no-eth": "REE-001",
    "reentrancy-benign": "REE-001",
    "reentrancy-state-change": "REE-001",
    "state-change-after-external-call": "REE-001",
    "read-only-reentrancy": "REE-002",

    # Access control
    "suicidal": "ACC-001",
    "avoid-suicide": "ACC-001",
    "unprotected-selfdestruct": "ACC-001",
    "tx-origin": "ACC-003",
    "avoid-tx-origin": "ACC-003",
    "tx-origin-used-for-auth": "ACC-003",
    "unprotected-upgrade": "ACC-007",
    "arbitrary-send-eth": "ACC-007",
    "missing-access-control": "ACC-007",
    "no-access-control": "ACC-007",
    "func-visibility": "ACC-007",
    "unprotected-initializer": "ACC-009",
    "reinitialization": "ACC-009",
    "missing-initialized-check": "ACC-009",

    # Unchecked calls
    "unchecked-lowlevel": "UNC-001",
    "unchecked-send": "UNC-001",
    "unchecked-low-level-call": "UNC-001",
    "unchecked-return": "UNC-001",
    "unchecked-call": "UNC-001",
    "check-send-result": "UNC-001",
    "avoid-low-level-calls": "UNC-001",
    "unchecked-transfer": "UNC-002",

    # Arithmetic
    "integer-overflow": "ARI-001",
    "integer-underflow": "ARI-001",
    "arithmetic-overflow": "ARI-001",
    "unchecked-arithmetic": "ARI-001",
    "divide-before-multiply": "ARI-002",

    # Delegatecall / randomness / time / oracle / loops
    "controlled-delegatecall": "DEL-001",
    "delegate-call-unchecked-address": "DEL-001",
    "weak-prng": "RND-001",
    "weak-randomness": "RND-001",
    "timestamp": "TIM-001",
    "block-timestamp": "TIM-001",
    "not-rely-on-time": "TIM-001",
    "spot-price-usage": "ORA-001",
    "oracle-manipulation": "ORA-001",
    "calls-loop": "DOS-001",
    "multiple-sends": "DOS-001",

    # Solana programs
    "missing-signer-check": "SIG-001",
    "missing-owner-check": "OWN-001",
    "arbitrary-cpi": "CPI-001",
    "account-data-matching": "ACD-001",
    "pda-issues": "PDA-001",
    "bump-seed-canonicalization": "PDA-001",
    "rent-exemption": "RNT-001",
    "type-confusion": "TYP-001",
}

# Mythril reports SWC ids as its detector id
SWC_TO_CLASS: dict[str, str] = {
    "SWC-101": "ARI-001",
    "SWC-104": "UNC-001",
    "SWC-105": "ACC-007",
    "SWC-106": "ACC-001",
    "SWC-107": "REE-001",
    "SWC-112": "DEL-001",
    "SWC-113": "DOS-001",
    "SWC-115": "ACC-003",
    "SWC-116": "TIM-001",
    "SWC-120": "RND-001",
}


def language_prefix(file_path: str) -> str:
    """Taxonomy language code for a source file ("SOL", "VY", ...)."""
    return LANGUAGE_PREFIX.get(PurePosixPath(file_path).suffix.lower(), "GEN")


def _detector_class(detector_id: str) -> str:
    detector = detector_id.strip()
    if detector.upper() in SWC_TO_CLASS:
        return SWC_TO_CLASS[detector.upper()]

    detector = detector.lower()
    if detector in DETECTOR_TO_CLASS:
        return DETECTOR_TO_CLASS[detector]

    # Semgrep-style dotted rule ids: match on the last segment
    tail = detector.rsplit(".", 1)[-1]
    return DETECTOR_TO_CLASS.get(tail, "")


def resolve_pattern_id(
    scanner_id: str,
    detector_id: str,
    file_path: str,
    overrides: Optional[dict[str, str]] = None,
) -> str:
    """
    Look up the pattern id for a detector.

    Overrides (from the `patterns` config section) are keyed by
    "scanner:detector" or bare detector id and hold full pattern ids.
    Returns "" when the detector is unknown.
    """
    overrides = overrides or {}
    for key in (f"{scanner_id}:{detector_id}", detector_id):
        if key in overrides:
            return overrides[key]

    cls = _detector_class(detector_id)
    if not cls:
        return ""
    return f"BVD-{language_prefix(file_path)}-{cls}"


def pattern_title(pattern_id: str) -> str:
    """Human readable title for a pattern id, "" if unknown."""
    parts = pattern_id.split("-")
    if len(parts) < 4:
        return ""
    return PATTERN_CLASSES.get("-".join(parts[2:4]), "")
