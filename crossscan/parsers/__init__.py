"""
crossscan — Scanner Output Parsers
Turn native scanner JSON into raw finding records for the normalizer.
"""

from typing import Any, Optional

from .slither import parse_slither
from .aderyn import parse_aderyn
from .mythril import parse_mythril
from .semgrep import parse_semgrep
from .solhint import parse_solhint

PARSERS = {
    "slither": parse_slither,
    "aderyn": parse_aderyn,
    "semgrep": parse_semgrep,
    "solhint": parse_solhint,
    "mythril": parse_mythril,
}


def parse_scanner_output(
    scanner: str, output: str, exclude_paths: Optional[list[str]] = None,
) -> list[dict[str, Any]]:
    """Dispatch to the parser for `scanner`. Raises ValueError for unknown scanners."""
    scanner = scanner.lower()
    if scanner not in PARSERS:
        raise ValueError(f"no parser for scanner {scanner!r}")
    return PARSERS[scanner](output, exclude_paths)


__all__ = [
    "PARSERS",
    "parse_aderyn",
    "parse_mythril",
    "parse_scanner_output",
    "parse_semgrep",
    "parse_slither",
    "parse_solhint",
]
