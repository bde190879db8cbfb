"""
crossscan — Fingerprint Generator
Derives the exact and heuristic equivalence keys of a finding.
"""

import hashlib
from dataclasses import dataclass
from typing import NamedTuple

from .models import Finding


class ExactKey(NamedTuple):
    pattern_id: str
    file: str
    code_hash: str


class HeuristicKey(NamedTuple):
    pattern_id: str
    file: str
    container: str
    start_line: int
    end_line: int

    @property
    def bucket(self) -> tuple[str, str, str]:
        """Part of the key that must match exactly"""
        return self.pattern_id, self.file, self.container

    def overlaps(self, other: "HeuristicKey", tolerance: int = 2) -> bool:
        """Same bucket and line ranges overlap once widened by `tolerance` lines."""
        if self.bucket != other.bucket:
            return False
        return (
            self.start_line - tolerance <= other.end_line
            and other.start_line - tolerance <= self.end_line
        )


@dataclass(frozen=True)
class Fingerprint:
    exact: ExactKey
    heuristic: HeuristicKey

    @property
    def digest(self) -> str:
        raw = "\x1f".join(self.exact).encode("utf-8")
        return hashlib.sha256(raw).hexdigest()


def exact_key(finding: Finding) -> ExactKey:
    return ExactKey(finding.pattern_id, finding.file, finding.code_hash)


def heuristic_key(finding: Finding) -> HeuristicKey:
    return HeuristicKey(
        finding.pattern_id,
        finding.file,
        finding.container,
        finding.start_line,
        finding.end_line,
    )


def fingerprint(finding: Finding) -> Fingerprint:
    """Pure function of the finding; never stored."""
    return Fingerprint(exact_key(finding), heuristic_key(finding))
