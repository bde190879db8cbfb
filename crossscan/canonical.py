"""
crossscan — Canonical Selector
Picks the one finding shown for a group, using a strict total order.
"""

from functools import cmp_to_key
from typing import Optional

from .errors import AmbiguousComparator
from .models import Finding


class ScannerPriority:
    """
    Fixed scanner ranking used to break severity/confidence ties.

    Listed scanners rank in list order; unlisted scanners rank after them,
    alphabetically.
    """

    def __init__(self, order: Optional[list[str]] = None):
        order = [s.lower() for s in (order or [])]
        duplicates = sorted({s for s in order if order.count(s) > 1})
        if duplicates:
            raise AmbiguousComparator(f"scanner priority lists {', '.join(duplicates)} more than once")
        self.order = order
        self._rank = {scanner: i for i, scanner in enumerate(order)}

    @classmethod
    def from_config(cls, config: Optional[dict] = None) -> "ScannerPriority":
        return cls((config or {}).get("dedup", {}).get("scanner_priority", []))

    def rank(self, scanner_id: str) -> int:
        return self._rank.get(scanner_id, len(self.order))


def canonical_sort_key(finding: Finding, priority: ScannerPriority) -> tuple:
    """Smallest key wins: severity, confidence, scanner priority, then ids."""
    return (
        -finding.severity_rank,
        -finding.confidence_rank,
        priority.rank(finding.scanner_id),
        finding.scanner_id,
        finding.detector_id,
        finding.finding_id,
    )


def compare_findings(a: Finding, b: Finding, priority: ScannerPriority) -> int:
    """-1 if a is preferred, 1 if b is, 0 only for the same finding."""
    key_a, key_b = canonical_sort_key(a, priority), canonical_sort_key(b, priority)
    if key_a < key_b:
        return -1
    if key_a > key_b:
        return 1
    return 0


def rank_members(members: list[Finding], priority: ScannerPriority) -> list[Finding]:
    """Members best-first. Raises AmbiguousComparator on a tie between distinct members."""
    ranked = sorted(members, key=cmp_to_key(lambda a, b: compare_findings(a, b, priority)))
    for first, second in zip(ranked, ranked[1:]):
        if compare_findings(first, second, priority) == 0:
            raise AmbiguousComparator(
                f"findings {first.finding_id} and {second.finding_id} compare equal"
            )
    return ranked


def select_canonical(members: list[Finding], priority: ScannerPriority) -> Finding:
    if not members:
        raise ValueError("cannot select a canonical finding from an empty group")
    return rank_members(members, priority)[0]
