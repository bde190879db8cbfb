"""
crossscan — Report Builder
Assembles the deduplicated result and its summary statistics.
"""

from typing import Optional

from .models import (
    CONFIDENCE_LEVELS,
    DeduplicationGroup,
    DeduplicationResult,
    DeduplicationSummary,
    RejectedFinding,
)


def _group_order(group: DeduplicationGroup) -> tuple:
    canonical = group.canonical
    return (-canonical.severity_rank, canonical.file, canonical.start_line, group.group_id)


def build_summary(
    groups: list[DeduplicationGroup],
    invalid: list[RejectedFinding],
    expected_scanners: Optional[list[str]] = None,
    scanners_run: Optional[list[str]] = None,
) -> DeduplicationSummary:
    """
    Summary statistics for one batch.

    A scanner is missing when it was expected but neither ran nor produced a
    valid finding. Without `scanners_run`, that reduces to expected scanners
    with no valid finding.
    """
    valid = sum(g.size for g in groups)
    by_confidence = {level: 0 for level in CONFIDENCE_LEVELS}
    for group in groups:
        by_confidence[group.confidence_level] += 1

    seen = sorted({m.scanner_id for g in groups for m in g.members})
    expected = sorted({s.lower() for s in (expected_scanners or [])})
    ran = set(seen) | {s.lower() for s in (scanners_run or [])}
    missing = [s for s in expected if s not in ran]
    coverage = (len(expected) - len(missing)) / len(expected) if expected else 1.0

    return DeduplicationSummary(
        total_findings_in=valid + len(invalid),
        total_valid_findings=valid,
        total_invalid_findings=len(invalid),
        total_groups_out=len(groups),
        dedup_rate=(1 - len(groups) / valid) if valid else 0.0,
        by_confidence=by_confidence,
        scanners_seen=seen,
        expected_scanners=expected,
        missing_scanners=missing,
        coverage_ratio=coverage,
    )


def build_result(
    groups: list[DeduplicationGroup],
    invalid: Optional[list[RejectedFinding]] = None,
    expected_scanners: Optional[list[str]] = None,
    scanners_run: Optional[list[str]] = None,
) -> DeduplicationResult:
    """Split groups into corroborated and unmatched, order them and summarize."""
    invalid = sorted(invalid or [], key=lambda r: r.index)
    ordered = sorted(groups, key=_group_order)

    return DeduplicationResult(
        groups=[g for g in ordered if not g.is_unmatched],
        unmatched=[g for g in ordered if g.is_unmatched],
        invalid_findings=invalid,
        summary=build_summary(ordered, invalid, expected_scanners, scanners_run),
    )
