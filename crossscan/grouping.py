"""
crossscan — Grouping Engine
Clusters findings that describe the same defect: exact-key equality first,
then bounded heuristic bridging, both through one union-find.
"""

import logging
from bisect import bisect_left, bisect_right
from collections import defaultdict
from itertools import accumulate
from typing import Optional

from .fingerprint import Fingerprint, fingerprint
from .models import Finding
from .union_find import DisjointSet

log = logging.getLogger(__name__)


def processing_key(finding: Finding) -> tuple:
    """Canonical processing order; makes grouping independent of input order."""
    return (
        finding.file,
        finding.start_line,
        finding.scanner_id,
        finding.detector_id,
        finding.end_line,
        finding.finding_id,
    )


def sort_findings(findings: list[Finding]) -> list[Finding]:
    return sorted(findings, key=processing_key)


def _union_exact(prints: list[Fingerprint], sets: DisjointSet) -> set[int]:
    """Union findings sharing an ExactKey; returns the indices that found a partner."""
    by_exact: dict = defaultdict(list)
    for i, fp in enumerate(prints):
        by_exact[fp.exact].append(i)

    paired: set[int] = set()
    for members in by_exact.values():
        if len(members) < 2:
            continue
        paired.update(members)
        for other in members[1:]:
            sets.union(members[0], other)
    return paired


def _union_heuristic(
    prints: list[Fingerprint], sets: DisjointSet, paired: set[int], tolerance: int,
) -> int:
    """Bridge unpaired findings to overlapping ones in their bucket. Returns bridge count."""
    buckets: dict = defaultdict(list)
    for i, fp in enumerate(prints):
        buckets[fp.heuristic.bucket].append(i)

    starts: dict = {}
    reach: dict = {}
    for bucket, members in buckets.items():
        members.sort(key=lambda i: (prints[i].heuristic.start_line, prints[i].heuristic.end_line, i))
        starts[bucket] = [prints[i].heuristic.start_line for i in members]
        # running max of end lines; non-decreasing, so it can be bisected
        reach[bucket] = list(accumulate((prints[i].heuristic.end_line for i in members), max))

    bridges = 0
    for i, fp in enumerate(prints):
        if i in paired:
            continue
        key = fp.heuristic
        members = buckets[key.bucket]
        # window: started by our end, reaching our start (both widened by the tolerance)
        lower = bisect_left(reach[key.bucket], key.start_line - tolerance)
        upper = bisect_right(starts[key.bucket], key.end_line + tolerance)
        for j in members[lower:upper]:
            if j == i or not key.overlaps(prints[j].heuristic, tolerance):
                continue
            if not sets.connected(i, j):
                sets.union(i, j)
                bridges += 1
    return bridges


def group_findings(findings: list[Finding], config: Optional[dict] = None) -> list[list[Finding]]:
    """
    Partition findings into clusters describing one defect each.

    Every finding lands in exactly one cluster. Clusters keep the canonical
    processing order internally and are ordered by their first member.
    """
    if not findings:
        return []

    config = config or {}
    tolerance = config.get("dedup", {}).get("line_tolerance", 2)

    ordered = sort_findings(findings)
    prints = [fingerprint(f) for f in ordered]
    sets = DisjointSet(len(ordered))

    paired = _union_exact(prints, sets)
    bridges = _union_heuristic(prints, sets, paired, tolerance)

    clusters = [[ordered[i] for i in members] for members in sets.sets()]
    log.debug(
        f"Grouping: {len(ordered)} findings, {len(paired)} exact-paired, "
        f"{bridges} heuristic bridge(s) -> {len(clusters)} cluster(s)"
    )
    return clusters
