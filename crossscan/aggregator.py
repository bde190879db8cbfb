"""
crossscan — Finding Aggregator
Combines and deduplicates findings from multiple scanners in one batch.
"""

import logging
from dataclasses import replace
from typing import Optional

from .canonical import ScannerPriority, select_canonical
from .confidence import compute_confidence
from .config import merge_config
from .fingerprint import fingerprint
from .grouping import group_findings, sort_findings
from .models import DeduplicationGroup, DeduplicationResult, Finding
from .normalizer import normalize_findings
from .report import build_result
from .source import SourceIndex

log = logging.getLogger(__name__)


def assign_unique_ids(findings: list[Finding]) -> list[Finding]:
    """
    Give repeated identical records distinct ids ("F-…-2", "F-…-3").

    Identical records are indistinguishable, so the suffixes do not depend on
    input order.
    """
    counts: dict[str, int] = {}
    unique: list[Finding] = []
    for finding in sort_findings(findings):
        count = counts.get(finding.finding_id, 0) + 1
        counts[finding.finding_id] = count
        if count > 1:
            finding = replace(finding, finding_id=f"{finding.finding_id}-{count}")
        unique.append(finding)
    return unique


def build_group(
    members: list[Finding], config: dict, priority: ScannerPriority,
) -> DeduplicationGroup:
    """Turn one cluster into a group: stable id, confidence, canonical member."""
    canonical = select_canonical(members, priority)
    smallest = min(fingerprint(m).digest for m in members)
    return DeduplicationGroup(
        group_id=f"G-{smallest[:16]}",
        members=tuple(members),
        confidence_level=compute_confidence(members, config),
        canonical_finding_id=canonical.finding_id,
    )


def deduplicate_findings(
    raw_findings: list[dict],
    config: Optional[dict] = None,
    sources: Optional[SourceIndex] = None,
    expected_scanners: Optional[list[str]] = None,
    scanners_run: Optional[list[str]] = None,
) -> DeduplicationResult:
    """
    Deduplicate raw findings from any number of scanners:
    1. Normalize records (invalid ones are set aside, not fatal)
    2. Group findings describing the same defect
    3. Rate each group by scanner agreement
    4. Pick one canonical finding per group

    `scanners_run` lists the scanners that produced readable output; expected
    scanners outside it are reported as missing coverage.
    """
    config = merge_config(config)
    dedup = config["dedup"]
    if expected_scanners is None:
        expected_scanners = dedup.get("expected_scanners", [])

    if not raw_findings:
        return build_result([], [], expected_scanners, scanners_run)

    if sources is None:
        sources = SourceIndex(root=dedup.get("source_root", ""))
    priority = ScannerPriority.from_config(config)

    findings, rejected = normalize_findings(raw_findings, config, sources)
    findings = assign_unique_ids(findings)

    clusters = group_findings(findings, config)
    groups = [build_group(members, config, priority) for members in clusters]

    result = build_result(groups, rejected, expected_scanners, scanners_run)
    summary = result.summary

    log.info(
        f"Aggregated: {summary.total_findings_in} raw -> {summary.total_groups_out} deduplicated "
        f"({len(result.groups)} corroborated, {len(result.unmatched)} unmatched, "
        f"{summary.total_invalid_findings} invalid)"
    )
    if summary.missing_scanners:
        log.warning(f"Reduced coverage: missing {', '.join(summary.missing_scanners)}")

    return result
