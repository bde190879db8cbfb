"""
crossscan — Data Models
"""

import json
from dataclasses import dataclass, field
from typing import Any, Optional


SEVERITIES = ("critical", "high", "medium", "low")
SCANNER_CONFIDENCES = ("high", "medium", "low")
CONFIDENCE_LEVELS = ("exact", "high", "medium", "low")

SEVERITY_RANK = {
    "critical": 4,
    "high": 3,
    "medium": 2,
    "low": 1,
}

SCANNER_CONFIDENCE_RANK = {
    "high": 3,
    "medium": 2,
    "low": 1,
}


@dataclass(frozen=True)
class Location:
    """Reported span of a finding"""
    file: str
    start_line: int
    end_line: int
    column: Optional[int] = None

    def __str__(self) -> str:
        if self.end_line > self.start_line:
            return f"{self.file}:{self.start_line}-{self.end_line}"
        return f"{self.file}:{self.start_line}"

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "file": self.file,
            "start_line": self.start_line,
            "end_line": self.end_line,
        }
        if self.column is not None:
            data["column"] = self.column
        return data


@dataclass(frozen=True)
class Finding:
    """A single scanner's report of a defect, after normalization"""
    finding_id: str
    scanner_id: str
    detector_id: str
    pattern_id: str
    severity: str                       # critical, high, medium, low
    scanner_confidence: str             # high, medium, low
    location: Location
    code_hash: str
    container: str = ""                 # e.g. "Vault.withdraw", "" if unresolved
    message: str = ""

    @property
    def file(self) -> str:
        return self.location.file

    @property
    def start_line(self) -> int:
        return self.location.start_line

    @property
    def end_line(self) -> int:
        return self.location.end_line

    @property
    def severity_rank(self) -> int:
        """Numeric rank for sorting (higher = more severe)"""
        return SEVERITY_RANK.get(self.severity, 0)

    @property
    def confidence_rank(self) -> int:
        return SCANNER_CONFIDENCE_RANK.get(self.scanner_confidence, 0)

    def to_dict(self) -> dict[str, Any]:
        return {
            "finding_id": self.finding_id,
            "scanner_id": self.scanner_id,
            "detector_id": self.detector_id,
            "pattern_id": self.pattern_id,
            "severity": self.severity,
            "scanner_confidence": self.scanner_confidence,
            "location": self.location.to_dict(),
            "code_hash": self.code_hash,
            "container": self.container,
            "message": self.message,
        }


@dataclass(frozen=True)
class RejectedFinding:
    """A raw record excluded from grouping, kept for reporting"""
    index: int
    reason: str
    scanner_id: str = ""
    raw: dict = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "index": self.index,
            "scanner_id": self.scanner_id,
            "reason": self.reason,
            "raw": self.raw,
        }


@dataclass(frozen=True)
class DeduplicationGroup:
    """Findings judged to describe one underlying defect"""
    group_id: str
    members: tuple[Finding, ...]
    confidence_level: str
    canonical_finding_id: str

    def __post_init__(self):
        if not self.members:
            raise ValueError(f"group {self.group_id} has no members")
        if self.canonical_finding_id not in {m.finding_id for m in self.members}:
            raise ValueError(
                f"canonical finding {self.canonical_finding_id} is not a member of {self.group_id}"
            )

    @property
    def scanner_count(self) -> int:
        """Distinct scanners among members; same-scanner duplicates count once"""
        return len(self.scanners)

    @property
    def scanners(self) -> list[str]:
        return sorted({m.scanner_id for m in self.members})

    @property
    def size(self) -> int:
        return len(self.members)

    @property
    def is_unmatched(self) -> bool:
        return len(self.members) == 1

    @property
    def canonical(self) -> Finding:
        for member in self.members:
            if member.finding_id == self.canonical_finding_id:
                return member
        raise KeyError(self.canonical_finding_id)

    def to_dict(self) -> dict[str, Any]:
        canonical = self.canonical
        return {
            "group_id": self.group_id,
            "pattern_id": canonical.pattern_id,
            "severity": canonical.severity,
            "location": canonical.location.to_dict(),
            "scanner_count": self.scanner_count,
            "scanners": self.scanners,
            "confidence_level": self.confidence_level,
            "canonical_finding_id": self.canonical_finding_id,
            "members": [m.to_dict() for m in self.members],
        }


@dataclass
class DeduplicationSummary:
    total_findings_in: int = 0
    total_valid_findings: int = 0
    total_invalid_findings: int = 0
    total_groups_out: int = 0
    dedup_rate: float = 0.0
    by_confidence: dict[str, int] = field(default_factory=dict)
    scanners_seen: list[str] = field(default_factory=list)
    expected_scanners: list[str] = field(default_factory=list)
    missing_scanners: list[str] = field(default_factory=list)
    coverage_ratio: float = 1.0

    @property
    def reduced_coverage(self) -> bool:
        return bool(self.missing_scanners)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_findings_in": self.total_findings_in,
            "total_valid_findings": self.total_valid_findings,
            "total_invalid_findings": self.total_invalid_findings,
            "total_groups_out": self.total_groups_out,
            "dedup_rate": self.dedup_rate,
            "by_confidence": dict(self.by_confidence),
            "scanners_seen": list(self.scanners_seen),
            "expected_scanners": list(self.expected_scanners),
            "missing_scanners": list(self.missing_scanners),
            "coverage_ratio": self.coverage_ratio,
            "reduced_coverage": self.reduced_coverage,
        }


@dataclass
class DeduplicationResult:
    """Deduplicated view of one batch of scanner findings"""
    groups: list[DeduplicationGroup] = field(default_factory=list)
    unmatched: list[DeduplicationGroup] = field(default_factory=list)
    invalid_findings: list[RejectedFinding] = field(default_factory=list)
    summary: DeduplicationSummary = field(default_factory=DeduplicationSummary)

    @property
    def all_groups(self) -> list[DeduplicationGroup]:
        return self.groups + self.unmatched

    def group_of(self, finding_id: str) -> Optional[DeduplicationGroup]:
        for group in self.all_groups:
            if any(m.finding_id == finding_id for m in group.members):
                return group
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "groups": [g.to_dict() for g in self.groups],
            "unmatched": [g.to_dict() for g in self.unmatched],
            "invalid_findings": [r.to_dict() for r in self.invalid_findings],
            "summary": self.summary.to_dict(),
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)
