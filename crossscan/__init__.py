"""
crossscan — Multi-Scanner Finding Deduplication
Merges findings that several smart contract scanners report for the same
defect, rates scanner agreement, and picks one canonical finding per defect.
"""

from .models import (
    DeduplicationGroup,
    DeduplicationResult,
    DeduplicationSummary,
    Finding,
    Location,
    RejectedFinding,
)
from .aggregator import deduplicate_findings
from .canonical import ScannerPriority, select_canonical
from .confidence import compute_confidence
from .config import load_config
from .errors import AmbiguousComparator, ConfigError, CrossscanError, InvalidFinding
from .fingerprint import fingerprint
from .grouping import group_findings
from .normalizer import normalize_finding, normalize_findings
from .parsers import parse_scanner_output
from .report import build_result
from .source import SourceIndex

__version__ = "1.0.0"
__all__ = [
    "AmbiguousComparator",
    "ConfigError",
    "CrossscanError",
    "DeduplicationGroup",
    "DeduplicationResult",
    "DeduplicationSummary",
    "Finding",
    "InvalidFinding",
    "Location",
    "RejectedFinding",
    "ScannerPriority",
    "SourceIndex",
    "build_result",
    "compute_confidence",
    "deduplicate_findings",
    "fingerprint",
    "group_findings",
    "load_config",
    "normalize_finding",
    "normalize_findings",
    "parse_scanner_output",
    "select_canonical",
]
