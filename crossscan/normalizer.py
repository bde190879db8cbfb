"""
crossscan — Finding Normalizer
Validates raw scanner records and canonicalizes them into Finding values.
"""

import hashlib
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Optional

from .errors import InvalidFinding
from .models import Finding, Location, RejectedFinding, SEVERITY_RANK
from .patterns import resolve_pattern_id
from .source import SourceIndex, hash_snippet

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Vocabularies
# ---------------------------------------------------------------------------

# Shared vocabulary understood for every scanner
COMMON_SEVERITY_MAP = {
    "critical": "critical",
    "high": "high",
    "medium": "medium",
    "moderate": "medium",
    "low": "low",
    "informational": "low",
    "info": "low",
    "optimization": "low",
    "note": "low",
}

# Scanner-specific vocabularies, consulted before the shared one
SCANNER_SEVERITY_MAPS: dict[str, dict[str, str]] = {
    "slither": {"high": "high", "medium": "medium", "low": "low",
                "informational": "low", "optimization": "low"},
    "aderyn": {"critical": "critical", "high": "high", "medium": "medium", "low": "low",
               "nc": "low"},
    "solhint": {"2": "medium", "1": "low", "error": "medium", "warning": "low"},
    "semgrep": {"error": "high", "warning": "medium", "info": "low"},
    "mythril": {"high": "high", "medium": "medium", "low": "low"},
}

CONFIDENCE_MAP = {
    "high": "high",
    "certain": "high",
    "firm": "high",
    "medium": "medium",
    "moderate": "medium",
    "low": "low",
    "tentative": "low",
}

_SCANNER_FIELDS = ("scanner_id", "scanner", "tool")
_DETECTOR_FIELDS = ("detector_id", "detector", "check", "check_id", "rule_id", "ruleId", "id")
_PATTERN_FIELDS = ("pattern_id", "pattern")
_SEVERITY_FIELDS = ("severity", "impact")
_CONFIDENCE_FIELDS = ("scanner_confidence", "confidence")
_FILE_FIELDS = ("file", "path", "filename", "file_path")
_START_FIELDS = ("start_line", "line", "lineno", "line_no")
_END_FIELDS = ("end_line", "endLine")
_COLUMN_FIELDS = ("column", "col")
_MESSAGE_FIELDS = ("message", "description", "title")


def _first(raw: dict, keys: tuple[str, ...]) -> Any:
    for key in keys:
        value = raw.get(key)
        if value not in (None, ""):
            return value
    return None


def _text(value: Any) -> str:
    return str(value).strip() if value is not None else ""


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def normalize_path(path: str, source_root: str = "") -> str:
    """POSIX separators, no leading "./", relative to source_root when under it."""
    path = path.strip().replace("\\", "/")
    root = source_root.strip().replace("\\", "/").rstrip("/")
    if root and path.startswith(root + "/"):
        path = path[len(root) + 1:]
    while path.startswith("./"):
        path = path[2:]
    return path


def resolve_severity(scanner_id: str, raw_severity: Any, overrides: Optional[dict] = None) -> str:
    """Map a scanner's severity value onto critical/high/medium/low (unknown -> low)."""
    value = _text(raw_severity).lower()
    overrides = (overrides or {}).get(scanner_id, {})
    for table in (
        {str(k).lower(): v for k, v in overrides.items()},
        SCANNER_SEVERITY_MAPS.get(scanner_id, {}),
        COMMON_SEVERITY_MAP,
    ):
        level = table.get(value)
        if level in SEVERITY_RANK:
            return level

    log.warning(f"Unknown severity {raw_severity!r} from {scanner_id or 'unknown scanner'}, using 'low'")
    return "low"


def resolve_confidence(scanner_id: str, raw_confidence: Any) -> str:
    """Map scanner confidence (word or 0..1 score) onto high/medium/low (unknown -> low)."""
    if raw_confidence is None or raw_confidence == "":
        return "low"

    if isinstance(raw_confidence, (int, float)) and not isinstance(raw_confidence, bool):
        score = float(raw_confidence)
        if score >= 0.8:
            return "high"
        if score >= 0.5:
            return "medium"
        return "low"

    level = CONFIDENCE_MAP.get(_text(raw_confidence).lower())
    if level:
        return level

    log.warning(f"Unknown confidence {raw_confidence!r} from {scanner_id or 'unknown scanner'}, using 'low'")
    return "low"


def _location_fields(raw: dict) -> dict:
    nested = raw.get("location")
    if isinstance(nested, dict):
        return nested
    return raw


def _finding_digest(fields: dict) -> str:
    parts = [
        fields["scanner_id"], fields["detector_id"], fields["pattern_id"],
        fields["severity"], fields["scanner_confidence"],
        fields["location"].file, str(fields["location"].start_line),
        str(fields["location"].end_line), str(fields["location"].column),
        fields["code_hash"], fields["container"], fields["message"],
    ]
    return hashlib.sha256("\x1f".join(parts).encode("utf-8")).hexdigest()


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def normalize_finding(
    raw: dict,
    config: Optional[dict] = None,
    sources: Optional[SourceIndex] = None,
) -> Finding:
    """
    Canonicalize one raw record.

    Raises InvalidFinding when the record lacks a file, a start line or a
    pattern id, or when its code span cannot be resolved.
    """
    config = config or {}
    dedup = config.get("dedup", {})
    tolerance = dedup.get("line_tolerance", 2)

    if not isinstance(raw, dict):
        raise InvalidFinding(f"record is not an object ({type(raw).__name__})")

    scanner_id = _text(_first(raw, _SCANNER_FIELDS)).lower()
    if not scanner_id:
        raise InvalidFinding("missing scanner id")

    detector_id = _text(_first(raw, _DETECTOR_FIELDS))

    loc = _location_fields(raw)
    file_path = normalize_path(_text(_first(loc, _FILE_FIELDS)), dedup.get("source_root", ""))
    if not file_path:
        raise InvalidFinding("missing file", scanner_id)

    start_line = _as_int(_first(loc, _START_FIELDS))
    if start_line is None or start_line < 1:
        raise InvalidFinding("missing or invalid start line", scanner_id)

    end_line = _as_int(_first(loc, _END_FIELDS))
    if end_line is None or end_line < start_line:
        end_line = start_line
    column = _as_int(_first(loc, _COLUMN_FIELDS))

    pattern_id = _text(_first(raw, _PATTERN_FIELDS))
    if not pattern_id:
        pattern_id = resolve_pattern_id(scanner_id, detector_id, file_path, config.get("patterns"))
    if not pattern_id:
        raise InvalidFinding(f"missing pattern id (unmapped detector {detector_id!r})", scanner_id)

    severity = resolve_severity(scanner_id, _first(raw, _SEVERITY_FIELDS), config.get("severity_map"))
    confidence = resolve_confidence(scanner_id, _first(raw, _CONFIDENCE_FIELDS))

    container = _text(raw.get("container"))
    if not container and raw.get("contract"):
        container = _text(raw.get("contract"))
        if raw.get("function"):
            container = f"{container}.{_text(raw.get('function'))}"

    source = sources.get(file_path) if sources is not None else None
    if source is not None:
        if start_line > source.line_count:
            raise InvalidFinding(
                f"start line {start_line} beyond end of {file_path} ({source.line_count} lines)",
                scanner_id,
            )
        end_line = min(end_line, source.line_count)
        resolved_name, span = source.resolve(start_line, end_line, tolerance)
        code_hash = source.span_hash(span)
        container = resolved_name
    elif raw.get("code_hash"):
        code_hash = _text(raw["code_hash"])
    elif raw.get("snippet"):
        code_hash = hash_snippet(str(raw["snippet"]))
    else:
        raise InvalidFinding(f"code span of {file_path}:{start_line} cannot be resolved", scanner_id)

    fields = {
        "scanner_id": scanner_id,
        "detector_id": detector_id,
        "pattern_id": pattern_id,
        "severity": severity,
        "scanner_confidence": confidence,
        "location": Location(file_path, start_line, end_line, column),
        "code_hash": code_hash,
        "container": container,
        "message": _text(_first(raw, _MESSAGE_FIELDS)),
    }
    log.debug(f"{scanner_id}:{detector_id} at {fields['location']} -> {pattern_id} in {container or '<file scope>'}")
    return Finding(finding_id=f"F-{_finding_digest(fields)[:16]}", **fields)


def _normalize_one(args: tuple) -> tuple[Optional[Finding], Optional[RejectedFinding]]:
    index, raw, config, sources = args
    try:
        return normalize_finding(raw, config, sources), None
    except InvalidFinding as e:
        log.warning(f"Rejected finding #{index} from {e.scanner_id or 'unknown scanner'}: {e.reason}")
        return None, RejectedFinding(
            index=index,
            reason=e.reason,
            scanner_id=e.scanner_id,
            raw=raw if isinstance(raw, dict) else {"value": raw},
        )


def normalize_findings(
    raw_findings: list[dict],
    config: Optional[dict] = None,
    sources: Optional[SourceIndex] = None,
) -> tuple[list[Finding], list[RejectedFinding]]:
    """
    Normalize a batch. Invalid records are excluded and returned as rejections.

    With dedup.workers > 1 records are normalized on a thread pool; the output
    keeps input order either way.
    """
    config = config or {}
    workers = config.get("dedup", {}).get("workers", 1)
    jobs = [(i, raw, config, sources) for i, raw in enumerate(raw_findings)]

    if workers > 1 and len(jobs) > 1:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            outcomes = list(pool.map(_normalize_one, jobs))
    else:
        outcomes = [_normalize_one(job) for job in jobs]

    findings = [f for f, _ in outcomes if f is not None]
    rejected = [r for _, r in outcomes if r is not None]

    log.info(f"Normalized: {len(findings)} valid, {len(rejected)} rejected")
    return findings, rejected
