"""
Semgrep output parser
"""

import json
import logging
from typing import Any, Optional

log = logging.getLogger(__name__)


def parse_semgrep(output: str, exclude_paths: Optional[list[str]] = None) -> list[dict[str, Any]]:
    """Parse Semgrep JSON output into raw finding records"""
    if not output:
        return []

    exclude_paths = exclude_paths or []
    records = []

    try:
        data = json.loads(output)
    except json.JSONDecodeError as e:
        log.warning(f"Semgrep: could not parse output: {e}")
        return []

    for result in data.get("results") or []:
        if not isinstance(result, dict):
            continue

        file_path = str(result.get("path") or "")
        if any(exc in file_path for exc in exclude_paths):
            continue

        extra = result.get("extra")
        extra = extra if isinstance(extra, dict) else {}
        meta = extra.get("metadata")
        meta = meta if isinstance(meta, dict) else {}

        start = result.get("start") or {}
        end = result.get("end") or {}

        records.append({
            "scanner_id": "semgrep",
            "detector_id": str(result.get("check_id") or "").strip(),
            "severity": extra.get("severity", ""),
            "confidence": meta.get("confidence", ""),
            "file": file_path,
            "start_line": start.get("line", 0),
            "end_line": end.get("line", start.get("line", 0)),
            "column": start.get("col"),
            "snippet": extra.get("lines", ""),
            "message": str(extra.get("message") or "").strip(),
        })

    return records
