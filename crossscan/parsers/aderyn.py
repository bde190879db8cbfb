"""
Aderyn output parser
"""

import json
import logging
from typing import Any, Optional

log = logging.getLogger(__name__)

SEVERITY_SECTIONS = {
    "critical_issues": "Critical",
    "high_issues": "High",
    "medium_issues": "Medium",
    "low_issues": "Low",
}


def parse_aderyn(output: str, exclude_paths: Optional[list[str]] = None) -> list[dict[str, Any]]:
    """Parse Aderyn JSON report into raw finding records, one per instance"""
    if not output:
        return []

    exclude_paths = exclude_paths or []
    records = []

    try:
        data = json.loads(output)
    except json.JSONDecodeError as e:
        log.warning(f"Aderyn: could not parse report: {e}")
        return []

    for key, raw_severity in SEVERITY_SECTIONS.items():
        section = data.get(key, {})
        items = section.get("issues", []) if isinstance(section, dict) else []

        for item in items:
            for instance in item.get("instances", []):
                file_path = instance.get("contract_path", "")

                # Skip excluded paths
                if any(exc in file_path for exc in exclude_paths):
                    continue

                records.append({
                    "scanner_id": "aderyn",
                    "detector_id": item.get("detector_name", item.get("title", "unknown")),
                    "severity": raw_severity,
                    # Aderyn does not report a confidence
                    "confidence": "medium",
                    "file": file_path,
                    "start_line": instance.get("line_no", 0),
                    "snippet": instance.get("hint", ""),
                    "message": item.get("title", "") or item.get("description", "").strip(),
                })

    return records
