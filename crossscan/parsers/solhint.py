"""
Solhint output parser
"""

import json
import logging
from typing import Any, Optional

log = logging.getLogger(__name__)


def parse_solhint(output: str, exclude_paths: Optional[list[str]] = None) -> list[dict[str, Any]]:
    """Parse Solhint JSON output into raw finding records"""
    if not output:
        return []

    exclude_paths = exclude_paths or []
    records = []

    try:
        data = json.loads(output.strip())
    except json.JSONDecodeError as e:
        log.warning(f"Solhint: could not parse output: {e}")
        return []

    for file_result in data:
        if not isinstance(file_result, dict):
            continue
        file_path = file_result.get("filePath", "")

        # Skip excluded paths
        if any(exc in file_path for exc in exclude_paths):
            continue

        for msg in file_result.get("messages", []):
            # Solhint severity: 1 = warning, 2 = error
            records.append({
                "scanner_id": "solhint",
                "detector_id": msg.get("ruleId", "unknown"),
                "severity": msg.get("severity", 1),
                "confidence": "low",
                "file": file_path,
                "start_line": msg.get("line", 0),
                "end_line": msg.get("endLine", msg.get("line", 0)),
                "column": msg.get("column"),
                "message": msg.get("message", "").strip(),
            })

    return records
