"""
Mythril output parser
"""

import json
import logging
from typing import Any, Optional

log = logging.getLogger(__name__)


def parse_mythril(
    output: str, exclude_paths: Optional[list[str]] = None, target_file: str = "",
) -> list[dict[str, Any]]:
    """Parse Mythril JSON output into raw finding records"""
    if not output:
        return []

    exclude_paths = exclude_paths or []

    # Find JSON in output
    json_start = output.find("{")
    json_end = output.rfind("}") + 1

    array_start = output.find("[")
    if array_start != -1 and (json_start == -1 or array_start < json_start):
        # Array format
        json_start = array_start
        json_end = output.rfind("]") + 1

    if json_start == -1 or json_end == 0:
        return []

    try:
        data = json.loads(output[json_start:json_end])
    except json.JSONDecodeError as e:
        log.warning(f"Mythril: could not parse output: {e}")
        return []

    # Handle different Mythril output formats
    if isinstance(data, dict):
        issues = data.get("issues") or []
    elif isinstance(data, list):
        issues = data
    else:
        issues = []

    records = []
    for item in issues:
        file_path = item.get("filename") or target_file

        # Skip excluded paths
        if any(exc in file_path for exc in exclude_paths):
            continue

        line_num = item.get("lineno", 0)
        if not line_num:
            source_map = item.get("sourceMap", {})
            if isinstance(source_map, dict):
                line_num = source_map.get("line", 0)

        swc_id = item.get("swc-id", "")
        if swc_id and not str(swc_id).upper().startswith("SWC-"):
            swc_id = f"SWC-{swc_id}"

        records.append({
            "scanner_id": "mythril",
            "detector_id": swc_id or item.get("title", "unknown"),
            "severity": item.get("severity", ""),
            # symbolic execution found a concrete path
            "confidence": "high",
            "file": file_path,
            "start_line": line_num,
            "snippet": item.get("code", ""),
            "message": item.get("description", "").strip(),
        })

    return records
