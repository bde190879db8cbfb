"""
Slither output parser
"""

import json
import logging
from typing import Any, Optional

log = logging.getLogger(__name__)


def _container(elements: list[dict]) -> tuple[str, str]:
    """(contract, function) of the first element that names one."""
    for element in elements:
        kind = element.get("type", "")
        parent = element.get("type_specific_fields", {}).get("parent", {}) or {}
        if kind == "function":
            return parent.get("name", ""), element.get("name", "")
        if kind == "node" and parent.get("type") == "function":
            grandparent = parent.get("type_specific_fields", {}).get("parent", {}) or {}
            return grandparent.get("name", ""), parent.get("name", "")
        if kind == "contract":
            return element.get("name", ""), ""
    return "", ""


def parse_slither(output: str, exclude_paths: Optional[list[str]] = None) -> list[dict[str, Any]]:
    """Parse Slither JSON output into raw finding records"""
    if not output:
        return []

    exclude_paths = exclude_paths or []
    records = []

    try:
        # Find JSON in output (Slither may include other text)
        json_start = output.find("{")
        json_end = output.rfind("}") + 1

        if json_start == -1 or json_end == 0:
            return []

        data = json.loads(output[json_start:json_end])
    except json.JSONDecodeError as e:
        log.warning(f"Slither: could not parse output: {e}")
        return []

    for detector in data.get("results", {}).get("detectors", []):
        elements = detector.get("elements", [])
        if not elements:
            continue

        source_mapping = elements[0].get("source_mapping", {})
        file_path = source_mapping.get("filename_relative", "")

        # Skip excluded paths
        if any(exc in file_path for exc in exclude_paths):
            continue

        lines_list = source_mapping.get("lines", [])
        start_line = lines_list[0] if lines_list else 0
        end_line = lines_list[-1] if lines_list else start_line

        contract, function = _container(elements)

        records.append({
            "scanner_id": "slither",
            "detector_id": detector.get("check", "unknown"),
            "severity": detector.get("impact", ""),
            "confidence": detector.get("confidence", ""),
            "file": file_path,
            "start_line": start_line,
            "end_line": end_line,
            "column": source_mapping.get("starting_column"),
            "contract": contract,
            "function": function,
            "message": detector.get("description", "").strip(),
        })

    return records
