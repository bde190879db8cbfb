"""
crossscan — Confidence Calculator
Rates a group by how many independent scanners agree on it.
"""

from typing import Optional

from .fingerprint import exact_key
from .models import Finding

EXACT = "exact"
HIGH = "high"
MEDIUM = "medium"
LOW = "low"


def compute_confidence(members: list[Finding], config: Optional[dict] = None) -> str:
    """
    Confidence level of a group, first matching rule wins:

    | all members share one ExactKey, scanners >= exact_min    | exact  |
    | all members share one ExactKey, scanners >= high_min     | high   |
    | heuristic bridge involved,     scanners >= exact_min     | high   |
    | heuristic bridge involved,     scanners >= high_min      | medium |
    | anything else (one member, or a single scanner)          | low    |

    Adding an agreeing finding from a new scanner never lowers the level.
    """
    conf = (config or {}).get("confidence", {})
    exact_min = conf.get("exact_min_scanners", 3)
    high_min = conf.get("high_min_scanners", 2)

    scanner_count = len({m.scanner_id for m in members})
    if len(members) < 2 or scanner_count < high_min:
        return LOW

    all_exact = len({exact_key(m) for m in members}) == 1
    if all_exact:
        return EXACT if scanner_count >= exact_min else HIGH
    return HIGH if scanner_count >= exact_min else MEDIUM
