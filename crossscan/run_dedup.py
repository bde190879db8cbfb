"""
crossscan — Batch Runner
Reads scanner outputs and/or raw finding arrays, deduplicates them in one
batch and writes the result as JSON.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from .aggregator import deduplicate_findings
from .config import load_config
from .errors import CrossscanError
from .parsers import parse_scanner_output
from .source import SourceIndex

log = logging.getLogger(__name__)


def _scanner_arg(value: str) -> tuple[str, str]:
    scanner, sep, path = value.partition("=")
    if not sep or not scanner or not path:
        raise argparse.ArgumentTypeError(f"expected SCANNER=PATH, got {value!r}")
    return scanner.strip().lower(), path.strip()


def collect_raw_findings(
    scanner_outputs: list[tuple[str, str]],
    raw_inputs: list[str],
    exclude_paths: Optional[list[str]] = None,
) -> tuple[list[dict], list[str]]:
    """
    Load raw records from scanner output files and raw JSON arrays.

    Returns (records, scanners that produced readable output). A scanner whose
    output file is missing is logged and skipped; it shows up as missing
    coverage, never as a failure.
    """
    records: list[dict] = []
    ran: list[str] = []

    for scanner, path in scanner_outputs:
        try:
            output = Path(path).read_text(encoding="utf-8", errors="ignore")
        except (IOError, OSError) as e:
            log.warning(f"{scanner}: output not readable ({e}), treating scanner as failed")
            continue
        parsed = parse_scanner_output(scanner, output, exclude_paths)
        log.info(f"{scanner}: {len(parsed)} finding(s)")
        records.extend(parsed)
        ran.append(scanner)

    for path in raw_inputs:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        if not isinstance(data, list):
            raise ValueError(f"{path}: expected a JSON array of findings")
        records.extend(data)

    return records, ran


def main(argv: Optional[list[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Deduplicate findings from multiple smart contract scanners")
    ap.add_argument("--scanner", action="append", default=[], type=_scanner_arg, metavar="SCANNER=PATH",
                    help="native scanner output (slither, aderyn, semgrep, solhint, mythril)")
    ap.add_argument("--input", action="append", default=[], metavar="PATH",
                    help="JSON array of raw finding records")
    ap.add_argument("--config", default=None, help="YAML config (default: crossscan.yml if present)")
    ap.add_argument("--source-root", default=None, help="directory the reported paths are relative to")
    ap.add_argument("--exclude", action="append", default=[], help="skip findings whose path contains this")
    ap.add_argument("--output", default="-", help="result file (default: stdout)")
    ap.add_argument("--verbose", action="store_true")
    args = ap.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        config = load_config(args.config)
        if args.source_root is not None:
            config["dedup"]["source_root"] = args.source_root

        records, ran = collect_raw_findings(args.scanner, args.input, args.exclude)

        expected = config["dedup"].get("expected_scanners") or [s for s, _ in args.scanner]
        sources = SourceIndex(root=config["dedup"].get("source_root", ""))
        result = deduplicate_findings(
            records, config, sources, expected_scanners=expected, scanners_run=ran,
        )
    except (CrossscanError, ValueError, OSError) as e:
        log.error(str(e))
        return 1

    payload = result.to_json()
    if args.output == "-":
        print(payload)
    else:
        path = Path(args.output)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(payload, encoding="utf-8")
        log.info(f"Result written to {path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
