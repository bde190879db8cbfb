"""Unit tests for the finding normalizer."""

import logging

import pytest

from crossscan.errors import InvalidFinding
from crossscan.normalizer import (
    normalize_finding,
    normalize_findings,
    normalize_path,
    resolve_confidence,
    resolve_severity,
)


def _record(**overrides):
    record = {
        "scanner_id": "slither",
        "detector_id": "reentrancy-eth",
        "severity": "High",
        "confidence": "Medium",
        "file": "contracts/Reentrancy.sol",
        "start_line": 24,
    }
    record.update(overrides)
    return record


class TestSeverity:

    @pytest.mark.parametrize("scanner, raw, expected", [
        ("slither", "High", "high"),
        ("slither", "Informational", "low"),
        ("slither", "Optimization", "low"),
        ("aderyn", "Critical", "critical"),
        ("solhint", 2, "medium"),
        ("solhint", 1, "low"),
        ("semgrep", "ERROR", "high"),
        ("semgrep", "WARNING", "medium"),
        ("semgrep", "INFO", "low"),
        ("mythril", "Medium", "medium"),
        ("some-new-tool", "critical", "critical"),
    ])
    def test_vocabularies(self, scanner, raw, expected):
        assert resolve_severity(scanner, raw) == expected

    def test_unknown_fails_closed_to_low_with_warning(self, caplog):
        with caplog.at_level(logging.WARNING, logger="crossscan.normalizer"):
            assert resolve_severity("slither", "catastrophic") == "low"
        assert "catastrophic" in caplog.text

    def test_config_override_wins(self):
        overrides = {"solhint": {"2": "high"}}
        assert resolve_severity("solhint", 2, overrides) == "high"
        assert resolve_severity("solhint", 1, overrides) == "low"


class TestConfidence:

    @pytest.mark.parametrize("raw, expected", [
        ("High", "high"),
        ("medium", "medium"),
        ("LOW", "low"),
        (0.93, "high"),
        (0.6, "medium"),
        (0.2, "low"),
        (None, "low"),
    ])
    def test_levels(self, raw, expected):
        assert resolve_confidence("semgrep", raw) == expected

    def test_unknown_logs_warning(self, caplog):
        with caplog.at_level(logging.WARNING, logger="crossscan.normalizer"):
            assert resolve_confidence("semgrep", "probably") == "low"
        assert "probably" in caplog.text


class TestNormalizeFinding:

    def test_canonical_shape(self, sources):
        finding = normalize_finding(_record(), sources=sources)

        assert finding.scanner_id == "slither"
        assert finding.pattern_id == "BVD-SOL-REE-001"
        assert finding.severity == "high"
        assert finding.scanner_confidence == "medium"
        assert finding.location.file == "contracts/Reentrancy.sol"
        assert finding.location.start_line == finding.location.end_line == 24
        assert finding.container == "Reentrancy.withdraw"
        assert len(finding.code_hash) == 64
        assert finding.finding_id.startswith("F-")

    def test_off_by_one_lines_hash_identically(self, sources):
        body = normalize_finding(_record(start_line=24), sources=sources)
        declaration = normalize_finding(_record(scanner_id="aderyn", start_line=18), sources=sources)
        between = normalize_finding(_record(scanner_id="semgrep", start_line=17), sources=sources)

        assert body.code_hash == declaration.code_hash == between.code_hash
        assert body.container == declaration.container == between.container

    def test_different_functions_hash_differently(self, sources):
        withdraw = normalize_finding(_record(start_line=24), sources=sources)
        deposit = normalize_finding(_record(start_line=14), sources=sources)
        assert withdraw.code_hash != deposit.code_hash
        assert deposit.container == "Reentrancy.deposit"

    def test_nested_location_and_aliases(self, sources):
        raw = {
            "tool": "Semgrep",
            "check_id": "rules.solidity.reentrancy",
            "impact": "ERROR",
            "location": {"path": "./contracts/Reentrancy.sol", "line": 24, "endLine": 25, "col": 9},
            "description": "External call before state update",
        }
        finding = normalize_finding(raw, sources=sources)

        assert finding.scanner_id == "semgrep"
        assert finding.detector_id == "rules.solidity.reentrancy"
        assert finding.pattern_id == "BVD-SOL-REE-001"
        assert finding.location.end_line == 25
        assert finding.location.column == 9
        assert finding.message == "External call before state update"

    def test_pattern_lookup_uses_language(self, empty_sources):
        finding = normalize_finding(
            _record(file="contracts/Vault.vy", snippet="raw_call(msg.sender, b'', value=amount)"),
            sources=empty_sources,
        )
        assert finding.pattern_id == "BVD-VY-REE-001"

    def test_explicit_pattern_is_kept(self, sources):
        finding = normalize_finding(_record(pattern_id="BVD-SOL-REE-002"), sources=sources)
        assert finding.pattern_id == "BVD-SOL-REE-002"

    def test_file_scope_ignores_scanner_container(self, sources):
        with_container = normalize_finding(
            _record(start_line=2, contract="Reentrancy", function="withdraw"), sources=sources,
        )
        without = normalize_finding(_record(scanner_id="aderyn", start_line=2), sources=sources)

        assert with_container.container == without.container == ""
        assert with_container.code_hash == without.code_hash

    def test_debug_log_names_location(self, sources, caplog):
        with caplog.at_level(logging.DEBUG, logger="crossscan.normalizer"):
            normalize_finding(_record(end_line=26), sources=sources)
        assert "contracts/Reentrancy.sol:24-26" in caplog.text

    def test_fallback_to_supplied_code_hash(self, empty_sources):
        finding = normalize_finding(_record(code_hash="abc123", contract="Vault", function="withdraw"),
                                    sources=empty_sources)
        assert finding.code_hash == "abc123"
        assert finding.container == "Vault.withdraw"

    @pytest.mark.parametrize("overrides, reason", [
        ({"file": ""}, "missing file"),
        ({"start_line": None}, "start line"),
        ({"start_line": 0}, "start line"),
        ({"start_line": "abc"}, "start line"),
        ({"detector_id": "not-a-known-detector"}, "pattern id"),
        ({"scanner_id": ""}, "scanner id"),
        ({"start_line": 500}, "beyond end"),
    ])
    def test_rejections(self, sources, overrides, reason):
        with pytest.raises(InvalidFinding) as exc:
            normalize_finding(_record(**overrides), sources=sources)
        assert reason in exc.value.reason

    def test_unresolvable_span_is_rejected(self, empty_sources):
        with pytest.raises(InvalidFinding, match="cannot be resolved"):
            normalize_finding(_record(), sources=empty_sources)

    def test_end_line_before_start_is_clamped(self, sources):
        finding = normalize_finding(_record(end_line=3), sources=sources)
        assert finding.location.end_line == 24


class TestNormalizeFindings:

    def test_batch_separates_rejections(self, sources):
        raws = [_record(), {"scanner_id": "aderyn", "start_line": 4}, "not a record"]

        findings, rejected = normalize_findings(raws, sources=sources)

        assert len(findings) == 1
        assert [r.index for r in rejected] == [1, 2]
        assert rejected[0].scanner_id == "aderyn"
        assert rejected[1].raw == {"value": "not a record"}

    def test_thread_pool_keeps_order(self, sources):
        raws = [_record(start_line=line) for line in (14, 24, 15, 19, 26)]
        config = {"dedup": {"workers": 3, "line_tolerance": 2}}

        parallel, _ = normalize_findings(raws, config=config, sources=sources)
        sequential, _ = normalize_findings(raws, sources=sources)

        assert parallel == sequential
        assert [f.start_line for f in parallel] == [14, 24, 15, 19, 26]


@pytest.mark.parametrize("raw, root, expected", [
    ("./contracts/A.sol", "", "contracts/A.sol"),
    ("contracts\\A.sol", "", "contracts/A.sol"),
    ("/work/repo/contracts/A.sol", "/work/repo", "contracts/A.sol"),
    ("/work/repo/contracts/A.sol", "/work/repo/", "contracts/A.sol"),
    ("/elsewhere/A.sol", "/work/repo", "/elsewhere/A.sol"),
])
def test_normalize_path(raw, root, expected):
    assert normalize_path(raw, root) == expected
