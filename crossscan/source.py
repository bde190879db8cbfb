"""
crossscan — Source Spans
Locates the function or contract that contains a reported line and hashes
normalized source snippets, so scanners that disagree by a line or two about
where a defect sits still produce the same code hash.
"""

import hashlib
import logging
import re
import threading
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Optional

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class CodeSpan:
    name: str
    kind: str           # "function", "container" or "lines"
    start_line: int
    end_line: int

    def contains(self, line: int) -> bool:
        return self.start_line <= line <= self.end_line

    @property
    def size(self) -> int:
        return self.end_line - self.start_line + 1


# ---------------------------------------------------------------------------
# Snippet normalization
# ---------------------------------------------------------------------------


def normalize_snippet(text: str) -> str:
    """Normalize line endings, strip trailing whitespace and surrounding blank lines."""
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    lines = [line.rstrip() for line in text.split("\n")]
    while lines and not lines[0]:
        lines.pop(0)
    while lines and not lines[-1]:
        lines.pop()
    return "\n".join(lines)


def hash_snippet(text: str) -> str:
    """SHA-256 of the normalized snippet (content addressed)."""
    return hashlib.sha256(normalize_snippet(text).encode("utf-8")).hexdigest()


# ---------------------------------------------------------------------------
# Language rules
# ---------------------------------------------------------------------------

_SOLIDITY_CONTAINER = re.compile(
    r"^\s*(?:abstract\s+)?(?:contract|library|interface)\s+([A-Za-z_$][\w$]*)"
)
_SOLIDITY_CALLABLE = re.compile(
    r"^\s*(?:function\s+([A-Za-z_$][\w$]*)"
    r"|modifier\s+([A-Za-z_$][\w$]*)"
    r"|(constructor|fallback|receive)\s*\("
    r"|function\s*(\())"
)

_MOVE_CONTAINER = re.compile(r"^\s*module\s+(?:\w+::)?([A-Za-z_]\w*)")
_MOVE_CALLABLE = re.compile(
    r"^\s*(?:public(?:\s*\([\w\s]*\))?\s+)?(?:entry\s+)?(?:native\s+)?(?:inline\s+)?"
    r"(?:entry\s+)?fun\s+([A-Za-z_]\w*)"
)

_RUST_CONTAINER = re.compile(
    r"^\s*(?:pub(?:\s*\([^)]*\))?\s+)?(?:unsafe\s+)?(?:mod|trait)\s+([A-Za-z_]\w*)"
    r"|^\s*(?:unsafe\s+)?impl(?:\s*<.*?>)?\s+(?:.*?\bfor\s+)?([A-Za-z_]\w*)"
)
_RUST_CALLABLE = re.compile(
    r"^\s*(?:pub(?:\s*\([^)]*\))?\s+)?(?:default\s+)?(?:const\s+)?(?:async\s+)?"
    r"(?:unsafe\s+)?(?:extern\s+)?fn\s+([A-Za-z_]\w*)"
)

_VYPER_CALLABLE = re.compile(r"^(\s*)def\s+([A-Za-z_]\w*)\s*\(")
_VYPER_DECORATOR = re.compile(r"^\s*@")

# suffix -> (container regex, callable regex, string quote characters)
_BRACE_LANGUAGES = {
    ".sol": (_SOLIDITY_CONTAINER, _SOLIDITY_CALLABLE, "\"'"),
    ".move": (_MOVE_CONTAINER, _MOVE_CALLABLE, "\""),
    ".rs": (_RUST_CONTAINER, _RUST_CALLABLE, "\""),
}


def _first_group(match: re.Match, default: str) -> str:
    for group in match.groups():
        if group and group != "(":
            return group
    return default


def _mask_c_like(text: str, quotes: str) -> str:
    """Blank out comments and string literals, keeping offsets and newlines."""
    out: list[str] = []
    state = ""
    i, n = 0, len(text)
    while i < n:
        ch = text[i]
        nxt = text[i + 1] if i + 1 < n else ""
        if not state:
            if ch == "/" and nxt == "/":
                state = "line"
                out.append("  ")
                i += 2
                continue
            if ch == "/" and nxt == "*":
                state = "block"
                out.append("  ")
                i += 2
                continue
            if ch in quotes:
                state = ch
                out.append(" ")
            else:
                out.append(ch)
        elif state == "line":
            if ch == "\n":
                state = ""
                out.append("\n")
            else:
                out.append(" ")
        elif state == "block":
            if ch == "*" and nxt == "/":
                state = ""
                out.append("  ")
                i += 2
                continue
            out.append("\n" if ch == "\n" else " ")
        else:
            if ch == "\\" and nxt:
                out.append(" ")
                out.append("\n" if nxt == "\n" else " ")
                i += 2
                continue
            if ch == state:
                state = ""
                out.append(" ")
            elif ch == "\n":
                # unterminated literal ends at the line break
                state = ""
                out.append("\n")
            else:
                out.append(" ")
        i += 1
    return "".join(out)


def _mask_python_like(text: str) -> str:
    """Blank out comments, strings and docstrings in Vyper source."""
    out: list[str] = []
    state = ""
    i, n = 0, len(text)
    while i < n:
        ch = text[i]
        if not state:
            triple = text[i:i + 3]
            if triple in ('"""', "'''"):
                state = triple
                out.append("   ")
                i += 3
                continue
            if ch == "#":
                state = "comment"
                out.append(" ")
            elif ch in "\"'":
                state = ch
                out.append(" ")
            else:
                out.append(ch)
        elif state == "comment":
            if ch == "\n":
                state = ""
                out.append("\n")
            else:
                out.append(" ")
        elif len(state) == 3:
            if text[i:i + 3] == state:
                state = ""
                out.append("   ")
                i += 3
                continue
            out.append("\n" if ch == "\n" else " ")
        else:
            if ch == "\\" and i + 1 < n:
                out.append(" ")
                out.append("\n" if text[i + 1] == "\n" else " ")
                i += 2
                continue
            if ch == state or ch == "\n":
                out.append("\n" if ch == "\n" else " ")
                state = ""
            else:
                out.append(" ")
        i += 1
    return "".join(out)


def _block_end(lines: list[str], start: int) -> int:
    """Index of the line closing the brace block opened at or after `start`."""
    depth = 0
    opened = False
    for j in range(start, len(lines)):
        for ch in lines[j]:
            if ch == "{":
                depth += 1
                opened = True
            elif ch == "}":
                depth -= 1
                if opened and depth <= 0:
                    return j
            elif ch == ";" and not opened:
                # declaration without a body
                return j
    return len(lines) - 1


def _brace_spans(masked: list[str], container_re, callable_re) -> list[CodeSpan]:
    spans: list[CodeSpan] = []
    for idx, line in enumerate(masked):
        match = callable_re.match(line)
        if match:
            name = _first_group(match, "fallback")
            spans.append(CodeSpan(name, "function", idx + 1, _block_end(masked, idx) + 1))
            continue
        match = container_re.match(line)
        if match:
            name = _first_group(match, "")
            spans.append(CodeSpan(name, "container", idx + 1, _block_end(masked, idx) + 1))
    return spans


def _indent(line: str) -> int:
    return len(line) - len(line.lstrip())


def _vyper_spans(masked: list[str], module_name: str) -> list[CodeSpan]:
    spans = [CodeSpan(module_name, "container", 1, max(len(masked), 1))]
    for idx, line in enumerate(masked):
        match = _VYPER_CALLABLE.match(line)
        if not match:
            continue
        base = _indent(line)

        start = idx
        while start > 0 and _VYPER_DECORATOR.match(masked[start - 1]):
            start -= 1

        end = idx
        for j in range(idx + 1, len(masked)):
            if not masked[j].strip():
                continue
            if _indent(masked[j]) <= base:
                break
            end = j
        spans.append(CodeSpan(match.group(2), "function", start + 1, end + 1))
    return spans


# ---------------------------------------------------------------------------
# Source files
# ---------------------------------------------------------------------------


class SourceFile:
    """One analyzed source artifact with its function/contract spans."""

    def __init__(self, path: str, text: str):
        self.path = path
        text = text.replace("\r\n", "\n").replace("\r", "\n")
        self.lines = text.split("\n")
        self.spans = self._find_spans(text)

    def _find_spans(self, text: str) -> list[CodeSpan]:
        suffix = PurePosixPath(self.path).suffix.lower()
        if suffix == ".vy":
            masked = _mask_python_like(text).split("\n")
            return _vyper_spans(masked, PurePosixPath(self.path).stem)
        rules = _BRACE_LANGUAGES.get(suffix)
        if rules is None:
            return []
        container_re, callable_re, quotes = rules
        masked = _mask_c_like(text, quotes).split("\n")
        return _brace_spans(masked, container_re, callable_re)

    @property
    def line_count(self) -> int:
        return len(self.lines)

    def text(self, start_line: int, end_line: int) -> str:
        return "\n".join(self.lines[max(start_line, 1) - 1:end_line])

    def _innermost(self, line: int, kind: str) -> Optional[CodeSpan]:
        matches = [s for s in self.spans if s.kind == kind and s.contains(line)]
        if not matches:
            return None
        return min(matches, key=lambda s: (s.size, s.start_line))

    def function_at(self, line: int, tolerance: int = 0) -> Optional[CodeSpan]:
        """Innermost function containing `line`, looking up to `tolerance` lines away."""
        span = self._innermost(line, "function")
        if span:
            return span
        for offset in range(1, tolerance + 1):
            # a declaration just below is a better guess than a body just above
            for probe in (line + offset, line - offset):
                span = self._innermost(probe, "function")
                if span:
                    return span
        return None

    def container_at(self, line: int) -> Optional[CodeSpan]:
        return self._innermost(line, "container")

    def qualified_name(self, span: CodeSpan) -> str:
        owner = self.container_at(span.start_line)
        if owner and owner.name and span.kind == "function":
            return f"{owner.name}.{span.name}"
        return span.name

    def resolve(self, start_line: int, end_line: int, tolerance: int = 0) -> tuple[str, CodeSpan]:
        """
        Span used for hashing a finding reported at start_line..end_line.

        Returns (container name, span). Inside a function the whole function
        is used; elsewhere the reported lines, named after the enclosing
        contract if there is one.
        """
        function = self.function_at(start_line, tolerance)
        if function:
            return self.qualified_name(function), function

        end = min(max(end_line, start_line), self.line_count)
        owner = self.container_at(start_line)
        return (owner.name if owner else ""), CodeSpan("", "lines", start_line, end)

    def span_hash(self, span: CodeSpan) -> str:
        return hash_snippet(self.text(span.start_line, span.end_line))


class SourceIndex:
    """
    Read-through cache of source files.

    Files can be preloaded from memory (`files`) or read from disk relative
    to `root`. Safe to share between normalizer worker threads.
    """

    def __init__(self, root: str = "", files: Optional[dict[str, str]] = None):
        self.root = Path(root) if root else None
        self._files = dict(files or {})
        self._cache: dict[str, Optional[SourceFile]] = {}
        self._lock = threading.Lock()

    def get(self, path: str) -> Optional[SourceFile]:
        with self._lock:
            if path in self._cache:
                return self._cache[path]

        source = self._load(path)

        with self._lock:
            return self._cache.setdefault(path, source)

    def _load(self, path: str) -> Optional[SourceFile]:
        if path in self._files:
            return SourceFile(path, self._files[path])

        candidate = Path(path)
        if self.root is not None and not candidate.is_absolute():
            candidate = self.root / candidate
        try:
            text = candidate.read_text(encoding="utf-8", errors="ignore")
        except (IOError, OSError) as e:
            log.debug(f"Source not readable: {candidate} ({e})")
            return None
        return SourceFile(path, text)
