"""
PHP var_dump branch feed extraction.

Legacy suppliers export their OTA responses as ``var_dump`` text::

    array(1) {
      ["OTA_VehLocSearchRS"]=>
      array(1) {
        ["VehMatchedLocs"]=> ...
      }
    }

Whitespace and line breaks are optional (``array(1){["Code"]=>string(5)"BR001"}``
is valid input), so the parser never looks at indentation. It keeps an
explicit stack of open ``array(N)`` scopes, each with the element count it
declared, and closes a scope on its ``}``.
"""

import re
from dataclasses import dataclass, field
from typing import Any

from branchimport.errors import ParseError
from branchimport.ingestion.base import ExtractOptions
from branchimport.ingestion.detect import decode_text
from branchimport.ingestion.json_feed import extract_json_document
from branchimport.schemas.branch import RawBranch
from branchimport.utils.logging import get_logger

log = get_logger(__name__)

FORMAT_NAME = "php_serialized"

_WS_RE = re.compile(r"\s+")
_COMMENT_RE = re.compile(r"//[^\n]*|#[^\n]*")
_ARRAY_RE = re.compile(r"array\((\d+)\)\s*\{")
_OBJECT_RE = re.compile(r"object\(([^)]*)\)#\d+\s*\((\d+)\)\s*\{")
_STRING_RE = re.compile(r"string\((\d+)\)\s*\"")
_INT_RE = re.compile(r"int\((-?\d+)\)")
_FLOAT_RE = re.compile(r"float\((-?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?|-?INF|NAN)\)")
_BOOL_RE = re.compile(r"bool\((true|false)\)")
_NULL_RE = re.compile(r"NULL\b")
_INT_KEY_RE = re.compile(r"\[(-?\d+)\]\s*=>")
_STRING_KEY_RE = re.compile(r"\[\"((?:[^\"\\]|\\.)*)\"(?::[^\]]*)?\]\s*=>")
_STRING_END_RE = re.compile(r"\s*(?:[\[}/#]|\Z)")


@dataclass
class _Scope:
    """An ``array(N) {`` whose closing brace has not been read yet."""

    declared: int
    line: int
    entries: dict[Any, Any] = field(default_factory=dict)
    count: int = 0
    pending_key: Any = None
    has_pending: bool = False


class _DumpParser:
    """Single-pass parser over var_dump text."""

    def __init__(self, text: str, *, strict: bool = False) -> None:
        self.text = text
        self.pos = 0
        self.strict = strict
        self.stack: list[_Scope] = []

    def line(self, pos: int | None = None) -> int:
        return self.text.count("\n", 0, self.pos if pos is None else pos) + 1

    def fail(self, message: str) -> ParseError:
        return ParseError(f"{message} (line {self.line()})", format_name=FORMAT_NAME)

    def skip_blank(self) -> None:
        while self.pos < len(self.text):
            match = _WS_RE.match(self.text, self.pos) or _COMMENT_RE.match(
                self.text, self.pos
            )
            if match is None or match.end() == self.pos:
                return
            self.pos = match.end()

    def parse(self) -> Any:
        root: Any = None
        have_root = False

        while True:
            self.skip_blank()
            if self.pos >= len(self.text):
                break

            scope = self.stack[-1] if self.stack else None

            if scope is not None and not scope.has_pending:
                if self.text.startswith("}", self.pos):
                    self.pos += 1
                    value = self._close(self.stack.pop())
                    if self.stack:
                        self._assign(self.stack[-1], value)
                    else:
                        root, have_root = value, True
                    continue
                self._read_key(scope)
                continue

            if scope is None and have_root:
                raise self.fail("unexpected content after the top-level value")

            value, opened = self._read_value()
            if opened:
                continue
            if scope is None:
                root, have_root = value, True
            else:
                self._assign(scope, value)

        if self.stack:
            scope = self.stack[-1]
            msg = f"unterminated array({scope.declared}) opened at line {scope.line}"
            raise ParseError(msg, format_name=FORMAT_NAME)
        if not have_root:
            raise ParseError("no value found", format_name=FORMAT_NAME)
        return root

    def _read_key(self, scope: _Scope) -> None:
        match = _STRING_KEY_RE.match(self.text, self.pos)
        if match is not None:
            scope.pending_key = match.group(1).replace('\\"', '"')
        else:
            match = _INT_KEY_RE.match(self.text, self.pos)
            if match is None:
                raise self.fail("expected [key]=> or }")
            scope.pending_key = int(match.group(1))
        scope.has_pending = True
        self.pos = match.end()

    def _assign(self, scope: _Scope, value: Any) -> None:
        scope.entries[scope.pending_key] = value
        scope.count += 1
        scope.pending_key = None
        scope.has_pending = False

    def _close(self, scope: _Scope) -> Any:
        if scope.count != scope.declared:
            if self.strict:
                msg = (
                    f"array({scope.declared}) opened at line {scope.line} "
                    f"has {scope.count} elements"
                )
                raise ParseError(msg, format_name=FORMAT_NAME)
            log.warning(
                "Declared array size does not match contents",
                declared=scope.declared,
                actual=scope.count,
                line=scope.line,
            )
        keys = list(scope.entries)
        # array(0) stays a map so an empty LocationDetail still counts as an entry
        if keys and keys == list(range(len(keys))):
            return list(scope.entries.values())
        return scope.entries

    def _read_value(self) -> tuple[Any, bool]:
        """Read one value; returns (value, opened_scope)."""
        text, pos = self.text, self.pos

        match = _ARRAY_RE.match(text, pos) or _OBJECT_RE.match(text, pos)
        if match is not None:
            declared = int(match.group(match.lastindex or 1))
            self.stack.append(_Scope(declared=declared, line=self.line(pos)))
            self.pos = match.end()
            return None, True

        match = _STRING_RE.match(text, pos)
        if match is not None:
            value, self.pos = self._read_string(int(match.group(1)), match.end())
            return value, False

        match = _INT_RE.match(text, pos)
        if match is not None:
            self.pos = match.end()
            return int(match.group(1)), False

        match = _FLOAT_RE.match(text, pos)
        if match is not None:
            self.pos = match.end()
            return float(match.group(1).replace("INF", "inf").replace("NAN", "nan")), False

        match = _BOOL_RE.match(text, pos)
        if match is not None:
            self.pos = match.end()
            return match.group(1) == "true", False

        match = _NULL_RE.match(text, pos)
        if match is not None:
            self.pos = match.end()
            return None, False

        snippet = text[pos : pos + 20].split("\n", 1)[0]
        raise self.fail(f"unrecognised token {snippet!r}")

    def _closes_string(self, quote: int) -> bool:
        """A quote ends a string when the next token starts a key, a brace or EOF."""
        if quote >= len(self.text) or self.text[quote] != '"':
            return False
        return _STRING_END_RE.match(self.text, quote + 1) is not None

    def _read_string(self, declared: int, start: int) -> tuple[str, int]:
        text = self.text

        # Declared length counted in characters
        if self._closes_string(start + declared):
            return text[start : start + declared], start + declared + 1

        # Declared length counted in UTF-8 bytes (what PHP actually reports)
        as_bytes = text[start : start + declared].encode("utf-8")[:declared]
        candidate = as_bytes.decode("utf-8", errors="ignore")
        end = start + len(candidate)
        while end < len(text) and len(text[start:end].encode("utf-8")) < declared:
            end += 1
        if self._closes_string(end):
            return text[start:end], end + 1

        # Hand-edited dumps often carry wrong lengths; fall back to scanning
        quote = text.find('"', start)
        while quote != -1:
            if self._closes_string(quote):
                log.debug(
                    "String length does not match declaration",
                    declared=declared,
                    actual=quote - start,
                    line=self.line(start),
                )
                return text[start:quote], quote + 1
            quote = text.find('"', quote + 1)
        msg = f"unterminated string({declared}) starting at line {self.line(start)}"
        raise ParseError(msg, format_name=FORMAT_NAME)


def parse_php_dump(data: bytes | str, *, strict: bool = False) -> Any:
    """
    Parse var_dump text into nested dicts and lists.

    Non-empty arrays whose keys are exactly ``0..n-1`` become lists; all other
    arrays become dicts. ``object(...)`` dumps are read like arrays.

    Args:
        data: Raw var_dump payload.
        strict: Raise when an ``array(N)`` holds a different number of
            elements than declared instead of logging a warning.

    Returns:
        The parsed top-level value.

    Raises:
        ParseError: On unknown tokens, unbalanced braces, unterminated
            strings or trailing content.
    """
    return _DumpParser(decode_text(data), strict=strict).parse()


def extract_php_dump(
    data: bytes | str,
    options: ExtractOptions | None = None,
    *,
    strict: bool = False,
) -> list[RawBranch]:
    """
    Extract branches from a var_dump payload.

    The parsed tree is handled exactly like a JSON document, so OTA
    responses go through the shared OTA routine.

    Args:
        data: Raw var_dump payload.
        options: Extraction options.
        strict: See ``parse_php_dump``.

    Returns:
        One RawBranch per branch entry.

    Raises:
        ParseError: If the text cannot be parsed or holds no branches.
    """
    document = parse_php_dump(data, strict=strict)
    branches = extract_json_document(document, options, format_name=FORMAT_NAME)
    log.info("Extracted var_dump branches", count=len(branches))
    return branches
