"""Tolerant reader/writer for the object literal inside a Tailwind config file.

Literals (objects, arrays, strings, numbers, booleans, ``null``) become
Python values.  Anything else (``require(...)`` calls, identifiers,
functions) is kept verbatim as :class:`RawExpression` so it survives a
round trip untouched.  Comments inside the object are dropped.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")
_NUMBER_RE = re.compile(r"^-?\d+(\.\d+)?([eE][+-]?\d+)?$")
_CONFIG_START_PATTERNS = (
    re.compile(r"module\.exports\s*=\s*\{"),
    re.compile(r"export\s+default\s*\{"),
    re.compile(r"(?:const|let|var)\s+\w+\s*(?::\s*[\w.<>\[\]\s|]+)?=\s*\{"),
)
_REQUIRE_RE = re.compile(r"""^require\(\s*["']([^"']+)["']\s*\)$""")
_KEY_RE = re.compile(r"[A-Za-z0-9_$-]+")
_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "b": "\b", "f": "\f", "0": "\0"}


class JsSyntaxError(ValueError):
    pass


def _unescape(raw: str) -> str:
    out: list[str] = []
    i = 0
    while i < len(raw):
        ch = raw[i]
        if ch == "\\" and i + 1 < len(raw):
            nxt = raw[i + 1]
            out.append(_ESCAPES.get(nxt, nxt))
            i += 2
            continue
        out.append(ch)
        i += 1
    return "".join(out)


@dataclass(frozen=True)
class RawExpression:
    """A JavaScript expression kept as source text."""

    text: str

    @property
    def required_module(self) -> str | None:
        """``"tailwindcss-animate"`` for ``require("tailwindcss-animate")``."""
        match = _REQUIRE_RE.match(self.text.strip())
        return match.group(1) if match else None


@dataclass(frozen=True)
class Spread:
    """``...expr`` inside an object literal."""

    text: str


class _Parser:
    def __init__(self, text: str, pos: int = 0) -> None:
        self.text = text
        self.pos = pos

    def _skip(self) -> None:
        text, n = self.text, len(self.text)
        while self.pos < n:
            if text[self.pos].isspace():
                self.pos += 1
            elif text.startswith("//", self.pos):
                end = text.find("\n", self.pos)
                self.pos = n if end == -1 else end + 1
            elif text.startswith("/*", self.pos):
                end = text.find("*/", self.pos + 2)
                self.pos = n if end == -1 else end + 2
            else:
                break

    def _peek(self) -> str:
        self._skip()
        return self.text[self.pos] if self.pos < len(self.text) else ""

    def _expect(self, ch: str) -> None:
        if self._peek() != ch:
            raise JsSyntaxError(f"Expected {ch!r} at offset {self.pos}")
        self.pos += 1

    def _string(self) -> str:
        quote = self.text[self.pos]
        end = self.pos + 1
        out: list[str] = []
        while end < len(self.text) and self.text[end] != quote:
            if self.text[end] == "\\" and end + 1 < len(self.text):
                out.append(self.text[end : end + 2])
                end += 2
                continue
            out.append(self.text[end])
            end += 1
        if end >= len(self.text):
            raise JsSyntaxError("Unterminated string")
        self.pos = end + 1
        return _unescape("".join(out))

    def _raw(self) -> str:
        """Consume an arbitrary expression up to a top-level ``,`` ``}`` or ``]``."""
        start = self.pos
        depth = 0
        text, n = self.text, len(self.text)
        while self.pos < n:
            ch = text[self.pos]
            if ch in "\"'`":
                self._string()
                continue
            if text.startswith("//", self.pos) or text.startswith("/*", self.pos):
                self._skip()
                continue
            if ch in "([{":
                depth += 1
            elif ch in ")]}":
                if depth == 0:
                    break
                depth -= 1
            elif ch == "," and depth == 0:
                break
            self.pos += 1
        return text[start : self.pos].strip()

    def value(self) -> Any:
        ch = self._peek()
        if ch == "{":
            return self.object()
        if ch == "[":
            return self.array()
        if ch in "\"'":
            start = self.pos
            result = self._string()
            # "a" + b is an expression, not a literal.
            if self._peek() not in ",}]":
                self.pos = start
                return RawExpression(self._raw())
            return result
        raw = self._raw()
        if raw == "true":
            return True
        if raw == "false":
            return False
        if raw == "null":
            return None
        if _NUMBER_RE.match(raw):
            return float(raw) if any(c in raw for c in ".eE") else int(raw)
        if not raw:
            raise JsSyntaxError(f"Expected a value at offset {self.pos}")
        return RawExpression(raw)

    def object(self) -> dict[Any, Any]:
        self._expect("{")
        out: dict[Any, Any] = {}
        while True:
            ch = self._peek()
            if ch == "}":
                self.pos += 1
                return out
            if self.text.startswith("...", self.pos):
                self.pos += 3
                expr = self._raw()
                out[Spread(expr)] = None
            else:
                if ch in "\"'":
                    key = self._string()
                elif ch == "[":
                    start = self.pos
                    depth = 0
                    while self.pos < len(self.text):
                        c = self.text[self.pos]
                        depth += c == "["
                        depth -= c == "]"
                        self.pos += 1
                        if depth == 0:
                            break
                    key = RawExpression(self.text[start : self.pos])
                else:
                    match = _KEY_RE.match(self.text, self.pos)
                    if not match:
                        raise JsSyntaxError(f"Expected a property name at offset {self.pos}")
                    key = match.group(0)
                    self.pos = match.end()
                if self._peek() == ":":
                    self.pos += 1
                    out[key] = self.value()
                else:
                    # shorthand property or method; keep the source
                    out[key] = RawExpression(key if isinstance(key, str) else key.text)
            if self._peek() == ",":
                self.pos += 1
            elif self._peek() != "}":
                raise JsSyntaxError(f"Expected ',' or '}}' at offset {self.pos}")

    def array(self) -> list[Any]:
        self._expect("[")
        out: list[Any] = []
        while True:
            if self._peek() == "]":
                self.pos += 1
                return out
            if self.text.startswith("...", self.pos):
                self.pos += 3
                out.append(RawExpression("..." + self._raw()))
            else:
                out.append(self.value())
            if self._peek() == ",":
                self.pos += 1
            elif self._peek() != "]":
                raise JsSyntaxError(f"Expected ',' or ']' at offset {self.pos}")


def parse_object(text: str) -> dict[Any, Any]:
    """Parse a standalone object literal."""
    return _Parser(text).object()


def find_config_object(source: str) -> tuple[int, int] | None:
    """Span ``(start, end)`` of the exported config object literal in *source*."""
    for pattern in _CONFIG_START_PATTERNS:
        match = pattern.search(source)
        if not match:
            continue
        parser = _Parser(source, match.end() - 1)
        try:
            parser.object()
        except JsSyntaxError:
            continue
        return match.end() - 1, parser.pos
    return None


# ---------------------------------------------------------------------------
# Dumping
# ---------------------------------------------------------------------------


def _dump_key(key: Any) -> str:
    if isinstance(key, RawExpression):
        return key.text
    if _IDENTIFIER_RE.match(key):
        return key
    return json.dumps(key)


def _is_scalar(value: Any) -> bool:
    return not isinstance(value, (dict, list))


def dump_value(value: Any, depth: int = 0, quote: str = '"') -> str:
    pad = "  " * (depth + 1)
    end_pad = "  " * depth
    if isinstance(value, RawExpression):
        return value.text
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, (int, float)):
        return repr(value)
    if isinstance(value, str):
        encoded = json.dumps(value, ensure_ascii=False)
        if quote == "'":
            encoded = "'" + encoded[1:-1].replace('\\"', '"').replace("'", "\\'") + "'"
        return encoded
    if isinstance(value, list):
        if not value:
            return "[]"
        items = [dump_value(v, depth + 1, quote) for v in value]
        inline = "[" + ", ".join(items) + "]"
        if all(_is_scalar(v) for v in value) and len(inline) <= 72:
            return inline
        return "[\n" + ",\n".join(pad + item for item in items) + f",\n{end_pad}]"
    if isinstance(value, dict):
        if not value:
            return "{}"
        lines: list[str] = []
        for key, item in value.items():
            if isinstance(key, Spread):
                lines.append(f"{pad}...{key.text}")
            else:
                lines.append(f"{pad}{_dump_key(key)}: {dump_value(item, depth + 1, quote)}")
        return "{\n" + ",\n".join(lines) + f",\n{end_pad}}}"
    raise TypeError(f"Cannot serialise {type(value).__name__} as JavaScript")


def detect_quote(source: str) -> str:
    """The string quote style a source file predominantly uses."""
    return "'" if source.count("'") > source.count('"') else '"'


def replace_config_object(source: str, value: dict[Any, Any]) -> str:
    span = find_config_object(source)
    if span is None:
        raise JsSyntaxError("Could not find the exported config object")
    start, end = span
    return source[:start] + dump_value(value, 0, detect_quote(source)) + source[end:]


def load_config_object(source: str) -> dict[Any, Any]:
    span = find_config_object(source)
    if span is None:
        raise JsSyntaxError("Could not find the exported config object")
    start, end = span
    return parse_object(source[start:end])
