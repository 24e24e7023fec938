"""Markup scanner for component files.

The scanner is deliberately lexical: it records start tags with their
attributes, ``{...}`` template expressions and the raw contents of
``<script>`` / ``<style>`` blocks.  Closing tags are skipped and no element
tree is built, since every matcher works on individual tags.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from convlint.errors import ScanError
from convlint.ingest.units import Attribute, Element, ValuePart

_TAG_NAME_RE = re.compile(r"[A-Za-z][\w:.-]*")
_ATTR_NAME_RE = re.compile(r"""[^\s=/>"'{}]+""")
_WS_RE = re.compile(r"\s*")
_SVELTE_SPECIAL_RE = re.compile(r"[<{]")
_HTML_SPECIAL_RE = re.compile(r"<")

# Blocks whose body is captured verbatim instead of being scanned.
_RAW_BLOCKS = ("script", "style")

_JS_TYPES = frozenset({
    "", "module", "text/javascript", "application/javascript",
    "text/typescript", "application/typescript", "ts",
})


@dataclass(frozen=True)
class RawBlock:
    """Body of a ``<script>`` or ``<style>`` element."""

    kind: str  # "script" | "style"
    element: Element
    content: str
    offset: int  # character offset of the body in the file

    @property
    def is_module(self) -> bool:
        context = self.element.attribute("context")
        return self.element.attribute("module") is not None or (
            context is not None and context.value == "module"
        )

    @property
    def is_javascript(self) -> bool:
        attr = self.element.attribute("type")
        return attr is None or (attr.value or "").strip().lower() in _JS_TYPES


@dataclass
class MarkupScan:
    """Everything the scanner found in one markup document."""

    elements: list[Element] = field(default_factory=list)
    blocks: list[RawBlock] = field(default_factory=list)
    expressions: list[tuple[str, int]] = field(default_factory=list)

    @property
    def scripts(self) -> list[RawBlock]:
        return [b for b in self.blocks if b.kind == "script"]

    @property
    def styles(self) -> list[RawBlock]:
        return [b for b in self.blocks if b.kind == "style"]


# ---------------------------------------------------------------------------
# Brace-balanced expressions
# ---------------------------------------------------------------------------


def scan_braced(text: str, start: int) -> int:
    """Return the index just past the ``}`` closing the ``{`` at *start*.

    String and template literals inside the expression are skipped so that
    braces within them do not count.
    """
    depth = 0
    i = start
    n = len(text)
    while i < n:
        ch = text[i]
        if ch in "\"'`":
            i = _skip_quoted(text, i)
            continue
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return i + 1
        i += 1
    msg = "unterminated '{' expression"
    raise ScanError(msg, start)


def _skip_quoted(text: str, start: int) -> int:
    quote = text[start]
    i = start + 1
    n = len(text)
    while i < n:
        ch = text[i]
        if ch == "\\":
            i += 2
            continue
        if ch == quote:
            return i + 1
        if ch == "\n" and quote != "`":
            # unterminated string literal; let the script parser report it
            return i
        i += 1
    msg = "unterminated string literal"
    raise ScanError(msg, start)


# ---------------------------------------------------------------------------
# Template expressions
# ---------------------------------------------------------------------------

_BLOCK_OPEN_RE = re.compile(r"(#if|#each|#await|#key|:else\s+if|@html|@render|@debug)\s+")
_NO_EXPRESSION_RE = re.compile(r"(/\w+|:else|:then|:catch|#snippet)\b")
_EACH_TAIL_RE = re.compile(r"\s+as\s+")
_AWAIT_TAIL_RE = re.compile(r"\s+(then|catch)\b")


def expression_source(inner: str) -> tuple[str, int] | None:
    """Extract the script code of a template expression.

    Returns ``(code, shift)`` where *shift* is the number of characters
    dropped from the start of *inner*, or ``None`` when the tag carries no
    expression (``{/if}``, ``{:else}``, snippet declarations).
    """
    stripped = inner.lstrip()
    shift = len(inner) - len(stripped)
    if not stripped:
        return None
    if _NO_EXPRESSION_RE.match(stripped) and not stripped.startswith(":else if"):
        return None

    block = _BLOCK_OPEN_RE.match(stripped)
    if block is not None:
        keyword = block.group(1)
        shift += block.end()
        stripped = stripped[block.end():]
        if keyword == "#each":
            tail = _EACH_TAIL_RE.search(stripped)
            if tail is not None:
                stripped = stripped[: tail.start()]
        elif keyword == "#await":
            tail = _AWAIT_TAIL_RE.search(stripped)
            if tail is not None:
                stripped = stripped[: tail.start()]
    elif stripped.startswith("@const "):
        shift += 1
        stripped = stripped[1:]
    elif stripped.startswith("..."):
        shift += 3
        stripped = stripped[3:]

    if not stripped.strip():
        return None
    return stripped, shift


# ---------------------------------------------------------------------------
# Scanner
# ---------------------------------------------------------------------------


class _Scanner:
    def __init__(self, text: str, *, svelte: bool) -> None:
        self.text = text
        self.svelte = svelte
        self.pos = 0
        self.result = MarkupScan()

    def run(self) -> MarkupScan:
        text = self.text
        special = _SVELTE_SPECIAL_RE if self.svelte else _HTML_SPECIAL_RE
        while True:
            m = special.search(text, self.pos)
            if m is None:
                break
            self.pos = m.start()
            if text[self.pos] == "{":
                end = scan_braced(text, self.pos)
                self.result.expressions.append((text[self.pos + 1 : end - 1], self.pos + 1))
                self.pos = end
            elif text.startswith("<!--", self.pos):
                self._skip_to("-->", "unterminated comment")
            elif text.startswith("</", self.pos) or text.startswith("<!", self.pos):
                self._skip_to(">", "unterminated tag")
            else:
                name_match = _TAG_NAME_RE.match(text, self.pos + 1)
                if name_match is None:
                    # a "<" not followed by a tag name is text
                    self.pos += 1
                else:
                    self._start_tag(name_match)
        return self.result

    def _skip_to(self, marker: str, reason: str) -> None:
        end = self.text.find(marker, self.pos + 1)
        if end < 0:
            raise ScanError(reason, self.pos)
        self.pos = end + len(marker)

    def _skip_ws(self, pos: int) -> int:
        return _WS_RE.match(self.text, pos).end()

    def _start_tag(self, name_match: re.Match[str]) -> None:
        text = self.text
        start = self.pos
        name = name_match.group(0)
        pos = name_match.end()
        attributes: list[Attribute] = []
        self_closing = False

        while True:
            pos = self._skip_ws(pos)
            if pos >= len(text):
                msg = f"unterminated <{name}> tag"
                raise ScanError(msg, start)
            ch = text[pos]
            if ch == ">":
                pos += 1
                break
            if text.startswith("/>", pos):
                pos += 2
                self_closing = True
                break
            if ch == "{" and self.svelte:
                # {shorthand} and {...spread} attributes
                end = scan_braced(text, pos)
                self.result.expressions.append((text[pos + 1 : end - 1], pos + 1))
                pos = end
                continue
            attr_match = _ATTR_NAME_RE.match(text, pos)
            if attr_match is None:
                pos += 1
                continue
            attr_start = pos
            attr_name = attr_match.group(0)
            pos = attr_match.end()
            after = self._skip_ws(pos)
            value: str | None = None
            parts: tuple[ValuePart, ...] = ()
            if after < len(text) and text[after] == "=":
                pos = self._skip_ws(after + 1)
                value, parts, pos = self._attribute_value(pos)
            attributes.append(Attribute(attr_name, value, attr_start, pos, parts))

        element = Element(name, start, pos, tuple(attributes), self_closing)
        self.result.elements.append(element)
        self.pos = pos

        lowered = name.lower()
        if lowered in _RAW_BLOCKS and not self_closing:
            close = re.compile(rf"</{lowered}\s*>", re.IGNORECASE).search(text, pos)
            if close is None:
                msg = f"unterminated <{name}> block"
                raise ScanError(msg, start)
            self.result.blocks.append(RawBlock(lowered, element, text[pos : close.start()], pos))
            self.pos = close.end()

    def _attribute_value(self, pos: int) -> tuple[str, tuple[ValuePart, ...], int]:
        text = self.text
        if pos >= len(text):
            msg = "missing attribute value"
            raise ScanError(msg, pos)

        ch = text[pos]
        if ch == "{" and self.svelte:
            end = scan_braced(text, pos)
            part = ValuePart("expression", text[pos + 1 : end - 1], pos + 1)
            self.result.expressions.append((part.text, part.offset))
            return text[pos:end], (part,), end

        quote = ch if ch in "\"'" else None
        i = pos + 1 if quote else pos
        value_start = i
        text_start = i
        parts: list[ValuePart] = []
        while True:
            if i >= len(text):
                if quote:
                    msg = "unterminated attribute value"
                    raise ScanError(msg, pos)
                break
            c = text[i]
            if quote and c == quote:
                break
            if not quote and (c.isspace() or c == ">" or text.startswith("/>", i)):
                break
            if c == "{" and self.svelte:
                if i > text_start:
                    parts.append(ValuePart("text", text[text_start:i], text_start))
                end = scan_braced(text, i)
                part = ValuePart("expression", text[i + 1 : end - 1], i + 1)
                parts.append(part)
                self.result.expressions.append((part.text, part.offset))
                i = end
                text_start = i
                continue
            i += 1

        if i > text_start:
            parts.append(ValuePart("text", text[text_start:i], text_start))
        value = text[value_start:i]
        return value, tuple(parts), i + 1 if quote else i


def scan_markup(text: str, *, svelte: bool = True) -> MarkupScan:
    """Scan a markup document.

    With *svelte* enabled, ``{...}`` is treated as a template expression in
    text and attribute values.  Raises :class:`ScanError` for unterminated
    tags, comments, expressions and ``<script>`` / ``<style>`` blocks.
    """
    return _Scanner(text, svelte=svelte).run()
