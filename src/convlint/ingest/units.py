"""Source units and their structural representations."""

from __future__ import annotations

import bisect
import enum
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path

    from tree_sitter import Node as TSNode
    from tree_sitter import Tree

_NEWLINE_RE = re.compile(r"\n")


class Category(enum.Enum):
    """Syntactic category a file is classified into."""

    COMPONENT = "component"  # markup with embedded script / style blocks
    SCRIPT = "script"
    STYLESHEET = "stylesheet"
    CONFIG = "build-config"
    UNCLASSIFIED = "unclassified"


class UnitState(enum.Enum):
    """Pipeline states of one unit.

    ``CLASSIFIED -> PARSED -> MATCHED -> REPORTED``, or
    ``CLASSIFIED -> PARSE_FAILURE -> REPORTED`` when ingestion fails.
    """

    UNCLASSIFIED = "unclassified"
    CLASSIFIED = "classified"
    PARSED = "parsed"
    PARSE_FAILURE = "parse-failure"
    MATCHED = "matched"
    REPORTED = "reported"


class LineIndex:
    """Map character offsets to 1-based ``(line, column)`` positions."""

    __slots__ = ("_starts",)

    def __init__(self, text: str) -> None:
        self._starts = [0] + [m.end() for m in _NEWLINE_RE.finditer(text)]

    def position(self, offset: int) -> tuple[int, int]:
        line = bisect.bisect_right(self._starts, offset)
        return line, offset - self._starts[line - 1] + 1


# ---------------------------------------------------------------------------
# Structural pieces
# ---------------------------------------------------------------------------


@dataclass(frozen=True, eq=False)
class ScriptBlock:
    """A tree-sitter syntax tree for one script region of a file.

    ``offset`` is the character offset of the region in the file.
    ``origin`` is ``instance`` (component script), ``module`` (module-level
    component script), ``file`` (a script module) or ``expression``
    (a template expression).
    """

    tree: Tree
    source: bytes
    offset: int
    origin: str

    def char_offset(self, byte_offset: int) -> int:
        """File character offset of a byte offset inside this block."""
        prefix = self.source[:byte_offset].decode("utf-8", errors="replace")
        return self.offset + len(prefix)

    def text(self, node: TSNode) -> str:
        return self.source[node.start_byte : node.end_byte].decode("utf-8", errors="replace")


@dataclass(frozen=True)
class ValuePart:
    """Static text or a ``{...}`` expression inside an attribute value."""

    kind: str  # "text" | "expression"
    text: str
    offset: int


@dataclass(frozen=True)
class Attribute:
    """A markup attribute or directive."""

    name: str
    value: str | None  # raw value without quotes; None for bare attributes
    offset: int
    end: int
    parts: tuple[ValuePart, ...] = ()


@dataclass(frozen=True)
class Element:
    """A markup start tag."""

    name: str
    offset: int
    end: int
    attributes: tuple[Attribute, ...] = ()
    self_closing: bool = False

    def attribute(self, name: str) -> Attribute | None:
        for attr in self.attributes:
            if attr.name == name:
                return attr
        return None


@dataclass(frozen=True)
class ClassToken:
    """One static utility token."""

    text: str
    offset: int


@dataclass(frozen=True)
class DynamicClass:
    """A class token assembled by string interpolation, e.g. ``bg-{tone}-500``."""

    text: str
    offset: int
    end: int


@dataclass(frozen=True)
class AtRule:
    """A stylesheet at-rule such as ``@tailwind base``."""

    name: str
    prelude: str
    offset: int
    end: int


@dataclass(frozen=True)
class ConfigEntry:
    """One key (or array element) of a configuration key-value tree."""

    path: tuple[str, ...]
    value: str | None
    text: str
    offset: int

    @property
    def key(self) -> str:
        return ".".join(self.path)


# ---------------------------------------------------------------------------
# Units
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Candidate:
    """A file found by the walker, classified but not yet read."""

    path: Path
    rel_path: str
    category: Category


@dataclass(frozen=True, eq=False)
class SourceUnit:
    """A parsed file ready for matching.

    Only the representation fields relevant to the unit's category are
    populated: components carry scripts, elements, classes and at-rules;
    stylesheets carry at-rules and classes; config files carry entries.
    """

    path: str
    content: str
    category: Category
    lines: LineIndex
    scripts: tuple[ScriptBlock, ...] = ()
    elements: tuple[Element, ...] = ()
    classes: tuple[ClassToken, ...] = ()
    dynamic_classes: tuple[DynamicClass, ...] = ()
    at_rules: tuple[AtRule, ...] = ()
    config: tuple[ConfigEntry, ...] = ()

    def position(self, offset: int) -> tuple[int, int]:
        return self.lines.position(offset)
