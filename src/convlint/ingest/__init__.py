"""Source ingestion - discovery, classification and structural parsing."""

from convlint.ingest.ingestor import classify, discover, ingest, parse_unit, sniff
from convlint.ingest.units import (
    AtRule,
    Attribute,
    Candidate,
    Category,
    ClassToken,
    ConfigEntry,
    DynamicClass,
    Element,
    LineIndex,
    ScriptBlock,
    SourceUnit,
    UnitState,
    ValuePart,
)

__all__ = [
    "AtRule",
    "Attribute",
    "Candidate",
    "Category",
    "ClassToken",
    "ConfigEntry",
    "DynamicClass",
    "Element",
    "LineIndex",
    "ScriptBlock",
    "SourceUnit",
    "UnitState",
    "ValuePart",
    "classify",
    "discover",
    "ingest",
    "parse_unit",
    "sniff",
]
