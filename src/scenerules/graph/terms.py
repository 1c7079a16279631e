"""Minimal RDF term model for the scene graph projection.

Relation properties are stated about the relation quad itself, so a
:class:`Quad` may appear as the subject of another quad.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass

from scenerules.graph.vocabulary import XSD_STRING

_NUMBER_PATTERN = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?$")
_INTEGER_PATTERN = re.compile(r"^[+-]?\d+$")

# Integral floats below this render without exponent or fraction.
_PLAIN_INTEGER_LIMIT = 1e21


@dataclass(frozen=True)
class NamedNode:
    """An IRI term."""

    value: str


@dataclass(frozen=True)
class LiteralTerm:
    """A literal value tagged with a datatype IRI."""

    value: str
    datatype: str = XSD_STRING


Term = NamedNode | LiteralTerm


@dataclass(frozen=True)
class Quad:
    """A statement in the default graph."""

    subject: NamedNode | Quad
    predicate: NamedNode
    object: Term


def term_to_string(term: Term) -> str:
    """Render a term in N-Triples-like notation for messages."""
    if isinstance(term, NamedNode):
        return f"<{term.value}>"
    escaped = term.value.replace("\\", "\\\\").replace('"', '\\"')
    if term.datatype == XSD_STRING:
        return f'"{escaped}"'
    return f'"{escaped}"^^<{term.datatype}>'


def format_number(value: int | float) -> str:
    """Render a number the way it is written in rule files.

    Integral floats drop the trailing ``.0`` so ``2.0`` and ``2`` produce
    the same literal.
    """
    if isinstance(value, float):
        if value.is_integer() and abs(value) < _PLAIN_INTEGER_LIMIT:
            return str(int(value))
        return repr(value)
    return str(value)


def parse_number(text: str) -> int | float | None:
    """Parse a decimal number, returning None when *text* is not one.

    Integral results are returned as ``int``. Non-finite values are rejected.
    """
    stripped = text.strip()
    if not _NUMBER_PATTERN.match(stripped):
        return None
    if _INTEGER_PATTERN.match(stripped):
        return int(stripped)
    value = float(stripped)
    if not math.isfinite(value):
        return None
    if value.is_integer() and abs(value) < _PLAIN_INTEGER_LIMIT:
        return int(value)
    return value
