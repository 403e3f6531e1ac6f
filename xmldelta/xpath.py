"""
xmldelta.xpath — Single-step anchor predicates.

A patch places inserted and moved elements relative to a sibling, named
by a one-step XPath predicate over that sibling's significant attributes:

    r[@uid='{B3}']
    d[@id='{FE5D}' and @layout='{14}']
    r                                   (no significant attributes)
    *[1=2]                              (no such element: end of list)

Values are XPath 1.0 string literals.  A value holding both quote kinds
is written as concat('it', "'", 's "x"').

Only this shape is produced and only this shape is read back; there is
no general XPath evaluation here.
"""

import re
from dataclasses import dataclass
from typing import Optional

from lxml import etree

from .errors import PatchFormatError
from .identification import IdentificationPolicy


END_OF_SIBLINGS = "*[1=2]"

_STEP = re.compile(r"^(?P<name>[^\s\[\]@'\"=]+)(?:\[(?P<body>.*)\])?$", re.DOTALL)
_ATTR = re.compile(r"""@(?P<attr>[^\s@'"=\[\](),]+)\s*=\s*""")
_LITERAL = re.compile(r"""'(?P<sq>[^']*)'|"(?P<dq>[^"]*)\"""")
_CONCAT = re.compile(r"concat\(\s*")
_COMMA = re.compile(r"\s*,\s*")
_CLOSE = re.compile(r"\s*\)")
_AND = re.compile(r"\s+and\s+")


def _literal(value: str) -> str:
    if "'" not in value:
        return f"'{value}'"
    if '"' not in value:
        return f'"{value}"'
    args = []
    for i, part in enumerate(value.split("'")):
        if i:
            args.append('"\'"')
        if part:
            args.append(f"'{part}'")
    return f"concat({', '.join(args)})"


def _read_literal(text: str, pos: int) -> Optional[tuple[str, int]]:
    match = _LITERAL.match(text, pos)
    if match is None:
        return None
    value = match.group("sq") if match.group("sq") is not None else match.group("dq")
    return value, match.end()


def _read_value(text: str, pos: int) -> Optional[tuple[str, int]]:
    """A string literal or a concat() of literals starting at `pos`."""
    concat = _CONCAT.match(text, pos)
    if concat is None:
        return _read_literal(text, pos)

    parts = []
    pos = concat.end()
    while True:
        literal = _read_literal(text, pos)
        if literal is None:
            return None
        parts.append(literal[0])
        pos = literal[1]
        comma = _COMMA.match(text, pos)
        if comma is None:
            break
        pos = comma.end()
    close = _CLOSE.match(text, pos)
    if close is None or len(parts) < 2:
        return None
    return "".join(parts), close.end()


def local_name(element: etree._Element) -> str:
    return etree.QName(element).localname


def build_predicate(element: etree._Element, identification: IdentificationPolicy) -> str:
    """Predicate naming `element` by its significant attributes."""
    tests = [f"@{attr.name}={_literal(attr.value)}"
             for attr in identification.get_significant_attributes(element)]
    name = local_name(element)
    if not tests:
        return name
    return f"{name}[{' and '.join(tests)}]"


@dataclass(frozen=True, slots=True)
class Predicate:
    """A parsed anchor: local name (or "*") plus exact attribute values."""
    name: str
    attributes: tuple[tuple[str, str], ...] = ()

    def matches(self, element: etree._Element,
                identification: Optional[IdentificationPolicy] = None) -> bool:
        """
        Whether `element` satisfies the predicate.

        With an `identification`, the element's significant attributes
        must be exactly the predicate's, so `b` does not match `<b id="0"/>`.
        """
        if not isinstance(element.tag, str):
            return False
        if self.name != "*" and local_name(element) != self.name:
            return False
        if identification is not None:
            significant = {attr.name: attr.value
                           for attr in identification.get_significant_attributes(element)}
            return significant == dict(self.attributes)
        return all(element.get(attr) == value for attr, value in self.attributes)

    def __str__(self) -> str:
        if not self.attributes:
            return self.name
        tests = " and ".join(f"@{attr}={_literal(value)}" for attr, value in self.attributes)
        return f"{self.name}[{tests}]"


def parse_predicate(text: str) -> Optional[Predicate]:
    """
    Read an anchor predicate.

    Returns None for END_OF_SIBLINGS.  Raises PatchFormatError for
    anything that is not a single step with attribute-equality tests.
    """
    text = text.strip()
    if text == END_OF_SIBLINGS:
        return None

    step = _STEP.match(text)
    if step is None:
        raise PatchFormatError(f"malformed anchor {text!r}")

    body = step.group("body")
    if body is None:
        return Predicate(step.group("name"))

    attributes = []
    pos = 0
    body = body.strip()
    while pos < len(body):
        if attributes:
            sep = _AND.match(body, pos)
            if sep is None:
                raise PatchFormatError(f"malformed anchor {text!r}")
            pos = sep.end()
        test = _ATTR.match(body, pos)
        value = _read_value(body, test.end()) if test is not None else None
        if value is None:
            raise PatchFormatError(f"malformed anchor {text!r}")
        attributes.append((test.group("attr"), value[0]))
        pos = value[1]

    if not attributes:
        raise PatchFormatError(f"malformed anchor {text!r}")
    return Predicate(step.group("name"), tuple(attributes))
