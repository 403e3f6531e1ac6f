"""
xmldelta.formats — Convert between markup text and element trees.

    load_xml(text)          → root element, or None if the text is unusable
    parse_xml(text, side)   → root element, or raise ParseError/StructureError
    to_string(element)      → markup text
    element_children(el)    → element children only (no comments, PIs)
    structurally_equal(a, b)
                            → same tags, same attributes (any order),
                              same children in the same order
"""

from typing import Optional, Union

from lxml import etree

from .errors import ParseError, StructureError


def _parser() -> etree.XMLParser:
    # One parser per call: parsers are not shared across threads.
    return etree.XMLParser(remove_blank_text=True, resolve_entities=False, no_network=True)


def parse_xml(text: Union[str, bytes, None], side: str) -> etree._Element:
    """
    Parse `text` and return its document element.

    `side` ("original", "modified", "base", "delta") is carried by the
    raised error.
    """
    if text is None:
        raise StructureError(side, "no markup given")
    if isinstance(text, str):
        if not text.strip():
            raise StructureError(side, "document element is missing")
        data = text.encode("utf-8")
    else:
        if not text.strip():
            raise StructureError(side, "document element is missing")
        data = text

    try:
        root = etree.fromstring(data, _parser())
    except etree.XMLSyntaxError as e:
        raise ParseError(side, str(e)) from e
    if root is None:
        raise StructureError(side, "document element is missing")
    return root


def load_xml(text: Union[str, bytes, None]) -> Optional[etree._Element]:
    """Lenient parse: the document element, or None."""
    try:
        return parse_xml(text, "input")
    except StructureError:
        return None


def to_string(element: etree._Element) -> str:
    """Serialize an element (and its subtree) as markup text."""
    return etree.tostring(element, encoding="unicode")


def element_children(element: etree._Element) -> list[etree._Element]:
    return list(element.iterchildren(tag=etree.Element))


def structurally_equal(a: etree._Element, b: etree._Element) -> bool:
    """
    Tree equality for diff purposes.

    Attribute declaration order, whitespace and comments are ignored;
    child order is not.
    """
    if a.tag != b.tag:
        return False
    if dict(a.attrib) != dict(b.attrib):
        return False
    a_children = element_children(a)
    b_children = element_children(b)
    if len(a_children) != len(b_children):
        return False
    return all(structurally_equal(x, y) for x, y in zip(a_children, b_children))
