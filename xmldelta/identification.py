"""
xmldelta.identification — Which elements are "the same" across versions.

An identification policy gives every element an identity key and names
the attributes that carry that identity.  Two elements under the same
parent with equal keys are the same logical element, wherever they sit.

The default policy matches layout markup: devices carry `id`, renderings
carry `uid`, and an element's key is its tag plus those values.

    <d id="{FE5D}">            → "d[@id='{FE5D}']"
    <r uid="{B3}" ph="main"/>  → "r[@uid='{B3}']"
    <r/>                       → "r"
"""

from collections.abc import Iterable
from dataclasses import dataclass

from lxml import etree


DEFAULT_SIGNIFICANT_ATTRIBUTES = ("id", "uid")


@dataclass(frozen=True, slots=True)
class Attribute:
    """An attribute: qualified name (Clark notation, `{uri}local`) plus string value."""
    name: str
    value: str


def attributes_of(element: etree._Element, reserved: Iterable[str] = ()) -> list[Attribute]:
    """
    Attributes of `element` in declaration order, leaving out those in a
    `reserved` namespace.
    """
    prefixes = tuple(f"{{{uri}}}" for uri in reserved)
    return [Attribute(name, value)
            for name, value in element.attrib.items()
            if not (prefixes and name.startswith(prefixes))]


class IdentificationPolicy:
    """Base class for identification policies.  Not instantiated directly."""

    def get_id(self, element: etree._Element) -> str:
        raise NotImplementedError

    def get_significant_attributes(self, element: etree._Element) -> list[Attribute]:
        raise NotImplementedError


class ElementIdentification(IdentificationPolicy):
    """
    Identity = tag + values of the significant attributes.

    Significant attributes are reported in the element's own declaration
    order, which is also the order anchor predicates list them in.
    """

    def __init__(self, significant: tuple[str, ...] = DEFAULT_SIGNIFICANT_ATTRIBUTES):
        self.significant = tuple(significant)

    def get_significant_attributes(self, element: etree._Element) -> list[Attribute]:
        return [attr for attr in attributes_of(element) if attr.name in self.significant]

    def get_id(self, element: etree._Element) -> str:
        parts = [element.tag]
        for attr in self.get_significant_attributes(element):
            parts.append(f"[@{attr.name}={attr.value!r}]")
        return "".join(parts)

    def __repr__(self) -> str:
        return f"ElementIdentification({self.significant!r})"
