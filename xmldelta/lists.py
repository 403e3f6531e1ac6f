"""
xmldelta.lists — Adapters that let the diff engine compare XML pieces.

The engine compares hashable keys.  These sequences turn attributes and
child elements into keys:

    AttributeDiffList   key = (name, value)
        Two attributes are equal only if name and value match.  Items
        still *correspond* by name: a REPLACE span whose names line up
        is a value overwrite, not a removal plus an addition.
        Callers pass attributes sorted with attribute_sort_key so
        declaration order never shows up as a change.

    ElementDiffList     key = identification.get_id(element)
        Children keep document order; anchors are computed from it.
"""

from collections.abc import Sequence

from lxml import etree

from .identification import Attribute, IdentificationPolicy


def attribute_sort_key(attr: Attribute) -> str:
    """Sort key "{namespace}:{local}"; null-namespace names sort as ":name"."""
    qname = etree.QName(attr.name)
    return f"{qname.namespace or ''}:{qname.localname}"


class AttributeDiffList(Sequence):
    """Attribute comparison keys, in the order given."""

    def __init__(self, attributes: list[Attribute]):
        self.attributes = list(attributes)
        self._keys = [(attr.name, attr.value) for attr in self.attributes]

    def __getitem__(self, index):
        return self._keys[index]

    def __len__(self) -> int:
        return len(self._keys)


class ElementDiffList(Sequence):
    """Identity keys of child elements, in document order."""

    def __init__(self, elements: list[etree._Element], identification: IdentificationPolicy):
        self.elements = list(elements)
        self._keys = [identification.get_id(element) for element in self.elements]

    def __getitem__(self, index):
        return self._keys[index]

    def __len__(self) -> int:
        return len(self._keys)
