"""
xmldelta.context — Comparison contexts and the patch document format.

The comparator never builds XML itself.  It reports what it finds to a
ComparisonContext, one context per element, and asks for child contexts
as it descends.  ElementContext is the context that writes a patch
document.

PATCH FORMAT
════════════

A patch is shaped like the modified document, but only the elements
that carry an instruction (or lead to one) are present.  Two reserved
namespaces keep instructions apart from content:

    patch namespace (default token "p")        structural instructions
        p:p="1"          on the root: this document is a patch
        p:d="1"          delete the matching base element
        p:i="1"          this element is new; build it from the patch
        p:before="X"     place the element just before sibling X
        p:after="X"      place the element just after sibling X
        p:unset="a b"    remove attributes a and b (namespaced ones
                         in Clark notation, `{uri}local`)

    set namespace (default token "s")           attribute instructions
        s:name="value"   set attribute `name` to `value`

    any other namespace                          attribute instructions
        x:name="value"   set the namespaced attribute `x:name` as is

Plain (non-namespaced) attributes on a patch element are its significant
attributes; they tell the patcher which base element the node stands for.

    <r xmlns:p="p" xmlns:s="s" p:p="1">
      <d id="{FE5D}">
        <r uid="{B3}" s:ph="main"/>
        <r uid="{C4}" p:before="r[@uid='{B3}']"/>
        <r uid="{D9}" p:d="1"/>
      </d>
    </r>

Each token doubles as prefix and namespace URI, matching stored values
of this format.
"""

from dataclasses import dataclass, field
from typing import Optional

from lxml import etree

from .errors import DeltaError
from .identification import Attribute


PATCH_MARKER = "p"
DELETE = "d"
INSERT = "i"
UNSET = "unset"
POSITIONS = ("before", "after")


@dataclass(frozen=True, slots=True)
class PatchNamespaces:
    """Namespace tokens for structural (`patch`) and attribute (`set`) instructions."""
    patch: str = "p"
    set: str = "s"

    def patch_attr(self, local: str) -> str:
        return f"{{{self.patch}}}{local}"

    def set_attr(self, name: str) -> str:
        """Patch attribute that sets `name`; namespaced names are written as is."""
        if name.startswith("{"):
            return name
        return f"{{{self.set}}}{name}"

    @property
    def reserved(self) -> tuple[str, str]:
        return (self.patch, self.set)

    def is_instruction(self, name: str) -> bool:
        """Whether patch attribute `name` sets a content attribute."""
        if name.startswith(f"{{{self.set}}}"):
            return True
        return name.startswith("{") and not name.startswith(f"{{{self.patch}}}")

    def content_name(self, name: str) -> str:
        """Content attribute a set instruction `name` writes."""
        prefix = f"{{{self.set}}}"
        return name[len(prefix):] if name.startswith(prefix) else name

    @property
    def nsmap(self) -> dict[str, str]:
        return {self.patch: self.patch, self.set: self.set}


DEFAULT_NAMESPACES = PatchNamespaces()


# ═══════════════════════════════════════════════════════════════════
#  CONTEXT INTERFACE
# ═══════════════════════════════════════════════════════════════════

class ComparisonContext:
    """
    Sink for comparator events about one element.

    Not instantiated directly; see ElementContext.  Attributes in the
    reserved `namespaces` are never reported as content.
    """

    namespaces: PatchNamespaces = DEFAULT_NAMESPACES

    def set_identification(self, attributes: list[Attribute]) -> None:
        raise NotImplementedError

    def set_attribute(self, attribute: Attribute) -> None:
        raise NotImplementedError

    def remove_attribute(self, attribute: Attribute) -> None:
        raise NotImplementedError

    def delete(self) -> None:
        raise NotImplementedError

    def insert(self) -> None:
        raise NotImplementedError

    def set_insert_option(self, position: str, reference: str) -> None:
        raise NotImplementedError

    def materialize(self) -> None:
        raise NotImplementedError

    def get_child_context(self, tag: str) -> "ComparisonContext":
        raise NotImplementedError


# ═══════════════════════════════════════════════════════════════════
#  PATCH WRITER
# ═══════════════════════════════════════════════════════════════════

class ElementContext(ComparisonContext):
    """
    Writes comparator events into a patch tree.

    A context is either bound to an existing element (the patch root) or
    to a parent context plus a tag; in the latter case the element is
    created on first write, so untouched subtrees leave no trace.
    """

    def __init__(self, element: Optional[etree._Element] = None,
                 namespaces: PatchNamespaces = DEFAULT_NAMESPACES,
                 parent: Optional["ElementContext"] = None,
                 tag: Optional[str] = None):
        if element is None and (parent is None or tag is None):
            raise ValueError("ElementContext needs an element or a parent and a tag")
        self.element = element
        self.namespaces = namespaces
        self.parent = parent
        self.tag = tag if tag is not None else element.tag
        self.identification: list[Attribute] = []
        self.deleted = False
        self.inserted = False
        self.detached = False
        self._insert_option: Optional[tuple[str, str]] = None
        self._unset: list[str] = []

    def _ensure_element(self) -> etree._Element:
        if self.element is None:
            parent_element = self.parent._ensure_element()
            self.element = etree.SubElement(parent_element, self.tag)
            for attr in self.identification:
                self.element.set(attr.name, attr.value)
        return self.element

    def _check_materialized(self, operation: str) -> None:
        if self.inserted and self.element is None:
            raise DeltaError(f"{operation} on inserted element {self.tag!r} before materialize()")

    def set_identification(self, attributes: list[Attribute]) -> None:
        self.identification = list(attributes)
        if self.element is not None:
            for attr in self.identification:
                self.element.set(attr.name, attr.value)

    def set_attribute(self, attribute: Attribute) -> None:
        if self.deleted or self.detached:
            return
        self._check_materialized("set_attribute")
        element = self._ensure_element()
        element.set(self.namespaces.set_attr(attribute.name), attribute.value)

    def remove_attribute(self, attribute: Attribute) -> None:
        if self.deleted or self.detached:
            return
        self._check_materialized("remove_attribute")
        element = self._ensure_element()
        if attribute.name not in self._unset:
            self._unset.append(attribute.name)
        element.set(self.namespaces.patch_attr(UNSET), " ".join(self._unset))

    def delete(self) -> None:
        if self.detached:
            return
        self.deleted = True
        element = self._ensure_element()
        element.set(self.namespaces.patch_attr(DELETE), "1")

    def insert(self) -> None:
        self.inserted = True

    def set_insert_option(self, position: str, reference: str) -> None:
        if position not in POSITIONS:
            raise ValueError(f"insert position must be one of {POSITIONS}, got {position!r}")
        self._insert_option = (position, reference)

    def materialize(self) -> None:
        """Commit this element to the patch, with any pending insert option."""
        if self.detached:
            return
        element = self._ensure_element()
        if self.inserted:
            element.set(self.namespaces.patch_attr(INSERT), "1")
        if self._insert_option is not None:
            position, reference = self._insert_option
            element.set(self.namespaces.patch_attr(position), reference)

    def get_child_context(self, tag: str) -> "ElementContext":
        if self.deleted or self.detached:
            child = ElementContext(etree.Element(tag), self.namespaces)
            child.detached = True
            return child
        self._check_materialized("get_child_context")
        return ElementContext(namespaces=self.namespaces, parent=self, tag=tag)

    def __repr__(self) -> str:
        state = "deleted" if self.deleted else "inserted" if self.inserted else "matched"
        return f"ElementContext({self.tag!r}, {state})"


# ═══════════════════════════════════════════════════════════════════
#  PATCH INSPECTION
# ═══════════════════════════════════════════════════════════════════

@dataclass
class PatchSummary:
    """Instruction counts over a whole patch tree."""
    sets: int = 0
    unsets: int = 0
    deletes: int = 0
    inserts: int = 0
    moves: int = 0
    set_names: list[str] = field(default_factory=list)

    @property
    def structural(self) -> int:
        return self.deletes + self.inserts + self.moves

    @property
    def empty(self) -> bool:
        return not (self.sets or self.unsets or self.structural)

    def __repr__(self) -> str:
        return (f"PatchSummary(sets={self.sets}, unsets={self.unsets}, deletes={self.deletes}, "
                f"inserts={self.inserts}, moves={self.moves})")


def summarize(patch_root: etree._Element,
              namespaces: PatchNamespaces = DEFAULT_NAMESPACES) -> PatchSummary:
    """
    Count the instructions in a patch.

    An inserted subtree counts as one insert; attributes written inside
    it are content, not set instructions.
    """
    summary = PatchSummary()
    _summarize(patch_root, namespaces, summary)
    return summary


def _summarize(element: etree._Element, ns: PatchNamespaces, summary: PatchSummary) -> None:
    if element.get(ns.patch_attr(INSERT)) == "1":
        summary.inserts += 1
        return
    if element.get(ns.patch_attr(DELETE)) == "1":
        summary.deletes += 1
        return
    if any(element.get(ns.patch_attr(position)) is not None for position in POSITIONS):
        summary.moves += 1

    for name in element.attrib:
        if ns.is_instruction(name):
            summary.sets += 1
            summary.set_names.append(ns.content_name(name))
    unset = element.get(ns.patch_attr(UNSET))
    if unset:
        summary.unsets += len(unset.split())

    for child in element.iterchildren(tag=etree.Element):
        _summarize(child, ns, summary)
