"""
xmldelta.patcher — Apply a patch document to a base tree.

merge(base_root, patch_root) rewrites `base_root` in place so that it
matches the modified document the patch was computed from.

At every level:

    1. Set and unset the attributes the patch node asks for.
    2. Pair each patch child with a base child.  New subtrees (p:i) have
       no partner; every other patch child takes the first unclaimed
       base child with the same identity key.
    3. Walk the patch children from last to first:
           p:d          remove the partner
           p:i          build the subtree, place it by its anchor
                        (append when it has none)
           otherwise    recurse into the partner; if the node carries an
                        anchor, move the partner there

Anchors are resolved against the sibling list as it stands at that
moment.  Walking backwards means the sibling an anchor names has
already been put in its final place.  When that sibling is itself in
the patch it is the element placed just before, so that element is
tried first; this keeps anchors over repeated identity keys (anonymous
siblings) pointing at the right one.  A sibling matches an anchor only
when its significant attributes are exactly those the anchor names, so
the bare anchor `b` never lands on a keyed `<b id="0"/>`.
"""

import logging
from typing import Optional

from lxml import etree

from .context import (
    DEFAULT_NAMESPACES, DELETE, INSERT, PATCH_MARKER, POSITIONS, UNSET, PatchNamespaces,
)
from .errors import AnchorUnresolved, IdentityMismatch, PatchFormatError, TargetUnresolved
from .formats import element_children
from .identification import ElementIdentification, IdentificationPolicy
from .xpath import parse_predicate

logger = logging.getLogger(__name__)


class XmlPatcher:
    """Merges patch documents written in the given namespaces."""

    def __init__(self, namespaces: PatchNamespaces = DEFAULT_NAMESPACES,
                 identification: Optional[IdentificationPolicy] = None):
        self.namespaces = namespaces
        self.identification = identification or ElementIdentification()

    def is_patch(self, root: etree._Element) -> bool:
        return root.get(self.namespaces.patch_attr(PATCH_MARKER)) == "1"

    def merge(self, base_root: etree._Element, patch_root: etree._Element) -> etree._Element:
        """Apply `patch_root` to `base_root` in place and return `base_root`."""
        base_id = self.identification.get_id(base_root)
        patch_id = self.identification.get_id(patch_root)
        if base_id != patch_id:
            raise IdentityMismatch(base_id, patch_id)
        self._apply_attributes(base_root, patch_root)
        self._merge_children(base_root, patch_root)
        return base_root

    # ─── attributes ─────────────────────────────────────────────────

    def _apply_attributes(self, target: etree._Element, node: etree._Element) -> None:
        unset = node.get(self.namespaces.patch_attr(UNSET))
        if unset:
            for name in unset.split():
                target.attrib.pop(name, None)
        for name, value in node.attrib.items():
            if self.namespaces.is_instruction(name):
                target.set(self.namespaces.content_name(name), value)

    # ─── children ───────────────────────────────────────────────────

    def _is_new(self, node: etree._Element) -> bool:
        return node.get(self.namespaces.patch_attr(INSERT)) == "1"

    def _is_deleted(self, node: etree._Element) -> bool:
        return node.get(self.namespaces.patch_attr(DELETE)) == "1"

    def _insert_option(self, node: etree._Element) -> Optional[tuple[str, str]]:
        options = [(position, node.get(self.namespaces.patch_attr(position)))
                   for position in POSITIONS]
        options = [(position, anchor) for position, anchor in options if anchor is not None]
        if len(options) > 1:
            raise PatchFormatError(f"{node.tag!r} carries both before and after anchors")
        return options[0] if options else None

    def _pair(self, base: etree._Element, patch: etree._Element):
        candidates = element_children(base)
        keys = [self.identification.get_id(child) for child in candidates]
        claimed = [False] * len(candidates)

        pairs = []
        for node in element_children(patch):
            if self._is_new(node):
                pairs.append((node, None))
                continue
            key = self.identification.get_id(node)
            for index, candidate_key in enumerate(keys):
                if not claimed[index] and candidate_key == key:
                    claimed[index] = True
                    pairs.append((node, candidates[index]))
                    break
            else:
                raise TargetUnresolved(key)
        return pairs

    def _merge_children(self, base: etree._Element, patch: etree._Element) -> None:
        placed = None
        for node, target in reversed(self._pair(base, patch)):
            if target is None:
                placed = self._place(base, self._build(node), node, placed)
            elif self._is_deleted(node):
                base.remove(target)
            else:
                self._apply_attributes(target, node)
                self._merge_children(target, node)
                placed = self._place(base, target, node, placed)

    def _place(self, parent: etree._Element, element: etree._Element,
               node: etree._Element,
               previous: Optional[etree._Element] = None) -> etree._Element:
        option = self._insert_option(node)
        if option is None:
            if element.getparent() is None:
                parent.append(element)
            return element

        position, anchor = option
        predicate = parse_predicate(anchor)
        if predicate is None:
            if position == "before":
                parent.append(element)
            else:
                parent.insert(0, element)
            return element

        def anchored(child: etree._Element) -> bool:
            return child is not element and predicate.matches(child, self.identification)

        if position == "before" and previous is not None and anchored(previous):
            sibling = previous
        else:
            sibling = next((child for child in element_children(parent) if anchored(child)), None)
        if sibling is None:
            raise AnchorUnresolved(anchor, parent.tag)
        logger.debug("placing %s %s %s", element.tag, position, anchor)
        if position == "before":
            sibling.addprevious(element)
        else:
            sibling.addnext(element)
        return element

    def _build(self, node: etree._Element) -> etree._Element:
        """Create the new element a p:i node describes, with its subtree."""
        element = etree.Element(node.tag)
        for name, value in node.attrib.items():
            if self.namespaces.is_instruction(name):
                element.set(self.namespaces.content_name(name), value)
            elif not name.startswith("{"):
                element.set(name, value)
        for child in element_children(node):
            element.append(self._build(child))
        return element
