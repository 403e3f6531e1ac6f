"""
xmldelta.compare — Tree comparison
===================================

Compares two element trees level by level and reports the differences to
a ComparisonContext.

ALGORITHM
═════════

compare(original, modified):

    1. Both roots must have the same identity key.
    2. Diff the attributes (sorted by name).  Added and replaced
       attributes become set instructions; attributes missing from
       `modified` become removals.
    3. Diff the children by identity key.  Every REPLACE span is split
       into DELETE + ADD of the same length, then every DELETE/ADD span
       is split into unit spans.
    4. Move detection: scanning the unit spans in order, each ADD looks
       for an earlier unlinked DELETE of the same identity and each
       DELETE for an earlier unlinked ADD.  The first match is linked.
       A linked pair is a move.
    5. Emit:
           unlinked DELETE   → delete marker
           unlinked ADD      → the whole new subtree, anchored before the
                               next sibling in `modified`
           linked ADD        → move: anchored node, then recurse into it
                               against its original
           linked DELETE     → nothing (the move covers it)
           NO_CHANGE         → recurse pairwise

The anchor of a move or insert is the element that follows it in the
modified child list, written as a predicate over its significant
attributes, or END_OF_SIBLINGS when there is none.
"""

import logging
from collections import Counter

from lxml import etree

from .context import DEFAULT_NAMESPACES, ElementContext, ComparisonContext, PatchNamespaces
from .engine import DiffEngine, DiffResultSpan, SpanStatus
from .errors import IdentityMismatch
from .formats import element_children
from .identification import IdentificationPolicy, attributes_of
from .lists import AttributeDiffList, ElementDiffList, attribute_sort_key
from .xpath import END_OF_SIBLINGS, build_predicate

logger = logging.getLogger(__name__)


def compare(original: etree._Element, modified: etree._Element,
            identification: IdentificationPolicy, context: ComparisonContext) -> None:
    """Record the changes from `original` to `modified` in `context`."""
    original_id = identification.get_id(original)
    modified_id = identification.get_id(modified)
    if original_id != modified_id:
        raise IdentityMismatch(original_id, modified_id)
    context.set_identification(identification.get_significant_attributes(modified))
    _compare_attributes(original, modified, context)
    _compare_children(original, modified, identification, context)


def compare_documents(original_root: etree._Element, modified_root: etree._Element,
                      identification: IdentificationPolicy,
                      namespaces: PatchNamespaces = DEFAULT_NAMESPACES) -> etree._Element:
    """Compare two document roots and return the root of the patch tree."""
    nsmap = dict(original_root.nsmap)
    nsmap.update(namespaces.nsmap)
    patch_root = etree.Element(original_root.tag, nsmap=nsmap)
    patch_root.set(namespaces.patch_attr("p"), "1")
    compare(original_root, modified_root, identification,
            ElementContext(patch_root, namespaces))
    return patch_root


# ═══════════════════════════════════════════════════════════════════
#  ATTRIBUTES
# ═══════════════════════════════════════════════════════════════════

def _compare_attributes(original: etree._Element, modified: etree._Element,
                        context: ComparisonContext) -> None:
    reserved = context.namespaces.reserved
    source = sorted(attributes_of(original, reserved), key=attribute_sort_key)
    dest = sorted(attributes_of(modified, reserved), key=attribute_sort_key)
    dest_names = {attr.name for attr in dest}

    engine = DiffEngine()
    engine.process_diff(AttributeDiffList(source), AttributeDiffList(dest))
    for span in engine.diff_report():
        if span.status in (SpanStatus.ADD_DESTINATION, SpanStatus.REPLACE):
            for i in range(span.length):
                context.set_attribute(dest[span.dest_index + i])
        if span.status in (SpanStatus.DELETE_SOURCE, SpanStatus.REPLACE):
            for i in range(span.length):
                attr = source[span.source_index + i]
                if attr.name not in dest_names:
                    context.remove_attribute(attr)


# ═══════════════════════════════════════════════════════════════════
#  CHILDREN
# ═══════════════════════════════════════════════════════════════════

def _compare_children(original: etree._Element, modified: etree._Element,
                      identification: IdentificationPolicy,
                      context: ComparisonContext) -> None:
    source = element_children(original)
    dest = element_children(modified)
    source_list = ElementDiffList(source, identification)
    dest_list = ElementDiffList(dest, identification)
    # Elements whose identity is not unique among the original siblings
    # are always written out, so the patcher can pair them in order.
    shared = {key for key, count in Counter(source_list).items() if count > 1}

    engine = DiffEngine()
    engine.process_diff(source_list, dest_list)
    spans = postprocess(engine.diff_report(), source_list, dest_list)
    logger.debug("children of %s: %d -> %d, %d spans",
                 modified.tag, len(source), len(dest), len(spans))

    for span in spans:
        if span.status == SpanStatus.DELETE_SOURCE:
            if span.link is None:
                for i in range(span.length):
                    element = source[span.source_index + i]
                    child = context.get_child_context(element.tag)
                    child.set_identification(identification.get_significant_attributes(element))
                    child.delete()

        elif span.status == SpanStatus.ADD_DESTINATION:
            reference = None
            if span.dest_index + span.length < len(dest):
                reference = dest[span.dest_index + span.length]

            if span.link is None:
                for j in range(span.length):
                    _insert_node(context, dest[span.dest_index + j], reference, identification)
            else:
                original_child = source[span.link.source_index]
                modified_child = dest[span.dest_index]
                child = context.get_child_context(modified_child.tag)
                child.set_identification(identification.get_significant_attributes(modified_child))
                anchor = END_OF_SIBLINGS
                if reference is not None:
                    anchor = build_predicate(reference, identification)
                child.set_insert_option("before", anchor)
                child.materialize()
                _compare_attributes(original_child, modified_child, child)
                _compare_children(original_child, modified_child, identification, child)

        elif span.status == SpanStatus.NO_CHANGE:
            for k in range(span.length):
                original_child = source[span.source_index + k]
                modified_child = dest[span.dest_index + k]
                child = context.get_child_context(modified_child.tag)
                child.set_identification(identification.get_significant_attributes(modified_child))
                if source_list[span.source_index + k] in shared:
                    child.materialize()
                _compare_attributes(original_child, modified_child, child)
                _compare_children(original_child, modified_child, identification, child)


def postprocess(report: list[DiffResultSpan],
                source: ElementDiffList, modified: ElementDiffList) -> list[DiffResultSpan]:
    """
    Split REPLACE and multi-item DELETE/ADD spans into unit spans and
    link deletes to adds of the same identity.

    Linking is first-match in scan order; a span is claimed once its
    `link` is set, and spans are never removed from the scan lists, so
    their indices stay valid for anchor computation.
    """
    split: list[DiffResultSpan] = []
    for span in report:
        if span.status == SpanStatus.REPLACE:
            split.append(DiffResultSpan.delete_source(span.source_index, span.length))
            split.append(DiffResultSpan.add_destination(span.dest_index, span.length))
        else:
            split.append(span)

    units: list[DiffResultSpan] = []
    for span in split:
        if span.status == SpanStatus.NO_CHANGE or span.length == 1:
            units.append(span)
        elif span.status == SpanStatus.DELETE_SOURCE:
            units.extend(DiffResultSpan.delete_source(span.source_index + i, 1)
                         for i in range(span.length))
        else:
            units.extend(DiffResultSpan.add_destination(span.dest_index + i, 1)
                         for i in range(span.length))

    deletes: list[DiffResultSpan] = []
    adds: list[DiffResultSpan] = []
    for span in units:
        if span.status == SpanStatus.ADD_DESTINATION:
            key = modified[span.dest_index]
            match = next((d for d in deletes
                          if d.link is None and source[d.source_index] == key), None)
            if match is not None:
                match.set_link(span)
            else:
                adds.append(span)
        elif span.status == SpanStatus.DELETE_SOURCE:
            key = source[span.source_index]
            match = next((a for a in adds
                          if a.link is None and modified[a.dest_index] == key), None)
            if match is not None:
                match.set_link(span)
            else:
                deletes.append(span)

    return units


def _insert_node(context: ComparisonContext, element: etree._Element,
                 reference, identification: IdentificationPolicy,
                 root: bool = True) -> None:
    """Write `element` and all its descendants as new content."""
    child = context.get_child_context(element.tag)
    significant = identification.get_significant_attributes(element)
    child.set_identification(significant)
    if root:
        child.insert()
        if reference is not None:
            child.set_insert_option("before", build_predicate(reference, identification))
    child.materialize()

    significant_names = {attr.name for attr in significant}
    for attr in attributes_of(element, context.namespaces.reserved):
        if attr.name not in significant_names:
            child.set_attribute(attr)

    for grandchild in element_children(element):
        _insert_node(child, grandchild, None, identification, root=False)
