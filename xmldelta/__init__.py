"""
XML Deltas
==========

Structural deltas between two versions of an element tree.

    patch = get_delta(modified, base)       # store this
    value = apply_delta(base, patch)        # == modified, structurally

A delta records what changed relative to element identity, not text
position: attributes set or removed, subtrees added or deleted, and
subtrees moved to a new place among their siblings.

    base      <r><a id="1"/><b id="2"/></r>
    modified  <r><b id="2" x="1"/><a id="1"/></r>
    delta     <r xmlns:p="p" xmlns:s="s" p:p="1">
                <b id="2" p:before="a[@id='1']" s:x="1"/>
              </r>

Building blocks, leaves first:

    engine           LCS sequence diff → spans
    lists            attributes / child elements as comparable keys
    identification   which elements are "the same" across versions
    compare          recursive tree comparison with move detection
    context          patch writer (ComparisonContext → patch tree)
    patcher          patch applier (base + patch → merged tree)
    deltas           text-level facade and host field helpers
"""

from xmldelta.compare import compare, compare_documents, postprocess
from xmldelta.context import (
    ComparisonContext,
    ElementContext,
    PatchNamespaces,
    PatchSummary,
    DEFAULT_NAMESPACES,
    summarize,
)
from xmldelta.deltas import (
    apply_delta, get_delta, is_xml_patch,
    get_field_value, set_field_value, get_standard_value, with_empty_value,
)
from xmldelta.engine import DiffEngine, DiffResultSpan, SpanStatus, diff_report
from xmldelta.errors import (
    DeltaError, StructureError, ParseError, IdentityMismatch,
    AnchorUnresolved, TargetUnresolved, PatchFormatError,
)
from xmldelta.fields import MemoryField, XmlField
from xmldelta.formats import load_xml, parse_xml, to_string, structurally_equal
from xmldelta.identification import (
    Attribute, ElementIdentification, IdentificationPolicy, attributes_of,
)
from xmldelta.lists import AttributeDiffList, ElementDiffList
from xmldelta.patcher import XmlPatcher
from xmldelta.xpath import END_OF_SIBLINGS, Predicate, build_predicate, parse_predicate

__version__ = "0.1.0"
__all__ = [
    "compare", "compare_documents", "postprocess",
    "ComparisonContext", "ElementContext", "PatchNamespaces", "PatchSummary",
    "DEFAULT_NAMESPACES", "summarize",
    "apply_delta", "get_delta", "is_xml_patch",
    "get_field_value", "set_field_value", "get_standard_value", "with_empty_value",
    "DiffEngine", "DiffResultSpan", "SpanStatus", "diff_report",
    "DeltaError", "StructureError", "ParseError", "IdentityMismatch",
    "AnchorUnresolved", "TargetUnresolved", "PatchFormatError",
    "MemoryField", "XmlField",
    "load_xml", "parse_xml", "to_string", "structurally_equal",
    "Attribute", "ElementIdentification", "IdentificationPolicy", "attributes_of",
    "AttributeDiffList", "ElementDiffList",
    "XmlPatcher",
    "END_OF_SIBLINGS", "Predicate", "build_predicate", "parse_predicate",
]
