"""
xmldelta.deltas — Store XML field values as deltas against a base value.

Two calls make up the boundary with the host:

    get_delta(layout_value, base_value)   → patch text to store
    apply_delta(base_value, delta)        → full markup to show/edit

get_delta is lenient: if either input fails to parse, the modified value
is returned as is, so a save never fails on odd markup.  apply_delta
trusts its base and raises when the base is broken; a delta that is not
in patch form is returned untouched (it already is a full value).

Field helpers wire the same calls to a host field (see xmldelta.fields).
"""

import logging
from typing import Callable, Optional

from .compare import compare_documents
from .context import DEFAULT_NAMESPACES, PatchNamespaces, summarize
from .fields import XmlField
from .formats import load_xml, parse_xml, to_string
from .identification import ElementIdentification, IdentificationPolicy
from .patcher import XmlPatcher

logger = logging.getLogger(__name__)


def get_delta(layout_value: str, base_value: str,
              identification: Optional[IdentificationPolicy] = None,
              namespaces: PatchNamespaces = DEFAULT_NAMESPACES) -> str:
    """Patch text turning `base_value` into `layout_value`."""
    base_root = load_xml(base_value)
    if base_root is None:
        logger.warning("base value is not valid XML; storing the full value")
        return layout_value
    modified_root = load_xml(layout_value)
    if modified_root is None:
        logger.warning("modified value is not valid XML; storing it unchanged")
        return layout_value

    identification = identification or ElementIdentification()
    patch_root = compare_documents(base_root, modified_root, identification, namespaces)
    logger.debug("computed delta: %r", summarize(patch_root, namespaces))
    return to_string(patch_root)


def is_xml_patch(value: Optional[str],
                 namespaces: PatchNamespaces = DEFAULT_NAMESPACES) -> bool:
    """Whether `value` is a patch document (rather than a full value)."""
    root = load_xml(value)
    return root is not None and XmlPatcher(namespaces).is_patch(root)


def apply_delta(base_value: str, delta: str,
                identification: Optional[IdentificationPolicy] = None,
                namespaces: PatchNamespaces = DEFAULT_NAMESPACES) -> str:
    """Full markup obtained by applying `delta` to `base_value`."""
    base_root = parse_xml(base_value, "base")
    patch_root = load_xml(delta)
    patcher = XmlPatcher(namespaces, identification)
    if patch_root is None or not patcher.is_patch(patch_root):
        return delta
    patcher.merge(base_root, patch_root)
    return to_string(base_root)


# ═══════════════════════════════════════════════════════════════════
#  FIELD HELPERS
# ═══════════════════════════════════════════════════════════════════

def get_standard_value(field: XmlField) -> str:
    return field.standard_value


def with_empty_value(empty_value: str) -> Callable[[XmlField], str]:
    """
    Base-value accessor for get_field_value that falls back to
    `empty_value` when the field's standard value is blank.
    """
    def get_base_value(field: XmlField) -> str:
        standard_value = field.standard_value
        if standard_value is None or not standard_value.strip():
            return empty_value
        return standard_value
    return get_base_value


def get_field_value(field: XmlField,
                    get_base_value: Callable[[XmlField], str] = get_standard_value,
                    namespaces: PatchNamespaces = DEFAULT_NAMESPACES) -> str:
    """
    The value a field shows: its stored value, merged onto the base
    value when the stored value is a delta.
    """
    value = field.raw_value
    if not value:
        return field.standard_value
    if is_xml_patch(value, namespaces):
        return apply_delta(get_base_value(field), value, namespaces=namespaces)
    return value


def set_field_value(field: XmlField, value: str,
                    namespaces: PatchNamespaces = DEFAULT_NAMESPACES) -> None:
    """
    Store `value` in the field, as a delta against its standard value
    unless the field belongs to the standard values item itself.
    """
    if value is None:
        raise ValueError("value must not be None")
    if field.is_standard_values:
        field.value = value
        return
    field.value = get_delta(value, field.standard_value, namespaces=namespaces)
