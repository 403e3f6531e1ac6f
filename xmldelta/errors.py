"""
xmldelta.errors — Failure taxonomy for diffing and patching.

Every failure raised by the comparator, the patcher and the facade is a
DeltaError.  Only the facade ever turns one of them into a pass-through
value; everything below it raises and lets the caller decide.
"""

from typing import Optional


class DeltaError(Exception):
    """Base class for all xmldelta failures."""


class StructureError(DeltaError):
    """
    An input document has no usable structure.

    `side` names the input that failed ("original", "modified", "base"
    or "delta") so callers can tell a bad baseline from a bad edit.
    """

    def __init__(self, side: str, reason: str):
        self.side = side
        self.reason = reason
        super().__init__(f"{side}: {reason}")


class ParseError(StructureError):
    """Input text is not well-formed markup."""


class IdentityMismatch(DeltaError):
    """Two roots were compared or merged whose identity keys differ."""

    def __init__(self, original_id: str, modified_id: str):
        self.original_id = original_id
        self.modified_id = modified_id
        super().__init__(
            f"Can't start with unequal nodes: {original_id!r} != {modified_id!r}"
        )


class AnchorUnresolved(DeltaError):
    """An insertion anchor matches no sibling in the base being patched."""

    def __init__(self, anchor: str, parent: Optional[str] = None):
        self.anchor = anchor
        self.parent = parent
        where = f" under {parent!r}" if parent else ""
        super().__init__(f"anchor {anchor!r} matches no sibling{where}")


class TargetUnresolved(DeltaError):
    """A patch instruction addresses an element the base does not have."""

    def __init__(self, identity: str):
        self.identity = identity
        super().__init__(f"no base element for patch node {identity!r}")


class PatchFormatError(DeltaError):
    """A reserved patch attribute carries a value that cannot be read."""
