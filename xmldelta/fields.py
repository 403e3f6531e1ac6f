"""
xmldelta.fields — What a host must provide to store deltas.

The library never touches field storage.  A host hands in an object
with this shape; xmldelta.deltas reads the base value from it and writes
the computed value back.
"""

from dataclasses import dataclass
from typing import Protocol


class XmlField(Protocol):
    """A stored XML field value plus the base value it may be a delta of."""

    @property
    def raw_value(self) -> str:
        """Stored value, possibly a patch document."""
        ...

    @property
    def standard_value(self) -> str:
        """Base value the stored value is relative to."""
        ...

    @property
    def is_standard_values(self) -> bool:
        """True when the field belongs to the item defining the standard value."""
        ...

    value: str


@dataclass
class MemoryField:
    """In-memory XmlField, for hosts without their own storage and for tests."""
    standard_value: str = ""
    stored: str = ""
    is_standard_values: bool = False

    @property
    def raw_value(self) -> str:
        return self.stored

    @property
    def value(self) -> str:
        return self.stored

    @value.setter
    def value(self, value: str) -> None:
        self.stored = value
