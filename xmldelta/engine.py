"""
xmldelta.engine — Generic sequence diff
========================================

§1  THE PROBLEM
───────────────

Given two ordered sequences A (source) and B (destination), describe B
as a set of contiguous runs over A:

    NO_CHANGE        A[i:i+n] == B[j:j+n]
    DELETE_SOURCE    A[i:i+n] has no counterpart in B
    ADD_DESTINATION  B[j:j+n] has no counterpart in A
    REPLACE          A[i:i+n] is overwritten position-by-position by B[j:j+n]

Every source index is covered by exactly one NO_CHANGE, DELETE_SOURCE or
REPLACE span; every destination index by exactly one NO_CHANGE,
ADD_DESTINATION or REPLACE span.


§2  ALIGNMENT
─────────────

The engine aligns the sequences by their longest common subsequence.
Items are compared through hashable keys, so the caller decides what
"equal" means (see xmldelta.lists).

    L[i][j] = length of the LCS of A[:i] and B[:j]

        L[0][*] = L[*][0] = 0
        L[i][j] = L[i-1][j-1] + 1                  if A[i-1] == B[j-1]
                = max(L[i-1][j], L[i][j-1])        otherwise

The trace-back walks from (m, n) to (0, 0).  Ties are broken the same
way on every run:

    1. extend an unchanged run when A[i-1] == B[j-1]
    2. otherwise delete A[i-1] when that keeps the LCS length
    3. otherwise insert B[j-1]

so identical inputs always yield identical reports, and of two equally
long alignments the one keeping the earlier source items wins.


§3  REPORT SHAPE
────────────────

Between two unchanged runs the trace-back leaves a gap of s source and
d destination items.  The gap is reported as

    REPLACE(min(s, d))  then  DELETE_SOURCE(s - d)  or  ADD_DESTINATION(d - s)

so a REPLACE span always covers the same number of items on both sides.


§4  COMPLEXITY
──────────────

O(m·n) time and space.  Element fan-out in the documents this library
handles is tens of children, not millions.
"""

from collections.abc import Hashable, Sequence
from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional


class SpanStatus(Enum):
    """Change status of a diff result span."""
    NO_CHANGE = auto()
    ADD_DESTINATION = auto()
    DELETE_SOURCE = auto()
    REPLACE = auto()


@dataclass(eq=False)
class DiffResultSpan:
    """
    A contiguous run of the alignment.

    `link` pairs a DELETE_SOURCE span with an ADD_DESTINATION span of the
    same item; the comparator reads such a pair as a move.
    """
    status: SpanStatus
    source_index: int
    dest_index: int
    length: int
    link: Optional["DiffResultSpan"] = None

    def __post_init__(self):
        if self.length < 1:
            raise ValueError(f"span length must be >= 1, got {self.length}")

    @classmethod
    def no_change(cls, source_index: int, dest_index: int, length: int) -> "DiffResultSpan":
        return cls(SpanStatus.NO_CHANGE, source_index, dest_index, length)

    @classmethod
    def add_destination(cls, dest_index: int, length: int) -> "DiffResultSpan":
        return cls(SpanStatus.ADD_DESTINATION, -1, dest_index, length)

    @classmethod
    def delete_source(cls, source_index: int, length: int) -> "DiffResultSpan":
        return cls(SpanStatus.DELETE_SOURCE, source_index, -1, length)

    @classmethod
    def replace(cls, source_index: int, dest_index: int, length: int) -> "DiffResultSpan":
        return cls(SpanStatus.REPLACE, source_index, dest_index, length)

    def set_link(self, other: "DiffResultSpan") -> None:
        """Link two spans to each other."""
        self.link = other
        other.link = self

    def __repr__(self) -> str:
        linked = " linked" if self.link is not None else ""
        return (f"{self.status.name}(src={self.source_index}, "
                f"dest={self.dest_index}, len={self.length}{linked})")


def _lcs_table(source: Sequence[Hashable], dest: Sequence[Hashable]) -> list[list[int]]:
    """Prefix LCS lengths; table[i][j] covers source[:i] and dest[:j]."""
    m = len(source)
    n = len(dest)
    table = [[0] * (n + 1) for _ in range(m + 1)]
    for i in range(1, m + 1):
        row = table[i]
        above = table[i - 1]
        for j in range(1, n + 1):
            if source[i - 1] == dest[j - 1]:
                row[j] = above[j - 1] + 1
            else:
                row[j] = max(above[j], row[j - 1])
    return table


def _trace(source: Sequence[Hashable], dest: Sequence[Hashable]) -> list[str]:
    """
    Walk the LCS table back from (m, n).

    Returns one op per step in forward order: "=" (keep), "-" (delete
    source item), "+" (insert destination item).
    """
    table = _lcs_table(source, dest)
    ops: list[str] = []
    i, j = len(source), len(dest)
    while i > 0 or j > 0:
        if i > 0 and j > 0 and source[i - 1] == dest[j - 1]:
            ops.append("=")
            i -= 1
            j -= 1
            continue

        if i > 0 and table[i - 1][j] == table[i][j]:
            ops.append("-")
            i -= 1
            continue

        ops.append("+")
        j -= 1

    ops.reverse()
    return ops


def _flush_gap(report: list[DiffResultSpan],
               source_start: int, source_end: int,
               dest_start: int, dest_end: int) -> None:
    """Emit the REPLACE/DELETE/ADD spans for an unmatched gap."""
    s = source_end - source_start
    d = dest_end - dest_start
    common = min(s, d)
    if common:
        report.append(DiffResultSpan.replace(source_start, dest_start, common))
    if s > common:
        report.append(DiffResultSpan.delete_source(source_start + common, s - common))
    if d > common:
        report.append(DiffResultSpan.add_destination(dest_start + common, d - common))


def diff_report(source: Sequence[Hashable], dest: Sequence[Hashable]) -> list[DiffResultSpan]:
    """
    Align two key sequences and return the covering list of spans.

    Spans are ordered by position: source and destination indices never
    decrease from one span to the next.
    """
    report: list[DiffResultSpan] = []
    i = j = 0
    gap_i = gap_j = 0
    run: Optional[tuple[int, int]] = None

    for op in _trace(source, dest):
        if op == "=":
            if run is None:
                _flush_gap(report, gap_i, i, gap_j, j)
                run = (i, j)
            i += 1
            j += 1
            continue

        if run is not None:
            report.append(DiffResultSpan.no_change(run[0], run[1], i - run[0]))
            run = None
            gap_i, gap_j = i, j

        if op == "-":
            i += 1
        else:
            j += 1

    if run is not None:
        report.append(DiffResultSpan.no_change(run[0], run[1], i - run[0]))
    else:
        _flush_gap(report, gap_i, i, gap_j, j)

    return report


class DiffEngine:
    """
    Two-step wrapper around diff_report:

        engine = DiffEngine()
        engine.process_diff(source, dest)
        for span in engine.diff_report(): ...
    """

    def __init__(self):
        self._report: list[DiffResultSpan] = []

    def process_diff(self, source: Sequence[Hashable], dest: Sequence[Hashable]) -> None:
        self._report = diff_report(source, dest)

    def diff_report(self) -> list[DiffResultSpan]:
        return list(self._report)
