"""
Comparison pipeline stages.

Extraction turns XML into an element graph, matching prices the
differences between two graphs, and the change log and snapshot stages
build on the comparison result.
"""

from bpmn_diff.stages.changelog import (
    ChangeLogPolicy,
    ChangeRecord,
    ChangeType,
    derive_change_records,
    link_record,
    unlink_record,
)
from bpmn_diff.stages.extraction import (
    GraphExtractor,
    ParseError,
    extract,
    is_presentation_namespace,
    looks_like_bpmn,
)
from bpmn_diff.stages.matching import (
    CostWeights,
    GreedyGraphMatcher,
    compare,
    element_cost,
    name_cost,
)
from bpmn_diff.stages.snapshots import (
    CompareMode,
    SnapshotComparator,
    SnapshotComparison,
    SnapshotNotFoundError,
    SprintSnapshot,
)

__all__ = [
    # Extraction
    "GraphExtractor",
    "ParseError",
    "extract",
    "is_presentation_namespace",
    "looks_like_bpmn",
    # Matching
    "CostWeights",
    "GreedyGraphMatcher",
    "compare",
    "element_cost",
    "name_cost",
    # Change log
    "ChangeType",
    "ChangeRecord",
    "ChangeLogPolicy",
    "derive_change_records",
    "link_record",
    "unlink_record",
    # Snapshots
    "CompareMode",
    "SprintSnapshot",
    "SnapshotComparison",
    "SnapshotComparator",
    "SnapshotNotFoundError",
]
