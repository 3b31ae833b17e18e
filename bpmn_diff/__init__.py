"""
bpmn-diff: Structural Comparison of BPMN 2.0 Diagrams

Extracts a normalized element graph from two revisions of a BPMN process
diagram, matches elements across the revisions and reports what was added,
deleted and modified, with a numeric penalty for the overall difference.
"""

# Core components
from bpmn_diff.core.observability import ObservabilityConfig, ObservabilityManager

# Engine
from bpmn_diff.engine import (
    ComparatorConfig,
    DiagramComparator,
    DocumentComparison,
    ErrorHandlingStrategy,
    compare_documents,
)

# Models
from bpmn_diff.models import (
    ComparisonResult,
    DiffMarkers,
    Element,
    ElementKind,
    ElementMap,
    ElementPair,
)

# Pipeline stages
from bpmn_diff.stages import (
    ChangeLogPolicy,
    ChangeRecord,
    ChangeType,
    CompareMode,
    CostWeights,
    GraphExtractor,
    GreedyGraphMatcher,
    ParseError,
    SnapshotComparator,
    SprintSnapshot,
    compare,
    derive_change_records,
    extract,
)

__version__ = "0.1.0"

__all__ = [
    # Version
    "__version__",
    # Core
    "ObservabilityManager",
    "ObservabilityConfig",
    # Engine
    "ComparatorConfig",
    "ErrorHandlingStrategy",
    "DiagramComparator",
    "DocumentComparison",
    "compare_documents",
    # Stages
    "GraphExtractor",
    "ParseError",
    "extract",
    "CostWeights",
    "GreedyGraphMatcher",
    "compare",
    "ChangeType",
    "ChangeRecord",
    "ChangeLogPolicy",
    "derive_change_records",
    "CompareMode",
    "SprintSnapshot",
    "SnapshotComparator",
    # Models
    "Element",
    "ElementKind",
    "ElementMap",
    "ElementPair",
    "DiffMarkers",
    "ComparisonResult",
]
