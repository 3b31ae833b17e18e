"""
Data models for bpmn-diff.

Normalized process graph elements and comparison result value types.
"""

from bpmn_diff.models.comparison import ComparisonResult, DiffMarkers, ElementPair
from bpmn_diff.models.elements import (
    GATEWAY_KINDS,
    KIND_PREFIX,
    TASK_KINDS,
    Element,
    ElementKind,
    ElementMap,
)

__all__ = [
    # Elements
    "KIND_PREFIX",
    "ElementKind",
    "TASK_KINDS",
    "GATEWAY_KINDS",
    "Element",
    "ElementMap",
    # Comparison
    "ElementPair",
    "DiffMarkers",
    "ComparisonResult",
]
