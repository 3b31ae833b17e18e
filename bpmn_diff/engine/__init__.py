"""
Comparison engine for bpmn-diff.

Wires extraction and matching together behind a configurable comparator.
"""

from bpmn_diff.engine.comparator import DiagramComparator, DocumentComparison, compare_documents
from bpmn_diff.engine.config import ComparatorConfig, ErrorHandlingStrategy

__all__ = [
    "ComparatorConfig",
    "ErrorHandlingStrategy",
    "DiagramComparator",
    "DocumentComparison",
    "compare_documents",
]
