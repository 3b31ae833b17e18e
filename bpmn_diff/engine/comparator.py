"""
Diagram Comparator

Orchestrates extraction and matching for two BPMN documents and applies
the configured error policy. Holds no per-call state, so a single
instance can be shared by concurrent requests.
"""

import logging
from typing import List, Optional

from pydantic import BaseModel, Field

from bpmn_diff.core import LogLevel, log_execution, span
from bpmn_diff.engine.config import ComparatorConfig, ErrorHandlingStrategy
from bpmn_diff.models.comparison import ComparisonResult
from bpmn_diff.models.elements import ElementMap
from bpmn_diff.stages.changelog import ChangeLogPolicy, ChangeRecord, derive_change_records
from bpmn_diff.stages.extraction import Document, GraphExtractor, ParseError, looks_like_bpmn
from bpmn_diff.stages.matching import GreedyGraphMatcher

logger = logging.getLogger(__name__)


class DocumentComparison(BaseModel):
    """Comparison of two documents plus anything worth telling the caller."""

    result: ComparisonResult = Field(..., description="Matcher output")
    source_element_count: int = Field(..., ge=0, description="Elements extracted from source")
    target_element_count: int = Field(..., ge=0, description="Elements extracted from target")
    warnings: List[str] = Field(default_factory=list, description="Degradations applied")


class DiagramComparator:
    """Compares BPMN documents end to end."""

    def __init__(self, config: Optional[ComparatorConfig] = None):
        """Initialize comparator.

        Args:
            config: Comparator configuration; defaults to ``ComparatorConfig()``
        """
        self.config = config or ComparatorConfig()
        self.extractor = GraphExtractor()
        self.matcher = GreedyGraphMatcher(self.config.cost_weights)

    def extract(self, document: Optional[Document]) -> ElementMap:
        """Extract one document. Always strict: ParseError propagates."""
        return self.extractor.extract(document)

    def compare_graphs(self, source: ElementMap, target: ElementMap) -> ComparisonResult:
        return self.matcher.compare(source, target)

    @log_execution(level=LogLevel.DEBUG, include_args=False, include_result=False)
    def compare_documents(
        self, source_xml: Optional[Document], target_xml: Optional[Document]
    ) -> DocumentComparison:
        """Extract both documents and compare them.

        Args:
            source_xml: Baseline revision
            target_xml: Revision to compare against the baseline

        Returns:
            DocumentComparison with the result and any warnings

        Raises:
            ParseError: If a document is malformed and the strategy is STRICT
        """
        warnings: List[str] = []

        with span("compare_documents", {"error_handling": self.config.error_handling.value}):
            source = self._extract_side(source_xml, "source", warnings)
            target = self._extract_side(target_xml, "target", warnings)
            result = self.compare_graphs(source, target)

        return DocumentComparison(
            result=result,
            source_element_count=len(source),
            target_element_count=len(target),
            warnings=warnings,
        )

    def derive_changes(
        self,
        source_xml: Optional[Document],
        target_xml: Optional[Document],
        diagram_id: Optional[str] = None,
        policy: Optional[ChangeLogPolicy] = None,
    ) -> List[ChangeRecord]:
        """Compare two revisions and turn the result into change records."""
        comparison = self.compare_documents(source_xml, target_xml)
        return derive_change_records(
            comparison.result,
            policy=policy or self.config.changelog_policy,
            diagram_id=diagram_id,
        )

    def _extract_side(
        self, document: Optional[Document], label: str, warnings: List[str]
    ) -> ElementMap:
        """Extract one side, degrading to an empty graph when lenient."""
        if document and document.strip() and not looks_like_bpmn(document):
            message = f"{label} document does not look like a BPMN <definitions> document"
            logger.warning(message)
            warnings.append(message)

        try:
            return self.extractor.extract(document)
        except ParseError as e:
            if self.config.error_handling == ErrorHandlingStrategy.STRICT:
                logger.error(f"Failed to parse {label} document: {e.message}")
                raise

            message = f"{label} document could not be parsed and was treated as empty: {e.message}"
            logger.warning(message)
            warnings.append(message)
            return {}


def compare_documents(
    source_xml: Optional[Document],
    target_xml: Optional[Document],
    config: Optional[ComparatorConfig] = None,
) -> ComparisonResult:
    """Compare two BPMN documents and return only the comparison result."""
    return DiagramComparator(config).compare_documents(source_xml, target_xml).result


__all__ = [
    "DocumentComparison",
    "DiagramComparator",
    "compare_documents",
]
