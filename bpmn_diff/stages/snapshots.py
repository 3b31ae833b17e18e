"""
Sprint Snapshot Comparison

Compares a diagram's sprint snapshots with each other or with the current
revision. Snapshots are supplied by the caller; nothing is stored or
cached here.
"""

import logging
from enum import Enum
from typing import TYPE_CHECKING, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from bpmn_diff.models.comparison import ComparisonResult

if TYPE_CHECKING:
    from bpmn_diff.engine.comparator import DiagramComparator

logger = logging.getLogger(__name__)


class CompareMode(str, Enum):
    """What a snapshot is compared against."""

    SPRINT_NOW = "sprint_now"  # Snapshot vs. current diagram
    SPRINT_SPRINT = "sprint_sprint"  # Snapshot vs. another snapshot


class SnapshotNotFoundError(LookupError):
    """Raised when no snapshot exists for a sprint."""

    def __init__(self, sprint_id: str):
        self.sprint_id = sprint_id
        super().__init__(f"No BPMN snapshot found for sprint '{sprint_id}'")


class SprintSnapshot(BaseModel):
    """Diagram XML captured when a sprint was completed."""

    sprint_id: str = Field(..., description="Sprint identifier")
    sprint_name: Optional[str] = Field(None, description="Sprint display name")
    sprint_number: Optional[int] = Field(None, description="Sprint ordinal within the project")
    xml: str = Field(..., description="Diagram XML at sprint completion")

    model_config = ConfigDict(frozen=True)

    @property
    def label(self) -> str:
        return f"{self.sprint_name or self.sprint_id} (Snapshot)"


class SnapshotComparison(BaseModel):
    """A labelled comparison between two diagram revisions."""

    mode: CompareMode
    source_label: str
    target_label: str
    result: ComparisonResult
    warnings: List[str] = Field(default_factory=list)


class SnapshotComparator:
    """Runs comparisons over a diagram's sprint snapshots."""

    CURRENT_LABEL = "Current Diagram"

    def __init__(
        self,
        snapshots: Iterable[SprintSnapshot],
        comparator: Optional["DiagramComparator"] = None,
    ):
        """Initialize snapshot comparator.

        Args:
            snapshots: Snapshots of one diagram
            comparator: Comparator to use; a default one is created if omitted
        """
        if comparator is None:
            from bpmn_diff.engine.comparator import DiagramComparator

            comparator = DiagramComparator()

        self.snapshots: List[SprintSnapshot] = list(snapshots)
        self.comparator = comparator

    def find(self, sprint_id: str) -> SprintSnapshot:
        """Get the snapshot of a sprint.

        Raises:
            SnapshotNotFoundError: If the sprint has no snapshot
        """
        for snapshot in self.snapshots:
            if snapshot.sprint_id == sprint_id:
                return snapshot
        raise SnapshotNotFoundError(sprint_id)

    def latest(self) -> Optional[SprintSnapshot]:
        """Most recent snapshot by sprint number (last one wins on ties)."""
        if not self.snapshots:
            return None
        return max(
            reversed(self.snapshots),
            key=lambda s: s.sprint_number if s.sprint_number is not None else -1,
        )

    def compare_with_current(self, sprint_id: str, current_xml: str) -> SnapshotComparison:
        """Compare a sprint snapshot (baseline) with the current diagram."""
        snapshot = self.find(sprint_id)
        return self._run(
            CompareMode.SPRINT_NOW, snapshot.xml, current_xml, snapshot.label, self.CURRENT_LABEL
        )

    def compare_sprints(self, baseline_id: str, target_id: str) -> SnapshotComparison:
        """Compare two sprint snapshots."""
        baseline = self.find(baseline_id)
        target = self.find(target_id)
        return self._run(
            CompareMode.SPRINT_SPRINT, baseline.xml, target.xml, baseline.label, target.label
        )

    def compare(
        self,
        mode: CompareMode,
        sprint_id: str,
        current_xml: Optional[str] = None,
        target_sprint_id: Optional[str] = None,
    ) -> SnapshotComparison:
        """Dispatch on compare mode.

        Raises:
            ValueError: If the argument the mode needs is missing
            SnapshotNotFoundError: If a referenced sprint has no snapshot
        """
        if mode == CompareMode.SPRINT_NOW:
            if current_xml is None:
                raise ValueError("current_xml is required for sprint_now comparisons")
            return self.compare_with_current(sprint_id, current_xml)

        if target_sprint_id is None:
            raise ValueError("target_sprint_id is required for sprint_sprint comparisons")
        return self.compare_sprints(sprint_id, target_sprint_id)

    def _run(
        self,
        mode: CompareMode,
        source_xml: str,
        target_xml: str,
        source_label: str,
        target_label: str,
    ) -> SnapshotComparison:
        logger.info(f"Comparing {source_label} -> {target_label}")
        comparison = self.comparator.compare_documents(source_xml, target_xml)
        return SnapshotComparison(
            mode=mode,
            source_label=source_label,
            target_label=target_label,
            result=comparison.result,
            warnings=comparison.warnings,
        )


__all__ = [
    "CompareMode",
    "SnapshotNotFoundError",
    "SprintSnapshot",
    "SnapshotComparison",
    "SnapshotComparator",
]
