"""
Change Log Derivation

Turns a ``ComparisonResult`` into discrete change events (added, deleted,
update) for a diagram's change history, and builds the issue link/unlink
events recorded alongside them.

Which elements are worth logging is policy, not comparison: the default
``ChangeLogPolicy`` tracks tasks, exclusive gateways and sequence flows.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from bpmn_diff.models.comparison import ComparisonResult, ElementPair
from bpmn_diff.models.elements import TASK_KINDS, Element, ElementKind

logger = logging.getLogger(__name__)


class ChangeType(str, Enum):
    """Kinds of change history events."""

    ADDED = "added"
    DELETED = "deleted"
    UPDATE = "update"
    LINK = "link"
    UNLINK = "unlink"


DEFAULT_TRACKED_KINDS: FrozenSet[ElementKind] = TASK_KINDS | {
    ElementKind.EXCLUSIVE_GATEWAY,
    ElementKind.SEQUENCE_FLOW,
}


class ChangeRecord(BaseModel):
    """One change history entry."""

    element_id: str = Field(..., description="Element the change applies to")
    element_name: str = Field(default="", description="Element name at the time of the change")
    element_type: str = Field(..., description="Normalized element kind")
    change_type: ChangeType = Field(..., description="What happened")
    diagram_id: Optional[str] = Field(None, description="Diagram the element belongs to")
    related_issue_id: Optional[str] = Field(None, description="Issue for link/unlink events")

    model_config = ConfigDict(frozen=True)

    def describe(self, issue_titles: Optional[Dict[str, str]] = None) -> str:
        """Human-readable history line.

        Args:
            issue_titles: Optional issue id -> title lookup for link events
        """
        if self.change_type == ChangeType.ADDED:
            return f"Added {self.element_type} with name: {self.element_name}"
        if self.change_type == ChangeType.DELETED:
            return f"Deleted {self.element_type} with name: {self.element_name}"
        if self.change_type == ChangeType.UPDATE:
            return f"Updated {self.element_type} with name: {self.element_name}"

        issue_id = self.related_issue_id or ""
        issue_name = (issue_titles or {}).get(issue_id) or f"Issue {issue_id}"
        if self.change_type == ChangeType.LINK:
            return f"Link {self.element_name} to {issue_name}"
        return f"Unlink {self.element_name} from {issue_name}"


@dataclass
class ChangeLogPolicy:
    """Decides which elements produce change history events."""

    tracked_kinds: FrozenSet[ElementKind] = field(default_factory=lambda: DEFAULT_TRACKED_KINDS)
    ignore_flows: bool = False
    ignore_unnamed: bool = False

    def should_track(self, element: Element) -> bool:
        if element.kind not in self.tracked_kinds:
            return False
        if self.ignore_flows and element.is_flow:
            return False
        if self.ignore_unnamed and not element.name.strip():
            return False
        return True


def _record(element: Element, change_type: ChangeType, diagram_id: Optional[str]) -> ChangeRecord:
    return ChangeRecord(
        element_id=element.id,
        element_name=element.name,
        element_type=element.kind.value,
        change_type=change_type,
        diagram_id=diagram_id,
    )


def _records_for(
    pairs: Iterable[ElementPair],
    change_type: ChangeType,
    policy: ChangeLogPolicy,
    diagram_id: Optional[str],
) -> List[ChangeRecord]:
    records = []
    for pair in pairs:
        element = pair.element
        if policy.should_track(element):
            records.append(_record(element, change_type, diagram_id))
    return records


def derive_change_records(
    result: ComparisonResult,
    policy: Optional[ChangeLogPolicy] = None,
    diagram_id: Optional[str] = None,
) -> List[ChangeRecord]:
    """Derive change history events from a comparison.

    Deleted elements come first, then added ones, then modified matches
    (reported against the target element).

    Args:
        result: Comparison of the previous revision (source) with the
            current one (target)
        policy: Filter for loggable elements; defaults to ``ChangeLogPolicy()``
        diagram_id: Diagram id stamped on every record

    Returns:
        List of change records, possibly empty
    """
    policy = policy or ChangeLogPolicy()

    records = _records_for(result.deleted_set, ChangeType.DELETED, policy, diagram_id)
    records += _records_for(result.added_set, ChangeType.ADDED, policy, diagram_id)
    records += _records_for(result.modified_pairs, ChangeType.UPDATE, policy, diagram_id)

    logger.debug(f"Derived {len(records)} change records from comparison")
    return records


def link_record(
    element: Element, issue_id: str, diagram_id: Optional[str] = None
) -> ChangeRecord:
    """Event for linking an element to an issue."""
    return _record(element, ChangeType.LINK, diagram_id).model_copy(
        update={"related_issue_id": issue_id}
    )


def unlink_record(
    element: Element, issue_id: str, diagram_id: Optional[str] = None
) -> ChangeRecord:
    """Event for unlinking an element from an issue."""
    return _record(element, ChangeType.UNLINK, diagram_id).model_copy(
        update={"related_issue_id": issue_id}
    )


__all__ = [
    "ChangeType",
    "ChangeRecord",
    "ChangeLogPolicy",
    "DEFAULT_TRACKED_KINDS",
    "derive_change_records",
    "link_record",
    "unlink_record",
]
