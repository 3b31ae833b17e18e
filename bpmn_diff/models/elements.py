"""
Normalized Process Graph Elements

Pydantic models for the flat, id-keyed element graph extracted from a
BPMN 2.0 document. Only the element kinds listed in ``ElementKind`` take
part in comparison; everything else in the document is ignored.
"""

from enum import Enum
from typing import Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

KIND_PREFIX = "bpmn:"


class ElementKind(str, Enum):
    """Recognized element kinds, normalized to the ``bpmn:`` prefix."""

    PROCESS = "bpmn:process"
    TASK = "bpmn:task"
    USER_TASK = "bpmn:userTask"
    SERVICE_TASK = "bpmn:serviceTask"
    MANUAL_TASK = "bpmn:manualTask"
    BUSINESS_RULE_TASK = "bpmn:businessRuleTask"
    SCRIPT_TASK = "bpmn:scriptTask"
    SEND_TASK = "bpmn:sendTask"
    RECEIVE_TASK = "bpmn:receiveTask"
    SUB_PROCESS = "bpmn:subProcess"
    CALL_ACTIVITY = "bpmn:callActivity"
    START_EVENT = "bpmn:startEvent"
    END_EVENT = "bpmn:endEvent"
    INTERMEDIATE_THROW_EVENT = "bpmn:intermediateThrowEvent"
    INTERMEDIATE_CATCH_EVENT = "bpmn:intermediateCatchEvent"
    BOUNDARY_EVENT = "bpmn:boundaryEvent"
    EXCLUSIVE_GATEWAY = "bpmn:exclusiveGateway"
    INCLUSIVE_GATEWAY = "bpmn:inclusiveGateway"
    PARALLEL_GATEWAY = "bpmn:parallelGateway"
    SEQUENCE_FLOW = "bpmn:sequenceFlow"

    @property
    def local_name(self) -> str:
        """Element name without the namespace prefix."""
        return self.value[len(KIND_PREFIX):]

    @property
    def is_task(self) -> bool:
        return self in TASK_KINDS

    @property
    def is_gateway(self) -> bool:
        return self in GATEWAY_KINDS

    @property
    def is_flow(self) -> bool:
        return self is ElementKind.SEQUENCE_FLOW

    @classmethod
    def from_local_name(cls, local_name: str) -> Optional["ElementKind"]:
        """Look up a kind by XML local name; ``None`` when not recognized."""
        return _BY_LOCAL_NAME.get(local_name)


TASK_KINDS = frozenset(
    {
        ElementKind.TASK,
        ElementKind.USER_TASK,
        ElementKind.SERVICE_TASK,
        ElementKind.MANUAL_TASK,
        ElementKind.BUSINESS_RULE_TASK,
        ElementKind.SCRIPT_TASK,
        ElementKind.SEND_TASK,
        ElementKind.RECEIVE_TASK,
    }
)

GATEWAY_KINDS = frozenset(
    {
        ElementKind.EXCLUSIVE_GATEWAY,
        ElementKind.INCLUSIVE_GATEWAY,
        ElementKind.PARALLEL_GATEWAY,
    }
)

_BY_LOCAL_NAME: Dict[str, ElementKind] = {kind.local_name: kind for kind in ElementKind}


class Element(BaseModel):
    """One node of the normalized process graph.

    Sequence flows are elements too: they carry ``source_ref`` and
    ``target_ref``, while every other kind carries the ids of the flows
    entering and leaving it in ``incoming`` / ``outgoing``.
    """

    id: str = Field(..., description="Element ID, unique within one document")
    name: str = Field(default="", description="Display label (may be empty)")
    kind: ElementKind = Field(..., description="Normalized element kind")
    incoming: Tuple[str, ...] = Field(default=(), description="Incoming sequence flow IDs")
    outgoing: Tuple[str, ...] = Field(default=(), description="Outgoing sequence flow IDs")
    source_ref: Optional[str] = Field(None, description="Source element ID (sequence flows)")
    target_ref: Optional[str] = Field(None, description="Target element ID (sequence flows)")

    model_config = ConfigDict(frozen=True)

    @property
    def is_flow(self) -> bool:
        return self.kind.is_flow

    @property
    def display_name(self) -> str:
        """Name for reports; falls back to the id for unnamed elements."""
        return self.name.strip() or self.id


# Insertion-ordered: iteration order decides matcher tie-breaks.
ElementMap = Dict[str, Element]


__all__ = [
    "KIND_PREFIX",
    "ElementKind",
    "TASK_KINDS",
    "GATEWAY_KINDS",
    "Element",
    "ElementMap",
]
