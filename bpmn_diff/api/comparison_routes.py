"""
FastAPI REST endpoints for diagram comparison.

Provides a REST API for:
- Comparing two BPMN diagram revisions
- Inspecting the element graph extracted from a diagram
- Deriving change history events between revisions
"""

from dataclasses import replace
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from bpmn_diff.engine import ComparatorConfig, DiagramComparator, ErrorHandlingStrategy
from bpmn_diff.models import ComparisonResult, DiffMarkers, Element
from bpmn_diff.stages.changelog import ChangeLogPolicy, ChangeRecord
from bpmn_diff.stages.extraction import ParseError

# ===========================
# Request/Response Models
# ===========================


class CompareRequest(BaseModel):
    """Two diagram revisions to compare."""

    source_xml: str = Field(..., description="Baseline revision (BPMN XML)")
    target_xml: str = Field(..., description="Revision compared against the baseline")
    error_handling: Optional[ErrorHandlingStrategy] = Field(
        None, description="Override the configured parse error policy"
    )


class CompareResponse(BaseModel):
    """Result of a diagram comparison."""

    summary: Dict[str, Any]
    markers: DiffMarkers
    source_element_count: int
    target_element_count: int
    warnings: List[str] = Field(default_factory=list)
    result: ComparisonResult


class ExtractRequest(BaseModel):
    """Diagram to extract."""

    xml: str = Field(..., description="BPMN XML")


class ExtractResponse(BaseModel):
    """Element graph of one diagram."""

    element_count: int
    elements: List[Element] = Field(default_factory=list)


class ChangesRequest(BaseModel):
    """Two revisions to derive change history events from."""

    source_xml: str = Field(..., description="Previous revision (BPMN XML)")
    target_xml: str = Field(..., description="Current revision (BPMN XML)")
    diagram_id: Optional[str] = Field(None, description="Diagram id stamped on every record")
    ignore_flows: bool = Field(False, description="Do not report sequence flow changes")
    ignore_unnamed: bool = Field(False, description="Do not report unnamed elements")


class ChangeEntry(BaseModel):
    """Change record plus its history line."""

    record: ChangeRecord
    description: str


class ChangesResponse(BaseModel):
    """Derived change history events."""

    changes: List[ChangeEntry] = Field(default_factory=list)
    total_count: int


# ===========================
# Initialize Router and Comparators
# ===========================

router = APIRouter(prefix="/api/v1", tags=["comparison"])

# Environment config, read once; comparators share it and differ only in error policy
_base_config: Optional[ComparatorConfig] = None
_comparators: Dict[ErrorHandlingStrategy, DiagramComparator] = {}


def get_base_config() -> ComparatorConfig:
    """Get or load the configuration every comparator is built from."""
    global _base_config
    if _base_config is None:
        _base_config = ComparatorConfig.from_env()
    return _base_config


def get_comparator(error_handling: Optional[ErrorHandlingStrategy] = None) -> DiagramComparator:
    """Get or initialize the comparator for an error policy."""
    base = get_base_config()
    strategy = error_handling or base.error_handling

    if strategy not in _comparators:
        _comparators[strategy] = DiagramComparator(replace(base, error_handling=strategy))
    return _comparators[strategy]


# ===========================
# Endpoints
# ===========================


@router.post("/compare", response_model=CompareResponse)
async def compare_diagrams(request: CompareRequest) -> CompareResponse:
    """
    Compare two revisions of a diagram.

    Returns the matched, added and deleted elements, the overall penalty
    and the ids to highlight on each canvas.
    """
    try:
        comparison = get_comparator(request.error_handling).compare_documents(
            request.source_xml, request.target_xml
        )
    except ParseError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Comparison failed: {str(e)}") from e

    result = comparison.result
    return CompareResponse(
        summary=result.summary(),
        markers=result.diff_markers(),
        source_element_count=comparison.source_element_count,
        target_element_count=comparison.target_element_count,
        warnings=comparison.warnings,
        result=result,
    )


@router.post("/extract", response_model=ExtractResponse)
async def extract_elements(request: ExtractRequest) -> ExtractResponse:
    """
    Extract the normalized element graph of a diagram.

    Elements are returned in document order.
    """
    try:
        elements = get_comparator().extract(request.xml)
    except ParseError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e

    return ExtractResponse(element_count=len(elements), elements=list(elements.values()))


@router.post("/changes", response_model=ChangesResponse)
async def derive_changes(request: ChangesRequest) -> ChangesResponse:
    """
    Derive change history events between two revisions.

    Deleted elements come first, then added ones, then updates.
    """
    policy = ChangeLogPolicy(
        ignore_flows=request.ignore_flows,
        ignore_unnamed=request.ignore_unnamed,
    )

    try:
        records = get_comparator().derive_changes(
            request.source_xml,
            request.target_xml,
            diagram_id=request.diagram_id,
            policy=policy,
        )
    except ParseError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Change derivation failed: {str(e)}") from e

    entries = [ChangeEntry(record=record, description=record.describe()) for record in records]
    return ChangesResponse(changes=entries, total_count=len(entries))
