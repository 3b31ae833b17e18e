"""
Comparison Result Models

Value types produced by the graph matcher. A ``ComparisonResult`` is built
once per comparison and never mutated afterwards; consumers derive diff
markers, summaries and change records from it.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from bpmn_diff.models.elements import Element


class ElementPair(BaseModel):
    """One line of a comparison: a match, an addition or a deletion."""

    first: Optional[Element] = Field(None, description="Element in the source graph")
    second: Optional[Element] = Field(None, description="Element in the target graph")
    difference_cost: float = Field(..., ge=0.0, description="How different the two sides are")

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _check_sides(self) -> "ElementPair":
        if self.first is None and self.second is None:
            raise ValueError("ElementPair requires at least one of first/second")
        return self

    @property
    def is_match(self) -> bool:
        return self.first is not None and self.second is not None

    @property
    def is_addition(self) -> bool:
        return self.first is None

    @property
    def is_deletion(self) -> bool:
        return self.second is None

    @property
    def is_modified(self) -> bool:
        """Matched, but not identical."""
        return self.is_match and self.difference_cost > 0

    @property
    def element(self) -> Element:
        """Target side when present, otherwise the source side."""
        return self.second if self.second is not None else self.first  # type: ignore[return-value]

    @property
    def element_id(self) -> str:
        return self.element.id


class DiffMarkers(BaseModel):
    """Element ids to highlight when rendering a diff.

    ``added`` and ``modified`` refer to the target diagram; ``deleted``
    elements only exist in the source diagram.
    """

    added: List[str] = Field(default_factory=list)
    modified: List[str] = Field(default_factory=list)
    deleted: List[str] = Field(default_factory=list)


class ComparisonResult(BaseModel):
    """Output of one source/target comparison."""

    penalty: float = Field(..., ge=0.0, description="Sum of all pair costs")
    matching_set: List[ElementPair] = Field(default_factory=list, description="Matched pairs")
    added_set: List[ElementPair] = Field(default_factory=list, description="Target-only elements")
    deleted_set: List[ElementPair] = Field(default_factory=list, description="Source-only elements")

    model_config = ConfigDict(frozen=True)

    @property
    def modified_pairs(self) -> List[ElementPair]:
        return [pair for pair in self.matching_set if pair.is_modified]

    @property
    def unchanged_pairs(self) -> List[ElementPair]:
        return [pair for pair in self.matching_set if not pair.is_modified]

    @property
    def is_identical(self) -> bool:
        return not self.added_set and not self.deleted_set and not self.modified_pairs

    def summary(self) -> Dict[str, Any]:
        """Counts and penalty, as shown next to a rendered diff."""
        return {
            "penalty": round(self.penalty, 2),
            "matched": len(self.matching_set),
            "modified": len(self.modified_pairs),
            "added": len(self.added_set),
            "deleted": len(self.deleted_set),
        }

    def diff_markers(self) -> DiffMarkers:
        return DiffMarkers(
            added=[pair.second.id for pair in self.added_set if pair.second is not None],
            modified=[pair.second.id for pair in self.modified_pairs if pair.second is not None],
            deleted=[pair.first.id for pair in self.deleted_set if pair.first is not None],
        )

    def describe(self) -> str:
        """Render a plain-text change report.

        One line per deleted, added and modified element, followed by a
        note when the diagrams are structurally identical.
        """
        lines: List[str] = []

        if self.deleted_set:
            lines.append("--- Deleted elements ---")
            for pair in self.deleted_set:
                lines.append(_element_line(pair.element))

        if self.added_set:
            lines.append("--- Added elements ---")
            for pair in self.added_set:
                lines.append(_element_line(pair.element))

        modified = self.modified_pairs
        if modified:
            lines.append("--- Modified elements ---")
            for pair in modified:
                source, target = pair.first, pair.second
                assert source is not None and target is not None
                line = f"{target.kind.value}: {target.id}"
                if source.id != target.id:
                    line += f" (was {source.id})"
                if source.name != target.name:
                    line += f' (name: "{source.name}" -> "{target.name}")'
                lines.append(f"{line} [cost {pair.difference_cost:.2f}]")

        if not lines:
            lines.append("Diagrams are identical: no structural differences found.")

        return "\n".join(lines)


def _element_line(element: Element) -> str:
    line = f"{element.kind.value}: {element.id}"
    if element.name:
        line += f' "{element.name}"'
    return line


__all__ = [
    "ElementPair",
    "DiffMarkers",
    "ComparisonResult",
]
