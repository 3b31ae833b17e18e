"""
Graph Matching Stage

Greedy three-pass correspondence between a source and a target element
graph:

1. Identity: elements whose id exists on both sides are matched.
2. Name+kind: remaining target elements are matched to the cheapest
   remaining source element of the same kind with the same non-empty
   (trimmed, case-insensitive) name. Ties go to the first candidate in
   source iteration order.
3. Residual: anything still unmatched is a deletion (source) or an
   addition (target).

This is not a globally optimal assignment. Each pass only sees what the
previous passes left over, which keeps the result stable across small edits
and the cost at O(n*m).
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Set

from bpmn_diff.core import Timer, record_metric, span
from bpmn_diff.models.comparison import ComparisonResult, ElementPair
from bpmn_diff.models.elements import Element, ElementMap

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CostWeights:
    """Weights of the element difference cost."""

    kind_mismatch: float = 1.0
    flow_source_changed: float = 0.75
    flow_target_changed: float = 0.75
    incoming_count_changed: float = 0.25
    outgoing_count_changed: float = 0.25
    # Cost of every pure addition or deletion
    unmatched: float = 1.0


DEFAULT_WEIGHTS = CostWeights()


def _normalize_name(name: Optional[str]) -> str:
    return (name or "").strip().lower()


def name_cost(a: Optional[str], b: Optional[str]) -> float:
    """Length-asymmetry difference between two names, in ``[0, 1]``.

    Equal names (after trim and lowercase) cost 0. Otherwise the cost is
    ``(maxLen - minLen) / maxLen``, so two different names of the same
    length also cost 0.
    """
    a_norm = _normalize_name(a)
    b_norm = _normalize_name(b)
    if a_norm == b_norm:
        return 0.0
    max_len = max(len(a_norm), len(b_norm))
    min_len = min(len(a_norm), len(b_norm))
    # TODO: switch to a normalized edit distance so same-length renames are priced
    return (max_len - min_len) / max(1, max_len)


def element_cost(a: Element, b: Element, weights: CostWeights = DEFAULT_WEIGHTS) -> float:
    """How different two elements are; 0 means identical."""
    cost = 0.0

    if a.kind != b.kind:
        cost += weights.kind_mismatch

    cost += name_cost(a.name, b.name)

    if a.is_flow and b.is_flow:
        if a.source_ref != b.source_ref:
            cost += weights.flow_source_changed
        if a.target_ref != b.target_ref:
            cost += weights.flow_target_changed

    if len(a.incoming) != len(b.incoming):
        cost += weights.incoming_count_changed
    if len(a.outgoing) != len(b.outgoing):
        cost += weights.outgoing_count_changed

    return cost


class GreedyGraphMatcher:
    """Matches elements of two graph versions and prices the differences."""

    def __init__(self, weights: Optional[CostWeights] = None):
        """Initialize matcher.

        Args:
            weights: Cost weights; defaults to ``DEFAULT_WEIGHTS``
        """
        self.weights = weights or DEFAULT_WEIGHTS

    def element_cost(self, a: Element, b: Element) -> float:
        return element_cost(a, b, self.weights)

    def compare(self, source: ElementMap, target: ElementMap) -> ComparisonResult:
        """Compare two element graphs.

        Neither input is modified.

        Args:
            source: Baseline graph
            target: Graph to compare against the baseline

        Returns:
            ComparisonResult with matched, added and deleted pairs
        """
        with span(
            "graph_matching",
            {"source.elements": len(source), "target.elements": len(target)},
        ), Timer("graph_matching"):
            used_source: Set[str] = set()
            used_target: Set[str] = set()

            matching_set = self._match_by_id(source, target, used_source, used_target)
            matching_set += self._match_by_name_and_kind(source, target, used_source, used_target)

            deleted_set = [
                ElementPair(first=element, second=None, difference_cost=self.weights.unmatched)
                for element_id, element in source.items()
                if element_id not in used_source
            ]
            added_set = [
                ElementPair(first=None, second=element, difference_cost=self.weights.unmatched)
                for element_id, element in target.items()
                if element_id not in used_target
            ]

            penalty = sum(pair.difference_cost for pair in matching_set + added_set + deleted_set)

            result = ComparisonResult(
                penalty=penalty,
                matching_set=matching_set,
                added_set=added_set,
                deleted_set=deleted_set,
            )

        assert len(deleted_set) + len(matching_set) == len(source)
        assert len(added_set) + len(matching_set) == len(target)

        record_metric("comparison_penalty", float(penalty))
        record_metric("comparisons_total", 1)
        record_metric("pairs_matched_total", len(matching_set))
        record_metric("pairs_added_total", len(added_set))
        record_metric("pairs_deleted_total", len(deleted_set))
        logger.info(
            f"Compared {len(source)} -> {len(target)} elements: "
            f"matched={len(matching_set)}, added={len(added_set)}, "
            f"deleted={len(deleted_set)}, penalty={penalty:.2f}"
        )
        return result

    def _match_by_id(
        self,
        source: ElementMap,
        target: ElementMap,
        used_source: Set[str],
        used_target: Set[str],
    ) -> List[ElementPair]:
        """Identity pass: same id on both sides."""
        pairs: List[ElementPair] = []

        for element_id, target_element in target.items():
            source_element = source.get(element_id)
            if source_element is None:
                continue

            pairs.append(
                ElementPair(
                    first=source_element,
                    second=target_element,
                    difference_cost=self.element_cost(source_element, target_element),
                )
            )
            used_source.add(element_id)
            used_target.add(element_id)

        return pairs

    def _match_by_name_and_kind(
        self,
        source: ElementMap,
        target: ElementMap,
        used_source: Set[str],
        used_target: Set[str],
    ) -> List[ElementPair]:
        """Name+kind pass: recover elements whose id changed but name did not."""
        pairs: List[ElementPair] = []

        for target_id, target_element in target.items():
            if target_id in used_target:
                continue

            target_name = _normalize_name(target_element.name)
            if not target_name:
                continue

            best: Optional[Element] = None
            best_cost = float("inf")

            for source_id, source_element in source.items():
                if source_id in used_source:
                    continue
                if source_element.kind != target_element.kind:
                    continue
                if _normalize_name(source_element.name) != target_name:
                    continue

                cost = self.element_cost(source_element, target_element)
                if cost < best_cost:
                    best, best_cost = source_element, cost

            if best is not None:
                pairs.append(
                    ElementPair(first=best, second=target_element, difference_cost=best_cost)
                )
                used_source.add(best.id)
                used_target.add(target_id)

        if pairs:
            logger.debug(f"Recovered {len(pairs)} elements with changed ids by name and kind")
        return pairs


_default_matcher = GreedyGraphMatcher()


def compare(source: ElementMap, target: ElementMap) -> ComparisonResult:
    """Compare two element graphs with the default weights."""
    return _default_matcher.compare(source, target)


__all__ = [
    "CostWeights",
    "DEFAULT_WEIGHTS",
    "GreedyGraphMatcher",
    "compare",
    "element_cost",
    "name_cost",
]
