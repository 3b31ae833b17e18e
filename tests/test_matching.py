"""
Tests for the greedy graph matching stage.

Tests:
- Name and element difference costs
- Identity, name+kind and residual passes
- Result invariants (identity law, count symmetry, non-negativity)
- Tie-breaking and input immutability
"""

from typing import Dict

import pytest

from bpmn_diff.models.elements import Element, ElementKind, ElementMap
from bpmn_diff.stages.extraction import extract
from bpmn_diff.stages.matching import (
    CostWeights,
    GreedyGraphMatcher,
    compare,
    element_cost,
    name_cost,
)


def task(element_id: str, name: str = "", incoming=(), outgoing=(), kind=ElementKind.TASK) -> Element:
    return Element(id=element_id, name=name, kind=kind, incoming=incoming, outgoing=outgoing)


def flow(element_id: str, source_ref: str, target_ref: str, name: str = "") -> Element:
    return Element(
        id=element_id,
        name=name,
        kind=ElementKind.SEQUENCE_FLOW,
        source_ref=source_ref,
        target_ref=target_ref,
    )


def graph(*elements: Element) -> ElementMap:
    return {element.id: element for element in elements}


@pytest.fixture
def order_graph() -> ElementMap:
    return graph(
        Element(id="Start_1", kind=ElementKind.START_EVENT, outgoing=("Flow_1",)),
        task("Task_1", "Review", incoming=("Flow_1",), outgoing=("Flow_2",)),
        Element(id="End_1", kind=ElementKind.END_EVENT, incoming=("Flow_2",)),
        flow("Flow_1", "Start_1", "Task_1"),
        flow("Flow_2", "Task_1", "End_1"),
    )


class TestNameCost:
    """Tests for the name difference heuristic."""

    def test_equal_names_cost_nothing(self):
        assert name_cost("Review", "Review") == 0.0

    def test_case_and_whitespace_are_ignored(self):
        assert name_cost("  Review ", "review") == 0.0

    def test_length_difference_is_priced(self):
        assert name_cost("Review", "Review Doc") == pytest.approx(0.4)

    def test_empty_against_named(self):
        assert name_cost("", "abc") == 1.0

    def test_missing_names(self):
        assert name_cost(None, "") == 0.0

    def test_same_length_names_cost_nothing(self):
        assert name_cost("Approve", "Decline") == 0.0

    def test_cost_is_bounded(self):
        for a, b in [("a", "abcdefgh"), ("Ship", ""), ("x", "y")]:
            assert 0.0 <= name_cost(a, b) <= 1.0


class TestElementCost:
    """Tests for the pairwise difference cost."""

    def test_identical_elements(self):
        assert element_cost(task("T", "Review"), task("T", "Review")) == 0.0

    def test_kind_mismatch(self):
        cost = element_cost(task("T", "Review"), task("T", "Review", kind=ElementKind.USER_TASK))

        assert cost == 1.0

    def test_fan_in_and_fan_out(self):
        before = task("T", "Review", incoming=("F1",), outgoing=("F2",))
        after = task("T", "Review", incoming=("F1", "F3"), outgoing=())

        assert element_cost(before, after) == pytest.approx(0.5)

    def test_adjacency_order_does_not_matter(self):
        before = task("T", incoming=("F1", "F2"))
        after = task("T", incoming=("F2", "F1"))

        assert element_cost(before, after) == 0.0

    def test_flow_rewiring_costs_both_endpoints(self):
        cost = element_cost(flow("F", "A", "B", "yes"), flow("F", "C", "D", "yes"))

        assert cost >= 1.5

    def test_flow_single_endpoint(self):
        assert element_cost(flow("F", "A", "B"), flow("F", "A", "C")) == pytest.approx(0.75)

    def test_custom_weights(self):
        weights = CostWeights(kind_mismatch=3.0)
        cost = element_cost(task("T"), task("T", kind=ElementKind.SCRIPT_TASK), weights)

        assert cost == 3.0


class TestResultInvariants:
    """Tests for properties every comparison result must satisfy."""

    def test_identity_law(self, order_graph):
        result = compare(order_graph, order_graph)

        assert result.penalty == 0
        assert result.added_set == []
        assert result.deleted_set == []
        assert len(result.matching_set) == len(order_graph)
        assert all(pair.difference_cost == 0 for pair in result.matching_set)

    def test_count_symmetry(self, order_graph):
        target = graph(
            task("Task_1", "Review carefully", outgoing=("Flow_9",)),
            task("Task_5", "Archive"),
            flow("Flow_9", "Task_1", "Task_5"),
        )

        result = compare(order_graph, target)

        assert len(result.deleted_set) + len(result.matching_set) == len(order_graph)
        assert len(result.added_set) + len(result.matching_set) == len(target)

    def test_non_negativity(self, order_graph):
        target = graph(task("Task_1", "X", kind=ElementKind.SERVICE_TASK), flow("Flow_1", "Q", "R"))

        result = compare(order_graph, target)

        pairs = result.matching_set + result.added_set + result.deleted_set
        assert all(pair.difference_cost >= 0 for pair in pairs)
        assert result.penalty >= 0

    def test_penalty_is_sum_of_pair_costs(self, order_graph):
        target = graph(task("Task_1", "Review all"), task("Task_2", "Ship"))

        result = compare(order_graph, target)

        pairs = result.matching_set + result.added_set + result.deleted_set
        assert result.penalty == pytest.approx(sum(p.difference_cost for p in pairs))

    def test_inputs_are_not_modified(self, order_graph):
        target = graph(task("Task_7", "Review"))
        source_before: Dict[str, Element] = dict(order_graph)
        target_before: Dict[str, Element] = dict(target)

        compare(order_graph, target)

        assert order_graph == source_before
        assert target == target_before


class TestMatchingPasses:
    """Tests for the three matching passes."""

    def test_unchanged_element(self):
        """One unchanged task is one zero-cost match."""
        result = compare(graph(task("Task_1", "Review")), graph(task("Task_1", "Review")))

        assert len(result.matching_set) == 1
        assert result.matching_set[0].difference_cost == 0
        assert result.penalty == 0

    def test_different_name_and_id_is_delete_plus_add(self):
        result = compare(graph(task("Task_1", "Review")), graph(task("Task_9", "Review Doc")))

        assert [p.first.id for p in result.deleted_set] == ["Task_1"]
        assert [p.second.id for p in result.added_set] == ["Task_9"]
        assert result.matching_set == []
        assert result.penalty == 2

    def test_rename_recovery(self):
        source = graph(task("Task_1", "Review", incoming=("Flow_1",)))
        target = graph(task("Task_7", "review "))

        result = compare(source, target)

        assert result.added_set == []
        assert result.deleted_set == []
        pair = result.matching_set[0]
        assert (pair.first.id, pair.second.id) == ("Task_1", "Task_7")
        assert pair.difference_cost == pytest.approx(0.25)

    def test_flow_target_change(self):
        source = graph(task("A"), task("B"), task("C"), flow("Flow_1", "A", "B"))
        target = graph(task("A"), task("B"), task("C"), flow("Flow_1", "A", "C"))

        result = compare(source, target)

        pair = next(p for p in result.matching_set if p.element_id == "Flow_1")
        assert pair.difference_cost >= 0.75

    def test_empty_source(self):
        target = graph(task("T1"), task("T2"), flow("F1", "T1", "T2"))

        result = compare({}, target)

        assert len(result.added_set) == 3
        assert all(pair.difference_cost == 1 for pair in result.added_set)
        assert result.matching_set == []
        assert result.deleted_set == []
        assert result.penalty == 3

    def test_empty_target(self, order_graph):
        result = compare(order_graph, {})

        assert len(result.deleted_set) == len(order_graph)
        assert result.penalty == len(order_graph)

    def test_both_empty(self):
        result = compare({}, {})

        assert result.penalty == 0
        assert result.is_identical

    def test_id_match_takes_precedence_over_name(self):
        source = graph(task("Task_1", "Approve"))
        target = graph(task("Task_1", "Reject request"), task("Task_2", "Approve"))

        result = compare(source, target)

        assert [(p.first.id, p.second.id) for p in result.matching_set] == [("Task_1", "Task_1")]
        assert [p.second.id for p in result.added_set] == ["Task_2"]
        assert result.deleted_set == []

    def test_id_match_ignores_kind_change(self):
        source = graph(task("Task_1", "Review"))
        target = graph(task("Task_1", "Review", kind=ElementKind.USER_TASK))

        result = compare(source, target)

        assert len(result.matching_set) == 1
        assert result.matching_set[0].difference_cost == 1.0

    def test_name_pass_requires_same_kind(self):
        source = graph(task("Task_1", "Review"))
        target = graph(task("Task_2", "Review", kind=ElementKind.USER_TASK))

        result = compare(source, target)

        assert result.matching_set == []
        assert result.penalty == 2

    def test_unnamed_elements_are_not_matched_by_name(self):
        source = graph(flow("Flow_1", "A", "B"))
        target = graph(flow("Flow_2", "A", "B"))

        result = compare(source, target)

        assert result.matching_set == []
        assert len(result.added_set) == 1
        assert len(result.deleted_set) == 1

    def test_name_pass_picks_cheapest_candidate(self):
        source = graph(
            task("Task_a", "Check", outgoing=("F1",)),
            task("Task_b", "Check"),
        )
        target = graph(task("Task_z", "Check"))

        result = compare(source, target)

        assert result.matching_set[0].first.id == "Task_b"
        assert [p.first.id for p in result.deleted_set] == ["Task_a"]

    def test_name_pass_ties_go_to_first_source_element(self):
        source = graph(task("Task_a", "Check"), task("Task_b", "Check"))
        target = graph(task("Task_z", "Check"))

        result = compare(source, target)

        assert result.matching_set[0].first.id == "Task_a"

    def test_source_element_matched_at_most_once(self):
        source = graph(task("Task_a", "Check"))
        target = graph(task("Task_y", "Check"), task("Task_z", "Check"))

        result = compare(source, target)

        assert [p.second.id for p in result.matching_set] == ["Task_y"]
        assert [p.second.id for p in result.added_set] == ["Task_z"]

    def test_residual_order(self):
        source = graph(task("S2"), task("S1"))
        target = graph(task("T2"), task("T1"))

        result = compare(source, target)

        assert [p.first.id for p in result.deleted_set] == ["S2", "S1"]
        assert [p.second.id for p in result.added_set] == ["T2", "T1"]

    def test_identity_matches_follow_target_order(self):
        source = graph(task("A"), task("B"))
        target = graph(task("B"), task("A"))

        result = compare(source, target)

        assert [p.element_id for p in result.matching_set] == ["B", "A"]

    def test_custom_unmatched_weight(self):
        matcher = GreedyGraphMatcher(CostWeights(unmatched=2.0))

        result = matcher.compare({}, graph(task("T1"), task("T2")))

        assert result.penalty == 4.0


class TestExtractedDocuments:
    """Matching over extracted documents."""

    def test_revision_comparison(self, simple_xml, revised_xml):
        result = compare(extract(simple_xml), extract(revised_xml))

        assert [p.second.id for p in result.added_set] == ["Gateway_1", "Flow_3"]
        assert result.deleted_set == []
        assert {p.element_id for p in result.modified_pairs} == {"Task_1", "Flow_2"}
        assert result.penalty == pytest.approx(1.0 + 9 / 21 + 0.75 + 2)

    def test_same_document_is_identical(self, simple_xml):
        result = compare(extract(simple_xml), extract(simple_xml))

        assert result.is_identical
        assert result.penalty == 0
