"""
Tests for the comparison API endpoints.

Tests the FastAPI REST endpoints for comparison, extraction and change
derivation.
"""

import pytest
from fastapi.testclient import TestClient

from bpmn_diff import __version__
from bpmn_diff.api.app import app
from bpmn_diff.api.comparison_routes import get_base_config, get_comparator
from bpmn_diff.engine import ComparatorConfig, ErrorHandlingStrategy


@pytest.fixture
def client():
    return TestClient(app)


def test_root(client):
    response = client.get("/")

    assert response.status_code == 200
    data = response.json()
    assert data["service"] == "bpmn-diff Comparison API"
    assert data["version"] == __version__
    assert "/api/v1/compare" in data["endpoints"]


class TestCompareEndpoint:
    def test_compare(self, client, simple_xml, revised_xml):
        response = client.post(
            "/api/v1/compare", json={"source_xml": simple_xml, "target_xml": revised_xml}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["summary"] == {
            "penalty": 4.18,
            "matched": 6,
            "modified": 2,
            "added": 2,
            "deleted": 0,
        }
        assert data["markers"]["modified"] == ["Task_1", "Flow_2"]
        assert data["source_element_count"] == 6
        assert data["target_element_count"] == 8
        assert data["result"]["added_set"][0]["second"]["id"] == "Gateway_1"

    def test_parse_error(self, client, simple_xml, malformed_xml):
        response = client.post(
            "/api/v1/compare", json={"source_xml": simple_xml, "target_xml": malformed_xml}
        )

        assert response.status_code == 422
        assert "Failed to parse BPMN document" in response.json()["detail"]

    def test_lenient_override(self, client, simple_xml, malformed_xml):
        response = client.post(
            "/api/v1/compare",
            json={
                "source_xml": simple_xml,
                "target_xml": malformed_xml,
                "error_handling": "lenient",
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["summary"]["deleted"] == 6
        assert len(data["warnings"]) == 1

    def test_missing_field(self, client, simple_xml):
        response = client.post("/api/v1/compare", json={"source_xml": simple_xml})

        assert response.status_code == 422


def test_comparators_share_one_config(monkeypatch):
    strict = get_comparator(ErrorHandlingStrategy.STRICT)
    lenient = get_comparator(ErrorHandlingStrategy.LENIENT)

    def from_env(cls):
        raise AssertionError("configuration re-read from the environment")

    monkeypatch.setattr(ComparatorConfig, "from_env", classmethod(from_env))

    assert get_comparator(ErrorHandlingStrategy.STRICT) is strict
    assert get_comparator(ErrorHandlingStrategy.LENIENT) is lenient
    assert lenient.config.error_handling == ErrorHandlingStrategy.LENIENT
    assert lenient.config.cost_weights is strict.config.cost_weights
    assert lenient.config.changelog_policy is get_base_config().changelog_policy


class TestExtractEndpoint:
    def test_extract(self, client, simple_xml):
        response = client.post("/api/v1/extract", json={"xml": simple_xml})

        assert response.status_code == 200
        data = response.json()
        assert data["element_count"] == 6
        assert [e["id"] for e in data["elements"]][:3] == ["Process_1", "Start_1", "Task_1"]
        assert data["elements"][2]["incoming"] == ["Flow_1"]

    def test_blank_document(self, client):
        response = client.post("/api/v1/extract", json={"xml": ""})

        assert response.status_code == 200
        assert response.json()["element_count"] == 0

    def test_parse_error(self, client, malformed_xml):
        response = client.post("/api/v1/extract", json={"xml": malformed_xml})

        assert response.status_code == 422


class TestChangesEndpoint:
    def test_changes(self, client, simple_xml, revised_xml):
        response = client.post(
            "/api/v1/changes",
            json={"source_xml": simple_xml, "target_xml": revised_xml, "diagram_id": "D-1"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["total_count"] == 4
        first = data["changes"][0]
        assert first["record"]["change_type"] == "added"
        assert first["record"]["diagram_id"] == "D-1"
        assert first["description"] == "Added bpmn:exclusiveGateway with name: Approved?"

    def test_ignore_flows(self, client, simple_xml, revised_xml):
        response = client.post(
            "/api/v1/changes",
            json={"source_xml": simple_xml, "target_xml": revised_xml, "ignore_flows": True},
        )

        assert response.status_code == 200
        assert response.json()["total_count"] == 2

    def test_parse_error(self, client, simple_xml, malformed_xml):
        response = client.post(
            "/api/v1/changes", json={"source_xml": malformed_xml, "target_xml": simple_xml}
        )

        assert response.status_code == 422
