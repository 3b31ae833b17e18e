"""Pytest configuration for bpmn-diff tests."""

import sys
from pathlib import Path
from typing import Callable

import pytest

# Add the project root to the path
project_dir = Path(__file__).parent.parent
sys.path.insert(0, str(project_dir))

from bpmn_diff.core.observability import LogLevel, ObservabilityConfig, ObservabilityManager  # noqa: E402

BPMN_HEADER = (
    '<?xml version="1.0" encoding="UTF-8"?>\n'
    '<bpmn:definitions xmlns:bpmn="http://www.omg.org/spec/BPMN/20100524/MODEL" '
    'xmlns:bpmndi="http://www.omg.org/spec/BPMN/20100524/DI" '
    'xmlns:dc="http://www.omg.org/spec/DD/20100524/DC" '
    'xmlns:di="http://www.omg.org/spec/DD/20100524/DI" '
    'id="Definitions_1" targetNamespace="http://bpmn.io/schema/bpmn">\n'
)
BPMN_FOOTER = "</bpmn:definitions>\n"


def make_document(process_body: str, diagram_body: str = "") -> str:
    """Wrap process content in a BPMN definitions document."""
    return (
        BPMN_HEADER
        + '  <bpmn:process id="Process_1" isExecutable="false">\n'
        + process_body
        + "  </bpmn:process>\n"
        + diagram_body
        + BPMN_FOOTER
    )


@pytest.fixture(scope="session", autouse=True)
def observability():
    """Install log sinks once, before any CliRunner swaps out stderr."""
    return ObservabilityManager.initialize(
        ObservabilityConfig(
            service_name="bpmn-diff-tests",
            log_level=LogLevel.WARNING,
            enable_tracing=True,
            enable_metrics=True,
        )
    )


@pytest.fixture
def bpmn_document() -> Callable[..., str]:
    """Factory for BPMN documents from process body markup."""
    return make_document


@pytest.fixture
def simple_xml() -> str:
    """Start -> Review order -> Done, with diagram interchange content."""
    return make_document(
        """\
    <bpmn:startEvent id="Start_1" name="Start">
      <bpmn:outgoing>Flow_1</bpmn:outgoing>
    </bpmn:startEvent>
    <bpmn:task id="Task_1" name="Review order">
      <bpmn:incoming>Flow_1</bpmn:incoming>
      <bpmn:outgoing>Flow_2</bpmn:outgoing>
    </bpmn:task>
    <bpmn:endEvent id="End_1" name="Done">
      <bpmn:incoming>Flow_2</bpmn:incoming>
    </bpmn:endEvent>
    <bpmn:sequenceFlow id="Flow_1" sourceRef="Start_1" targetRef="Task_1" />
    <bpmn:sequenceFlow id="Flow_2" sourceRef="Task_1" targetRef="End_1" />
""",
        """\
  <bpmndi:BPMNDiagram id="BPMNDiagram_1">
    <bpmndi:BPMNPlane id="BPMNPlane_1" bpmnElement="Process_1">
      <bpmndi:BPMNShape id="Task_1_di" bpmnElement="Task_1">
        <dc:Bounds x="270" y="80" width="100" height="80" />
      </bpmndi:BPMNShape>
      <bpmndi:BPMNEdge id="Flow_1_di" bpmnElement="Flow_1">
        <di:waypoint x="215" y="120" />
        <di:waypoint x="270" y="120" />
      </bpmndi:BPMNEdge>
    </bpmndi:BPMNPlane>
  </bpmndi:BPMNDiagram>
""",
    )


@pytest.fixture
def revised_xml() -> str:
    """Revision of ``simple_xml``: task renamed, approval gateway inserted."""
    return make_document(
        """\
    <bpmn:startEvent id="Start_1" name="Start" />
    <bpmn:userTask id="Task_1" name="Review customer order" />
    <bpmn:exclusiveGateway id="Gateway_1" name="Approved?" />
    <bpmn:endEvent id="End_1" name="Done" />
    <bpmn:sequenceFlow id="Flow_1" sourceRef="Start_1" targetRef="Task_1" />
    <bpmn:sequenceFlow id="Flow_2" sourceRef="Task_1" targetRef="Gateway_1" />
    <bpmn:sequenceFlow id="Flow_3" sourceRef="Gateway_1" targetRef="End_1" />
"""
    )


@pytest.fixture
def malformed_xml() -> str:
    return BPMN_HEADER + '  <bpmn:process id="Process_1">\n    <bpmn:task id="Task_1"\n'
