"""
Graph Extraction Stage

Parses a BPMN 2.0 XML document into a flat ``ElementMap``: one ``Element``
per recognized process construct, keyed by id, with sequence-flow
adjacency wired onto the flow endpoints.

Diagram interchange content (shapes, edges, bounds, waypoints) lives in the
BPMNDI / DC / DI namespaces and is skipped wherever it is nested.
"""

import logging
import re
from typing import Any, Dict, Optional, Union

from lxml import etree

from bpmn_diff.core import Timer
from bpmn_diff.models.elements import Element, ElementKind, ElementMap

logger = logging.getLogger(__name__)

# BPMN 2.0 Namespaces
BPMN_NAMESPACE = "http://www.omg.org/spec/BPMN/20100524/MODEL"
BPMNDI_NAMESPACE = "http://www.omg.org/spec/BPMN/20100524/DI"
DC_NAMESPACE = "http://www.omg.org/spec/DD/20100524/DC"
DI_NAMESPACE = "http://www.omg.org/spec/DD/20100524/DI"

# Trailing namespace segments that mark presentation-only content
PRESENTATION_NAMESPACE_MARKERS = frozenset({"bpmndi", "di", "dc"})

_DEFINITIONS_PATTERN = re.compile(r"<(?:[\w.-]+:)?definitions\b")
_NAMESPACE_SEPARATORS = re.compile(r"[/:#]")
_XML_DECLARATION = re.compile(r"\A(\ufeff?)<\?xml\b[^>]*\?>")

Document = Union[str, bytes]


class ParseError(ValueError):
    """Raised when a diagram document is not well-formed XML."""

    def __init__(self, message: str, line: Optional[int] = None, column: Optional[int] = None):
        self.message = message
        self.line = line
        self.column = column
        location = f" (line {line}, column {column})" if line is not None else ""
        super().__init__(f"Failed to parse BPMN document{location}: {message}")


def is_presentation_namespace(namespace: Optional[str]) -> bool:
    """Whether a namespace URI belongs to diagram interchange information."""
    if not namespace:
        return False
    segments = [s for s in _NAMESPACE_SEPARATORS.split(namespace.lower()) if s]
    return bool(segments) and segments[-1] in PRESENTATION_NAMESPACE_MARKERS


def looks_like_bpmn(document: Optional[Document]) -> bool:
    """Cheap sanity check that a document carries a ``definitions`` root."""
    if not document:
        return False
    if isinstance(document, bytes):
        document = document.decode("utf-8", errors="replace")
    return bool(_DEFINITIONS_PATTERN.search(document))


class GraphExtractor:
    """Extracts the normalized element graph from BPMN XML.

    Stateless: one instance can serve any number of documents, from any
    number of threads.
    """

    def __init__(self) -> None:
        self._parser_options: Dict[str, Any] = {
            "resolve_entities": False,
            "no_network": True,
            "remove_comments": True,
            "remove_pis": True,
        }

    def extract(self, document: Optional[Document]) -> ElementMap:
        """Parse a document into an id-keyed element mapping.

        Args:
            document: BPMN XML as text or bytes. Blank input yields an
                empty mapping.

        Returns:
            Mapping of element id to ``Element``, in document order

        Raises:
            ParseError: If the document is not well-formed XML
        """
        if document is None or not document.strip():
            return {}

        with Timer("graph_extraction"):
            root = self._parse(document)
            records = self._collect_records(root)
            dangling = self._wire_flows(records)

            elements: ElementMap = {
                element_id: Element(**record) for element_id, record in records.items()
            }

        logger.debug(
            f"Extracted {len(elements)} elements"
            + (f", dropped {dangling} dangling flow references" if dangling else "")
        )
        return elements

    def _parse(self, document: Document) -> etree._Element:
        """Parse raw text into an lxml tree.

        Bytes are decoded as their XML declaration says. Text is already
        decoded, so its declaration is dropped before the UTF-8 round trip
        and a declared legacy encoding cannot re-decode it.
        """
        if isinstance(document, str):
            data = _XML_DECLARATION.sub(r"\1", document, count=1).encode("utf-8")
        else:
            data = document
        parser = etree.XMLParser(**self._parser_options)
        try:
            return etree.fromstring(data, parser=parser)
        except etree.XMLSyntaxError as e:
            raise ParseError(e.msg or str(e), line=e.lineno, column=e.offset) from e

    def _collect_records(self, root: etree._Element) -> Dict[str, Dict[str, Any]]:
        """First pass: keep recognized, id-carrying process elements."""
        records: Dict[str, Dict[str, Any]] = {}

        for node in root.iter(tag=etree.Element):
            element_id = node.get("id")
            if not element_id:
                continue

            qname = etree.QName(node)
            if is_presentation_namespace(qname.namespace):
                continue

            kind = ElementKind.from_local_name(qname.localname)
            if kind is None:
                continue

            if element_id in records:
                logger.debug(f"Duplicate element id '{element_id}', keeping the last occurrence")

            record: Dict[str, Any] = {
                "id": element_id,
                "name": node.get("name") or "",
                "kind": kind,
                "incoming": [],
                "outgoing": [],
            }
            if kind.is_flow:
                record["source_ref"] = node.get("sourceRef") or None
                record["target_ref"] = node.get("targetRef") or None

            records[element_id] = record

        return records

    def _wire_flows(self, records: Dict[str, Dict[str, Any]]) -> int:
        """Second pass: append each flow id to its endpoints' adjacency.

        Each endpoint is wired on its own; references that do not resolve to
        a non-flow element of the same document are dropped.

        Returns:
            Number of dropped endpoint references
        """
        dangling = 0

        for record in records.values():
            if not record["kind"].is_flow:
                continue

            flow_id = record["id"]
            source = records.get(record.get("source_ref") or "")
            target = records.get(record.get("target_ref") or "")

            if source is not None and not source["kind"].is_flow:
                source["outgoing"].append(flow_id)
            else:
                dangling += 1

            if target is not None and not target["kind"].is_flow:
                target["incoming"].append(flow_id)
            else:
                dangling += 1

        return dangling


_default_extractor = GraphExtractor()


def extract(document: Optional[Document]) -> ElementMap:
    """Extract the element graph of a document with the default extractor."""
    return _default_extractor.extract(document)


__all__ = [
    "BPMN_NAMESPACE",
    "BPMNDI_NAMESPACE",
    "DC_NAMESPACE",
    "DI_NAMESPACE",
    "ParseError",
    "GraphExtractor",
    "extract",
    "is_presentation_namespace",
    "looks_like_bpmn",
]
