"""
bpmn-diff CLI Interface

Command-line tool for comparing BPMN diagram files, inspecting the
extracted element graph and deriving change history events.
"""

import json
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional

import click

from bpmn_diff.core.observability import LogLevel, ObservabilityManager
from bpmn_diff.engine import ComparatorConfig, DiagramComparator, ErrorHandlingStrategy
from bpmn_diff.models import ElementMap
from bpmn_diff.stages.changelog import ChangeLogPolicy, ChangeRecord, derive_change_records
from bpmn_diff.stages.extraction import ParseError

# Setup logging
logger = logging.getLogger(__name__)


@click.group()
def cli():
    """bpmn-diff CLI - Structural comparison of BPMN 2.0 diagrams."""
    pass


@cli.command()
@click.argument("source", type=click.Path(exists=True, dir_okay=False))
@click.argument("target", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--format",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format",
)
@click.option(
    "--lenient",
    is_flag=True,
    help="Treat an unparsable document as an empty diagram instead of failing",
)
@click.option(
    "--verbose/--quiet",
    default=False,
    help="Verbose logging output",
)
def compare(source: str, target: str, format: str, lenient: bool, verbose: bool) -> None:
    """
    Compare two revisions of a BPMN diagram.

    SOURCE is the baseline revision, TARGET the revision compared against it.

    \b
    Examples:
        bpmn-diff compare before.bpmn after.bpmn
        bpmn-diff compare before.bpmn after.bpmn --format json
    """
    config = _load_config(lenient=lenient, verbose=verbose)
    comparator = DiagramComparator(config)

    try:
        comparison = comparator.compare_documents(_read(source), _read(target))
    except ParseError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    for warning in comparison.warnings:
        click.echo(f"Warning: {warning}", err=True)

    result = comparison.result

    if format == "json":
        output = {
            "source": source,
            "target": target,
            "summary": result.summary(),
            "markers": result.diff_markers().model_dump(),
            "warnings": comparison.warnings,
            "result": result.model_dump(mode="json"),
        }
        click.echo(json.dumps(output, indent=2))
    else:
        click.echo(result.describe())
        summary = result.summary()
        click.echo(
            f"\nPenalty: {summary['penalty']:.2f} | matched: {summary['matched']}, "
            f"modified: {summary['modified']}, added: {summary['added']}, "
            f"deleted: {summary['deleted']}"
        )


@cli.command()
@click.argument("bpmn_file", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--format",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format",
)
def extract(bpmn_file: str, format: str) -> None:
    """
    Show the element graph extracted from a BPMN file.

    \b
    Examples:
        bpmn-diff extract diagram.bpmn
        bpmn-diff extract diagram.bpmn --format json
    """
    config = _load_config()
    comparator = DiagramComparator(config)

    try:
        elements = comparator.extract(_read(bpmn_file))
    except ParseError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if format == "json":
        click.echo(json.dumps(_elements_json(elements), indent=2))
    else:
        _output_elements_text(elements)


@cli.command()
@click.argument("source", type=click.Path(exists=True, dir_okay=False))
@click.argument("target", type=click.Path(exists=True, dir_okay=False))
@click.option("--diagram-id", default=None, help="Diagram id stamped on every record")
@click.option("--ignore-flows", is_flag=True, help="Do not report sequence flow changes")
@click.option("--ignore-unnamed", is_flag=True, help="Do not report unnamed elements")
@click.option(
    "--lenient",
    is_flag=True,
    help="Treat an unparsable document as an empty diagram instead of failing",
)
@click.option(
    "--format",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format",
)
def changes(
    source: str,
    target: str,
    diagram_id: Optional[str],
    ignore_flows: bool,
    ignore_unnamed: bool,
    lenient: bool,
    format: str,
) -> None:
    """
    Derive change history events between two diagram revisions.

    \b
    Examples:
        bpmn-diff changes previous.bpmn current.bpmn --diagram-id D-42
        bpmn-diff changes previous.bpmn current.bpmn --ignore-flows
    """
    config = _load_config(lenient=lenient)
    config.changelog_policy = ChangeLogPolicy(
        ignore_flows=ignore_flows,
        ignore_unnamed=ignore_unnamed,
    )
    comparator = DiagramComparator(config)

    try:
        comparison = comparator.compare_documents(_read(source), _read(target))
    except ParseError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    for warning in comparison.warnings:
        click.echo(f"Warning: {warning}", err=True)

    records = derive_change_records(
        comparison.result, policy=config.changelog_policy, diagram_id=diagram_id
    )

    if format == "json":
        click.echo(json.dumps([record.model_dump(mode="json") for record in records], indent=2))
    else:
        _output_records_text(records)


@cli.command()
def info() -> None:
    """Show version and configuration information."""
    from bpmn_diff import __version__

    config = ComparatorConfig.from_env()
    weights = config.cost_weights

    info_dict = {
        "name": "bpmn-diff",
        "version": __version__,
        "description": "Structural comparison of BPMN 2.0 diagrams",
        "error_handling": config.error_handling.value,
        "cost_weights": {
            "kind_mismatch": weights.kind_mismatch,
            "flow_source_changed": weights.flow_source_changed,
            "flow_target_changed": weights.flow_target_changed,
            "incoming_count_changed": weights.incoming_count_changed,
            "outgoing_count_changed": weights.outgoing_count_changed,
            "unmatched": weights.unmatched,
        },
        "tracked_kinds": sorted(kind.value for kind in config.changelog_policy.tracked_kinds),
    }

    click.echo(json.dumps(info_dict, indent=2))


# ==================
# Helper Functions
# ==================


def _load_config(lenient: bool = False, verbose: bool = False) -> ComparatorConfig:
    """Read config from the environment, apply flags, set up observability."""
    config = ComparatorConfig.from_env()

    if lenient:
        config.error_handling = ErrorHandlingStrategy.LENIENT
    if verbose:
        config.log_level = LogLevel.DEBUG

    ObservabilityManager.initialize(config.observability_config())
    return config


def _read(path: str) -> bytes:
    """Read a diagram file as raw bytes so the XML declaration decides the encoding."""
    return Path(path).read_bytes()


def _elements_json(elements: ElementMap) -> Dict[str, Dict]:
    return {
        element_id: element.model_dump(mode="json", exclude_none=True)
        for element_id, element in elements.items()
    }


def _output_elements_text(elements: ElementMap) -> None:
    """Output one line per extracted element."""
    for element in elements.values():
        line = f"{element.kind.value}: {element.id}"
        if element.name:
            line += f' "{element.name}"'
        if element.is_flow:
            line += f" ({element.source_ref or '?'} -> {element.target_ref or '?'})"
        else:
            line += f" [in: {len(element.incoming)}, out: {len(element.outgoing)}]"
        click.echo(line)

    click.echo(f"\n{len(elements)} elements", err=True)


def _output_records_text(records: List[ChangeRecord]) -> None:
    if not records:
        click.echo("No tracked changes.")
        return
    for record in records:
        click.echo(f"[{record.change_type.value}] {record.element_id}: {record.describe()}")


if __name__ == "__main__":
    cli()
