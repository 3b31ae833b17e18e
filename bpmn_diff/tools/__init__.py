"""
bpmn-diff Tools

Command-line entry points for bpmn-diff.
"""

from bpmn_diff.tools.cli import cli

__all__ = ["cli"]
