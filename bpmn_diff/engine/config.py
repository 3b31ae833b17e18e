"""
Comparator Configuration Schema

Defines configuration for the DiagramComparator including error policy,
cost weights, change log policy and observability settings.
"""

import os
from dataclasses import dataclass, field
from enum import Enum

from bpmn_diff.core.observability import LogLevel, ObservabilityConfig
from bpmn_diff.stages.changelog import ChangeLogPolicy
from bpmn_diff.stages.matching import CostWeights


class ErrorHandlingStrategy(str, Enum):
    """What to do when a document cannot be parsed."""

    STRICT = "strict"  # Propagate ParseError to the caller
    LENIENT = "lenient"  # Treat the unparsable side as an empty diagram


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class ComparatorConfig:
    """Complete comparator configuration."""

    # Error Handling
    error_handling: ErrorHandlingStrategy = ErrorHandlingStrategy.STRICT

    # Matching
    cost_weights: CostWeights = field(default_factory=CostWeights)

    # Change log derivation
    changelog_policy: ChangeLogPolicy = field(default_factory=ChangeLogPolicy)

    # Observability
    log_level: LogLevel = LogLevel.INFO
    json_logs: bool = False
    enable_tracing: bool = True
    enable_metrics: bool = True

    def observability_config(self) -> ObservabilityConfig:
        """Build the observability settings for this configuration."""
        return ObservabilityConfig(
            service_name="bpmn-diff",
            log_level=self.log_level,
            json_logs=self.json_logs,
            enable_tracing=self.enable_tracing,
            enable_metrics=self.enable_metrics,
        )

    @classmethod
    def from_env(cls) -> "ComparatorConfig":
        """Create comparator config from environment variables.

        Unknown enum values fall back to the defaults.

        Returns:
            ComparatorConfig instance
        """
        try:
            error_handling = ErrorHandlingStrategy(
                os.getenv("BPMN_DIFF_ERROR_HANDLING", "strict").lower()
            )
        except ValueError:
            error_handling = ErrorHandlingStrategy.STRICT

        try:
            log_level = LogLevel(os.getenv("BPMN_DIFF_LOG_LEVEL", "INFO").upper())
        except ValueError:
            log_level = LogLevel.INFO

        return cls(
            error_handling=error_handling,
            log_level=log_level,
            json_logs=_env_flag("BPMN_DIFF_JSON_LOGS", False),
            enable_tracing=_env_flag("BPMN_DIFF_ENABLE_TRACING", True),
            enable_metrics=_env_flag("BPMN_DIFF_ENABLE_METRICS", True),
        )
