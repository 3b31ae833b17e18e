"""
Observability Infrastructure

Process-wide log sink, tracing and in-process metrics for bpmn-diff.

Library modules log through the standard ``logging`` module; this module
owns the loguru sink and the OpenTelemetry providers, and offers the
``span``/``Timer``/``record_metric``/``log_execution`` helpers used by the
comparison stages. All log output goes to stderr: stdout belongs to
command output such as diff reports and JSON.
"""

import contextlib
import functools
import json
import sys
import time
import traceback
from enum import Enum
from typing import Any, Callable, Dict, Iterator, Optional, TypeVar, Union

from loguru import logger
from opentelemetry import metrics, trace
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import InMemoryMetricReader
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import ConsoleSpanExporter, SimpleSpanProcessor

F = TypeVar("F", bound=Callable[..., Any])

TEXT_LOG_FORMAT = (
    "<green>{time:HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)

# Metric instruments
EVENTS_COUNTER = "bpmn_diff_events_total"
DURATION_HISTOGRAM = "bpmn_diff_duration_ms"
VALUE_HISTOGRAM = "bpmn_diff_values"


class LogLevel(str, Enum):
    """Supported log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


def _level_name(level: Union[str, LogLevel]) -> str:
    return level.value if isinstance(level, LogLevel) else str(level).upper()


class ObservabilityConfig:
    """Settings for the log sink, tracing and metrics."""

    def __init__(
        self,
        service_name: str = "bpmn-diff",
        log_level: Union[str, LogLevel] = LogLevel.INFO,
        json_logs: bool = False,
        enable_tracing: bool = True,
        console_spans: bool = False,
        enable_metrics: bool = True,
    ):
        """
        Args:
            service_name: ``service.name`` resource attribute
            log_level: Minimum level written to the sink
            json_logs: One JSON object per line instead of coloured text
            enable_tracing: Install a tracer provider
            console_spans: Also print finished spans to stderr
            enable_metrics: Install a meter provider with an in-memory reader
        """
        self.service_name = service_name
        self.log_level = _level_name(log_level)
        self.json_logs = json_logs
        self.enable_tracing = enable_tracing
        self.console_spans = console_spans
        self.enable_metrics = enable_metrics


class JSONLineFormatter:
    """Loguru format callable rendering each record as one JSON line."""

    def __init__(self, service_name: str):
        self.service_name = service_name

    def __call__(self, record: Dict[str, Any]) -> str:
        payload: Dict[str, Any] = {
            "ts": record["time"].isoformat(),
            "service": self.service_name,
            "level": record["level"].name,
            "logger": record["name"],
            "location": f"{record['function']}:{record['line']}",
            "message": record["message"],
        }
        if record["extra"]:
            payload["context"] = record["extra"]

        exception = record["exception"]
        if exception is not None and exception.type is not None:
            payload["error"] = {
                "type": exception.type.__name__,
                "message": str(exception.value),
                "stack": "".join(
                    traceback.format_exception(exception.type, exception.value, exception.traceback)
                ),
            }

        # The returned string is used as a format template, so braces are escaped
        line = json.dumps(payload, default=str)
        return line.replace("{", "{{").replace("}", "}}") + "\n"


class ObservabilityManager:
    """Owns the process-wide sink and OpenTelemetry providers."""

    _instance: Optional["ObservabilityManager"] = None

    def __init__(self, config: ObservabilityConfig):
        self.config = config
        self.resource = Resource(attributes={SERVICE_NAME: config.service_name})
        self.tracer: Optional[trace.Tracer] = None
        self.metric_reader: Optional[InMemoryMetricReader] = None
        self._instruments: Dict[str, Any] = {}

        self._configure_sink()
        if config.enable_tracing:
            self._configure_tracing()
        if config.enable_metrics:
            self._configure_metrics()

        logger.debug(
            f"Observability ready for {config.service_name} "
            f"(level={config.log_level}, tracing={config.enable_tracing}, "
            f"metrics={config.enable_metrics})"
        )

    def _configure_sink(self) -> None:
        logger.remove()
        if self.config.json_logs:
            logger.add(
                sys.stderr,
                level=self.config.log_level,
                format=JSONLineFormatter(self.config.service_name),
                colorize=False,
            )
        else:
            logger.add(
                sys.stderr,
                level=self.config.log_level,
                format=TEXT_LOG_FORMAT,
                colorize=True,
                backtrace=False,
                diagnose=False,
            )

    def _configure_tracing(self) -> None:
        provider = TracerProvider(resource=self.resource)
        if self.config.console_spans:
            provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter(out=sys.stderr)))
        trace.set_tracer_provider(provider)
        self.tracer = trace.get_tracer("bpmn_diff")

    def _configure_metrics(self) -> None:
        self.metric_reader = InMemoryMetricReader()
        provider = MeterProvider(resource=self.resource, metric_readers=[self.metric_reader])
        metrics.set_meter_provider(provider)

        meter = metrics.get_meter("bpmn_diff")
        self._instruments = {
            EVENTS_COUNTER: meter.create_counter(
                EVENTS_COUNTER, unit="1", description="Comparisons, pairs and other counted events"
            ),
            DURATION_HISTOGRAM: meter.create_histogram(
                DURATION_HISTOGRAM, unit="ms", description="Stage and call durations"
            ),
            VALUE_HISTOGRAM: meter.create_histogram(
                VALUE_HISTOGRAM, description="Measured values such as comparison penalties"
            ),
        }

    def instrument_for(self, metric_name: str, value: Union[int, float]) -> Optional[Any]:
        """Pick the instrument a named measurement is recorded on."""
        if not self._instruments:
            return None
        if metric_name.endswith("_total"):
            return self._instruments[EVENTS_COUNTER]
        if metric_name.endswith("_duration"):
            return self._instruments[DURATION_HISTOGRAM]
        if isinstance(value, int):
            return self._instruments[EVENTS_COUNTER]
        return self._instruments[VALUE_HISTOGRAM]

    @classmethod
    def initialize(cls, config: Optional[ObservabilityConfig] = None) -> "ObservabilityManager":
        """Create the process-wide instance; later calls return it unchanged."""
        if cls._instance is None:
            cls._instance = cls(config or ObservabilityConfig())
        return cls._instance

    @classmethod
    def get_instance(cls) -> "ObservabilityManager":
        return cls.initialize()


@contextlib.contextmanager
def span(name: str, attributes: Optional[Dict[str, Any]] = None) -> Iterator[Optional[trace.Span]]:
    """Run a block inside a tracing span; a no-op when tracing is off."""
    tracer = ObservabilityManager.get_instance().tracer
    if tracer is None:
        yield None
        return

    with tracer.start_as_current_span(name, attributes=attributes) as current:
        yield current


def record_metric(
    metric_name: str,
    value: Union[int, float],
    attributes: Optional[Dict[str, str]] = None,
) -> None:
    """
    Record a measurement.

    Names ending in ``_total`` and plain integers are counted, names ending
    in ``_duration`` go to the duration histogram (milliseconds) and every
    other value to the value histogram. The name travels as the ``metric``
    attribute.

    Args:
        metric_name: Measurement name
        value: Measured value
        attributes: Extra attributes for the data point
    """
    instrument = ObservabilityManager.get_instance().instrument_for(metric_name, value)
    if instrument is None:
        return

    point_attributes = {"metric": metric_name}
    if attributes:
        point_attributes.update(attributes)

    if hasattr(instrument, "add"):
        instrument.add(value, attributes=point_attributes)
    else:
        instrument.record(value, attributes=point_attributes)


def log_execution(
    level: Union[str, LogLevel] = LogLevel.INFO,
    include_args: bool = True,
    include_result: bool = True,
    include_duration: bool = True,
) -> Callable[[F], F]:
    """
    Log each call of the decorated function, and any exception it raises.

    Args:
        level: Level of the success record
        include_args: Attach truncated positional and keyword arguments
        include_result: Attach the truncated return value
        include_duration: Attach the duration and record it as a metric
    """
    level_name = _level_name(level)

    def decorator(func: F) -> F:
        qualified_name = f"{func.__module__}.{func.__qualname__}"

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            context: Dict[str, Any] = {"call": qualified_name}
            if include_args:
                context["args"] = [_truncate(arg) for arg in args]
                context["kwargs"] = {key: _truncate(val) for key, val in kwargs.items()}

            started = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                context["duration_ms"] = (time.perf_counter() - started) * 1000
                context["error"] = repr(e)
                logger.bind(**context).opt(exception=True).error(f"{qualified_name} failed")
                raise

            if include_duration:
                context["duration_ms"] = (time.perf_counter() - started) * 1000
                record_metric(f"{func.__name__}_duration", context["duration_ms"])
            if include_result:
                context["result"] = _truncate(result)

            logger.bind(**context).log(level_name, f"{qualified_name} completed")
            return result

        return wrapper  # type: ignore[return-value]

    return decorator


def _truncate(value: Any, limit: int = 200) -> str:
    text = str(value)
    return text if len(text) <= limit else text[:limit] + "..."


class Timer:
    """Measures a block and records it as ``<name>_duration``."""

    def __init__(self, name: str, log: bool = True):
        self.name = name
        self.log = log
        self.elapsed: float = 0.0
        self._started: float = 0.0

    def __enter__(self) -> "Timer":
        self._started = time.perf_counter()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.elapsed = time.perf_counter() - self._started
        if self.log:
            logger.debug(f"{self.name} took {self.elapsed_ms:.1f} ms")
            record_metric(f"{self.name}_duration", self.elapsed_ms)

    @property
    def elapsed_ms(self) -> float:
        """Elapsed time in milliseconds."""
        return self.elapsed * 1000


__all__ = [
    "LogLevel",
    "ObservabilityConfig",
    "ObservabilityManager",
    "JSONLineFormatter",
    "span",
    "log_execution",
    "record_metric",
    "Timer",
]
