import structlog
import logging
import sys
from typing import Dict, Any, List, Optional, TextIO
from datetime import datetime, timezone
import os


LOGGER_NAMESPACE = "toolfold"


def setup_logging(
    log_level: str = "INFO",
    log_format: str = "json",
    service_name: str = "toolfold",
    stream: Optional[TextIO] = None
) -> None:
    """Setup structured logging for the toolfold loggers

    Output goes through a single handler on the "toolfold" stdlib logger, so
    the root logger of the host application is left alone. Calling this again
    replaces the handler rather than stacking a second one.
    """

    level = getattr(logging, log_level.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout if stream is None else stream)
    handler.setFormatter(logging.Formatter("%(message)s"))

    package_logger = logging.getLogger(LOGGER_NAMESPACE)
    for existing in list(package_logger.handlers):
        package_logger.removeHandler(existing)
    package_logger.addHandler(handler)
    package_logger.setLevel(level)
    package_logger.propagate = False

    structlog.configure(
        processors=_build_processors(log_format),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    structlog.contextvars.bind_contextvars(
        service=service_name,
        environment=os.getenv("ENVIRONMENT", "development"),
        version=os.getenv("SERVICE_VERSION", "unknown")
    )


def _build_processors(log_format: str) -> List[Any]:
    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        add_service_context,
    ]

    if log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))
    return processors


def add_service_context(logger: logging.Logger, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Add service context to all log entries"""

    if "timestamp" not in event_dict:
        event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()

    context = structlog.contextvars.get_contextvars()
    for key in ("service", "trace_id", "session_id"):
        if context.get(key) and key not in event_dict:
            event_dict[key] = context[key]

    return event_dict


class MemoryLogger:
    """Logger for memory save-path events"""

    def __init__(self, name: str):
        self.logger = structlog.get_logger(name)

    def log_fold(
        self,
        memory_type: str,
        output_key: str,
        tool_names: List[str],
        position: str,
        summary_length: int
    ):
        """Log a turn whose tool calls were folded into the saved answer"""

        self.logger.debug(
            "tool_calls_folded",
            memory_type=memory_type,
            output_key=output_key,
            tool_names=tool_names,
            step_count=len(tool_names),
            position=position,
            summary_length=summary_length
        )


memory_logger = MemoryLogger("toolfold.memory")
