"""
Centralized logging configuration for the recurring-payment engine.

This module provides standardized logging configuration using structlog
for all components. All logging throughout the package should go through
this configuration so that scheduling decisions and record lifecycle
changes share one structured format.
"""
import logging
import sys
from typing import Any, Optional

import structlog
from structlog.types import FilteringBoundLogger


def configure_logging(
    level: str = "INFO",
    format_json: bool = False,
    include_timestamp: bool = True,
    include_caller: bool = False,
    extra_processors: Optional[list] = None
) -> None:
    """
    Configure structlog for the entire application.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_json: If True, output JSON format; otherwise human-readable
        include_timestamp: Include timestamp in log output
        include_caller: Include caller information (filename, line number)
        extra_processors: Additional structlog processors to include
    """
    log_level = getattr(logging, level.upper())

    logging.basicConfig(
        level=log_level,
        stream=sys.stdout,
        format="%(message)s"  # structlog will handle formatting
    )

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if include_timestamp:
        processors.append(structlog.processors.TimeStamper(fmt="iso"))

    if include_caller:
        processors.append(structlog.processors.CallsiteParameterAdder(
            parameters=[structlog.processors.CallsiteParameter.FILENAME,
                        structlog.processors.CallsiteParameter.LINENO]
        ))

    if extra_processors:
        processors.extend(extra_processors)

    if format_json:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> FilteringBoundLogger:
    """
    Get a configured structlog logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger instance
    """
    return structlog.get_logger(name)


def get_trigger_logger(name: str) -> FilteringBoundLogger:
    """
    Get a logger bound for daily trigger decisions.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger for scheduling decisions
    """
    logger = get_logger(name)

    return logger.bind(
        subsystem="daily_trigger",
        audit_trail=True
    )


def get_state_logger(name: str) -> FilteringBoundLogger:
    """
    Get a logger bound for record lifecycle transitions.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger for lifecycle changes
    """
    logger = get_logger(name)

    return logger.bind(
        subsystem="record_lifecycle",
        audit_trail=True
    )


def log_trigger_decision(
    logger: FilteringBoundLogger,
    outcome: str,
    local_date: str,
    reason: str,
    context: Optional[dict[str, Any]] = None
) -> None:
    """
    Log a daily trigger decision with standardized format.

    Args:
        logger: Structlog logger instance
        outcome: Outcome of the check (processed, in_flight, ...)
        local_date: Calendar date in the trigger's fixed timezone
        reason: Detailed reason for the decision
        context: Additional context data
    """
    bound_logger = logger.bind(
        outcome=outcome,
        local_date=local_date,
        reason=reason,
        event="trigger_decision"
    )

    if context:
        bound_logger = bound_logger.bind(context=context)

    if outcome == "failed":
        bound_logger.warning("Trigger run failed")
    else:
        bound_logger.info("Trigger checked")


def log_state_transition(
    logger: FilteringBoundLogger,
    record_id: str,
    from_state: str,
    to_state: str,
    trigger: str,
    context: Optional[dict[str, Any]] = None
) -> None:
    """
    Log a record status transition with standardized format.

    Args:
        logger: Structlog logger instance
        record_id: ID of the recurring payment record
        from_state: Current status
        to_state: Target status
        trigger: What triggered the transition
        context: Additional context data
    """
    bound_logger = logger.bind(
        record_id=record_id,
        from_state=from_state,
        to_state=to_state,
        trigger=trigger,
        event="state_transition"
    )

    if context:
        bound_logger = bound_logger.bind(context=context)

    bound_logger.info("State transition")
