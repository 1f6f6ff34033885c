"""
Session runtime wiring.

Builds the configured engine, service and daily trigger for one user over
a SQLite store. A session starts the trigger when the user signs in and
stops it on sign-out.
"""

from pathlib import Path
from typing import Any, Optional

import structlog

from .config.loader import ConfigLoader
from .config.validation import ConfigValidator
from .engine import ExecutionEngine
from .errors import ConfigurationError
from .logging.config import configure_logging
from .persistence.sqlite_store import SqliteStore
from .service import RecurringPaymentService
from .trigger.daily import DailyTrigger
from .trigger.timers import TimerScheduler
from .utils.time import Clock, FixedOffsetClock

logger = structlog.get_logger(__name__)


class SchedulerSession:
    """Everything one signed-in user needs, wired from configuration."""

    def __init__(
        self,
        user_id: str,
        db_path: str = "recurring_payments.db",
        config_dir: Optional[Path] = None,
        overrides: Optional[dict[str, Any]] = None,
        clock: Optional[Clock] = None,
        scheduler: Optional[TimerScheduler] = None,
        setup_logging: bool = False
    ) -> None:
        loader = ConfigLoader.create(config_dir)
        merged = loader.merge_config(overrides)

        errors = ConfigValidator.validate_config(merged)
        if errors:
            error_msgs = [f"{err.field}: {err.message} (got: {err.value})" for err in errors]
            logger.error("Configuration validation failed", errors=error_msgs)
            raise ConfigurationError(
                f"Invalid scheduler configuration: {'; '.join(error_msgs)}",
                errors=errors
            )

        self.config = loader.load(overrides)

        if setup_logging:
            configure_logging(
                level=self.config.logging.level,
                format_json=self.config.logging.format_json
            )

        self.user_id = user_id
        self.clock = clock or FixedOffsetClock(self.config.trigger.utc_offset_minutes)
        self.store = SqliteStore(
            db_path,
            note=self.config.engine.transaction_note,
            clock=self.clock
        )
        self.engine = ExecutionEngine(self.store.records, self.store.ledger, self.config.engine)
        self.service = RecurringPaymentService(
            self.store.records,
            self.engine,
            clock=self.clock,
            summary_params=self.config.summary
        )
        self.trigger = DailyTrigger(
            self.engine,
            user_id,
            clock=self.clock,
            scheduler=scheduler,
            params=self.config.trigger
        )

    def __enter__(self) -> "SchedulerSession":
        self.trigger.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.trigger.stop()
