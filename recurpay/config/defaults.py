"""Default configuration parameters for the recurring-payment engine."""

from dataclasses import dataclass

from ..models.transaction import DEFAULT_TRANSACTION_NOTE


@dataclass(frozen=True)
class TriggerParams:
    """Daily trigger schedule parameters."""
    hour: int = 4                                    # Wall-clock hour of the daily run
    utc_offset_minutes: int = 330                    # Fixed offset of that wall clock (UTC+05:30)
    recheck_interval_seconds: int = 3600             # Safety-net re-check period
    run_on_start: bool = True                        # Catch up immediately on activation


@dataclass(frozen=True)
class EngineParams:
    """Execution engine parameters."""
    transaction_note: str = DEFAULT_TRANSACTION_NOTE
    check_existing_occurrences: bool = True          # Ask the ledger before writing


@dataclass(frozen=True)
class SummaryParams:
    """Dashboard summary parameters."""
    upcoming_window_days: int = 7


@dataclass(frozen=True)
class LoggingParams:
    """Logging output parameters."""
    level: str = "INFO"
    format_json: bool = False


@dataclass(frozen=True)
class DefaultConfig:
    """Complete default configuration."""
    trigger: TriggerParams
    engine: EngineParams
    summary: SummaryParams
    logging: LoggingParams


def get_default_config() -> DefaultConfig:
    """Get the default configuration instance."""
    return DefaultConfig(
        trigger=TriggerParams(),
        engine=EngineParams(),
        summary=SummaryParams(),
        logging=LoggingParams(),
    )
