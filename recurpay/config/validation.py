"""Configuration validation utilities."""

from dataclasses import dataclass, fields
from typing import Any

from .defaults import EngineParams, LoggingParams, SummaryParams, TriggerParams

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class ValidationError:
    """Represents a configuration validation error."""
    field: str
    message: str
    value: Any


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _unknown_keys(params: dict[str, Any], params_type: type) -> list[ValidationError]:
    known = {f.name for f in fields(params_type)}
    return [
        ValidationError(field=key, message="Unknown parameter", value=params[key])
        for key in params
        if key not in known
    ]


class ConfigValidator:
    """Validates configuration parameters."""

    @staticmethod
    def validate_trigger_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate daily trigger parameters."""
        errors = _unknown_keys(params, TriggerParams)

        if "hour" in params:
            value = params["hour"]
            if not _is_int(value) or not 0 <= value <= 23:
                errors.append(ValidationError(
                    field="hour",
                    message="Must be an integer between 0 and 23",
                    value=value
                ))

        # UTC offsets range from -12:00 to +14:00
        if "utc_offset_minutes" in params:
            value = params["utc_offset_minutes"]
            if not _is_int(value) or not -720 <= value <= 840:
                errors.append(ValidationError(
                    field="utc_offset_minutes",
                    message="Must be an integer between -720 and 840",
                    value=value
                ))

        if "recheck_interval_seconds" in params:
            value = params["recheck_interval_seconds"]
            if not _is_int(value) or value <= 0:
                errors.append(ValidationError(
                    field="recheck_interval_seconds",
                    message="Must be a positive integer",
                    value=value
                ))

        if "run_on_start" in params:
            value = params["run_on_start"]
            if not isinstance(value, bool):
                errors.append(ValidationError(
                    field="run_on_start",
                    message="Must be a boolean",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_engine_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate execution engine parameters."""
        errors = _unknown_keys(params, EngineParams)

        if "transaction_note" in params:
            value = params["transaction_note"]
            if not isinstance(value, str):
                errors.append(ValidationError(
                    field="transaction_note",
                    message="Must be a string",
                    value=value
                ))

        if "check_existing_occurrences" in params:
            value = params["check_existing_occurrences"]
            if not isinstance(value, bool):
                errors.append(ValidationError(
                    field="check_existing_occurrences",
                    message="Must be a boolean",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_summary_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate summary parameters."""
        errors = _unknown_keys(params, SummaryParams)

        if "upcoming_window_days" in params:
            value = params["upcoming_window_days"]
            if not _is_int(value) or value < 0:
                errors.append(ValidationError(
                    field="upcoming_window_days",
                    message="Must be a non-negative integer",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_logging_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate logging parameters."""
        errors = _unknown_keys(params, LoggingParams)

        if "level" in params:
            value = params["level"]
            if not isinstance(value, str) or value.upper() not in _LOG_LEVELS:
                errors.append(ValidationError(
                    field="level",
                    message=f"Must be one of {', '.join(_LOG_LEVELS)}",
                    value=value
                ))

        if "format_json" in params:
            value = params["format_json"]
            if not isinstance(value, bool):
                errors.append(ValidationError(
                    field="format_json",
                    message="Must be a boolean",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_config(config: dict[str, Any]) -> list[ValidationError]:
        """Validate complete configuration."""
        errors = []
        validators = (
            ("trigger", ConfigValidator.validate_trigger_params),
            ("engine", ConfigValidator.validate_engine_params),
            ("summary", ConfigValidator.validate_summary_params),
            ("logging", ConfigValidator.validate_logging_params),
        )

        for section, validate in validators:
            if section not in config:
                continue
            if not isinstance(config[section], dict):
                errors.append(ValidationError(
                    field=section,
                    message="Must be a mapping of parameters",
                    value=config[section]
                ))
                continue
            errors.extend(validate(config[section]))

        return errors
