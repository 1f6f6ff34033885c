"""Recurrence calendar arithmetic"""

from .calculator import (
    first_occurrence,
    iter_occurrences,
    monthly_equivalent,
    next_occurrence,
    occurrence_on_or_after,
)

__all__ = [
    "first_occurrence",
    "iter_occurrences",
    "monthly_equivalent",
    "next_occurrence",
    "occurrence_on_or_after",
]
