"""Base classes for the record store and ledger collaborators."""

from abc import ABC, abstractmethod
from datetime import date
from typing import Optional

from ..models.record import RecordStatus, RecurringPaymentRecord
from ..models.rule import RecurrenceRule


class RecordGateway(ABC):
    """Read/update access to stored recurring payment records."""

    @abstractmethod
    def list_active(self, user_id: str) -> list[RecurringPaymentRecord]:
        """
        Load the user's active records.

        Raises:
            GatewayUnavailableError: If the store cannot be reached
        """
        pass

    @abstractmethod
    def update_next_run_date(self, record_id: str, next_run_date: date) -> None:
        """Persist a new cursor (stored as ``YYYY-MM-DD``, legacy field mirrored)."""
        pass

    @abstractmethod
    def update_status(self, record_id: str, status: RecordStatus) -> None:
        """Persist a new status, mirroring the legacy ``isActive`` flag."""
        pass

    @abstractmethod
    def add(self, record: RecurringPaymentRecord) -> str:
        """Store a new record and return its id."""
        pass

    @abstractmethod
    def get(self, record_id: str) -> Optional[RecurringPaymentRecord]:
        """Load one record, or None if it does not exist."""
        pass

    @abstractmethod
    def update_rule(self, record_id: str, rule: RecurrenceRule, next_run_date: date) -> None:
        """Persist a rule together with the cursor computed from it."""
        pass

    @abstractmethod
    def list_all(self, user_id: str) -> list[RecurringPaymentRecord]:
        """Load all of the user's records regardless of status."""
        pass

    @abstractmethod
    def delete(self, record_id: str) -> None:
        """Remove a record."""
        pass


class LedgerGateway(ABC):
    """Create-transaction access to the user's ledger."""

    @abstractmethod
    def create_occurrence_transaction(
        self,
        record: RecurringPaymentRecord,
        occurrence_date: date
    ) -> str:
        """
        Write one machine-generated transaction dated at the occurrence.

        Returns:
            Transaction id
        """
        pass

    def occurrence_exists(self, record_id: str, occurrence_date: date) -> bool:
        """
        Whether a transaction for this record and date was already written.

        Ledgers that cannot answer return False; the engine then relies on
        the cursor alone.
        """
        return False
