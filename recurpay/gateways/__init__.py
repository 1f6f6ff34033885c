"""
Storage collaborators module.

Abstract record and ledger gateways plus in-process implementations.
"""

from .base import LedgerGateway, RecordGateway
from .memory import InMemoryLedgerGateway, InMemoryRecordGateway

__all__ = [
    "InMemoryLedgerGateway",
    "InMemoryRecordGateway",
    "LedgerGateway",
    "RecordGateway",
]
