"""SQLite persistence for records and ledger entries."""
