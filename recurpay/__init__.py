"""
recurpay - Recurring Payment Scheduling and Execution Engine

Computes due dates for recurring payment rules and materializes overdue
occurrences into ledger transactions exactly once each, driven by a
best-effort daily trigger on a fixed-offset wall clock.
"""

__version__ = "0.1.0"
__author__ = "recurpay Team"
