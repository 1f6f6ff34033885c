"""
Record lifecycle module.

Manages the recurring payment status machine:
ACTIVE <-> PAUSED, ACTIVE | PAUSED -> CANCELLED (terminal).
"""
