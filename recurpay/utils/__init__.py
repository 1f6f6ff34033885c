"""
Utility functions module.

Time Semantics:
- Cursor dates are calendar dates exchanged as YYYY-MM-DD strings
- Wall-clock time is only used to decide when the daily trigger fires
- The wall clock is read in a fixed UTC offset, never the host timezone
"""
