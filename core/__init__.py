"""
Core business logic

This package holds:
- EntrantTracker: in-memory status table of one event
- State machine: transition policy (permissive or strict)
- Managers: Event / Entrant / User lifecycle against the database
- Locks: concurrency control helpers
"""
