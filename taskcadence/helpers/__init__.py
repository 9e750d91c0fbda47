"""Helper modules for taskcadence.

Contains:
- instance_helpers: ids, date keys and per-date expansion of occurrences
- completion_helpers: immutable ledger of per-occurrence completions
"""
