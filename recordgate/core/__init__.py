"""Core Layer — pure record logic, no IO, no DB.

Invariants:
    - No module in core/ imports from services/ or infrastructure/
    - All functions are pure and deterministic

Design Decisions:
    - Functional core separated from imperative shell: key resolution, binding and
      ordering plans are computed here, the record in services/ issues the queries
"""
