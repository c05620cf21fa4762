"""Infrastructure Layer — database driver and cross-cutting concerns.

Invariants:
    - Infrastructure never imports from services/
    - All SQLAlchemy failures surface as core.errors.DatabaseError

Design Decisions:
    - Concrete driver lives here, the contract in core/driver_protocols.py
"""
