"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - ColumnInfo is immutable: column metadata never changes after the first lookup
    - Reserved column names live here only, no string literals scattered across services
    - UNLOCKED_ACTOR (0) is the checked_out value of a row nobody holds

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - int Enum for publish states: values go straight into the published column
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, NewType


# ─── Identity Types ──────────────────────────────────────────────

TableName = NewType("TableName", str)
ActorId = NewType("ActorId", int)

KeyMap = Mapping[str, Any]


# ─── Reserved Columns ────────────────────────────────────────────

ORDERING_COLUMN = "ordering"
CHECKED_OUT_COLUMN = "checked_out"
CHECKED_OUT_TIME_COLUMN = "checked_out_time"
HITS_COLUMN = "hits"
PUBLISHED_COLUMN = "published"
ACCESS_COLUMN = "access"

UNLOCKED_ACTOR = 0


# ─── Value Types ─────────────────────────────────────────────────

@dataclass(frozen=True)
class ColumnInfo:
    """Metadata of one table column as reported by the driver."""
    name: str
    default: Any = None
    nullable: bool = True


class PublishState(int, Enum):
    """Conventional values of the published column."""
    TRASHED = -2
    UNPUBLISHED = 0
    PUBLISHED = 1
    ARCHIVED = 2


def is_empty(value: Any) -> bool:
    """True for values that do not identify a row: None, "" and numeric zero."""
    if value is None:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, (bool, int, float)):
        return not value
    return False
