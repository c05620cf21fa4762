"""Error Log — ordered accumulation of soft failures on a record.

Invariants:
    - Entries are appended, never reordered or rewritten
    - An entry carries a message, a structured cause, or both
    - entry(None) returns the most recent entry; an unknown index returns None

Design Decisions:
    - Single ErrorEntry variant instead of mixing strings and exception objects
"""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class ErrorEntry:
    message: str = ""
    cause: BaseException | None = None

    def format(self) -> str:
        if self.message:
            return self.message
        return str(self.cause) if self.cause is not None else ""


@dataclass
class ErrorLog:
    entries: list[ErrorEntry] = field(default_factory=list)

    def append(self, error: str | BaseException) -> ErrorEntry:
        if isinstance(error, BaseException):
            entry = ErrorEntry(message=str(error), cause=error)
        else:
            entry = ErrorEntry(message=error)
        self.entries.append(entry)
        return entry

    def entry(self, index: int | None = None) -> ErrorEntry | None:
        if not self.entries:
            return None
        if index is None:
            return self.entries[-1]
        if not 0 <= index < len(self.entries):
            return None
        return self.entries[index]

    def messages(self) -> list[str]:
        return [e.format() for e in self.entries]

    def __len__(self) -> int:
        return len(self.entries)
