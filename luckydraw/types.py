from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Iterator, Optional, Tuple


class DrawState(IntEnum):
    IDLE = 0
    DRAWING = 1
    SUCCEEDED = 2
    FAILED = 3


@dataclass(frozen=True)
class Participant:
    number: int
    name: str

    def to_dict(self) -> dict:
        return {"number": self.number, "name": self.name}


@dataclass(frozen=True)
class RejectedRow:
    """A data row dropped during parsing; never a hard failure."""

    row: int
    reason: str
    raw_number: str
    raw_name: str

    def to_dict(self) -> dict:
        return {
            "row": self.row,
            "reason": self.reason,
            "raw_number": self.raw_number,
            "raw_name": self.raw_name,
        }


@dataclass(frozen=True)
class Roster:
    """Validated participant set in upload order."""

    participants: Tuple[Participant, ...] = ()
    rejected: Tuple[RejectedRow, ...] = ()

    def __len__(self) -> int:
        return len(self.participants)

    def __iter__(self) -> Iterator[Participant]:
        return iter(self.participants)

    def numbers(self) -> Tuple[int, ...]:
        return tuple(p.number for p in self.participants)


EMPTY_ROSTER = Roster()


@dataclass(frozen=True)
class DrawResult:
    winners: Tuple[Participant, ...]
    pool_size: int

    def __len__(self) -> int:
        return len(self.winners)

    def __iter__(self) -> Iterator[Participant]:
        return iter(self.winners)


@dataclass(frozen=True)
class Notification:
    level: str
    message: str
    created_at: float

    def expired(self, now: float, ttl_seconds: float) -> bool:
        return now - self.created_at >= ttl_seconds


@dataclass(frozen=True)
class SessionSnapshot:
    state: DrawState
    roster: Roster
    winners: Tuple[Participant, ...] = ()
    notification: Optional[Notification] = None
    delay_seconds: float = 0.0
