from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field, StrictInt

from .types import Notification, Roster, SessionSnapshot


class DrawRequest(BaseModel):
    count: StrictInt = Field(..., description="Number of winners to draw.")


class ParticipantOut(BaseModel):
    number: int
    name: str


class RejectedRowOut(BaseModel):
    row: int
    reason: str
    raw_number: str
    raw_name: str


class NotificationOut(BaseModel):
    level: str
    message: str

    @classmethod
    def from_notification(cls, note: Optional[Notification]) -> Optional["NotificationOut"]:
        if note is None:
            return None
        return cls(level=note.level, message=note.message)


class RosterResponse(BaseModel):
    count: int
    participants: List[ParticipantOut]
    rejected: List[RejectedRowOut] = []
    notification: Optional[NotificationOut] = None

    @classmethod
    def from_roster(cls, roster: Roster, note: Optional[Notification] = None) -> "RosterResponse":
        return cls(
            count=len(roster),
            participants=[ParticipantOut(**p.to_dict()) for p in roster],
            rejected=[RejectedRowOut(**r.to_dict()) for r in roster.rejected],
            notification=NotificationOut.from_notification(note),
        )


class DrawStartedResponse(BaseModel):
    state: str
    requested: int
    delay_seconds: float


class SessionResponse(BaseModel):
    state: str
    participants: List[ParticipantOut]
    rejected: List[RejectedRowOut]
    winners: List[ParticipantOut]
    notification: Optional[NotificationOut] = None
    delay_seconds: float
    default_winners: int
    max_winners: int

    @classmethod
    def from_snapshot(
        cls, snapshot: SessionSnapshot, default_winners: int, max_winners: int
    ) -> "SessionResponse":
        return cls(
            state=snapshot.state.name.lower(),
            participants=[ParticipantOut(**p.to_dict()) for p in snapshot.roster],
            rejected=[RejectedRowOut(**r.to_dict()) for r in snapshot.roster.rejected],
            winners=[ParticipantOut(**w.to_dict()) for w in snapshot.winners],
            notification=NotificationOut.from_notification(snapshot.notification),
            delay_seconds=snapshot.delay_seconds,
            default_winners=default_winners,
            max_winners=max_winners,
        )


class ErrorResponse(BaseModel):
    error: str
    message: str
    missing: Optional[List[str]] = None
    duplicates: Optional[List[int]] = None
