from __future__ import annotations

import asyncio
import logging
import random
import time
from typing import Callable, Optional, Sequence, Tuple, Union

from .config import AppSettings
from .errors import DrawError, DrawInProgressError, ParseError, RaffleError, SessionClosedError
from .services.draws import check_draw_request, draw_winners
from .services.roster import parse_roster
from .types import (
    EMPTY_ROSTER,
    DrawResult,
    DrawState,
    Notification,
    Participant,
    Roster,
    SessionSnapshot,
)

DRAW_SUCCESS_MESSAGE = "Lucky draw completed successfully!"


class RaffleSession:
    """Per-user raffle state: the current roster, the draw in flight and its outcome.

    A session is driven from a single asyncio event loop. Starting a draw checks
    its preconditions immediately and schedules the actual selection to run after
    the configured suspense delay; ``close`` cancels that completion.
    """

    def __init__(
        self,
        settings: Optional[AppSettings] = None,
        *,
        session_id: str = "local",
        rng: Optional[random.Random] = None,
        clock: Callable[[], float] = time.monotonic,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._settings = settings or AppSettings()
        self._session_id = session_id
        self._rng = rng if rng is not None else random.Random(self._settings.draw.seed)
        self._clock = clock
        self._logger = logger or logging.getLogger("luckydraw.session")

        self._roster: Roster = EMPTY_ROSTER
        self._winners: Tuple[Participant, ...] = ()
        self._state = DrawState.IDLE
        self._notification: Optional[Notification] = None
        self._handle: Optional[asyncio.TimerHandle] = None
        self._pending: Optional[asyncio.Future] = None
        self._closed = False
        self.last_active = clock()

    @property
    def session_id(self) -> str:
        return self._session_id

    @property
    def state(self) -> DrawState:
        return self._state

    @property
    def roster(self) -> Roster:
        return self._roster

    @property
    def winners(self) -> Tuple[Participant, ...]:
        return self._winners

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def notification(self) -> Optional[Notification]:
        note = self._notification
        if note is not None and note.expired(self._clock(), self._settings.notification_ttl_seconds):
            return None
        return note

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            state=self._state,
            roster=self._roster,
            winners=self._winners,
            notification=self.notification,
            delay_seconds=self._settings.draw.delay_seconds,
        )

    def upload(self, raw: Union[str, bytes]) -> Roster:
        """Replace the roster with freshly parsed text.

        A failed parse still clears the previous roster.
        """
        self._ensure_open()
        try:
            roster = parse_roster(raw)
        except ParseError as exc:
            self._roster = EMPTY_ROSTER
            self._settle_idle()
            self._notify_error(exc)
            self._logger.warning("Session %s rejected upload: %s", self._session_id, exc.kind)
            raise

        self._roster = roster
        self._winners = ()
        self._settle_idle()
        self._notify("success", f"Loaded {len(roster)} participants.")
        self._logger.info(
            "Session %s loaded %s participants (%s rows dropped)",
            self._session_id,
            len(roster),
            len(roster.rejected),
        )
        return roster

    def start_draw(self, requested: int) -> asyncio.Future:
        """Begin a draw; the returned future resolves to the ``DrawResult``.

        Must be called from the event loop that will run the completion.
        """
        self._ensure_open()
        if self._state == DrawState.DRAWING:
            raise DrawInProgressError()

        pool = self._roster.participants
        try:
            check_draw_request(pool, requested)
        except DrawError as exc:
            self._winners = ()
            self._state = DrawState.FAILED
            self._notify_error(exc)
            self._logger.info("Session %s draw refused: %s", self._session_id, exc.kind)
            raise

        loop = asyncio.get_running_loop()
        delay = self._settings.draw.delay_seconds
        self._state = DrawState.DRAWING
        self._winners = ()
        self._notification = None
        self._pending = loop.create_future()
        self._handle = loop.call_later(delay, self._complete_draw, pool, requested)
        self._logger.info(
            "Session %s drawing %s of %s participants in %.1fs",
            self._session_id,
            requested,
            len(pool),
            delay,
        )
        return self._pending

    def dismiss_notification(self) -> None:
        self._ensure_open()
        self._notification = None
        self._settle_idle()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
            self._logger.info("Session %s closed with a pending draw; cancelled.", self._session_id)
        self._pending = None
        self._state = DrawState.IDLE

    def _complete_draw(self, pool: Sequence[Participant], requested: int) -> None:
        self._handle = None
        future, self._pending = self._pending, None
        try:
            result = draw_winners(pool, requested, self._rng)
        except DrawError as exc:
            self._state = DrawState.FAILED
            self._notify_error(exc)
            self._logger.warning("Session %s draw failed: %s", self._session_id, exc.kind)
            if future is not None and not future.done():
                future.set_exception(exc)
            return

        self._winners = result.winners
        self._state = DrawState.SUCCEEDED
        self._notify("success", DRAW_SUCCESS_MESSAGE)
        self._logger.info(
            "Session %s drew %s winners: %s",
            self._session_id,
            len(result),
            [w.number for w in result],
        )
        if future is not None and not future.done():
            future.set_result(result)

    def _settle_idle(self) -> None:
        if self._state in (DrawState.SUCCEEDED, DrawState.FAILED):
            self._state = DrawState.IDLE

    def _notify(self, level: str, message: str) -> None:
        self._notification = Notification(level=level, message=message, created_at=self._clock())

    def _notify_error(self, exc: RaffleError) -> None:
        self._notify("error", exc.message)

    def _ensure_open(self) -> None:
        if self._closed:
            raise SessionClosedError(f"session {self._session_id} is closed")
        self.last_active = self._clock()
