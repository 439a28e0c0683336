from __future__ import annotations

import datetime
import logging
from dataclasses import dataclass

from django.db import models
from django.utils import timezone

from ledger.errors import InvalidWindowError, PreconditionNotMetError

logger = logging.getLogger(__name__)


class Phase(models.TextChoices):
    closed = "CLOSED", "Closed"
    active = "ACTIVE", "Active"


@dataclass
class ElectionState:
    phase: Phase = Phase.closed
    window_start: datetime.datetime | None = None
    window_end: datetime.datetime | None = None
    started_at: datetime.datetime | None = None
    ended_at: datetime.datetime | None = None

    @property
    def has_window(self) -> bool:
        return self.window_start is not None and self.window_end is not None


class ElectionPhaseController:
    """Administrator-driven CLOSED/ACTIVE state machine.

    The configured window is informational: reaching `window_end` does not
    close the election, only `close()` does.
    """

    def __init__(self, state: ElectionState | None = None) -> None:
        self.state = state if state is not None else ElectionState()

    def current_phase(self) -> Phase:
        return self.state.phase

    @property
    def is_active(self) -> bool:
        return self.state.phase == Phase.active

    def configure_window(
        self,
        start: datetime.datetime | None,
        end: datetime.datetime | None,
    ) -> None:
        if start is None or end is None:
            raise InvalidWindowError("Both the window start and end are required.")
        try:
            ordered = start < end
        except TypeError as exc:
            raise InvalidWindowError("Window bounds must both be timezone-aware or both naive.") from exc
        if not ordered:
            raise InvalidWindowError("Window start must be strictly before the window end.")

        self.state.window_start = start
        self.state.window_end = end
        logger.info("election_window_configured start=%s end=%s", start.isoformat(), end.isoformat())

    def open(self) -> None:
        if self.state.phase != Phase.closed:
            raise PreconditionNotMetError("election is already active")
        if not self.state.has_window:
            raise PreconditionNotMetError("election window has not been configured")

        self.state.phase = Phase.active
        self.state.started_at = timezone.now()
        self.state.ended_at = None
        logger.info("election_opened started_at=%s", self.state.started_at.isoformat())

    def close(self) -> None:
        if self.state.phase != Phase.active:
            raise PreconditionNotMetError("election must be active to close")

        self.state.phase = Phase.closed
        self.state.ended_at = timezone.now()
        logger.info("election_closed ended_at=%s", self.state.ended_at.isoformat())
