import time


class ReapTicket:
    """Cancellation token for one deferred removal."""

    __slots__ = ('code', 'deadline', 'cancelled')

    def __init__(self, code: str, deadline: float):
        self.code = code
        self.deadline = deadline
        self.cancelled = False


class Reaper:
    """Remove sessions that stayed empty for the grace period.

    - ``schedule`` arms a ticket on the session and starts a background task
    - ``cancel`` flips the ticket, O(1) from the session handle
    - at fire time the ticket, registry entry and membership are all
      re-checked; anything stale turns the firing into a no-op
    """

    def __init__(self, registry, grace_sec: float, start_background_task, sleep, logger, clock=time.time):
        self._registry = registry
        self.grace_sec = float(grace_sec)
        self._start_background_task = start_background_task
        self._sleep = sleep
        self._logger = logger
        self._clock = clock

    def schedule(self, session):
        """Arm removal of an empty session. Caller holds ``session.lock``."""
        if session.members:
            return None
        self.cancel(session)
        ticket = ReapTicket(session.code, self._clock() + self.grace_sec)
        session.pending_reap = ticket
        self._logger.info(f"[reap-set] code={session.code} grace={self.grace_sec}s deadline={ticket.deadline}")
        self._start_background_task(self._runner, session, ticket)
        return ticket

    def cancel(self, session) -> bool:
        """Disarm a pending removal. Caller holds ``session.lock``."""
        ticket = session.pending_reap
        if ticket is None:
            return False
        ticket.cancelled = True
        session.pending_reap = None
        self._logger.info(f"[reap-cancel] code={session.code}")
        return True

    def _runner(self, session, ticket: ReapTicket) -> None:
        sleep_for = max(0.0, ticket.deadline - self._clock())
        if sleep_for:
            self._sleep(sleep_for)
        try:
            self.fire(session, ticket)
        except Exception:
            self._logger.exception(f"[reap-error] code={ticket.code}")

    def fire(self, session, ticket: ReapTicket) -> bool:
        """Remove the session if ``ticket`` is still the live one. Returns True if removed."""
        with session.lock:
            if ticket.cancelled or session.pending_reap is not ticket:
                self._logger.info(f"[reap-abort] code={ticket.code} ticket superseded")
                return False
            session.pending_reap = None
            if session.members:
                self._logger.info(f"[reap-abort] code={ticket.code} members={len(session.members)}")
                return False
            if self._registry.get(session.code) is not session:
                self._logger.info(f"[reap-abort] code={ticket.code} not registered")
                return False
            self._logger.info(f"[reap-fire] code={ticket.code}")
            self._registry.remove(session.code)
            return True
