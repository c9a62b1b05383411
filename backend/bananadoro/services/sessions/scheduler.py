import time


class TickScheduler:
    """Single periodic driver advancing every running session.

    - One background loop for the whole process, started once
    - Each firing advances each running, non-empty session by one second
      (or flips its mode on expiry) and broadcasts it
    - Paused and empty sessions are skipped and not broadcast
    - Sessions are handled independently; one failing is logged and skipped
    """

    def __init__(self, registry, broadcaster, interval_sec: float, start_background_task, sleep, logger,
                 heartbeat_sec: int = 0, clock=time.monotonic):
        self._registry = registry
        self._broadcaster = broadcaster
        self.interval_sec = float(interval_sec)
        self._start_background_task = start_background_task
        self._sleep = sleep
        self._logger = logger
        self._heartbeat_sec = heartbeat_sec
        self._clock = clock
        self._running = False
        # Bumped on every start; a loop from an older start exits
        self._generation = 0
        self.ticks = 0

    @property
    def is_running(self) -> bool:
        return self._running

    def start(self) -> None:
        if self._running:
            return
        self._running = True
        self._generation += 1
        self._logger.info(f"[timer-start] interval={self.interval_sec}s generation={self._generation}")
        self._start_background_task(self._loop, self._generation)

    def stop(self) -> None:
        if self._running:
            self._logger.info(f"[timer-stop] ticks={self.ticks}")
        self._running = False

    def tick(self) -> int:
        """Advance all running sessions once. Returns how many were broadcast."""
        self.ticks += 1
        advanced = 0
        for session in self._registry.sessions():
            try:
                with session.lock:
                    if session.closed:
                        continue
                    mode_before = session.mode
                    if not session.advance():
                        continue
                    if session.mode is not mode_before:
                        self._logger.info(
                            f"[timer-expire] code={session.code} mode {mode_before.value} -> {session.mode.value} remaining={session.remaining}s"
                        )
                    self._broadcaster.publish(session)
                    advanced += 1
            except Exception:
                self._logger.exception(f"[timer-error] code={session.code}")
        return advanced

    def _alive(self, generation: int) -> bool:
        return self._running and self._generation == generation

    def _loop(self, generation: int) -> None:
        next_at = self._clock() + self.interval_sec
        last_heartbeat = self._clock()
        while self._alive(generation):
            self._sleep(max(0.0, next_at - self._clock()))
            if not self._alive(generation):
                break
            self.tick()
            next_at += self.interval_sec
            if self._clock() - next_at > self.interval_sec:
                # Missed ticks after a stall are dropped, not replayed
                next_at = self._clock() + self.interval_sec
            if self._heartbeat_sec and self._clock() - last_heartbeat >= self._heartbeat_sec:
                last_heartbeat = self._clock()
                sessions = self._registry.sessions()
                running = sum(1 for s in sessions if s.running)
                self._logger.info(
                    f"[timer-heartbeat] ticks={self.ticks} sessions={len(sessions)} running={running}"
                )
