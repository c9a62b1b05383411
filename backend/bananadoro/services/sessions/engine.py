from contextlib import ExitStack
from functools import partial
from typing import Optional

from bananadoro.errors import SessionNotFound
from bananadoro.models import CODE_LENGTH, Session

from .broadcaster import Broadcaster
from .reaper import Reaper
from .registry import SessionRegistry
from .scheduler import TickScheduler
from .tracker import ConnectionTracker


def normalize_code(code) -> str:
    if not isinstance(code, str):
        return ''
    return code.strip().upper()


class SessionEngine:
    """Process-scoped session state and the operations that mutate it.

    Every mutation of a session runs under that session's lock and is
    followed by a broadcast to its members. Operations on different
    sessions never wait on each other.
    """

    def __init__(self, emit, enter_room, leave_room, start_background_task, sleep, logger,
                 default_work_sec: int = 1500, default_break_sec: int = 300,
                 tick_interval_sec: float = 1.0, reap_grace_sec: float = 600,
                 code_length: int = CODE_LENGTH, heartbeat_sec: int = 0, rng=None):
        self.logger = logger
        self.default_work_sec = int(default_work_sec)
        self.default_break_sec = int(default_break_sec)
        self.registry = SessionRegistry(logger, code_length=code_length, rng=rng)
        self.tracker = ConnectionTracker()
        self.broadcaster = Broadcaster(emit, enter_room, leave_room, logger)
        self.reaper = Reaper(self.registry, reap_grace_sec, start_background_task, sleep, logger)
        self.scheduler = TickScheduler(
            self.registry, self.broadcaster, tick_interval_sec, start_background_task, sleep, logger,
            heartbeat_sec=heartbeat_sec,
        )

    @classmethod
    def from_config(cls, config, socketio, logger):
        namespace = config.get('SOCKETIO_NAMESPACE', '/ws')

        # socketio.server is replaced on every init_app, so resolve it per call
        def enter_room(sid, room):
            socketio.server.enter_room(sid, room, namespace=namespace)

        def leave_room(sid, room):
            socketio.server.leave_room(sid, room, namespace=namespace)

        return cls(
            emit=partial(socketio.emit, namespace=namespace),
            enter_room=enter_room,
            leave_room=leave_room,
            start_background_task=socketio.start_background_task,
            sleep=socketio.sleep,
            logger=logger,
            default_work_sec=config.get('DEFAULT_WORK_DURATION_SEC', 1500),
            default_break_sec=config.get('DEFAULT_BREAK_DURATION_SEC', 300),
            tick_interval_sec=config.get('TICK_INTERVAL_SEC', 1.0),
            reap_grace_sec=config.get('REAP_GRACE_SEC', 600),
            code_length=config.get('SESSION_CODE_LENGTH', CODE_LENGTH),
            heartbeat_sec=config.get('TIMER_HEARTBEAT_SEC', 0),
        )

    # ---- lifecycle ----

    def create_session(self, work_sec: Optional[int] = None, break_sec: Optional[int] = None) -> Session:
        return self.registry.create(
            work_sec if work_sec is not None else self.default_work_sec,
            break_sec if break_sec is not None else self.default_break_sec,
        )

    def connect(self, sid: str, label: Optional[str] = None) -> None:
        self.tracker.connect(sid, label)

    def disconnect(self, sid: str) -> None:
        # Marked gone first: a join racing this disconnect is then refused
        self.tracker.forget(sid)
        self.leave(sid)

    def join(self, sid: str, code) -> Optional[Session]:
        """Bind ``sid`` to the session ``code``. Raises SessionNotFound.

        Returns None when ``sid`` has already disconnected. Moving from
        another session happens atomically with respect to both sessions;
        their locks are taken in code order.
        """
        code = normalize_code(code)
        session = self.registry.get(code)
        if session is None:
            raise SessionNotFound(code)
        current = self.tracker.session_code_for(sid)
        previous = self.registry.get(current) if current and current != code else None
        with ExitStack() as stack:
            for locked in sorted(filter(None, (session, previous)), key=lambda s: s.code):
                stack.enter_context(locked.lock)
            if session.closed:
                raise SessionNotFound(code)
            moving = previous is not None and self.tracker.session_code_for(sid) == previous.code
            if not self.tracker.bind(sid, code):
                self.logger.info(f"[join-ignore] code={code} sid={sid} disconnected")
                if not session.members and session.pending_reap is None:
                    self.reaper.schedule(session)
                return None
            if moving:
                self._detach(sid, previous)
            session.members.add(sid)
            self.broadcaster.attach(session, sid)
            self.reaper.cancel(session)
            self.logger.info(
                f"[join] code={code} sid={sid} label={self.tracker.label_for(sid)} users={session.user_count}"
            )
            self.broadcaster.publish(session)
        return session

    def leave(self, sid: str) -> Optional[Session]:
        code = self.tracker.session_code_for(sid)
        if not code:
            return None
        session = self.registry.get(code)
        if session is None:
            self.tracker.unbind(sid)
            return None
        with session.lock:
            self.tracker.unbind(sid)
            self._detach(sid, session)
        return session

    def _detach(self, sid: str, session: Session) -> None:
        """Drop ``sid`` from ``session``. Caller holds ``session.lock``."""
        session.members.discard(sid)
        self.broadcaster.detach(session, sid)
        self.logger.info(f"[leave] code={session.code} sid={sid} users={session.user_count}")
        self.broadcaster.publish(session)
        if not session.members:
            self.reaper.schedule(session)

    # ---- timer control (any member may act) ----

    def start(self, sid: str) -> Optional[Session]:
        return self._control(sid, 'start', Session.start)

    def stop(self, sid: str) -> Optional[Session]:
        return self._control(sid, 'stop', Session.stop)

    def reset(self, sid: str) -> Optional[Session]:
        return self._control(sid, 'reset', Session.reset)

    def toggle_mode(self, sid: str) -> Optional[Session]:
        return self._control(sid, 'toggleMode', Session.toggle_mode)

    def update_settings(self, sid: str, work_sec: int, break_sec: int) -> Optional[Session]:
        return self._control(sid, 'settings', lambda s: s.update_settings(work_sec, break_sec))

    def _control(self, sid, name, action) -> Optional[Session]:
        code = self.tracker.session_code_for(sid)
        session = self.registry.get(code) if code else None
        if session is None:
            self.logger.debug(f"[control-ignore] action={name} sid={sid} unbound")
            return None
        with session.lock:
            if session.closed or sid not in session.members:
                self.logger.debug(f"[control-ignore] action={name} sid={sid} code={code} stale")
                return None
            action(session)
            self.logger.info(
                f"[control] action={name} code={code} mode={session.mode.value} running={session.running} remaining={session.remaining}s"
            )
            self.broadcaster.publish(session)
        return session

    # ---- queries ----

    def snapshot(self, code) -> Optional[dict]:
        session = self.registry.get(normalize_code(code))
        if session is None:
            return None
        with session.lock:
            return session.to_state_dict()

    def session_count(self) -> int:
        return len(self.registry)

    # ---- background work ----

    def start_scheduler(self) -> None:
        self.scheduler.start()

    def shutdown(self) -> None:
        self.scheduler.stop()
        for session in self.registry.sessions():
            with session.lock:
                self.reaper.cancel(session)
