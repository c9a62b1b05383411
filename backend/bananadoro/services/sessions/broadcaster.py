TICK_EVENT = 'tick'


def session_room(code: str) -> str:
    return f"session:{code}"


class Broadcaster:
    """Fan a session's snapshot out to every member connection.

    Members are mirrored into a ``session:<code>`` Socket.IO room, so one
    emit reaches all of them. ``emit`` is called as
    ``emit(event, payload, to=room)``; ``enter_room``/``leave_room`` as
    ``(sid, room)``. In the app they wrap the Socket.IO server on the
    session namespace.
    """

    def __init__(self, emit, enter_room, leave_room, logger):
        self._emit = emit
        self._enter_room = enter_room
        self._leave_room = leave_room
        self._logger = logger

    def attach(self, session, sid: str) -> None:
        self._enter_room(sid, session_room(session.code))

    def detach(self, session, sid: str) -> None:
        self._leave_room(sid, session_room(session.code))

    def publish(self, session) -> dict:
        payload = session.to_dict()
        if session.members:
            self._emit(TICK_EVENT, payload, to=session_room(session.code))
        self._logger.debug(
            f"[broadcast] code={session.code} time={payload['time']} mode={payload['mode']} users={payload['userCount']}"
        )
        return payload
