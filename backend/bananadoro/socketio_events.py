from flask import current_app, request
from flask_socketio import emit

from bananadoro import socketio
from bananadoro.errors import MalformedMessage, SessionNotFound
from bananadoro.messages import MessageKind, parse_durations, parse_message, parse_payload

MAX_LABEL_LENGTH = 64


def _engine():
    return current_app.extensions['bananadoro']


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _drop(reason, detail=None) -> None:
    current_app.logger.warning(f"[message-drop] sid={_get_sid()} reason={reason} detail={detail}")


def handle_connect(auth=None):
    label = auth.get('label') if isinstance(auth, dict) else None
    if isinstance(label, str):
        label = label.strip()[:MAX_LABEL_LENGTH] or None
    else:
        label = None
    _engine().connect(_get_sid(), label)
    emit('connected', {'message': f'Connected to {request.namespace}'})


def handle_disconnect(reason=None):
    _engine().disconnect(_get_sid())


# ---- message kinds ----

def on_create(engine, sid, payload):
    work_sec, break_sec = parse_durations(payload, required=False)
    session = engine.create_session(work_sec, break_sec)
    emit('created', {'sessionCode': session.code})
    engine.join(sid, session.code)


def on_join(engine, sid, payload):
    try:
        engine.join(sid, payload.get('sessionCode'))
    except SessionNotFound as exc:
        current_app.logger.info(f"[join-miss] sid={sid} code={exc.code}")
        emit('error', {'message': 'Session not found'})


def on_settings(engine, sid, payload):
    work_sec, break_sec = parse_durations(payload)
    engine.update_settings(sid, work_sec, break_sec)


HANDLERS = {
    MessageKind.CREATE: on_create,
    MessageKind.JOIN: on_join,
    MessageKind.SETTINGS: on_settings,
    MessageKind.START: lambda engine, sid, payload: engine.start(sid),
    MessageKind.STOP: lambda engine, sid, payload: engine.stop(sid),
    MessageKind.RESET: lambda engine, sid, payload: engine.reset(sid),
    MessageKind.TOGGLE_MODE: lambda engine, sid, payload: engine.toggle_mode(sid),
}


def dispatch(kind: MessageKind, payload: dict) -> None:
    HANDLERS[kind](_engine(), _get_sid(), payload)


def handle_message(data=None):
    """Generic ``message`` event carrying ``{"type": ..., ...}``."""
    try:
        kind, payload = parse_message(data)
        dispatch(kind, payload)
    except MalformedMessage as exc:
        _drop('malformed', exc)


def _make_event_handler(kind: MessageKind):
    def handler(data=None):
        try:
            dispatch(kind, parse_payload(data))
        except MalformedMessage as exc:
            _drop('malformed', exc)
    handler.__name__ = f'handle_{kind.name.lower()}'
    return handler


def handle_unrecognized(event, *args):
    _drop('unrecognized', event)


def register_socketio_handlers(namespace: str = '/ws') -> None:
    """Register Socket.IO event handlers on ``namespace``.

    Each message kind is its own event; the generic ``message`` event
    accepts the same kinds wrapped as ``{"type": ...}``. Anything else lands
    on the catch-all and is dropped.
    """
    socketio.on_event('connect', handle_connect, namespace=namespace)
    socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
    for kind in MessageKind:
        socketio.on_event(kind.value, _make_event_handler(kind), namespace=namespace)
    socketio.on_event('message', handle_message, namespace=namespace)
    socketio.on_event('*', handle_unrecognized, namespace=namespace)
