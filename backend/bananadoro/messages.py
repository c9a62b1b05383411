import json
import math
from enum import Enum
from numbers import Real

from bananadoro.errors import MalformedMessage


class MessageKind(str, Enum):
    CREATE = 'create'
    JOIN = 'join'
    SETTINGS = 'settings'
    START = 'start'
    STOP = 'stop'
    RESET = 'reset'
    TOGGLE_MODE = 'toggleMode'


def parse_kind(name) -> MessageKind:
    try:
        return MessageKind(name)
    except ValueError:
        raise MalformedMessage(f"unknown message type: {name!r}") from None


def parse_payload(data) -> dict:
    """Normalize an event argument into a dict. ``None`` means an empty payload."""
    if data is None:
        return {}
    if isinstance(data, (str, bytes)):
        try:
            data = json.loads(data)
        except ValueError as exc:
            raise MalformedMessage(f"invalid JSON: {exc}") from None
    if not isinstance(data, dict):
        raise MalformedMessage(f"expected an object, got {type(data).__name__}")
    return data


def parse_message(raw):
    """Split a ``{"type": ..., ...}`` message into its kind and payload."""
    payload = parse_payload(raw)
    return parse_kind(payload.get('type')), payload


def minutes_to_seconds(value, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, Real) or not math.isfinite(value):
        raise MalformedMessage(f"{field} must be a number of minutes")
    seconds = int(round(value * 60))
    if seconds < 1:
        raise MalformedMessage(f"{field} must be positive")
    return seconds


def parse_durations(payload: dict, required: bool = True):
    """Read ``workDuration``/``breakDuration`` (minutes) as seconds.

    When ``required`` is False a missing field comes back as None.
    """
    durations = []
    for field in ('workDuration', 'breakDuration'):
        value = payload.get(field)
        if value is None and not required:
            durations.append(None)
            continue
        durations.append(minutes_to_seconds(value, field))
    return tuple(durations)
