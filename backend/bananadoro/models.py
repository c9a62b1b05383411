import random
import threading
from enum import Enum

# Uppercase letters and digits without the look-alikes O/0, I/1 and L
CODE_ALPHABET = 'ABCDEFGHJKMNPQRSTUVWXYZ23456789'
CODE_LENGTH = 6


class Mode(str, Enum):
    WORK = 'work'
    BREAK = 'break'

    @property
    def other(self):
        return Mode.BREAK if self is Mode.WORK else Mode.WORK


def generate_code(length=CODE_LENGTH, rng=random):
    """Draw a session code uniformly from CODE_ALPHABET."""
    return ''.join(rng.choices(CODE_ALPHABET, k=length))


def generate_session_code(is_taken, length=CODE_LENGTH, rng=random, on_collision=None):
    """Generate a code that `is_taken` does not report as already in use."""
    while True:
        code = generate_code(length, rng)
        if not is_taken(code):
            return code
        if on_collision:
            on_collision(code)


class Session:
    """One shared timer room.

    State-changing methods expect the caller to hold ``self.lock``; the
    engine takes it around every mutation and broadcast so that control
    messages and ticks for the same session never interleave.
    """

    def __init__(self, code, work_duration, break_duration):
        if work_duration <= 0 or break_duration <= 0:
            raise ValueError('durations must be positive')
        self.code = code
        self.mode = Mode.WORK
        self.work_duration = int(work_duration)
        self.break_duration = int(break_duration)
        self.remaining = self.work_duration
        self.running = False
        self.members = set()
        self.pending_reap = None
        # Set once the reaper removed the session from the registry
        self.closed = False
        self.lock = threading.RLock()

    def duration_of(self, mode):
        return self.work_duration if mode is Mode.WORK else self.break_duration

    @property
    def user_count(self):
        return len(self.members)

    def start(self):
        self.running = True

    def stop(self):
        self.running = False

    def reset(self):
        self.remaining = self.duration_of(self.mode)
        self.running = False

    def toggle_mode(self):
        self.mode = self.mode.other
        self.remaining = self.duration_of(self.mode)
        self.running = False

    def update_settings(self, work_duration, break_duration):
        """Replace both durations.

        A paused session picks up the new duration for its mode at once; a
        running countdown is left alone until the next reset, toggle or expiry.
        """
        if work_duration <= 0 or break_duration <= 0:
            raise ValueError('durations must be positive')
        self.work_duration = int(work_duration)
        self.break_duration = int(break_duration)
        if not self.running:
            self.remaining = self.duration_of(self.mode)

    def advance(self):
        """Apply one scheduler tick. Returns True if the session changed."""
        if not self.running or not self.members:
            return False
        if self.remaining > 0:
            self.remaining -= 1
            return True
        # Expiry keeps the timer running into the next mode
        self.mode = self.mode.other
        self.remaining = self.duration_of(self.mode)
        return True

    def to_dict(self):
        """Payload broadcast to members on every change."""
        return {
            'time': self.remaining,
            'mode': self.mode.value,
            'userCount': self.user_count,
        }

    def to_state_dict(self):
        return {
            'sessionCode': self.code,
            'time': self.remaining,
            'mode': self.mode.value,
            'running': self.running,
            'userCount': self.user_count,
            'workDuration': self.work_duration,
            'breakDuration': self.break_duration,
        }
