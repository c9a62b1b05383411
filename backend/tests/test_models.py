import random

import pytest

from bananadoro.models import CODE_ALPHABET, Mode, Session, generate_code, generate_session_code


AMBIGUOUS = set('O0I1L')


def test_alphabet_has_no_lookalikes():
    assert not AMBIGUOUS & set(CODE_ALPHABET)
    assert len(set(CODE_ALPHABET)) == len(CODE_ALPHABET)
    assert CODE_ALPHABET.upper() == CODE_ALPHABET


def test_generated_codes_are_six_unambiguous_symbols():
    rng = random.Random(42)
    for _ in range(2000):
        code = generate_code(rng=rng)
        assert len(code) == 6
        assert set(code) <= set(CODE_ALPHABET)
        assert not AMBIGUOUS & set(code)


class ScriptedRng:
    """rng whose choices() returns prepared draws in order."""

    def __init__(self, draws):
        self.draws = list(draws)

    def choices(self, population, k):
        return list(self.draws.pop(0))


def test_generate_session_code_skips_taken_codes():
    taken = {'AAAAAA', 'BBBBBB'}
    collisions = []
    rng = ScriptedRng(['AAAAAA', 'BBBBBB', 'K7N4PX'])
    code = generate_session_code(lambda c: c in taken, rng=rng, on_collision=collisions.append)
    assert code == 'K7N4PX'
    assert collisions == ['AAAAAA', 'BBBBBB']


def test_new_session_defaults():
    session = Session('K7N4PX', 1500, 300)
    assert session.mode is Mode.WORK
    assert session.remaining == 1500
    assert session.running is False
    assert session.members == set()
    assert session.pending_reap is None


def test_session_rejects_non_positive_durations():
    with pytest.raises(ValueError):
        Session('K7N4PX', 0, 300)
    with pytest.raises(ValueError):
        Session('K7N4PX', 1500, -1)


def test_start_and_stop_keep_remaining_and_mode():
    session = Session('K7N4PX', 1500, 300)
    session.remaining = 1200
    session.start()
    assert session.running is True
    assert session.remaining == 1200
    session.stop()
    assert session.running is False
    assert session.remaining == 1200
    assert session.mode is Mode.WORK


@pytest.mark.parametrize('running', [True, False])
def test_reset_always_pauses(running):
    session = Session('K7N4PX', 1500, 300)
    session.remaining = 42
    session.running = running
    session.reset()
    assert session.running is False
    assert session.remaining == 1500


@pytest.mark.parametrize('running', [True, False])
def test_toggle_mode_always_pauses(running):
    session = Session('K7N4PX', 1500, 300)
    session.running = running
    session.toggle_mode()
    assert session.mode is Mode.BREAK
    assert session.remaining == 300
    assert session.running is False
    session.toggle_mode()
    assert session.mode is Mode.WORK
    assert session.remaining == 1500


def test_settings_while_paused_recompute_remaining():
    session = Session('K7N4PX', 1500, 300)
    session.update_settings(600, 60)
    assert session.remaining == 600
    assert (session.work_duration, session.break_duration) == (600, 60)


def test_settings_while_running_leave_countdown_alone():
    session = Session('K7N4PX', 1500, 300)
    session.remaining = 1000
    session.start()
    session.update_settings(600, 60)
    assert session.remaining == 1000
    assert session.work_duration == 600
    session.reset()
    assert session.remaining == 600


def test_advance_skips_paused_and_empty_sessions():
    session = Session('K7N4PX', 1500, 300)
    session.members.add('sid-1')
    assert session.advance() is False
    session.members.clear()
    session.start()
    assert session.advance() is False
    assert session.remaining == 1500


def test_advance_decrements_then_flips_on_expiry():
    session = Session('K7N4PX', 1500, 60)
    session.members.add('sid-1')
    session.remaining = 1
    session.start()
    assert session.advance() is True
    assert session.remaining == 0
    assert session.mode is Mode.WORK
    assert session.advance() is True
    assert session.mode is Mode.BREAK
    assert session.remaining == 60
    assert session.running is True


def test_broadcast_payload_shape():
    session = Session('K7N4PX', 1500, 300)
    session.members.update({'a', 'b'})
    assert session.to_dict() == {'time': 1500, 'mode': 'work', 'userCount': 2}
