import time

from tagcut.core.deadline import Deadline


def test_fresh_deadline_has_budget() -> None:
    deadline = Deadline.after(30)
    assert not deadline.expired
    assert 29 < deadline.remaining() <= 30


def test_past_deadline_is_expired() -> None:
    deadline = Deadline.after(-1)
    assert deadline.expired
    assert deadline.remaining() == 0.0
    assert deadline.timeout(10) == 0.0


def test_timeout_is_capped() -> None:
    deadline = Deadline.after(600)
    assert deadline.timeout(5) == 5
    assert deadline.timeout() > 5


def test_uses_monotonic_clock() -> None:
    deadline = Deadline(expires_at=time.monotonic() + 0.5)
    assert deadline.remaining() <= 0.5
