from pathlib import Path

from tagcut.core.result import Err, Ok
from tagcut.release.lock import LOCK_FILE_NAME, ReleaseLock


def test_acquire_and_release(tmp_path: Path) -> None:
    lock = ReleaseLock(tmp_path / LOCK_FILE_NAME)

    assert lock.acquire() == Ok(None)
    assert lock.held
    assert lock.path.exists()

    lock.release()
    assert not lock.held
    assert not lock.path.exists()


def test_second_acquire_fails(tmp_path: Path) -> None:
    first = ReleaseLock(tmp_path / LOCK_FILE_NAME)
    second = ReleaseLock(tmp_path / LOCK_FILE_NAME)
    first.acquire()

    result = second.acquire()

    assert isinstance(result, Err)
    assert "another release" in result.error.message
    assert not second.held

    # Releasing a lock we never held must not remove the other one.
    second.release()
    assert first.path.exists()
    first.release()


def test_missing_directory(tmp_path: Path) -> None:
    lock = ReleaseLock(tmp_path / "nope" / LOCK_FILE_NAME)
    result = lock.acquire()
    assert isinstance(result, Err)
    assert "cannot create lock" in result.error.message
