"""Time-based record ids (millisecond timestamps, as the stored data uses)."""
import threading
import time

_lock = threading.Lock()
_last = 0


def new_id() -> str:
    """
    Return a millisecond timestamp string, bumped by one when two ids are
    requested within the same millisecond, so ids never repeat in a process.
    """
    global _last
    with _lock:
        now = int(time.time() * 1000)
        _last = now if now > _last else _last + 1
        return str(_last)
