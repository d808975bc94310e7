"""
Locking helpers for end-of-day commits.

Committing a day must happen at most once. Within one process,
commits for the same date are serialized by a per-date lock.
Across processes, the unique business_date on daily_ledgers and
row locks on inventory (SELECT ... FOR UPDATE) do the same job.
"""

import threading
import weakref
from contextlib import contextmanager
from datetime import date

_registry_guard = threading.Lock()
# An entry lives only while some commit holds a reference to its lock
_day_locks: "weakref.WeakValueDictionary[date, threading.Lock]" = (
    weakref.WeakValueDictionary()
)


def _lock_for(business_date: date) -> threading.Lock:
    with _registry_guard:
        lock = _day_locks.get(business_date)
        if lock is None:
            lock = threading.Lock()
            _day_locks[business_date] = lock
        return lock


@contextmanager
def business_day_lock(business_date: date):
    """Hold the commit lock for one business date."""
    lock = _lock_for(business_date)
    with lock:
        yield


def lock_for_update(statement):
    """
    Lock the selected inventory rows until the commit ends.

    The database must support SELECT ... FOR UPDATE for this to take
    effect; on SQLite it is a no-op and the per-date lock plus
    SQLite's single writer serialize commits instead.
    """
    return statement.with_for_update()
