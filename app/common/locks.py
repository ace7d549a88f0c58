"""Per-learner serialization of progression writes inside one process."""

from __future__ import annotations

import asyncio
import weakref
from typing import Tuple


class LearnerLocks:
    """One ``asyncio.Lock`` per (user_id, course_id).

    A lesson toggle and a quiz submission from the same learner never
    interleave; different learners never wait on each other. Locks are held
    weakly so idle learners do not accumulate.
    """

    def __init__(self) -> None:
        self._locks: "weakref.WeakValueDictionary[Tuple[str, str], asyncio.Lock]" = weakref.WeakValueDictionary()

    def lock_for(self, user_id: str, course_id: str) -> asyncio.Lock:
        key = (str(user_id), str(course_id))
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock


learner_locks = LearnerLocks()

__all__ = ["LearnerLocks", "learner_locks"]
