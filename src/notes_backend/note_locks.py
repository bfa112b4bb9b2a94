from __future__ import annotations

import asyncio
import weakref

# Entries disappear once no coroutine holds or waits on the lock.
_NOTE_LOCKS: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()


def lock_for_note(note_id: str) -> asyncio.Lock:
    """Per-note mutual exclusion: writes to one note run one at a time, other notes proceed."""
    lock = _NOTE_LOCKS.get(note_id)
    if lock is None:
        lock = asyncio.Lock()
        _NOTE_LOCKS[note_id] = lock
    return lock
