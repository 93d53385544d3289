"""
Per-key asyncio locks.

One writer at a time per video, per teacher personality and per conversation.
Entries are dropped once nobody holds or waits on them.
"""
import asyncio
from contextlib import asynccontextmanager
from typing import Dict, Hashable, List


class KeyedLocks:
    def __init__(self, name: str):
        self.name = name
        self._entries: Dict[Hashable, List] = {}

    @asynccontextmanager
    async def hold(self, key: Hashable):
        entry = self._entries.get(key)
        if entry is None:
            entry = self._entries[key] = [asyncio.Lock(), 0]
        entry[1] += 1
        try:
            async with entry[0]:
                yield
        finally:
            entry[1] -= 1
            if entry[1] == 0:
                self._entries.pop(key, None)

    def __len__(self) -> int:
        return len(self._entries)


video_locks = KeyedLocks("video")
personality_locks = KeyedLocks("personality")
conversation_locks = KeyedLocks("conversation")
