import asyncio
import logging
import time
from asyncio import Lock
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict
from uuid import UUID

from tictactoe.domain.errors import LockTimeout


class GameSyncManager:
    def __init__(self):
        self.locks: Dict[UUID, Lock] = {}  # one Lock per game_id
        self.holders: Dict[UUID, int] = {}  # tasks holding or waiting on each Lock
        self.last_used: Dict[UUID, float] = {}
        self.lock = Lock()  # protects the three dicts above

    async def _checkout(self, game_id: UUID) -> Lock:
        """Get the Lock of the specified game_id and register the caller as a holder

        Args:
            game_id (UUID): ID to identify this game

        Returns:
            Lock: Lock of the specified game_id
        """
        async with self.lock:
            if game_id not in self.locks:
                self.locks[game_id] = Lock()
                self.holders[game_id] = 0
            self.holders[game_id] += 1
            self.last_used[game_id] = time.monotonic()
            return self.locks[game_id]

    async def _release(self, game_id: UUID):
        async with self.lock:
            self.holders[game_id] -= 1
            self.last_used[game_id] = time.monotonic()

    @asynccontextmanager
    async def exclusive(self, game_id: UUID, timeout: float) -> AsyncIterator[None]:
        """Hold the critical section of one game for the duration of the block

        Args:
            game_id (UUID): ID to identify this game
            timeout (float): Seconds to wait for the Lock before giving up

        Raises:
            LockTimeout: The Lock was not acquired in time
        """
        game_lock = await self._checkout(game_id)
        try:
            try:
                await asyncio.wait_for(game_lock.acquire(), timeout)
            except asyncio.TimeoutError:
                logging.warning(f"Timed out waiting for lock of game_id={game_id}")
                raise LockTimeout(game_id)
            try:
                yield
            finally:
                game_lock.release()
        finally:
            await self._release(game_id)

    async def prune_idle(self, idle_sec: float) -> int:
        """Delete Locks nobody holds and nobody used for idle_sec seconds

        Args:
            idle_sec (float): Minimum idle time before a Lock is dropped

        Returns:
            int: Number of Locks dropped
        """
        now = time.monotonic()
        async with self.lock:
            idle = [
                game_id
                for game_id, count in self.holders.items()
                if count == 0 and now - self.last_used[game_id] >= idle_sec
            ]
            for game_id in idle:
                del self.locks[game_id]
                del self.holders[game_id]
                del self.last_used[game_id]
        if idle:
            logging.debug(f"Pruned {len(idle)} idle game locks")
        return len(idle)
