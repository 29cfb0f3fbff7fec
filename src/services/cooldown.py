from __future__ import annotations

import asyncio
import threading
import time
from typing import Callable, Optional

from loguru import logger


class CooldownActive(RuntimeError):
    """A resolution batch started too recently and the gate is in reject mode."""

    def __init__(self, retry_after: float) -> None:
        super().__init__(f"search in progress / cooling down, retry in {retry_after:.2f}s")
        self.retry_after = retry_after


class CooldownGate:
    """Spaces the starts of fetch batches at least ``interval`` seconds apart.

    Each caller reserves the next free slot under the lock, so concurrent
    callers queue up instead of all waking at the same instant.
    """

    def __init__(
        self,
        interval: float = 1.0,
        mode: str = "wait",
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if mode not in ("wait", "reject"):
            raise ValueError(f"unknown cooldown mode: {mode}")
        self.interval = max(0.0, interval)
        self.mode = mode
        self._clock = clock
        self._lock = threading.Lock()
        self.last_query_at: Optional[float] = None

    def reserve(self, max_delay: Optional[float] = None) -> Optional[float]:
        """Claim a slot and return how long the caller must wait for it.

        Returns None, leaving the schedule untouched, when the next free slot
        is more than ``max_delay`` seconds away.
        """
        with self._lock:
            now = self._clock()
            if self.last_query_at is None:
                slot = now
            else:
                slot = max(now, self.last_query_at + self.interval)
            delay = slot - now
            if delay > 0 and self.mode == "reject":
                raise CooldownActive(delay)
            if max_delay is not None and delay > max_delay:
                return None
            self.last_query_at = slot
            return delay

    async def acquire(self, max_delay: Optional[float] = None) -> bool:
        """Wait for a slot; False if none is free within ``max_delay``."""
        delay = self.reserve(max_delay)
        if delay is None:
            logger.debug("cooldown queue longer than {:.2f}s", max_delay)
            return False
        if delay > 0:
            logger.debug("cooldown wait {:.2f}s", delay)
            await asyncio.sleep(delay)
        return True
