"""Background retirement of expired guest rooms."""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..core.clock import ensure_utc, utcnow
from ..db.transaction import transaction
from ..repositories import rooms as rooms_repo

logger = logging.getLogger(__name__)


class ExpirationSweeper:
    """Periodically retire active rooms whose deadline has passed.

    Each tick is independent: a failed tick is logged and the next one runs on
    schedule. Readers never depend on the sweeper, since ``get_room`` retires
    expired rooms on its own.
    """

    def __init__(self, sessionmaker: async_sessionmaker[AsyncSession], interval_seconds: float = 300.0) -> None:
        self._sessionmaker = sessionmaker
        self._interval = interval_seconds
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="room-expiration-sweeper")
        logger.info("Room sweeper started (every %.0fs)", self._interval)

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("Room sweeper stopped")

    async def run_once(self, *, now: datetime | None = None) -> int:
        """Retire every expired active room and return how many were retired."""

        now = ensure_utc(now or utcnow())
        retired = 0
        async with self._sessionmaker() as session:
            async with transaction(session):
                expired = await rooms_repo.list_expired_active(session, now=now)
            if not expired:
                return 0

            logger.info("Found %d expired room(s) to clean up", len(expired))
            for room in expired:
                async with transaction(session):
                    if await rooms_repo.retire(session, room.id, now=now):
                        retired += 1
                        logger.info("Cleaned up expired room %s (%s)", room.name, room.id)
        return retired

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                await self.run_once()
            except Exception:  # noqa: BLE001 - next tick retries independently
                logger.exception("Room sweep failed")
