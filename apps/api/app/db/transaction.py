"""Transaction scope used by the room services."""
from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.errors import StoreFailureError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def transaction(session: AsyncSession) -> AsyncIterator[AsyncSession]:
    """Run the block in one transaction, reporting driver failures as ``StoreFailureError``.

    Integrity errors pass through untouched; callers translate them into
    conflicts or retries.
    """

    try:
        async with session.begin():
            yield session
    except IntegrityError:
        raise
    except SQLAlchemyError as exc:
        logger.exception("Database operation failed")
        raise StoreFailureError("Storage is unavailable") from exc
