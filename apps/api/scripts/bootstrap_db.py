"""Create the database schema and optionally a demo room for development."""
from __future__ import annotations

import argparse
import asyncio

from app.core.errors import RoomConflictError
from app.db.session import SessionLocal, engine
from app.models.base import Base
from app.services import rooms as rooms_service


async def main(*, reset: bool, demo_room: str | None) -> None:
    async with engine.begin() as conn:
        if reset:
            await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    if demo_room:
        async with SessionLocal() as session:
            try:
                room = await rooms_service.create_room(session, demo_room, "bootstrap")
            except RoomConflictError:
                print(f"Room {demo_room!r} already active")
            else:
                print(f"Created room {room.name!r} ({room.id})")

    await engine.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--reset", action="store_true", help="drop existing tables first")
    parser.add_argument("--demo-room", default=None, help="name of an unlimited room to create")
    args = parser.parse_args()
    asyncio.run(main(reset=args.reset, demo_room=args.demo_room))
