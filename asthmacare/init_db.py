"""
Initialize database tables.

Usage:
    python -m asthmacare.init_db [--reset]

WARNING: --reset deletes all existing data!
"""

import argparse
import asyncio

from sqlalchemy.ext.asyncio import AsyncEngine

from asthmacare.app.db.base import Base, engine as default_engine
# Import all models to register them
from asthmacare.app.models import Appointment, AuthSession, ChatMessage, Report, User  # noqa: F401


async def init_db(engine: AsyncEngine | None = None, reset: bool = False) -> list[str]:
    """
    Create all database tables.

    Args:
        engine: Engine to use. If None, uses the configured database.
        reset: Drop existing tables first

    Returns:
        Names of the tables in the schema
    """
    engine = engine or default_engine
    async with engine.begin() as conn:
        if reset:
            await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    return sorted(Base.metadata.tables)


def main() -> None:
    parser = argparse.ArgumentParser(description="Create the AsthmaCare database schema")
    parser.add_argument("--reset", action="store_true", help="drop existing tables first")
    args = parser.parse_args()

    tables = asyncio.run(init_db(reset=args.reset))
    print(f"Database tables created successfully: {', '.join(tables)}")


if __name__ == "__main__":
    main()
