# create_db.py
import asyncio
import logging
import sys

from shared.db import engine, Base
from shared.log_config import configure_logging

# Import all models here so they are registered with SQLAlchemy's metadata
import services.user_management.models  # noqa: F401
import services.mark_management.models  # noqa: F401
import services.attendance_management_system.models  # noqa: F401
import services.problem_points.models  # noqa: F401

logger = logging.getLogger("create_db")


async def init_models(drop_first: bool = False):
    async with engine.begin() as conn:
        if drop_first:
            logger.info("Dropping tables...")
            await conn.run_sync(Base.metadata.drop_all)
        logger.info("Creating tables...")
        await conn.run_sync(Base.metadata.create_all)
        logger.info("Tables created.")
    await engine.dispose()


if __name__ == "__main__":
    configure_logging()
    asyncio.run(init_models(drop_first="--reset" in sys.argv[1:]))
