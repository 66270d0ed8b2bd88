# shared/db.py
import logging
from contextlib import asynccontextmanager

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from shared.config import DATABASE_URL, SQL_ECHO
from shared.errors import Conflict

logger = logging.getLogger(__name__)

engine = create_async_engine(DATABASE_URL, echo=SQL_ECHO, pool_pre_ping=True)
SessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

Base = declarative_base()


async def get_db():
    async with SessionLocal() as session:
        yield session


@asynccontextmanager
async def unit_of_work(db: AsyncSession):
    """All-or-nothing block: commit every row written inside, or none of them.

    Reads issued on ``db`` before entering the block belong to the same
    transaction. Any exception rolls back; ``IntegrityError`` is re-raised as
    ``Conflict`` so callers always get one categorised outcome.
    """
    try:
        yield db
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        logger.warning("Transaction rolled back on integrity error: %s", e.orig)
        raise Conflict("Write conflicts with an existing record") from e
    except Exception:
        await db.rollback()
        raise
