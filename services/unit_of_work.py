from contextlib import asynccontextmanager

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from errors import AgroCreditoError, ConcurrentModification, PersistenceFailure


@asynccontextmanager
async def unit_of_work(session: AsyncSession):
    """
    Commit everything done inside the block, or nothing.
    Database errors are rolled back and surfaced as domain errors.
    """
    try:
        yield session
        await session.commit()
    except AgroCreditoError:
        await session.rollback()
        raise
    except IntegrityError as e:
        await session.rollback()
        # unique keys (one account per application, document versions) lost a race
        raise ConcurrentModification(
            "Record was modified concurrently; reload and retry",
            {"reason": str(e.orig)},
        ) from e
    except SQLAlchemyError as e:
        await session.rollback()
        raise PersistenceFailure("Database operation failed; nothing was saved", {"reason": str(e)}) from e
    except BaseException:
        await session.rollback()
        raise
