"""
Training Record Backend: Store Service Base
============================================

What:  Base class shared by the services that talk to the store.
How:   Wraps every store round-trip with a timeout and translates SQLAlchemy
       failures into DatabaseError tagged with the stage that failed.
Who:   Inherited by ReferenceService and RecordService.

Error contract:
    - SQLAlchemyError → DatabaseError("<stage>: <store message>", stage=<stage>)
      The store message is the DBAPI driver's text when available.
    - Timeout → DatabaseError("<stage>: store call timed out after Ns")
    - No retries: the first failure is terminal for the request.
"""

import asyncio
import logging
from typing import Awaitable, TypeVar

from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import DatabaseError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def store_message(exc: SQLAlchemyError) -> str:
    """Driver-level message of a store error, without SQLAlchemy's SQL echo."""
    if isinstance(exc, DBAPIError) and exc.orig is not None:
        return str(exc.orig)
    return str(exc)


class StoreService:
    """
    Common plumbing for store-backed services.

    Attributes:
        timeout: Upper bound in seconds for a single store call
    """

    def __init__(self, timeout: float = 10.0):
        self.timeout = timeout

    async def _run(self, call: Awaitable[T], stage: str) -> T:
        """
        Await one store call within the timeout.

        Args:
            call:  Awaitable returned by the session (execute, flush, commit)
            stage: Name reported to the client when the call fails

        Raises:
            DatabaseError: The call raised a SQLAlchemy error or timed out
        """
        try:
            return await asyncio.wait_for(call, timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise DatabaseError(
                message=f"{stage}: store call timed out after {self.timeout:g}s",
                stage=stage,
                context={"timeout": self.timeout},
            ) from e
        except SQLAlchemyError as e:
            raise DatabaseError(
                message=f"{stage}: {store_message(e)}",
                stage=stage,
                context={"error_type": type(e).__name__},
            ) from e

    async def _rollback(self, db: AsyncSession) -> None:
        """Roll back the session; a failing rollback is logged, not raised."""
        try:
            await db.rollback()
        except Exception:
            logger.error("Rollback failed", exc_info=True)
