# services/base.py
from typing import Callable, Generic, TypeVar

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from grin_gateway.utils.logging import get_logger

T = TypeVar("T")
R = TypeVar("R")

logger = get_logger(__name__)


class BaseService(Generic[T]):
    def __init__(self, db: Session):
        self.db = db

    async def _handle_db_operation(self, operation: Callable[[], R], action: str = "write to the database") -> R:
        """
        Run a mutation and commit it, or roll the session back.

        Every write in the gateway goes through here so a failed write never
        leaves the session half flushed.
        """
        try:
            result = operation()
            self.db.commit()
            return result
        except IntegrityError as e:
            self.db.rollback()
            logger.error(f"Constraint violation, could not {action}: {e}")
            raise HTTPException(
                status_code=400, detail="Database constraint violation"
            ) from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to {action}: {e}")
            raise HTTPException(status_code=500, detail="Internal server error") from e
