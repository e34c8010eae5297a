"""
Database error handling utilities.

Centralizes the pattern of:
1. Rolling back the database session on error
2. Logging the error with context
3. Raising PersistenceFailure, which the API maps to a 500 response

Domain exceptions raised inside the block pass through untouched after the
rollback, so callers can wrap a whole operation.

Usage:
    from theory_backend.core.db_error_handling import handle_db_error

    with handle_db_error(db, "record answer"):
        db.execute(stmt)
        db.commit()
"""

import logging
from contextlib import contextmanager
from typing import Generator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from theory_backend.core.exceptions import PersistenceFailure, PracticeError

logger = logging.getLogger(__name__)


@contextmanager
def handle_db_error(
    db: Session,
    operation_name: str,
    *,
    log_level: int = logging.ERROR,
) -> Generator[None, None, None]:
    """Context manager for handling database errors consistently.

    Args:
        db: The SQLAlchemy database session to rollback on error.
        operation_name: Human-readable name of the operation for error messages
            and logging (e.g., "record answer", "create test").
        log_level: Logging level for error messages. Defaults to logging.ERROR.

    Raises:
        PracticeError: Re-raised unchanged after rolling back.
        PersistenceFailure: On any SQLAlchemy error, with the session rolled back.
            No retry is attempted.

    Example:
        >>> with handle_db_error(db, "finish test"):
        ...     test.complete = True
        ...     db.commit()
    """
    try:
        yield
    except PracticeError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        logger.log(
            log_level,
            f"Database error during {operation_name}: {e}",
            exc_info=True,
        )
        raise PersistenceFailure(operation_name, e) from e
