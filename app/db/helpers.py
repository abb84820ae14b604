"""
Database helper functions shared by the scheduling repositories.
"""

import asyncio
import functools
from typing import Any

import psycopg

from app.db.pool import get_db_connection, get_db_transaction
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


class DatabaseError(Exception):
    """Raised when a query fails; wraps the underlying psycopg error."""

    def __init__(self, message: str, operation: str = "unknown", recoverable: bool = True):
        super().__init__(message)
        self.operation = operation
        self.recoverable = recoverable


async def fetch_one(query: str, params: tuple | dict = ()) -> dict[str, Any] | None:
    """
    Execute query and return single row as dict.

    Returns:
        Dict with row data or None if no results
    """
    try:
        async with await get_db_connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(query, params)
                return await cur.fetchone()
    except psycopg.Error as e:
        logger.error("Database fetch_one error", query=query[:100], error=str(e))
        raise DatabaseError(f"Query failed: {e}", operation="fetch_one") from e


async def fetch_all(query: str, params: tuple | dict = ()) -> list[dict[str, Any]]:
    """Execute query and return all rows as list of dicts."""
    try:
        async with await get_db_connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(query, params)
                return await cur.fetchall()
    except psycopg.Error as e:
        logger.error("Database fetch_all error", query=query[:100], error=str(e))
        raise DatabaseError(f"Query failed: {e}", operation="fetch_all") from e


async def fetch_val(query: str, params: tuple | dict = ()) -> Any:
    """Execute query and return the first column of the first row."""
    row = await fetch_one(query, params)
    return next(iter(row.values())) if row else None


async def execute_query(query: str, params: tuple | dict = ()) -> int:
    """
    Execute query and return number of affected rows.
    """
    try:
        async with await get_db_connection() as conn:
            cursor = await conn.execute(query, params)
            return cursor.rowcount
    except psycopg.Error as e:
        logger.error("Database execute error", query=query[:100], error=str(e))
        raise DatabaseError(f"Query failed: {e}", operation="execute") from e


async def execute_transaction(queries_and_params: list[tuple]) -> bool:
    """
    Execute multiple queries in a single transaction.

    Example:
        await execute_transaction([
            ("DELETE FROM scheduling_rules WHERE id = %s", (rule_id,)),
            ("UPDATE users SET rules_updated_at = NOW() WHERE id = %s", (user_id,)),
        ])
    """
    try:
        async with await get_db_transaction() as conn:
            for query, params in queries_and_params:
                await conn.execute(query, params)

        logger.debug("Transaction completed successfully", query_count=len(queries_and_params))
        return True

    except psycopg.Error as e:
        logger.error("Transaction failed", query_count=len(queries_and_params), error=str(e))
        raise DatabaseError(f"Transaction failed: {e}", operation="transaction") from e


def with_db_retry(max_retries: int = 3, base_delay: float = 0.1):
    """
    Retry a repository coroutine on transient (operational) failures.

    Args:
        max_retries: Maximum number of retry attempts
        base_delay: Base delay between retries (exponential backoff)
    """

    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            for attempt in range(max_retries + 1):
                try:
                    return await func(*args, **kwargs)
                except DatabaseError as e:
                    transient = isinstance(e.__cause__, psycopg.OperationalError)
                    if not transient or attempt >= max_retries:
                        raise
                    delay = base_delay * (2**attempt)
                    logger.warning(
                        "Database operation failed, retrying",
                        operation=func.__name__,
                        attempt=attempt + 1,
                        max_retries=max_retries,
                        delay=delay,
                        error=str(e),
                    )
                    await asyncio.sleep(delay)

        return wrapper

    return decorator
