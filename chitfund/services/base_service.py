"""
Base service class.

Provides common functionality for all service classes including session
management, logging, and the transaction decorator.
"""

import functools
from collections.abc import Callable
from typing import Any, TypeVar

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from chitfund.utils.exceptions import ChitFundError


# Type variable for generic decorator return types
T = TypeVar("T")


class BaseService:
    """
    Base service class.

    Provides common functionality for all service classes:
    - Session management
    - Logging with bound service context
    - Transaction helpers
    """

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize base service.

        Args:
            session: Async database session
        """
        self.session = session
        self.logger = logger.bind(service=self.__class__.__name__)

    async def commit(self) -> None:
        """Commit current transaction."""
        await self.session.commit()

    async def rollback(self) -> None:
        """Rollback current transaction."""
        await self.session.rollback()

    async def refresh(self, obj: Any) -> None:
        """
        Refresh object from database.

        Args:
            obj: SQLAlchemy model instance to refresh
        """
        await self.session.refresh(obj)


def transaction(func: Callable[..., T]) -> Callable[..., T]:
    """
    Decorator to wrap method in transaction with automatic commit/rollback.

    Commits on success, rolls back on exception. Domain errors are caller
    mistakes and are logged as warnings; anything else is logged with its
    traceback.

    Usage:
        @transaction
        async def my_service_method(self, ...):
            ...

    Args:
        func: Async method to wrap

    Returns:
        Wrapped async method
    """
    @functools.wraps(func)
    async def wrapper(self: BaseService, *args: Any, **kwargs: Any) -> Any:
        try:
            result = await func(self, *args, **kwargs)
            await self.commit()
            return result
        except ChitFundError as e:
            await self.rollback()
            self.logger.warning(
                f"{func.__name__} rejected: {e.kind}",
                extra={
                    "kind": e.kind,
                    "function": func.__name__,
                    **e.context,
                },
            )
            raise
        except Exception as e:
            await self.rollback()
            self.logger.opt(exception=e).error(
                f"Transaction failed in {func.__name__}",
                extra={
                    "error": str(e),
                    "function": func.__name__,
                },
            )
            raise

    return wrapper
