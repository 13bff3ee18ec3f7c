"""ReentrancyGuard — запрет вложенного входа в операцию.

Операция, которая (a) читает балансы, (b) строит план по ним и (c) затем
мутирует балансы по плану, не может быть вызвана повторно до своего
завершения: вложенный вызов увидел бы промежуточные балансы.
"""

import functools
import logging
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Optional, TypeVar

from src.core.errors import ReentrancyViolation

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


class ReentrancyGuard:
    """Флаг входа в операцию (один на экземпляр сервиса)."""

    def __init__(self):
        self._active_operation: Optional[str] = None

    @property
    def entered(self) -> bool:
        return self._active_operation is not None

    @contextmanager
    def enter(self, operation: str) -> Iterator[None]:
        if self._active_operation is not None:
            logger.warning(
                f"Re-entry into {operation} rejected: {self._active_operation} in progress"
            )
            raise ReentrancyViolation(
                f"{operation} called while {self._active_operation} is in progress"
            )
        self._active_operation = operation
        try:
            yield
        finally:
            self._active_operation = None


def non_reentrant(method: F) -> F:
    """Декоратор метода: вход через self._guard."""

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        with self._guard.enter(method.__name__):
            return method(self, *args, **kwargs)

    return wrapper  # type: ignore[return-value]
