"""
Utility decorators for async retries with exponential backoff.
"""

import asyncio
import logging
import random
from functools import wraps
from typing import Optional, Tuple, Type

logger = logging.getLogger(__name__)


def retry_async(
    max_attempts: int = 3,
    base_delay: float = 0.5,
    exceptions: Tuple[Type[BaseException], ...] = (Exception,),
    jitter: float = 0.1,
    max_attempts_attr: Optional[str] = None,
):
    """
    Асинхронный декоратор с экспоненциальной задержкой.

    Args:
        max_attempts: Максимум попыток
        base_delay: Начальная задержка между попытками
        exceptions: Кортеж исключений для перехвата
        jitter: Добавочный случайный шум
        max_attempts_attr: Имя атрибута первого аргумента (self), из которого
            брать число попыток вместо max_attempts
    """

    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            limit = max_attempts
            if max_attempts_attr and args:
                limit = getattr(args[0], max_attempts_attr, max_attempts)

            attempt = 1
            delay = base_delay

            while True:
                try:
                    return await func(*args, **kwargs)
                except exceptions as exc:
                    if attempt >= limit:
                        raise

                    logger.debug(
                        f"{func.__qualname__} failed (attempt {attempt}/{limit}): {exc}; "
                        f"retrying in {delay:.2f}s"
                    )
                    await asyncio.sleep(delay + random.uniform(0, jitter))
                    attempt += 1
                    delay *= 2

        return wrapper

    return decorator
