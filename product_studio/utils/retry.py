"""Retry of async calls on selected exceptions, with exponential backoff."""

import asyncio
import functools
from typing import Awaitable, Callable, Iterator, Tuple, Type, TypeVar

from .logger import get_logger

logger = get_logger(__name__)

T = TypeVar('T')


def backoff_delays(
    initial_delay: float = 1.0,
    backoff_factor: float = 2.0,
    max_delay: float = 60.0,
) -> Iterator[float]:
    """Endless sequence of waits: initial_delay, then multiplied each time, capped."""
    delay = initial_delay
    while True:
        yield min(delay, max_delay)
        delay *= backoff_factor


def retry_async(
    max_attempts: int = 3,
    backoff_factor: float = 2.0,
    initial_delay: float = 1.0,
    max_delay: float = 60.0,
    exceptions: Tuple[Type[BaseException], ...] = (Exception,),
):
    """
    Decorate a coroutine function so listed exceptions trigger another attempt.
    
    Exceptions outside ``exceptions`` propagate from the first attempt. After
    the last attempt the final exception propagates unchanged.
    
    Args:
        max_attempts: Total attempts including the first (1 disables retrying)
        backoff_factor: Multiplier applied to the wait after each failure
        initial_delay: Wait before the second attempt, in seconds
        max_delay: Upper bound for any single wait
        exceptions: Exception types worth another attempt
    
    Example:
        @retry_async(max_attempts=3, exceptions=(ServiceUnavailable,))
        async def submit():
            ...
    """
    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs) -> T:
            delays = backoff_delays(initial_delay, backoff_factor, max_delay)
            attempt = 1
            while True:
                try:
                    return await func(*args, **kwargs)
                except exceptions as e:
                    if attempt >= max_attempts:
                        if max_attempts > 1:
                            logger.error(
                                f"{func.__name__} gave up after {attempt} attempts",
                                extra={"function": func.__name__, "attempts": attempt, "error": str(e)}
                            )
                        raise
                    
                    delay = next(delays)
                    logger.warning(
                        f"{func.__name__} attempt {attempt}/{max_attempts} failed, retrying in {delay:g}s",
                        extra={
                            "function": func.__name__,
                            "attempt": attempt,
                            "delay_seconds": delay,
                            "error_type": e.__class__.__name__,
                        }
                    )
                    await asyncio.sleep(delay)
                    attempt += 1
        
        return wrapper
    return decorator
