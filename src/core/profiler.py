import functools
import inspect
import logging
import time

logger = logging.getLogger(__name__)


class Profiler:
    """
    Provides a decorator that logs the execution time of synchronous and
    asynchronous methods at debug level.
    """

    @staticmethod
    def profile(func):
        if inspect.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args, **kwargs):
                start = time.perf_counter()
                try:
                    return await func(*args, **kwargs)
                finally:
                    elapsed_ms = (time.perf_counter() - start) * 1000.0
                    logger.debug(f"[Profiler] {func.__qualname__} took {elapsed_ms:.2f}ms")

            return async_wrapper

        @functools.wraps(func)
        def sync_wrapper(*args, **kwargs):
            start = time.perf_counter()
            try:
                return func(*args, **kwargs)
            finally:
                elapsed_ms = (time.perf_counter() - start) * 1000.0
                logger.debug(f"[Profiler] {func.__qualname__} took {elapsed_ms:.2f}ms")

        return sync_wrapper
