from time import perf_counter
from typing import Any, Callable, Tuple


def timed(func: Callable, *args: Any, **kwargs: Any) -> Tuple[Any, int]:
    """Run *func* and return ``(result, elapsed_millis)``."""
    start = perf_counter()
    result = func(*args, **kwargs)
    return result, elapsed_millis(start)


def elapsed_millis(start: float) -> int:
    """Whole milliseconds elapsed since a ``perf_counter()`` reading."""
    return int(round((perf_counter() - start) * 1000))
