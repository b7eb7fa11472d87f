"""
Execution helpers for independent pipeline units.

Units (e.g. one (year, season) composite) share no mutable state, so they
are evaluated with ``dask.delayed`` on the threaded scheduler. Collaborator
calls that may fail transiently (imagery fetches, exports) are wrapped in a
simple fixed-delay retry loop.

Author: Urban Thermal Analysis Team
"""

import time
from typing import Any, Callable, List, Sequence, Tuple, Type

import dask
from tqdm import tqdm

from shared_utils import get_logger

from .exceptions import ExportError, ImagerySourceError, SceneNotFoundError

logger = get_logger('execution')

RETRYABLE_ERRORS: Tuple[Type[BaseException], ...] = (ImagerySourceError, ExportError, OSError)
# Subclasses of retryable errors that are raised immediately
PERMANENT_ERRORS: Tuple[Type[BaseException], ...] = (SceneNotFoundError,)


def call_with_retries(fn: Callable, *args, max_retries: int = 3, retry_delay: float = 5.0,
                      description: str = 'operation',
                      retry_on: Tuple[Type[BaseException], ...] = RETRYABLE_ERRORS,
                      fail_fast: Tuple[Type[BaseException], ...] = PERMANENT_ERRORS, **kwargs) -> Any:
    """
    Call ``fn`` and retry it on collaborator errors.

    Args:
        fn: Callable to invoke
        max_retries: Total number of attempts (at least one)
        retry_delay: Seconds to wait between attempts
        description: Label used in log messages
        retry_on: Exception types that trigger another attempt
        fail_fast: Exception types re-raised on the first occurrence, even
            when they subclass one of ``retry_on``

    Returns:
        Whatever ``fn`` returns

    Raises:
        The last exception once all attempts are exhausted
    """
    attempts = max(1, int(max_retries))
    for attempt in range(1, attempts + 1):
        try:
            return fn(*args, **kwargs)
        except fail_fast as e:
            logger.error(f"{description} failed: {e}")
            raise
        except retry_on as e:
            if attempt == attempts:
                logger.error(f"{description} failed after {attempts} attempts: {e}")
                raise
            logger.warning(f"{description} failed (attempt {attempt}/{attempts}): {e}; "
                           f"retrying in {retry_delay}s")
            time.sleep(retry_delay)


def run_units(fn: Callable, units: Sequence, num_workers: int = 1,
              description: str = 'Processing units') -> List[Any]:
    """
    Evaluate ``fn(unit)`` for every unit and return results in unit order.

    ``fn`` is expected to catch its own failures and return a result record,
    so one failing unit never aborts its siblings.

    Examples:
        >>> results = run_units(self.process_unit, [(2004, SUMMER), (2004, WINTER)], num_workers=4)
    """
    units = list(units)
    if not units:
        return []

    if num_workers <= 1 or len(units) == 1:
        return [fn(unit) for unit in tqdm(units, desc=description, unit='unit')]

    logger.info(f"{description}: {len(units)} units on {num_workers} threads")
    delayed_tasks = [dask.delayed(fn)(unit) for unit in units]
    results = dask.compute(*delayed_tasks, scheduler='threads', num_workers=num_workers)
    return list(results)
