"""Timing utilities."""
from __future__ import annotations

import sys
import time
from types import TracebackType

if sys.version_info >= (3, 11):  # pragma: >=3.11 cover
    from typing import Self
else:  # pragma: <3.11 cover
    from typing_extensions import Self


class Timer:
    """Wall-clock timer used for call logging.

    Example:
        ```python
        with Timer() as timer:
            response = session.get(url)

        logger.debug(f'GET {url} in {timer.elapsed_ms:.3f} ms')
        ```
    """

    def __init__(self) -> None:
        self._start: int | None = None
        self._end: int | None = None

    def __enter__(self) -> Self:
        self._start = time.perf_counter_ns()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        exc_traceback: TracebackType | None,
    ) -> None:
        self._end = time.perf_counter_ns()

    @property
    def elapsed_ms(self) -> float:
        """Elapsed milliseconds, or so far if the block has not exited.

        Raises:
            RuntimeError: If the timer was never entered.
        """
        if self._start is None:
            raise RuntimeError('Timer has not been started.')
        end = self._end if self._end is not None else time.perf_counter_ns()
        return (end - self._start) / 1e6
