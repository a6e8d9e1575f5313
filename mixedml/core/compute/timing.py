"""
Wall-clock timing of the phases of a fit.

``fit`` times its setup (building Σy at the starting point), the
optimisation and the final evaluation separately; the breakdown ends up in
``Result.timing``.
"""

import time
from contextlib import contextmanager
from typing import Iterator


class Timer:
    """
    Total elapsed time plus named, accumulating sections.

    Usage:
        timer = Timer()
        timer.start()
        with timer.section('optimization'):
            opt = backend.maximize(...)
        timer.stop()
        timer.result()  # {'total_seconds': ..., 'optimization': ...}
    """

    def __init__(self):
        self._sections: dict[str, float] = {}
        self._start_time: float | None = None
        self._total: float | None = None

    def start(self) -> None:
        self._start_time = time.perf_counter()

    def stop(self) -> None:
        if self._start_time is None:
            raise RuntimeError("Timer.stop() called before start()")
        self._total = time.perf_counter() - self._start_time

    @contextmanager
    def section(self, name: str) -> Iterator[None]:
        """Add the time spent in the block to section ``name``."""
        t0 = time.perf_counter()
        try:
            yield
        finally:
            self._sections[name] = (
                self._sections.get(name, 0.0) + time.perf_counter() - t0
            )

    def result(self) -> dict[str, float]:
        """Timings in seconds; raises RuntimeError before ``stop()``."""
        if self._total is None:
            raise RuntimeError("Timer.result() called before stop()")
        return {'total_seconds': self._total, **self._sections}
