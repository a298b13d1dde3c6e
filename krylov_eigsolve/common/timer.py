'''
High-resolution timers for solver profiling.

Each solver owns a small set of named `Timer` instances (see `TimerSet`)
that are resumed around the expensive phases of an iteration: operator
application, dense eigensolves, multi-vector BLAS and the SVD extraction.
'''

from __future__ import annotations
from dataclasses import dataclass, field
from contextlib import contextmanager
from typing import Callable, Dict, Iterable, Iterator, Optional, Tuple
from enum import Enum
import time

################################################################################
# High-precision, monotonic clock in nanoseconds
_now_ns: Callable[[], int] = time.perf_counter_ns

class TimerState(Enum):
    RUNNING     = "running"
    PAUSED      = "paused"
    STOPPED     = "stopped"

@dataclass(slots=True)
class Timer:
    """
    Accumulating timer.

    The timer can be started and paused many times; the elapsed time is the
    sum of all running spans. It is also a context manager, so a profiled
    block reads `with timer: ...`.

    Attributes:
        name (str):
            Optional name to identify the timer.
        unit (str):
            Unit used by `format_elapsed` ('auto', 's', 'ms', 'us', 'ns').
    """
    name                    : Optional[str]                     = None
    unit                    : str                               = "auto"

    # internal state
    _start_ns               : Optional[int]                     = field(default=None, init=False)
    _paused                 : bool                              = field(default=False, init=False)
    _elapsed_ns             : int                               = field(default=0, init=False)
    _calls                  : int                               = field(default=0, init=False)

    ################################################################################

    def start(self) -> "Timer":
        """Start (or resume) the timer; no-op if already running."""
        if self._start_ns is None:
            self._start_ns  = _now_ns()
            self._paused    = False
            self._calls    += 1
        return self

    def pause(self) -> "Timer":
        """Pause the timer, accumulating elapsed time."""
        if self._start_ns is not None:
            self._elapsed_ns   += _now_ns() - self._start_ns
            self._start_ns      = None
            self._paused        = True
        return self

    def resume(self) -> "Timer":
        """Resume after pause."""
        return self.start()

    def stop(self) -> float:
        """Stop and return elapsed time in seconds."""
        self.pause()
        self._paused = False
        return self.elapsed_s()

    def reset(self) -> "Timer":
        """Clear state and stop."""
        self._start_ns      = None
        self._paused        = False
        self._elapsed_ns    = 0
        self._calls         = 0
        return self

    ################################################################################
    #! queries
    ################################################################################

    def elapsed_ns(self) -> int:
        """Total elapsed nanoseconds (includes current running span)."""
        if self._start_ns is None:
            return self._elapsed_ns
        return self._elapsed_ns + (_now_ns() - self._start_ns)

    def elapsed_s(self) -> float:
        """Elapsed seconds (float)."""
        return self.elapsed_ns() / 1e9

    @property
    def calls(self) -> int:
        """Number of times the timer was started."""
        return self._calls

    @property
    def state(self) -> TimerState:
        if self._start_ns is not None:
            return TimerState.RUNNING
        if self._paused:
            return TimerState.PAUSED
        return TimerState.STOPPED

    ################################################################################
    #! formatting
    ################################################################################

    def _format_unit(self, seconds: float) -> Tuple[float, str]:
        if self.unit == "auto":
            for scale, label in ((1.0, "s"), (1e3, "ms"), (1e6, "us")):
                if seconds * scale >= 1.0:
                    return (seconds * scale, label)
            return (seconds * 1e9, "ns")
        scales = {"s": 1.0, "ms": 1e3, "us": 1e6, "ns": 1e9}
        if self.unit not in scales:
            raise ValueError("unit must be one of {'auto','s','ms','us','ns'}")
        return (seconds * scales[self.unit], self.unit)

    def format_elapsed(self) -> str:
        v, u = self._format_unit(self.elapsed_s())
        return f"{v:.6f} {u}"

    def report(self) -> str:
        return f"{self.name or 'Timer'}: {self.format_elapsed()} ({self._calls} calls)"

    # -------- context manager --------

    def __enter__(self) -> "Timer":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.pause()

################################################################################
#! Named timer collection
################################################################################

class TimerSet:
    """
    A fixed collection of named timers, one per profiled phase.

    Example:
        >>> timers = TimerSet(("matvec", "eigen"))
        >>> with timers("matvec"):
        ...     y = A @ x
        >>> timers.durations()["matvec"] > 0
        True
    """

    def __init__(self, names: Iterable[str]):
        self._timers: Dict[str, Timer] = {n: Timer(name=n) for n in names}

    def __getitem__(self, name: str) -> Timer:
        return self._timers[name]

    @contextmanager
    def __call__(self, name: str) -> Iterator[Timer]:
        timer = self._timers[name]
        timer.start()
        try:
            yield timer
        finally:
            timer.pause()

    def reset(self) -> None:
        for t in self._timers.values():
            t.reset()

    def durations(self) -> Dict[str, float]:
        """Elapsed seconds per phase."""
        return {n: t.elapsed_s() for n, t in self._timers.items()}

    def calls(self) -> Dict[str, int]:
        return {n: t.calls for n, t in self._timers.items()}

################################################################################
#! EOF
################################################################################
