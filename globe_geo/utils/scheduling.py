"""
Render scheduling utilities.

Bound how often and how much clustering / viewport work runs per user
interaction:
- Debouncer / debounce: run once after a quiet period, superseded calls discarded
- Throttler / throttle: run at most once per interval, extra calls dropped
- BatchUpdater: coalesce rapid events into one callback
- ElementPool: fixed-capacity free-list of reusable render handles
- chunk_list, memoize, PerformanceMonitor: progressive loading, caller-side
  caching and timing helpers

Each object owns its timer handle and assumes a single logical caller (one
event source driving it sequentially). Feed one instance from several
threads only through an external serializing queue.
"""

from __future__ import annotations

import threading
import time
from collections import OrderedDict
from functools import wraps
from typing import Any, Callable, Dict, Generic, Hashable, List, Optional, Sequence, TypeVar

from globe_geo.utils.config import SchedulingParams
from globe_geo.utils.exceptions import InvalidInputError
from globe_geo.utils.logging_config import get_logger

logger = get_logger(__name__)

T = TypeVar("T")
H = TypeVar("H")

# Signature of threading.Timer: (interval_seconds, function, args, kwargs)
TimerFactory = Callable[..., Any]


def _daemon_timer(interval: float, function: Callable, args=None, kwargs=None) -> threading.Timer:
    timer = threading.Timer(interval, function, args=args, kwargs=kwargs)
    timer.daemon = True
    return timer


def _check_interval(name: str, value_ms: float) -> None:
    if value_ms < 0:
        raise InvalidInputError(f"{name} must be >= 0, got {value_ms}")


class Debouncer:
    """
    Invoke ``fn`` only after ``wait_ms`` have passed since the last call.

    Each call cancels the pending invocation and schedules a new one with the
    latest arguments; superseded calls are discarded, not queued.

    Example:
        >>> refresh = Debouncer(reducer_job, wait_ms=100)
        >>> for event in camera_events:
        ...     refresh(event.bounds)   # runs once, 100 ms after the last event
    """

    def __init__(self, fn: Callable[..., Any], wait_ms: float,
                 timer_factory: TimerFactory = _daemon_timer):
        _check_interval("wait_ms", wait_ms)
        self.fn = fn
        self.wait_ms = wait_ms
        self._timer_factory = timer_factory
        self._timer = None
        # Bumped on every schedule or cancel; a timer firing with an older
        # generation has been superseded
        self._generation = 0
        self._lock = threading.Lock()

    @classmethod
    def from_params(cls, fn: Callable[..., Any], params: SchedulingParams, **kwargs) -> "Debouncer":
        return cls(fn, params.debounce_ms, **kwargs)

    def __call__(self, *args, **kwargs) -> None:
        with self._lock:
            self._cancel_locked()
            self._timer = self._timer_factory(
                self.wait_ms / 1000.0, self._fire, args=(self._generation, args, kwargs)
            )
            self._timer.start()

    def _fire(self, generation: int, args: tuple, kwargs: dict) -> None:
        with self._lock:
            if generation != self._generation:
                return
            self._timer = None
        self.fn(*args, **kwargs)

    @property
    def pending(self) -> bool:
        return self._timer is not None

    def cancel(self) -> None:
        """Drop the pending invocation, if any."""
        with self._lock:
            self._cancel_locked()

    def _cancel_locked(self) -> None:
        self._generation += 1
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None


class Throttler:
    """
    Invoke ``fn`` at most once per ``limit_ms``.

    The first call runs immediately; calls arriving during the cool-down are
    dropped, not deferred.
    """

    def __init__(self, fn: Callable[..., Any], limit_ms: float,
                 clock: Callable[[], float] = time.monotonic):
        _check_interval("limit_ms", limit_ms)
        self.fn = fn
        self.limit_ms = limit_ms
        self._clock = clock
        self._last_run: Optional[float] = None

    @classmethod
    def from_params(cls, fn: Callable[..., Any], params: SchedulingParams, **kwargs) -> "Throttler":
        return cls(fn, params.throttle_ms, **kwargs)

    def __call__(self, *args, **kwargs) -> None:
        now = self._clock()
        if self._last_run is not None and (now - self._last_run) * 1000.0 < self.limit_ms:
            return
        self._last_run = now
        self.fn(*args, **kwargs)

    def reset(self) -> None:
        """Forget the last run so the next call goes through."""
        self._last_run = None


def debounce(fn: Callable[..., Any], wait_ms: float = 100.0, **kwargs) -> Debouncer:
    """Wrap ``fn`` in a Debouncer (see Debouncer)."""
    return Debouncer(fn, wait_ms, **kwargs)


def throttle(fn: Callable[..., Any], limit_ms: float = 100.0, **kwargs) -> Throttler:
    """Wrap ``fn`` in a Throttler (see Throttler)."""
    return Throttler(fn, limit_ms, **kwargs)


class BatchUpdater(Generic[T]):
    """
    Accumulate items and hand them to ``callback`` as one batch.

    The batch is flushed ``delay_ms`` after the last ``add`` or immediately on
    ``flush()``. Used to coalesce many viewport-change events into a single
    ViewportReducer run.
    """

    def __init__(self, callback: Callable[[List[T]], Any], delay_ms: float = 100.0,
                 timer_factory: TimerFactory = _daemon_timer):
        _check_interval("delay_ms", delay_ms)
        self.callback = callback
        self.delay_ms = delay_ms
        self._timer_factory = timer_factory
        self._timer = None
        self._generation = 0
        self._items: List[T] = []
        # The timer fires on its own thread
        self._lock = threading.RLock()

    @classmethod
    def from_params(cls, callback: Callable[[List[T]], Any], params: SchedulingParams,
                    **kwargs) -> "BatchUpdater[T]":
        return cls(callback, params.batch_delay_ms, **kwargs)

    def add(self, item: T) -> None:
        with self._lock:
            self._items.append(item)
            self._cancel_timer()
            self._timer = self._timer_factory(
                self.delay_ms / 1000.0, self._on_timer, args=(self._generation,)
            )
            self._timer.start()

    def flush(self) -> None:
        with self._lock:
            self._cancel_timer()
            batch, self._items = self._items, []

        if batch:
            self.callback(batch)

    def _on_timer(self, generation: int) -> None:
        with self._lock:
            # Superseded since this timer was scheduled
            if generation != self._generation:
                return
            self._timer = None
            batch, self._items = self._items, []

        if batch:
            self.callback(batch)

    def clear(self) -> None:
        """Discard pending items without calling back."""
        with self._lock:
            self._cancel_timer()
            self._items = []

    @property
    def pending(self) -> int:
        return len(self._items)

    def _cancel_timer(self) -> None:
        self._generation += 1
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None


class ElementPool(Generic[H]):
    """
    Free-list of reusable render handles (e.g. marker elements).

    ``acquire`` pops an idle handle or builds one with ``factory``;
    ``release`` resets the handle and keeps it unless the pool already holds
    ``max_size`` idle handles.
    """

    def __init__(self, factory: Callable[[], H], max_size: int = 1000,
                 reset: Optional[Callable[[H], Any]] = None):
        if max_size < 0:
            raise InvalidInputError(f"max_size must be >= 0, got {max_size}")
        self._factory = factory
        self._reset = reset
        self.max_size = max_size
        self._pool: List[H] = []

    @classmethod
    def from_params(cls, factory: Callable[[], H], params: SchedulingParams,
                    **kwargs) -> "ElementPool[H]":
        return cls(factory, params.pool_max_size, **kwargs)

    def acquire(self) -> H:
        if self._pool:
            return self._pool.pop()
        return self._factory()

    def release(self, handle: H) -> None:
        if len(self._pool) >= self.max_size:
            return
        if self._reset is not None:
            self._reset(handle)
        elif hasattr(handle, 'reset'):
            handle.reset()
        self._pool.append(handle)

    def clear(self) -> None:
        self._pool = []

    @property
    def size(self) -> int:
        return len(self._pool)


def chunk_list(items: Sequence[T], chunk_size: int = 50) -> List[List[T]]:
    """
    Split ``items`` into consecutive chunks for progressive rendering.

    Example:
        >>> chunk_list([1, 2, 3, 4, 5], chunk_size=2)
        [[1, 2], [3, 4], [5]]
    """
    if chunk_size < 1:
        raise InvalidInputError(f"chunk_size must be >= 1, got {chunk_size}")
    items = list(items)
    return [items[i:i + chunk_size] for i in range(0, len(items), chunk_size)]


def memoize(fn: Optional[Callable[..., T]] = None, *,
            key: Optional[Callable[..., Hashable]] = None,
            max_size: int = 1000):
    """
    Caller-side memoization with a bounded cache (oldest entry evicted).

    The geo core never caches; wrap core calls with this where the same
    input is recomputed often. Without ``key`` the positional and keyword
    arguments must be hashable.

    Example:
        >>> @memoize(key=lambda points, d: (id(points), d))
        ... def cached_clusters(points, d):
        ...     return cluster_points(points, max_distance=d)
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        cache: "OrderedDict[Hashable, T]" = OrderedDict()

        @wraps(func)
        def wrapper(*args, **kwargs):
            cache_key = key(*args, **kwargs) if key else (args, tuple(sorted(kwargs.items())))
            if cache_key in cache:
                return cache[cache_key]

            result = func(*args, **kwargs)
            cache[cache_key] = result
            if len(cache) > max_size:
                cache.popitem(last=False)
            return result

        wrapper.cache_clear = cache.clear
        wrapper.cache_size = lambda: len(cache)
        return wrapper

    if fn is not None:
        return decorator(fn)
    return decorator


class PerformanceMonitor:
    """Named wall-clock timings, logged through structlog."""

    def __init__(self, clock: Callable[[], float] = time.perf_counter):
        self._clock = clock
        self._marks: Dict[str, float] = {}

    def start(self, label: str) -> None:
        self._marks[label] = self._clock()

    def end(self, label: str, level: str = 'debug') -> float:
        """
        Stop timing ``label`` and log the elapsed milliseconds.

        Returns 0.0 (and logs a warning) if ``label`` was never started.
        """
        started = self._marks.pop(label, None)
        if started is None:
            logger.warning("performance_mark_not_found", label=label)
            return 0.0

        duration_ms = (self._clock() - started) * 1000.0
        getattr(logger, level)("performance_timing", label=label, duration_ms=round(duration_ms, 2))
        return duration_ms

    def clear(self) -> None:
        self._marks.clear()
