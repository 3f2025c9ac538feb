"""
Training scheduler — ticks the learning step on a wall-clock interval.

The interval comes from a speed slider (0 = slowest, 100 = fastest):

    delay_ms = max(min_delay, max_delay − speed × (max_delay − min_delay) / 100)

so speed 0 gives 1000 ms and speed 100 gives 20 ms.

Ticking is built on one-shot threading.Timer objects. Each tick runs the
callback and then arms the next timer, re-reading the delay so a speed change
applies from the next tick on. All arming, cancelling and ticking happens
under one lock, shared with the simulation, and every timer carries the
generation it was armed in: a timer that fires after cancel() or a re-arm
sees a stale generation and does nothing. Once cancel() returns no further
callback runs.

A callback that raises is logged and ticking carries on.
"""

from __future__ import annotations

import logging
import math
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)

MIN_SPEED = 0.0
MAX_SPEED = 100.0
MIN_DELAY_MS = 20.0
MAX_DELAY_MS = 1000.0


def clamp_speed(value: float) -> float:
    """Clamp a speed value into [0, 100]; NaN becomes 0."""
    if math.isnan(value):
        return MIN_SPEED
    return min(MAX_SPEED, max(MIN_SPEED, float(value)))


def step_delay_ms(speed: float,
                  min_delay: float = MIN_DELAY_MS,
                  max_delay: float = MAX_DELAY_MS) -> float:
    """Milliseconds between ticks for a given speed."""
    speed = clamp_speed(speed)
    span = max_delay - min_delay
    return max(min_delay, max_delay - speed * span / MAX_SPEED)


class TrainingScheduler:
    """
    Re-armable periodic timer.

    Parameters
    ----------
    callback : Callable[[], None]
        Called once per tick, with the lock held.
    delay_fn : Callable[[], float]
        Returns the current delay in milliseconds; read every time a timer
        is armed, never cached.
    lock : Optional[threading.RLock]
        Lock guarding the ticked state. Pass the owner's lock so control
        operations and ticks never interleave.
    """

    def __init__(self, callback: Callable[[], None],
                 delay_fn: Callable[[], float],
                 lock: Optional[threading.RLock] = None):
        self._callback = callback
        self._delay_fn = delay_fn
        self._lock = lock or threading.RLock()
        self._timer: Optional[threading.Timer] = None
        self._generation = 0
        self._running = False
        self.ticks = 0

    @property
    def running(self) -> bool:
        return self._running

    def arm(self) -> None:
        """Start ticking, replacing any pending timer."""
        with self._lock:
            self._discard_timer()
            self._running = True
            self._start_timer()

    def cancel(self) -> None:
        """Stop ticking. No callback runs after this returns."""
        with self._lock:
            if self._running:
                logger.debug("scheduler cancelled after %d ticks", self.ticks)
            self._running = False
            self._discard_timer()

    def _discard_timer(self) -> None:
        self._generation += 1
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _start_timer(self) -> None:
        delay = self._delay_fn()
        generation = self._generation
        self._timer = threading.Timer(delay / 1000.0, self._fire,
                                      args=(generation,))
        self._timer.daemon = True
        self._timer.start()
        logger.debug("scheduler armed: %.0f ms (generation %d)",
                     delay, generation)

    def _fire(self, generation: int) -> None:
        with self._lock:
            if not self._running or generation != self._generation:
                return
            self._timer = None
            self.ticks += 1
            try:
                self._callback()
            except Exception:
                logger.exception("scheduler tick %d failed", self.ticks)
            finally:
                # The callback may have paused or re-armed us.
                if self._running and generation == self._generation:
                    self._start_timer()
