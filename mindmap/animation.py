"""Time-scheduled interpolation driven by a cooperative frame loop.

The shell calls `Animator.tick()` once per frame. Each key (a node, a link,
the camera) has at most one transition in flight; starting another one for
the same key supersedes it and continues from the value it had reached.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Dict, Hashable, List, Optional, Tuple

Values = Tuple[float, ...]
Easing = Callable[[float], float]


def ease_linear(t: float) -> float:
    return t


def ease_cubic_in_out(t: float) -> float:
    t *= 2
    if t <= 1:
        return t * t * t / 2
    t -= 2
    return (t * t * t + 2) / 2


def ease_cubic_out(t: float) -> float:
    t -= 1
    return t * t * t + 1


def lerp(start: Values, end: Values, t: float) -> Values:
    return tuple(a + (b - a) * t for a, b in zip(start, end))


@dataclass
class Transition:
    start: Values
    end: Values
    started_at: float
    duration: float
    easing: Easing = ease_cubic_in_out
    on_done: Optional[Callable[[], None]] = None

    def progress(self, now: float) -> float:
        if self.duration <= 0:
            return 1.0
        return max(0.0, min(1.0, (now - self.started_at) / self.duration))

    def value_at(self, now: float) -> Values:
        p = self.progress(now)
        if p >= 1.0:
            return self.end
        return lerp(self.start, self.end, self.easing(p))

    def done(self, now: float) -> bool:
        return self.progress(now) >= 1.0


class Animator:
    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._active: Dict[Hashable, Transition] = {}

    def start(
        self,
        key: Hashable,
        start: Values,
        end: Values,
        duration_ms: float,
        easing: Easing = ease_cubic_in_out,
        on_done: Optional[Callable[[], None]] = None,
    ) -> Transition:
        now = self._clock()
        current = self._active.get(key)
        if current is not None and len(current.start) == len(start):
            start = current.value_at(now)
        transition = Transition(tuple(start), tuple(end), now, duration_ms / 1000.0, easing, on_done)
        self._active[key] = transition
        return transition

    def value(self, key: Hashable) -> Optional[Values]:
        transition = self._active.get(key)
        if transition is None:
            return None
        return transition.value_at(self._clock())

    def cancel(self, key: Hashable) -> None:
        self._active.pop(key, None)

    @property
    def busy(self) -> bool:
        return bool(self._active)

    def tick(self) -> Dict[Hashable, Values]:
        """Current value of every running transition; finished ones are retired."""
        now = self._clock()
        values: Dict[Hashable, Values] = {}
        finished: List[Tuple[Hashable, Transition]] = []
        for key, transition in self._active.items():
            values[key] = transition.value_at(now)
            if transition.done(now):
                finished.append((key, transition))
        for key, transition in finished:
            if self._active.get(key) is transition:
                del self._active[key]
            if transition.on_done is not None:
                transition.on_done()
        return values
