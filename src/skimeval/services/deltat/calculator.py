"""Schedule adaptation time ("delta T") calculators.

A departure is compared against a target interval of a schedule that repeats
daily, so every raw delta is folded into (-12h, +12h] before use. Both
policies return absolute values and at most one of early/late is non-zero for
the same arguments. Implementations keep no state and are safe to share
between worker threads.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod

SECONDS_PER_DAY = 24 * 3600
HALF_DAY = 12 * 3600


def normalize_delta_t(delta_t: float) -> float:
    if not math.isfinite(delta_t):
        raise ValueError(f"Cannot normalize non-finite delta T {delta_t}.")
    delta_t = math.fmod(delta_t, SECONDS_PER_DAY)
    if delta_t > HALF_DAY:
        delta_t -= SECONDS_PER_DAY
    elif delta_t <= -HALF_DAY:
        delta_t += SECONDS_PER_DAY
    return delta_t


class DeltaTCalculator(ABC):
    """Contract for adaptation time policies."""

    @abstractmethod
    def calculate_delta_t_early(self, departure_time: float, interval_start: float, interval_end: float) -> float:
        raise NotImplementedError

    @abstractmethod
    def calculate_delta_t_late(self, departure_time: float, interval_start: float, interval_end: float) -> float:
        raise NotImplementedError

    def normalize_delta_t(self, delta_t: float) -> float:
        return normalize_delta_t(delta_t)

    def adaptation_time(self, departure_time: float, interval_start: float, interval_end: float) -> float:
        # one of both is zero
        return self.calculate_delta_t_early(departure_time, interval_start, interval_end) + self.calculate_delta_t_late(
            departure_time, interval_start, interval_end
        )


class IntervalBoundaries(DeltaTCalculator):
    """Measure early adaptation against the interval start and late adaptation against its end."""

    def calculate_delta_t_early(self, departure_time: float, interval_start: float, interval_end: float) -> float:
        delta = self.normalize_delta_t(departure_time - interval_start)
        return -delta if delta < 0 else 0.0

    def calculate_delta_t_late(self, departure_time: float, interval_start: float, interval_end: float) -> float:
        delta = self.normalize_delta_t(departure_time - interval_end)
        return delta if delta > 0 else 0.0


class IntervalCenter(DeltaTCalculator):
    """Measure both adaptation times against the interval midpoint."""

    def calculate_delta_t_early(self, departure_time: float, interval_start: float, interval_end: float) -> float:
        center = (interval_start + interval_end) / 2
        delta = self.normalize_delta_t(departure_time - center)
        return -delta if delta < 0 else 0.0

    def calculate_delta_t_late(self, departure_time: float, interval_start: float, interval_end: float) -> float:
        center = (interval_start + interval_end) / 2
        delta = self.normalize_delta_t(departure_time - center)
        return delta if delta > 0 else 0.0
