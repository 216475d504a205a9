# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# metrics.py
# -----------------------------------------------------------------------------
# Purpose:
#   Caller-owned accumulators used as simulate() callbacks: time averages,
#   network-wide KPIs and recorded trajectories, plus closed-form reference
#   means for single-server queues.
#
# Design notes:
#   - simulate() calls a callback with the state *before* the event at time t
#     is applied, i.e. the level that held since the previous event. Each
#     call therefore closes one rectangle of the time integral.
#   - The state after the last processed event is not seen by any callback;
#     pass it to mean()/summary() together with the horizon to close the tail.
#   - Summaries return JSON-serialisable dicts for easy tabulation.
#
# Usage:
#   stats = NetworkStats()
#   simulate(state, initial_arrival(state), max_time=T, callback=stats)
#   stats.summary(until=T, state=state)
# -----------------------------------------------------------------------------

from __future__ import annotations
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

class TimeAverage:
    """Time-weighted integral of extract(state) over [start, now]."""
    def __init__(self, extract: Callable[[Any], float], start: float = 0.0):
        self.extract = extract
        self.start = start
        self.last_time = start
        self.integral = 0.0

    def _active(self, time: float) -> bool:
        """Observations before `start` (warm-up) are ignored."""
        return time >= self.start

    def __call__(self, time: float, state: Any):
        if not self._active(time):
            return
        self.integral += self.extract(state) * (time - self.last_time)
        self.last_time = time

    def mean(self, until: Optional[float] = None, state: Any = None) -> float:
        """
        Time average over [start, until].

        With `state`, its current level is assumed to hold from the last
        observation up to `until`; without it the average stops at the last
        observation.
        """
        total = self.integral
        end = self.last_time
        if until is not None:
            if state is not None and until > self.last_time:
                total += self.extract(state) * (until - self.last_time)
            end = until if state is not None else min(until, self.last_time)
        span = end - self.start
        return total / span if span > 0 else 0.0


class NetworkStats:
    """
    Accumulates the KPIs of a DiscreteState run: mean jobs in system, mean
    moving ("orbiting") jobs, per-server mean queue length and event count.
    """
    def __init__(self, start: float = 0.0):
        self.start = start
        self.events = 0
        self.in_system = TimeAverage(lambda s: s.jobs_in_system, start)
        self.moving = TimeAverage(lambda s: s.moving_jobs_num, start)
        self._queue_integrals: List[float] = []
        self._last_time = start

    def __call__(self, time: float, state: Any):
        if time < self.start:
            return
        self.events += 1
        self.in_system(time, state)
        self.moving(time, state)
        self._add_queues(time, state)

    def _add_queues(self, time: float, state: Any):
        dt = time - self._last_time
        lengths = state.queue_lengths()
        if not self._queue_integrals:
            self._queue_integrals = [0.0] * len(lengths)
        for i, n in enumerate(lengths):
            self._queue_integrals[i] += n * dt
        self._last_time = time

    def summary(self, until: float, state: Any = None) -> Dict[str, Any]:
        if state is not None and until > self._last_time:
            self._add_queues(until, state)
        mean_jobs = self.in_system.mean(until, state)
        mean_moving = self.moving.mean(until, state)
        span = until - self.start
        result = {
            "time": until,
            "events": self.events,
            "mean_jobs_in_system": mean_jobs,
            "mean_moving_jobs": mean_moving,
            # share of the population that is in transit between servers
            "orbit_ratio": mean_moving / mean_jobs if mean_jobs > 0 else 0.0,
            "mean_queue_lengths": [q / span if span > 0 else 0.0 for q in self._queue_integrals],
        }
        if state is not None:
            result.update({
                "arrivals": state.arrivals,
                "departures": state.left_jobs_num,
                "jobs_in_system": state.jobs_in_system,
                "moving_jobs": state.moving_jobs_num,
                "served_by_server": [s.served_count for s in state.servers],
                "rejected_by_server": [s.rejected_count for s in state.servers],
            })
        return result


class Trajectory:
    """Piecewise-constant path of extract(state).

    times[i] is when values[i] started to hold; the callback reconstructs it
    from the pre-event level it is handed.
    """
    def __init__(self, extract: Callable[[Any], float], start: float = 0.0):
        self.extract = extract
        self.times: List[float] = []
        self.values: List[float] = []
        self._since = start

    def __call__(self, time: float, state: Any):
        self.times.append(self._since)
        self.values.append(self.extract(state))
        self._since = time

def stitch_steps(times: Sequence[float], values: Sequence[float]) -> Tuple[List[float], List[float]]:
    """
    Expand jump epochs into step-plot coordinates: every jump appears twice,
    once with the old level and once with the new one.
    """
    if len(times) != len(values):
        raise ValueError("times and values must have the same length")
    if not times:
        return [], []
    xs, ys = [times[0]], [values[0]]
    for i in range(1, len(times)):
        xs.append(times[i]); ys.append(values[i - 1])
        xs.append(times[i]); ys.append(values[i])
    return xs, ys


def md1_mean_queue_length(lam: float, mu: float) -> float:
    """Mean number in system of a stable M/D/1 queue."""
    rho = lam / mu
    if not 0 <= rho < 1:
        raise ValueError(f"M/D/1 is unstable for rho={rho}")
    return rho / (1 - rho) * (2 - rho) / 2

def mm1_mean_queue_length(lam: float, mu: float) -> float:
    """Mean number in system of a stable M/M/1 queue."""
    rho = lam / mu
    if not 0 <= rho < 1:
        raise ValueError(f"M/M/1 is unstable for rho={rho}")
    return rho / (1 - rho)
