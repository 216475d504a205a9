# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# md1.py
# -----------------------------------------------------------------------------
# Purpose:
#   Trivial single-queue reference model: Poisson arrivals (rate lam),
#   deterministic service (1 / mu), one server, unbounded queue. Used to check
#   the engine against the closed-form M/D/1 mean number in system.
#
# Design notes:
#   - Rates live on the state, not in module globals, so several runs can
#     coexist in one process.
#
# Usage:
#   state = QueueState(lam=1.8, mu=2.0, seed=0)
#   stats = TimeAverage(lambda s: s.number_in_system)
#   simulate(state, next_arrival(state), max_time=1e6, callback=stats)
# -----------------------------------------------------------------------------

from __future__ import annotations
import random
from typing import List, Optional

from .errors import ConfigurationError, InvariantViolation
from .queues import Event, State, TimedEvent
from .sampling import sample_delay

class QueueState(State):
    """number_in_system >= 1 means the server is busy, 0 means idle."""
    def __init__(self, lam: float, mu: float, seed: Optional[int] = None,
                 rng: Optional[random.Random] = None):
        if not lam > 0 or not mu > 0:
            raise ConfigurationError(f"lam and mu must be > 0, got lam={lam}, mu={mu}")
        self.lam = lam
        self.mu = mu
        self.rng = rng if rng is not None else random.Random(seed)
        self.number_in_system = 0

    def __repr__(self):
        return f"QueueState(number_in_system={self.number_in_system})"

    def snapshot(self) -> int:
        return self.number_in_system

def _queue_state(state: State) -> QueueState:
    if not isinstance(state, QueueState):
        raise InvariantViolation(f"M/D/1 event applied to {type(state).__name__}")
    return state

class ArrivalEvent(Event):
    __slots__ = ()
    def __repr__(self):
        return "md1.ArrivalEvent()"

    def process(self, time: float, state: State) -> List[TimedEvent]:
        state = _queue_state(state)
        state.number_in_system += 1
        new_events = [next_arrival(state, time)]
        # Only job in the system: service starts now
        if state.number_in_system == 1:
            new_events.append(TimedEvent(time + 1.0 / state.mu, EndOfServiceEvent()))
        return new_events

class EndOfServiceEvent(Event):
    __slots__ = ()
    def __repr__(self):
        return "md1.EndOfServiceEvent()"

    def process(self, time: float, state: State) -> List[TimedEvent]:
        state = _queue_state(state)
        state.number_in_system -= 1
        if state.number_in_system < 0:
            raise InvariantViolation("number_in_system went negative")
        if state.number_in_system >= 1:
            return [TimedEvent(time + 1.0 / state.mu, EndOfServiceEvent())]
        return []

def next_arrival(state: QueueState, time: float = 0.0) -> TimedEvent:
    """Next Poisson arrival after `time` (exponential = gamma with SCV 1)."""
    return TimedEvent(time + sample_delay(state.lam, 1.0, state.rng), ArrivalEvent())
