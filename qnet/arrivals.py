# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# arrivals.py
# -----------------------------------------------------------------------------
# Purpose:
#   Exogenous arrivals into the network. Each ArrivalEvent brings one new Job,
#   books the next arrival and offers the job to a server drawn from p_e.
#
# Design notes:
#   - Arrivals form a renewal process with gamma(lam, gamma_scv)
#     inter-arrival times; gamma_scv = 1 gives a Poisson stream.
#   - Only one arrival is pending at any time, so the FEL stays small even
#     for long horizons.
#
# Usage:
#   simulate(state, initial_arrival(state), max_time=T)
# -----------------------------------------------------------------------------

from __future__ import annotations
from typing import List

from .entities import Job
from .network import DiscreteState, add_job, network_state
from .queues import Event, State, TimedEvent
from .sampling import sample_delay, sample_entry

class ArrivalEvent(Event):
    """External arrival of `job`."""
    __slots__ = ("job",)
    def __init__(self, job: Job):
        self.job = job
    def __repr__(self):
        return f"ArrivalEvent(job={self.job.unique_id})"

    def process(self, time: float, state: State) -> List[TimedEvent]:
        state = network_state(state)
        state.jobs_in_system += 1
        state.arrivals += 1
        state.last_job += 1
        new_events = [next_arrival(time, state)]

        # p_e was checked to sum to 1 when the parameters were built
        target = state.servers[sample_entry(state.params.p_e, state.rng, total=1.0)]
        nxt = add_job(time, state, target, self.job)
        if nxt is not None:
            new_events.append(nxt)
        return new_events

def next_arrival(time: float, state: DiscreteState) -> TimedEvent:
    """Book the arrival of job `state.last_job` one inter-arrival time after `time`."""
    delay = sample_delay(state.params.lam, state.params.gamma_scv, state.rng)
    return TimedEvent(time + delay, ArrivalEvent(Job(state.last_job)))

def initial_arrival(state: DiscreteState, time: float = 0.0) -> TimedEvent:
    """First arrival of a run, one inter-arrival time after `time`."""
    return next_arrival(time, state)
