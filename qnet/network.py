# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# network.py
# -----------------------------------------------------------------------------
# Purpose:
#   The overflow/move network model: DiscreteState plus the events that move
#   jobs between servers (Served, Move, Overflow, Leave) and the admission
#   rule add_job(). External arrivals live in arrivals.py.
#
# Design notes:
#   - jobs_in_system counts every job that has arrived and not left, moving
#     jobs included; jobs_in_buffers() excludes the moving ones.
#   - Every delay is drawn from the state's own rng, in the order events are
#     processed, so identical seeds give identical runs.
#   - Transfers (move after service, overflow on a full buffer) take a
#     gamma(eta, gamma_scv) delay; while in flight the job counts as moving.
#
# Usage:
#   state = DiscreteState(params, seed=0)
#   simulate(state, initial_arrival(state), max_time=20.0)
# -----------------------------------------------------------------------------

from __future__ import annotations
import copy, logging, random
from typing import Any, Dict, List, Optional

from .entities import Job
from .errors import InvariantViolation
from .params import NetworkParameters
from .queues import Event, State, TimedEvent
from .sampling import Leave, sample_delay, sample_destination
from .stations import Server, make_servers

logger = logging.getLogger(__name__)

class DiscreteState(State):
    """State of one network run: servers, job counters and the run's rng.

    Parameters
    ----------
    params : NetworkParameters
        Shared and read-only for the whole run.
    seed : int, optional
        Seed for a fresh random.Random; ignored when `rng` is given.
    rng : random.Random, optional
        Random source to draw every delay and routing decision from.
    is_debug : bool
        Log every processed event at DEBUG level.
    """
    def __init__(self, params: NetworkParameters, seed: Optional[int] = None,
                 rng: Optional[random.Random] = None, is_debug: bool = False):
        self.params = params
        self.servers: List[Server] = make_servers(params)
        self.rng = rng if rng is not None else random.Random(seed)
        self.is_debug = is_debug
        self.jobs_in_system = 0
        self.moving_jobs_num = 0
        self.last_job = 1                 # id carried by the next arrival
        self.arrivals = 0
        self.left_jobs_num = 0

    def __repr__(self):
        return (f"DiscreteState(jobs_in_system={self.jobs_in_system}, "
                f"moving={self.moving_jobs_num}, servers={self.servers})")

    def jobs_in_buffers(self) -> int:
        return self.jobs_in_system - self.moving_jobs_num

    def queue_lengths(self) -> List[int]:
        return [len(s.buffer) for s in self.servers]

    def leave(self, job: Job):
        """Record a job's departure from the system."""
        self.jobs_in_system -= 1
        if self.jobs_in_system < 0:
            raise InvariantViolation(f"jobs_in_system went negative when job {job.unique_id} left")
        self.left_jobs_num += 1
        if self.is_debug:
            logger.debug("job %d left the system", job.unique_id)

    def start_transfer(self):
        self.moving_jobs_num += 1

    def end_transfer(self):
        self.moving_jobs_num -= 1
        if self.moving_jobs_num < 0:
            raise InvariantViolation("moving_jobs_num went negative")

    def copy_state_items(self) -> Dict[str, Any]:
        """Everything that changes during a run; params are left out."""
        return {
            "servers": copy.deepcopy(self.servers),
            "jobs_in_system": self.jobs_in_system,
            "moving_jobs_num": self.moving_jobs_num,
            "arrivals": self.arrivals,
            "left_jobs_num": self.left_jobs_num,
            "last_job": self.last_job,
        }

    def snapshot(self) -> Dict[str, Any]:
        return self.copy_state_items()


def network_state(state: State) -> DiscreteState:
    if not isinstance(state, DiscreteState):
        raise InvariantViolation(f"network event applied to {type(state).__name__}")
    return state


# ---- timing ----------------------------------------------------------------

def served_at(time: float, state: DiscreteState, server: Server) -> TimedEvent:
    """Completion of the job now at the head of `server`."""
    delay = sample_delay(server.service_rate, state.params.gamma_scv, state.rng)
    return TimedEvent(time + delay, ServedEvent(server))

def transfer_at(time: float, state: DiscreteState, event: "TransferEvent") -> TimedEvent:
    delay = sample_delay(state.params.eta, state.params.gamma_scv, state.rng)
    return TimedEvent(time + delay, event)


# ---- routing ---------------------------------------------------------------

def transfer_from(time: float, state: DiscreteState, server: Server, job: Job,
                  is_overflow: bool) -> Optional[TimedEvent]:
    """
    Route `job` away from `server` by its overflow or move row.

    Returns the scheduled Overflow/Move event, or None when the job leaves.
    """
    if is_overflow:
        route = sample_destination(server.overflow_weights, state.rng, server.overflow_total)
    else:
        route = sample_destination(server.move_weights, state.rng, server.move_total)
    if isinstance(route, Leave):
        state.leave(job)
        return None
    dest = state.servers[route.index]
    state.start_transfer()
    event = OverflowEvent(dest, job) if is_overflow else MoveEvent(dest, job)
    return transfer_at(time, state, event)

def add_job(time: float, state: DiscreteState, server: Server, job: Job) -> Optional[TimedEvent]:
    """
    Offer `job` to `server`.

    Full buffer: the job overflows (OverflowEvent, or leaves -> None).
    Idle server: the job starts service (ServedEvent).
    Otherwise the job waits in the buffer (None).
    """
    if server.is_full():
        server.rejected_count += 1
        return transfer_from(time, state, server, job, is_overflow=True)
    if server.enqueue(job):
        return served_at(time, state, server)
    return None


# ---- events ----------------------------------------------------------------

class ServedEvent(Event):
    """`server` finished serving the job at the head of its buffer."""
    __slots__ = ("server",)
    def __init__(self, server: Server):
        self.server = server
    def __repr__(self):
        return f"ServedEvent(server={self.server.id})"

    def process(self, time: float, state: State) -> List[TimedEvent]:
        state = network_state(state)
        server = self.server
        job = server.dequeue()
        new_events: List[TimedEvent] = []
        if not server.is_idle():
            new_events.append(served_at(time, state, server))
        nxt = transfer_from(time, state, server, job, is_overflow=False)
        if nxt is not None:
            new_events.append(nxt)
        return new_events

class TransferEvent(Event):
    """A job in flight to `transfer_to`; it tries to join on arrival."""
    __slots__ = ("transfer_to", "job")
    def __init__(self, transfer_to: Server, job: Job):
        self.transfer_to = transfer_to; self.job = job
    def __repr__(self):
        return f"{type(self).__name__}(to={self.transfer_to.id}, job={self.job.unique_id})"

    def process(self, time: float, state: State) -> List[TimedEvent]:
        state = network_state(state)
        state.end_transfer()
        nxt = add_job(time, state, self.transfer_to, self.job)
        return [nxt] if nxt is not None else []

class MoveEvent(TransferEvent):
    """Transfer after a completed service."""
    __slots__ = ()

class OverflowEvent(TransferEvent):
    """Transfer after being rejected by a full buffer."""
    __slots__ = ()

class LeaveEvent(Event):
    """Terminal: the job departs; nothing further is scheduled."""
    __slots__ = ("job",)
    def __init__(self, job: Job):
        self.job = job
    def __repr__(self):
        return f"LeaveEvent(job={self.job.unique_id})"

    def process(self, time: float, state: State) -> List[TimedEvent]:
        network_state(state).leave(self.job)
        return []
