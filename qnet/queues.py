# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# queues.py
# -----------------------------------------------------------------------------
# Purpose:
#   Minimal discrete-event primitives: TimedEvent, the Future Event List
#   (EventQueue), the Event/State extension points and the simulate() driver.
#
# Design notes:
#   - Models plug in by subclassing Event and implementing process(t, state);
#     simulate() never looks at event kinds itself.
#   - Equal timestamps pop in insertion order (sequence number tie-break) so
#     runs are reproducible.
#   - The optional callback sees the state *before* the popped event is
#     applied, which makes left-Riemann time integrals exact.
#
# Usage:
#   from qnet.queues import TimedEvent, simulate
#   records = simulate(state, TimedEvent(0.0, first_event), max_time=100.0)
# -----------------------------------------------------------------------------

from __future__ import annotations
import copy, heapq, itertools, logging, math
from typing import Any, Callable, Iterable, List, Optional, Sequence, Tuple, Union

from .errors import ConfigurationError, InvariantViolation

logger = logging.getLogger(__name__)

# Shared across queues so TimedEvents built before push() still order stably
_seq = itertools.count()

class TimedEvent:
    """An event paired with the simulated time it is due at."""
    __slots__ = ("time", "event", "seq")
    def __init__(self, time: float, event: "Event"):
        self.time = time; self.event = event; self.seq = next(_seq)
    def __lt__(self, other: "TimedEvent"):
        return (self.time, self.seq) < (other.time, other.seq)
    def __repr__(self):
        return f"TimedEvent({self.time!r}, {self.event!r})"

class EventQueue:
    """Future Event List: binary min-heap of TimedEvents keyed by time."""
    def __init__(self):
        self._heap: List[TimedEvent] = []

    def push(self, timed_event: TimedEvent):
        heapq.heappush(self._heap, timed_event)

    def pop_min(self) -> Optional[TimedEvent]:
        if not self._heap:
            return None
        return heapq.heappop(self._heap)

    def peek_min_time(self) -> Optional[float]:
        return self._heap[0].time if self._heap else None

    def __len__(self) -> int:
        return len(self._heap)

    def __bool__(self) -> bool:
        return bool(self._heap)


class State:
    """Mutable simulation-wide data. Subclasses hold the model's counters."""
    is_debug: bool = False

    def snapshot(self) -> Any:
        """Copy recorded at log times; override to keep only what matters."""
        return copy.deepcopy(self)

class Event:
    """Base class for model events.

    process() applies the event to `state` at `time` and returns the newly
    scheduled events (possibly none).
    """
    def process(self, time: float, state: State) -> List[TimedEvent]:
        raise NotImplementedError

def process_event(time: float, state: State, event: Event) -> List[TimedEvent]:
    """Dispatch point used by simulate(); delegates to the event's own rule."""
    return event.process(time, state)


def _stop_time(max_time: Optional[float], log_times: Sequence[float]) -> float:
    if max_time is not None and (not math.isfinite(max_time) or max_time <= 0.0):
        raise ConfigurationError(f"max_time must be finite and > 0, got {max_time}")
    if any(b < a for a, b in zip(log_times, log_times[1:])):
        raise ConfigurationError("log_times must be sorted in ascending order")
    if log_times and not all(math.isfinite(t) for t in log_times):
        raise ConfigurationError("log_times must be finite")
    bounds = []
    if max_time is not None:
        bounds.append(max_time)
    if log_times:
        bounds.append(log_times[-1])
    # No bound at all: run until the FEL drains
    return max(bounds) if bounds else math.inf

def simulate(state: State,
             initial_events: Union[TimedEvent, Iterable[TimedEvent]],
             max_time: Optional[float] = None,
             log_times: Optional[Sequence[float]] = None,
             callback: Optional[Callable[[float, State], None]] = None,
             ) -> List[Tuple[float, Any]]:
    """
    Run the event loop on `state` until the stop time is passed or no events
    remain.

    Parameters
    ----------
    state : State
        Mutated in place by event processing.
    initial_events : TimedEvent or iterable of TimedEvent
        Seed contents of the Future Event List.
    max_time : float, optional
        Events due after this time are not processed.
    log_times : sequence of float, optional
        Ascending times at which state.snapshot() is recorded. The snapshot
        for time t is the state just before any event due at or after t.
        When given, the run also continues until the last log time passes.
    callback : callable(time, state), optional
        Invoked once per processed event, before the event is applied.

    Returns
    -------
    list[tuple[float, Any]]
        (log_time, snapshot) records, one per entry of `log_times`.
    """
    log_times = list(log_times or [])
    stop = _stop_time(max_time, log_times)
    fel = EventQueue()
    if isinstance(initial_events, TimedEvent):
        initial_events = [initial_events]
    for te in initial_events:
        if not te.time >= 0.0:
            raise ConfigurationError(f"initial event time must be >= 0, got {te.time}")
        fel.push(te)

    records: List[Tuple[float, Any]] = []
    next_log = 0
    processed = 0
    logger.info("simulation started: %d initial event(s), stop time %s", len(fel), stop)

    while fel and fel.peek_min_time() <= stop:
        te = fel.pop_min()
        t = te.time
        # Record every log time reached by this event using the pre-event state
        while next_log < len(log_times) and log_times[next_log] <= t:
            records.append((log_times[next_log], state.snapshot()))
            logger.debug("logged state at t=%s (next event at %s)", log_times[next_log], t)
            next_log += 1
        if callback is not None:
            callback(t, state)
        if state.is_debug:
            logger.debug("t=%.6f processing %r", t, te.event)
        for new_te in process_event(t, state, te.event):
            if not new_te.time >= t:
                raise InvariantViolation(f"{new_te!r} scheduled before current time {t}")
            fel.push(new_te)
        processed += 1

    # Remaining log times the state is known to hold constant through
    horizon = fel.peek_min_time() if fel else math.inf
    while next_log < len(log_times) and log_times[next_log] <= horizon:
        records.append((log_times[next_log], state.snapshot()))
        next_log += 1

    logger.info("simulation finished: %d event(s) processed, %d pending", processed, len(fel))
    return records
