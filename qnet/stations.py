# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# stations.py
# -----------------------------------------------------------------------------
# Purpose:
#   Server: a single FIFO server whose buffer head is the job in service,
#   with an optional capacity and its own overflow/move routing rows.
#   make_servers() wires one Server per row of NetworkParameters.
#
# Design notes:
#   - Capacity counts the job in service: a server is full when
#     len(buffer) >= max_buffer_size. Capacity 0 rejects every job.
#   - max_buffer_size None = unbounded (K == -1 in the parameters).
#   - Servers never schedule events themselves; network.py decides what a
#     completed service or a rejected job turns into.
#
# Usage:
#   from qnet.stations import make_servers
#   servers = make_servers(params)
# -----------------------------------------------------------------------------

from __future__ import annotations
from collections import deque
from typing import Deque, List, Optional, Tuple

from .entities import Job
from .errors import InvariantViolation
from .params import UNBOUNDED, NetworkParameters
from .sampling import check_sub_distribution

class Server:
    """Single FIFO server with a finite or unbounded buffer.

    Parameters
    ----------
    id : int
        0-based index of the server in the network.
    max_buffer_size : int or None
        Maximum number of jobs held (including the one in service);
        None for an unbounded buffer.
    overflow_weights, move_weights : tuple[float, ...]
        Routing sub-distributions over all servers; the remainder is "leave".
    service_rate : float
        Mean service rate (1 / mean service time).
    """
    def __init__(self, id: int, max_buffer_size: Optional[int],
                 overflow_weights: Tuple[float, ...], move_weights: Tuple[float, ...],
                 service_rate: float):
        self.id = id
        self.buffer: Deque[Job] = deque()
        self.max_buffer_size = max_buffer_size
        self.overflow_weights = tuple(overflow_weights)
        self.move_weights = tuple(move_weights)
        # rows are checked once here so routing draws can skip the check
        self.overflow_total = check_sub_distribution(self.overflow_weights, f"overflow row {id}")
        self.move_total = check_sub_distribution(self.move_weights, f"move row {id}")
        self.service_rate = service_rate
        self.served_count = 0
        self.rejected_count = 0

    def __repr__(self):
        cap = "inf" if self.max_buffer_size is None else self.max_buffer_size
        return f"Server(id={self.id}, jobs={len(self.buffer)}/{cap})"

    def __len__(self) -> int:
        return len(self.buffer)

    def is_full(self) -> bool:
        return self.max_buffer_size is not None and len(self.buffer) >= self.max_buffer_size

    def is_idle(self) -> bool:
        return not self.buffer

    @property
    def in_service(self) -> Optional[Job]:
        return self.buffer[0] if self.buffer else None

    def enqueue(self, job: Job) -> bool:
        """Append job; return True if the server was idle and is now busy."""
        if self.is_full():
            raise InvariantViolation(f"enqueue on full {self!r}")
        was_idle = not self.buffer
        self.buffer.append(job)
        return was_idle

    def dequeue(self) -> Job:
        """Remove and return the job that just finished service."""
        if not self.buffer:
            raise InvariantViolation(f"service completion on idle {self!r}")
        self.served_count += 1
        return self.buffer.popleft()

def make_servers(params: NetworkParameters) -> List[Server]:
    """
    Create the servers described by `params`.

    Server i takes capacity K[i], overflow row Q[i], move row P[i] and service
    rate mu_vector[i].
    """
    return [
        Server(
            i,
            None if params.K[i] == UNBOUNDED else params.K[i],
            params.Q[i],
            params.P[i],
            params.mu_vector[i],
        )
        for i in range(params.L)
    ]
