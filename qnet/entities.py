# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# entities.py
# -----------------------------------------------------------------------------
# Purpose:
#   Entity definitions for the network model. A Job is the unit of work that
#   arrives, queues, is served and moves between servers.
#
# Design notes:
#   - Jobs are immutable; only their location (buffer / moving / left) changes,
#     and that is tracked by the state, not by the job.
#   - unique_id is handed out by DiscreteState.last_job, so ids grow
#     monotonically within one run.
#
# Usage:
#   from qnet.entities import Job
# -----------------------------------------------------------------------------

from __future__ import annotations
from dataclasses import dataclass

@dataclass(frozen=True)
class Job:
    unique_id: int                   # assigned at arrival, never reused
