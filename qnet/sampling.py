# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# sampling.py
# -----------------------------------------------------------------------------
# Purpose:
#   Routing and timing samplers shared by every event of the network model:
#   weighted destination draws (with an implicit "leave" outcome) and
#   rate/SCV parameterised gamma delays.
#
# Design notes:
#   - Pure functions of (weights | rate, scv, rng) so decisions are easy to
#     test. All randomness comes from the caller's random.Random instance.
#   - A routing draw returns LEAVE or RouteTo(index); index is 0-based.
#   - One rng.choices call per routing decision keeps the random stream
#     aligned between identically seeded runs.
#
# Usage:
#   from qnet.sampling import sample_destination, sample_delay, LEAVE, RouteTo
# -----------------------------------------------------------------------------

from __future__ import annotations
import math, random
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple, Union

from .errors import ConfigurationError, SamplingError

# Slack allowed when checking that a row of probabilities sums to <= 1 / == 1
PROB_TOL = 1e-9


class Leave:
    """The job exits the system."""
    __slots__ = ()

    def __repr__(self):
        return "LEAVE"

LEAVE = Leave()

@dataclass(frozen=True)
class RouteTo:
    """The job is sent to the server at `index` (0-based)."""
    index: int

Route = Union[Leave, RouteTo]


def check_sub_distribution(weights: Sequence[float], what: str = "weights") -> float:
    """
    Validate a routing row and return its sum.

    Every entry must be finite and non-negative and the row must sum to at
    most 1 (up to PROB_TOL). Raises ConfigurationError otherwise.
    """
    total = 0.0
    for w in weights:
        if not math.isfinite(w) or w < 0.0:
            raise ConfigurationError(f"{what}: entries must be finite and >= 0, got {list(weights)}")
        total += w
    if total > 1.0 + PROB_TOL:
        raise ConfigurationError(f"{what}: probabilities sum to {total:.12g} > 1")
    return total

def sample_destination(weights: Sequence[float], rng: random.Random,
                       total: Optional[float] = None) -> Route:
    """
    Single categorical draw over N+1 outcomes: leave, or one of N servers.

    The leave outcome carries weight 1 - sum(weights). All-zero weights
    therefore always leave; weights summing to 1 never do.

    Pass `total` (the row sum) for a row validated beforehand; the row is
    then not re-checked.
    """
    if total is None:
        total = check_sub_distribution(weights)
    leave_weight = max(0.0, 1.0 - total)
    if total == 0.0:
        return LEAVE
    outcomes = range(len(weights) + 1)
    pick = rng.choices(outcomes, weights=[leave_weight, *weights], k=1)[0]
    return LEAVE if pick == 0 else RouteTo(pick - 1)

def sample_entry(weights: Sequence[float], rng: random.Random,
                 total: Optional[float] = None) -> int:
    """Draw the server index an external arrival enters at (no leave outcome)."""
    if total is None:
        total = check_sub_distribution(weights, "entry weights")
    if total <= 0.0:
        raise ConfigurationError("entry weights: at least one server must be reachable")
    return rng.choices(range(len(weights)), weights=weights, k=1)[0]


def rate_scv_gamma(rate: float, scv: float) -> Tuple[float, float]:
    """Return (shape, scale) of the gamma law with mean 1/rate and the given SCV."""
    if not math.isfinite(rate) or rate <= 0.0:
        raise SamplingError(f"rate must be finite and > 0, got {rate}")
    if not math.isfinite(scv) or scv <= 0.0:
        raise SamplingError(f"scv must be finite and > 0 for a gamma law, got {scv}")
    return 1.0 / scv, scv / rate

def sample_delay(rate: float, scv: float, rng: random.Random) -> float:
    """
    Draw a strictly positive delay with mean 1/rate and squared coefficient
    of variation `scv`.

    scv == 0 is the deterministic limit and returns exactly 1/rate.
    """
    if not math.isfinite(scv) or scv < 0.0:
        raise SamplingError(f"scv must be finite and >= 0, got {scv}")
    if scv == 0.0:
        if not math.isfinite(rate) or rate <= 0.0:
            raise SamplingError(f"rate must be finite and > 0, got {rate}")
        return 1.0 / rate
    shape, scale = rate_scv_gamma(rate, scv)
    while True:
        delay = rng.gammavariate(shape, scale)
        if delay > 0.0:
            return delay
        # small shapes can underflow to exactly 0.0; redraw
