# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# simulation.py
# -----------------------------------------------------------------------------
# Purpose:
#   Simulate a single replication of a configured network: build the state,
#   schedule the first arrival, run the event loop and return the KPIs.
#
# Design notes:
#   - Replications / parameter sweeps are left to the caller; each call owns
#     a fresh DiscreteState and its own seeded rng.
#
# Usage:
#   from qnet.simulation import run_network
#   results = run_network(cfg)
# -----------------------------------------------------------------------------

from __future__ import annotations
import logging
from typing import Dict, Optional

from .arrivals import initial_arrival
from .config import network_params_from_config, sim_settings
from .errors import QnetError
from .metrics import NetworkStats
from .network import DiscreteState
from .queues import simulate

logger = logging.getLogger(__name__)

def run_network(cfg: Dict, lam: Optional[float] = None) -> Dict:
    """
    Run one replication of `cfg` and return NetworkStats.summary().

    `lam` replaces the configured external arrival rate, which is how a
    caller sweeps load over a fixed topology. Logged records (if the config
    asks for log_times) are returned under "log".
    """
    params = network_params_from_config(cfg)
    if lam is not None:
        params = params.with_arrival_rate(lam)
    sim = sim_settings(cfg)

    state = DiscreteState(params, seed=sim["seed"], is_debug=bool(sim["debug"]))
    stats = NetworkStats()
    logger.info("running L=%d network, lam=%s, seed=%s", params.L, params.lam, sim["seed"])
    try:
        records = simulate(state, initial_arrival(state),
                           max_time=sim["max_time"],
                           log_times=sim["log_times"],
                           callback=stats)
    except QnetError:
        logger.exception("simulation aborted at %d processed events", stats.events)
        raise

    # same stop time simulate() used
    horizon = max(t for t in (sim["max_time"], *sim["log_times"]) if t is not None)
    results = stats.summary(until=horizon, state=state)
    results["log"] = [
        {"time": t, "jobs_in_system": snap["jobs_in_system"],
         "moving_jobs": snap["moving_jobs_num"],
         "queue_lengths": [len(s.buffer) for s in snap["servers"]]}
        for t, snap in records
    ]
    return results
