# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# config.py
# -----------------------------------------------------------------------------
# Purpose:
#   Load run configurations from YAML and turn their `network:` section into
#   validated NetworkParameters.
#
# Design notes:
#   - A config has two sections:
#       network: L, gamma_scv, lam, eta, mu_vector, P, Q, p_e, K
#       sim:     max_time, seed, log_times (optional), debug (optional)
#   - Overrides are merged recursively on top of a base config so a variant
#     only needs to spell out what differs.
#
# Usage:
#   cfg = load_config("config/tandem.yaml")
#   params = network_params_from_config(cfg)
# -----------------------------------------------------------------------------

from __future__ import annotations
import copy, os
from typing import Dict

import yaml

from .errors import ConfigurationError
from .params import NetworkParameters

ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
DEFAULT_CONFIG = os.path.join(ROOT, "config", "tandem.yaml")

def load_config(path: str = DEFAULT_CONFIG) -> Dict:
    with open(path, "r") as f:
        cfg = yaml.safe_load(f)
    if not isinstance(cfg, dict):
        raise ConfigurationError(f"{path}: expected a mapping at the top level")
    return cfg

def apply_overrides(cfg: Dict, overrides: Dict) -> Dict:
    """Apply overrides (recursive merge) on top of the base config."""
    new = copy.deepcopy(cfg)

    def _merge(dst: Dict, src: Dict):
        for key, val in src.items():
            if isinstance(val, dict) and isinstance(dst.get(key), dict):
                _merge(dst[key], val)
            else:
                dst[key] = copy.deepcopy(val)

    _merge(new, overrides)
    return new

def network_params_from_config(cfg: Dict) -> NetworkParameters:
    net = cfg.get("network")
    if not isinstance(net, dict):
        raise ConfigurationError("config has no 'network' section")
    return NetworkParameters.from_mapping(net)

def sim_settings(cfg: Dict) -> Dict:
    """The `sim:` section with defaults filled in."""
    sim = dict(cfg.get("sim") or {})
    sim.setdefault("max_time", None)
    sim.setdefault("seed", 0)
    sim.setdefault("log_times", [])
    sim.setdefault("debug", False)
    if sim["max_time"] is None and not sim["log_times"]:
        raise ConfigurationError("sim section needs max_time or log_times to bound the run")
    try:
        # PyYAML reads "1e5" (no dot) as a string
        if sim["max_time"] is not None:
            sim["max_time"] = float(sim["max_time"])
        sim["log_times"] = [float(t) for t in sim["log_times"]]
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"sim.max_time / sim.log_times must be numbers: {exc}") from exc
    return sim
