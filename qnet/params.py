# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# params.py
# -----------------------------------------------------------------------------
# Purpose:
#   NetworkParameters: topology, rates and routing probabilities of an
#   overflow/move queueing network, validated at construction time.
#
# Design notes:
#   - Row i of P (move) and Q (overflow) is where a job goes after service at /
#     when rejected by server i. The missing mass 1 - sum(row) is "leave".
#   - p_e has no leave mass: every external arrival enters some server.
#   - K[i] == -1 means an unbounded buffer; K counts the job in service.
#   - Matrices are stored as tuples of tuples so a run cannot alter them.
#
# Usage:
#   params = NetworkParameters(L=2, gamma_scv=3.0, lam=1.0, eta=4.0,
#                              mu_vector=[1.0, 1.0], P=[[0, 1], [0, 0]],
#                              Q=[[0, 0], [0, 0]], p_e=[1, 0], K=[5, -1])
# -----------------------------------------------------------------------------

from __future__ import annotations
import math
from dataclasses import dataclass, replace
from typing import Tuple

from .errors import ConfigurationError
from .sampling import PROB_TOL, check_sub_distribution

UNBOUNDED = -1

def _positive(name: str, value: float):
    if not isinstance(value, (int, float)) or not math.isfinite(value) or value <= 0:
        raise ConfigurationError(f"{name} must be a finite number > 0, got {value!r}")

def _float_row(name: str, values) -> Tuple[float, ...]:
    try:
        return tuple(float(x) for x in values)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{name} must be a list of numbers, got {values!r}") from exc

def _float_matrix(name: str, rows) -> Tuple[Tuple[float, ...], ...]:
    try:
        return tuple(_float_row(f"{name}[{i}]", row) for i, row in enumerate(rows))
    except TypeError as exc:
        raise ConfigurationError(f"{name} must be a list of rows, got {rows!r}") from exc

@dataclass(frozen=True)
class NetworkParameters:
    L: int                              # number of servers
    gamma_scv: float                    # SCV shared by every delay distribution
    lam: float                          # external arrival rate (lambda)
    eta: float                          # transfer (move/overflow) delay rate
    mu_vector: Tuple[float, ...]        # per-server service rates
    P: Tuple[Tuple[float, ...], ...]    # move routing matrix, L x L
    Q: Tuple[Tuple[float, ...], ...]    # overflow routing matrix, L x L
    p_e: Tuple[float, ...]              # external arrival destinations
    K: Tuple[int, ...]                  # buffer capacities, -1 = unbounded

    def __post_init__(self):
        # Normalise sequences to tuples before validating
        object.__setattr__(self, "mu_vector", _float_row("mu_vector", self.mu_vector))
        object.__setattr__(self, "P", _float_matrix("P", self.P))
        object.__setattr__(self, "Q", _float_matrix("Q", self.Q))
        object.__setattr__(self, "p_e", _float_row("p_e", self.p_e))
        try:
            object.__setattr__(self, "K", tuple(self.K))
        except TypeError as exc:
            raise ConfigurationError(f"K must be a list of capacities, got {self.K!r}") from exc
        self.validate()

    def validate(self):
        """Raise ConfigurationError unless every field is consistent."""
        if isinstance(self.L, bool) or not isinstance(self.L, int) or self.L < 1:
            raise ConfigurationError(f"L must be a positive integer, got {self.L!r}")
        L = self.L
        if not isinstance(self.gamma_scv, (int, float)) or not math.isfinite(self.gamma_scv) or self.gamma_scv < 0:
            raise ConfigurationError(f"gamma_scv must be finite and >= 0, got {self.gamma_scv!r}")
        _positive("lam", self.lam)
        _positive("eta", self.eta)
        if len(self.mu_vector) != L:
            raise ConfigurationError(f"mu_vector has {len(self.mu_vector)} entries, expected {L}")
        for i, mu in enumerate(self.mu_vector):
            _positive(f"mu_vector[{i}]", mu)
        for name, M in (("P", self.P), ("Q", self.Q)):
            if len(M) != L or any(len(row) != L for row in M):
                raise ConfigurationError(f"{name} must be a {L}x{L} matrix")
            for i, row in enumerate(M):
                check_sub_distribution(row, f"{name}[{i}]")
        if len(self.p_e) != L:
            raise ConfigurationError(f"p_e has {len(self.p_e)} entries, expected {L}")
        total = check_sub_distribution(self.p_e, "p_e")
        if abs(total - 1.0) > PROB_TOL:
            raise ConfigurationError(f"p_e must sum to 1 (arrivals cannot leave), got {total:.12g}")
        if len(self.K) != L:
            raise ConfigurationError(f"K has {len(self.K)} entries, expected {L}")
        for i, k in enumerate(self.K):
            if isinstance(k, bool) or not isinstance(k, int) or k < UNBOUNDED:
                raise ConfigurationError(f"K[{i}] must be an integer >= 0 or -1 (unbounded), got {k!r}")

    def with_arrival_rate(self, lam: float) -> "NetworkParameters":
        """Same network with a different external arrival rate."""
        return replace(self, lam=lam)

    @classmethod
    def from_mapping(cls, data: dict) -> "NetworkParameters":
        """Build from a plain dict (e.g. a YAML section); accepts 'λ'/'η' too."""
        aliases = {"λ": "lam", "lambda": "lam", "η": "eta", "μ_vector": "mu_vector"}
        kwargs = {aliases.get(k, k): v for k, v in data.items()}
        fields = ("L", "gamma_scv", "lam", "eta", "mu_vector", "P", "Q", "p_e", "K")
        missing = [f for f in fields if f not in kwargs]
        if missing:
            raise ConfigurationError(f"network parameters missing: {', '.join(missing)}")
        unknown = sorted(set(kwargs) - set(fields))
        if unknown:
            raise ConfigurationError(f"unknown network parameters: {', '.join(unknown)}")
        return cls(**kwargs)


def zeros(L: int) -> Tuple[Tuple[float, ...], ...]:
    """L x L zero matrix, handy for networks without move/overflow routing."""
    return tuple((0.0,) * L for _ in range(L))
