# tests/conftest.py

"""Shared network parameter fixtures."""

import pytest

from qnet.params import NetworkParameters, zeros


@pytest.fixture
def single_server() -> NetworkParameters:
    """One unbounded exponential server; jobs leave after service (M/M/1)."""
    return NetworkParameters(
        L=1, gamma_scv=1.0, lam=1.0, eta=1.0,
        mu_vector=[2.0], P=[[0.0]], Q=[[0.0]], p_e=[1.0], K=[-1],
    )

@pytest.fixture
def overflow_pair() -> NetworkParameters:
    """
    Server 0 holds one job and overflows everything to server 1.
    Server 1 is unbounded; both send finished jobs out of the system.
    """
    return NetworkParameters(
        L=2, gamma_scv=3.0, lam=1.0, eta=4.0,
        mu_vector=[1.0, 1.0],
        P=zeros(2),
        Q=[[0.0, 1.0],
           [0.0, 0.0]],
        p_e=[1.0, 0.0],
        K=[1, -1],
    )

@pytest.fixture
def busy_network() -> NetworkParameters:
    """Three small finite servers with feedback moves and partial overflow."""
    return NetworkParameters(
        L=3, gamma_scv=3.0, lam=2.0, eta=4.0,
        mu_vector=[1.0, 1.5, 0.8],
        P=[[0.0, 0.6, 0.3],
           [0.2, 0.0, 0.5],
           [0.1, 0.1, 0.0]],
        Q=[[0.0, 0.5, 0.4],
           [0.3, 0.0, 0.3],
           [0.0, 0.0, 0.0]],
        p_e=[0.5, 0.3, 0.2],
        K=[2, 3, 1],
    )
