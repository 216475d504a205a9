# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# errors.py
# -----------------------------------------------------------------------------
# Purpose:
#   Exception taxonomy for the engine and the network model.
#
# Design notes:
#   - ConfigurationError is raised while building parameters/state, before any
#     event is processed. Values are never clamped into range.
#   - InvariantViolation means event processing went wrong; the run aborts.
#   - SamplingError covers degenerate delay distributions (zero rate etc.).
#   - Nothing here is retried; the driver lets all of them propagate.
#
# Usage:
#   from qnet.errors import ConfigurationError, InvariantViolation
# -----------------------------------------------------------------------------

from __future__ import annotations


class QnetError(Exception):
    """Base class for every error raised by qnet."""


class ConfigurationError(QnetError, ValueError):
    """Invalid parameters, topology or driver arguments."""


class InvariantViolation(QnetError, RuntimeError):
    """A state invariant was broken while processing an event."""


class SamplingError(QnetError, ValueError):
    """A delay distribution cannot produce strictly positive, finite draws."""
