"""
qnet package initializer.

This package contains the discrete-event engine (event queue, driver), the
overflow/move queueing-network model built on it (servers, routing, arrivals),
a single-queue M/D/1 reference model, and the accumulators used to measure
runs.
"""
__all__ = [
    "errors", "entities", "queues", "sampling", "params", "stations",
    "network", "arrivals", "md1", "metrics", "config", "simulation",
]
