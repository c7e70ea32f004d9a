"""Finite birth-death queue with state-dependent (batched) service rates."""

from __future__ import annotations

import math
from itertools import accumulate
from typing import Callable, Sequence

# Relative width of the search interval at which bisection stops
_REL_TOL = 1e-7


class QueueModelError(ValueError):
    """The queueing model cannot be solved for the given input."""


class StateDependentQueue:
    """An M/M/1 queue with finite capacity whose service rate depends on its state.

    With ``n`` requests present, ``min(n, N)`` of them are in service and requests
    complete at rate ``serv_rate[min(n, N) - 1]``, where ``N = len(serv_rate)`` is
    the maximum batch size. At most ``max_queue`` requests are held in the system.
    """

    def __init__(self, max_queue: int, serv_rate: Sequence[float]) -> None:
        rates = tuple(float(r) for r in serv_rate)
        if not rates:
            raise ValueError("at least one service rate is required")
        if any(not math.isfinite(r) or r <= 0 for r in rates):
            raise ValueError("service rates must be positive and finite")
        if max_queue < 1:
            raise ValueError("maximum queue size must be at least 1")
        self.max_queue = max_queue
        self.serv_rate = rates
        self._log_rates = [
            math.log(rates[min(n, len(rates)) - 1]) for n in range(1, max_queue + 1)
        ]
        self.arrival_rate = 0.0
        self.probabilities: list[float] = []
        self.throughput = 0.0
        self.avg_num_in_system = 0.0
        self.avg_queue_length = 0.0
        self.rho = 0.0
        self.avg_resp_time = 0.0
        self.avg_serv_time = 0.0
        self.avg_wait_time = 0.0

    @property
    def batch_size(self) -> int:
        return len(self.serv_rate)

    def solve(self, arrival_rate: float) -> StateDependentQueue:
        """Compute the steady-state statistics for the given arrival rate."""
        if not math.isfinite(arrival_rate) or arrival_rate <= 0:
            raise QueueModelError(f"invalid arrival rate {arrival_rate}")
        log_lam = math.log(arrival_rate)
        logs = list(accumulate((log_lam - lr for lr in self._log_rates), initial=0.0))
        top = max(logs)
        weights = [math.exp(x - top) for x in logs]
        total = sum(weights)
        probs = [w / total for w in weights]

        batch = self.batch_size
        in_system = sum(n * p for n, p in enumerate(probs))
        in_service = sum(min(n, batch) * p for n, p in enumerate(probs))
        throughput = arrival_rate * (1 - probs[-1])
        if not throughput > 0 or not math.isfinite(in_system):
            raise QueueModelError(f"queue model has no valid solution at rate {arrival_rate}")

        self.arrival_rate = arrival_rate
        self.probabilities = probs
        self.throughput = throughput
        self.avg_num_in_system = in_system
        self.avg_queue_length = in_system - in_service
        self.rho = 1 - probs[0]
        self.avg_resp_time = in_system / throughput
        self.avg_wait_time = self.avg_queue_length / throughput
        self.avg_serv_time = self.avg_resp_time - self.avg_wait_time
        return self

    def __str__(self) -> str:
        return (
            f"Queue: maxQueue={self.max_queue}; batch={self.batch_size}; "
            f"lambda={self.arrival_rate}; rho={self.rho}; "
            f"servTime={self.avg_serv_time}; waitTime={self.avg_wait_time}"
        )


def binary_search(
    low: float,
    high: float,
    target: float,
    func: Callable[[float], float],
) -> float | None:
    """Largest x in [low, high] with func(x) <= target, for non-decreasing func.

    Returns None when func(low) already exceeds the target. Exceptions raised
    by func propagate.
    """
    if low > high:
        raise ValueError("low bound exceeds high bound")
    if func(low) > target:
        return None
    if func(high) <= target:
        return high
    lo, hi = low, high
    tol = (high - low) * _REL_TOL
    while hi - lo > tol:
        mid = (lo + hi) / 2
        if func(mid) <= target:
            lo = mid
        else:
            hi = mid
    return lo