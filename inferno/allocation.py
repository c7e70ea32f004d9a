"""Allocations of accelerators to servers, sized with queueing models."""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Any

from inferno.config import (
    ACCEL_PENALTY_FACTOR,
    DELTA,
    MAX_QUEUE_TO_BATCH_RATIO,
    SLO_MARGIN,
    STABILITY_SAFETY_FRACTION,
    AllocationData,
)
from inferno.queueing import QueueModelError, StateDependentQueue, binary_search


def _fmt(x: float) -> str:
    x = float(x)
    return str(int(x)) if x.is_integer() else repr(x)


@dataclass
class Allocation:
    """Allocation of an accelerator to a server."""

    accelerator: str
    num_replicas: int
    batch_size: int = 0
    cost: float = 0.0
    value: float = 0.0
    serv_time: float = 0.0
    wait_time: float = 0.0
    rho: float = 0.0
    max_arrv_rate_per_replica: float = 0.0

    def scale(self, system: Any, server_name: str) -> tuple[Allocation | None, int]:
        """Resize this allocation for the server's current load.

        Returns the new allocation and the change in replicas, or (None, 0)
        when the server, its load or the accelerator is unknown.
        """
        server = system.server(server_name)
        if server is None or server.load is None:
            return None, 0
        if system.accelerator(self.accelerator) is None:
            return None, 0
        alloc = create_allocation(system, server_name, self.accelerator)
        if alloc is None:
            raise ValueError(
                f"no feasible allocation of {self.accelerator} for server {server_name}"
            )
        return alloc, alloc.num_replicas - self.num_replicas

    def reallocate(self, system: Any, server_name: str) -> tuple[Allocation | None, str]:
        """Best allocation over all accelerators; (None, "") if none is feasible."""
        min_val = 0.0
        best: Allocation | None = None
        for acc_name in system.accelerators:
            alloc = create_allocation(system, server_name, acc_name)
            if alloc is not None and (min_val == 0 or alloc.value < min_val):
                min_val = alloc.value
                best = alloc
        if best is None:
            return None, ""
        return best, best.accelerator

    def transition_penalty(self, other: Allocation) -> float:
        """Penalty for moving from this allocation to *other*."""
        if self.accelerator == other.accelerator:
            if self.num_replicas == other.num_replicas:
                return 0.0
            return other.cost - self.cost
        return ACCEL_PENALTY_FACTOR * (self.cost + other.cost) + (other.cost - self.cost)

    def clone(self) -> Allocation:
        return replace(self)

    def allocation_data(self) -> AllocationData:
        return AllocationData(
            accelerator=self.accelerator,
            num_replicas=self.num_replicas,
            max_batch=self.batch_size,
            cost=self.cost,
            itl_average=self.serv_time,
            wait_average=self.wait_time,
        )

    @classmethod
    def from_data(cls, data: AllocationData) -> Allocation:
        return cls(
            accelerator=data.accelerator,
            num_replicas=data.num_replicas,
            batch_size=data.max_batch,
            cost=data.cost,
            serv_time=data.itl_average,
            wait_time=data.wait_average,
        )

    def __str__(self) -> str:
        return (
            f"{{acc={self.accelerator}; num={self.num_replicas}; maxBatch={self.batch_size}; "
            f"cost={_fmt(self.cost)}, val={_fmt(self.value)}, servTime={_fmt(self.serv_time)}, "
            f"waitTime={_fmt(self.wait_time)}, rho={_fmt(self.rho)}}}"
        )


def _lookup(system: Any, server_name: str, acc_name: str, check_load: bool):
    acc = system.accelerator(acc_name)
    if acc is None:
        return None
    server = system.server(server_name)
    if server is None:
        return None
    load = server.load
    if load is None:
        return None
    if check_load and (load.arrival_rate <= 0 or load.avg_length <= 0):
        return None
    model = system.model(server.model_name)
    if model is None:
        return None
    perf = model.perf_data(acc_name)
    if perf is None:
        return None
    svc = system.service_class(server.service_class_name)
    if svc is None:
        return None
    target = svc.model_target(server.model_name)
    if target is None:
        return None
    return acc, load, model, perf, target


def create_allocation(system: Any, server_name: str, acc_name: str) -> Allocation | None:
    """Size an allocation of an accelerator to a server; None if not feasible."""
    found = _lookup(system, server_name, acc_name, check_load=True)
    if found is None:
        return None
    acc, load, model, perf, target = found

    k = load.avg_length
    n_max = max(perf.max_batch_size * perf.at_tokens // k, 1)
    max_queue = n_max * MAX_QUEUE_TO_BATCH_RATIO

    serv_time_limit = k * target.itl
    wait_time_limit = target.ttw / SLO_MARGIN
    throughput_limit = target.tps / (1000 * k)

    token_times = [perf.alpha + perf.beta * n for n in range(1, n_max + 1)]
    if any(t <= 0 for t in token_times):
        return None
    serv_rate = [n / (t * k) for n, t in enumerate(token_times, start=1)]

    queue = StateDependentQueue(max_queue, serv_rate)
    lambda_min = serv_rate[0] * DELTA
    lambda_max = serv_rate[-1] * (1 - DELTA)

    def serv_time_at(x: float) -> float:
        return queue.solve(x).avg_serv_time

    def wait_time_at(x: float) -> float:
        return queue.solve(x).avg_wait_time

    try:
        lambda_service = lambda_max
        if target.itl > 0:
            found_rate = binary_search(lambda_min, lambda_max, serv_time_limit, serv_time_at)
            if found_rate is None:
                return None
            lambda_service = found_rate

        lambda_wait = lambda_max
        if target.ttw > 0:
            found_rate = binary_search(lambda_min, lambda_max, wait_time_limit, wait_time_at)
            if found_rate is None:
                return None
            lambda_wait = found_rate
    except QueueModelError:
        return None

    lambda_throughput = lambda_max
    if target.tps > 0:
        lambda_throughput = lambda_max * (1 - STABILITY_SAFETY_FRACTION)

    lambda_star = min(lambda_service, lambda_wait, lambda_throughput)
    if lambda_star <= 0:
        return None

    total_lambda = load.arrival_rate / 60 / 1000 if target.tps == 0 else throughput_limit
    num_replicas = math.ceil(total_lambda / lambda_star)
    if num_replicas <= 0:
        return None

    cost = acc.cost * model.num_instances(acc_name) * num_replicas

    try:
        queue.solve(total_lambda / num_replicas)
    except QueueModelError:
        return None

    return Allocation(
        accelerator=acc_name,
        num_replicas=num_replicas,
        batch_size=n_max,
        cost=cost,
        value=cost,
        serv_time=queue.avg_serv_time / k,
        wait_time=queue.avg_wait_time,
        rho=queue.rho,
        max_arrv_rate_per_replica=lambda_star,
    )


def create_allocation_using_ggm(system: Any, server_name: str, acc_name: str) -> Allocation | None:
    """Size an allocation using a G/G/m approximation; None if not feasible."""
    found = _lookup(system, server_name, acc_name, check_load=False)
    if found is None:
        return None
    acc, load, model, perf, target = found

    k = load.avg_length
    if k <= 0:
        return None
    n_max = max(perf.max_batch_size * perf.at_tokens // k, 1)

    serv_time = perf.alpha + perf.beta * n_max
    if target.itl > 0 and serv_time > target.itl:
        return None

    num_replicas = 0
    gamma = (load.arrival_cov ** 2 + load.service_cov ** 2) / 2
    if target.itl > 0 and target.ttw > 0:
        wait_time_limit = target.ttw / SLO_MARGIN
        denom = k * serv_time * gamma
        if denom == 0:
            rho_star = 1.0
        else:
            x_star = perf.max_batch_size * wait_time_limit / denom
            rho_star = x_star / (1 + x_star)
        lambda_star = rho_star / (k * serv_time)
        num_replicas = math.ceil(load.arrival_rate / (lambda_star * 60 * 1000))
    if target.tps > 0:
        lambda_max = n_max / (serv_time * k)
        lambda_throughput = lambda_max * (1 - STABILITY_SAFETY_FRACTION)
        throughput_target = target.tps / (1000 * k)
        num_replicas = max(num_replicas, math.ceil(throughput_target / lambda_throughput))
    if num_replicas <= 0:
        return None

    cost = acc.cost * model.num_instances(acc_name) * num_replicas

    rho = load.arrival_rate * k * serv_time / (num_replicas * 60 * 1000)
    x = rho / (1 - rho) if rho != 1 else math.inf
    wait = (k * serv_time) * gamma * x / perf.max_batch_size if perf.max_batch_size else math.inf

    return Allocation(
        accelerator=acc_name,
        num_replicas=num_replicas,
        batch_size=n_max,
        cost=cost,
        value=cost,
        serv_time=serv_time,
        wait_time=wait,
        rho=rho,
    )


@dataclass
class AllocationDiff:
    """Orchestration difference between two allocations."""

    old_accelerator: str
    new_accelerator: str
    old_num_replicas: int
    new_num_replicas: int
    cost_diff: float

    def __str__(self) -> str:
        return (
            f"{{ {self.old_accelerator} -> {self.new_accelerator}, "
            f"{self.old_num_replicas} -> {self.new_num_replicas}, {_fmt(self.cost_diff)} }}"
        )


def create_allocation_diff(a: Allocation | None, b: Allocation | None) -> AllocationDiff | None:
    """Difference from allocation *a* to *b*; None if both are missing."""
    if a is None and b is None:
        return None
    return AllocationDiff(
        old_accelerator=a.accelerator if a else "none",
        new_accelerator=b.accelerator if b else "none",
        old_num_replicas=a.num_replicas if a else 0,
        new_num_replicas=b.num_replicas if b else 0,
        cost_diff=(b.cost if b else 0.0) - (a.cost if a else 0.0),
    )