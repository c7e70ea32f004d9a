"""Solvers of the accelerator allocation problem."""

from __future__ import annotations

import bisect
from dataclasses import dataclass, field

from inferno.allocation import Allocation, AllocationDiff, create_allocation_diff
from inferno.config import PRIORITY_WEIGHT_FACTOR, OptimizerSpec
from inferno.system import System

# Largest finite single-precision float, used as "no alternative" marker
_MAX_VALUE = 3.4028234663852886e38


class SolverError(RuntimeError):
    """The allocation problem could not be solved."""


@dataclass
class _Entry:
    server_name: str
    priority: int
    allocations: list[Allocation] = field(default_factory=list)
    cur_index: int = 0
    delta: float = 0.0

    def order_key(self) -> tuple[float, float]:
        weight = 1 + PRIORITY_WEIGHT_FACTOR / (1 + self.priority)
        value = self.allocations[self.cur_index].value * weight
        return (-self.delta * weight, -value)


class Solver:
    """Assigns one allocation to each server of a system."""

    def __init__(self, system: System, optimizer_spec: OptimizerSpec) -> None:
        self.system = system
        self.optimizer_spec = optimizer_spec
        self.current_allocation: dict[str, Allocation] = {}
        self.diff_allocation: dict[str, AllocationDiff] = {}

    def solve(self) -> None:
        """Find allocations for all servers and record the changes."""
        self.current_allocation = {
            name: server.cur_allocation
            for name, server in self.system.servers.items()
            if server.cur_allocation is not None
        }
        if self.optimizer_spec.milp_solver:
            raise SolverError("MILP solver is not available")
        if self.optimizer_spec.unlimited:
            self.solve_unlimited()
        else:
            self.solve_limited()

        self.diff_allocation = {}
        for name, server in self.system.servers.items():
            diff = create_allocation_diff(self.current_allocation.get(name), server.allocation)
            if diff is not None:
                self.diff_allocation[name] = diff

    def solve_unlimited(self) -> None:
        """Give each server its lowest-valued allocation."""
        for server in self.system.servers.values():
            server.remove_allocation()
            candidates = [a for a in server.all_allocations.values() if a.value < _MAX_VALUE]
            if candidates:
                server.set_allocation(min(candidates, key=lambda a: a.value))

    def solve_limited(self) -> None:
        """Assign allocations greedily within the available accelerator capacity."""
        system = self.system
        available = dict(system.capacities)
        entries: list[_Entry] = []
        for name, server in system.servers.items():
            server.remove_allocation()
            if not server.all_allocations:
                continue
            allocs = sorted(server.all_allocations.values(), key=lambda a: a.value)
            delta = allocs[1].value - allocs[0].value if len(allocs) > 1 else _MAX_VALUE
            entries.append(_Entry(name, server.priority(system), allocs, 0, delta))

        entries.sort(key=_Entry.order_key)
        while entries:
            top = entries.pop(0)
            server = system.server(top.server_name)
            if server is None:
                continue
            model = system.model(server.model_name)
            if model is None:
                continue
            alloc = top.allocations[top.cur_index]
            acc = system.accelerator(alloc.accelerator)
            if acc is None:
                continue
            count = alloc.num_replicas * model.num_instances(alloc.accelerator) * acc.multiplicity
            if available.get(acc.type, 0) >= count:
                available[acc.type] = available.get(acc.type, 0) - count
                server.set_allocation(alloc)
                continue
            top.cur_index += 1
            if top.cur_index + 1 < len(top.allocations):
                top.delta = (top.allocations[top.cur_index + 1].value
                             - top.allocations[top.cur_index].value)
            elif top.cur_index == len(top.allocations):
                continue
            else:
                top.delta = _MAX_VALUE
            pos = bisect.bisect_left(entries, top.order_key(), key=_Entry.order_key)
            entries.insert(pos, top)

    def __str__(self) -> str:
        lines = ["Solver: "]
        lines.extend(f"sName={name}, allocDiff={diff} "
                     for name, diff in self.diff_allocation.items())
        return "\n".join(lines) + "\n"