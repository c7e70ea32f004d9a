"""Inference servers: a service class and model pair with load and allocations."""

from __future__ import annotations

from copy import deepcopy
from typing import Any

from inferno.allocation import Allocation, create_allocation
from inferno.config import (
    DEFAULT_SERVICE_CLASS_NAME,
    DEFAULT_SERVICE_CLASS_PRIORITY,
    AllocationData,
    ServerLoadSpec,
    ServerSpec,
)


def _fmt(x: float) -> str:
    x = float(x)
    return str(int(x)) if x.is_integer() else repr(x)


class Server:
    """A server for a service class and model."""

    def __init__(self, spec: ServerSpec) -> None:
        self.name = spec.name
        self.service_class_name = spec.service_class or DEFAULT_SERVICE_CLASS_NAME
        self.model_name = spec.model
        self.load: ServerLoadSpec | None = deepcopy(spec.current_alloc.load)
        self.all_allocations: dict[str, Allocation] = {}
        self.allocation: Allocation | None = None
        self.cur_allocation: Allocation | None = Allocation.from_data(spec.current_alloc)
        self.spec = spec

    def calculate(self, system: Any) -> None:
        """Compute feasible allocations on every accelerator of the system."""
        self.all_allocations = {}
        for acc in system.accelerators.values():
            alloc = create_allocation(system, self.name, acc.name)
            if alloc is None:
                continue
            if self.cur_allocation is not None:
                alloc.value = self.cur_allocation.transition_penalty(alloc)
            self.all_allocations[acc.name] = alloc

    def priority(self, system: Any) -> int:
        svc = system.service_class(self.service_class_name)
        return svc.priority if svc is not None else DEFAULT_SERVICE_CLASS_PRIORITY

    def set_allocation(self, alloc: Allocation | None) -> None:
        self.allocation = alloc
        self.update_desired_alloc()

    def remove_allocation(self) -> None:
        self.allocation = None

    def update_desired_alloc(self) -> None:
        """Reflect the chosen allocation in the spec's desired allocation."""
        if self.allocation is None:
            self.spec.desired_alloc = AllocationData()
            return
        data = self.allocation.allocation_data()
        data.load = deepcopy(self.load) if self.load is not None else ServerLoadSpec()
        self.spec.desired_alloc = data

    def apply_desired_alloc(self) -> None:
        """Make the desired allocation the current one."""
        self.spec.current_alloc = deepcopy(self.spec.desired_alloc)
        self.cur_allocation = Allocation.from_data(self.spec.current_alloc)
        self.load = self.spec.current_alloc.load

    def __str__(self) -> str:
        if self.load is None:
            load = "<nil>"
        else:
            ld = self.load
            load = (f"&{{{_fmt(ld.arrival_rate)} {ld.avg_length} "
                    f"{_fmt(ld.arrival_cov)} {_fmt(ld.service_cov)}}}")
        alloc = str(self.allocation) if self.allocation is not None else "<nil>"
        return (f"Server: name={self.name}; class={self.service_class_name}; "
                f"model={self.model_name}; load={load}; allocation={alloc}")