"""The system: accelerators, models, service classes, servers and capacities."""

from __future__ import annotations

from copy import deepcopy
from dataclasses import dataclass

from inferno.accelerator import Accelerator
from inferno.config import (
    AcceleratorCount,
    AcceleratorData,
    AcceleratorSpec,
    AllocationSolution,
    CapacityData,
    ModelData,
    OptimizerSpec,
    ServerData,
    ServerSpec,
    ServiceClassData,
    SystemSpec,
)
from inferno.model import Model
from inferno.server import Server
from inferno.serviceclass import ServiceClass


def _fmt(x: float) -> str:
    x = float(x)
    return str(int(x)) if x.is_integer() else repr(x)


class NotFoundError(LookupError):
    """A named entity does not exist in the system."""


@dataclass
class AllocationByType:
    """Allocated units and cost of one accelerator type."""

    name: str
    count: int = 0
    limit: int = 0
    cost: float = 0.0

    def __str__(self) -> str:
        return f"name={self.name}, count={self.count}, limit={self.limit}, cost={_fmt(self.cost)}"


class System:
    """All accelerators, models, service classes and servers."""

    def __init__(self) -> None:
        self.accelerators: dict[str, Accelerator] = {}
        self.models: dict[str, Model] = {}
        self.service_classes: dict[str, ServiceClass] = {}
        self.servers: dict[str, Server] = {}
        self.capacities: dict[str, int] = {}
        self.allocation_by_type: dict[str, AllocationByType] = {}
        self.allocation_solution: AllocationSolution | None = None

    def set_from_spec(self, spec: SystemSpec) -> OptimizerSpec:
        """Load everything from a system spec; return its optimizer spec."""
        self.set_accelerators_from_spec(spec.accelerators)
        self.set_models_from_spec(spec.models)
        self.set_service_classes_from_spec(spec.service_classes)
        self.set_servers_from_spec(spec.servers)
        self.set_capacity_from_spec(spec.capacity)
        return spec.optimizer.spec

    # accelerators

    def set_accelerators_from_spec(self, data: AcceleratorData) -> None:
        for spec in data.spec:
            self.add_accelerator_from_spec(spec)

    def add_accelerator_from_spec(self, spec: AcceleratorSpec) -> None:
        """Add an accelerator, replacing any of the same name."""
        self.accelerators[spec.name] = Accelerator(spec)

    def remove_accelerator(self, name: str) -> Accelerator:
        try:
            return self.accelerators.pop(name)
        except KeyError:
            raise NotFoundError(f"accelerator {name} not found") from None

    # capacities

    def set_capacity_from_spec(self, data: CapacityData) -> None:
        for count in data.count:
            self.set_count_from_spec(count)

    def set_count_from_spec(self, spec: AcceleratorCount) -> None:
        self.capacities[spec.type] = spec.count

    def capacity(self, name: str) -> int | None:
        """Available units of an accelerator type; None if not set."""
        return self.capacities.get(name)

    def remove_capacity(self, name: str) -> int:
        try:
            return self.capacities.pop(name)
        except KeyError:
            raise NotFoundError(f"accelerator type {name} not found") from None

    # models

    def set_models_from_spec(self, data: ModelData) -> None:
        for perf in data.perf_data:
            model = self.models.get(perf.name) or self.add_model(perf.name)
            model.add_perf_data_from_spec(perf)

    def add_model(self, name: str) -> Model:
        """Add an empty model, replacing any of the same name."""
        model = Model(name)
        self.models[name] = model
        return model

    def remove_model(self, name: str) -> Model:
        try:
            return self.models.pop(name)
        except KeyError:
            raise NotFoundError(f"model {name} not found") from None

    # servers

    def set_servers_from_spec(self, data: ServerData) -> None:
        for spec in data.spec:
            self.add_server_from_spec(spec)

    def add_server_from_spec(self, spec: ServerSpec) -> None:
        """Add a server, replacing any of the same name."""
        self.servers[spec.name] = Server(spec)

    def remove_server(self, name: str) -> Server:
        try:
            return self.servers.pop(name)
        except KeyError:
            raise NotFoundError(f"server {name} not found") from None

    # service classes

    def set_service_classes_from_spec(self, data: ServiceClassData) -> None:
        for spec in data.spec:
            if spec.name not in self.service_classes:
                self.service_classes[spec.name] = ServiceClass(spec.name, spec.priority)
            self.service_classes[spec.name].set_target_from_spec(spec)

    def add_service_class(self, name: str, priority: int) -> ServiceClass:
        """Add an empty service class, replacing any of the same name."""
        svc = ServiceClass(name, priority)
        self.service_classes[name] = svc
        return svc

    def remove_service_class(self, name: str) -> ServiceClass:
        try:
            return self.service_classes.pop(name)
        except KeyError:
            raise NotFoundError(f"service class {name} not found") from None

    # lookups

    def accelerator(self, name: str) -> Accelerator | None:
        return self.accelerators.get(name)

    def model(self, name: str) -> Model | None:
        return self.models.get(name)

    def service_class(self, name: str) -> ServiceClass | None:
        return self.service_classes.get(name)

    def server(self, name: str) -> Server | None:
        return self.servers.get(name)

    # computation

    def calculate(self) -> None:
        """Compute accelerator power profiles and all server allocations."""
        for acc in self.accelerators.values():
            acc.calculate()
        for server in self.servers.values():
            server.calculate(self)

    def allocate_by_type(self) -> dict[str, AllocationByType]:
        """Accumulate allocated units and cost per accelerator type."""
        totals: dict[str, AllocationByType] = {}
        for server in self.servers.values():
            alloc = server.allocation
            if alloc is None:
                continue
            acc = self.accelerators.get(alloc.accelerator)
            model = self.models.get(server.model_name)
            if acc is None or model is None:
                continue
            entry = totals.get(acc.type)
            if entry is None:
                entry = AllocationByType(name=acc.type, limit=self.capacities.get(acc.type, 0))
                totals[acc.type] = entry
            entry.count += (alloc.num_replicas * model.num_instances(alloc.accelerator)
                            * acc.multiplicity)
            entry.cost += alloc.cost
        self.allocation_by_type = totals
        return totals

    def generate_solution(self) -> AllocationSolution:
        """Allocation data, with load, for every allocated server."""
        solution = AllocationSolution()
        for name, server in self.servers.items():
            if server.allocation is None:
                continue
            data = server.allocation.allocation_data()
            if server.load is not None:
                data.load = deepcopy(server.load)
            solution.spec[name] = data
        self.allocation_solution = solution
        return solution

    def __str__(self) -> str:
        lines = ["Solution: "]
        total_cost = 0.0
        for name, server in self.servers.items():
            load = server.load
            svc = self.service_classes.get(server.service_class_name)
            if load is None or svc is None:
                continue
            target = svc.model_target(server.model_name)
            if target is None:
                continue
            alloc = server.allocation
            if alloc is None:
                lines.append(f"s={name}; c={svc.name}; m={server.model_name}; "
                             "no feasible allocation! ")
                continue
            total_cost += alloc.cost
            lines.append(
                f"c={svc.name}; m={server.model_name}; rate={_fmt(load.arrival_rate)}; "
                f"tk={load.avg_length}; sol={len(server.all_allocations)}, alloc={alloc}; "
                f"slo-itl={_fmt(target.itl)}, slo-ttw={_fmt(target.ttw)}, "
                f"slo-tps={_fmt(target.tps)} "
            )
        lines.append("AllocationByType: ")
        lines.extend(f"{a} " for a in self.allocation_by_type.values())
        lines.append(f"totalCost={_fmt(total_cost)} ")
        return "\n".join(lines) + "\n"