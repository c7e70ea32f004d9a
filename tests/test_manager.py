import pytest

from inferno.config import (
    AcceleratorCount,
    AcceleratorSpec,
    AllocationData,
    CapacityData,
    ModelAcceleratorPerfData,
    ModelData,
    OptimizerSpec,
    ServerData,
    ServerLoadSpec,
    ServerSpec,
    ServiceClassData,
    ServiceClassSpec,
)
from inferno.manager import Manager
from inferno.optimizer import Optimizer
from inferno.solver import SolverError
from inferno.system import System


def _system(capacity=10):
    system = System()
    system.add_accelerator_from_spec(
        AcceleratorSpec(name="A100", type="A100", multiplicity=1, cost=40.0))
    system.set_models_from_spec(ModelData(perf_data=[ModelAcceleratorPerfData(
        name="m", acc="A100", acc_count=1, alpha=20.0, beta=0.4,
        max_batch_size=32, at_tokens=512)]))
    system.set_service_classes_from_spec(ServiceClassData(spec=[ServiceClassSpec(
        name="Premium", model="m", priority=1, slo_itl=50.0, slo_ttw=500.0)]))
    system.set_servers_from_spec(ServerData(spec=[ServerSpec(
        name="s1", service_class="Premium", model="m",
        current_alloc=AllocationData(load=ServerLoadSpec(arrival_rate=60.0, avg_length=512)))]))
    system.set_capacity_from_spec(CapacityData(count=[AcceleratorCount(type="A100", count=capacity)]))
    system.calculate()
    return system


def test_optimize_aggregates_by_type():
    system = _system(capacity=10)
    Manager(system, Optimizer(system, OptimizerSpec())).optimize()
    alloc = system.server("s1").allocation
    by_type = system.allocation_by_type["A100"]
    assert by_type.count == alloc.num_replicas
    assert by_type.limit == 10
    assert by_type.count <= by_type.limit
    assert by_type.cost == pytest.approx(alloc.cost)


def test_manager_binds_optimizer_to_its_system():
    system = _system()
    optimizer = Optimizer(System(), OptimizerSpec(unlimited=True))
    manager = Manager(system, optimizer)
    assert optimizer.system is system
    manager.optimize()
    assert system.server("s1").allocation.accelerator == "A100"


def test_no_allocation_gives_empty_aggregate():
    system = _system(capacity=0)
    Manager(system, Optimizer(system, OptimizerSpec())).optimize()
    assert system.allocation_by_type == {}


def test_error_propagates():
    system = _system()
    with pytest.raises(SolverError):
        Manager(system, Optimizer(system, None)).optimize()