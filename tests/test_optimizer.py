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


def test_missing_spec_raises():
    with pytest.raises(SolverError, match="missing optimizer spec"):
        Optimizer(System(), None).optimize()


def test_milp_solver_raises():
    with pytest.raises(SolverError):
        Optimizer(_system(), OptimizerSpec(milp_solver=True)).optimize()


def test_unlimited_assigns_allocation():
    system = _system()
    Optimizer(system, OptimizerSpec(unlimited=True)).optimize()
    alloc = system.server("s1").allocation
    assert alloc.accelerator == "A100"
    assert alloc.num_replicas >= 1
    assert alloc.cost == pytest.approx(40.0 * alloc.num_replicas)


def test_limited_without_capacity_leaves_unallocated():
    system = _system(capacity=0)
    Optimizer(system, OptimizerSpec()).optimize()
    assert system.server("s1").allocation is None


def test_limited_with_capacity_matches_unlimited():
    limited = _system()
    Optimizer(limited, OptimizerSpec()).optimize()
    unlimited = _system()
    Optimizer(unlimited, OptimizerSpec(unlimited=True)).optimize()
    a = limited.server("s1").allocation
    b = unlimited.server("s1").allocation
    assert (a.accelerator, a.num_replicas) == (b.accelerator, b.num_replicas)


def test_str_reports_solver_and_time():
    optimizer = Optimizer(_system(), OptimizerSpec(unlimited=True))
    optimizer.optimize()
    text = str(optimizer)
    assert text.startswith("Solver: ")
    assert "sName=s1" in text
    assert text.endswith(f"Solution time: {optimizer.solution_time_msec} msec\n")
    assert optimizer.solution_time_msec >= 0


def test_str_before_optimize():
    assert str(Optimizer(System(), OptimizerSpec())) == "Solution time: 0 msec\n"