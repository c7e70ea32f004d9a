"""Demonstrations that load sample data, optimize it and show the outcome."""

from __future__ import annotations

import argparse
import math
import random
import sys
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from inferno.allocation import Allocation
from inferno.config import (
    AcceleratorData,
    AllocationSolution,
    CapacityData,
    ModelData,
    OptimizerData,
    OptimizerSpec,
    ServerData,
    ServerLoadSpec,
    ServiceClassData,
)
from inferno.manager import Manager
from inferno.optimizer import Optimizer
from inferno.solver import SolverError
from inferno.system import System
from inferno.utils import from_data_to_spec, spec_to_json

ACCELERATOR_FILE = "accelerator-data.json"
CAPACITY_FILE = "capacity-data.json"
MODEL_FILE = "model-data.json"
SERVICE_CLASS_FILE = "serviceclass-data.json"
SERVER_FILE = "server-data.json"
OPTIMIZER_FILE = "optimizer-data.json"
SOLUTION_FILE = "solution-data.json"

DEFAULT_SIZE = "large"
DEFAULT_DATA_ROOT = "sample-data"
DEFAULT_SCALE_SERVER = "Premium-llama3_8b"
DEFAULT_TRANSITION_ALPHA = 0.1

ARRIVAL_SCALE_FACTOR = 2.5
LENGTH_SCALE_FACTOR = 1.5


@dataclass
class ScaleResult:
    """Outcome of scaling one server's allocation after a change of load."""

    before: Allocation
    scaled: Allocation | None
    increment: int
    reallocated: Allocation | None
    reallocated_accelerator: str


def load_system(data_dir: str | Path) -> tuple[System, OptimizerSpec]:
    """Build a system from the sample data files in *data_dir*.

    Returns the system and the optimizer spec. Raises OSError for a missing
    file and ValueError for malformed content.
    """
    directory = Path(data_dir)

    def read(file_name: str, cls: type):
        return from_data_to_spec((directory / file_name).read_bytes(), cls)

    system = System()
    system.set_accelerators_from_spec(read(ACCELERATOR_FILE, AcceleratorData))
    system.set_capacity_from_spec(read(CAPACITY_FILE, CapacityData))
    system.set_models_from_spec(read(MODEL_FILE, ModelData))
    system.set_service_classes_from_spec(read(SERVICE_CLASS_FILE, ServiceClassData))
    system.set_servers_from_spec(read(SERVER_FILE, ServerData))
    optimizer_spec = read(OPTIMIZER_FILE, OptimizerData).spec
    return system, optimizer_spec


def _optimized(data_dir: str | Path) -> tuple[System, Optimizer, Manager]:
    system, spec = load_system(data_dir)
    optimizer = Optimizer(system, spec)
    manager = Manager(system, optimizer)
    system.calculate()
    manager.optimize()
    return system, optimizer, manager


def run_main(data_dir: str | Path) -> AllocationSolution:
    """Optimize the sample system and write the solution next to its data."""
    system, optimizer, _ = _optimized(data_dir)
    solution = system.generate_solution()
    (Path(data_dir) / SOLUTION_FILE).write_text(spec_to_json(solution))
    print(system, end="")
    print(optimizer, end="")
    return solution


def run_scale(data_dir: str | Path, server_name: str = DEFAULT_SCALE_SERVER) -> ScaleResult:
    """Optimize, raise one server's load, then rescale and reallocate it.

    Raises LookupError when the server, its allocation or its load is missing.
    """
    system, _, _ = _optimized(data_dir)

    server = system.server(server_name)
    if server is None:
        raise LookupError(f"no server {server_name}")
    alloc_before = server.allocation
    if alloc_before is None:
        raise LookupError(f"no allocation for server {server_name}")
    load = server.load
    if load is None:
        raise LookupError(f"no model load data for server {server_name}")
    print("AllocBefore: ", alloc_before)

    server.load = ServerLoadSpec(
        arrival_rate=load.arrival_rate * ARRIVAL_SCALE_FACTOR,
        avg_length=int(load.avg_length * LENGTH_SCALE_FACTOR),
        arrival_cov=load.arrival_cov,
        service_cov=load.service_cov,
    )

    scaled, increment = alloc_before.scale(system, server_name)
    print("AllocAfter: ", scaled)
    print("Inc: ", increment)

    reallocated, acc_name = alloc_before.reallocate(system, server_name)
    print("AllocAfter: ", reallocated)
    print("gName: ", acc_name)

    return ScaleResult(
        before=alloc_before,
        scaled=scaled,
        increment=increment,
        reallocated=reallocated,
        reallocated_accelerator=acc_name,
    )


def run_transition(
    data_dir: str | Path,
    alpha: float = DEFAULT_TRANSITION_ALPHA,
    rng: random.Random | None = None,
) -> tuple[System, Optimizer]:
    """Optimize, perturb every server's load at random, and optimize again.

    Loads are multiplied by random factors in [alpha, 2 - alpha); the previous
    solution becomes the current allocation, so transitions are penalized.
    """
    if not 0 < alpha < 1:
        raise ValueError(f"alpha must lie strictly between 0 and 1, got {alpha}")
    rng = rng if rng is not None else random.Random()

    system, optimizer, manager = _optimized(data_dir)
    print(system, end="")
    print(optimizer, end="")

    for server in system.servers.values():
        load = server.load
        if load is None:
            continue
        factor_a = 2 * (rng.random() - 0.5) * (1 - alpha)
        new_arrival = load.arrival_rate * (1 + factor_a)
        if new_arrival <= 0:
            new_arrival = 1.0
        factor_b = 2 * (rng.random() - 0.5) * (1 - alpha)
        new_length = math.ceil(load.avg_length * (1 + factor_b))
        if new_length <= 0:
            new_length = 1
        server.load = ServerLoadSpec(
            arrival_rate=new_arrival,
            avg_length=new_length,
            arrival_cov=load.arrival_cov,
            service_cov=load.service_cov,
        )
        if server.cur_allocation is not None and server.allocation is not None:
            server.cur_allocation = server.allocation.clone()

    system.calculate()
    manager.optimize()
    print(system, end="")
    print(optimizer, end="")
    return system, optimizer


def main(argv: Sequence[str] | None = None) -> int:
    """Run one of the demonstrations on a sample data set."""
    parser = argparse.ArgumentParser(description="Run an allocation demonstration.")
    parser.add_argument("demo", choices=["main", "scale", "transition"])
    parser.add_argument("size", nargs="?", default=DEFAULT_SIZE,
                        help="name of the sample data set")
    parser.add_argument("--data-root", default=DEFAULT_DATA_ROOT,
                        help="directory holding the sample data sets")
    args = parser.parse_args(list(sys.argv[1:] if argv is None else argv))

    data_dir = Path(args.data_root) / args.size
    try:
        if args.demo == "main":
            run_main(data_dir)
        elif args.demo == "scale":
            run_scale(data_dir)
        else:
            run_transition(data_dir)
    except (OSError, ValueError, LookupError, SolverError) as exc:
        print(exc, file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())