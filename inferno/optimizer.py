"""Optimizer: runs a solver over a system and records its solution time."""

from __future__ import annotations

import time

from inferno.config import OptimizerSpec
from inferno.solver import Solver, SolverError
from inferno.system import System


class Optimizer:
    """Finds allocations for a system according to an optimizer spec."""

    def __init__(self, system: System, spec: OptimizerSpec | None) -> None:
        self.system = system
        self.spec = spec
        self.solver: Solver | None = None
        self.solution_time_msec = 0

    def optimize(self) -> None:
        """Solve the allocation problem; raises SolverError on failure."""
        if self.spec is None:
            raise SolverError("missing optimizer spec")
        self.solver = Solver(self.system, self.spec)
        start = time.perf_counter()
        try:
            self.solver.solve()
        finally:
            self.solution_time_msec = int((time.perf_counter() - start) * 1000)

    def __str__(self) -> str:
        head = str(self.solver) if self.solver is not None else ""
        return f"{head}Solution time: {self.solution_time_msec} msec\n"