"""Manager tying a system to its optimizer."""

from __future__ import annotations

from inferno.optimizer import Optimizer
from inferno.system import System


class Manager:
    """Runs the optimizer on a system and aggregates the result by accelerator type."""

    def __init__(self, system: System, optimizer: Optimizer) -> None:
        self.system = system
        self.optimizer = optimizer
        optimizer.system = system

    def optimize(self) -> None:
        """Optimize allocations; raises SolverError on failure."""
        self.optimizer.optimize()
        self.system.allocate_by_type()