"""Accelerators used by inference servers."""

from __future__ import annotations

import math

from inferno.config import AcceleratorSpec


def _fmt(x: float) -> str:
    x = float(x)
    return str(int(x)) if x.is_integer() else repr(x)


def _div(num: float, den: float) -> float:
    if den == 0:
        if num == 0:
            return math.nan
        return math.copysign(math.inf, num)
    return num / den


class Accelerator:
    """An accelerator: one or several GPU cards of one type."""

    def __init__(self, spec: AcceleratorSpec) -> None:
        self.name = spec.name
        self.spec = spec
        self.slope_low = 0.0
        self.slope_high = 0.0

    def calculate(self) -> None:
        """Compute the slopes of the two-piece linear power profile."""
        p = self.spec.power
        self.slope_low = _div(p.mid_power - p.idle, p.mid_util)
        self.slope_high = _div(p.full - p.mid_power, 1 - p.mid_util)

    def power(self, util: float) -> float:
        """Power consumption at the given utilization."""
        p = self.spec.power
        if util <= p.mid_util:
            return p.idle + self.slope_low * util
        return p.mid_power + self.slope_high * (util - p.mid_util)

    @property
    def type(self) -> str:
        return self.spec.type

    @property
    def cost(self) -> float:
        return self.spec.cost

    @property
    def multiplicity(self) -> int:
        return self.spec.multiplicity

    @property
    def mem_size(self) -> int:
        return self.spec.mem_size

    def __str__(self) -> str:
        s = self.spec
        p = s.power
        return (
            f"Accelerator: name={self.name}; type={s.type}; multiplicity={s.multiplicity}; "
            f"memSize={s.mem_size}; memBW={s.mem_bw}; cost={_fmt(s.cost)}; "
            f"power={{ {p.idle}, {p.full}, {p.mid_power} @ {_fmt(p.mid_util)} }}"
        )