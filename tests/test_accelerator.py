import math

import pytest

from inferno.accelerator import Accelerator
from inferno.config import AcceleratorSpec, PowerSpec


@pytest.fixture
def acc():
    a = Accelerator(AcceleratorSpec(name="A100", type="A100", multiplicity=2, mem_size=80, mem_bw=2039,
                                    power=PowerSpec(idle=100, full=400, mid_power=200, mid_util=0.5),
                                    cost=40.0))
    a.calculate()
    return a


def test_power_at_profile_points(acc):
    assert acc.power(0) == pytest.approx(100)
    assert acc.power(0.5) == pytest.approx(200)
    assert acc.power(1.0) == pytest.approx(400)


def test_power_is_monotonic(acc):
    values = [acc.power(u / 20) for u in range(21)]
    assert values == sorted(values)


def test_power_continuous_at_midpoint(acc):
    assert math.isclose(acc.power(0.5 + 1e-9), acc.power(0.5), rel_tol=1e-6)


def test_properties(acc):
    assert acc.name == "A100"
    assert acc.type == "A100"
    assert acc.multiplicity == 2
    assert acc.mem_size == 80
    assert acc.cost == 40.0


def test_str(acc):
    assert str(acc) == ("Accelerator: name=A100; type=A100; multiplicity=2; memSize=80; memBW=2039; "
                        "cost=40; power={ 100, 400, 200 @ 0.5 }")


def test_zero_mid_util_gives_infinite_slope():
    a = Accelerator(AcceleratorSpec(name="x", power=PowerSpec(idle=10, full=20, mid_power=15, mid_util=0.0)))
    a.calculate()
    assert math.isinf(a.slope_low)
    low = a.power(0.0)
    assert math.isnan(low) or math.isinf(low)
    assert a.power(1.0) == pytest.approx(20)