import json

import pytest

from inferno.config import AcceleratorCount, CapacityData, OptimizerData
from inferno.utils import from_data_to_spec, spec_to_json


def test_decode_bytes():
    d = from_data_to_spec(b'{"count":[{"type":"A100","count":8}]}', CapacityData)
    assert d == CapacityData(count=[AcceleratorCount(type="A100", count=8)])


def test_decode_str():
    d = from_data_to_spec('{"optimizer":{"heterogeneous":true,"milpSolver":false}}', OptimizerData)
    assert d.spec.heterogeneous is True
    assert d.spec.milp_solver is False


def test_round_trip():
    spec = CapacityData(count=[AcceleratorCount(type="L4", count=3), AcceleratorCount(type="H100", count=1)])
    assert from_data_to_spec(spec_to_json(spec), CapacityData) == spec


def test_json_is_compact_and_uses_wire_names():
    text = spec_to_json(AcceleratorCount(type="L4", count=3))
    assert text == '{"type":"L4","count":3}'


def test_malformed_json():
    with pytest.raises(json.JSONDecodeError):
        from_data_to_spec(b"{not json", CapacityData)


def test_wrong_type():
    with pytest.raises(ValueError):
        from_data_to_spec('{"count":[{"type":5}]}', CapacityData)