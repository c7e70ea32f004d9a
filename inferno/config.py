"""Specification data types, their JSON mapping, and tuning parameters."""

import math
from dataclasses import MISSING, dataclass, field, fields, is_dataclass
from typing import Any, get_args, get_origin

# Tolerated percentile for SLOs
SLO_PERCENTILE = 0.95

# Multiplier of the average of an exponential distribution to attain the percentile
SLO_MARGIN = -math.log(1 - SLO_PERCENTILE)

# Small disturbance around a value
DELTA = 0.001

# Maximum number of requests in the queueing system, as multiples of the maximum batch size
MAX_QUEUE_TO_BATCH_RATIO = 10

# Accelerator transition penalty factor
ACCEL_PENALTY_FACTOR = 0.1

DEFAULT_SERVICE_CLASS_NAME = "Free"

DEFAULT_SERVICE_CLASS_PRIORITY = 0

# Weight factor for class priority used in the greedy limited solver
PRIORITY_WEIGHT_FACTOR = 1.0

# Fraction of maximum server throughput kept free for stability
STABILITY_SAFETY_FRACTION = 0.1


def _json(key: str, default: Any = MISSING, factory: Any = MISSING) -> Any:
    if factory is not MISSING:
        return field(default_factory=factory, metadata={"json": key})
    return field(default=default, metadata={"json": key})


@dataclass
class PowerSpec:
    """Accelerator power consumption profile (Watts)."""

    idle: int = _json("idle", 0)
    full: int = _json("full", 0)
    mid_power: int = _json("midPower", 0)
    mid_util: float = _json("midUtil", 0.0)


@dataclass
class AcceleratorSpec:
    name: str = _json("name", "")
    type: str = _json("type", "")
    multiplicity: int = _json("multiplicity", 0)
    mem_size: int = _json("memSize", 0)
    mem_bw: int = _json("memBW", 0)
    power: PowerSpec = _json("power", factory=PowerSpec)
    cost: float = _json("cost", 0.0)


@dataclass
class AcceleratorData:
    spec: list[AcceleratorSpec] = _json("accelerators", factory=list)


@dataclass
class AcceleratorCount:
    type: str = _json("type", "")
    count: int = _json("count", 0)


@dataclass
class CapacityData:
    count: list[AcceleratorCount] = _json("count", factory=list)


@dataclass
class ModelAcceleratorPerfData:
    name: str = _json("name", "")
    acc: str = _json("acc", "")
    acc_count: int = _json("accCount", 0)
    alpha: float = _json("alpha", 0.0)
    beta: float = _json("beta", 0.0)
    max_batch_size: int = _json("maxBatchSize", 0)
    at_tokens: int = _json("atTokens", 0)


@dataclass
class ModelData:
    perf_data: list[ModelAcceleratorPerfData] = _json("models", factory=list)


@dataclass
class ServiceClassSpec:
    name: str = _json("name", "")
    model: str = _json("model", "")
    priority: int = _json("priority", 0)
    slo_itl: float = _json("slo-itl", 0.0)
    slo_ttw: float = _json("slo-ttw", 0.0)
    slo_tps: float = _json("slo-tps", 0.0)


@dataclass
class ServiceClassData:
    spec: list[ServiceClassSpec] = _json("serviceClasses", factory=list)


@dataclass
class ServerLoadSpec:
    arrival_rate: float = _json("arrivalRate", 0.0)
    avg_length: int = _json("avgLength", 0)
    arrival_cov: float = _json("arrivalCOV", 0.0)
    service_cov: float = _json("serviceCOV", 0.0)


@dataclass
class AllocationData:
    accelerator: str = _json("accelerator", "")
    num_replicas: int = _json("numReplicas", 0)
    max_batch: int = _json("maxBatch", 0)
    cost: float = _json("cost", 0.0)
    itl_average: float = _json("itlAverage", 0.0)
    wait_average: float = _json("waitAverage", 0.0)
    load: ServerLoadSpec = _json("load", factory=ServerLoadSpec)


@dataclass
class ServerSpec:
    name: str = _json("name", "")
    service_class: str = _json("class", "")
    model: str = _json("model", "")
    current_alloc: AllocationData = _json("currentAlloc", factory=AllocationData)
    desired_alloc: AllocationData = _json("desiredAlloc", factory=AllocationData)


@dataclass
class ServerData:
    spec: list[ServerSpec] = _json("servers", factory=list)


@dataclass
class OptimizerSpec:
    unlimited: bool = _json("unlimited", False)
    heterogeneous: bool = _json("heterogeneous", False)
    milp_solver: bool = _json("milpSolver", False)
    use_cplex: bool = _json("useCplex", False)


@dataclass
class OptimizerData:
    spec: OptimizerSpec = _json("optimizer", factory=OptimizerSpec)


@dataclass
class SystemSpec:
    accelerators: AcceleratorData = _json("acceleratorData", factory=AcceleratorData)
    models: ModelData = _json("modelData", factory=ModelData)
    service_classes: ServiceClassData = _json("serviceClassData", factory=ServiceClassData)
    servers: ServerData = _json("serverData", factory=ServerData)
    optimizer: OptimizerData = _json("optimizerData", factory=OptimizerData)
    capacity: CapacityData = _json("capacityData", factory=CapacityData)


@dataclass
class SystemData:
    spec: SystemSpec = _json("system", factory=SystemSpec)


@dataclass
class AllocationSolution:
    spec: dict[str, AllocationData] = _json("allocations", factory=dict)


def _key(f: Any) -> str:
    return f.metadata.get("json", f.name)


def _encode(value: Any) -> Any:
    if is_dataclass(value) and not isinstance(value, type):
        return to_dict(value)
    if isinstance(value, list):
        return [_encode(v) for v in value]
    if isinstance(value, dict):
        return {k: _encode(v) for k, v in value.items()}
    return value


def to_dict(spec: Any) -> dict[str, Any]:
    """Convert a spec dataclass into a JSON-ready dict using the wire field names."""
    if not is_dataclass(spec) or isinstance(spec, type):
        raise TypeError(f"not a spec instance: {spec!r}")
    return {_key(f): _encode(getattr(spec, f.name)) for f in fields(spec)}


def _decode(tp: Any, value: Any, path: str) -> Any:
    origin = get_origin(tp)
    if origin is list:
        if not isinstance(value, list):
            raise ValueError(f"{path}: expected a list")
        (item_type,) = get_args(tp)
        return [_decode(item_type, v, f"{path}[{i}]") for i, v in enumerate(value)]
    if origin is dict:
        if not isinstance(value, dict):
            raise ValueError(f"{path}: expected an object")
        _, value_type = get_args(tp)
        return {str(k): _decode(value_type, v, f"{path}.{k}") for k, v in value.items()}
    if isinstance(tp, type) and is_dataclass(tp):
        return from_dict(tp, value)
    if tp is bool:
        if not isinstance(value, bool):
            raise ValueError(f"{path}: expected a boolean")
        return value
    if tp is int:
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"{path}: expected an integer")
        return value
    if tp is float:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"{path}: expected a number")
        return float(value)
    if tp is str:
        if not isinstance(value, str):
            raise ValueError(f"{path}: expected a string")
        return value
    raise TypeError(f"{path}: unsupported type {tp!r}")


def from_dict(cls: type, data: Any) -> Any:
    """Build a spec dataclass from a decoded JSON object.

    Missing or null fields keep their defaults and unknown fields are ignored;
    values of the wrong kind raise ValueError.
    """
    if not isinstance(data, dict):
        raise ValueError(f"expected an object for {cls.__name__}")
    kwargs = {}
    for f in fields(cls):
        key = _key(f)
        value = data.get(key)
        if value is not None:
            kwargs[f.name] = _decode(f.type, value, key)
    return cls(**kwargs)