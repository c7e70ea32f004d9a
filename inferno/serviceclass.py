"""Service classes and their per-model SLO targets."""

from __future__ import annotations

from dataclasses import dataclass

from inferno.config import DEFAULT_SERVICE_CLASS_PRIORITY, ServiceClassSpec


def _fmt(x: float) -> str:
    x = float(x)
    return str(int(x)) if x.is_integer() else repr(x)


@dataclass
class Target:
    """Target SLOs: inter-token latency, waiting time, throughput."""

    itl: float = 0.0
    ttw: float = 0.0
    tps: float = 0.0

    def __str__(self) -> str:
        return f"[ITL={_fmt(self.itl)}, TTW={_fmt(self.ttw)}, TPS={_fmt(self.tps)}]"


class ServiceClass:
    """A service class with a priority (lower is more important) and model targets."""

    def __init__(self, name: str, priority: int) -> None:
        self.name = name
        self.priority = priority if priority >= 0 else DEFAULT_SERVICE_CLASS_PRIORITY
        self.targets: dict[str, Target] = {}

    def set_target_from_spec(self, spec: ServiceClassSpec) -> None:
        """Set (or replace) the target for a model; specs for other classes are ignored."""
        if spec.name == self.name:
            self.targets[spec.model] = Target(itl=spec.slo_itl, ttw=spec.slo_ttw, tps=spec.slo_tps)

    def model_target(self, model_name: str) -> Target | None:
        return self.targets.get(model_name)

    def remove_model_target(self, model_name: str) -> None:
        self.targets.pop(model_name, None)

    def spec(self) -> list[ServiceClassSpec]:
        return [
            ServiceClassSpec(name=self.name, model=model, priority=self.priority,
                             slo_itl=t.itl, slo_ttw=t.ttw, slo_tps=t.tps)
            for model, t in self.targets.items()
        ]

    def __str__(self) -> str:
        items = " ".join(f"{k}:{v}" for k, v in sorted(self.targets.items()))
        return f"ServiceClass: name={self.name}; priority={self.priority}; targets=map[{items}]"