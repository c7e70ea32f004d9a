"""REST API over a system: a stateful and a stateless flavour."""

from __future__ import annotations

import json
import re
from typing import Any

from flask import Flask, Response, request

from inferno.config import (
    DEFAULT_SERVICE_CLASS_PRIORITY,
    AcceleratorCount,
    AcceleratorData,
    AcceleratorSpec,
    CapacityData,
    ModelAcceleratorPerfData,
    ModelData,
    OptimizerSpec,
    ServerData,
    ServerSpec,
    ServiceClassData,
    ServiceClassSpec,
    SystemData,
    from_dict,
    to_dict,
)
from inferno.manager import Manager
from inferno.optimizer import Optimizer
from inferno.solver import SolverError
from inferno.system import NotFoundError, System

_INT_PATTERN = re.compile(r"[+-]?\d+")


class _BadRequest(Exception):
    pass


def _reply(payload: Any, status: int = 200) -> Response:
    return Response(json.dumps(payload, indent=4), status=status, mimetype="application/json")


def _not_found(message: str) -> Response:
    return _reply({"message": message}, 404)


def _parse(cls: type) -> Any:
    data = request.get_json(silent=True)
    if data is None:
        raise _BadRequest("invalid JSON body")
    try:
        return from_dict(cls, data)
    except ValueError as exc:
        raise _BadRequest(str(exc)) from None


class _Api:
    """Request handlers sharing one (replaceable) system."""

    def __init__(self, system: System) -> None:
        self.system = system

    # accelerators

    def set_accelerators(self) -> Response:
        data = _parse(AcceleratorData)
        self.system.set_accelerators_from_spec(data)
        return _reply(to_dict(data))

    def get_accelerators(self) -> Response:
        return _reply([to_dict(acc.spec) for acc in self.system.accelerators.values()])

    def get_accelerator(self, name: str) -> Response:
        acc = self.system.accelerator(name)
        if acc is None:
            return _not_found(f"accelerator {name} not found")
        return _reply(to_dict(acc.spec))

    def add_accelerator(self) -> Response:
        spec = _parse(AcceleratorSpec)
        self.system.add_accelerator_from_spec(spec)
        return _reply(to_dict(spec))

    def remove_accelerator(self, name: str) -> Response:
        try:
            acc = self.system.remove_accelerator(name)
        except NotFoundError:
            return _not_found(f"accelerator {name} not found")
        return _reply(to_dict(acc.spec))

    # capacities

    def set_capacities(self) -> Response:
        data = _parse(CapacityData)
        self.system.set_capacity_from_spec(data)
        return _reply(to_dict(data))

    def get_capacities(self) -> Response:
        data = CapacityData(count=[AcceleratorCount(type=t, count=c)
                                   for t, c in self.system.capacities.items()])
        return _reply(to_dict(data))

    def get_capacity(self, acc_type: str) -> Response:
        count = self.system.capacity(acc_type)
        if count is None:
            return _not_found(f"capacity for {acc_type} not found")
        return _reply(to_dict(AcceleratorCount(type=acc_type, count=count)))

    def set_capacity(self) -> Response:
        spec = _parse(AcceleratorCount)
        self.system.set_count_from_spec(spec)
        return _reply(to_dict(spec))

    def remove_capacity(self, acc_type: str) -> Response:
        try:
            count = self.system.remove_capacity(acc_type)
        except NotFoundError:
            return _not_found(f"accelerator type {acc_type} not found")
        return _reply(to_dict(AcceleratorCount(type=acc_type, count=count)))

    # models

    def set_models(self) -> Response:
        data = _parse(ModelData)
        self.system.set_models_from_spec(data)
        return _reply(to_dict(data))

    def get_models(self) -> Response:
        return _reply([model.name for model in self.system.models.values()])

    def get_model(self, name: str) -> Response:
        model = self.system.model(name)
        if model is None:
            return _not_found(f"model {name} not found")
        return _reply(to_dict(model.spec()))

    def add_model(self, name: str) -> Response:
        self.system.add_model(name)
        return _reply(name)

    def remove_model(self, name: str) -> Response:
        try:
            self.system.remove_model(name)
        except NotFoundError:
            return _not_found(f"model {name} not found")
        return _reply(name)

    # service classes

    def set_service_classes(self) -> Response:
        data = _parse(ServiceClassData)
        self.system.set_service_classes_from_spec(data)
        return _reply(to_dict(data))

    def get_service_classes(self) -> Response:
        specs = [s for svc in self.system.service_classes.values() for s in svc.spec()]
        return _reply(to_dict(ServiceClassData(spec=specs)))

    def get_service_class(self, name: str) -> Response:
        svc = self.system.service_class(name)
        if svc is None:
            return _not_found(f"service class {name} not found")
        return _reply([to_dict(s) for s in svc.spec()])

    def add_service_class(self, name: str, priority: str) -> Response:
        value = DEFAULT_SERVICE_CLASS_PRIORITY
        if priority:
            if not _INT_PATTERN.fullmatch(priority):
                return _reply({"message": f"service class priority {priority} invalid"}, 400)
            value = int(priority)
        svc = self.system.add_service_class(name, value)
        return _reply([to_dict(s) for s in svc.spec()])

    def remove_service_class(self, name: str) -> Response:
        try:
            svc = self.system.remove_service_class(name)
        except NotFoundError:
            return _not_found(f"service class {name} not found")
        return _reply([to_dict(s) for s in svc.spec()])

    def _target(self, name: str, model: str):
        svc = self.system.service_class(name)
        if svc is None:
            return None, _not_found(f"service class {name} not found")
        target = svc.model_target(model)
        if target is None:
            return None, _not_found(f"model {model} not found")
        return (svc, target), None

    def get_service_class_model_target(self, name: str, model: str) -> Response:
        found, error = self._target(name, model)
        if error is not None:
            return error
        _, target = found
        return _reply(to_dict(ServiceClassSpec(name=name, model=model, slo_itl=target.itl,
                                               slo_ttw=target.ttw, slo_tps=target.tps)))

    def add_service_class_model_target(self) -> Response:
        spec = _parse(ServiceClassSpec)
        svc = self.system.service_class(spec.name)
        if svc is None:
            svc = self.system.add_service_class(spec.name, spec.priority)
        svc.set_target_from_spec(spec)
        return _reply(to_dict(spec))

    def remove_service_class_model_target(self, name: str, model: str) -> Response:
        found, error = self._target(name, model)
        if error is not None:
            return error
        svc, target = found
        svc.remove_model_target(model)
        return _reply(to_dict(ServiceClassSpec(name=name, model=model, slo_itl=target.itl,
                                               slo_ttw=target.ttw, slo_tps=target.tps)))

    # servers

    def set_servers(self) -> Response:
        data = _parse(ServerData)
        self.system.set_servers_from_spec(data)
        return _reply(to_dict(data))

    def get_servers(self) -> Response:
        data = ServerData(spec=[srv.spec for srv in self.system.servers.values()])
        return _reply(to_dict(data))

    def get_server(self, name: str) -> Response:
        server = self.system.server(name)
        if server is None:
            return _not_found(f"server {name} not found")
        return _reply(to_dict(server.spec))

    def add_server(self) -> Response:
        spec = _parse(ServerSpec)
        self.system.add_server_from_spec(spec)
        return _reply(to_dict(spec))

    def remove_server(self, name: str) -> Response:
        try:
            server = self.system.remove_server(name)
        except NotFoundError:
            return _not_found(f"server {name} not found")
        return _reply(to_dict(server.spec))

    # model performance data

    def get_model_accelerator_perf(self, name: str, acc: str) -> Response:
        model = self.system.model(name)
        if model is None:
            return _not_found(f"model {name} not found")
        perf = model.perf_data(acc)
        if perf is None:
            return _not_found(f"accelerator {acc} not found")
        return _reply(to_dict(perf))

    def add_model_accelerator_perf(self) -> Response:
        perf = _parse(ModelAcceleratorPerfData)
        model = self.system.model(perf.name)
        if model is None:
            return _not_found(f"model {perf.name} not found")
        model.add_perf_data_from_spec(perf)
        return _reply(to_dict(perf))

    def remove_model_accelerator_perf(self, name: str, acc: str) -> Response:
        model = self.system.model(name)
        if model is None:
            return _not_found(f"model {name} not found")
        perf = model.perf_data(acc)
        if perf is None:
            return _not_found(f"accelerator {acc} not found")
        model.remove_perf_data(acc)
        return _reply(to_dict(perf))

    # optimization

    def _run(self, spec: OptimizerSpec) -> Response:
        manager = Manager(self.system, Optimizer(self.system, spec))
        self.system.calculate()
        try:
            manager.optimize()
        except SolverError as exc:
            return _not_found(f"optimization error: {exc}")
        solution = self.system.generate_solution()
        print(self.system)
        return _reply(to_dict(solution))

    def optimize(self) -> Response:
        return self._run(_parse(OptimizerSpec))

    def optimize_one(self) -> Response:
        data = _parse(SystemData)
        self.system = System()
        spec = self.system.set_from_spec(data.spec)
        return self._run(spec)

    def apply_allocation(self) -> Response:
        for server in self.system.servers.values():
            server.apply_desired_alloc()
        return _reply("Done")


_STATELESS_ROUTES = [
    ("POST", "/optimizeOne", "optimize_one"),
    ("GET", "/getAccelerators", "get_accelerators"),
    ("GET", "/getAccelerator/<name>", "get_accelerator"),
    ("GET", "/getCapacities", "get_capacities"),
    ("GET", "/getCapacity/<acc_type>", "get_capacity"),
    ("GET", "/getModels", "get_models"),
    ("GET", "/getModel/<name>", "get_model"),
    ("GET", "/getServiceClasses", "get_service_classes"),
    ("GET", "/getServiceClass/<name>", "get_service_class"),
    ("GET", "/getServiceClassModelTarget/<name>/<model>", "get_service_class_model_target"),
    ("GET", "/getServers", "get_servers"),
    ("GET", "/getServer/<name>", "get_server"),
    ("GET", "/getModelAcceleratorPerf/<name>/<acc>", "get_model_accelerator_perf"),
]

_STATEFUL_ROUTES = [
    ("POST", "/setAccelerators", "set_accelerators"),
    ("GET", "/getAccelerators", "get_accelerators"),
    ("GET", "/getAccelerator/<name>", "get_accelerator"),
    ("POST", "/addAccelerator", "add_accelerator"),
    ("GET", "/removeAccelerator/<name>", "remove_accelerator"),
    ("POST", "/setCapacities", "set_capacities"),
    ("GET", "/getCapacities", "get_capacities"),
    ("GET", "/getCapacity/<acc_type>", "get_capacity"),
    ("POST", "/setCapacity", "set_capacity"),
    ("GET", "/removeCapacity/<acc_type>", "remove_capacity"),
    ("POST", "/setModels", "set_models"),
    ("GET", "/getModels", "get_models"),
    ("GET", "/getModel/<name>", "get_model"),
    ("GET", "/addModel/<name>", "add_model"),
    ("GET", "/removeModel/<name>", "remove_model"),
    ("POST", "/setServiceClasses", "set_service_classes"),
    ("GET", "/getServiceClasses", "get_service_classes"),
    ("GET", "/getServiceClass/<name>", "get_service_class"),
    ("GET", "/addServiceClass/<name>/<priority>", "add_service_class"),
    ("GET", "/removeServiceClass/<name>", "remove_service_class"),
    ("GET", "/getServiceClassModelTarget/<name>/<model>", "get_service_class_model_target"),
    ("POST", "/addServiceClassModelTarget", "add_service_class_model_target"),
    ("GET", "/removeServiceClassModelTarget/<name>/<model>", "remove_service_class_model_target"),
    ("POST", "/setServers", "set_servers"),
    ("GET", "/getServers", "get_servers"),
    ("GET", "/getServer/<name>", "get_server"),
    ("POST", "/addServer", "add_server"),
    ("GET", "/removeServer/<name>", "remove_server"),
    ("GET", "/getModelAcceleratorPerf/<name>/<acc>", "get_model_accelerator_perf"),
    ("POST", "/addModelAcceleratorPerf", "add_model_accelerator_perf"),
    ("GET", "/removeModelAcceleratorPerf/<name>/<acc>", "remove_model_accelerator_perf"),
    ("POST", "/optimize", "optimize"),
    ("POST", "/optimizeOne", "optimize_one"),
    ("GET", "/applyAllocation", "apply_allocation"),
]


def create_app(stateful: bool = False, system: System | None = None) -> Flask:
    """Build the REST application.

    The stateful flavour exposes calls to build up and change the system;
    the stateless one only accepts a whole system to optimize and lets it be read.
    """
    api = _Api(system if system is not None else System())
    app = Flask(__name__)

    @app.errorhandler(_BadRequest)
    def _bad_request(exc: _BadRequest) -> Response:
        return _reply({"message": f"invalid request: {exc}"}, 400)

    routes = _STATEFUL_ROUTES if stateful else _STATELESS_ROUTES
    for method, path, name in routes:
        app.add_url_rule(path, endpoint=name, view_func=getattr(api, name), methods=[method])
    return app