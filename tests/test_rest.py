import pytest

from inferno.rest import create_app
from inferno.system import System


def _system_json(capacity=10):
    return {
        "system": {
            "acceleratorData": {"accelerators": [
                {"name": "A100", "type": "A100", "multiplicity": 1, "cost": 40.0}]},
            "modelData": {"models": [
                {"name": "m", "acc": "A100", "accCount": 1, "alpha": 20.0, "beta": 0.4,
                 "maxBatchSize": 32, "atTokens": 512}]},
            "serviceClassData": {"serviceClasses": [
                {"name": "Premium", "model": "m", "priority": 1,
                 "slo-itl": 50.0, "slo-ttw": 500.0}]},
            "serverData": {"servers": [
                {"name": "s1", "class": "Premium", "model": "m",
                 "currentAlloc": {"load": {"arrivalRate": 60.0, "avgLength": 512}}}]},
            "optimizerData": {"optimizer": {"unlimited": False}},
            "capacityData": {"count": [{"type": "A100", "count": capacity}]},
        }
    }


@pytest.fixture
def client():
    return create_app(stateful=True).test_client()


def test_empty_models_list(client):
    resp = client.get("/getModels")
    assert resp.status_code == 200
    assert resp.get_json() == []


def test_add_and_get_accelerator(client):
    resp = client.post("/addAccelerator", json={"name": "A100", "type": "A100", "cost": 40.0})
    assert resp.status_code == 200
    got = client.get("/getAccelerator/A100").get_json()
    assert got["name"] == "A100"
    assert got["cost"] == 40.0
    listing = client.get("/getAccelerators")
    assert listing.get_data(as_text=True).startswith("[\n    {")


def test_missing_accelerator(client):
    resp = client.get("/getAccelerator/X")
    assert resp.status_code == 404
    assert resp.get_json() == {"message": "accelerator X not found"}
    assert client.get("/removeAccelerator/X").status_code == 404


def test_remove_accelerator_returns_spec(client):
    client.post("/addAccelerator", json={"name": "L4", "type": "L4"})
    resp = client.get("/removeAccelerator/L4")
    assert resp.get_json()["type"] == "L4"
    assert client.get("/getAccelerator/L4").status_code == 404


def test_bad_body_is_rejected(client):
    resp = client.post("/addAccelerator", data="not json", content_type="application/json")
    assert resp.status_code == 400
    assert client.post("/addAccelerator", json={"name": 5}).status_code == 400


def test_capacity_round_trip(client):
    client.post("/setCapacity", json={"type": "A100", "count": 7})
    assert client.get("/getCapacity/A100").get_json() == {"type": "A100", "count": 7}
    assert client.get("/getCapacities").get_json() == {"count": [{"type": "A100", "count": 7}]}
    assert client.get("/removeCapacity/A100").get_json()["count"] == 7
    resp = client.get("/removeCapacity/A100")
    assert resp.status_code == 404
    assert resp.get_json()["message"] == "accelerator type A100 not found"
    assert client.get("/getCapacity/A100").get_json()["message"] == "capacity for A100 not found"


def test_model_perf_data(client):
    perf = {"name": "m", "acc": "A100", "alpha": 20.0, "beta": 0.4,
            "maxBatchSize": 32, "atTokens": 512}
    resp = client.post("/addModelAcceleratorPerf", json=perf)
    assert resp.status_code == 404
    assert resp.get_json()["message"] == "model m not found"
    assert client.get("/addModel/m").get_json() == "m"
    client.post("/addModelAcceleratorPerf", json=perf)
    assert client.get("/getModelAcceleratorPerf/m/A100").get_json()["alpha"] == 20.0
    assert client.get("/removeModelAcceleratorPerf/m/A100").status_code == 200
    resp = client.get("/getModelAcceleratorPerf/m/A100")
    assert resp.get_json()["message"] == "accelerator A100 not found"
    assert client.get("/removeModel/m").status_code == 200
    assert client.get("/removeModel/m").status_code == 404


def test_service_class_targets(client):
    spec = {"name": "Gold", "model": "m", "priority": 2, "slo-itl": 40.0, "slo-ttw": 300.0}
    client.post("/addServiceClassModelTarget", json=spec)
    got = client.get("/getServiceClassModelTarget/Gold/m").get_json()
    assert got["slo-itl"] == 40.0
    assert got["slo-ttw"] == 300.0
    classes = client.get("/getServiceClasses").get_json()["serviceClasses"]
    assert classes[0]["priority"] == 2
    assert client.get("/removeServiceClassModelTarget/Gold/m").status_code == 200
    resp = client.get("/getServiceClassModelTarget/Gold/m")
    assert resp.get_json()["message"] == "model m not found"
    resp = client.get("/getServiceClassModelTarget/None/m")
    assert resp.get_json()["message"] == "service class None not found"


def test_add_service_class_priority(client):
    resp = client.get("/addServiceClass/Gold/abc")
    assert resp.status_code == 400
    assert resp.get_json()["message"] == "service class priority abc invalid"
    assert client.get("/addServiceClass/Gold/3").get_json() == []
    assert client.get("/removeServiceClass/Gold").status_code == 200
    assert client.get("/getServiceClass/Gold").status_code == 404


def test_servers(client):
    client.post("/addServer", json={"name": "s1", "class": "Premium", "model": "m"})
    assert client.get("/getServer/s1").get_json()["model"] == "m"
    names = [s["name"] for s in client.get("/getServers").get_json()["servers"]]
    assert names == ["s1"]
    assert client.get("/removeServer/s1").status_code == 200
    assert client.get("/getServer/s1").get_json()["message"] == "server s1 not found"


def test_optimize_one_and_apply():
    system = System()
    client = create_app(stateful=True, system=system).test_client()
    resp = client.post("/optimizeOne", json=_system_json())
    assert resp.status_code == 200
    alloc = resp.get_json()["allocations"]["s1"]
    assert alloc["accelerator"] == "A100"
    assert alloc["numReplicas"] >= 1
    assert alloc["load"]["avgLength"] == 512
    assert client.get("/applyAllocation").get_json() == "Done"
    current = client.get("/getServer/s1").get_json()["currentAlloc"]
    assert current["accelerator"] == "A100"
    assert current["numReplicas"] == alloc["numReplicas"]


def test_optimize_on_state(client):
    data = _system_json()["system"]
    client.post("/setAccelerators", json=data["acceleratorData"])
    client.post("/setModels", json=data["modelData"])
    client.post("/setServiceClasses", json=data["serviceClassData"])
    client.post("/setServers", json=data["serverData"])
    client.post("/setCapacities", json={"count": [{"type": "A100", "count": 0}]})
    resp = client.post("/optimize", json={"unlimited": False})
    assert resp.status_code == 200
    assert resp.get_json() == {"allocations": {}}
    resp = client.post("/optimize", json={"milpSolver": True})
    assert resp.status_code == 404
    assert resp.get_json()["message"].startswith("optimization error: ")


def test_stateless_routes():
    client = create_app(stateful=False).test_client()
    assert client.post("/setAccelerators", json={"accelerators": []}).status_code == 404
    resp = client.post("/optimizeOne", json=_system_json())
    assert resp.status_code == 200
    assert list(resp.get_json()["allocations"]) == ["s1"]
    assert client.get("/getModels").get_json() == ["m"]