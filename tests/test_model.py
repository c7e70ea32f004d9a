from inferno.config import ModelAcceleratorPerfData
from inferno.model import Model


def perf(name="llama", acc="A100", count=2):
    return ModelAcceleratorPerfData(name=name, acc=acc, acc_count=count, alpha=20.58, beta=0.41,
                                    max_batch_size=32, at_tokens=512)


def test_add_and_lookup():
    m = Model("llama")
    p = perf()
    m.add_perf_data_from_spec(p)
    assert m.perf_data("A100") is p
    assert m.num_instances("A100") == 2


def test_nonpositive_count_defaults_to_one():
    m = Model("llama")
    m.add_perf_data_from_spec(perf(count=0))
    assert m.num_instances("A100") == 1


def test_other_model_ignored():
    m = Model("llama")
    m.add_perf_data_from_spec(perf(name="granite"))
    assert m.perf_data("A100") is None
    assert m.num_instances("A100") == 0


def test_remove_perf_data():
    m = Model("llama")
    m.add_perf_data_from_spec(perf())
    m.remove_perf_data("A100")
    m.remove_perf_data("missing")
    assert m.perf_data("A100") is None


def test_spec_holds_all_perf_data():
    m = Model("llama")
    entries = [perf(acc="A100"), perf(acc="L4", count=1)]
    for e in entries:
        m.add_perf_data_from_spec(e)
    assert sorted(p.acc for p in m.spec().perf_data) == ["A100", "L4"]


def test_str():
    m = Model("llama")
    m.add_perf_data_from_spec(perf(acc="L4", count=1))
    m.add_perf_data_from_spec(perf(acc="A100", count=2))
    assert str(m) == "Model: name=llama; numInstances=map[A100:2 L4:1]"