import json

from inferno.config import ModelData
from inferno.generators import (
    ACCELERATOR_NAMES,
    MODEL_NAMES,
    generate_model_data,
    main,
)
from inferno.utils import from_data_to_spec


def test_one_entry_per_model_and_accelerator():
    data = generate_model_data()
    assert len(data.perf_data) == len(MODEL_NAMES) * len(ACCELERATOR_NAMES)
    pairs = {(p.name, p.acc) for p in data.perf_data}
    assert len(pairs) == len(data.perf_data)
    assert {p.name for p in data.perf_data} == set(MODEL_NAMES)
    assert {p.acc for p in data.perf_data} == set(ACCELERATOR_NAMES)


def test_ordered_model_by_model():
    data = generate_model_data()
    first_block = data.perf_data[: len(ACCELERATOR_NAMES)]
    assert [p.acc for p in first_block] == ACCELERATOR_NAMES
    assert all(p.name == MODEL_NAMES[0] for p in first_block)
    assert data.perf_data[-1].name == MODEL_NAMES[-1]
    assert data.perf_data[-1].acc == ACCELERATOR_NAMES[-1]


def test_first_entry_values():
    first = generate_model_data().perf_data[0]
    assert first.name == "granite_13b"
    assert first.acc == "AIU2"
    assert first.alpha == 205.80
    assert first.beta == 4.10
    assert first.max_batch_size == 51
    assert first.acc_count == 1
    assert first.at_tokens == 512


def test_tables_are_transposed_into_entries():
    entries = {(p.name, p.acc): p for p in generate_model_data().perf_data}
    perf = entries[("llama_70b", "L4")]
    assert perf.alpha == 182.73
    assert perf.beta == 47.13
    assert perf.max_batch_size == 1
    assert perf.acc_count == 8


def test_all_entries_share_token_count():
    assert {p.at_tokens for p in generate_model_data().perf_data} == {512}


def test_main_prints_json_that_decodes_back(capsys):
    assert main([]) == 0
    out = capsys.readouterr().out
    decoded = from_data_to_spec(out, ModelData)
    assert decoded == generate_model_data()
    raw = json.loads(out)
    assert list(raw) == ["models"]
    assert raw["models"][0]["maxBatchSize"] == 51