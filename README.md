# inferno

Inferno decides how many replicas of which accelerator each LLM inference
server should get. Every server pairs a model with a service class. Each
service class sets per-model targets for inter-token latency (ITL), time to
wait (TTW) and throughput (TPS).

For every candidate accelerator, a state-dependent queueing model of batched
inference (`inferno.queueing.StateDependentQueue`) gives the arrival rate that
one replica can carry while meeting the targets. That rate fixes the replica
count and the cost. A solver (`inferno.solver.Solver`) then picks one
allocation per server. It either assumes unlimited capacity or works greedily
within the available count of each accelerator type. Service-class priority
and the penalty for moving away from the current allocation both shape the
choice.

## Installation

```
pip install .
```

Install `.[test]` to get pytest for the test suite.

## Running the optimizer service

```
inferno-optimizer        # stateless: POST /optimizeOne plus read-only queries
inferno-optimizer -F     # stateful: full set of set/add/remove endpoints
```

The service is a Flask application built by `inferno.rest.create_app`. The
host comes from `INFERNO_HOST`; unset or empty means all interfaces. The port
comes from `INFERNO_PORT` and defaults to `8080`. A port that is not a number
from 0 to 65535 is an error.

### Stateless mode

POST a whole system description to `/optimizeOne`. It has the form
`{"system": {...}}`, with the sections `acceleratorData`, `modelData`,
`serviceClassData`, `serverData`, `optimizerData` and `capacityData`. Each
call starts from a fresh system.

The reply is the allocation solution: `{"allocations": {...}}`, mapping each
server name to its accelerator, replica count, maximum batch, cost, average
ITL, average waiting time and load.

The GET endpoints show the state after the last optimization:

- `/getAccelerators`, `/getAccelerator/<name>`
- `/getCapacities`, `/getCapacity/<type>`
- `/getModels`, `/getModel/<name>`
- `/getServiceClasses`, `/getServiceClass/<name>`
- `/getServiceClassModelTarget/<name>/<model>`
- `/getServers`, `/getServer/<name>`
- `/getModelAcceleratorPerf/<name>/<acc>`

### Stateful mode

In stateful mode you build the system piece by piece. Besides the GET
endpoints above, it offers these:

- POST `/setAccelerators`, `/addAccelerator`; GET `/removeAccelerator/<name>`
- POST `/setCapacities`, `/setCapacity`; GET `/removeCapacity/<type>`
- POST `/setModels`; GET `/addModel/<name>`, `/removeModel/<name>`
- POST `/setServiceClasses`; GET `/addServiceClass/<name>/<priority>`,
  `/removeServiceClass/<name>`
- POST `/addServiceClassModelTarget`; GET
  `/removeServiceClassModelTarget/<name>/<model>`
- POST `/setServers`, `/addServer`; GET `/removeServer/<name>`
- POST `/addModelAcceleratorPerf`; GET `/removeModelAcceleratorPerf/<name>/<acc>`
- POST `/optimize` with the optimizer settings
  (`{"unlimited": ..., "heterogeneous": ..., "milpSolver": ..., "useCplex": ...}`)
- POST `/optimizeOne` as in stateless mode
- GET `/applyAllocation` makes each server's desired allocation its current
  one. Later optimizations count transition penalties from it.

### Errors

Unknown names get a 404 reply with a `message` field. A body that is not valid
JSON of the expected shape gets a 400 reply, and so does a priority that is
not an integer. A failed optimization gets a 404 reply whose message begins
with `optimization error:`. After each optimization the service prints a
solution summary to standard output.

## Generating model performance data

```
inferno-generate
```

This prints compact JSON model performance data (`{"models": [...]}`). It
covers a built-in table of nine models on twenty-one accelerators, model by
model. The same data is available as `inferno.generators.generate_model_data()`.

## Demos

```
inferno-demo main [SIZE] [--data-root DIR]
inferno-demo scale [SIZE] [--data-root DIR]
inferno-demo transition [SIZE] [--data-root DIR]
```

The data directory is `DIR/SIZE`; by default that is `sample-data/large`.
Each demo reads `accelerator-data.json`, `capacity-data.json`,
`model-data.json`, `serviceclass-data.json`, `server-data.json` and
`optimizer-data.json` from it and runs an optimization.

- `main` writes `solution-data.json` into the directory and prints the
  solution summary.
- `scale` changes the load of the server `Premium-llama3_8b`: it multiplies
  the arrival rate by 2.5 and the average length by 1.5. It then rescales that
  server's allocation and finds the best reallocation over all accelerators.
- `transition` perturbs every server's load at random and optimizes again,
  with the previous solution as the current allocation.

Missing files, malformed data, missing servers and solver failures are
reported on standard error, and the command exits with status 1. The same
steps are available as `inferno.demos.load_system`, `run_main`, `run_scale`
and `run_transition`.

## Library use

```python
from inferno.config import SystemData
from inferno.manager import Manager
from inferno.optimizer import Optimizer
from inferno.system import System
from inferno.utils import from_data_to_spec, spec_to_json

with open("system.json", "rb") as fh:
    data = from_data_to_spec(fh.read(), SystemData)

system = System()
optimizer_spec = system.set_from_spec(data.spec)
manager = Manager(system, Optimizer(system, optimizer_spec))
system.calculate()
manager.optimize()
print(spec_to_json(system.generate_solution()))
```

The spec dataclasses in `inferno.config` convert to and from their JSON field
names with `to_dict` and `from_dict`. `System` lookups return `None` for
unknown names. `System.remove_*` raises `inferno.system.NotFoundError`, and a
failed optimization raises `inferno.solver.SolverError`.

## What it does not do

- There is no mixed-integer (MILP) solver. An optimizer spec with
  `milpSolver` set makes the optimization fail with `SolverError`.
- `useCplex` and `heterogeneous` are accepted but have no effect: each server
  always gets a single accelerator type.
- No sample data sets come with the package. The demos need a directory of
  the JSON files listed above.
- The system lives in memory only; nothing is stored between runs of the
  service.