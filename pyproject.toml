[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "inferno"
version = "0.1.0"
description = "Optimizer that allocates accelerators to LLM inference servers under service-level objectives"
requires-python = ">=3.10"
keywords = ["llm", "inference", "optimization", "queueing", "accelerator", "allocation", "slo"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Mathematics",
    "Topic :: System :: Distributed Computing",
]
dependencies = [
    "flask",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
inferno-optimizer = "inferno.cli:main"
inferno-generate = "inferno.generators:main"
inferno-demo = "inferno.demos:main"

[tool.hatch.build.targets.wheel]
packages = ["inferno"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
