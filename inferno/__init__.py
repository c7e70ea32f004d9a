"""Accelerator allocation optimizer for LLM inference servers, with a REST service and demos."""

__version__ = "0.1.0"