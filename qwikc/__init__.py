"""qwikc: Qwik component generator for framework-agnostic component IR."""

from __future__ import annotations

from typing import Any


__version__ = "0.1.0"

__all__ = [
    "GenerationResult",
    "component_to_qwik",
    "dispatch_service",
    "generate_component",
    "generate_file",
    "generate_many",
]


def generate_component(*args: Any, **kwargs: Any):
    from qwikc.main import generate_component as _generate_component

    return _generate_component(*args, **kwargs)


def generate_file(*args: Any, **kwargs: Any):
    from qwikc.main import generate_file as _generate_file

    return _generate_file(*args, **kwargs)


def generate_many(*args: Any, **kwargs: Any):
    from qwikc.main import generate_many as _generate_many

    return _generate_many(*args, **kwargs)


def component_to_qwik(*args: Any, **kwargs: Any):
    from qwikc.main import component_to_qwik as _component_to_qwik

    return _component_to_qwik(*args, **kwargs)


def dispatch_service(*args: Any, **kwargs: Any):
    from qwikc.service import dispatch as _dispatch

    return _dispatch(*args, **kwargs)


def __getattr__(name: str):
    if name == "GenerationResult":
        from qwikc.main import GenerationResult

        return GenerationResult
    raise AttributeError(name)
