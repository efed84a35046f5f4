"""Serialization helpers for component IR and generated modules."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from qwikc.errors import InvalidComponentError
from qwikc.ir import ComponentIR, component_from_dict, component_to_dict


def component_to_json(component: ComponentIR, indent: int = 2) -> str:
    """Serialize a component to JSON text."""
    return json.dumps(component_to_dict(component), indent=indent)


def component_from_json(payload: str) -> ComponentIR:
    """Deserialize and validate a component from JSON text."""
    return component_from_dict(_parse_json(payload, "<input>"))


def read_component(path: str | Path) -> Any:
    """Read raw component JSON from path without validating it."""
    source = Path(path)
    return _parse_json(source.read_text(encoding="utf-8"), str(source))


def write_output(text: str, path: str | Path) -> None:
    """Write generated module text to path, creating parent directories."""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(text, encoding="utf-8")


def _parse_json(payload: str, origin: str) -> Any:
    try:
        return json.loads(payload)
    except json.JSONDecodeError as err:
        raise InvalidComponentError(
            "IR000",
            f"{origin} is not valid JSON: {err.msg} (line {err.lineno}, column {err.colno})",
            hint="Component files hold one JSON object.",
        ) from err
