"""Machine-oriented service layer for qwikc integrations.

Provides a stable request/response API so build tools can call the
generator without going through the CLI.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

from qwikc import __version__
from qwikc.config import GeneratorConfig, GeneratorOptions
from qwikc.errors import CLIError, QwikcError
from qwikc.expanders.qwik_backend import QWIK_RUNTIME
from qwikc.main import generate_component, generate_many
from qwikc.serialization import read_component


def generate_request(payload: dict[str, Any]) -> dict[str, Any]:
    """Generate one component from an inline IR object or an input path."""
    component, filename = _resolve_component_payload(payload)
    result = generate_component(
        component,
        path=filename,
        options=_options(payload),
        config=_config(payload),
    )
    return result.to_dict()


def batch_request(payload: dict[str, Any]) -> dict[str, Any]:
    """Generate a list of components; failures are reported per component."""
    components = payload.get("components")
    if not isinstance(components, list):
        raise CLIError(
            "SRV005",
            "'components' must be a list of component objects.",
            hint="Use components: [{...}, {...}]",
        )
    results = generate_many(components, options=_options(payload), config=_config(payload))
    return {
        "results": [result.to_dict() for result in results],
        "failed": sum(1 for result in results if not result.ok),
    }


def capabilities_request(payload: dict[str, Any] | None = None) -> dict[str, Any]:
    """Return service capability metadata for automation clients."""
    return {
        "service": "qwikc",
        "version": __version__,
        "methods": sorted(_METHODS.keys()),
        "runtime": QWIK_RUNTIME.module,
        "builtin_plugins": [
            "qwikc.plugins.std_transforms",
            "qwikc.plugins.std_transforms:LightComponentPlugin",
        ],
    }


_METHODS: dict[str, Callable[[dict[str, Any]], dict[str, Any]]] = {
    "generate": generate_request,
    "batch": batch_request,
    "capabilities": capabilities_request,
}


def dispatch(method: str, payload: dict[str, Any] | None = None) -> dict[str, Any]:
    """Dispatch a method call for integration adapters."""
    fn = _METHODS.get(method)
    if fn is None:
        raise CLIError(
            "SRV001",
            f"Unknown service method '{method}'.",
            hint=f"Available methods: {', '.join(sorted(_METHODS.keys()))}",
        )
    return fn(payload or {})


def _resolve_component_payload(payload: dict[str, Any]) -> tuple[Any, str]:
    component = payload.get("component")
    input_path = payload.get("input_path")

    if component is not None and input_path is not None:
        raise CLIError(
            "SRV002",
            "Provide only one of 'component' or 'input_path'.",
            hint="Use an inline component for API calls or a file path for local files.",
        )

    if input_path is not None:
        path = Path(str(input_path))
        try:
            return read_component(path), str(path)
        except FileNotFoundError as exc:
            raise CLIError(
                "SRV003",
                f"Input file not found: {path}",
                hint="Check input_path and file permissions.",
            ) from exc

    if component is not None:
        return component, str(payload.get("filename", ""))

    raise CLIError(
        "SRV004",
        "Missing component input.",
        hint="Provide 'component' or 'input_path'.",
    )


def _options(payload: dict[str, Any]) -> GeneratorOptions:
    return GeneratorOptions(
        plugins=_normalize_plugins(payload.get("plugins")),
        typescript=bool(payload.get("typescript", False)),
    )


def _config(payload: dict[str, Any]) -> GeneratorConfig:
    return GeneratorConfig().with_overrides(
        trace_limit=payload.get("trace_limit"),
        debug_dump=payload.get("debug_dump"),
    )


def _normalize_plugins(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, list):
        return [str(item) for item in value]
    raise CLIError(
        "SRV006",
        "'plugins' must be a string or list of strings.",
        hint="Use plugins: ['module:register']",
    )


def safe_dispatch(method: str, payload: dict[str, Any] | None = None) -> tuple[bool, dict[str, Any]]:
    """Dispatch method and normalize errors for integration transport layers."""
    try:
        return True, dispatch(method, payload)
    except QwikcError as err:
        return False, {"error": err.to_diagnostic().to_dict()}
    except Exception as err:  # pragma: no cover - defensive fallback
        return False, {
            "error": {
                "code": "SRV999",
                "message": f"Internal service error: {err}",
                "hint": "Inspect server logs for details.",
            }
        }
