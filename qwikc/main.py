"""Top-level generation orchestration for qwikc."""

from __future__ import annotations

import copy
import logging
import traceback
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Callable, Iterable, Mapping, Union

from qwikc.config import GeneratorConfig, GeneratorOptions
from qwikc.errors import Diagnostic, GenerationError, QwikcError, format_diagnostic
from qwikc.expanders.base import Collaborators, ComponentBackend, ExpansionContext
from qwikc.expanders.qwik_backend import QwikBackend
from qwikc.ir import ComponentIR, component_from_dict
from qwikc.plugin import build_plugin_manager
from qwikc.prevent_default import add_prevent_default
from qwikc.serialization import read_component, write_output
from qwikc.source_file import OutputOptions


logger = logging.getLogger(__name__)

DIAGNOSTIC_MARKER = "// QWIKC ERROR"

ComponentInput = Union[ComponentIR, Mapping[str, Any]]


@dataclass
class GenerationResult:
    """Outcome of one generation call: module text or a diagnostic."""

    component: str
    ok: bool
    code: str = ""
    error: Diagnostic | None = None
    trace: str = ""

    @property
    def text(self) -> str:
        """Generated code, or diagnostic text in its place."""
        if self.ok:
            return self.code
        return diagnostic_text(self)

    def to_dict(self) -> dict[str, Any]:
        return {
            "component": self.component,
            "ok": self.ok,
            "code": self.code,
            "error": self.error.to_dict() if self.error is not None else None,
            "trace": self.trace,
        }


def default_backend() -> ComponentBackend:
    return QwikBackend()


def generate_component(
    component: ComponentInput,
    *,
    path: str = "",
    options: GeneratorOptions | None = None,
    config: GeneratorConfig | None = None,
    collaborators: Collaborators | None = None,
    backend: ComponentBackend | None = None,
) -> GenerationResult:
    """Generate one component module.

    Every failure inside the pipeline is caught here, once, and returned as
    a failed result; the caller's component is never mutated.
    """
    options = options or GeneratorOptions()
    config = config or GeneratorConfig()
    name = _component_name(component)

    try:
        source = copy.deepcopy(component)
        working = component_from_dict(source) if isinstance(source, Mapping) else source
        manager = build_plugin_manager(options.plugins)
        working = manager.run_pre(working)
        add_prevent_default(working)
        working = manager.run_post(working)

        context = ExpansionContext(
            path=path,
            options=OutputOptions(typescript=options.typescript),
            config=config,
            collaborators=collaborators or Collaborators(),
        )
        code = (backend or default_backend()).emit_component(working, context)
    except Exception as exc:
        failure = exc if isinstance(exc, QwikcError) else GenerationError(name, exc)
        diagnostic = failure.to_diagnostic()
        if diagnostic.component is None:
            diagnostic = replace(diagnostic, component=name)
        trace = "".join(
            traceback.format_exception(type(exc), exc, exc.__traceback__, limit=config.trace_limit)
        )
        logger.error("generation failed: %s", format_diagnostic(diagnostic))
        return GenerationResult(component=name, ok=False, error=diagnostic, trace=trace)

    logger.info("generated %s (%d chars)", name, len(code))
    return GenerationResult(component=name, ok=True, code=code)


def component_to_qwik(
    options: GeneratorOptions | None = None,
    config: GeneratorConfig | None = None,
    collaborators: Collaborators | None = None,
) -> Callable[[ComponentInput, str], str]:
    """Return a transpiler callable that always yields text.

    Failures come back as diagnostic text starting with ``DIAGNOSTIC_MARKER``;
    use ``is_diagnostic`` or ``generate_component`` to tell them apart.
    """

    def transpile(component: ComponentInput, path: str = "") -> str:
        return generate_component(
            component,
            path=path,
            options=options,
            config=config,
            collaborators=collaborators,
        ).text

    return transpile


def generate_file(
    input_path: str | Path,
    *,
    output_path: str | Path | None = None,
    options: GeneratorOptions | None = None,
    config: GeneratorConfig | None = None,
) -> GenerationResult:
    """Generate a module from a component JSON file."""
    path = Path(input_path)
    payload = read_component(path)
    result = generate_component(payload, path=str(path), options=options, config=config)
    if output_path is not None and result.ok:
        write_output(result.code, output_path)
    return result


def generate_many(
    components: Iterable[ComponentInput],
    *,
    options: GeneratorOptions | None = None,
    config: GeneratorConfig | None = None,
) -> list[GenerationResult]:
    """Generate every component; one failure never stops the batch."""
    results = [generate_component(component, options=options, config=config) for component in components]
    failed = sum(1 for result in results if not result.ok)
    if failed:
        logger.warning("%d of %d component(s) failed", failed, len(results))
    return results


def is_diagnostic(text: str) -> bool:
    return text.startswith(DIAGNOSTIC_MARKER)


def diagnostic_text(result: GenerationResult) -> str:
    """Render a failed result as a comment-only module."""
    summary = format_diagnostic(result.error) if result.error is not None else "unknown failure"
    lines = [f"{DIAGNOSTIC_MARKER} {summary}"]
    if result.trace:
        lines.append("/*")
        lines.extend(line.replace("*/", "* /") for line in result.trace.rstrip().splitlines())
        lines.append("*/")
    return "\n".join(lines) + "\n"


def _component_name(component: Any) -> str:
    if isinstance(component, ComponentIR):
        return component.name
    if isinstance(component, Mapping) and isinstance(component.get("name"), str):
        return component["name"]
    return "<unknown>"
