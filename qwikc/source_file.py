"""Output accumulator: imports, top-level declarations and body text."""

from __future__ import annotations

import textwrap
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator

from qwikc.errors import UnsupportedConstructError


# Module marker for the component's own name; never rendered as an import.
SELF_MODULE = "<SELF>"


@dataclass(frozen=True)
class OutputOptions:
    """Static properties of the emitted file."""

    typescript: bool = False
    jsx: bool = True

    @property
    def extension(self) -> str:
        if self.typescript:
            return "tsx" if self.jsx else "ts"
        return "jsx" if self.jsx else "js"


@dataclass(frozen=True)
class ImportBinding:
    """One imported symbol and the local name it is bound to."""

    module: str
    symbol: str
    local_name: str

    def __str__(self) -> str:
        return self.local_name


class SourceBuilder:
    """Indented line accumulator for function bodies."""

    def __init__(self, unit: str = "  ") -> None:
        self.unit = unit
        self.level = 0
        self.lines: list[str] = []

    def line(self, *parts: str) -> None:
        """Append one line at the current indentation."""
        text = "".join(parts)
        self.lines.append((self.unit * self.level + text) if text.strip() else "")

    def block(self, text: str) -> None:
        """Append multi-line code, re-indented to the current level."""
        body = textwrap.dedent(text).strip("\n")
        for raw in body.splitlines():
            self.line(raw.rstrip())

    @contextmanager
    def indented(self) -> Iterator[None]:
        self.level += 1
        try:
            yield
        finally:
            self.level -= 1

    def to_string(self) -> str:
        return "\n".join(self.lines)


class SourceFile:
    """Accumulates one output module.

    Imports are deduplicated by ``(module, symbol)``; every other top-level
    declaration is kept in registration order.
    """

    def __init__(self, filename: str, options: OutputOptions, runtime_module: str) -> None:
        self.filename = filename
        self.options = options
        self.runtime_module = runtime_module
        self._imports: dict[tuple[str, str], ImportBinding] = {}
        self._locals: dict[str, ImportBinding] = {}
        self._declarations: list[str] = []

    def import_symbol(self, module: str, symbol: str, local_name: str | None = None) -> ImportBinding:
        """Register an import and return its binding, reusing an existing one."""
        module = normalize_import_path(module)
        key = (module, symbol)
        existing = self._imports.get(key)
        if existing is not None:
            return existing

        local = local_name or _default_local_name(module, symbol)
        bound = self._locals.get(local)
        if bound is not None:
            if bound.module == SELF_MODULE:
                # Recursive self-use resolves to the component itself.
                return bound
            raise UnsupportedConstructError(
                "QWK104",
                f"Local name '{local}' is imported from both '{bound.module}' and '{module}'.",
                hint="Alias one of the imports.",
            )

        binding = ImportBinding(module=module, symbol=symbol, local_name=local)
        self._imports[key] = binding
        self._locals[local] = binding
        return binding

    def runtime(self, symbol: str) -> str:
        """Import ``symbol`` from the target runtime and return its local name."""
        return self.import_symbol(self.runtime_module, symbol).local_name

    def emit(self, *parts: str) -> None:
        """Append verbatim top-level text."""
        self._declarations.append("".join(parts).rstrip())

    def declare_const(self, name: str, value: str, export: bool = False) -> None:
        prefix = "export " if export else ""
        self._declarations.append(f"{prefix}const {name} = {value};")

    def export_const(self, name: str, value: str) -> None:
        self.declare_const(name, value, export=True)

    def export_default(self, name: str) -> None:
        self._declarations.append(f"export default {name};")

    def imports(self) -> list[ImportBinding]:
        return [binding for binding in self._imports.values() if binding.module != SELF_MODULE]

    def to_string(self) -> str:
        """Render imports followed by declarations."""
        sections: list[str] = []
        import_lines = self._render_imports()
        if import_lines:
            sections.append("\n".join(import_lines))
        sections.extend(self._declarations)
        return "\n\n".join(sections) + "\n"

    def _render_imports(self) -> list[str]:
        by_module: dict[str, list[ImportBinding]] = {}
        for binding in self.imports():
            by_module.setdefault(binding.module, []).append(binding)

        lines: list[str] = []
        for module, bindings in by_module.items():
            default = next((item for item in bindings if item.symbol == "default"), None)
            namespace = next((item for item in bindings if item.symbol == "*"), None)
            named = [item for item in bindings if item.symbol not in {"default", "*"}]

            clauses: list[str] = []
            if default is not None:
                clauses.append(default.local_name)
            if namespace is not None:
                clauses.append(f"* as {namespace.local_name}")
            if named:
                names = ", ".join(
                    item.symbol if item.symbol == item.local_name else f"{item.symbol} as {item.local_name}"
                    for item in named
                )
                clauses.append("{ " + names + " }")
            if namespace is not None and named:
                # `import * as ns, { a }` is not valid syntax.
                lines.append(f'import * as {namespace.local_name} from "{module}";')
                clauses.remove(f"* as {namespace.local_name}")
            lines.append(f'import {", ".join(clauses)} from "{module}";')
        return lines


def normalize_import_path(path: str) -> str:
    """Drop source-only suffixes from component import paths."""
    if path == SELF_MODULE:
        return path
    for suffix in (".tsx", ".lite"):
        if path.endswith(suffix):
            path = path[: -len(suffix)]
    return path


def _default_local_name(module: str, symbol: str) -> str:
    if symbol not in {"default", "*"}:
        return symbol
    stem = module.rstrip("/").rsplit("/", 1)[-1].split(".", 1)[0]
    cleaned = "".join(ch if ch.isalnum() or ch in "_$" else "_" for ch in stem) or "module"
    if cleaned[0].isdigit():
        cleaned = "_" + cleaned
    return cleaned
