"""Framework-agnostic component IR consumed by the qwikc backend."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator

from qwikc.errors import InvalidComponentError


IR_SCHEMA_VERSION = "1.0"


class StateKind(str, Enum):
    """How a state property is declared in the source component."""

    VALUE = "value"
    GETTER = "getter"
    METHOD = "method"
    FUNCTION = "function"


@dataclass
class StateEntry:
    """One state property.

    For ``VALUE`` entries ``code`` is literal expression text; for the other
    kinds it is the full callable source including its leading keyword.
    """

    kind: StateKind
    code: str

    @property
    def is_callable(self) -> bool:
        return self.kind is not StateKind.VALUE


@dataclass
class HookCode:
    code: str


@dataclass
class UpdateHook:
    code: str
    deps: str | None = None


@dataclass
class Hooks:
    on_mount: HookCode | None = None
    on_update: list[UpdateHook] = field(default_factory=list)
    on_unmount: HookCode | None = None


@dataclass
class ContextGet:
    """A consumed context; ``name`` is the runtime context reference."""

    name: str


@dataclass
class ContextSet:
    """A provided context.

    Values are JSON literals or ``StateEntry`` getter thunks.
    """

    name: str
    value: dict[str, Any] = field(default_factory=dict)


@dataclass
class ContextSpec:
    get: dict[str, ContextGet] = field(default_factory=dict)
    set: dict[str, ContextSet] = field(default_factory=dict)


@dataclass
class ImportDecl:
    """Import of ``imports`` (local name -> imported symbol) from ``path``."""

    path: str
    imports: dict[str, str] = field(default_factory=dict)


@dataclass
class Binding:
    code: str
    arguments: list[str] | None = None


@dataclass
class MarkupNode:
    name: str
    properties: dict[str, str] = field(default_factory=dict)
    bindings: dict[str, Binding] = field(default_factory=dict)
    children: list["MarkupNode"] = field(default_factory=list)


@dataclass
class ComponentMeta:
    """Target-specific flags, validated at the IR boundary."""

    is_light: bool = False
    imports: dict[str, str] = field(default_factory=dict)
    replace: dict[str, str] = field(default_factory=dict)
    element_tag: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass
class ComponentIR:
    """Top-level component container."""

    name: str
    props_type_ref: str | None = None
    state: dict[str, StateEntry] = field(default_factory=dict)
    hooks: Hooks = field(default_factory=Hooks)
    context: ContextSpec = field(default_factory=ContextSpec)
    refs: list[str] = field(default_factory=list)
    children: list[MarkupNode] = field(default_factory=list)
    imports: list[ImportDecl] = field(default_factory=list)
    types: list[str] = field(default_factory=list)
    meta: ComponentMeta = field(default_factory=ComponentMeta)

    @property
    def has_state(self) -> bool:
        return bool(self.state)


class IRVisitor:
    """Visitor over every code-bearing node of a component.

    Each hook defaults to ``visit_code`` so subclasses that treat all code
    alike only override that one method.
    """

    def visit_code(self, node: StateEntry | HookCode | UpdateHook | Binding) -> None:
        """Handle any node carrying a ``code`` string."""

    def visit_state_entry(self, name: str, entry: StateEntry) -> None:
        self.visit_code(entry)

    def visit_hook(self, hook_name: str, hook: HookCode | UpdateHook) -> None:
        self.visit_code(hook)

    def visit_context_value(self, context_key: str, value_key: str, entry: StateEntry) -> None:
        self.visit_code(entry)

    def visit_binding(self, node: MarkupNode, binding_name: str, binding: Binding) -> None:
        self.visit_code(binding)

    def visit_deps(self, hook: UpdateHook) -> None:
        """Handle the dependency list of an update hook."""


def walk(component: ComponentIR, visitor: IRVisitor) -> None:
    """Dispatch ``visitor`` over every code-bearing node in declaration order."""
    for name, entry in component.state.items():
        visitor.visit_state_entry(name, entry)

    hooks = component.hooks
    if hooks.on_mount is not None:
        visitor.visit_hook("onMount", hooks.on_mount)
    for update in hooks.on_update:
        visitor.visit_hook("onUpdate", update)
        if update.deps is not None:
            visitor.visit_deps(update)
    if hooks.on_unmount is not None:
        visitor.visit_hook("onUnMount", hooks.on_unmount)

    for context_key, provided in component.context.set.items():
        for value_key, value in provided.value.items():
            if isinstance(value, StateEntry):
                visitor.visit_context_value(context_key, value_key, value)

    for node in iter_markup_nodes(component.children):
        for binding_name, binding in node.bindings.items():
            visitor.visit_binding(node, binding_name, binding)


def iter_markup_nodes(children: list[MarkupNode]) -> Iterator[MarkupNode]:
    """Yield markup nodes depth-first, parents before children."""
    for node in children:
        yield node
        yield from iter_markup_nodes(node.children)


# ---------------------------------------------------------------------------
# Dict boundary
# ---------------------------------------------------------------------------


def component_from_dict(payload: Any) -> ComponentIR:
    """Build and validate a ComponentIR from a JSON-compatible mapping."""
    data = _expect_mapping(payload, "component", "IR001")
    name = data.get("name")
    if not isinstance(name, str) or not name.isidentifier():
        raise InvalidComponentError(
            "IR001",
            f"Component name must be an identifier, got {name!r}.",
            hint="Set 'name' to a valid JavaScript identifier such as 'Counter'.",
        )

    props_type_ref = data.get("propsTypeRef", data.get("props_type_ref"))
    if props_type_ref is not None and not isinstance(props_type_ref, str):
        raise InvalidComponentError("IR001", "'propsTypeRef' must be a string.", component=name)

    state: dict[str, StateEntry] = {}
    for key, raw in _expect_mapping(data.get("state", {}), "state", "IR002", name).items():
        state[key] = _state_entry_from_dict(raw, f"state.{key}", name)

    refs_raw = data.get("refs", [])
    if isinstance(refs_raw, dict):
        refs = list(refs_raw.keys())
    elif isinstance(refs_raw, list) and all(isinstance(item, str) for item in refs_raw):
        refs = list(refs_raw)
    else:
        raise InvalidComponentError(
            "IR005",
            "'refs' must be a mapping or a list of names.",
            component=name,
        )

    types_raw = data.get("types") or []
    if not isinstance(types_raw, list) or not all(isinstance(item, str) for item in types_raw):
        raise InvalidComponentError("IR008", "'types' must be a list of strings.", component=name)

    return ComponentIR(
        name=name,
        props_type_ref=props_type_ref,
        state=state,
        hooks=_hooks_from_dict(data.get("hooks", {}), name),
        context=_context_from_dict(data.get("context", {}), name),
        refs=refs,
        children=[_markup_from_dict(item, name) for item in _expect_list(data.get("children", []), "children", name)],
        imports=[_import_from_dict(item, name) for item in _expect_list(data.get("imports", []), "imports", name)],
        types=list(types_raw),
        meta=_meta_from_dict(data.get("meta", {}), name),
    )


def component_to_dict(component: ComponentIR) -> dict[str, Any]:
    """Serialize a ComponentIR into the canonical JSON-compatible mapping."""
    hooks: dict[str, Any] = {}
    if component.hooks.on_mount is not None:
        hooks["onMount"] = {"code": component.hooks.on_mount.code}
    if component.hooks.on_update:
        hooks["onUpdate"] = [
            _drop_none({"code": item.code, "deps": item.deps}) for item in component.hooks.on_update
        ]
    if component.hooks.on_unmount is not None:
        hooks["onUnMount"] = {"code": component.hooks.on_unmount.code}

    meta = component.meta
    meta_payload: dict[str, Any] = dict(meta.extra)
    meta_payload.update(
        _drop_none(
            {
                "isLight": meta.is_light or None,
                "imports": dict(meta.imports) or None,
                "replace": dict(meta.replace) or None,
                "elementTag": meta.element_tag,
            }
        )
    )

    return {
        "schemaVersion": IR_SCHEMA_VERSION,
        "name": component.name,
        **_drop_none({"propsTypeRef": component.props_type_ref}),
        "state": {key: _state_entry_to_dict(entry) for key, entry in component.state.items()},
        "hooks": hooks,
        "context": {
            "get": {key: {"name": ctx.name} for key, ctx in component.context.get.items()},
            "set": {
                key: {
                    "name": ctx.name,
                    "value": {
                        vkey: _state_entry_to_dict(value) if isinstance(value, StateEntry) else value
                        for vkey, value in ctx.value.items()
                    },
                }
                for key, ctx in component.context.set.items()
            },
        },
        "refs": list(component.refs),
        "children": [_markup_to_dict(node) for node in component.children],
        "imports": [{"path": item.path, "imports": dict(item.imports)} for item in component.imports],
        "types": list(component.types),
        "meta": meta_payload,
    }


def _state_entry_from_dict(raw: Any, where: str, component: str) -> StateEntry:
    data = _expect_mapping(raw, where, "IR002", component)
    kind_raw = data.get("kind", data.get("type"))
    try:
        kind = StateKind(kind_raw)
    except ValueError:
        raise InvalidComponentError(
            "IR002",
            f"'{where}' has unknown kind {kind_raw!r}.",
            hint="Use one of: value, getter, method, function.",
            component=component,
        ) from None

    code = data.get("code")
    if kind is StateKind.VALUE and not isinstance(code, str):
        # Literal payloads may arrive as decoded JSON.
        code = _json_literal_text(code)
    if not isinstance(code, str):
        raise InvalidComponentError(
            "IR003",
            f"'{where}.code' must be a string.",
            component=component,
        )
    return StateEntry(kind=kind, code=code)


def _state_entry_to_dict(entry: StateEntry) -> dict[str, Any]:
    return {"kind": entry.kind.value, "code": entry.code}


def _hooks_from_dict(raw: Any, component: str) -> Hooks:
    data = _expect_mapping(raw, "hooks", "IR004", component)
    hooks = Hooks()

    on_mount = data.get("onMount")
    if on_mount is not None:
        hooks.on_mount = HookCode(code=_code_of(on_mount, "hooks.onMount", component))

    on_update = data.get("onUpdate") or []
    if isinstance(on_update, dict):
        on_update = [on_update]
    for index, item in enumerate(_expect_list(on_update, "hooks.onUpdate", component)):
        where = f"hooks.onUpdate[{index}]"
        deps = _expect_mapping(item, where, "IR004", component).get("deps")
        if deps is not None and not isinstance(deps, str):
            raise InvalidComponentError("IR004", f"'{where}.deps' must be a string.", component=component)
        hooks.on_update.append(UpdateHook(code=_code_of(item, where, component), deps=deps))

    on_unmount = data.get("onUnMount", data.get("onUnmount"))
    if on_unmount is not None:
        hooks.on_unmount = HookCode(code=_code_of(on_unmount, "hooks.onUnMount", component))
    return hooks


def _context_from_dict(raw: Any, component: str) -> ContextSpec:
    data = _expect_mapping(raw, "context", "IR006", component)
    spec = ContextSpec()
    for key, item in _expect_mapping(data.get("get", {}), "context.get", "IR006", component).items():
        spec.get[key] = ContextGet(name=_context_name(item, f"context.get.{key}", component))

    for key, item in _expect_mapping(data.get("set", {}), "context.set", "IR006", component).items():
        where = f"context.set.{key}"
        values: dict[str, Any] = {}
        raw_values = _expect_mapping(item, where, "IR006", component).get("value") or {}
        for vkey, value in _expect_mapping(raw_values, f"{where}.value", "IR006", component).items():
            values[vkey] = _context_value_from_dict(value, f"{where}.value.{vkey}", component)
        spec.set[key] = ContextSet(name=_context_name(item, where, component), value=values)
    return spec


def _context_value_from_dict(value: Any, where: str, component: str) -> Any:
    if isinstance(value, dict) and set(value.keys()) <= {"kind", "type", "code"} and "code" in value:
        kind = value.get("kind", value.get("type"))
        if kind in {item.value for item in StateKind if item is not StateKind.VALUE}:
            return _state_entry_from_dict(value, where, component)
    return value


def _context_name(raw: Any, where: str, component: str) -> str:
    name = _expect_mapping(raw, where, "IR006", component).get("name")
    if not isinstance(name, str) or not name:
        raise InvalidComponentError(
            "IR006",
            f"'{where}.name' must be the runtime context reference.",
            component=component,
        )
    return name


def _markup_from_dict(raw: Any, component: str) -> MarkupNode:
    data = _expect_mapping(raw, "children[]", "IR007", component)
    name = data.get("name")
    if not isinstance(name, str) or not name:
        raise InvalidComponentError("IR007", "Markup node is missing its 'name'.", component=component)

    properties: dict[str, str] = {}
    for key, value in _expect_mapping(data.get("properties", {}), f"{name}.properties", "IR007", component).items():
        properties[key] = value if isinstance(value, str) else str(value)

    bindings: dict[str, Binding] = {}
    for key, value in _expect_mapping(data.get("bindings", {}), f"{name}.bindings", "IR007", component).items():
        if isinstance(value, str):
            bindings[key] = Binding(code=value)
            continue
        binding = _expect_mapping(value, f"{name}.bindings.{key}", "IR007", component)
        arguments = binding.get("arguments")
        bindings[key] = Binding(
            code=_code_of(binding, f"{name}.bindings.{key}", component),
            arguments=list(arguments) if arguments is not None else None,
        )

    children = [_markup_from_dict(item, component) for item in _expect_list(data.get("children", []), f"{name}.children", component)]
    return MarkupNode(name=name, properties=properties, bindings=bindings, children=children)


def _markup_to_dict(node: MarkupNode) -> dict[str, Any]:
    return {
        "name": node.name,
        "properties": dict(node.properties),
        "bindings": {
            key: _drop_none({"code": binding.code, "arguments": binding.arguments})
            for key, binding in node.bindings.items()
        },
        "children": [_markup_to_dict(child) for child in node.children],
    }


def _import_from_dict(raw: Any, component: str) -> ImportDecl:
    data = _expect_mapping(raw, "imports[]", "IR008", component)
    path = data.get("path")
    if not isinstance(path, str):
        raise InvalidComponentError("IR008", "Import is missing its 'path'.", component=component)
    symbols = _expect_mapping(data.get("imports", {}), f"imports[{path}]", "IR008", component)
    return ImportDecl(path=path, imports={str(key): str(value) for key, value in symbols.items()})


def _meta_from_dict(raw: Any, component: str) -> ComponentMeta:
    data = dict(_expect_mapping(raw, "meta", "IR009", component))
    use_metadata = data.pop("useMetadata", None) or {}
    legacy = _expect_mapping(use_metadata, "meta.useMetadata", "IR009", component)
    qwik = legacy.get("qwik") or {}

    is_light = data.pop("isLight", data.pop("is_light", None))
    if is_light is None:
        is_light = ((qwik.get("component") or {}).get("isLight")) or False
    imports = data.pop("imports", None) or qwik.get("imports") or {}
    replace = data.pop("replace", None) or qwik.get("replace") or {}
    element_tag = data.pop("elementTag", data.pop("element_tag", None)) or legacy.get("elementTag")

    if not isinstance(is_light, bool):
        raise InvalidComponentError("IR009", "'meta.isLight' must be a boolean.", component=component)
    for label, table in (("imports", imports), ("replace", replace)):
        if not isinstance(table, dict) or not all(
            isinstance(key, str) and isinstance(value, str) for key, value in table.items()
        ):
            raise InvalidComponentError(
                "IR009",
                f"'meta.{label}' must map strings to strings.",
                component=component,
            )
    if element_tag is not None and not isinstance(element_tag, str):
        raise InvalidComponentError("IR009", "'meta.elementTag' must be a string.", component=component)

    extra = {key: value for key, value in legacy.items() if key not in {"qwik", "elementTag"}}
    extra.update(data)
    return ComponentMeta(
        is_light=is_light,
        imports=dict(imports),
        replace=dict(replace),
        element_tag=element_tag,
        extra=extra,
    )


def _code_of(raw: Any, where: str, component: str) -> str:
    code = _expect_mapping(raw, where, "IR004", component).get("code")
    if not isinstance(code, str):
        raise InvalidComponentError("IR003", f"'{where}.code' must be a string.", component=component)
    return code


def _expect_mapping(value: Any, where: str, code: str, component: str | None = None) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise InvalidComponentError(
            code,
            f"'{where}' must be an object, got {type(value).__name__}.",
            component=component,
        )
    return value


def _expect_list(value: Any, where: str, component: str) -> list[Any]:
    if not isinstance(value, list):
        raise InvalidComponentError(
            "IR007",
            f"'{where}' must be a list, got {type(value).__name__}.",
            component=component,
        )
    return value


def _json_literal_text(value: Any) -> Any:
    try:
        return json.dumps(value, separators=(",", ":"))
    except TypeError:
        return value


def _drop_none(payload: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in payload.items() if value is not None}
