"""Qwik backend: hook sequencing and module assembly for one component."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass

from tree_sitter import Node

from qwikc.classify import ClassificationMap, classify_state, lexical_scope
from qwikc.errors import FragmentParseError, UnsupportedConstructError
from qwikc.expanders.base import ComponentBackend, ExpansionContext
from qwikc.ir import ComponentIR, StateEntry, StateKind, component_to_dict
from qwikc.syntax import EXPRESSION, parse_fragment
from qwikc.rewriter import STORE_NAME, rewrite_component, rewrite_fragment
from qwikc.source_file import SELF_MODULE, SourceBuilder, SourceFile
from qwikc.state import StateInitPlan, literal_map_text, materialize_state, parse_callable


logger = logging.getLogger(__name__)

HEADER = "// GENERATED BY QWIKC"


@dataclass(frozen=True)
class RuntimeProfile:
    """Runtime module and API names targeted by the backend."""

    module: str = "@builder.io/qwik"
    component: str = "component$"
    use_store: str = "useStore"
    use_context: str = "useContext"
    use_context_provider: str = "useContextProvider"
    use_ref: str = "useRef"
    use_mount: str = "useClientEffect$"
    use_watch: str = "useWatch$"
    use_cleanup: str = "useCleanup$"
    use_styles: str = "useStylesScoped$"


QWIK_RUNTIME = RuntimeProfile()


class QwikBackend(ComponentBackend):
    """Expands a component IR into a Qwik module."""

    def __init__(self, runtime: RuntimeProfile = QWIK_RUNTIME) -> None:
        self.runtime = runtime

    @property
    def name(self) -> str:
        return "qwik"

    def emit_component(self, component: ComponentIR, context: ExpansionContext) -> str:
        options = context.options
        file = SourceFile(
            context.path or f"{component.name}.{options.extension}",
            options,
            self.runtime.module,
        )
        self._register_imports(file, component)

        methods = classify_state(component.state)
        scope = lexical_scope(component)
        rewrite_component(component, methods, scope, component.meta.replace)
        eraser = None if options.typescript else context.collaborators.type_eraser
        plan = materialize_state(component.state, methods, scope, erase_types=eraser)

        sequencer = HookSequencer(file, component, plan, methods, scope, self.runtime, context)
        body = sequencer.run()

        if options.typescript:
            for declaration in component.types:
                file.emit(declaration)
        for function in plan.functions:
            file.export_const(function.name, function.code)

        props = f"props: {component.props_type_ref or 'any'}" if options.typescript else "props"
        factory = f"({props}) => {{\n{self.indent(body.to_string(), 1)}\n}}"
        if not component.meta.is_light:
            factory = f"{file.runtime(self.runtime.component)}({factory})"
        file.export_const(component.name, factory)
        file.export_default(component.name)

        if sequencer.css:
            file.export_const("STYLES", _template_literal(sequencer.css))
        if context.config.debug_dump:
            file.export_const("COMPONENT", json.dumps(component_to_dict(component), indent=2))

        logger.debug(
            "emitted %s with %d import(s) and %d hoisted function(s)",
            component.name,
            len(file.imports()),
            len(plan.functions),
        )
        return f"{HEADER}\n\n{file.to_string()}"

    def _register_imports(self, file: SourceFile, component: ComponentIR) -> None:
        file.import_symbol(SELF_MODULE, component.name, component.name)
        for declaration in component.imports:
            for local_name, symbol in declaration.imports.items():
                file.import_symbol(declaration.path, symbol, local_name)
        for symbol, module in component.meta.imports.items():
            file.import_symbol(module, symbol)


class HookSequencer:
    """Builds the component body from a fixed sequence of emission steps.

    Later steps read bindings declared by earlier ones, so the order in
    ``run`` must not change.
    """

    def __init__(
        self,
        file: SourceFile,
        component: ComponentIR,
        plan: StateInitPlan,
        methods: ClassificationMap,
        scope: list[str],
        runtime: RuntimeProfile,
        context: ExpansionContext,
    ) -> None:
        self.file = file
        self.component = component
        self.plan = plan
        self.methods = methods
        self.scope = scope
        self.runtime = runtime
        self.context = context
        self.body = SourceBuilder()
        self.css: str | None = None

    def run(self) -> SourceBuilder:
        steps = (
            self.emit_styles,
            self.emit_context_consumers,
            self.emit_refs,
            self.emit_store,
            self.emit_context_providers,
            self.emit_mount,
            self.emit_watchers,
            self.emit_cleanup,
            self.emit_element_tag,
            self.emit_render,
        )
        for step in steps:
            step()
        return self.body

    def emit_styles(self) -> None:
        css = self.context.collaborators.style_collector(self.component, self.component.name)
        if not css:
            return
        self.css = css
        self.body.line(f"{self.file.runtime(self.runtime.use_styles)}(STYLES);")

    def emit_context_consumers(self) -> None:
        for key, consumed in self.component.context.get.items():
            self.body.line(f"const {key} = {self.file.runtime(self.runtime.use_context)}({consumed.name});")

    def emit_refs(self) -> None:
        for ref in self.component.refs:
            self.body.line(f"const {ref} = {self.file.runtime(self.runtime.use_ref)}();")

    def emit_store(self) -> None:
        if not self.component.has_state:
            self.body.line(f"const {STORE_NAME} = {{}};")
            return
        seed = literal_map_text(self.plan)
        self.body.line(f"const {STORE_NAME} = {self.file.runtime(self.runtime.use_store)}({seed});")
        for initializer in self.plan.initializers:
            self.body.line(initializer)

    def emit_context_providers(self) -> None:
        for key, provided in self.component.context.set.items():
            entries: list[str] = []
            for value_key, value in provided.value.items():
                entries.append(f"{_property_key(value_key)}: {self._provided_value(key, value_key, value)}")
            seed = "{ " + ", ".join(entries) + " }" if entries else "{}"
            store = f"{self.file.runtime(self.runtime.use_store)}({seed})"
            provider = self.file.runtime(self.runtime.use_context_provider)
            self.body.line(f"{provider}({provided.name}, {store});")

    def _provided_value(self, context_key: str, value_key: str, value: object) -> str:
        if isinstance(value, StateEntry):
            if value.kind is StateKind.GETTER:
                header = parse_callable(value.code)
                return f"(() => {self._erase(header.body)})()"
            if value.kind is StateKind.VALUE:
                return value.code
        elif not callable(value):
            return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
        raise UnsupportedConstructError(
            "QWK101",
            f"Context '{context_key}' provides function-valued entry '{value_key}'.",
            hint="Provide a plain value or a getter; functions cannot be stored in a context store.",
            component=self.component.name,
        )

    def emit_mount(self) -> None:
        hook = self.component.hooks.on_mount
        if hook is None:
            return
        self._effect(self.runtime.use_mount, hook.code)

    def emit_watchers(self) -> None:
        for hook in self.component.hooks.on_update:
            watch = self.file.runtime(self.runtime.use_watch)
            self.body.line(f"{watch}(({{ track }}) => {{")
            with self.body.indented():
                for target, prop in track_targets(hook.deps):
                    self.body.line(f"{target} && track({target}, {json.dumps(prop)});")
                self.body.block(self._erase(hook.code))
            self.body.line("});")

    def emit_cleanup(self) -> None:
        hook = self.component.hooks.on_unmount
        if hook is None:
            return
        self._effect(self.runtime.use_cleanup, hook.code)

    def emit_element_tag(self) -> None:
        tag = self.component.meta.element_tag
        if not tag:
            return
        refreshed = rewrite_fragment(tag, self.methods, self.scope)
        if refreshed != tag:
            self.body.line(f"{tag} = {refreshed};")

    def emit_render(self) -> None:
        markup = self.context.collaborators.markup_renderer(
            self.file,
            self.component.children,
            {},
            {},
            {},
            {},
        )
        self.body.line(f"return {markup};")

    def _effect(self, api: str, code: str) -> None:
        self.body.line(f"{self.file.runtime(api)}(() => {{")
        with self.body.indented():
            self.body.block(self._erase(code))
        self.body.line("});")

    def _erase(self, code: str) -> str:
        if self.context.options.typescript:
            return code
        return self.context.collaborators.type_eraser(code)


def track_targets(deps: str | None) -> list[tuple[str, str]]:
    """Split a dependency list such as ``[a.b, c?.d]`` into (object, property) pairs.

    Entries without an ``object.property`` shape are skipped.
    """
    if not deps or not deps.strip():
        return []
    try:
        fragment = parse_fragment(deps, shapes=(EXPRESSION,))
    except FragmentParseError as err:
        logger.debug("ignoring unparseable dependency list %r: %s", deps, err)
        return []

    node = fragment.top_level()[0]
    if node.type == "array":
        entries = node.named_children
    elif node.type == "sequence_expression":
        entries = _sequence_items(node)
    else:
        entries = [node]

    targets: list[tuple[str, str]] = []
    for entry in entries:
        if entry.type != "member_expression":
            continue
        prop = entry.child_by_field_name("property")
        if prop is None or prop.type != "property_identifier":
            continue
        targets.append((fragment.text(entry.child_by_field_name("object")), fragment.text(prop)))
    return targets


def _sequence_items(node: Node) -> list[Node]:
    items: list[Node] = []
    while node.type == "sequence_expression":
        items.extend(node.named_children[:-1])
        node = node.named_children[-1]
    items.append(node)
    return items


def _property_key(key: str) -> str:
    return key if key.isidentifier() else json.dumps(key)


def _template_literal(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace("`", "\\`").replace("${", "\\${")
    return f"`{escaped}`"
