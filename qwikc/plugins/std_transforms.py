"""Standard IR transform plugins."""

from __future__ import annotations

from tree_sitter import Node

from qwikc.ir import ComponentIR, HookCode, UpdateHook
from qwikc.plugin import ComponentPlugin, PluginManager
from qwikc.syntax import Fragment, iter_nodes, parse_fragment


_STATEMENT_CONTAINERS = frozenset({"program", "statement_block", "class_static_block"})


class StripConsolePlugin(ComponentPlugin):
    """Removes ``console.*(...)`` statements from lifecycle hooks."""

    @property
    def name(self) -> str:
        return "strip_console"

    def pre_json(self, component: ComponentIR) -> ComponentIR:
        hooks = component.hooks
        blocks: list[HookCode | UpdateHook] = [*hooks.on_update]
        if hooks.on_mount is not None:
            blocks.append(hooks.on_mount)
        if hooks.on_unmount is not None:
            blocks.append(hooks.on_unmount)
        for block in blocks:
            block.code = strip_console_calls(block.code)
        return component


class LightComponentPlugin(ComponentPlugin):
    """Emits the component as a plain function instead of a registered one."""

    @property
    def name(self) -> str:
        return "light_component"

    def pre_json(self, component: ComponentIR) -> ComponentIR:
        component.meta.is_light = True
        return component


def strip_console_calls(code: str) -> str:
    """Drop ``console.<method>(...)`` calls that stand as whole statements."""
    fragment = parse_fragment(code)
    removals: list[tuple[int, int, str]] = []
    covered_until = -1
    for node in iter_nodes(fragment.root):
        if node.start_byte < covered_until or node.type != "expression_statement":
            continue
        if node.parent is None or node.parent.type not in _STATEMENT_CONTAINERS:
            continue
        if _is_console_call(fragment, node.named_children[0]):
            removals.append((*fragment.span(node), ""))
            covered_until = node.end_byte
    if not removals:
        return code
    lines = [line for line in fragment.splice(removals).splitlines() if line.strip()]
    return "\n".join(lines)


def _is_console_call(fragment: Fragment, expression: Node) -> bool:
    if expression.type != "call_expression":
        return False
    callee = expression.child_by_field_name("function")
    if callee is None or callee.type != "member_expression":
        return False
    target = callee.child_by_field_name("object")
    return target.type == "identifier" and fragment.text(target) == "console"


def register(manager: PluginManager) -> None:
    """Register the default transform set.

    ``LightComponentPlugin`` changes the output shape and is opt-in:
    load it as ``qwikc.plugins.std_transforms:LightComponentPlugin``.
    """
    manager.register(StripConsolePlugin())
