"""Call-site rewriting for state getters and methods.

Components read getters as ``state.total`` and call methods as
``state.add(x)``. Once those callables are hoisted to module scope they no
longer close over ``props``, ``state``, refs or consumed contexts, so every
reference is rewritten into an explicit call that passes the lexical scope
as leading arguments::

    state.total        ->  total(props,state)
    state.add(x)       ->  add(props,state,x)
    state.add          ->  add.bind(null,props,state)

Rewriting works on ``member_expression`` nodes of the parsed fragment, so
strings, template text and comments are never touched. A member whose
``state`` identifier resolves to a local binding (parameter, declaration,
catch clause) is left alone.
"""

from __future__ import annotations

import logging

from tree_sitter import Node

from qwikc.classify import ClassificationMap
from qwikc.errors import FragmentParseError
from qwikc.ir import Binding, ComponentIR, HookCode, IRVisitor, StateEntry, UpdateHook, walk
from qwikc.syntax import Fragment, iter_nodes, parse_fragment


logger = logging.getLogger(__name__)

STORE_NAME = "state"

_FUNCTION_NODES = frozenset(
    {
        "function_declaration",
        "generator_function_declaration",
        "function_expression",
        "function",
        "generator_function",
        "arrow_function",
        "method_definition",
    }
)
_BLOCK_NODES = frozenset({"program", "statement_block", "class_static_block", "switch_body"})
_DECLARATION_NODES = frozenset({"lexical_declaration", "variable_declaration"})
_NAMED_DECLARATIONS = frozenset({"function_declaration", "generator_function_declaration", "class_declaration"})
_WRITE_TARGETS = {
    "assignment_expression": "left",
    "augmented_assignment_expression": "left",
    "update_expression": "argument",
}


class CallSiteRewriter:
    """Rewrites classified ``state.<name>`` references inside fragments."""

    def __init__(self, methods: ClassificationMap, scope: list[str]) -> None:
        self.methods = methods
        self.scope = scope
        self._scope_args = ",".join(scope)

    def rewrite(self, code: str) -> str:
        """Return ``code`` with every classified reference made an explicit call."""
        fragment = parse_fragment(code)
        if not self.methods:
            return code

        edits: list[tuple[int, int, str]] = []
        for node in iter_nodes(fragment.root):
            if node.type == "member_expression":
                edit = self._edit_for(fragment, node)
                if edit is not None:
                    edits.append(edit)

        if not edits:
            return code
        return fragment.splice(edits)

    def _edit_for(self, fragment: Fragment, member: Node) -> tuple[int, int, str] | None:
        target = member.child_by_field_name("object")
        prop = member.child_by_field_name("property")
        if target is None or prop is None:
            return None
        if target.type != "identifier" or fragment.text(target) != STORE_NAME:
            return None
        name = fragment.text(prop)
        if prop.type != "property_identifier" or name not in self.methods:
            return None
        if _is_write_target(member) or _is_shadowed(fragment, target):
            return None

        start, end = fragment.span(member)
        if self.methods[name] == "getter":
            return start, end, f"{name}({self._scope_args})"

        parent = member.parent
        if parent is not None and parent.type == "call_expression" and parent.child_by_field_name("function") == member:
            arguments = parent.child_by_field_name("arguments")
            if arguments is not None and arguments.type == "arguments":
                has_args = any(child.type != "comment" for child in arguments.named_children)
                open_end = fragment.span(arguments)[0] + 1
                return start, open_end, f"{name}({self._scope_args}" + ("," if has_args else "")
        return start, end, f"{name}.bind(null,{self._scope_args})"


def rewrite_fragment(code: str, methods: ClassificationMap, scope: list[str]) -> str:
    """Rewrite one fragment; raises FragmentParseError on malformed input."""
    return CallSiteRewriter(methods, scope).rewrite(code)


def apply_replacements(code: str, replace: dict[str, str] | None) -> str:
    """Apply the literal substitution table in order, each entry globally."""
    if not replace:
        return code
    for needle, replacement in replace.items():
        if needle:
            code = code.replace(needle, replacement)
    return code


class _ComponentRewriter(IRVisitor):
    def __init__(self, rewriter: CallSiteRewriter, replace: dict[str, str] | None) -> None:
        self.rewriter = rewriter
        self.replace = replace
        self.rewritten = 0

    def visit_code(self, node: StateEntry | HookCode | UpdateHook | Binding) -> None:
        node.code = self._rewrite(node.code)

    def visit_deps(self, hook: UpdateHook) -> None:
        hook.deps = self._rewrite(hook.deps)

    def _rewrite(self, code: str) -> str:
        updated = apply_replacements(self.rewriter.rewrite(code), self.replace)
        if updated != code:
            self.rewritten += 1
        return updated


def rewrite_component(
    component: ComponentIR,
    methods: ClassificationMap,
    scope: list[str],
    replace: dict[str, str] | None = None,
) -> int:
    """Rewrite every code-bearing node of ``component`` in place.

    Returns the number of fragments that changed.
    """
    visitor = _ComponentRewriter(CallSiteRewriter(methods, scope), replace)
    try:
        walk(component, visitor)
    except FragmentParseError as err:
        raise err.with_component(component.name) from err
    logger.debug("rewrote %d fragment(s) in %s", visitor.rewritten, component.name)
    return visitor.rewritten


# ---------------------------------------------------------------------------
# Scope resolution
# ---------------------------------------------------------------------------


def _is_write_target(member: Node) -> bool:
    parent = member.parent
    if parent is None:
        return False
    field = _WRITE_TARGETS.get(parent.type)
    if field is not None:
        return parent.child_by_field_name(field) == member
    if parent.type == "unary_expression":
        operator = parent.child_by_field_name("operator")
        return operator is not None and operator.type == "delete"
    return False


def _is_shadowed(fragment: Fragment, identifier: Node) -> bool:
    """True when ``identifier`` resolves to a binding inside the fragment."""
    name = fragment.text(identifier)
    scope = identifier.parent
    while scope is not None:
        if _declares(fragment, scope, name):
            return True
        scope = scope.parent
    return False


def _declares(fragment: Fragment, scope: Node, name: str) -> bool:
    if scope.type in _FUNCTION_NODES:
        if scope.type in ("function_expression", "function", "generator_function"):
            own_name = scope.child_by_field_name("name")
            if own_name is not None and fragment.text(own_name) == name:
                return True
        single = scope.child_by_field_name("parameter")
        if single is not None and _binds(fragment, single, name):
            return True
        parameters = scope.child_by_field_name("parameters")
        if parameters is not None and any(_binds(fragment, param, name) for param in parameters.named_children):
            return True
        body = scope.child_by_field_name("body")
        return body is not None and _hoisted_var(fragment, body, name)

    if scope.type in _BLOCK_NODES:
        for child in scope.named_children:
            if child.type in _DECLARATION_NODES and _declaration_binds(fragment, child, name):
                return True
            if child.type in _NAMED_DECLARATIONS:
                own_name = child.child_by_field_name("name")
                if own_name is not None and fragment.text(own_name) == name:
                    return True
        return scope.type == "program" and _hoisted_var(fragment, scope, name)

    if scope.type == "for_statement":
        initializer = scope.child_by_field_name("initializer")
        return (
            initializer is not None
            and initializer.type in _DECLARATION_NODES
            and _declaration_binds(fragment, initializer, name)
        )
    if scope.type == "for_in_statement":
        return scope.child_by_field_name("kind") is not None and _binds(
            fragment, scope.child_by_field_name("left"), name
        )
    if scope.type == "catch_clause":
        return _binds(fragment, scope.child_by_field_name("parameter"), name)
    return False


def _declaration_binds(fragment: Fragment, declaration: Node, name: str) -> bool:
    return any(
        _binds(fragment, declarator.child_by_field_name("name"), name)
        for declarator in declaration.named_children
        if declarator.type == "variable_declarator"
    )


def _hoisted_var(fragment: Fragment, body: Node, name: str) -> bool:
    """``var`` declarations anywhere in ``body`` outside nested functions."""
    stack = list(body.named_children)
    while stack:
        node = stack.pop()
        if node.type in _FUNCTION_NODES:
            continue
        if node.type == "variable_declaration" and _declaration_binds(fragment, node, name):
            return True
        stack.extend(node.named_children)
    return False


def _binds(fragment: Fragment, pattern: Node | None, name: str) -> bool:
    """True when the binding pattern introduces ``name``; default values are not bindings."""
    if pattern is None:
        return False
    kind = pattern.type
    if kind in ("identifier", "shorthand_property_identifier_pattern"):
        return fragment.text(pattern) == name
    if kind in ("required_parameter", "optional_parameter"):
        return _binds(fragment, pattern.child_by_field_name("pattern"), name)
    if kind in ("assignment_pattern", "object_assignment_pattern"):
        return _binds(fragment, pattern.child_by_field_name("left"), name)
    if kind == "pair_pattern":
        return _binds(fragment, pattern.child_by_field_name("value"), name)
    if kind in ("object_pattern", "array_pattern", "rest_pattern"):
        return any(_binds(fragment, child, name) for child in pattern.named_children)
    return False
