"""JSX rendering of component markup trees."""

from __future__ import annotations

import json

from qwikc.ir import Binding, MarkupNode
from qwikc.source_file import SourceFile


TEXT_KEY = "_text"
SPREAD_KEY = "_spread"
CONTROL_NODES = frozenset({"Fragment", "Show", "For"})


def render_markup(
    file: SourceFile,
    children: list[MarkupNode],
    directives: dict[str, str],
    handlers: dict[str, str],
    styles: dict[str, str],
    parent_bindings: dict[str, str],
) -> str:
    """Render ``children`` as one JSX expression.

    The side tables are filled while rendering: ``directives`` with boolean
    directive attributes, ``handlers`` with event handler code keyed by
    ``<path>:<event>``, ``styles`` with inline style expressions and
    ``parent_bindings`` with loop variables visible to nested nodes.
    """
    renderer = _MarkupRenderer(file, directives, handlers, styles)
    nodes = [node for node in children if not _is_blank_text(node)]
    if not nodes:
        return "null"
    if len(nodes) == 1 and not _is_text(nodes[0]):
        return renderer.node(nodes[0], "0", parent_bindings)
    return "<>" + renderer.children(nodes, "0", parent_bindings) + "</>"


class _MarkupRenderer:
    def __init__(
        self,
        file: SourceFile,
        directives: dict[str, str],
        handlers: dict[str, str],
        styles: dict[str, str],
    ) -> None:
        self.file = file
        self.directives = directives
        self.handlers = handlers
        self.styles = styles

    def children(self, nodes: list[MarkupNode], path: str, scope: dict[str, str]) -> str:
        return "".join(self.node(child, f"{path}.{index}", scope) for index, child in enumerate(nodes))

    def node(self, node: MarkupNode, path: str, scope: dict[str, str]) -> str:
        if _is_text(node):
            return self.text(node)
        if node.name == "Fragment":
            return "<>" + self.children(node.children, path, scope) + "</>"
        if node.name == "Show":
            return self.show(node, path, scope)
        if node.name == "For":
            return self.loop(node, path, scope)
        return self.element(node, path, scope)

    def text(self, node: MarkupNode) -> str:
        binding = node.bindings.get(TEXT_KEY)
        if binding is not None:
            return "{" + binding.code + "}"
        value = node.properties.get(TEXT_KEY, "")
        if any(ch in value for ch in "{}<>"):
            return "{" + json.dumps(value, ensure_ascii=False) + "}"
        return value

    def show(self, node: MarkupNode, path: str, scope: dict[str, str]) -> str:
        when = node.bindings.get("when")
        body = "<>" + self.children(node.children, path, scope) + "</>"
        if when is None:
            return body
        return "{(" + when.code + ") ? (" + body + ") : null}"

    def loop(self, node: MarkupNode, path: str, scope: dict[str, str]) -> str:
        each = node.bindings.get("each")
        if each is None:
            return ""
        item = node.properties.get("_forName", "item")
        index = node.properties.get("_indexName", "index")
        nested = {**scope, item: each.code, index: each.code}
        body = "<>" + self.children(node.children, path, nested) + "</>"
        return "{(" + each.code + ").map((" + item + ", " + index + ") => (" + body + "))}"

    def element(self, node: MarkupNode, path: str, scope: dict[str, str]) -> str:
        attributes: list[str] = []
        for key, value in node.properties.items():
            if key.startswith("_"):
                continue
            if value == "" and ":" in key:
                self.directives[f"{path}:{key}"] = key
                attributes.append(key)
                continue
            attributes.append(f"{key}={_attribute_string(value)}")

        for key, binding in node.bindings.items():
            if key == TEXT_KEY:
                continue
            if key == SPREAD_KEY:
                attributes.append("{..." + binding.code + "}")
            elif _is_event(key):
                attributes.append(self.event(key, binding, path))
            else:
                if key == "style":
                    self.styles[path] = binding.code
                attributes.append(f"{key}={{{binding.code}}}")

        opening = node.name + "".join(" " + attribute for attribute in attributes)
        if not node.children:
            return f"<{opening} />"
        return f"<{opening}>" + self.children(node.children, path, scope) + f"</{node.name}>"

    def event(self, key: str, binding: Binding, path: str) -> str:
        arguments = ", ".join(binding.arguments) if binding.arguments else "event"
        self.handlers[f"{path}:{key}"] = binding.code
        return f"{key}$={{({arguments}) => {{ {binding.code.strip()} }}}}"


def _is_event(key: str) -> bool:
    return len(key) > 2 and key.startswith("on") and key[2].isupper()


def _is_text(node: MarkupNode) -> bool:
    return not node.children and (TEXT_KEY in node.properties or TEXT_KEY in node.bindings)


def _is_blank_text(node: MarkupNode) -> bool:
    return _is_text(node) and TEXT_KEY not in node.bindings and not node.properties[TEXT_KEY].strip()


def _attribute_string(value: str) -> str:
    return '"' + value.replace("&", "&amp;").replace('"', "&quot;") + '"'
