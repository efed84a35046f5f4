"""TypeScript annotation stripping for JavaScript output."""

from __future__ import annotations

from tree_sitter import Node

from qwikc.syntax import Fragment, iter_nodes, parse_fragment


# Nodes removed together with their text.
_DROPPED = frozenset(
    {
        "type_annotation",
        "type_predicate_annotation",
        "asserts_annotation",
        "type_arguments",
        "type_parameters",
        "accessibility_modifier",
        "override_modifier",
        "interface_declaration",
        "type_alias_declaration",
    }
)
# Nodes replaced by their operand.
_UNWRAPPED = frozenset({"as_expression", "satisfies_expression", "non_null_expression"})


def erase_types(code: str) -> str:
    """Remove static type syntax the JavaScript target cannot parse.

    Handles parameter, return and declaration annotations, optional
    parameter markers, generic arguments and parameters, ``as`` and
    ``satisfies`` casts, non-null assertions and type-only declarations.
    """
    fragment = parse_fragment(code)
    if not any(_is_type_syntax(node) for node in iter_nodes(fragment.root)):
        return code

    root = fragment.root
    rendered = fragment.source[: root.start_byte] + _render(fragment, root) + fragment.source[root.end_byte :]
    suffix = len(fragment.shape.suffix.encode("utf-8"))
    return rendered[fragment.prefix : len(rendered) - suffix].decode("utf-8")


def _render(fragment: Fragment, node: Node) -> bytes:
    if node.type in _DROPPED:
        return b""
    if node.type in _UNWRAPPED:
        return _render(fragment, node.named_children[0])
    if not node.children:
        return fragment.source[node.start_byte : node.end_byte]

    pieces: list[bytes] = []
    cursor = node.start_byte
    for child in node.children:
        pieces.append(fragment.source[cursor : child.start_byte])
        if not (node.type == "optional_parameter" and child.type == "?"):
            pieces.append(_render(fragment, child))
        cursor = child.end_byte
    pieces.append(fragment.source[cursor : node.end_byte])
    return b"".join(pieces)


def _is_type_syntax(node: Node) -> bool:
    return node.type in _DROPPED or node.type in _UNWRAPPED or node.type == "optional_parameter"
