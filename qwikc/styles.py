"""Collects static ``css`` bindings into one scoped stylesheet."""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from tree_sitter import Node

from qwikc.errors import FragmentParseError
from qwikc.ir import ComponentIR, iter_markup_nodes
from qwikc.syntax import EXPRESSION, Fragment, parse_fragment


logger = logging.getLogger(__name__)

CSS_BINDING = "css"

_UPPER = re.compile(r"(?<!^)([A-Z])")


class _NotStatic(Exception):
    """The css object holds something other than literals."""


def collect_css(component: ComponentIR, prefix: str) -> str | None:
    """Move static ``css`` bindings into class rules named ``<prefix>-<n>``.

    Each collected node gets the class appended and its binding removed.
    Bindings that are not plain object literals stay on the node.
    """
    rules: list[str] = []
    counter = 0
    for node in iter_markup_nodes(component.children):
        binding = node.bindings.get(CSS_BINDING)
        if binding is None:
            continue
        try:
            declarations = parse_style_object(binding.code)
        except (_NotStatic, FragmentParseError) as err:
            logger.debug("leaving dynamic css binding on <%s>: %s", node.name, err)
            continue

        counter += 1
        class_name = f"{prefix}-{counter}"
        rules.extend(_rules_for(f".{class_name}", declarations))
        existing = node.properties.get("class", "").strip()
        node.properties["class"] = f"{existing} {class_name}".strip()
        del node.bindings[CSS_BINDING]

    if not rules:
        return None
    return "\n".join(rules)


def parse_style_object(code: str) -> dict[str, Any]:
    """Parse a JSON or JavaScript object literal of strings, numbers and nested objects."""
    try:
        value = json.loads(code)
    except ValueError:
        fragment = parse_fragment(code, shapes=(EXPRESSION,))
        value = _static_value(fragment, fragment.top_level()[0])
    if not isinstance(value, dict):
        raise _NotStatic("css binding is not an object")
    return value


def _static_value(fragment: Fragment, node: Node) -> Any:
    kind = node.type
    if kind == "object":
        return _static_object(fragment, node)
    if kind == "string":
        return _unquote(fragment.text(node))
    if kind == "number":
        return fragment.text(node)
    if kind == "unary_expression" and node.named_children[0].type == "number":
        return fragment.text(node)
    if kind == "template_string" and not any(child.type == "template_substitution" for child in node.named_children):
        return fragment.text(node)[1:-1]
    raise _NotStatic(f"unsupported value {fragment.text(node)!r}")


def _static_object(fragment: Fragment, node: Node) -> dict[str, Any]:
    result: dict[str, Any] = {}
    for entry in node.named_children:
        if entry.type == "comment":
            continue
        if entry.type != "pair":
            raise _NotStatic(f"unsupported entry {fragment.text(entry)!r}")
        key = entry.child_by_field_name("key")
        if key.type == "string":
            name = _unquote(fragment.text(key))
        elif key.type in ("property_identifier", "number"):
            name = fragment.text(key)
        else:
            raise _NotStatic(f"unsupported key {fragment.text(key)!r}")
        result[name] = _static_value(fragment, entry.child_by_field_name("value"))
    return result


def _unquote(text: str) -> str:
    inner = text[1:-1]
    return inner.replace("\\" + text[0], text[0]).replace("\\\\", "\\")


def _rules_for(selector: str, declarations: dict[str, Any]) -> list[str]:
    flat: list[str] = []
    nested: list[str] = []
    for key, value in declarations.items():
        if isinstance(value, dict):
            if key.startswith("@"):
                inner = _rules_for(selector, value)
                nested.append(key + " {\n" + "\n".join(_indent(rule) for rule in inner) + "\n}")
            else:
                # `&:hover` and `:hover` both attach to the class.
                child = key.replace("&", selector) if "&" in key else selector + key
                nested.extend(_rules_for(child, value))
            continue
        flat.append(f"  {_kebab(key)}: {value};")

    rules: list[str] = []
    if flat:
        rules.append(selector + " {\n" + "\n".join(flat) + "\n}")
    rules.extend(nested)
    return rules


def _kebab(name: str) -> str:
    if name.startswith("--"):
        return name
    return _UPPER.sub(r"-\1", name).lower()


def _indent(text: str) -> str:
    return "\n".join("  " + line if line else line for line in text.splitlines())
