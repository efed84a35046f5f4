"""Turns the component state table into a store seed and hoisted functions."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Callable

from qwikc.classify import ClassificationMap
from qwikc.errors import FragmentParseError
from qwikc.ir import StateEntry, StateKind
from qwikc.rewriter import STORE_NAME, CallSiteRewriter
from qwikc.syntax import parse_fragment


logger = logging.getLogger(__name__)

TypeEraser = Callable[[str], str]

_CALLABLE_NODES = frozenset(
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
# A JSON string or a run of whitespace.
_JSON_LAYOUT = re.compile(r'"(?:\\.|[^"\\])*"|\s+')


@dataclass(frozen=True)
class HoistedFunction:
    """A state callable lifted to module scope."""

    name: str
    code: str


@dataclass
class StateInitPlan:
    literal_map: dict[str, str] = field(default_factory=dict)
    initializers: list[str] = field(default_factory=list)
    functions: list[HoistedFunction] = field(default_factory=list)


@dataclass(frozen=True)
class CallableHeader:
    """Pieces of a parsed state callable."""

    is_async: bool
    is_generator: bool
    params: str
    return_type: str
    body: str


def materialize_state(
    state: dict[str, StateEntry],
    methods: ClassificationMap,
    scope: list[str],
    *,
    erase_types: TypeEraser | None = None,
) -> StateInitPlan:
    """Split ``state`` into store literals, getter initializers and hoisted functions.

    Entries are processed in declaration order so the output is stable.
    """
    plan = StateInitPlan()
    rewriter = CallSiteRewriter(methods, scope)
    scope_args = ",".join(scope)

    for name, entry in state.items():
        if entry.kind is StateKind.VALUE:
            plan.literal_map[name] = literal_text(entry.code)
            continue

        header = parse_callable(entry.code)
        params = scope_args + ("," + header.params if header.params else "")
        keyword = ("async " if header.is_async else "") + ("function*" if header.is_generator else "function")
        code = f"{keyword} {name}({params}){header.return_type} {rewriter.rewrite(header.body)}"
        if erase_types is not None:
            code = erase_types(code)
        plan.functions.append(HoistedFunction(name=name, code=code))

        if entry.kind is StateKind.GETTER:
            plan.initializers.append(f"{STORE_NAME}.{name} = {name}({scope_args});")

    logger.debug(
        "materialized %d literal(s), %d function(s), %d initializer(s)",
        len(plan.literal_map),
        len(plan.functions),
        len(plan.initializers),
    )
    return plan


def literal_text(code: str) -> str:
    """Compact JSON text when ``code`` is JSON, otherwise the code as written.

    Compaction only drops whitespace outside strings; numbers and escapes
    keep their spelling.
    """
    text = code.strip()
    try:
        json.loads(text)
    except ValueError:
        return text
    return _JSON_LAYOUT.sub(lambda match: match.group(0) if match.group(0).startswith('"') else "", text)


def literal_map_text(plan: StateInitPlan) -> str:
    """Render the store seed object."""
    entries = [f"{json.dumps(name)}:{text}" for name, text in plan.literal_map.items()]
    return "{" + ",".join(entries) + "}"


def parse_callable(code: str) -> CallableHeader:
    """Parse a function, generator, method, getter or arrow function."""
    try:
        fragment = parse_fragment(code)
    except FragmentParseError as err:
        raise _header_error(code, err.offset or 0) from err

    nodes = fragment.top_level()
    node = nodes[0] if len(nodes) == 1 else None
    while node is not None and node.type in ("expression_statement", "parenthesized_expression"):
        node = node.named_children[0] if node.named_children else None
    if node is None or node.type not in _CALLABLE_NODES:
        raise _header_error(code, 0)

    markers = {child.type for child in node.children}
    parameters = node.child_by_field_name("parameters")
    if parameters is not None:
        params = fragment.text(parameters)[1:-1].strip()
    else:
        params = fragment.text(node.child_by_field_name("parameter"))
    return_type = node.child_by_field_name("return_type")
    body = node.child_by_field_name("body")
    if body.type == "statement_block":
        body_text = fragment.text(body)
    else:
        body_text = "{ return " + fragment.text(body) + "; }"

    return CallableHeader(
        is_async="async" in markers,
        is_generator="*" in markers or node.type in ("generator_function_declaration", "generator_function"),
        params=params,
        return_type=fragment.text(return_type) if return_type is not None else "",
        body=body_text,
    )


def _header_error(code: str, offset: int) -> FragmentParseError:
    return FragmentParseError(
        "FRG010",
        f"Cannot parse state callable header near offset {offset}",
        fragment=code,
        offset=offset,
        hint="State callables must be written as a function, getter, method or arrow function.",
    )
