"""State classification and lexical scope derivation."""

from __future__ import annotations

from typing import Literal

from qwikc.ir import ComponentIR, StateEntry, StateKind


MethodKind = Literal["method", "getter"]
ClassificationMap = dict[str, MethodKind]


def classify_state(state: dict[str, StateEntry]) -> ClassificationMap:
    """Map state names that need call syntax to their kind.

    Getters are read through a call; methods need the scope prepended to
    their arguments. Plain values and free functions are left out.
    """
    methods: ClassificationMap = {}
    for name, entry in state.items():
        if entry.kind is StateKind.GETTER:
            methods[name] = "getter"
        elif entry.kind is StateKind.METHOD:
            methods[name] = "method"
    return methods


def lexical_scope(component: ComponentIR) -> list[str]:
    """Names every hoisted function receives as leading parameters."""
    return ["props", "state", *component.refs, *component.context.get.keys()]
