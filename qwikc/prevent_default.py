"""Declarative default-prevention for event handlers."""

from __future__ import annotations

from qwikc.ir import ComponentIR, iter_markup_nodes


PREVENT_DEFAULT_CALL = ".preventDefault()"


def add_prevent_default(component: ComponentIR) -> int:
    """Mark events whose handler calls ``preventDefault()``.

    Handlers run asynchronously in the target runtime, so the call inside the
    handler is too late; the ``preventdefault:<event>`` attribute asks the
    runtime to prevent the default synchronously. Returns the number of
    attributes added.
    """
    added = 0
    for node in iter_markup_nodes(component.children):
        for key, binding in node.bindings.items():
            if not key.startswith("on") or len(key) <= 2:
                continue
            if PREVENT_DEFAULT_CALL not in binding.code:
                continue
            attribute = f"preventdefault:{key[2:].lower()}"
            if attribute not in node.properties:
                node.properties[attribute] = ""
                added += 1
    return added
