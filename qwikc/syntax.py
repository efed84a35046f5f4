"""Tree-sitter parsing for embedded JavaScript/TypeScript fragments.

IR fragments come in a few shapes: statements (hook bodies), expressions
(bindings, dependency lists), class-member callables (``get total() {}``,
``add(n) {}``) and bare object literals. ``parse_fragment`` tries each
shape in turn by wrapping the text, and maps node offsets back onto the
original fragment.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator

import tree_sitter_typescript
from tree_sitter import Language, Node, Parser, Tree

from qwikc.errors import FragmentParseError


TSX_LANGUAGE = Language(tree_sitter_typescript.language_tsx())

_PARSER = Parser(TSX_LANGUAGE)


@dataclass(frozen=True)
class FragmentShape:
    """Wrapper text that turns a fragment into a complete program."""

    name: str
    prefix: str
    suffix: str


PROGRAM = FragmentShape("program", "", "")
MEMBER = FragmentShape("member", "class _ {\n", "\n}")
EXPRESSION = FragmentShape("expression", "(", ")")

ALL_SHAPES = (PROGRAM, MEMBER, EXPRESSION)


class Fragment:
    """A parsed fragment with offsets relative to the unwrapped text."""

    def __init__(self, code: str, shape: FragmentShape, source: bytes, tree: Tree) -> None:
        self.code = code
        self.shape = shape
        self.source = source
        self.tree = tree
        self.prefix = len(shape.prefix.encode("utf-8"))

    @property
    def root(self) -> Node:
        return self.tree.root_node

    def text(self, node: Node) -> str:
        return self.source[node.start_byte : node.end_byte].decode("utf-8")

    def span(self, node: Node) -> tuple[int, int]:
        """Byte range of ``node`` inside the unwrapped fragment."""
        return node.start_byte - self.prefix, node.end_byte - self.prefix

    def top_level(self) -> list[Node]:
        """Statements, class members or the single expression the fragment holds."""
        if self.shape is MEMBER:
            declaration = self.root.named_children[0]
            container = declaration.child_by_field_name("body")
        elif self.shape is EXPRESSION:
            statement = self.root.named_children[0]
            container = statement.named_children[0]
        else:
            container = self.root
        return [node for node in container.named_children if node.type != "comment"]

    def splice(self, edits: Iterable[tuple[int, int, str]]) -> str:
        """Apply non-overlapping ``(start, end, text)`` byte edits to the fragment."""
        data = self.code.encode("utf-8")
        pieces: list[bytes] = []
        cursor = 0
        for start, end, text in sorted(edits):
            pieces.append(data[cursor:start])
            pieces.append(text.encode("utf-8"))
            cursor = end
        pieces.append(data[cursor:])
        return b"".join(pieces).decode("utf-8")


def parse_fragment(code: str, shapes: tuple[FragmentShape, ...] = ALL_SHAPES) -> Fragment:
    """Parse ``code`` as the first shape that yields a tree without errors.

    Raises FragmentParseError with the error position of the first shape
    when none of them parses.
    """
    errors: list[FragmentParseError] = []
    for shape in shapes:
        source = f"{shape.prefix}{code}{shape.suffix}".encode("utf-8")
        tree = _PARSER.parse(source)
        if not tree.root_node.has_error:
            return Fragment(code, shape, source, tree)
        errors.append(_syntax_error(code, shape, tree))
    raise errors[0]


def iter_nodes(node: Node) -> Iterator[Node]:
    """Yield ``node`` and its descendants, parents first, in source order."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))


def _syntax_error(code: str, shape: FragmentShape, tree: Tree) -> FragmentParseError:
    node = _first_error_node(tree.root_node)
    data = code.encode("utf-8")
    prefix = len(shape.prefix.encode("utf-8"))
    byte = min(max((node.start_byte if node is not None else 0) - prefix, 0), len(data))
    offset = len(data[:byte].decode("utf-8", errors="ignore"))
    if node is not None and node.is_missing:
        message = f"Missing {node.type!r} at offset {offset}"
    else:
        message = f"Syntax error at offset {offset}"
    return FragmentParseError(
        "FRG001",
        message,
        fragment=code,
        offset=offset,
        hint="Fragments must be valid JavaScript or TypeScript expressions or statements.",
    )


def _first_error_node(root: Node) -> Node | None:
    for node in iter_nodes(root):
        if node.type == "ERROR" or node.is_missing:
            return node
    return None
