"""Base abstractions for component backends."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, Optional

from qwikc.config import GeneratorConfig
from qwikc.ir import ComponentIR, MarkupNode
from qwikc.markup import render_markup
from qwikc.source_file import OutputOptions, SourceFile
from qwikc.styles import collect_css
from qwikc.type_erasure import erase_types


TypeEraser = Callable[[str], str]
MarkupRenderer = Callable[
    [SourceFile, list[MarkupNode], dict[str, str], dict[str, str], dict[str, str], dict[str, str]],
    str,
]
StyleCollector = Callable[[ComponentIR, str], Optional[str]]


@dataclass
class Collaborators:
    """Replaceable helpers the backend delegates to."""

    type_eraser: TypeEraser = erase_types
    markup_renderer: MarkupRenderer = render_markup
    style_collector: StyleCollector = collect_css


@dataclass
class ExpansionContext:
    """Generation context passed into backends."""

    path: str = ""
    options: OutputOptions = field(default_factory=OutputOptions)
    config: GeneratorConfig = field(default_factory=GeneratorConfig)
    collaborators: Collaborators = field(default_factory=Collaborators)


class ComponentBackend(ABC):
    """Abstract target framework backend contract."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Backend target name."""

    @abstractmethod
    def emit_component(self, component: ComponentIR, context: ExpansionContext) -> str:
        """Emit full module text for one component."""

    @staticmethod
    def indent(text: str, level: int, unit: str = "  ") -> str:
        """Indent all non-empty lines by level."""
        prefix = unit * level
        lines = text.splitlines()
        return "\n".join((prefix + line) if line.strip() else line for line in lines)
