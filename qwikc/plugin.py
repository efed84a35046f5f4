"""Plugin interfaces and manager for component IR transforms."""

from __future__ import annotations

from abc import ABC, abstractmethod
import importlib
import inspect
import logging
from types import ModuleType
from typing import Any, Callable, Iterable

from qwikc.errors import PluginError
from qwikc.ir import ComponentIR


logger = logging.getLogger(__name__)

IRTransform = Callable[[ComponentIR], ComponentIR]


class ComponentPlugin(ABC):
    """IR transform hooks around default-prevention injection."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Stable plugin name."""

    def pre_json(self, component: ComponentIR) -> ComponentIR:
        """Optional transform before default-prevention injection."""
        return component

    def post_json(self, component: ComponentIR) -> ComponentIR:
        """Optional transform after default-prevention injection."""
        return component


class FunctionPlugin(ComponentPlugin):
    """Adapts a pair of plain functions to the plugin interface."""

    def __init__(self, name: str, pre: IRTransform | None = None, post: IRTransform | None = None) -> None:
        self._name = name
        self._pre = pre
        self._post = post

    @property
    def name(self) -> str:
        return self._name

    def pre_json(self, component: ComponentIR) -> ComponentIR:
        return self._pre(component) if self._pre is not None else component

    def post_json(self, component: ComponentIR) -> ComponentIR:
        return self._post(component) if self._post is not None else component


class PluginManager:
    """Ordered registry of component plugins."""

    def __init__(self) -> None:
        self._plugins: list[ComponentPlugin] = []

    def register(self, plugin: ComponentPlugin) -> None:
        """Register plugin; plugins run in registration order."""
        self._plugins.append(plugin)

    def names(self) -> list[str]:
        return [plugin.name for plugin in self._plugins]

    def run_pre(self, component: ComponentIR) -> ComponentIR:
        """Apply every plugin's ``pre_json`` hook."""
        return self._run(component, "pre_json")

    def run_post(self, component: ComponentIR) -> ComponentIR:
        """Apply every plugin's ``post_json`` hook."""
        return self._run(component, "post_json")

    def _run(self, component: ComponentIR, stage: str) -> ComponentIR:
        updated = component
        for plugin in self._plugins:
            updated = getattr(plugin, stage)(updated)
            if not isinstance(updated, ComponentIR):
                raise PluginError(
                    "PLG009",
                    f"Plugin '{plugin.name}' {stage} returned {type(updated).__name__}, not a component.",
                    hint="Plugin hooks must return the (possibly modified) component.",
                )
            logger.debug("plugin %s ran %s", plugin.name, stage)
        return updated


def load_plugin_spec(manager: PluginManager, spec: str) -> None:
    """Load and apply a plugin spec in `module[:symbol]` format.

    Behavior:
    - `module` implies symbol `register`
    - symbol may be a callable, plugin instance or iterable of these
    - callable may accept either no args or one `PluginManager` arg
    """
    module_name, symbol_name = _split_plugin_spec(spec)
    module = _import_plugin_module(module_name, spec)

    if symbol_name is None:
        target: Any = module
    else:
        if not hasattr(module, symbol_name):
            raise PluginError(
                "PLG003",
                f"Plugin symbol '{symbol_name}' not found in module '{module_name}'.",
                hint="Use module[:symbol] with an exported callable/object.",
            )
        target = getattr(module, symbol_name)

    _apply_loaded_object(manager, target, spec)


def _split_plugin_spec(spec: str) -> tuple[str, str | None]:
    if not spec.strip():
        raise PluginError(
            "PLG004",
            "Plugin spec cannot be empty.",
            hint="Use --plugin module:register",
        )

    if ":" not in spec:
        return spec.strip(), "register"

    module_name, symbol_name = spec.split(":", 1)
    symbol = symbol_name.strip() or None
    return module_name.strip(), symbol


def _import_plugin_module(module_name: str, spec: str) -> ModuleType:
    try:
        return importlib.import_module(module_name)
    except Exception as exc:  # pragma: no cover - import failure path
        raise PluginError(
            "PLG005",
            f"Failed to import plugin module '{module_name}' from spec '{spec}': {exc}",
            hint="Ensure module is on PYTHONPATH and importable.",
        ) from exc


def _apply_loaded_object(manager: PluginManager, obj: Any, spec: str) -> None:
    if isinstance(obj, ComponentPlugin):
        manager.register(obj)
        return

    if isinstance(obj, (list, tuple, set)):
        for item in obj:
            _apply_loaded_object(manager, item, spec)
        return

    if isinstance(obj, ModuleType):
        if hasattr(obj, "register"):
            _apply_callable(manager, getattr(obj, "register"), spec)
            return

    elif callable(obj):
        _apply_callable(manager, obj, spec)
        return

    raise PluginError(
        "PLG006",
        f"Unsupported plugin export type '{type(obj).__name__}' for spec '{spec}'.",
        hint="Export a register function, plugin instance, or iterable.",
    )


def _apply_callable(manager: PluginManager, fn: Any, spec: str) -> None:
    try:
        sig = inspect.signature(fn)
    except (TypeError, ValueError):
        sig = None

    result: Any
    try:
        if sig is None:
            result = fn(manager)
        else:
            positional = [
                p
                for p in sig.parameters.values()
                if p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD) and p.default is p.empty
            ]
            if len(positional) == 0:
                result = fn()
            elif len(positional) == 1:
                result = fn(manager)
            else:
                raise PluginError(
                    "PLG007",
                    f"Plugin callable in spec '{spec}' has unsupported signature '{sig}'.",
                    hint="Use zero-arg factory or one-arg register(manager) callable.",
                )
    except PluginError:
        raise
    except Exception as exc:
        raise PluginError(
            "PLG008",
            f"Plugin callable execution failed for spec '{spec}': {exc}",
            hint="Inspect plugin code and callable signature.",
        ) from exc

    if result is None:
        return

    _apply_loaded_object(manager, result, spec)


def load_plugins(manager: PluginManager, specs: Iterable[str]) -> None:
    """Load a list of plugin specs into a manager."""
    for spec in specs:
        load_plugin_spec(manager, spec)


def build_plugin_manager(plugins: Iterable[ComponentPlugin | str]) -> PluginManager:
    """Register plugin instances and load string specs, keeping their order."""
    manager = PluginManager()
    for item in plugins:
        if isinstance(item, str):
            load_plugin_spec(manager, item)
        else:
            _apply_loaded_object(manager, item, repr(item))
    return manager
