"""Generator configuration and per-call options."""

from __future__ import annotations

import json
import tomllib
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import TYPE_CHECKING, Any, Union

from qwikc.errors import ConfigError

if TYPE_CHECKING:
    from qwikc.plugin import ComponentPlugin


CONFIG_TABLE = "qwikc"
DEFAULT_TRACE_LIMIT = 50


@dataclass(frozen=True)
class GeneratorConfig:
    """Process-level settings, read once and passed explicitly to each call."""

    trace_limit: int = DEFAULT_TRACE_LIMIT
    debug_dump: bool = False

    def with_overrides(self, **overrides: Any) -> "GeneratorConfig":
        """Return a copy with the non-None ``overrides`` applied."""
        changes = {key: value for key, value in overrides.items() if value is not None}
        if not changes:
            return self
        return _validated(replace(self, **changes))


@dataclass
class GeneratorOptions:
    """Per-call options: ordered plugins and the output dialect."""

    plugins: list[Union["ComponentPlugin", str]] = field(default_factory=list)
    typescript: bool = False


def load_config(path: str | Path) -> GeneratorConfig:
    """Read a ``[qwikc]`` table from a TOML or JSON file."""
    config_path = Path(path)
    if not config_path.is_file():
        raise ConfigError("CFG001", f"Config file not found: {config_path}")

    try:
        if config_path.suffix == ".json":
            data = json.loads(config_path.read_text(encoding="utf-8"))
        else:
            with config_path.open("rb") as handle:
                data = tomllib.load(handle)
    except (ValueError, tomllib.TOMLDecodeError) as err:
        raise ConfigError("CFG002", f"Could not parse {config_path}: {err}") from err

    if not isinstance(data, dict):
        raise ConfigError("CFG002", f"{config_path} must contain a mapping.")
    table = data.get(CONFIG_TABLE, {})
    if not isinstance(table, dict):
        raise ConfigError("CFG003", f"'[{CONFIG_TABLE}]' in {config_path} must be a table.")
    return config_from_mapping(table)


def config_from_mapping(table: dict[str, Any]) -> GeneratorConfig:
    known = {item.name for item in fields(GeneratorConfig)}
    values: dict[str, Any] = {}
    for key, value in table.items():
        name = key.replace("-", "_")
        if name not in known:
            raise ConfigError(
                "CFG004",
                f"Unknown config key '{key}'.",
                hint=f"Known keys: {', '.join(sorted(known))}.",
            )
        values[name] = value
    return _validated(GeneratorConfig(**values))


def _validated(config: GeneratorConfig) -> GeneratorConfig:
    if isinstance(config.trace_limit, bool) or not isinstance(config.trace_limit, int) or config.trace_limit < 0:
        raise ConfigError("CFG005", "'trace_limit' must be a non-negative integer.")
    if not isinstance(config.debug_dump, bool):
        raise ConfigError("CFG005", "'debug_dump' must be a boolean.")
    return config
