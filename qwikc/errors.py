"""Structured diagnostics and exception hierarchy for qwikc."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Diagnostic:
    """Machine-readable diagnostic produced by a failed generation call."""

    code: str
    message: str
    hint: str = ""
    component: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize the diagnostic for JSON output."""
        payload: dict[str, Any] = {
            "code": self.code,
            "message": self.message,
            "hint": self.hint,
        }
        if self.component is not None:
            payload["component"] = self.component
        return payload


class QwikcError(Exception):
    """Base error carrying a stable code and an optional hint."""

    def __init__(self, code: str, message: str, hint: str = "", component: str | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.hint = hint
        self.component = component

    def to_diagnostic(self) -> Diagnostic:
        """Convert exception into serializable diagnostic."""
        return Diagnostic(code=self.code, message=self.message, hint=self.hint, component=self.component)

    def __str__(self) -> str:
        if self.component is None:
            return f"[{self.code}] {self.message}"
        return f"[{self.code}] {self.message} (component {self.component})"


class UnsupportedConstructError(QwikcError):
    """Raised when an IR construct has no valid translation for the target runtime."""


class FragmentParseError(QwikcError):
    """Raised when an embedded code fragment cannot be parsed."""

    def __init__(
        self,
        code: str,
        message: str,
        *,
        fragment: str,
        offset: int | None = None,
        hint: str = "",
        component: str | None = None,
    ) -> None:
        super().__init__(code, message, hint=hint, component=component)
        self.fragment = fragment
        self.offset = offset

    def with_component(self, component: str) -> "FragmentParseError":
        """Return a copy of this error attributed to a component."""
        return FragmentParseError(
            self.code,
            self.message,
            fragment=self.fragment,
            offset=self.offset,
            hint=self.hint,
            component=component,
        )

    def to_diagnostic(self) -> Diagnostic:
        snippet = self.fragment if len(self.fragment) <= 80 else self.fragment[:77] + "..."
        return Diagnostic(
            code=self.code,
            message=f"{self.message} in fragment {snippet!r}",
            hint=self.hint,
            component=self.component,
        )


class GenerationError(QwikcError):
    """Wraps any fault raised while generating one component."""

    def __init__(self, component: str, cause: BaseException) -> None:
        super().__init__(
            "GEN001",
            f"Failed to generate component '{component}': {cause}",
            hint="Inspect the trace below for the failing stage.",
            component=component,
        )
        self.cause = cause


class InvalidComponentError(QwikcError):
    """Raised when a component payload does not match the IR shape."""


class PluginError(QwikcError):
    """Raised by plugin loading failures."""


class ConfigError(QwikcError):
    """Raised by invalid configuration files or values."""


class CLIError(QwikcError):
    """Raised by CLI usage or orchestration failures."""


def format_diagnostic(diag: Diagnostic) -> str:
    """Format diagnostic into a stable human-readable line."""
    suffix = f" [{diag.component}]" if diag.component else ""
    hint = f" Hint: {diag.hint}" if diag.hint else ""
    return f"{diag.code}{suffix}: {diag.message}{hint}"
