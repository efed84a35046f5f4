"""Built-in component backends."""

from qwikc.expanders.qwik_backend import QWIK_RUNTIME, QwikBackend, RuntimeProfile

__all__ = ["QwikBackend", "RuntimeProfile", "QWIK_RUNTIME"]
