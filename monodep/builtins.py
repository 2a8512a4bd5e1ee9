"""Read-only lookup tables of runtime built-in module names."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet, Tuple

NODE_BUILTIN_MODULES: FrozenSet[str] = frozenset(
    {
        "_http_agent",
        "_http_client",
        "_http_common",
        "_http_incoming",
        "_http_outgoing",
        "_http_server",
        "_stream_duplex",
        "_stream_passthrough",
        "_stream_readable",
        "_stream_transform",
        "_stream_wrap",
        "_stream_writable",
        "_tls_common",
        "_tls_wrap",
        "assert",
        "async_hooks",
        "buffer",
        "child_process",
        "cluster",
        "console",
        "constants",
        "crypto",
        "dgram",
        "diagnostics_channel",
        "dns",
        "domain",
        "events",
        "fs",
        "http",
        "http2",
        "https",
        "inspector",
        "module",
        "net",
        "os",
        "path",
        "perf_hooks",
        "process",
        "punycode",
        "querystring",
        "readline",
        "repl",
        "stream",
        "string_decoder",
        "sys",
        "timers",
        "tls",
        "trace_events",
        "tty",
        "url",
        "util",
        "v8",
        "vm",
        "wasi",
        "worker_threads",
        "zlib",
    }
)

# Modules provided by embedded runtimes such as Bun that are
# never installed from the registry.
RUNTIME_BUILTIN_MODULES: FrozenSet[str] = frozenset({"bun"})

BUILTIN_SCHEMES: Tuple[str, ...] = ("node:", "bun:")


@dataclass(frozen=True)
class BuiltinModules:
    """Membership test over platform and embedded-runtime built-ins."""

    platform: FrozenSet[str] = NODE_BUILTIN_MODULES
    runtime: FrozenSet[str] = RUNTIME_BUILTIN_MODULES
    schemes: Tuple[str, ...] = field(default=BUILTIN_SCHEMES)

    def is_builtin(self, specifier: str) -> bool:
        if specifier.startswith(self.schemes):
            return True
        base = specifier.split("/", 1)[0]
        return base in self.platform or base in self.runtime


DEFAULT_BUILTINS = BuiltinModules()

__all__ = [
    "BUILTIN_SCHEMES",
    "BuiltinModules",
    "DEFAULT_BUILTINS",
    "NODE_BUILTIN_MODULES",
    "RUNTIME_BUILTIN_MODULES",
]
