"""Built-in lookup plugins.

Importing this package registers every built-in into ``BUILTIN_LOOKUPS``.
"""
from .base import BUILTIN_LOOKUPS, BaseLookupPlugin, LookupPlugin, PluginDescriptor, describe, lookup_plugin
from . import csvfile, files, net, password, sequence, system  # noqa: F401  (registration side effect)

__all__ = [
    "BUILTIN_LOOKUPS",
    "BaseLookupPlugin",
    "LookupPlugin",
    "PluginDescriptor",
    "describe",
    "lookup_plugin",
]
