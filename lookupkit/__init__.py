from .context import LookupContext
from .errors import (
    InvalidTermError,
    LookupCancelledError,
    LookupPluginError,
    NoMatchError,
    NotFoundError,
    PersistenceError,
    SourceUnavailableError,
)
from .plugins import BaseLookupPlugin, LookupPlugin, PluginDescriptor, lookup_plugin
from .registry import LookupRegistry, default_registry

__all__ = [
    "BaseLookupPlugin",
    "InvalidTermError",
    "LookupCancelledError",
    "LookupContext",
    "LookupPlugin",
    "LookupPluginError",
    "LookupRegistry",
    "NoMatchError",
    "NotFoundError",
    "PersistenceError",
    "PluginDescriptor",
    "SourceUnavailableError",
    "default_registry",
    "lookup_plugin",
]
__version__ = "0.1.0"
