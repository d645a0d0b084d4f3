"""Name -> factory table for lookup plugins.

The registry owns factories, never instances: ``get`` builds a new plugin per
call, so two lookups never share plugin state. Built-ins come from
``BUILTIN_LOOKUPS``; third-party plugins are added with ``register`` or
discovered from entry points (group ``lookupkit.lookups``) and plugin paths.

A plugin path module exposes ``register(registry)``. An entry point resolves
either to such a function or to a plugin class, registered under the entry
point's name.
"""
from __future__ import annotations

from importlib.metadata import entry_points
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Set
import importlib.util
import logging
import threading

from .config import ENTRY_POINT_GROUP, get_settings
from .context import LookupContext
from .errors import NotFoundError
from .plugins import BUILTIN_LOOKUPS, LookupPlugin, PluginDescriptor

logger = logging.getLogger(__name__)

PluginFactory = Callable[[], LookupPlugin]


class LookupRegistry:
    """Thread-safe registry of lookup plugin factories."""

    def __init__(self, builtins: bool = True) -> None:
        self._lock = threading.RLock()
        self._factories: Dict[str, PluginFactory] = {}
        if builtins:
            for name, factory in BUILTIN_LOOKUPS.items():
                self.register(name, factory)

    def register(self, name: str, factory: PluginFactory) -> None:
        """Install ``factory`` under ``name``; an existing entry is replaced."""
        if not callable(factory):
            raise TypeError(f"lookup factory for '{name}' is not callable: {factory!r}")
        with self._lock:
            if name in self._factories and self._factories[name] is not factory:
                logger.debug("Replacing lookup plugin %s", name)
            self._factories[name] = factory

    def unregister(self, name: str) -> None:
        with self._lock:
            self._factories.pop(name, None)

    def get(self, name: str) -> LookupPlugin:
        with self._lock:
            factory = self._factories.get(name)
        if factory is None:
            raise NotFoundError(name)
        return factory()

    def exists(self, name: str) -> bool:
        with self._lock:
            return name in self._factories

    def list(self) -> Set[str]:
        with self._lock:
            return set(self._factories)

    def describe(self) -> List[PluginDescriptor]:
        return [self.get(name).descriptor for name in sorted(self.list())]

    def run(
        self,
        name: str,
        terms: Sequence[str],
        variables: Optional[Mapping[str, Any]] = None,
        options: Optional[Mapping[str, Any]] = None,
        ctx: Optional[LookupContext] = None,
    ) -> List[Any]:
        """Instantiate ``name`` and resolve ``terms`` with it."""
        plugin = self.get(name)
        logger.debug("Running lookup %s over %d term(s)", name, len(terms))
        return plugin.run(ctx or LookupContext.background(), list(terms), variables or {}, options or {})


# Discovery --------------------------------------------------------------------

def load_entrypoint_plugins(registry: LookupRegistry, group: str = ENTRY_POINT_GROUP) -> List[str]:
    """Register plugins advertised by installed distributions."""
    loaded: List[str] = []
    for ep in entry_points(group=group):
        try:
            target = ep.load()
            if isinstance(target, type):
                registry.register(ep.name, target)
            elif callable(target):
                target(registry)
            else:
                logger.warning("Entry point %s is neither a plugin class nor a register function", ep.name)
                continue
            loaded.append(ep.name)
            logger.debug("Loaded lookup entry point %s", ep.name)
        except Exception as e:
            logger.error("Failed to load lookup entry point %s: %s", ep.name, e)
    return loaded


def _plugin_files(paths: Iterable[str]) -> List[Path]:
    files: List[Path] = []
    for raw in paths:
        path = Path(raw).expanduser()
        if path.is_dir():
            files.extend(p for p in sorted(path.glob("*.py")) if not p.name.startswith("_"))
        elif path.suffix == ".py" and path.exists():
            files.append(path)
        else:
            logger.debug("Lookup plugin path does not exist: %s", path)
    return files


def load_path_plugins(registry: LookupRegistry, paths: Iterable[str]) -> List[str]:
    """Import ``*.py`` plugin modules and call their ``register(registry)``."""
    loaded: List[str] = []
    for fp in _plugin_files(paths):
        module_name = f"lookupkit_path_plugin_{fp.stem}"
        try:
            spec = importlib.util.spec_from_file_location(module_name, fp)
            if spec is None or spec.loader is None:
                logger.warning("Cannot import lookup plugin %s", fp)
                continue
            module = importlib.util.module_from_spec(spec)
            spec.loader.exec_module(module)
            register = getattr(module, "register", None)
            if not callable(register):
                logger.warning("Lookup plugin %s has no register(registry) function", fp)
                continue
            register(registry)
            loaded.append(str(fp))
            logger.debug("Loaded lookup plugin module %s", fp)
        except Exception as e:
            logger.error("Failed to load lookup plugin %s: %s", fp, e)
    return loaded


_DEFAULT: Optional[LookupRegistry] = None
_DEFAULT_LOCK = threading.Lock()


def default_registry() -> LookupRegistry:
    """Process-scoped registry: built-ins plus configured third-party plugins."""
    global _DEFAULT
    with _DEFAULT_LOCK:
        if _DEFAULT is None:
            settings = get_settings()
            registry = LookupRegistry()
            if settings.entry_points:
                load_entrypoint_plugins(registry)
            if settings.plugin_paths:
                load_path_plugins(registry, settings.plugin_paths)
            _DEFAULT = registry
        return _DEFAULT


def reset_default_registry() -> None:
    global _DEFAULT
    with _DEFAULT_LOCK:
        _DEFAULT = None
