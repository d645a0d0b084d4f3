"""Plugin base interfaces for lookup resolution.

``LookupPlugin`` is the contract the registry relies on; any object with a
name, a descriptor and a ``run`` method can be registered. Built-in plugins
derive from ``BaseLookupPlugin``, which composes a ``PluginDescriptor`` and
decodes the loose option bag into the plugin's typed options dataclass.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, ClassVar, Dict, Iterator, List, Mapping, Optional, Protocol, Sequence, runtime_checkable

from ..context import LookupContext
from ..options import NoOptions, decode_options

PLUGIN_TYPE_LOOKUP = "lookup"

# Decorator-based registration -------------------------------------------------
BUILTIN_LOOKUPS: Dict[str, Callable[[], "LookupPlugin"]] = {}


def lookup_plugin(name: Optional[str] = None):
    """Decorator to register a built-in lookup plugin class.

    Usage:
        @lookup_plugin()
        class FileLookup(BaseLookupPlugin): ...
    or   @lookup_plugin("custom_name")
    """
    def wrapper(cls):
        key = name or cls.descriptor.name
        BUILTIN_LOOKUPS[key] = cls
        return cls
    return wrapper


@dataclass(frozen=True)
class PluginDescriptor:
    """Static identity of a plugin."""
    name: str
    description: str = ""
    version: str = "1.0.0"
    authors: frozenset = field(default_factory=frozenset)
    options: Mapping[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "type": PLUGIN_TYPE_LOOKUP,
            "description": self.description,
            "version": self.version,
            "authors": sorted(self.authors),
            "options": dict(self.options),
        }


@runtime_checkable
class LookupPlugin(Protocol):  # pragma: no cover - protocol definition
    name: str
    plugin_type: str
    descriptor: PluginDescriptor

    def run(
        self,
        ctx: Optional[LookupContext],
        terms: Sequence[str],
        variables: Optional[Mapping[str, Any]] = None,
        options: Optional[Mapping[str, Any]] = None,
    ) -> List[Any]:
        """Resolve ``terms`` into an ordered list of values."""
        ...


class BaseLookupPlugin:
    """Shared identity plumbing and the option decode step.

    Subclasses set ``descriptor`` and ``options_class`` and implement ``_run``.
    """

    descriptor: ClassVar[PluginDescriptor]
    options_class: ClassVar[type] = NoOptions
    plugin_type: ClassVar[str] = PLUGIN_TYPE_LOOKUP

    @property
    def name(self) -> str:
        return self.descriptor.name

    def info(self) -> Dict[str, Any]:
        return self.descriptor.to_dict()

    def run(
        self,
        ctx: Optional[LookupContext],
        terms: Sequence[str],
        variables: Optional[Mapping[str, Any]] = None,
        options: Optional[Mapping[str, Any]] = None,
    ) -> List[Any]:
        ctx = ctx or LookupContext.background()
        opts = decode_options(self.options_class, options)
        return self._run(ctx, list(terms), variables or {}, opts)

    def _run(self, ctx: LookupContext, terms: List[str], variables: Mapping[str, Any], opts: Any) -> List[Any]:
        raise NotImplementedError

    @staticmethod
    def iter_terms(ctx: LookupContext, terms: Sequence[str]) -> Iterator[str]:
        """Yield terms, checking for cancellation before each one."""
        for term in terms:
            ctx.raise_if_cancelled(term)
            yield term


def describe(name: str, description: str, options: Optional[Mapping[str, str]] = None, version: str = "1.0.0") -> PluginDescriptor:
    return PluginDescriptor(
        name=name,
        description=description,
        version=version,
        authors=frozenset({"lookupkit developers"}),
        options=dict(options or {}),
    )
