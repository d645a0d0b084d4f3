"""Typed option decoding for lookup plugins.

Each plugin declares a dataclass of the options it understands. Field
metadata carries a ``coerce`` callable; ``decode_options`` feeds the raw
option bag through it. Unknown keys and values that cannot be coerced are
ignored and the field keeps its default, so a bad option never fails a lookup.
"""
from __future__ import annotations

import dataclasses
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Type, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

_TRUE = {"1", "true", "yes", "on", "y"}
_FALSE = {"0", "false", "no", "off", "n"}


def as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE:
            return True
        if lowered in _FALSE:
            return False
    raise ValueError(f"not a boolean: {value!r}")


def as_int(value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError(f"not an integer: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        return int(value.strip())
    raise ValueError(f"not an integer: {value!r}")


def as_float(value: Any) -> float:
    if isinstance(value, bool):
        raise ValueError(f"not a number: {value!r}")
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        return float(value.strip())
    raise ValueError(f"not a number: {value!r}")


def as_str(value: Any) -> str:
    if isinstance(value, str):
        return value
    raise ValueError(f"not a string: {value!r}")


def as_text(value: Any) -> str:
    """Stringify any scalar (used for ``default`` style options)."""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def as_str_list(value: Any) -> List[str]:
    """Accept a list/tuple of scalars or a single comma-separated string."""
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value]
    raise ValueError(f"not a list: {value!r}")


def as_str_map(value: Any) -> Dict[str, str]:
    if isinstance(value, Mapping):
        return {str(k): as_text(v) for k, v in value.items()}
    raise ValueError(f"not a mapping: {value!r}")


def option(default: Any = None, coerce: Callable[[Any], Any] = as_str, factory: Optional[Callable[[], Any]] = None):
    """Declare a plugin option field with its coercion function."""
    if factory is not None:
        return dataclasses.field(default_factory=factory, metadata={"coerce": coerce})
    return dataclasses.field(default=default, metadata={"coerce": coerce})


@dataclasses.dataclass
class NoOptions:
    """Options dataclass for plugins that take none."""


def decode_options(cls: Type[T], options: Optional[Mapping[str, Any]]) -> T:
    """Build ``cls`` from a loose option bag, ignoring what does not fit."""
    values: Dict[str, Any] = {}
    known = {f.name: f for f in dataclasses.fields(cls)}  # type: ignore[arg-type]
    for key, raw in (options or {}).items():
        fld = known.get(key)
        if fld is None:
            logger.debug("Ignoring unknown option %s for %s", key, cls.__name__)
            continue
        if raw is None:
            continue
        coerce = fld.metadata.get("coerce", lambda v: v)
        try:
            values[key] = coerce(raw)
        except (TypeError, ValueError) as e:
            logger.debug("Ignoring option %s=%r for %s: %s", key, raw, cls.__name__, e)
    return cls(**values)
