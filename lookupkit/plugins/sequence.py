"""Sequence lookup: ``start=1 end=10 stride=2 format=host%02d`` or ``1-10``."""
from __future__ import annotations

from typing import Any, List, Mapping

from ..context import LookupContext
from ..errors import InvalidTermError
from ..terms import parse_sequence
from .base import BaseLookupPlugin, describe, lookup_plugin


@lookup_plugin()
class SequenceLookup(BaseLookupPlugin):
    """Expand each term into an inclusive integer range."""

    descriptor = describe("sequence", "Generate sequence of numbers")

    def _run(self, ctx: LookupContext, terms: List[str], variables: Mapping[str, Any], opts: Any) -> List[Any]:
        results: List[Any] = []
        for term in self.iter_terms(ctx, terms):
            spec = parse_sequence(term)
            for value in spec.values():
                if spec.format is None:
                    results.append(value)
                    continue
                try:
                    results.append(spec.format % value)
                except (TypeError, ValueError) as e:
                    raise InvalidTermError(f"bad sequence format '{spec.format}' in '{term}': {e}", term=term) from e
        return results
