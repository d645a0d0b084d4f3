"""CSV lookup: ``<key> file=<path> [col=N] [delimiter=,] [encoding=utf-8] [default=v]``.

The first row whose first column equals the key wins; ``col`` is a 0-based
index and defaults to 1. Keys that match no row and columns out of range
contribute nothing (``default`` is emitted instead when given).
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Mapping, Optional
import csv
import logging

from ..context import LookupContext
from ..errors import SourceUnavailableError
from ..options import as_text, option
from ..terms import CSVLookupSpec, parse_csv_term
from ..utils import expand_home
from .base import BaseLookupPlugin, describe, lookup_plugin

logger = logging.getLogger(__name__)


@dataclass
class CSVOptions:
    file: Optional[str] = option(None, as_text)
    col: Optional[str] = option(None, as_text)
    delimiter: Optional[str] = option(None, as_text)
    encoding: Optional[str] = option(None, as_text)
    default: Optional[str] = option(None, as_text)

    def fallback(self) -> Mapping[str, Any]:
        return {k: v for k, v in vars(self).items() if v is not None}


@lookup_plugin()
class CSVFileLookup(BaseLookupPlugin):
    """Return one column of the row keyed by each term."""

    descriptor = describe(
        "csvfile",
        "Read CSV file values",
        options={
            "file": "CSV file used when the term has no file=",
            "col": "0-based column index (default 1)",
            "delimiter": "field delimiter, TAB for tabs (default ,)",
            "encoding": "file encoding (default utf-8)",
            "default": "value returned when the key is not found",
        },
    )
    options_class = CSVOptions

    def _run(self, ctx: LookupContext, terms: List[str], variables: Mapping[str, Any], opts: CSVOptions) -> List[Any]:
        results: List[Any] = []
        for term in self.iter_terms(ctx, terms):
            spec = parse_csv_term(term, fallback=opts.fallback())
            value = self.find(spec, term)
            if value is None:
                value = spec.default
            if value is not None:
                results.append(value)
        return results

    @staticmethod
    def find(spec: CSVLookupSpec, term: str) -> Optional[str]:
        path = expand_home(spec.filename)
        try:
            with open(path, "r", encoding=spec.encoding, newline="") as f:
                for record in csv.reader(f, delimiter=spec.delimiter):
                    if record and record[0] == spec.key:
                        if 0 <= spec.column < len(record):
                            return record[spec.column]
                        logger.debug("csvfile: column %d out of range for key %s in %s", spec.column, spec.key, path)
                        return None
        except (OSError, csv.Error, UnicodeDecodeError, LookupError) as e:
            raise SourceUnavailableError(f"failed to read CSV file {path}: {e}", term=term) from e
        return None
