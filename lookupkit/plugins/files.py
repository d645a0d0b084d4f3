"""Local file lookups: file, fileglob, first_found, lines."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Mapping
import glob
import logging
import os
import re

from ..context import LookupContext
from ..errors import InvalidTermError, NoMatchError, SourceUnavailableError
from ..options import as_bool, as_str, as_str_list, option
from ..utils import expand_home
from .base import BaseLookupPlugin, describe, lookup_plugin

logger = logging.getLogger(__name__)


@dataclass
class FileOptions:
    rstrip: bool = option(False, as_bool)
    lstrip: bool = option(False, as_bool)
    errors: str = option("strict", as_str)


@lookup_plugin()
class FileLookup(BaseLookupPlugin):
    """Return the full content of each file named by a term."""

    descriptor = describe(
        "file",
        "Read file contents",
        options={
            "rstrip": "trim trailing newlines / carriage returns",
            "lstrip": "trim leading whitespace",
            "errors": "strict (default), warn or ignore unreadable files",
        },
    )
    options_class = FileOptions

    def _run(self, ctx: LookupContext, terms: List[str], variables: Mapping[str, Any], opts: FileOptions) -> List[Any]:
        results: List[Any] = []
        for term in self.iter_terms(ctx, terms):
            path = expand_home(term)
            try:
                with open(path, "r", encoding="utf-8", newline="") as f:
                    content = f.read()
            except (OSError, UnicodeDecodeError) as e:
                if opts.errors == "ignore":
                    logger.debug("file lookup: ignoring unreadable %s: %s", path, e)
                    continue
                if opts.errors == "warn":
                    logger.warning("file lookup: skipping unreadable %s: %s", path, e)
                    continue
                raise SourceUnavailableError(f"failed to read file {path}: {e}", term=term) from e
            if opts.rstrip:
                content = content.rstrip("\r\n")
            if opts.lstrip:
                content = content.lstrip()
            results.append(content)
        return results


def validate_glob(pattern: str) -> None:
    """Reject patterns ``glob`` would silently treat as literals."""
    if "\x00" in pattern:
        raise ValueError("embedded null byte")
    i, n = 0, len(pattern)
    while i < n:
        if pattern[i] != "[":
            i += 1
            continue
        start = i + 1
        if start < n and pattern[start] == "!":
            start += 1
        if start < n and pattern[start] == "]":
            start += 1
        end = pattern.find("]", start)
        if end == -1:
            raise ValueError("unterminated character class")
        i = end + 1


@lookup_plugin()
class FileGlobLookup(BaseLookupPlugin):
    """Expand each term as a glob; all matches are flattened into one list."""

    descriptor = describe("fileglob", "List files matching glob pattern")

    def _run(self, ctx: LookupContext, terms: List[str], variables: Mapping[str, Any], opts: Any) -> List[Any]:
        results: List[Any] = []
        for term in self.iter_terms(ctx, terms):
            pattern = expand_home(term)
            try:
                validate_glob(pattern)
                matches = sorted(glob.glob(pattern, include_hidden=True))
            except (ValueError, OSError, re.error) as e:
                raise InvalidTermError(f"invalid glob pattern {term}: {e}", term=term) from e
            logger.debug("fileglob %s matched %d file(s)", pattern, len(matches))
            results.extend(matches)
        return results


@dataclass
class FirstFoundOptions:
    files: List[str] = option(coerce=as_str_list, factory=list)
    paths: List[str] = option(coerce=as_str_list, factory=list)
    skip: bool = option(False, as_bool)


@lookup_plugin("first_found")
class FirstFoundLookup(BaseLookupPlugin):
    """Return the first existing candidate path as a single-element list."""

    descriptor = describe(
        "first_found",
        "Return first file found from list",
        options={
            "files": "extra candidate files appended after the terms",
            "paths": "directories each relative candidate is searched in",
            "skip": "return an empty list instead of failing when nothing exists",
        },
    )
    options_class = FirstFoundOptions

    @staticmethod
    def candidates(terms: List[str], opts: FirstFoundOptions) -> List[str]:
        names = list(terms) + list(opts.files)
        if not opts.paths:
            return [expand_home(n) for n in names]
        out: List[str] = []
        for name in names:
            name = expand_home(name)
            if os.path.isabs(name):
                out.append(name)
                continue
            for base in opts.paths:
                out.append(os.path.join(expand_home(base), name))
        return out

    def _run(self, ctx: LookupContext, terms: List[str], variables: Mapping[str, Any], opts: FirstFoundOptions) -> List[Any]:
        paths = self.candidates(terms, opts)
        for path in self.iter_terms(ctx, paths):
            if os.path.exists(path):
                return [path]
        if opts.skip:
            return []
        raise NoMatchError(f"no files found in: {', '.join(paths)}", term=", ".join(paths))


@dataclass
class LinesOptions:
    strip: bool = option(False, as_bool)


@lookup_plugin()
class LinesLookup(BaseLookupPlugin):
    """Return every line of each file, in file order."""

    descriptor = describe(
        "lines",
        "Read file lines",
        options={"strip": "trim surrounding whitespace from every line"},
    )
    options_class = LinesOptions

    def _run(self, ctx: LookupContext, terms: List[str], variables: Mapping[str, Any], opts: LinesOptions) -> List[Any]:
        results: List[Any] = []
        for term in self.iter_terms(ctx, terms):
            path = expand_home(term)
            try:
                with open(path, "r", encoding="utf-8", newline="") as f:
                    for line in f:
                        line = line.rstrip("\r\n")
                        results.append(line.strip() if opts.strip else line)
            except (OSError, UnicodeDecodeError) as e:
                raise SourceUnavailableError(f"failed to read file {path}: {e}", term=term) from e
        return results
