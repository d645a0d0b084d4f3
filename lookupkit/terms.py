"""Term grammar shared by the sequence, csvfile and password lookups.

A term is split on whitespace. The leading token is positional; any other
token holding exactly one ``=`` is a ``key=value`` pair. Everything else is
kept as positional noise. Parsing never fails on malformed option tokens:
unknown keys are ignored and unparsable integers leave the default in place.

Examples:
  "start=1 end=5 stride=2"          -> sequence 1, 3, 5
  "1-3"                             -> sequence 1, 2, 3
  "alice file=users.csv col=2"      -> csv key "alice", column 2
  "/tmp/pw length=24 chars=digits"  -> password file + modifiers
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .errors import InvalidTermError

_RANGE_RE = re.compile(r"^(-?\d+)-(-?\d+)$")
MAX_SEQUENCE_LENGTH = 1_000_000


@dataclass
class ParsedTerm:
    positional: Optional[str] = None
    params: Dict[str, str] = field(default_factory=dict)
    extras: List[str] = field(default_factory=list)

    def param_str(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return self.params.get(name, default)

    def param_int(self, name: str, default: Optional[int] = None) -> Optional[int]:
        raw = self.params.get(name)
        if raw is None:
            return default
        try:
            return int(raw)
        except ValueError:
            return default

    def range(self) -> Optional[Tuple[int, int]]:
        """Return ``(start, end)`` for an ``N-M`` shorthand, else ``None``."""
        candidates = [self.positional] if self.positional else []
        candidates.extend(self.extras)
        for token in candidates:
            m = _RANGE_RE.match(token)
            if m:
                return int(m.group(1)), int(m.group(2))
        return None


def parse_term(term: str, leading: bool = True) -> ParsedTerm:
    """Tokenize ``term`` into a positional value plus ``key=value`` params.

    With ``leading`` the first token is always positional, even if it looks
    like a pair (csv keys and password paths may contain ``=``). Without it,
    the first token that is not a pair becomes the positional value.
    """
    parsed = ParsedTerm()
    tokens = term.split()
    if leading and tokens:
        parsed.positional = tokens[0]
        tokens = tokens[1:]
    for token in tokens:
        if token.count("=") == 1:
            key, value = token.split("=", 1)
            if key:
                parsed.params[key] = value
                continue
        if parsed.positional is None:
            parsed.positional = token
        else:
            parsed.extras.append(token)
    return parsed


# ---------------------------------------------------------------------------
# Sequence
# ---------------------------------------------------------------------------

@dataclass
class SequenceSpec:
    start: int = 1
    end: int = 1
    stride: int = 1
    format: Optional[str] = None

    def values(self) -> range:
        if self.stride > 0:
            return range(self.start, self.end + 1, self.stride)
        return range(self.start, self.end - 1, self.stride)

    def count(self) -> int:
        """Number of values; ``len(range)`` overflows past ``sys.maxsize``."""
        span = self.end - self.start
        if span * self.stride < 0:
            return 0
        return span // self.stride + 1


def parse_sequence(term: str) -> SequenceSpec:
    parsed = parse_term(term, leading=False)
    spec = SequenceSpec()
    shorthand = parsed.range()
    if shorthand and "start" not in parsed.params and "end" not in parsed.params:
        spec.start, spec.end = shorthand
    spec.start = parsed.param_int("start", spec.start)
    spec.end = parsed.param_int("end", spec.end)
    spec.stride = parsed.param_int("stride", spec.stride)
    spec.format = parsed.param_str("format")
    if spec.stride == 0:
        raise InvalidTermError(f"sequence stride must not be zero: '{term}'", term=term)
    count = parsed.param_int("count")
    if count is not None:
        # count=0 yields nothing
        spec.end = spec.start + (count - 1) * spec.stride if count > 0 else spec.start - spec.stride
    if spec.count() > MAX_SEQUENCE_LENGTH:
        raise InvalidTermError(
            f"sequence yields more than {MAX_SEQUENCE_LENGTH} values: '{term}'", term=term
        )
    return spec


# ---------------------------------------------------------------------------
# CSV
# ---------------------------------------------------------------------------

@dataclass
class CSVLookupSpec:
    key: str
    filename: str
    column: int = 1
    delimiter: str = ","
    encoding: str = "utf-8"
    default: Optional[str] = None


def _normalize_delimiter(value: str) -> str:
    if value in ("TAB", "\\t", "\t"):
        return "\t"
    return value[0] if value else ","


def parse_csv_term(term: str, fallback: Optional[Mapping[str, Any]] = None) -> CSVLookupSpec:
    """Parse ``"key file=path col=N delimiter=,"``; term pairs win over ``fallback``."""
    parsed = parse_term(term, leading=True)
    fallback = fallback or {}
    if not parsed.positional:
        raise InvalidTermError(f"csvfile term has no key: '{term}'", term=term)

    def pick(name: str) -> Optional[str]:
        if name in parsed.params:
            return parsed.params[name]
        value = fallback.get(name)
        return None if value is None else str(value)

    filename = pick("file")
    if not filename:
        raise InvalidTermError(f"csvfile term is missing file=: '{term}'", term=term)

    column = 1
    raw_col = pick("col")
    if raw_col is not None:
        try:
            column = int(raw_col)
        except ValueError:
            pass

    return CSVLookupSpec(
        key=parsed.positional,
        filename=filename,
        column=column,
        delimiter=_normalize_delimiter(pick("delimiter") or ","),
        encoding=pick("encoding") or "utf-8",
        default=pick("default"),
    )


# ---------------------------------------------------------------------------
# Password
# ---------------------------------------------------------------------------

@dataclass
class PasswordSpec:
    path: str
    length: Optional[int] = None
    chars: Optional[str] = None


def parse_password_term(term: str) -> PasswordSpec:
    parsed = parse_term(term, leading=True)
    if not parsed.positional:
        raise InvalidTermError(f"password term has no path: '{term}'", term=term)
    return PasswordSpec(
        path=parsed.positional,
        length=parsed.param_int("length"),
        chars=parsed.param_str("chars"),
    )
