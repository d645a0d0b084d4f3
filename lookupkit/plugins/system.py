"""Process level lookups: env and pipe."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Mapping, Optional
import logging
import os

from ..config import get_settings
from ..context import LookupContext
from ..errors import SourceUnavailableError
from ..execution import CommandRunner, SubprocessRunner
from ..options import as_bool, as_float, as_str, as_text, option
from .base import BaseLookupPlugin, describe, lookup_plugin

logger = logging.getLogger(__name__)


@dataclass
class EnvOptions:
    default: Optional[str] = option(None, as_text)


@lookup_plugin()
class EnvLookup(BaseLookupPlugin):
    """Environment variable per term; unset or empty falls back to ``default``."""

    descriptor = describe(
        "env",
        "Read environment variables",
        options={"default": "value used when the variable is unset or empty"},
    )
    options_class = EnvOptions

    def _run(self, ctx: LookupContext, terms: List[str], variables: Mapping[str, Any], opts: EnvOptions) -> List[Any]:
        results: List[Any] = []
        for term in self.iter_terms(ctx, terms):
            value = os.environ.get(term, "")
            if not value and opts.default is not None:
                value = opts.default
            results.append(value)
        return results


@dataclass
class PipeOptions:
    cwd: Optional[str] = option(None, as_str)
    timeout: Optional[float] = option(None, as_float)
    rstrip: bool = option(True, as_bool)


@lookup_plugin()
class PipeLookup(BaseLookupPlugin):
    """Run each term as a shell command and return its standard output."""

    descriptor = describe(
        "pipe",
        "Execute shell commands and return output",
        options={
            "cwd": "working directory for the command",
            "timeout": "seconds before the command is killed",
            "rstrip": "drop trailing whitespace from the output (default true)",
        },
    )
    options_class = PipeOptions

    def __init__(self, runner: Optional[CommandRunner] = None) -> None:
        self.runner = runner or SubprocessRunner()

    def _run(self, ctx: LookupContext, terms: List[str], variables: Mapping[str, Any], opts: PipeOptions) -> List[Any]:
        timeout = opts.timeout if opts.timeout is not None else get_settings().pipe_timeout
        results: List[Any] = []
        for term in self.iter_terms(ctx, terms):
            result = self.runner.run(term, ctx, cwd=opts.cwd, timeout=timeout)
            if result.returncode != 0:
                detail = result.stderr.strip()
                raise SourceUnavailableError(
                    f"command '{term}' returned {result.returncode}" + (f": {detail}" if detail else ""),
                    term=term,
                )
            results.append(result.stdout.rstrip() if opts.rstrip else result.stdout)
        return results
