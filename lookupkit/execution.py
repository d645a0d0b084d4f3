"""Command execution backends used by the pipe lookup.

The pipe lookup only depends on the ``CommandRunner`` contract (command in,
captured output out). ``SubprocessRunner`` runs commands through the local
shell; hosts that sandbox execution inject their own runner.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol
import logging
import os
import signal
import subprocess
import time

from .context import LookupContext
from .errors import LookupCancelledError, SourceUnavailableError

logger = logging.getLogger(__name__)

POLL_INTERVAL = 0.1
_POSIX = os.name == "posix"


def _kill(proc: subprocess.Popen) -> None:
    # the shell's children share its process group and would keep the pipes open
    try:
        if _POSIX:
            os.killpg(proc.pid, signal.SIGKILL)
        else:
            proc.kill()
    except (ProcessLookupError, PermissionError):
        pass


@dataclass
class CommandResult:
    command: str
    stdout: str
    stderr: str
    returncode: int


class CommandRunner(Protocol):
    def run(
        self,
        command: str,
        ctx: LookupContext,
        cwd: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> CommandResult:
        """Execute ``command`` and return its captured output."""
        ...  # pragma: no cover


@dataclass
class SubprocessRunner:
    """Run commands with ``/bin/sh -c`` semantics and honour cancellation."""
    encoding: str = "utf-8"

    def run(
        self,
        command: str,
        ctx: LookupContext,
        cwd: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> CommandResult:
        ctx.raise_if_cancelled(command)
        remaining = ctx.remaining()
        if remaining is not None:
            timeout = remaining if timeout is None else min(timeout, remaining)
        deadline = time.monotonic() + timeout if timeout is not None else None

        logger.debug("Executing %s", command)
        try:
            proc = subprocess.Popen(
                command,
                shell=True,
                cwd=cwd,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                start_new_session=_POSIX,
            )
        except OSError as e:
            raise SourceUnavailableError(f"failed to execute '{command}': {e}", term=command) from e

        unregister = ctx.on_cancel(lambda: _kill(proc))
        try:
            while True:
                try:
                    out, err = proc.communicate(timeout=POLL_INTERVAL)
                    break
                except subprocess.TimeoutExpired:
                    if ctx.cancelled:
                        _kill(proc)
                        proc.communicate()
                        raise LookupCancelledError(f"command cancelled: '{command}'", term=command)
                    if deadline is not None and time.monotonic() >= deadline:
                        _kill(proc)
                        proc.communicate()
                        raise SourceUnavailableError(
                            f"command timed out after {timeout:.1f}s: '{command}'", term=command
                        )
        finally:
            unregister()

        if ctx.cancelled and proc.returncode < 0:
            raise LookupCancelledError(f"command cancelled: '{command}'", term=command)
        return CommandResult(
            command=command,
            stdout=out.decode(self.encoding, errors="replace"),
            stderr=err.decode(self.encoding, errors="replace"),
            returncode=proc.returncode,
        )
