"""Environment driven settings.

  LOOKUPKIT_PLUGIN_PATH      -> os.pathsep separated plugin dirs/files
  LOOKUPKIT_ENTRY_POINTS     -> "0" disables entry point discovery
  LOOKUPKIT_HTTP_TIMEOUT     -> default url timeout in seconds (10)
  LOOKUPKIT_PIPE_TIMEOUT     -> default pipe timeout in seconds (none)
  LOOKUPKIT_PASSWORD_LENGTH  -> default generated password length (16)
  LOOKUPKIT_LOG_FILE         -> rotating log file used by the CLI
"""
from __future__ import annotations

import os
import threading
from dataclasses import dataclass, field
from typing import List, Optional

ENTRY_POINT_GROUP = "lookupkit.lookups"
DEFAULT_HTTP_TIMEOUT = 10.0
DEFAULT_PASSWORD_LENGTH = 16


@dataclass(frozen=True)
class LookupSettings:
    plugin_paths: List[str] = field(default_factory=list)
    entry_points: bool = True
    http_timeout: float = DEFAULT_HTTP_TIMEOUT
    pipe_timeout: Optional[float] = None
    password_length: int = DEFAULT_PASSWORD_LENGTH
    log_file: Optional[str] = None

    @classmethod
    def from_env(cls) -> "LookupSettings":
        raw_paths = os.getenv("LOOKUPKIT_PLUGIN_PATH", "")
        paths = [p for p in raw_paths.split(os.pathsep) if p]

        http_env = os.getenv("LOOKUPKIT_HTTP_TIMEOUT")
        try:
            http_timeout = float(http_env) if http_env else DEFAULT_HTTP_TIMEOUT
        except ValueError:
            http_timeout = DEFAULT_HTTP_TIMEOUT

        pipe_env = os.getenv("LOOKUPKIT_PIPE_TIMEOUT")
        try:
            pipe_timeout = float(pipe_env) if pipe_env else None
        except ValueError:
            pipe_timeout = None

        length_env = os.getenv("LOOKUPKIT_PASSWORD_LENGTH")
        try:
            password_length = int(length_env) if length_env else DEFAULT_PASSWORD_LENGTH
        except ValueError:
            password_length = DEFAULT_PASSWORD_LENGTH

        return cls(
            plugin_paths=paths,
            entry_points=os.getenv("LOOKUPKIT_ENTRY_POINTS", "1") != "0",
            http_timeout=http_timeout,
            pipe_timeout=pipe_timeout,
            password_length=password_length,
            log_file=os.getenv("LOOKUPKIT_LOG_FILE") or None,
        )


_SETTINGS: Optional[LookupSettings] = None
_SETTINGS_LOCK = threading.Lock()


def get_settings(refresh: bool = False) -> LookupSettings:
    global _SETTINGS
    with _SETTINGS_LOCK:
        if _SETTINGS is None or refresh:
            _SETTINGS = LookupSettings.from_env()
        return _SETTINGS
