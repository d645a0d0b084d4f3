"""Password lookup: read a stored password or generate and persist a new one.

Term grammar: ``<path> [length=N] [chars=set,set,...]``. Character sets are
names from the ``string`` module (``ascii_letters``, ``digits``,
``punctuation``...) or literal characters.

A new password is written to a private temp file next to the target and
published with ``os.link``, which fails when the target already exists. Two
callers racing on the same missing path therefore agree on one password.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Mapping, Optional
import errno
import logging
import os
import secrets
import string
import tempfile
import time

from ..config import get_settings
from ..context import LookupContext
from ..errors import InvalidTermError, PersistenceError, SourceUnavailableError
from ..options import as_int, as_str_list, option
from ..terms import parse_password_term
from ..utils import expand_home
from .base import BaseLookupPlugin, describe, lookup_plugin

logger = logging.getLogger(__name__)

DEFAULT_CHARS = ["ascii_letters", "digits"]
READ_RETRIES = 20
READ_RETRY_DELAY = 0.05
NAMED_CHARSETS = {
    "ascii_letters": string.ascii_letters,
    "ascii_lowercase": string.ascii_lowercase,
    "ascii_uppercase": string.ascii_uppercase,
    "digits": string.digits,
    "hexdigits": string.hexdigits,
    "octdigits": string.octdigits,
    "punctuation": string.punctuation,
}
# filesystems without hard links
_NO_LINK_ERRNOS = {errno.EPERM, errno.EXDEV, errno.ENOSYS, getattr(errno, "ENOTSUP", errno.EOPNOTSUPP), errno.EOPNOTSUPP}


def build_charset(sets: List[str]) -> str:
    seen = []
    for item in sets:
        for ch in NAMED_CHARSETS.get(item, item):
            if ch not in seen:
                seen.append(ch)
    return "".join(seen)


def generate_password(length: int, charset: str) -> str:
    return "".join(secrets.choice(charset) for _ in range(length))


@dataclass
class PasswordOptions:
    length: Optional[int] = option(None, as_int)
    chars: Optional[List[str]] = option(None, as_str_list)


@lookup_plugin()
class PasswordLookup(BaseLookupPlugin):
    """Return the password stored at each term's path, creating it on first use."""

    descriptor = describe(
        "password",
        "Generate or retrieve passwords",
        options={
            "length": "length of generated passwords (term length= wins)",
            "chars": "character sets or literal characters (term chars= wins)",
        },
    )
    options_class = PasswordOptions

    def _run(self, ctx: LookupContext, terms: List[str], variables: Mapping[str, Any], opts: PasswordOptions) -> List[Any]:
        results: List[Any] = []
        for term in self.iter_terms(ctx, terms):
            spec = parse_password_term(term)
            path = expand_home(spec.path)
            if os.path.exists(path):
                results.append(self._read(path, term))
                continue

            length = spec.length if spec.length is not None else opts.length
            if length is None:
                length = get_settings().password_length
            if length <= 0:
                raise InvalidTermError(f"password length must be positive: '{term}'", term=term)
            sets = spec.chars.split(",") if spec.chars else (opts.chars or DEFAULT_CHARS)
            charset = build_charset([s for s in sets if s])
            if not charset:
                raise InvalidTermError(f"password character set is empty: '{term}'", term=term)

            password = generate_password(length, charset)
            if self._persist(path, password, term):
                logger.info("Generated new password at %s", path)
                results.append(password)
            else:
                logger.debug("Password at %s created concurrently; using stored value", path)
                results.append(self._read(path, term))
        return results

    @staticmethod
    def _read(path: str, term: str) -> str:
        # without hard links the file exists before its content is written
        for attempt in range(READ_RETRIES):
            try:
                with open(path, "r", encoding="utf-8") as f:
                    content = f.read().strip()
            except (OSError, UnicodeDecodeError) as e:
                raise SourceUnavailableError(f"failed to read password file {path}: {e}", term=term) from e
            if content or attempt == READ_RETRIES - 1:
                return content
            time.sleep(READ_RETRY_DELAY)
        return ""

    @staticmethod
    def _persist(path: str, password: str, term: str) -> bool:
        """Publish ``password`` at ``path``; False when another writer got there first."""
        directory = os.path.dirname(path) or "."
        try:
            os.makedirs(directory, mode=0o700, exist_ok=True)
        except OSError as e:
            raise PersistenceError(f"failed to create directory {directory}: {e}", term=term) from e

        try:
            fd, tmp_path = tempfile.mkstemp(prefix=".pw-", suffix=".tmp", dir=directory)
        except OSError as e:
            raise PersistenceError(f"failed to save password to {path}: {e}", term=term) from e
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(password)
            try:
                os.link(tmp_path, path)
                return True
            except FileExistsError:
                return False
            except OSError as e:
                if e.errno not in _NO_LINK_ERRNOS:
                    raise
            return _exclusive_write(path, password)
        except OSError as e:
            raise PersistenceError(f"failed to save password to {path}: {e}", term=term) from e
        finally:
            try:
                os.unlink(tmp_path)
            except FileNotFoundError:
                pass


def _exclusive_write(path: str, password: str) -> bool:
    try:
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
    except FileExistsError:
        return False
    with os.fdopen(fd, "w", encoding="utf-8") as f:
        f.write(password)
    return True
