"""HTTP lookup.

One ``requests.Session`` is configured per call and shared by all of its
terms. Requests are attempted once. Each request runs on a worker thread so
that cancelling the context returns to the caller immediately, even while the
request is still waiting on the server; the abandoned worker finishes in the
background and closes its response.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional
import logging
import threading

import requests
import urllib3
from requests.adapters import HTTPAdapter
from urllib3.exceptions import InsecureRequestWarning
from urllib3.util.retry import Retry

from ..config import get_settings
from ..context import LookupContext
from ..errors import InvalidTermError, LookupCancelledError, SourceUnavailableError
from ..options import as_bool, as_float, as_str, as_str_map, option
from .base import BaseLookupPlugin, describe, lookup_plugin

logger = logging.getLogger(__name__)

CHUNK_SIZE = 65536


@dataclass
class URLOptions:
    validate_certs: bool = option(True, as_bool)
    headers: Dict[str, str] = option(coerce=as_str_map, factory=dict)
    timeout: Optional[float] = option(None, as_float)
    username: Optional[str] = option(None, as_str)
    password: Optional[str] = option(None, as_str)
    split_lines: bool = option(False, as_bool)


@lookup_plugin()
class URLLookup(BaseLookupPlugin):
    """GET each term and return the response body as text."""

    descriptor = describe(
        "url",
        "Fetch content from HTTP URLs",
        options={
            "validate_certs": "verify TLS certificates (default true)",
            "headers": "mapping of request headers",
            "timeout": "per request timeout in seconds",
            "username": "basic auth user",
            "password": "basic auth password",
            "split_lines": "return one value per body line instead of the whole body",
        },
    )
    options_class = URLOptions

    @staticmethod
    def _configure_session(opts: URLOptions) -> requests.Session:
        session = requests.Session()
        # single attempt; callers own retry policy
        adapter = HTTPAdapter(max_retries=Retry(total=0, raise_on_status=False))
        session.mount("https://", adapter)
        session.mount("http://", adapter)
        session.verify = opts.validate_certs
        if opts.headers:
            session.headers.update(opts.headers)
        if not opts.validate_certs:
            urllib3.disable_warnings(InsecureRequestWarning)
        if opts.username is not None:
            session.auth = (opts.username, opts.password or "")
        return session

    def _run(self, ctx: LookupContext, terms: List[str], variables: Mapping[str, Any], opts: URLOptions) -> List[Any]:
        timeout = opts.timeout if opts.timeout is not None else get_settings().http_timeout
        session = self._configure_session(opts)
        unregister = ctx.on_cancel(session.close)
        try:
            results: List[Any] = []
            for term in self.iter_terms(ctx, terms):
                body = self._fetch_cancellable(session, ctx, term, timeout)
                if opts.split_lines:
                    results.extend(body.splitlines())
                else:
                    results.append(body)
            return results
        finally:
            unregister()
            session.close()

    def _fetch_cancellable(self, session: requests.Session, ctx: LookupContext, url: str, timeout: float) -> str:
        """Run ``_fetch`` on a worker thread and stop waiting once ``ctx`` is cancelled."""
        outcome: Dict[str, Any] = {}
        done = threading.Event()

        def worker() -> None:
            try:
                outcome["body"] = self._fetch(session, ctx, url, timeout)
            except Exception as e:
                outcome["error"] = e
            finally:
                done.set()

        unregister = ctx.on_cancel(done.set)
        try:
            threading.Thread(target=worker, name="lookupkit-url", daemon=True).start()
            done.wait()
        finally:
            unregister()

        if "body" in outcome:
            return outcome["body"]
        if ctx.cancelled:
            logger.debug("Abandoning in-flight request to %s", url)
            raise LookupCancelledError(f"request cancelled: {url}", term=url)
        raise outcome["error"]

    def _fetch(self, session: requests.Session, ctx: LookupContext, url: str, timeout: float) -> str:
        remaining = ctx.remaining()
        if remaining is not None:
            timeout = min(timeout, remaining)
        logger.debug("GET %s", url)
        try:
            resp = session.get(url, timeout=timeout, stream=True)
        except (requests.exceptions.MissingSchema, requests.exceptions.InvalidSchema,
                requests.exceptions.InvalidURL) as e:
            raise InvalidTermError(f"invalid URL {url}: {e}", term=url) from e
        except requests.RequestException as e:
            if ctx.cancelled:
                raise LookupCancelledError(f"request cancelled: {url}", term=url) from e
            raise SourceUnavailableError(f"failed to fetch {url}: {e}", term=url) from e

        with resp:
            try:
                resp.raise_for_status()
                chunks = []
                for chunk in resp.iter_content(chunk_size=CHUNK_SIZE):
                    ctx.raise_if_cancelled(url)
                    chunks.append(chunk)
                content = b"".join(chunks)
            except requests.HTTPError as e:
                raise SourceUnavailableError(f"failed to fetch {url}: {e}", term=url) from e
            except requests.RequestException as e:
                if ctx.cancelled:
                    raise LookupCancelledError(f"request cancelled: {url}", term=url) from e
                raise SourceUnavailableError(f"failed to read response from {url}: {e}", term=url) from e
            # requests assumes ISO-8859-1 for text/* without a charset
            content_type = resp.headers.get("Content-Type", "")
            encoding = resp.encoding if "charset=" in content_type.lower() and resp.encoding else "utf-8"
            try:
                return content.decode(encoding, errors="replace")
            except LookupError:
                # unknown charset advertised by the server
                return content.decode("utf-8", errors="replace")
