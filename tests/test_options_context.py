import threading
import time
from dataclasses import dataclass
from typing import Dict, List, Optional

import pytest

from lookupkit import LookupCancelledError, LookupContext
from lookupkit.options import as_bool, as_int, as_str_list, as_str_map, as_text, decode_options, option


@dataclass
class SampleOptions:
    flag: bool = option(False, as_bool)
    count: Optional[int] = option(None, as_int)
    names: List[str] = option(coerce=as_str_list, factory=list)
    headers: Dict[str, str] = option(coerce=as_str_map, factory=dict)
    label: Optional[str] = option(None, as_text)


def test_decode_known_options():
    opts = decode_options(SampleOptions, {
        "flag": "yes",
        "count": "7",
        "names": "a, b,,c",
        "headers": {"X-N": 1},
        "label": True,
    })
    assert opts.flag is True
    assert opts.count == 7
    assert opts.names == ["a", "b", "c"]
    assert opts.headers == {"X-N": "1"}
    assert opts.label == "true"


def test_decode_ignores_unknown_and_mismatched():
    opts = decode_options(SampleOptions, {"flag": "maybe", "count": True, "names": 3, "extra": "x", "label": None})
    assert opts == SampleOptions()


def test_decode_none_bag():
    assert decode_options(SampleOptions, None) == SampleOptions()


def test_mutable_defaults_not_shared():
    a = decode_options(SampleOptions, {})
    b = decode_options(SampleOptions, {})
    a.names.append("x")
    assert b.names == []


def test_context_cancel_runs_hooks_once():
    ctx = LookupContext()
    calls = []
    ctx.on_cancel(lambda: calls.append("a"))
    unregister = ctx.on_cancel(lambda: calls.append("b"))
    unregister()
    ctx.cancel()
    ctx.cancel()
    assert calls == ["a"]
    assert ctx.cancelled
    with pytest.raises(LookupCancelledError) as exc:
        ctx.raise_if_cancelled("term-x")
    assert exc.value.term == "term-x"


def test_context_hook_after_cancel_runs_immediately():
    ctx = LookupContext()
    ctx.cancel()
    calls = []
    ctx.on_cancel(lambda: calls.append(1))
    assert calls == [1]


def test_context_deadline():
    ctx = LookupContext.with_timeout(0.2)
    assert not ctx.cancelled
    assert 0 < ctx.remaining() <= 0.2
    assert ctx.wait(2)
    assert ctx.cancelled
    assert ctx.remaining() == 0
    assert LookupContext.background().remaining() is None


def test_context_cancel_from_other_thread():
    ctx = LookupContext()
    threading.Timer(0.1, ctx.cancel).start()
    start = time.monotonic()
    assert ctx.wait(2)
    assert time.monotonic() - start < 1.5
