import threading

import pytest

from lookupkit import BaseLookupPlugin, LookupPlugin, NotFoundError, lookup_plugin
from lookupkit.plugins import BUILTIN_LOOKUPS, describe
from lookupkit.registry import LookupRegistry, default_registry

EXPECTED = {"file", "env", "pipe", "fileglob", "first_found", "lines", "url", "password", "sequence", "csvfile"}


class EchoLookup(BaseLookupPlugin):
    descriptor = describe("echo", "Return terms unchanged")

    def __init__(self):
        self.calls = 0

    def _run(self, ctx, terms, variables, opts):
        self.calls += 1
        return list(terms)


def test_builtins_registered(registry):
    assert EXPECTED.issubset(registry.list())
    assert EXPECTED.issubset(BUILTIN_LOOKUPS.keys())
    for name in EXPECTED:
        assert registry.exists(name)
        plugin = registry.get(name)
        assert isinstance(plugin, LookupPlugin)
        assert plugin.name == name
        assert plugin.plugin_type == "lookup"


def test_get_unknown_raises_not_found(registry):
    assert not registry.exists("nope")
    with pytest.raises(NotFoundError) as exc:
        registry.get("nope")
    assert exc.value.name == "nope"
    assert "nope" in str(exc.value)


def test_get_returns_fresh_instances(registry):
    registry.register("echo", EchoLookup)
    first = registry.get("echo")
    second = registry.get("echo")
    assert first is not second
    first.run(None, ["a"])
    assert first.calls == 1
    assert second.calls == 0


def test_register_replaces_existing(registry):
    registry.register("echo", EchoLookup)
    registry.register("env", EchoLookup)  # last writer wins
    assert registry.run("env", ["HOME"]) == ["HOME"]
    assert "echo" in registry.list()


def test_register_rejects_non_callable(registry):
    with pytest.raises(TypeError):
        registry.register("bad", "not a factory")


def test_unregister_and_empty_registry():
    registry = LookupRegistry(builtins=False)
    assert registry.list() == set()
    registry.register("echo", EchoLookup)
    registry.unregister("echo")
    assert not registry.exists("echo")


def test_describe_lists_descriptors(registry):
    descriptors = {d.name: d for d in registry.describe()}
    assert EXPECTED.issubset(descriptors)
    info = registry.get("file").info()
    assert info["type"] == "lookup"
    assert info["name"] == "file"
    assert info["version"] == "1.0.0"
    assert "rstrip" in info["options"]
    assert info["authors"]


def test_decorator_registers_builtin():
    @lookup_plugin("decorated_echo")
    class Decorated(EchoLookup):
        descriptor = describe("decorated_echo", "test only")

    try:
        assert LookupRegistry().run("decorated_echo", ["x", "y"]) == ["x", "y"]
    finally:
        BUILTIN_LOOKUPS.pop("decorated_echo", None)


def test_concurrent_register_and_get(registry):
    errors = []

    def writer(i):
        registry.register(f"echo{i}", EchoLookup)

    def reader():
        try:
            for _ in range(50):
                registry.get("env")
                registry.list()
        except Exception as e:  # pragma: no cover
            errors.append(e)

    threads = [threading.Thread(target=writer, args=(i,)) for i in range(20)]
    threads += [threading.Thread(target=reader) for _ in range(5)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert not errors
    assert {f"echo{i}" for i in range(20)}.issubset(registry.list())


def test_default_registry_is_process_scoped(monkeypatch):
    monkeypatch.setenv("LOOKUPKIT_ENTRY_POINTS", "0")
    from lookupkit.config import get_settings
    get_settings(refresh=True)
    assert default_registry() is default_registry()
    assert EXPECTED.issubset(default_registry().list())
