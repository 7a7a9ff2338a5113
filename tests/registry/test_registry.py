"""Tests for the plugin registries."""

from dataclasses import dataclass

import pytest

from reportflow.core.errors import (
    DuplicatePluginError,
    PluginIncompatibleError,
    PluginNotFoundError,
    PluginTypeError,
    RegistryLockedError,
)
from reportflow.registry import (
    DataRegistry,
    PluginDescriptor,
    PluginPhase,
    PluginRegistry,
    create_registries,
    describe,
    lock_registries,
)


@dataclass
class FakePlugin:
    name: str
    version: str = "1.0.0"
    compatible_contracts: str = "^1.0.0"
    phase: str = "data"


class FakeEnhance:
    def __init__(self, name: str, suffix: str, compatible_contracts: str = "^1.0.0"):
        self.descriptor = PluginDescriptor(name, "1.0.0", compatible_contracts, PluginPhase.ENHANCE)
        self.suffix = suffix

    def apply(self, config, ctx):
        return config + self.suffix


class TestDescribe:
    def test_descriptor_attribute(self):
        """A descriptor attribute is used when present."""
        plugin = FakeEnhance("upper", "!")
        assert describe(plugin).name == "upper"

    def test_plain_attributes(self):
        """Plain attributes build the descriptor otherwise."""
        d = describe(FakePlugin("inline"))
        assert d.phase is PluginPhase.DATA
        assert d.compatible_contracts == "^1.0.0"

    def test_not_a_plugin(self):
        """Objects without plugin metadata are rejected."""
        with pytest.raises(TypeError):
            describe(object())


class TestRegister:
    def test_register_and_require(self):
        """A registered plugin is returned by require."""
        registry = PluginRegistry("1.2.3")
        plugin = FakePlugin("inline")
        registry.register("inline", plugin)
        assert registry.require("inline") is plugin
        assert registry.has("inline")
        assert "inline" in registry
        assert registry.size() == 1

    def test_missing_key(self):
        """require on an unknown key raises PluginNotFoundError."""
        with pytest.raises(PluginNotFoundError):
            PluginRegistry().require("nope")

    def test_duplicate_keeps_first(self):
        """A duplicate key is rejected and the first plugin kept."""
        registry = PluginRegistry()
        first, second = FakePlugin("a"), FakePlugin("b")
        registry.register("k", first)
        with pytest.raises(DuplicatePluginError):
            registry.register("k", second)
        assert registry.require("k") is first
        assert registry.size() == 1

    def test_incompatible_contracts(self):
        """A plugin outside the contracts range is not registered."""
        registry = PluginRegistry("1.0.0")
        with pytest.raises(PluginIncompatibleError):
            registry.register("old", FakePlugin("old", compatible_contracts="^2.0.0"))
        assert not registry.has("old")

    def test_phase_mismatch(self):
        """A phase registry rejects plugins of another phase."""
        registry = DataRegistry()
        with pytest.raises(PluginTypeError):
            registry.register("json", FakePlugin("json", phase="render"))

    def test_keys_in_registration_order(self):
        """keys follow registration order."""
        registry = PluginRegistry()
        for key in ("c", "a", "b"):
            registry.register(key, FakePlugin(key))
        assert registry.keys() == ["c", "a", "b"]


class TestLock:
    def test_locked_registry_rejects_everything(self):
        """A locked registry rejects new and duplicate keys."""
        registry = PluginRegistry()
        registry.register("a", FakePlugin("a"))
        registry.lock()
        with pytest.raises(RegistryLockedError):
            registry.register("b", FakePlugin("b"))
        # a locked registry reports locked before duplicate
        with pytest.raises(RegistryLockedError):
            registry.register("a", FakePlugin("a"))
        assert registry.size() == 1

    def test_lock_is_idempotent(self):
        """Locking twice is harmless."""
        registry = PluginRegistry()
        registry.lock()
        registry.lock()
        assert registry.is_locked

    def test_reads_after_lock(self):
        """Reads still work after lock."""
        registry = PluginRegistry()
        plugin = FakePlugin("a")
        registry.register("a", plugin)
        registry.lock()
        assert registry.require("a") is plugin
        assert registry.list() == [plugin]


class TestEnhanceRegistry:
    def test_apply_all_in_order(self):
        """Enhance plugins apply in registration order."""
        registries = create_registries()
        registries.enhance.register(FakeEnhance("one", "1"))
        registries.enhance.register(FakeEnhance("two", "2"))
        assert registries.enhance.apply_all("x", ctx=None) == "x12"

    def test_duplicate_name(self):
        """Enhance plugin names must be unique."""
        registries = create_registries()
        registries.enhance.register(FakeEnhance("one", "1"))
        with pytest.raises(DuplicatePluginError):
            registries.enhance.register(FakeEnhance("one", "2"))

    def test_incompatible(self):
        """Incompatible enhance plugins are rejected."""
        registries = create_registries("1.0.0")
        with pytest.raises(PluginIncompatibleError):
            registries.enhance.register(FakeEnhance("future", "!", "^3.0.0"))


class TestRegistries:
    def test_lock_registries_locks_all(self):
        """lock_registries locks every phase."""
        registries = create_registries()
        assert not registries.is_locked
        lock_registries(registries)
        assert registries.is_locked
        with pytest.raises(RegistryLockedError):
            registries.enhance.register(FakeEnhance("late", "!"))

    def test_descriptors_by_phase(self):
        """descriptors groups plugins by phase."""
        registries = create_registries()
        registries.data.register("inline", FakePlugin("inline"))
        descriptors = registries.descriptors()
        assert [d.name for d in descriptors["data"]] == ["inline"]
        assert descriptors["render"] == []
