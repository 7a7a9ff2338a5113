"""Plugin Registry — versioned, lock-once key → plugin lookup.

Manifesto:
Every phase of a report run resolves its implementation by key: a data
source type, a render mode, an action type. The registry binds those
keys during a single bootstrap window and then freezes. Once locked it
can never be mutated again (there is no unlock, no clear, no
unregister), so concurrent readers after bootstrap never race.

ARCHITECTURE
────────────
::

    PluginRegistry[K, P]
      ├── .register(key, plugin)  ─ locked? duplicate? phase? contracts?
      ├── .lock()                 ─ one-way, idempotent
      ├── .get(key) / .require()  ─ PluginNotFoundError when absent
      ├── .has(key) / in          ─ existence check
      └── .list() / .keys() / .size()

    Registration checks run in this order:
      1. RegistryLockedError      (after lock, regardless of key)
      2. DuplicatePluginError     (first registration is kept)
      3. PluginTypeError          (expected_phase mismatch)
      4. PluginIncompatibleError  (compatible_contracts rejects version)

Related modules:
    registries.py — Data/Render/Action/Enhance instantiations
    plugins.py    — PluginDescriptor and phase protocols

Tags:
    reportflow, registry, plugin, lock, version-gate

Doc-Types:
    api-reference
"""

from __future__ import annotations

from typing import Generic, TypeVar

from reportflow.core.errors import (
    DuplicatePluginError,
    PluginIncompatibleError,
    PluginNotFoundError,
    PluginTypeError,
    RegistryLockedError,
)
from reportflow.core.logging import get_logger
from reportflow.core.versioning import CONTRACTS_VERSION, VersionGate
from reportflow.registry.plugins import PluginDescriptor, PluginPhase, describe

logger = get_logger(__name__)

K = TypeVar("K")
P = TypeVar("P")


class PluginRegistry(Generic[K, P]):
    """Generic keyed plugin store.

    Instantiated per subsystem with an optional expected phase; the
    subsystem classes only add typed dispatch helpers on top.

    Example:
        >>> registry = PluginRegistry(contracts_version="1.2.3")
        >>> registry.register("inline", inline_plugin)
        >>> registry.lock()
        >>> registry.require("inline") is inline_plugin
        True
    """

    def __init__(
        self,
        contracts_version: str = CONTRACTS_VERSION,
        expected_phase: PluginPhase | str | None = None,
        name: str | None = None,
    ):
        self.name = name or type(self).__name__
        self.contracts_version = contracts_version
        self.expected_phase = PluginPhase(expected_phase) if expected_phase else None
        self._gate = VersionGate(contracts_version)
        self._entries: dict[K, P] = {}
        self._locked = False

    def register(self, key: K, plugin: P) -> None:
        """Register ``plugin`` under ``key``.

        Raises:
            RegistryLockedError: registry is locked
            DuplicatePluginError: key already registered
            PluginTypeError: plugin phase differs from ``expected_phase``
            PluginIncompatibleError: plugin range rejects ``contracts_version``
        """
        if self._locked:
            raise RegistryLockedError(self.name)

        if key in self._entries:
            raise DuplicatePluginError(str(key))

        descriptor = describe(plugin)
        self._check_phase(descriptor)
        self._check_contracts(descriptor)

        self._entries[key] = plugin
        logger.debug(
            "registry.plugin_registered",
            registry=self.name,
            key=str(key),
            plugin=descriptor.name,
            version=descriptor.version,
        )

    def _check_phase(self, descriptor: PluginDescriptor) -> None:
        if self.expected_phase and descriptor.phase != self.expected_phase:
            raise PluginTypeError(
                descriptor.name, self.expected_phase.value, descriptor.phase.value
            )

    def _check_contracts(self, descriptor: PluginDescriptor) -> None:
        if not self._gate.accepts(descriptor.compatible_contracts):
            raise PluginIncompatibleError(
                descriptor.name, descriptor.version, self.contracts_version
            )

    def lock(self) -> None:
        """Freeze the registry. Calling it again is a no-op."""
        if not self._locked:
            self._locked = True
            logger.debug("registry.locked", registry=self.name, size=len(self._entries))

    @property
    def is_locked(self) -> bool:
        return self._locked

    def require(self, key: K) -> P:
        """Return the plugin for ``key`` or raise ``PluginNotFoundError``."""
        try:
            return self._entries[key]
        except KeyError:
            raise PluginNotFoundError(str(key)) from None

    def get(self, key: K) -> P:
        return self.require(key)

    def has(self, key: K) -> bool:
        return key in self._entries

    def list(self) -> list[P]:
        """Registered plugins in registration order."""
        return list(self._entries.values())

    def keys(self) -> list[K]:
        return list(self._entries.keys())

    def descriptors(self) -> list[PluginDescriptor]:
        return [describe(p) for p in self._entries.values()]

    def size(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        state = "locked" if self._locked else "open"
        return f"{self.name}(size={len(self._entries)}, {state})"
