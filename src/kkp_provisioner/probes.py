"""Readiness probes: conditions for ConditionWaiter built on object store reads.

Each probe decides what "not found" means for its object. Probes that wait for
an object to appear treat it as "not ready yet"; probes that watch an object
the workflow already created treat it as a failure.
"""

from __future__ import annotations

from typing import Any

import structlog

from kkp_provisioner.clients.object_store import CLUSTER, ObjectStore, ResourceKind
from kkp_provisioner.errors import ObjectNotFoundError, PhaseRegressionError

log = structlog.get_logger()


class ReadinessProbe:
    """Base class for probes; ``observed`` holds the last object read."""

    def __init__(self, store: ObjectStore, kind: ResourceKind, name: str, namespace: str | None = None) -> None:
        self.store = store
        self.kind = kind
        self.name = name
        self.namespace = namespace
        self.observed: Any = None

    @property
    def key(self) -> str:
        return f"{self.namespace}/{self.name}" if self.namespace else self.name

    @property
    def description(self) -> str:
        return f"{self.kind.kind} {self.key}"

    def __call__(self) -> bool:
        raise NotImplementedError


class CacheVisibilityProbe(ReadinessProbe):
    """Ready once a freshly created object can be read back."""

    @property
    def description(self) -> str:
        return f"{self.kind.kind} {self.key} to become visible"

    def __call__(self) -> bool:
        try:
            self.observed = self.store.get(self.kind, self.name, self.namespace)
        except ObjectNotFoundError:
            return False
        return True


class PresenceProbe(CacheVisibilityProbe):
    """Ready once an object produced by someone else exists."""

    @property
    def description(self) -> str:
        return f"{self.kind.kind} {self.key} to appear"


class PhaseProbe(ReadinessProbe):
    """Ready once an existing object reports the target phase.

    With ``phase_order`` set, a phase that ranks below one seen earlier raises
    PhaseRegressionError. Phases missing from the order are not ranked.
    """

    def __init__(
        self,
        store: ObjectStore,
        kind: ResourceKind,
        name: str,
        target_phase: str,
        phase_order: tuple[str, ...] = (),
        namespace: str | None = None,
    ) -> None:
        super().__init__(store, kind, name, namespace)
        self.target_phase = target_phase
        self.phase_order = phase_order
        self._highest: str | None = None

    @property
    def description(self) -> str:
        return f"{super().description} to reach phase {self.target_phase}"

    def _track(self, phase: str | None) -> None:
        if phase not in self.phase_order:
            return
        if self._highest is not None and self.phase_order.index(phase) < self.phase_order.index(self._highest):
            raise PhaseRegressionError(self.kind.kind, self.name, self._highest, phase)
        self._highest = phase

    def __call__(self) -> bool:
        self.observed = self.store.get(self.kind, self.name, self.namespace)
        phase = self.observed.phase
        self._track(phase)
        log.debug("phase_observed", kind=self.kind.kind, name=self.name, phase=phase, target=self.target_phase)
        return phase == self.target_phase


class InitializationProbe(ReadinessProbe):
    """Ready once a cluster passes the composite initialization check."""

    def __init__(self, store: ObjectStore, name: str, kubermatic_version: str | None = None) -> None:
        super().__init__(store, CLUSTER, name)
        self.kubermatic_version = kubermatic_version

    @property
    def description(self) -> str:
        return f"{super().description} to be initialized"

    def __call__(self) -> bool:
        self.observed = self.store.get(self.kind, self.name)
        return self.observed.is_initialized(self.kubermatic_version)
