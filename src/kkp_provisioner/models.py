"""Pydantic v2 models for the objects the workflow reads back from the control plane."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

PROJECT_ID_LABEL = "project-id"

PROJECT_PENDING = "Pending"
PROJECT_ACTIVE = "Active"
CLUSTER_PENDING = "Pending"
CLUSTER_RUNNING = "Running"

# Lifecycle order used to detect regressions; phases outside these tuples are not ranked.
PROJECT_PHASE_ORDER = (PROJECT_PENDING, PROJECT_ACTIVE)
CLUSTER_PHASE_ORDER = (CLUSTER_PENDING, CLUSTER_RUNNING)

CONDITION_TRUE = "True"
CLUSTER_INITIALIZED_CONDITION = "ClusterInitialized"

# Controllers that must have reconciled successfully before a cluster counts as initialized.
RECONCILIATION_CONDITIONS = (
    "SeedResourcesUpToDate",
    "ClusterControllerReconciledSuccessfully",
    "AddonControllerReconciledSuccessfully",
    "AddonInstallerControllerReconciledSuccessfully",
    "CloudControllerReconcilledSuccessfully",
    "UpdateControllerReconciledSuccessfully",
    "MachineDeploymentReconciledSuccessfully",
)

HEALTH_STATUS_UP = "HealthStatusUp"
APISERVER_HEALTH_KEY = "apiserver"


def _metadata(obj: dict[str, Any]) -> dict[str, Any]:
    return obj.get("metadata") or {}


class Project(BaseModel):
    """A tenant project. ``id`` is server-side unique, ``display_name`` is caller-supplied."""

    id: str
    display_name: str = ""
    phase: str | None = None

    @classmethod
    def from_object(cls, obj: dict[str, Any]) -> Project:
        spec = obj.get("spec") or {}
        status = obj.get("status") or {}
        return cls(id=_metadata(obj)["name"], display_name=spec.get("name", ""), phase=status.get("phase"))


class ClusterCondition(BaseModel):
    """One entry of a cluster's status.conditions map."""

    status: str = ""
    kubermatic_version: str | None = None
    reason: str | None = None
    message: str | None = None


class Cluster(BaseModel):
    """A user cluster as observed on the seed."""

    id: str
    display_name: str = ""
    project_id: str | None = None
    version: str = ""
    phase: str | None = None
    user_email: str | None = None
    conditions: dict[str, ClusterCondition] = Field(default_factory=dict)
    extended_health: dict[str, str] = Field(default_factory=dict)

    @classmethod
    def from_object(cls, obj: dict[str, Any]) -> Cluster:
        metadata = _metadata(obj)
        spec = obj.get("spec") or {}
        status = obj.get("status") or {}
        conditions = {
            name: ClusterCondition(
                status=str(raw.get("status", "")),
                kubermatic_version=raw.get("kubermaticVersion"),
                reason=raw.get("reason"),
                message=raw.get("message"),
            )
            for name, raw in (status.get("conditions") or {}).items()
        }
        return cls(
            id=metadata["name"],
            display_name=spec.get("humanReadableName", ""),
            project_id=(metadata.get("labels") or {}).get(PROJECT_ID_LABEL),
            version=str(spec.get("version", "")),
            phase=status.get("phase"),
            user_email=status.get("userEmail"),
            conditions=conditions,
            extended_health={k: str(v) for k, v in (status.get("extendedHealth") or {}).items()},
        )

    def _condition_true(self, name: str, kubermatic_version: str | None) -> bool:
        condition = self.conditions.get(name)
        if condition is None or condition.status != CONDITION_TRUE:
            return False
        if kubermatic_version is not None and condition.kubermatic_version != kubermatic_version:
            return False
        return True

    def all_healthy(self) -> bool:
        """Report whether every control plane component reports healthy."""
        if not self.extended_health:
            return False
        return all(status == HEALTH_STATUS_UP for status in self.extended_health.values())

    def is_initialized(self, kubermatic_version: str | None = None) -> bool:
        """Report whether the cluster is ready for interaction.

        Once the ``ClusterInitialized`` condition has been set it stays authoritative.
        Before that, every reconciling controller must report success (for the given
        kubermatic version, if one is set) and the control plane must be healthy,
        with the apiserver up.
        """
        if self._condition_true(CLUSTER_INITIALIZED_CONDITION, None):
            return True
        reconciled = all(self._condition_true(c, kubermatic_version) for c in RECONCILIATION_CONDITIONS)
        apiserver_up = self.extended_health.get(APISERVER_HEALTH_KEY) == HEALTH_STATUS_UP
        return reconciled and self.all_healthy() and apiserver_up


class Secret(BaseModel):
    """A namespaced secret; ``data`` values are base64 encoded as served by the API."""

    name: str
    namespace: str
    data: dict[str, str] = Field(default_factory=dict)

    @classmethod
    def from_object(cls, obj: dict[str, Any]) -> Secret:
        metadata = _metadata(obj)
        return cls(name=metadata["name"], namespace=metadata.get("namespace", ""), data=obj.get("data") or {})


class ProvisionResult(BaseModel):
    """Identifiers of everything a successful run created."""

    project_id: str
    cluster_id: str
    cluster_version: str
    machine_deployment: str
    workload: str
