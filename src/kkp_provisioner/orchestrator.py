"""Sequence the provisioning stages: project, cluster, user cluster client, machines, workload."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import structlog

from kkp_provisioner import builders
from kkp_provisioner.bootstrap import CredentialBootstrapper
from kkp_provisioner.clients.object_store import CLUSTER, MACHINE_DEPLOYMENT, POD, PROJECT, ObjectStore, ResourceKind
from kkp_provisioner.config import DeploymentProfile, PollBounds, RunInputs, WaitBounds, get_wait_bounds
from kkp_provisioner.models import (
    CLUSTER_PHASE_ORDER,
    CLUSTER_RUNNING,
    PROJECT_ACTIVE,
    PROJECT_PHASE_ORDER,
    Cluster,
    Project,
    ProvisionResult,
)
from kkp_provisioner.probes import CacheVisibilityProbe, InitializationProbe, PhaseProbe, ReadinessProbe
from kkp_provisioner.wait import ConditionWaiter

log = structlog.get_logger()

BootstrapperFactory = Callable[[ObjectStore, ConditionWaiter, WaitBounds], CredentialBootstrapper]


def _default_bootstrapper(seed: ObjectStore, waiter: ConditionWaiter, bounds: WaitBounds) -> CredentialBootstrapper:
    return CredentialBootstrapper(seed, waiter, bounds.admin_secret)


class TenantProvisioner:
    """Run the provisioning stages in order, stopping at the first error.

    Nothing is rolled back on failure: objects created by earlier stages stay
    on the control plane for inspection.
    """

    def __init__(
        self,
        seed: ObjectStore,
        inputs: RunInputs,
        profile: DeploymentProfile | None = None,
        waiter: ConditionWaiter | None = None,
        bounds: WaitBounds | None = None,
        bootstrapper_factory: BootstrapperFactory = _default_bootstrapper,
    ) -> None:
        self._seed = seed
        self._inputs = inputs
        self._profile = profile or DeploymentProfile()
        self._waiter = waiter or ConditionWaiter()
        self._bounds = bounds or get_wait_bounds()
        self._bootstrapper_factory = bootstrapper_factory

    def run(self) -> ProvisionResult:
        log.info("provisioning_started", project=self._inputs.project_name, cluster=self._inputs.cluster_name)
        project = self.create_project()
        cluster = self.create_cluster(project)
        user_cluster = self.bootstrap_user_cluster(cluster)
        machine_deployment = self.create_machine_deployment(user_cluster, cluster)
        workload = self.create_workload(user_cluster)

        result = ProvisionResult(
            project_id=project.id,
            cluster_id=cluster.id,
            cluster_version=cluster.version,
            machine_deployment=machine_deployment,
            workload=workload,
        )
        log.info("provisioning_completed", **result.model_dump())
        return result

    def _submit(self, store: ObjectStore, kind: ResourceKind, body: dict[str, Any], stage: str) -> dict[str, Any]:
        self._waiter.check_cancelled(f"submitting {kind.kind}")
        log.info("stage_started", stage=stage, kind=kind.kind, name=body["metadata"]["name"])
        return store.create(kind, body)

    def _await(self, probe: ReadinessProbe, bounds: PollBounds, *, immediate: bool = True) -> Any:
        if immediate:
            self._waiter.poll_immediate(bounds, probe, probe.description)
        else:
            self._waiter.poll(bounds, probe, probe.description)
        return probe.observed

    def create_project(self) -> Project:
        """Create a project and wait until it is active."""
        body = builders.build_project(self._inputs.project_name)
        self._submit(self._seed, PROJECT, body, "project")
        probe = PhaseProbe(self._seed, PROJECT, body["metadata"]["name"], PROJECT_ACTIVE, PROJECT_PHASE_ORDER)
        project: Project = self._await(probe, self._bounds.project_active)
        log.info("stage_completed", stage="project", project_id=project.id, phase=project.phase)
        return project

    def create_cluster(self, project: Project) -> Cluster:
        """Create a cluster in ``project`` and wait until it is ready for interaction.

        The owner patch between the cache wait and the readiness wait works around
        the control plane not accepting an owner at creation time.
        """
        body = builders.build_cluster(
            display_name=self._inputs.cluster_name,
            project_id=project.id,
            version=self._inputs.k8s_version,
            service_account=self._inputs.gcp_service_account,
            network=self._inputs.gcp_network,
            subnetwork=self._inputs.gcp_subnetwork,
            profile=self._profile,
        )
        self._submit(self._seed, CLUSTER, body, "cluster")
        cluster_id = body["metadata"]["name"]

        # Freshly created objects are never readable yet, so skip the immediate check.
        self._await(CacheVisibilityProbe(self._seed, CLUSTER, cluster_id), self._bounds.cluster_cache, immediate=False)

        if self._profile.owner_email:
            self._waiter.check_cancelled("patching the cluster owner")
            self._seed.patch_status(CLUSTER, cluster_id, {"status": {"userEmail": self._profile.owner_email}})

        probe: ReadinessProbe
        if self._profile.cluster_readiness == "running":
            probe = PhaseProbe(self._seed, CLUSTER, cluster_id, CLUSTER_RUNNING, CLUSTER_PHASE_ORDER)
        else:
            probe = InitializationProbe(self._seed, cluster_id, self._profile.kubermatic_version)
        cluster: Cluster = self._await(probe, self._bounds.cluster_ready)
        log.info("stage_completed", stage="cluster", cluster_id=cluster.id, version=cluster.version)
        return cluster

    def bootstrap_user_cluster(self, cluster: Cluster) -> ObjectStore:
        """Build the client for the new cluster's own API."""
        log.info("stage_started", stage="bootstrap", cluster_id=cluster.id)
        bootstrapper = self._bootstrapper_factory(self._seed, self._waiter, self._bounds)
        store = bootstrapper.bootstrap(cluster.id)
        log.info("stage_completed", stage="bootstrap", cluster_id=cluster.id)
        return store

    def create_machine_deployment(self, user_cluster: ObjectStore, cluster: Cluster) -> str:
        """Submit worker nodes for the cluster without waiting for them."""
        body = builders.build_machine_deployment(
            name=self._inputs.machine_name,
            cluster_id=cluster.id,
            kubelet_version=cluster.version,
            network=self._inputs.gcp_network,
            subnetwork=self._inputs.gcp_subnetwork,
            profile=self._profile,
        )
        self._submit(user_cluster, MACHINE_DEPLOYMENT, body, "machines")
        return body["metadata"]["name"]

    def create_workload(self, user_cluster: ObjectStore) -> str:
        """Submit the sample workload without waiting for it."""
        body = builders.build_sample_pod()
        self._submit(user_cluster, POD, body, "workload")
        return body["metadata"]["name"]
