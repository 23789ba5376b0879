"""Tests for models.py: decoding API objects and the cluster initialization check."""

from __future__ import annotations

from helpers import make_cluster, make_project, make_secret

from kkp_provisioner.models import RECONCILIATION_CONDITIONS, Cluster, Project, Secret


def _reconciled(version: str | None = "v2.21.0") -> dict[str, dict[str, str]]:
    conditions = {}
    for name in RECONCILIATION_CONDITIONS:
        conditions[name] = {"status": "True"}
        if version is not None:
            conditions[name]["kubermaticVersion"] = version
    return conditions


HEALTHY = {"apiserver": "HealthStatusUp", "controller": "HealthStatusUp", "etcd": "HealthStatusUp"}


class TestProject:
    def test_decodes_id_name_and_phase(self) -> None:
        project = Project.from_object(make_project(name="abc", display_name="demo", phase="Active"))
        assert project.id == "abc"
        assert project.display_name == "demo"
        assert project.phase == "Active"

    def test_missing_status(self) -> None:
        assert Project.from_object(make_project(phase=None)).phase is None


class TestCluster:
    def test_decodes_fields(self) -> None:
        raw = make_cluster(name="c1", project_id="p1", version="1.24.3", phase="Running")
        raw["status"]["userEmail"] = "owner@example.com"
        cluster = Cluster.from_object(raw)
        assert cluster.id == "c1"
        assert cluster.project_id == "p1"
        assert cluster.version == "1.24.3"
        assert cluster.phase == "Running"
        assert cluster.user_email == "owner@example.com"

    def test_initialized_condition_wins(self) -> None:
        cluster = Cluster.from_object(make_cluster(conditions={"ClusterInitialized": {"status": "True"}}))
        assert cluster.is_initialized()

    def test_initialized_condition_false(self) -> None:
        cluster = Cluster.from_object(make_cluster(conditions={"ClusterInitialized": {"status": "False"}}))
        assert not cluster.is_initialized()

    def test_reconciled_and_healthy(self) -> None:
        cluster = Cluster.from_object(make_cluster(conditions=_reconciled(), extended_health=HEALTHY))
        assert cluster.is_initialized()
        assert cluster.is_initialized("v2.21.0")

    def test_reconciled_for_another_version(self) -> None:
        cluster = Cluster.from_object(make_cluster(conditions=_reconciled("v2.20.0"), extended_health=HEALTHY))
        assert not cluster.is_initialized("v2.21.0")

    def test_missing_condition(self) -> None:
        conditions = _reconciled()
        conditions.pop(RECONCILIATION_CONDITIONS[0])
        cluster = Cluster.from_object(make_cluster(conditions=conditions, extended_health=HEALTHY))
        assert not cluster.is_initialized()

    def test_unhealthy_component(self) -> None:
        health = dict(HEALTHY, etcd="HealthStatusProvisioning")
        cluster = Cluster.from_object(make_cluster(conditions=_reconciled(), extended_health=health))
        assert not cluster.is_initialized()

    def test_apiserver_must_be_reported(self) -> None:
        health = {"controller": "HealthStatusUp"}
        cluster = Cluster.from_object(make_cluster(conditions=_reconciled(), extended_health=health))
        assert cluster.all_healthy()
        assert not cluster.is_initialized()

    def test_no_health_is_not_healthy(self) -> None:
        assert not Cluster.from_object(make_cluster()).all_healthy()


class TestSecret:
    def test_decodes_data(self) -> None:
        secret = Secret.from_object(make_secret(cluster_id="c1"))
        assert secret.namespace == "cluster-c1"
        assert secret.name == "admin-kubeconfig"
        assert "kubeconfig" in secret.data
