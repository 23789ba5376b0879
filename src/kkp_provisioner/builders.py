"""Desired-state payloads for every object the workflow submits."""

from __future__ import annotations

import secrets
from typing import Any

from kkp_provisioner.clients.object_store import CLUSTER, MACHINE_DEPLOYMENT, POD, PROJECT
from kkp_provisioner.config import DeploymentProfile
from kkp_provisioner.models import PROJECT_ID_LABEL

# Same alphabet as apimachinery's rand.String: no vowels, no confusable digits.
_NAME_ALPHABET = "bcdfghjklmnpqrstvwxz2456789"

MACHINE_NAMESPACE = "kube-system"
WORKLOAD_NAMESPACE = "default"
WORKLOAD_NAME = "nginx"
WORKLOAD_IMAGE = "nginx:1.14.2"
WORKLOAD_PORT = 80


def random_name(length: int = 10) -> str:
    """Return a random DNS-label-safe object name."""
    return "".join(secrets.choice(_NAME_ALPHABET) for _ in range(length))


def build_project(display_name: str, project_id: str | None = None) -> dict[str, Any]:
    return {
        "apiVersion": PROJECT.api_version,
        "kind": PROJECT.kind,
        "metadata": {"name": project_id or random_name()},
        "spec": {"name": display_name},
    }


def build_cluster(
    display_name: str,
    project_id: str,
    version: str,
    service_account: str,
    network: str,
    subnetwork: str,
    profile: DeploymentProfile,
    cluster_id: str | None = None,
) -> dict[str, Any]:
    """Build a GCP user cluster owned by ``project_id``."""
    return {
        "apiVersion": CLUSTER.api_version,
        "kind": CLUSTER.kind,
        "metadata": {
            "name": cluster_id or random_name(),
            "labels": {PROJECT_ID_LABEL: project_id},
        },
        "spec": {
            "version": version,
            "humanReadableName": display_name,
            "cloud": {
                "dc": profile.datacenter,
                "gcp": {
                    "serviceAccount": service_account,
                    "network": network,
                    "subnetwork": subnetwork,
                },
            },
            "auditLogging": {"enabled": False, "policyPreset": ""},
            "clusterNetwork": {
                "konnectivityEnabled": True,
                "ipFamily": "IPv4",
                "proxyMode": "ipvs",
                "pods": {"cidrBlocks": ["172.25.0.0/16"]},
                "services": {"cidrBlocks": ["10.240.16.0/20"]},
                "nodeCidrMaskSizeIPv4": 24,
                "nodeLocalDNSCacheEnabled": True,
            },
            "cniPlugin": {"type": "canal", "version": "v3.23"},
            "opaIntegration": {},
            "mla": {},
            "kubernetesDashboard": {"enabled": True},
            "enableUserSSHKeyAgent": True,
            "enableOperatingSystemManager": True,
            "containerRuntime": "containerd",
            "pause": False,
        },
    }


def _gce_provider_config(cluster_id: str, network: str, subnetwork: str, profile: DeploymentProfile) -> dict[str, Any]:
    cloud_spec = {
        "zone": profile.zone,
        "machineType": profile.machine_type,
        "diskSize": profile.disk_size_gb,
        "diskType": "pd-standard",
        "preemptible": False,
        "network": network,
        "subnetwork": subnetwork,
        "assignPublicIPAddress": True,
        "multizone": False,
        "regional": False,
        "tags": [f"kubernetes-cluster-{cluster_id}"],
    }
    return {
        "cloudProvider": "gce",
        "cloudProviderSpec": cloud_spec,
        "operatingSystem": "ubuntu",
        "operatingSystemSpec": {"distUpgradeOnBoot": False},
    }


def build_machine_deployment(
    name: str,
    cluster_id: str,
    kubelet_version: str,
    network: str,
    subnetwork: str,
    profile: DeploymentProfile,
) -> dict[str, Any]:
    """Build a GCE MachineDeployment for the user cluster ``cluster_id``.

    The kubelet version must match the cluster's control plane version.
    """
    labels = {"machine": name}
    return {
        "apiVersion": MACHINE_DEPLOYMENT.api_version,
        "kind": MACHINE_DEPLOYMENT.kind,
        "metadata": {"name": name, "namespace": MACHINE_NAMESPACE},
        "spec": {
            "replicas": profile.replicas,
            "selector": {"matchLabels": labels},
            "template": {
                "metadata": {"labels": dict(labels)},
                "spec": {
                    "providerSpec": {"value": _gce_provider_config(cluster_id, network, subnetwork, profile)},
                    "versions": {"kubelet": kubelet_version},
                },
            },
        },
    }


def build_sample_pod() -> dict[str, Any]:
    return {
        "apiVersion": POD.api_version,
        "kind": POD.kind,
        "metadata": {"name": WORKLOAD_NAME, "namespace": WORKLOAD_NAMESPACE},
        "spec": {
            "containers": [
                {
                    "name": WORKLOAD_NAME,
                    "image": WORKLOAD_IMAGE,
                    "ports": [{"containerPort": WORKLOAD_PORT}],
                }
            ]
        },
    }
