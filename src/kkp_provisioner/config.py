"""Wait bounds, deployment profile, and run inputs, with environment variable overrides."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal

import yaml

ClusterReadiness = Literal["initialized", "running"]
_READINESS_MODES = ("initialized", "running")


def _env_float(name: str, default: str) -> float:
    return float(os.environ.get(name, default))


@dataclass(frozen=True)
class PollBounds:
    """Sampling interval and timeout for one bounded wait, in seconds."""

    interval: float
    timeout: float

    def __post_init__(self) -> None:
        if self.interval <= 0:
            msg = f"Poll interval must be positive, got {self.interval}."
            raise ValueError(msg)
        if self.timeout < 0:
            msg = f"Poll timeout must not be negative, got {self.timeout}."
            raise ValueError(msg)


@dataclass(frozen=True)
class WaitBounds:
    """Bounds for every wait in the workflow with environment variable overrides."""

    project_active: PollBounds = field(
        default_factory=lambda: PollBounds(
            interval=_env_float("KKP_PROJECT_INTERVAL", "5"),
            timeout=_env_float("KKP_PROJECT_TIMEOUT", "60"),
        )
    )
    cluster_cache: PollBounds = field(
        default_factory=lambda: PollBounds(
            interval=_env_float("KKP_CLUSTER_CACHE_INTERVAL", "0.1"),
            timeout=_env_float("KKP_CLUSTER_CACHE_TIMEOUT", "5"),
        )
    )
    cluster_ready: PollBounds = field(
        default_factory=lambda: PollBounds(
            interval=_env_float("KKP_CLUSTER_READY_INTERVAL", "5"),
            timeout=_env_float("KKP_CLUSTER_READY_TIMEOUT", "300"),
        )
    )
    admin_secret: PollBounds = field(
        default_factory=lambda: PollBounds(
            interval=_env_float("KKP_SECRET_INTERVAL", "5"),
            timeout=_env_float("KKP_SECRET_TIMEOUT", "180"),
        )
    )


@dataclass(frozen=True)
class DeploymentProfile:
    """Per-deployment choices that are not part of a single run's inputs.

    ``owner_email`` feeds the post-creation ownership patch. The control plane
    cannot take an owner at creation time yet; drop the patch once it can.
    """

    cluster_readiness: ClusterReadiness = "initialized"
    owner_email: str | None = None
    datacenter: str = "gcp-westeurope-2"
    kubermatic_version: str | None = None
    zone: str = "europe-west2-a"
    machine_type: str = "e2-highcpu-2"
    disk_size_gb: int = 25
    replicas: int = 2


_PROFILE_FIELDS: dict[str, type] = {
    "cluster_readiness": str,
    "owner_email": str,
    "datacenter": str,
    "kubermatic_version": str,
    "zone": str,
    "machine_type": str,
    "disk_size_gb": int,
    "replicas": int,
}


def _load_profile(path: Path) -> DeploymentProfile:
    """Parse a YAML deployment profile.

    Args:
        path: Path to the YAML profile file.

    Returns:
        The parsed DeploymentProfile.

    Raises:
        ValueError: If the file content is malformed or holds unknown or invalid fields.
    """
    raw = yaml.safe_load(path.read_text())
    if raw is None:
        return DeploymentProfile()
    if not isinstance(raw, dict):
        msg = f"Profile file {path} must contain a mapping, got {type(raw).__name__}."
        raise ValueError(msg)

    unknown = sorted(set(raw) - set(_PROFILE_FIELDS))
    if unknown:
        msg = f"Profile file {path} has unknown fields: {', '.join(unknown)}."
        raise ValueError(msg)

    values: dict[str, Any] = {}
    for key, value in raw.items():
        if value is None:
            continue
        expected = _PROFILE_FIELDS[key]
        if expected is int:
            # bool is an int subclass.
            if isinstance(value, bool) or not isinstance(value, int):
                msg = f"Profile field '{key}' has an invalid value: {value!r}. Expected an integer."
                raise ValueError(msg)
            values[key] = value
        else:
            values[key] = expected(value)

    readiness = values.get("cluster_readiness", "initialized")
    if readiness not in _READINESS_MODES:
        msg = f"Profile field 'cluster_readiness' must be one of: {', '.join(_READINESS_MODES)}; got {readiness!r}."
        raise ValueError(msg)
    if values.get("replicas", 1) < 1:
        msg = "Profile field 'replicas' must be at least 1."
        raise ValueError(msg)

    return DeploymentProfile(**values)


def load_profile(path: Path | None = None) -> DeploymentProfile:
    """Load the deployment profile.

    Reads ``path`` if given, otherwise the ``KKP_PROVISIONER_PROFILE`` environment
    variable, defaulting to ``profile.yaml`` in the current working directory. A
    missing default file yields the built-in defaults; an explicitly named file
    must exist.
    """
    explicit = path is not None or "KKP_PROVISIONER_PROFILE" in os.environ
    resolved = path or Path(os.environ.get("KKP_PROVISIONER_PROFILE", "profile.yaml"))
    if not resolved.exists():
        if explicit:
            msg = f"Deployment profile not found: {resolved}."
            raise FileNotFoundError(msg)
        return DeploymentProfile()
    return _load_profile(resolved)


@dataclass(frozen=True)
class RunInputs:
    """Validated inputs of one provisioning run."""

    seed_kubeconfig: bytes
    gcp_service_account: str
    gcp_network: str
    gcp_subnetwork: str
    project_name: str = "test-project"
    cluster_name: str = "test-cluster"
    machine_name: str = "test-machine"
    k8s_version: str = "1.23.9"


def get_wait_bounds() -> WaitBounds:
    """Return wait bounds with environment variable overrides applied."""
    return WaitBounds()
