"""Test doubles and raw API object builders shared by the test modules."""

from __future__ import annotations

import base64
from collections.abc import Iterable
from typing import Any

from kkp_provisioner.clients.object_store import ResourceKind
from kkp_provisioner.errors import ObjectNotFoundError, UnregisteredKindError

SAMPLE_KUBECONFIG = b"""apiVersion: v1
kind: Config
clusters:
- name: user-cluster
  cluster:
    server: https://user-cluster.example.com:6443
    insecure-skip-tls-verify: true
contexts:
- name: default
  context:
    cluster: user-cluster
    user: admin
current-context: default
users:
- name: admin
  user:
    token: abc123
"""

NOT_FOUND = object()


class FakeClock:
    """Monotonic clock that only moves when something sleeps."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class ScriptedStore:
    """In-memory stand-in for ObjectStore.

    ``events`` records reads and status patches in call order.

    Reads for a kind replay a script of responses: raw object dicts, exceptions to
    raise, or NOT_FOUND. The last entry repeats once the script is exhausted; an
    unscripted kind is always not found.
    """

    def __init__(self, kinds: Iterable[ResourceKind], name: str = "seed") -> None:
        self.name = name
        self._kinds = {k.kind: k for k in kinds}
        self._scripts: dict[str, list[Any]] = {}
        self._create_errors: dict[str, Exception] = {}
        self.created: list[tuple[str, dict[str, Any]]] = []
        self.patches: list[tuple[str, str, dict[str, Any]]] = []
        self.reads: list[tuple[str, str, str | None]] = []
        self.events: list[tuple[str, str, str]] = []

    @property
    def kinds(self) -> tuple[str, ...]:
        return tuple(sorted(self._kinds))

    def script(self, kind: ResourceKind, responses: list[Any]) -> None:
        self._scripts[kind.kind] = list(responses)

    def fail_create(self, kind: ResourceKind, error: Exception) -> None:
        self._create_errors[kind.kind] = error

    def _check(self, kind: ResourceKind) -> None:
        if kind.kind not in self._kinds:
            raise UnregisteredKindError(kind.kind)

    def create(self, kind: ResourceKind, body: dict[str, Any]) -> dict[str, Any]:
        self._check(kind)
        if kind.kind in self._create_errors:
            raise self._create_errors[kind.kind]
        self.created.append((kind.kind, body))
        return body

    def get(self, kind: ResourceKind, name: str, namespace: str | None = None) -> Any:
        self._check(kind)
        self.reads.append((kind.kind, name, namespace))
        self.events.append(("get", kind.kind, name))
        script = self._scripts.get(kind.kind)
        if not script:
            raise ObjectNotFoundError(kind.kind, name, namespace=namespace)
        response = script.pop(0) if len(script) > 1 else script[0]
        if response is NOT_FOUND:
            raise ObjectNotFoundError(kind.kind, name, namespace=namespace)
        if isinstance(response, Exception):
            raise response
        return kind.decode(response)

    def patch_status(self, kind: ResourceKind, name: str, patch: dict[str, Any], namespace: str | None = None) -> Any:
        self._check(kind)
        self.patches.append((kind.kind, name, patch))
        self.events.append(("patch", kind.kind, name))
        return None

    def reads_of(self, kind: ResourceKind) -> int:
        return sum(1 for read in self.reads if read[0] == kind.kind)


def make_project(name: str = "proj4bc7xz", display_name: str = "demo", phase: str | None = "Pending") -> dict[str, Any]:
    obj: dict[str, Any] = {
        "apiVersion": "kubermatic.k8c.io/v1",
        "kind": "Project",
        "metadata": {"name": name},
        "spec": {"name": display_name},
    }
    if phase is not None:
        obj["status"] = {"phase": phase}
    return obj


def make_cluster(
    name: str = "clus9d2fkq",
    project_id: str = "proj4bc7xz",
    version: str = "1.23.9",
    phase: str | None = "Pending",
    conditions: dict[str, dict[str, Any]] | None = None,
    extended_health: dict[str, str] | None = None,
) -> dict[str, Any]:
    status: dict[str, Any] = {}
    if phase is not None:
        status["phase"] = phase
    if conditions is not None:
        status["conditions"] = conditions
    if extended_health is not None:
        status["extendedHealth"] = extended_health
    return {
        "apiVersion": "kubermatic.k8c.io/v1",
        "kind": "Cluster",
        "metadata": {"name": name, "labels": {"project-id": project_id}},
        "spec": {"version": version, "humanReadableName": "sample-cluster"},
        "status": status,
    }


def make_secret(
    cluster_id: str = "clus9d2fkq",
    kubeconfig: bytes | None = SAMPLE_KUBECONFIG,
    raw_value: str | None = None,
) -> dict[str, Any]:
    data: dict[str, str] = {}
    if raw_value is not None:
        data["kubeconfig"] = raw_value
    elif kubeconfig is not None:
        data["kubeconfig"] = base64.b64encode(kubeconfig).decode()
    return {
        "apiVersion": "v1",
        "kind": "Secret",
        "metadata": {"name": "admin-kubeconfig", "namespace": f"cluster-{cluster_id}"},
        "data": data,
    }
