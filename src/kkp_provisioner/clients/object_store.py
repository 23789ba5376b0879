"""Uniform object store over the Kubernetes API: create, get, and status patches by resource kind."""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

import structlog
from kubernetes import client as k8s_client
from kubernetes.client.exceptions import ApiException

from kkp_provisioner.errors import FetchError, ObjectNotFoundError, SubmissionError, UnregisteredKindError
from kkp_provisioner.models import Cluster, Project, Secret

log = structlog.get_logger()

MERGE_PATCH = "application/merge-patch+json"

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


@dataclass(frozen=True)
class ResourceKind:
    """How to address and decode one kind of object.

    Kinds in the core group (``group == ""``) go through CoreV1Api, everything
    else through CustomObjectsApi.
    """

    kind: str
    group: str
    version: str
    plural: str
    namespaced: bool = False
    decoder: Callable[[dict[str, Any]], Any] | None = None

    @property
    def api_version(self) -> str:
        return f"{self.group}/{self.version}" if self.group else self.version

    @property
    def singular(self) -> str:
        return _CAMEL_BOUNDARY.sub("_", self.kind).lower()

    def decode(self, obj: dict[str, Any]) -> Any:
        return self.decoder(obj) if self.decoder is not None else obj


PROJECT = ResourceKind("Project", "kubermatic.k8c.io", "v1", "projects", decoder=Project.from_object)
CLUSTER = ResourceKind("Cluster", "kubermatic.k8c.io", "v1", "clusters", decoder=Cluster.from_object)
SECRET = ResourceKind("Secret", "", "v1", "secrets", namespaced=True, decoder=Secret.from_object)
MACHINE_DEPLOYMENT = ResourceKind(
    "MachineDeployment", "cluster.k8s.io", "v1alpha1", "machinedeployments", namespaced=True
)
POD = ResourceKind("Pod", "", "v1", "pods", namespaced=True)

SEED_KINDS = (PROJECT, CLUSTER, SECRET)
USER_CLUSTER_KINDS = (MACHINE_DEPLOYMENT, POD)


def _reason(exc: Exception) -> str:
    if isinstance(exc, ApiException):
        return f"HTTP {exc.status} {exc.reason}".strip()
    return str(exc) or type(exc).__name__


class ObjectStore:
    """CRUD access to the objects of one API server, restricted to registered kinds."""

    def __init__(self, api_client: k8s_client.ApiClient, kinds: Iterable[ResourceKind], name: str) -> None:
        self._api_client = api_client
        self._kinds = {k.kind: k for k in kinds}
        self.name = name
        self._custom_api: k8s_client.CustomObjectsApi | None = None
        self._core_api: k8s_client.CoreV1Api | None = None

    @property
    def kinds(self) -> tuple[str, ...]:
        return tuple(sorted(self._kinds))

    def _get_custom_api(self) -> k8s_client.CustomObjectsApi:
        if self._custom_api is None:
            self._custom_api = k8s_client.CustomObjectsApi(self._api_client)
        return self._custom_api

    def _get_core_api(self) -> k8s_client.CoreV1Api:
        if self._core_api is None:
            self._core_api = k8s_client.CoreV1Api(self._api_client)
        return self._core_api

    def _check(self, kind: ResourceKind) -> None:
        if self._kinds.get(kind.kind) != kind:
            raise UnregisteredKindError(kind.kind)

    def _to_dict(self, obj: Any) -> dict[str, Any]:
        if isinstance(obj, dict):
            return obj
        return self._api_client.sanitize_for_serialization(obj)

    def create(self, kind: ResourceKind, body: dict[str, Any]) -> dict[str, Any]:
        """Submit a new object and return it as stored by the API server.

        Raises:
            SubmissionError: If the API server rejects the object or cannot be reached.
        """
        self._check(kind)
        metadata = body.get("metadata") or {}
        name = metadata.get("name", "")
        namespace = metadata.get("namespace")
        try:
            if kind.group:
                api = self._get_custom_api()
                if kind.namespaced:
                    created = api.create_namespaced_custom_object(
                        kind.group, kind.version, namespace, kind.plural, body
                    )
                else:
                    created = api.create_cluster_custom_object(kind.group, kind.version, kind.plural, body)
            else:
                create = getattr(self._get_core_api(), f"create_namespaced_{kind.singular}")
                created = create(namespace, body)
        except Exception as exc:
            log.error("failed_to_create_object", store=self.name, kind=kind.kind, name=name, namespace=namespace)
            raise SubmissionError(kind.kind, name, _reason(exc)) from exc

        log.info("object_created", store=self.name, kind=kind.kind, name=name, namespace=namespace)
        return self._to_dict(created)

    def get(self, kind: ResourceKind, name: str, namespace: str | None = None) -> Any:
        """Fetch one object by key and decode it.

        Raises:
            ObjectNotFoundError: If the object does not exist.
            FetchError: For any other read failure.
        """
        self._check(kind)
        try:
            if kind.group:
                api = self._get_custom_api()
                if kind.namespaced:
                    raw = api.get_namespaced_custom_object(kind.group, kind.version, namespace, kind.plural, name)
                else:
                    raw = api.get_cluster_custom_object(kind.group, kind.version, kind.plural, name)
            else:
                read = getattr(self._get_core_api(), f"read_namespaced_{kind.singular}")
                raw = read(name, namespace)
        except ApiException as exc:
            if exc.status == 404:
                raise ObjectNotFoundError(kind.kind, name, namespace=namespace) from exc
            log.error("failed_to_get_object", store=self.name, kind=kind.kind, name=name, status=exc.status)
            raise FetchError(kind.kind, name, _reason(exc), namespace=namespace) from exc
        except Exception as exc:
            log.error("failed_to_get_object", store=self.name, kind=kind.kind, name=name)
            raise FetchError(kind.kind, name, _reason(exc), namespace=namespace) from exc

        return kind.decode(self._to_dict(raw))

    def patch_status(
        self,
        kind: ResourceKind,
        name: str,
        patch: dict[str, Any],
        namespace: str | None = None,
    ) -> Any:
        """Merge-patch an object's status subresource and return the decoded result.

        Raises:
            SubmissionError: If the patch is rejected.
        """
        self._check(kind)
        try:
            if kind.group:
                api = self._get_custom_api()
                if kind.namespaced:
                    patched = api.patch_namespaced_custom_object_status(
                        kind.group, kind.version, namespace, kind.plural, name, patch, _content_type=MERGE_PATCH
                    )
                else:
                    patched = api.patch_cluster_custom_object_status(
                        kind.group, kind.version, kind.plural, name, patch, _content_type=MERGE_PATCH
                    )
            else:
                update = getattr(self._get_core_api(), f"patch_namespaced_{kind.singular}_status")
                patched = update(name, namespace, patch)
        except Exception as exc:
            log.error("failed_to_patch_object_status", store=self.name, kind=kind.kind, name=name)
            raise SubmissionError(kind.kind, name, _reason(exc)) from exc

        log.info("object_status_patched", store=self.name, kind=kind.kind, name=name)
        return kind.decode(self._to_dict(patched))
