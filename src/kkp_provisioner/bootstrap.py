"""Bootstrap a client for a new user cluster from its admin kubeconfig secret."""

from __future__ import annotations

import base64
import binascii
from collections.abc import Callable, Iterable

import structlog
from kubernetes import client as k8s_client

from kkp_provisioner.clients import load_k8s_api_client
from kkp_provisioner.clients.object_store import SECRET, USER_CLUSTER_KINDS, ObjectStore, ResourceKind
from kkp_provisioner.config import PollBounds
from kkp_provisioner.errors import CredentialParseError
from kkp_provisioner.models import Secret
from kkp_provisioner.probes import PresenceProbe
from kkp_provisioner.wait import ConditionWaiter

log = structlog.get_logger()

ADMIN_KUBECONFIG_SECRET = "admin-kubeconfig"
KUBECONFIG_KEY = "kubeconfig"


def cluster_namespace(cluster_id: str) -> str:
    """Return the seed namespace that holds a user cluster's control plane."""
    return f"cluster-{cluster_id}"


def decode_kubeconfig(secret: Secret) -> bytes:
    """Extract the kubeconfig bytes from an admin kubeconfig secret.

    Raises:
        CredentialParseError: If the key is missing or the value is not valid base64.
    """
    encoded = secret.data.get(KUBECONFIG_KEY)
    if not encoded:
        msg = f"secret {secret.namespace}/{secret.name} has no {KUBECONFIG_KEY!r} entry"
        raise CredentialParseError(msg)
    try:
        return base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as exc:
        msg = f"secret {secret.namespace}/{secret.name} holds malformed {KUBECONFIG_KEY!r} data: {exc}"
        raise CredentialParseError(msg) from exc


class CredentialBootstrapper:
    """Wait for a cluster's admin kubeconfig and build an object store from it.

    Either a fully constructed store is returned or an error is raised; a store
    is never built from absent or partial credentials.
    """

    def __init__(
        self,
        seed: ObjectStore,
        waiter: ConditionWaiter,
        bounds: PollBounds,
        client_factory: Callable[[bytes], k8s_client.ApiClient] = load_k8s_api_client,
        kinds: Iterable[ResourceKind] = USER_CLUSTER_KINDS,
    ) -> None:
        self._seed = seed
        self._waiter = waiter
        self._bounds = bounds
        self._client_factory = client_factory
        self._kinds = tuple(kinds)

    def bootstrap(self, cluster_id: str) -> ObjectStore:
        """Return an object store scoped to the user cluster ``cluster_id``.

        Raises:
            WaitTimeoutError: If the secret does not appear in time.
            FetchError: If reading the secret fails for a reason other than absence.
            CredentialParseError: If the secret's kubeconfig cannot be turned into a client.
        """
        probe = PresenceProbe(self._seed, SECRET, ADMIN_KUBECONFIG_SECRET, namespace=cluster_namespace(cluster_id))
        self._waiter.poll_immediate(self._bounds, probe, probe.description)
        kubeconfig = decode_kubeconfig(probe.observed)

        self._waiter.check_cancelled("building the user cluster client")
        try:
            api_client = self._client_factory(kubeconfig)
        except Exception as exc:
            log.error("failed_to_build_user_cluster_client", cluster=cluster_id)
            msg = f"cannot build a client for cluster {cluster_id!r} from its admin kubeconfig: {exc}"
            raise CredentialParseError(msg) from exc

        store = ObjectStore(api_client, self._kinds, name=f"user-cluster-{cluster_id}")
        log.info("user_cluster_client_ready", cluster=cluster_id, kinds=list(store.kinds))
        return store
