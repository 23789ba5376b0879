"""Error taxonomy for the provisioning workflow.

Every failure that aborts a run is a ``ProvisioningError``. "Not ready yet" is
never an exception: readiness probes report it by returning ``False``.
"""

from __future__ import annotations


class ProvisioningError(Exception):
    """Base class for all errors that abort a provisioning run."""


class SubmissionError(ProvisioningError):
    """The control plane rejected a create or patch call."""

    def __init__(self, kind: str, name: str, reason: str) -> None:
        self.kind = kind
        self.name = name
        self.reason = reason
        super().__init__(f"failed to submit {kind} {name!r}: {reason}")


class FetchError(ProvisioningError):
    """A remote read failed."""

    def __init__(self, kind: str, name: str, reason: str, namespace: str | None = None) -> None:
        self.kind = kind
        self.name = name
        self.namespace = namespace
        self.reason = reason
        key = f"{namespace}/{name}" if namespace else name
        super().__init__(f"failed to get {kind} {key!r}: {reason}")


class ObjectNotFoundError(FetchError):
    """The requested object does not exist (HTTP 404)."""

    def __init__(self, kind: str, name: str, namespace: str | None = None) -> None:
        super().__init__(kind, name, "not found", namespace=namespace)


class WaitTimeoutError(ProvisioningError):
    """A bounded wait ran out of time before its condition was met."""

    def __init__(self, description: str, interval: float, timeout: float) -> None:
        self.description = description
        self.interval = interval
        self.timeout = timeout
        super().__init__(f"timed out after {timeout:g}s waiting for {description} (interval {interval:g}s)")


class CredentialParseError(ProvisioningError):
    """The admin kubeconfig secret could not be turned into a client."""


class ProvisioningCancelledError(ProvisioningError):
    """The run's cancellation event was set."""


class UnregisteredKindError(ProvisioningError):
    """An object store was asked to handle a kind it was not built for."""

    def __init__(self, kind: str) -> None:
        self.kind = kind
        super().__init__(f"resource kind {kind!r} is not registered on this client")


class PhaseRegressionError(ProvisioningError):
    """An object moved backwards through its lifecycle while being watched."""

    def __init__(self, kind: str, name: str, previous: str, observed: str) -> None:
        self.kind = kind
        self.name = name
        self.previous = previous
        self.observed = observed
        super().__init__(f"{kind} {name!r} regressed from phase {previous!r} to {observed!r}")
