"""kkp-provision command line entry point."""

from __future__ import annotations

import signal
import sys
import threading
from pathlib import Path
from types import FrameType

import structlog
import typer
from kubernetes.config.config_exception import ConfigException

from kkp_provisioner.clients import load_k8s_api_client
from kkp_provisioner.clients.object_store import SEED_KINDS, ObjectStore
from kkp_provisioner.config import RunInputs, get_wait_bounds, load_profile
from kkp_provisioner.errors import ProvisioningError
from kkp_provisioner.orchestrator import TenantProvisioner
from kkp_provisioner.validation import (
    normalize_k8s_version,
    read_required_file,
    read_required_text,
    validate_display_name,
    validate_object_name,
)
from kkp_provisioner.wait import ConditionWaiter

# Configure structlog for JSON output to stderr
structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.dev.ConsoleRenderer() if sys.stderr.isatty() else structlog.processors.JSONRenderer(),
    ],
    logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
)

log = structlog.get_logger()

app = typer.Typer(help="Provision a project, a user cluster, its machines, and a sample workload.")


def _install_cancel_handler(cancel: threading.Event) -> None:
    def _handler(signum: int, frame: FrameType | None) -> None:
        log.warning("cancellation_requested", signal=signal.Signals(signum).name)
        cancel.set()

    signal.signal(signal.SIGINT, _handler)
    signal.signal(signal.SIGTERM, _handler)


@app.command()
def provision(
    seed_kubeconfig: Path | None = typer.Option(None, "--seed-kubeconfig", help="path to seed kubeconfig"),
    gcp_service_account: Path | None = typer.Option(None, "--gcp-service-account", help="GCP service account"),
    gcp_network: str = typer.Option("", "--gcp-network", help="GCP network"),
    gcp_subnet: str = typer.Option("", "--gcp-subnet", help="GCP subnet"),
    project_name: str = typer.Option("test-project", "--project-name", help="Kubermatic project name"),
    cluster_name: str = typer.Option("test-cluster", "--cluster-name", help="Kubermatic cluster name"),
    machine_name: str = typer.Option("test-machine", "--machine-name", help="Kubermatic Machine Deployment name"),
    k8s_version: str = typer.Option("1.23.9", "--k8s-version", help="k8s version"),
    profile: Path | None = typer.Option(None, "--profile", help="deployment profile YAML"),
) -> None:
    """Create a project, a cluster inside it, worker nodes, and a sample pod."""
    try:
        inputs = RunInputs(
            seed_kubeconfig=read_required_file(seed_kubeconfig, "--seed-kubeconfig"),
            gcp_service_account=read_required_text(gcp_service_account, "--gcp-service-account"),
            gcp_network=gcp_network,
            gcp_subnetwork=gcp_subnet,
            project_name=project_name,
            cluster_name=cluster_name,
            machine_name=machine_name,
            k8s_version=normalize_k8s_version(k8s_version),
        )
        validate_display_name(project_name, "--project-name")
        validate_display_name(cluster_name, "--cluster-name")
        validate_object_name(machine_name, "--machine-name")
        deployment_profile = load_profile(profile)
        wait_bounds = get_wait_bounds()
        seed_client = load_k8s_api_client(inputs.seed_kubeconfig)
    except (ValueError, FileNotFoundError, ConfigException) as e:
        log.error("invalid_input", error=str(e))
        raise typer.Exit(code=1) from None

    cancel = threading.Event()
    _install_cancel_handler(cancel)

    provisioner = TenantProvisioner(
        seed=ObjectStore(seed_client, SEED_KINDS, name="seed"),
        inputs=inputs,
        profile=deployment_profile,
        waiter=ConditionWaiter(cancel=cancel),
        bounds=wait_bounds,
    )
    try:
        result = provisioner.run()
    except ProvisioningError as e:
        log.error("provisioning_failed", error=str(e), error_type=type(e).__name__)
        raise typer.Exit(code=1) from None

    typer.echo(result.model_dump_json(indent=2))


def main() -> None:
    app()


if __name__ == "__main__":
    main()
