"""Client construction from serialized kubeconfig material."""

from __future__ import annotations

from typing import Any

import yaml
from kubernetes import client as k8s_client
from kubernetes.config import new_client_from_config_dict


def parse_kubeconfig(raw: bytes | str) -> dict[str, Any]:
    """Parse serialized kubeconfig YAML into a mapping.

    Raises:
        ValueError: If the content is not YAML or does not describe a kubeconfig.
    """
    try:
        loaded = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        msg = f"Kubeconfig is not valid YAML: {exc}"
        raise ValueError(msg) from exc
    if not isinstance(loaded, dict):
        msg = f"Kubeconfig must be a mapping, got {type(loaded).__name__}."
        raise ValueError(msg)
    if not loaded.get("clusters") or not loaded.get("contexts"):
        msg = "Kubeconfig has no clusters or contexts."
        raise ValueError(msg)
    return loaded


def load_k8s_api_client(raw: bytes | str, context: str | None = None) -> k8s_client.ApiClient:
    """Create an isolated Kubernetes API client from kubeconfig bytes.

    The seed client and every user cluster client are built here, so each one
    carries its own configuration and none of them touch the SDK's global
    default configuration.
    """
    return new_client_from_config_dict(config_dict=parse_kubeconfig(raw), context=context)
