"""Input validation for run parameters."""

from __future__ import annotations

import re
from pathlib import Path

# RFC 1123 label: lowercase alphanumeric and hyphens, 1-63 chars, starts/ends with alphanumeric
_OBJECT_NAME_RE = re.compile(r"^[a-z0-9]([a-z0-9\-]{0,61}[a-z0-9])?$")

# MAJOR.MINOR.PATCH with an optional leading "v"
_K8S_VERSION_RE = re.compile(r"^v?(\d+)\.(\d+)\.(\d+)$")


def validate_object_name(name: str, field: str = "name") -> None:
    """Validate a Kubernetes object name against RFC 1123."""
    if not _OBJECT_NAME_RE.match(name):
        msg = f"Invalid {field}: {name!r}. Must be a valid RFC 1123 label."
        raise ValueError(msg)


def validate_display_name(name: str, field: str = "display name") -> None:
    if not name or not name.strip():
        msg = f"Invalid {field}: must not be empty."
        raise ValueError(msg)


def normalize_k8s_version(version: str) -> str:
    """Validate a Kubernetes version and return it as ``MAJOR.MINOR.PATCH``."""
    match = _K8S_VERSION_RE.match(version.strip())
    if not match:
        msg = f"Invalid Kubernetes version: {version!r}. Expected MAJOR.MINOR.PATCH, e.g. 1.23.9."
        raise ValueError(msg)
    return ".".join(str(int(part)) for part in match.groups())


def read_required_file(path: Path | None, flag: str) -> bytes:
    """Read a file that the run cannot start without."""
    if path is None:
        msg = f"{flag} is required"
        raise ValueError(msg)
    if not path.is_file():
        msg = f"{flag}: file not found: {path}"
        raise ValueError(msg)
    return path.read_bytes()


def read_required_text(path: Path | None, flag: str) -> str:
    """Read a required UTF-8 text file."""
    raw = read_required_file(path, flag)
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as e:
        msg = f"{flag}: {path} is not valid UTF-8 text: {e}"
        raise ValueError(msg) from None
