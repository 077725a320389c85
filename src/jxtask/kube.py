# kube.py
# Pod template store: the pod templates ConfigMap, read either from a file
# or from the cluster through kubectl.

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Dict, Mapping, Optional

import yaml
from pydantic import ValidationError

from . import settings
from .errors import CollaboratorError, ConfigurationError
from .model import Pod

MAX_NAME_LENGTH = 63


def to_valid_name(name: str) -> str:
    """
    Convert name into a valid Kubernetes resource name.

    Letters and digits are kept (lowercased); every other run of characters
    becomes a single dash. Leading and trailing dashes are dropped and the
    result is truncated to 63 characters.
    """
    out = []
    last_dash = True  # suppresses a leading dash
    for ch in name:
        if ch.isascii() and ch.isalnum():
            out.append(ch.lower())
            last_dash = False
        elif not last_dash:
            out.append("-")
            last_dash = True
    answer = "".join(out).rstrip("-")
    if len(answer) > MAX_NAME_LENGTH:
        answer = answer[:MAX_NAME_LENGTH].rstrip("-")
    return answer


# ---------------------------------------------------------------------
# ConfigMap parsing
# ---------------------------------------------------------------------

def parse_pod_templates(data: Optional[Mapping[str, str]]) -> Dict[str, Pod]:
    """
    Parse the `data` of a pod templates ConfigMap.

    Args:
        data: container name -> serialized pod YAML. Empty values are skipped.

    Returns:
        container name -> Pod
    """
    templates: Dict[str, Pod] = {}
    for name, text in (data or {}).items():
        if not text:
            continue
        try:
            doc = yaml.safe_load(text) or {}
            templates[name] = Pod.model_validate(doc)
        except (yaml.YAMLError, ValidationError) as e:
            raise ConfigurationError(
                message=f"failed to parse pod template {name}",
                details={"error": e},
            ) from e
    return templates


def load_pod_templates_file(path: str | Path) -> Dict[str, Pod]:
    """Load pod templates from a ConfigMap document saved on disk."""
    p = Path(path).expanduser()
    try:
        with p.open("r", encoding="utf-8") as f:
            doc = yaml.safe_load(f) or {}
    except OSError as e:
        raise CollaboratorError(
            message=f"failed to read pod templates file {p}", details={"error": e}
        ) from e
    except yaml.YAMLError as e:
        raise ConfigurationError(
            message=f"invalid YAML in pod templates file {p}", details={"error": e}
        ) from e

    if not isinstance(doc, dict):
        raise ConfigurationError(message=f"pod templates file must contain a ConfigMap: {p}")
    return parse_pod_templates(doc.get("data"))


# ---------------------------------------------------------------------
# Cluster access
# ---------------------------------------------------------------------

def _kubectl(args: list[str]) -> str:
    """Run kubectl and return its stdout."""
    try:
        return subprocess.check_output(["kubectl", *args], text=True)
    except FileNotFoundError as e:
        raise CollaboratorError(
            message="kubectl command not found",
            details={"hint": "install kubectl or pass --pod-templates <file>"},
        ) from e
    except subprocess.CalledProcessError as e:
        raise CollaboratorError(
            message=f"kubectl {' '.join(args)} failed",
            details={"exit_code": e.returncode},
        ) from e


def load_pod_templates(
    namespace: str,
    configmap: str = settings.POD_TEMPLATES_CONFIGMAP,
) -> Dict[str, Pod]:
    """Load the pod templates ConfigMap from the cluster."""
    out = _kubectl(["get", "configmap", configmap, "--namespace", namespace, "--output", "yaml"])
    try:
        doc = yaml.safe_load(out) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(
            message=f"invalid ConfigMap {configmap} in namespace {namespace}",
            details={"error": e},
        ) from e
    return parse_pod_templates(doc.get("data"))
