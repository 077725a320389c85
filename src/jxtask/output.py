# output.py
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict

import yaml

from .errors import CollaboratorError
from .model import TaskDefinition

TASK_API_VERSION = "pipeline.knative.dev/v1alpha1"
TASK_KIND = "Task"


def task_to_dict(task: TaskDefinition) -> Dict[str, Any]:
    """
    Convert a TaskDefinition to the Task resource document.

    Args:
        task: compiled task

    Returns:
        Dictionary with apiVersion/kind/metadata/spec
    """
    return {
        "apiVersion": TASK_API_VERSION,
        "kind": TASK_KIND,
        "metadata": {"name": task.name},
        "spec": {"steps": [step.to_dict() for step in task.steps]},
    }


def render_task(task: TaskDefinition) -> str:
    return yaml.safe_dump(task_to_dict(task), default_flow_style=False, sort_keys=False)


def write_task(task: TaskDefinition, path: str | Path) -> Path:
    """Write the Task YAML to path and return the path written."""
    p = Path(path)
    try:
        p.write_text(render_task(task), encoding="utf-8")
    except OSError as e:
        raise CollaboratorError(message=f"failed to save Task file {p}", details={"error": e}) from e
    return p
