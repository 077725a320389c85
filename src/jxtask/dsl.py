# dsl.py
# Python helpers for building pipeline configs and pod templates without YAML.
from __future__ import annotations

from typing import Dict, List, Optional

from .model import (
    Container,
    EnvVar,
    PipelineAgent,
    PipelineConfig,
    PipelineLifecycle,
    PipelineLifecycles,
    Pipelines,
    PipelineStep,
    Pod,
    PodSpec,
    VolumeMount,
)


# ---------------------------------------------------------------------
# Step helpers
# ---------------------------------------------------------------------

def step(
    command: str | None = None,
    *children: PipelineStep,
    container: str | None = None,
    dir: str | None = None,
    comment: str | None = None,
) -> PipelineStep:
    """Create a step; extra positional steps become its children."""
    return PipelineStep(
        command=command,
        container=container,
        dir=dir,
        comment=comment,
        children=list(children),
    )


def group(*children: PipelineStep, container: str | None = None, dir: str | None = None) -> PipelineStep:
    """A step without a command that only scopes container/dir for its children."""
    return step(None, *children, container=container, dir=dir)


def lifecycle(*steps: PipelineStep, replace: bool = False) -> PipelineLifecycle:
    return PipelineLifecycle(steps=list(steps), replace=replace)


def lifecycles(**stages: PipelineLifecycle) -> PipelineLifecycles:
    """
    Example:
        lifecycles(build=lifecycle(step("make")), post_build=lifecycle(...))
    """
    unknown = sorted(set(stages) - set(PipelineLifecycles.STAGES))
    if unknown:
        raise ValueError(f"Unknown lifecycle stages {unknown}. Known stages: {list(PipelineLifecycles.STAGES)}")
    return PipelineLifecycles(**stages)


def pipeline(
    *,
    container: str | None = None,
    label: str | None = None,
    env: Optional[Dict[str, str]] = None,
    release: PipelineLifecycles | None = None,
    pull_request: PipelineLifecycles | None = None,
    feature: PipelineLifecycles | None = None,
    post: PipelineLifecycle | None = None,
) -> PipelineConfig:
    return PipelineConfig(
        agent=PipelineAgent(label=label, container=container),
        env=[EnvVar(name=k, value=str(v)) for k, v in (env or {}).items()],
        pipelines=Pipelines(release=release, pull_request=pull_request, feature=feature, post=post),
    )


# ---------------------------------------------------------------------
# Pod template helper
# ---------------------------------------------------------------------

def pod_template(
    image: str,
    *,
    name: str | None = None,
    env: Optional[Dict[str, str]] = None,
    volume_mounts: Optional[Dict[str, str]] = None,
    sidecars: Optional[List[Container]] = None,
) -> Pod:
    """
    Minimal single-container pod template.

    volume_mounts maps volume name -> mount path.
    """
    main = Container(
        name=name,
        image=image,
        env=[EnvVar(name=k, value=str(v)) for k, v in (env or {}).items()],
        volume_mounts=[VolumeMount(name=k, mount_path=v) for k, v in (volume_mounts or {}).items()],
    )
    return Pod(spec=PodSpec(containers=[main, *(sidecars or [])]))
