# compiler.py
# Compiles the lifecycles of one pipeline kind into an ordered list of
# container steps: build pack YAML in, Task out.

from __future__ import annotations

import posixpath
from dataclasses import dataclass
from typing import List, Mapping, Optional, Set, Tuple

from .containers import DISALLOWED_ENV_PREFIXES, resolve_container, sanitize_container, skeleton_of
from .errors import UnsupportedKindError
from .kube import to_valid_name
from .model import (
    PIPELINE_KIND_FEATURE,
    PIPELINE_KIND_PULL_REQUEST,
    PIPELINE_KIND_RELEASE,
    PIPELINE_KINDS,
    CompileResult,
    ContainerStep,
    PipelineConfig,
    PipelineLifecycles,
    Pipelines,
    PipelineStep,
    Pod,
    TaskDefinition,
)

WORKSPACE_DIR = "/workspace"


@dataclass(frozen=True)
class CompilerSettings:
    """Constants of the target execution environment."""
    workspace_dir: str = WORKSPACE_DIR
    default_container: str = "maven"
    runner_image: str = "jenkinsxio/jx:latest"
    shell: str = "/bin/sh"
    disallowed_env_prefixes: Tuple[str, ...] = DISALLOWED_ENV_PREFIXES
    task_prefix: str = "jx-task-"


DEFAULT_SETTINGS = CompilerSettings()

_KIND_ATTRS = {
    PIPELINE_KIND_RELEASE: "release",
    PIPELINE_KIND_PULL_REQUEST: "pull_request",
    PIPELINE_KIND_FEATURE: "feature",
}


# ---------------------------------------------------------------------
# Working directories
# ---------------------------------------------------------------------

def normalize_dir(declared: Optional[str], inherited: str, workspace: str = WORKSPACE_DIR) -> str:
    """
    Map a step's `dir` to an absolute path inside the step container.

    Examples (workspace=/workspace):
        "" + inherited /workspace/foo -> /workspace/foo
        "./bar"                       -> /workspace/bar
        "baz"                         -> /workspace/baz
        "/abs/path"                   -> /abs/path
    """
    if not declared:
        return inherited
    if declared.startswith("./"):
        return workspace + declared[1:]
    if not posixpath.isabs(declared):
        return posixpath.normpath(posixpath.join(workspace, declared))
    return declared


# ---------------------------------------------------------------------
# Step flattening
# ---------------------------------------------------------------------

def _container_step(
    step: PipelineStep,
    container: Optional[str],
    dir: str,
    templates: Mapping[str, Pod],
    settings: CompilerSettings,
    missing: Optional[Set[str]],
) -> ContainerStep:
    # container already has the step's own override applied
    resolution = resolve_container(container, None, templates, settings.default_container)
    if resolution.missing and missing is not None:
        missing.add(resolution.name)

    c = sanitize_container(skeleton_of(resolution.template), settings.disallowed_env_prefixes)
    c.command = [settings.shell]
    c.args = ["-c", step.command]
    c.working_dir = dir
    c.image = settings.runner_image
    return c


def flatten_step(
    step: PipelineStep,
    inherited_container: Optional[str],
    inherited_dir: str,
    templates: Mapping[str, Pod],
    settings: CompilerSettings = DEFAULT_SETTINGS,
    missing: Optional[Set[str]] = None,
) -> List[ContainerStep]:
    """
    Flatten a step tree into container steps, parent before children.

    A step that names a container switches the container for its subtree and
    keeps the inherited directory, even when it also sets `dir`. Only a step
    without a container can switch the directory.

    Args:
        step: root of the step tree
        inherited_container: container name from the enclosing steps (or agent)
        inherited_dir: normalized working directory from the enclosing steps
        templates: pod templates by container name
        settings: execution environment constants
        missing: receives container names that had no pod template

    Raises:
        ResolutionError: if a step's container cannot be resolved at all
    """
    container = inherited_container
    dir = inherited_dir
    if step.container:
        container = step.container
    elif step.dir:
        dir = normalize_dir(step.dir, inherited_dir, settings.workspace_dir)

    steps: List[ContainerStep] = []
    if step.executable:
        steps.append(_container_step(step, container, dir, templates, settings, missing))

    for child in step.children:
        steps.extend(flatten_step(child, container, dir, templates, settings, missing))
    return steps


# ---------------------------------------------------------------------
# Lifecycle selection + Task assembly
# ---------------------------------------------------------------------

def select_lifecycles(kind: str, pipelines: Pipelines) -> Optional[PipelineLifecycles]:
    """
    Return the lifecycles for kind, which may be None (no steps).

    Raises:
        UnsupportedKindError: if kind is not a known pipeline kind
    """
    attr = _KIND_ATTRS.get(kind)
    if attr is None:
        raise UnsupportedKindError(kind=kind, supported=PIPELINE_KINDS)
    return getattr(pipelines, attr)


def task_name(pack_name: str, kind: str, settings: CompilerSettings = DEFAULT_SETTINGS) -> str:
    return to_valid_name(f"{settings.task_prefix}{pack_name}-{kind}")


def compile_task(
    pack_name: str,
    pipeline_config: PipelineConfig,
    kind: str,
    templates: Mapping[str, Pod],
    settings: Optional[CompilerSettings] = None,
) -> CompileResult:
    """
    Compile one pipeline kind of a (merged) pipeline config into a Task.

    Stages run in their declared order; within a stage, steps are flattened
    depth first. Nothing is returned when any step fails to resolve.
    """
    settings = settings or DEFAULT_SETTINGS
    lifecycles = select_lifecycles(kind, pipeline_config.pipelines)

    missing: Set[str] = set()
    steps: List[ContainerStep] = []
    if lifecycles is not None:
        container = pipeline_config.agent.container
        for lifecycle in lifecycles.all():
            if lifecycle is None:
                continue
            for s in lifecycle.steps:
                steps.extend(
                    flatten_step(s, container, settings.workspace_dir, templates, settings, missing)
                )

    task = TaskDefinition(name=task_name(pack_name, kind, settings), steps=steps)
    return CompileResult(task=task, missing_templates=missing)
