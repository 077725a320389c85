# model.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, List, Optional, Set, Tuple

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


PIPELINE_KIND_RELEASE = "release"
PIPELINE_KIND_PULL_REQUEST = "pull-request"
PIPELINE_KIND_FEATURE = "feature"

PIPELINE_KINDS = (PIPELINE_KIND_RELEASE, PIPELINE_KIND_PULL_REQUEST, PIPELINE_KIND_FEATURE)


class _Model(BaseModel):
    # YAML documents use camelCase keys; python callers may use field names.
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


# ---------------------------------------------------------------------
# Pod templates (the subset of the Kubernetes pod spec we read and emit)
# ---------------------------------------------------------------------

class EnvVar(_Model):
    name: str
    value: Optional[str] = None
    value_from: Optional[Dict[str, Any]] = None


class VolumeMount(_Model):
    name: str
    mount_path: str
    read_only: Optional[bool] = None
    sub_path: Optional[str] = None


class Container(_Model):
    """A container definition; pod template skeletons and compiled steps share this shape."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    name: Optional[str] = None
    image: Optional[str] = None
    command: Optional[List[str]] = None
    args: Optional[List[str]] = None
    working_dir: Optional[str] = None
    env: Optional[List[EnvVar]] = None
    volume_mounts: Optional[List[VolumeMount]] = None
    resources: Optional[Dict[str, Any]] = None
    security_context: Optional[Dict[str, Any]] = None
    image_pull_policy: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = self.model_dump(by_alias=True, exclude_none=True)
        # empty lists are omitted, same as the pod spec serializer does
        for key in ("env", "volumeMounts", "command", "args"):
            if key in data and not data[key]:
                del data[key]
        return data


# A compiled step is a fully resolved container definition.
ContainerStep = Container


class PodSpec(_Model):
    containers: List[Container] = Field(default_factory=list)
    volumes: Optional[List[Dict[str, Any]]] = None


class Pod(_Model):
    api_version: Optional[str] = None
    kind: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    spec: PodSpec = Field(default_factory=PodSpec)


# ---------------------------------------------------------------------
# Pipeline configuration (build pack pipeline.yaml / project jenkins-x.yml)
# ---------------------------------------------------------------------

class PipelineStep(_Model):
    """
    A unit of work: a leaf with a command, a grouping node with nested
    steps, or both. In YAML the command is `sh` and the nested steps are `steps`.
    """
    comment: Optional[str] = None
    command: Optional[str] = Field(default=None, alias="sh")
    container: Optional[str] = None
    dir: Optional[str] = None
    children: List[PipelineStep] = Field(default_factory=list, alias="steps")

    @property
    def executable(self) -> bool:
        return bool(self.command)


class PipelineLifecycle(_Model):
    steps: List[PipelineStep] = Field(default_factory=list)
    replace: bool = False


class PipelineLifecycles(_Model):
    setup: Optional[PipelineLifecycle] = None
    set_version: Optional[PipelineLifecycle] = None
    pre_build: Optional[PipelineLifecycle] = None
    build: Optional[PipelineLifecycle] = None
    post_build: Optional[PipelineLifecycle] = None
    promote: Optional[PipelineLifecycle] = None

    # declared execution order of the stages
    STAGES: ClassVar[Tuple[str, ...]] = ("setup", "set_version", "pre_build", "build", "post_build", "promote")

    def all(self) -> List[Optional[PipelineLifecycle]]:
        return [getattr(self, name) for name in self.STAGES]


class Pipelines(_Model):
    pull_request: Optional[PipelineLifecycles] = None
    release: Optional[PipelineLifecycles] = None
    feature: Optional[PipelineLifecycles] = None
    post: Optional[PipelineLifecycle] = None


class PipelineAgent(_Model):
    label: Optional[str] = None
    container: Optional[str] = None


class PipelineExtends(_Model):
    import_: Optional[str] = Field(default=None, alias="import")
    file: Optional[str] = None


class PipelineConfig(_Model):
    extends: Optional[PipelineExtends] = None
    agent: PipelineAgent = Field(default_factory=PipelineAgent)
    env: List[EnvVar] = Field(default_factory=list)
    environment: Optional[str] = None
    pipelines: Pipelines = Field(default_factory=Pipelines)


class ProjectConfig(_Model):
    build_pack: Optional[str] = None
    pipeline_config: Optional[PipelineConfig] = None


class ImportModule(_Model):
    """A build pack repository another pack can `extends.import` from."""
    name: str
    git_url: str
    git_ref: str = "master"


class ImportModules(_Model):
    modules: List[ImportModule] = Field(default_factory=list)


# ---------------------------------------------------------------------
# Compiler output
# ---------------------------------------------------------------------

@dataclass
class TaskDefinition:
    """The compiled, ordered container steps of one pipeline kind."""
    name: str
    steps: List[ContainerStep] = field(default_factory=list)


@dataclass
class CompileResult:
    """
    Task plus diagnostics.

    missing_templates holds every container name that had no pod template
    and was compiled against the default template instead.
    """
    task: TaskDefinition
    missing_templates: Set[str] = field(default_factory=set)
