from .compiler import CompilerSettings, compile_task, flatten_step, normalize_dir, select_lifecycles
from .containers import resolve_container, sanitize_container
from .dsl import group, lifecycle, lifecycles, pipeline, pod_template, step
from .model import CompileResult, PipelineConfig, PipelineStep, Pod, TaskDefinition
from .overlay import extend_pipeline

__all__ = [
    "CompilerSettings", "compile_task", "flatten_step", "normalize_dir", "select_lifecycles",
    "resolve_container", "sanitize_container",
    "group", "lifecycle", "lifecycles", "pipeline", "pod_template", "step",
    "CompileResult", "PipelineConfig", "PipelineStep", "Pod", "TaskDefinition",
    "extend_pipeline",
]
