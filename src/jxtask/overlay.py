# overlay.py
# Extends a build pack pipeline config with the project's own overrides.

from __future__ import annotations

from typing import List, Optional

from .model import (
    EnvVar,
    PipelineAgent,
    PipelineConfig,
    PipelineLifecycle,
    PipelineLifecycles,
    Pipelines,
)


def extend_lifecycle(
    override: Optional[PipelineLifecycle],
    base: Optional[PipelineLifecycle],
) -> Optional[PipelineLifecycle]:
    """Base steps followed by override steps, unless override replaces base."""
    if override is None:
        return base
    if base is None or override.replace:
        return override
    return PipelineLifecycle(steps=[*base.steps, *override.steps])


def extend_lifecycles(
    override: Optional[PipelineLifecycles],
    base: Optional[PipelineLifecycles],
) -> Optional[PipelineLifecycles]:
    if override is None:
        return base
    if base is None:
        return override
    return PipelineLifecycles(
        **{
            name: extend_lifecycle(getattr(override, name), getattr(base, name))
            for name in PipelineLifecycles.STAGES
        }
    )


def _extend_env(override: List[EnvVar], base: List[EnvVar]) -> List[EnvVar]:
    by_name = {e.name: e for e in override}
    merged = [by_name.pop(e.name, e) for e in base]
    merged.extend(e for e in override if e.name in by_name)
    return merged


def extend_pipeline(local: PipelineConfig, base: PipelineConfig) -> PipelineConfig:
    """
    Return a new config: base with local layered on top.

    Neither input is modified. Lifecycles marked `replace: true` in local
    drop the base steps of that stage.
    """
    agent = PipelineAgent(
        label=local.agent.label or base.agent.label,
        container=local.agent.container or base.agent.container,
    )
    pipelines = Pipelines(
        pull_request=extend_lifecycles(local.pipelines.pull_request, base.pipelines.pull_request),
        release=extend_lifecycles(local.pipelines.release, base.pipelines.release),
        feature=extend_lifecycles(local.pipelines.feature, base.pipelines.feature),
        post=extend_lifecycle(local.pipelines.post, base.pipelines.post),
    )
    merged = PipelineConfig(
        agent=agent,
        env=_extend_env(local.env, base.env),
        environment=local.environment or base.environment,
        pipelines=pipelines,
    )
    # steps are shared with the inputs until copied
    return merged.model_copy(deep=True)
