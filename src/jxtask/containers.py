# containers.py
from __future__ import annotations

from typing import Iterable, Mapping, NamedTuple, Optional

from .errors import ResolutionError
from .model import Container, Pod

# Environment that belongs to the pod template's own agent, not to a Task step:
# source control credentials, the docker daemon and XDG base directories.
DISALLOWED_ENV_PREFIXES = ("GIT_", "DOCKER_", "XDG_")


class Resolution(NamedTuple):
    template: Pod
    name: str
    missing: bool


# ---------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------

def resolve_container(
    declared: Optional[str],
    inherited: Optional[str],
    templates: Mapping[str, Pod],
    default_name: str,
) -> Resolution:
    """
    Pick the pod template for a step.

    The step's own container wins over the inherited one; with neither,
    default_name is used. A name without a template falls back to the
    default template and is reported as missing.

    Raises:
        ResolutionError: if the template that would be used has no containers
    """
    name = declared or inherited or default_name

    template = templates.get(name)
    if template is not None:
        missing = False
    else:
        missing = True
        template = templates.get(default_name)

    if template is None or not template.spec.containers:
        raise ResolutionError.no_containers(name)
    return Resolution(template=template, name=name, missing=missing)


def skeleton_of(template: Pod) -> Container:
    # later containers (sidecars) are never used for steps
    return template.spec.containers[0]


# ---------------------------------------------------------------------
# Sanitizer
# ---------------------------------------------------------------------

def sanitize_container(
    container: Container,
    disallowed_prefixes: Iterable[str] = DISALLOWED_ENV_PREFIXES,
) -> Container:
    """Drop volume mounts and agent-only environment from a copy of container."""
    prefixes = tuple(disallowed_prefixes)
    clean = container.model_copy(deep=True)
    clean.volume_mounts = None
    clean.env = [e for e in (clean.env or []) if not e.name.startswith(prefixes)]
    return clean
