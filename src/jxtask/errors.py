# errors.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence


def _format(message: str, details: dict) -> str:
    lines = [message]
    for k, v in details.items():
        lines.append(f"{k}={v}")
    return "\n".join(lines)


class TaskError(Exception):
    """Base class for every error raised while generating a Task."""


@dataclass
class ConfigurationError(TaskError):
    """
    Structured configuration error with enough context for:
      - clean CLI output
      - debugging without full tracebacks
    """
    message: str
    details: dict = field(default_factory=dict)

    def __str__(self) -> str:
        return _format(self.message, self.details)


@dataclass
class MissingOptionError(ConfigurationError):
    option: str = ""

    @classmethod
    def of(cls, option: str) -> MissingOptionError:
        return cls(
            message=f"missing option: --{option}",
            details={"hint": f"specify --{option} or configure a default"},
            option=option,
        )


@dataclass
class ResolutionError(ConfigurationError):
    """A pod template lookup ended on a template with no usable container."""
    container: str = ""

    @classmethod
    def no_containers(cls, container: str) -> ResolutionError:
        return cls(message=f"no containers for pod template {container}", container=container)


@dataclass
class UnsupportedKindError(TaskError):
    kind: str
    supported: Sequence[str]

    def __str__(self) -> str:
        return f"unknown pipeline kind {self.kind}. Supported values are {', '.join(self.supported)}"


@dataclass
class CollaboratorError(TaskError):
    """git, kubectl or the file system failed; never retried here."""
    message: str
    details: dict = field(default_factory=dict)

    def __str__(self) -> str:
        return _format(self.message, self.details)
