# loader.py
from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any, Dict, Optional, Set, Tuple

import yaml
from pydantic import ValidationError

from . import settings
from .errors import CollaboratorError, ConfigurationError
from .model import ImportModule, ImportModules, PipelineConfig, ProjectConfig
from .overlay import extend_pipeline
from .packs import init_build_pack


def _load_yaml_mapping(path: Path) -> Dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as handle:
            payload = yaml.safe_load(handle)
    except OSError as e:
        raise CollaboratorError(message=f"failed to read {path}", details={"error": e}) from e
    except yaml.YAMLError as e:
        raise ConfigurationError(message=f"invalid YAML in {path}", details={"error": e}) from e

    if payload is None:
        payload = {}
    if not isinstance(payload, Mapping):
        raise ConfigurationError(message=f"config file must contain a YAML mapping: {path}")
    return dict(payload)


# ---------------------------------------------------------------------
# Build pack imports
# ---------------------------------------------------------------------

def load_import_modules(packs_dir: str | Path) -> Dict[str, ImportModule]:
    """
    Read the import modules a build pack repository declares.

    Returns:
        module name -> module; empty when the repository has no imports file
    """
    path = Path(packs_dir) / settings.IMPORTS_FILE_NAME
    if not path.is_file():
        return {}

    doc = _load_yaml_mapping(path)
    try:
        modules = ImportModules.model_validate(doc)
    except ValidationError as e:
        raise ConfigurationError(message=f"invalid imports file {path}", details={"error": e}) from e
    return {m.name: m for m in modules.modules}


def resolve_import(name: str, packs_dir: str | Path, cache_root: str | Path = settings.CACHE_DIR) -> Path:
    """
    Check out the build pack repository registered as import `name`.

    Returns:
        Path to the checked out repository

    Raises:
        ConfigurationError: if packs_dir does not declare the module
        CollaboratorError: if the checkout fails
    """
    modules = load_import_modules(packs_dir)
    module = modules.get(name)
    if module is None:
        raise ConfigurationError(
            message=f"unknown import {name}",
            details={
                "imports": Path(packs_dir) / settings.IMPORTS_FILE_NAME,
                "known": ", ".join(sorted(modules)) or "none",
            },
        )
    return init_build_pack(module.git_url, module.git_ref, cache_root)


# ---------------------------------------------------------------------
# Build pack pipeline
# ---------------------------------------------------------------------

def load_pipeline_config(
    path: str | Path,
    packs_dir: str | Path | None = None,
    cache_root: str | Path = settings.CACHE_DIR,
    _seen: Optional[Set[Path]] = None,
) -> PipelineConfig:
    """
    Load a pipeline config, following `extends` references.

    `extends.file` is relative to the including file. With `extends.import`
    it is relative to the checkout of that module, a build pack repository
    listed in `<packs_dir>/imports.yaml` and cloned under cache_root. The
    including file is layered over the file it extends.

    Raises:
        ConfigurationError: invalid files, unknown imports, cycles
        CollaboratorError: unreadable files, failed checkouts of imports
    """
    p = Path(path).resolve()
    seen = set(_seen or ())
    if p in seen:
        raise ConfigurationError(message="cyclic extends in pipeline config", details={"file": p})
    seen.add(p)

    doc = _load_yaml_mapping(p)
    try:
        config = PipelineConfig.model_validate(doc)
    except ValidationError as e:
        raise ConfigurationError(message=f"invalid pipeline config {p}", details={"error": e}) from e

    ext = config.extends
    if ext is None or not ext.file:
        return config

    if ext.import_:
        if packs_dir is None:
            raise ConfigurationError(
                message=f"cannot resolve import {ext.import_} without a build pack directory",
                details={"file": p},
            )
        base_dir = resolve_import(ext.import_, packs_dir, cache_root)
        base_path = base_dir / ext.file
    else:
        base_dir = packs_dir
        base_path = p.parent / ext.file

    # nested imports resolve against the repository the base file lives in
    base = load_pipeline_config(base_path, packs_dir=base_dir, cache_root=cache_root, _seen=seen)
    return extend_pipeline(config, base)


# ---------------------------------------------------------------------
# Project configuration
# ---------------------------------------------------------------------

def load_project_config(dir: str | Path) -> Tuple[ProjectConfig, Optional[Path]]:
    """
    Load the project configuration from dir.

    Returns:
        (config, path of the file) or (empty config, None) when the project
        has no configuration file.
    """
    path = Path(dir) / settings.PROJECT_CONFIG_FILE_NAME
    if not path.is_file():
        return ProjectConfig(), None

    doc = _load_yaml_mapping(path)
    try:
        return ProjectConfig.model_validate(doc), path
    except ValidationError as e:
        raise ConfigurationError(message=f"invalid project config {path}", details={"error": e}) from e
