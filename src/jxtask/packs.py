# packs.py
# Build pack source: a git repository with one directory per build pack,
# each holding a pipeline.yaml.

from __future__ import annotations

import hashlib
import subprocess
from pathlib import Path

from . import settings
from .errors import CollaboratorError, ConfigurationError
from .git_facts import git


def _sha256_str(s: str) -> str:
    return hashlib.sha256(s.encode("utf-8")).hexdigest()


def _repo_dir_name(url: str) -> str:
    # readable prefix + hash so different forks of the same repo never collide
    name = url.rstrip("/").split("/")[-1].replace(".git", "") or "packs"
    return f"{name}-{_sha256_str(url)[:12]}"


def init_build_pack(url: str, ref: str, cache_root: str | Path = settings.CACHE_DIR) -> Path:
    """
    Clone or update the build pack repository and check out ref.

    Args:
        url: Git URL of the build pack repository
        ref: branch, tag or commit SHA
        cache_root: directory holding the checkouts

    Returns:
        Path to the checked out repository (the packs directory)

    Raises:
        CollaboratorError: if any git operation fails
    """
    root = Path(cache_root).expanduser()
    repo = root / _repo_dir_name(url)

    try:
        root.mkdir(parents=True, exist_ok=True)
        if (repo / ".git").exists():
            git.fetch(repo)
        else:
            git.clone(url, repo)

        git.checkout(repo, ref)
        # a branch must follow the remote, not the last fetched local copy
        if git.remote_branch_exists(repo, ref):
            git.reset_hard(repo, f"origin/{ref}")
    except subprocess.CalledProcessError as e:
        raise CollaboratorError(
            message=f"failed to check out build pack {url} at {ref}",
            details={"dir": repo, "stderr": (e.stderr or "").strip()},
        ) from e
    except FileNotFoundError as e:
        raise CollaboratorError(
            message="git command not found",
            details={"hint": "install Git or pass --packs-dir <dir>"},
        ) from e
    except OSError as e:
        raise CollaboratorError(message=f"failed to create {root}", details={"error": e}) from e

    return repo


def pipeline_file(packs_dir: str | Path, pack: str) -> Path:
    """
    Return the pipeline file of a build pack.

    Raises:
        ConfigurationError: if the build pack has no pipeline file
    """
    pack_dir = Path(packs_dir) / pack
    path = pack_dir / settings.PIPELINE_CONFIG_FILE_NAME
    if not path.is_file():
        raise ConfigurationError(message=f"no build pack for {pack} exists at directory {pack_dir}")
    return path
