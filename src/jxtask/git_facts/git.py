# git.py
# Small, focused wrapper around the Git CLI.
# Build pack checkouts are the only git interaction; everything else in the
# package works on plain directories.

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import List, Optional


def _git(args: List[str], cwd: Optional[Path] = None) -> str:
    """
    Execute a git command and return its stdout as a clean string.

    Raises:
        subprocess.CalledProcessError: git exited non-zero
        FileNotFoundError: git is not installed
    """
    out = subprocess.check_output(
        ["git", *args],
        cwd=str(cwd) if cwd is not None else None,
        text=True,
        stderr=subprocess.PIPE,
    )
    return out.strip()


def clone(url: str, dest: Path) -> None:
    _git(["clone", url, str(dest)])


def fetch(repo: Path, remote: str = "origin") -> None:
    _git(["fetch", "--tags", "--force", remote], cwd=repo)


def checkout(repo: Path, ref: str) -> None:
    _git(["checkout", "--force", ref], cwd=repo)


def remote_branch_exists(repo: Path, branch: str, remote: str = "origin") -> bool:
    try:
        _git(["rev-parse", "--verify", "--quiet", f"refs/remotes/{remote}/{branch}"], cwd=repo)
    except subprocess.CalledProcessError:
        return False
    return True


def reset_hard(repo: Path, ref: str) -> None:
    _git(["reset", "--hard", ref], cwd=repo)
