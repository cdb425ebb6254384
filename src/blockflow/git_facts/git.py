# git.py
# Small, focused wrapper around the Git CLI.
# The catalog lint asks this module which files changed; nothing else in
# blockflow calls git directly.

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import List, Optional


def _git(args: list[str], cwd: Optional[str | Path] = None) -> str:
    """
    Execute a git command and return its stdout as a clean string.

    Args:
        args: List of git arguments (e.g. ["diff", "--name-only"])
        cwd: Optional working directory in which to run the git command.

    Returns:
        Stdout from the git command with surrounding whitespace removed.

    Raises:
        subprocess.CalledProcessError: git exited non-zero.
        FileNotFoundError: git is not installed.
    """
    out = subprocess.check_output(
        ["git", *args],
        cwd=str(cwd) if cwd is not None else None,
        text=True,
        stderr=subprocess.DEVNULL,
    )
    return out.strip()


def _paths(output: str) -> List[str]:
    return [line.strip().replace("\\", "/") for line in output.splitlines() if line.strip()]


def is_repo(cwd: Optional[str | Path] = None) -> bool:
    """True when ``cwd`` is inside a git work tree."""
    try:
        return _git(["rev-parse", "--is-inside-work-tree"], cwd=cwd) == "true"
    except (subprocess.CalledProcessError, FileNotFoundError):
        return False


def working_tree_changes(cwd: Optional[str | Path] = None) -> List[str]:
    """
    Files touched in the working tree, relative to ``cwd``.

    Includes:
    - unstaged changes
    - staged changes
    - untracked files (respecting .gitignore)
    """
    files = set()
    files.update(_paths(_git(["diff", "--name-only", "--relative"], cwd=cwd)))
    files.update(_paths(_git(["diff", "--name-only", "--relative", "--cached"], cwd=cwd)))
    files.update(_paths(_git(["ls-files", "--others", "--exclude-standard"], cwd=cwd)))
    return sorted(files)


def changed_files(base: str, head: str = "HEAD", cwd: Optional[str | Path] = None) -> List[str]:
    """
    Return a list of files changed between two Git references.

    Args:
        base: The base Git ref (commit, branch, or tag).
        head: The head Git ref to compare against (defaults to HEAD).
    """
    return _paths(_git(["diff", "--name-only", "--relative", f"{base}..{head}"], cwd=cwd))
