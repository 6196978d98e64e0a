from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path

from .exceptions import RepositoryError

logger = logging.getLogger(__name__)

# Well-known id of the tree with no files; diff base before the first commit.
EMPTY_TREE_SHA = "4b825dc642cb6eb9a060e54bf8d69288fbee4904"

MAX_DIFF_BYTES = 10 * 1024 * 1024


@dataclass(frozen=True)
class StagedDiff:
    text: str
    initial_commit: bool


def _run_git(cwd: str | Path, *args: str) -> str:
    try:
        result = subprocess.run(
            ["git", *args],
            cwd=cwd,
            capture_output=True,
            text=True,
            check=True,
        )
    except subprocess.CalledProcessError as e:
        raise RepositoryError(f"git {' '.join(args)} failed: {e.stderr.strip()}") from e
    except FileNotFoundError:
        raise RepositoryError("git is not installed or not in PATH")
    except OSError as e:
        raise RepositoryError(f"Cannot run git in {cwd}: {e}") from e
    return result.stdout


def _run_git_bounded(cwd: str | Path, *args: str, limit: int = MAX_DIFF_BYTES) -> str:
    """Run git and capture at most ``limit`` bytes of stdout.

    The child is killed as soon as the output crosses the ceiling, so a
    pathological diff never gets buffered in full.
    """
    try:
        proc = subprocess.Popen(
            ["git", *args],
            cwd=cwd,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
        )
    except FileNotFoundError:
        raise RepositoryError("git is not installed or not in PATH")
    except OSError as e:
        raise RepositoryError(f"Cannot run git in {cwd}: {e}") from e

    with proc:
        stdout = proc.stdout.read(limit + 1)
        if len(stdout) > limit:
            proc.kill()
            proc.communicate()
            raise RepositoryError(
                f"Staged diff exceeds {limit // (1024 * 1024)} MiB; stage fewer changes."
            )
        _, stderr = proc.communicate()

    if proc.returncode != 0:
        message = stderr.decode(errors="replace").strip()
        raise RepositoryError(f"git {' '.join(args)} failed: {message}")
    return stdout.decode(errors="replace")


def get_repo_root(path: str | Path) -> Path:
    try:
        return Path(_run_git(path, "rev-parse", "--show-toplevel").strip())
    except RepositoryError as e:
        raise RepositoryError(f"Not inside a Git repository: {path}") from e


def has_head(root: str | Path) -> bool:
    try:
        _run_git(root, "rev-parse", "--verify", "HEAD")
    except RepositoryError:
        return False
    return True


def read_staged_changes(path: str | Path = ".") -> StagedDiff:
    """Read the index against HEAD, or against the empty tree before the first commit.

    Args:
        path: Any directory inside the work tree.

    Returns:
        The raw diff text (empty when nothing is staged) and whether the
        repository has no commits yet.

    Raises:
        RepositoryError: If ``path`` is not inside a repository or git fails.
    """
    root = get_repo_root(path)
    initial = not has_head(root)
    base = EMPTY_TREE_SHA if initial else "HEAD"
    logger.debug("Reading staged changes in %s against %s", root, base)
    text = _run_git_bounded(root, "diff-index", "--cached", "-p", base, "--")
    return StagedDiff(text=text, initial_commit=initial)


def get_staged_diff(path: str | Path = ".") -> str:
    return read_staged_changes(path).text
