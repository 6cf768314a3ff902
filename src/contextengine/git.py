"""Git helpers used when capturing anchors."""
import subprocess
from pathlib import Path

# Recorded as git_ref when the project is not inside a git work tree
UNCOMMITTED_REF = "uncommitted"

GIT_TIMEOUT_SECONDS = 10


def _run_git(args: list[str], cwd: Path) -> subprocess.CompletedProcess | None:
    try:
        return subprocess.run(
            ["git", *args],
            cwd=cwd,
            capture_output=True,
            text=True,
            timeout=GIT_TIMEOUT_SECONDS,
        )
    except (OSError, subprocess.TimeoutExpired):
        return None


def is_git_repo(cwd: Path) -> bool:
    """Check whether cwd is inside a git work tree."""
    result = _run_git(["rev-parse", "--git-dir"], cwd)
    return result is not None and result.returncode == 0


def current_revision(cwd: Path) -> str:
    """SHA of HEAD, or ``"uncommitted"`` outside a repository or before the first commit."""
    result = _run_git(["rev-parse", "HEAD"], cwd)
    if result is None or result.returncode != 0:
        return UNCOMMITTED_REF
    sha = result.stdout.strip()
    return sha or UNCOMMITTED_REF


def current_branch(cwd: Path) -> str | None:
    """Name of the checked-out branch, or None."""
    result = _run_git(["rev-parse", "--abbrev-ref", "HEAD"], cwd)
    if result is None or result.returncode != 0:
        return None
    return result.stdout.strip() or None


def changed_files(cwd: Path, revision: str = "HEAD") -> list[str]:
    """Paths touched by a commit, relative to the repository root."""
    result = _run_git(["diff-tree", "--no-commit-id", "--name-only", "-r", revision], cwd)
    if result is None or result.returncode != 0:
        return []
    return [line.strip() for line in result.stdout.splitlines() if line.strip()]
