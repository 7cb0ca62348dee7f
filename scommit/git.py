"""Git operations for scommit."""

import logging
import subprocess
from pathlib import Path
from typing import List, Optional, Tuple

from .changes import FileChange, extract_changes
from .config import Config, get_active_config
from .exceptions import GitError

logger = logging.getLogger(__name__)


def find_git_repo_root(start_path: Optional[Path] = None) -> Optional[Path]:
    """Return the top-level Git repository directory for ``start_path``.

    Attempts ``git rev-parse --show-toplevel`` first so worktrees and
    submodules are handled correctly. Falls back to walking parent
    directories looking for a ``.git`` directory or file. Returns ``None``
    when no Git repository can be found starting from ``start_path``.
    """

    path = Path(start_path or Path.cwd()).expanduser().resolve(strict=False)
    if path.is_file():
        path = path.parent

    try:
        result = subprocess.run(
            ["git", "rev-parse", "--show-toplevel"],
            cwd=path,
            capture_output=True,
            text=True,
            check=True,
        )
        top = result.stdout.strip()
        if top:
            return Path(top)
    except (subprocess.CalledProcessError, FileNotFoundError):
        pass

    for candidate in (path, *path.parents):
        if (candidate / ".git").exists():
            return candidate

    return None


class GitRepo:
    """Handles the Git queries and mutations the commit pipeline needs."""

    def __init__(
        self,
        repo_path: Optional[str] = None,
        config: Optional[Config] = None,
    ) -> None:
        self._config = config or get_active_config()
        start = Path(repo_path or self._config.git_repo_path)
        root = find_git_repo_root(start)
        if root is None:
            raise GitError(f"Not a Git repository: {start}")
        self.repo_path = root

    def _run_git_command(self, args: List[str], strip: bool = True) -> str:
        """Run a Git command and return its output."""
        logger.debug("git %s", " ".join(args))
        try:
            result = subprocess.run(
                ["git"] + args,
                cwd=self.repo_path,
                capture_output=True,
                text=True,
                check=True,
            )
        except subprocess.CalledProcessError as e:
            cmd = " ".join(args)
            raise GitError(f"Git command failed: {cmd}\n{e.stderr}") from e
        except FileNotFoundError as exc:
            raise GitError("Git command not found. Please install Git.") from exc
        return result.stdout.strip() if strip else result.stdout

    # ------------------------------------------------------------------
    # Staged change queries
    # ------------------------------------------------------------------
    def stage_all(self) -> None:
        """Stage all changes (including new and deleted files)."""
        self._run_git_command(["add", "-A"])

    def has_staged_changes(self) -> bool:
        """Return True when the index differs from HEAD.

        ``git diff --cached --quiet`` exits 1 when there are differences.
        """
        try:
            result = subprocess.run(
                ["git", "diff", "--cached", "--quiet"],
                cwd=self.repo_path,
                capture_output=True,
                text=True,
                check=False,
            )
        except FileNotFoundError as exc:
            raise GitError("Git command not found. Please install Git.") from exc
        if result.returncode not in (0, 1):
            raise GitError(
                f"Git command failed: diff --cached --quiet\n{result.stderr}"
            )
        return result.returncode == 1

    def get_numstat(self) -> str:
        return self._run_git_command(["diff", "--cached", "--numstat"])

    def get_name_status(self) -> str:
        return self._run_git_command(["diff", "--cached", "--name-status"])

    def collect_staged_changes(self) -> List[FileChange]:
        """Return the staged change set, classified."""
        return extract_changes(self.get_numstat(), self.get_name_status())

    def get_diff_stat(self) -> str:
        return self._run_git_command(["diff", "--cached", "--stat", "--no-color"])

    def get_diff_excerpt(self, max_chars: int = 4000) -> str:
        """Return the staged unified diff cut to ``max_chars`` characters."""
        raw = self._run_git_command(
            ["diff", "--cached", "--unified=3", "--no-color"], strip=False
        )
        return raw[:max_chars]

    def get_recent_subjects(self, count: int = 6) -> List[str]:
        """Return up to ``count`` recent commit subjects, newest first.

        A repository without commits yields an empty list.
        """
        try:
            output = self._run_git_command(["log", "-n", str(count), "--pretty=%s"])
        except GitError as exc:
            logger.debug("no history available: %s", exc)
            return []
        return [line.strip() for line in output.splitlines() if line.strip()]

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    def commit(self, subject: str, body: str = "") -> None:
        """Create a commit; the body paragraph is omitted when blank."""
        args = ["commit", "-m", subject]
        if body.strip():
            args += ["-m", body]
        self._run_git_command(args)

    def upstream_branch(self) -> Optional[str]:
        """Return the tracking branch name, or None when none is configured."""
        try:
            output = self._run_git_command(
                ["rev-parse", "--abbrev-ref", "--symbolic-full-name", "@{u}"]
            )
        except GitError:
            return None
        return output or None

    def ahead_behind(self, upstream: str) -> Tuple[int, int]:
        """Return ``(ahead, behind)`` commit counts relative to ``upstream``."""
        output = self._run_git_command(
            ["rev-list", "--left-right", "--count", f"HEAD...{upstream}"]
        )
        parts = output.split()
        if not parts:
            raise GitError(f"Unexpected rev-list output: {output!r}")
        return _to_int(parts[0]), _to_int(parts[1] if len(parts) > 1 else "0")

    def pull_rebase(self) -> str:
        return self._run_git_command(["pull", "--rebase"])

    def push(self) -> str:
        """Push the current branch to its upstream."""
        return self._run_git_command(["push"])


def _to_int(token: str) -> int:
    try:
        return int(token)
    except ValueError:
        return 0
