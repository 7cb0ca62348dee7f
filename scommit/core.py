"""Core workflow logic for scommit."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import List, Optional

from .changes import FileChange
from .commit import CommitGenerator
from .config import Config, get_active_config
from .git import GitRepo
from .stats import Stats, aggregate

RESET = "\033[0m"
BOLD = "\033[1m"
CYAN = "\033[96m"
GREEN = "\033[92m"
DIM = "\033[2m"


@dataclass
class WorkflowResult:
    """Outcome of a single scommit run."""

    subject: Optional[str] = None
    body: Optional[str] = None
    source: Optional[str] = None
    committed: bool = False
    pulled: bool = False
    pushed: bool = False
    dry_run: bool = False
    changes: List[FileChange] = field(default_factory=list)
    stats: Optional[Stats] = None
    notes: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def message(self) -> Optional[str]:
        if self.subject is None:
            return None
        if self.body and self.body.strip():
            return f"{self.subject}\n\n{self.body}"
        return self.subject


class ScommitWorkflow:
    """Stage, describe, commit and push the pending changes of one repo."""

    def __init__(
        self,
        repo_path: Optional[str] = None,
        config: Optional[Config] = None,
        dry_run: bool = False,
        no_stage: bool = False,
        no_push: bool = False,
        skip_pull: bool = False,
        message: Optional[str] = None,
        debug: bool = False,
        profile: bool = False,
    ) -> None:
        self._config = config or get_active_config()
        self.git_repo = GitRepo(repo_path, self._config)
        self.commit_generator = CommitGenerator(
            self.git_repo, self._config, debug=debug
        )
        self.dry_run = dry_run
        self.no_stage = no_stage
        self.no_push = no_push
        self.auto_push = self._config.auto_push
        self.skip_pull = skip_pull
        self.message = message
        self.debug = debug
        self.profile = profile

    def _profile(self, label: str, elapsed_seconds: float, extra: str = "") -> None:
        if not self.profile:
            return
        details = f" {extra}" if extra else ""
        print(f"[scommit-profile] {label}: {elapsed_seconds * 1000.0:.1f} ms{details}")

    def _note(self, result: WorkflowResult, text: str) -> None:
        result.notes.append(text)
        print(f"{DIM}{text}{RESET}")

    def execute_workflow(self) -> WorkflowResult:
        """Run the pipeline once. Git failures propagate as ``GitError``."""
        result = WorkflowResult(dry_run=self.dry_run)

        if not self.no_stage:
            self.git_repo.stage_all()

        if not self.git_repo.has_staged_changes():
            self._note(result, "No staged changes found. Nothing to commit.")
            return result

        start = time.perf_counter()
        changes = self.git_repo.collect_staged_changes()
        stats = aggregate(changes)
        result.changes = changes
        result.stats = stats
        self._profile(
            "collect-changes",
            time.perf_counter() - start,
            extra=f"files={stats.files}",
        )

        start = time.perf_counter()
        generated = self.commit_generator.generate(changes, stats, self.message)
        self._profile("generate-message", time.perf_counter() - start)
        result.subject = generated.subject
        result.body = generated.body
        result.source = generated.source
        if generated.notice:
            result.errors.append(generated.notice)

        if self.dry_run:
            print(f"{BOLD}DRY RUN{RESET}\nSubject: {generated.subject}\n\n{generated.body}")
            return result

        self.git_repo.commit(generated.subject, generated.body)
        result.committed = True
        print(f"{GREEN}✓ Committed:{RESET} {generated.subject}")

        if self.no_push:
            self._note(result, "Skipping push (--no-push).")
            return result
        if not self.auto_push:
            self._note(result, "Skipping push (auto-push disabled).")
            return result

        self._sync_with_upstream(result)
        return result

    def _sync_with_upstream(self, result: WorkflowResult) -> None:
        upstream = self.git_repo.upstream_branch()
        if upstream is None:
            self._note(result, "No upstream configured; commit created but not pushed.")
            return

        ahead, behind = self.git_repo.ahead_behind(upstream)
        if behind > 0 and not self.skip_pull:
            self._note(
                result,
                f"Branch is behind {upstream} by {behind} commit(s); "
                "rebasing before push...",
            )
            self.git_repo.pull_rebase()
            result.pulled = True
        elif behind > 0:
            self._note(
                result,
                f"Branch is behind {upstream} by {behind} commit(s); "
                "skipping pull (--skip-pull).",
            )

        if ahead > 0 or behind == 0:
            self.git_repo.push()
            result.pushed = True
            print(f"{CYAN}↑ Pushed to {upstream}{RESET}")
        else:
            self._note(result, "No local commits to push.")
