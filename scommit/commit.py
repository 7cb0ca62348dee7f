"""Commit message generation logic for scommit."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence

from .changes import Category, FileChange
from .config import Config, get_active_config
from .exceptions import GitError, LLMError
from .git import GitRepo
from .llm import DIFF_EXCERPT_LIMIT, MAX_RECENT_SUBJECTS, LLMClient
from .stats import Stats

SUBJECT_LIMIT = 72
MAX_BODY_ENTRIES = 12
BODY_FOOTER = (
    "Auto-generated by scommit. Edit with --message if you want to override."
)

_SINGLE_CATEGORY_PREFIXES = {
    Category.DOCS: "docs",
    Category.TESTS: "test",
    Category.CONFIG: "chore",
}


def choose_prefix(stats: Stats) -> str:
    """Pick a conventional-commit type from the change statistics."""
    only = stats.only_category()
    if only in _SINGLE_CATEGORY_PREFIXES:
        return _SINGLE_CATEGORY_PREFIXES[only]
    if stats.new_files > 0 and stats.added > stats.deleted:
        return "feat"
    if stats.deleted > stats.added and Category.CODE in stats.categories:
        return "refactor"
    return "chore"


def build_subject(
    changes: Sequence[FileChange], stats: Stats, limit: int = SUBJECT_LIMIT
) -> str:
    """Name the two most-changed files; hard-cut to ``limit`` characters."""
    ranked = sorted(changes, key=lambda c: c.total, reverse=True)
    names = [c.short_name for c in ranked[:2]]
    focus = " & ".join(names) if names else "changes"
    subject = f"{choose_prefix(stats)}: update {focus}"
    return subject[:limit]


def build_body(
    changes: Sequence[FileChange],
    stats: Stats,
    now: Optional[datetime] = None,
) -> str:
    timestamp = (now or datetime.now()).strftime("%Y-%m-%d %H:%M")
    lines = [
        f"Files: {stats.files} | +{stats.added} / -{stats.deleted} "
        f"| generated {timestamp}",
        "Changes:",
    ]
    listed = changes[:MAX_BODY_ENTRIES]
    lines.extend(f"- {change.describe()}" for change in listed)
    remaining = len(changes) - len(listed)
    if remaining > 0:
        lines.append(f"- ... {remaining} more file(s) not listed")
    lines.extend(["", BODY_FOOTER])
    return "\n".join(lines)


def compose(
    changes: Sequence[FileChange],
    stats: Stats,
    now: Optional[datetime] = None,
) -> tuple[str, str]:
    """Deterministic heuristic ``(subject, body)``."""
    return build_subject(changes, stats), build_body(changes, stats, now)


@dataclass
class GeneratedMessage:
    subject: str
    body: str
    source: str  # 'message' | 'ai' | 'heuristic'
    notice: Optional[str] = None


class CommitGenerator:
    """Chooses between an explicit subject, AI refinement and the heuristic."""

    def __init__(
        self,
        git_repo: Optional[GitRepo] = None,
        config: Optional[Config] = None,
        llm_client: Optional[LLMClient] = None,
        debug: bool = False,
    ) -> None:
        self._config = config or get_active_config()
        self.git_repo = git_repo
        self.debug = debug
        self._llm_client = llm_client

    @property
    def llm_client(self) -> LLMClient:
        if self._llm_client is None:
            self._llm_client = LLMClient(self._config, debug=self.debug)
        return self._llm_client

    def ai_enabled(self) -> bool:
        return self._config.ai_enabled()

    def generate(
        self,
        changes: Sequence[FileChange],
        stats: Stats,
        message: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> GeneratedMessage:
        """Return the final message for ``changes``.

        An explicit ``message`` becomes the subject with the heuristic body.
        AI refinement failures print a notice and fall back to the
        heuristic; they never abort.
        """
        if message:
            return GeneratedMessage(
                subject=message,
                body=build_body(changes, stats, now),
                source="message",
            )

        if self.ai_enabled():
            try:
                refined = self._refine(changes, stats)
            except LLMError as e:
                notice = f"AI generation failed ({e}); falling back to heuristic."
                print(notice, file=sys.stderr)
                subject, body = compose(changes, stats, now)
                return GeneratedMessage(subject, body, "heuristic", notice)
            if refined is not None:
                return GeneratedMessage(refined[0], refined[1], "ai")

        subject, body = compose(changes, stats, now)
        return GeneratedMessage(subject, body, "heuristic")

    def _refine(
        self, changes: Sequence[FileChange], stats: Stats
    ) -> Optional[tuple[str, str]]:
        recent: list[str] = []
        diff_stat = ""
        excerpt = ""
        if self.git_repo is not None:
            recent = self.git_repo.get_recent_subjects(MAX_RECENT_SUBJECTS)
            # Missing diff context never blocks refinement.
            try:
                diff_stat = self.git_repo.get_diff_stat()
            except GitError as e:
                if self.debug:
                    print(f"DEBUG: diffstat unavailable: {e}")
            try:
                excerpt = self.git_repo.get_diff_excerpt(DIFF_EXCERPT_LIMIT)
            except GitError as e:
                if self.debug:
                    print(f"DEBUG: diff excerpt unavailable: {e}")
        return self.llm_client.try_refine(
            changes,
            stats,
            recent_subjects=recent,
            diff_stat=diff_stat,
            diff_excerpt=excerpt,
            model=self._config.model,
        )
