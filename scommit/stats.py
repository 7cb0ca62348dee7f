"""Summary counters over a list of staged changes."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable

from .changes import Category, ChangeStatus, FileChange


@dataclass
class Stats:
    """Aggregate view of a change set."""

    files: int = 0
    added: int = 0
    deleted: int = 0
    categories: Dict[Category, int] = field(default_factory=dict)
    new_files: int = 0
    removed_files: int = 0

    def only_category(self) -> Category | None:
        if len(self.categories) == 1:
            return next(iter(self.categories))
        return None

    def describe_categories(self) -> str:
        """Render counts as ``docs=1, code=2`` in category order."""
        ordered = [c for c in Category if c in self.categories]
        if not ordered:
            return "none"
        return ", ".join(f"{c.label}={self.categories[c]}" for c in ordered)


def aggregate(changes: Iterable[FileChange]) -> Stats:
    """Fold ``changes`` into a fresh :class:`Stats`."""
    stats = Stats()
    for change in changes:
        stats.files += 1
        stats.added += change.added
        stats.deleted += change.deleted
        stats.categories[change.category] = (
            stats.categories.get(change.category, 0) + 1
        )
        if change.status is ChangeStatus.ADDED:
            stats.new_files += 1
        elif change.status is ChangeStatus.DELETED:
            stats.removed_files += 1
    return stats
