"""Staged change extraction and path classification."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from pathlib import PurePosixPath
from typing import Callable, Dict, List, Optional, Tuple


class ChangeStatus(Enum):
    """Status of a staged path as reported by ``git diff --name-status``."""

    ADDED = "A"
    MODIFIED = "M"
    DELETED = "D"
    RENAMED = "R"

    @property
    def verb(self) -> str:
        return _STATUS_VERBS[self]


_STATUS_VERBS = {
    ChangeStatus.ADDED: "add",
    ChangeStatus.MODIFIED: "update",
    ChangeStatus.DELETED: "remove",
    ChangeStatus.RENAMED: "rename",
}


class Category(Enum):
    """Semantic bucket for a changed file. Values are the display labels."""

    DOCS = "docs"
    TESTS = "tests"
    CONFIG = "config"
    CODE = "code"
    OTHER = "other"

    @property
    def label(self) -> str:
        return self.value


@dataclass(frozen=True)
class FileChange:
    """One staged path with its line deltas and category."""

    path: str
    status: ChangeStatus
    added: int = 0
    deleted: int = 0
    category: Category = Category.OTHER
    renamed_from: Optional[str] = None

    @property
    def total(self) -> int:
        return self.added + self.deleted

    @property
    def short_name(self) -> str:
        return PurePosixPath(self.path).name or self.path

    def describe(self) -> str:
        """Render ``verb path (+a/-d) [label]`` without a bullet."""
        if self.status is ChangeStatus.RENAMED:
            target = f"{self.renamed_from} -> {self.path}"
        else:
            target = self.path
        return (
            f"{self.status.verb} {target} "
            f"(+{self.added}/-{self.deleted}) [{self.category.label}]"
        )


# ----------------------------------------------------------------------
# Classification
# ----------------------------------------------------------------------
DOC_EXTENSIONS = frozenset({"md", "markdown", "rst", "txt", "adoc", "org"})
TEST_EXTENSIONS = frozenset({"spec", "snap", "snap.new", "snap.old"})
CONFIG_EXTENSIONS = frozenset(
    {"yml", "yaml", "json", "toml", "ini", "cfg", "conf", "lock", "env", "properties"}
)
CODE_EXTENSIONS = frozenset(
    {
        "rs",
        "ts",
        "tsx",
        "js",
        "jsx",
        "mjs",
        "cjs",
        "py",
        "pyi",
        "go",
        "rb",
        "java",
        "kt",
        "c",
        "cc",
        "cpp",
        "h",
        "hpp",
        "cs",
        "swift",
        "scala",
        "php",
        "sh",
        "bash",
        "html",
        "css",
        "scss",
        "vue",
        "svelte",
        "lua",
        "dart",
    }
)


def _extensions(path: str) -> Tuple[str, ...]:
    """Return the lowercased last suffix and the last two suffixes joined.

    ``foo.snap.new`` yields ``("new", "snap.new")``; dotfiles like ``.env``
    have no extension.
    """
    suffixes = [s.lower().lstrip(".") for s in PurePosixPath(path).suffixes]
    if not suffixes:
        return ()
    if len(suffixes) == 1:
        return (suffixes[-1],)
    return (suffixes[-1], ".".join(suffixes[-2:]))


def _has_extension(exts: Tuple[str, ...], allowed: frozenset) -> bool:
    return any(ext in allowed for ext in exts)


_Rule = Tuple[Callable[[str, Tuple[str, ...]], bool], Category]

# First match wins; the order is significant.
_RULES: Tuple[_Rule, ...] = (
    (
        lambda lower, exts: "readme" in lower
        or "docs/" in lower
        or _has_extension(exts, DOC_EXTENSIONS),
        Category.DOCS,
    ),
    (
        lambda lower, exts: "test" in lower or _has_extension(exts, TEST_EXTENSIONS),
        Category.TESTS,
    ),
    (
        lambda lower, exts: _has_extension(exts, CONFIG_EXTENSIONS)
        or "config" in lower,
        Category.CONFIG,
    ),
    (lambda _lower, exts: _has_extension(exts, CODE_EXTENSIONS), Category.CODE),
)


def classify(path: str) -> Category:
    """Assign ``path`` to exactly one category."""
    lower = path.lower()
    exts = _extensions(lower)
    for predicate, category in _RULES:
        if predicate(lower, exts):
            return category
    return Category.OTHER


# ----------------------------------------------------------------------
# Extraction from git output
# ----------------------------------------------------------------------
_BRACE_RENAME = re.compile(r"\{([^{}]*) => ([^{}]*)\}")


def _numstat_destination(raw: str) -> str:
    """Resolve numstat rename notation to the destination path.

    ``src/{a => b}/x.py`` becomes ``src/b/x.py``; ``old.py => new.py``
    becomes ``new.py``.
    """
    if _BRACE_RENAME.search(raw):
        resolved = _BRACE_RENAME.sub(lambda m: m.group(2), raw)
        return re.sub(r"/{2,}", "/", resolved).lstrip("/")
    if " => " in raw:
        return raw.split(" => ", 1)[1].strip()
    return raw


def _to_count(token: str) -> int:
    try:
        value = int(token)
    except ValueError:
        return 0
    return max(value, 0)


def parse_numstat(output: str) -> Dict[str, Tuple[int, int]]:
    """Parse ``git diff --numstat`` into ``{path: (added, deleted)}``.

    Binary entries report ``-`` for both counts and map to zero.
    """
    counts: Dict[str, Tuple[int, int]] = {}
    for line in output.splitlines():
        if not line.strip():
            continue
        if "\t" in line:
            parts = line.split("\t", 2)
        else:
            parts = line.split(None, 2)
        if len(parts) < 3:
            continue
        added, deleted, raw_path = parts
        path = _numstat_destination(raw_path.strip())
        if not path:
            continue
        counts[path] = (_to_count(added.strip()), _to_count(deleted.strip()))
    return counts


def _status_from_letter(letter: str) -> ChangeStatus:
    if letter == "A":
        return ChangeStatus.ADDED
    if letter == "D":
        return ChangeStatus.DELETED
    if letter == "R":
        return ChangeStatus.RENAMED
    return ChangeStatus.MODIFIED


def parse_name_status(
    output: str,
    counts: Optional[Dict[str, Tuple[int, int]]] = None,
) -> List[FileChange]:
    """Parse ``git diff --name-status`` into classified changes.

    Line counts come from ``counts`` keyed by the destination path, then
    the source path, defaulting to zero.
    """
    counts = counts or {}
    changes: List[FileChange] = []
    for line in output.splitlines():
        parts = line.split("\t")
        status_code = parts[0].strip()
        path = parts[1].strip() if len(parts) > 1 else ""
        if not path:
            continue
        status = _status_from_letter(status_code[:1] or "M")
        renamed_from: Optional[str] = None
        display_path = path
        if status is ChangeStatus.RENAMED:
            renamed_from = path
            display_path = parts[2].strip() if len(parts) > 2 else ""
        added, deleted = counts.get(display_path) or counts.get(path) or (0, 0)
        changes.append(
            FileChange(
                path=display_path,
                status=status,
                added=added,
                deleted=deleted,
                category=classify(display_path),
                renamed_from=renamed_from,
            )
        )
    return changes


def extract_changes(numstat: str, name_status: str) -> List[FileChange]:
    """Combine numstat and name-status output into a list of changes."""
    return parse_name_status(name_status, parse_numstat(numstat))
