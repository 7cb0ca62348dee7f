"""scommit - staged-change summaries and commit messages, optionally AI-refined."""

from importlib import import_module
from typing import TYPE_CHECKING

__version__ = "0.1.0"

# Public API (lazy-exported to avoid import-time side effects)
__all__ = [
    # Config
    "Config",
    # Changes
    "Category", "ChangeStatus", "FileChange", "classify", "extract_changes",
    # Stats
    "Stats", "aggregate",
    # Commit generation
    "compose", "CommitGenerator",
    # LLM
    "LLMClient",
    # Git
    "GitRepo",
    # Core workflow
    "ScommitWorkflow", "WorkflowResult",
    # Exceptions
    "ScommitError", "GitError", "LLMError", "ConfigError",
]


def __getattr__(name: str):
    """Lazy attribute loader to avoid importing heavy modules at package import time.

    Keeps ``import scommit`` free of environment reads and of the httpx
    import until a symbol that needs them is accessed.
    """
    mapping = {
        "Config": ("scommit.config", "Config"),
        "Category": ("scommit.changes", "Category"),
        "ChangeStatus": ("scommit.changes", "ChangeStatus"),
        "FileChange": ("scommit.changes", "FileChange"),
        "classify": ("scommit.changes", "classify"),
        "extract_changes": ("scommit.changes", "extract_changes"),
        "Stats": ("scommit.stats", "Stats"),
        "aggregate": ("scommit.stats", "aggregate"),
        "compose": ("scommit.commit", "compose"),
        "CommitGenerator": ("scommit.commit", "CommitGenerator"),
        "LLMClient": ("scommit.llm", "LLMClient"),
        "GitRepo": ("scommit.git", "GitRepo"),
        "ScommitWorkflow": ("scommit.core", "ScommitWorkflow"),
        "WorkflowResult": ("scommit.core", "WorkflowResult"),
        "ScommitError": ("scommit.exceptions", "ScommitError"),
        "GitError": ("scommit.exceptions", "GitError"),
        "LLMError": ("scommit.exceptions", "LLMError"),
        "ConfigError": ("scommit.exceptions", "ConfigError"),
    }
    if name in mapping:
        mod_name, attr = mapping[name]
        mod = import_module(mod_name)
        value = getattr(mod, attr)
        globals()[name] = value  # cache for future access
        return value
    raise AttributeError(f"module 'scommit' has no attribute {name!r}")


if TYPE_CHECKING:
    from .changes import Category, ChangeStatus, FileChange, classify, extract_changes
    from .commit import CommitGenerator, compose
    from .config import Config
    from .core import ScommitWorkflow, WorkflowResult
    from .exceptions import ConfigError, GitError, LLMError, ScommitError
    from .git import GitRepo
    from .llm import LLMClient
    from .stats import Stats, aggregate
