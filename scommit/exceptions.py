"""Custom exceptions for scommit."""


class ScommitError(Exception):
    """Base exception for all scommit errors."""


class GitError(ScommitError):
    """Raised when a Git command fails or the repository is unusable."""


class LLMError(ScommitError):
    """Raised when the remote model call or its reply is unusable."""


class ConfigError(ScommitError):
    """Raised when configuration cannot be loaded or is invalid."""
