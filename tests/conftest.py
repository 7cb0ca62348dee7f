import subprocess
from collections.abc import Generator
from pathlib import Path

import pytest

_SCRUBBED_ENV = [
    "OPENAI_API_KEY",
    "SCOMMIT_MODEL",
    "SCOMMIT_LLM_ENDPOINT",
    "SCOMMIT_API_KEY_ENV",
    "SCOMMIT_GIT_REPO_PATH",
    "SCOMMIT_LLM_REQUEST_TIMEOUT",
    "SCOMMIT_MAX_TOKENS",
    "SCOMMIT_AUTO_PUSH",
    "SCOMMIT_USE_AI",
]


@pytest.fixture(autouse=True)
def reset_config(
    monkeypatch: pytest.MonkeyPatch, request: pytest.FixtureRequest
) -> Generator[None, None, None]:
    is_integration = any(
        mark.name == "integration" for mark in request.node.iter_markers()
    )
    for name in _SCRUBBED_ENV:
        if is_integration and name == "OPENAI_API_KEY":
            continue
        monkeypatch.delenv(name, raising=False)
    # Deterministic identity for commits made in temporary repositories
    monkeypatch.setenv("GIT_AUTHOR_NAME", "scommit tests")
    monkeypatch.setenv("GIT_AUTHOR_EMAIL", "tests@example.com")
    monkeypatch.setenv("GIT_COMMITTER_NAME", "scommit tests")
    monkeypatch.setenv("GIT_COMMITTER_EMAIL", "tests@example.com")

    from scommit.config import clear_active_config

    clear_active_config()
    yield
    clear_active_config()


def _git(cwd: Path, *args: str) -> str:
    result = subprocess.run(
        ["git", *args], cwd=cwd, capture_output=True, text=True, check=True
    )
    return result.stdout


@pytest.fixture
def git(tmp_path: Path):
    """Run git inside ``tmp_path``."""

    def run(*args: str) -> str:
        return _git(tmp_path, *args)

    return run


@pytest.fixture
def repo(tmp_path: Path, git, monkeypatch: pytest.MonkeyPatch) -> Path:
    """A repository with one initial commit, checked out at ``tmp_path``."""
    git("init", "-q")
    git("config", "commit.gpgsign", "false")
    (tmp_path / "README.md").write_text("hello\n")
    git("add", "README.md")
    git("commit", "-q", "-m", "chore: init")
    monkeypatch.chdir(tmp_path)
    return tmp_path
