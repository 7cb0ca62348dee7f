import subprocess

import pytest

from scommit.changes import Category, ChangeStatus
from scommit.config import Config
from scommit.exceptions import GitError
from scommit.git import GitRepo, find_git_repo_root


def _bare_repo(tmp_path):
    repo = object.__new__(GitRepo)
    repo.repo_path = tmp_path
    return repo


def test_gitrepo_init_rejects_non_repo(monkeypatch, tmp_path):
    # Given no repository can be found
    monkeypatch.setattr("scommit.git.find_git_repo_root", lambda start=None: None)

    # When/Then
    with pytest.raises(GitError, match="Not a Git repository"):
        GitRepo(str(tmp_path), Config())


def test_run_git_command_success(monkeypatch, tmp_path):
    class _R:
        stdout = "ok\n"

    monkeypatch.setattr(subprocess, "run", lambda *a, **k: _R())
    repo = _bare_repo(tmp_path)

    assert GitRepo._run_git_command(repo, ["status"]) == "ok"
    assert GitRepo._run_git_command(repo, ["status"], strip=False) == "ok\n"


def test_run_git_command_called_process_error(monkeypatch, tmp_path):
    def fake_run(*args, **kwargs):
        raise subprocess.CalledProcessError(1, "git", stderr="bad\n")

    monkeypatch.setattr(subprocess, "run", fake_run)

    with pytest.raises(GitError) as ei:
        GitRepo._run_git_command(_bare_repo(tmp_path), ["x"])
    assert "failed" in str(ei.value)
    assert "bad" in str(ei.value)


def test_run_git_command_file_not_found(monkeypatch, tmp_path):
    def fake_run(*args, **kwargs):
        raise FileNotFoundError()

    monkeypatch.setattr(subprocess, "run", fake_run)

    with pytest.raises(GitError) as ei:
        GitRepo._run_git_command(_bare_repo(tmp_path), ["x"])
    assert "not found" in str(ei.value).lower()


def test_ahead_behind_parses_counts(monkeypatch, tmp_path):
    repo = _bare_repo(tmp_path)
    seen = []

    def fake_cmd(self, args, strip=True):
        seen.append(args)
        return "2\t5"

    monkeypatch.setattr(GitRepo, "_run_git_command", fake_cmd)
    assert repo.ahead_behind("origin/main") == (2, 5)
    assert seen[0] == ["rev-list", "--left-right", "--count", "HEAD...origin/main"]


def test_ahead_behind_empty_output(monkeypatch, tmp_path):
    monkeypatch.setattr(GitRepo, "_run_git_command", lambda self, args, strip=True: "")
    with pytest.raises(GitError, match="Unexpected rev-list output"):
        _bare_repo(tmp_path).ahead_behind("origin/main")


def test_upstream_branch_absent(monkeypatch, tmp_path):
    def failing(self, args, strip=True):
        raise GitError("no upstream configured")

    monkeypatch.setattr(GitRepo, "_run_git_command", failing)
    assert _bare_repo(tmp_path).upstream_branch() is None


def test_commit_omits_blank_body(monkeypatch, tmp_path):
    seen = []
    monkeypatch.setattr(
        GitRepo, "_run_git_command", lambda self, args, strip=True: seen.append(args)
    )
    repo = _bare_repo(tmp_path)
    repo.commit("feat: x", "   \n")
    repo.commit("feat: y", "- body")
    assert seen == [
        ["commit", "-m", "feat: x"],
        ["commit", "-m", "feat: y", "-m", "- body"],
    ]


def test_diff_excerpt_is_cut(monkeypatch, tmp_path):
    monkeypatch.setattr(
        GitRepo, "_run_git_command", lambda self, args, strip=True: "x" * 5000
    )
    assert len(_bare_repo(tmp_path).get_diff_excerpt(4000)) == 4000


# ----------------------------------------------------------------------
# Against a real repository
# ----------------------------------------------------------------------
def test_find_git_repo_root(repo):
    nested = repo / "a" / "b"
    nested.mkdir(parents=True)
    assert find_git_repo_root(nested).resolve() == repo.resolve()


def test_staged_changes_roundtrip(repo, git):
    repo_obj = GitRepo(str(repo), Config(git_repo_path=str(repo)))
    assert repo_obj.has_staged_changes() is False
    assert repo_obj.get_recent_subjects() == ["chore: init"]

    (repo / "README.md").write_text("hello\nworld\n")
    (repo / "app.py").write_text("print('hi')\n")
    git("mv", "README.md", "GUIDE.md")
    repo_obj.stage_all()

    assert repo_obj.has_staged_changes() is True
    changes = {c.path: c for c in repo_obj.collect_staged_changes()}
    assert changes["app.py"].status is ChangeStatus.ADDED
    assert changes["app.py"].category is Category.CODE
    assert (changes["app.py"].added, changes["app.py"].deleted) == (1, 0)
    assert "app.py" in repo_obj.get_diff_stat()
    assert "+print('hi')" in repo_obj.get_diff_excerpt()

    repo_obj.commit("feat: add app", "- body line")
    assert repo_obj.get_recent_subjects(1) == ["feat: add app"]
    assert repo_obj.upstream_branch() is None


def test_recent_subjects_empty_history(tmp_path, git):
    git("init", "-q")
    repo_obj = GitRepo(str(tmp_path), Config(git_repo_path=str(tmp_path)))
    assert repo_obj.get_recent_subjects() == []
