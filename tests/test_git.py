import os
import subprocess
import tempfile
from unittest import mock

import pytest

from scbkit import layout
from scbkit.errors import AppError, ErrorCode, is_error_code
from scbkit.git import GitClient


def _git(cwd, *args):
    completed = subprocess.run(
        [
            "git",
            "-c",
            "user.email=test@example.com",
            "-c",
            "user.name=Test User",
            "-c",
            "commit.gpgsign=false",
            *args,
        ],
        cwd=cwd,
        check=True,
        capture_output=True,
        text=True,
    )
    return completed.stdout.strip()


@pytest.fixture
def work_dir(tmp_path, monkeypatch):
    work = tmp_path / "work"
    work.mkdir()
    monkeypatch.setattr(tempfile, "tempdir", str(work))
    monkeypatch.setenv("GIT_CEILING_DIRECTORIES", str(tmp_path))
    return work


@pytest.fixture
def source_repo(tmp_path, work_dir):
    repo = tmp_path / "source"
    repo.mkdir()
    _git(repo, "init", "-q")
    (repo / "test.txt").write_text("first\n")
    _git(repo, "add", "test.txt")
    _git(repo, "commit", "-q", "-m", "first")
    first = _git(repo, "rev-parse", "HEAD")
    (repo / "test.txt").write_text("second\n")
    _git(repo, "commit", "-q", "-am", "second")
    second = _git(repo, "rev-parse", "HEAD")
    return repo, first, second


def test_validate_git_missing_from_path(tmp_path, monkeypatch):
    empty = tmp_path / "empty-bin"
    empty.mkdir()
    monkeypatch.setenv("PATH", str(empty))
    client = GitClient()
    with pytest.raises(AppError) as info:
        client.validate_git_installed()
    assert info.value.code == ErrorCode.GIT_NOT_FOUND
    with pytest.raises(AppError) as info:
        client.clone_repository("https://example.com/repo.git", "abc123")
    assert is_error_code(info.value, ErrorCode.GIT_NOT_FOUND)


def test_validate_git_found_on_path(tmp_path, monkeypatch):
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    fake = bin_dir / "git"
    fake.write_text("#!/bin/sh\nexit 0\n")
    fake.chmod(0o755)
    monkeypatch.setenv("PATH", str(bin_dir))
    assert GitClient().validate_git_installed() == str(fake)


def test_timeout_is_kept():
    assert GitClient(timeout=12.5).timeout == 12.5


def test_cleanup_empty_path_is_noop(tmp_path):
    assert GitClient().cleanup_temp_dir("") is None
    assert list(tmp_path.iterdir()) == []


def test_cleanup_valid_temp_directory(tmp_path):
    target = tmp_path / (layout.TEMP_DIR_PREFIX + "test123")
    (target / "nested").mkdir(parents=True)
    (target / "nested" / "file.txt").write_text("x")
    GitClient().cleanup_temp_dir(str(target))
    assert not target.exists()


def test_cleanup_missing_temp_directory(tmp_path):
    target = tmp_path / (layout.TEMP_DIR_PREFIX + "gone")
    GitClient().cleanup_temp_dir(str(target))
    assert not target.exists()


def test_cleanup_refuses_non_temp_directory(tmp_path):
    target = tmp_path / "documents"
    target.mkdir()
    with pytest.raises(AppError) as info:
        GitClient().cleanup_temp_dir(str(target))
    assert info.value.code == ErrorCode.VALIDATION_FAILED
    assert target.is_dir()


def test_clone_checks_out_requested_commit(source_repo, work_dir):
    repo, first, _second = source_repo
    client = GitClient()
    clone = client.clone_repository(str(repo), first)
    try:
        assert os.path.basename(clone).startswith(layout.TEMP_DIR_PREFIX)
        assert os.path.isdir(os.path.join(clone, ".git"))
        with open(os.path.join(clone, "test.txt")) as handle:
            assert handle.read() == "first\n"
        info = client.repo_info(clone)
        assert info["commit"] == first
        assert info["remote_url"] == str(repo)
        assert client.is_valid_commit(clone, first) is None
    finally:
        client.cleanup_temp_dir(clone)
    assert not os.path.exists(clone)


def test_clone_specific_branch(source_repo, work_dir):
    repo, _first, second = source_repo
    _git(repo, "branch", "feature")
    client = GitClient()
    clone = client.clone_repository(str(repo), second, branch="feature")
    try:
        assert client.repo_info(clone)["commit"] == second
        with open(os.path.join(clone, "test.txt")) as handle:
            assert handle.read() == "second\n"
    finally:
        client.cleanup_temp_dir(clone)


def test_clone_unknown_commit_fails_and_cleans_up(source_repo, work_dir):
    repo, _first, _second = source_repo
    with pytest.raises(AppError) as info:
        GitClient().clone_repository(str(repo), "0" * 40)
    assert info.value.code == ErrorCode.GIT_CHECKOUT_ERROR
    assert list(work_dir.iterdir()) == []


def test_clone_failure_message_names_branch(tmp_path, work_dir):
    missing = str(tmp_path / "no-such-repo")
    with mock.patch("scbkit.git.time.sleep"):
        with pytest.raises(AppError) as info:
            GitClient().clone_repository(missing, "abc123", branch="dev")
    assert "(branch: dev)" in info.value.message


def test_clone_empty_url_fails(work_dir):
    with mock.patch("scbkit.git.time.sleep"):
        with pytest.raises(AppError) as info:
            GitClient().clone_repository("", "abc123")
    assert info.value.code == ErrorCode.GIT_CLONE_ERROR


def test_repo_info_on_non_git_directory(tmp_path, work_dir):
    plain = tmp_path / "plain"
    plain.mkdir()
    with pytest.raises(AppError) as info:
        GitClient().repo_info(str(plain))
    assert info.value.code == ErrorCode.GIT_ERROR


def test_is_valid_commit_rejects_unknown_hash(source_repo):
    repo, _first, _second = source_repo
    with pytest.raises(AppError) as info:
        GitClient().is_valid_commit(str(repo), "invalid_commit_hash")
    assert is_error_code(info.value, ErrorCode.GIT_COMMIT_NOT_FOUND)