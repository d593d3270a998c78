"""Clone framework templates with git and inspect the resulting checkouts."""

from __future__ import annotations

import contextlib
import os
import shutil
import subprocess
import tempfile
import time
from collections.abc import Sequence

from scbkit import layout
from scbkit.errors import AppError, ErrorCode

DEFAULT_TIMEOUT = 300.0
_CLONE_ATTEMPTS = 3

_GitFailure = (OSError, subprocess.SubprocessError)


class GitClient:
    """Runs git commands needed to fetch and inspect a template repository."""

    def __init__(self, timeout: float = DEFAULT_TIMEOUT) -> None:
        self.timeout = timeout

    def _run(
        self, args: Sequence[str], cwd: str | None = None, capture: bool = False
    ) -> str:
        completed = subprocess.run(
            ["git", *args],
            cwd=cwd,
            check=True,
            stdout=subprocess.PIPE if capture else subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            timeout=self.timeout,
            text=True,
        )
        return completed.stdout.strip() if capture else ""

    def validate_git_installed(self) -> str:
        """Return the path of the git executable, raising if it is not on PATH."""
        path = shutil.which("git")
        if path is None:
            raise AppError(
                ErrorCode.GIT_NOT_FOUND,
                "Git is not installed or not available in PATH",
                FileNotFoundError("git"),
            )
        return path

    def clone_repository(self, url: str, commit: str, branch: str = "") -> str:
        """Clone ``url`` into a new temporary directory and check out ``commit``.

        The clone is tried up to three times. Returns the temporary directory,
        which the caller removes with :meth:`cleanup_temp_dir`.
        """
        self.validate_git_installed()
        try:
            temp_dir = tempfile.mkdtemp(prefix=layout.TEMP_DIR_PREFIX)
        except OSError as exc:
            raise AppError(
                ErrorCode.FILE_SYSTEM_ERROR,
                "Failed to create temporary directory",
                exc,
            ) from exc

        args = ["clone", "-b", branch, url, temp_dir] if branch else ["clone", url, temp_dir]
        last_error: BaseException | None = None
        for attempt in range(1, _CLONE_ATTEMPTS + 1):
            try:
                self._run(args)
            except _GitFailure as exc:
                last_error = exc
                if attempt < _CLONE_ATTEMPTS:
                    time.sleep(attempt)
            else:
                break
        else:
            self._discard(temp_dir)
            branch_info = f" (branch: {branch})" if branch else ""
            raise AppError(
                ErrorCode.GIT_CLONE_ERROR,
                f"Failed to clone repository {url}{branch_info} "
                f"after {_CLONE_ATTEMPTS} attempts",
                last_error,
            ) from last_error

        try:
            self._run(["checkout", commit], cwd=temp_dir)
        except _GitFailure as exc:
            self._discard(temp_dir)
            raise AppError(
                ErrorCode.GIT_CHECKOUT_ERROR,
                f"Failed to checkout commit {commit}",
                exc,
            ) from exc
        return temp_dir

    def _discard(self, path: str) -> None:
        with contextlib.suppress(AppError):
            self.cleanup_temp_dir(path)

    def cleanup_temp_dir(self, path: str) -> None:
        """Remove a temporary checkout; refuses paths that are not temp directories."""
        if not path:
            return
        if layout.TEMP_DIR_PREFIX not in path:
            raise AppError(
                ErrorCode.VALIDATION_FAILED,
                "Refusing to delete directory that doesn't appear to be a temp "
                f"directory: {path}",
            )
        try:
            if os.path.islink(path) or os.path.isfile(path):
                os.remove(path)
            else:
                shutil.rmtree(path)
        except FileNotFoundError:
            return
        except OSError as exc:
            raise AppError(
                ErrorCode.FILE_SYSTEM_ERROR,
                f"Failed to clean up temporary directory: {path}",
                exc,
            ) from exc

    def repo_info(self, repo_path: str) -> dict[str, str]:
        """Return the checked-out commit and the origin URL of a repository."""
        try:
            commit = self._run(["rev-parse", "HEAD"], cwd=repo_path, capture=True)
        except _GitFailure as exc:
            raise AppError(
                ErrorCode.GIT_ERROR, "Failed to get current commit hash", exc
            ) from exc
        try:
            remote_url = self._run(
                ["config", "--get", "remote.origin.url"], cwd=repo_path, capture=True
            )
        except _GitFailure as exc:
            raise AppError(ErrorCode.GIT_ERROR, "Failed to get remote URL", exc) from exc
        return {"commit": commit, "remote_url": remote_url}

    def is_valid_commit(self, repo_path: str, commit: str) -> None:
        """Raise unless ``commit`` names an object present in the repository."""
        try:
            self._run(["cat-file", "-e", commit], cwd=repo_path)
        except _GitFailure as exc:
            raise AppError(
                ErrorCode.GIT_COMMIT_NOT_FOUND,
                f"Commit {commit} not found in repository",
                exc,
            ) from exc