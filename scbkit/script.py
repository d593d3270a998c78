"""Copy, run and remove install scripts shipped with a template."""

from __future__ import annotations

import os
import shutil
import subprocess

from scbkit.errors import AppError, ErrorCode, FileSystemError

_SCRIPT_MODE = 0o755


def _exists(path: str) -> bool:
    try:
        os.stat(path)
    except FileNotFoundError:
        return False
    except OSError as exc:
        raise FileSystemError(ErrorCode.FILE_SYSTEM_ERROR, path, exc) from exc
    return True


def copy_script(source_dir: str, target_dir: str, script_name: str) -> None:
    """Copy a script into ``target_dir``; a missing source script is ignored."""
    if not source_dir or not target_dir or not script_name:
        raise AppError(
            ErrorCode.VALIDATION_FAILED,
            "Source directory, target directory, and script name cannot be empty",
        )
    source_path = os.path.join(source_dir, script_name)
    if not _exists(source_path):
        return
    target_path = os.path.join(target_dir, script_name)
    try:
        source = open(source_path, "rb")
    except OSError as exc:
        raise FileSystemError(ErrorCode.FILE_SYSTEM_ERROR, source_path, exc) from exc
    with source:
        try:
            fd = os.open(target_path, os.O_CREAT | os.O_WRONLY | os.O_TRUNC, _SCRIPT_MODE)
        except OSError as exc:
            raise FileSystemError(ErrorCode.FILE_SYSTEM_ERROR, target_path, exc) from exc
        with os.fdopen(fd, "wb") as target:
            try:
                shutil.copyfileobj(source, target)
            except OSError as exc:
                raise FileSystemError(ErrorCode.FILE_SYSTEM_ERROR, target_path, exc) from exc


def execute_script(target_dir: str, script_name: str) -> None:
    """Run a script with bash from inside ``target_dir``; a missing script is ignored."""
    if not target_dir or not script_name:
        raise AppError(
            ErrorCode.VALIDATION_FAILED,
            "Target directory and script name cannot be empty",
        )
    path = os.path.join(target_dir, script_name)
    if not _exists(path):
        return
    try:
        os.chmod(path, _SCRIPT_MODE)
    except OSError as exc:
        raise FileSystemError(ErrorCode.PERMISSION_DENIED, path, exc) from exc
    try:
        subprocess.run(["bash", path], cwd=target_dir, check=True)
    except (OSError, subprocess.CalledProcessError) as exc:
        raise AppError(
            ErrorCode.INSTALLATION_FAILED,
            f"Script execution failed: {script_name}",
            exc,
        ) from exc


def remove_script(target_dir: str, script_name: str) -> None:
    """Delete a script from ``target_dir``; a missing script is ignored."""
    if not target_dir or not script_name:
        raise AppError(
            ErrorCode.VALIDATION_FAILED,
            "Target directory and script name cannot be empty",
        )
    path = os.path.join(target_dir, script_name)
    if not _exists(path):
        return
    try:
        os.remove(path)
    except OSError as exc:
        raise FileSystemError(ErrorCode.FILE_SYSTEM_ERROR, path, exc) from exc


def script_exists(source_dir: str, script_name: str) -> bool:
    """Return True if the script is present in ``source_dir``."""
    if not source_dir or not script_name:
        return False
    try:
        os.stat(os.path.join(source_dir, script_name))
    except OSError:
        return False
    return True


def script_path(target_dir: str, script_name: str) -> str:
    """Return the script's full path, or an empty string if either part is empty."""
    if not target_dir or not script_name:
        return ""
    return os.path.join(target_dir, script_name)