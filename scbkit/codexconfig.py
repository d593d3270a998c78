"""Manage the Codex configuration file copied from the framework template."""

from __future__ import annotations

import glob
import os
import stat
from datetime import datetime

from scbkit import layout
from scbkit.errors import AppError, ErrorCode, FileSystemError


def _config_path(target_dir: str) -> str:
    return os.path.join(target_dir, layout.CODEX_DIR, layout.CODEX_CONFIG_FILE)


def _copy_bytes(source: str, dest: str) -> None:
    try:
        with open(source, "rb") as handle:
            data = handle.read()
        fd = os.open(dest, os.O_CREAT | os.O_WRONLY | os.O_TRUNC, layout.FILE_PERMISSIONS)
        with os.fdopen(fd, "wb") as handle:
            handle.write(data)
    except OSError as exc:
        raise FileSystemError(ErrorCode.FILE_SYSTEM_ERROR, dest, exc) from exc


def _backup_existing(config_path: str) -> None:
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    backup = os.path.join(
        os.path.dirname(config_path),
        f"{layout.CODEX_CONFIG_BACKUP_PREFIX}{timestamp}.toml",
    )
    _copy_bytes(config_path, backup)


def process_codex_config(target_dir: str) -> None:
    """Install the Codex config from the template, backing up any existing one.

    Does nothing when the framework provides no template.
    """
    strategic_dir = os.path.join(target_dir, layout.STRATEGIC_DIR)
    codex_dir = os.path.join(target_dir, layout.CODEX_DIR)
    config_path = os.path.join(codex_dir, layout.CODEX_CONFIG_FILE)
    template_path = os.path.join(strategic_dir, layout.CODEX_CONFIG_TEMPLATE_FILE)

    if not os.path.exists(template_path):
        return
    try:
        os.makedirs(codex_dir, mode=layout.DIR_PERMISSIONS, exist_ok=True)
    except OSError as exc:
        raise FileSystemError(ErrorCode.FILE_SYSTEM_ERROR, codex_dir, exc) from exc
    if os.path.exists(config_path):
        _backup_existing(config_path)
    _copy_bytes(template_path, config_path)


def remove_codex_config(target_dir: str) -> None:
    """Remove the Codex config and its backups; failed backup removals only warn."""
    codex_dir = os.path.join(target_dir, layout.CODEX_DIR)
    config_path = os.path.join(codex_dir, layout.CODEX_CONFIG_FILE)
    if os.path.exists(config_path):
        try:
            os.remove(config_path)
        except OSError as exc:
            raise FileSystemError(ErrorCode.FILE_SYSTEM_ERROR, config_path, exc) from exc
    pattern = os.path.join(
        glob.escape(codex_dir), f"{layout.CODEX_CONFIG_BACKUP_PREFIX}*.toml"
    )
    for backup in sorted(glob.glob(pattern)):
        try:
            os.remove(backup)
        except OSError as exc:
            print(f"Warning: Failed to remove backup file {backup}: {exc}")


def validate_codex_config(target_dir: str) -> None:
    """Raise unless the Codex config exists, is a regular file and is readable."""
    config_path = _config_path(target_dir)
    try:
        info = os.stat(config_path)
    except FileNotFoundError as exc:
        raise AppError(
            ErrorCode.VALIDATION_FAILED, "Codex config.toml file does not exist"
        ) from exc
    except OSError as exc:
        raise FileSystemError(ErrorCode.FILE_SYSTEM_ERROR, config_path, exc) from exc
    if not stat.S_ISREG(info.st_mode):
        raise AppError(
            ErrorCode.VALIDATION_FAILED,
            "config.toml exists but is not a regular file",
        )
    try:
        with open(config_path, "rb") as handle:
            handle.read()
    except OSError as exc:
        raise FileSystemError(ErrorCode.FILE_SYSTEM_ERROR, config_path, exc) from exc