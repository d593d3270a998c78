"""Apply gitignore templates, merging with any existing ignore file."""

from __future__ import annotations

import logging
import os

from scbkit.errors import AppError, ErrorCode, FileSystemError
from scbkit.fsops import FileSystem

HEADER = "# Strategic Claude Basic entries"
_HEADER_MARKER = "# Strategic Claude Basic"

logger = logging.getLogger(__name__)


def read_lines(path: str) -> list[str]:
    """Return the lines of ``path`` without line terminators."""
    with open(path, encoding="utf-8", newline="") as handle:
        text = handle.read()
    if not text:
        return []
    lines = text.split("\n")
    if text.endswith("\n"):
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def merge_gitignore_lines(existing: list[str], template: list[str]) -> list[str]:
    """Merge existing and template lines, dropping blanks, duplicates and old headers.

    Existing lines keep their order and come first; template lines not already
    present follow. Lines are compared with surrounding whitespace removed.
    """
    seen: set[str] = set()
    result: list[str] = []
    for line in existing:
        trimmed = line.strip()
        if trimmed and trimmed not in seen and not trimmed.startswith(_HEADER_MARKER):
            result.append(line)
            seen.add(trimmed)
    for line in template:
        trimmed = line.strip()
        if trimmed and trimmed not in seen:
            result.append(line)
            seen.add(trimmed)
    return result


def write_gitignore(target_path: str, lines: list[str]) -> None:
    """Write ``lines`` to ``target_path`` under the framework header."""
    FileSystem().create_directory(os.path.dirname(target_path) or ".")
    try:
        with open(target_path, "w", encoding="utf-8", newline="") as handle:
            handle.write(HEADER + "\n")
            handle.writelines(line + "\n" for line in lines)
    except OSError as exc:
        raise FileSystemError(ErrorCode.FILE_SYSTEM_ERROR, target_path, exc) from exc


def _merge_into(target_path: str, template_lines: list[str]) -> None:
    try:
        existing = read_lines(target_path)
    except OSError as exc:
        raise FileSystemError(ErrorCode.FILE_SYSTEM_ERROR, target_path, exc) from exc
    try:
        FileSystem().copy_file(target_path, target_path + ".backup")
    except AppError as exc:
        logger.warning("Failed to create backup of .gitignore: %s", exc)
    write_gitignore(target_path, merge_gitignore_lines(existing, template_lines))


def apply_gitignore_template(template_path: str, target_path: str) -> None:
    """Apply a gitignore template to ``target_path``, merging if it already exists.

    A missing template is skipped with a warning.
    """
    if not template_path or not target_path:
        raise AppError(
            ErrorCode.VALIDATION_FAILED,
            "Template and target paths cannot be empty",
        )
    if not os.path.exists(template_path):
        logger.warning("Gitignore template %s not found, skipping", template_path)
        return
    try:
        template_lines = read_lines(template_path)
    except OSError as exc:
        raise FileSystemError(ErrorCode.FILE_SYSTEM_ERROR, template_path, exc) from exc
    if os.path.exists(target_path):
        _merge_into(target_path, template_lines)
    else:
        write_gitignore(target_path, template_lines)