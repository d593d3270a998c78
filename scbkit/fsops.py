"""File system operations for installing and maintaining the framework."""

from __future__ import annotations

import os
import shutil
import stat
from datetime import datetime

from scbkit import layout
from scbkit.errors import AppError, ErrorCode, FileSystemError


def _os_error(path: str, exc: OSError) -> FileSystemError:
    if isinstance(exc, PermissionError):
        return FileSystemError(ErrorCode.PERMISSION_DENIED, path, exc)
    return FileSystemError(ErrorCode.FILE_SYSTEM_ERROR, path, exc)


def _remove_tree(path: str) -> None:
    try:
        if os.path.islink(path) or not os.path.isdir(path):
            os.remove(path)
        else:
            shutil.rmtree(path)
    except OSError as exc:
        raise _os_error(path, exc) from exc


class FileSystem:
    """Directory, file and path operations with safety checks."""

    def create_directory(self, path: str) -> None:
        """Create ``path`` and its parents; succeed if it is already a directory."""
        if not path:
            raise AppError(ErrorCode.VALIDATION_FAILED, "Directory path cannot be empty")
        abs_path = os.path.abspath(path)
        if os.path.exists(abs_path):
            if os.path.isdir(abs_path):
                return
            raise FileSystemError(
                ErrorCode.FILE_ALREADY_EXISTS,
                abs_path,
                FileExistsError("path exists but is not a directory"),
            )
        try:
            os.makedirs(abs_path, mode=layout.DIR_PERMISSIONS, exist_ok=True)
        except OSError as exc:
            raise _os_error(abs_path, exc) from exc

    def remove_strategic_dir(self, target_dir: str) -> None:
        """Remove only the framework directory inside ``target_dir``."""
        if not target_dir:
            raise AppError(ErrorCode.VALIDATION_FAILED, "Target directory cannot be empty")
        abs_path = os.path.abspath(os.path.join(target_dir, layout.STRATEGIC_DIR))
        if not abs_path.endswith(layout.STRATEGIC_DIR):
            raise AppError(
                ErrorCode.VALIDATION_FAILED,
                f"Path does not end with expected directory name: {abs_path}",
            )
        if not os.path.lexists(abs_path):
            return
        _remove_tree(abs_path)

    def remove_symlinks(self, target_dir: str) -> None:
        """Remove the known framework symlinks from the .claude directory."""
        if not target_dir:
            raise AppError(ErrorCode.VALIDATION_FAILED, "Target directory cannot be empty")
        claude_dir = os.path.join(target_dir, layout.CLAUDE_DIR)
        for link in layout.required_symlinks():
            full_path = os.path.join(claude_dir, link)
            if not os.path.lexists(full_path):
                continue
            try:
                if os.path.isdir(full_path) and not os.path.islink(full_path):
                    os.rmdir(full_path)
                else:
                    os.remove(full_path)
            except OSError as exc:
                raise _os_error(full_path, exc) from exc

    def remove_backup(self, target_dir: str, backup_name: str) -> None:
        """Remove a backup directory directly under ``target_dir``."""
        if not target_dir or not backup_name:
            raise AppError(
                ErrorCode.VALIDATION_FAILED,
                "Target directory and backup name cannot be empty",
            )
        if not backup_name.startswith(layout.BACKUP_DIR_PREFIX):
            raise AppError(
                ErrorCode.VALIDATION_FAILED,
                f"Backup name must start with {layout.BACKUP_DIR_PREFIX}, got: {backup_name}",
            )
        abs_path = os.path.abspath(os.path.join(target_dir, backup_name))
        if os.path.dirname(abs_path) != os.path.abspath(target_dir):
            raise AppError(
                ErrorCode.VALIDATION_FAILED,
                f"Backup path is not in expected parent directory: {abs_path}",
            )
        if not os.path.lexists(abs_path):
            return
        _remove_tree(abs_path)

    def backup_directory(self, source_path: str, backup_path: str) -> None:
        """Copy ``source_path`` to a backup location that must not yet exist."""
        if not source_path or not backup_path:
            raise AppError(
                ErrorCode.VALIDATION_FAILED, "Source and backup paths cannot be empty"
            )
        source_abs = os.path.abspath(source_path)
        backup_abs = os.path.abspath(backup_path)
        try:
            info = os.stat(source_abs)
        except FileNotFoundError as exc:
            raise FileSystemError(ErrorCode.DIRECTORY_NOT_FOUND, source_abs, exc) from exc
        except OSError as exc:
            raise FileSystemError(ErrorCode.FILE_SYSTEM_ERROR, source_abs, exc) from exc
        if not stat.S_ISDIR(info.st_mode):
            raise AppError(
                ErrorCode.VALIDATION_FAILED,
                f"Source path is not a directory: {source_abs}",
            )
        if os.path.exists(backup_abs):
            raise FileSystemError(
                ErrorCode.FILE_ALREADY_EXISTS,
                backup_abs,
                FileExistsError("backup directory already exists"),
            )
        self.copy_directory(source_abs, backup_abs)

    def ensure_directory_structure(self, target_dir: str) -> None:
        """Create the framework directory tree under ``target_dir``."""
        strategic_dir = os.path.join(target_dir, layout.STRATEGIC_DIR)
        self.create_directory(strategic_dir)
        for name in layout.framework_directories():
            self.create_directory(os.path.join(strategic_dir, name))
        for name in layout.user_preserved_directories():
            self.create_directory(os.path.join(strategic_dir, name))
        core_dir = os.path.join(strategic_dir, layout.CORE_DIR)
        for sub in (layout.AGENTS_DIR, layout.COMMANDS_DIR, layout.HOOKS_DIR):
            self.create_directory(os.path.join(core_dir, sub))

    def copy_file(self, source_path: str, dest_path: str) -> None:
        """Copy one file, creating parent directories and keeping its mode."""
        if not source_path or not dest_path:
            raise AppError(
                ErrorCode.VALIDATION_FAILED,
                "Source and destination paths cannot be empty",
            )
        try:
            source = open(source_path, "rb")
        except FileNotFoundError as exc:
            raise FileSystemError(ErrorCode.DIRECTORY_NOT_FOUND, source_path, exc) from exc
        except OSError as exc:
            raise _os_error(source_path, exc) from exc
        with source:
            try:
                mode = stat.S_IMODE(os.fstat(source.fileno()).st_mode)
            except OSError as exc:
                raise FileSystemError(ErrorCode.FILE_SYSTEM_ERROR, source_path, exc) from exc
            self.create_directory(os.path.dirname(dest_path) or ".")
            try:
                dest = open(dest_path, "wb")
            except OSError as exc:
                raise _os_error(dest_path, exc) from exc
            with dest:
                try:
                    shutil.copyfileobj(source, dest)
                except OSError as exc:
                    raise FileSystemError(ErrorCode.FILE_SYSTEM_ERROR, dest_path, exc) from exc
        try:
            os.chmod(dest_path, mode)
        except OSError as exc:
            raise FileSystemError(ErrorCode.PERMISSION_DENIED, dest_path, exc) from exc

    def copy_directory(self, source_path: str, dest_path: str) -> None:
        """Copy a directory tree, recreating symlinks rather than following them."""
        if not source_path or not dest_path:
            raise AppError(
                ErrorCode.VALIDATION_FAILED,
                "Source and destination paths cannot be empty",
            )
        try:
            info = os.stat(source_path)
        except FileNotFoundError as exc:
            raise FileSystemError(ErrorCode.DIRECTORY_NOT_FOUND, source_path, exc) from exc
        except OSError as exc:
            raise FileSystemError(ErrorCode.FILE_SYSTEM_ERROR, source_path, exc) from exc
        if not stat.S_ISDIR(info.st_mode):
            raise AppError(
                ErrorCode.VALIDATION_FAILED,
                f"Source path is not a directory: {source_path}",
            )
        self.create_directory(dest_path)
        try:
            os.chmod(dest_path, stat.S_IMODE(info.st_mode))
        except OSError as exc:
            raise FileSystemError(ErrorCode.PERMISSION_DENIED, dest_path, exc) from exc
        self._copy_tree(source_path, dest_path)

    def _copy_tree(self, source: str, dest: str) -> None:
        try:
            entries = sorted(os.scandir(source), key=lambda entry: entry.name)
        except OSError as exc:
            raise FileSystemError(ErrorCode.FILE_SYSTEM_ERROR, source, exc) from exc
        for entry in entries:
            target = os.path.join(dest, entry.name)
            if entry.is_symlink():
                try:
                    link_target = os.readlink(entry.path)
                except OSError as exc:
                    raise FileSystemError(ErrorCode.FILE_SYSTEM_ERROR, entry.path, exc) from exc
                try:
                    os.symlink(link_target, target)
                except OSError as exc:
                    raise FileSystemError(
                        ErrorCode.SYMLINK_CREATION_FAILED, target, exc
                    ) from exc
            elif entry.is_dir(follow_symlinks=False):
                try:
                    mode = stat.S_IMODE(entry.stat(follow_symlinks=False).st_mode)
                    os.makedirs(target, mode=mode, exist_ok=True)
                except OSError as exc:
                    raise FileSystemError(ErrorCode.FILE_SYSTEM_ERROR, target, exc) from exc
                self._copy_tree(entry.path, target)
            else:
                self.copy_file(entry.path, target)

    def copy_framework_files(self, source_dir: str, dest_dir: str) -> None:
        """Replace the framework directories in ``dest_dir`` with those in ``source_dir``."""
        framework = layout.core_directories()
        for name in framework:
            source_path = os.path.join(source_dir, name)
            dest_path = os.path.join(dest_dir, name)
            if not os.path.exists(source_path):
                continue
            if os.path.exists(dest_path):
                if os.path.basename(dest_path) not in framework:
                    raise AppError(
                        ErrorCode.VALIDATION_FAILED,
                        f"Refusing to remove unexpected directory: {dest_path}",
                    )
                _remove_tree(dest_path)
            self.copy_directory(source_path, dest_path)

    def preserve_user_content(self, target_dir: str) -> None:
        """Create missing user directories without touching existing ones."""
        strategic_dir = os.path.join(target_dir, layout.STRATEGIC_DIR)
        for name in layout.user_preserved_directories():
            path = os.path.join(strategic_dir, name)
            if not os.path.exists(path):
                self.create_directory(path)

    def is_sub_path(self, parent_path: str, child_path: str) -> bool:
        """Return True if ``child_path`` is ``parent_path`` or lies inside it."""
        parent = os.path.normpath(os.path.abspath(parent_path))
        child = os.path.normpath(os.path.abspath(child_path))
        return child == parent or child.startswith(parent.rstrip(os.sep) + os.sep)

    def relative_path(self, base_path: str, target_path: str) -> str:
        """Return the path of ``target_path`` relative to ``base_path``."""
        base = os.path.abspath(base_path)
        target = os.path.abspath(target_path)
        try:
            return os.path.relpath(target, base)
        except ValueError as exc:
            raise FileSystemError(ErrorCode.FILE_SYSTEM_ERROR, target_path, exc) from exc

    def set_file_permissions(self, path: str) -> None:
        """Apply the standard file mode to ``path``."""
        os.chmod(path, layout.FILE_PERMISSIONS)

    def set_directory_permissions(self, path: str) -> None:
        """Apply the standard directory mode to ``path``."""
        os.chmod(path, layout.DIR_PERMISSIONS)

    def check_write_permission(self, path: str) -> None:
        """Raise unless ``path`` is an existing, writable directory."""
        abs_path = os.path.abspath(path)
        if not os.path.exists(abs_path):
            raise FileSystemError(
                ErrorCode.DIRECTORY_NOT_FOUND,
                abs_path,
                FileNotFoundError("directory does not exist"),
            )
        if not os.path.isdir(abs_path):
            raise AppError(
                ErrorCode.VALIDATION_FAILED, f"Path is not a directory: {abs_path}"
            )
        if not os.access(abs_path, os.W_OK):
            raise FileSystemError(
                ErrorCode.PERMISSION_DENIED,
                abs_path,
                PermissionError("directory is not writable"),
            )

    def backup_path(self, target_dir: str) -> str:
        """Return a timestamped backup directory path inside ``target_dir``."""
        timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
        return os.path.join(target_dir, f"{layout.BACKUP_DIR_PREFIX}{timestamp}")