"""Error types raised by the toolkit."""

from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    """Machine-readable classification of a failure."""

    VALIDATION_FAILED = "VALIDATION_FAILED"
    INVALID_PATH = "INVALID_PATH"
    FILE_ALREADY_EXISTS = "FILE_ALREADY_EXISTS"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    FILE_SYSTEM_ERROR = "FILE_SYSTEM_ERROR"
    DIRECTORY_NOT_FOUND = "DIRECTORY_NOT_FOUND"
    SYMLINK_CREATION_FAILED = "SYMLINK_CREATION_FAILED"
    GIT_NOT_FOUND = "GIT_NOT_FOUND"
    GIT_CLONE_ERROR = "GIT_CLONE_ERROR"
    GIT_CHECKOUT_ERROR = "GIT_CHECKOUT_ERROR"
    GIT_ERROR = "GIT_ERROR"
    GIT_COMMIT_NOT_FOUND = "GIT_COMMIT_NOT_FOUND"
    NOT_INSTALLED = "NOT_INSTALLED"
    INSTALLATION_FAILED = "INSTALLATION_FAILED"


class AppError(Exception):
    """An application error carrying an error code and an optional cause."""

    def __init__(
        self, code: ErrorCode, message: str, cause: BaseException | None = None
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        text = f"[{self.code.value}] {self.message}"
        if self.cause is not None:
            text += f": {self.cause}"
        return text


class FileSystemError(AppError):
    """A file system failure tied to a specific path."""

    def __init__(
        self, code: ErrorCode, path: str, cause: BaseException | None = None
    ) -> None:
        super().__init__(code, f"File system error at {path}", cause)
        self.path = path


def is_error_code(err: BaseException | None, code: ErrorCode) -> bool:
    """Return True if ``err`` or any error it was raised from carries ``code``."""
    seen: set[int] = set()
    while err is not None and id(err) not in seen:
        seen.add(id(err))
        if isinstance(err, AppError) and err.code == code:
            return True
        err = err.__cause__
    return False