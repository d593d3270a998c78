"""Merge framework hooks into .claude/settings.json and strip them out again."""

from __future__ import annotations

import dataclasses
import json
import os
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from scbkit import layout
from scbkit.errors import AppError, ErrorCode, FileSystemError

STRATEGIC_HOOK_SCRIPTS = frozenset({"block-skip-hooks.py", "notification-hook.py"})
STRATEGIC_HOOK_COMMAND = (
    "/usr/bin/python3 $CLAUDE_PROJECT_DIR/.claude/hooks/strategic/{script}"
)
_STRATEGIC_PATH_MARKER = "/hooks/strategic/"

# Python attribute name -> JSON key, in the order hook types are written.
_HOOK_TYPES = (
    ("pre_tool_use", "PreToolUse"),
    ("post_tool_use", "PostToolUse"),
    ("stop", "Stop"),
    ("pre_compact", "PreCompact"),
    ("notification", "Notification"),
)


def _script_name(command: str) -> str:
    return command.split("/")[-1]


def is_strategic_hook(command: str) -> bool:
    """Return True if ``command`` runs one of the framework's own hook scripts."""
    command = command.strip()
    if _STRATEGIC_PATH_MARKER in command:
        return True
    script = _script_name(command).split()[0] if _script_name(command).split() else ""
    return script in STRATEGIC_HOOK_SCRIPTS


def _require_dict(data: Any, what: str) -> dict[str, Any]:
    if not isinstance(data, dict):
        raise ValueError(f"{what} must be a JSON object")
    return data


def _require_list(data: Any, what: str) -> list[Any]:
    if data is None:
        return []
    if not isinstance(data, list):
        raise ValueError(f"{what} must be a JSON array")
    return data


@dataclass
class HookEntry:
    """A single hook command."""

    type: str = ""
    command: str = ""
    timeout: int | None = None

    @classmethod
    def from_dict(cls, data: Any) -> HookEntry:
        data = _require_dict(data, "hook entry")
        return cls(
            type=data.get("type") or "",
            command=data.get("command") or "",
            timeout=data.get("timeout"),
        )

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"type": self.type, "command": self.command}
        if self.timeout is not None:
            result["timeout"] = self.timeout
        return result


@dataclass
class HookMatcher:
    """Hooks that run for tools matching ``matcher``."""

    matcher: str = ""
    hooks: list[HookEntry] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> HookMatcher:
        data = _require_dict(data, "hook matcher")
        return cls(
            matcher=data.get("matcher") or "",
            hooks=[HookEntry.from_dict(h) for h in _require_list(data.get("hooks"), "hooks")],
        )

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {}
        if self.matcher:
            result["matcher"] = self.matcher
        result["hooks"] = [hook.to_dict() for hook in self.hooks]
        return result


@dataclass
class HooksSection:
    """Hook matchers grouped by hook type."""

    pre_tool_use: list[HookMatcher] = field(default_factory=list)
    post_tool_use: list[HookMatcher] = field(default_factory=list)
    stop: list[HookMatcher] = field(default_factory=list)
    pre_compact: list[HookMatcher] = field(default_factory=list)
    notification: list[HookMatcher] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> HooksSection:
        data = _require_dict(data, "hooks")
        return cls(
            **{
                attr: [HookMatcher.from_dict(m) for m in _require_list(data.get(key), key)]
                for attr, key in _HOOK_TYPES
            }
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            key: [matcher.to_dict() for matcher in getattr(self, attr)]
            for attr, key in _HOOK_TYPES
            if getattr(self, attr)
        }

    def matcher_lists(self) -> list[list[HookMatcher]]:
        """Return the matcher list of every hook type."""
        return [getattr(self, attr) for attr, _ in _HOOK_TYPES]

    def transformed(
        self, transform: Callable[[list[HookMatcher]], list[HookMatcher]]
    ) -> HooksSection:
        """Return a new section with ``transform`` applied to each hook type."""
        return HooksSection(
            **{attr: transform(getattr(self, attr)) for attr, _ in _HOOK_TYPES}
        )


@dataclass
class PermissionsSection:
    """Tool permissions granted to Claude."""

    allow: list[str] = field(default_factory=list)
    additional_directories: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> PermissionsSection:
        data = _require_dict(data, "permissions")
        return cls(
            allow=list(_require_list(data.get("allow"), "allow")),
            additional_directories=list(
                _require_list(data.get("additionalDirectories"), "additionalDirectories")
            ),
        )

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {}
        if self.allow:
            result["allow"] = list(self.allow)
        if self.additional_directories:
            result["additionalDirectories"] = list(self.additional_directories)
        return result


@dataclass
class ClaudeSettings:
    """The parts of .claude/settings.json the toolkit manages."""

    hooks: HooksSection | None = None
    permissions: PermissionsSection | None = None

    @classmethod
    def from_dict(cls, data: Any) -> ClaudeSettings:
        """Build settings from a parsed JSON object."""
        data = _require_dict(data, "settings")
        hooks = data.get("hooks")
        permissions = data.get("permissions")
        return cls(
            hooks=None if hooks is None else HooksSection.from_dict(hooks),
            permissions=None if permissions is None else PermissionsSection.from_dict(permissions),
        )

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON object for these settings."""
        result: dict[str, Any] = {}
        if self.hooks is not None:
            result["hooks"] = self.hooks.to_dict()
        if self.permissions is not None:
            result["permissions"] = self.permissions.to_dict()
        return result


def _normalize_command(command: str) -> str:
    command = command.strip()
    if is_strategic_hook(command):
        return _script_name(command)
    return command


def hook_exists(hooks: list[HookEntry], target: HookEntry) -> bool:
    """Return True if a hook with the same (normalized) command is in ``hooks``."""
    wanted = _normalize_command(target.command)
    return any(_normalize_command(hook.command) == wanted for hook in hooks)


def _merge_hook_type(
    template_matchers: list[HookMatcher], existing_matchers: list[HookMatcher]
) -> list[HookMatcher]:
    by_matcher: dict[str, list[HookEntry]] = {}
    for matcher in existing_matchers:
        by_matcher.setdefault(matcher.matcher, []).extend(
            dataclasses.replace(hook) for hook in matcher.hooks
        )
    for matcher in template_matchers:
        entries = by_matcher.setdefault(matcher.matcher, [])
        for hook in matcher.hooks:
            if not hook_exists(entries, hook):
                entries.append(dataclasses.replace(hook))
    return [HookMatcher(matcher=name, hooks=hooks) for name, hooks in by_matcher.items() if hooks]


def merge_hooks(
    template_hooks: HooksSection | None, existing: ClaudeSettings | None
) -> HooksSection:
    """Merge template hooks into the user's hooks, per hook type and matcher."""
    template_hooks = template_hooks or HooksSection()
    existing_hooks = (
        existing.hooks if existing is not None and existing.hooks is not None else HooksSection()
    )
    return HooksSection(
        **{
            attr: _merge_hook_type(getattr(template_hooks, attr), getattr(existing_hooks, attr))
            for attr, _ in _HOOK_TYPES
        }
    )


def merge_settings(
    template: ClaudeSettings, existing: ClaudeSettings | None
) -> ClaudeSettings:
    """Merge template settings with the user's, keeping the user's permissions."""
    result = ClaudeSettings()
    if template.hooks is not None or (existing is not None and existing.hooks is not None):
        result.hooks = merge_hooks(template.hooks, existing)
    if existing is not None and existing.permissions is not None:
        result.permissions = existing.permissions
    return result


def _update_strategic_hook_paths(settings: ClaudeSettings) -> None:
    if settings.hooks is None:
        return
    for matchers in settings.hooks.matcher_lists():
        for matcher in matchers:
            for hook in matcher.hooks:
                if is_strategic_hook(hook.command):
                    hook.command = STRATEGIC_HOOK_COMMAND.format(
                        script=_script_name(hook.command)
                    )


def _filter_non_strategic(matchers: list[HookMatcher]) -> list[HookMatcher]:
    result = []
    for matcher in matchers:
        kept = [hook for hook in matcher.hooks if not is_strategic_hook(hook.command)]
        if kept:
            result.append(HookMatcher(matcher=matcher.matcher, hooks=kept))
    return result


def remove_strategic_hooks(settings: ClaudeSettings | None) -> ClaudeSettings | None:
    """Return a copy of ``settings`` without framework hooks; permissions are kept."""
    if settings is None:
        return None
    result = ClaudeSettings(permissions=settings.permissions)
    if settings.hooks is not None:
        result.hooks = settings.hooks.transformed(_filter_non_strategic)
    return result


def is_empty_settings(settings: ClaudeSettings | None) -> bool:
    """Return True if ``settings`` hold no permissions and no hooks."""
    if settings is None:
        return True
    permissions = settings.permissions
    if permissions is not None and (permissions.allow or permissions.additional_directories):
        return False
    if settings.hooks is not None and any(settings.hooks.matcher_lists()):
        return False
    return True


def _settings_path(target_dir: str) -> str:
    return os.path.join(target_dir, layout.CLAUDE_DIR, layout.CLAUDE_SETTINGS_FILE)


def _load(path: str) -> ClaudeSettings:
    try:
        with open(path, encoding="utf-8") as handle:
            data = json.load(handle)
    except OSError as exc:
        raise FileSystemError(ErrorCode.FILE_SYSTEM_ERROR, path, exc) from exc
    except ValueError as exc:
        raise AppError(ErrorCode.VALIDATION_FAILED, f"Invalid settings file: {path}", exc) from exc
    try:
        return ClaudeSettings.from_dict(data)
    except ValueError as exc:
        raise AppError(ErrorCode.VALIDATION_FAILED, f"Invalid settings file: {path}", exc) from exc


def _write_file(path: str, data: bytes) -> None:
    try:
        fd = os.open(path, os.O_CREAT | os.O_WRONLY | os.O_TRUNC, layout.FILE_PERMISSIONS)
        with os.fdopen(fd, "wb") as handle:
            handle.write(data)
    except OSError as exc:
        raise FileSystemError(ErrorCode.FILE_SYSTEM_ERROR, path, exc) from exc


def _backup(settings_path: str) -> None:
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    backup_path = os.path.join(
        os.path.dirname(settings_path),
        f"{layout.SETTINGS_BACKUP_PREFIX}{timestamp}.json",
    )
    try:
        with open(settings_path, "rb") as handle:
            data = handle.read()
    except OSError as exc:
        raise FileSystemError(ErrorCode.FILE_SYSTEM_ERROR, settings_path, exc) from exc
    _write_file(backup_path, data)


def _write(settings_path: str, settings: ClaudeSettings) -> None:
    parent = os.path.dirname(settings_path)
    try:
        os.makedirs(parent, mode=layout.DIR_PERMISSIONS, exist_ok=True)
    except OSError as exc:
        raise FileSystemError(ErrorCode.FILE_SYSTEM_ERROR, parent, exc) from exc
    text = json.dumps(settings.to_dict(), indent=2, ensure_ascii=False)
    _write_file(settings_path, text.encode("utf-8"))


def process_settings(target_dir: str) -> None:
    """Merge the framework settings template into .claude/settings.json.

    An existing settings file is backed up first. Does nothing when the
    framework provides no template.
    """
    template_path = os.path.join(
        target_dir, layout.STRATEGIC_DIR, layout.SETTINGS_TEMPLATE_FILE
    )
    settings_path = _settings_path(target_dir)
    if not os.path.exists(template_path):
        return
    template = _load(template_path)
    existing = None
    if os.path.exists(settings_path):
        _backup(settings_path)
        existing = _load(settings_path)
    merged = merge_settings(template, existing)
    _update_strategic_hook_paths(merged)
    _write(settings_path, merged)


def clean_settings(target_dir: str) -> None:
    """Remove framework hooks from .claude/settings.json, deleting it if nothing remains."""
    settings_path = _settings_path(target_dir)
    if not os.path.exists(settings_path):
        return
    _backup(settings_path)
    cleaned = remove_strategic_hooks(_load(settings_path))
    if cleaned is None or is_empty_settings(cleaned):
        try:
            os.remove(settings_path)
        except OSError as exc:
            raise FileSystemError(ErrorCode.FILE_SYSTEM_ERROR, settings_path, exc) from exc
        return
    _write(settings_path, cleaned)