"""Install MCP server definitions from framework templates into .mcp.json."""

from __future__ import annotations

import json
import os
from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from scbkit import layout
from scbkit.errors import AppError, ErrorCode, FileSystemError

MCP_FILE = ".mcp.json"
MCP_TEMPLATES_SUBDIR = "mcps"
TEMPLATE_SUFFIX = ".mcp.json"
BASE_TEMPLATE = "template.mcp.json"
BACKUP_PREFIX = ".mcp-backup-"

_FILE_MODE = 0o600
_SKIPPED_NAMES = {".gitkeep", BASE_TEMPLATE}
_KNOWN_KEYS = ("type", "command", "args", "env", "url", "headers")


@dataclass
class MCPServer:
    """Configuration of one MCP server as stored in .mcp.json."""

    command: str = ""
    args: list[str] = field(default_factory=list)
    env: dict[str, str] = field(default_factory=dict)
    type: str = ""
    url: str = ""
    headers: dict[str, str] = field(default_factory=dict)
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> MCPServer:
        """Build a server from its JSON object, keeping unknown keys in ``extra``."""
        if not isinstance(data, dict):
            raise ValueError("MCP server configuration must be a JSON object")
        return cls(
            command=data.get("command") or "",
            args=list(data.get("args") or []),
            env=dict(data.get("env") or {}),
            type=data.get("type") or "",
            url=data.get("url") or "",
            headers=dict(data.get("headers") or {}),
            extra={k: v for k, v in data.items() if k not in _KNOWN_KEYS},
        )

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON object for this server, omitting empty fields."""
        values = {
            "type": self.type,
            "command": self.command,
            "args": self.args,
            "env": self.env,
            "url": self.url,
            "headers": self.headers,
        }
        result = {key: value for key, value in values.items() if value}
        result.update(self.extra)
        return result


@dataclass
class MCPTemplate:
    """An MCP server template found in the framework templates."""

    name: str
    file_name: str
    server: MCPServer


@dataclass
class MCPInstallationPlan:
    """What an MCP installation will read, back up and write."""

    target_dir: str
    selected_mcps: list[MCPTemplate]
    has_existing_mcp: bool
    existing_mcp_path: str
    backup_path: str
    templates_dir: str

    def validate(self) -> None:
        """Raise if the plan cannot be carried out."""
        if not self.target_dir:
            raise AppError(ErrorCode.VALIDATION_FAILED, "Target directory cannot be empty")
        if not self.selected_mcps:
            raise AppError(ErrorCode.VALIDATION_FAILED, "No MCP servers selected")
        for template in self.selected_mcps:
            if not template.name:
                raise AppError(
                    ErrorCode.VALIDATION_FAILED, "MCP server name cannot be empty"
                )


def _walk_files(root: str) -> Iterator[os.DirEntry[str]]:
    for entry in sorted(os.scandir(root), key=lambda item: item.name):
        if entry.is_dir(follow_symlinks=False):
            yield from _walk_files(entry.path)
        else:
            yield entry


def _read_template(path: str) -> MCPServer:
    with open(path, encoding="utf-8") as handle:
        data = json.load(handle)
    if not isinstance(data, dict) or len(data) != 1:
        raise ValueError("template should contain exactly one MCP server")
    (server,) = data.values()
    return MCPServer.from_dict(server)


def scan_available_mcps(strategic_dir: str) -> list[MCPTemplate]:
    """Return the MCP templates under the framework's ``templates/mcps`` directory."""
    templates_dir = os.path.join(strategic_dir, layout.TEMPLATES_DIR, MCP_TEMPLATES_SUBDIR)
    if not os.path.exists(templates_dir):
        raise AppError(
            ErrorCode.NOT_INSTALLED,
            "MCP templates directory not found - run 'init' command first",
            FileNotFoundError(templates_dir),
        )
    templates: list[MCPTemplate] = []
    try:
        for entry in _walk_files(templates_dir):
            if not entry.name.endswith(TEMPLATE_SUFFIX) or entry.name in _SKIPPED_NAMES:
                continue
            try:
                server = _read_template(entry.path)
            except (OSError, ValueError) as exc:
                raise ValueError(f"failed to read MCP template {entry.name}: {exc}") from exc
            templates.append(
                MCPTemplate(
                    name=entry.name[: -len(TEMPLATE_SUFFIX)],
                    file_name=entry.name,
                    server=server,
                )
            )
    except (OSError, ValueError) as exc:
        raise AppError(
            ErrorCode.FILE_SYSTEM_ERROR, "failed to scan MCP templates", exc
        ) from exc
    return templates


def analyze_installation(
    target_dir: str, selected_mcps: list[MCPTemplate]
) -> MCPInstallationPlan:
    """Plan the installation of ``selected_mcps`` into ``target_dir``."""
    strategic_dir = os.path.join(target_dir, layout.STRATEGIC_DIR)
    if not os.path.exists(strategic_dir):
        raise AppError(
            ErrorCode.NOT_INSTALLED,
            "Strategic Claude Basic not installed - run 'init' command first",
            FileNotFoundError(strategic_dir),
        )
    mcp_path = os.path.join(target_dir, MCP_FILE)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    plan = MCPInstallationPlan(
        target_dir=target_dir,
        selected_mcps=list(selected_mcps),
        has_existing_mcp=os.path.exists(mcp_path),
        existing_mcp_path=mcp_path,
        backup_path=os.path.join(target_dir, f"{BACKUP_PREFIX}{timestamp}.json"),
        templates_dir=os.path.join(strategic_dir, layout.TEMPLATES_DIR, MCP_TEMPLATES_SUBDIR),
    )
    plan.validate()
    return plan


def _write_bytes(path: str, data: bytes) -> None:
    try:
        fd = os.open(path, os.O_CREAT | os.O_WRONLY | os.O_TRUNC, _FILE_MODE)
        with os.fdopen(fd, "wb") as handle:
            handle.write(data)
    except OSError as exc:
        raise FileSystemError(ErrorCode.FILE_SYSTEM_ERROR, path, exc) from exc


def _load_config(path: str) -> tuple[dict[str, Any], dict[str, MCPServer]]:
    try:
        with open(path, encoding="utf-8") as handle:
            data = json.load(handle)
    except OSError as exc:
        raise FileSystemError(ErrorCode.FILE_SYSTEM_ERROR, path, exc) from exc
    except ValueError as exc:
        raise AppError(
            ErrorCode.VALIDATION_FAILED, f"failed to parse MCP config {path}", exc
        ) from exc
    if not isinstance(data, dict):
        raise AppError(
            ErrorCode.VALIDATION_FAILED, f"MCP config {path} must be a JSON object"
        )
    raw_servers = data.get("mcpServers") or {}
    try:
        servers = {name: MCPServer.from_dict(raw) for name, raw in raw_servers.items()}
    except (AttributeError, ValueError) as exc:
        raise AppError(
            ErrorCode.VALIDATION_FAILED, f"failed to parse MCP config {path}", exc
        ) from exc
    return data, servers


def install_mcp_servers(plan: MCPInstallationPlan) -> None:
    """Back up any existing .mcp.json, then write it with the selected servers merged in."""
    if plan.has_existing_mcp:
        try:
            with open(plan.existing_mcp_path, "rb") as handle:
                original = handle.read()
        except OSError as exc:
            raise FileSystemError(
                ErrorCode.FILE_SYSTEM_ERROR, plan.existing_mcp_path, exc
            ) from exc
        _write_bytes(plan.backup_path, original)
        base_path = plan.existing_mcp_path
    else:
        base_path = os.path.join(plan.templates_dir, BASE_TEMPLATE)

    data, servers = _load_config(base_path)
    for template in plan.selected_mcps:
        servers[template.name] = template.server
    data["mcpServers"] = {name: server.to_dict() for name, server in servers.items()}
    text = json.dumps(data, indent=4, ensure_ascii=False)
    _write_bytes(plan.existing_mcp_path, text.encode("utf-8"))