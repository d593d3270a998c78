import json
import os
import stat

import pytest

from scbkit import layout
from scbkit.errors import AppError, ErrorCode
from scbkit.mcp import (
    MCPInstallationPlan,
    MCPServer,
    MCPTemplate,
    analyze_installation,
    install_mcp_servers,
    scan_available_mcps,
)


@pytest.fixture
def project(tmp_path):
    root = tmp_path / "project"
    mcps = root / layout.STRATEGIC_DIR / layout.TEMPLATES_DIR / "mcps"
    (mcps / "extra").mkdir(parents=True)
    (mcps / "template.mcp.json").write_text(json.dumps({"mcpServers": {}}))
    (mcps / "context7.mcp.json").write_text(
        json.dumps({"context7": {"command": "npx", "args": ["-y", "ctx-server"]}})
    )
    (mcps / "extra" / "alpha.mcp.json").write_text(
        json.dumps({"alpha": {"type": "http", "url": "https://example.com/mcp"}})
    )
    (mcps / ".gitkeep").write_text("")
    (mcps / "readme.txt").write_text("not a template")
    return root


def _templates(project):
    return scan_available_mcps(str(project / layout.STRATEGIC_DIR))


def test_server_round_trip():
    raw = {
        "type": "stdio",
        "command": "npx",
        "args": ["-y", "server"],
        "env": {"API_KEY": "placeholder"},
        "timeout": 30,
    }
    server = MCPServer.from_dict(raw)
    assert server.command == "npx"
    assert server.extra == {"timeout": 30}
    assert server.to_dict() == raw


def test_server_from_non_object_rejected():
    with pytest.raises(ValueError):
        MCPServer.from_dict(["npx"])


def test_scan_finds_templates_in_walk_order(project):
    templates = _templates(project)
    assert [t.name for t in templates] == ["context7", "alpha"]
    assert templates[0].file_name == "context7.mcp.json"
    assert templates[0].server.args == ["-y", "ctx-server"]
    assert templates[1].server.url == "https://example.com/mcp"


def test_scan_missing_templates_dir(tmp_path):
    with pytest.raises(AppError) as info:
        scan_available_mcps(str(tmp_path / layout.STRATEGIC_DIR))
    assert info.value.code == ErrorCode.NOT_INSTALLED


def test_scan_rejects_template_with_two_servers(project):
    mcps = project / layout.STRATEGIC_DIR / layout.TEMPLATES_DIR / "mcps"
    (mcps / "double.mcp.json").write_text(
        json.dumps({"a": {"command": "x"}, "b": {"command": "y"}})
    )
    with pytest.raises(AppError) as info:
        _templates(project)
    assert info.value.code == ErrorCode.FILE_SYSTEM_ERROR


def test_scan_rejects_invalid_json(project):
    mcps = project / layout.STRATEGIC_DIR / layout.TEMPLATES_DIR / "mcps"
    (mcps / "broken.mcp.json").write_text("{not json")
    with pytest.raises(AppError) as info:
        _templates(project)
    assert info.value.code == ErrorCode.FILE_SYSTEM_ERROR


def test_analyze_requires_installation(tmp_path):
    template = MCPTemplate("x", "x.mcp.json", MCPServer(command="x"))
    with pytest.raises(AppError) as info:
        analyze_installation(str(tmp_path), [template])
    assert info.value.code == ErrorCode.NOT_INSTALLED


def test_analyze_without_existing_config(project):
    templates = _templates(project)
    plan = analyze_installation(str(project), templates)
    assert plan.has_existing_mcp is False
    assert plan.existing_mcp_path == str(project / ".mcp.json")
    assert plan.templates_dir == str(
        project / layout.STRATEGIC_DIR / layout.TEMPLATES_DIR / "mcps"
    )
    backup_name = os.path.basename(plan.backup_path)
    assert backup_name.startswith(".mcp-backup-")
    assert backup_name.endswith(".json")
    assert os.path.dirname(plan.backup_path) == str(project)


def test_analyze_detects_existing_config(project):
    (project / ".mcp.json").write_text(json.dumps({"mcpServers": {}}))
    plan = analyze_installation(str(project), _templates(project))
    assert plan.has_existing_mcp is True


def test_analyze_rejects_empty_selection(project):
    with pytest.raises(AppError) as info:
        analyze_installation(str(project), [])
    assert info.value.code == ErrorCode.VALIDATION_FAILED


def test_plan_validate_rejects_empty_target():
    plan = MCPInstallationPlan(
        target_dir="",
        selected_mcps=[MCPTemplate("x", "x.mcp.json", MCPServer(command="x"))],
        has_existing_mcp=False,
        existing_mcp_path=".mcp.json",
        backup_path="backup.json",
        templates_dir="templates",
    )
    with pytest.raises(AppError) as info:
        plan.validate()
    assert info.value.code == ErrorCode.VALIDATION_FAILED


def test_install_new_config_from_template(project):
    templates = _templates(project)
    plan = analyze_installation(str(project), templates[:1])
    install_mcp_servers(plan)
    mcp_path = project / ".mcp.json"
    text = mcp_path.read_text()
    assert json.loads(text) == {
        "mcpServers": {"context7": {"command": "npx", "args": ["-y", "ctx-server"]}}
    }
    assert text.splitlines()[1].startswith('    "mcpServers"')
    assert stat.S_IMODE(mcp_path.stat().st_mode) == 0o600
    assert not os.path.exists(plan.backup_path)


def test_install_merges_into_existing_and_backs_up(project):
    original = json.dumps(
        {"mcpServers": {"mine": {"command": "node"}, "context7": {"command": "old"}}}
    )
    mcp_path = project / ".mcp.json"
    mcp_path.write_text(original)
    plan = analyze_installation(str(project), _templates(project))
    install_mcp_servers(plan)

    servers = json.loads(mcp_path.read_text())["mcpServers"]
    assert list(servers) == ["mine", "context7", "alpha"]
    assert servers["mine"] == {"command": "node"}
    assert servers["context7"]["command"] == "npx"
    assert servers["alpha"] == {"type": "http", "url": "https://example.com/mcp"}
    with open(plan.backup_path) as handle:
        assert handle.read() == original


def test_install_rejects_invalid_existing_config(project):
    (project / ".mcp.json").write_text("{broken")
    plan = analyze_installation(str(project), _templates(project))
    with pytest.raises(AppError) as info:
        install_mcp_servers(plan)
    assert info.value.code == ErrorCode.VALIDATION_FAILED