import os

import pytest

from scbkit import layout
from scbkit.codexconfig import (
    process_codex_config,
    remove_codex_config,
    validate_codex_config,
)
from scbkit.errors import AppError, ErrorCode

TEMPLATE_CONTENT = "# Codex Configuration\n[general]\nenabled = true\n"


def _config_path(root):
    return root / layout.CODEX_DIR / layout.CODEX_CONFIG_FILE


def _write_template(root, content=TEMPLATE_CONTENT):
    path = root / layout.STRATEGIC_DIR / layout.CODEX_CONFIG_TEMPLATE_FILE
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return path


def _backups(root):
    return [
        name
        for name in os.listdir(root / layout.CODEX_DIR)
        if name.startswith(layout.CODEX_CONFIG_BACKUP_PREFIX)
    ]


def test_process_without_template_creates_nothing(tmp_path):
    process_codex_config(str(tmp_path))
    assert not _config_path(tmp_path).exists()


def test_process_with_template_copies_content(tmp_path):
    _write_template(tmp_path)
    process_codex_config(str(tmp_path))
    assert _config_path(tmp_path).read_text() == TEMPLATE_CONTENT


def test_process_backs_up_existing_config(tmp_path):
    _write_template(tmp_path)
    config = _config_path(tmp_path)
    config.parent.mkdir(parents=True)
    config.write_text("test config")
    process_codex_config(str(tmp_path))
    assert config.read_text() == TEMPLATE_CONTENT
    backups = _backups(tmp_path)
    assert len(backups) == 1
    assert backups[0].endswith(".toml")
    assert (tmp_path / layout.CODEX_DIR / backups[0]).read_text() == "test config"


def test_remove_codex_config(tmp_path):
    config = _config_path(tmp_path)
    config.parent.mkdir(parents=True)
    config.write_text("test config")
    remove_codex_config(str(tmp_path))
    assert not config.exists()


def test_remove_codex_config_removes_backups(tmp_path):
    codex = tmp_path / layout.CODEX_DIR
    codex.mkdir()
    (codex / f"{layout.CODEX_CONFIG_BACKUP_PREFIX}20240101-120000.toml").write_text("b")
    (codex / "other.toml").write_text("keep")
    remove_codex_config(str(tmp_path))
    assert sorted(os.listdir(codex)) == ["other.toml"]


def test_validate_missing_config(tmp_path):
    with pytest.raises(AppError) as info:
        validate_codex_config(str(tmp_path))
    assert info.value.code == ErrorCode.VALIDATION_FAILED


def test_validate_existing_config(tmp_path):
    config = _config_path(tmp_path)
    config.parent.mkdir(parents=True)
    config.write_text("test config")
    validate_codex_config(str(tmp_path))
    assert config.read_text() == "test config"


def test_validate_rejects_directory(tmp_path):
    _config_path(tmp_path).mkdir(parents=True)
    with pytest.raises(AppError) as info:
        validate_codex_config(str(tmp_path))
    assert info.value.code == ErrorCode.VALIDATION_FAILED
    assert "not a regular file" in info.value.message