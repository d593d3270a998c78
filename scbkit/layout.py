"""Names and permissions describing the on-disk framework layout."""

from __future__ import annotations

STRATEGIC_DIR = ".strategic-claude-basic"
CLAUDE_DIR = ".claude"
CODEX_DIR = ".codex"

CORE_DIR = "core"
GUIDES_DIR = "guides"
TEMPLATES_DIR = "templates"

ARCHIVES_DIR = "archives"
DECISIONS_DIR = "decisions"
ISSUES_DIR = "issues"
PLAN_DIR = "plan"
PRODUCT_DIR = "product"
RESEARCH_DIR = "research"
SUMMARY_DIR = "summary"
TOOLS_DIR = "tools"
VALIDATION_DIR = "validation"

AGENTS_DIR = "agents"
COMMANDS_DIR = "commands"
HOOKS_DIR = "hooks"

STRATEGIC_LINK_NAME = "strategic"

BACKUP_DIR_PREFIX = ".strategic-claude-basic-backup-"
TEMP_DIR_PREFIX = "strategic-claude-basic-"

CLAUDE_SETTINGS_FILE = "settings.json"
SETTINGS_TEMPLATE_FILE = "templates/hooks/settings.template.json"
SETTINGS_BACKUP_PREFIX = "settings.backup-"

CODEX_CONFIG_FILE = "config.toml"
CODEX_CONFIG_TEMPLATE_FILE = "templates/hooks/codex-config.template.toml"
CODEX_CONFIG_BACKUP_PREFIX = "config.backup-"

DIR_PERMISSIONS = 0o755
FILE_PERMISSIONS = 0o644


def framework_directories() -> list[str]:
    """Directories owned by the framework and replaced on update."""
    return [CORE_DIR, GUIDES_DIR, TEMPLATES_DIR]


def core_directories() -> list[str]:
    """Directories copied from the template during a core update."""
    return [CORE_DIR, GUIDES_DIR, TEMPLATES_DIR]


def user_preserved_directories() -> list[str]:
    """Directories holding user content that is never overwritten."""
    return [
        ARCHIVES_DIR,
        DECISIONS_DIR,
        ISSUES_DIR,
        PLAN_DIR,
        PRODUCT_DIR,
        RESEARCH_DIR,
        SUMMARY_DIR,
        TOOLS_DIR,
        VALIDATION_DIR,
    ]


def required_symlinks() -> dict[str, str]:
    """Map symlink paths inside the .claude directory to their relative targets."""
    return {
        f"{sub}/{STRATEGIC_LINK_NAME}": f"../../{STRATEGIC_DIR}/{CORE_DIR}/{sub}"
        for sub in (AGENTS_DIR, COMMANDS_DIR, HOOKS_DIR)
    }